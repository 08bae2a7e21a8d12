"""HTTP tests for /chat, /health and /metrics via TestClient."""

from datetime import datetime

import openai
import pytest
from prometheus_client import REGISTRY

from conftest import mock_chat_model, provider_request
from supportchat.app import app
from supportchat.configs.system import DEFAULT_FALLBACK_REPLY
from supportchat.core.llm.client import MISSING_API_KEY, ClientHandle, get_client_handle
from supportchat.infra.id_utils import generate_id, is_valid_id


def _post(client, payload: dict):
    return client.post("/chat/message", json=payload)


def _timeout_failures() -> float:
    return REGISTRY.get_sample_value(
        "supportchat_generator_failures_total", {"kind": "timeout"}
    ) or 0.0


# =========================================================================
# POST /chat/message
# =========================================================================


class TestPostMessage:
    def test_new_conversation(self, client):
        response = _post(client, {"message": "Do you ship to the USA?"})

        assert response.status_code == 200
        body = response.json()
        assert body["reply"] == "Happy to help!"
        assert is_valid_id(body["sessionId"])

    def test_session_continues(self, client):
        first = _post(client, {"message": "Hi"}).json()

        second = _post(
            client, {"message": "Follow-up", "sessionId": first["sessionId"]}
        ).json()

        assert second["sessionId"] == first["sessionId"]
        history = client.get(f"/chat/history/{first['sessionId']}").json()
        assert len(history["messages"]) == 4

    def test_unknown_session_gets_new_id(self, client):
        unknown = generate_id()

        response = _post(client, {"message": "Hello", "sessionId": unknown})

        assert response.status_code == 200
        assert response.json()["sessionId"] != unknown

    def test_null_session_id_accepted(self, client):
        response = _post(client, {"message": "Hello", "sessionId": None})

        assert response.status_code == 200

    def test_fallback_reply_on_generator_failure(self, client):
        app.dependency_overrides[get_client_handle] = lambda: ClientHandle(
            error=MISSING_API_KEY
        )

        response = _post(client, {"message": "Is anyone there?"})

        assert response.status_code == 200
        body = response.json()
        assert body["reply"] == DEFAULT_FALLBACK_REPLY
        history = client.get(f"/chat/history/{body['sessionId']}").json()
        assert [m["text"] for m in history["messages"]] == [
            "Is anyone there?",
            DEFAULT_FALLBACK_REPLY,
        ]

    def test_provider_exception_falls_back(self, client):
        model = mock_chat_model(side_effect=RuntimeError("provider down"))
        app.dependency_overrides[get_client_handle] = lambda: ClientHandle(
            client=model
        )

        response = _post(client, {"message": "Hello"})

        assert response.status_code == 200
        assert response.json()["reply"] == DEFAULT_FALLBACK_REPLY

    def test_whitespace_message_falls_back(self, client):
        response = _post(client, {"message": "   "})

        assert response.status_code == 200
        body = response.json()
        assert body["reply"] == DEFAULT_FALLBACK_REPLY
        history = client.get(f"/chat/history/{body['sessionId']}").json()
        assert [(m["sender"], m["text"]) for m in history["messages"]] == [
            ("user", "   "),
            ("ai", DEFAULT_FALLBACK_REPLY),
        ]

    def test_provider_timeout_falls_back(self, client):
        model = mock_chat_model(
            side_effect=openai.APITimeoutError(request=provider_request())
        )
        app.dependency_overrides[get_client_handle] = lambda: ClientHandle(
            client=model
        )
        before = _timeout_failures()

        response = _post(client, {"message": "  Where is order #7?"})

        assert response.status_code == 200
        body = response.json()
        assert body["reply"] == DEFAULT_FALLBACK_REPLY
        history = client.get(f"/chat/history/{body['sessionId']}").json()
        assert [(m["sender"], m["text"]) for m in history["messages"]] == [
            ("user", "  Where is order #7?"),
            ("ai", DEFAULT_FALLBACK_REPLY),
        ]
        assert _timeout_failures() == before + 1


class TestPostMessageValidation:
    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"message": 123},
            {"message": None},
            {"message": ""},
            {"message": "a" * 2001},
            {"message": "Hello", "sessionId": "not-a-uuid"},
        ],
    )
    def test_rejected_with_400(self, client, payload):
        response = _post(client, payload)

        assert response.status_code == 400
        body = response.json()
        assert body["error"]
        assert body["details"]

    def test_rejected_request_writes_nothing(self, client):
        _post(client, {"message": ""})

        stats = client.get("/data/stats").json()
        assert stats["totalConversations"] == 0
        assert stats["totalMessages"] == 0

    def test_message_at_limit_accepted(self, client):
        response = _post(client, {"message": "a" * 2000})

        assert response.status_code == 200

    def test_field_details(self, client):
        body = _post(client, {"message": "", "sessionId": "bad"}).json()

        fields = {d["field"] for d in body["details"]}
        assert fields == {"message", "sessionId"}


# =========================================================================
# GET /chat/history/{sessionId}
# =========================================================================


class TestHistory:
    def test_transcript_shape(self, client):
        session_id = _post(client, {"message": "Return policy?"}).json()["sessionId"]

        response = client.get(f"/chat/history/{session_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["sessionId"] == session_id
        assert "createdAt" in body
        user_turn, ai_turn = body["messages"]
        assert user_turn["sender"] == "user"
        assert user_turn["text"] == "Return policy?"
        assert user_turn["conversationId"] == session_id
        assert ai_turn["sender"] == "ai"
        assert ai_turn["text"] == "Happy to help!"
        user_at = datetime.fromisoformat(user_turn["timestamp"])
        assert user_at < datetime.fromisoformat(ai_turn["timestamp"])

    def test_unknown_session_404(self, client):
        response = client.get(f"/chat/history/{generate_id()}")

        assert response.status_code == 404
        assert response.json() == {"error": "Conversation not found"}

    def test_malformed_session_400(self, client):
        response = client.get("/chat/history/12345")

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid session ID format"


# =========================================================================
# Health and metrics
# =========================================================================


class TestOperational:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["database"] == "connected"
        assert "timestamp" in body

    def test_metrics_exposed(self, client):
        _post(client, {"message": "Hello"})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "supportchat_chat_requests_total" in response.text
        assert "supportchat_messages_persisted_total" in response.text
