"""Chat orchestration services (context assembly, message orchestration)."""
