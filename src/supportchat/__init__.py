"""SupportChat: customer-support chat relay backed by an LLM."""
