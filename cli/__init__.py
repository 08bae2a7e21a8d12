"""Interactive terminal client for the SupportChat API."""
