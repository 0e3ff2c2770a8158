"""Core infrastructure: configuration, logging, event channels and scheduling."""
