"""Core - configuration and logging."""
