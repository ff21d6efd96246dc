"""API layer - FastAPI routers and dependencies."""
