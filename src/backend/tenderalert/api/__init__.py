"""API routers and action endpoints."""
