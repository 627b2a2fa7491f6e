"""API route modules."""

from creative_engine.api.routes import approvals, batches, health, publish, renders

__all__ = ["approvals", "batches", "health", "publish", "renders"]
