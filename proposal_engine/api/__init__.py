"""API routes."""

from proposal_engine.api.proposals import router as proposals_router, services_router

__all__ = ["proposals_router", "services_router"]
