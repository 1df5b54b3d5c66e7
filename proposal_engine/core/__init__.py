"""Core module - Configuration, errors and persistence."""

from proposal_engine.core.config import get_settings, Settings
from proposal_engine.core.database import (
    DocumentStore,
    ClientBriefRepository,
    proposal_store,
    client_brief_repository,
)

__all__ = [
    "get_settings",
    "Settings",
    "DocumentStore",
    "ClientBriefRepository",
    "proposal_store",
    "client_brief_repository",
]
