"""Pytest fixtures and configuration for Good Circle Proposal Engine tests."""

import copy
import json
import os
import pytest
from datetime import datetime, timezone
from typing import Dict, Any, Generator, Optional
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

# Set test environment variables before importing app
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ.setdefault("DEBUG", "true")

from proposal_engine.integrations.openai import OpenAIClient  # noqa: E402
from proposal_engine.intelligence.comments import CommentsGenerator, ContentRefiner  # noqa: E402
from proposal_engine.models import (  # noqa: E402
    ClientBrief,
    Completion,
    Proposal,
    Usage,
)
from proposal_engine.services.assembler import assemble_skeleton  # noqa: E402
from proposal_engine.services.proposal_service import ProposalService  # noqa: E402


# ===========================================
# In-memory Collaborators
# ===========================================

class InMemoryDocumentStore:
    """Dict-backed stand-in for the Supabase document store."""

    def __init__(self):
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.writes = 0

    async def get(self, doc_id: str) -> Optional[Dict[str, Any]]:
        document = self.documents.get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def set(self, doc_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        self.documents[doc_id] = copy.deepcopy(document)
        self.writes += 1
        return document

    async def update(self, doc_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if doc_id not in self.documents:
            return None
        self.documents[doc_id].update(copy.deepcopy(changes))
        self.writes += 1
        return copy.deepcopy(self.documents[doc_id])

    async def delete(self, doc_id: str) -> bool:
        return self.documents.pop(doc_id, None) is not None


class InMemoryBriefRepository:
    def __init__(self, *briefs: ClientBrief):
        self.briefs = {brief.id: brief for brief in briefs}

    async def get(self, brief_id: str) -> Optional[ClientBrief]:
        return self.briefs.get(brief_id)


# ===========================================
# Sample Data Fixtures
# ===========================================

@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def sample_brief_data() -> Dict[str, Any]:
    """Client brief as written by the extraction tooling (camelCase keys)."""
    return {
        "id": "brief_123",
        "clientName": "Riverside Dental",
        "contactName": "Maria Lopez",
        "contactEmail": "maria@riversidedental.com",
        "clientOrganization": "Riverside Dental Group",
        "industry": "Healthcare",
        "goals": ["Attract more new patients", "Build a recognizable brand"],
        "painPoints": ["Inconsistent messaging across locations"],
        "opportunities": ["Underused Google Business profile"],
        "servicesNeeded": ["marketing_machine"],
    }


@pytest.fixture
def sample_brief(sample_brief_data) -> ClientBrief:
    return ClientBrief.model_validate(sample_brief_data)


@pytest.fixture
def sample_paragraphs():
    return [
        "Thank you for walking us through where Riverside Dental is headed.",
        "We recommend starting with a clear marketing foundation so every location speaks with one voice.",
        "From there we can grow new patient bookings with confidence.",
    ]


@pytest.fixture
def skeleton(sample_brief, fixed_now) -> Proposal:
    """Freshly assembled proposal with two services and empty comments."""
    return assemble_skeleton(
        opportunity_id="opp_001",
        client_brief=sample_brief,
        selected_service_keys=["marketing_machine", "internal_comms"],
        now=fixed_now,
    )


@pytest.fixture
def complete_proposal(skeleton, sample_paragraphs) -> Proposal:
    """Skeleton with a filled comments block; passes validation."""
    proposal = skeleton.model_copy(deep=True)
    proposal.comments.paragraphs = list(sample_paragraphs)
    return proposal


@pytest.fixture
def comments_response(sample_paragraphs) -> Dict[str, Any]:
    """JSON body the model is asked to return."""
    return {
        "proposalTitle": "Growth Plan for Riverside Dental Group",
        "comments": {
            "heading": "Comments from Kathryn",
            "greetingLine": "Hi Maria,",
            "paragraphs": sample_paragraphs,
            "signoff": "Kathryn",
        },
    }


# ===========================================
# Mock Fixtures
# ===========================================

@pytest.fixture
def mock_openai(comments_response) -> MagicMock:
    """OpenAI client whose completions return the sample comments JSON."""
    client = MagicMock(spec=OpenAIClient)
    client.complete = AsyncMock(return_value=Completion(
        content=json.dumps(comments_response),
        usage=Usage(total_tokens=321),
    ))
    return client


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def brief_repository(sample_brief) -> InMemoryBriefRepository:
    return InMemoryBriefRepository(sample_brief)


@pytest.fixture
def service(memory_store, brief_repository, mock_openai) -> ProposalService:
    """Proposal service wired to in-memory collaborators."""
    return ProposalService(
        store=memory_store,
        briefs=brief_repository,
        generator=CommentsGenerator(client=mock_openai),
        refiner=ContentRefiner(client=mock_openai),
    )


@pytest.fixture
def stored_proposal(memory_store, complete_proposal) -> Proposal:
    """Complete proposal already saved in the in-memory store."""
    memory_store.documents[complete_proposal.id] = complete_proposal.model_dump(mode="json")
    return complete_proposal


# ===========================================
# Client Fixtures
# ===========================================

@pytest.fixture
def client(service) -> Generator[TestClient, None, None]:
    """Test client with the proposal service wired to in-memory fakes."""
    from proposal_engine.main import app
    from proposal_engine.api.proposals import get_proposal_service

    app.dependency_overrides[get_proposal_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ===========================================
# Pytest Configuration
# ===========================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "api: marks tests that go through the HTTP layer"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
