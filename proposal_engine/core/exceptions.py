"""Typed errors raised by the proposal engine.

Every failure the calling layer has to tell apart gets its own class, so a
route can map "your API key is invalid" and "please retry" to different
responses without inspecting messages.
"""

from typing import Optional


class ProposalEngineError(Exception):
    """Base class for all proposal engine errors."""


# ===========================================
# Not Found
# ===========================================

class NotFoundError(ProposalEngineError):
    """A referenced entity does not exist."""


class ProposalNotFoundError(NotFoundError):
    def __init__(self, proposal_id: str):
        super().__init__(f"Proposal not found: {proposal_id}")
        self.proposal_id = proposal_id


class ClientBriefNotFoundError(NotFoundError):
    def __init__(self, brief_id: str):
        super().__init__(f"Client brief not found: {brief_id}")
        self.brief_id = brief_id


# ===========================================
# Invariant Violations
# ===========================================

class InvariantViolationError(ProposalEngineError):
    """An operation would break a document invariant; nothing was changed."""


class ServiceNotFoundError(NotFoundError, InvariantViolationError):
    """The service key is not part of the proposal."""

    def __init__(self, service_key: str):
        super().__init__(f"Service not found in proposal: {service_key}")
        self.service_key = service_key


class InvalidOverrideKeyError(InvariantViolationError):
    def __init__(self, key: str):
        super().__init__(f"Invalid override key '{key}', expected subsection_<N>")
        self.key = key


class InvalidStatusTransitionError(InvariantViolationError):
    def __init__(self, current: str, requested: str, reason: Optional[str] = None):
        message = f"Cannot move proposal from '{current}' to '{requested}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.current = current
        self.requested = requested


# ===========================================
# Text Generation
# ===========================================

class GenerationTransportError(ProposalEngineError):
    """The text-generation service could not be reached or refused the call."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_type: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type

    @property
    def is_rate_limit(self) -> bool:
        return self.status_code == 429

    @property
    def is_auth_error(self) -> bool:
        return self.status_code in (401, 403)


class RateLimitedError(GenerationTransportError):
    pass


class UnauthorizedError(GenerationTransportError):
    pass


class GenerationServiceError(GenerationTransportError):
    """Network failure, timeout, or a non-2xx status other than 401/403/429."""


class MalformedGenerationOutputError(ProposalEngineError):
    """Generated content lacks the required comments structure."""


class InvalidGenerationOutputError(MalformedGenerationOutputError):
    """Generated content is not parseable JSON."""


# ===========================================
# Storage
# ===========================================

class StorageError(ProposalEngineError):
    """The document store failed for a reason other than a missing record."""
