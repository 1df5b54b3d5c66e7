"""Result models returned by the linter, generator and proposal service."""

from typing import Optional, List
from pydantic import BaseModel, Field

from proposal_engine.models.proposal import CommentsBlock, Proposal


class ValidationResult(BaseModel):
    """Structural completeness check. Never raised, always returned."""
    valid: bool = Field(..., description="True when no errors were found")
    errors: List[str] = Field(default_factory=list, description="Every defect found")


class Usage(BaseModel):
    total_tokens: int = 0


class Completion(BaseModel):
    """Raw output of the text-generation collaborator."""
    content: str
    usage: Usage = Field(default_factory=Usage)


class GeneratedComments(BaseModel):
    """Linted output of the narrative generator."""
    proposal_title: Optional[str] = Field(None, description="Suggested title, or None to keep default")
    comments: CommentsBlock
    total_tokens: int = 0


class ProposalResult(BaseModel):
    """A saved proposal together with its validation report."""
    proposal: Proposal
    validation: ValidationResult
    tokens: int = 0


class RefinedContent(BaseModel):
    refined_content: str
    tokens: int = 0
