"""Proposal linter.

Post-processing that enforces formatting rules on proposal content:

- Em and en dashes become a plain hyphen
- Excess blank lines and repeated spaces/tabs are collapsed
- The comments block is kept to 2-5 non-empty paragraphs
- Structural completeness is reported by ``validate_proposal``

Nothing in here raises. Linting repairs what it can; validation reports the
rest and the caller decides what is fatal.
"""

import json
import logging
import re
from datetime import datetime
from typing import List, Optional

from proposal_engine.models import (
    Clause,
    CommentsBlock,
    CoverBlock,
    ModuleBlock,
    Proposal,
    ServiceBlock,
    ValidationResult,
    utc_now,
)

logger = logging.getLogger(__name__)

DASH_PATTERN = re.compile(r"[\u2014\u2013]")  # em dash, en dash
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_INLINE_WHITESPACE = re.compile(r"[ \t]+")
_LEADING_HYPHENS = re.compile(r"^[-\s]+")

MIN_COMMENT_PARAGRAPHS = 2
MAX_COMMENT_PARAGRAPHS = 5


def clean_text(text: Optional[str]) -> Optional[str]:
    """
    Normalize a piece of content.

    Replaces em/en dashes with '-', caps consecutive newlines at two,
    collapses runs of spaces/tabs to one space and trims the ends.
    None and empty strings pass through unchanged.
    """
    if not text:
        return text
    text = DASH_PATTERN.sub("-", text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    text = _INLINE_WHITESPACE.sub(" ", text)
    return text.strip()


def contains_dash_artifact(text: Optional[str]) -> bool:
    """True if the text contains an em or en dash."""
    if not text:
        return False
    return DASH_PATTERN.search(text) is not None


def lint_comments(
    comments: CommentsBlock,
    log: Optional[logging.Logger] = None
) -> CommentsBlock:
    """
    Lint the comments block.

    Truncates to the first five paragraphs, drops empty ones, and strips a
    leading hyphen left behind on the signoff by dash replacement.
    """
    log = log or logger
    paragraphs = [clean_text(p) or "" for p in comments.paragraphs]

    if len(paragraphs) > MAX_COMMENT_PARAGRAPHS:
        log.warning(
            f"Too many paragraphs in comments ({len(paragraphs)}), "
            f"truncating to {MAX_COMMENT_PARAGRAPHS}"
        )
        paragraphs = paragraphs[:MAX_COMMENT_PARAGRAPHS]

    paragraphs = [p for p in paragraphs if p.strip()]

    if len(paragraphs) < MIN_COMMENT_PARAGRAPHS:
        log.debug(f"Comments have {len(paragraphs)} paragraph(s)")

    signoff = clean_text(comments.signoff) or ""
    if signoff.startswith("-"):
        signoff = _LEADING_HYPHENS.sub("", signoff).strip()

    return CommentsBlock(
        heading=clean_text(comments.heading) or "",
        greeting_line=clean_text(comments.greeting_line) or "",
        paragraphs=paragraphs,
        signoff=signoff,
    )


def _lint_cover(cover: CoverBlock) -> CoverBlock:
    return CoverBlock(
        proposal_title=clean_text(cover.proposal_title) or "",
        brand_name=clean_text(cover.brand_name) or "",
        prepared_by_name=clean_text(cover.prepared_by_name) or "",
        prepared_by_title=clean_text(cover.prepared_by_title) or "",
        quote_created_date=clean_text(cover.quote_created_date) or "",
        for_client_name=clean_text(cover.for_client_name) or "",
        for_client_org=clean_text(cover.for_client_org) or "",
        for_client_email=clean_text(cover.for_client_email) or None,
    )


def _lint_service(service: ServiceBlock) -> ServiceBlock:
    linted = service.model_copy(deep=True)
    linted.display_name = clean_text(service.display_name) or ""
    for sub in linted.subsections:
        sub.title = clean_text(sub.title) or ""
        sub.body_markdown = clean_text(sub.body_markdown) or ""
    linted.timeline = clean_text(service.timeline) or None
    linted.outcome = clean_text(service.outcome) or None
    linted.overrides = {key: clean_text(value) or "" for key, value in service.overrides.items()}
    linted.investment.notes = clean_text(service.investment.notes) or None
    linted.investment.render_hint = clean_text(service.investment.render_hint) or None
    if linted.investment_override is not None:
        override = linted.investment_override
        override.notes = clean_text(override.notes) or None
        override.render_hint = clean_text(override.render_hint) or None
    return linted


def _lint_module(module: ModuleBlock) -> ModuleBlock:
    return ModuleBlock(
        module_key=module.module_key,
        title_caps=clean_text(module.title_caps) or None,
        body_markdown=clean_text(module.body_markdown) or "",
        enabled=module.enabled,
    )


def _lint_clause(clause: Clause) -> Clause:
    return Clause(
        number=clause.number,
        title=clean_text(clause.title) or None,
        body=clean_text(clause.body) or "",
    )


def lint_proposal(
    proposal: Proposal,
    now: Optional[datetime] = None,
    log: Optional[logging.Logger] = None
) -> Proposal:
    """
    Lint every text-bearing field of a proposal.

    Returns a new proposal with a fresh ``updated_at``; the input is left
    untouched. Idempotent for a fixed ``now``.
    """
    log = log or logger
    log.info(f"Linting proposal {proposal.id}")

    linted = proposal.model_copy(deep=True)
    linted.cover = _lint_cover(proposal.cover)
    linted.comments = lint_comments(proposal.comments, log=log)
    linted.services = [_lint_service(s) for s in proposal.services]
    linted.modules = [_lint_module(m) for m in proposal.modules]
    linted.terms.title_caps = clean_text(proposal.terms.title_caps) or ""
    linted.terms.intro_text = clean_text(proposal.terms.intro_text) or None
    linted.terms.clauses = [_lint_clause(c) for c in proposal.terms.clauses]
    linted.itemized.placeholder_text = clean_text(proposal.itemized.placeholder_text) or None
    linted.signatures.placeholder_text = clean_text(proposal.signatures.placeholder_text) or None
    linted.updated_at = now or utc_now()

    log.debug(f"Proposal {proposal.id} linting complete")
    return linted


def validate_proposal(proposal: Proposal) -> ValidationResult:
    """
    Check structural completeness.

    Collects every defect rather than stopping at the first one. Never
    mutates and never raises.
    """
    errors: List[str] = []

    # Identity
    if not proposal.id:
        errors.append("Missing proposal ID")
    if not proposal.opportunity_id:
        errors.append("Missing opportunity ID")
    if not proposal.client_brief_id:
        errors.append("Missing client brief ID")

    # Cover
    if not proposal.cover.proposal_title.strip():
        errors.append("Missing proposal title")
    if not proposal.cover.for_client_name.strip():
        errors.append("Missing client name")
    if not proposal.cover.for_client_org.strip():
        errors.append("Missing client organization")

    # Comments
    if not proposal.comments.heading.strip():
        errors.append("Missing comments heading")
    paragraphs = [p for p in proposal.comments.paragraphs if p and p.strip()]
    if not paragraphs:
        errors.append("Missing comments paragraphs")
    if len(paragraphs) < MIN_COMMENT_PARAGRAPHS:
        errors.append(f"Comments should have at least {MIN_COMMENT_PARAGRAPHS} paragraphs")

    # Services
    if not proposal.services:
        errors.append("No services selected")
    if not proposal.enabled_services:
        errors.append("At least one service must be enabled")

    # Terms
    if not proposal.terms.clauses:
        errors.append("Missing terms clauses")

    # Style rules: dashes are forbidden unconditionally
    serialized = json.dumps(proposal.model_dump(mode="json"), ensure_ascii=False)
    if contains_dash_artifact(serialized):
        errors.append("Em dashes found in proposal content")

    return ValidationResult(valid=not errors, errors=errors)
