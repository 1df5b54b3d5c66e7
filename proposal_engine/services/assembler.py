"""Proposal assembly.

Deterministically builds a proposal document from a client brief, a list of
selected service keys and the content library. The comments block is left
empty for the narrative generator; everything else is final content.

Mutation helpers below never modify the document they are given. They check
their preconditions first, then return an updated copy with a fresh
``updated_at``. None of them lint or validate; the caller does that before
saving.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel

from proposal_engine.core.exceptions import (
    InvalidOverrideKeyError,
    InvalidStatusTransitionError,
    ServiceNotFoundError,
)
from proposal_engine.library import (
    SERVICE_LIBRARY_VERSION,
    TEMPLATE_VERSION,
    TERMS_VERSION,
    get_template,
    get_terms_block,
)
from proposal_engine.models import (
    BlockSource,
    Branding,
    ClientBrief,
    CommentsBlock,
    CommentsPatch,
    CoverBlock,
    CoverPatch,
    HighLevelReference,
    InvestmentOverride,
    ItemizedBlock,
    ModuleBlock,
    ModuleInput,
    Proposal,
    ProposalStatus,
    ProposalVersion,
    ServiceBlock,
    SignatureBlock,
    StyleRules,
    utc_now,
)
from proposal_engine.models.proposal import is_override_key

logger = logging.getLogger(__name__)

ITEMIZED_PLACEHOLDER = "[Itemized products and services will be managed in HighLevel]"
SIGNATURE_PLACEHOLDER = "[Signatures will be collected in HighLevel]"

DEFAULT_CLIENT_NAME = "Client"
DEFAULT_CLIENT_ORG = "Organization"
DEFAULT_GREETING_NAME = "there"

_STATUS_ORDER = [ProposalStatus.DRAFT, ProposalStatus.COMPLETE, ProposalStatus.SENT]


# ===========================================
# Name Resolution
# ===========================================

def _first_present(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value is not None and value.strip():
            return value.strip()
    return None


def resolve_client_name(brief: ClientBrief) -> Optional[str]:
    """Contact name, then client name, then organization. None if all are blank."""
    return _first_present(
        brief.contact_name,
        brief.client_name,
        brief.client_organization,
        brief.business_name,
    )


def resolve_client_org(brief: ClientBrief) -> Optional[str]:
    """Organization, then business name, then client name. None if all are blank."""
    return _first_present(
        brief.client_organization,
        brief.business_name,
        brief.client_name,
    )


# ===========================================
# Block Builders
# ===========================================

def build_cover_block(
    brief: ClientBrief,
    proposal_title: Optional[str],
    branding: Branding,
    created: datetime
) -> CoverBlock:
    """Cover from brief fields with fallbacks; never AI-generated."""
    client_org = resolve_client_org(brief) or DEFAULT_CLIENT_ORG
    return CoverBlock(
        proposal_title=_first_present(proposal_title) or f"Marketing Proposal for {client_org}",
        brand_name=branding.brand_name,
        prepared_by_name=branding.prepared_by_name,
        prepared_by_title=branding.prepared_by_title,
        quote_created_date=created.date().isoformat(),
        for_client_name=resolve_client_name(brief) or DEFAULT_CLIENT_NAME,
        for_client_org=client_org,
        for_client_email=_first_present(brief.contact_email),
    )


def build_empty_comments_block(brief: ClientBrief, branding: Branding) -> CommentsBlock:
    """Comments skeleton; paragraphs are always empty at assembly."""
    greeting_name = resolve_client_name(brief) or DEFAULT_GREETING_NAME
    return CommentsBlock(
        heading=f"Comments from {branding.prepared_by_name}",
        greeting_line=f"Hi {greeting_name},",
        paragraphs=[],
        signoff=branding.prepared_by_name,
    )


def build_service_blocks(
    service_keys: Sequence[str],
    log: Optional[logging.Logger] = None
) -> List[ServiceBlock]:
    """Copy each known template into an enabled block; unknown keys are dropped."""
    log = log or logger
    blocks = []
    for key in service_keys:
        template = get_template(key)
        if template is None:
            log.warning(f"Service not found in library, skipping: {key}")
            continue
        blocks.append(ServiceBlock(**template.model_dump(), enabled=True, overrides={}))
    return blocks


def build_itemized_block(opportunity_id: str) -> ItemizedBlock:
    return ItemizedBlock(
        source=BlockSource.PLACEHOLDER,
        placeholder_text=ITEMIZED_PLACEHOLDER,
        high_level=HighLevelReference(opportunity_id=opportunity_id, estimate_id=None),
    )


def build_signature_block() -> SignatureBlock:
    return SignatureBlock(
        source=BlockSource.PLACEHOLDER,
        placeholder_text=SIGNATURE_PLACEHOLDER,
        high_level_embed=None,
    )


# ===========================================
# Assembly
# ===========================================

def assemble_skeleton(
    opportunity_id: str,
    client_brief: ClientBrief,
    selected_service_keys: Sequence[str],
    proposal_title: Optional[str] = None,
    branding: Optional[Branding] = None,
    now: Optional[datetime] = None,
    log: Optional[logging.Logger] = None
) -> Proposal:
    """
    Assemble a complete proposal skeleton.

    Creates every deterministic block. The comments block has no paragraphs;
    filling it is the narrative generator's job. Unknown service keys are
    skipped with a warning, so the result may have no services at all; the
    validator reports that, not the assembler.

    Args:
        opportunity_id: External opportunity identifier, reused as proposal ID
        client_brief: Brief the cover and greeting are built from
        selected_service_keys: Library keys in the order they should appear
        proposal_title: Optional custom title
        branding: Agency identity for the cover; defaults to Branding()
        now: Timestamp to stamp, defaults to the current UTC time
        log: Logger to report to

    Returns:
        Draft proposal with empty comments paragraphs
    """
    log = log or logger
    branding = branding or Branding()
    now = now or utc_now()

    log.info(
        f"Assembling proposal skeleton for opportunity {opportunity_id} "
        f"({len(selected_service_keys)} service(s) requested)"
    )

    services = build_service_blocks(selected_service_keys, log=log)

    proposal = Proposal(
        id=opportunity_id,
        opportunity_id=opportunity_id,
        client_brief_id=client_brief.id,
        status=ProposalStatus.DRAFT,
        version=ProposalVersion(
            template_version=TEMPLATE_VERSION,
            service_library_version=SERVICE_LIBRARY_VERSION,
            terms_version=TERMS_VERSION,
        ),
        cover=build_cover_block(client_brief, proposal_title, branding, now),
        comments=build_empty_comments_block(client_brief, branding),
        services=services,
        modules=[],
        itemized=build_itemized_block(opportunity_id),
        terms=get_terms_block(),
        signatures=build_signature_block(),
        style_rules=StyleRules(),
        created_at=now,
        updated_at=now,
    )

    log.info(f"Proposal skeleton assembled: {proposal.id} with {len(services)} service(s)")
    return proposal


# ===========================================
# Mutations
# ===========================================

def _touched(proposal: Proposal) -> Proposal:
    updated = proposal.model_copy(deep=True)
    updated.updated_at = utc_now()
    return updated


def _service_index(proposal: Proposal, service_key: str) -> int:
    for index, service in enumerate(proposal.services):
        if service.service_key == service_key:
            return index
    raise ServiceNotFoundError(service_key)


def _patch_changes(patch: BaseModel, target: BaseModel) -> Dict[str, Any]:
    """Fields explicitly set on the patch. None clears only fields that default to None."""
    fields = type(target).model_fields
    return {
        name: value
        for name, value in patch.model_dump(exclude_unset=True).items()
        if value is not None or fields[name].default is None
    }


def update_comments_block(proposal: Proposal, comments: CommentsPatch) -> Proposal:
    """Shallow-merge known comments fields. Does not lint."""
    updated = _touched(proposal)
    changes = _patch_changes(comments, updated.comments)
    updated.comments = updated.comments.model_copy(update=changes)
    return updated


def update_cover_block(proposal: Proposal, cover: CoverPatch) -> Proposal:
    """Shallow-merge known cover fields; an explicit None clears the email. Does not lint."""
    updated = _touched(proposal)
    changes = _patch_changes(cover, updated.cover)
    updated.cover = updated.cover.model_copy(update=changes)
    return updated


def update_service_overrides(
    proposal: Proposal,
    service_key: str,
    overrides: Optional[Dict[str, str]] = None,
    investment_override: Optional[InvestmentOverride] = None
) -> Proposal:
    """
    Merge subsection overrides into a service block.

    New keys are added and existing keys replaced; the template copy's
    subsection bodies are never touched. An investment override replaces the
    previous one as a whole.

    Raises:
        ServiceNotFoundError: service_key is not part of the proposal
        InvalidOverrideKeyError: a key does not look like subsection_<N>
    """
    index = _service_index(proposal, service_key)
    overrides = overrides or {}
    for key in overrides:
        if not is_override_key(key):
            raise InvalidOverrideKeyError(key)

    updated = _touched(proposal)
    service = updated.services[index]
    service.overrides = {**service.overrides, **overrides}
    if investment_override is not None:
        service.investment_override = investment_override.model_copy(deep=True)
    return updated


def toggle_service_enabled(proposal: Proposal, service_key: str, enabled: bool) -> Proposal:
    """
    Show or hide a service without removing it.

    Raises:
        ServiceNotFoundError: service_key is not part of the proposal
    """
    index = _service_index(proposal, service_key)
    updated = _touched(proposal)
    updated.services[index].enabled = enabled
    return updated


def add_module(proposal: Proposal, module: ModuleInput) -> Proposal:
    """Append an enabled module. Same key twice gives two entries."""
    updated = _touched(proposal)
    updated.modules.append(ModuleBlock(
        module_key=module.module_key,
        title_caps=module.title_caps or None,
        body_markdown=module.body_markdown,
        enabled=True,
    ))
    return updated


def remove_module(proposal: Proposal, module_key: str) -> Proposal:
    """Drop every module with the given key."""
    updated = _touched(proposal)
    updated.modules = [m for m in updated.modules if m.module_key != module_key]
    return updated


def set_status(proposal: Proposal, status: ProposalStatus) -> Proposal:
    """
    Move the proposal one step forward: draft, complete, sent.

    Raises:
        InvalidStatusTransitionError: the target is not the next status
    """
    current = _STATUS_ORDER.index(proposal.status)
    requested = _STATUS_ORDER.index(status)
    if requested != current + 1:
        raise InvalidStatusTransitionError(proposal.status.value, status.value)

    updated = _touched(proposal)
    updated.status = status
    return updated
