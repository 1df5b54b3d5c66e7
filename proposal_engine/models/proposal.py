"""Proposal document models.

A proposal is stored and edited as structured JSON and only rendered to HTML
or plain text at the very end. Every block except ``comments`` is produced
deterministically from the content library and the client brief.
"""

import re
from datetime import datetime, timezone
from typing import Literal, Optional, List, Dict
from pydantic import BaseModel, ConfigDict, Field, field_validator

from proposal_engine.models.enums import (
    BlockSource,
    InvestmentModel,
    ProposalStatus,
)

OVERRIDE_KEY_PATTERN = re.compile(r"^subsection_(\d+)$")


def utc_now() -> datetime:
    """Current UTC time, used for every timestamp stamp."""
    return datetime.now(timezone.utc)


def override_key(number: int) -> str:
    """Overrides map key for a subsection number."""
    return f"subsection_{number}"


def is_override_key(key: str) -> bool:
    return bool(OVERRIDE_KEY_PATTERN.match(key))


# ===========================================
# Library Entities
# ===========================================

class Investment(BaseModel):
    """Structured pricing information for a service."""
    model: InvestmentModel = Field(..., description="Billing model")
    amount: Optional[float] = Field(None, description="Price amount")
    currency: str = Field("USD", description="Currency code")
    notes: Optional[str] = Field(None, description="Additional pricing notes")
    render_hint: Optional[str] = Field(
        None,
        description="Human-readable price, e.g. '$5,000 one-time investment'"
    )


class InvestmentOverride(BaseModel):
    """Per-proposal delta over a service's investment record."""
    model_config = ConfigDict(extra="forbid")

    model: Optional[InvestmentModel] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    notes: Optional[str] = None
    render_hint: Optional[str] = None


class ServiceSubsection(BaseModel):
    """Numbered, titled content unit within a service."""
    number: int = Field(..., ge=1, description="Subsection number (1..N)")
    title: str = Field(..., description="Subsection title")
    body_markdown: str = Field(..., description="Restricted markdown body")
    allow_client_specific_edits: bool = Field(
        False,
        description="Whether per-proposal edits are expected"
    )


class ServiceTemplate(BaseModel):
    """Immutable catalog entry in the service library."""
    service_key: str = Field(..., description="Stable service identifier")
    display_name: str = Field(..., description="ALL CAPS display name")
    subsections: List[ServiceSubsection] = Field(default_factory=list)
    investment: Investment
    timeline: Optional[str] = Field(None, description="Timeline description")
    outcome: Optional[str] = Field(None, description="Expected outcome statement")


class Clause(BaseModel):
    """Single numbered clause of the purchase terms."""
    number: int = Field(..., ge=1)
    title: Optional[str] = None
    body: str


class TermsBlock(BaseModel):
    """Legal terms copied in full into every proposal."""
    title_caps: str = Field(..., description="ALL CAPS section title")
    intro_text: Optional[str] = Field(None, description="Paragraph before the clauses")
    clauses: List[Clause] = Field(default_factory=list)


# ===========================================
# Proposal Blocks
# ===========================================

class ProposalVersion(BaseModel):
    """Library versions a proposal was assembled with. Never upgraded."""
    template_version: str
    service_library_version: str
    terms_version: str


class Branding(BaseModel):
    """Agency identity used on the cover and in the comments block."""
    brand_name: str = "Good Circle Marketing"
    prepared_by_name: str = "Kathryn"
    prepared_by_title: str = "Marketing Lead"


class CoverBlock(BaseModel):
    """Client-facing header. Deterministic, never AI-generated."""
    proposal_title: str = ""
    brand_name: str = ""
    prepared_by_name: str = ""
    prepared_by_title: str = ""
    quote_created_date: str = Field("", description="YYYY-MM-DD")
    for_client_name: str = ""
    for_client_org: str = ""
    for_client_email: Optional[str] = None


class CommentsBlock(BaseModel):
    """Narrative section from the marketing lead. The only AI-authored block."""
    heading: str = ""
    greeting_line: str = ""
    paragraphs: List[str] = Field(default_factory=list)
    signoff: str = ""


class ServiceBlock(ServiceTemplate):
    """Per-proposal copy of a service template."""
    enabled: bool = True
    overrides: Dict[str, str] = Field(
        default_factory=dict,
        description="Subsection body replacements keyed subsection_<N>"
    )
    investment_override: Optional[InvestmentOverride] = None

    @field_validator("overrides")
    @classmethod
    def _check_override_keys(cls, value: Dict[str, str]) -> Dict[str, str]:
        for key in value:
            if not is_override_key(key):
                raise ValueError(f"invalid override key: {key}")
        return value

    def is_overridden(self, subsection: ServiceSubsection) -> bool:
        """True when a non-empty override differs from the template body."""
        value = self.overrides.get(override_key(subsection.number))
        if value is None or not value.strip():
            return False
        return value != subsection.body_markdown

    def resolve_body(self, subsection: ServiceSubsection) -> str:
        """Body to display for a subsection: the override when touched, else the original."""
        if self.is_overridden(subsection):
            return self.overrides[override_key(subsection.number)]
        return subsection.body_markdown

    def resolve_investment(self) -> Investment:
        """Investment record with any override fields layered on top."""
        if self.investment_override is None:
            return self.investment
        delta = self.investment_override.model_dump(exclude_none=True)
        return self.investment.model_copy(update=delta)


class ModuleBlock(BaseModel):
    """Free-form optional section, e.g. 'Past Clients'."""
    module_key: str
    title_caps: Optional[str] = None
    body_markdown: str
    enabled: bool = True


class HighLevelReference(BaseModel):
    opportunity_id: Optional[str] = None
    estimate_id: Optional[str] = None


class ItemizedBlock(BaseModel):
    """Line items live in the CRM; the core only keeps a pointer or placeholder."""
    source: BlockSource = BlockSource.PLACEHOLDER
    placeholder_text: Optional[str] = None
    high_level: Optional[HighLevelReference] = None


class HighLevelEmbed(BaseModel):
    url: Optional[str] = None
    instructions: Optional[str] = None


class SignatureBlock(BaseModel):
    """Signatures are collected in the CRM."""
    source: BlockSource = BlockSource.PLACEHOLDER
    placeholder_text: Optional[str] = None
    high_level_embed: Optional[HighLevelEmbed] = None


class StyleRules(BaseModel):
    """Formatting rules consulted by the linter and renderer."""
    forbid_em_dash: Literal[True] = Field(True, description="Always on; dashes are never allowed")
    tone: str = "professional_personal"
    numbered_subsections: bool = True
    caps_service_titles: bool = True
    bullets_style: str = "ul"


# ===========================================
# Proposal Aggregate
# ===========================================

class Proposal(BaseModel):
    """Complete proposal document."""
    id: str = Field(..., description="Proposal ID (the opportunity ID)")
    opportunity_id: str = ""
    client_brief_id: str = ""
    status: ProposalStatus = ProposalStatus.DRAFT
    version: ProposalVersion
    cover: CoverBlock
    comments: CommentsBlock
    services: List[ServiceBlock] = Field(default_factory=list)
    modules: List[ModuleBlock] = Field(default_factory=list)
    itemized: ItemizedBlock = Field(default_factory=ItemizedBlock)
    terms: TermsBlock
    signatures: SignatureBlock = Field(default_factory=SignatureBlock)
    style_rules: StyleRules = Field(default_factory=StyleRules)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def find_service(self, service_key: str) -> Optional[ServiceBlock]:
        for service in self.services:
            if service.service_key == service_key:
                return service
        return None

    @property
    def enabled_services(self) -> List[ServiceBlock]:
        return [s for s in self.services if s.enabled]

    @property
    def enabled_modules(self) -> List[ModuleBlock]:
        return [m for m in self.modules if m.enabled]


# ===========================================
# Partial Update Models
# ===========================================

class CoverPatch(BaseModel):
    """Known cover fields that may be edited after assembly."""
    model_config = ConfigDict(extra="forbid")

    proposal_title: Optional[str] = None
    brand_name: Optional[str] = None
    prepared_by_name: Optional[str] = None
    prepared_by_title: Optional[str] = None
    quote_created_date: Optional[str] = None
    for_client_name: Optional[str] = None
    for_client_org: Optional[str] = None
    for_client_email: Optional[str] = None


class CommentsPatch(BaseModel):
    """Known comments fields that may be replaced."""
    model_config = ConfigDict(extra="forbid")

    heading: Optional[str] = None
    greeting_line: Optional[str] = None
    paragraphs: Optional[List[str]] = None
    signoff: Optional[str] = None


class ModuleInput(BaseModel):
    """Fields accepted when adding a module."""
    model_config = ConfigDict(extra="forbid")

    module_key: str = Field(..., min_length=1)
    title_caps: Optional[str] = None
    body_markdown: str = Field(..., min_length=1)
