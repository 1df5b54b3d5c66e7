"""Models package - All Pydantic models organized by domain."""

from proposal_engine.models.enums import (
    ProposalStatus,
    InvestmentModel,
    BlockSource,
    RenderFormat,
)
from proposal_engine.models.brief import ClientBrief, Stakeholder
from proposal_engine.models.proposal import (
    Investment,
    InvestmentOverride,
    ServiceSubsection,
    ServiceTemplate,
    Clause,
    TermsBlock,
    ProposalVersion,
    Branding,
    CoverBlock,
    CommentsBlock,
    ServiceBlock,
    ModuleBlock,
    HighLevelReference,
    ItemizedBlock,
    HighLevelEmbed,
    SignatureBlock,
    StyleRules,
    Proposal,
    CoverPatch,
    CommentsPatch,
    ModuleInput,
    override_key,
    utc_now,
)
from proposal_engine.models.results import (
    ValidationResult,
    Usage,
    Completion,
    GeneratedComments,
    ProposalResult,
    RefinedContent,
)

__all__ = [
    # Enums
    "ProposalStatus",
    "InvestmentModel",
    "BlockSource",
    "RenderFormat",
    # Brief models
    "ClientBrief",
    "Stakeholder",
    # Library models
    "Investment",
    "InvestmentOverride",
    "ServiceSubsection",
    "ServiceTemplate",
    "Clause",
    "TermsBlock",
    # Proposal models
    "ProposalVersion",
    "Branding",
    "CoverBlock",
    "CommentsBlock",
    "ServiceBlock",
    "ModuleBlock",
    "HighLevelReference",
    "ItemizedBlock",
    "HighLevelEmbed",
    "SignatureBlock",
    "StyleRules",
    "Proposal",
    # Patch models
    "CoverPatch",
    "CommentsPatch",
    "ModuleInput",
    # Helpers
    "override_key",
    "utc_now",
    # Result models
    "ValidationResult",
    "Usage",
    "Completion",
    "GeneratedComments",
    "ProposalResult",
    "RefinedContent",
]
