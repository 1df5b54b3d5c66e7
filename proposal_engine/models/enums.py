"""Enumeration types for the proposal engine."""

from enum import Enum


class ProposalStatus(str, Enum):
    """Forward-only lifecycle of a proposal document."""
    DRAFT = "draft"
    COMPLETE = "complete"
    SENT = "sent"


class InvestmentModel(str, Enum):
    """Billing model of a service investment."""
    ONE_TIME = "one_time"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    CUSTOM = "custom"


class BlockSource(str, Enum):
    """Where itemized and signature content lives."""
    PLACEHOLDER = "placeholder"
    HIGHLEVEL = "highlevel"


class RenderFormat(str, Enum):
    """Output formats supported by the renderer."""
    HTML = "html"
    PLAIN = "plain"
    BODY = "body"
