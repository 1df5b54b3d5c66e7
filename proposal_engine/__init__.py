"""Good Circle Proposal Engine - deterministic proposal assembly with AI-written comments."""

__version__ = "2.0.0"
