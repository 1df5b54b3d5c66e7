"""External service integrations."""

from proposal_engine.integrations.openai import OpenAIClient, openai_client

__all__ = ["OpenAIClient", "openai_client"]
