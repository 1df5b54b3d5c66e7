"""Configuration management for the Good Circle Proposal Engine."""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ===========================================
    # Supabase Configuration
    # ===========================================
    SUPABASE_URL: str = Field(default="", description="Supabase project URL")
    SUPABASE_KEY: str = Field(default="", description="Supabase service key")
    PROPOSALS_TABLE: str = Field(
        default="proposal_documents",
        description="Table holding proposal JSON documents"
    )
    CLIENT_BRIEFS_TABLE: str = Field(
        default="client_briefs",
        description="Table holding extracted client briefs"
    )

    # ===========================================
    # OpenAI Configuration
    # ===========================================
    OPENAI_API_KEY: str = Field(default="", description="OpenAI API key")
    OPENAI_API_URL: str = Field(
        default="https://api.openai.com/v1/chat/completions",
        description="Chat completions endpoint"
    )
    OPENAI_MODEL: str = Field(
        default="gpt-4-turbo-preview",
        description="Model used for the comments section"
    )
    OPENAI_TIMEOUT_SECONDS: float = Field(default=60.0, description="HTTP timeout for completions")
    COMMENTS_MAX_TOKENS: int = Field(default=1000, description="Token cap for comments generation")
    COMMENTS_TEMPERATURE: float = Field(default=0.4, description="Sampling temperature for comments")

    REFINE_MODEL: str = Field(default="gpt-4o-mini", description="Model for content refinement")
    REFINE_MAX_TOKENS: int = Field(default=2000, description="Token cap for content refinement")
    REFINE_TEMPERATURE: float = Field(default=0.7, description="Sampling temperature for refinement")

    # ===========================================
    # Branding
    # ===========================================
    BRAND_NAME: str = Field(default="Good Circle Marketing", description="Agency brand on the cover")
    PREPARED_BY_NAME: str = Field(default="Kathryn", description="Preparer first name")
    PREPARED_BY_TITLE: str = Field(default="Marketing Lead", description="Preparer title")

    # ===========================================
    # Server Configuration
    # ===========================================
    DEBUG: bool = Field(default=True, description="Debug mode")


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
