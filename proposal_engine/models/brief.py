"""Client brief models - input from the brief extraction collaborator."""

from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Stakeholder(BaseModel):
    """A person on the client side mentioned in the brief."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., description="Stakeholder name")
    role: Optional[str] = Field(None, description="Role or title")
    primary_concerns: List[str] = Field(default_factory=list, description="What they care about")


class ClientBrief(BaseModel):
    """
    Structured client brief. Read-only to the proposal core.

    Accepts both snake_case and the camelCase keys written by the brief
    extraction tooling.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Brief identifier")
    client_name: str = Field(..., description="Client identity (usually the business)")
    contact_name: Optional[str] = Field(None, description="Primary contact person")
    contact_email: Optional[str] = Field(None, description="Primary contact email")
    client_organization: Optional[str] = Field(None, description="Legal or trading organization name")
    business_name: Optional[str] = Field(None, description="Alternate business name")
    industry: Optional[str] = Field(None, description="Industry")
    size: Optional[str] = Field(None, description="Company size")
    location: Optional[str] = Field(None, description="Location")
    stakeholders: List[Stakeholder] = Field(default_factory=list)
    goals: List[str] = Field(default_factory=list, description="Stated goals")
    pain_points: List[str] = Field(default_factory=list, description="Pain points")
    constraints: List[str] = Field(default_factory=list, description="Known constraints")
    opportunities: List[str] = Field(default_factory=list, description="Opportunities spotted")
    services_needed: List[str] = Field(default_factory=list, description="Services discussed")
    tone_preferences: List[str] = Field(default_factory=list)
    notes_for_copy: Optional[str] = Field(None, description="Notes for the copywriter")
    raw_transcript_ref: Optional[str] = Field(None, description="Reference to the raw transcript")
