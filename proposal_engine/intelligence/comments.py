"""Narrative generation for the comments section.

The comments block is the only AI-authored part of a proposal. The generator
asks the model for a strict JSON object, rejects anything that does not parse
or lacks paragraphs, and lints the result before handing it back. It never
retries and never substitutes placeholder text.
"""

import json
import logging
from typing import Optional, Sequence, Dict, Any

from proposal_engine.core.config import get_settings
from proposal_engine.core.exceptions import (
    InvalidGenerationOutputError,
    MalformedGenerationOutputError,
)
from proposal_engine.integrations.openai import OpenAIClient, openai_client
from proposal_engine.models import (
    ClientBrief,
    CommentsBlock,
    GeneratedComments,
    RefinedContent,
)
from proposal_engine.services.linter import clean_text, lint_comments

logger = logging.getLogger(__name__)


COMMENTS_SYSTEM_PROMPT = """You are writing the "Comments from {prepared_by}" section for a marketing proposal from {brand_name}.

Your task is to write a warm, professional introduction that:
1. Acknowledges the client and their situation
2. Briefly summarizes the recommended approach
3. Connects the strategy to their specific goals
4. Sets a collaborative, confident tone

OUTPUT FORMAT:
Return ONLY valid JSON with this exact structure:
{{
  "proposalTitle": "Optional custom title for the proposal or null to keep default",
  "comments": {{
    "heading": "Comments from {prepared_by}",
    "greetingLine": "Hi [ClientName],",
    "paragraphs": ["paragraph1", "paragraph2", "paragraph3"],
    "signoff": "{prepared_by}"
  }}
}}

RULES:
- Write 2-5 short paragraphs (2-4 sentences each)
- Use professional but warm, conversational tone
- NO em dashes or en dashes (use commas or regular hyphens instead)
- NO pricing information or specific numbers
- NO service descriptions or deliverables (just reference them by name)
- NO terms, conditions, or legal language
- NO signatures beyond the signoff name
- Focus on the "why": why this approach fits their needs
- Use "we" for the agency, "you" for the client
- Sign off with just the first name (e.g., "{prepared_by}")
- Make it personal and specific to this client's situation"""

REFINE_SYSTEM_PROMPT = """You are helping refine marketing proposal content. Your task is to modify the given content based on the user's instructions while maintaining professional quality and the existing structure/format.

Rules:
- Keep the same general format (markdown, bullet points, etc.) unless asked to change it
- Preserve any key information unless specifically asked to remove it
- Make targeted changes based on the instructions
- Output ONLY the refined content, no explanations or commentary"""

_COMMENTS_FIELD_MAP = {
    "heading": "heading",
    "greetingLine": "greeting_line",
    "greeting_line": "greeting_line",
    "paragraphs": "paragraphs",
    "signoff": "signoff",
}


def _bullets(title: str, items: Sequence[str]) -> str:
    if not items:
        return ""
    lines = "\n".join(f"- {item}" for item in items)
    return f"\n{title}:\n{lines}"


def build_comments_prompt(
    client_brief: ClientBrief,
    selected_service_names: Sequence[str],
    custom_instructions: Optional[str] = None
) -> str:
    """User prompt describing the client and the selected services."""
    client_name = client_brief.contact_name or client_brief.client_name or "the client"
    client_org = (
        client_brief.client_organization
        or client_brief.business_name
        or client_brief.client_name
        or ""
    )

    sections = [
        "Write the Comments section for this marketing proposal.",
        f"\nCLIENT: {client_name}\nORGANIZATION: {client_org}\n"
        f"INDUSTRY: {client_brief.industry or 'Not specified'}",
        _bullets("GOALS", client_brief.goals),
        _bullets("CHALLENGES", client_brief.pain_points),
        _bullets("OPPORTUNITIES", client_brief.opportunities),
        _bullets(
            "SELECTED SERVICES (for context only - do not describe in detail)",
            selected_service_names
        ),
    ]
    if client_brief.notes_for_copy:
        sections.append(f"\nNOTES FOR COPY:\n{client_brief.notes_for_copy}")
    if custom_instructions:
        sections.append(f"\nSPECIAL INSTRUCTIONS FROM USER:\n{custom_instructions}")
    sections.append("\nRemember: Return ONLY valid JSON. No markdown code fences, no backticks.")

    return "\n".join(s for s in sections if s)


def build_feedback_instructions(current_comments: CommentsBlock, feedback: str) -> str:
    """Embed the previous comments and reviewer feedback as revision instructions."""
    numbered = "\n".join(
        f"{i}. {paragraph}" for i, paragraph in enumerate(current_comments.paragraphs, start=1)
    )
    return (
        "PREVIOUS VERSION HAD ISSUES. Please improve based on this feedback:\n"
        f"{feedback}\n\n"
        "CURRENT VERSION FOR REFERENCE:\n"
        f"Greeting: {current_comments.greeting_line}\n"
        f"Paragraphs:\n{numbered}\n"
        f"Signoff: {current_comments.signoff}\n\n"
        "Please create an improved version addressing the feedback."
    )


def parse_comments_output(
    content: str,
    defaults: Optional[CommentsBlock] = None
) -> Dict[str, Any]:
    """
    Parse the model's JSON answer.

    Returns a dict with ``proposal_title`` and ``comments`` (a CommentsBlock
    whose missing fields come from ``defaults``).

    Raises:
        InvalidGenerationOutputError: content is not a JSON object
        MalformedGenerationOutputError: comments.paragraphs is missing or not a list
    """
    try:
        result = json.loads(content)
    except (ValueError, TypeError) as e:
        raise InvalidGenerationOutputError(f"AI returned invalid JSON: {e}") from e
    if not isinstance(result, dict):
        raise InvalidGenerationOutputError("AI returned JSON that is not an object")

    raw = result.get("comments")
    if not isinstance(raw, dict) or not isinstance(raw.get("paragraphs"), list):
        raise MalformedGenerationOutputError("AI response missing required comments structure")

    fields = {}
    for source_key, field_name in _COMMENTS_FIELD_MAP.items():
        value = raw.get(source_key)
        if value is None:
            continue
        if field_name == "paragraphs":
            fields[field_name] = [str(p) for p in value if p is not None]
        else:
            fields[field_name] = str(value)

    base = defaults or CommentsBlock()
    title = result.get("proposalTitle") or result.get("proposal_title")
    return {
        "proposal_title": str(title) if title else None,
        "comments": base.model_copy(update=fields),
    }


class CommentsGenerator:
    """
    Generates the comments block for a proposal.

    One completion per call. Output is linted before it is returned so
    callers always receive normalized text.
    """

    def __init__(
        self,
        client: Optional[OpenAIClient] = None,
        log: Optional[logging.Logger] = None
    ):
        self._settings = None
        self.client = client or openai_client
        self.log = log or logger

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    def system_prompt(self) -> str:
        return COMMENTS_SYSTEM_PROMPT.format(
            prepared_by=self.settings.PREPARED_BY_NAME,
            brand_name=self.settings.BRAND_NAME,
        )

    async def generate_comments(
        self,
        client_brief: ClientBrief,
        selected_service_names: Sequence[str],
        custom_instructions: Optional[str] = None,
        defaults: Optional[CommentsBlock] = None,
        api_key: Optional[str] = None
    ) -> GeneratedComments:
        """
        Generate a fresh comments block.

        Args:
            client_brief: Brief describing the client
            selected_service_names: Display names, for context only
            custom_instructions: Extra guidance appended to the prompt
            defaults: Skeleton comments whose fields fill anything the model omits
            api_key: Caller-supplied key, overrides settings

        Returns:
            GeneratedComments with the linted block and token usage

        Raises:
            GenerationTransportError: the completion call failed
            InvalidGenerationOutputError: the answer was not JSON
            MalformedGenerationOutputError: the answer had no paragraphs
        """
        self.log.info(
            f"Generating comments for {client_brief.client_name} "
            f"({len(selected_service_names)} service(s), "
            f"custom instructions: {bool(custom_instructions)})"
        )

        user_prompt = build_comments_prompt(
            client_brief, selected_service_names, custom_instructions
        )

        completion = await self.client.complete(
            self.system_prompt(),
            user_prompt,
            json_mode=True,
            model=self.settings.OPENAI_MODEL,
            max_tokens=self.settings.COMMENTS_MAX_TOKENS,
            temperature=self.settings.COMMENTS_TEMPERATURE,
            api_key=api_key,
        )

        try:
            parsed = parse_comments_output(completion.content, defaults)
        except MalformedGenerationOutputError:
            self.log.error(f"Failed to parse AI response: {completion.content[:500]}")
            raise

        comments = lint_comments(parsed["comments"], log=self.log)
        self.log.info(
            f"Comments generated: {len(comments.paragraphs)} paragraph(s), "
            f"{completion.usage.total_tokens} tokens"
        )

        return GeneratedComments(
            proposal_title=parsed["proposal_title"],
            comments=comments,
            total_tokens=completion.usage.total_tokens,
        )

    async def regenerate_comments(
        self,
        client_brief: ClientBrief,
        selected_service_names: Sequence[str],
        current_comments: CommentsBlock,
        feedback: str,
        api_key: Optional[str] = None
    ) -> GeneratedComments:
        """Revise an existing block. The whole block is replaced, not patched."""
        self.log.info(f"Regenerating comments with feedback ({len(feedback)} chars)")
        return await self.generate_comments(
            client_brief,
            selected_service_names,
            custom_instructions=build_feedback_instructions(current_comments, feedback),
            defaults=current_comments,
            api_key=api_key,
        )


class ContentRefiner:
    """Free-text refinement of a single block of proposal content."""

    def __init__(
        self,
        client: Optional[OpenAIClient] = None,
        log: Optional[logging.Logger] = None
    ):
        self._settings = None
        self.client = client or openai_client
        self.log = log or logger

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    async def refine(
        self,
        current_content: str,
        instructions: str,
        context: Optional[str] = None,
        api_key: Optional[str] = None
    ) -> RefinedContent:
        """
        Rewrite content following the user's instructions.

        Raises:
            GenerationTransportError: the completion call failed
            MalformedGenerationOutputError: the model returned nothing
        """
        self.log.info(
            f"Refining content ({len(current_content)} chars, "
            f"{len(instructions)} chars of instructions)"
        )

        system_prompt = REFINE_SYSTEM_PROMPT
        if context:
            system_prompt = f"{system_prompt}\n\nContext: {context}"

        user_prompt = (
            f"CURRENT CONTENT:\n{current_content}\n\n"
            f"INSTRUCTIONS FOR REFINEMENT:\n{instructions}\n\n"
            "Please provide the refined content:"
        )

        completion = await self.client.complete(
            system_prompt,
            user_prompt,
            model=self.settings.REFINE_MODEL,
            max_tokens=self.settings.REFINE_MAX_TOKENS,
            temperature=self.settings.REFINE_TEMPERATURE,
            api_key=api_key,
        )

        refined = clean_text(completion.content.strip())
        if not refined:
            raise MalformedGenerationOutputError("No content returned from AI")

        return RefinedContent(refined_content=refined, tokens=completion.usage.total_tokens)


# Singleton instances
comments_generator = CommentsGenerator()
content_refiner = ContentRefiner()
