"""Proposal Service - orchestration of every proposal operation.

Each mutation follows the same cycle: fetch the stored document, apply one
assembler operation, lint, save the whole document back. Validation is
reported alongside but never blocks saving a draft.
"""

import logging
from typing import Optional, Dict, Sequence

from proposal_engine.core.config import get_settings
from proposal_engine.core.database import (
    ClientBriefRepository,
    DocumentStore,
    client_brief_repository,
    proposal_store,
)
from proposal_engine.core.exceptions import (
    ClientBriefNotFoundError,
    InvalidStatusTransitionError,
    ProposalNotFoundError,
    ServiceNotFoundError,
    StorageError,
)
from proposal_engine.intelligence.comments import (
    CommentsGenerator,
    ContentRefiner,
    comments_generator,
    content_refiner,
)
from proposal_engine.models import (
    Branding,
    ClientBrief,
    CommentsPatch,
    CoverPatch,
    InvestmentOverride,
    ModuleInput,
    Proposal,
    ProposalResult,
    ProposalStatus,
    RefinedContent,
    RenderFormat,
    ValidationResult,
)
from proposal_engine.services import assembler, renderer
from proposal_engine.services.linter import lint_proposal, validate_proposal

logger = logging.getLogger(__name__)

DEFAULT_REGENERATE_FEEDBACK = "Please improve the comments section."


class ProposalService:
    """
    Main orchestration service for proposals.

    Collaborators are injected so the service can run against in-memory
    fakes; by default it uses the Supabase store and the OpenAI-backed
    generator.
    """

    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        briefs: Optional[ClientBriefRepository] = None,
        generator: Optional[CommentsGenerator] = None,
        refiner: Optional[ContentRefiner] = None,
        branding: Optional[Branding] = None,
        log: Optional[logging.Logger] = None
    ):
        self._settings = None
        self.store = store or proposal_store
        self.briefs = briefs or client_brief_repository
        self.generator = generator or comments_generator
        self.refiner = refiner or content_refiner
        self._branding = branding
        self.log = log or logger

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def branding(self) -> Branding:
        if self._branding is None:
            self._branding = Branding(
                brand_name=self.settings.BRAND_NAME,
                prepared_by_name=self.settings.PREPARED_BY_NAME,
                prepared_by_title=self.settings.PREPARED_BY_TITLE,
            )
        return self._branding

    # ===========================================
    # Persistence Helpers
    # ===========================================

    async def _load_brief(self, brief_id: str) -> ClientBrief:
        brief = await self.briefs.get(brief_id)
        if brief is None:
            raise ClientBriefNotFoundError(brief_id)
        return brief

    async def _save(self, proposal: Proposal) -> Proposal:
        """Lint, then replace the stored document."""
        linted = lint_proposal(proposal, log=self.log)
        await self.store.set(linted.id, linted.model_dump(mode="json"))
        return linted

    async def get(self, proposal_id: str) -> Proposal:
        """
        Fetch a proposal.

        Raises:
            ProposalNotFoundError: no document stored under this ID
        """
        document = await self.store.get(proposal_id)
        if document is None:
            raise ProposalNotFoundError(proposal_id)
        return Proposal.model_validate(document)

    # ===========================================
    # Create
    # ===========================================

    async def create(
        self,
        opportunity_id: str,
        client_brief_id: str,
        selected_service_ids: Sequence[str],
        proposal_title: Optional[str] = None,
        custom_instructions: Optional[str] = None,
        api_key: Optional[str] = None
    ) -> ProposalResult:
        """
        Create a proposal end to end.

        Steps:
        1. Load the client brief
        2. Assemble the deterministic skeleton
        3. Generate the comments block
        4. Lint, validate (warnings only) and save

        A generation failure propagates before anything is saved.

        Returns:
            ProposalResult with the saved proposal, validation and token usage
        """
        self.log.info(
            f"Creating proposal {opportunity_id} from brief {client_brief_id} "
            f"({len(selected_service_ids)} service(s))"
        )

        brief = await self._load_brief(client_brief_id)

        proposal = assembler.assemble_skeleton(
            opportunity_id=opportunity_id,
            client_brief=brief,
            selected_service_keys=selected_service_ids,
            proposal_title=proposal_title,
            branding=self.branding,
            log=self.log,
        )

        generated = await self.generator.generate_comments(
            brief,
            [s.display_name for s in proposal.services],
            custom_instructions=custom_instructions,
            defaults=proposal.comments,
            api_key=api_key,
        )

        proposal = assembler.update_comments_block(
            proposal, CommentsPatch(**generated.comments.model_dump())
        )
        # A title given by the caller wins over the suggested one
        if generated.proposal_title and not proposal_title:
            proposal = assembler.update_cover_block(
                proposal, CoverPatch(proposal_title=generated.proposal_title)
            )

        linted = lint_proposal(proposal, log=self.log)
        validation = validate_proposal(linted)
        if not validation.valid:
            self.log.warning(f"Proposal {opportunity_id} validation warnings: {validation.errors}")

        await self.store.set(linted.id, linted.model_dump(mode="json"))

        self.log.info(
            f"Proposal {opportunity_id} created ({generated.total_tokens} tokens)"
        )
        return ProposalResult(
            proposal=linted,
            validation=validation,
            tokens=generated.total_tokens,
        )

    # ===========================================
    # Mutations
    # ===========================================

    async def update_comments(
        self,
        proposal_id: str,
        comments: Optional[CommentsPatch] = None,
        regenerate: bool = False,
        feedback: Optional[str] = None,
        api_key: Optional[str] = None
    ) -> ProposalResult:
        """Replace comments manually, or regenerate them from feedback."""
        proposal = await self.get(proposal_id)
        tokens = 0

        if regenerate:
            brief = await self._load_brief(proposal.client_brief_id)
            generated = await self.generator.regenerate_comments(
                brief,
                [s.display_name for s in proposal.enabled_services],
                current_comments=proposal.comments,
                feedback=feedback or DEFAULT_REGENERATE_FEEDBACK,
                api_key=api_key,
            )
            proposal = assembler.update_comments_block(
                proposal, CommentsPatch(**generated.comments.model_dump())
            )
            tokens = generated.total_tokens
            self.log.info(f"Comments regenerated for {proposal_id} ({tokens} tokens)")
        elif comments is not None:
            proposal = assembler.update_comments_block(proposal, comments)
            self.log.info(f"Comments manually updated for {proposal_id}")

        saved = await self._save(proposal)
        return ProposalResult(proposal=saved, validation=validate_proposal(saved), tokens=tokens)

    async def update_cover(self, proposal_id: str, cover: CoverPatch) -> ProposalResult:
        proposal = await self.get(proposal_id)
        saved = await self._save(assembler.update_cover_block(proposal, cover))
        self.log.info(f"Cover updated for {proposal_id}")
        return ProposalResult(proposal=saved, validation=validate_proposal(saved))

    async def update_service(
        self,
        proposal_id: str,
        service_key: str,
        overrides: Optional[Dict[str, str]] = None,
        investment_override: Optional[InvestmentOverride] = None,
        enabled: Optional[bool] = None
    ) -> ProposalResult:
        """
        Apply overrides and/or toggle one service.

        Raises:
            ServiceNotFoundError: service_key is not part of the proposal
            InvalidOverrideKeyError: an override key is not subsection_<N>
        """
        proposal = await self.get(proposal_id)
        if proposal.find_service(service_key) is None:
            raise ServiceNotFoundError(service_key)

        if overrides is not None or investment_override is not None:
            proposal = assembler.update_service_overrides(
                proposal, service_key, overrides, investment_override
            )
        if enabled is not None:
            proposal = assembler.toggle_service_enabled(proposal, service_key, enabled)

        saved = await self._save(proposal)
        self.log.info(f"Service {service_key} updated for {proposal_id}")
        return ProposalResult(proposal=saved, validation=validate_proposal(saved))

    async def add_module(self, proposal_id: str, module: ModuleInput) -> ProposalResult:
        proposal = await self.get(proposal_id)
        saved = await self._save(assembler.add_module(proposal, module))
        self.log.info(f"Module {module.module_key} added to {proposal_id}")
        return ProposalResult(proposal=saved, validation=validate_proposal(saved))

    async def remove_module(self, proposal_id: str, module_key: str) -> ProposalResult:
        proposal = await self.get(proposal_id)
        saved = await self._save(assembler.remove_module(proposal, module_key))
        self.log.info(f"Module {module_key} removed from {proposal_id}")
        return ProposalResult(proposal=saved, validation=validate_proposal(saved))

    async def update_status(self, proposal_id: str, status: ProposalStatus) -> ProposalResult:
        """
        Move a proposal one step forward: draft, complete, sent.

        Raises:
            InvalidStatusTransitionError: not the next status, or moving to
                complete or sent while validation still reports errors
        """
        proposal = await self.get(proposal_id)

        if status in (ProposalStatus.COMPLETE, ProposalStatus.SENT):
            validation = validate_proposal(proposal)
            if not validation.valid:
                raise InvalidStatusTransitionError(
                    proposal.status.value,
                    status.value,
                    reason="; ".join(validation.errors),
                )

        saved = await self._save(assembler.set_status(proposal, status))
        self.log.info(f"Proposal {proposal_id} moved to {status.value}")
        return ProposalResult(proposal=saved, validation=validate_proposal(saved))

    async def delete(self, proposal_id: str) -> None:
        """
        Raises:
            ProposalNotFoundError: nothing stored under this ID
        """
        if await self.store.get(proposal_id) is None:
            raise ProposalNotFoundError(proposal_id)
        if not await self.store.delete(proposal_id):
            raise StorageError(f"Failed to delete proposal {proposal_id}")
        self.log.info(f"Proposal {proposal_id} deleted")

    # ===========================================
    # Read-only Operations
    # ===========================================

    async def render(self, proposal_id: str, fmt: RenderFormat = RenderFormat.HTML) -> str:
        proposal = await self.get(proposal_id)
        return renderer.render(proposal, fmt, log=self.log)

    async def validate(self, proposal_id: str) -> ValidationResult:
        return validate_proposal(await self.get(proposal_id))

    async def refine_content(
        self,
        current_content: str,
        instructions: str,
        context: Optional[str] = None,
        api_key: Optional[str] = None
    ) -> RefinedContent:
        return await self.refiner.refine(
            current_content, instructions, context=context, api_key=api_key
        )


# Singleton instance
proposal_service = ProposalService()
