"""Proposal API Routes - create, edit, render and validate proposals."""

import logging
from typing import Optional, Dict, List, Any
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, ConfigDict, Field

from proposal_engine.core.exceptions import (
    GenerationTransportError,
    InvariantViolationError,
    MalformedGenerationOutputError,
    NotFoundError,
    ProposalEngineError,
    StorageError,
)
from proposal_engine.library import get_library_info, list_templates
from proposal_engine.models import (
    CommentsPatch,
    CoverPatch,
    InvestmentOverride,
    ModuleInput,
    Proposal,
    ProposalResult,
    ProposalStatus,
    RefinedContent,
    RenderFormat,
    ServiceTemplate,
    ValidationResult,
)
from proposal_engine.services.proposal_service import ProposalService, proposal_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proposals", tags=["proposals"])
services_router = APIRouter(prefix="/api/services", tags=["services"])

_MEDIA_TYPES = {
    RenderFormat.HTML: "text/html",
    RenderFormat.BODY: "text/html",
    RenderFormat.PLAIN: "text/plain",
}


def get_proposal_service() -> ProposalService:
    """Dependency returning the shared proposal service."""
    return proposal_service


# ===========================================
# Request / Response Models
# ===========================================

class CreateProposalRequest(BaseModel):
    """Body for POST /api/proposals."""
    model_config = ConfigDict(extra="forbid")

    opportunity_id: str = Field(..., min_length=1)
    client_brief_id: str = Field(..., min_length=1)
    selected_service_ids: List[str] = Field(..., min_length=1)
    proposal_title: Optional[str] = None
    custom_instructions: Optional[str] = None
    api_key: Optional[str] = Field(None, description="Overrides the configured OpenAI key")


class CommentsUpdateRequest(BaseModel):
    """Manual replacement, or AI revision when regenerate is set."""
    model_config = ConfigDict(extra="forbid")

    comments: Optional[CommentsPatch] = None
    regenerate: bool = False
    feedback: Optional[str] = None
    api_key: Optional[str] = None


class CoverUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cover: CoverPatch


class ServiceUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    overrides: Optional[Dict[str, str]] = None
    investment_override: Optional[InvestmentOverride] = None
    enabled: Optional[bool] = None


class StatusUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: ProposalStatus


class RefineContentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    current_content: str = Field(..., min_length=1)
    instructions: str = Field(..., min_length=1)
    context: Optional[str] = None
    api_key: Optional[str] = None


class ProposalResponse(BaseModel):
    """Response for GET /api/proposals/{id}."""
    proposal: Proposal


class ServiceCatalogResponse(BaseModel):
    versions: Dict[str, str]
    services: List[ServiceTemplate]


# ===========================================
# Error Mapping
# ===========================================

def to_http_error(error: ProposalEngineError) -> HTTPException:
    """Translate a typed engine error into an HTTP response."""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, InvariantViolationError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, GenerationTransportError):
        if error.is_rate_limit:
            return HTTPException(status_code=429, detail=f"Rate limited: {error}")
        if error.is_auth_error:
            return HTTPException(status_code=401, detail=f"Invalid API key: {error}")
        return HTTPException(status_code=502, detail=f"Text generation failed: {error}")
    if isinstance(error, MalformedGenerationOutputError):
        return HTTPException(status_code=502, detail=str(error))
    if isinstance(error, StorageError):
        return HTTPException(status_code=503, detail=f"Storage unavailable: {error}")
    return HTTPException(status_code=500, detail=str(error))


# ===========================================
# Proposal Lifecycle
# ===========================================

@router.post(
    "",
    response_model=ProposalResult,
    summary="Create Proposal"
)
async def create_proposal(
    body: CreateProposalRequest,
    service: ProposalService = Depends(get_proposal_service)
) -> ProposalResult:
    """
    Assemble a proposal, generate its comments, lint, validate and save.

    Validation problems are returned as warnings; they do not block saving.
    """
    logger.info(f"Create proposal request: {body.opportunity_id}")
    try:
        return await service.create(
            opportunity_id=body.opportunity_id,
            client_brief_id=body.client_brief_id,
            selected_service_ids=body.selected_service_ids,
            proposal_title=body.proposal_title,
            custom_instructions=body.custom_instructions,
            api_key=body.api_key,
        )
    except ProposalEngineError as e:
        logger.error(f"Failed to create proposal {body.opportunity_id}: {e}")
        raise to_http_error(e)


@router.post(
    "/refine-content",
    response_model=RefinedContent,
    summary="Refine Content With AI"
)
async def refine_content(
    body: RefineContentRequest,
    service: ProposalService = Depends(get_proposal_service)
) -> RefinedContent:
    try:
        return await service.refine_content(
            body.current_content,
            body.instructions,
            context=body.context,
            api_key=body.api_key,
        )
    except ProposalEngineError as e:
        logger.error(f"Failed to refine content: {e}")
        raise to_http_error(e)


@router.get("/{proposal_id}", response_model=ProposalResponse)
async def get_proposal(
    proposal_id: str,
    service: ProposalService = Depends(get_proposal_service)
) -> ProposalResponse:
    try:
        return ProposalResponse(proposal=await service.get(proposal_id))
    except ProposalEngineError as e:
        raise to_http_error(e)


@router.delete("/{proposal_id}", status_code=204)
async def delete_proposal(
    proposal_id: str,
    service: ProposalService = Depends(get_proposal_service)
) -> Response:
    try:
        await service.delete(proposal_id)
    except ProposalEngineError as e:
        raise to_http_error(e)
    return Response(status_code=204)


# ===========================================
# Block Edits
# ===========================================

@router.patch("/{proposal_id}/comments", response_model=ProposalResult)
async def update_comments(
    proposal_id: str,
    body: CommentsUpdateRequest,
    service: ProposalService = Depends(get_proposal_service)
) -> ProposalResult:
    """Replace the comments block, or regenerate it from feedback."""
    try:
        return await service.update_comments(
            proposal_id,
            comments=body.comments,
            regenerate=body.regenerate,
            feedback=body.feedback,
            api_key=body.api_key,
        )
    except ProposalEngineError as e:
        logger.error(f"Failed to update comments for {proposal_id}: {e}")
        raise to_http_error(e)


@router.patch("/{proposal_id}/cover", response_model=ProposalResult)
async def update_cover(
    proposal_id: str,
    body: CoverUpdateRequest,
    service: ProposalService = Depends(get_proposal_service)
) -> ProposalResult:
    try:
        return await service.update_cover(proposal_id, body.cover)
    except ProposalEngineError as e:
        raise to_http_error(e)


@router.patch("/{proposal_id}/services/{service_key}", response_model=ProposalResult)
async def update_service(
    proposal_id: str,
    service_key: str,
    body: ServiceUpdateRequest,
    service: ProposalService = Depends(get_proposal_service)
) -> ProposalResult:
    """Apply subsection overrides, an investment override, and/or toggle the service."""
    try:
        return await service.update_service(
            proposal_id,
            service_key,
            overrides=body.overrides,
            investment_override=body.investment_override,
            enabled=body.enabled,
        )
    except ProposalEngineError as e:
        raise to_http_error(e)


@router.post("/{proposal_id}/modules", response_model=ProposalResult)
async def add_module(
    proposal_id: str,
    body: ModuleInput,
    service: ProposalService = Depends(get_proposal_service)
) -> ProposalResult:
    try:
        return await service.add_module(proposal_id, body)
    except ProposalEngineError as e:
        raise to_http_error(e)


@router.delete("/{proposal_id}/modules/{module_key}", response_model=ProposalResult)
async def remove_module(
    proposal_id: str,
    module_key: str,
    service: ProposalService = Depends(get_proposal_service)
) -> ProposalResult:
    try:
        return await service.remove_module(proposal_id, module_key)
    except ProposalEngineError as e:
        raise to_http_error(e)


@router.patch("/{proposal_id}/status", response_model=ProposalResult)
async def update_status(
    proposal_id: str,
    body: StatusUpdateRequest,
    service: ProposalService = Depends(get_proposal_service)
) -> ProposalResult:
    """Move the proposal forward: draft, complete, sent."""
    try:
        return await service.update_status(proposal_id, body.status)
    except ProposalEngineError as e:
        raise to_http_error(e)


# ===========================================
# Output
# ===========================================

@router.get("/{proposal_id}/render")
async def render_proposal(
    proposal_id: str,
    format: RenderFormat = Query(RenderFormat.HTML),
    service: ProposalService = Depends(get_proposal_service)
) -> Response:
    try:
        content = await service.render(proposal_id, format)
    except ProposalEngineError as e:
        raise to_http_error(e)
    return Response(content=content, media_type=_MEDIA_TYPES[format])


@router.get("/{proposal_id}/validate", response_model=ValidationResult)
async def validate_proposal(
    proposal_id: str,
    service: ProposalService = Depends(get_proposal_service)
) -> ValidationResult:
    try:
        return await service.validate(proposal_id)
    except ProposalEngineError as e:
        raise to_http_error(e)


# ===========================================
# Service Catalog
# ===========================================

@services_router.get("", response_model=ServiceCatalogResponse)
async def get_service_catalog() -> Dict[str, Any]:
    """Services available for selection, with the active library versions."""
    return {"versions": get_library_info(), "services": list_templates()}
