"""Infographic endpoints under ``/api/infographics``.  All are owner only."""

from __future__ import annotations

from fastapi import APIRouter, Query, Response, status

from src.api.dependencies import CurrentUserDep, InfographicServiceDep
from src.api.schemas import (
    AddSelectionRequest,
    CreateInfographicRequest,
    GenerateInfographicRequest,
    InfographicDetailResponse,
    InfographicListResponse,
    JobStartedResponse,
    ReorderSelectionsRequest,
    SelectionResponse,
    UpdateInfographicRequest,
    UpdateSelectionRequest,
)
from src.models.infographic import (
    ExtractedContent,
    Infographic,
    InfographicSelection,
    InfographicVersion,
)
from src.models.job import Job

router = APIRouter(prefix="/api/infographics", tags=["infographics"])


@router.get("", response_model=InfographicListResponse)
async def list_infographics(
    user: CurrentUserDep,
    infographics: InfographicServiceDep,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> InfographicListResponse:
    items, total = await infographics.list_infographics(user, limit=limit, offset=offset)
    return InfographicListResponse(items=items, total=total, has_more=offset + len(items) < total)


@router.post("", response_model=Infographic, status_code=status.HTTP_201_CREATED)
async def create_infographic(
    body: CreateInfographicRequest, user: CurrentUserDep, infographics: InfographicServiceDep
) -> Infographic:
    return await infographics.create_infographic(user, **body.model_dump())


@router.get("/jobs/{job_id}", response_model=Job)
async def get_job(job_id: str, user: CurrentUserDep, infographics: InfographicServiceDep) -> Job:
    return await infographics.get_job(job_id, user)


@router.get("/{infographic_id}", response_model=InfographicDetailResponse)
async def get_infographic(
    infographic_id: str, user: CurrentUserDep, infographics: InfographicServiceDep
) -> InfographicDetailResponse:
    infographic, selections = await infographics.get_infographic(infographic_id, user)
    return InfographicDetailResponse(infographic=infographic, selections=selections)


@router.patch("/{infographic_id}", response_model=Infographic)
async def update_infographic(
    infographic_id: str, body: UpdateInfographicRequest, user: CurrentUserDep, infographics: InfographicServiceDep
) -> Infographic:
    return await infographics.update_infographic(infographic_id, user, body.model_dump(exclude_unset=True))


@router.delete("/{infographic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_infographic(
    infographic_id: str, user: CurrentUserDep, infographics: InfographicServiceDep
) -> Response:
    await infographics.delete_infographic(infographic_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{infographic_id}/versions", response_model=list[InfographicVersion])
async def list_versions(
    infographic_id: str, user: CurrentUserDep, infographics: InfographicServiceDep
) -> list[InfographicVersion]:
    return await infographics.list_versions(infographic_id, user)


# ── Selections ───────────────────────────────────────────────────────


@router.post(
    "/{infographic_id}/selections",
    response_model=SelectionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_selection(
    infographic_id: str, body: AddSelectionRequest, user: CurrentUserDep, infographics: InfographicServiceDep
) -> SelectionResponse:
    selection, warning = await infographics.add_selection(
        infographic_id,
        user,
        body.document_id,
        body.selected_text,
        start_offset=body.start_offset,
        end_offset=body.end_offset,
    )
    return SelectionResponse(selection=selection, warning=warning)


@router.post("/{infographic_id}/selections/reorder", response_model=list[InfographicSelection])
async def reorder_selections(
    infographic_id: str, body: ReorderSelectionsRequest, user: CurrentUserDep, infographics: InfographicServiceDep
) -> list[InfographicSelection]:
    return await infographics.reorder_selections(infographic_id, user, body.ordered_ids)


@router.patch("/{infographic_id}/selections/{selection_id}", response_model=InfographicSelection)
async def update_selection(
    infographic_id: str,
    selection_id: str,
    body: UpdateSelectionRequest,
    user: CurrentUserDep,
    infographics: InfographicServiceDep,
) -> InfographicSelection:
    return await infographics.update_selection(
        infographic_id,
        user,
        selection_id,
        selected_text=body.selected_text,
        start_offset=body.start_offset,
        end_offset=body.end_offset,
    )


@router.delete("/{infographic_id}/selections/{selection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_selection(
    infographic_id: str, selection_id: str, user: CurrentUserDep, infographics: InfographicServiceDep
) -> Response:
    await infographics.remove_selection(infographic_id, user, selection_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Extraction & generation ──────────────────────────────────────────


@router.post("/{infographic_id}/extract-key-points", response_model=ExtractedContent)
async def extract_key_points(
    infographic_id: str, user: CurrentUserDep, infographics: InfographicServiceDep
) -> ExtractedContent:
    return await infographics.extract_key_points(infographic_id, user)


@router.post(
    "/{infographic_id}/generate",
    response_model=JobStartedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def generate(
    infographic_id: str,
    user: CurrentUserDep,
    infographics: InfographicServiceDep,
    body: GenerateInfographicRequest | None = None,
) -> JobStartedResponse:
    started = await infographics.start_generation(
        infographic_id, user, feedback=body.feedback if body else None
    )
    return JobStartedResponse(**started)


# ── Admin approval ───────────────────────────────────────────────────


@router.post("/{infographic_id}/approve", response_model=Infographic)
async def approve(
    infographic_id: str, user: CurrentUserDep, infographics: InfographicServiceDep
) -> Infographic:
    return await infographics.approve(infographic_id, user)


@router.delete("/{infographic_id}/approve", response_model=Infographic)
async def revoke_approval(
    infographic_id: str, user: CurrentUserDep, infographics: InfographicServiceDep
) -> Infographic:
    return await infographics.revoke_approval(infographic_id, user)
