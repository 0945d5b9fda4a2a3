"""Voiceover endpoints under ``/api/voiceovers``."""

from __future__ import annotations

from fastapi import APIRouter, Query, Response, status

from src.api.dependencies import CurrentUserDep, VoiceoverServiceDep
from src.api.schemas import (
    AddCollaboratorRequest,
    CreateVoiceoverRequest,
    JobStartedResponse,
    UpdateVoiceoverRequest,
    VoiceoverListResponse,
)
from src.models.collaborator import Collaborator
from src.models.job import Job
from src.models.voiceover import Voiceover

router = APIRouter(prefix="/api/voiceovers", tags=["voiceovers"])


@router.get("", response_model=VoiceoverListResponse)
async def list_voiceovers(
    user: CurrentUserDep,
    voiceovers: VoiceoverServiceDep,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> VoiceoverListResponse:
    items, total = await voiceovers.list_voiceovers(user, limit=limit, offset=offset)
    return VoiceoverListResponse(items=items, total=total, has_more=offset + len(items) < total)


@router.post("", response_model=Voiceover, status_code=status.HTTP_201_CREATED)
async def create_voiceover(
    body: CreateVoiceoverRequest, user: CurrentUserDep, voiceovers: VoiceoverServiceDep
) -> Voiceover:
    return await voiceovers.create_voiceover(user, title=body.title, text=body.text, voice=body.voice)


@router.get("/jobs/{job_id}", response_model=Job)
async def get_job(job_id: str, user: CurrentUserDep, voiceovers: VoiceoverServiceDep) -> Job:
    return await voiceovers.get_job(job_id, user)


@router.get("/{voiceover_id}", response_model=Voiceover)
async def get_voiceover(voiceover_id: str, user: CurrentUserDep, voiceovers: VoiceoverServiceDep) -> Voiceover:
    return await voiceovers.get_voiceover(voiceover_id, user)


@router.patch("/{voiceover_id}", response_model=Voiceover)
async def update_voiceover(
    voiceover_id: str, body: UpdateVoiceoverRequest, user: CurrentUserDep, voiceovers: VoiceoverServiceDep
) -> Voiceover:
    return await voiceovers.update_voiceover(
        voiceover_id, user, title=body.title, text=body.text, voice=body.voice
    )


@router.delete("/{voiceover_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_voiceover(voiceover_id: str, user: CurrentUserDep, voiceovers: VoiceoverServiceDep) -> Response:
    await voiceovers.delete_voiceover(voiceover_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{voiceover_id}/generate", response_model=JobStartedResponse, status_code=status.HTTP_202_ACCEPTED)
async def generate(voiceover_id: str, user: CurrentUserDep, voiceovers: VoiceoverServiceDep) -> JobStartedResponse:
    return JobStartedResponse(**await voiceovers.start_generation(voiceover_id, user))


@router.post("/{voiceover_id}/approve", response_model=Voiceover)
async def approve(voiceover_id: str, user: CurrentUserDep, voiceovers: VoiceoverServiceDep) -> Voiceover:
    return await voiceovers.approve(voiceover_id, user)


@router.delete("/{voiceover_id}/approve", response_model=Voiceover)
async def revoke_approval(voiceover_id: str, user: CurrentUserDep, voiceovers: VoiceoverServiceDep) -> Voiceover:
    return await voiceovers.revoke_approval(voiceover_id, user)


@router.get("/{voiceover_id}/collaborators", response_model=list[Collaborator])
async def list_collaborators(
    voiceover_id: str, user: CurrentUserDep, voiceovers: VoiceoverServiceDep
) -> list[Collaborator]:
    return await voiceovers.list_collaborators(voiceover_id, user)


@router.post(
    "/{voiceover_id}/collaborators",
    response_model=Collaborator,
    status_code=status.HTTP_201_CREATED,
)
async def add_collaborator(
    voiceover_id: str, body: AddCollaboratorRequest, user: CurrentUserDep, voiceovers: VoiceoverServiceDep
) -> Collaborator:
    return await voiceovers.add_collaborator(voiceover_id, user, body.email)


@router.delete("/{voiceover_id}/collaborators/{collaborator_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_collaborator(
    voiceover_id: str, collaborator_id: str, user: CurrentUserDep, voiceovers: VoiceoverServiceDep
) -> Response:
    await voiceovers.remove_collaborator(voiceover_id, user, collaborator_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
