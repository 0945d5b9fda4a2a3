"""Podcast endpoints under ``/api/podcasts``.

Reads are open to the owner and collaborators; every mutation other than
approval is owner only.  Generation endpoints return ``{job_id, status}``
and the worker reports completion over SSE.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Response, status

from src.api.dependencies import CurrentUserDep, PodcastServiceDep
from src.api.schemas import (
    AddCollaboratorRequest,
    CreatePodcastRequest,
    GeneratePodcastRequest,
    JobStartedResponse,
    SaveChangesRequest,
    SaveChangesResponse,
    UpdatePodcastRequest,
    UpdateScriptRequest,
    segments_to_models,
)
from src.models.collaborator import Collaborator
from src.models.job import Job
from src.models.podcast import Podcast, PodcastPage, ScriptVersion

router = APIRouter(prefix="/api/podcasts", tags=["podcasts"])


@router.get("", response_model=PodcastPage)
async def list_podcasts(
    user: CurrentUserDep,
    podcasts: PodcastServiceDep,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> PodcastPage:
    return await podcasts.list_podcasts(user, limit=limit, offset=offset)


@router.post("", response_model=Podcast, status_code=status.HTTP_201_CREATED)
async def create_podcast(body: CreatePodcastRequest, user: CurrentUserDep, podcasts: PodcastServiceDep) -> Podcast:
    return await podcasts.create_podcast(user, **body.model_dump())


@router.get("/jobs/{job_id}", response_model=Job)
async def get_job(job_id: str, user: CurrentUserDep, podcasts: PodcastServiceDep) -> Job:
    return await podcasts.get_job(job_id, user)


@router.get("/{podcast_id}", response_model=Podcast)
async def get_podcast(podcast_id: str, user: CurrentUserDep, podcasts: PodcastServiceDep) -> Podcast:
    return await podcasts.get_podcast(podcast_id, user)


@router.patch("/{podcast_id}", response_model=Podcast)
async def update_podcast(
    podcast_id: str, body: UpdatePodcastRequest, user: CurrentUserDep, podcasts: PodcastServiceDep
) -> Podcast:
    return await podcasts.update_podcast(podcast_id, user, body.model_dump(exclude_unset=True))


@router.delete("/{podcast_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_podcast(podcast_id: str, user: CurrentUserDep, podcasts: PodcastServiceDep) -> Response:
    await podcasts.delete_podcast(podcast_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Scripts ──────────────────────────────────────────────────────────


@router.get("/{podcast_id}/script", response_model=ScriptVersion)
async def get_script(podcast_id: str, user: CurrentUserDep, podcasts: PodcastServiceDep) -> ScriptVersion:
    return await podcasts.get_script(podcast_id, user)


@router.put("/{podcast_id}/script", response_model=ScriptVersion)
async def update_script(
    podcast_id: str, body: UpdateScriptRequest, user: CurrentUserDep, podcasts: PodcastServiceDep
) -> ScriptVersion:
    return await podcasts.update_script(
        podcast_id, user, segments_to_models(body.segments), summary=body.summary
    )


@router.get("/{podcast_id}/versions", response_model=list[ScriptVersion])
async def list_versions(podcast_id: str, user: CurrentUserDep, podcasts: PodcastServiceDep) -> list[ScriptVersion]:
    return await podcasts.list_versions(podcast_id, user)


# ── Generation ───────────────────────────────────────────────────────


@router.post("/{podcast_id}/generate", response_model=JobStartedResponse, status_code=status.HTTP_202_ACCEPTED)
async def generate(
    podcast_id: str,
    user: CurrentUserDep,
    podcasts: PodcastServiceDep,
    body: GeneratePodcastRequest | None = None,
) -> JobStartedResponse:
    started = await podcasts.start_generation(
        podcast_id, user, prompt_instructions=body.prompt_instructions if body else None
    )
    return JobStartedResponse(**started)


@router.post("/{podcast_id}/save-changes", response_model=SaveChangesResponse)
async def save_changes(
    podcast_id: str, body: SaveChangesRequest, user: CurrentUserDep, podcasts: PodcastServiceDep
) -> SaveChangesResponse:
    outcome = await podcasts.save_changes(
        podcast_id,
        user,
        segments=segments_to_models(body.segments),
        host_voice=body.host_voice,
        co_host_voice=body.co_host_voice,
    )
    return SaveChangesResponse(**outcome)


@router.post(
    "/{podcast_id}/save-and-generate",
    response_model=JobStartedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def save_and_generate(
    podcast_id: str, body: SaveChangesRequest, user: CurrentUserDep, podcasts: PodcastServiceDep
) -> JobStartedResponse:
    started = await podcasts.save_and_queue_audio(
        podcast_id,
        user,
        segments=segments_to_models(body.segments),
        host_voice=body.host_voice,
        co_host_voice=body.co_host_voice,
    )
    return JobStartedResponse(**started)


# ── Approval & collaborators ─────────────────────────────────────────


@router.post("/{podcast_id}/approve", response_model=Podcast)
async def approve(podcast_id: str, user: CurrentUserDep, podcasts: PodcastServiceDep) -> Podcast:
    return await podcasts.approve(podcast_id, user)


@router.delete("/{podcast_id}/approve", response_model=Podcast)
async def revoke_approval(podcast_id: str, user: CurrentUserDep, podcasts: PodcastServiceDep) -> Podcast:
    return await podcasts.revoke_approval(podcast_id, user)


@router.get("/{podcast_id}/collaborators", response_model=list[Collaborator])
async def list_collaborators(
    podcast_id: str, user: CurrentUserDep, podcasts: PodcastServiceDep
) -> list[Collaborator]:
    return await podcasts.list_collaborators(podcast_id, user)


@router.post(
    "/{podcast_id}/collaborators",
    response_model=Collaborator,
    status_code=status.HTTP_201_CREATED,
)
async def add_collaborator(
    podcast_id: str, body: AddCollaboratorRequest, user: CurrentUserDep, podcasts: PodcastServiceDep
) -> Collaborator:
    return await podcasts.add_collaborator(podcast_id, user, body.email)


@router.delete("/{podcast_id}/collaborators/{collaborator_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_collaborator(
    podcast_id: str, collaborator_id: str, user: CurrentUserDep, podcasts: PodcastServiceDep
) -> Response:
    await podcasts.remove_collaborator(podcast_id, user, collaborator_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
