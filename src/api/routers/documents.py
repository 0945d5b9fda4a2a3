"""Document endpoints under ``/api/documents``."""

from __future__ import annotations

from fastapi import APIRouter, File, Form, Query, Response, UploadFile, status

from src.api.dependencies import CurrentUserDep, DocumentServiceDep
from src.api.schemas import (
    CreateDocumentRequest,
    DocumentContentResponse,
    FromResearchRequest,
    FromUrlRequest,
    UpdateDocumentRequest,
)
from src.models.document import Document, DocumentPage, DocumentSource
from src.services.documents.parsers import MAX_FILE_SIZE
from src.utils.errors import DocumentTooLargeError

router = APIRouter(prefix="/api/documents", tags=["documents"])

# Read uploads in 64 KB increments so oversized files are rejected
# without buffering the whole payload.
_UPLOAD_CHUNK_SIZE = 64 * 1024


async def _read_limited(file: UploadFile) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while chunk := await file.read(_UPLOAD_CHUNK_SIZE):
        total += len(chunk)
        if total > MAX_FILE_SIZE:
            raise DocumentTooLargeError(
                message=f"File exceeds {MAX_FILE_SIZE // (1024 * 1024)}MB limit"
            )
        chunks.append(chunk)
    return b"".join(chunks)


@router.get("", response_model=DocumentPage)
async def list_documents(
    user: CurrentUserDep,
    documents: DocumentServiceDep,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    source: DocumentSource | None = None,
) -> DocumentPage:
    return await documents.list_documents(user, limit=limit, offset=offset, source=source)


@router.post("", response_model=Document, status_code=status.HTTP_201_CREATED)
async def create_document(body: CreateDocumentRequest, user: CurrentUserDep, documents: DocumentServiceDep) -> Document:
    return await documents.create_document(user, body.title, body.content, body.metadata)


@router.post("/upload", response_model=Document, status_code=status.HTTP_201_CREATED)
async def upload_document(
    user: CurrentUserDep,
    documents: DocumentServiceDep,
    file: UploadFile = File(...),
    title: str | None = Form(default=None),
) -> Document:
    data = await _read_limited(file)
    return await documents.upload_document(
        user,
        file.filename or "upload",
        file.content_type,
        data,
        title=title or None,
    )


@router.post("/from-url", response_model=Document, status_code=status.HTTP_202_ACCEPTED)
async def create_from_url(body: FromUrlRequest, user: CurrentUserDep, documents: DocumentServiceDep) -> Document:
    return await documents.create_from_url(user, body.url, title=body.title)


@router.post("/from-research", response_model=Document, status_code=status.HTTP_202_ACCEPTED)
async def create_from_research(
    body: FromResearchRequest, user: CurrentUserDep, documents: DocumentServiceDep
) -> Document:
    return await documents.create_from_research(user, body.query, title=body.title)


@router.get("/{document_id}", response_model=Document)
async def get_document(document_id: str, user: CurrentUserDep, documents: DocumentServiceDep) -> Document:
    return await documents.get_document(document_id, user)


@router.get("/{document_id}/content", response_model=DocumentContentResponse)
async def get_document_content(
    document_id: str, user: CurrentUserDep, documents: DocumentServiceDep
) -> DocumentContentResponse:
    content = await documents.get_content(document_id, user)
    return DocumentContentResponse(id=document_id, content=content)


@router.patch("/{document_id}", response_model=Document)
async def update_document(
    document_id: str, body: UpdateDocumentRequest, user: CurrentUserDep, documents: DocumentServiceDep
) -> Document:
    return await documents.update_document(
        document_id, user, title=body.title, content=body.content, metadata=body.metadata
    )


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(document_id: str, user: CurrentUserDep, documents: DocumentServiceDep) -> Response:
    await documents.delete_document(document_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{document_id}/retry", response_model=Document, status_code=status.HTTP_202_ACCEPTED)
async def retry_processing(document_id: str, user: CurrentUserDep, documents: DocumentServiceDep) -> Document:
    return await documents.retry_processing(document_id, user)
