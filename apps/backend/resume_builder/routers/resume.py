"""Resume editing endpoints.

Thin glue between the browser editor and the editing session held in
``app.state.session``. All document rules live in the session services;
this module only maps their errors to HTTP status codes.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from fastapi.responses import Response

from resume_builder.errors import (
    DocumentValidationError,
    RenderError,
    RenderTimeoutError,
    ResumeImportError,
    SectionIndexError,
    TypstCompilationError,
)
from resume_builder.schemas.api import (
    ImportResult,
    PageRequest,
    PreviewStatus,
    ResizeRequest,
    SectionCreated,
    SectionMoveRequest,
)
from resume_builder.schemas.document import document_to_dict
from resume_builder.services.session import ResumeSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/resume", tags=["resume"])


def get_session(request: Request) -> ResumeSession:
    """FastAPI dependency returning the application's editing session."""
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Editing session is not open",
        )
    return session


def _section_json(section) -> dict[str, Any]:
    return section.model_dump(mode="json", by_alias=True)


def _validation_failed(error: DocumentValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=[
            {"path": v.path, "code": v.code, "message": v.message}
            for v in error.violations
        ],
    )


def _not_found(error: SectionIndexError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))


@router.get("", summary="Current document")
async def get_document(session: ResumeSession = Depends(get_session)) -> dict[str, Any]:
    return document_to_dict(session.document)


@router.post(
    "/sections",
    response_model=SectionCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Append a section",
)
async def append_section(
    seed: dict[str, Any] = Body(...),
    session: ResumeSession = Depends(get_session),
):
    """Append a section built from ``seed`` (at least a ``type`` key).

    Raises:
        HTTPException 409: A section of this unique type already exists
        HTTPException 422: The section is invalid
    """
    try:
        index = session.store.append(seed)
    except DocumentValidationError as e:
        raise _validation_failed(e)

    if index is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"The document already has a {seed.get('type')} section",
        )
    return SectionCreated(index=index, section=_section_json(session.store.get(index)))


@router.get("/sections/{index}", summary="Get one section")
async def get_section(index: int, session: ResumeSession = Depends(get_session)) -> dict[str, Any]:
    try:
        return _section_json(session.store.get(index))
    except SectionIndexError as e:
        raise _not_found(e)


@router.patch("/sections/{index}", summary="Update a section in place")
async def update_section(
    index: int,
    patch: dict[str, Any] = Body(...),
    session: ResumeSession = Depends(get_session),
) -> dict[str, Any]:
    try:
        return _section_json(session.store.update(index, patch))
    except SectionIndexError as e:
        raise _not_found(e)
    except DocumentValidationError as e:
        raise _validation_failed(e)


@router.delete("/sections/{index}", summary="Remove a section")
async def remove_section(index: int, session: ResumeSession = Depends(get_session)) -> dict[str, Any]:
    """Remove a section. Later sections shift down by one. There is no undo;
    the editor asks the user to confirm before calling this."""
    try:
        return _section_json(session.store.remove(index))
    except SectionIndexError as e:
        raise _not_found(e)


@router.post("/sections/{index}/move", summary="Reorder a section")
async def move_section(
    index: int,
    request: SectionMoveRequest,
    session: ResumeSession = Depends(get_session),
) -> dict[str, Any]:
    try:
        session.store.move(index, request.new_index)
    except SectionIndexError as e:
        raise _not_found(e)
    return document_to_dict(session.document)


@router.put("/settings", summary="Change font family or size")
async def update_settings(
    patch: dict[str, Any] = Body(...),
    session: ResumeSession = Depends(get_session),
) -> dict[str, Any]:
    try:
        document = session.store.update_settings(patch)
    except DocumentValidationError as e:
        raise _validation_failed(e)
    return document.settings.model_dump(mode="json", by_alias=True)


@router.get("/export", summary="Download the document as JSON", response_class=Response)
async def export_document(session: ResumeSession = Depends(get_session)) -> Response:
    return Response(
        content=session.export_file(),
        media_type="application/json",
        headers={"Content-Disposition": "attachment; filename=resume.json"},
    )


@router.post("/import", response_model=ImportResult, summary="Import a JSON file")
async def import_document(
    request: Request,
    confirm: bool = Query(False, description="Overwrite the current document"),
    session: ResumeSession = Depends(get_session),
):
    """Validate an uploaded document and, when confirmed, replace the current one.

    The request body is the raw file content. Without ``confirm=true`` nothing
    is stored and the validated document is returned for review.

    Raises:
        HTTPException 400: The file is unreadable, not JSON, or not a resume
    """
    data = await request.body()
    try:
        pending = session.import_file(data)
    except ResumeImportError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "kind": e.kind,
                "message": e.message,
                "violations": [
                    {"path": v.path, "code": v.code, "message": v.message}
                    for v in e.violations
                ],
            },
        )

    if not confirm:
        pending.cancel()
        return ImportResult(
            requires_confirmation=True,
            imported=False,
            document=document_to_dict(pending.document),
        )

    document = await session.confirm_import(pending)
    return ImportResult(
        requires_confirmation=False,
        imported=True,
        document=document_to_dict(document),
    )


def _preview_status(session: ResumeSession) -> PreviewStatus:
    preview = session.preview
    return PreviewStatus(
        state=preview.state.value,
        current_page=preview.current_page,
        total_pages=preview.total_pages,
        width=preview.width,
        media_type=preview.artifact.media_type if preview.artifact else None,
        page_content=preview.current_page_content,
        error=str(preview.last_error) if preview.last_error else None,
    )


@router.get("/preview", response_model=PreviewStatus, summary="Preview status")
async def preview_status(session: ResumeSession = Depends(get_session)):
    return _preview_status(session)


@router.post("/preview/page", response_model=PreviewStatus, summary="Go to a page")
async def preview_go_to_page(request: PageRequest, session: ResumeSession = Depends(get_session)):
    session.preview.go_to_page(request.page)
    return _preview_status(session)


@router.post("/preview/next", response_model=PreviewStatus, summary="Next page")
async def preview_next_page(session: ResumeSession = Depends(get_session)):
    session.preview.next_page()
    return _preview_status(session)


@router.post("/preview/previous", response_model=PreviewStatus, summary="Previous page")
async def preview_previous_page(session: ResumeSession = Depends(get_session)):
    session.preview.previous_page()
    return _preview_status(session)


@router.post("/preview/resize", response_model=PreviewStatus, summary="Container resized")
async def preview_resize(request: ResizeRequest, session: ResumeSession = Depends(get_session)):
    session.preview.resize(request.available_width)
    return _preview_status(session)


@router.post("/preview/retry", response_model=PreviewStatus, summary="Retry a failed render")
async def preview_retry(session: ResumeSession = Depends(get_session)):
    session.preview.retry()
    return _preview_status(session)


@router.get("/download", summary="Download the rendered resume", response_class=Response)
async def download_document(session: ResumeSession = Depends(get_session)) -> Response:
    """Render the current document and return it as ``resume.pdf``.

    Raises:
        HTTPException 500: Rendering failed
        HTTPException 504: Rendering timed out
    """
    try:
        rendered = await session.download_pdf()
    except RenderTimeoutError as e:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail=f"PDF generation timed out: {e}",
        )
    except TypstCompilationError as e:
        logger.error(f"Typst compilation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"PDF compilation failed: {str(e)}",
        )
    except RenderError as e:
        logger.error(f"PDF download failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"PDF generation failed: {str(e)}",
        )

    filename = "resume.pdf" if rendered.media_type == "application/pdf" else "resume.txt"
    return Response(
        content=rendered.content,
        media_type=rendered.media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
