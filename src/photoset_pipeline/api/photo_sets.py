"""Photo set submission, review and query endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile

from photoset_pipeline.api.auth import require_actor, require_admin
from photoset_pipeline.api.schemas import (
    DetailsUpdateRequest,
    PendingCountResponse,
    PhotoSetListResponse,
    PhotoSetResponse,
    StatusUpdateRequest,
)
from photoset_pipeline.domain.errors import InvalidStatusError
from photoset_pipeline.domain.photos import (
    ApprovalStatus,
    AuthorizedActor,
)
from photoset_pipeline.services.submissions import (
    ADMIN_DIRECT_SUBMISSION,
    MAINTENANCE_SUBMISSION,
    WORKER_PAIR_SUBMISSION,
    IncomingFile,
    SubmissionPolicy,
    SubmissionRequest,
    with_max_files,
)

if TYPE_CHECKING:
    from photoset_pipeline.containers import AppContainer


router = APIRouter(tags=["photo-sets"])


@router.post("/worker/photos", status_code=201, response_model=PhotoSetResponse)
async def submit_worker_pair(
    request: Request,
    actor: AuthorizedActor = Depends(require_actor),
    before_image: UploadFile | None = File(default=None, alias="beforeImage"),
    after_image: UploadFile | None = File(default=None, alias="afterImage"),
    service_category: str | None = Form(default=None, alias="serviceCategory"),
    title: str | None = Form(default=None),
    description: str | None = Form(default=None),
) -> PhotoSetResponse:
    """Submit a single before/after pair for review."""
    submission = SubmissionRequest(
        service_category=service_category,
        before_files=await _read_files([before_image] if before_image else []),
        after_files=await _read_files([after_image] if after_image else []),
        title=title,
        description=description,
    )
    return await _submit(request, actor, submission, WORKER_PAIR_SUBMISSION)


@router.post(
    "/maintenance/photo-sets", status_code=201, response_model=PhotoSetResponse
)
async def submit_maintenance_photo_set(  # noqa: PLR0913
    request: Request,
    actor: AuthorizedActor = Depends(require_actor),
    before_images: list[UploadFile] | None = File(default=None, alias="beforeImages"),
    after_images: list[UploadFile] | None = File(default=None, alias="afterImages"),
    service_category: str | None = Form(default=None, alias="serviceCategory"),
    title: str | None = Form(default=None),
    description: str | None = Form(default=None),
) -> PhotoSetResponse:
    """Submit before/after images for review."""
    container: AppContainer = request.app.state.container
    submission = SubmissionRequest(
        service_category=service_category,
        before_files=await _read_files(before_images),
        after_files=await _read_files(after_images),
        title=title,
        description=description,
    )
    policy = with_max_files(
        MAINTENANCE_SUBMISSION, container.settings.max_files_per_submission
    )
    return await _submit(request, actor, submission, policy)


@router.post(
    "/admin/photo-sets/direct-upload",
    status_code=201,
    response_model=PhotoSetResponse,
)
async def submit_direct_approved(  # noqa: PLR0913
    request: Request,
    actor: AuthorizedActor = Depends(require_actor),
    before_images: list[UploadFile] | None = File(default=None, alias="beforeImages"),
    after_images: list[UploadFile] | None = File(default=None, alias="afterImages"),
    service_category: str | None = Form(default=None, alias="serviceCategory"),
    title: str | None = Form(default=None),
    description: str | None = Form(default=None),
    maintenance_worker_id: str | None = Form(
        default=None, alias="maintenanceWorkerId"
    ),
) -> PhotoSetResponse:
    """Create a photo set that is approved on creation."""
    container: AppContainer = request.app.state.container
    submission = SubmissionRequest(
        service_category=service_category,
        before_files=await _read_files(before_images),
        after_files=await _read_files(after_images),
        title=title,
        description=description,
        owner_id=(maintenance_worker_id or "").strip() or None,
    )
    policy = with_max_files(
        ADMIN_DIRECT_SUBMISSION, container.settings.max_files_per_submission
    )
    return await _submit(request, actor, submission, policy)


@router.get("/admin/photo-sets", response_model=PhotoSetListResponse)
async def list_photo_sets(  # noqa: PLR0913
    request: Request,
    _: AuthorizedActor = Depends(require_admin),
    status: str | None = None,
    page: int = 1,
    page_size: int = Query(default=10, alias="pageSize"),
    service_category: str | None = Query(default=None, alias="serviceCategory"),
    owner_id: str | None = Query(default=None, alias="ownerId"),
    search_term: str | None = Query(default=None, alias="searchTerm"),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_order: str | None = Query(default=None, alias="sortOrder"),
) -> PhotoSetListResponse:
    """Return photo sets for the approval queue, newest first by default."""
    container: AppContainer = request.app.state.container
    page_result = container.photo_set_service.list_sets(
        _parse_status_filter(status),
        page,
        page_size,
        service_category=service_category,
        owner_id=owner_id,
        search_term=search_term,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return PhotoSetListResponse.from_page(page_result)


@router.get("/admin/photo-sets/pending-count", response_model=PendingCountResponse)
async def pending_count(
    request: Request, _: AuthorizedActor = Depends(require_admin)
) -> PendingCountResponse:
    """Return the number of photo sets awaiting review."""
    container: AppContainer = request.app.state.container
    return PendingCountResponse(count=container.photo_set_service.pending_count())


@router.delete("/admin/photo-sets/{photo_set_id}", status_code=204)
async def delete_photo_set(
    photo_set_id: UUID,
    request: Request,
    actor: AuthorizedActor = Depends(require_admin),
) -> Response:
    """Delete a photo set, its photos and their blobs."""
    container: AppContainer = request.app.state.container
    await container.photo_set_service.delete(actor, photo_set_id)
    return Response(status_code=204)


@router.get("/photo-sets/{photo_set_id}", response_model=PhotoSetResponse)
async def get_photo_set(
    photo_set_id: UUID,
    request: Request,
    _: AuthorizedActor = Depends(require_actor),
) -> PhotoSetResponse:
    """Return one photo set with its photos."""
    container: AppContainer = request.app.state.container
    return PhotoSetResponse.from_record(container.photo_set_service.get(photo_set_id))


@router.patch("/photo-sets/{photo_set_id}/status", response_model=PhotoSetResponse)
async def update_status(
    photo_set_id: UUID,
    body: StatusUpdateRequest,
    request: Request,
    actor: AuthorizedActor = Depends(require_actor),
) -> PhotoSetResponse:
    """Approve or reject a pending photo set."""
    container: AppContainer = request.app.state.container
    updated = container.photo_set_service.transition(actor, photo_set_id, body.status)
    return PhotoSetResponse.from_record(updated)


@router.patch("/photo-sets/{photo_set_id}/details", response_model=PhotoSetResponse)
async def update_details(
    photo_set_id: UUID,
    body: DetailsUpdateRequest,
    request: Request,
    actor: AuthorizedActor = Depends(require_actor),
) -> PhotoSetResponse:
    """Edit the title and/or description of a photo set."""
    container: AppContainer = request.app.state.container
    changes = {name: getattr(body, name) for name in body.model_fields_set}
    updated = container.photo_set_service.update_details(
        actor, photo_set_id, **changes
    )
    return PhotoSetResponse.from_record(updated)


@router.get("/gallery/photo-sets", response_model=PhotoSetListResponse)
async def list_gallery(
    request: Request,
    page: int = 1,
    page_size: int = Query(default=12, alias="pageSize"),
    service_category: str | None = Query(default=None, alias="serviceCategory"),
) -> PhotoSetListResponse:
    """Return approved photo sets for public display."""
    container: AppContainer = request.app.state.container
    page_result = container.photo_set_service.list_public(
        page, page_size, service_category=service_category
    )
    return PhotoSetListResponse.from_page(page_result)


async def _submit(
    request: Request,
    actor: AuthorizedActor,
    submission: SubmissionRequest,
    policy: SubmissionPolicy,
) -> PhotoSetResponse:
    container: AppContainer = request.app.state.container
    photo_set = await container.submission_service.submit(actor, submission, policy)
    return PhotoSetResponse.from_record(photo_set)


async def _read_files(uploads: list[UploadFile] | None) -> list[IncomingFile]:
    """Read uploaded parts, skipping empty file inputs."""
    files: list[IncomingFile] = []
    for upload in uploads or []:
        if not upload.filename:
            continue
        files.append(
            IncomingFile(
                filename=upload.filename,
                content_type=upload.content_type,
                data=await upload.read(),
            )
        )
    return files


def _parse_status_filter(raw: str | None) -> ApprovalStatus | None:
    if not raw:
        return None
    try:
        return ApprovalStatus(raw.upper())
    except ValueError as exc:
        raise InvalidStatusError(
            f"Invalid approval status: {raw}", field="status"
        ) from exc
