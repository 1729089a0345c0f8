from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from app.core.errors import error_detail
from routers.dependencies import (
    CurrentSession,
    get_current_user,
    get_photo_pipeline,
    get_photos_service,
)
from schemas.photos import (
    CompleteUploadRequest,
    CompleteUploadResponse,
    PhotoCoverRequest,
    PhotoDeletedResponse,
    PhotoOperationResponse,
    PhotoOrderRequest,
    PhotoResponse,
    PhotosDeletedResponse,
    UploadSlotResponse,
    UploadSlotsRequest,
    UploadSlotsResponse,
)
from services.listings import ListingNotFoundError
from services.photos import (
    PhotoNotFoundError,
    PhotoPipeline,
    PhotoRequestError,
    PhotosService,
    UploadedFile,
    photo_view,
)

router = APIRouter(
    prefix="/listings/{listing_id}/photos",
    tags=["photos"],
    dependencies=[Depends(get_current_user)],
)


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (ListingNotFoundError, PhotoNotFoundError)):
        return HTTPException(status_code=404, detail=error_detail("NOT_FOUND", str(exc)))
    return HTTPException(status_code=400, detail=error_detail("BAD_REQUEST", str(exc)))


@router.post("/uploads", response_model=UploadSlotsResponse, status_code=201)
async def create_upload_slots(
    listing_id: str,
    payload: UploadSlotsRequest,
    current: CurrentSession = Depends(get_current_user),
    service: PhotosService = Depends(get_photos_service),
) -> UploadSlotsResponse:
    try:
        slots = await service.create_upload_slots(
            listing_id, current.user.id, payload.count, payload.mime_types
        )
    except (ListingNotFoundError, PhotoRequestError) as exc:
        raise _http_error(exc) from exc
    return UploadSlotsResponse(
        items=[
            UploadSlotResponse(asset_id=slot.asset_id, key=slot.key, upload_url=slot.upload_url)
            for slot in slots.items
        ],
        expires_in_seconds=slots.expires_in_seconds,
    )


@router.post("/complete", response_model=CompleteUploadResponse, status_code=202)
async def complete_upload(
    listing_id: str,
    payload: CompleteUploadRequest,
    background_tasks: BackgroundTasks,
    service: PhotosService = Depends(get_photos_service),
    pipeline: PhotoPipeline = Depends(get_photo_pipeline),
) -> CompleteUploadResponse:
    try:
        photo = await service.complete_upload(
            listing_id,
            UploadedFile(
                asset_id=payload.asset_id,
                key=payload.key,
                size=payload.size,
                width=payload.width,
                height=payload.height,
                mime=payload.mime,
                original_name=payload.original_name,
            ),
        )
    except (PhotoNotFoundError, PhotoRequestError) as exc:
        raise _http_error(exc) from exc
    background_tasks.add_task(pipeline.process, photo.id)
    return CompleteUploadResponse(status=photo.status, photo_id=photo.id)


@router.get("", response_model=list[PhotoResponse])
async def list_photos(
    listing_id: str,
    service: PhotosService = Depends(get_photos_service),
) -> list[PhotoResponse]:
    try:
        photos = await service.list_photos(listing_id)
    except ListingNotFoundError as exc:
        raise _http_error(exc) from exc
    return [
        PhotoResponse.model_validate(photo_view(photo, service.policy.cdn_base_url))
        for photo in photos
    ]


@router.patch("/order", response_model=PhotoOperationResponse)
async def reorder_photos(
    listing_id: str,
    payload: PhotoOrderRequest,
    service: PhotosService = Depends(get_photos_service),
) -> PhotoOperationResponse:
    try:
        await service.reorder(listing_id, payload.ids)
    except PhotoRequestError as exc:
        raise _http_error(exc) from exc
    return PhotoOperationResponse()


@router.patch("/{photo_id}", response_model=PhotoOperationResponse)
async def update_cover(
    listing_id: str,
    photo_id: str,
    payload: PhotoCoverRequest,
    service: PhotosService = Depends(get_photos_service),
) -> PhotoOperationResponse:
    try:
        await service.set_cover(listing_id, photo_id, payload.is_cover)
    except (PhotoNotFoundError, PhotoRequestError) as exc:
        raise _http_error(exc) from exc
    return PhotoOperationResponse()


@router.delete("/{photo_id}", response_model=PhotoDeletedResponse)
async def delete_photo(
    listing_id: str,
    photo_id: str,
    service: PhotosService = Depends(get_photos_service),
) -> PhotoDeletedResponse:
    try:
        await service.delete_photo(listing_id, photo_id)
    except PhotoNotFoundError as exc:
        raise _http_error(exc) from exc
    return PhotoDeletedResponse()


@router.delete("", response_model=PhotosDeletedResponse)
async def delete_all_photos(
    listing_id: str,
    service: PhotosService = Depends(get_photos_service),
) -> PhotosDeletedResponse:
    return PhotosDeletedResponse(deleted=await service.delete_all(listing_id))
