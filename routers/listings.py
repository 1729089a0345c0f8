from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from app.core.errors import error_detail
from app.core.rate_limit import ai_limit, limiter
from routers.dependencies import CurrentSession, get_current_user, get_draft_generator, get_listings_service
from schemas.drafts import DraftResponse, GenerateDraftRequest, SeoResponse
from schemas.listings import (
    ListingCreateRequest,
    ListingListResponse,
    ListingResponse,
    ListingUpdateRequest,
)
from services.draft_generator import DraftGeneratorService
from services.draft_models import DraftRequestError, GenerationRequest
from services.listings import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ListingFilters,
    ListingNotFoundError,
    ListingSort,
    ListingsService,
    ListingStatus,
    ListingType,
)

router = APIRouter(tags=["listings"])


def _not_found(exc: ListingNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=error_detail("NOT_FOUND", str(exc)))


@router.post("/listings", response_model=ListingResponse, status_code=201)
async def create_listing(
    payload: ListingCreateRequest,
    service: ListingsService = Depends(get_listings_service),
) -> ListingResponse:
    listing = await service.create(payload.model_dump())
    return ListingResponse.model_validate(listing)


@router.get("/listings", response_model=ListingListResponse)
async def list_listings(
    status: ListingStatus | None = None,
    type: ListingType | None = None,
    property_type: str | None = Query(default=None, alias="propertyType"),
    q: str | None = Query(default=None, max_length=200),
    sort: ListingSort = ListingSort.created_desc,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    service: ListingsService = Depends(get_listings_service),
) -> ListingListResponse:
    result = await service.find_many(
        ListingFilters(
            status=status,
            type=type,
            property_type=property_type,
            q=q,
            sort=sort,
            page=page,
            limit=limit,
        )
    )
    return ListingListResponse(
        items=[ListingResponse.model_validate(item) for item in result.items],
        page=result.page,
        limit=result.limit,
        total=result.total,
    )


@router.get("/listings/{listing_id}", response_model=ListingResponse)
async def get_listing(
    listing_id: str,
    service: ListingsService = Depends(get_listings_service),
) -> ListingResponse:
    try:
        listing = await service.find_by_id(listing_id)
    except ListingNotFoundError as exc:
        raise _not_found(exc) from exc
    return ListingResponse.model_validate(listing)


@router.patch("/listings/{listing_id}", response_model=ListingResponse)
async def update_listing(
    listing_id: str,
    payload: ListingUpdateRequest,
    service: ListingsService = Depends(get_listings_service),
) -> ListingResponse:
    try:
        listing = await service.update(listing_id, payload.model_dump(exclude_unset=True))
    except ListingNotFoundError as exc:
        raise _not_found(exc) from exc
    return ListingResponse.model_validate(listing)


@router.delete("/listings/{listing_id}", status_code=204)
async def delete_listing(
    listing_id: str,
    service: ListingsService = Depends(get_listings_service),
) -> Response:
    try:
        await service.soft_delete(listing_id)
    except ListingNotFoundError as exc:
        raise _not_found(exc) from exc
    return Response(status_code=204)


@router.post("/listings/{listing_id}/generate-draft", response_model=DraftResponse)
@limiter.limit(ai_limit)
async def generate_draft(
    request: Request,
    listing_id: str,
    payload: GenerateDraftRequest,
    current: CurrentSession = Depends(get_current_user),
    service: ListingsService = Depends(get_listings_service),
    generator: DraftGeneratorService = Depends(get_draft_generator),
) -> DraftResponse:
    try:
        facts = await service.get_facts(listing_id)
    except ListingNotFoundError as exc:
        raise _not_found(exc) from exc

    try:
        draft = await generator.generate_draft(
            facts,
            GenerationRequest(locale=payload.locale, tone=payload.tone, length=payload.length),
        )
    except DraftRequestError as exc:
        raise HTTPException(status_code=400, detail=error_detail("BAD_REQUEST", str(exc))) from exc

    return DraftResponse(
        title=draft.title,
        summary=draft.summary,
        description=draft.description,
        highlights=draft.highlights,
        disclaimer=draft.disclaimer,
        seo=SeoResponse(keywords=draft.seo.keywords, meta_description=draft.seo.meta_description),
        language=draft.language,
        fallback=draft.fallback,
    )
