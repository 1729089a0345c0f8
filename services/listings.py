from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Listing, utcnow
from services.draft_models import ListingFacts

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class ListingType(str, Enum):
    sale = "sale"
    rent = "rent"


class ListingStatus(str, Enum):
    draft = "draft"
    ready = "ready"
    archived = "archived"


class PropertyType(str, Enum):
    default = "default"
    house = "house"
    apartment = "apartment"
    room = "room"
    cellar = "cellar"
    garage = "garage"
    parking = "parking"
    commercial = "commercial"


class ListingSort(str, Enum):
    created_asc = "createdAt"
    created_desc = "-createdAt"
    price_asc = "price"
    price_desc = "-price"


_ORDER_BY = {
    ListingSort.created_asc: (Listing.created_at.asc(), Listing.id.asc()),
    ListingSort.created_desc: (Listing.created_at.desc(), Listing.id.desc()),
    ListingSort.price_asc: (Listing.price.asc(), Listing.created_at.desc()),
    ListingSort.price_desc: (Listing.price.desc(), Listing.created_at.desc()),
}

# Columns a caller may write directly; everything else is managed by the service.
_WRITABLE_FIELDS = (
    "type",
    "property_type",
    "status",
    "title",
    "price",
    "summary",
    "description",
    "highlights",
    "keywords",
    "meta_description",
)


class ListingNotFoundError(RuntimeError):
    """Raised when a listing is missing or has been soft-deleted."""

    def __init__(self, listing_id: str) -> None:
        super().__init__("Listing not found")
        self.listing_id = listing_id


@dataclass(frozen=True)
class ListingFilters:
    status: ListingStatus | None = None
    type: ListingType | None = None
    property_type: str | None = None
    q: str | None = None
    sort: ListingSort = ListingSort.created_desc
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class ListingPage:
    items: list[Listing]
    page: int
    limit: int
    total: int


def _value(item: Any) -> Any:
    return item.value if isinstance(item, Enum) else item


class ListingsService:
    """CRUD over listings with soft delete and merge-on-update for user fields."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, data: Mapping[str, Any]) -> Listing:
        listing = Listing(
            type=_value(data["type"]),
            property_type=_value(data.get("property_type")) or PropertyType.default.value,
            status=ListingStatus.draft.value,
            title=data.get("title"),
            price=data.get("price"),
            summary=data.get("summary"),
            description=data.get("description"),
            highlights=list(data.get("highlights") or []),
            keywords=list(data.get("keywords") or []),
            meta_description=data.get("meta_description"),
            user_fields=dict(data.get("user_fields") or {}),
        )
        self._session.add(listing)
        await self._session.commit()
        await self._session.refresh(listing)
        logger.info("Listing created id=%s type=%s", listing.id, listing.type)
        return listing

    async def find_many(self, filters: ListingFilters | None = None) -> ListingPage:
        filters = filters or ListingFilters()
        page = max(filters.page, 1)
        limit = min(max(filters.limit, 1), MAX_PAGE_SIZE)

        conditions = [Listing.deleted_at.is_(None)]
        if filters.status is not None:
            conditions.append(Listing.status == _value(filters.status))
        if filters.type is not None:
            conditions.append(Listing.type == _value(filters.type))
        if filters.property_type:
            conditions.append(Listing.property_type == _value(filters.property_type))
        if filters.q:
            conditions.append(
                func.lower(Listing.title).contains(filters.q.strip().lower(), autoescape=True)
            )

        total = await self._session.scalar(
            select(func.count()).select_from(Listing).where(*conditions)
        )
        sort = ListingSort(filters.sort)
        result = await self._session.scalars(
            select(Listing)
            .where(*conditions)
            .order_by(*_ORDER_BY[sort])
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return ListingPage(items=list(result.all()), page=page, limit=limit, total=total or 0)

    async def find_by_id(self, listing_id: str) -> Listing:
        listing = await self._session.scalar(
            select(Listing).where(Listing.id == listing_id, Listing.deleted_at.is_(None))
        )
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return listing

    async def get_facts(self, listing_id: str) -> ListingFacts:
        listing = await self.find_by_id(listing_id)
        return ListingFacts(
            id=listing.id,
            type=listing.type,
            property_type=listing.property_type,
            title=listing.title,
            price=float(listing.price) if listing.price is not None else None,
            user_fields=dict(listing.user_fields or {}),
        )

    async def update(self, listing_id: str, data: Mapping[str, Any]) -> Listing:
        listing = await self.find_by_id(listing_id)
        for name in _WRITABLE_FIELDS:
            if name not in data:
                continue
            value = _value(data[name])
            if name in ("highlights", "keywords"):
                value = list(value or [])
            elif name in ("type", "property_type", "status") and value is None:
                continue
            setattr(listing, name, value)
        if data.get("user_fields") is not None:
            # Assign a new dict so the JSON column registers the change.
            listing.user_fields = {**(listing.user_fields or {}), **data["user_fields"]}
        await self._session.commit()
        await self._session.refresh(listing)
        logger.info("Listing updated id=%s fields=%s", listing.id, sorted(data))
        return listing

    async def soft_delete(self, listing_id: str) -> None:
        listing = await self.find_by_id(listing_id)
        listing.deleted_at = utcnow()
        listing.status = ListingStatus.archived.value
        await self._session.commit()
        logger.info("Listing soft-deleted id=%s", listing.id)
