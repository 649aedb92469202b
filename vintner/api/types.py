"""
Strawberry object and input types exposed by the GraphQL schema.

Object types are thin views over the pydantic records in
``vintner.domain.models``; relationship fields resolve through the Catalog
found in the request context.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import strawberry
from strawberry.types import Info

from vintner.domain import models
from vintner.domain.catalog import Catalog
from vintner.domain.errors import ReferentialIntegrityError


def get_catalog_from(info: Info) -> Catalog:
    return info.context["catalog"]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


@strawberry.enum(description="Color classification of a grape varietal.")
class VarietalColor(Enum):
    RED = "red"
    WHITE = "white"
    ROSE = "rose"
    SPARKLING = "sparkling"
    DESSERT = "dessert"
    ORANGE = "orange"


@strawberry.enum
class WineSortField(Enum):
    NAME = "name"
    VINTAGE = "vintage"
    PRICE = "price"
    ABV = "abv"
    RATING = "rating"


@strawberry.enum
class SortOrder(Enum):
    ASC = "asc"
    DESC = "desc"


# ---------------------------------------------------------------------------
# Object types
# ---------------------------------------------------------------------------


@strawberry.type(description="A grape type classification, e.g. Cabernet Sauvignon.")
class Varietal:
    id: strawberry.ID
    name: str
    color: VarietalColor
    description: str

    @strawberry.field(description="Wines made from this varietal, in catalog order.")
    def wines(self, info: Info) -> List["Wine"]:
        return [Wine.from_record(w) for w in get_catalog_from(info).wines_for_varietal(self.id)]

    @classmethod
    def from_record(cls, record: models.Varietal) -> "Varietal":
        return cls(
            id=strawberry.ID(record.id),
            name=record.name,
            color=VarietalColor(record.color),
            description=record.description,
        )


@strawberry.type(description="A producer of one or more wines.")
class Winery:
    id: strawberry.ID
    name: str
    region: str
    country: str
    founded: Optional[int]
    description: str

    @strawberry.field(description="Wines produced by this winery, in catalog order.")
    def wines(self, info: Info) -> List["Wine"]:
        return [Wine.from_record(w) for w in get_catalog_from(info).wines_for_winery(self.id)]

    @strawberry.field(description="Distinct varietals this winery produces.")
    def varietals(self, info: Info) -> List[Varietal]:
        return [Varietal.from_record(v) for v in get_catalog_from(info).varietals_for_winery(self.id)]

    @classmethod
    def from_record(cls, record: models.Winery) -> "Winery":
        return cls(
            id=strawberry.ID(record.id),
            name=record.name,
            region=record.region,
            country=record.country,
            founded=record.founded,
            description=record.description,
        )


@strawberry.type(description="A bottled wine referencing one varietal and one winery.")
class Wine:
    id: strawberry.ID
    name: str
    varietal_id: strawberry.ID
    winery_id: strawberry.ID
    vintage: Optional[int]
    abv: float
    price: float
    tasting_notes: str
    is_favorite: bool
    rating: Optional[int]

    @strawberry.field
    def varietal(self, info: Info) -> Varietal:
        record = get_catalog_from(info).get_varietal(self.varietal_id)
        if record is None:
            raise ReferentialIntegrityError(f"Varietal {self.varietal_id!r} does not exist")
        return Varietal.from_record(record)

    @strawberry.field
    def winery(self, info: Info) -> Winery:
        record = get_catalog_from(info).get_winery(self.winery_id)
        if record is None:
            raise ReferentialIntegrityError(f"Winery {self.winery_id!r} does not exist")
        return Winery.from_record(record)

    @classmethod
    def from_record(cls, record: models.Wine) -> "Wine":
        return cls(
            id=strawberry.ID(record.id),
            name=record.name,
            varietal_id=strawberry.ID(record.varietal_id),
            winery_id=strawberry.ID(record.winery_id),
            vintage=record.vintage,
            abv=record.abv,
            price=record.price,
            tasting_notes=record.tasting_notes,
            is_favorite=record.is_favorite,
            rating=record.rating,
        )


@strawberry.type(description="A user-created, ordered list of wines.")
class WineList:
    id: strawberry.ID
    name: str
    description: str
    created_at: datetime
    wine_ids: List[strawberry.ID]

    @strawberry.field
    def wines(self, info: Info) -> List[Wine]:
        return [Wine.from_record(w) for w in get_catalog_from(info).wines_in_list(self.id)]

    @classmethod
    def from_record(cls, record: models.WineList) -> "WineList":
        return cls(
            id=strawberry.ID(record.id),
            name=record.name,
            description=record.description,
            created_at=record.created_at,
            wine_ids=[strawberry.ID(w) for w in record.wine_ids],
        )


@strawberry.type(description="One page of wines; total counts all matches before paging.")
class WinePage:
    items: List[Wine]
    total: int
    offset: int
    limit: int
    has_more: bool

    @classmethod
    def from_page(cls, page: models.WinePage) -> "WinePage":
        return cls(
            items=[Wine.from_record(w) for w in page.items],
            total=page.total,
            offset=page.offset,
            limit=page.limit,
            has_more=page.has_more,
        )


@strawberry.type
class CatalogStats:
    varietal_count: int
    winery_count: int
    wine_count: int
    wine_list_count: int
    favorite_count: int
    average_rating: Optional[float]

    @classmethod
    def from_model(cls, stats: models.CatalogStats) -> "CatalogStats":
        return cls(**stats.model_dump())


# ---------------------------------------------------------------------------
# Input types
# ---------------------------------------------------------------------------


@strawberry.input(description="Filters for the wines query. Unset fields do not filter.")
class WineFilterInput:
    varietal_id: Optional[strawberry.ID] = None
    winery_id: Optional[strawberry.ID] = None
    color: Optional[VarietalColor] = None
    country: Optional[str] = None
    region: Optional[str] = None
    min_vintage: Optional[int] = None
    max_vintage: Optional[int] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[int] = None
    favorites_only: bool = False
    search: Optional[str] = None

    def to_model(self) -> models.WineFilter:
        return models.WineFilter(
            varietal_id=self.varietal_id,
            winery_id=self.winery_id,
            color=self.color.value if self.color else None,
            country=self.country,
            region=self.region,
            min_vintage=self.min_vintage,
            max_vintage=self.max_vintage,
            min_price=self.min_price,
            max_price=self.max_price,
            min_rating=self.min_rating,
            favorites_only=self.favorites_only,
            search=self.search,
        )


@strawberry.input
class WineSortInput:
    field: WineSortField = WineSortField.NAME
    order: SortOrder = SortOrder.ASC


@strawberry.input
class VarietalInput:
    name: str
    color: VarietalColor
    description: str = ""
    id: Optional[strawberry.ID] = None

    def to_data(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color.value,
            "description": self.description,
        }


@strawberry.input
class WineryInput:
    name: str
    region: str = ""
    country: str = ""
    founded: Optional[int] = None
    description: str = ""
    id: Optional[strawberry.ID] = None

    def to_data(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "region": self.region,
            "country": self.country,
            "founded": self.founded,
            "description": self.description,
        }


@strawberry.input
class WineInput:
    name: str
    varietal_id: strawberry.ID
    winery_id: strawberry.ID
    abv: float
    price: float
    vintage: Optional[int] = None
    tasting_notes: str = ""
    id: Optional[strawberry.ID] = None

    def to_data(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "varietal_id": self.varietal_id,
            "winery_id": self.winery_id,
            "abv": self.abv,
            "price": self.price,
            "vintage": self.vintage,
            "tasting_notes": self.tasting_notes,
        }


_WINE_UPDATE_FIELDS = ("name", "varietal_id", "winery_id", "vintage", "abv", "price", "tasting_notes")


@strawberry.input(description="Partial wine update. Omitted fields keep their value.")
class WineUpdateInput:
    name: Optional[str] = strawberry.UNSET
    varietal_id: Optional[strawberry.ID] = strawberry.UNSET
    winery_id: Optional[strawberry.ID] = strawberry.UNSET
    vintage: Optional[int] = strawberry.UNSET
    abv: Optional[float] = strawberry.UNSET
    price: Optional[float] = strawberry.UNSET
    tasting_notes: Optional[str] = strawberry.UNSET

    def to_changes(self) -> Dict[str, Any]:
        return {
            name: getattr(self, name)
            for name in _WINE_UPDATE_FIELDS
            if getattr(self, name) is not strawberry.UNSET
        }


@strawberry.input
class WineListInput:
    name: str
    description: str = ""
    wine_ids: List[strawberry.ID] = strawberry.field(default_factory=list)
    id: Optional[strawberry.ID] = None
