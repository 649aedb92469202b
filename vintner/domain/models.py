"""
Pydantic models for the wine catalog.

This module defines all data models used throughout the application, including:
- Service configuration
- Catalog records (varietals, wineries, wines, wine lists)
- Query models used to filter, sort and page wines

All models use Pydantic for validation, serialization, and type safety.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator


# ---------------------------------------------------------------------------
# Service Configuration Models
# ---------------------------------------------------------------------------


class ServiceConfig(BaseModel):
    """
    Top-level configuration for the catalog service.

    Persisted at: <DATA_DIR>/service.json
    """

    service_name: str = Field(
        default="Vintner wine catalog",
        description="Human-friendly name displayed on the landing page and in logs.",
    )
    description: str = Field(
        default="GraphQL service over static JSON data about wines, varietals and wineries.",
        description="Longer description shown on the landing page.",
    )
    write_back: bool = Field(
        default=False,
        description="If True, every mutation rewrites the affected JSON collection file.",
    )
    default_page_size: int = Field(
        default=20,
        ge=1,
        description="Number of wines returned when a query does not pass a limit.",
    )
    max_page_size: int = Field(
        default=100,
        ge=1,
        description="Largest limit a wines query may request.",
    )
    graphql_ide: bool = Field(
        default=True,
        description="Serve the GraphiQL IDE on GET /graphql.",
    )


# ---------------------------------------------------------------------------
# Catalog Records
# ---------------------------------------------------------------------------


VarietalColor = Literal["red", "white", "rose", "sparkling", "dessert", "orange"]

VARIETAL_COLORS: List[str] = ["red", "white", "rose", "sparkling", "dessert", "orange"]


class Varietal(BaseModel):
    """
    A grape type classification, e.g. Cabernet Sauvignon.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    color: VarietalColor
    description: str = ""

    @field_validator("color", mode="before")
    @classmethod
    def _normalize_color(cls, value):
        if isinstance(value, str):
            return value.strip().lower().replace("é", "e")
        return value


class Winery(BaseModel):
    """
    A producer associated with one or more wines.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    region: str = ""
    country: str = ""
    founded: Optional[int] = Field(default=None, ge=0, le=9999)
    description: str = ""


class Wine(BaseModel):
    """
    A bottled product referencing exactly one varietal and one winery.

    ``is_favorite`` and ``rating`` are user state changed by mutations; the
    rest is catalog data loaded from wines.json.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    varietal_id: str = Field(min_length=1)
    winery_id: str = Field(min_length=1)
    vintage: Optional[int] = Field(default=None, ge=0, le=9999)
    abv: float = Field(ge=0, le=100)
    price: float = Field(ge=0)
    tasting_notes: str = ""
    is_favorite: bool = False
    rating: Optional[int] = Field(default=None, ge=1, le=5)


class WineList(BaseModel):
    """
    A user-created, ordered collection of wines (e.g. "Holiday dinner").
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    wine_ids: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ---------------------------------------------------------------------------
# Query Models
# ---------------------------------------------------------------------------


WineSortField = Literal["name", "vintage", "price", "abv", "rating"]
SortOrder = Literal["asc", "desc"]


class WineFilter(BaseModel):
    """
    Filters applied to the wine collection. Unset fields mean "no filter".
    All set fields must match (logical AND).
    """

    varietal_id: Optional[str] = None
    winery_id: Optional[str] = None
    color: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    min_vintage: Optional[int] = None
    max_vintage: Optional[int] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[int] = None
    favorites_only: bool = False
    search: Optional[str] = Field(
        default=None,
        description="Case-insensitive substring matched against name and tasting notes.",
    )


class WineQuery(BaseModel):
    """
    A complete wines request: filter, sort and page window.
    """

    filter: WineFilter = Field(default_factory=WineFilter)
    sort_by: WineSortField = "name"
    order: SortOrder = "asc"
    offset: int = 0
    limit: Optional[int] = None


class WinePage(BaseModel):
    """
    One page of wines plus the total number of matches before paging.
    """

    items: List[Wine] = Field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: int = 0

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total


class CatalogStats(BaseModel):
    varietal_count: int = 0
    winery_count: int = 0
    wine_count: int = 0
    wine_list_count: int = 0
    favorite_count: int = 0
    average_rating: Optional[float] = None
