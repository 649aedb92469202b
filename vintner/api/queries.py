from typing import List, Optional

import strawberry
from strawberry.types import Info

from vintner.domain.models import WineFilter, WineQuery
from vintner.api.types import (
    CatalogStats,
    Varietal,
    VarietalColor,
    Wine,
    WineFilterInput,
    WineList,
    WinePage,
    Winery,
    WineSortInput,
    get_catalog_from,
)


@strawberry.type
class Query:
    @strawberry.field(description="All varietals in catalog order, optionally filtered by color.")
    def varietals(self, info: Info, color: Optional[VarietalColor] = None) -> List[Varietal]:
        records = get_catalog_from(info).list_varietals(color.value if color else None)
        return [Varietal.from_record(v) for v in records]

    @strawberry.field
    def varietal(self, info: Info, id: strawberry.ID) -> Optional[Varietal]:
        record = get_catalog_from(info).get_varietal(id)
        return Varietal.from_record(record) if record else None

    @strawberry.field(description="All wineries in catalog order, optionally filtered by country and region.")
    def wineries(
        self,
        info: Info,
        country: Optional[str] = None,
        region: Optional[str] = None,
    ) -> List[Winery]:
        records = get_catalog_from(info).list_wineries(country=country, region=region)
        return [Winery.from_record(w) for w in records]

    @strawberry.field
    def winery(self, info: Info, id: strawberry.ID) -> Optional[Winery]:
        record = get_catalog_from(info).get_winery(id)
        return Winery.from_record(record) if record else None

    @strawberry.field(description="Filtered, sorted and paged wines.")
    def wines(
        self,
        info: Info,
        filter: Optional[WineFilterInput] = None,
        sort: Optional[WineSortInput] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> WinePage:
        sort = sort or WineSortInput()
        query = WineQuery(
            filter=filter.to_model() if filter else WineFilter(),
            sort_by=sort.field.value,
            order=sort.order.value,
            offset=offset,
            limit=limit,
        )
        return WinePage.from_page(get_catalog_from(info).find_wines(query))

    @strawberry.field
    def wine(self, info: Info, id: strawberry.ID) -> Optional[Wine]:
        record = get_catalog_from(info).get_wine(id)
        return Wine.from_record(record) if record else None

    @strawberry.field
    def favorite_wines(self, info: Info) -> List[Wine]:
        return [Wine.from_record(w) for w in get_catalog_from(info).favorite_wines()]

    @strawberry.field
    def wine_lists(self, info: Info) -> List[WineList]:
        return [WineList.from_record(wl) for wl in get_catalog_from(info).list_wine_lists()]

    @strawberry.field
    def wine_list(self, info: Info, id: strawberry.ID) -> Optional[WineList]:
        record = get_catalog_from(info).get_wine_list(id)
        return WineList.from_record(record) if record else None

    @strawberry.field
    def stats(self, info: Info) -> CatalogStats:
        return CatalogStats.from_model(get_catalog_from(info).get_stats())
