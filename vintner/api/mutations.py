from typing import Optional

import strawberry
from strawberry.types import Info

from vintner.api.types import (
    Varietal,
    VarietalInput,
    Wine,
    WineInput,
    WineList,
    WineListInput,
    Winery,
    WineryInput,
    WineUpdateInput,
    get_catalog_from,
)


@strawberry.type
class Mutation:
    # User state on wines

    @strawberry.mutation
    def set_favorite(self, info: Info, wine_id: strawberry.ID, favorite: bool = True) -> Wine:
        return Wine.from_record(get_catalog_from(info).set_favorite(wine_id, favorite))

    @strawberry.mutation
    def toggle_favorite(self, info: Info, wine_id: strawberry.ID) -> Wine:
        return Wine.from_record(get_catalog_from(info).toggle_favorite(wine_id))

    @strawberry.mutation(description="Rate a wine from 1 to 5, or pass null to clear the rating.")
    def rate_wine(self, info: Info, wine_id: strawberry.ID, rating: Optional[int] = None) -> Wine:
        return Wine.from_record(get_catalog_from(info).rate_wine(wine_id, rating))

    # Wine lists

    @strawberry.mutation
    def create_wine_list(self, info: Info, input: WineListInput) -> WineList:
        record = get_catalog_from(info).create_wine_list(
            name=input.name,
            description=input.description,
            wine_ids=list(input.wine_ids),
            list_id=input.id,
        )
        return WineList.from_record(record)

    @strawberry.mutation
    def add_wine_to_list(self, info: Info, list_id: strawberry.ID, wine_id: strawberry.ID) -> WineList:
        return WineList.from_record(get_catalog_from(info).add_wine_to_list(list_id, wine_id))

    @strawberry.mutation
    def remove_wine_from_list(self, info: Info, list_id: strawberry.ID, wine_id: strawberry.ID) -> WineList:
        return WineList.from_record(get_catalog_from(info).remove_wine_from_list(list_id, wine_id))

    @strawberry.mutation
    def delete_wine_list(self, info: Info, list_id: strawberry.ID) -> bool:
        return get_catalog_from(info).delete_wine_list(list_id)

    # Catalog records

    @strawberry.mutation
    def add_varietal(self, info: Info, input: VarietalInput) -> Varietal:
        return Varietal.from_record(get_catalog_from(info).add_varietal(input.to_data()))

    @strawberry.mutation
    def delete_varietal(self, info: Info, id: strawberry.ID) -> bool:
        return get_catalog_from(info).delete_varietal(id)

    @strawberry.mutation
    def add_winery(self, info: Info, input: WineryInput) -> Winery:
        return Winery.from_record(get_catalog_from(info).add_winery(input.to_data()))

    @strawberry.mutation
    def delete_winery(self, info: Info, id: strawberry.ID) -> bool:
        return get_catalog_from(info).delete_winery(id)

    @strawberry.mutation
    def add_wine(self, info: Info, input: WineInput) -> Wine:
        return Wine.from_record(get_catalog_from(info).add_wine(input.to_data()))

    @strawberry.mutation
    def update_wine(self, info: Info, id: strawberry.ID, input: WineUpdateInput) -> Wine:
        return Wine.from_record(get_catalog_from(info).update_wine(id, input.to_changes()))

    @strawberry.mutation
    def delete_wine(self, info: Info, id: strawberry.ID) -> bool:
        return get_catalog_from(info).delete_wine(id)
