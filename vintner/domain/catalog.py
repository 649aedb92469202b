from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar
import logging

from pydantic import BaseModel, ValidationError

from vintner.storage.catalog_store import CatalogStore
from vintner.domain.errors import (
    DuplicateIdentifierError,
    EntityNotFoundError,
    InvalidInputError,
    ReferentialIntegrityError,
)
from vintner.domain.models import (
    CatalogStats,
    ServiceConfig,
    Varietal,
    Winery,
    Wine,
    WineFilter,
    WineList,
    WinePage,
    WineQuery,
)
from vintner.domain.catalog_utils import (
    describe_validation_error,
    match_text,
    next_identifier,
    same_text,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

MIN_RATING = 1
MAX_RATING = 5


def _validate(model: Type[RecordT], data: Dict[str, Any]) -> RecordT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid {model.__name__.lower()}: {describe_validation_error(e)}") from e


class Catalog:
    """
    Read and write operations over the wine catalog.

    Every GraphQL resolver maps onto one method here. Relationships are
    resolved by scanning the wine collection for the foreign key, which is
    plenty fast for a catalog of this size.
    """

    def __init__(self, db: CatalogStore):
        self.db = db

    @property
    def config(self) -> ServiceConfig:
        return self.db.get_config()

    # ------------------------------------------------------------------
    # Varietals
    # ------------------------------------------------------------------

    def list_varietals(self, color: Optional[str] = None) -> List[Varietal]:
        varietals = self.db.list_varietals()
        if color:
            varietals = [v for v in varietals if same_text(v.color, color)]
        return varietals

    def get_varietal(self, varietal_id: str) -> Optional[Varietal]:
        return self.db.get_varietal(varietal_id)

    def wines_for_varietal(self, varietal_id: str) -> List[Wine]:
        return [w for w in self.db.list_wines() if w.varietal_id == varietal_id]

    def add_varietal(self, data: Dict[str, Any]) -> Varietal:
        data = dict(data)
        data["id"] = self._claim_id(
            data.get("id"), "varietal", [v.id for v in self.db.list_varietals()], "Varietal"
        )
        varietal = _validate(Varietal, data)
        self.db.save_varietal(varietal)
        logger.info("Added varietal %s (%s)", varietal.id, varietal.name)
        return varietal

    def delete_varietal(self, varietal_id: str) -> bool:
        self._require_varietal(varietal_id)
        referencing = self.wines_for_varietal(varietal_id)
        if referencing:
            raise ReferentialIntegrityError(
                f"Varietal {varietal_id!r} is still referenced by {len(referencing)} wine(s)"
            )
        self.db.delete_varietal(varietal_id)
        logger.info("Deleted varietal %s", varietal_id)
        return True

    # ------------------------------------------------------------------
    # Wineries
    # ------------------------------------------------------------------

    def list_wineries(self, country: Optional[str] = None, region: Optional[str] = None) -> List[Winery]:
        wineries = self.db.list_wineries()
        if country:
            wineries = [w for w in wineries if same_text(w.country, country)]
        if region:
            wineries = [w for w in wineries if same_text(w.region, region)]
        return wineries

    def get_winery(self, winery_id: str) -> Optional[Winery]:
        return self.db.get_winery(winery_id)

    def wines_for_winery(self, winery_id: str) -> List[Wine]:
        return [w for w in self.db.list_wines() if w.winery_id == winery_id]

    def varietals_for_winery(self, winery_id: str) -> List[Varietal]:
        """
        Distinct varietals the winery produces, in order of first appearance.
        """
        seen: Dict[str, Varietal] = {}
        for wine in self.wines_for_winery(winery_id):
            if wine.varietal_id in seen:
                continue
            varietal = self.db.get_varietal(wine.varietal_id)
            if varietal is not None:
                seen[wine.varietal_id] = varietal
        return list(seen.values())

    def add_winery(self, data: Dict[str, Any]) -> Winery:
        data = dict(data)
        data["id"] = self._claim_id(
            data.get("id"), "winery", [w.id for w in self.db.list_wineries()], "Winery"
        )
        winery = _validate(Winery, data)
        self.db.save_winery(winery)
        logger.info("Added winery %s (%s)", winery.id, winery.name)
        return winery

    def delete_winery(self, winery_id: str) -> bool:
        self._require_winery(winery_id)
        referencing = self.wines_for_winery(winery_id)
        if referencing:
            raise ReferentialIntegrityError(
                f"Winery {winery_id!r} is still referenced by {len(referencing)} wine(s)"
            )
        self.db.delete_winery(winery_id)
        logger.info("Deleted winery %s", winery_id)
        return True

    # ------------------------------------------------------------------
    # Wines
    # ------------------------------------------------------------------

    def get_wine(self, wine_id: str) -> Optional[Wine]:
        return self.db.get_wine(wine_id)

    def list_wines(self) -> List[Wine]:
        return self.db.list_wines()

    def find_wines(self, query: Optional[WineQuery] = None) -> WinePage:
        """
        Filter, sort and page the wine collection.

        ``total`` is the number of matches before paging. Sorting is stable,
        so wines that compare equal keep file order; wines without a value for
        the sort field (no vintage, no rating) always come last.
        """
        query = query or WineQuery()
        config = self.db.get_config()

        limit = query.limit if query.limit is not None else config.default_page_size
        if limit < 1 or limit > config.max_page_size:
            raise InvalidInputError(f"limit must be between 1 and {config.max_page_size}")
        if query.offset < 0:
            raise InvalidInputError("offset must not be negative")

        matches = [w for w in self.db.list_wines() if self._wine_matches(w, query.filter)]
        matches = self._sort_wines(matches, query.sort_by, query.order)

        return WinePage(
            items=matches[query.offset:query.offset + limit],
            total=len(matches),
            offset=query.offset,
            limit=limit,
        )

    def favorite_wines(self) -> List[Wine]:
        return [w for w in self.db.list_wines() if w.is_favorite]

    def add_wine(self, data: Dict[str, Any]) -> Wine:
        data = dict(data)
        data["id"] = self._claim_id(data.get("id"), "wine", [w.id for w in self.db.list_wines()], "Wine")
        wine = _validate(Wine, data)
        self._check_wine_references(wine)
        self.db.save_wine(wine)
        logger.info("Added wine %s (%s)", wine.id, wine.name)
        return wine

    def update_wine(self, wine_id: str, changes: Dict[str, Any]) -> Wine:
        """
        Apply a partial update. Keys absent from ``changes`` keep their
        current value; the id itself cannot be changed.
        """
        existing = self._require_wine(wine_id)
        merged = existing.model_dump()
        merged.update({k: v for k, v in changes.items() if k != "id"})
        wine = _validate(Wine, merged)
        self._check_wine_references(wine)
        self.db.save_wine(wine)
        logger.info("Updated wine %s (%s)", wine.id, ", ".join(sorted(changes)) or "no changes")
        return wine

    def delete_wine(self, wine_id: str) -> bool:
        self._require_wine(wine_id)
        for wine_list in self.db.list_wine_lists():
            if wine_id in wine_list.wine_ids:
                updated = wine_list.model_copy(
                    update={"wine_ids": [w for w in wine_list.wine_ids if w != wine_id]}
                )
                self.db.save_wine_list(updated)
        self.db.delete_wine(wine_id)
        logger.info("Deleted wine %s", wine_id)
        return True

    def set_favorite(self, wine_id: str, favorite: bool) -> Wine:
        wine = self._require_wine(wine_id)
        updated = wine.model_copy(update={"is_favorite": bool(favorite)})
        self.db.save_wine(updated)
        logger.info("Set favorite=%s on wine %s", updated.is_favorite, wine_id)
        return updated

    def toggle_favorite(self, wine_id: str) -> Wine:
        wine = self._require_wine(wine_id)
        return self.set_favorite(wine_id, not wine.is_favorite)

    def rate_wine(self, wine_id: str, rating: Optional[int]) -> Wine:
        """
        Set the wine's rating (1 to 5), or clear it with ``None``.
        """
        wine = self._require_wine(wine_id)
        if rating is not None and not MIN_RATING <= rating <= MAX_RATING:
            raise InvalidInputError(f"rating must be between {MIN_RATING} and {MAX_RATING}")
        updated = wine.model_copy(update={"rating": rating})
        self.db.save_wine(updated)
        logger.info("Rated wine %s: %s", wine_id, rating)
        return updated

    # ------------------------------------------------------------------
    # Wine lists
    # ------------------------------------------------------------------

    def list_wine_lists(self) -> List[WineList]:
        return self.db.list_wine_lists()

    def get_wine_list(self, list_id: str) -> Optional[WineList]:
        return self.db.get_wine_list(list_id)

    def wines_in_list(self, list_id: str) -> List[Wine]:
        wine_list = self.db.get_wine_list(list_id)
        if wine_list is None:
            return []
        wines = (self.db.get_wine(wine_id) for wine_id in wine_list.wine_ids)
        return [w for w in wines if w is not None]

    def create_wine_list(
        self,
        name: str,
        description: str = "",
        wine_ids: Optional[Iterable[str]] = None,
        list_id: Optional[str] = None,
    ) -> WineList:
        wine_ids = self._dedupe(wine_ids or [])
        for wine_id in wine_ids:
            if self.db.get_wine(wine_id) is None:
                raise ReferentialIntegrityError(f"Wine {wine_id!r} does not exist")

        new_id = self._claim_id(list_id, "list", [wl.id for wl in self.db.list_wine_lists()], "Wine list")
        wine_list = _validate(
            WineList,
            {"id": new_id, "name": name, "description": description, "wine_ids": wine_ids},
        )
        self.db.save_wine_list(wine_list)
        logger.info("Created wine list %s (%s) with %d wine(s)", wine_list.id, wine_list.name, len(wine_ids))
        return wine_list

    def add_wine_to_list(self, list_id: str, wine_id: str) -> WineList:
        """
        Append a wine to a list. Adding a wine that is already on the list
        leaves the list unchanged.
        """
        wine_list = self._require_wine_list(list_id)
        self._require_wine(wine_id)
        if wine_id in wine_list.wine_ids:
            return wine_list
        updated = wine_list.model_copy(update={"wine_ids": [*wine_list.wine_ids, wine_id]})
        self.db.save_wine_list(updated)
        logger.info("Added wine %s to list %s", wine_id, list_id)
        return updated

    def remove_wine_from_list(self, list_id: str, wine_id: str) -> WineList:
        wine_list = self._require_wine_list(list_id)
        self._require_wine(wine_id)
        if wine_id not in wine_list.wine_ids:
            return wine_list
        updated = wine_list.model_copy(
            update={"wine_ids": [w for w in wine_list.wine_ids if w != wine_id]}
        )
        self.db.save_wine_list(updated)
        logger.info("Removed wine %s from list %s", wine_id, list_id)
        return updated

    def delete_wine_list(self, list_id: str) -> bool:
        self._require_wine_list(list_id)
        self.db.delete_wine_list(list_id)
        logger.info("Deleted wine list %s", list_id)
        return True

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> CatalogStats:
        wines = self.db.list_wines()
        ratings = [w.rating for w in wines if w.rating is not None]
        return CatalogStats(
            varietal_count=len(self.db.list_varietals()),
            winery_count=len(self.db.list_wineries()),
            wine_count=len(wines),
            wine_list_count=len(self.db.list_wine_lists()),
            favorite_count=sum(1 for w in wines if w.is_favorite),
            average_rating=round(sum(ratings) / len(ratings), 2) if ratings else None,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_varietal(self, varietal_id: str) -> Varietal:
        varietal = self.db.get_varietal(varietal_id)
        if varietal is None:
            raise EntityNotFoundError("Varietal", varietal_id)
        return varietal

    def _require_winery(self, winery_id: str) -> Winery:
        winery = self.db.get_winery(winery_id)
        if winery is None:
            raise EntityNotFoundError("Winery", winery_id)
        return winery

    def _require_wine(self, wine_id: str) -> Wine:
        wine = self.db.get_wine(wine_id)
        if wine is None:
            raise EntityNotFoundError("Wine", wine_id)
        return wine

    def _require_wine_list(self, list_id: str) -> WineList:
        wine_list = self.db.get_wine_list(list_id)
        if wine_list is None:
            raise EntityNotFoundError("Wine list", list_id)
        return wine_list

    def _check_wine_references(self, wine: Wine) -> None:
        if self.db.get_varietal(wine.varietal_id) is None:
            raise ReferentialIntegrityError(f"Varietal {wine.varietal_id!r} does not exist")
        if self.db.get_winery(wine.winery_id) is None:
            raise ReferentialIntegrityError(f"Winery {wine.winery_id!r} does not exist")

    @staticmethod
    def _claim_id(requested: Optional[str], prefix: str, existing_ids: List[str], entity: str) -> str:
        if requested:
            if requested in existing_ids:
                raise DuplicateIdentifierError(entity, requested)
            return requested
        return next_identifier(prefix, existing_ids)

    @staticmethod
    def _dedupe(ids: Iterable[str]) -> List[str]:
        seen: Dict[str, None] = {}
        for i in ids:
            seen.setdefault(i, None)
        return list(seen)

    def _wine_matches(self, wine: Wine, flt: WineFilter) -> bool:
        if flt.varietal_id and wine.varietal_id != flt.varietal_id:
            return False
        if flt.winery_id and wine.winery_id != flt.winery_id:
            return False
        if flt.favorites_only and not wine.is_favorite:
            return False
        if flt.min_vintage is not None and (wine.vintage is None or wine.vintage < flt.min_vintage):
            return False
        if flt.max_vintage is not None and (wine.vintage is None or wine.vintage > flt.max_vintage):
            return False
        if flt.min_price is not None and wine.price < flt.min_price:
            return False
        if flt.max_price is not None and wine.price > flt.max_price:
            return False
        if flt.min_rating is not None and (wine.rating is None or wine.rating < flt.min_rating):
            return False
        if flt.search and not (match_text(wine.name, flt.search) or match_text(wine.tasting_notes, flt.search)):
            return False

        if flt.color:
            varietal = self.db.get_varietal(wine.varietal_id)
            if varietal is None or not same_text(varietal.color, flt.color):
                return False
        if flt.country or flt.region:
            winery = self.db.get_winery(wine.winery_id)
            if winery is None:
                return False
            if flt.country and not same_text(winery.country, flt.country):
                return False
            if flt.region and not same_text(winery.region, flt.region):
                return False
        return True

    @staticmethod
    def _sort_wines(wines: List[Wine], sort_by: str, order: str) -> List[Wine]:
        def key(wine: Wine):
            value = getattr(wine, sort_by)
            return value.casefold() if isinstance(value, str) else value

        present = [w for w in wines if getattr(w, sort_by) is not None]
        missing = [w for w in wines if getattr(w, sort_by) is None]
        present.sort(key=key, reverse=(order == "desc"))
        return present + missing
