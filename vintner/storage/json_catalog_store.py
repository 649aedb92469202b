import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from vintner.domain.errors import CatalogLoadError
from vintner.domain.models import (
    ServiceConfig,
    Varietal,
    Winery,
    Wine,
    WineList,
)
from vintner.storage.catalog_store import CatalogStore

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

CONFIG_FILE = "service.json"
VARIETALS_FILE = "varietals.json"
WINERIES_FILE = "wineries.json"
WINES_FILE = "wines.json"
WINE_LISTS_FILE = "lists.json"


class JsonCatalogStore(CatalogStore):
    def __init__(self, data_dir: Path):
        self._data_dir = data_dir
        self._config: Optional[ServiceConfig] = None

        # dicts keep insertion order, which is file order after loading
        self._varietals: Dict[str, Varietal] = {}
        self._wineries: Dict[str, Winery] = {}
        self._wines: Dict[str, Wine] = {}
        self._wine_lists: Dict[str, WineList] = {}

        if not self._data_dir.exists():
            self._data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def initialize(self) -> None:
        self._load_config()
        self._varietals = self._load_collection(VARIETALS_FILE, Varietal)
        self._wineries = self._load_collection(WINERIES_FILE, Winery)
        self._wines = self._load_collection(WINES_FILE, Wine)
        self._wine_lists = self._load_collection(WINE_LISTS_FILE, WineList)
        self._check_references()

        logger.info(
            "Loaded catalog from %s: %d varietals, %d wineries, %d wines, %d lists",
            self._data_dir,
            len(self._varietals),
            len(self._wineries),
            len(self._wines),
            len(self._wine_lists),
        )

    def get_config(self) -> ServiceConfig:
        if self._config is None:
            return self._load_config()
        return self._config

    def save_config(self, config: ServiceConfig) -> None:
        self._config = config
        config_path = self._data_dir / CONFIG_FILE
        config_path.write_text(config.model_dump_json(indent=2), encoding="utf-8")

    # Varietals

    def list_varietals(self) -> List[Varietal]:
        return list(self._varietals.values())

    def get_varietal(self, varietal_id: str) -> Optional[Varietal]:
        return self._varietals.get(varietal_id)

    def save_varietal(self, varietal: Varietal) -> None:
        self._varietals[varietal.id] = varietal
        self._write_back(VARIETALS_FILE, self._varietals)

    def delete_varietal(self, varietal_id: str) -> None:
        if varietal_id not in self._varietals:
            raise ValueError(f"Varietal {varietal_id} not found")
        del self._varietals[varietal_id]
        self._write_back(VARIETALS_FILE, self._varietals)

    # Wineries

    def list_wineries(self) -> List[Winery]:
        return list(self._wineries.values())

    def get_winery(self, winery_id: str) -> Optional[Winery]:
        return self._wineries.get(winery_id)

    def save_winery(self, winery: Winery) -> None:
        self._wineries[winery.id] = winery
        self._write_back(WINERIES_FILE, self._wineries)

    def delete_winery(self, winery_id: str) -> None:
        if winery_id not in self._wineries:
            raise ValueError(f"Winery {winery_id} not found")
        del self._wineries[winery_id]
        self._write_back(WINERIES_FILE, self._wineries)

    # Wines

    def list_wines(self) -> List[Wine]:
        return list(self._wines.values())

    def get_wine(self, wine_id: str) -> Optional[Wine]:
        return self._wines.get(wine_id)

    def save_wine(self, wine: Wine) -> None:
        self._wines[wine.id] = wine
        self._write_back(WINES_FILE, self._wines)

    def delete_wine(self, wine_id: str) -> None:
        if wine_id not in self._wines:
            raise ValueError(f"Wine {wine_id} not found")
        del self._wines[wine_id]
        self._write_back(WINES_FILE, self._wines)

    # Wine lists

    def list_wine_lists(self) -> List[WineList]:
        return list(self._wine_lists.values())

    def get_wine_list(self, list_id: str) -> Optional[WineList]:
        return self._wine_lists.get(list_id)

    def save_wine_list(self, wine_list: WineList) -> None:
        self._wine_lists[wine_list.id] = wine_list
        self._write_back(WINE_LISTS_FILE, self._wine_lists)

    def delete_wine_list(self, list_id: str) -> None:
        if list_id not in self._wine_lists:
            raise ValueError(f"Wine list {list_id} not found")
        del self._wine_lists[list_id]
        self._write_back(WINE_LISTS_FILE, self._wine_lists)

    # Loading and persistence

    def _load_config(self) -> ServiceConfig:
        """
        Load service.json, merging with defaults for any missing fields,
        and write it back so any new fields are persisted.
        """
        path = self._data_dir / CONFIG_FILE
        if path.exists():
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
                config = ServiceConfig(**raw)
            except Exception:
                # If parsing fails, fall back to defaults and overwrite file.
                logger.warning("Could not parse %s, using default configuration", path)
                config = ServiceConfig()
        else:
            config = ServiceConfig()

        path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
        self._config = config
        return config

    def _load_collection(self, filename: str, model: Type[RecordT]) -> Dict[str, RecordT]:
        path = self._data_dir / filename
        records: Dict[str, RecordT] = {}
        if not path.exists():
            logger.warning("%s not found in %s, starting with an empty collection", filename, self._data_dir)
            return records

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error("Invalid JSON in %s: %s", path, e)
            raise CatalogLoadError(f"{filename}: invalid JSON ({e})") from e

        if not isinstance(raw, list):
            raise CatalogLoadError(f"{filename}: expected a JSON array of records")

        for position, item in enumerate(raw):
            try:
                record = model.model_validate(item)
            except ValidationError as e:
                logger.error("Invalid record #%d in %s: %s", position, path, e)
                raise CatalogLoadError(f"{filename}: record #{position} is invalid: {e}") from e

            record_id = getattr(record, "id")
            if record_id in records:
                logger.error("Duplicate id %r in %s", record_id, path)
                raise CatalogLoadError(f"{filename}: duplicate id {record_id!r}")
            records[record_id] = record

        return records

    def _check_references(self) -> None:
        for wine in self._wines.values():
            if wine.varietal_id not in self._varietals:
                raise CatalogLoadError(
                    f"{WINES_FILE}: wine {wine.id!r} references unknown varietal {wine.varietal_id!r}"
                )
            if wine.winery_id not in self._wineries:
                raise CatalogLoadError(
                    f"{WINES_FILE}: wine {wine.id!r} references unknown winery {wine.winery_id!r}"
                )
        for wine_list in self._wine_lists.values():
            for wine_id in wine_list.wine_ids:
                if wine_id not in self._wines:
                    raise CatalogLoadError(
                        f"{WINE_LISTS_FILE}: list {wine_list.id!r} references unknown wine {wine_id!r}"
                    )

    def _write_back(self, filename: str, records: Dict[str, BaseModel]) -> None:
        if not self.get_config().write_back:
            return
        path = self._data_dir / filename
        payload = [record.model_dump(mode="json") for record in records.values()]
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        logger.debug("Wrote %d records to %s", len(payload), path)
