from pathlib import Path
from typing import Optional
import os

from vintner.storage.catalog_store import CatalogStore
from vintner.storage.json_catalog_store import JsonCatalogStore
from vintner.domain.catalog import Catalog

DATA_ROOT_ENV_VAR = "VINTNER_DATA_DIR"
_REPO_ROOT = Path(__file__).resolve().parents[2]
_DEFAULT_DATA_DIR = _REPO_ROOT / "data"

_db_manager: Optional[CatalogStore] = None
_catalog: Optional[Catalog] = None


def get_data_dir() -> Path:
    env_path = os.environ.get(DATA_ROOT_ENV_VAR)
    if env_path:
        d = Path(env_path).expanduser()
    else:
        d = _DEFAULT_DATA_DIR
    d.mkdir(parents=True, exist_ok=True)
    return d


def get_db_manager() -> CatalogStore:
    global _db_manager
    if _db_manager is None:
        _db_manager = JsonCatalogStore(get_data_dir())
        _db_manager.initialize()
    return _db_manager


def get_catalog() -> Catalog:
    global _catalog
    if _catalog is None:
        _catalog = Catalog(get_db_manager())
    return _catalog


def reset_catalog() -> None:
    """
    Drop the cached store and catalog so the next access reloads from disk.
    """
    global _db_manager, _catalog
    _db_manager = None
    _catalog = None
