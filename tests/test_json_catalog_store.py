import json

import pytest

from vintner.domain.errors import CatalogLoadError
from vintner.domain.models import ServiceConfig, Varietal, Wine
from vintner.storage.json_catalog_store import JsonCatalogStore


def _write(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")


def _minimal_dir(tmp_path, wines=None, varietals=None, wineries=None):
    _write(tmp_path / "varietals.json", varietals if varietals is not None else [
        {"id": "v1", "name": "Merlot", "color": "red"},
    ])
    _write(tmp_path / "wineries.json", wineries if wineries is not None else [
        {"id": "w1", "name": "Estate", "region": "Bordeaux", "country": "France"},
    ])
    _write(tmp_path / "wines.json", wines if wines is not None else [
        {"id": "x1", "name": "Cuvee", "varietal_id": "v1", "winery_id": "w1", "abv": 13.0, "price": 20},
    ])
    return tmp_path


def test_sample_data_loads_in_file_order(store, data_dir):
    raw = json.loads((data_dir / "varietals.json").read_text(encoding="utf-8"))

    ids = [v.id for v in store.list_varietals()]

    assert ids == [r["id"] for r in raw]
    assert len(ids) == len(set(ids))


def test_every_sample_wine_references_existing_records(store):
    for wine in store.list_wines():
        assert store.get_varietal(wine.varietal_id) is not None
        assert store.get_winery(wine.winery_id) is not None


def test_missing_collection_file_loads_empty(tmp_path):
    _minimal_dir(tmp_path)

    s = JsonCatalogStore(tmp_path)
    s.initialize()

    assert s.list_wine_lists() == []
    assert [w.id for w in s.list_wines()] == ["x1"]


def test_invalid_json_raises_load_error(tmp_path):
    _minimal_dir(tmp_path)
    (tmp_path / "wines.json").write_text("[{not json", encoding="utf-8")

    with pytest.raises(CatalogLoadError, match="wines.json"):
        JsonCatalogStore(tmp_path).initialize()


def test_undecodable_file_raises_load_error(tmp_path):
    _minimal_dir(tmp_path)
    (tmp_path / "wines.json").write_bytes(b'[{"id": "\xff"}]')

    with pytest.raises(CatalogLoadError, match="wines.json"):
        JsonCatalogStore(tmp_path).initialize()


def test_non_array_file_raises_load_error(tmp_path):
    _minimal_dir(tmp_path)
    _write(tmp_path / "varietals.json", {"id": "v1"})

    with pytest.raises(CatalogLoadError, match="JSON array"):
        JsonCatalogStore(tmp_path).initialize()


def test_duplicate_identifier_raises_load_error(tmp_path):
    _minimal_dir(tmp_path, varietals=[
        {"id": "v1", "name": "Merlot", "color": "red"},
        {"id": "v1", "name": "Malbec", "color": "red"},
    ])

    with pytest.raises(CatalogLoadError, match="duplicate id 'v1'"):
        JsonCatalogStore(tmp_path).initialize()


def test_dangling_foreign_key_raises_load_error(tmp_path):
    _minimal_dir(tmp_path, wines=[
        {"id": "x1", "name": "Cuvee", "varietal_id": "missing", "winery_id": "w1", "abv": 13.0, "price": 20},
    ])

    with pytest.raises(CatalogLoadError, match="unknown varietal 'missing'"):
        JsonCatalogStore(tmp_path).initialize()


def test_invalid_record_raises_load_error(tmp_path):
    _minimal_dir(tmp_path, wines=[
        {"id": "x1", "name": "Cuvee", "varietal_id": "v1", "winery_id": "w1", "abv": 13.0, "price": -5},
    ])

    with pytest.raises(CatalogLoadError, match="record #0"):
        JsonCatalogStore(tmp_path).initialize()


def test_color_is_normalized_on_load(tmp_path):
    _minimal_dir(tmp_path, varietals=[{"id": "v1", "name": "Grenache", "color": "Rosé"}])

    s = JsonCatalogStore(tmp_path)
    s.initialize()

    assert s.get_varietal("v1").color == "rose"


def test_config_defaults_are_written_back(tmp_path):
    _minimal_dir(tmp_path)
    _write(tmp_path / "service.json", {"write_back": True})

    s = JsonCatalogStore(tmp_path)
    s.initialize()

    persisted = json.loads((tmp_path / "service.json").read_text(encoding="utf-8"))
    assert persisted["write_back"] is True
    assert persisted["default_page_size"] == ServiceConfig().default_page_size
    assert s.get_config().write_back is True


def test_unparseable_config_falls_back_to_defaults(tmp_path):
    _minimal_dir(tmp_path)
    (tmp_path / "service.json").write_text("nope", encoding="utf-8")

    s = JsonCatalogStore(tmp_path)
    s.initialize()

    assert s.get_config() == ServiceConfig()


def test_save_replaces_in_place_and_appends_new(store):
    original_ids = [w.id for w in store.list_wines()]
    first = store.get_wine(original_ids[0])

    store.save_wine(first.model_copy(update={"name": "Renamed"}))
    store.save_wine(first.model_copy(update={"id": "wine-99"}))

    ids = [w.id for w in store.list_wines()]
    assert ids == original_ids + ["wine-99"]
    assert store.get_wine(original_ids[0]).name == "Renamed"


def test_mutations_stay_in_memory_without_write_back(store, data_dir):
    before = (data_dir / "wines.json").read_text(encoding="utf-8")

    wine = store.get_wine("wine-1")
    store.save_wine(wine.model_copy(update={"is_favorite": True}))

    assert store.get_wine("wine-1").is_favorite is True
    assert (data_dir / "wines.json").read_text(encoding="utf-8") == before


def test_write_back_persists_across_reload(tmp_path):
    _minimal_dir(tmp_path)
    _write(tmp_path / "service.json", {"write_back": True})
    s = JsonCatalogStore(tmp_path)
    s.initialize()

    s.save_varietal(Varietal(id="v2", name="Malbec", color="red"))
    wine = s.get_wine("x1")
    s.save_wine(Wine(**{**wine.model_dump(), "is_favorite": True, "rating": 4}))

    reloaded = JsonCatalogStore(tmp_path)
    reloaded.initialize()
    assert [v.id for v in reloaded.list_varietals()] == ["v1", "v2"]
    assert reloaded.get_wine("x1").is_favorite is True
    assert reloaded.get_wine("x1").rating == 4


def test_delete_unknown_record_raises(store):
    with pytest.raises(ValueError):
        store.delete_wine("nope")
