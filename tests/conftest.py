import shutil
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from vintner.core import dependencies
from vintner.domain.catalog import Catalog
from vintner.storage.json_catalog_store import JsonCatalogStore

SAMPLE_DATA_DIR = Path(__file__).resolve().parents[1] / "data"


@pytest.fixture
def data_dir(tmp_path):
    target = tmp_path / "data"
    shutil.copytree(SAMPLE_DATA_DIR, target)
    return target


@pytest.fixture
def store(data_dir):
    s = JsonCatalogStore(data_dir)
    s.initialize()
    return s


@pytest.fixture
def catalog(store):
    return Catalog(store)


@pytest.fixture
def client(data_dir, monkeypatch):
    monkeypatch.setenv(dependencies.DATA_ROOT_ENV_VAR, str(data_dir))
    dependencies.reset_catalog()

    from vintner.main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client
    dependencies.reset_catalog()


@pytest.fixture
def gql(client):
    def run(query, variables=None):
        response = client.post("/graphql", json={"query": query, "variables": variables or {}})
        assert response.status_code == 200, response.text
        return response.json()

    return run
