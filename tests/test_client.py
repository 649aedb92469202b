import httpx
import pytest
from graphql import parse

from vintner.client.cache import NormalizedCache
from vintner.client.documents import add_typename
from vintner.client.graphql_client import GraphQLClient, GraphQLClientError

WINE_QUERY = '{ wine(id: "wine-1") { id name isFavorite varietal { id name } } }'
FAVORITE_MUTATION = """
mutation ($id: ID!, $favorite: Boolean!) {
  setFavorite(wineId: $id, favorite: $favorite) { id isFavorite }
}
"""


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def test_add_typename_skips_operation_root():
    document = add_typename(WINE_QUERY)

    root = parse(document).definitions[0].selection_set.selections
    assert [s.name.value for s in root] == ["wine"]
    assert document.count("__typename") == 2


def test_add_typename_covers_fragments_once():
    document = add_typename("""
    query {
      wines { items { ...WineFields ... on Wine { price } } }
      wine(id: "wine-1") { __typename id }
    }
    fragment WineFields on Wine { id name }
    """)

    # wines (WinePage), items (Wine), wine (already present), fragment
    assert document.count("__typename") == 4


def test_add_typename_is_idempotent():
    once = add_typename(WINE_QUERY)

    assert add_typename(once) == once


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


def test_identify():
    assert NormalizedCache.identify({"__typename": "Wine", "id": "wine-1"}) == "Wine:wine-1"
    assert NormalizedCache.identify({"__typename": "WinePage", "total": 3}) is None
    assert NormalizedCache.identify("wine-1") is None


def test_entities_are_shared_across_queries():
    cache = NormalizedCache()
    cache.write_query("q1", None, {"wine": {"__typename": "Wine", "id": "wine-1", "name": "Artemis"}})
    cache.write_query("q2", {"limit": 1}, {
        "wines": {"__typename": "WinePage", "items": [
            {"__typename": "Wine", "id": "wine-1", "price": 65.0},
        ]},
    })

    cache.write_result({"setFavorite": {"__typename": "Wine", "id": "wine-1", "isFavorite": True}})

    assert cache.read_query("q1")["wine"] == {
        "__typename": "Wine", "id": "wine-1", "name": "Artemis", "price": 65.0, "isFavorite": True,
    }
    assert cache.read_query("q2", {"limit": 1})["wines"]["items"][0]["isFavorite"] is True
    assert cache.read_query("q2", {"limit": 2}) is None
    assert len(cache) == 1


def test_nested_objects_become_references():
    cache = NormalizedCache()
    cache.write_query("q", None, {"wine": {
        "__typename": "Wine", "id": "wine-1",
        "varietal": {"__typename": "Varietal", "id": "varietal-1", "name": "Cabernet Sauvignon"},
    }})

    assert cache.extract()["Wine:wine-1"]["varietal"] == {"__ref": "Varietal:varietal-1"}
    assert cache.read("Wine:wine-1")["varietal"]["name"] == "Cabernet Sauvignon"


def test_cyclic_references_terminate():
    cache = NormalizedCache()
    cache.write_result({"varietal": {
        "__typename": "Varietal", "id": "varietal-1",
        "wines": [{
            "__typename": "Wine", "id": "wine-1",
            "varietal": {"__typename": "Varietal", "id": "varietal-1"},
        }],
    }})

    varietal = cache.read("Varietal:varietal-1")

    inner = varietal["wines"][0]["varietal"]
    assert inner == {"__typename": "Varietal", "id": "varietal-1"}


def test_cached_query_misses_after_eviction_or_lost_field():
    cache = NormalizedCache()
    cache.write_query("q", None, {"wine": {
        "__typename": "Wine", "id": "wine-1", "name": "Artemis",
        "varietal": {"__typename": "Varietal", "id": "varietal-1", "name": "Cabernet Sauvignon"},
    }})
    assert cache.read_query("q") is not None

    cache.evict("Varietal:varietal-1")
    assert cache.read_query("q") is None

    cache.write_entity("Varietal:varietal-1", {"__typename": "Varietal", "id": "varietal-1"})
    assert cache.read_query("q") is None

    cache.write_entity("Varietal:varietal-1", {"name": "Cabernet Sauvignon"})
    assert cache.read_query("q")["wine"]["varietal"]["name"] == "Cabernet Sauvignon"


def test_optimistic_layer_overlays_and_rolls_back():
    cache = NormalizedCache()
    cache.write_result({"__typename": "Wine", "id": "wine-1", "isFavorite": False})

    layer = cache.add_optimistic_layer({"__typename": "Wine", "id": "wine-1", "isFavorite": True})
    assert cache.read("Wine:wine-1")["isFavorite"] is True
    assert cache.extract()["Wine:wine-1"]["isFavorite"] is False

    cache.remove_optimistic_layer(layer)
    assert cache.read("Wine:wine-1")["isFavorite"] is False
    assert cache.has_optimistic_layers is False


# ---------------------------------------------------------------------------
# Client against the running app
# ---------------------------------------------------------------------------


@pytest.fixture
def graphql_client(client):
    return GraphQLClient(url="/graphql", http=client)


def test_query_is_served_from_cache_until_network_only(graphql_client, client):
    first = graphql_client.query(WINE_QUERY)
    assert first["wine"]["isFavorite"] is False
    assert first["wine"]["varietal"]["name"] == "Cabernet Sauvignon"
    assert set(graphql_client.cache.keys()) == {"Wine:wine-1", "Varietal:varietal-1"}

    # change server state behind the client's back
    client.post("/graphql", json={"query": 'mutation { setFavorite(wineId: "wine-1") { id } }'})

    assert graphql_client.query(WINE_QUERY)["wine"]["isFavorite"] is False
    assert graphql_client.query(WINE_QUERY, fetch_policy="network-only")["wine"]["isFavorite"] is True


def test_evicted_entity_is_refetched(graphql_client, client):
    graphql_client.query(WINE_QUERY)
    client.post("/graphql", json={"query": 'mutation { setFavorite(wineId: "wine-1") { id } }'})

    graphql_client.cache.evict("Wine:wine-1")
    wine = graphql_client.query(WINE_QUERY)["wine"]

    assert wine["name"] == "Artemis Cabernet Sauvignon"
    assert wine["isFavorite"] is True


def test_mutation_result_updates_cached_queries(graphql_client):
    graphql_client.query(WINE_QUERY)

    data = graphql_client.mutate(FAVORITE_MUTATION, {"id": "wine-1", "favorite": True})

    assert data["setFavorite"] == {"id": "wine-1", "isFavorite": True, "__typename": "Wine"}
    assert graphql_client.query(WINE_QUERY)["wine"]["isFavorite"] is True


def test_server_errors_raise_client_error(graphql_client):
    with pytest.raises(GraphQLClientError) as exc_info:
        graphql_client.mutate(FAVORITE_MUTATION, {"id": "wine-404", "favorite": True})

    assert str(exc_info.value) == "Wine 'wine-404' not found"
    assert exc_info.value.codes == ["NOT_FOUND"]


def test_update_callback_can_evict_deleted_entities(graphql_client):
    graphql_client.query(WINE_QUERY)

    graphql_client.mutate(
        'mutation { deleteWine(id: "wine-1") }',
        update=lambda cache, data: cache.evict("Wine:wine-1") if data["deleteWine"] else None,
    )

    assert graphql_client.cache.read("Wine:wine-1") is None


def test_unknown_fetch_policy(graphql_client):
    with pytest.raises(ValueError):
        graphql_client.query(WINE_QUERY, fetch_policy="cache-only")


# ---------------------------------------------------------------------------
# Optimistic updates
# ---------------------------------------------------------------------------


def _client_with(handler):
    return GraphQLClient(
        url="http://catalog.test/graphql",
        http=httpx.Client(transport=httpx.MockTransport(handler)),
    )


OPTIMISTIC = {"setFavorite": {"__typename": "Wine", "id": "wine-1", "isFavorite": True}}


def test_optimistic_response_is_replaced_by_server_result():
    seen = {}

    def handler(request):
        seen["during"] = gql_client.cache.read("Wine:wine-1")
        return httpx.Response(200, json={"data": {"setFavorite": {
            "__typename": "Wine", "id": "wine-1", "isFavorite": True, "rating": 5,
        }}})

    gql_client = _client_with(handler)
    gql_client.cache.write_result({"__typename": "Wine", "id": "wine-1", "isFavorite": False})

    gql_client.mutate(FAVORITE_MUTATION, {"id": "wine-1", "favorite": True}, optimistic_response=OPTIMISTIC)

    assert seen["during"]["isFavorite"] is True
    assert gql_client.cache.extract()["Wine:wine-1"] == {
        "__typename": "Wine", "id": "wine-1", "isFavorite": True, "rating": 5,
    }
    assert gql_client.cache.has_optimistic_layers is False


def test_optimistic_response_rolls_back_on_error():
    seen = {}

    def handler(request):
        seen["during"] = gql_client.cache.read("Wine:wine-1")
        return httpx.Response(200, json={"data": None, "errors": [{"message": "boom"}]})

    gql_client = _client_with(handler)
    gql_client.cache.write_result({"__typename": "Wine", "id": "wine-1", "isFavorite": False})

    with pytest.raises(GraphQLClientError, match="boom"):
        gql_client.mutate(FAVORITE_MUTATION, {"id": "wine-1", "favorite": True}, optimistic_response=OPTIMISTIC)

    assert seen["during"]["isFavorite"] is True
    assert gql_client.cache.read("Wine:wine-1")["isFavorite"] is False


def test_non_object_body_raises_client_error():
    gql_client = _client_with(lambda request: httpx.Response(200, json=["not", "graphql"]))

    with pytest.raises(GraphQLClientError, match="JSON object"):
        gql_client.query(WINE_QUERY)


def test_transport_failure_propagates_and_rolls_back():
    def handler(request):
        return httpx.Response(502, text="bad gateway")

    gql_client = _client_with(handler)

    with pytest.raises(httpx.HTTPStatusError):
        gql_client.mutate(FAVORITE_MUTATION, {"id": "wine-1", "favorite": True}, optimistic_response=OPTIMISTIC)

    assert gql_client.cache.read("Wine:wine-1") is None
