"""
HTTP client for the wine catalog GraphQL service.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from vintner.client.cache import NormalizedCache
from vintner.client.documents import add_typename

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://localhost:4000/graphql"

CACHE_FIRST = "cache-first"
NETWORK_ONLY = "network-only"
FETCH_POLICIES = (CACHE_FIRST, NETWORK_ONLY)


class GraphQLClientError(Exception):
    """
    The server answered with GraphQL errors.

    ``errors`` is the raw list from the response; ``data`` holds any partial
    result that came with it.
    """

    def __init__(self, errors: List[Dict[str, Any]], data: Optional[Dict[str, Any]] = None):
        self.errors = errors
        self.data = data
        message = errors[0].get("message", "GraphQL error") if errors else "GraphQL error"
        super().__init__(message)

    @property
    def codes(self) -> List[str]:
        return [
            (e.get("extensions") or {}).get("code")
            for e in self.errors
            if (e.get("extensions") or {}).get("code")
        ]


class GraphQLClient:
    """
    Sends queries and mutations over HTTP and keeps results in a NormalizedCache.

    Pass ``http`` to reuse an existing ``httpx.Client`` (for example FastAPI's
    TestClient); otherwise the client creates and owns one.
    """

    def __init__(
        self,
        url: str = DEFAULT_URL,
        http: Optional[httpx.Client] = None,
        cache: Optional[NormalizedCache] = None,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.url = url
        self._owns_http = http is None
        self._http = http or httpx.Client(timeout=timeout, headers=headers)
        self.cache = cache if cache is not None else NormalizedCache()

    def execute(
        self,
        document: str,
        variables: Optional[Dict[str, Any]] = None,
        operation_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send a document as-is and return its ``data``. Bypasses the cache.
        """
        payload: Dict[str, Any] = {"query": document, "variables": variables or {}}
        if operation_name:
            payload["operationName"] = operation_name

        response = self._http.post(self.url, json=payload)
        try:
            body = response.json()
        except ValueError:
            response.raise_for_status()
            raise GraphQLClientError([{"message": f"Non-JSON response from {self.url}"}])

        if not isinstance(body, dict):
            response.raise_for_status()
            raise GraphQLClientError([{"message": f"Expected a JSON object from {self.url}"}])
        if body.get("errors"):
            logger.debug("GraphQL errors from %s: %s", self.url, body["errors"])
            raise GraphQLClientError(body["errors"], body.get("data"))
        response.raise_for_status()
        return body.get("data") or {}

    def query(
        self,
        document: str,
        variables: Optional[Dict[str, Any]] = None,
        fetch_policy: str = CACHE_FIRST,
    ) -> Dict[str, Any]:
        if fetch_policy not in FETCH_POLICIES:
            raise ValueError(f"Unknown fetch policy {fetch_policy!r}")

        document = add_typename(document)
        if fetch_policy == CACHE_FIRST:
            cached = self.cache.read_query(document, variables)
            if cached is not None:
                logger.debug("Cache hit for query")
                return cached

        data = self.execute(document, variables)
        self.cache.write_query(document, variables, data)
        return self.cache.read_query(document, variables) or data

    def mutate(
        self,
        document: str,
        variables: Optional[Dict[str, Any]] = None,
        optimistic_response: Optional[Dict[str, Any]] = None,
        update: Optional[Callable[[NormalizedCache, Dict[str, Any]], None]] = None,
    ) -> Dict[str, Any]:
        """
        Run a mutation and merge the returned objects into the cache.

        ``optimistic_response`` (shaped like the expected ``data``, with
        ``__typename`` and ``id`` on each object) is visible to cache reads
        while the request is in flight and is discarded once it completes.
        ``update`` runs after a successful mutation, for cache edits the
        result alone cannot express, such as removing a deleted entity.
        """
        document = add_typename(document)
        layer_id = None
        if optimistic_response is not None:
            layer_id = self.cache.add_optimistic_layer(optimistic_response)

        try:
            data = self.execute(document, variables)
        finally:
            if layer_id is not None:
                self.cache.remove_optimistic_layer(layer_id)

        self.cache.write_result(data)
        if update is not None:
            update(self.cache, data)
        return data

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "GraphQLClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
