"""
Normalized client-side cache for GraphQL results.

Every object that carries both ``__typename`` and ``id`` is stored once under
``"<Typename>:<id>"``. Fields fetched by different queries are merged into the
same entry, and nested objects are replaced by references. Reading a query
rebuilds its result from the current entity state, so a mutation result that
touches an entity shows up in every cached query referencing it.

Optimistic writes go into separate layers laid over the base entities. A layer
is dropped when its mutation completes, which leaves the base cache exactly as
it was if the mutation failed.
"""

from __future__ import annotations

import itertools
import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Set

from vintner.client.documents import query_key

logger = logging.getLogger(__name__)

REF_KEY = "__ref"

EntityStore = Dict[str, Dict[str, Any]]


class NormalizedCache:
    def __init__(self) -> None:
        self._entities: EntityStore = {}
        self._results: Dict[str, Any] = {}
        self._layers: "OrderedDict[int, EntityStore]" = OrderedDict()
        self._layer_ids = itertools.count(1)

    @staticmethod
    def identify(value: Any) -> Optional[str]:
        """
        Cache key for an object, or None if it cannot be normalized.
        """
        if isinstance(value, dict):
            typename = value.get("__typename")
            ident = value.get("id")
            if typename and ident is not None:
                return f"{typename}:{ident}"
        return None

    # Writes

    def write_query(self, document: str, variables: Optional[Dict[str, Any]], data: Dict[str, Any]) -> None:
        required: Dict[str, Set[str]] = {}
        tree = self._normalize(data, self._entities, required)
        self._results[query_key(document, variables)] = (tree, required)

    def write_result(self, data: Any) -> None:
        """
        Merge every identifiable object in ``data`` into the entity store
        without caching ``data`` as a query result (used for mutations).
        """
        self._normalize(data, self._entities)

    def write_entity(self, key: str, fields: Dict[str, Any]) -> None:
        normalized = {k: self._normalize(v, self._entities) for k, v in fields.items()}
        self._entities.setdefault(key, {}).update(normalized)

    def evict(self, key: str) -> None:
        self._entities.pop(key, None)

    def evict_query(self, document: str, variables: Optional[Dict[str, Any]] = None) -> None:
        self._results.pop(query_key(document, variables), None)

    def clear(self) -> None:
        self._entities.clear()
        self._results.clear()
        self._layers.clear()

    # Optimistic layers

    def add_optimistic_layer(self, data: Any) -> int:
        layer_id = next(self._layer_ids)
        layer: EntityStore = {}
        self._normalize(data, layer)
        self._layers[layer_id] = layer
        logger.debug("Added optimistic layer %d touching %s", layer_id, sorted(layer))
        return layer_id

    def remove_optimistic_layer(self, layer_id: int) -> None:
        self._layers.pop(layer_id, None)

    @property
    def has_optimistic_layers(self) -> bool:
        return bool(self._layers)

    # Reads

    def read_entity(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Current fields of an entity, optimistic layers applied, with nested
        references left unresolved.
        """
        fields: Dict[str, Any] = dict(self._entities.get(key, {}))
        for layer in self._layers.values():
            if key in layer:
                fields.update(layer[key])
        return fields or None

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Entity with nested references resolved.
        """
        if self.read_entity(key) is None:
            return None
        return self._resolve({REF_KEY: key}, set())

    def read_query(self, document: str, variables: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """
        Rebuild a cached query result, or None when it was never cached or an
        entity it relied on has since been evicted or lost a field.
        """
        stored = self._results.get(query_key(document, variables))
        if stored is None:
            return None
        tree, required = stored
        for key, names in required.items():
            fields = self.read_entity(key)
            if fields is None or not names <= fields.keys():
                logger.debug("Cached query is missing data for %s", key)
                return None
        return self._resolve(tree, set())

    def extract(self) -> EntityStore:
        """
        Copy of the base entity store (optimistic layers excluded).
        """
        return {key: dict(fields) for key, fields in self._entities.items()}

    # Internals

    def _normalize(self, value: Any, target: EntityStore, seen: Optional[Dict[str, Set[str]]] = None) -> Any:
        if isinstance(value, list):
            return [self._normalize(item, target, seen) for item in value]
        if isinstance(value, dict):
            fields = {k: self._normalize(v, target, seen) for k, v in value.items()}
            key = self.identify(value)
            if key is None:
                return fields
            target.setdefault(key, {}).update(fields)
            if seen is not None:
                seen.setdefault(key, set()).update(fields)
            return {REF_KEY: key}
        return value

    def _resolve(self, value: Any, path: Set[str]) -> Any:
        if isinstance(value, list):
            return [self._resolve(item, path) for item in value]
        if not isinstance(value, dict):
            return value

        key = value.get(REF_KEY)
        if key is None:
            return {k: self._resolve(v, path) for k, v in value.items()}

        fields = self.read_entity(key)
        if fields is None:
            return None
        if key in path:
            # cyclic selection (wine -> varietal -> wines -> wine): stop at scalars
            return {k: v for k, v in fields.items() if not isinstance(v, (dict, list))}
        path = path | {key}
        return {k: self._resolve(v, path) for k, v in fields.items()}

    def __len__(self) -> int:
        return len(self._entities)

    def keys(self) -> List[str]:
        return list(self._entities)
