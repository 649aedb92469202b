"""
Exceptions raised by the storage and catalog layers.

Each error carries a machine-readable ``code``. GraphQL surfaces it as
``extensions.code`` on the error entry, since graphql-core copies the
``extensions`` of the original exception onto the located error.
"""

from __future__ import annotations

from typing import Any, Dict


class CatalogError(ValueError):
    code = "CATALOG_ERROR"

    @property
    def extensions(self) -> Dict[str, Any]:
        return {"code": self.code}


class EntityNotFoundError(CatalogError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id!r} not found")


class ReferentialIntegrityError(CatalogError):
    code = "REFERENTIAL_INTEGRITY"


class DuplicateIdentifierError(CatalogError):
    code = "DUPLICATE_ID"

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id!r} already exists")


class InvalidInputError(CatalogError):
    code = "BAD_USER_INPUT"


class CatalogLoadError(CatalogError):
    code = "LOAD_ERROR"
