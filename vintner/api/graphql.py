"""
GraphQL endpoint for the wine catalog.

The Strawberry schema is mounted on FastAPI through ``GraphQLRouter``; the
request context carries the process-wide Catalog so resolvers never import
the dependency singletons themselves.

Example query:
    query {
        wines(filter: {color: RED}, sort: {field: PRICE, order: DESC}, limit: 5) {
            items { id name price varietal { name } winery { name country } }
            total
            hasMore
        }
    }
"""

from __future__ import annotations

from typing import Any, Dict

import strawberry
from fastapi import Depends
from strawberry.fastapi import GraphQLRouter

from vintner.core.dependencies import get_catalog
from vintner.domain.catalog import Catalog
from vintner.api.mutations import Mutation
from vintner.api.queries import Query


schema = strawberry.Schema(
    query=Query,
    mutation=Mutation,
)


async def get_context(catalog: Catalog = Depends(get_catalog)) -> Dict[str, Any]:
    return {"catalog": catalog}


def create_graphql_router(graphql_ide: bool = True) -> GraphQLRouter:
    """
    Create the GraphQL router for FastAPI.

    GET /graphql serves the GraphiQL IDE unless ``graphql_ide`` is False.
    """
    return GraphQLRouter(
        schema,
        context_getter=get_context,
        graphql_ide="graphiql" if graphql_ide else None,
    )
