"""GraphQL test helpers.

Provides:
- Query and mutation documents shared by the resolver tests
- ``error_codes`` to read client-visible codes off an execution result
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from marketplace_bff.features.graphql.error_handler import error_code

if TYPE_CHECKING:
    from strawberry.types import ExecutionResult


def error_codes(result: ExecutionResult) -> list[str]:
    return [error_code(error) for error in result.errors or []]


PRODUCT_QUERY = """
    query Product($id: ID!) {
        product(id: $id) {
            id
            name
            price
            averageRating
            reviewCount
            seller { id name email }
        }
    }
"""

PRODUCTS_QUERY = """
    query Products($filter: ProductFilterInput, $limit: Int, $after: String) {
        products(filter: $filter, limit: $limit, after: $after) {
            totalCount
            edges { cursor node { id seller { name } } }
            pageInfo { hasNextPage hasPreviousPage endCursor }
        }
    }
"""

SEARCH_QUERY = """
    query Search($q: String!, $after: String) {
        searchProducts(q: $q, after: $after) {
            totalCount
            edges { node { id } }
        }
    }
"""

ORDER_QUERY = """
    query Order($id: ID!) {
        order(id: $id) {
            id
            status
            total
            customer { id }
            items { quantity subtotal product { name } }
        }
    }
"""

CREATE_PRODUCT = """
    mutation Create($input: ProductInput!) {
        createProduct(input: $input) { id name price stock isActive seller { id } }
    }
"""

UPDATE_PRODUCT = """
    mutation Update($id: ID!, $input: ProductUpdateInput!) {
        updateProduct(id: $id, input: $input) { id name price description }
    }
"""

CREATE_ORDER = """
    mutation Order($input: OrderInput!) {
        createOrder(input: $input) {
            id
            status
            total
            items { quantity unitPrice product { id stock } }
        }
    }
"""
