"""GraphQL server configuration settings.

Controls the GraphQL endpoint, query shape limits, pagination and persisted
queries. Environment variables use GRAPHQL_ prefix.
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GraphQLSettings(BaseSettings):
    """GraphQL server configuration.

    Environment variables use GRAPHQL_ prefix.
    Example: GRAPHQL_PATH=/graphql, GRAPHQL_MAX_QUERY_DEPTH=6
    """

    # Endpoint configuration
    path: str = Field(
        default="/graphql",
        min_length=1,
        max_length=255,
        pattern=r"^/.*$",
        description="GraphQL endpoint path",
    )
    introspection_enabled: bool = Field(
        default=True,
        description="Allow __schema/__type queries",
    )

    # Query shape limits
    max_query_depth: int = Field(
        default=6,
        ge=1,
        le=50,
        description="Maximum query nesting depth",
    )
    max_complexity: int = Field(
        default=1000,
        ge=10,
        le=50000,
        description="Maximum weighted query cost",
    )
    list_weight: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Cost of a list or connection field",
    )

    # Pagination defaults
    default_page_size: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Page size used when a client omits limit",
    )
    max_page_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Upper clamp for client supplied limits",
    )

    # Persisted queries
    persisted_queries_enabled: bool = Field(
        default=True,
        description="Accept Apollo automatic persisted query requests",
    )
    persisted_query_ttl: int = Field(
        default=86400,
        ge=60,
        description="Shared-tier TTL for persisted query bodies in seconds",
    )
    persisted_query_local_capacity: int = Field(
        default=1000,
        ge=1,
        le=1_000_000,
        description="Maximum bodies held in the in-process LRU tier",
    )
    persisted_query_verify_hash: bool = Field(
        default=True,
        description="Reject registrations whose body does not hash to the given digest",
    )

    # Response caching
    product_listing_ttl: int = Field(
        default=60,
        ge=0,
        description="TTL in seconds for cached product listing and search pages",
    )

    model_config = SettingsConfigDict(
        env_prefix="GRAPHQL_",
        env_file=".env",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @model_validator(mode="after")
    def validate_page_sizes(self) -> GraphQLSettings:
        """Ensure the default page size never exceeds the clamp."""
        if self.default_page_size > self.max_page_size:
            msg = "default_page_size must be <= max_page_size"
            raise ValueError(msg)
        return self
