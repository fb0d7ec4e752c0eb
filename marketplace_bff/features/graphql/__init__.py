"""GraphQL layer: schema, request context, loaders and the HTTP route."""
