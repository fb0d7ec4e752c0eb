"""Root query and mutation resolvers."""
