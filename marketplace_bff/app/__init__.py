"""FastAPI application: factory, lifespan, middleware and routes."""
