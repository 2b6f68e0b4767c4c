"""HTTP surface: FastAPI application, routes, limiter and metrics."""
