"""HTTP API package - FastAPI application, request schemas and routers."""
