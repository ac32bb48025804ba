"""HTTP API: FastAPI app and in-memory job store."""
