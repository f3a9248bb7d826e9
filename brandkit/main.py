"""FastAPI application."""

import uvicorn
from fastapi import FastAPI

from brandkit.api.errors import register_error_handlers
from brandkit.api.routes.documents import router as documents_router
from brandkit.api.routes.health import router as health_router
from brandkit.api.routes.metrics import router as metrics_router
from brandkit.api.routes.subjects import router as subjects_router

app = FastAPI(title="Brandkit API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(subjects_router)
app.include_router(documents_router)

register_error_handlers(app)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Brandkit API", "version": "0.1.0"}


def run() -> None:
    """Serve the API with uvicorn."""
    uvicorn.run("brandkit.main:app", host="0.0.0.0", port=8000)
