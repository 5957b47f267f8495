"""FastAPI application exposing health and similarity job triggers."""

from fastapi import FastAPI

from counsel_ai.api.routes.admin import router as admin_router
from counsel_ai.api.routes.health import router as health_router

app = FastAPI(title="Counsel AI", version="0.1.0")

app.include_router(health_router)
app.include_router(admin_router)
