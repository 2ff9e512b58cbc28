import logging

from fastapi import FastAPI

from bayesab.core.config import settings
from bayesab.routers import comparisons, health

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
)

# Routers
app.include_router(health.router)
app.include_router(comparisons.router, prefix=settings.API_V1_PREFIX)
