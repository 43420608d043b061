"""
FastAPI main application for Balloon Trajectory Prediction.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import (
    clear_service_cache,
    get_api_config,
    get_http_client,
    get_prediction_config,
    get_terrain_service,
)
from api.routes import elevation, health, predictions, weather
from flightpath.utils.logger import get_logger


api_config = get_api_config()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Handles startup and shutdown events.
    """
    get_prediction_config()
    logger = get_logger()
    logger.section(f"Starting {api_config['title']} v{api_config['version']}")

    service = get_terrain_service()
    logger.info(f"Elevation providers: {', '.join(service.elevation_service.get_available_providers())}")
    if service.weather_service is not None:
        logger.info(f"Weather providers: {', '.join(service.weather_service.get_available_providers())}")

    yield

    logger.info("Shutting down API, closing HTTP client")
    await get_http_client().aclose()
    clear_service_cache()


# Create FastAPI application
app = FastAPI(
    title=api_config['title'],
    version=api_config['version'],
    description=api_config['description'],
    lifespan=lifespan,
)

# Configure CORS
if api_config['cors']['enabled']:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_config['cors']['origins'],
        allow_credentials=api_config['cors']['allow_credentials'],
        allow_methods=api_config['cors']['allow_methods'],
        allow_headers=api_config['cors']['allow_headers'],
    )

# Include routers
app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(predictions.router, prefix="/api/v1", tags=["Predictions"])
app.include_router(weather.router, prefix="/api/v1", tags=["Weather"])
app.include_router(elevation.router, prefix="/api/v1", tags=["Elevation"])


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": api_config['title'],
        "version": api_config['version'],
        "description": api_config['description'],
        "docs": "/docs",
        "health": "/api/v1/health"
    }
