import logging
from datetime import date
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

# Load environment variables from .env file
load_dotenv()

from src.route_composer.application import FindRoutes
from src.route_composer.config import RouterSettings, configure_logging
from src.route_composer.exceptions import DataIntegrityError, LocationNotFoundError
from src.route_composer.ports.graph_repository import GraphNotInitializedError
from src.route_composer.schemas.transportation import TransportationType

settings = RouterSettings.from_env()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

router = FindRoutes(settings=settings)

app = FastAPI(title="Transfer Route Search API")

# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Pydantic Schemas (The JSON Contract) ---
# Built with model_validate so @property fields on the dataclasses are read.


class LocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    location_id: str
    name: str
    country: str
    city: str
    location_code: str
    display_order: Optional[int] = None


class RouteSegmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    segment_order: int
    transportation_id: str
    origin_location: LocationResponse
    destination_location: LocationResponse
    transportation_type: TransportationType


class RouteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    segments: List[RouteSegmentResponse]
    total_segments: int  # Captures @property
    has_before_flight_transfer: bool  # Captures @property
    has_after_flight_transfer: bool  # Captures @property


# --- Error mapping ---


@app.exception_handler(LocationNotFoundError)
async def location_not_found_handler(request, exc: LocationNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(GraphNotInitializedError)
async def graph_unavailable_handler(request, exc: GraphNotInitializedError):
    logger.error("Route data unavailable: %s", exc)
    return JSONResponse(status_code=503, content={"detail": "Route data unavailable"})


@app.exception_handler(DataIntegrityError)
async def data_integrity_handler(request, exc: DataIntegrityError):
    logger.error("Route data integrity error: %s", exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# --- API Endpoints ---


@app.get("/api/routes/search", response_model=List[RouteResponse])
def search_routes(
    origin_id: str = Query(..., min_length=1, description="Origin location ID"),
    destination_id: str = Query(..., min_length=1, description="Destination location ID"),
    travel_date: date = Query(..., alias="date", description="Travel date (YYYY-MM-DD)"),
):
    """
    Find all valid routes from origin to destination on a date.

    Route rules:
    - Exactly one flight
    - Optional ground transfer before and after the flight
    - Every segment operates on the date's weekday

    An empty list means no routes were found; it is not an error.
    """
    try:
        routes = router.search(
            origin_id=origin_id,
            destination_id=destination_id,
            travel_date=travel_date,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return [RouteResponse.model_validate(route) for route in routes]


@app.get("/api/locations", response_model=List[LocationResponse])
def list_locations():
    """All locations, ordered by display order then code."""
    return [LocationResponse.model_validate(loc) for loc in router.get_locations()]


@app.get("/api/locations/{location_id}", response_model=LocationResponse)
def get_location(location_id: str):
    return LocationResponse.model_validate(router.get_location(location_id))
