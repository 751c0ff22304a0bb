"""
API schemas (Pydantic models) for request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


# ============================================================================
# Ride Schemas
# ============================================================================

class RideMetadataResponse(BaseModel):
    """Trip summary reduced from a ride's GPX track."""
    start: datetime
    end: datetime
    trip_time: int  # milliseconds
    point_count: int
    trip_distance: Optional[float] = None
    trip_used_energy: Optional[float] = None
    max_speed: Optional[float] = None
    max_current: Optional[float] = None
    average_speed: Optional[float] = None
    average_speed_when_moving: Optional[float] = None


class RideSummaryResponse(BaseModel):
    """Summary of a ride for listing."""
    id: str
    name: str
    start: str
    trip_time: int
    trip_distance: Optional[float] = None
    max_speed: Optional[float] = None


class RideDetailResponse(BaseModel):
    """Full ride record."""
    id: str
    name: str
    file_id: str
    source: str
    original_filename: Optional[str] = None
    created_at: datetime
    metadata: RideMetadataResponse


# ============================================================================
# Health Schemas
# ============================================================================

class HealthResponse(BaseModel):
    status: str
    data_folder: str
    ride_count: int


# ============================================================================
# Error Schemas
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str
    code: Optional[str] = None
