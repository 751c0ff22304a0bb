"""
API routes for rides and CSV conversion.
"""

import os
import re
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status

from ridelog.api.auth import get_current_user
from ridelog.api.schemas import (
    ErrorResponse,
    RideDetailResponse,
    RideMetadataResponse,
    RideSummaryResponse,
)
from ridelog.models.ride import Ride, RideMetadata
from ridelog.services import ingest
from ridelog.services.gpx_builder import convert_csv_to_gpx
from ridelog.services.identity import UserIdentity
from ridelog.services.ingest import store_upload
from ridelog.services.repository import get_repository


GPX_MEDIA_TYPE = "application/gpx+xml"

UPLOAD_ERRORS = {
    400: {"model": ErrorResponse, "description": "Malformed CSV or GPX"},
    413: {"model": ErrorResponse, "description": "Upload too large"},
}


def _safe_filename(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("._") or "ride"


async def _read_upload(file: UploadFile) -> bytes:
    content = await file.read()
    if len(content) > ingest.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {ingest.MAX_UPLOAD_BYTES // (1024 * 1024)}MB.",
        )
    if not content.strip():
        raise HTTPException(status_code=400, detail="File is empty")
    return content


def _build_metadata_response(metadata: RideMetadata) -> RideMetadataResponse:
    return RideMetadataResponse(
        start=metadata.start,
        end=metadata.end,
        trip_time=metadata.trip_time,
        point_count=metadata.point_count,
        trip_distance=metadata.trip_distance,
        trip_used_energy=metadata.trip_used_energy,
        max_speed=metadata.max_speed,
        max_current=metadata.max_current,
        average_speed=metadata.average_speed,
        average_speed_when_moving=metadata.average_speed_when_moving,
    )


def _build_detail_response(ride: Ride) -> RideDetailResponse:
    return RideDetailResponse(
        id=ride.id,
        name=ride.name,
        file_id=ride.file_id,
        source=ride.source.value,
        original_filename=ride.original_filename,
        created_at=ride.created_at,
        metadata=_build_metadata_response(ride.metadata),
    )


def _ride_or_404(user: UserIdentity, ride_id: str) -> Ride:
    ride = get_repository().get_ride(user.user_id, ride_id)
    if ride is None:
        raise HTTPException(status_code=404, detail=f"Ride not found: {ride_id}")
    return ride


# ============================================================================
# Conversion Routes
# ============================================================================

convert_router = APIRouter(prefix="/convert", tags=["convert"])


@convert_router.post("", response_class=Response, responses=UPLOAD_ERRORS)
async def convert_csv(file: UploadFile = File(...)):
    """
    Convert a recorder CSV into GPX.

    The response body is the GPX document; nothing is stored.
    """
    content = await _read_upload(file)
    name = os.path.splitext(file.filename or "ride")[0] or "ride"
    gpx = convert_csv_to_gpx(content, name)
    return Response(
        content=gpx,
        media_type=GPX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{_safe_filename(name)}.gpx"'},
    )


# ============================================================================
# Ride Routes
# ============================================================================

router = APIRouter(prefix="/rides", tags=["rides"])


@router.post(
    "",
    response_model=RideDetailResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        **UPLOAD_ERRORS,
        401: {"model": ErrorResponse, "description": "Missing or rejected bearer token"},
        422: {"model": ErrorResponse, "description": "Empty track or missing required fields"},
    },
)
async def upload_ride(
    file: UploadFile = File(...),
    name: Optional[str] = Form(None),
    user: UserIdentity = Depends(get_current_user),
):
    """
    Upload a ride log (recorder CSV or GPX).

    CSV logs are converted to GPX first. The GPX file is stored and the
    ride's metadata is computed from it.
    """
    content = await _read_upload(file)
    ride = store_upload(get_repository(), user.user_id, content, file.filename, name)
    return _build_detail_response(ride)


@router.get("", response_model=list[RideSummaryResponse])
async def list_rides(user: UserIdentity = Depends(get_current_user)):
    """
    List the caller's rides.

    Returns summaries sorted by start time (newest first).
    """
    return [
        RideSummaryResponse(
            id=s.id,
            name=s.name,
            start=s.start,
            trip_time=s.trip_time,
            trip_distance=s.trip_distance,
            max_speed=s.max_speed,
        )
        for s in get_repository().list_rides(user.user_id)
    ]


@router.get("/{ride_id}", response_model=RideDetailResponse)
async def get_ride(ride_id: str, user: UserIdentity = Depends(get_current_user)):
    """Get a ride with its metadata."""
    return _build_detail_response(_ride_or_404(user, ride_id))


@router.get("/{ride_id}/gpx", response_class=Response)
async def get_ride_gpx(ride_id: str, user: UserIdentity = Depends(get_current_user)):
    """Download the stored GPX file of a ride."""
    ride = _ride_or_404(user, ride_id)
    gpx = get_repository().get_gpx(ride)
    if gpx is None:
        raise HTTPException(status_code=404, detail=f"GPX file missing for ride: {ride_id}")
    return Response(
        content=gpx,
        media_type=GPX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{ride.id}.gpx"'},
    )


@router.delete("/{ride_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ride(ride_id: str, user: UserIdentity = Depends(get_current_user)):
    """Delete a ride and its GPX file."""
    if not get_repository().delete_ride(user.user_id, ride_id):
        raise HTTPException(status_code=404, detail=f"Ride not found: {ride_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
