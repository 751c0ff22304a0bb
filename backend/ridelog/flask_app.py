"""
Ride Log - Flask Backend

Alternative to FastAPI for environments where FastAPI isn't available.
Same API structure, different framework.
"""

import logging
from pathlib import Path
from typing import Optional

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from ridelog.models.ride import Ride
from ridelog.services import ingest
from ridelog.services.errors import (
    AuthenticationError,
    EmptyTrackError,
    IdentityProviderError,
    MetadataError,
    ParseError,
    RideLogError,
)
from ridelog.services.gpx_builder import convert_csv_to_gpx
from ridelog.services.identity import UserIdentity, get_identity_provider
from ridelog.services.ingest import store_upload
from ridelog.services.repository import default_data_folder, get_repository, init_repository


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


GPX_MEDIA_TYPE = "application/gpx+xml"

# Create Flask app
app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = ingest.MAX_UPLOAD_BYTES + 64 * 1024  # multipart overhead


def _build_metadata_dict(ride: Ride) -> dict:
    """Build metadata dict from a Ride."""
    return ride.metadata.to_dict()


def _build_detail_dict(ride: Ride) -> dict:
    return {
        "id": ride.id,
        "name": ride.name,
        "file_id": ride.file_id,
        "source": ride.source.value,
        "original_filename": ride.original_filename,
        "created_at": ride.created_at.isoformat(),
        "metadata": _build_metadata_dict(ride),
    }


def _current_user() -> UserIdentity:
    """Resolve the Authorization: Bearer header to the calling user."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Not authenticated")
    return get_identity_provider().verify(token.strip())


def _read_upload() -> tuple[Optional[bytes], Optional[str]]:
    upload = request.files.get("file")
    if upload is None:
        return None, None
    return upload.read(), upload.filename


# ============================================================================
# Error Handlers
# ============================================================================

@app.errorhandler(RideLogError)
def handle_ride_log_error(exc: RideLogError):
    """Map domain errors to JSON error responses."""
    if isinstance(exc, ParseError):
        status = 400
    elif isinstance(exc, (EmptyTrackError, MetadataError)):
        status = 422
    elif isinstance(exc, AuthenticationError):
        status = 401
    elif isinstance(exc, IdentityProviderError):
        status = 503
    else:
        status = 500

    logger.warning(f"{request.method} {request.path} failed: {exc.code}: {exc}")
    response = jsonify({"detail": str(exc), "code": exc.code})
    response.status_code = status
    if status == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.errorhandler(RequestEntityTooLarge)
def handle_too_large(exc):
    return jsonify({"detail": "File too large"}), 413


@app.after_request
def add_cors_headers(response):
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type, Accept"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, DELETE, OPTIONS"
    return response


# ============================================================================
# Health Endpoints
# ============================================================================

@app.route("/")
def root():
    """Root endpoint - basic health check."""
    return jsonify({
        "name": "Ride Log",
        "version": "0.1.0",
        "status": "running",
    })


@app.route("/health")
def health_check():
    """Health check endpoint."""
    repo = get_repository()
    return jsonify({
        "status": "healthy",
        "data_folder": str(repo.data_folder),
        "ride_count": repo.ride_count,
    })


# ============================================================================
# Conversion Endpoint
# ============================================================================

@app.route("/convert", methods=["POST"])
def convert_csv():
    """Convert a recorder CSV into GPX."""
    content, filename = _read_upload()
    if content is None:
        return jsonify({"detail": "file is required"}), 400
    if len(content) > ingest.MAX_UPLOAD_BYTES:
        return jsonify({"detail": "File too large"}), 413
    if not content.strip():
        return jsonify({"detail": "File is empty"}), 400

    name = Path(filename or "ride").stem or "ride"
    return Response(convert_csv_to_gpx(content, name), mimetype=GPX_MEDIA_TYPE)


# ============================================================================
# Ride Endpoints
# ============================================================================

@app.route("/rides", methods=["POST"])
def upload_ride():
    """Upload a ride log (recorder CSV or GPX)."""
    user = _current_user()

    content, filename = _read_upload()
    if content is None:
        return jsonify({"detail": "file is required"}), 400
    if len(content) > ingest.MAX_UPLOAD_BYTES:
        return jsonify({"detail": "File too large"}), 413
    if not content.strip():
        return jsonify({"detail": "File is empty"}), 400

    ride = store_upload(get_repository(), user.user_id, content, filename, request.form.get("name"))
    return jsonify(_build_detail_dict(ride)), 201


@app.route("/rides", methods=["GET"])
def list_rides():
    """List the caller's rides."""
    user = _current_user()
    summaries = get_repository().list_rides(user.user_id)

    return jsonify([
        {
            "id": s.id,
            "name": s.name,
            "start": s.start,
            "trip_time": s.trip_time,
            "trip_distance": s.trip_distance,
            "max_speed": s.max_speed,
        }
        for s in summaries
    ])


@app.route("/rides/<ride_id>", methods=["GET"])
def get_ride(ride_id: str):
    """Get a ride with its metadata."""
    user = _current_user()
    ride = get_repository().get_ride(user.user_id, ride_id)

    if ride is None:
        return jsonify({"detail": f"Ride not found: {ride_id}"}), 404

    return jsonify(_build_detail_dict(ride))


@app.route("/rides/<ride_id>/gpx", methods=["GET"])
def get_ride_gpx(ride_id: str):
    """Download the stored GPX file of a ride."""
    user = _current_user()
    repo = get_repository()
    ride = repo.get_ride(user.user_id, ride_id)

    if ride is None:
        return jsonify({"detail": f"Ride not found: {ride_id}"}), 404

    gpx = repo.get_gpx(ride)
    if gpx is None:
        return jsonify({"detail": f"GPX file missing for ride: {ride_id}"}), 404

    return Response(gpx, mimetype=GPX_MEDIA_TYPE)


@app.route("/rides/<ride_id>", methods=["DELETE"])
def delete_ride(ride_id: str):
    """Delete a ride and its GPX file."""
    user = _current_user()

    if not get_repository().delete_ride(user.user_id, ride_id):
        return jsonify({"detail": f"Ride not found: {ride_id}"}), 404

    return "", 204


# ============================================================================
# Startup
# ============================================================================

def create_app(data_folder: Optional[Path] = None) -> Flask:
    """Create and configure the Flask app."""
    if data_folder is None:
        data_folder = default_data_folder()

    repo = init_repository(data_folder)
    logger.info(f"Initialized repository with folder: {repo.data_folder}")

    return app


if __name__ == "__main__":
    import sys

    # Allow specifying data folder as argument
    data_folder = Path(sys.argv[1]) if len(sys.argv) > 1 else None

    create_app(data_folder)
    app.run(host="0.0.0.0", port=8000, debug=True)
