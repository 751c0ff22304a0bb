#!/usr/bin/env python3
"""
Launch script for Ride Log Backend.

Usage:
    python run_server.py [data_folder] [--port PORT] [--host HOST] [--userinfo-url URL]

Examples:
    python run_server.py                    # Use default ./data folder
    python run_server.py /srv/ridelog       # Use custom folder
    python run_server.py --port 5000        # Run on port 5000
"""

import argparse
import os
import sys
from pathlib import Path

# Add ridelog to path
sys.path.insert(0, str(Path(__file__).parent))


def main():
    parser = argparse.ArgumentParser(description="Ride Log Backend Server")
    parser.add_argument(
        "data_folder",
        nargs="?",
        default=os.getenv("RIDELOG_DATA_FOLDER", "./data"),
        help="Folder for ride records and GPX files (default: ./data)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=8000,
        help="Port to run server on (default: 8000)"
    )
    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for all interfaces)"
    )
    parser.add_argument(
        "--userinfo-url",
        default=os.getenv("RIDELOG_USERINFO_URL"),
        help="Identity provider userinfo endpoint used to verify bearer tokens"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Run in debug mode"
    )

    args = parser.parse_args()

    data_folder = Path(args.data_folder)

    print(f"Ride Log Backend")
    print(f"=" * 40)
    print(f"Data folder: {data_folder.absolute()}")
    print(f"Server: http://{args.host}:{args.port}")
    print(f"=" * 40)

    # Configure for the FastAPI app
    os.environ["RIDELOG_DATA_FOLDER"] = str(data_folder)
    if args.userinfo_url:
        os.environ["RIDELOG_USERINFO_URL"] = args.userinfo_url
    else:
        print("\nWarning: no identity provider configured; /rides endpoints will return 503")
        print("Set RIDELOG_USERINFO_URL or pass --userinfo-url")

    print("\nAPI Endpoints:")
    print("  GET    /                - Health check")
    print("  GET    /health          - Detailed health")
    print("  POST   /convert         - Convert CSV to GPX")
    print("  POST   /rides           - Upload a ride (CSV or GPX)")
    print("  GET    /rides           - List your rides")
    print("  GET    /rides/{id}      - Get ride metadata")
    print("  GET    /rides/{id}/gpx  - Download ride GPX")
    print("  DELETE /rides/{id}      - Delete a ride")
    print("\nStarting server...")

    import uvicorn

    uvicorn.run(
        "ridelog.main:app",
        host=args.host,
        port=args.port,
        reload=args.debug,
        log_level="info",
    )


if __name__ == "__main__":
    main()
