"""
Run script for the feed service.

This script starts the FastAPI server for the feed service.
"""

import os
import sys
import logging
from service.app import start

# Configure logging
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

if __name__ == "__main__":
    if "CATALOG_BASE_URL" not in os.environ:
        print("WARNING: CATALOG_BASE_URL not set, using the local default.")
        print("Use: export CATALOG_BASE_URL=https://catalog.example.com/api/douban")

    # Start the API server
    print("Starting feed service API...")
    start()
