#!/usr/bin/env python3
import logging
import os

import uvicorn
from agency_reports.app import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create the FastAPI app
app = create_app()


if __name__ == "__main__":
    is_dev_mode = os.getenv("AGENCY_REPORTS_DEV_MODE", "false").lower() == "true"
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))

    logging.getLogger(__name__).info(f"Starting agency reports service on {host}:{port}")
    uvicorn.run("main:app", host=host, port=port, reload=is_dev_mode)
