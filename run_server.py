import os

import uvicorn

from astroview.config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    setup_logging(level=settings.log_level, job_name="astroview")
    if not settings.satellites_enabled:
        logger.info("ASTRO_N2YO_API_KEY not set; snapshots will carry no satellite passes")

    uvicorn.run(
        "astroview.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
