from __future__ import annotations

import logging

import uvicorn

from paper_api.config import get_settings
from paper_api.main import app

logger = logging.getLogger("paper_api.server")


def main() -> None:
    settings = get_settings()
    base = f"http://localhost:{settings.port}"
    logger.info("Server running on port %s", settings.port)
    logger.info("Health check: %s/api/health", base)
    logger.info("Paper endpoint: %s/api/paper?doi={DOI}", base)
    logger.info("Metadata endpoint: %s/api/paper/metadata?doi={DOI}", base)
    logger.info("Test endpoint: %s/api/paper/test", base)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)


if __name__ == "__main__":
    main()
