"""Entry point: ``python -m tasklist_api`` or the ``tasklist-api`` console script."""

import logging
import sys

from .logging_utils import configure_logging
from .settings import get_settings

logger = logging.getLogger(__name__)


def main() -> None:
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Server is running on http://%s:%s", settings.host, settings.port)
    try:
        uvicorn.run(
            "tasklist_api.main:app",
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Shutdown requested...")
        sys.exit(0)


if __name__ == "__main__":
    main()
