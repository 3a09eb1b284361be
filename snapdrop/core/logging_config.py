import logging
import sys

from snapdrop.core.config import get_settings

logger = logging.getLogger("snapdrop")


def setup_logging():
    """
    Configures the root logger for the service.
    Call once at startup (app factory or sweeper entry point).
    """
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)
