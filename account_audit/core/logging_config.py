import logging
from typing import Optional

from account_audit.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for command line runs."""
    level_name = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
    # Engine echo is too noisy for an operator report
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
