from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from leave_balance.config import Settings

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def setup_logging(settings: Settings) -> None:
    """Configure root logging for a process entry point (API or worker)."""
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
