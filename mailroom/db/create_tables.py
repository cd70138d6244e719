"""Create the database schema and seed the default settings rows."""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from mailroom.core.config import get_settings
from mailroom.core.log import configure_logging

from .session import Base, get_engine
from . import models  # noqa: F401  # ensure models are imported for metadata

logger = logging.getLogger(__name__)


def create_all() -> None:
    from mailroom.services.settings_service import SettingsService

    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    SettingsService().ensure_defaults()


if __name__ == "__main__":
    configure_logging(get_settings().log_level)
    try:
        create_all()
        logger.info("Database tables created successfully.")
    except SQLAlchemyError as exc:
        raise SystemExit(f"Failed to create tables: {exc}") from exc
