"""Core app configuration and database."""

from squadline.core.config import get_settings, settings
from squadline.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
