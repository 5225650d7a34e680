"""
Settings store for flags that must survive a host restart.
"""

import json
import logging
from contextlib import AbstractContextManager
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from wslstack.models.database import Setting
from wslstack.utils.db_session import get_db_session

logger = logging.getLogger(__name__)

WSL_SETUP_DONE_KEY = "isWslSetupDone"

SessionFactory = Callable[[], AbstractContextManager[Session]]


class SettingsStore:
    """Key/value settings persisted as JSON in the settings table"""

    def __init__(self, db_session_factory: Optional[SessionFactory] = None) -> None:
        self.db_session_factory = db_session_factory or get_db_session

    def get(self, key: str, default: Any = None) -> Any:
        with self.db_session_factory() as db:
            setting = db.query(Setting).filter(Setting.key == key).first()
            if setting is None:
                return default
            try:
                return json.loads(setting.value)
            except ValueError:
                logger.warning(f"Setting {key} holds invalid JSON, returning raw value")
                return setting.value

    def set(self, key: str, value: Any) -> None:
        encoded = json.dumps(value)
        with self.db_session_factory() as db:
            setting = db.query(Setting).filter(Setting.key == key).first()
            if setting is None:
                db.add(Setting(key=key, value=encoded))
            else:
                setting.value = encoded
        logger.debug(f"Stored setting {key}")

    def has(self, key: str) -> bool:
        with self.db_session_factory() as db:
            return db.query(Setting).filter(Setting.key == key).first() is not None

    def delete(self, key: str) -> bool:
        """Remove a setting. Returns False if it did not exist."""
        with self.db_session_factory() as db:
            setting = db.query(Setting).filter(Setting.key == key).first()
            if setting is None:
                return False
            db.delete(setting)
        logger.debug(f"Deleted setting {key}")
        return True
