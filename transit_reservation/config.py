"""Environment based configuration for the database connection."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

DB_URL_VAR = "TRANSIT_DB_URL"
DB_ECHO_VAR = "TRANSIT_DB_ECHO"


@dataclass(frozen=True)
class Settings:
    db_url: str
    echo: bool = False


def load_settings(db_url: Optional[str] = None, *, use_dotenv: bool = True) -> Settings:
    """Build :class:`Settings` from ``db_url`` or the environment.

    An explicit ``db_url`` wins over ``TRANSIT_DB_URL``. A ``.env`` file in the
    working directory is read first unless ``use_dotenv`` is false.
    """

    if use_dotenv:
        load_dotenv()
    url = db_url if db_url is not None else os.environ.get(DB_URL_VAR, "")
    if not url or not url.strip():
        raise ConfigurationError(f"Database URL is not configured; set {DB_URL_VAR}")
    echo = os.environ.get(DB_ECHO_VAR, "false").lower() == "true"
    return Settings(db_url=url.strip(), echo=echo)
