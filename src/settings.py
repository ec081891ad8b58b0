"""Configuration values sourced from environment variables."""

import os
from typing import Final

LOG_LEVEL: Final[str] = os.getenv(key="LOG_LEVEL", default="INFO")
LOGGER_NAME: Final[str] = os.getenv(key="LOGGER_NAME", default="cassandra-reconciler")
LOG_COLOUR_ENABLED: Final[bool] = bool(
    os.getenv(key="LOG_COLOUR_ENABLED", default="True").upper() == "TRUE"
)

# Worker pool size for a reconcile pass over many objects of one kind.
MAX_CONCURRENCY: Final[int] = int(os.getenv(key="MAX_CONCURRENCY", default="5"))
PASSWORD_LENGTH: Final[int] = int(os.getenv(key="PASSWORD_LENGTH", default="27"))
DEFAULT_PROVIDER_CONFIG: Final[str] = os.getenv(key="DEFAULT_PROVIDER_CONFIG", default="default")
CONNECT_TIMEOUT_SECONDS: Final[float] = float(
    os.getenv(key="CONNECT_TIMEOUT_SECONDS", default="10")
)
