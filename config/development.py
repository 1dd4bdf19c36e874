import os

from .base import *  # noqa: F401,F403
from .base import env_flag

DEBUG = env_flag("DEBUG", "1")

# Development applies schema.sql on startup (CREATE TABLE IF NOT EXISTS).
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
