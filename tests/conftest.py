"""Test configuration and fixtures."""

import os

# Must be set before the application context loads config.yaml
os.environ["APP_ENVIRONMENT"] = "test"
os.environ["LOG_FILE"] = ""
os.environ["REDIS_ENABLED"] = "false"

from tests.fixtures import *  # noqa: E402,F401,F403
