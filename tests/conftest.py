# tests/conftest.py
import os

import pytest

from pyvider.rpctesting.config import CONFIG_SCHEMA, RPCTestingConfig
from tests.fixtures import *


@pytest.fixture(autouse=True, scope="function")
def reset_rpctesting_config_singleton():
    """
    Reset the RPCTestingConfig singleton and the schema env vars around each test.
    """
    RPCTestingConfig._instance = None

    env_keys_to_clear = list(CONFIG_SCHEMA.keys())
    original_env_values = {key: os.environ.get(key) for key in env_keys_to_clear}

    for key in env_keys_to_clear:
        if key in os.environ:
            del os.environ[key]

    yield

    for key, value in original_env_values.items():
        if value is not None:
            os.environ[key] = value
        elif key in os.environ:
            del os.environ[key]

    RPCTestingConfig._instance = None
