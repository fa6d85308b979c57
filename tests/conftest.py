"""
Pytest configuration for standing system tests.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


# =============================================================================
# VALIDATION ON TEST RUN
# =============================================================================

def pytest_configure(config):
    """
    Validate the built-in and YAML default configs before running tests.

    Bad weights or a broken defaults file surface as collection
    failures instead of scattered assertion errors.
    """
    from world.standing.config import (
        DEFAULT_CONFIG_PATH,
        get_default_config,
        load_config_from_yaml,
    )
    from world.standing.validation import ConfigurationError, validate_config

    try:
        validate_config(get_default_config())
        validate_config(load_config_from_yaml(DEFAULT_CONFIG_PATH))
    except (ConfigurationError, ValueError, FileNotFoundError) as e:
        pytest.fail(f"Config validation failed:\n{e}", pytrace=False)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def default_config():
    """Every test starts and ends on the built-in config."""
    from world.standing.config import reset_config
    reset_config()
    yield
    reset_config()
