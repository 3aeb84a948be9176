"""
pytest configuration and fixtures for the message decoding tests.

Provides reusable fixtures for:
- Field type registry and sample catalogs
- Writing schema/message files into a temporary directory
- Hypothesis property-based testing configuration
"""

import os
import sys
from pathlib import Path

import pytest
from hypothesis import settings, Verbosity, Phase

# Add tools to path
sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

from decode_log import set_verbose
from field_types import FieldTypeRegistry
from schema_catalog import SchemaCatalog

# Default profile: balanced speed and coverage
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
)

# CI profile: more thorough testing
settings.register_profile(
    "ci",
    max_examples=500,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)

# Dev profile: fast iteration
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
)

# Debug profile: verbose output
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)

settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "default"))


SAMPLE_DEFINITIONS = [
    "# id;name;fields...",
    "1;Login;user:string;ok:bool",
    "2;Reading;sensor:int;value:double;at:ts",
    "3;Status;code:int",
]


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep [INFO] output off between tests."""
    set_verbose(False)
    yield
    set_verbose(False)


@pytest.fixture
def registry():
    return FieldTypeRegistry()


@pytest.fixture
def sample_catalog(registry):
    return SchemaCatalog.build(SAMPLE_DEFINITIONS, registry)


@pytest.fixture
def write_file(tmp_path):
    """
    Write text into tmp_path and return the path.

    Usage:
        def test_x(write_file):
            path = write_file('defs.schema', '1;A;x:int\\n')
    """
    def _write(name, text):
        path = tmp_path / name
        path.write_text(text, encoding='utf-8')
        return path
    return _write


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that run the command line end to end"
    )
