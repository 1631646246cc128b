"""Pytest configuration for unit tests - minimal version."""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Try to load test-specific environment file if it exists
test_env_file = Path(__file__).parent.parent / ".env.test"
if test_env_file.exists():
    load_dotenv(test_env_file)

os.environ.setdefault("ENV", "testing")

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest

from hospital_booking.services.booking.models import Catalog


@pytest.fixture
def catalog(catalog_payload) -> Catalog:
    """Catalog built from the shared payload."""
    return Catalog.from_dict(catalog_payload)
