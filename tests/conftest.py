"""Shared fixtures for the CMS admin core tests.

Every test runs against an isolated user configuration directory so nothing
is written to the real home directory.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cms_admin.config import ConfigManager

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@pytest.fixture
def user_config_dir(tmp_path):
    return tmp_path / "user_config"


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, user_config_dir):
    """Point the config manager at a temp directory and reset its singleton."""
    monkeypatch.setenv("CMS_ADMIN_CONFIG_DIR", str(user_config_dir))
    ConfigManager._instance = None
    yield
    ConfigManager._instance = None


@pytest.fixture
def timeline_records():
    return [
        {"id": "A", "order": 1, "year": "2015", "title": "First job", "content": "..."},
        {"id": "B", "order": 2, "year": "2017", "title": "Promotion", "content": "..."},
        {"id": "C", "order": 3, "year": "2019", "title": "New city", "content": "..."},
        {"id": "D", "order": 4, "year": "2021", "title": "Founded", "content": "..."},
    ]
