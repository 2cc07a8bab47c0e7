import os
import sys

import pytest

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from fakes import LOCALE, FakeRecordService
from wp_contentful.config import load_config
from wp_contentful.pipeline import RateGate
from wp_contentful.stages import StageContext
from wp_contentful.utils.errors import configure_reports


@pytest.fixture(autouse=True)
def _no_reports():
    configure_reports(None)
    yield
    configure_reports(None)


@pytest.fixture
def service():
    return FakeRecordService()


@pytest.fixture
def gate():
    return RateGate(0)


@pytest.fixture
def config(tmp_path):
    return load_config(
        {
            "contentful": {"access_token": "token", "space_id": "space", "locale": LOCALE},
            "wordpress": {"api_url": "https://blog.example.com/wp-json/wp/v2"},
            "migration": {
                "build_dir": str(tmp_path / "dist"),
                "report_dir": str(tmp_path / "reports"),
                "api_delay": 0,
                "post_api_delay": 0,
                "concurrency": 3,
                "redirect_base_url": "https://www.example.com",
            },
        }
    )


@pytest.fixture
def ctx(service, config):
    return StageContext(service, config, observer=None)
