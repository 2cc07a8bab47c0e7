import json
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from wp_contentful.config import ConfigError, build_path, load_config, require


def test_defaults_are_filled(monkeypatch):
    monkeypatch.delenv("CONTENTFUL_LOCALE", raising=False)
    monkeypatch.delenv("CONTENTFUL_ENV_NAME", raising=False)
    config = load_config({})
    assert config["contentful"]["environment"] == "master"
    assert config["contentful"]["locale"] == "en-US"
    assert config["migration"]["concurrency"] == 8
    assert config["migration"]["api_delay"] == 1.0
    assert config["content_types"]["article_page"] == "articlePage"


def test_environment_variables_fill_missing_keys(monkeypatch):
    monkeypatch.setenv("CONTENTFUL_CMA_TOKEN", "cma-token")
    monkeypatch.setenv("CONTENTFUL_SPACE_ID", "space-1")
    config = load_config({"contentful": {"space_id": "from-file"}})
    assert config["contentful"]["access_token"] == "cma-token"
    assert config["contentful"]["space_id"] == "from-file"


def test_config_file_overrides_dict(tmp_path):
    path = tmp_path / "migration_config.json"
    path.write_text(json.dumps({"migration": {"concurrency": 2}, "content_types": {"author": "person"}}))
    config = load_config({"migration": {"concurrency": 9}}, config_file=str(path))
    assert config["migration"]["concurrency"] == 2
    assert config["content_types"]["author"] == "person"
    assert config["content_types"]["link"] == "link"


def test_require_raises_on_empty_value(monkeypatch):
    monkeypatch.delenv("CONTENTFUL_CMA_TOKEN", raising=False)
    config = load_config({})
    with pytest.raises(ConfigError, match="contentful.access_token"):
        require(config, "contentful", "access_token")
    config["contentful"]["access_token"] = "t"
    assert require(config, "contentful", "access_token") == "t"


def test_build_path():
    config = load_config({"migration": {"build_dir": "out"}})
    assert build_path(config, "posts_created", "done.json") == os.path.join("out", "posts-created", "done.json")
