"""
FabLab CLI -- Config Tests

Settings are stored per API URL; environment variables win over the
file and the --api-url flag.
"""

import json
import stat

import pytest

from fablab_cli.config import DEFAULT_API_URL, Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("FABLAB_API_URL", "FABLAB_TOKEN", "FABLAB_DOWNLOAD_DIR"):
        monkeypatch.delenv(name, raising=False)


class TestApiUrl:
    def test_fallback(self, tmp_path):
        assert Config(config_dir=tmp_path).api_url == DEFAULT_API_URL

    def test_flag_override(self, tmp_path):
        assert Config("https://api.example.com/", config_dir=tmp_path).api_url == "https://api.example.com"

    def test_env_beats_flag(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FABLAB_API_URL", "https://env.example.com")
        assert Config("https://flag.example.com", config_dir=tmp_path).api_url == "https://env.example.com"

    def test_default_url_from_file(self, tmp_path):
        (tmp_path / "config.json").write_text(json.dumps({"default_url": "https://saved.example.com/"}))
        assert Config(config_dir=tmp_path).api_url == "https://saved.example.com"

    def test_corrupt_file_ignored(self, tmp_path):
        (tmp_path / "config.json").write_text("{broken")
        assert Config(config_dir=tmp_path).api_url == DEFAULT_API_URL


class TestPerEnvironment:
    def test_token_saved_per_url(self, tmp_path):
        Config("https://a.example.com", config_dir=tmp_path).token = "tok-a"
        assert Config("https://a.example.com", config_dir=tmp_path).token == "tok-a"
        assert Config("https://b.example.com", config_dir=tmp_path).token is None

    def test_token_env_wins(self, tmp_path, monkeypatch):
        Config(config_dir=tmp_path).token = "stored"
        monkeypatch.setenv("FABLAB_TOKEN", "from-env")
        assert Config(config_dir=tmp_path).token == "from-env"

    def test_config_file_private(self, tmp_path):
        Config(config_dir=tmp_path).token = "secret"
        mode = stat.S_IMODE((tmp_path / "config.json").stat().st_mode)
        assert mode == 0o600

    def test_kind_default_and_set(self, tmp_path):
        config = Config(config_dir=tmp_path)
        assert config.kind == "rag_multimodal"
        config.kind = "notebook"
        assert Config(config_dir=tmp_path).kind == "notebook"

    def test_unknown_kind_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            Config(config_dir=tmp_path).kind = "slides"

    def test_default_notebook(self, tmp_path):
        config = Config(config_dir=tmp_path)
        assert config.default_notebook_id is None
        config.default_notebook_id = 42
        assert Config(config_dir=tmp_path).default_notebook_id == 42


class TestEnvironments:
    def test_list_marks_current(self, tmp_path):
        Config("https://a.example.com", config_dir=tmp_path).token = "a"
        Config("https://b.example.com", config_dir=tmp_path).default_notebook_id = 3

        envs = Config("https://b.example.com", config_dir=tmp_path).list_environments()
        by_url = {e["url"]: e for e in envs}
        assert not by_url["https://a.example.com"]["is_current"]
        assert by_url["https://b.example.com"]["is_current"]
        assert by_url["https://b.example.com"]["notebook"] == 3

    def test_clear_environment(self, tmp_path):
        config = Config("https://a.example.com", config_dir=tmp_path)
        config.token = "a"
        config.clear_environment()
        assert Config("https://a.example.com", config_dir=tmp_path).token is None
        assert config.list_environments() == []


class TestPaths:
    def test_download_dir_default(self, tmp_path):
        assert str(Config(config_dir=tmp_path).download_dir) == "."

    def test_download_dir_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FABLAB_DOWNLOAD_DIR", str(tmp_path / "out"))
        assert Config(config_dir=tmp_path).download_dir == tmp_path / "out"

    def test_drafts_file_beside_config(self, tmp_path):
        assert Config(config_dir=tmp_path).drafts_file == tmp_path / "drafts.json"
