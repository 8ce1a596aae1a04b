import importlib
from unittest.mock import patch

import config


class TestConfig:
    """Test configuration loading"""

    def test_dotenv_is_loaded_on_import(self, monkeypatch):
        """Test importing config loads .env before reading the environment"""
        monkeypatch.setenv("MAX_PAGE_LIMIT", "25")
        try:
            with patch("dotenv.load_dotenv") as load:
                reloaded = importlib.reload(config)
            load.assert_called_once_with()
            assert reloaded.MAX_PAGE_LIMIT == 25
        finally:
            monkeypatch.undo()
            importlib.reload(config)

    def test_cors_origins_are_split_and_trimmed(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, ,https://b.example ")
        try:
            assert importlib.reload(config).CORS_ORIGINS == ["https://a.example", "https://b.example"]
        finally:
            monkeypatch.undo()
            importlib.reload(config)
