"""Tests for configuration loading."""
import pytest

from src.utils import settings


@pytest.fixture(autouse=True)
def reset_env_flag():
    """Let every test load its own .env file."""
    settings._reset_env_loaded()
    yield
    settings._reset_env_loaded()


class TestLoadEnv:
    """Tests for load_env."""

    def test_loads_values_from_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text('# comment\nFORM_TITLE="My Form"\n\nBROKEN LINE\n', encoding="utf-8")
        monkeypatch.delenv("FORM_TITLE", raising=False)

        settings.load_env(str(env_file))

        assert settings.form_title() == "My Form"
        monkeypatch.delenv("FORM_TITLE", raising=False)

    def test_existing_environment_wins(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("DATA_FILE=from_file.json\n", encoding="utf-8")
        monkeypatch.setenv("DATA_FILE", "from_env.json")

        settings.load_env(str(env_file))

        assert settings.data_file() == "from_env.json"


class TestAccessors:
    """Tests for typed accessors."""

    def test_backend_defaults_to_json(self, monkeypatch):
        monkeypatch.delenv("RECORD_STORE", raising=False)
        assert settings.record_store_backend() == "json"

    def test_backend_is_lowercased(self, monkeypatch):
        monkeypatch.setenv("RECORD_STORE", " Supabase ")
        assert settings.record_store_backend() == "supabase"

    def test_base_url_trailing_slash_removed(self, monkeypatch):
        monkeypatch.setenv("BASE_URL", "https://example.org/")
        assert settings.base_url() == "https://example.org"

    def test_limited_event_names_default(self, monkeypatch):
        monkeypatch.delenv("LIMITED_EVENT_NAMES", raising=False)
        assert settings.limited_event_names() == ["TheStage7.0", "Blast Your Stage"]

    def test_limited_event_names_custom(self, monkeypatch):
        monkeypatch.setenv("LIMITED_EVENT_NAMES", "A, B ,,C")
        assert settings.limited_event_names() == ["A", "B", "C"]

    @pytest.mark.parametrize("raw,expected", [("5", 5.0), ("abc", 2.0), ("0", 2.0), ("-3", 2.0)])
    def test_realtime_poll_seconds(self, monkeypatch, raw, expected):
        monkeypatch.setenv("REALTIME_POLL_SECONDS", raw)
        assert settings.realtime_poll_seconds() == expected
