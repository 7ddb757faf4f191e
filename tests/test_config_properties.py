"""
Property-based tests for configuration loading, saving and overrides.

Uses Hypothesis for property-based testing of the JSON configuration file
and the ACME_* environment overrides.
"""

import json
import tempfile
from pathlib import Path

from hypothesis import given, settings
from hypothesis import strategies as st

from acme_ownership.cli import (
    apply_env_overrides,
    create_default_config,
    load_config_from_file,
    save_config_to_file,
)
from acme_ownership.config import (
    DEFAULT_API_BASE_URL,
    ApiConfig,
    LoggingConfig,
    PollingConfig,
    SystemConfig,
)


@st.composite
def api_config_strategy(draw) -> ApiConfig:
    """Generate valid ApiConfig objects (without a token)."""
    host = draw(st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=3, max_size=12))
    return ApiConfig(
        base_url=f"https://{host}.example/api",
        client_id=draw(st.text(alphabet="abcdefghijklmnopqrstuvwxyz-", min_size=1, max_size=20)),
        timeout_seconds=draw(st.floats(min_value=1.0, max_value=120.0)),
        docs_link=f"https://docs.{host}.example/domains",
    )


@st.composite
def polling_config_strategy(draw) -> PollingConfig:
    """Generate valid PollingConfig objects."""
    return PollingConfig(
        interval_seconds=draw(st.floats(min_value=0.1, max_value=60.0)),
        max_attempts=draw(st.integers(min_value=1, max_value=100)),
        max_fetch_failures=draw(st.integers(min_value=0, max_value=10)),
        max_missing_results=draw(st.integers(min_value=0, max_value=20)),
        deadline_seconds=draw(st.one_of(st.none(), st.floats(min_value=1.0, max_value=3600.0))),
    )


@st.composite
def logging_config_strategy(draw) -> LoggingConfig:
    """Generate valid LoggingConfig objects."""
    return LoggingConfig(
        level=draw(st.sampled_from(["debug", "info", "warn", "error"])),
        output_format=draw(st.sampled_from(["json", "text", "both"])),
    )


@st.composite
def system_config_strategy(draw) -> SystemConfig:
    """Generate valid SystemConfig objects."""
    return SystemConfig(
        api=draw(api_config_strategy()),
        polling=draw(polling_config_strategy()),
        logging=draw(logging_config_strategy()),
        language=draw(st.sampled_from(["de", "en"])),
    )


class TestConfigFileProperty:
    """Configuration survives a save and load through the JSON file."""

    @given(config=system_config_strategy())
    @settings(max_examples=100)
    def test_saved_config_loads_back_equal(self, config: SystemConfig) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "config.json"

            assert save_config_to_file(config, path)
            loaded = load_config_from_file(path)

        assert loaded == config

    @given(config=system_config_strategy(), token=st.text(min_size=8, max_size=40))
    @settings(max_examples=50)
    def test_token_is_never_written(self, config: SystemConfig, token: str) -> None:
        config.api.token = token

        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            save_config_to_file(config, path)
            data = json.loads(path.read_text(encoding="utf-8"))
            loaded = load_config_from_file(path)

        assert "token" not in data["api"]
        assert loaded.api.token is None

    def test_missing_file_returns_none(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            assert load_config_from_file(Path(tmp) / "absent.json") is None

    def test_partial_file_uses_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps({"polling": {"max_attempts": 5}}), encoding="utf-8")

            loaded = load_config_from_file(path)

        assert loaded.polling.max_attempts == 5
        assert loaded.polling.interval_seconds == 10.0
        assert loaded.api.base_url == DEFAULT_API_BASE_URL
        assert loaded.language == "en"

    def test_invalid_json_returns_none(self, capsys) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text("{not json", encoding="utf-8")

            assert load_config_from_file(path) is None

        assert "Error loading config" in capsys.readouterr().err

    def test_unsupported_language_returns_none(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps({"language": "fr"}), encoding="utf-8")

            assert load_config_from_file(path) is None


class TestDefaultsProperty:
    """Defaults match the documented polling budget."""

    def test_default_polling_budget(self) -> None:
        config = create_default_config()

        assert config.polling.interval_seconds == 10.0
        assert config.polling.max_attempts == 15
        assert config.polling.max_fetch_failures == 3
        assert config.polling.max_missing_results == 10
        assert config.polling.deadline_seconds is None
        assert config.api.base_url.startswith("https://")
        assert config.logging.level == "warn"

    @given(language=st.sampled_from(["de", "en"]))
    @settings(max_examples=10)
    def test_default_language(self, language: str) -> None:
        assert create_default_config(language=language).language == language


class TestEnvironmentOverridesProperty:
    """ACME_* variables override the file configuration."""

    @given(
        token=st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789", min_size=1, max_size=40),
        client_id=st.text(alphabet="abcdefghijklmnopqrstuvwxyz-", min_size=1, max_size=20),
    )
    @settings(max_examples=50)
    def test_env_overrides(self, token: str, client_id: str) -> None:
        config = apply_env_overrides(create_default_config(), {
            "ACME_API_BASE_URL": " https://override.example/api ",
            "ACME_API_TOKEN": token,
            "ACME_CLIENT_ID": client_id,
            "ACME_LANGUAGE": "DE",
        })

        assert config.api.base_url == "https://override.example/api"
        assert config.api.token == token
        assert config.api.client_id == client_id
        assert config.language == "de"

    def test_empty_environment_changes_nothing(self) -> None:
        assert apply_env_overrides(create_default_config(), {}) == create_default_config()

    def test_unsupported_language_is_ignored(self) -> None:
        config = apply_env_overrides(create_default_config(), {"ACME_LANGUAGE": "fr"})

        assert config.language == "en"
