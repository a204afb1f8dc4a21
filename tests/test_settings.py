"""
Unit Tests for Application Settings Configuration

Tests for:
- Default values for every settings group
- Loading nested settings from ``GROUP__FIELD`` environment variables
- Custom validators (database URL, bitrate, log level)
- Settings caching and clearing
"""

from pathlib import Path

import pytest
from pydantic import SecretStr, ValidationError

from guild_music_bot.config.settings import (
    AudioSettings,
    CacheSettings,
    DiscordSettings,
    Settings,
    SpotifySettings,
    clear_settings_cache,
    get_settings,
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate settings from the developer's environment and .env file."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "DISCORD__TOKEN",
        "DISCORD__COMMAND_PREFIX",
        "CACHE__DATABASE_URL",
        "CACHE__CACHE_DIR",
        "AUDIO__SEARCH_LIMIT",
        "AUDIO__FFMPEG_PATH",
        "SPOTIFY__CLIENT_ID",
        "SPOTIFY__CLIENT_SECRET",
        "LOG_LEVEL",
        "ENVIRONMENT",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield monkeypatch
    clear_settings_cache()


class TestDiscordSettings:
    def test_defaults(self):
        discord = DiscordSettings()

        assert discord.command_prefix == "!"
        assert discord.token.get_secret_value() == ""

    def test_prefix_length_is_bounded(self):
        with pytest.raises(ValidationError):
            DiscordSettings(command_prefix="")
        with pytest.raises(ValidationError):
            DiscordSettings(command_prefix="toolong")

    def test_token_is_hidden_in_repr(self):
        discord = DiscordSettings(token=SecretStr("super-secret"))

        assert "super-secret" not in repr(discord)


class TestCacheSettings:
    def test_defaults(self):
        cache = CacheSettings()

        assert cache.database_url == "sqlite:///data/assets.db"
        assert cache.cache_dir == Path("audio_cache")
        assert cache.scratch_dir == Path("download")

    def test_non_sqlite_url_is_rejected(self):
        with pytest.raises(ValidationError):
            CacheSettings(database_url="postgresql://localhost/db")

    def test_busy_timeout_bounds(self):
        with pytest.raises(ValidationError):
            CacheSettings(busy_timeout_ms=10)


class TestAudioSettings:
    def test_defaults(self):
        audio = AudioSettings()

        assert audio.search_limit == 1
        assert audio.ffmpeg_path is None
        assert audio.opus_bitrate == "128k"

    @pytest.mark.parametrize("bitrate", ["96", "128kbps", "k", "1000k"])
    def test_invalid_bitrate(self, bitrate):
        with pytest.raises(ValidationError):
            AudioSettings(opus_bitrate=bitrate)

    def test_blank_ffmpeg_path_means_default(self):
        assert AudioSettings(ffmpeg_path="  ").ffmpeg_path is None

    def test_search_limit_bounds(self):
        with pytest.raises(ValidationError):
            AudioSettings(search_limit=0)


class TestSpotifySettings:
    def test_disabled_without_credentials(self):
        assert SpotifySettings().enabled is False
        assert SpotifySettings(client_id="id").enabled is False

    def test_enabled_with_both_credentials(self):
        settings = SpotifySettings(client_id="id", client_secret=SecretStr("secret"))

        assert settings.enabled is True


class TestSettingsFromEnvironment:
    def test_nested_values_load_from_env(self, clean_env):
        clean_env.setenv("DISCORD__TOKEN", "abc.def")
        clean_env.setenv("DISCORD__COMMAND_PREFIX", "?")
        clean_env.setenv("AUDIO__SEARCH_LIMIT", "3")
        clean_env.setenv("CACHE__CACHE_DIR", "/var/cache/bot")
        clean_env.setenv("SPOTIFY__CLIENT_ID", "cid")
        clean_env.setenv("SPOTIFY__CLIENT_SECRET", "csecret")

        settings = Settings()

        assert settings.discord.token.get_secret_value() == "abc.def"
        assert settings.discord.command_prefix == "?"
        assert settings.audio.search_limit == 3
        assert settings.cache.cache_dir == Path("/var/cache/bot")
        assert settings.spotify.enabled is True

    def test_log_level_is_normalized(self, clean_env):
        clean_env.setenv("LOG_LEVEL", "debug")

        assert Settings().log_level == "DEBUG"

    def test_invalid_log_level(self, clean_env):
        clean_env.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ValidationError):
            Settings()

    def test_get_settings_is_cached(self, clean_env):
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, clean_env):
        first = get_settings()
        clear_settings_cache()

        assert get_settings() is not first
