"""Tests for tagsync.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from tagsync.core.config import (
    CIConfig,
    Config,
    ConfigError,
    ReleaseConfig,
    TokensConfig,
    UpstreamConfig,
    load_config,
    load_config_or_default,
)
from tagsync.core.result import Err, Ok


class TestDefaults:
    def test_upstream_defaults(self) -> None:
        config = UpstreamConfig()
        assert config.url == "https://github.com/astral-sh/uv.git"
        assert config.remote == "upstream"

    def test_release_defaults(self) -> None:
        config = ReleaseConfig()
        assert config.archive_prefix == "uv"
        assert config.bins == ("uv", "uvx")
        assert config.title == "{tag}"
        assert config.draft is False

    def test_tokens_defaults(self) -> None:
        config = TokensConfig()
        assert config.push == "PAT_TOKEN"
        assert config.release == "GITHUB_TOKEN"

    def test_ci_install_unset_by_default(self) -> None:
        assert CIConfig().install is None

    def test_frozen(self) -> None:
        config = Config()
        with pytest.raises(AttributeError):
            config.upstream = UpstreamConfig(url="x")  # type: ignore[misc]


class TestFromDict:
    def test_empty_dict_gives_defaults(self) -> None:
        assert Config.from_dict({}) == Config()

    def test_overrides(self) -> None:
        config = Config.from_dict(
            {
                "upstream": {"url": "https://example.com/up.git", "remote": "up"},
                "origin": {"slug": "me/fork"},
                "git": {"user_name": "bot"},
                "release": {
                    "archive_prefix": "tool",
                    "bins": ["tool"],
                    "notes": "Mirrored build.",
                    "draft": True,
                },
                "tokens": {"push": "MY_PAT"},
                "ci": {"install": "tagsync @ git+https://example.com/tagsync@v1"},
            }
        )
        assert config.upstream.url == "https://example.com/up.git"
        assert config.upstream.remote == "up"
        assert config.origin.remote == "origin"
        assert config.origin.slug == "me/fork"
        assert config.git.user_name == "bot"
        assert config.release.archive_prefix == "tool"
        assert config.release.bins == ("tool",)
        assert config.release.notes == "Mirrored build."
        assert config.release.draft is True
        assert config.tokens.push == "MY_PAT"
        assert config.tokens.release == "GITHUB_TOKEN"
        assert config.ci.install == "tagsync @ git+https://example.com/tagsync@v1"

    def test_empty_bins_rejected(self) -> None:
        with pytest.raises(ValueError, match="bins"):
            Config.from_dict({"release": {"bins": []}})

    def test_non_string_notes_rejected(self) -> None:
        with pytest.raises(ValueError, match="notes"):
            Config.from_dict({"release": {"notes": 3}})


class TestRepoSlug:
    def test_configured_slug_wins(self) -> None:
        config = Config.from_dict({"origin": {"slug": "me/fork"}})
        assert config.repo_slug({"GITHUB_REPOSITORY": "other/repo"}) == "me/fork"

    def test_falls_back_to_runner_env(self) -> None:
        assert Config().repo_slug({"GITHUB_REPOSITORY": "me/fork"}) == "me/fork"

    def test_none_when_unknown(self) -> None:
        assert Config().repo_slug({}) is None


class TestLoadConfig:
    def test_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "tagsync.toml"
        path.write_text('[release]\narchive_prefix = "ruff"\nbins = ["ruff"]\n', encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Ok)
        assert result.value.release.archive_prefix == "ruff"
        assert result.value.release.bins == ("ruff",)

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "nope.toml")

        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigError)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "tagsync.toml"
        path.write_text("[release\n", encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message
        assert result.error.path == path

    def test_invalid_structure(self, tmp_path: Path) -> None:
        path = tmp_path / "tagsync.toml"
        path.write_text("[release]\nbins = []\n", encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Err)
        assert "Invalid config structure" in result.error.message


class TestLoadConfigOrDefault:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        result = load_config_or_default(tmp_path / "tagsync.toml")
        assert result == Ok(Config())

    def test_broken_file_is_still_an_error(self, tmp_path: Path) -> None:
        path = tmp_path / "tagsync.toml"
        path.write_text("not toml at all =", encoding="utf-8")

        assert isinstance(load_config_or_default(path), Err)
