"""Typed configuration loading and access.

``tagsync.toml`` is optional; every field has a default matching the
astral-sh/uv fork setup. Example:

    [upstream]
    url = "https://github.com/astral-sh/uv.git"

    [release]
    archive_prefix = "uv"
    bins = ["uv", "uvx"]
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_str, get_str_list, get_table

__all__ = [
    "CONFIG_FILENAME",
    "CIConfig",
    "Config",
    "ConfigError",
    "GitConfig",
    "OriginConfig",
    "ReleaseConfig",
    "TokensConfig",
    "UpstreamConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILENAME = "tagsync.toml"

DEFAULT_UPSTREAM_URL = "https://github.com/astral-sh/uv.git"
DEFAULT_BOT_NAME = "github-actions[bot]"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class UpstreamConfig:
    """The repository whose tags are mirrored."""

    url: str = DEFAULT_UPSTREAM_URL
    remote: str = "upstream"


@dataclass(frozen=True, slots=True)
class OriginConfig:
    """The fork that receives tags and hosts releases.

    ``slug`` (owner/name) is only needed when gh cannot infer the repo from the
    checkout; GITHUB_REPOSITORY is used when it is unset.
    """

    remote: str = "origin"
    slug: str | None = None


@dataclass(frozen=True, slots=True)
class GitConfig:
    user_name: str = DEFAULT_BOT_NAME


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Release object and binary archive settings."""

    title: str = "{tag}"
    notes: str = ""
    draft: bool = False
    archive_prefix: str = "uv"
    bins: tuple[str, ...] = ("uv", "uvx")
    workflow: str = "release.yml"


@dataclass(frozen=True, slots=True)
class TokensConfig:
    """Names of the environment variables holding credentials.

    ``push`` is the privileged token (tag pushes, workflow dispatch);
    ``release`` is the standard automation token (release + uploads).
    """

    push: str = "PAT_TOKEN"
    release: str = "GITHUB_TOKEN"


@dataclass(frozen=True, slots=True)
class CIConfig:
    """How generated workflows install tagsync.

    ``install`` is a pip requirement pinned to a source, e.g.
    ``tagsync @ git+https://github.com/<owner>/tagsync@<rev>``. The workflows
    run in the fork checkout, which does not contain tagsync itself.
    """

    install: str | None = None


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    origin: OriginConfig = field(default_factory=OriginConfig)
    git: GitConfig = field(default_factory=GitConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    tokens: TokensConfig = field(default_factory=TokensConfig)
    ci: CIConfig = field(default_factory=CIConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        upstream: StrDict = get_table(data, "upstream") or {}
        origin: StrDict = get_table(data, "origin") or {}
        git: StrDict = get_table(data, "git") or {}
        release: StrDict = get_table(data, "release") or {}
        tokens: StrDict = get_table(data, "tokens") or {}
        ci: StrDict = get_table(data, "ci") or {}

        bins = get_str_list(release, "bins")
        if "bins" in release and not bins:
            raise ValueError("release.bins must be a non-empty list of strings")

        notes = release.get("notes")
        if notes is not None and not isinstance(notes, str):
            raise ValueError("release.notes must be a string")

        return cls(
            upstream=UpstreamConfig(
                url=get_str(upstream, "url") or DEFAULT_UPSTREAM_URL,
                remote=get_str(upstream, "remote") or "upstream",
            ),
            origin=OriginConfig(
                remote=get_str(origin, "remote") or "origin",
                slug=get_str(origin, "slug"),
            ),
            git=GitConfig(user_name=get_str(git, "user_name") or DEFAULT_BOT_NAME),
            release=ReleaseConfig(
                title=get_str(release, "title") or "{tag}",
                notes=notes or "",
                draft=bool(get_bool(release, "draft")),
                archive_prefix=get_str(release, "archive_prefix") or "uv",
                bins=bins or ("uv", "uvx"),
                workflow=get_str(release, "workflow") or "release.yml",
            ),
            tokens=TokensConfig(
                push=get_str(tokens, "push") or "PAT_TOKEN",
                release=get_str(tokens, "release") or "GITHUB_TOKEN",
            ),
            ci=CIConfig(install=get_str(ci, "install")),
        )

    def repo_slug(self, environ: Mapping[str, str]) -> str | None:
        """Fork slug: configured, else the runner's GITHUB_REPOSITORY."""
        return self.origin.slug or (environ.get("GITHUB_REPOSITORY") or "").strip() or None


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to tagsync.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config if the file exists; defaults otherwise.

    A present-but-broken file is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
