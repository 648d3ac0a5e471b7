"""Configuration loader for wsrun.

Settings are layered, later layers winning:

1. built-in defaults (:class:`RunSettings`)
2. an optional config file: ``wsrun.toml``, ``wsrun.yaml`` (``kind: Config``
   manifest) or ``[tool.wsrun]`` in ``pyproject.toml``
3. ``WSRUN_*`` environment variables
4. command line flags
"""

from __future__ import annotations

import os
import re
import tomllib
from pathlib import Path
from typing import Any

import yaml

from wsrun.config.models import LoggingConfig, RunSettings, parse_jobs
from wsrun.exceptions import ConfigurationError
from wsrun.logging import get_logger
from wsrun.orchestration.models import ExecutionMode

# Constants for boolean environment variable parsing
_TRUTHY_VALUES = frozenset({"true", "1", "yes", "on", "enabled"})
_FALSY_VALUES = frozenset({"false", "0", "no", "off", "disabled"})

CONFIG_FILENAMES: tuple[str, ...] = ("wsrun.toml", "wsrun.yaml", "wsrun.yml")
KNOWN_KEYS = frozenset(
    {
        "script",
        "jobs",
        "include_dev",
        "include_peer",
        "only",
        "exclude",
        "sequential",
        "runner",
        "logging",
    }
)

logger = get_logger(__name__)


def _parse_bool_env(value: str) -> bool:
    """Parse boolean from environment variable value.

    Raises
    ------
    ValueError
        If value is not a recognized boolean string
    """
    normalized = value.lower().strip()
    if normalized in _TRUTHY_VALUES:
        return True
    if normalized in _FALSY_VALUES:
        return False
    expected = sorted(_TRUTHY_VALUES | _FALSY_VALUES)
    raise ValueError(f"Invalid boolean value: {value!r}. Expected one of: {expected}")


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return _parse_bool_env(value)
        except ValueError as e:
            raise ConfigurationError(key, str(e)) from e
    raise ConfigurationError(key, f"must be a boolean, got {type(value).__name__}")


def _as_patterns(value: Any, key: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ConfigurationError(key, "must be a string or a list of strings")


class ConfigLoader:
    """Finds, reads and layers wsrun configuration."""

    ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

    def find_config_file(self, root: Path, path: str | Path | None = None) -> Path | None:
        """Locate the config file for ``root``.

        Discovery order:
        1. Explicit path argument (must exist)
        2. ``WSRUN_CONFIG_PATH`` env var
        3. ``wsrun.toml`` / ``wsrun.yaml`` / ``wsrun.yml`` in ``root``
        4. ``pyproject.toml`` in ``root`` with a ``[tool.wsrun]`` table

        Returns None when no file is found; configuration files are optional.
        """
        if path:
            config_path = Path(path)
            if not config_path.is_file():
                raise ConfigurationError(str(config_path), "configuration file not found")
            return config_path

        if env_path := os.getenv("WSRUN_CONFIG_PATH"):
            config_path = Path(env_path)
            if config_path.is_file():
                logger.debug("Using config from WSRUN_CONFIG_PATH: {}", config_path)
                return config_path
            logger.warning("WSRUN_CONFIG_PATH set but file not found: {}", config_path)

        for name in CONFIG_FILENAMES:
            candidate = root / name
            if candidate.is_file():
                return candidate

        pyproject = root / "pyproject.toml"
        if pyproject.is_file() and self._load_toml(pyproject):
            return pyproject

        return None

    def load_file(self, config_path: Path) -> dict[str, Any]:
        """Read a config file into a raw mapping with ``${VAR}`` substituted."""
        logger.debug("Loading configuration from {path}", path=config_path)
        if config_path.suffix in (".yaml", ".yml"):
            data = self._load_yaml(config_path)
        else:
            data = self._load_toml(config_path)

        unknown = sorted(set(data) - KNOWN_KEYS)
        if unknown:
            logger.warning(
                "Ignoring unknown configuration keys in {path}: {keys}",
                path=config_path.name,
                keys=", ".join(unknown),
            )
        return self._substitute_env_vars({k: v for k, v in data.items() if k in KNOWN_KEYS})

    def _load_yaml(self, config_path: Path) -> dict[str, Any]:
        try:
            with config_path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(config_path.name, f"cannot parse YAML: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                config_path.name, f"expected a mapping, got {type(data).__name__}"
            )
        kind = data.get("kind")
        if kind != "Config":
            raise ConfigurationError(
                config_path.name,
                f"YAML config must use the 'kind: Config' manifest format, got 'kind: {kind}'",
            )
        spec = data.get("spec") or {}
        if not isinstance(spec, dict):
            raise ConfigurationError(config_path.name, "'spec' must be a mapping")
        return spec

    def _load_toml(self, config_path: Path) -> dict[str, Any]:
        try:
            with config_path.open("rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(config_path.name, f"cannot parse TOML: {e}") from e

        if "tool" in data and isinstance(data["tool"], dict):
            section = data["tool"].get("wsrun", {})
            return section if isinstance(section, dict) else {}
        if config_path.name == "pyproject.toml":
            return {}
        return data

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively replace ``${VAR}`` with environment values.

        Unknown variables keep their placeholder.
        """
        if isinstance(data, str):

            def replacer(match: re.Match[str]) -> str:
                value = os.environ.get(match.group(1))
                return match.group(0) if value is None else value

            return self.ENV_VAR_PATTERN.sub(replacer, data)

        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}

        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]

        return data

    def apply_env_overrides(self, data: dict[str, Any]) -> dict[str, Any]:
        """Overlay ``WSRUN_*`` environment variables on file values.

        - WSRUN_JOBS: worker pool size
        - WSRUN_RUNNER: script invocation prefix
        - WSRUN_SEQUENTIAL: run one package at a time (bool)
        - WSRUN_NO_DEV / WSRUN_NO_PEER: drop dev/peer ordering edges (bool)
        - WSRUN_LOG_LEVEL / WSRUN_LOG_FORMAT / WSRUN_LOG_FILE: logging
        """
        merged = dict(data)
        logging_data = merged.get("logging") or {}
        if not isinstance(logging_data, dict):
            raise ConfigurationError("logging", "must be a table/mapping")
        logging_data = dict(logging_data)

        if env_jobs := os.getenv("WSRUN_JOBS"):
            merged["jobs"] = env_jobs
        if env_runner := os.getenv("WSRUN_RUNNER"):
            merged["runner"] = env_runner

        for env_name, key, invert in (
            ("WSRUN_SEQUENTIAL", "sequential", False),
            ("WSRUN_NO_DEV", "include_dev", True),
            ("WSRUN_NO_PEER", "include_peer", True),
        ):
            if raw := os.getenv(env_name):
                try:
                    flag = _parse_bool_env(raw)
                except ValueError as e:
                    raise ConfigurationError(env_name, str(e)) from e
                merged[key] = not flag if invert else flag

        if env_level := os.getenv("WSRUN_LOG_LEVEL"):
            logging_data["level"] = env_level.upper()
        if env_format := os.getenv("WSRUN_LOG_FORMAT"):
            logging_data["format"] = env_format.lower()
        if env_file := os.getenv("WSRUN_LOG_FILE"):
            logging_data["output_file"] = env_file

        if logging_data:
            merged["logging"] = logging_data
        return merged

    def build_settings(
        self,
        root: Path,
        data: dict[str, Any],
        *,
        script: str | None = None,
        jobs: str | int | None = None,
        no_dev: bool = False,
        no_peer: bool = False,
        only: tuple[str, ...] = (),
        exclude: tuple[str, ...] = (),
        sequential: bool = False,
        print_only: bool = False,
        debug: bool = False,
        runner: str | None = None,
        log_level: str | None = None,
        log_format: str | None = None,
    ) -> RunSettings:
        """Combine layered data with command line values into :class:`RunSettings`.

        Raises
        ------
        ValidationError
            If jobs or another single setting is invalid
        ConfigurationError
            If a config value has the wrong shape
        """
        kwargs: dict[str, Any] = {"root": root}

        if script is not None:
            kwargs["script"] = script
        elif "script" in data:
            kwargs["script"] = str(data["script"])

        raw_jobs = jobs if jobs is not None else data.get("jobs")
        if raw_jobs is not None:
            kwargs["jobs"] = parse_jobs(raw_jobs)

        include_dev = _as_bool(data.get("include_dev", True), "include_dev")
        include_peer = _as_bool(data.get("include_peer", True), "include_peer")
        kwargs["include_dev"] = include_dev and not no_dev
        kwargs["include_peer"] = include_peer and not no_peer
        kwargs["only"] = _as_patterns(data.get("only", []), "only") + tuple(only)
        kwargs["exclude"] = _as_patterns(data.get("exclude", []), "exclude") + tuple(exclude)

        if sequential or _as_bool(data.get("sequential", False), "sequential"):
            kwargs["mode"] = ExecutionMode.SEQUENTIAL
        kwargs["print_only"] = print_only
        kwargs["debug"] = debug

        if runner is not None:
            kwargs["runner"] = runner
        elif "runner" in data:
            kwargs["runner"] = str(data["runner"])

        logging_data = data.get("logging") or {}
        if not isinstance(logging_data, dict):
            raise ConfigurationError("logging", "must be a table/mapping")
        logging_data = dict(logging_data)
        if log_level:
            logging_data["level"] = log_level.upper()
        if log_format:
            logging_data["format"] = log_format.lower()
        kwargs["logging"] = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            format=logging_data.get("format", "structured"),
            output_file=logging_data.get("output_file"),
        )

        return RunSettings(**kwargs)


def load_settings(
    root: Path | None = None,
    config_path: str | Path | None = None,
    **overrides: Any,
) -> RunSettings:
    """Resolve settings for a run rooted at ``root`` (default: current directory).

    ``overrides`` are the command line values accepted by
    :meth:`ConfigLoader.build_settings`.

    Examples
    --------
    Example usage::

        settings = load_settings(Path("/repo"), script="test", jobs="4", only=("@acme/*",))
    """
    loader = ConfigLoader()
    root = (root or Path.cwd()).resolve()

    data: dict[str, Any] = {}
    if found := loader.find_config_file(root, config_path):
        data = loader.load_file(found)

    data = loader.apply_env_overrides(data)
    return loader.build_settings(root, data, **overrides)
