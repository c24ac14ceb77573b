"""
Configuration: loads editing settings from .hashedit.yaml, environment
variables and built-in defaults (priority: env > YAML > defaults).

The editing functions themselves take explicit parameters; an
:class:`EditConfig` is read once by the caller and handed to
:class:`~hashedit.editing.patch_applier.PatchApplier`.
"""

import os

import yaml


_DEFAULTS = {
    "fuzzy_threshold": 0.92,
    "allow_fuzzy": True,
    "mismatch_context_lines": 2,
    "diff_context_lines": 4,
    "stream": {
        "max_chunk_lines": 200,
        "max_chunk_bytes": 64 * 1024,
    },
}

# Config file search locations
_CONFIG_FILENAMES = [".hashedit.yaml", ".hashedit.yml"]


def _find_config_file(explicit_path: str | None = None) -> str | None:
    """Find the config file. Checks explicit path, CWD, then user home."""
    if explicit_path:
        if os.path.isfile(explicit_path):
            return explicit_path
        return None

    for d in (os.getcwd(), os.path.expanduser("~")):
        for name in _CONFIG_FILENAMES:
            path = os.path.join(d, name)
            if os.path.isfile(path):
                return path
    return None


def _load_yaml(path: str) -> dict:
    """Load YAML file, returns empty dict on failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return {}


class EditConfig:
    """Editing configuration.

    Settings are resolved in priority order:
    1. Environment variables (``HASHEDIT_*``)
    2. .hashedit.yaml config file
    3. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}
        stream_section = yd.get("stream") if isinstance(yd.get("stream"), dict) else {}

        # Helper: env var > yaml > default
        def _get(env_key: str, section: dict, yaml_key: str, default, cast=str):
            env_val = os.getenv(env_key)
            if env_val is not None:
                try:
                    return cast(env_val)
                except ValueError:
                    return default
            yaml_val = section.get(yaml_key)
            if yaml_val is not None:
                try:
                    return cast(yaml_val)
                except (TypeError, ValueError):
                    return default
            return default

        def _get_bool(env_key: str, yaml_key: str, default: bool) -> bool:
            env_val = os.getenv(env_key)
            if env_val is not None:
                return env_val.strip().lower() in ("1", "true", "yes", "on")
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return bool(yaml_val)
            return default

        self.FUZZY_THRESHOLD = _get("HASHEDIT_FUZZY_THRESHOLD", yd,
                                    "fuzzy_threshold",
                                    _DEFAULTS["fuzzy_threshold"], cast=float)
        self.ALLOW_FUZZY = _get_bool("HASHEDIT_ALLOW_FUZZY", "allow_fuzzy",
                                     _DEFAULTS["allow_fuzzy"])

        self.MISMATCH_CONTEXT_LINES = _get("HASHEDIT_MISMATCH_CONTEXT_LINES", yd,
                                           "mismatch_context_lines",
                                           _DEFAULTS["mismatch_context_lines"],
                                           cast=int)
        self.DIFF_CONTEXT_LINES = _get("HASHEDIT_DIFF_CONTEXT_LINES", yd,
                                       "diff_context_lines",
                                       _DEFAULTS["diff_context_lines"], cast=int)

        # Streaming formatter limits
        self.STREAM_MAX_CHUNK_LINES = _get("HASHEDIT_STREAM_MAX_CHUNK_LINES",
                                           stream_section, "max_chunk_lines",
                                           _DEFAULTS["stream"]["max_chunk_lines"],
                                           cast=int)
        self.STREAM_MAX_CHUNK_BYTES = _get("HASHEDIT_STREAM_MAX_CHUNK_BYTES",
                                           stream_section, "max_chunk_bytes",
                                           _DEFAULTS["stream"]["max_chunk_bytes"],
                                           cast=int)

    @classmethod
    def load(cls, config_path: str | None = None) -> "EditConfig":
        """Load config from YAML file (if found) + env vars + defaults."""
        path = _find_config_file(config_path)
        yaml_data = _load_yaml(path) if path else {}
        return cls(yaml_data)
