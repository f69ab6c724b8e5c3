"""Configuration loader for qualicode.

Loads settings from YAML files with priority resolution:
1. Explicit path passed by the caller (highest priority)
2. User config: ~/.config/{app_name}/config.yaml
3. Project config: .{app_name}/config.yaml in current directory
4. Package defaults: shipped with qualicode (fallback)

The first file found is merged over the package defaults, then
``QUALICODE_*`` environment variables are applied on top.
"""

import copy
import os
from pathlib import Path

# Lazy import yaml to avoid startup cost
_yaml = None

CONFIG_FILENAME = "config.yaml"

# (environment variable, section, key)
_ENV_OVERRIDES = [
    ("QUALICODE_BACKEND", "store", "backend"),
    ("QUALICODE_DATABASE_URL", "store", "database_url"),
    ("QUALICODE_LOG_LEVEL", "logging", "level"),
    ("QUALICODE_LOG_FORMAT", "logging", "format"),
]


def _get_yaml():
    """Lazy-load PyYAML."""
    global _yaml
    if _yaml is None:
        import yaml

        _yaml = yaml
    return _yaml


def _get_package_defaults_path():
    """Get path to the package default config using importlib.resources."""
    try:
        from importlib.resources import files

        return files("qualicode.config_data") / "_defaults"
    except (ImportError, TypeError):
        # Editable installs without resource support
        return Path(__file__).parent / "config_data" / "_defaults"


def _merge(base: dict, override: dict) -> dict:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class QualicodeConfig:
    """Resolved settings for stores, codes and logging.

    Config locations are checked in priority order:
    1. ``path`` argument
    2. ~/.config/{app_name}/config.yaml - User overrides
    3. .{app_name}/config.yaml - Project-specific settings
    4. Package defaults - Shipped with qualicode

    Only one override file is used; keys it does not set keep their
    package default.
    """

    def __init__(self, path: str | Path | None = None, app_name: str = "qualicode"):
        """Initialize and load settings.

        Args:
            path: Explicit config file. Takes priority over all other locations.
            app_name: Application name for config directory resolution
                     (e.g., ~/.config/{app_name}/config.yaml).
        """
        self._app_name = app_name
        self._config_locations: list[Path] = []
        if path is not None:
            self._config_locations.append(Path(path))
        self._config_locations.extend(
            [
                Path.home() / ".config" / app_name / CONFIG_FILENAME,  # User overrides
                Path.cwd() / f".{app_name}" / CONFIG_FILENAME,  # Project config
            ]
        )
        self.source: Path | None = None
        self._data: dict = {}
        self._load()

    def _find_config_file(self) -> Path | None:
        """Return the highest-priority override file that exists, if any."""
        for config_file in self._config_locations:
            if config_file.is_file():
                return config_file
        return None

    def _read_yaml(self, config_file) -> dict:
        yaml = _get_yaml()
        content = config_file.read_text(encoding="utf-8")
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError:
            return {}
        return data if isinstance(data, dict) else {}

    def _load(self) -> None:
        defaults = self._read_yaml(_get_package_defaults_path() / CONFIG_FILENAME)

        config_file = self._find_config_file()
        if config_file is not None:
            self.source = config_file
            data = _merge(defaults, self._read_yaml(config_file))
        else:
            data = defaults

        for env_var, section, key in _ENV_OVERRIDES:
            value = os.environ.get(env_var)
            if value:
                data.setdefault(section, {})[key] = value

        self._data = data

    def get(self, section: str, key: str, default=None):
        """Look up ``section.key``, returning ``default`` when unset."""
        return self._data.get(section, {}).get(key, default)

    @property
    def backend(self) -> str:
        return self.get("store", "backend", "memory")

    @property
    def database_url(self) -> str:
        return self.get("store", "database_url", "sqlite:///qualicode.db")

    @property
    def default_color(self) -> str:
        return self.get("codes", "default_color", "#3498db")

    @property
    def log_level(self) -> str:
        return str(self.get("logging", "level", "INFO"))

    @property
    def log_format(self) -> str:
        return str(self.get("logging", "format", "plain"))

    def as_dict(self) -> dict:
        """Return a copy of the resolved settings."""
        return copy.deepcopy(self._data)
