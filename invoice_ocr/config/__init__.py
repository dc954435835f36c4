"""
Configuration Module for the Invoice OCR Engine.

Settings live in ``settings.yaml``: logging, OCR backend options and the
``parser.*`` heuristics. The parser never reads this module while parsing; it
turns the ``parser.*`` keys into an immutable ``ParserConfig`` once, up front.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from invoice_ocr.utils.exceptions import ConfigurationError

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


def load_settings(path: Path) -> Dict[str, Any]:
    """
    Read a settings file into a dictionary.

    An empty file gives an empty dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file is not valid YAML or not a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(str(path), str(e)) from e

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(str(path), "top-level YAML value must be a mapping")
    return loaded


class ConfigurationManager:
    """
    Process-wide access to the active settings file.

    The first instantiation picks the file (the bundled ``settings.yaml``
    unless a path is given); later instantiations return the same object and
    ignore their argument until ``reset`` is called.

    Example:
        >>> ConfigurationManager("custom.yaml")
        >>> ConfigurationManager().get("parser.tolerance.relative")
        0.3
    """

    _instance: Optional['ConfigurationManager'] = None

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            instance = super().__new__(cls)
            instance.config_path = Path(config_path) if config_path else DEFAULT_SETTINGS_PATH
            instance._settings = load_settings(instance.config_path)
            cls._instance = instance
        return cls._instance

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a value by dotted key, e.g. ``"ocr.tesseract.lang"``.

        Returns ``default`` when any segment of the key is missing.
        """
        value: Any = self._settings
        for part in key.split('.'):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    @classmethod
    def reset(cls) -> None:
        """Forget the active settings so the next instantiation reloads them."""
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """Shorthand for ``ConfigurationManager().get(key, default)``."""
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config', 'load_settings']
