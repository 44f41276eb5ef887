# ==============================================================================
# HL TOOLS - CONFIGURATION MODULE
# ==============================================================================
# Centralized configuration management for the extractor.
#
# This module handles:
#   - Loading/saving configuration from a JSON file
#   - Default values for all settings
#   - Typed access to the settings used by the exporter and the CLI
#
# Configuration is stored in: <user data dir>/config.json
# (see Paths.get_config_path, overridable with $HLTOOLS_CONFIG)
#
# Command-line flags always win over values loaded from the file.
#
# Usage:
#   from hltools.core.config import Config
#   config = Config()
#   config.load()
#   config.transparency = True
#   config.save()
# ==============================================================================

import os
import json
from typing import Optional, Dict, Any

from .paths import Paths


# ==============================================================================
# DEFAULT CONFIGURATION VALUES
# ==============================================================================
# These are used when no config file exists or when values are missing.

DEFAULT_CONFIG = {
    # -------------------------------------------------------------------------
    # EXTRACTION
    # -------------------------------------------------------------------------
    # Make masked textures transparent (palette index 255) and write the
    # patched <name>.png<suffix> file next to the baseline PNG
    "transparency": False,

    # Suffix appended to the baseline PNG path for the patched copy
    "transparency_suffix": ".trans",

    # Turn "not this format" / bad table offsets into hard errors
    "strict": False,

    # Also write a true-color RGBA PNG for every texture
    "export_rgba": False,

    # Overwrite PNGs that already exist in the output folder
    "overwrite_existing": True,

    # -------------------------------------------------------------------------
    # BATCH
    # -------------------------------------------------------------------------
    # Descend into subdirectories when the input is a folder
    "recursive": False,

    # Check the magic of every file instead of only .spr/.wad/.mdl
    "sniff_all_files": False,

    # -------------------------------------------------------------------------
    # ADVANCED
    # -------------------------------------------------------------------------
    # Hex dump the generated tRNS chunk
    "debug_mode": False,
}


# ==============================================================================
# CONFIGURATION CLASS
# ==============================================================================
class Config:
    """
    Configuration manager for HL Tools.

    Handles loading, saving, and accessing settings. Settings are stored in
    a JSON file and exposed as properties on this object.

    Attributes:
        config_path: Path to the configuration file
        data: Dictionary containing all settings

    Example:
        >>> config = Config("hltools.json")
        >>> config.load()
        >>> config.strict = True
        >>> config.save()
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to config file. If None, uses the default location.
        """
        self.config_path = config_path or Paths.get_config_path()

        # Initialize with defaults
        self.data: Dict[str, Any] = DEFAULT_CONFIG.copy()

        # Track if config has been modified
        self._modified = False

    # -------------------------------------------------------------------------
    # LOADING AND SAVING
    # -------------------------------------------------------------------------

    def load(self) -> bool:
        """
        Load configuration from file.

        If the file doesn't exist, defaults are used. Unknown keys in the
        file are ignored, missing keys keep their defaults.

        Returns:
            True if file was loaded, False if using defaults
        """
        if not os.path.isfile(self.config_path):
            return False

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except json.JSONDecodeError as e:
            print(f"[ERROR] Invalid config file {self.config_path}: {e}")
            return False
        except OSError as e:
            print(f"[ERROR] Failed to read config {self.config_path}: {e}")
            return False

        if not isinstance(loaded, dict):
            print(f"[ERROR] Invalid config file {self.config_path}: expected a JSON object")
            return False

        for key, value in loaded.items():
            if key in self.data:
                self.data[key] = value

        print(f"[INFO] Loaded config from {self.config_path}")
        self._modified = False
        return True

    def save(self) -> bool:
        """
        Save configuration to file.

        Creates the directory if it doesn't exist.

        Returns:
            True if saved successfully
        """
        try:
            directory = os.path.dirname(self.config_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self.data, f, indent=4, sort_keys=True)
        except OSError as e:
            print(f"[ERROR] Failed to save config: {e}")
            return False

        print(f"[INFO] Saved config to {self.config_path}")
        self._modified = False
        return True

    def reset_to_defaults(self):
        """Reset all settings to their default values."""
        self.data = DEFAULT_CONFIG.copy()
        self._modified = True

    @property
    def is_modified(self) -> bool:
        """True if settings changed since the last load/save."""
        return self._modified

    # -------------------------------------------------------------------------
    # PROPERTY ACCESS
    # -------------------------------------------------------------------------

    @property
    def transparency(self) -> bool:
        """Check if transparency handling is enabled."""
        return bool(self.data.get('transparency', False))

    @transparency.setter
    def transparency(self, value: bool):
        self.data['transparency'] = bool(value)
        self._modified = True

    @property
    def transparency_suffix(self) -> str:
        """Suffix for the patched PNG (e.g. '.trans')."""
        return self.data.get('transparency_suffix', '.trans')

    @transparency_suffix.setter
    def transparency_suffix(self, value: str):
        if not value:
            raise ValueError("transparency_suffix must not be empty")
        self.data['transparency_suffix'] = value
        self._modified = True

    @property
    def strict(self) -> bool:
        """Check if loaders should fail hard on non-fatal conditions."""
        return bool(self.data.get('strict', False))

    @strict.setter
    def strict(self, value: bool):
        self.data['strict'] = bool(value)
        self._modified = True

    @property
    def export_rgba(self) -> bool:
        return bool(self.data.get('export_rgba', False))

    @export_rgba.setter
    def export_rgba(self, value: bool):
        self.data['export_rgba'] = bool(value)
        self._modified = True

    @property
    def overwrite_existing(self) -> bool:
        return bool(self.data.get('overwrite_existing', True))

    @overwrite_existing.setter
    def overwrite_existing(self, value: bool):
        self.data['overwrite_existing'] = bool(value)
        self._modified = True

    @property
    def recursive(self) -> bool:
        return bool(self.data.get('recursive', False))

    @recursive.setter
    def recursive(self, value: bool):
        self.data['recursive'] = bool(value)
        self._modified = True

    @property
    def sniff_all_files(self) -> bool:
        return bool(self.data.get('sniff_all_files', False))

    @sniff_all_files.setter
    def sniff_all_files(self, value: bool):
        self.data['sniff_all_files'] = bool(value)
        self._modified = True

    @property
    def debug_mode(self) -> bool:
        """Check if debug mode is enabled."""
        return bool(self.data.get('debug_mode', False))

    @debug_mode.setter
    def debug_mode(self, value: bool):
        self.data['debug_mode'] = bool(value)
        self._modified = True

    # -------------------------------------------------------------------------
    # GENERIC ACCESS
    # -------------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            The configuration value
        """
        return self.data.get(key, default)

    def set(self, key: str, value: Any):
        """
        Set a configuration value.

        Args:
            key: Configuration key
            value: Value to set
        """
        self.data[key] = value
        self._modified = True

    def __getitem__(self, key: str) -> Any:
        """Allow dictionary-style access: config['key']"""
        return self.data[key]

    def __setitem__(self, key: str, value: Any):
        """Allow dictionary-style setting: config['key'] = value"""
        self.data[key] = value
        self._modified = True

