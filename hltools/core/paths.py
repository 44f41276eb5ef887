# ==============================================================================
# HL TOOLS - PATH UTILITIES
# ==============================================================================
# Centralized path handling:
#   - Where the user configuration lives
#   - Turning texture names into safe file names
#   - Building output paths for exported textures
#
# User data (config) is stored in:
#   - Windows: %APPDATA%/HLTools/
#   - Linux:   ~/.config/HLTools/  (or $XDG_CONFIG_HOME/HLTools/)
#   - macOS:   ~/Library/Application Support/HLTools/
#
# Set HLTOOLS_CONFIG to point at a different config file.
#
# Usage:
#   from hltools.core.paths import Paths
#   config_path = Paths.get_config_path()
#   png_path = Paths.texture_output_path("out", "{grate", ".png")
# ==============================================================================

import os
import re
import sys
from typing import Optional


# Characters that are invalid in file names on at least one platform,
# plus ASCII control characters
_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

# Windows reserved device names
_RESERVED_NAMES = {
    "CON", "PRN", "AUX", "NUL",
    *(f"COM{i}" for i in range(1, 10)),
    *(f"LPT{i}" for i in range(1, 10)),
}


class Paths:
    """
    Centralized path management for HL Tools.

    All methods are classmethods; the user data directory is computed once
    and cached.
    """

    # Application name for folder creation
    APP_NAME = "HLTools"

    # Environment variable overriding the config file location
    CONFIG_ENV_VAR = "HLTOOLS_CONFIG"

    # Character substituted for anything unsafe in a file name
    REPLACEMENT_CHAR = "_"

    _user_data_dir: Optional[str] = None

    @classmethod
    def get_user_data_dir(cls) -> str:
        """
        Get the per-user data directory.

        The directory is not created here; Config.save() creates it when
        something is actually written.

        Returns:
            Absolute path to the user data directory
        """
        if cls._user_data_dir is None:
            if sys.platform == 'win32':
                base = os.environ.get('APPDATA', os.path.expanduser('~'))
                cls._user_data_dir = os.path.join(base, cls.APP_NAME)
            elif sys.platform == 'darwin':
                cls._user_data_dir = os.path.join(
                    os.path.expanduser('~'),
                    'Library', 'Application Support', cls.APP_NAME
                )
            else:
                base = os.environ.get('XDG_CONFIG_HOME',
                                      os.path.join(os.path.expanduser('~'), '.config'))
                cls._user_data_dir = os.path.join(base, cls.APP_NAME)

        return cls._user_data_dir

    @classmethod
    def get_config_path(cls) -> str:
        """
        Get the path to the configuration file.

        Returns:
            $HLTOOLS_CONFIG if set, otherwise config.json in the user data dir
        """
        override = os.environ.get(cls.CONFIG_ENV_VAR)
        if override:
            return override
        return os.path.join(cls.get_user_data_dir(), 'config.json')

    # ==========================================================================
    # OUTPUT NAMING
    # ==========================================================================

    @classmethod
    def sanitize_filename(cls, name: str, default: str = "unnamed") -> str:
        """
        Make a texture name safe to use as a file name.

        Invalid characters are replaced rather than dropped so distinct
        texture names stay distinct. Names that end up empty, are only dots,
        or collide with a Windows device name get a fallback.

        Args:
            name: Raw texture name from the container
            default: Name used when nothing usable is left

        Returns:
            Sanitized file name component (no extension)

        Example:
            >>> Paths.sanitize_filename("{fence/01")
            '{fence_01'
        """
        cleaned = _INVALID_FILENAME_CHARS.sub(cls.REPLACEMENT_CHAR, name).strip()
        # Windows silently drops trailing dots and spaces
        cleaned = cleaned.rstrip('. ')
        if not cleaned or set(cleaned) == {'.'}:
            return default
        if cleaned.upper().split('.')[0] in _RESERVED_NAMES:
            cleaned = cls.REPLACEMENT_CHAR + cleaned
        return cleaned

    @classmethod
    def texture_output_path(cls, output_dir: str, name: str, extension: str = ".png") -> str:
        """
        Build the output path for an exported texture.

        Args:
            output_dir: Directory the file goes in
            name: Raw texture name (sanitized here)
            extension: File extension including the dot

        Returns:
            Full output path
        """
        return os.path.join(output_dir, cls.sanitize_filename(name) + extension)
