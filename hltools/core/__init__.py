# ==============================================================================
# CORE MODULE INIT
# ==============================================================================
# Format-independent building blocks:
#   - DecodedTexture: palette-indexed texture shared by all loaders
#   - crc32: table-driven CRC used for PNG chunks
#   - patch: tRNS injection into an already-written palette PNG
#   - Config / Paths: settings and output naming
#   - HLToolsError and subclasses
#
# Usage:
#   from hltools.core import DecodedTexture, patch, Config
# ==============================================================================

from .errors import (
    HLToolsError, UnsupportedFileError, MalformedResourceError,
    TruncatedFileError, ChunkNotFoundError,
)
from .checksum import crc32, checksum
from .texture import DecodedTexture, FLAG_MASKED, FLAG_ADDITIVE
from .png_patcher import patch, TransparencyChunk, build_transparency_chunk
from .config import Config
from .paths import Paths

__all__ = [
    # Errors
    'HLToolsError',
    'UnsupportedFileError',
    'MalformedResourceError',
    'TruncatedFileError',
    'ChunkNotFoundError',

    # Checksum
    'crc32',
    'checksum',

    # Textures
    'DecodedTexture',
    'FLAG_MASKED',
    'FLAG_ADDITIVE',

    # PNG patching
    'patch',
    'TransparencyChunk',
    'build_transparency_chunk',

    # Configuration
    'Config',

    # Paths
    'Paths',
]
