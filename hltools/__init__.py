# ==============================================================================
# HL TOOLS - SOURCE PACKAGE
# ==============================================================================
# GoldSrc texture extractor: sprites, WAD3 archives and studio models to PNG,
# with optional palette transparency.
#
# Subpackages:
#   - core: Decoded textures, CRC32, PNG tRNS patcher, config, paths, errors
#   - parsers: Container loaders, format detection, batch export
#
# Entry points:
#   - main.py: launcher
#   - hltools/cli.py: command-line interface (also installed as `hltools`)
# ==============================================================================

__version__ = "1.0.0"
__description__ = "Half-Life (GoldSrc) texture extractor"

# Convenience imports
from .core import DecodedTexture, patch, crc32, Config
from .parsers import detect_format, load_textures, ContainerFormat, BatchExporter

__all__ = [
    '__version__',
    '__description__',

    # Core
    'DecodedTexture',
    'patch',
    'crc32',
    'Config',

    # Parsers
    'detect_format',
    'load_textures',
    'ContainerFormat',
    'BatchExporter',
]
