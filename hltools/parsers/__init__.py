# ==============================================================================
# PARSERS MODULE
# ==============================================================================
# Container loaders for GoldSrc asset files.
#
# Supported formats:
#   - SPR: Sprites ("IDSP"), one texture per frame
#   - WAD: WAD3 texture archives ("WAD3"), one texture per raster lump
#   - MDL: Studio models ("IDST"), one texture per embedded skin
#
# Each loader module registers itself with LoaderRegistry on import, so
# detect_format() / load_textures() work as soon as this package is imported.
#
# Additional utilities:
#   - BatchExporter: PNG export for files and directories
# ==============================================================================

from .base_loader import (
    BaseLoader, ContainerFormat, LoaderRegistry, ResourceEntry,
    detect_format, load_textures,
)
from .spr_loader import SpriteLoader
from .wad_loader import WadLoader
from .mdl_loader import ModelLoader, companion_texture_path
from .batch_exporter import BatchExporter, ExportResult, ExportedTexture

__all__ = [
    # Base / dispatch
    'BaseLoader',
    'ContainerFormat',
    'LoaderRegistry',
    'ResourceEntry',
    'detect_format',
    'load_textures',

    # Loaders
    'SpriteLoader',
    'WadLoader',
    'ModelLoader',
    'companion_texture_path',

    # Export
    'BatchExporter',
    'ExportResult',
    'ExportedTexture',
]
