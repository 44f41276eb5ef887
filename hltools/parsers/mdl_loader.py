# ==============================================================================
# MDL LOADER MODULE
# ==============================================================================
# Texture loader for GoldSrc studio models (.mdl, magic "IDST").
#
# MDL Header (little-endian):
#   - Magic: "IDST" (4 bytes)
#   - Version: int32 (10 for retail Half-Life, 6 for the 0.52 alpha)
#   - Name: 64 bytes
#   - Length: int32
#   - Eye position, bounding boxes, bone/sequence tables ...
#   - Texture count, texture table offset, texture data offset: 3 x int32
#       at offset 180 in the retail layout
#       at offset 0x64 in version 6, whose earlier fields differ
#
# Texture table entry (80 bytes):
#   - Name: 64 bytes, NUL-terminated
#   - Flags: uint32 (STUDIO_NF_*; 0x40 masked, 0x20 additive)
#   - Width, height: int32
#   - Data offset: int32 -> width*height indices, then 256 RGB triples
#
# Models compiled with external textures keep them in a companion file
# named <model>T.mdl; see companion_texture_path().
#
# References:
#   - https://github.com/malortie/assimp/wiki/MDL:-Half-Life-1-file-format
#   - HLSDK studio.h
#
# Usage:
#   loader = ModelLoader()
#   textures = loader.load("scientist.mdl", want_transparency=True)
# ==============================================================================

import os
import struct
from dataclasses import dataclass
from typing import BinaryIO, List, Optional, Tuple

from .base_loader import (
    BaseLoader, ContainerFormat, LoaderRegistry, ResourceEntry,
    decode_name, read_struct,
)
from ..core.errors import MalformedResourceError
from ..core.texture import PALETTE_RGB_SIZE


# ==============================================================================
# MDL CONSTANTS
# ==============================================================================

MODEL_MAGIC = b"IDST"

# Retail header: id(4) + version(4) + name(64) + length(4)
#              + 5 vec3 (60) + flags and 5 count/offset pairs (44) = 180
TEXTURE_INFO_OFFSET = 180

# Version 6 (0.52 alpha) models have a shorter header
ALPHA_VERSION = 6
ALPHA_TEXTURE_INFO_OFFSET = 0x64

MODEL_NAME_SIZE = 64
TEXTURE_NAME_SIZE = 64

# name[64], flags, width, height, index
TEXTURE_ENTRY_FORMAT = f"<{TEXTURE_NAME_SIZE}sIiii"
TEXTURE_ENTRY_SIZE = struct.calcsize(TEXTURE_ENTRY_FORMAT)


# ==============================================================================
# HEADER DATA CLASS
# ==============================================================================
@dataclass
class ModelHeader:
    """
    The parts of a studio header needed to reach the textures.

    Attributes:
        version: Studio version
        name: Internal model name
        length: Declared file length
        num_textures: Number of texture table entries
        texture_index: Offset of the texture table
        texture_data_index: Offset of the first texture's pixels (unused)
    """
    version: int
    name: str
    length: int
    num_textures: int = 0
    texture_index: int = 0
    texture_data_index: int = 0


def texture_info_offset(version: int) -> int:
    """Where the texture count/offset triple lives for a given version."""
    if version == ALPHA_VERSION:
        return ALPHA_TEXTURE_INFO_OFFSET
    return TEXTURE_INFO_OFFSET


def companion_texture_path(path: str) -> Optional[str]:
    """
    Find the external texture model for a studio model.

    Args:
        path: Path to e.g. "models/barney.mdl"

    Returns:
        Path to "models/barneyT.mdl" (or "barneyt.mdl") if it exists
    """
    stem, ext = os.path.splitext(path)
    for suffix in ("T", "t"):
        candidate = f"{stem}{suffix}{ext}"
        if os.path.isfile(candidate):
            return candidate
    return None


# ==============================================================================
# MDL LOADER
# ==============================================================================
class ModelLoader(BaseLoader):
    """
    Loader for the textures embedded in GoldSrc .mdl files.

    Sequence group files ("IDSQ") share the extension but carry no
    textures; they fail the magic check like any other foreign file.
    """

    format = ContainerFormat.MODEL
    magic = MODEL_MAGIC
    extensions = ['.mdl']
    display_name = "MDL"

    def read_header(self, f: BinaryIO, path: str) -> ModelHeader:
        """
        Read the studio header fields, including the version-dependent
        texture triple. f must be positioned just after the magic.
        """
        version, raw_name, length = read_struct(f, f"<i{MODEL_NAME_SIZE}si", path)
        header = ModelHeader(version=version, name=decode_name(raw_name), length=length)

        f.seek(texture_info_offset(version))
        (header.num_textures,
         header.texture_index,
         header.texture_data_index) = read_struct(f, "<iii", path)
        return header

    def _read_table(self, f: BinaryIO, path: str,
                    file_size: int) -> Optional[Tuple[ModelHeader, List[ResourceEntry]]]:
        header = self.read_header(f, path)
        basename = os.path.basename(path)

        # Same check as the HLSDK: a zero offset means no textures
        if header.texture_index <= 0:
            self._non_fatal(
                MalformedResourceError,
                f"{basename}: first texture index is {header.texture_index}; "
                f"is this an untextured model?"
            )
            return None

        if header.num_textures < 0:
            self._non_fatal(MalformedResourceError,
                            f"{basename}: negative texture count {header.num_textures}")
            return None

        print(f"[INFO] {basename}: MDL version {header.version}, {header.num_textures} texture(s)")

        if header.num_textures == 0:
            return header, []

        if not self._check_range(path, header.texture_index,
                                 TEXTURE_ENTRY_SIZE * header.num_textures, file_size, "texture table"):
            return None

        f.seek(header.texture_index)
        entries = []
        for i in range(header.num_textures):
            raw_name, flags, width, height, index = read_struct(f, TEXTURE_ENTRY_FORMAT, path)
            entry = ResourceEntry(
                index=i,
                name=decode_name(raw_name),
                offset=index,
                width=width,
                height=height,
                flags=flags,
                size=max(width, 0) * max(height, 0) + PALETTE_RGB_SIZE,
            )
            entry.supported = self._validate_entry(path, entry, file_size)
            entries.append(entry)

        return header, entries

    def _validate_entry(self, path: str, entry: ResourceEntry, file_size: int) -> bool:
        if entry.width <= 0 or entry.height <= 0:
            self._non_fatal(
                MalformedResourceError,
                f"{os.path.basename(path)}: texture {entry.name!r} has invalid size "
                f"{entry.width}x{entry.height}, skipping"
            )
            return False
        return self._check_range(path, entry.offset, entry.size, file_size,
                                 f"texture {entry.name!r}")


# ==============================================================================
# REGISTER LOADER
# ==============================================================================
LoaderRegistry.register(ModelLoader)
