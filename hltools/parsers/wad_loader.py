# ==============================================================================
# WAD LOADER MODULE
# ==============================================================================
# Texture loader for GoldSrc WAD3 texture archives (.wad, magic "WAD3").
#
# WAD3 Format Overview:
#   Header (12 bytes):
#     - Magic: "WAD3" (4 bytes)
#     - Lump count: int32
#     - Directory offset: int32
#
#   Directory entry (32 bytes each):
#     - File offset: int32 (start of the lump)
#     - Disk size: int32
#     - Size: int32 (uncompressed)
#     - Type: uint8
#     - Compression: uint8 (always 0 in practice)
#     - Padding: 2 bytes
#     - Name: 16 bytes, NUL-terminated
#
# Lump types carrying a raster:
#   0x40  decal    same layout as miptex (tempdecal.wad)
#   0x42  qpic     width, height, pixels, palette
#   0x43  miptex   name[16], width, height, 4 mip offsets, 4 mip levels,
#                  palette after the smallest mip
#   0x46  font     width, height, row count, row height, 256 glyph
#                  entries, pixels, palette
# Every other type is listed and skipped.
#
# Each palette is a uint16 color count followed by count RGB triples.
#
# Textures whose name starts with '{' use palette index 255 as the
# transparent color.
#
# References:
#   - https://developer.valvesoftware.com/wiki/WAD
#   - HLSDK wadfile.h
#
# Usage:
#   loader = WadLoader()
#   for texture in loader.load("halflife.wad"):
#       print(texture.name, texture.width, texture.height)
# ==============================================================================

import os
import struct
from dataclasses import dataclass
from typing import BinaryIO, List, Optional, Tuple

from .base_loader import (
    BaseLoader, ContainerFormat, LoaderRegistry, ResourceEntry,
    decode_name, read_exact, read_struct,
)
from ..core.errors import MalformedResourceError
from ..core.texture import DecodedTexture, FLAG_MASKED, PALETTE_COLOR_COUNT, palette_from_rgb


# ==============================================================================
# WAD CONSTANTS
# ==============================================================================

WAD_MAGIC = b"WAD3"

# offset, disk size, size, type, compression, pad, name[16]
LUMP_ENTRY_FORMAT = "<iiiBBH16s"
LUMP_ENTRY_SIZE = struct.calcsize(LUMP_ENTRY_FORMAT)

LUMP_NAME_SIZE = 16

# Lump types
LUMP_TYPE_DECAL = 0x40
LUMP_TYPE_QPIC = 0x42
LUMP_TYPE_MIPTEX = 0x43
LUMP_TYPE_FONT = 0x46

TEXTURE_LUMP_TYPES = {LUMP_TYPE_DECAL, LUMP_TYPE_QPIC, LUMP_TYPE_MIPTEX, LUMP_TYPE_FONT}

# name[16], width, height, offsets[4]
MIPTEX_HEADER_FORMAT = f"<{LUMP_NAME_SIZE}sII4I"
MIPTEX_HEADER_SIZE = struct.calcsize(MIPTEX_HEADER_FORMAT)

QPIC_HEADER_FORMAT = "<ii"
QPIC_HEADER_SIZE = struct.calcsize(QPIC_HEADER_FORMAT)

# width, height, row count, row height, then 256 x (offset, char width)
FONT_HEADER_FORMAT = "<iiii"
FONT_HEADER_SIZE = struct.calcsize(FONT_HEADER_FORMAT) + PALETTE_COLOR_COUNT * 4

# Prefix marking a texture whose index 255 is transparent
MASKED_NAME_PREFIX = "{"


# ==============================================================================
# HEADER DATA CLASS
# ==============================================================================
@dataclass
class WadHeader:
    """
    WAD3 header.

    Attributes:
        num_lumps: Number of directory entries
        dir_offset: Offset of the lump directory
    """
    num_lumps: int
    dir_offset: int


def is_masked_name(name: str) -> bool:
    """GoldSrc convention: '{' textures are alpha-tested on index 255."""
    return name.startswith(MASKED_NAME_PREFIX)


# ==============================================================================
# WAD LOADER
# ==============================================================================
class WadLoader(BaseLoader):
    """
    Loader for GoldSrc WAD3 texture archives.

    Only lumps with one of the four raster type codes are decoded. Other
    lumps show up in list_resources() with supported=False.
    """

    format = ContainerFormat.ARCHIVE
    magic = WAD_MAGIC
    extensions = ['.wad']
    display_name = "WAD3"

    def _read_table(self, f: BinaryIO, path: str,
                    file_size: int) -> Optional[Tuple[WadHeader, List[ResourceEntry]]]:
        num_lumps, dir_offset = read_struct(f, "<ii", path)
        header = WadHeader(num_lumps=num_lumps, dir_offset=dir_offset)
        basename = os.path.basename(path)

        if dir_offset <= 0:
            self._non_fatal(MalformedResourceError,
                            f"{basename}: lump directory offset is {dir_offset}, nothing to extract")
            return None

        if num_lumps < 0:
            self._non_fatal(MalformedResourceError, f"{basename}: negative lump count {num_lumps}")
            return None

        if num_lumps == 0:
            return header, []

        if not self._check_range(path, dir_offset, LUMP_ENTRY_SIZE * num_lumps,
                                 file_size, "lump directory"):
            return None

        f.seek(dir_offset)
        lumps = [read_struct(f, LUMP_ENTRY_FORMAT, path) for _ in range(num_lumps)]

        entries = []
        for i, (filepos, disk_size, size, lump_type, compression, _, raw_name) in enumerate(lumps):
            name = decode_name(raw_name)
            entry = ResourceEntry(
                index=i,
                name=name,
                offset=filepos,
                type_code=lump_type,
                size=disk_size,
                flags=FLAG_MASKED if is_masked_name(name) else 0,
                supported=lump_type in TEXTURE_LUMP_TYPES,
            )
            entries.append(entry)

            if not entry.supported:
                continue

            if compression != 0:
                print(f"[WARN] {basename}: lump {name!r} is compressed (type {compression}), skipping")
                entry.supported = False
                continue

            entry.supported = self._read_lump_layout(f, path, entry, file_size)

        textures = sum(1 for e in entries if e.supported)
        print(f"[INFO] {basename}: {num_lumps} lump(s), {textures} texture(s)")
        return header, entries

    def _read_lump_layout(self, f: BinaryIO, path: str, entry: ResourceEntry,
                          file_size: int) -> bool:
        """
        Read a texture lump's own header to find its size, pixels and palette.

        Fills entry.width/height and entry.extra['pixel_offset'] /
        entry.extra['palette_offset'].

        Returns:
            True if the lump can be decoded
        """
        what = f"lump {entry.name!r}"
        header_size = {
            LUMP_TYPE_DECAL: MIPTEX_HEADER_SIZE,
            LUMP_TYPE_MIPTEX: MIPTEX_HEADER_SIZE,
            LUMP_TYPE_QPIC: QPIC_HEADER_SIZE,
            LUMP_TYPE_FONT: FONT_HEADER_SIZE,
        }[entry.type_code]

        if not self._check_range(path, entry.offset, header_size, file_size, what):
            return False

        f.seek(entry.offset)
        if entry.type_code in (LUMP_TYPE_MIPTEX, LUMP_TYPE_DECAL):
            _, width, height, m0, _, _, m3 = read_struct(f, MIPTEX_HEADER_FORMAT, path)
            pixel_offset = entry.offset + m0
            # Palette follows the fourth (1/8 scale) mip level
            palette_offset = entry.offset + m3 + (width // 8) * (height // 8)
        elif entry.type_code == LUMP_TYPE_QPIC:
            width, height = read_struct(f, QPIC_HEADER_FORMAT, path)
            pixel_offset = entry.offset + QPIC_HEADER_SIZE
            palette_offset = pixel_offset + width * height
        else:
            width, height, _, _ = read_struct(f, FONT_HEADER_FORMAT, path)
            pixel_offset = entry.offset + FONT_HEADER_SIZE
            palette_offset = pixel_offset + width * height

        entry.width = width
        entry.height = height
        entry.extra['pixel_offset'] = pixel_offset
        entry.extra['palette_offset'] = palette_offset

        if width <= 0 or height <= 0:
            self._non_fatal(
                MalformedResourceError,
                f"{os.path.basename(path)}: {what} has invalid size {width}x{height}, skipping"
            )
            return False

        return (self._check_range(path, pixel_offset, width * height, file_size, f"{what} pixels")
                and self._check_range(path, palette_offset, 2, file_size, f"{what} palette"))

    def _decode_entry(self, f: BinaryIO, path: str, header: WadHeader,
                      entry: ResourceEntry) -> Optional[DecodedTexture]:
        f.seek(entry.extra['pixel_offset'])
        pixels = read_exact(f, entry.width * entry.height, path)

        f.seek(entry.extra['palette_offset'])
        (colors,) = read_struct(f, "<H", path)
        colors = min(colors, PALETTE_COLOR_COUNT)
        palette = palette_from_rgb(read_exact(f, colors * 3, path))

        return self._make_texture(path, entry, pixels, palette)


# ==============================================================================
# REGISTER LOADER
# ==============================================================================
LoaderRegistry.register(WadLoader)
