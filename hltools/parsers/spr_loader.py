# ==============================================================================
# SPR LOADER MODULE
# ==============================================================================
# Frame loader for GoldSrc sprites (.spr, magic "IDSP", version 2).
#
# SPR File Format (little-endian):
#   Header (40 bytes):
#     - Magic: "IDSP" (4 bytes)
#     - Version: int32 (2 for Half-Life; Quake's version 1 has no palette)
#     - Type: int32 (orientation: parallel, oriented, ...)
#     - Texture format: int32
#         0 normal, 1 additive, 2 index alpha, 3 alpha test
#     - Bounding radius: float
#     - Max width, max height: int32
#     - Frame count: int32
#     - Beam length: float
#     - Sync type: int32
#
#   Palette (shared by every frame):
#     - Color count: uint16 (256 in practice)
#     - count x (R, G, B)
#
#   Frames, one after another:
#     - Frame type: int32 (0 = single frame, otherwise a frame group)
#     - Single frame: origin x, origin y, width, height (int32 each),
#       then width*height palette indices
#     - Group: int32 count, count float intervals, then count single
#       frames (without their own frame type field)
#
# Sprites have no per-frame names; frame N of "fire.spr" is named "fire<N>".
# Alpha-test sprites use palette index 255 as the transparent color.
#
# References:
#   - HLSDK spritegn.h
#
# Usage:
#   loader = SpriteLoader()
#   frames = loader.load("sprites/fire.spr")
# ==============================================================================

import os
import struct
from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional, Tuple

from .base_loader import (
    BaseLoader, ContainerFormat, LoaderRegistry, ResourceEntry,
    read_exact, read_struct,
)
from ..core.errors import MalformedResourceError, UnsupportedFileError
from ..core.texture import (
    Color, DecodedTexture, FLAG_ADDITIVE, FLAG_MASKED, PALETTE_COLOR_COUNT,
    palette_from_rgb,
)


# ==============================================================================
# SPR CONSTANTS
# ==============================================================================

SPRITE_MAGIC = b"IDSP"

SPRITE_VERSION = 2

# version, type, texture format, bounding radius, max width, max height,
# frame count, beam length, sync type
SPRITE_HEADER_FORMAT = "<iiifiiifi"

FRAME_HEADER_FORMAT = "<iiii"
FRAME_HEADER_SIZE = struct.calcsize(FRAME_HEADER_FORMAT)

# Frame types
FRAME_SINGLE = 0

# Texture formats
SPR_NORMAL = 0
SPR_ADDITIVE = 1
SPR_INDEXALPHA = 2
SPR_ALPHTEST = 3

TEXTURE_FORMAT_FLAGS = {
    SPR_ADDITIVE: FLAG_ADDITIVE,
    SPR_ALPHTEST: FLAG_MASKED,
}


# ==============================================================================
# HEADER DATA CLASS
# ==============================================================================
@dataclass
class SpriteHeader:
    """
    Sprite header plus the shared palette.

    Attributes:
        version: Sprite version (2)
        sprite_type: Orientation type
        texture_format: One of the SPR_* texture formats
        bounding_radius: Bounding radius
        max_width: Largest frame width
        max_height: Largest frame height
        num_frames: Number of frames/groups
        beam_length: Beam length
        sync_type: Animation sync type
        palette: 256 RGBA colors shared by all frames
    """
    version: int
    sprite_type: int
    texture_format: int
    bounding_radius: float
    max_width: int
    max_height: int
    num_frames: int
    beam_length: float
    sync_type: int
    palette: List[Color] = field(default_factory=list)

    @property
    def flags(self) -> int:
        return TEXTURE_FORMAT_FLAGS.get(self.texture_format, 0)


# ==============================================================================
# SPR LOADER
# ==============================================================================
class SpriteLoader(BaseLoader):
    """
    Loader for GoldSrc sprites.

    Every frame, including each frame of a frame group, becomes one
    DecodedTexture sharing a copy of the sprite palette.
    """

    format = ContainerFormat.SPRITE
    magic = SPRITE_MAGIC
    extensions = ['.spr']
    display_name = "SPR"

    def _read_table(self, f: BinaryIO, path: str,
                    file_size: int) -> Optional[Tuple[SpriteHeader, List[ResourceEntry]]]:
        header = SpriteHeader(*read_struct(f, SPRITE_HEADER_FORMAT, path))
        basename = os.path.basename(path)

        if header.version != SPRITE_VERSION:
            self._non_fatal(
                UnsupportedFileError,
                f"{basename}: unsupported sprite version {header.version} "
                f"(only version {SPRITE_VERSION} is supported)"
            )
            return None

        if header.num_frames < 0:
            self._non_fatal(MalformedResourceError,
                            f"{basename}: negative frame count {header.num_frames}")
            return None

        (colors,) = read_struct(f, "<H", path)
        colors = min(colors, PALETTE_COLOR_COUNT)
        header.palette = palette_from_rgb(read_exact(f, colors * 3, path))

        stem = os.path.splitext(basename)[0]
        entries = []
        for _ in range(header.num_frames):
            (frame_type,) = read_struct(f, "<i", path)
            if frame_type == FRAME_SINGLE:
                group = 1
            else:
                (group,) = read_struct(f, "<i", path)
                if group < 0:
                    self._non_fatal(MalformedResourceError,
                                    f"{basename}: frame group with {group} frames")
                    break
                # Every grouped frame needs an interval and a frame header at least
                if not self._check_range(path, f.tell(), group * (4 + FRAME_HEADER_SIZE),
                                         file_size, f"frame group of {group} frames"):
                    break
                # Frame intervals, not needed for extraction
                read_exact(f, group * 4, path)

            for _ in range(group):
                entry = self._read_frame(f, path, stem, len(entries), header, file_size)
                if entry is None:
                    # Without a valid size there's no way to find the next frame
                    return header, entries
                entries.append(entry)

        print(f"[INFO] {basename}: sprite with {len(entries)} frame(s), "
              f"texture format {header.texture_format}")
        return header, entries

    def _read_frame(self, f: BinaryIO, path: str, stem: str, index: int,
                    header: SpriteHeader, file_size: int) -> Optional[ResourceEntry]:
        """Read one frame header and skip past its pixels."""
        origin_x, origin_y, width, height = read_struct(f, FRAME_HEADER_FORMAT, path)
        offset = f.tell()

        if width <= 0 or height <= 0:
            self._non_fatal(
                MalformedResourceError,
                f"{os.path.basename(path)}: frame {index} has invalid size {width}x{height}"
            )
            return None

        if not self._check_range(path, offset, width * height, file_size, f"frame {index}"):
            return None

        f.seek(offset + width * height)
        return ResourceEntry(
            index=index,
            name=f"{stem}{index}",
            offset=offset,
            width=width,
            height=height,
            flags=header.flags,
            size=width * height,
            extra={'origin': (origin_x, origin_y)},
        )

    def _decode_entry(self, f: BinaryIO, path: str, header: SpriteHeader,
                      entry: ResourceEntry) -> Optional[DecodedTexture]:
        f.seek(entry.offset)
        pixels = read_exact(f, entry.width * entry.height, path)
        # Each frame gets its own palette list so masking one doesn't touch the others
        return self._make_texture(path, entry, pixels, list(header.palette))


# ==============================================================================
# REGISTER LOADER
# ==============================================================================
LoaderRegistry.register(SpriteLoader)
