# ==============================================================================
# DECODED TEXTURE MODULE
# ==============================================================================
# Common in-memory representation produced by every container loader.
#
# A DecodedTexture is an 8-bit palette-indexed raster:
#   - pixels:  width * height palette indices, row-major
#   - palette: exactly 256 (R, G, B, A) entries, alpha 255 unless masked
#
# FLAG BITS:
# ----------
# Model textures keep their on-disk studio flags. Sprites and WAD lumps
# translate their own markers into the same bits so callers only need to
# check one place:
#   - FLAG_MASKED   (0x40): palette index 255 renders fully transparent
#   - FLAG_ADDITIVE (0x20): recognised but intentionally not acted upon
#
# Usage:
#   texture = DecodedTexture("wall", 64, 64, pixels, palette, flags)
#   texture.to_image().save("wall.png", "PNG")
# ==============================================================================

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np
from PIL import Image


# ==============================================================================
# CONSTANTS
# ==============================================================================

# Number of entries in every palette
PALETTE_COLOR_COUNT = 256

# Size of a packed RGB palette (256 colors x 3 bytes)
PALETTE_RGB_SIZE = PALETTE_COLOR_COUNT * 3

# Index used as the transparency sentinel for masked textures
MASK_INDEX = 255

OPAQUE = 255
TRANSPARENT = 0

# Flag bits (GoldSrc STUDIO_NF_* values)
FLAG_CHROME = 0x02
FLAG_FULLBRIGHT = 0x04
FLAG_ADDITIVE = 0x20
FLAG_MASKED = 0x40

FLAG_NAMES = {
    FLAG_CHROME: "chrome",
    FLAG_FULLBRIGHT: "fullbright",
    FLAG_ADDITIVE: "additive",
    FLAG_MASKED: "masked",
}

Color = Tuple[int, int, int, int]


def describe_flags(flags: int) -> str:
    """Comma-separated names of the known flag bits, '-' if none are set."""
    names = [name for bit, name in FLAG_NAMES.items() if flags & bit]
    return ",".join(names) or "-"


# ==============================================================================
# PALETTE HELPERS
# ==============================================================================

def palette_from_rgb(data: bytes) -> List[Color]:
    """
    Build a 256-entry RGBA palette from packed RGB triples.

    Short palettes are padded with opaque black, long ones truncated, so
    the result always has PALETTE_COLOR_COUNT entries.

    Args:
        data: Packed R, G, B bytes

    Returns:
        List of 256 (R, G, B, A) tuples with alpha 255
    """
    colors = min(len(data) // 3, PALETTE_COLOR_COUNT)
    palette = [
        (data[i * 3], data[i * 3 + 1], data[i * 3 + 2], OPAQUE)
        for i in range(colors)
    ]
    palette.extend([(0, 0, 0, OPAQUE)] * (PALETTE_COLOR_COUNT - colors))
    return palette


def grayscale_palette() -> List[Color]:
    """Opaque grayscale ramp, handy as a placeholder palette."""
    return [(i, i, i, OPAQUE) for i in range(PALETTE_COLOR_COUNT)]


# ==============================================================================
# DATA CLASS
# ==============================================================================

@dataclass
class DecodedTexture:
    """
    A palette-indexed texture decoded from a game container.

    Attributes:
        name: Texture name (raw, not yet sanitized for the filesystem)
        width: Width in pixels
        height: Height in pixels
        pixels: width * height palette indices
        palette: 256 RGBA tuples
        flags: Flag bits (see FLAG_* constants)
        source_path: Container file the texture was read from
        index: Position of the resource inside its container
    """
    name: str
    width: int
    height: int
    pixels: bytes
    palette: List[Color] = field(default_factory=grayscale_palette)
    flags: int = 0
    source_path: str = ""
    index: int = 0

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid texture size {self.width}x{self.height}")
        if len(self.pixels) != self.width * self.height:
            raise ValueError(
                f"Texture {self.name!r} has {len(self.pixels)} pixels, "
                f"expected {self.width * self.height}"
            )
        if len(self.palette) != PALETTE_COLOR_COUNT:
            raise ValueError(f"Palette must have {PALETTE_COLOR_COUNT} entries, got {len(self.palette)}")

    # ==========================================================================
    # FLAGS
    # ==========================================================================

    def is_masked(self) -> bool:
        """Check if index 255 should be transparent."""
        return bool(self.flags & FLAG_MASKED)

    def is_additive(self) -> bool:
        """Check for additive blending. Callers currently ignore this."""
        return bool(self.flags & FLAG_ADDITIVE)

    def apply_mask(self):
        """Make palette index 255 fully transparent."""
        r, g, b, _ = self.palette[MASK_INDEX]
        self.palette[MASK_INDEX] = (r, g, b, TRANSPARENT)

    # ==========================================================================
    # PALETTE ACCESS
    # ==========================================================================

    def has_transparency(self) -> bool:
        """True if any palette entry is not fully opaque."""
        return any(color[3] != OPAQUE for color in self.palette)

    def alpha_channel(self) -> bytes:
        """Alpha value of every palette entry, in index order (256 bytes)."""
        return bytes(color[3] for color in self.palette)

    def rgb_palette_bytes(self) -> bytes:
        """Palette as 768 packed RGB bytes, the layout Pillow expects."""
        return bytes(channel for color in self.palette for channel in color[:3])

    # ==========================================================================
    # IMAGE CONVERSION
    # ==========================================================================

    def to_image(self) -> Image.Image:
        """
        Convert to an 8-bit palette ("P" mode) Pillow image.

        Only the RGB part of the palette is attached; transparency is added
        to the saved PNG afterwards by the PNG patcher.
        """
        img = Image.frombytes("P", (self.width, self.height), bytes(self.pixels))
        img.putpalette(self.rgb_palette_bytes(), rawmode="RGB")
        return img

    def to_rgba_image(self) -> Image.Image:
        """
        Convert to a true-color RGBA Pillow image.

        Colors are looked up from the palette with numpy; the alpha of each
        pixel comes from the palette's alpha column.
        """
        pal_arr = np.array(self.palette, dtype=np.uint8).reshape(PALETTE_COLOR_COUNT, 4)
        idx = np.frombuffer(bytes(self.pixels), dtype=np.uint8)
        rgba = pal_arr[idx].reshape((self.height, self.width, 4))
        return Image.fromarray(np.ascontiguousarray(rgba))
