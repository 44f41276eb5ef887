# ==============================================================================
# PNG TRANSPARENCY PATCHER
# ==============================================================================
# Adds a tRNS chunk to an already-written 8-bit palette PNG.
#
# Pillow writes the baseline PNG from the texture's RGB palette only. This
# module reads that file back, finds the PLTE chunk and splices a tRNS chunk
# (one alpha byte per palette entry) directly after it. The result goes to a
# sibling file; the baseline is never touched.
#
# PNG CHUNK LAYOUT:
# -----------------
#   length  4 bytes, big-endian, payload size only
#   type    4 ASCII bytes ("PLTE", "tRNS", ...)
#   data    <length> bytes
#   crc     4 bytes, big-endian, CRC32 over type + data
#
# tRNS must come after PLTE and before the first IDAT, so inserting right
# after PLTE keeps the file valid.
#
# Usage:
#   out_path = patch("textures/{fence.png", texture)
#   if out_path:
#       print(f"Wrote {out_path}")
# ==============================================================================

import os
import struct
from dataclasses import dataclass
from typing import Optional, Tuple

from .checksum import crc32
from .errors import ChunkNotFoundError
from .texture import DecodedTexture, PALETTE_COLOR_COUNT


# ==============================================================================
# CONSTANTS
# ==============================================================================

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

PLTE_TAG = b"PLTE"
TRNS_TAG = b"tRNS"

# length field + type tag + crc
CHUNK_OVERHEAD = 12

# Default suffix for the patched file (<name>.png -> <name>.png.trans)
DEFAULT_SUFFIX = ".trans"


# ==============================================================================
# DATA CLASS
# ==============================================================================

@dataclass
class TransparencyChunk:
    """
    A serializable PNG tRNS chunk.

    Attributes:
        data: Alpha values, one byte per palette index
        length: Payload length (always 256 here)
        name: Chunk type tag
        crc: CRC32 over name + data
    """
    data: bytes
    length: int = PALETTE_COLOR_COUNT
    name: bytes = TRNS_TAG
    crc: int = 0

    def checksummed_bytes(self) -> bytes:
        """The part of the chunk covered by the CRC (type + payload)."""
        return self.name + self.data

    def to_bytes(self) -> bytes:
        """Serialize as length + type + data + crc, all big-endian."""
        return (
            struct.pack(">I", self.length)
            + self.checksummed_bytes()
            + struct.pack(">I", self.crc)
        )


# ==============================================================================
# CHUNK HELPERS
# ==============================================================================

def build_transparency_chunk(alpha: bytes) -> TransparencyChunk:
    """
    Build a tRNS chunk from a palette alpha column.

    Args:
        alpha: Exactly 256 alpha bytes

    Returns:
        TransparencyChunk with its CRC filled in
    """
    if len(alpha) != PALETTE_COLOR_COUNT:
        raise ValueError(f"Expected {PALETTE_COLOR_COUNT} alpha values, got {len(alpha)}")

    chunk = TransparencyChunk(data=bytes(alpha), length=len(alpha))
    chunk.crc = crc32(chunk.checksummed_bytes())
    return chunk


def find_palette_chunk(data: bytes) -> Tuple[int, int]:
    """
    Locate the PLTE chunk in raw PNG bytes.

    The search is a plain byte search for the type tag; the chunk starts 4
    bytes earlier, at its length field.

    Args:
        data: Complete PNG file contents

    Returns:
        Tuple of (chunk start offset, payload length)

    Raises:
        ChunkNotFoundError: No PLTE tag, or the chunk runs past end of file
    """
    tag_offset = data.find(PLTE_TAG, len(PNG_SIGNATURE))
    if tag_offset < len(PNG_SIGNATURE) + 4:
        raise ChunkNotFoundError("PNG has no PLTE chunk (is it an 8-bit palette image?)")

    chunk_start = tag_offset - 4
    (length,) = struct.unpack(">I", data[chunk_start:tag_offset])

    if chunk_start + length + CHUNK_OVERHEAD > len(data):
        raise ChunkNotFoundError(
            f"PLTE chunk at offset {chunk_start} claims {length} bytes, past end of file"
        )

    return chunk_start, length


def insert_transparency_chunk(data: bytes, chunk: TransparencyChunk) -> bytes:
    """
    Return a copy of a PNG with the chunk inserted right after PLTE.

    Args:
        data: Baseline PNG contents
        chunk: Chunk to insert

    Returns:
        New PNG contents
    """
    chunk_start, length = find_palette_chunk(data)
    insert_at = chunk_start + length + CHUNK_OVERHEAD
    return data[:insert_at] + chunk.to_bytes() + data[insert_at:]


def transparent_path(bitmap_path: str, suffix: str = DEFAULT_SUFFIX) -> str:
    """Path of the patched copy for a baseline PNG."""
    return bitmap_path + suffix


def hex_dump(data: bytes, per_row: int = 20) -> str:
    """Format bytes as uppercase hex, per_row bytes per line."""
    rows = []
    for i in range(0, len(data), per_row):
        rows.append(" ".join(f"{b:02X}" for b in data[i:i + per_row]))
    return "\n".join(rows)


# ==============================================================================
# PATCH
# ==============================================================================

def patch(bitmap_path: str, texture: DecodedTexture,
          suffix: str = DEFAULT_SUFFIX, debug_hex: bool = False) -> Optional[str]:
    """
    Write a copy of a palette PNG with the texture's alpha as a tRNS chunk.

    Nothing is written if the texture's palette is fully opaque.

    Args:
        bitmap_path: Baseline PNG written from texture.pixels / texture.palette
        texture: Texture whose palette alpha goes into the tRNS chunk
        suffix: Appended to bitmap_path to form the output path
        debug_hex: Print the checksummed bytes and the final chunk

    Returns:
        Path of the written file, or None when no patch was needed

    Raises:
        ChunkNotFoundError: The PNG has no usable PLTE chunk
        OSError: Reading the baseline or writing the copy failed
    """
    if not texture.has_transparency():
        return None

    with open(bitmap_path, 'rb') as f:
        original = f.read()

    chunk = build_transparency_chunk(texture.alpha_channel())

    if debug_hex:
        print(f"[DEBUG] tRNS checksum input ({len(chunk.checksummed_bytes())} bytes):")
        print(hex_dump(chunk.checksummed_bytes()))
        print(f"[DEBUG] tRNS chunk, crc=0x{chunk.crc:08X}:")
        print(hex_dump(chunk.to_bytes()))

    patched = insert_transparency_chunk(original, chunk)

    out_path = transparent_path(bitmap_path, suffix)
    try:
        with open(out_path, 'wb') as f:
            f.write(patched)
    except OSError:
        # Don't leave a half-written file behind
        if os.path.isfile(out_path):
            os.remove(out_path)
        raise

    return out_path
