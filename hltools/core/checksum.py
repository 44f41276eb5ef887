# ==============================================================================
# CHECKSUM MODULE
# ==============================================================================
# Table-driven CRC32 (reflected, polynomial 0xEDB88320) as used by PNG chunks.
#
# The lookup table is built the first time a checksum is requested and kept
# at module level afterwards. It is never modified once built, so it can be
# shared freely between threads.
#
# Usage:
#   from hltools.core.checksum import crc32
#   crc = crc32(b"tRNS" + alpha_bytes)
# ==============================================================================

from typing import List, Optional

# Reflected IEEE 802.3 polynomial
CRC32_POLYNOMIAL = 0xEDB88320

# Seed and final XOR value
CRC32_MASK = 0xFFFFFFFF

_crc_table: Optional[List[int]] = None


def make_crc_table() -> List[int]:
    """
    Build the 256-entry CRC lookup table.

    Returns:
        List of 256 ints, one per byte value
    """
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            if c & 1:
                c = CRC32_POLYNOMIAL ^ (c >> 1)
            else:
                c = c >> 1
        table.append(c)
    return table


def get_crc_table() -> List[int]:
    """Return the cached lookup table, building it on first use."""
    global _crc_table
    if _crc_table is None:
        _crc_table = make_crc_table()
    return _crc_table


def update_crc(crc: int, data: bytes) -> int:
    """
    Fold bytes into a running CRC.

    The running value should start at all ones (0xFFFFFFFF); the
    transmitted CRC is the ones' complement of the final value.

    Args:
        crc: Running CRC value
        data: Bytes to add

    Returns:
        Updated running CRC
    """
    table = get_crc_table()
    c = crc
    for byte in data:
        c = table[(c ^ byte) & 0xFF] ^ (c >> 8)
    return c


def crc32(data: bytes) -> int:
    """
    Compute the CRC32 of a byte sequence.

    Args:
        data: Bytes to checksum (may be empty)

    Returns:
        Unsigned 32-bit CRC

    Example:
        >>> crc32(b"haha")
        22155654
    """
    return update_crc(CRC32_MASK, data) ^ CRC32_MASK


# Name used by the PNG patcher
checksum = crc32
