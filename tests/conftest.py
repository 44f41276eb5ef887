# ==============================================================================
# TEST FIXTURES
# ==============================================================================
# Builders for small synthetic GoldSrc files. Each builder returns the raw
# bytes; the fixtures at the bottom write them into pytest's tmp_path.
# ==============================================================================

import struct

import pytest

from hltools.core.texture import DecodedTexture, FLAG_MASKED


# ==============================================================================
# PALETTES AND PIXELS
# ==============================================================================

def rgb_palette(colors: int = 256) -> bytes:
    """Deterministic palette: entry i is (i, 255 - i, i // 2)."""
    return b"".join(bytes((i % 256, (255 - i) % 256, (i // 2) % 256)) for i in range(colors))


def pixel_ramp(width: int, height: int, last_is_mask: bool = False) -> bytes:
    """width*height indices counting up; optionally ends on index 255."""
    pixels = bytearray((i % 255) for i in range(width * height))
    if last_is_mask and pixels:
        pixels[-1] = 255
    return bytes(pixels)


# ==============================================================================
# SPRITE BUILDER
# ==============================================================================

def build_sprite(frames, texture_format: int = 0, version: int = 2, groups=None) -> bytes:
    """
    Build an IDSP sprite.

    Args:
        frames: List of (width, height) for single frames
        texture_format: SPR texture format (3 = alpha test)
        version: Sprite version field
        groups: Optional list of lists of (width, height), appended as
                frame groups after the single frames
    """
    groups = groups or []
    max_w = max([w for w, _ in frames] + [w for g in groups for w, _ in g] + [1])
    max_h = max([h for _, h in frames] + [h for g in groups for _, h in g] + [1])

    data = b"IDSP"
    data += struct.pack("<iiifiiifi", version, 2, texture_format, 8.0,
                        max_w, max_h, len(frames) + len(groups), 0.0, 0)
    data += struct.pack("<H", 256) + rgb_palette()

    def single(width, height):
        return struct.pack("<iiii", -width // 2, height // 2, width, height) + \
            pixel_ramp(width, height, last_is_mask=True)

    for width, height in frames:
        data += struct.pack("<i", 0) + single(width, height)

    for group in groups:
        data += struct.pack("<ii", 1, len(group))
        data += b"".join(struct.pack("<f", 0.1) for _ in group)
        for width, height in group:
            data += single(width, height)

    return data


# ==============================================================================
# WAD BUILDER
# ==============================================================================

def miptex_lump(name: str, width: int, height: int) -> bytes:
    """A 0x43 miptex lump with four mip levels and a trailing palette."""
    header_size = struct.calcsize("<16sII4I")
    m0 = header_size
    m1 = m0 + width * height
    m2 = m1 + (width // 2) * (height // 2)
    m3 = m2 + (width // 4) * (height // 4)
    lump = struct.pack("<16sII4I", name.encode("ascii"), width, height, m0, m1, m2, m3)
    lump += pixel_ramp(width, height, last_is_mask=True)
    lump += bytes((width // 2) * (height // 2))
    lump += bytes((width // 4) * (height // 4))
    lump += bytes((width // 8) * (height // 8))
    lump += struct.pack("<H", 256) + rgb_palette() + b"\x00\x00"
    return lump


def qpic_lump(width: int, height: int) -> bytes:
    """A 0x42 qpic lump."""
    return (struct.pack("<ii", width, height) + pixel_ramp(width, height)
            + struct.pack("<H", 256) + rgb_palette())


def build_wad(lumps) -> bytes:
    """
    Build a WAD3 archive.

    Args:
        lumps: List of (name, type_code, lump_bytes)
    """
    data = bytearray(b"WAD3" + struct.pack("<ii", len(lumps), 0))
    directory = b""
    for name, type_code, lump in lumps:
        offset = len(data)
        data += lump
        directory += struct.pack("<iiiBBH16s", offset, len(lump), len(lump),
                                 type_code, 0, 0, name.encode("ascii"))
    dir_offset = len(data)
    data += directory
    struct.pack_into("<i", data, 8, dir_offset)
    return bytes(data)


# ==============================================================================
# MODEL BUILDER
# ==============================================================================

def build_model(textures, version: int = 10, texture_index: int = None) -> bytes:
    """
    Build an IDST studio model that only carries textures.

    Args:
        textures: List of (name, flags, width, height)
        version: Studio version (6 moves the texture triple to 0x64)
        texture_index: Override for the texture table offset
    """
    info_offset = 0x64 if version == 6 else 180
    table_offset = 192
    data_offset = table_offset + 80 * len(textures)

    data = bytearray(table_offset)
    data[0:4] = b"IDST"
    struct.pack_into("<i64si", data, 4, version, b"test.mdl", 0)

    table = b""
    payload = b""
    for name, flags, width, height in textures:
        table += struct.pack("<64sIiii", name.encode("ascii"), flags, width, height,
                             data_offset + len(payload))
        payload += pixel_ramp(width, height, last_is_mask=True) + rgb_palette()

    if texture_index is None:
        texture_index = table_offset
    struct.pack_into("<iii", data, info_offset, len(textures), texture_index, data_offset)

    data += table + payload
    struct.pack_into("<i", data, 72, len(data))
    return bytes(data)


# ==============================================================================
# FIXTURES
# ==============================================================================

@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the real user config file."""
    path = tmp_path / "hltools-config.json"
    monkeypatch.setenv("HLTOOLS_CONFIG", str(path))
    return path


@pytest.fixture
def write_file(tmp_path):
    """Write bytes to tmp_path/<name> and return the path as a string."""
    def _write(name: str, data: bytes) -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return str(path)
    return _write


@pytest.fixture
def sprite_file(write_file):
    return write_file("fire.spr", build_sprite([(4, 4), (8, 2)], texture_format=3))


@pytest.fixture
def wad_file(write_file):
    return write_file("test.wad", build_wad([
        ("brick", 0x43, miptex_lump("brick", 16, 16)),
        ("{grate", 0x43, miptex_lump("{grate", 8, 8)),
        ("conchars", 0x42, qpic_lump(4, 4)),
        ("readme", 0x44, b"not a texture"),
    ]))


@pytest.fixture
def model_file(write_file):
    return write_file("barney.mdl", build_model([
        ("skin.bmp", 0, 4, 4),
        ("chrome_glass.bmp", FLAG_MASKED, 2, 2),
    ]))


@pytest.fixture
def masked_texture():
    """4x4 masked texture whose last pixel uses index 255."""
    texture = DecodedTexture(
        name="{fence",
        width=4,
        height=4,
        pixels=pixel_ramp(4, 4, last_is_mask=True),
        flags=FLAG_MASKED,
    )
    texture.apply_mask()
    return texture


@pytest.fixture
def opaque_texture():
    return DecodedTexture(name="wall", width=4, height=4, pixels=pixel_ramp(4, 4))
