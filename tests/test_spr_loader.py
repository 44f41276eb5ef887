import struct

import pytest

from conftest import build_sprite, rgb_palette
from hltools.core.errors import MalformedResourceError, TruncatedFileError, UnsupportedFileError
from hltools.core.texture import FLAG_ADDITIVE, FLAG_MASKED
from hltools.parsers.spr_loader import SpriteLoader


def test_loads_every_frame(sprite_file):
    frames = SpriteLoader().load(sprite_file)

    assert [t.name for t in frames] == ["fire0", "fire1"]
    assert [(t.width, t.height) for t in frames] == [(4, 4), (8, 2)]
    assert frames[0].pixels[:4] == b"\x00\x01\x02\x03"
    assert frames[0].palette[1] == (1, 254, 0, 255)


def test_alpha_test_sprite_is_masked(sprite_file):
    frames = SpriteLoader().load(sprite_file, want_transparency=True)

    for frame in frames:
        assert frame.flags & FLAG_MASKED
        assert frame.palette[255][3] == 0
        assert frame.palette[254][3] == 255


def test_transparency_not_requested(sprite_file):
    frames = SpriteLoader().load(sprite_file)
    assert not any(frame.has_transparency() for frame in frames)


def test_frames_have_their_own_palette(sprite_file):
    frames = SpriteLoader().load(sprite_file)
    frames[0].apply_mask()
    assert frames[1].palette[255][3] == 255


def test_normal_sprite_is_not_masked(write_file):
    path = write_file("smoke.spr", build_sprite([(2, 2)], texture_format=0))
    frames = SpriteLoader().load(path, want_transparency=True)
    assert frames[0].flags == 0
    assert not frames[0].has_transparency()


def test_additive_sprite_keeps_palette(write_file):
    path = write_file("glow.spr", build_sprite([(2, 2)], texture_format=1))
    frames = SpriteLoader().load(path, want_transparency=True)
    assert frames[0].is_additive()
    assert not frames[0].has_transparency()


def test_frame_groups(write_file):
    path = write_file("anim.spr", build_sprite([(2, 2)], groups=[[(3, 3), (4, 1)]]))
    frames = SpriteLoader().load(path)

    assert [t.name for t in frames] == ["anim0", "anim1", "anim2"]
    assert [(t.width, t.height) for t in frames] == [(2, 2), (3, 3), (4, 1)]


def test_list_resources(sprite_file):
    entries = SpriteLoader().list_resources(sprite_file)
    assert len(entries) == 2
    assert entries[0].extra["origin"] == (-2, 2)


def test_unsupported_version(write_file):
    path = write_file("quake.spr", build_sprite([(2, 2)], version=1))

    assert SpriteLoader().load(path) == []
    with pytest.raises(UnsupportedFileError):
        SpriteLoader(strict=True).load(path)


def test_wrong_magic(write_file):
    path = write_file("fake.spr", b"WAD3" + bytes(64))

    assert SpriteLoader().load(path) is None
    with pytest.raises(UnsupportedFileError):
        SpriteLoader(strict=True).load(path)


def test_truncated_header(write_file):
    path = write_file("short.spr", b"IDSP\x02\x00")
    with pytest.raises(TruncatedFileError):
        SpriteLoader().load(path)


def test_frame_past_end_of_file(write_file):
    data = build_sprite([(4, 4)])
    path = write_file("cut.spr", data[:-4])
    assert SpriteLoader().load(path) == []


def test_palette_matches_file(sprite_file):
    frames = SpriteLoader().load(sprite_file)
    assert frames[0].rgb_palette_bytes() == rgb_palette()


def oversized_group_sprite() -> bytes:
    data = bytearray(build_sprite([], groups=[[(2, 2)]]))
    # header (40) + palette count (2) + palette (768) + frame type (4)
    struct.pack_into("<i", data, 814, 0x7FFFFFFF)
    return bytes(data)


def test_oversized_frame_group(write_file):
    path = write_file("huge.spr", oversized_group_sprite())

    assert SpriteLoader().load(path) == []
    with pytest.raises(MalformedResourceError):
        SpriteLoader(strict=True).load(path)
