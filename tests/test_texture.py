import pytest

from hltools.core.texture import (
    DecodedTexture, FLAG_ADDITIVE, FLAG_CHROME, FLAG_FULLBRIGHT, FLAG_MASKED, MASK_INDEX,
    describe_flags, grayscale_palette, palette_from_rgb,
)


def test_palette_from_rgb_pads_short_palettes():
    palette = palette_from_rgb(b"\x01\x02\x03\x04\x05\x06")
    assert len(palette) == 256
    assert palette[0] == (1, 2, 3, 255)
    assert palette[1] == (4, 5, 6, 255)
    assert palette[2] == (0, 0, 0, 255)


def test_palette_from_rgb_truncates_long_palettes():
    palette = palette_from_rgb(bytes(range(256)) * 4)
    assert len(palette) == 256


def test_rejects_bad_dimensions():
    with pytest.raises(ValueError):
        DecodedTexture(name="x", width=0, height=4, pixels=b"")


def test_rejects_wrong_pixel_count():
    with pytest.raises(ValueError):
        DecodedTexture(name="x", width=2, height=2, pixels=b"\x00\x00\x00")


def test_rejects_short_palette():
    with pytest.raises(ValueError):
        DecodedTexture(name="x", width=1, height=1, pixels=b"\x00", palette=grayscale_palette()[:10])


def test_flags():
    texture = DecodedTexture(name="x", width=1, height=1, pixels=b"\x00",
                             flags=FLAG_MASKED | FLAG_ADDITIVE)
    assert texture.is_masked()
    assert texture.is_additive()


def test_apply_mask_only_touches_index_255(opaque_texture):
    assert not opaque_texture.has_transparency()
    opaque_texture.apply_mask()

    assert opaque_texture.has_transparency()
    assert opaque_texture.palette[MASK_INDEX] == (255, 255, 255, 0)
    alpha = opaque_texture.alpha_channel()
    assert alpha == b"\xff" * 255 + b"\x00"


def test_rgb_palette_bytes(opaque_texture):
    rgb = opaque_texture.rgb_palette_bytes()
    assert len(rgb) == 768
    assert rgb[3:6] == b"\x01\x01\x01"


def test_to_image(opaque_texture):
    img = opaque_texture.to_image()
    assert img.mode == "P"
    assert img.size == (4, 4)
    assert img.getpixel((1, 0)) == 1


def test_to_rgba_image(masked_texture):
    img = masked_texture.to_rgba_image()
    assert img.mode == "RGBA"
    assert img.size == (4, 4)
    assert img.getpixel((0, 0)) == (0, 0, 0, 255)
    assert img.getpixel((3, 3)) == (255, 255, 255, 0)


def test_describe_flags():
    assert describe_flags(0) == "-"
    assert describe_flags(FLAG_MASKED) == "masked"
    assert describe_flags(FLAG_CHROME | FLAG_FULLBRIGHT) == "chrome,fullbright"
    assert describe_flags(FLAG_ADDITIVE | 0x1000) == "additive"
