import os
import struct
import zlib

import pytest
from PIL import Image

from hltools.core import png_patcher
from hltools.core.errors import ChunkNotFoundError
from hltools.core.png_patcher import (
    PNG_SIGNATURE, build_transparency_chunk, find_palette_chunk, hex_dump,
    insert_transparency_chunk, patch, transparent_path,
)


@pytest.fixture
def baseline_png(tmp_path, masked_texture):
    path = str(tmp_path / "fence.png")
    masked_texture.to_image().save(path, "PNG")
    return path


def read(path):
    with open(path, "rb") as f:
        return f.read()


def test_build_chunk():
    alpha = b"\xff" * 255 + b"\x00"
    chunk = build_transparency_chunk(alpha)

    raw = chunk.to_bytes()
    assert len(raw) == 268
    assert raw[:4] == struct.pack(">I", 256)
    assert raw[4:8] == b"tRNS"
    assert raw[8:264] == alpha
    assert struct.unpack(">I", raw[264:])[0] == zlib.crc32(b"tRNS" + alpha)


def test_build_chunk_rejects_wrong_length():
    with pytest.raises(ValueError):
        build_transparency_chunk(b"\xff" * 10)


def test_find_palette_chunk(baseline_png):
    data = read(baseline_png)
    start, length = find_palette_chunk(data)
    assert data[start + 4:start + 8] == b"PLTE"
    assert length == 768


def test_missing_palette_chunk(tmp_path):
    path = str(tmp_path / "rgb.png")
    Image.new("RGB", (2, 2), (10, 20, 30)).save(path, "PNG")

    with pytest.raises(ChunkNotFoundError):
        find_palette_chunk(read(path))


def test_truncated_palette_chunk():
    data = PNG_SIGNATURE + struct.pack(">I", 768) + b"PLTE" + b"\x00" * 12
    with pytest.raises(ChunkNotFoundError):
        find_palette_chunk(data)


def test_patch_writes_sibling_file(baseline_png, masked_texture):
    before = read(baseline_png)

    out_path = patch(baseline_png, masked_texture)

    assert out_path == baseline_png + ".trans"
    assert read(baseline_png) == before
    patched = read(out_path)
    assert len(patched) == len(before) + 268

    start, length = find_palette_chunk(patched)
    trns_start = start + length + 12
    assert patched[trns_start + 4:trns_start + 8] == b"tRNS"


def test_patched_file_opens_with_transparency(baseline_png, masked_texture):
    out_path = patch(baseline_png, masked_texture)

    with Image.open(out_path) as img:
        img.load()
        assert img.mode == "P"
        assert img.info["transparency"] == 255


def test_patch_is_deterministic(baseline_png, masked_texture):
    first = read(patch(baseline_png, masked_texture))
    second = read(patch(baseline_png, masked_texture))
    assert first == second


def test_opaque_texture_is_not_patched(tmp_path, opaque_texture):
    path = str(tmp_path / "wall.png")
    opaque_texture.to_image().save(path, "PNG")

    assert patch(path, opaque_texture) is None
    assert not os.path.exists(path + ".trans")


def test_patch_without_palette_chunk(tmp_path, masked_texture):
    path = str(tmp_path / "rgb.png")
    Image.new("RGB", (4, 4)).save(path, "PNG")

    with pytest.raises(ChunkNotFoundError):
        patch(path, masked_texture)
    assert not os.path.exists(path + ".trans")


def test_custom_suffix(baseline_png, masked_texture):
    out_path = patch(baseline_png, masked_texture, suffix="_alpha.png")
    assert out_path == baseline_png + "_alpha.png"
    assert os.path.isfile(out_path)


def test_insert_places_chunk_after_palette(baseline_png):
    data = read(baseline_png)
    chunk = build_transparency_chunk(bytes(256))
    patched = insert_transparency_chunk(data, chunk)
    assert patched.index(b"PLTE") < patched.index(b"tRNS") < patched.index(b"IDAT")


def test_transparent_path():
    assert transparent_path("out/a.png") == "out/a.png.trans"


def test_hex_dump(baseline_png, masked_texture, capsys):
    assert hex_dump(b"\x00\xab" * 11) == ("00 AB " * 10).strip() + "\n00 AB"

    patch(baseline_png, masked_texture, debug_hex=True)
    out = capsys.readouterr().out
    assert "74 52 4E 53" in out


def test_missing_baseline(tmp_path, masked_texture):
    path = str(tmp_path / "missing.png")

    with pytest.raises(OSError):
        patch(path, masked_texture)
    assert not os.path.exists(path + ".trans")


def test_output_path_not_writable(baseline_png, masked_texture):
    os.mkdir(baseline_png + ".trans")

    with pytest.raises(OSError):
        patch(baseline_png, masked_texture)
    assert os.path.isdir(baseline_png + ".trans")


def test_failed_write_leaves_no_partial_file(baseline_png, masked_texture, monkeypatch):
    real_open = open

    class FailingWriter:
        def __init__(self, path):
            self.f = real_open(path, "wb")

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            self.f.close()

        def write(self, data):
            self.f.write(data[:16])
            raise OSError(28, "No space left on device")

    def fake_open(path, mode="r", *args, **kwargs):
        if "w" in mode:
            return FailingWriter(path)
        return real_open(path, mode, *args, **kwargs)

    monkeypatch.setattr(png_patcher, "open", fake_open, raising=False)

    with pytest.raises(OSError):
        patch(baseline_png, masked_texture)
    assert not os.path.exists(baseline_png + ".trans")
