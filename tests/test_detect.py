import pytest

from hltools.core.errors import UnsupportedFileError
from hltools.parsers import (
    ContainerFormat, LoaderRegistry, ModelLoader, SpriteLoader, WadLoader,
    detect_format, load_textures,
)


def test_detect_by_magic(sprite_file, wad_file, model_file):
    assert detect_format(sprite_file) == ContainerFormat.SPRITE
    assert detect_format(wad_file) == ContainerFormat.ARCHIVE
    assert detect_format(model_file) == ContainerFormat.MODEL


def test_extension_is_ignored(write_file, wad_file):
    with open(wad_file, "rb") as f:
        path = write_file("renamed.bin", f.read())
    assert detect_format(path) == ContainerFormat.ARCHIVE


@pytest.mark.parametrize("data", [b"", b"ID", b"WAD2rest", b"IDSQ\x00\x00\x00\x00", b"\x89PNG"])
def test_unknown(write_file, data):
    path = write_file("unknown.dat", data)
    assert detect_format(path) == ContainerFormat.UNKNOWN


def test_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        detect_format(str(tmp_path / "nope.wad"))


def test_registry():
    loaders = LoaderRegistry.get_all()
    assert loaders[ContainerFormat.SPRITE] is SpriteLoader
    assert loaders[ContainerFormat.ARCHIVE] is WadLoader
    assert loaders[ContainerFormat.MODEL] is ModelLoader
    assert LoaderRegistry.get_loader(ContainerFormat.UNKNOWN) is None
    assert LoaderRegistry.list_supported_extensions() == [".mdl", ".spr", ".wad"]


def test_get_loader_passes_strict():
    assert LoaderRegistry.get_loader(ContainerFormat.ARCHIVE, strict=True).strict


def test_loader_detect(sprite_file, wad_file):
    assert SpriteLoader().detect(sprite_file)
    assert not SpriteLoader().detect(wad_file)


def test_load_textures_dispatches(sprite_file, wad_file, model_file):
    assert len(load_textures(sprite_file)) == 2
    assert len(load_textures(wad_file)) == 3
    assert len(load_textures(model_file)) == 2


def test_load_textures_unknown(write_file):
    path = write_file("notes.txt", b"hello world")

    assert load_textures(path) is None
    with pytest.raises(UnsupportedFileError):
        load_textures(path, strict=True)
