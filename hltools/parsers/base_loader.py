# ==============================================================================
# BASE LOADER MODULE
# ==============================================================================
# Abstract base class shared by the sprite, WAD and model loaders, the
# format detection function and the LoaderRegistry that maps a detected
# format to its loader.
#
# Every loader follows the same protocol inside load():
#   1. Open the file (scoped, always closed on return)
#   2. Check the 4-byte magic          -> None if it doesn't match
#   3. Read header + resource table    -> [] if there is nothing to extract
#   4. Decode each table entry into a DecodedTexture
#   5. Zero the alpha of index 255 on masked textures if asked to
#
# "Not this format" and "no resources" are normal return values. Passing
# strict=True to the loader turns them into UnsupportedFileError /
# MalformedResourceError instead.
#
# To add a new container format:
#   1. Subclass BaseLoader, set format / magic / extensions
#   2. Implement _read_table() and, if the pixel layout differs from
#      "pixels followed by a 768-byte palette", _decode_entry()
#   3. Call LoaderRegistry.register(MyLoader) at module level
#   4. Import the module in hltools/parsers/__init__.py
#
# Example:
#   fmt = detect_format("c1a0.wad")
#   loader = LoaderRegistry.get_loader(fmt)
#   textures = loader.load("c1a0.wad", want_transparency=True)
# ==============================================================================

import os
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, BinaryIO, Dict, List, Optional, Tuple, Type

from ..core.errors import MalformedResourceError, TruncatedFileError, UnsupportedFileError
from ..core.texture import DecodedTexture, PALETTE_RGB_SIZE, palette_from_rgb


# Every supported container starts with a 4-byte magic
MAGIC_SIZE = 4


# ==============================================================================
# FORMAT TAG
# ==============================================================================
class ContainerFormat(Enum):
    """Result of format detection."""
    SPRITE = "sprite"
    ARCHIVE = "archive"
    MODEL = "model"
    UNKNOWN = "unknown"


# ==============================================================================
# TABLE ENTRY DATA CLASS
# ==============================================================================
@dataclass
class ResourceEntry:
    """
    One raster resource listed in a container's resource table.

    Attributes:
        index (int):     Position in the table
        name (str):      Resource name (raw)
        offset (int):    Byte offset of the pixel data (or of the lump)
        width (int):     Width in pixels
        height (int):    Height in pixels
        flags (int):     Flag bits in DecodedTexture terms
        type_code (int): Format-specific type byte (WAD lumps)
        size (int):      Bytes occupied on disk, 0 if unknown
        supported (bool): False for entries that are listed but not decoded
        extra (dict):    Format-specific values needed by _decode_entry
    """
    index: int
    name: str
    offset: int
    width: int = 0
    height: int = 0
    flags: int = 0
    type_code: int = 0
    size: int = 0
    supported: bool = True
    extra: Dict[str, Any] = field(default_factory=dict)


# ==============================================================================
# BINARY READ HELPERS
# ==============================================================================

def read_exact(f: BinaryIO, size: int, path: str = "") -> bytes:
    """
    Read exactly size bytes or raise TruncatedFileError.

    Args:
        f: Open binary file
        size: Number of bytes wanted
        path: File name for the error message

    Returns:
        The bytes read
    """
    offset = f.tell()
    data = f.read(size)
    if len(data) != size:
        raise TruncatedFileError(path, offset, size, len(data))
    return data


def read_struct(f: BinaryIO, fmt: str, path: str = "") -> Tuple:
    """Read and unpack one struct; fmt should include the byte order."""
    return struct.unpack(fmt, read_exact(f, struct.calcsize(fmt), path))


def decode_name(raw: bytes) -> str:
    """Decode a fixed-size, NUL-terminated name field."""
    return raw.split(b"\x00", 1)[0].decode("ascii", errors="replace")


# ==============================================================================
# BASE LOADER ABSTRACT CLASS
# ==============================================================================
class BaseLoader(ABC):
    """
    Abstract base class for container loaders.

    Subclasses describe their format with class attributes and implement
    _read_table(). The loader keeps no per-file state between calls; the
    header and table only live for the duration of one load().

    Attributes:
        strict (bool): Raise instead of returning None / [] for format
                       mismatches and bad resource pointers
    """

    #: Tag returned by detect_format() for this loader's files
    format: ContainerFormat = ContainerFormat.UNKNOWN

    #: Accepted magic identifier at offset 0
    magic: bytes = b""

    #: Usual file extensions, including the dot
    extensions: List[str] = []

    #: Human-readable format name
    display_name: str = ""

    def __init__(self, strict: bool = False):
        """
        Initialize the loader.

        Args:
            strict: Promote non-fatal conditions to exceptions
        """
        self.strict = strict

    # ==========================================================================
    # ABSTRACT METHODS - Must be implemented by subclasses
    # ==========================================================================

    @abstractmethod
    def _read_table(self, f: BinaryIO, path: str,
                    file_size: int) -> Optional[Tuple[Any, List[ResourceEntry]]]:
        """
        Read the header (after the magic) and the resource table.

        Args:
            f: File positioned just after the magic
            path: File path, for messages
            file_size: Total file size in bytes

        Returns:
            (header, entries), or None if the file has nothing to extract
        """

    # ==========================================================================
    # PUBLIC METHODS
    # ==========================================================================

    def detect(self, path: str) -> bool:
        """
        Check if a file starts with this loader's magic.

        Args:
            path: Path to the file

        Returns:
            True if the magic matches
        """
        with open(path, 'rb') as f:
            return f.read(len(self.magic)) == self.magic

    def load(self, path: str, want_transparency: bool = False) -> Optional[List[DecodedTexture]]:
        """
        Decode every supported raster resource in a container.

        Args:
            path: Container file
            want_transparency: Make index 255 transparent on masked textures

        Returns:
            List of DecodedTexture ([] if the file has no extractable
            resources), or None if the file is not in this format

        Raises:
            UnsupportedFileError: Wrong format, strict mode only
            MalformedResourceError: Bad table/data offsets, strict mode only
            TruncatedFileError: The file ended in the middle of a structure
            OSError: The file could not be opened or read
        """
        with open(path, 'rb') as f:
            table = self._open_table(f, path)
            if table is None:
                return None

            header, entries = table
            textures = []
            for entry in entries:
                if not entry.supported:
                    continue

                texture = self._decode_entry(f, path, header, entry)
                if texture is None:
                    continue

                if want_transparency:
                    self._apply_transparency(texture)
                textures.append(texture)

        return textures

    def list_resources(self, path: str) -> Optional[List[ResourceEntry]]:
        """
        List the resource table without decoding any pixels.

        Returns:
            Table entries, including unsupported ones, or None if the file
            is not in this format
        """
        with open(path, 'rb') as f:
            table = self._open_table(f, path)
        if table is None:
            return None
        return table[1]

    # ==========================================================================
    # OVERRIDABLE HOOKS
    # ==========================================================================

    def _decode_entry(self, f: BinaryIO, path: str, header: Any,
                      entry: ResourceEntry) -> Optional[DecodedTexture]:
        """
        Decode one entry whose pixels are followed by a 768-byte RGB palette.

        Override for formats laid out differently.
        """
        f.seek(entry.offset)
        pixels = read_exact(f, entry.width * entry.height, path)
        palette = palette_from_rgb(read_exact(f, PALETTE_RGB_SIZE, path))
        return self._make_texture(path, entry, pixels, palette)

    def _apply_transparency(self, texture: DecodedTexture):
        """
        Apply palette-level transparency for a texture.

        Masked textures get index 255 zeroed. The additive flag is
        recognised but left alone; there's no sensible alpha for it in a
        plain PNG.
        """
        if texture.is_masked():
            texture.apply_mask()
            print(f"[INFO] Transparency enabled for masked texture {texture.name}")

    # ==========================================================================
    # HELPERS FOR SUBCLASSES
    # ==========================================================================

    def _non_fatal(self, error_class: Type[Exception], message: str):
        """Raise in strict mode, otherwise print a warning and carry on."""
        if self.strict:
            raise error_class(message)
        print(f"[WARN] {message}")

    def _check_range(self, path: str, offset: int, size: int, file_size: int, what: str) -> bool:
        """
        Check that offset..offset+size lies inside the file.

        Returns:
            True if in range; False (after a warning) if not and not strict

        Raises:
            MalformedResourceError: Out of range in strict mode
        """
        if offset <= 0 or size < 0 or offset + size > file_size:
            self._non_fatal(
                MalformedResourceError,
                f"{os.path.basename(path)}: {what} at offset {offset} "
                f"(+{size} bytes) is outside the file ({file_size} bytes)"
            )
            return False
        return True

    def _make_texture(self, path: str, entry: ResourceEntry, pixels: bytes,
                      palette) -> DecodedTexture:
        return DecodedTexture(
            name=entry.name,
            width=entry.width,
            height=entry.height,
            pixels=pixels,
            palette=palette,
            flags=entry.flags,
            source_path=path,
            index=entry.index,
        )

    # ==========================================================================
    # PRIVATE
    # ==========================================================================

    def _open_table(self, f: BinaryIO, path: str) -> Optional[Tuple[Any, List[ResourceEntry]]]:
        """Check the magic and read the table. None means wrong format."""
        file_size = os.fstat(f.fileno()).st_size

        magic = f.read(len(self.magic))
        if magic != self.magic:
            self._non_fatal(
                UnsupportedFileError,
                f"{os.path.basename(path)} is not a {self.display_name} file "
                f"(header={magic!r}), ignoring"
            )
            return None

        table = self._read_table(f, path, file_size)
        if table is None:
            return None, []
        return table


# ==============================================================================
# LOADER REGISTRY
# ==============================================================================
class LoaderRegistry:
    """
    Registry of available loaders, keyed by ContainerFormat.

    Usage:
        LoaderRegistry.register(WadLoader)
        loader = LoaderRegistry.get_loader(ContainerFormat.ARCHIVE, strict=True)
    """

    _loaders: Dict[ContainerFormat, Type[BaseLoader]] = {}

    @classmethod
    def register(cls, loader_class: Type[BaseLoader]):
        """
        Register a loader class under its format tag.

        Args:
            loader_class: Class that inherits from BaseLoader
        """
        if loader_class.format == ContainerFormat.UNKNOWN:
            raise ValueError(f"{loader_class.__name__} does not declare a format")
        cls._loaders[loader_class.format] = loader_class

    @classmethod
    def get_loader(cls, fmt: ContainerFormat, strict: bool = False) -> Optional[BaseLoader]:
        """
        Instantiate the loader for a detected format.

        Returns:
            Loader instance, or None for UNKNOWN / unregistered formats
        """
        loader_class = cls._loaders.get(fmt)
        if loader_class is None:
            return None
        return loader_class(strict=strict)

    @classmethod
    def format_for_magic(cls, magic: bytes) -> ContainerFormat:
        """Map a 4-byte magic to a format tag."""
        for fmt, loader_class in cls._loaders.items():
            if magic == loader_class.magic:
                return fmt
        return ContainerFormat.UNKNOWN

    @classmethod
    def get_all(cls) -> Dict[ContainerFormat, Type[BaseLoader]]:
        """Get all registered loaders."""
        return cls._loaders.copy()

    @classmethod
    def list_supported_extensions(cls) -> List[str]:
        """
        Get all file extensions handled by registered loaders.

        Returns:
            Sorted list of extensions (e.g. ['.mdl', '.spr', '.wad'])
        """
        extensions = set()
        for loader_class in cls._loaders.values():
            extensions.update(loader_class.extensions)
        return sorted(extensions)


# ==============================================================================
# DETECTION AND DISPATCH
# ==============================================================================

def detect_format(path: str) -> ContainerFormat:
    """
    Identify a container by its magic identifier.

    Args:
        path: File to inspect

    Returns:
        The matching ContainerFormat, or ContainerFormat.UNKNOWN

    Raises:
        OSError: The file could not be opened
    """
    with open(path, 'rb') as f:
        magic = f.read(MAGIC_SIZE)
    return LoaderRegistry.format_for_magic(magic)


def load_textures(path: str, want_transparency: bool = False,
                  strict: bool = False) -> Optional[List[DecodedTexture]]:
    """
    Detect a container's format and decode it with the matching loader.

    Args:
        path: Container file
        want_transparency: Make index 255 transparent on masked textures
        strict: Promote non-fatal conditions to exceptions

    Returns:
        Decoded textures, or None if the file is in no known format

    Raises:
        UnsupportedFileError: Unknown format, strict mode only
    """
    fmt = detect_format(path)
    loader = LoaderRegistry.get_loader(fmt, strict=strict)
    if loader is None:
        if strict:
            raise UnsupportedFileError(f"Unknown file type: {path}")
        return None
    return loader.load(path, want_transparency)
