# ==============================================================================
# ERRORS MODULE
# ==============================================================================
# Exception hierarchy shared by the loaders, the PNG patcher and the CLI.
#
# Non-fatal conditions (wrong magic, empty texture table) are NOT exceptions:
# loaders return None / [] for those unless they were created in strict mode.
# Everything defined here is a hard failure that the caller must handle.
#
#   HLToolsError
#     ├── UnsupportedFileError    - wrong magic or unsupported version (strict)
#     ├── MalformedResourceError  - bad offsets / dimensions (strict)
#     ├── TruncatedFileError      - file ended in the middle of a read
#     └── ChunkNotFoundError      - PNG has no PLTE chunk to patch after
# ==============================================================================


class HLToolsError(Exception):
    """Base class for every error raised by hltools."""


class UnsupportedFileError(HLToolsError):
    """
    The file is not a container this loader understands.

    Raised for a magic identifier mismatch or an unsupported format
    version when the loader runs in strict mode.
    """


class MalformedResourceError(HLToolsError):
    """A resource table or data pointer is zero, negative or out of range."""


class TruncatedFileError(HLToolsError, EOFError):
    """
    A read came back shorter than requested.

    Attributes:
        path: File being read (may be empty)
        offset: Position the read started at
        expected: Number of bytes requested
        got: Number of bytes actually returned
    """

    def __init__(self, path: str, offset: int, expected: int, got: int):
        self.path = path
        self.offset = offset
        self.expected = expected
        self.got = got
        super().__init__(
            f"Unexpected end of file in {path or '<stream>'}: wanted {expected} bytes "
            f"at offset {offset}, got {got}"
        )


class ChunkNotFoundError(HLToolsError):
    """The PNG file has no usable PLTE chunk, so tRNS cannot be inserted."""
