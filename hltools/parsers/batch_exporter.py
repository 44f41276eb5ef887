# ==============================================================================
# BATCH EXPORT MODULE
# ==============================================================================
# Turns containers into PNG files.
#
# For every decoded texture:
#   1. Write an 8-bit palette PNG with Pillow (RGB palette only)
#   2. If transparency is on and the palette has non-opaque entries, write
#      a patched copy with a tRNS chunk (<name>.png.trans by default)
#   3. Optionally write a true-color RGBA PNG (<name>_rgba.png)
#
# Failures are isolated per file: a broken container is recorded in
# ExportResult.errors and the rest of the batch carries on.
#
# Usage:
#   exporter = BatchExporter("out/", config)
#   result = exporter.export_directory("valve/", recursive=True)
#   print(result.count, result.errors)
# ==============================================================================

import os
from dataclasses import dataclass
from typing import Callable, List, Optional

from .base_loader import ContainerFormat, LoaderRegistry, detect_format
from .mdl_loader import companion_texture_path
from ..core.config import Config
from ..core.errors import HLToolsError, UnsupportedFileError
from ..core.paths import Paths
from ..core.png_patcher import patch
from ..core.texture import DecodedTexture


RGBA_SUFFIX = "_rgba"


# ==============================================================================
# DATA CLASSES
# ==============================================================================

@dataclass
class ExportedTexture:
    """
    Files written for one texture.

    Attributes:
        png_path (str):          Baseline palette PNG
        transparent_path (str):  Patched copy with tRNS, or None
        rgba_path (str):         True-color PNG, or None
    """
    png_path: str
    transparent_path: Optional[str] = None
    rgba_path: Optional[str] = None


@dataclass
class ExportResult:
    """
    Result of an export operation.

    Attributes:
        success (bool):     True if no file failed
        output_path (str):  Output directory
        count (int):        Number of textures exported
        files (list):       ExportedTexture for every texture written
        errors (list):      "<path>: <message>" for every failed file
        skipped (list):     Files or textures that were skipped
    """
    success: bool = True
    output_path: str = ""
    count: int = 0
    files: List[ExportedTexture] = None
    errors: List[str] = None
    skipped: List[str] = None

    def __post_init__(self):
        if self.files is None:
            self.files = []
        if self.errors is None:
            self.errors = []
        if self.skipped is None:
            self.skipped = []

    def merge(self, other: 'ExportResult'):
        """Fold another result into this one."""
        self.success = self.success and other.success
        self.count += other.count
        self.files.extend(other.files)
        self.errors.extend(other.errors)
        self.skipped.extend(other.skipped)


# ==============================================================================
# BATCH EXPORTER CLASS
# ==============================================================================

class BatchExporter:
    """
    Export textures from sprites, WADs and models to PNG.

    Attributes:
        output_path: Base directory for exported files
        config: Settings (transparency, strict, overwrite, ...)
    """

    def __init__(self, output_path: str, config: Optional[Config] = None):
        """
        Initialize batch exporter.

        Args:
            output_path: Base directory for exports (created if missing)
            config: Settings; a default Config is used if omitted
        """
        self.output_path = output_path
        self.config = config or Config()

        os.makedirs(output_path, exist_ok=True)

    # ==========================================================================
    # SINGLE TEXTURE
    # ==========================================================================

    def export_texture(self, texture: DecodedTexture, output_dir: Optional[str] = None,
                       name: Optional[str] = None) -> Optional[ExportedTexture]:
        """
        Write one texture to disk.

        Args:
            texture: Texture to write
            output_dir: Target directory (defaults to output_path)
            name: File name to use instead of texture.name (sanitized)

        Returns:
            ExportedTexture, or None if the PNG exists and overwriting is off

        Raises:
            ChunkNotFoundError: Pillow's PNG had no PLTE chunk
            OSError: Writing failed
        """
        output_dir = output_dir or self.output_path
        os.makedirs(output_dir, exist_ok=True)

        png_path = Paths.texture_output_path(output_dir, name or texture.name)
        if os.path.exists(png_path) and not self.config.overwrite_existing:
            return None

        texture.to_image().save(png_path, "PNG")
        exported = ExportedTexture(png_path=png_path)

        if self.config.transparency:
            exported.transparent_path = patch(
                png_path, texture,
                suffix=self.config.transparency_suffix,
                debug_hex=self.config.debug_mode,
            )

        if self.config.export_rgba:
            rgba_path = Paths.texture_output_path(output_dir, (name or texture.name) + RGBA_SUFFIX)
            texture.to_rgba_image().save(rgba_path, "PNG")
            exported.rgba_path = rgba_path

        return exported

    # ==========================================================================
    # SINGLE CONTAINER
    # ==========================================================================

    def load_file(self, path: str) -> Optional[List[DecodedTexture]]:
        """
        Detect and load one container using the configured settings.

        Models without embedded textures fall back to their <name>T.mdl
        companion file when one exists.

        Returns:
            Decoded textures, or None if the file isn't a known container
        """
        fmt = detect_format(path)
        loader = LoaderRegistry.get_loader(fmt, strict=self.config.strict)
        if loader is None:
            if self.config.strict:
                raise UnsupportedFileError(f"Unknown file type: {path}")
            return None

        companion = companion_texture_path(path) if fmt == ContainerFormat.MODEL else None
        if companion and os.path.abspath(companion) == os.path.abspath(path):
            companion = None

        # With a companion present, an untextured model is expected, not an error
        primary = LoaderRegistry.get_loader(fmt) if companion else loader
        textures = primary.load(path, want_transparency=self.config.transparency)

        if companion and textures == []:
            print(f"[INFO] Using external textures from {os.path.basename(companion)}")
            textures = loader.load(companion, want_transparency=self.config.transparency)

        return textures

    def export_file(self, path: str, output_dir: Optional[str] = None) -> ExportResult:
        """
        Export every texture of one container.

        Errors are caught and recorded; this never raises for a bad file.

        Args:
            path: Container file
            output_dir: Target directory (defaults to output_path)

        Returns:
            ExportResult for this file
        """
        output_dir = output_dir or self.output_path
        result = ExportResult(output_path=output_dir)

        try:
            textures = self.load_file(path)
            if textures is None:
                result.skipped.append(f"{path}: not a supported container")
                return result

            used_names = set()
            for texture in textures:
                name = Paths.sanitize_filename(texture.name)
                # WADs may hold several lumps with the same name
                if name.lower() in used_names:
                    name = f"{name}_{texture.index}"
                used_names.add(name.lower())

                exported = self.export_texture(texture, output_dir, name)
                if exported is None:
                    result.skipped.append(f"{path}: {texture.name} (already exists)")
                    continue
                result.files.append(exported)
                result.count += 1

        except (HLToolsError, OSError) as e:
            result.success = False
            result.errors.append(f"{path}: {e}")
            print(f"[ERROR] {path}: {e}")

        return result

    # ==========================================================================
    # DIRECTORIES
    # ==========================================================================

    def find_input_files(self, path: str, recursive: bool = False) -> List[str]:
        """
        List candidate container files under a directory.

        Args:
            path: Directory to scan
            recursive: Descend into subdirectories

        Returns:
            Sorted list of file paths
        """
        extensions = set(LoaderRegistry.list_supported_extensions())
        found = []

        for root, dirs, files in os.walk(path):
            dirs.sort()
            for filename in sorted(files):
                ext = os.path.splitext(filename)[1].lower()
                if self.config.sniff_all_files or ext in extensions:
                    found.append(os.path.join(root, filename))
            if not recursive:
                break

        return found

    def export_directory(self, path: str, recursive: Optional[bool] = None,
                         progress_callback: Callable[[int, int, str], None] = None) -> ExportResult:
        """
        Export every container in a directory.

        The output mirrors the input's folder structure so equally named
        textures from different folders don't collide.

        Args:
            path: Directory to scan
            recursive: Descend into subdirectories (defaults to config.recursive)
            progress_callback: Optional callback(current, total, filename)

        Returns:
            Combined ExportResult
        """
        if recursive is None:
            recursive = self.config.recursive

        files = self.find_input_files(path, recursive)
        result = ExportResult(output_path=self.output_path)
        total = len(files)

        for i, file_path in enumerate(files):
            if progress_callback:
                progress_callback(i + 1, total, os.path.basename(file_path))

            relative_dir = os.path.relpath(os.path.dirname(file_path), path)
            output_dir = os.path.normpath(os.path.join(self.output_path, relative_dir))
            result.merge(self.export_file(file_path, output_dir))

        return result
