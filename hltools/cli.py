# ==============================================================================
# HL TOOLS - COMMAND LINE INTERFACE
# ==============================================================================
# Command-line front end for the loaders and the batch exporter.
#
# Commands:
#   - extract: Export textures from a file or a folder to PNG
#   - info:    Show a container's resource table
#   - detect:  Print the detected container format
#
# Usage:
#   hltools extract halflife.wad out/
#   hltools extract valve/models out/ --recursive --transparency
#   hltools info sprites/fire.spr
#   hltools detect mystery.bin
#
# Settings are read from the config file first (see hltools.core.config);
# command-line flags override them.
# ==============================================================================

import os
import sys
import argparse
from typing import List, Optional

from . import __version__
from .core.config import Config
from .core.errors import HLToolsError
from .core.texture import describe_flags
from .parsers.base_loader import ContainerFormat, LoaderRegistry, detect_format
from .parsers.batch_exporter import BatchExporter, ExportResult


# ==============================================================================
# COLOR HELPERS FOR TERMINAL OUTPUT
# ==============================================================================
class Colors:
    """ANSI color codes for terminal output."""
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    END = '\033[0m'

    @classmethod
    def disable(cls):
        """Disable colors (for non-supporting terminals)."""
        cls.HEADER = ''
        cls.BLUE = ''
        cls.CYAN = ''
        cls.GREEN = ''
        cls.YELLOW = ''
        cls.RED = ''
        cls.BOLD = ''
        cls.END = ''


def print_header(text: str):
    """Print a header."""
    print(f"\n{Colors.BOLD}{Colors.CYAN}{'=' * 60}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}  {text}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{'=' * 60}{Colors.END}\n")


def print_success(text: str):
    """Print a success message."""
    print(f"{Colors.GREEN}✓ {text}{Colors.END}")


def print_error(text: str):
    """Print an error message."""
    print(f"{Colors.RED}✗ {text}{Colors.END}")


def print_info(text: str):
    """Print an info message."""
    print(f"{Colors.BLUE}ℹ {text}{Colors.END}")


def print_warning(text: str):
    """Print a warning message."""
    print(f"{Colors.YELLOW}⚠ {text}{Colors.END}")


def progress_callback(current: int, total: int, filename: str):
    """Progress callback for long operations."""
    percent = (current / total) * 100 if total > 0 else 0
    bar_length = 30
    filled = int(bar_length * current / total) if total > 0 else 0
    bar = '█' * filled + '░' * (bar_length - filled)

    # Truncate filename if too long
    max_name_len = 40
    if len(filename) > max_name_len:
        filename = '...' + filename[-(max_name_len - 3):]

    print(f"\r[{bar}] {percent:5.1f}% | {current}/{total} | {filename}", end='', flush=True)

    if current >= total:
        print()


# ==============================================================================
# CONFIGURATION
# ==============================================================================
def build_config(args) -> Config:
    """Load the config file and apply command-line overrides."""
    config = Config(getattr(args, 'config', None))
    config.load()

    overrides = {
        'transparency': getattr(args, 'transparency', None),
        'strict': getattr(args, 'strict', None),
        'recursive': getattr(args, 'recursive', None),
        'export_rgba': getattr(args, 'rgba', None),
        'overwrite_existing': getattr(args, 'overwrite', None),
        'sniff_all_files': getattr(args, 'sniff_all', None),
        'debug_mode': getattr(args, 'debug_hex', None),
    }
    for key, value in overrides.items():
        if value is not None:
            config.set(key, value)

    suffix = getattr(args, 'suffix', None)
    if suffix:
        config.transparency_suffix = suffix

    return config


# ==============================================================================
# EXTRACT COMMAND
# ==============================================================================
def print_export_summary(result: ExportResult):
    """Print counts, skipped files and errors of an export."""
    print()
    print_success(f"Exported {result.count} texture(s) to {result.output_path}")

    transparent = sum(1 for f in result.files if f.transparent_path)
    if transparent:
        print_info(f"{transparent} texture(s) written with transparency")

    for item in result.skipped:
        print_warning(f"Skipped {item}")

    for error in result.errors:
        print_error(error)


def cmd_extract(args) -> int:
    """Export textures from a container or a folder of containers."""
    config = build_config(args)

    if not os.path.exists(args.input):
        print_error(f"The file does not exist: {args.input}")
        return 1

    print_header(f"Extracting {os.path.basename(os.path.normpath(args.input))}")

    if os.path.isfile(args.input) and detect_format(args.input) == ContainerFormat.UNKNOWN:
        print_error(f"Unknown file type: {args.input}")
        return 1

    exporter = BatchExporter(args.output, config)

    if os.path.isdir(args.input):
        result = exporter.export_directory(args.input, progress_callback=progress_callback)
    else:
        result = exporter.export_file(args.input)

    print_export_summary(result)
    return 0 if result.success else 1


# ==============================================================================
# INFO / DETECT COMMANDS
# ==============================================================================
def cmd_info(args) -> int:
    """Show the resource table of one container."""
    config = build_config(args)

    try:
        fmt = detect_format(args.input)
        loader = LoaderRegistry.get_loader(fmt, strict=config.strict)
        if loader is None:
            print_error(f"Unknown file type: {args.input}")
            return 1

        entries = loader.list_resources(args.input)
    except (HLToolsError, OSError) as e:
        print_error(str(e))
        return 1

    print_header(f"{loader.display_name}: {os.path.basename(args.input)}")

    if not entries:
        print_warning("No extractable resources")
        return 0

    print(f"{'#':<5} {'Name':<24} {'Type':<6} {'Size':<12} {'Flags':<18} {'Offset':<10}")
    print("-" * 80)

    for entry in entries:
        size = f"{entry.width}x{entry.height}" if entry.width else "-"
        type_code = f"0x{entry.type_code:02X}" if entry.type_code else "-"
        line = (f"{entry.index:<5} {entry.name[:24]:<24} {type_code:<6} {size:<12} "
                f"{describe_flags(entry.flags):<18} {entry.offset:<10}")
        if entry.supported:
            print(line)
        else:
            print(f"{Colors.YELLOW}{line} (skipped){Colors.END}")

    supported = sum(1 for e in entries if e.supported)
    print(f"\nTotal: {len(entries)} resource(s), {supported} texture(s)")
    return 0


def cmd_detect(args) -> int:
    """Print the detected format of a file."""
    try:
        fmt = detect_format(args.input)
    except OSError as e:
        print_error(str(e))
        return 1

    if fmt == ContainerFormat.UNKNOWN:
        print_error(f"{args.input}: unknown file type")
        return 1

    loader_class = LoaderRegistry.get_all()[fmt]
    print_success(f"{args.input}: {loader_class.display_name} ({fmt.value})")
    return 0


# ==============================================================================
# MAIN ENTRY POINT
# ==============================================================================
def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog='hltools',
        description='Half-Life Texture Tools - a GoldSrc texture extractor',
        epilog='PROTIP: "hltools detect" also tells you whether a file without '
               'a valid extension is actually GoldSrc compatible.'
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--no-color', action='store_true', help='Disable colored output')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # -------------------------------------------------------------------------
    # EXTRACT command
    # -------------------------------------------------------------------------
    extract_parser = subparsers.add_parser('extract', help='Export textures to PNG')
    extract_parser.add_argument('input', help='.spr/.wad/.mdl file or a folder')
    extract_parser.add_argument('output', help='Output folder')
    extract_parser.add_argument('--config', help='Config file to use')
    extract_parser.add_argument('--transparency', '-t', action='store_true', default=None,
                                help='Make masked textures transparent')
    extract_parser.add_argument('--suffix', help='Suffix for the transparent copy (default: .trans)')
    extract_parser.add_argument('--strict', action='store_true', default=None,
                                help='Fail on wrong formats and bad offsets instead of skipping')
    extract_parser.add_argument('--recursive', '-r', action='store_true', default=None,
                                help='Descend into subfolders')
    extract_parser.add_argument('--sniff-all', action='store_true', default=None,
                                help='Check every file, not only known extensions')
    extract_parser.add_argument('--rgba', action='store_true', default=None,
                                help='Also write true-color RGBA PNGs')
    extract_parser.add_argument('--overwrite', dest='overwrite', action='store_true', default=None,
                                help='Overwrite existing PNGs')
    extract_parser.add_argument('--no-overwrite', dest='overwrite', action='store_false', default=None,
                                help='Keep existing PNGs')
    extract_parser.add_argument('--debug-hex', action='store_true', default=None,
                                help='Hex dump the generated tRNS chunks')
    extract_parser.set_defaults(func=cmd_extract)

    # -------------------------------------------------------------------------
    # INFO command
    # -------------------------------------------------------------------------
    info_parser = subparsers.add_parser('info', help='List a container\'s resources')
    info_parser.add_argument('input', help='.spr/.wad/.mdl file')
    info_parser.add_argument('--config', help='Config file to use')
    info_parser.add_argument('--strict', action='store_true', default=None,
                             help='Fail on bad offsets instead of skipping')
    info_parser.set_defaults(func=cmd_info)

    # -------------------------------------------------------------------------
    # DETECT command
    # -------------------------------------------------------------------------
    detect_parser = subparsers.add_parser('detect', help='Detect a file\'s format')
    detect_parser.add_argument('input', help='File to check')
    detect_parser.set_defaults(func=cmd_detect)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the CLI.

    Args:
        argv: Arguments (defaults to sys.argv[1:])

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.no_color or not sys.stdout.isatty():
        Colors.disable()

    if not args.command:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except HLToolsError as e:
        print_error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
