# ==============================================================================
# HL TOOLS - MAIN ENTRY POINT
# ==============================================================================
# Launcher for running the extractor straight from a source checkout.
#
# Usage:
#   python main.py extract halflife.wad out/     # any CLI command
#   python main.py --check                       # check dependencies
#   python main.py --paths                       # show config location
#
# When installed, the same CLI is available as the `hltools` command.
# ==============================================================================

import sys


# ==============================================================================
# BANNER
# ==============================================================================

def print_banner():
    """Print the application banner."""
    banner = """
    ╔═══════════════════════════════════════════════════════╗
    ║                                                       ║
    ║    Half-Life Texture Tools                            ║
    ║    GoldSrc sprite / WAD3 / model texture extractor    ║
    ║                                                       ║
    ╚═══════════════════════════════════════════════════════╝
    """
    print(banner)


# ==============================================================================
# DEPENDENCY CHECKS
# ==============================================================================

def check_dependencies():
    """
    Check if required dependencies are installed.

    Returns:
        Tuple of (all_ok, missing_packages)
    """
    missing = []

    # import name -> package name on PyPI
    core_deps = {'PIL': 'Pillow', 'numpy': 'numpy'}

    for module, package in core_deps.items():
        try:
            __import__(module)
        except ImportError:
            missing.append(package)

    return (len(missing) == 0, missing)


# ==============================================================================
# MAIN FUNCTION
# ==============================================================================

def main():
    """
    Main entry point.

    Handles the launcher-only flags, then hands everything else to the CLI.
    """
    if '--check' in sys.argv:
        print("Checking dependencies...")
        print(f"  Python: {sys.version}")

        all_ok, missing = check_dependencies()
        if all_ok:
            print("[OK] All core dependencies installed")
        else:
            print(f"[MISSING] {', '.join(missing)}")
        return 0 if all_ok else 1

    all_ok, missing = check_dependencies()
    if not all_ok:
        print(f"[ERROR] Missing required packages: {', '.join(missing)}")
        print(f"Install with: pip install {' '.join(missing)}")
        return 1

    if '--paths' in sys.argv:
        from hltools.core.paths import Paths
        print("HL Tools Paths:")
        print(f"  User Data:      {Paths.get_user_data_dir()}")
        print(f"  Config:         {Paths.get_config_path()}")
        return 0

    if len(sys.argv) == 1:
        print_banner()

    from hltools.cli import main as cli_main
    return cli_main(sys.argv[1:])


# ==============================================================================
# SCRIPT ENTRY POINT
# ==============================================================================
if __name__ == "__main__":
    sys.exit(main())
