"""Command line front end: save / restore / show window geometry files."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from geometry_codec import format_windows, load_windows
from window_geometry import (
    GeometryDecodeError,
    GeometryError,
    GeometryIOError,
    GeometryRegistry,
)

CONFIG_PATH  = "config.json"
DEFAULT_PATH = "window-geometry.bin"

_CONFIG_DEFAULTS: Dict = {
    "geometry_path": DEFAULT_PATH,
    "log_level":     "WARNING",
}


def _load_config(path: str = CONFIG_PATH) -> Dict:
    """Defaults overlaid with whatever known keys ``path`` sets."""
    cfg = dict(_CONFIG_DEFAULTS)
    try:
        with open(path, encoding="utf-8") as f:
            user = json.load(f)
    except FileNotFoundError:
        return cfg
    except (OSError, ValueError) as exc:
        print(f"  Warning: ignoring unreadable config {path}: {exc}")
        return cfg
    if isinstance(user, dict):
        cfg.update({k: v for k, v in user.items() if k in cfg and v})
    return cfg


def _keep_closed_windows(registry: GeometryRegistry, path: str) -> int:
    """
    Carry records for windows that are not open right now over from the
    existing file, so a save never forgets them.  Nothing is applied to live
    windows.  Returns the number of records carried over.
    """
    try:
        with open(path, "rb") as f:
            stored = load_windows(f)
    except FileNotFoundError:
        return 0
    except (OSError, GeometryDecodeError) as exc:
        print(f"  Warning: not merging unreadable {path}: {exc}")
        return 0

    kept = 0
    for id, saved in stored.items():
        if id in registry.windows:
            continue
        window = registry.get(id)
        window.move(saved.x, saved.y)
        window.resize(saved.width, saved.height)
        window.set_maximized(saved.maximized)
        kept += 1
    return kept


def _live_registry(path: str) -> Optional[GeometryRegistry]:
    """Registry with every interesting live window already added."""
    try:
        import win32_window
    except ImportError:
        print("pywin32 is required for live windows. Install with: pip install pywin32")
        return None

    registry = GeometryRegistry(path)
    for id, window in win32_window.assign_ids(win32_window.list_windows()).items():
        registry.add(id, window)
    return registry


# ══════════════════════════════════════════════════════════════════════════
#  Commands
# ══════════════════════════════════════════════════════════════════════════
def save_geometry(path: str) -> int:
    registry = _live_registry(path)
    if registry is None:
        return 1
    registry.sync()
    kept = _keep_closed_windows(registry, path)
    registry.store()
    print(f"Saved {len(registry.windows)} windows ({kept} not open) -> {path}")
    return 0


def restore_geometry(path: str) -> int:
    registry = _live_registry(path)
    if registry is None:
        return 1
    connected = len(registry.connectables)
    registry.restore()
    print(f"Restored {len(registry.windows)} windows from {path} "
          f"({connected} live)")
    return 0


def show_geometry(path: str) -> int:
    try:
        with open(path, "rb") as f:
            windows = load_windows(f)
    except OSError as exc:
        raise GeometryIOError(f"Cannot open {path}: {exc}") from exc
    if not windows:
        print(f"No windows in {path}")
        return 0
    print(format_windows(windows), end="")
    return 0


# ══════════════════════════════════════════════════════════════════════════
#  CLI entry point
# ══════════════════════════════════════════════════════════════════════════
def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(
        description="Save/restore the geometry of top-level windows."
    )
    p.add_argument("--config", default=CONFIG_PATH)
    p.add_argument("--verbose", "-v", action="store_true")
    s = p.add_subparsers(dest="cmd", required=True)

    for name in ("save", "restore", "show"):
        sp = s.add_parser(name)
        sp.add_argument("path", nargs="?")

    s.add_parser("help")

    args = p.parse_args(argv)
    cfg  = _load_config(args.config)

    level = "DEBUG" if args.verbose else str(cfg["log_level"]).upper()
    logging.basicConfig(level=getattr(logging, level, logging.WARNING),
                        format="%(levelname)s %(name)s: %(message)s")

    if args.cmd == "help":
        print("""
Quick reference
  save:     python geometry_cli.py [-v] save [geometry.bin]
  restore:  python geometry_cli.py [-v] restore [geometry.bin]
  show:     python geometry_cli.py show [geometry.bin]

  The default file comes from "geometry_path" in config.json.
""")
        return 0

    path = args.path or str(cfg["geometry_path"])
    commands = {
        "save":    save_geometry,
        "restore": restore_geometry,
        "show":    show_geometry,
    }
    try:
        return commands[args.cmd](path)
    except GeometryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
