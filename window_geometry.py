"""
window_geometry.py  –  Track, store & restore the geometry of named windows
===========================================================================

Key behaviours
  · One WindowGeometry record per window id, created the first time the id
    is seen and never dropped during a run.
  · While a record is maximized its rectangle is frozen: move/resize are
    ignored, so the normal (un-maximized) rectangle survives a maximize.
  · add() both registers a live handle and, for an id that is already
    known, pushes the stored geometry onto that handle (reopened dialogs
    come back where they were).
  · store()/restore() always work on the full window set; the file is
    opened and closed around exactly that call.
  · restore() decodes into a fresh map first, so a bad file leaves the
    in-memory records untouched.
"""

from __future__ import annotations

import logging
import types
from dataclasses import dataclass
from typing import Dict, List, Mapping, Protocol, Tuple

log = logging.getLogger(__name__)

WindowID = str


# ══════════════════════════════════════════════════════════════════════════
#  Errors
# ══════════════════════════════════════════════════════════════════════════
class GeometryError(Exception):
    """Base class for everything store/restore can raise."""


class GeometryIOError(GeometryError):
    """The geometry file could not be opened, read or written."""


class GeometryEncodeError(GeometryError):
    """The window map could not be serialized or fully written."""


class GeometryDecodeError(GeometryError):
    """The geometry file does not hold a valid window envelope."""


# ══════════════════════════════════════════════════════════════════════════
#  Capabilities of live windows
# ══════════════════════════════════════════════════════════════════════════
class Applyable(Protocol):
    """Anything window geometry can be applied to."""

    def move(self, x: int, y: int) -> None: ...

    def resize(self, width: int, height: int) -> None: ...

    def maximize(self) -> None: ...


class Observable(Protocol):
    """Anything window geometry can be read from."""

    def get_position(self) -> Tuple[int, int]: ...

    def get_size(self) -> Tuple[int, int]: ...

    def is_maximized(self) -> bool: ...


class Connectable(Applyable, Observable, Protocol):
    """A live window handle: both Applyable and Observable."""


# ══════════════════════════════════════════════════════════════════════════
#  WindowGeometry
# ══════════════════════════════════════════════════════════════════════════
@dataclass
class WindowGeometry:
    id: WindowID
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    maximized: bool = False

    def __str__(self) -> str:
        return (f"Window {self.id}: ({self.x}, {self.y}) "
                f"({self.width} x {self.height}) {str(self.maximized).lower()}")

    def move(self, x: int, y: int) -> None:
        if self.maximized:
            return
        self.x = x
        self.y = y

    def resize(self, width: int, height: int) -> None:
        if self.maximized:
            return
        self.width = width
        self.height = height

    def set_maximized(self, maximized: bool) -> None:
        self.maximized = bool(maximized)

    def apply_to(self, target: Applyable) -> None:
        """
        Push this geometry onto a live window.

        There is no un-maximize call: a target that is currently maximized
        stays that way when the record is not, leaving it is the window's
        own business.
        """
        target.move(self.x, self.y)
        target.resize(self.width, self.height)
        if self.maximized:
            target.maximize()


# ══════════════════════════════════════════════════════════════════════════
#  Registry
# ══════════════════════════════════════════════════════════════════════════
class GeometryRegistry:
    """
    In-memory geometry of every known window plus the live handles that
    registered for it during this run.

    ``windows`` is what gets persisted.  ``connectables`` is rebuilt each run
    as handles call add(); the registry never creates or destroys handles,
    it only reads and writes their geometry.
    """

    def __init__(self, filename: str) -> None:
        self.filename = filename
        self._windows: Dict[WindowID, WindowGeometry] = {}
        self._connectables: Dict[WindowID, Connectable] = {}

    def __repr__(self) -> str:
        return (f"GeometryRegistry({self.filename!r}, windows={len(self._windows)}, "
                f"connected={len(self._connectables)})")

    @property
    def windows(self) -> Mapping[WindowID, WindowGeometry]:
        return types.MappingProxyType(self._windows)

    @property
    def connectables(self) -> Mapping[WindowID, Connectable]:
        return types.MappingProxyType(self._connectables)

    def ids(self) -> List[WindowID]:
        return sorted(self._windows)

    def add(self, id: WindowID, connectable: Connectable) -> WindowGeometry:
        """
        Register a live handle under ``id``.

        Unseen id:  the record is seeded verbatim from the handle's current
                    position, size and maximized flag.
        Known id:   the stored record is applied onto the handle, overwriting
                    whatever geometry it currently has.

        Either way the handle replaces any previous handle for the id.
        """
        window = self._windows.get(id)
        if window is not None:
            log.debug("Applying known geometry to new handle: %s", window)
            window.apply_to(connectable)
        else:
            window = WindowGeometry(id=id)
            window.move(*connectable.get_position())
            window.resize(*connectable.get_size())
            window.set_maximized(connectable.is_maximized())
            self._windows[id] = window
            log.debug("Tracking new window: %s", window)
        self._connectables[id] = connectable
        return window

    def get(self, id: WindowID) -> WindowGeometry:
        window = self._windows.get(id)
        if window is None:
            window = WindowGeometry(id=id)
            self._windows[id] = window
        return window

    def sync(self) -> int:
        """
        Pull the current geometry of every connected handle into its record.

        A maximized handle only sets the flag; its on-screen rectangle is the
        maximized one and must not replace the stored normal rectangle.
        Returns the number of records touched.
        """
        for id, connectable in self._connectables.items():
            window = self.get(id)
            if connectable.is_maximized():
                window.set_maximized(True)
                continue
            window.set_maximized(False)
            window.move(*connectable.get_position())
            window.resize(*connectable.get_size())
        return len(self._connectables)

    def store(self) -> None:
        # Imported here: geometry_codec imports the record and error types
        # from this module.
        from geometry_codec import encode_windows, write_payload

        # Encode before opening: "wb" truncates, and a failed encode must
        # leave the previous file intact.
        try:
            data = encode_windows(self._windows)
        except GeometryEncodeError as exc:
            raise GeometryEncodeError(
                f"Cannot store window geometry in {self.filename}: {exc}"
            ) from exc

        try:
            f = open(self.filename, "wb")
        except OSError as exc:
            raise GeometryIOError(
                f"Cannot open window geometry file {self.filename}: {exc}"
            ) from exc
        with f:
            try:
                write_payload(data, f)
            except OSError as exc:
                raise GeometryIOError(
                    f"Cannot store window geometry in {self.filename}: {exc}"
                ) from exc
            except GeometryEncodeError as exc:
                raise GeometryEncodeError(
                    f"Cannot store window geometry in {self.filename}: {exc}"
                ) from exc

        log.info("Stored window geometry in %s", self.filename)

    def restore(self) -> None:
        from geometry_codec import load_windows

        log.info("Loading window geometry from %s", self.filename)
        try:
            f = open(self.filename, "rb")
        except OSError as exc:
            raise GeometryIOError(f"Cannot open {self.filename}: {exc}") from exc
        with f:
            try:
                loaded = load_windows(f)
            except OSError as exc:
                raise GeometryIOError(f"Cannot read {self.filename}: {exc}") from exc
            except GeometryDecodeError as exc:
                raise GeometryDecodeError(
                    f"Cannot load window geometry from {self.filename}: {exc}"
                ) from exc

        for id, window in loaded.items():
            self._windows[id] = window
            connectable = self._connectables.get(id)
            if connectable is None:
                continue
            log.debug("Restoring onto live handle: %s", window)
            window.apply_to(connectable)
