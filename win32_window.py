"""
win32_window.py  –  Live Win32 top-level windows as geometry handles
====================================================================

Win32Window implements the Connectable capability (move / resize / maximize
plus the matching getters) on top of Get/SetWindowPlacement, so geometry
always refers to the NORMAL (restored) rectangle, even while the window is
maximized or minimised.

Window ids are derived from the owning process and the window class
(``notepad.exe:notepad``), which survive restarts where titles and HWNDs do
not.  Several windows with the same id are told apart by enumeration order
(``#2``, ``#3`` …).
"""

from typing import Dict, List, Set, Tuple

import psutil
import win32con
import win32gui
import win32process

# Processes that show up as visible top-level windows but are shell chrome.
_BLOCKED_PROC: Set[str] = {
    "textinputhost.exe",
    "applicationframehost.exe",
    "shellhost.exe",
    "startmenuexperiencehost.exe",
    "searchhost.exe",
    "searchapp.exe",
    "lockapp.exe",
    "dwm.exe",
}

_BLOCKED_CLASS: Set[str] = {
    "windows.ui.core.corewindow",
    "applicationframewindow",
    "progman",
    "workerw",
}


# ══════════════════════════════════════════════════════════════════════════
#  Tiny helpers
# ══════════════════════════════════════════════════════════════════════════
def _safe_text(hwnd: int) -> str:
    try:
        return win32gui.GetWindowText(hwnd) or ""
    except Exception:
        return ""

def _safe_class(hwnd: int) -> str:
    try:
        return win32gui.GetClassName(hwnd) or ""
    except Exception:
        return ""

def _process_name(hwnd: int) -> str:
    try:
        _, pid = win32process.GetWindowThreadProcessId(hwnd)
        return psutil.Process(int(pid)).name() or ""
    except Exception:
        return ""


# ══════════════════════════════════════════════════════════════════════════
#  Win32Window
# ══════════════════════════════════════════════════════════════════════════
class Win32Window:
    """A top-level window, addressed by HWND."""

    def __init__(self, hwnd: int) -> None:
        self.hwnd = hwnd

    def __repr__(self) -> str:
        return f"Win32Window({hex(self.hwnd)})"

    def _placement(self):
        return win32gui.GetWindowPlacement(self.hwnd)

    def _set_normal_rect(self, left: int, top: int, right: int, bottom: int) -> None:
        # Keep flags, show state and min/max positions; only the normal
        # rectangle changes.
        cur = self._placement()
        win32gui.SetWindowPlacement(
            self.hwnd,
            (cur[0], cur[1], cur[2], cur[3],
             (int(left), int(top), int(right), int(bottom))),
        )

    # ── Observable ────────────────────────────────────────────────────────
    def get_position(self) -> Tuple[int, int]:
        left, top, _, _ = self._placement()[4]
        return int(left), int(top)

    def get_size(self) -> Tuple[int, int]:
        left, top, right, bottom = self._placement()[4]
        return int(right - left), int(bottom - top)

    def is_maximized(self) -> bool:
        return int(self._placement()[1]) == win32con.SW_SHOWMAXIMIZED

    # ── Applyable ─────────────────────────────────────────────────────────
    def move(self, x: int, y: int) -> None:
        width, height = self.get_size()
        self._set_normal_rect(x, y, x + width, y + height)

    def resize(self, width: int, height: int) -> None:
        x, y = self.get_position()
        self._set_normal_rect(x, y, x + width, y + height)

    def maximize(self) -> None:
        win32gui.ShowWindow(self.hwnd, win32con.SW_SHOWMAXIMIZED)


# ══════════════════════════════════════════════════════════════════════════
#  Enumeration
# ══════════════════════════════════════════════════════════════════════════
def _is_interesting(hwnd: int) -> bool:
    """True for top-level user-facing windows worth tracking."""
    if not win32gui.IsWindow(hwnd):         return False
    if win32gui.GetParent(hwnd):            return False
    if not win32gui.IsWindowVisible(hwnd):  return False
    if not _safe_text(hwnd).strip():        return False
    if _safe_class(hwnd).strip().lower() in _BLOCKED_CLASS:
        return False

    try:
        ex_style = win32gui.GetWindowLong(hwnd, win32con.GWL_EXSTYLE)
    except Exception:
        ex_style = 0
    if (ex_style & win32con.WS_EX_TOOLWINDOW) and not (ex_style & win32con.WS_EX_APPWINDOW):
        return False

    return _process_name(hwnd).lower() not in _BLOCKED_PROC


def window_id(hwnd: int) -> str:
    proc = _process_name(hwnd).strip() or "unknown"
    cls  = _safe_class(hwnd).strip() or "unknown"
    return f"{proc}:{cls}".lower()


def list_windows() -> List[Win32Window]:
    """Interesting top-level windows, front to back."""
    hwnds: List[int] = []

    def _cb(hwnd, _):
        if _is_interesting(hwnd):
            hwnds.append(hwnd)

    # EnumWindows yields top-level windows in z-order.
    win32gui.EnumWindows(_cb, None)
    return [Win32Window(h) for h in hwnds]


def assign_ids(windows: List[Win32Window]) -> Dict[str, Win32Window]:
    """Give every window a unique id; repeats get ``#2``, ``#3`` … suffixes."""
    result: Dict[str, Win32Window] = {}
    seen: Dict[str, int] = {}
    for w in windows:
        base = window_id(w.hwnd)
        seen[base] = seen.get(base, 0) + 1
        key = base if seen[base] == 1 else f"{base}#{seen[base]}"
        result[key] = w
    return result
