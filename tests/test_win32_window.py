import importlib
import pathlib
import sys
import types

import pytest


SW_SHOWNORMAL    = 1
SW_SHOWMAXIMIZED = 3
WS_EX_TOOLWINDOW = 0x80


class FakeDesktop:
    """Win32 window state the fake win32gui functions read and write."""

    def __init__(self):
        self.windows = {}
        self.shown = []

    def add(self, hwnd, title="", cls="", proc="", rect=(0, 0, 100, 100),
            show_cmd=SW_SHOWNORMAL, ex_style=0, visible=True):
        self.windows[hwnd] = {
            "title": title, "class": cls, "proc": proc, "visible": visible,
            "ex_style": ex_style,
            "placement": (0, show_cmd, (-1, -1), (-1, -1), tuple(rect)),
        }

    def set_placement(self, hwnd, placement):
        self.windows[hwnd]["placement"] = placement

    def show(self, hwnd, cmd):
        self.shown.append((hwnd, cmd))
        p = self.windows[hwnd]["placement"]
        self.windows[hwnd]["placement"] = (p[0], cmd, p[2], p[3], p[4])

    def enum(self, cb, extra):
        for hwnd in list(self.windows):
            cb(hwnd, extra)


def _load_module(monkeypatch, desktop):
    repo_root = pathlib.Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

    w = desktop.windows
    fake_win32con = types.SimpleNamespace(
        SW_SHOWNORMAL=SW_SHOWNORMAL,
        SW_SHOWMAXIMIZED=SW_SHOWMAXIMIZED,
        GWL_EXSTYLE=-20,
        WS_EX_TOOLWINDOW=WS_EX_TOOLWINDOW,
        WS_EX_APPWINDOW=0x40000,
    )
    fake_win32gui = types.SimpleNamespace(
        GetWindowPlacement=lambda hwnd: w[hwnd]["placement"],
        SetWindowPlacement=desktop.set_placement,
        ShowWindow=desktop.show,
        IsWindow=lambda hwnd: hwnd in w,
        GetParent=lambda _hwnd: 0,
        IsWindowVisible=lambda hwnd: w[hwnd]["visible"],
        GetWindowText=lambda hwnd: w[hwnd]["title"],
        GetClassName=lambda hwnd: w[hwnd]["class"],
        GetWindowLong=lambda hwnd, _idx: w[hwnd]["ex_style"],
        EnumWindows=desktop.enum,
    )
    fake_win32process = types.SimpleNamespace(
        GetWindowThreadProcessId=lambda hwnd: (0, hwnd),
    )
    fake_psutil = types.SimpleNamespace(
        Process=lambda pid: types.SimpleNamespace(name=lambda: w[pid]["proc"]),
    )

    monkeypatch.setitem(sys.modules, "win32con", fake_win32con)
    monkeypatch.setitem(sys.modules, "win32gui", fake_win32gui)
    monkeypatch.setitem(sys.modules, "win32process", fake_win32process)
    monkeypatch.setitem(sys.modules, "psutil", fake_psutil)

    sys.modules.pop("win32_window", None)
    return importlib.import_module("win32_window")


@pytest.fixture
def desktop():
    return FakeDesktop()


def test_geometry_reads_normal_rect(monkeypatch, desktop):
    desktop.add(1, rect=(10, 20, 110, 220), show_cmd=SW_SHOWMAXIMIZED)
    ww = _load_module(monkeypatch, desktop)

    win = ww.Win32Window(1)

    assert win.get_position() == (10, 20)
    assert win.get_size() == (100, 200)
    assert win.is_maximized() is True


def test_move_and_resize_keep_show_state(monkeypatch, desktop):
    desktop.add(1, rect=(10, 20, 110, 220))
    ww = _load_module(monkeypatch, desktop)
    win = ww.Win32Window(1)

    win.move(-50, 60)
    assert desktop.windows[1]["placement"][4] == (-50, 60, 50, 260)

    win.resize(300, 400)
    assert desktop.windows[1]["placement"][4] == (-50, 60, 250, 460)
    assert desktop.windows[1]["placement"][1] == SW_SHOWNORMAL


def test_maximize_shows_maximized(monkeypatch, desktop):
    desktop.add(7)
    ww = _load_module(monkeypatch, desktop)

    ww.Win32Window(7).maximize()

    assert desktop.shown == [(7, SW_SHOWMAXIMIZED)]


def test_window_id_uses_process_and_class(monkeypatch, desktop):
    desktop.add(1, title="notes.txt - Notepad", cls="Notepad", proc="Notepad.exe")
    desktop.add(2, title="x", cls="", proc="")
    ww = _load_module(monkeypatch, desktop)

    assert ww.window_id(1) == "notepad.exe:notepad"
    assert ww.window_id(2) == "unknown:unknown"


def test_list_windows_filters_and_assign_ids_dedupes(monkeypatch, desktop):
    desktop.add(1, title="a - Notepad", cls="Notepad", proc="notepad.exe")
    desktop.add(2, title="palette", cls="Tool", proc="app.exe", ex_style=WS_EX_TOOLWINDOW)
    desktop.add(3, title="", cls="Hidden", proc="app.exe")
    desktop.add(4, title="b - Notepad", cls="Notepad", proc="notepad.exe")
    desktop.add(5, title="Program Manager", cls="Progman", proc="explorer.exe")
    desktop.add(6, title="Search", cls="Search", proc="SearchHost.exe")
    desktop.add(8, title="invisible", cls="X", proc="app.exe", visible=False)
    ww = _load_module(monkeypatch, desktop)

    windows = ww.list_windows()
    assert [w.hwnd for w in windows] == [1, 4]

    ids = ww.assign_ids(windows)
    assert {k: v.hwnd for k, v in ids.items()} == {
        "notepad.exe:notepad": 1,
        "notepad.exe:notepad#2": 4,
    }


def test_registry_add_known_id_repositions_live_window(monkeypatch, desktop):
    desktop.add(1, rect=(0, 0, 100, 100))
    ww = _load_module(monkeypatch, desktop)
    from window_geometry import GeometryRegistry

    registry = GeometryRegistry("unused.bin")
    saved = registry.get("notepad.exe:notepad")
    saved.move(30, 40)
    saved.resize(500, 600)
    saved.set_maximized(True)

    registry.add("notepad.exe:notepad", ww.Win32Window(1))

    assert desktop.windows[1]["placement"][4] == (30, 40, 530, 640)
    assert desktop.shown == [(1, SW_SHOWMAXIMIZED)]
