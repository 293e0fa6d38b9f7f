"""
Tests for the tkinter window around the edit session. Skipped without a display.
"""

import pytest

tk = pytest.importorskip("tkinter")

import hosts_editor
from hosts_core import Command, EditSession, EditState


@pytest.fixture
def root():
    try:
        root = tk.Tk()
    except tk.TclError:
        pytest.skip("no display available")
    root.withdraw()
    yield root
    root.destroy()


@pytest.fixture
def editor(root, tmp_path):
    path = tmp_path / "hosts"
    path.write_bytes(b"127.0.0.1 localhost\n")
    return hosts_editor.HostsFileEditor(root, EditSession(str(path)))


def test_refused_grab_cancels_pending_save(editor, monkeypatch):
    """If the dialog cannot grab input, the save is cancelled instead of left pending."""
    def refuse(self):
        raise tk.TclError('grab failed: window not viewable')

    monkeypatch.setattr(hosts_editor.DiffConfirmWindow, "wait_visibility", lambda self: None)
    monkeypatch.setattr(hosts_editor.DiffConfirmWindow, "grab_set", refuse)
    editor.set_text("127.0.0.1 localhost\n0.0.0.0 ads.example\n")

    editor.save_file()

    assert editor.session.state is EditState.EDITING
    assert editor.session.show_confirm is False
    editor.load_file()
    assert editor.session.state is EditState.LOADED


def test_dialog_failure_cancels_pending_save(editor, monkeypatch):
    def broken(*args, **kwargs):
        raise tk.TclError("cannot create window")

    monkeypatch.setattr(hosts_editor, "DiffConfirmWindow", broken)

    editor.save_file()

    assert editor.session.state is EditState.EDITING
    editor.dispatch(Command.REFRESH)
    assert editor.session.state is EditState.LOADED
