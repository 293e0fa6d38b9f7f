# hosts_core.py
# Load / diff / commit workflow behind the Hosts File Editor window.
# Nothing in here imports tkinter, so the whole edit lifecycle can run headless.

import os
import ctypes
import logging
import threading
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

DEFAULT_HOSTS_PATH = r"C:\Windows\System32\drivers\etc\hosts"
SYSTEM_ROOT_ENV = "SystemRoot"

NO_CHANGES_MESSAGE = "No changes detected."
SAVE_SUCCESS_MESSAGE = "File saved successfully"
PERMISSION_DENIED_MESSAGE = "Permission denied! Please run as administrator."

FALLBACK_ENCODING = "gbk"
TAB_REPLACEMENT = "    "

# ----------------------------- Errors ----------------------------------------
class HostsEditorError(Exception):
    """Base error. `message` is the status string shown to the user."""
    def __init__(self, message):
        super().__init__(message)
        self.message = message


class HostsReadError(HostsEditorError):
    pass


class HostsPermissionError(HostsEditorError):
    pass


class HostsWriteError(HostsEditorError):
    pass


class InvalidTransitionError(HostsEditorError):
    pass

# ----------------------------- Path & Privileges -----------------------------
def get_hosts_path(environ=None) -> str:
    environ = os.environ if environ is None else environ
    system_root = environ.get(SYSTEM_ROOT_ENV)
    if system_root:
        return os.path.join(system_root, "System32", "drivers", "etc", "hosts")
    return DEFAULT_HOSTS_PATH


def display_path(path: str) -> str:
    return f"Path: {path}"


def is_running_as_admin() -> bool:
    """Root on POSIX, an elevated token on Windows."""
    try:
        return os.getuid() == 0
    except AttributeError:
        try:
            return ctypes.windll.shell32.IsUserAnAdmin() != 0
        except (AttributeError, OSError):
            return False

# ----------------------------- Loader ----------------------------------------
def decode_hosts_bytes(raw: bytes) -> str:
    """
    Decodes hosts file bytes for display.

    Strict UTF-8 first; anything else is read as GBK (Chinese Windows), with
    undecodable sequences replaced rather than raised. Tabs become four spaces.
    """
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("Hosts file is not valid UTF-8, falling back to %s", FALLBACK_ENCODING)
        text = raw.decode(FALLBACK_ENCODING, errors="replace")
    return text.replace("\t", TAB_REPLACEMENT)


def read_hosts_file(path: str | None = None) -> str:
    path = path or get_hosts_path()
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except OSError as e:
        logger.warning("Reading %s failed: %s", path, e)
        raise HostsReadError(f"Cannot read hosts file: {e}") from e

    logger.debug("Read %d bytes from %s", len(raw), path)
    return decode_hosts_bytes(raw)

# ----------------------------- Diff Engine -----------------------------------
class DiffKind(Enum):
    EQUAL = 0
    REMOVED = 1
    ADDED = 2


DIFF_PREFIXES = {
    DiffKind.EQUAL: "  ",
    DiffKind.REMOVED: "- ",
    DiffKind.ADDED: "+ ",
}


@dataclass(frozen=True)
class DiffLine:
    text: str
    kind: DiffKind


def _diff_line(line: str, kind: DiffKind) -> DiffLine:
    return DiffLine(DIFF_PREFIXES[kind] + line.rstrip("\r\n"), kind)


def _myers_matches(a: list[str], b: list[str]) -> list[tuple[int, int]]:
    """
    Matched index pairs of a shortest edit script between `a` and `b`
    (Myers' O(ND) greedy algorithm), so the matches form a longest common
    subsequence.
    """
    n, m = len(a), len(b)
    if not n or not m:
        return []

    offset = n + m
    v = [0] * (2 * offset + 2)
    # trace[d] holds v[k] for k in -d-1..d+1 as it stood before round d
    trace = []
    for d in range(offset + 1):
        trace.append(v[offset - d - 1:offset + d + 2])
        done = False
        for k in range(-d, d + 1, 2):
            if k == -d or (k != d and v[offset + k - 1] < v[offset + k + 1]):
                x = v[offset + k + 1]
            else:
                x = v[offset + k - 1] + 1
            y = x - k
            while x < n and y < m and a[x] == b[y]:
                x += 1
                y += 1
            v[offset + k] = x
            if x >= n and y >= m:
                done = True
                break
        if done:
            break

    pairs = []
    x, y = n, m
    for d in range(len(trace) - 1, -1, -1):
        snapshot = trace[d]
        k = x - y
        if k == -d or (k != d and snapshot[k - 1 + d + 1] < snapshot[k + 1 + d + 1]):
            prev_k = k + 1
        else:
            prev_k = k - 1
        prev_x = snapshot[prev_k + d + 1]
        prev_y = prev_x - prev_k
        while x > prev_x and y > prev_y:
            x -= 1
            y -= 1
            pairs.append((x, y))
        x, y = prev_x, prev_y
    pairs.reverse()
    return pairs


def _lcs_pairs(old_lines: list[str], new_lines: list[str]) -> list[tuple[int, int]]:
    # lines found on only one side can never match, dropping them keeps D small
    common = set(old_lines) & set(new_lines)
    old_index = [i for i, line in enumerate(old_lines) if line in common]
    new_index = [j for j, line in enumerate(new_lines) if line in common]
    matches = _myers_matches([old_lines[i] for i in old_index], [new_lines[j] for j in new_index])
    return [(old_index[x], new_index[y]) for x, y in matches]


def compute_diff_lines(original: str, current: str) -> list[DiffLine]:
    """
    Minimal line diff of `original` -> `current` as display rows.

    Unchanged lines are a longest common subsequence of the two line lists.
    Each changed run is emitted as its removals followed by its insertions,
    in document order. Identical inputs yield a single "no changes" row.
    """
    if original == current:
        return [DiffLine(NO_CHANGES_MESSAGE, DiffKind.EQUAL)]

    old_lines = original.splitlines(keepends=True)
    new_lines = current.splitlines(keepends=True)

    rows = []
    i = j = 0
    for old_at, new_at in _lcs_pairs(old_lines, new_lines) + [(len(old_lines), len(new_lines))]:
        rows.extend(_diff_line(line, DiffKind.REMOVED) for line in old_lines[i:old_at])
        rows.extend(_diff_line(line, DiffKind.ADDED) for line in new_lines[j:new_at])
        if old_at < len(old_lines):
            rows.append(_diff_line(old_lines[old_at], DiffKind.EQUAL))
        i, j = old_at + 1, new_at + 1

    logger.debug("Computed %d diff rows", len(rows))
    return rows


def summarize_diff(lines: list[DiffLine]) -> dict:
    """Counts rows per kind for the confirmation banner."""
    stats = {"added": 0, "removed": 0, "unchanged": 0}
    if len(lines) == 1 and lines[0].text == NO_CHANGES_MESSAGE:
        return stats
    for line in lines:
        if line.kind is DiffKind.ADDED:
            stats["added"] += 1
        elif line.kind is DiffKind.REMOVED:
            stats["removed"] += 1
        else:
            stats["unchanged"] += 1
    return stats

# ----------------------------- Committer -------------------------------------
def save_hosts_file(content: str, path: str | None = None) -> str:
    """Overwrites the hosts file with `content` as UTF-8. No backup is made."""
    path = path or get_hosts_path()
    try:
        data = content.encode("utf-8")
    except UnicodeEncodeError as e:
        raise HostsWriteError(f"Failed to save: {e}") from e

    try:
        with open(path, "wb") as f:
            f.write(data)
    except PermissionError as e:
        logger.warning("Writing %s denied: %s", path, e)
        raise HostsPermissionError(PERMISSION_DENIED_MESSAGE) from e
    except OSError as e:
        logger.warning("Writing %s failed: %s", path, e)
        raise HostsWriteError(f"Failed to save: {e}") from e

    logger.debug("Wrote %d bytes to %s", len(data), path)
    return SAVE_SUCCESS_MESSAGE

# ----------------------------- Edit Lifecycle --------------------------------
class EditState(Enum):
    IDLE = "idle"
    LOADED = "loaded"
    EDITING = "editing"
    DIFF_PENDING = "diff_pending"
    SAVED = "saved"


class Command(Enum):
    REFRESH = "refresh"
    SAVE = "save"
    CONFIRM = "confirm"
    CANCEL = "cancel"


class EditSession:
    """
    State of one editing session: the resolved path, the `original` snapshot
    (last synced with disk) and the `current` edit buffer.

    The window forwards button presses as `Command`s to `handle()` and text
    changes to `edit()`, then renders `current`, `status`, `show_confirm` and
    `diff_lines` back. Only text that was diffed on SAVE can be committed on
    CONFIRM.
    """

    def __init__(self, path: str | None = None):
        self.path = path or get_hosts_path()
        self.original = ""
        self.current = ""
        self.state = EditState.IDLE
        self.status = ""
        self.diff_lines: list[DiffLine] = []
        self.show_confirm = False
        self._pending_content = None
        self._lock = threading.RLock()
        self._handlers = {
            Command.REFRESH: self._refresh,
            Command.SAVE: self._request_save,
            Command.CONFIRM: self._confirm_save,
            Command.CANCEL: self._cancel_save,
        }

    @property
    def display_path(self) -> str:
        return display_path(self.path)

    @property
    def is_modified(self) -> bool:
        return self.current != self.original

    def handle(self, command: Command) -> EditState:
        with self._lock:
            self._handlers[command]()
            return self.state

    def edit(self, text: str):
        with self._lock:
            if self.state is EditState.DIFF_PENDING:
                raise InvalidTransitionError("Finish or cancel the pending save before editing.")
            self.current = text
            self.state = EditState.EDITING

    def _require_pending(self, command: Command, expected: bool):
        pending = self.state is EditState.DIFF_PENDING
        if pending != expected:
            raise InvalidTransitionError(f"{command.value} is not allowed while {self.state.value}.")

    def _refresh(self):
        self._require_pending(Command.REFRESH, False)
        try:
            content = read_hosts_file(self.path)
        except HostsReadError as e:
            self.status = e.message
            return
        self.original = content
        self.current = content
        self.status = ""
        self.state = EditState.LOADED
        logger.info("Loaded %s", self.path)

    def _request_save(self):
        self._require_pending(Command.SAVE, False)
        self._pending_content = self.current
        self.diff_lines = compute_diff_lines(self.original, self._pending_content)
        self.show_confirm = True
        self.state = EditState.DIFF_PENDING

    def _confirm_save(self):
        self._require_pending(Command.CONFIRM, True)
        content, self._pending_content = self._pending_content, None
        self.show_confirm = False
        try:
            self.status = save_hosts_file(content, self.path)
        except (HostsPermissionError, HostsWriteError) as e:
            self.status = e.message
            self.state = EditState.EDITING
            return
        self.original = content
        self.state = EditState.SAVED
        logger.info("Saved %s", self.path)

    def _cancel_save(self):
        self._require_pending(Command.CANCEL, True)
        self._pending_content = None
        self.show_confirm = False
        self.state = EditState.EDITING
