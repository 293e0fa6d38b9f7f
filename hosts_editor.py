# hosts_editor.py
# Hosts File Editor: edit the Windows hosts file, review a line diff, then save.
# The load/diff/save lifecycle lives in hosts_core.EditSession; this module is
# only the tkinter window around it.

import tkinter as tk
from tkinter import ttk, scrolledtext, messagebox, font
import os
import logging

from hosts_core import Command, DiffKind, EditSession, EditState, is_running_as_admin, summarize_diff

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "HOSTS_EDITOR_LOG_LEVEL"

# ----------------------------- Theme (Catppuccin Mocha) ----------------------
PALETTE = {
    "base": "#1e1e2e",    # window background
    "mantle": "#181825",  # very dark panels
    "crust": "#11111b",   # darkest
    "text": "#cdd6f4",
    "subtext": "#a6adc8",
    "surface0": "#313244",
    "surface1": "#45475a",
    "blue": "#89b4fa",
    "green": "#a6e3a1",
    "green_hover": "#b6f3b1",
    "red": "#f38ba8",
}

DIFF_TAGS = {
    DiffKind.EQUAL: (),
    DiffKind.REMOVED: "removed",
    DiffKind.ADDED: "added",
}

# ----------------------------- Tooltip Helper --------------------------------
class ToolTip:
    """Creates a tooltip for a given widget."""
    def __init__(self, widget, text):
        self.widget = widget
        self.text = text
        self.tooltip_window = None
        self.widget.bind("<Enter>", self.show_tooltip)
        self.widget.bind("<Leave>", self.hide_tooltip)

    def show_tooltip(self, event=None):
        x = self.widget.winfo_rootx() + 25
        y = self.widget.winfo_rooty() + self.widget.winfo_height() + 5

        self.tooltip_window = tk.Toplevel(self.widget)
        self.tooltip_window.wm_overrideredirect(True)
        self.tooltip_window.wm_geometry(f"+{x}+{y}")
        tk.Label(
            self.tooltip_window,
            text=self.text,
            justify="left",
            background=PALETTE["mantle"],
            foreground=PALETTE["text"],
            relief="solid",
            borderwidth=1,
            font=("Segoe UI", 9),
        ).pack(ipadx=6, ipady=3)

    def hide_tooltip(self, event=None):
        if self.tooltip_window:
            self.tooltip_window.destroy()
        self.tooltip_window = None

# --------------------------- Diff Confirmation Window ------------------------
class DiffConfirmWindow(tk.Toplevel):
    """Modal review of the pending change set. Closing the window cancels."""
    def __init__(self, editor, diff_lines):
        super().__init__(editor.root)
        self.editor = editor
        self._answered = False

        self.title("Confirm Changes")
        self.geometry("900x650")
        self.configure(bg=PALETTE["base"])
        self.transient(editor.root)

        stats = summarize_diff(diff_lines)
        banner = ttk.Frame(self, padding=(10, 10, 10, 0))
        banner.pack(fill='x', side=tk.TOP)
        ttk.Label(
            banner,
            text=f"+{stats['added']} lines added / -{stats['removed']} lines removed. Write these changes to disk?",
            font=("Segoe UI", 11, "bold"),
        ).pack(fill='x', pady=(0, 5))

        text_frame = ttk.Frame(self, padding=(10, 0, 10, 0))
        text_frame.pack(expand=True, fill='both')
        self.diff_text = scrolledtext.ScrolledText(
            text_frame, wrap=tk.NONE, font=("Consolas", 11),
            bg=PALETTE["crust"], fg=PALETTE["text"], insertbackground=PALETTE["text"],
            selectbackground=PALETTE["blue"], relief="flat"
        )
        self.diff_text.pack(expand=True, fill='both')

        button_frame = ttk.Frame(self, padding=10)
        button_frame.pack(fill=tk.X, side=tk.BOTTOM)

        legend_frame = ttk.Frame(button_frame)
        legend_frame.pack(side=tk.LEFT)
        tk.Label(legend_frame, text="■ Added", fg=PALETTE["green"], bg=PALETTE["base"]).pack(side=tk.LEFT)
        tk.Label(legend_frame, text="■ Removed", fg=PALETTE["red"], bg=PALETTE["base"]).pack(side=tk.LEFT, padx=10)

        ttk.Button(button_frame, text="Confirm Save", command=self.confirm, style="Action.TButton").pack(side=tk.RIGHT, padx=6)
        ttk.Button(button_frame, text="Cancel", command=self.cancel).pack(side=tk.RIGHT, padx=6)

        self.diff_text.tag_config('added', foreground=PALETTE["green"])
        self.diff_text.tag_config('removed', foreground=PALETTE["red"])
        self.display_diff(diff_lines)
        self.protocol("WM_DELETE_WINDOW", self.cancel)
        self._make_modal()

    def _make_modal(self):
        # a grab needs a mapped window, and can still be refused by the window manager
        try:
            self.wait_visibility()
            self.grab_set()
        except tk.TclError as e:
            logger.warning("Could not make the confirmation dialog modal: %s", e)
            self.cancel()

    def display_diff(self, diff_lines):
        self.diff_text.config(state=tk.NORMAL)
        self.diff_text.delete('1.0', tk.END)
        for line in diff_lines:
            self.diff_text.insert(tk.END, line.text + '\n', DIFF_TAGS[line.kind])
        self.diff_text.config(state=tk.DISABLED)

    def confirm(self):
        self._answer(Command.CONFIRM)

    def cancel(self):
        self._answer(Command.CANCEL)

    def _answer(self, command):
        if self._answered:
            return
        self._answered = True
        self.grab_release()
        self.destroy()
        self.editor.dispatch(command)

# -------------------------------- Main App -----------------------------------
class HostsFileEditor:
    def __init__(self, root, session=None):
        self.root = root
        self.root.title("Hosts File Editor")
        self.root.geometry("1100x760")
        self.root.configure(bg=PALETTE["base"])

        self.session = session or EditSession()
        self._suppress_modified_handler = False

        self.default_font = font.Font(family="Segoe UI", size=10)
        self._init_styles()
        self._init_menubar()

        # Status bar first so it keeps its space at the bottom
        status_frame = ttk.Frame(root, padding=(10, 6, 10, 10))
        status_frame.pack(side=tk.BOTTOM, fill=tk.X)
        self.status_label = ttk.Label(status_frame, text="Loading...", font=self.default_font, foreground=PALETTE["subtext"])
        self.status_label.pack(side=tk.LEFT)

        top_bar = ttk.Frame(root, padding=(10, 10, 10, 4))
        top_bar.pack(side=tk.TOP, fill=tk.X)
        self.path_label = ttk.Label(top_bar, text=self.session.display_path, font=self.default_font, foreground=PALETTE["subtext"])
        self.path_label.pack(side=tk.LEFT)
        self._btn(top_bar, "Save", self.save_file, "Review the changes, then write them to the hosts file.", style="Action.TButton").pack(side=tk.RIGHT, padx=(6, 0))
        self._btn(top_bar, "Refresh", self.load_file, "Reload the hosts file from disk, discarding edits.").pack(side=tk.RIGHT)

        self.text_area = scrolledtext.ScrolledText(
            root, wrap=tk.NONE, font=("Consolas", 12), undo=False,
            bg=PALETTE["crust"], fg=PALETTE["text"], insertbackground=PALETTE["text"],
            selectbackground=PALETTE["blue"], relief="flat"
        )
        self.text_area.pack(expand=True, fill='both', padx=10, pady=(0, 4))
        self.text_area.bind("<<Modified>>", self._on_text_modified)

        self.load_file()
        if self.session.state is EditState.LOADED and not is_running_as_admin():
            self.update_status("Warning: Not running as Administrator. Saving will likely fail.", is_error=True)

    # ----------------------------- Styles & Menus -----------------------------
    def _init_styles(self):
        style = ttk.Style()
        style.theme_use("clam")

        style.configure(".", background=PALETTE["base"], foreground=PALETTE["text"], fieldbackground=PALETTE["surface0"])
        style.configure("TFrame", background=PALETTE["base"])
        style.configure("TLabel", background=PALETTE["base"], foreground=PALETTE["text"])

        style.configure("TButton",
                        background=PALETTE["surface0"], foreground=PALETTE["text"],
                        padding=(10, 6), relief="flat", borderwidth=0, focusthickness=1, focuscolor=PALETTE["blue"])
        style.map("TButton",
                  background=[("active", PALETTE["surface1"])],
                  relief=[("pressed", "sunken")])

        style.configure("Action.TButton",
                        background=PALETTE["green"], foreground="#0b1020",
                        padding=(10, 6), relief="flat", borderwidth=0)
        style.map("Action.TButton",
                  background=[("active", PALETTE["green_hover"])],
                  relief=[("pressed", "sunken")])

        style.configure("Vertical.TScrollbar", background=PALETTE["mantle"], troughcolor=PALETTE["crust"], arrowcolor=PALETTE["text"])
        style.configure("Horizontal.TScrollbar", background=PALETTE["mantle"], troughcolor=PALETTE["crust"], arrowcolor=PALETTE["text"])

        self.root.option_add('*Menu.background', PALETTE["mantle"])
        self.root.option_add('*Menu.foreground', PALETTE["text"])
        self.root.option_add('*Menu.activeBackground', PALETTE["blue"])
        self.root.option_add('*Menu.activeForeground', "#0b1020")

    def _init_menubar(self):
        menu_bar = tk.Menu(self.root, tearoff=0)
        self.root.config(menu=menu_bar)

        file_menu = tk.Menu(menu_bar, tearoff=0)
        file_menu.add_command(label="Save", command=self.save_file)
        file_menu.add_command(label="Refresh", command=self.load_file)
        file_menu.add_separator()
        file_menu.add_command(label="Exit", command=self.root.destroy)
        menu_bar.add_cascade(label="File", menu=file_menu)

    def _btn(self, parent, text, command, tooltip, style="TButton"):
        btn = ttk.Button(parent, text=text, command=command, style=style)
        ToolTip(btn, tooltip)
        return btn

    def update_status(self, message, is_error=False):
        color = PALETTE["red"] if is_error else PALETTE["green"] if message else PALETTE["subtext"]
        self.status_label.config(text=message, foreground=color)
        # fade back to neutral after delay
        self.root.after(4000, lambda: self.status_label.config(foreground=PALETTE["subtext"]))

    # ----------------------------- Editor Buffer ------------------------------
    def get_text(self):
        return self.text_area.get('1.0', 'end-1c')

    def set_text(self, content):
        # avoid feeding programmatic updates back into the session as edits
        self._suppress_modified_handler = True
        self.text_area.delete('1.0', tk.END)
        self.text_area.insert('1.0', content)
        self.text_area.edit_modified(False)
        self._suppress_modified_handler = False

    def _on_text_modified(self, event=None):
        if not self.text_area.edit_modified():
            return
        self.text_area.edit_modified(False)
        if self._suppress_modified_handler or self.session.state is EditState.DIFF_PENDING:
            return
        self.session.edit(self.get_text())

    # ----------------------------- Commands -----------------------------------
    def load_file(self):
        self.dispatch(Command.REFRESH)

    def save_file(self):
        text = self.get_text()
        if text != self.session.current:
            self.session.edit(text)
        self.dispatch(Command.SAVE)

    def dispatch(self, command):
        """Runs one command through the session and redraws from its state."""
        state = self.session.handle(command)
        logger.debug("%s -> %s", command.value, state.value)

        if command is Command.REFRESH:
            if not self.session.status:
                self.set_text(self.session.current)
                self.update_status(f"Loaded hosts file: '{self.session.path}'")
            else:
                self.update_status(self.session.status, is_error=True)
                messagebox.showerror("Error", self.session.status)
        elif command is Command.SAVE:
            try:
                DiffConfirmWindow(self, self.session.diff_lines)
            except tk.TclError as e:
                logger.warning("Could not open the confirmation dialog: %s", e)
                if self.session.state is EditState.DIFF_PENDING:
                    self.session.handle(Command.CANCEL)
                self.update_status(f"Could not show changes: {e}", is_error=True)
        elif command is Command.CONFIRM:
            self.update_status(self.session.status, is_error=state is not EditState.SAVED)
        elif command is Command.CANCEL:
            self.update_status("Save cancelled.")


def main():
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.WARNING),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    root = tk.Tk()
    HostsFileEditor(root)
    root.mainloop()


if __name__ == "__main__":
    main()
