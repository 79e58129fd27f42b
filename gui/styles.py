"""
Tkinter styles and themes for the Linen RFID Dashboard.

Each theme carries the widget palette and the row colours used by the
workflow tables (valid, wrong customer, duplicate, still checking).
"""

from tkinter import ttk
import tkinter as tk
import weakref


FONT = "Arial"

THEMES = {
    "light": {
        "bg": "#FFFFFF",
        "fg": "#0f172a",
        "accent": "#0f766e",
        "success": "#15803d",
        "warning": "#b45309",
        "error": "#b91c1c",
        "muted": "#64748b",
        "panel_bg": "#f1f5f9",
        "entry_bg": "#FFFFFF",
        "table_bg": "#FFFFFF",
        "table_selected": "#ccfbf1",
        "border": "#cbd5e1",
        "rows": {
            "valid": ("#dcfce7", "#166534"),
            "invalid": ("#fee2e2", "#991b1b"),
            "duplicate": ("#fef3c7", "#92400e"),
        },
    },
    "dark": {
        "bg": "#111827",
        "fg": "#e5e7eb",
        "accent": "#2dd4bf",
        "success": "#4ade80",
        "warning": "#fbbf24",
        "error": "#f87171",
        "muted": "#9ca3af",
        "panel_bg": "#1f2937",
        "entry_bg": "#374151",
        "table_bg": "#1f2937",
        "table_selected": "#134e4a",
        "border": "#4b5563",
        "rows": {
            "valid": ("#14532d", "#bbf7d0"),
            "invalid": ("#7f1d1d", "#fecaca"),
            "duplicate": ("#78350f", "#fde68a"),
        },
    }
}

# Status levels used by the status bar and message labels
LEVELS = ("info", "success", "warning", "error")

LED_COLORS = {
    "off": "#6b7280",
    "connected": "#22c55e",
    "scanning": "#0ea5e9",
    "error": "#ef4444"
}


class ThemeManager:
    """
    Manages application themes.

    Tables registered with ``register_tree`` get their row colours
    re-applied when the theme changes.
    """

    _current_theme = "light"
    _root = None
    _trees = weakref.WeakSet()

    @classmethod
    def init(cls, root):
        cls._root = root

    @classmethod
    def get_current_theme(cls) -> str:
        return cls._current_theme

    @classmethod
    def get_colors(cls) -> dict:
        """Palette of the current theme."""
        return THEMES.get(cls._current_theme, THEMES["light"])

    @classmethod
    def level_color(cls, level: str) -> str:
        colors = cls.get_colors()
        if level == "info":
            return colors["fg"]
        return colors.get(level, colors["fg"])

    @classmethod
    def register_tree(cls, tree):
        cls._trees.add(tree)
        configure_treeview_tags(tree, cls._current_theme)

    @classmethod
    def set_theme(cls, theme_name: str):
        """Switch theme and restyle the window and every registered table."""
        if theme_name not in THEMES:
            return

        cls._current_theme = theme_name
        if cls._root:
            setup_styles(cls._root, theme_name)
        for tree in list(cls._trees):
            configure_treeview_tags(tree, theme_name)

    @classmethod
    def toggle_theme(cls):
        new_theme = "dark" if cls._current_theme == "light" else "light"
        cls.set_theme(new_theme)
        return new_theme


def _style_table(colors: dict) -> dict:
    """ttk style name -> configure() options."""
    base = {"background": colors["bg"], "foreground": colors["fg"]}
    field = {"fieldbackground": colors["entry_bg"], "foreground": colors["fg"]}
    table = {
        ".": {**base, "font": (FONT, 10)},
        "TFrame": {"background": colors["bg"]},
        "TLabel": base,
        "TCheckbutton": base,
        "Header.TLabel": {
            "background": colors["bg"],
            "foreground": colors["accent"],
            "font": (FONT, 11, "bold"),
        },
        "Muted.TLabel": {"background": colors["bg"], "foreground": colors["muted"]},
        "TLabelframe": {"background": colors["bg"], "bordercolor": colors["border"]},
        "TLabelframe.Label": {
            "background": colors["bg"],
            "foreground": colors["accent"],
            "font": (FONT, 11, "bold"),
        },
        "TButton": {
            "padding": 6,
            "background": colors["panel_bg"],
            "foreground": colors["fg"],
        },
        "Primary.TButton": {"font": (FONT, 10, "bold")},
        "TEntry": {**field, "insertcolor": colors["fg"]},
        "TSpinbox": {**field, "arrowcolor": colors["fg"]},
        "TCombobox": {**field, "background": colors["entry_bg"]},
        "Treeview": {
            "background": colors["table_bg"],
            "foreground": colors["fg"],
            "fieldbackground": colors["table_bg"],
            "rowheight": 22,
        },
        "Treeview.Heading": {
            "background": colors["panel_bg"],
            "foreground": colors["fg"],
            "font": (FONT, 10, "bold"),
        },
        "TNotebook": {"background": colors["bg"]},
        "TNotebook.Tab": {
            "background": colors["panel_bg"],
            "foreground": colors["fg"],
            "padding": [12, 4],
        },
        "TPanedwindow": {"background": colors["bg"]},
    }
    for level in LEVELS:
        table[f"{level.capitalize()}.TLabel"] = {
            "background": colors["bg"],
            "foreground": colors["fg"] if level == "info" else colors[level],
        }
    return table


def setup_styles(root, theme: str = "light"):
    """
    Configure ttk styles for the application.

    Args:
        root: Tkinter root window
        theme: Theme name ("light" or "dark")
    """
    colors = THEMES.get(theme, THEMES["light"])
    style = ttk.Style()
    style.theme_use("clam")

    for name, options in _style_table(colors).items():
        style.configure(name, **options)

    style.map(
        "TButton",
        background=[("active", colors["accent"]), ("disabled", colors["bg"])],
        foreground=[("active", "#FFFFFF"), ("disabled", colors["muted"])]
    )
    style.map(
        "Treeview",
        background=[("selected", colors["table_selected"])],
        foreground=[("selected", colors["fg"])]
    )
    style.map(
        "TNotebook.Tab",
        background=[("selected", colors["bg"])],
        foreground=[("selected", colors["accent"])]
    )

    root.configure(bg=colors["bg"])
    return style


def configure_treeview_tags(tree, theme: str = "light"):
    """Row colours for a workflow table, one tag per row_tag() value."""
    colors = THEMES.get(theme, THEMES["light"])

    tree.tag_configure("loading", background=colors["table_bg"], foreground=colors["muted"])
    tree.tag_configure("unchecked", background=colors["table_bg"], foreground=colors["fg"])
    for tag, (background, foreground) in colors["rows"].items():
        tree.tag_configure(tag, background=background, foreground=foreground)


def row_tag(row) -> str:
    """Treeview tag for a LinenRow."""
    if row.loading:
        return "loading"
    if row.is_duplicate:
        return "duplicate"
    if row.is_invalid:
        return "invalid"
    if row.is_valid_customer:
        return "valid"
    return "unchecked"


class StatusIndicator(tk.Canvas):
    """Reader LED: off, connected, scanning or error."""

    def __init__(self, parent, size=16, **kwargs):
        super().__init__(parent, width=size, height=size,
                         highlightthickness=0, **kwargs)
        self.size = size
        self._state = "off"
        self.configure(bg=ThemeManager.get_colors()["bg"])
        self._draw()

    def _draw(self):
        self.delete("all")
        pad = 2
        self.create_oval(
            pad, pad,
            self.size - pad, self.size - pad,
            fill=LED_COLORS.get(self._state, LED_COLORS["off"]), outline=""
        )

    def set_state(self, state: str):
        if state == self._state:
            return
        self._state = state
        self._draw()

    def refresh_theme(self):
        self.configure(bg=ThemeManager.get_colors()["bg"])
