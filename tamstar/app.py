from __future__ import annotations

import logging
import sqlite3
import tkinter as tk
import webbrowser
from datetime import date, datetime, timedelta
from pathlib import Path
from tkinter import ttk
from tkinter.scrolledtext import ScrolledText
from typing import Callable

from PIL import ImageTk

from . import __version__
from .calendar_grid import (
    MAX_DAY_MARKERS,
    SUNDAY,
    WEEKDAY_NAMES,
    build_month_grid,
    change_month,
    day_marker_counts,
    first_weekday_from_setting,
    start_of_month,
    weekday_labels,
)
from .database import TamStarDatabase
from .icons import marker_strip
from .intervals import (
    annotate,
    average_interval_minutes,
    clamp_to_edit_window,
    edit_window,
    format_minutes,
    local_day,
    minutes_since,
    next_suggested_time,
    sorted_by_time,
)
from .models import Record
from .paths import data_directory, database_path, ensure_directories
from .report import day_summary_lines, format_clock
from .store import RecordStore

FIRST_WEEKDAY_SETTING_KEY = "first_weekday"
MIN_INTERVAL_HOURS = 0.5
MAX_INTERVAL_HOURS = 10.0
REFRESH_MS = 60_000

BG = "#fbe4ea"
CARD_BG = "#fff6f8"
BORDER = "#f0d2da"
ACCENT = "#eb5e82"
TEXT = "#4a3a40"
SUBTLE = "#7d6a71"

logger = logging.getLogger(__name__)


class IntervalDialog(tk.Toplevel):
    def __init__(self, master: tk.Misc, hours: float, on_save: Callable[[float], None]):
        super().__init__(master)
        self.title("Suggested interval")
        self.configure(bg=CARD_BG)
        self.resizable(False, False)
        self.transient(master)

        self._on_save = on_save
        self.hours_var = tk.DoubleVar(value=_clamp_hours(hours))
        self.caption_var = tk.StringVar()
        self.hours_var.trace_add("write", lambda *_: self._update_caption())
        self._update_caption()

        tk.Label(self, textvariable=self.caption_var, bg=CARD_BG, fg=TEXT, font=("Segoe UI", 11)).pack(padx=16, pady=(14, 6))
        tk.Scale(
            self,
            from_=MIN_INTERVAL_HOURS,
            to=MAX_INTERVAL_HOURS,
            resolution=0.1,
            orient=tk.HORIZONTAL,
            variable=self.hours_var,
            showvalue=False,
            length=280,
            bg=CARD_BG,
            highlightthickness=0,
        ).pack(padx=16)
        _pill_button(self, "Save and close", self._save).pack(pady=(8, 14))

    def _update_caption(self) -> None:
        try:
            hours = float(self.hours_var.get())
        except (tk.TclError, ValueError):
            return
        self.caption_var.set(f"Suggested interval: {hours:.1f} hours")

    def _save(self) -> None:
        self._on_save(_clamp_hours(self.hours_var.get()))
        self.destroy()


class EditRecordDialog(tk.Toplevel):
    def __init__(
        self,
        master: tk.Misc,
        record: Record,
        now: datetime,
        on_save: Callable[[str, datetime], None],
    ):
        super().__init__(master)
        self.title("Edit replacement")
        self.configure(bg=CARD_BG)
        self.resizable(False, False)
        self.transient(master)

        self._record = record
        self._now = now
        self._on_save = on_save
        start, end = edit_window(record, now)
        self.time_var = tk.StringVar(value=format_clock(record.timestamp))
        self.error_var = tk.StringVar()

        tk.Label(
            self,
            text=f"{local_day(record.timestamp):%A, %B %d}",
            bg=CARD_BG,
            fg=TEXT,
            font=("Segoe UI Semibold", 12),
        ).pack(padx=16, pady=(14, 2))
        tk.Label(
            self,
            text=f"Allowed: {format_clock(start)} - {format_clock(end)}",
            bg=CARD_BG,
            fg=SUBTLE,
            font=("Segoe UI", 9),
        ).pack(padx=16)
        ttk.Entry(self, textvariable=self.time_var, width=8, justify="center").pack(padx=16, pady=8)
        tk.Label(self, textvariable=self.error_var, bg=CARD_BG, fg=ACCENT, font=("Segoe UI", 9)).pack(padx=16)
        _pill_button(self, "Save", self._save).pack(pady=(4, 14))

    def _save(self) -> None:
        minutes = _parse_clock_minutes(self.time_var.get())
        if minutes is None:
            self.error_var.set("Use HH:MM")
            return
        day_start = datetime.combine(local_day(self._record.timestamp), datetime.min.time())
        candidate = day_start + timedelta(minutes=minutes)
        self._on_save(self._record.id, clamp_to_edit_window(candidate, self._record, self._now))
        self.destroy()


class DayDetailWindow(tk.Toplevel):
    def __init__(self, master: tk.Misc, store: RecordStore, day: date):
        super().__init__(master)
        self.title(f"{day:%b %d, %Y}")
        self.configure(bg=CARD_BG)
        self.minsize(280, 200)

        tk.Label(self, text=f"{day:%b %d, %Y}", bg=CARD_BG, fg=TEXT, font=("Georgia", 16)).pack(anchor="w", padx=16, pady=(14, 8))
        for line in day_summary_lines(store, day, store.now()):
            tk.Label(self, text=line, bg=CARD_BG, fg=TEXT, font=("Segoe UI", 10), anchor="w").pack(fill="x", padx=16)
        _pill_button(self, "Close", self.destroy).pack(anchor="e", padx=16, pady=14)


class TamStarApp(tk.Tk):
    def __init__(self, data_dir: Path | None = None):
        super().__init__()
        self.title("TamStar")
        self.geometry("760x640")
        self.minsize(620, 520)
        self.configure(bg=BG)

        self.data_dir = data_dir or data_directory()
        ensure_directories(self.data_dir)
        self.db = TamStarDatabase(database_path(self.data_dir))
        self.store = RecordStore(self.db)

        self._configure_style()
        self._marker_images: dict[int, ImageTk.PhotoImage] = {
            count: ImageTk.PhotoImage(marker_strip(count, size=9)) for count in range(1, MAX_DAY_MARKERS + 1)
        }

        self.selected_view = tk.StringVar(value="records")
        self.displayed_month = start_of_month(date.today())
        self.selected_date: date | None = None
        self.first_weekday = first_weekday_from_setting(self.db.get_value_int(FIRST_WEEKDAY_SETTING_KEY, SUNDAY))

        self.interval_var = tk.StringVar()
        self.last_var = tk.StringVar()
        self.next_var = tk.StringVar()
        self.average_var = tk.StringVar()
        self.month_var = tk.StringVar()
        self.first_weekday_var = tk.StringVar(value=WEEKDAY_NAMES[self.first_weekday])

        self._build_shell()
        self._refresh_all()
        self._append_log(f"TamStar started ({len(self.store.list_records())} records).")
        self.after(REFRESH_MS, self._tick)

    def _configure_style(self) -> None:
        style = ttk.Style(self)
        try:
            style.theme_use("clam")
        except tk.TclError:
            pass
        style.configure("TFrame", background=BG)
        style.configure("TLabel", background=BG, foreground=TEXT)
        style.configure("TLabelframe", background=BG, bordercolor=BORDER)
        style.configure("TLabelframe.Label", background=BG, foreground=SUBTLE)
        style.configure("Title.TLabel", font=("Georgia", 24), foreground=TEXT, background=BG)
        style.configure("Subtle.TLabel", font=("Segoe UI", 10), foreground=SUBTLE, background=BG)
        style.configure("Treeview", background=CARD_BG, fieldbackground=CARD_BG, foreground=TEXT, rowheight=26)
        style.map("Treeview", background=[("selected", "#f8c9d6")], foreground=[("selected", TEXT)])
        style.configure("Treeview.Heading", background="#f6dde4", foreground=SUBTLE)

    def _build_shell(self) -> None:
        self.columnconfigure(1, weight=1)
        self.rowconfigure(0, weight=1)

        sidebar = tk.Frame(self, bg=BG, width=110)
        sidebar.grid(row=0, column=0, sticky="ns", padx=(12, 0), pady=12)
        sidebar.grid_propagate(False)

        self.content = tk.Frame(self, bg=BG, highlightthickness=1, highlightbackground=BORDER)
        self.content.grid(row=0, column=1, sticky="nsew", padx=12, pady=12)
        self.content.columnconfigure(0, weight=1)
        self.content.rowconfigure(0, weight=1)

        self.sidebar_buttons: dict[str, tk.Button] = {}
        for key, label in [("records", "Records"), ("calendar", "Calendar"), ("settings", "Settings")]:
            btn = tk.Button(
                sidebar,
                text=label,
                bd=0,
                relief=tk.FLAT,
                bg=CARD_BG,
                fg=SUBTLE,
                activebackground=CARD_BG,
                activeforeground=ACCENT,
                padx=10,
                pady=8,
                font=("Segoe UI Semibold", 10),
                cursor="hand2",
                command=lambda v=key: self._show_view(v),
            )
            btn.pack(fill="x", pady=(0, 8))
            self.sidebar_buttons[key] = btn
        tk.Frame(sidebar, bg=BG).pack(fill="both", expand=True)
        tk.Label(sidebar, text=f"v{__version__}", bg=BG, fg=SUBTLE, font=("Segoe UI", 9)).pack()

        self.views: dict[str, tk.Frame] = {}
        for key in ["records", "calendar", "settings"]:
            frame = tk.Frame(self.content, bg=BG)
            frame.grid(row=0, column=0, sticky="nsew")
            frame.grid_remove()
            self.views[key] = frame

        self._build_records_view(self.views["records"])
        self._build_calendar_view(self.views["calendar"])
        self._build_settings_view(self.views["settings"])
        self._show_view("records")

    def _show_view(self, view_key: str) -> None:
        self.selected_view.set(view_key)
        for key, frame in self.views.items():
            if key == view_key:
                frame.grid()
                frame.tkraise()
            else:
                frame.grid_remove()
        for key, btn in self.sidebar_buttons.items():
            btn.configure(fg=ACCENT if key == view_key else SUBTLE)
        self._refresh_all()

    def _build_records_view(self, root: tk.Frame) -> None:
        root.columnconfigure(0, weight=1)
        root.rowconfigure(3, weight=1)

        header = tk.Frame(root, bg=BG)
        header.grid(row=0, column=0, sticky="ew", padx=16, pady=(14, 6))
        header.columnconfigure(1, weight=1)
        _pill_button(header, "+ Log replacement", self._add_record, bg=ACCENT, fg="white").grid(row=0, column=0, sticky="w")
        interval_label = tk.Label(
            header,
            textvariable=self.interval_var,
            bg=BG,
            fg=ACCENT,
            font=("Segoe UI Semibold", 10),
            cursor="hand2",
        )
        interval_label.grid(row=0, column=2, sticky="e")
        interval_label.bind("<Button-1>", lambda _event: self._open_interval_dialog())

        info = tk.Frame(root, bg=CARD_BG, highlightthickness=1, highlightbackground=BORDER)
        info.grid(row=1, column=0, sticky="ew", padx=16, pady=(0, 8))
        for row, var in enumerate([self.last_var, self.average_var, self.next_var]):
            tk.Label(info, textvariable=var, bg=CARD_BG, fg=TEXT, font=("Segoe UI", 10)).grid(
                row=row, column=0, sticky="w", padx=12, pady=(6 if row == 0 else 0, 6 if row == 2 else 0)
            )

        ttk.Label(root, text="Today", style="Subtle.TLabel").grid(row=2, column=0, sticky="w", padx=16)

        self.records_tree = ttk.Treeview(root, columns=("time", "delta"), show="headings", selectmode="browse")
        self.records_tree.heading("time", text="Time")
        self.records_tree.heading("delta", text="Since previous")
        self.records_tree.column("time", width=120, anchor="w")
        self.records_tree.column("delta", width=160, anchor="w")
        self.records_tree.grid(row=3, column=0, sticky="nsew", padx=16, pady=(2, 8))
        self.records_tree.bind("<Double-1>", lambda _event: self._edit_selected())

        actions = tk.Frame(root, bg=BG)
        actions.grid(row=4, column=0, sticky="e", padx=16, pady=(0, 14))
        _pill_button(actions, "Edit", self._edit_selected).pack(side="left", padx=(0, 6))
        _pill_button(actions, "Delete", self._delete_selected).pack(side="left")

    def _build_calendar_view(self, root: tk.Frame) -> None:
        root.columnconfigure(0, weight=1)
        root.rowconfigure(2, weight=1)

        header = tk.Frame(root, bg=BG)
        header.grid(row=0, column=0, sticky="ew", padx=16, pady=(14, 6))
        header.columnconfigure(1, weight=1)
        _pill_button(header, "<", lambda: self._change_month(-1)).grid(row=0, column=0)
        ttk.Label(header, textvariable=self.month_var, style="Title.TLabel").grid(row=0, column=1)
        _pill_button(header, ">", lambda: self._change_month(1)).grid(row=0, column=2)

        self.weekday_header = tk.Frame(root, bg=BG)
        self.weekday_header.grid(row=1, column=0, sticky="ew", padx=16)
        self.month_grid = tk.Frame(root, bg=BG)
        self.month_grid.grid(row=2, column=0, sticky="nsew", padx=16, pady=(4, 14))
        for column in range(7):
            self.weekday_header.columnconfigure(column, weight=1, uniform="weekday")
            self.month_grid.columnconfigure(column, weight=1, uniform="weekday")

    def _build_settings_view(self, root: tk.Frame) -> None:
        root.columnconfigure(0, weight=1)
        root.rowconfigure(2, weight=1)

        header = ttk.Frame(root, padding=14)
        header.grid(row=0, column=0, sticky="ew")
        ttk.Label(header, text="Settings", style="Title.TLabel").pack(anchor="w")
        ttk.Label(header, text=f"Data folder: {self.data_dir}", style="Subtle.TLabel").pack(anchor="w", pady=(2, 0))

        card = tk.Frame(root, bg=CARD_BG, highlightthickness=1, highlightbackground=BORDER)
        card.grid(row=1, column=0, sticky="ew", padx=14, pady=(0, 10))
        tk.Label(card, text="Week starts on", bg=CARD_BG, fg=TEXT, font=("Segoe UI", 10)).grid(row=0, column=0, sticky="w", padx=12, pady=(10, 4))
        weekday_box = ttk.Combobox(
            card,
            textvariable=self.first_weekday_var,
            values=WEEKDAY_NAMES,
            state="readonly",
            width=12,
        )
        weekday_box.grid(row=0, column=1, sticky="w", padx=6, pady=(10, 4))
        weekday_box.bind("<<ComboboxSelected>>", lambda _event: self._save_first_weekday())
        tk.Label(card, textvariable=self.interval_var, bg=CARD_BG, fg=TEXT, font=("Segoe UI", 10)).grid(row=1, column=0, sticky="w", padx=12, pady=4)
        _pill_button(card, "Adjust", self._open_interval_dialog).grid(row=1, column=1, sticky="w", padx=6, pady=4)
        _pill_button(card, "Open data folder", self._open_data_folder).grid(row=2, column=0, sticky="w", padx=12, pady=(4, 10))

        logs = ttk.LabelFrame(root, text="Activity Log", padding=12)
        logs.grid(row=2, column=0, sticky="nsew", padx=14, pady=(0, 12))
        logs.columnconfigure(0, weight=1)
        logs.rowconfigure(0, weight=1)
        self.log_output = ScrolledText(logs, wrap=tk.WORD, height=10, state="disabled")
        self.log_output.grid(row=0, column=0, sticky="nsew")

    def _refresh_all(self) -> None:
        self._refresh_records()
        self._refresh_calendar()

    def _refresh_records(self) -> None:
        now = self.store.now()
        settings = self.store.current_settings()
        today = sorted_by_time(self.store.list_records_for_day(now.date()))
        self.interval_var.set(f"Suggested interval: {settings.suggested_interval_hours:.1f}h")

        if today:
            last = today[-1]
            self.last_var.set(
                f"Last: {format_clock(last.timestamp)}, {format_minutes(minutes_since(last, now))} ago"
            )
        else:
            self.last_var.set("No replacements logged today.")
        average = average_interval_minutes(today)
        self.average_var.set(
            f"Average interval today: {format_minutes(average)}" if average is not None else "Average interval today: -"
        )
        suggested = next_suggested_time(today, settings.suggested_interval_hours, now)
        self.next_var.set(f"Next suggested: {suggested:%H:%M}" + ("" if suggested.date() == now.date() else f" ({suggested:%b %d})"))

        self.records_tree.delete(*self.records_tree.get_children())
        for row in reversed(annotate(today)):
            delta = f"+{row.minutes_since_previous} min" if row.minutes_since_previous is not None else ""
            self.records_tree.insert("", "end", iid=row.record.id, values=(format_clock(row.record.timestamp), delta))

    def _refresh_calendar(self) -> None:
        month = self.displayed_month
        self.month_var.set(f"{month:%B %Y}")

        for child in self.weekday_header.winfo_children():
            child.destroy()
        for column, label in enumerate(weekday_labels(self.first_weekday)):
            tk.Label(self.weekday_header, text=label, bg=BG, fg=SUBTLE, font=("Segoe UI", 10)).grid(row=0, column=column, sticky="ew")

        for child in self.month_grid.winfo_children():
            child.destroy()
        markers = day_marker_counts(self.store.records_for_month(month.year, month.month), month.year, month.month)
        today = date.today()
        for row, week in enumerate(build_month_grid(month.year, month.month, self.first_weekday)):
            self.month_grid.rowconfigure(row, weight=1, uniform="week")
            for column, cell in enumerate(week):
                if cell is None:
                    tk.Frame(self.month_grid, bg=BG).grid(row=row, column=column, sticky="nsew", padx=2, pady=2)
                    continue
                selected = cell == self.selected_date
                image = self._marker_images.get(markers.get(cell, 0))
                tk.Button(
                    self.month_grid,
                    text=f"{cell.day}",
                    image=image or "",
                    compound="bottom" if image is not None else "none",
                    bd=0,
                    relief=tk.FLAT,
                    bg="#f8c9d6" if selected else CARD_BG,
                    fg=ACCENT if cell == today else TEXT,
                    activebackground="#f8c9d6",
                    font=("Segoe UI Semibold" if cell == today else "Segoe UI", 10),
                    cursor="hand2",
                    command=lambda d=cell: self._open_day(d),
                ).grid(row=row, column=column, sticky="nsew", padx=2, pady=2)

    def _tick(self) -> None:
        self._refresh_records()
        self.after(REFRESH_MS, self._tick)

    def _add_record(self) -> None:
        try:
            record = self.store.add()
        except sqlite3.Error as exc:
            self._append_log(f"Could not save replacement: {exc}")
            return
        self._append_log(f"Logged replacement at {format_clock(record.timestamp)}.")
        self._refresh_all()

    def _selected_record(self) -> Record | None:
        selection = self.records_tree.selection()
        if not selection:
            return None
        return next((r for r in self.store.list_records() if r.id == selection[0]), None)

    def _delete_selected(self) -> None:
        record = self._selected_record()
        if record is None:
            return
        try:
            self.store.delete(record.id)
        except sqlite3.Error as exc:
            self._append_log(f"Could not delete replacement: {exc}")
            return
        self._append_log(f"Deleted replacement at {format_clock(record.timestamp)}.")
        self._refresh_all()

    def _edit_selected(self) -> None:
        record = self._selected_record()
        if record is None:
            return
        EditRecordDialog(self, record, self.store.now(), self._apply_edit)

    def _apply_edit(self, record_id: str, new_timestamp: datetime) -> None:
        try:
            self.store.update(record_id, new_timestamp)
        except sqlite3.Error as exc:
            self._append_log(f"Could not update replacement: {exc}")
            return
        self._append_log(f"Moved replacement to {format_clock(new_timestamp)}.")
        self._refresh_all()

    def _open_interval_dialog(self) -> None:
        IntervalDialog(self, self.store.current_settings().suggested_interval_hours, self._save_interval)

    def _save_interval(self, hours: float) -> None:
        try:
            self.store.set_suggested_interval(hours)
        except (sqlite3.Error, ValueError) as exc:
            self._append_log(f"Could not save suggested interval: {exc}")
            return
        self._append_log(f"Suggested interval set to {hours:.1f}h.")
        self._refresh_all()

    def _save_first_weekday(self) -> None:
        choice = self.first_weekday_var.get()
        self.first_weekday = WEEKDAY_NAMES.index(choice) if choice in WEEKDAY_NAMES else SUNDAY
        try:
            self.db.set_value(FIRST_WEEKDAY_SETTING_KEY, str(self.first_weekday))
        except sqlite3.Error as exc:
            self._append_log(f"Could not save week start: {exc}")
        self._refresh_calendar()

    def _change_month(self, delta: int) -> None:
        self.displayed_month = change_month(self.displayed_month, delta)
        self.selected_date = None
        self._refresh_calendar()

    def _open_day(self, day: date) -> None:
        self.selected_date = day
        self._refresh_calendar()
        DayDetailWindow(self, self.store, day)

    def _open_data_folder(self) -> None:
        try:
            webbrowser.open(self.data_dir.resolve().as_uri())
        except Exception as exc:  # noqa: BLE001
            self._append_log(f"Could not open data folder: {exc}")

    def _append_log(self, message: str) -> None:
        logger.info(message)
        self.log_output.configure(state="normal")
        self.log_output.insert("end", f"[{_now_stamp()}] {message}\n")
        self.log_output.see("end")
        self.log_output.configure(state="disabled")


def _pill_button(parent, text: str, cmd, bg: str = "#f9dbe3", fg: str = "#6b3d4c") -> tk.Button:
    return tk.Button(
        parent,
        text=text,
        command=cmd,
        bd=0,
        relief=tk.FLAT,
        bg=bg,
        fg=fg,
        activebackground="#fbe9ee",
        activeforeground=ACCENT,
        padx=12,
        pady=6,
        font=("Segoe UI Semibold", 10),
        cursor="hand2",
    )


def _clamp_hours(value: float) -> float:
    return round(max(MIN_INTERVAL_HOURS, min(MAX_INTERVAL_HOURS, float(value))), 1)


def _parse_clock_minutes(value: str | None) -> int | None:
    text = (value or "").strip()
    parts = text.split(":")
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        return None
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return hours * 60 + minutes


def _now_stamp() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")
