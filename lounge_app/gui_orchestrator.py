from __future__ import annotations

import tkinter as tk
from datetime import date
from tkinter import messagebox, simpledialog, ttk

from lounge_app.config import RuntimeConfig
from lounge_app.device_placement import DragController
from lounge_app.errors import LoungeError
from lounge_app.models import Device
from lounge_app.occupancy import summarize_occupancy
from lounge_app.session_engine import SessionEngine


DRAG_THRESHOLD = 4


class GUIOrchestrator:
    """Operator console: device room canvas, queue, today's log and toolbar commands."""

    def __init__(self, engine: SessionEngine, drag: DragController, config: RuntimeConfig) -> None:
        self.engine = engine
        self.drag = drag
        self.config = config
        self._assigning_identity: str | None = None
        self._press_point: tuple[float, float] | None = None
        self._log_day = date.today()

        self.root = tk.Tk()
        self.root.title("Lounge Management System")
        self.root.geometry("1080x720")
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

        self.notice_var = tk.StringVar(value="")
        self.status_var = tk.StringVar(value="")

        self._build_layout()
        self._refresh_views()
        self.root.after(self.config.refresh_poll_interval_ms, self._poll_refresh_signal)
        self.root.after(self.config.day_rollover_check_ms, self._check_day_rollover)

    def _build_layout(self) -> None:
        toolbar = ttk.Frame(self.root)
        toolbar.pack(fill="x", padx=10, pady=8)
        ttk.Button(toolbar, text="Check In", command=lambda: self._prompt_check_in(None)).pack(side="left")
        ttk.Button(toolbar, text="Add to Queue", command=lambda: self._prompt_check_in(0)).pack(side="left", padx=6)
        ttk.Button(toolbar, text="Check Out", command=self._prompt_check_out).pack(side="left", padx=6)
        ttk.Button(toolbar, text="Switch Station", command=self._prompt_switch).pack(side="left", padx=6)
        ttk.Label(toolbar, textvariable=self.notice_var, foreground="blue").pack(side="left", padx=15)

        notebook = ttk.Notebook(self.root)
        notebook.pack(fill="both", expand=True, padx=10, pady=5)
        device_tab = ttk.Frame(notebook)
        log_tab = ttk.Frame(notebook)
        notebook.add(device_tab, text="Device Status")
        notebook.add(log_tab, text="Log")

        self.canvas = tk.Canvas(device_tab, bg="white")
        self.canvas.pack(fill="both", expand=True)
        self.canvas.bind("<Configure>", self._on_canvas_resize)
        self.canvas.bind("<ButtonPress-1>", self._on_press)
        self.canvas.bind("<B1-Motion>", self._on_motion)
        self.canvas.bind("<ButtonRelease-1>", self._on_release)

        queue_frame = ttk.LabelFrame(device_tab, text="Queued Check-Ins")
        queue_frame.pack(fill="x", padx=4, pady=4)
        self.queue_list = tk.Listbox(queue_frame, height=4, activestyle="none")
        self.queue_list.pack(side="left", fill="x", expand=True, padx=4, pady=4)
        ttk.Button(queue_frame, text="Assign", command=self._start_assignment).pack(side="left", padx=4)
        ttk.Button(queue_frame, text="Remove", command=self._remove_selected_from_queue).pack(side="left", padx=4)

        self.log_tree = self._create_table_with_scrollbar(
            log_tab,
            ("user_name", "user_id", "device_id", "checked_in", "checked_out", "usage_time"),
        )

        ttk.Label(self.root, textvariable=self.status_var).pack(anchor="w", padx=10, pady=4)

    def _create_table_with_scrollbar(self, parent: ttk.Frame, columns: tuple[str, ...]) -> ttk.Treeview:
        container = ttk.Frame(parent)
        container.pack(fill="both", expand=True)

        tree = ttk.Treeview(container, columns=columns, show="headings")
        for col in columns:
            tree.heading(col, text=col.replace("_", " ").title())
            tree.column(col, width=130, minwidth=70, anchor="center")

        y_scrollbar = ttk.Scrollbar(container, orient="vertical", command=tree.yview)
        tree.configure(yscrollcommand=y_scrollbar.set)
        tree.grid(row=0, column=0, sticky="nsew")
        y_scrollbar.grid(row=0, column=1, sticky="ns")
        container.rowconfigure(0, weight=1)
        container.columnconfigure(0, weight=1)
        return tree

    # ---------- refresh ----------

    def _poll_refresh_signal(self) -> None:
        if self.engine.refresh_signal.drain():
            self._refresh_views()
        self.root.after(self.config.refresh_poll_interval_ms, self._poll_refresh_signal)

    def _check_day_rollover(self) -> None:
        today = date.today()
        if today != self._log_day:
            self._log_day = today
            self._refresh_log_table()
        self.root.after(self.config.day_rollover_check_ms, self._check_day_rollover)

    def _refresh_views(self) -> None:
        self._refresh_canvas()
        self._refresh_queue_list()
        self._refresh_log_table()
        summary = summarize_occupancy(self.engine.devices(), self.engine.sessions())
        self.status_var.set(summary.status_line())

    def _on_canvas_resize(self, event: tk.Event) -> None:
        self.drag.resize(event.width, event.height)
        self._refresh_canvas()

    def _refresh_canvas(self) -> None:
        self.canvas.delete("all")
        half = self.drag.geometry.icon_size / 2
        for device in self.engine.devices():
            x, y = self.drag.position_for(device.device_id)
            if device.status == "free":
                fill = "#cde8c8" if not device.is_console else "#c8d8e8"
            else:
                fill = "#e8a8a0" if not device.is_console else "#a0b0e8"
            self.canvas.create_rectangle(x - half, y - half, x + half, y + half, fill=fill, outline="#666", width=2)
            self.canvas.create_text(x, y, text=str(device.device_id), font=("Arial", 12, "bold"))
            names = ", ".join(_first_last(s.name) for s in self.engine.sessions_on_device(device.device_id))
            if names:
                self.canvas.create_text(x, y + half + 10, text=names, font=("Arial", 9))

    def _refresh_queue_list(self) -> None:
        self.queue_list.delete(0, tk.END)
        for session in self.engine.queued_sessions():
            self.queue_list.insert(tk.END, f"{session.name} ({session.identity})")

    def _refresh_log_table(self) -> None:
        for item in self.log_tree.get_children():
            self.log_tree.delete(item)
        for entry in self.engine.today_log():
            self.log_tree.insert(
                "",
                "end",
                values=(
                    entry.name,
                    entry.identity,
                    entry.device_id,
                    entry.checked_in_at.strftime("%H:%M:%S (%b %d)"),
                    entry.checked_out_at.strftime("%H:%M:%S (%b %d)") if entry.checked_out_at else "-",
                    entry.usage_time or "",
                ),
            )

    # ---------- canvas interaction ----------

    def _on_press(self, event: tk.Event) -> None:
        self._press_point = (event.x, event.y)

    def _on_motion(self, event: tk.Event) -> None:
        if self._press_point is None:
            return
        if not self.drag.is_dragging:
            dx = event.x - self._press_point[0]
            dy = event.y - self._press_point[1]
            if dx * dx + dy * dy < DRAG_THRESHOLD * DRAG_THRESHOLD:
                return
            if self.drag.begin_drag(self._press_point) is None:
                self._press_point = None
                return
        self.drag.update_drag((event.x, event.y))
        self._refresh_canvas()

    def _on_release(self, event: tk.Event) -> None:
        press_point, self._press_point = self._press_point, None
        if self.drag.is_dragging:
            self.drag.end_drag()
            self._refresh_canvas()
            return
        if press_point is None:
            return
        device_id = self.drag.device_at_point(press_point)
        if device_id is not None:
            self._on_device_tapped(device_id)

    def _on_device_tapped(self, device_id: int) -> None:
        if self._assigning_identity is not None:
            identity, self._assigning_identity = self._assigning_identity, None
            self.notice_var.set("")
            self._run(lambda: self.engine.assign_queued_session(identity, device_id))
            return

        device = self.engine.get_device(device_id)
        if device is None:
            return
        if device.status == "free" or (device.is_console and self._confirm_console_check_in(device)):
            self._prompt_check_in(device_id)
            return
        self._prompt_device_check_out(device)

    def _confirm_console_check_in(self, device: Device) -> bool:
        return messagebox.askyesno(
            "Console",
            f"Console {device.device_id} is in use. Check in another player? (No = check someone out)",
            parent=self.root,
        )

    # ---------- commands ----------

    def _run(self, action) -> bool:
        try:
            action()
        except LoungeError as exc:
            messagebox.showerror("Lounge", str(exc), parent=self.root)
            return False
        self._refresh_views()
        return True

    def _prompt_check_in(self, device_id: int | None) -> None:
        query = simpledialog.askstring("Check In", "Member name or ID (blank for walk-in):", parent=self.root)
        if query is None:
            return
        matches = self.engine.member_directory.search(query)
        name, identity = (matches[0].name, matches[0].identity) if len(matches) == 1 else (query.strip(), "")
        name = simpledialog.askstring("Check In", "Full name:", initialvalue=name, parent=self.root)
        if not name:
            return
        suggested = identity or f"LOUNGE-{self.engine.member_directory.next_member_id()}"
        identity = simpledialog.askstring("Check In", "User ID:", initialvalue=suggested, parent=self.root)
        if not identity:
            return
        if device_id is None:
            device_id = simpledialog.askinteger("Check In", "Device ID (0 = queue):", minvalue=0, parent=self.root)
            if device_id is None:
                return
        self._run(lambda: self.engine.check_in(name, identity, device_id))

    def _prompt_check_out(self) -> None:
        identity = simpledialog.askstring("Check Out", "User ID:", parent=self.root)
        if identity:
            self._run(lambda: self.engine.check_out(identity.strip()))

    def _prompt_device_check_out(self, device: Device) -> None:
        sessions = self.engine.sessions_on_device(device.device_id)
        if not sessions:
            return
        if len(sessions) == 1:
            session = sessions[0]
        else:
            listing = "\n".join(f"{index}. {s.name} ({s.identity})" for index, s in enumerate(sessions, start=1))
            choice = simpledialog.askinteger(
                "Check Out",
                f"Who is leaving console {device.device_id}?\n{listing}",
                minvalue=1,
                maxvalue=len(sessions),
                parent=self.root,
            )
            if choice is None:
                return
            session = sessions[choice - 1]
        if messagebox.askyesno(
            "Confirm Checkout",
            f"Checkout {session.name} from device {device.device_id}?",
            parent=self.root,
        ):
            self._run(lambda: self.engine.check_out(session.identity))

    def _prompt_switch(self) -> None:
        identity = simpledialog.askstring("Switch Station", "User ID:", parent=self.root)
        if not identity:
            return
        new_device_id = simpledialog.askinteger("Switch Station", "New device ID:", minvalue=1, parent=self.root)
        if new_device_id is None:
            return
        self._run(lambda: self.engine.switch_station(identity.strip(), new_device_id))

    def _selected_queued_identity(self) -> str | None:
        selection = self.queue_list.curselection()
        queued = self.engine.queued_sessions()
        if not selection or selection[0] >= len(queued):
            return None
        return queued[selection[0]].identity

    def _start_assignment(self) -> None:
        identity = self._selected_queued_identity()
        if identity is None:
            return
        session = self.engine.get_session(identity)
        self._assigning_identity = identity
        self.notice_var.set(f"Assignment mode: click a free device for {session.name if session else identity} ({identity}).")

    def _remove_selected_from_queue(self) -> None:
        identity = self._selected_queued_identity()
        if identity is not None:
            self._run(lambda: self.engine.remove_from_queue(identity))

    def _on_close(self) -> None:
        self.engine.close()
        self.root.destroy()

    def run(self) -> None:
        self.root.mainloop()


def _first_last(name: str) -> str:
    return " ".join(name.split()[:2])
