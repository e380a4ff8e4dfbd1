from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from hashsafe.config import Settings, settings
from hashsafe.engine.facade import HashEngine, RunHandle
from hashsafe.engine.types import Done, OutcomeKind
from hashsafe.utils.files import display_name, file_kind


class Phase(str, Enum):
    IDLE = "idle"
    READY = "ready"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class ViewState:
    """Everything the window needs to render one frame."""

    phase: Phase
    file_name: str | None = None
    file_kind: str | None = None
    fraction: float | None = None
    bytes_processed: int = 0
    digest: str | None = None
    error: str | None = None
    cancelling: bool = False

    @property
    def indeterminate(self) -> bool:
        return self.phase is Phase.RUNNING and self.fraction is None


@dataclass(frozen=True, slots=True)
class Palette:
    background: str
    foreground: str
    muted: str
    field: str


THEMES: dict[str, Palette] = {
    "dark": Palette(background="#1e1e1e", foreground="#dcdcdc", muted="#969696", field="#2d2d2d"),
    "light": Palette(background="#f0f0f0", foreground="#1e1e1e", muted="#646464", field="#ffffff"),
}
DEFAULT_THEME = "dark"


def theme_palette(name: str) -> Palette:
    try:
        return THEMES[name.lower()]
    except KeyError:
        msg = f"Unknown theme {name!r}; expected one of {', '.join(THEMES)}"
        raise ValueError(msg) from None


def apply_theme(widget, palette: Palette, keep_foreground: tuple = ()) -> None:
    """Recolour ``widget`` and all of its children.

    Options a widget does not support are skipped, so classic Tk and ttk
    widgets can be mixed in the same tree. Widgets listed in
    ``keep_foreground`` keep their own text colour.
    """

    options = widget.keys()
    updates: dict[str, str] = {}
    if "background" in options:
        updates["background"] = palette.field if "insertbackground" in options else palette.background
    if "readonlybackground" in options:
        updates["readonlybackground"] = palette.field
    if "foreground" in options and widget not in keep_foreground:
        updates["foreground"] = palette.foreground
    if "insertbackground" in options:
        updates["insertbackground"] = palette.foreground
    if "selectcolor" in options:
        updates["selectcolor"] = palette.field
    if "activebackground" in options:
        updates["activebackground"] = palette.field
    if updates:
        widget.configure(**updates)
    for child in widget.winfo_children():
        apply_theme(child, palette, keep_foreground)


class HashSafeController:
    """Coordinates the desktop UI with the hashing engine (no Tk dependency)."""

    def __init__(self, engine: HashEngine | None = None, config: Settings = settings) -> None:
        self.engine = engine or HashEngine(config=config)
        self.selected_file: Path | None = None
        self._handle: RunHandle | None = None
        self._cancel_requested = False
        self._digest: str | None = None
        self._error: str | None = None
        self._phase = Phase.IDLE

    @property
    def running(self) -> bool:
        return self._handle is not None

    def select_file(self, path: Path) -> ViewState:
        """Choose a new input. Any previous result is dropped.

        A run still in progress is cancelled and forgotten; its outcome is
        never shown.
        """

        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            self._cancel_requested = False
        self.selected_file = Path(path)
        self._clear_result()
        self._phase = Phase.READY
        return self.refresh()

    def start(self) -> RunHandle:
        if self.selected_file is None:
            msg = "No file selected"
            raise RuntimeError(msg)
        if self._handle is not None:
            msg = "A hash is already being calculated"
            raise RuntimeError(msg)
        self._clear_result()
        self._cancel_requested = False
        self._handle = self.engine.submit(self.selected_file)
        self._phase = Phase.RUNNING
        return self._handle

    def cancel(self) -> None:
        """Request cancellation and return immediately.

        The run keeps its handle until ``refresh`` observes the Cancelled
        outcome, so the window never blocks on a stalled read.
        """

        handle = self._handle
        if handle is None:
            return
        handle.cancel()
        self._cancel_requested = True

    def refresh(self) -> ViewState:
        """Pick up progress or the final outcome of the current run."""

        handle = self._handle
        fraction: float | None = None
        processed = 0
        if handle is not None:
            status = handle.poll()
            if isinstance(status, Done):
                self._apply(status)
            elif status.snapshot is not None:
                fraction = status.snapshot.fraction_complete
                processed = status.snapshot.bytes_processed
        return ViewState(
            phase=self._phase,
            file_name=display_name(self.selected_file) if self.selected_file else None,
            file_kind=file_kind(self.selected_file) if self.selected_file else None,
            fraction=fraction,
            bytes_processed=processed,
            digest=self._digest,
            error=self._error,
            cancelling=self._handle is not None and self._cancel_requested,
        )

    def clipboard_text(self) -> str | None:
        """The digest exactly as it should be placed on the clipboard."""

        return self._digest

    def close(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self.engine.shutdown(wait=False)

    def _apply(self, status: Done) -> None:
        outcome = status.outcome
        self._handle = None
        self._cancel_requested = False
        if outcome.kind is OutcomeKind.SUCCEEDED:
            self._digest = outcome.digest_hex
            self._phase = Phase.SUCCEEDED
        elif outcome.kind is OutcomeKind.CANCELLED:
            self._phase = Phase.CANCELLED
        else:
            self._error = outcome.error_message
            self._phase = Phase.FAILED

    def _clear_result(self) -> None:
        self._digest = None
        self._error = None


def run_app(controller: HashSafeController | None = None) -> None:  # pragma: no cover
    """Start the Tkinter interface (blocking)."""

    import tkinter as tk
    from tkinter import filedialog, ttk

    controller = controller or HashSafeController()

    root = tk.Tk()
    root.title("HashSafe")
    root.geometry("450x580")
    root.minsize(400, 500)

    frame = tk.Frame(root, padx=16, pady=16)
    frame.pack(fill=tk.BOTH, expand=True)

    tk.Label(frame, text="HashSafe", font=("Helvetica", 24, "bold")).pack(pady=(8, 0))
    tk.Label(frame, text="File Hash Calculator", font=("Helvetica", 12)).pack(pady=(0, 8))

    theme_var = tk.StringVar(value=DEFAULT_THEME)
    theme_row = tk.Frame(frame)
    theme_row.pack(pady=(0, 16))
    tk.Label(theme_row, text="Theme:").pack(side=tk.LEFT)

    file_var = tk.StringVar()
    status_var = tk.StringVar()
    digest_var = tk.StringVar()
    error_var = tk.StringVar()

    def _choose_file() -> None:
        path = filedialog.askopenfilename()
        if not path:
            return
        controller.select_file(Path(path))
        _render()

    def _calculate() -> None:
        controller.start()
        _render()

    def _cancel() -> None:
        controller.cancel()
        _render()

    def _apply_theme() -> None:
        palette = theme_palette(theme_var.get())
        apply_theme(root, palette, keep_foreground=(cancel_button, error_label, footer))

    def _copy() -> None:
        text = controller.clipboard_text()
        if text is None:
            return
        root.clipboard_clear()
        root.clipboard_append(text)

    select_button = tk.Button(frame, text="Select File", width=18, command=_choose_file)
    select_button.pack()

    tk.Label(frame, textvariable=file_var, font=("Helvetica", 11, "bold")).pack(pady=(8, 8))

    calculate_button = tk.Button(frame, text="Calculate Hash", width=16, command=_calculate)
    progress = ttk.Progressbar(frame, mode="determinate", maximum=1000, length=300)
    tk.Label(frame, textvariable=status_var).pack()
    cancel_button = tk.Button(frame, text="Cancel", fg="#c83c3c", command=_cancel)

    result_frame = tk.LabelFrame(frame, text="SHA-256 Hash", padx=8, pady=8)
    digest_entry = tk.Entry(
        result_frame,
        textvariable=digest_var,
        state="readonly",
        font=("Courier", 10),
        justify=tk.CENTER,
    )
    digest_entry.pack(fill=tk.X)
    copy_button = tk.Button(result_frame, text="Copy to Clipboard", command=_copy)
    copy_button.pack(pady=(8, 0))

    error_label = tk.Label(frame, textvariable=error_var, fg="#963c3c", wraplength=380)
    footer = tk.Label(frame, text="HashSafe", fg="#969696", font=("Helvetica", 9))
    footer.pack(side=tk.BOTTOM)
    for name in THEMES:
        tk.Radiobutton(
            theme_row, text=name.title(), value=name, variable=theme_var, command=_apply_theme
        ).pack(side=tk.LEFT)

    def _render() -> None:
        state = controller.refresh()
        file_var.set(f"[{state.file_kind}] {state.file_name}" if state.file_name else "")
        for widget in (calculate_button, progress, cancel_button, result_frame, error_label):
            widget.pack_forget()
        if state.phase is Phase.RUNNING:
            progress.pack(pady=(8, 0))
            cancel_button.pack(pady=(8, 0))
            cancel_button.configure(state=tk.DISABLED if state.cancelling else tk.NORMAL)
            if state.indeterminate:
                if str(progress["mode"]) != "indeterminate":
                    progress.configure(mode="indeterminate")
                    progress.start(20)
                status_var.set(
                    "Cancelling..." if state.cancelling else f"Calculating hash... {state.bytes_processed} bytes"
                )
            else:
                progress.stop()
                progress.configure(mode="determinate", value=(state.fraction or 0.0) * 1000)
                status_var.set("Cancelling..." if state.cancelling else "Calculating hash...")
        else:
            progress.stop()
            status_var.set("Cancelled" if state.phase is Phase.CANCELLED else "")
            if state.file_name:
                calculate_button.pack(pady=(8, 0))
        digest_var.set(state.digest or "")
        error_var.set(f"Error: {state.error}" if state.error else "")
        if state.digest:
            result_frame.pack(fill=tk.X, pady=(16, 0))
        if state.error:
            error_label.pack(pady=(16, 0))

    def _tick() -> None:
        if controller.running:
            _render()
        root.after(controller.engine.config.poll_interval_ms, _tick)

    def _on_close() -> None:
        controller.close()
        root.destroy()

    root.protocol("WM_DELETE_WINDOW", _on_close)
    _apply_theme()
    _render()
    root.after(controller.engine.config.poll_interval_ms, _tick)
    root.mainloop()


__all__ = [
    "DEFAULT_THEME",
    "THEMES",
    "HashSafeController",
    "Palette",
    "Phase",
    "ViewState",
    "apply_theme",
    "run_app",
    "theme_palette",
]
