from __future__ import annotations

import importlib.util
import platform
import tarfile
from pathlib import Path
from typing import Any

import typer

from hashsafe import __version__
from hashsafe.config import Settings, settings
from hashsafe.engine.facade import HashEngine, RunHandle
from hashsafe.engine.progress import ProgressSnapshot
from hashsafe.engine.types import OutcomeKind, RunOutcome

EXIT_FAILURE = 1
EXIT_CANCELLED = 130

app = typer.Typer(
    help="HashSafe: calculate the SHA-256 hash of a file.",
    add_completion=False,
)


def _version_callback(
    ctx: typer.Context,
    param: Any,
    value: bool,
) -> bool:
    if value:
        typer.echo(__version__)
        raise typer.Exit()
    return value


@app.callback(invoke_without_command=True)
def _main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
    file: Path | None = typer.Option(
        None,
        "--file",
        "-f",
        help="Path to the file for which the hash will be calculated.",
    ),
    cli: bool = typer.Option(False, "--cli", "-c", help="Force command line mode."),
) -> None:
    """Without options the graphical interface is started."""

    if ctx.invoked_subcommand is not None:
        return
    if cli or file is not None:
        if file is None:
            typer.echo("In CLI mode, you must specify a file with --file", err=True)
            raise typer.Exit(code=EXIT_FAILURE)
        typer.echo(f"Calculating hash for: {file}", err=True)
        raise typer.Exit(code=_hash_paths([file], config=settings, show_progress=False, bare=True))
    _launch_gui()


@app.command("hash", help="Hash one or more files concurrently.")
def hash_files(
    files: list[Path] = typer.Argument(..., help="Files to hash."),
    progress: bool = typer.Option(
        False,
        "--progress/--no-progress",
        help="Show progress on standard error.",
    ),
    block_size: int | None = typer.Option(
        None,
        "--block-size",
        help="Read block size in bytes.",
    ),
) -> None:
    config = settings
    if block_size is not None:
        if block_size <= 0:
            raise typer.BadParameter("block size must be positive", param_hint="--block-size")
        config = settings.model_copy(update={"block_size": block_size})
    raise typer.Exit(code=_hash_paths(files, config=config, show_progress=progress, bare=False))


@app.command(help="Launch the Tkinter desktop interface.")
def gui() -> None:
    _launch_gui()


_PLATFORM_NAMES = {"darwin": "macos", "windows": "windows", "linux": "linux"}
_MACHINE_NAMES = {"amd64": "x86_64", "x64": "x86_64", "arm64": "aarch64"}


def release_name() -> str:
    """Archive stem for this platform, e.g. ``hashsafe-macos-aarch64``."""

    system = platform.system().lower()
    machine = platform.machine().lower()
    return (
        f"hashsafe-{_PLATFORM_NAMES.get(system, system)}"
        f"-{_MACHINE_NAMES.get(machine, machine)}"
    )


def package_release(output_dir: Path, binary: Path) -> Path:
    """Pack the built binary as ``<release_name>.tar.gz`` next to it."""

    if not binary.exists():
        msg = f"PyInstaller output not found: {binary}"
        raise FileNotFoundError(msg)
    archive_path = output_dir / f"{release_name()}.tar.gz"
    with tarfile.open(archive_path, "w:gz") as archive:
        archive.add(binary, arcname=binary.name)
    return archive_path


@app.command(help="Build the standalone hashsafe binary with PyInstaller.")
def build_exe(
    output_dir: Path = typer.Option(Path("dist"), "--output-dir", "-o", help="dist directory."),
    onefile: bool = typer.Option(
        True,
        "--onefile/--no-onefile",
        help="Package as a single binary.",
    ),
    windowed: bool = typer.Option(
        True,
        "--windowed/--console",
        help="Build the desktop app without a console window.",
    ),
    archive: bool = typer.Option(
        True,
        "--archive/--no-archive",
        help="Pack the binary as hashsafe-<os>-<arch>.tar.gz.",
    ),
    dry_run: bool = typer.Option(
        True,
        "--dry-run/--execute",
        help="Print the PyInstaller command without running it.",
        show_default=True,
    ),
) -> None:
    entry_point = Path(__file__).resolve().parent / "__main__.py"
    if not entry_point.exists():
        raise typer.BadParameter("Entrypoint __main__.py not found for PyInstaller.")

    build_dir = output_dir / "build"
    spec_dir = output_dir / "spec"
    build_dir.mkdir(parents=True, exist_ok=True)
    spec_dir.mkdir(parents=True, exist_ok=True)

    args = [
        "--name",
        "hashsafe",
        "--distpath",
        str(output_dir),
        "--workpath",
        str(build_dir),
        "--specpath",
        str(spec_dir),
        "--collect-submodules",
        "hashsafe",
        "--onefile" if onefile else "--onedir",
        "--windowed" if windowed else "--console",
        str(entry_point),
    ]
    binary_name = "hashsafe.exe" if onefile and platform.system() == "Windows" else "hashsafe"
    binary = output_dir / binary_name

    typer.echo("PyInstaller command: pyinstaller " + " ".join(args))
    if archive:
        typer.echo(f"Release archive: {output_dir / release_name()}.tar.gz")

    if dry_run:
        typer.echo("Dry-run: nothing was built.")
        return

    try:
        import PyInstaller.__main__ as pyinstaller_main
    except ModuleNotFoundError as exc:  # pragma: no cover - user-facing message
        typer.echo("PyInstaller is not installed (pip install 'hashsafe[build]').", err=True)
        raise typer.Exit(code=EXIT_FAILURE) from exc

    pyinstaller_main.run(args)
    if archive:
        try:
            archive_path = package_release(output_dir, binary)
        except FileNotFoundError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=EXIT_FAILURE) from exc
        typer.echo(f"Created {archive_path}")


def _gui_available() -> bool:
    return importlib.util.find_spec("tkinter") is not None


def _launch_gui() -> None:
    if not _gui_available():
        typer.echo("This installation has no GUI support (Tkinter is missing).", err=True)
        typer.echo("Use --file to specify a file in CLI mode.", err=True)
        raise typer.Exit(code=EXIT_FAILURE)
    from hashsafe.ui.desktop import run_app

    run_app()


def _hash_paths(paths: list[Path], *, config: Settings, show_progress: bool, bare: bool) -> int:
    with HashEngine(config=config) as engine:
        handles = [engine.submit(path) for path in paths]
        try:
            outcomes = [_await_outcome(handle, show_progress) for handle in handles]
        except KeyboardInterrupt:
            for handle in handles:
                engine.cancel(handle)
            outcomes = [handle.wait() for handle in handles]
        if engine.audit.write_error is not None:
            typer.echo(f"Warning: audit log not written: {engine.audit.write_error}", err=True)
    for handle, outcome in zip(handles, outcomes, strict=True):
        _report(handle.path, outcome, bare=bare)
    return exit_code_for(outcomes)


def _await_outcome(handle: RunHandle, show_progress: bool) -> RunOutcome:
    if not show_progress:
        return handle.wait()
    shown = False
    for event in handle.events():
        if isinstance(event, ProgressSnapshot):
            typer.echo("\r" + render_progress(handle.path, event), nl=False, err=True)
            shown = True
        else:
            if shown:
                typer.echo(err=True)
            return event
    msg = f"run {handle.run_id} event stream ended without an outcome"
    raise RuntimeError(msg)  # pragma: no cover


def render_progress(path: Path, snapshot: ProgressSnapshot) -> str:
    if snapshot.indeterminate:
        return f"{path.name}: {snapshot.bytes_processed} bytes"
    return (
        f"{path.name}: {snapshot.percent:3d}% "
        f"({snapshot.bytes_processed}/{snapshot.total_bytes} bytes)"
    )


def _report(path: Path, outcome: RunOutcome, *, bare: bool) -> None:
    if outcome.kind is OutcomeKind.SUCCEEDED:
        typer.echo(outcome.digest_hex if bare else f"{outcome.digest_hex}  {path}")
    elif outcome.kind is OutcomeKind.CANCELLED:
        typer.echo(f"Cancelled: {path}", err=True)
    else:
        typer.echo(f"Error calculating hash for {path}: {outcome.error_message}", err=True)


def exit_code_for(outcomes: list[RunOutcome]) -> int:
    """Failures win over cancellation; all successes exit with 0."""

    kinds = {outcome.kind for outcome in outcomes}
    if OutcomeKind.FAILED in kinds:
        return EXIT_FAILURE
    if OutcomeKind.CANCELLED in kinds:
        return EXIT_CANCELLED
    return 0


def main() -> None:  # pragma: no cover - delegated to Typer
    app()


__all__ = ["app", "exit_code_for", "main", "package_release", "release_name", "render_progress"]
