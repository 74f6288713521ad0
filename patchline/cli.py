"""CLI entry point for patchline."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.syntax import Syntax
from rich.table import Table

from patchline import patch_file
from patchline.config import PatchlineConfig, PatchSpec, load_config
from patchline.config.loader import DEFAULT_CONFIG_TEMPLATE
from patchline.digester import digest_files
from patchline.errors import PatchError
from patchline.log_setup import configure_logging
from patchline.validation import ValidationKind, ValidationOption, ValidationResult

app = typer.Typer(
    name="patchline",
    help="Offline, file-based patches: create, apply, revert.",
)

config_app = typer.Typer(help="Manage patchline configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: PatchlineConfig | None = None


def _get_config() -> PatchlineConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to patchline.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    configure_logging(_config.log_level, _config.log_format)


def _display_findings(findings: list[ValidationResult]) -> None:
    table = Table(title=f"Validation ({len(findings)})")
    table.add_column("Kind")
    table.add_column("Action", style="cyan")
    table.add_column("Path")
    table.add_column("Message")
    table.add_column("Options", style="dim")
    for f in findings:
        color = "red" if f.kind is ValidationKind.ERROR else "yellow"
        table.add_row(
            f"[{color}]{f.kind.value}[/{color}]",
            f.action,
            f.path,
            f.message,
            ", ".join(o.value for o in f.options) or "-",
        )
    rprint(table)


def _resolve(findings: list[ValidationResult]) -> dict[str, ValidationOption] | None:
    """Pick the first offered option for every finding; None if one has none."""
    options: dict[str, ValidationOption] = {}
    for f in findings:
        if not f.options:
            return None
        options[f.path] = f.options[0]
    return options


@app.command()
def create(
    old: Annotated[Path, typer.Argument(help="Directory with the installed build")],
    new: Annotated[Path, typer.Argument(help="Directory with the target build")],
    patch: Annotated[Path, typer.Argument(help="Patch file to write")],
    rename_root: Annotated[
        bool | None,
        typer.Option("--rename-root/--no-rename-root", help="Rename the install dir on apply"),
    ] = None,
    ignore: Annotated[
        list[str] | None, typer.Option("--ignore", help="Relative path to leave out")
    ] = None,
) -> None:
    """Build a patch that turns OLD into NEW."""
    cfg = _get_config()
    try:
        spec = PatchSpec(
            old_folder=old,
            new_folder=new,
            rename_root_directory=(
                rename_root if rename_root is not None else cfg.patch.rename_root_directory
            ),
            ignored_files=[*cfg.patch.ignored_files, *(ignore or [])],
        )
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    for folder in (spec.old_folder, spec.new_folder):
        if not folder.is_dir():
            rprint(f"[red]Error:[/red] not a directory: {folder}")
            raise typer.Exit(1)

    result = patch_file.create(spec, patch)
    rprint(f"[green]Created[/green] {patch} ({len(result.actions)} actions)")


@app.command()
def apply(
    patch: Annotated[Path, typer.Argument(help="Patch file to apply")],
    install_dir: Annotated[Path, typer.Argument(help="Installation directory to patch")],
    backup_dir: Annotated[
        Path | None, typer.Option("--backup-dir", help="Where to keep backups")
    ] = None,
    resolve: Annotated[
        bool, typer.Option("--resolve", help="Resolve conflicts with the first offered option")
    ] = False,
) -> None:
    """Validate PATCH against INSTALL_DIR, then apply it."""
    cfg = _get_config()
    backups = backup_dir or Path(cfg.apply.backup_dir)

    try:
        preparation = patch_file.prepare_and_validate(patch, install_dir)
    except (PatchError, OSError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    options: dict[str, ValidationOption] = {}
    if preparation.validation_results:
        _display_findings(preparation.validation_results)
        resolved = _resolve(preparation.validation_results) if resolve else None
        if resolved is None:
            rprint("[red]Patch cannot be applied as-is.[/red] Use --resolve to override.")
            raise typer.Exit(1)
        options = resolved

    result = patch_file.apply(preparation, options, backups)
    if result.applied:
        rprint(f"[green]Applied[/green] {len(result.applied_actions)} action(s) to {install_dir}")
        return

    rprint(f"[red]Apply failed:[/red] {result.error}")
    if cfg.apply.revert_on_failure:
        patch_file.revert(preparation, result.applied_actions, backups)
        rprint("[yellow]Reverted[/yellow] partially applied actions.")
    raise typer.Exit(1)


@app.command()
def digest(
    directory: Annotated[Path, typer.Argument(help="Directory to fingerprint")],
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON")] = False,
) -> None:
    """Print the fingerprint map of DIRECTORY."""
    cfg = _get_config()
    files = digest_files(directory, cfg.patch.ignored_files)
    if as_json:
        typer.echo(json.dumps(files, indent=2))
        return
    table = Table(title=f"{directory} ({len(files)} files)")
    table.add_column("Path", style="cyan")
    table.add_column("Fingerprint", justify="right")
    for path, value in files.items():
        table.add_row(path, f"{value:016x}")
    rprint(table)


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default patchline.yaml in current directory."""
    target = Path("patchline.yaml")
    if target.exists() and not force:
        rprint("[yellow]patchline.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
