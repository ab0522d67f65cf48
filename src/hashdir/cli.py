"""Command line interface for the hashdir project."""

from __future__ import annotations

import difflib
import logging
from pathlib import Path
from typing import Any, NoReturn

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from hashdir.checker import CheckError, DuplicateChecker, scanner_from_config
from hashdir.config import ConfigError, ConfigManager, HashdirConfig, resolve_with_precedence
from hashdir.index import DirectoryIndex, IndexBuildError, variant_matcher

console = Console()
LOGGER = logging.getLogger(__name__)


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> NoReturn:
    """Emit a standardized error and terminate the command.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """
    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=_printable(payload))
        raise SystemExit(1)

    raise click.ClickException(message) from original


def _display(value: Path | str) -> str:
    """Return ``value`` as text the console can encode.

    Names that are not valid UTF-8 arrive as surrogate escapes; those bytes are
    shown as replacement characters.
    """
    return str(value).encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def _printable(data: Any) -> Any:
    """Apply :func:`_display` to every string in a JSON payload."""
    if isinstance(data, str):
        return _display(data)
    if isinstance(data, dict):
        return {key: _printable(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_printable(item) for item in data]
    return data


def _configure_logging(level: str) -> None:
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)


def _load_config(json_output: bool) -> HashdirConfig:
    """Load the effective configuration and configure logging from it."""
    try:
        config = ConfigManager().load()
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    _configure_logging(config.logging.level)
    return config


def _build(config: HashdirConfig, root: Path, *, json_output: bool) -> DirectoryIndex:
    try:
        return scanner_from_config(config).build(root)
    except IndexBuildError as exc:
        LOGGER.debug("Index build for %s failed: %s", root, exc)
        _handle_cli_error(
            exc.public_message,
            code="index_build_failed",
            json_output=json_output,
            original=exc,
        )


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024 or unit == "GiB":
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands."""
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _quota_state(index: DirectoryIndex, max_size: int | None) -> bool | None:
    if max_size is None:
        return None
    return index.is_over_limit(max_size)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="hashdir")
def cli() -> None:
    """hashdir indexes stored files by content to find duplicates and track quotas."""


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=Path))
@click.option("--json", "json_output", is_flag=True, help="Emit the index as JSON.")
@click.option("--quiet", is_flag=True, help="Only print the summary line.")
def scan(path: Path, json_output: bool, quiet: bool) -> None:
    """Index every file under PATH and report its size against the quota."""
    config = _load_config(json_output)
    json_output = json_output or config.cli.json_default
    quiet = quiet or config.cli.quiet_default

    index = _build(config, path, json_output=json_output)
    max_size = config.quota.max_size
    over_quota = _quota_state(index, max_size)

    if json_output:
        console.print_json(
            data=_printable(
                {
                    "root": str(index.root),
                    "files": [record.model_dump(mode="json") for record in index.files],
                    "total_size": index.total_size,
                    "max_size": max_size,
                    "over_quota": over_quota,
                }
            )
        )
        return

    if not quiet and index.files:
        table = Table(title=f"Files under {_display(index.root)}")
        table.add_column("Path", overflow="fold")
        table.add_column("Size", justify="right")
        table.add_column("SHA-256", overflow="fold")
        for record in index.files:
            table.add_row(
                _display(record.path), _format_size(record.size_bytes), record.content_hash
            )
        console.print(table)

    console.print(
        _format_summary_line(
            "Scan",
            _display(index.root),
            {
                "files": len(index),
                "total_size": index.total_size,
                "over_quota": "n/a" if over_quota is None else str(over_quota).lower(),
            },
        )
    )


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=Path))
@click.argument("content_hash", metavar="HASH")
@click.option("--json", "json_output", is_flag=True, help="Emit the match as JSON.")
def lookup(path: Path, content_hash: str, json_output: bool) -> None:
    """Find the canonical stored copy of HASH under PATH."""
    config = _load_config(json_output)
    json_output = json_output or config.cli.json_default

    index = _build(config, path, json_output=json_output)
    record = index.get_file(content_hash, exclude=variant_matcher(config.index.variant_pattern))

    if json_output:
        console.print_json(
            data=_printable(
                {
                    "content_hash": content_hash,
                    "match": record.model_dump(mode="json") if record is not None else None,
                }
            )
        )
        if record is None:
            raise SystemExit(1)
        return

    if record is None:
        raise click.ClickException(f"No stored file matches {content_hash}.")
    console.print(_display(record.path), soft_wrap=True)


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=Path))
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "json_output", is_flag=True, help="Emit the check result as JSON.")
def check(path: Path, file: Path, json_output: bool) -> None:
    """Check whether FILE duplicates content stored under PATH."""
    config = _load_config(json_output)
    json_output = json_output or config.cli.json_default

    checker = DuplicateChecker(config)
    try:
        result = checker.check(path, file)
    except CheckError as exc:
        _handle_cli_error(str(exc), code="unreadable_file", json_output=json_output, original=exc)
    except IndexBuildError as exc:
        LOGGER.debug("Index build for %s failed: %s", path, exc)
        _handle_cli_error(
            exc.public_message,
            code="index_build_failed",
            json_output=json_output,
            original=exc,
        )

    if json_output:
        console.print_json(data=_printable(result.model_dump(mode="json")))
        return

    if result.duplicate_of is not None:
        duplicate = _display(result.duplicate_of)
        console.print(f"[yellow]Duplicate of {duplicate}[/yellow]", soft_wrap=True)
    else:
        stored_name = _display(result.stored_name or "")
        console.print(f"[green]New content; store as {stored_name}[/green]", soft_wrap=True)
    if result.over_quota:
        console.print(
            f"[red]Storage quota exceeded: {_format_size(result.total_size)} used of "
            f"{_format_size(result.max_size or 0)}.[/red]",
            soft_wrap=True,
        )


@cli.group()
def config() -> None:
    """Manage hashdir configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    manager = ConfigManager()
    try:
        config = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(config.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="YAML literal to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY."""
    manager = ConfigManager()
    manager.ensure_exists()

    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'quota.max_size'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    before = manager.read_text().splitlines()
    try:
        manager.set_value(segments, parsed_value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    after = manager.read_text().splitlines()

    # The "Last updated" stamp always changes; ignore it when diffing.
    before = [line for line in before if not line.startswith("# Last updated:")]
    after = [line for line in after if not line.startswith("# Last updated:")]
    diff = list(
        difflib.unified_diff(
            before, after, fromfile="config.yaml (before)", tofile="config.yaml (after)", lineterm=""
        )
    )
    if not diff:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an editor and validate the result."""
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return
    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=HashdirConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
