from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from dupguard.analysis.runner import analyze_repository
from dupguard.core.config import ScanConfig
from dupguard.core.errors import ReportWriteError
from dupguard.presets import DEFAULT_RULES, DEFAULT_RULES_PATH, load_rules, save_rules
from dupguard.reporting.exporters import export_json_report
from dupguard.reporting.text import display_path, render_report, write_report

app = typer.Typer(add_completion=False, help="Structural duplicate function finder")
console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.command("scan")
def scan_command(
    path: str = typer.Argument(..., help="Directory to scan"),
    output: str = typer.Option("duplicates.txt", "--output", "-o", help="Text report path (overwritten)"),
    min_occurrences: Optional[int] = typer.Option(
        None, "--min-occurrences", "-m", min=2, help="Smallest cluster size to report (default from rules, else 3)"
    ),
    rules_file: str = typer.Option(str(DEFAULT_RULES_PATH), "--rules", help="Rules/thresholds file"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-x", help="gitwildmatch patterns to skip"),
    gitignore: bool = typer.Option(False, "--gitignore", help="Also skip files matched by the root .gitignore"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Parse files on N threads"),
    json_out: Optional[str] = typer.Option(None, "--json", help="Also write a JSON report here"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Find functions that are structurally identical across a source tree."""
    _setup_logging(verbose)
    root = Path(path)
    if not root.is_dir():
        typer.secho(f"Path not found: {root}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    rules_path = Path(rules_file)
    rules = load_rules(rules_path)
    try:
        cfg = ScanConfig.from_rules(
            rules,
            min_occurrences=min_occurrences,
            workers=workers,
            respect_gitignore=gitignore or None,
        )
    except ValueError as e:
        typer.secho(f"Invalid rules in {rules_path}: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)
    if exclude:
        cfg.exclude = list(cfg.exclude) + list(exclude)

    console.rule("[bold]Scanning for duplicate functions")
    result = analyze_repository(root, cfg)

    try:
        out_path = write_report(Path(output), render_report(result.root, result.clusters))
        json_path = export_json_report(result, Path(json_out)) if json_out else None
    except ReportWriteError as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    table = Table(title="Duplicate Clusters")
    table.add_column("#", justify="right")
    table.add_column("Count", justify="right")
    table.add_column("First instance", overflow="fold")
    table.add_column("Lines", justify="right")
    for i, cluster in enumerate(result.clusters, start=1):
        first = cluster.representative
        table.add_row(
            str(i),
            str(cluster.size),
            f"{display_path(result.root, first)} ({first.name})",
            f"{first.span.start_line}-{first.span.end_line}",
        )
    console.print(table)

    if result.skipped:
        skipped = Table(title="Skipped Files")
        skipped.add_column("Path", overflow="fold")
        skipped.add_column("Reason", overflow="fold")
        for s in result.skipped:
            skipped.add_row(s.path.as_posix(), s.reason)
        console.print(skipped)

    console.print(
        f"Files: {result.files_scanned}  |  Functions: {result.functions_analyzed}  |  "
        f"Clusters: {len(result.clusters)}  |  Skipped: {len(result.skipped)}"
    )
    typer.secho(f"Wrote report: {out_path}", fg=typer.colors.GREEN)
    if json_path:
        typer.secho(f"Wrote JSON: {json_path}", fg=typer.colors.GREEN)


@app.command("init-rules")
def init_rules(
    rules_file: str = typer.Option(str(DEFAULT_RULES_PATH), "--rules", help="Where to write the rules file"),
    force: bool = typer.Option(False, help="Overwrite an existing file"),
) -> None:
    """Write the default rules file."""
    p = Path(rules_file)
    if p.exists() and not force:
        typer.secho(f"{p} already exists (use --force to overwrite)", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    out = save_rules(DEFAULT_RULES, p)
    console.print(f"[green]Wrote default rules to {out}[/]")


if __name__ == "__main__":
    app()
