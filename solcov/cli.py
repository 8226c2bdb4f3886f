"""
Solcov CLI - Command-line interface for smart-contract coverage.

Provides commands for generating coverage reports from compiler build-info
files and recorded test execution results.
"""

import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from solcov.analysis.artifacts import CompileOutput, load_build_info
from solcov.config import DEFAULT_CONFIG_FILE, CoverageConfigLoader
from solcov.errors import SolcovError
from solcov.pipeline import CoveragePipeline
from solcov.reporting import CoverageReportKind
from solcov.runtime.runner import ReplayRunner

app = typer.Typer(
    name="solcov",
    help="Source-level coverage for smart-contract test suites",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Display version information."""
    if value:
        from solcov import __version__

        console.print(f"[bold blue]Solcov[/bold blue] v{__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=verbose)],
        force=True,
    )


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Solcov - Source-level coverage for smart-contract test suites."""
    pass


@app.command()
def coverage(
    build_files: list[str] = typer.Argument(..., help="solc build-info JSON file(s)"),
    results: str = typer.Option(..., "--results", help="Recorded test results (JSON or YAML)"),
    report: str = typer.Option(
        None, "--report", "-r", help="The report type to use for coverage: summary, lcov, debug"
    ),
    root: str = typer.Option(".", "--root", help="Project root"),
    config_file: str = typer.Option(None, "--config", "-c", help="Path to YAML config file"),
    solc_version: str = typer.Option(
        None, "--solc-version", help="Compiler version for bare solc output"
    ),
    lcov_file: str = typer.Option(None, "--lcov-file", help="LCOV file name under the root"),
    exclude: list[str] = typer.Option(
        None, "--exclude", help="Glob of source paths to leave out (repeatable)"
    ),
    match_test: str = typer.Option(None, "--match-test", help="Only run tests matching regex"),
    no_match_test: str = typer.Option(None, "--no-match-test", help="Skip tests matching regex"),
    match_contract: str = typer.Option(
        None, "--match-contract", help="Only run contracts matching regex"
    ),
    no_match_contract: str = typer.Option(
        None, "--no-match-contract", help="Skip contracts matching regex"
    ),
    match_path: str = typer.Option(None, "--match-path", help="Only run files matching glob"),
    no_match_path: str = typer.Option(None, "--no-match-path", help="Skip files matching glob"),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Verbose output"),
) -> None:
    """
    Generate coverage reports for your tests.

    Reports:
    - summary: per-file table of lines, statements and branches hit
    - lcov: lcov.info tracefile at the project root
    - debug: every coverage item with its byte range and hit count
    """
    configure_logging(verbose)
    project_root = Path(root).resolve()

    if report is not None and report not in {kind.value for kind in CoverageReportKind}:
        console.print(f"[red]Error:[/red] Unknown report type: {escape(report)}")
        raise typer.Exit(1)

    try:
        config = CoverageConfigLoader.load(project_root, config_file)
        config = CoverageConfigLoader.merge_cli(
            config,
            root=project_root,
            report=report,
            lcov_file=lcov_file,
            exclude_paths=exclude or None,
            match_test=match_test,
            no_match_test=no_match_test,
            match_contract=match_contract,
            no_match_contract=no_match_contract,
            match_path=match_path,
            no_match_path=no_match_path,
        )
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid configuration:\n{escape(str(e))}")
        raise typer.Exit(1) from e

    console.print(
        Panel(
            f"[bold]Coverage:[/bold] {config.root}\n"
            f"[dim]Report: {config.report.value} | Build files: {len(build_files)}[/dim]",
            title="📊 Solcov Coverage",
            border_style="magenta",
        )
    )

    try:
        output = CompileOutput()
        for build_file in build_files:
            output = output.merge(
                load_build_info(build_file, root=config.root, solc_version=solc_version)
            )

        console.print("Analysing contracts...")
        pipeline = CoveragePipeline(config)
        prepared = pipeline.prepare(output)
        console.print(
            f"[dim]{prepared.source_count} source file(s), "
            f"{len(prepared.source_maps)} artifact(s) with source maps[/dim]"
        )

        console.print("Running tests...")
        runner = ReplayRunner.from_file(results)
        coverage_map = pipeline.collect(prepared, runner)
        console.print(
            f"[dim]{pipeline.stats.tests} test(s) in {pipeline.stats.suites} suite(s), "
            f"{pipeline.stats.tests_with_coverage} with coverage data[/dim]"
        )

        pipeline.report(coverage_map, console)
    except SolcovError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    if config.report == CoverageReportKind.LCOV:
        console.print(f"[green]✓[/green] LCOV report written to {escape(str(config.lcov_path))}")


@app.command()
def init(
    path: str = typer.Argument(".", help="Project root to write the config into"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config"),
) -> None:
    """
    Write a sample solcov.yaml configuration.
    """
    target = Path(path) / DEFAULT_CONFIG_FILE

    if target.exists() and not force:
        console.print(f"[yellow]⚠[/yellow] {escape(str(target))} already exists (use --force to overwrite)")
        raise typer.Exit(1)

    target.write_text(CoverageConfigLoader.generate_sample_config())
    console.print(f"[green]✓[/green] Configuration written to {escape(str(target))}")


if __name__ == "__main__":
    app()
