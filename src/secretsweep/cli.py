"""Command-line interface for secretsweep."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from secretsweep.config import Settings, load_settings
from secretsweep.output import ConsoleSink, JsonLinesSink, format_json, format_rich
from secretsweep.scanner.base import RuleLoadError
from secretsweep.scanner.engine import ScanEngine, health
from secretsweep.scanner.patterns import RuleSet, load_rules
from secretsweep.scanner.progress import CollectingSink, ProgressSink
from secretsweep.scanner.sources import RepoFetcher, SourceType
from secretsweep.scanner.walker import FileWalker

app = typer.Typer(
    name="secretsweep",
    help="Scan source trees and repositories for hardcoded credentials.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

RULE_LOAD_EXIT_CODE = 4


def configure_logging(level: str) -> None:
    """Send secretsweep logs to stderr through rich at ``level``."""
    logger = logging.getLogger("secretsweep")
    logger.handlers.clear()
    handler = RichHandler(console=err_console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)


def _settings(**overrides: Any) -> Settings:
    try:
        return load_settings(**overrides)
    except ValidationError as e:
        err_console.print(f"[red]Error:[/red] Invalid configuration: {escape(str(e))}")
        raise typer.Exit(code=1) from e


def _ruleset(settings: Settings) -> RuleSet:
    try:
        return load_rules(settings.rules_file)
    except RuleLoadError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=RULE_LOAD_EXIT_CODE) from e


def _request_params(
    path: Path | None,
    repo_url: str | None,
    azure_org: str | None,
    azure_project: str | None,
    azure_repo: str | None,
    token: str | None,
) -> dict[str, Any]:
    if repo_url:
        return {"source": SourceType.REMOTE_GIT.value, "repo_url": repo_url, "token": token}
    if azure_org or azure_project or azure_repo:
        return {
            "source": SourceType.AZURE_DEVOPS.value,
            "organization": azure_org,
            "project": azure_project,
            "repository": azure_repo,
            "token": token,
        }
    return {"source": SourceType.LOCAL.value, "path": str(path or Path("."))}


@app.command()
def scan(
    path: Annotated[
        Path | None,
        typer.Argument(help="Directory to scan (default: current directory)"),
    ] = None,
    # Remote sources
    repo_url: Annotated[
        str | None,
        typer.Option("--repo-url", help="Clone and scan a git repository"),
    ] = None,
    azure_org: Annotated[
        str | None,
        typer.Option("--azure-org", help="Azure DevOps organization name or URL"),
    ] = None,
    azure_project: Annotated[
        str | None,
        typer.Option("--azure-project", help="Azure DevOps project"),
    ] = None,
    azure_repo: Annotated[
        str | None,
        typer.Option("--azure-repo", help="Azure DevOps repository name"),
    ] = None,
    token: Annotated[
        str | None,
        typer.Option(
            "--token",
            envvar="SECRETSWEEP_TOKEN",
            help="Access token for private repositories",
            show_default=False,
        ),
    ] = None,
    # Rule options
    rules: Annotated[
        Path | None,
        typer.Option("--rules", "-r", help="Custom rules JSON file"),
    ] = None,
    # Output options
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output the report as JSON"),
    ] = False,
    stream: Annotated[
        bool,
        typer.Option("--stream", help="Emit progress and result as JSON lines"),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Also write the JSON report to this file"),
    ] = None,
    ci: Annotated[
        bool,
        typer.Option("--ci", help="CI mode: exit non-zero when secrets are found"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log scan phases to stderr"),
    ] = False,
) -> None:
    """Scan a directory or remote repository for secrets.

    Exit codes in CI mode:
      0 - No findings above LOW
      1 - Critical findings
      2 - High findings
      3 - Medium findings
      4 - Rules failed to load

    Examples:
      secretsweep scan ./my-project
      secretsweep scan --repo-url https://github.com/org/repo --token $TOKEN
      secretsweep scan --azure-org contoso --azure-project web --azure-repo api
      secretsweep scan . --json --output report.json --ci
    """
    settings = _settings(rules_file=rules, log_level="INFO" if verbose else None)
    configure_logging(settings.log_level)
    ruleset = _ruleset(settings)

    engine = ScanEngine(
        ruleset,
        walker=FileWalker(max_file_size=settings.max_file_size),
        fetcher=RepoFetcher(depth=settings.clone_depth, timeout=settings.clone_timeout),
        progress_interval=settings.progress_interval,
    )

    sink: ProgressSink
    if stream:
        sink = JsonLinesSink(sys.stdout)
    elif json_output:
        sink = CollectingSink()
    else:
        sink = ConsoleSink(err_console)

    params = _request_params(path, repo_url, azure_org, azure_project, azure_repo, token)
    result = engine.run(params, sink)

    if result is None:
        if isinstance(sink, CollectingSink):
            err_console.print(f"[red]Error:[/red] {escape(str(sink.error_message))}")
        raise typer.Exit(code=1)

    if output is not None:
        output.write_text(format_json(result) + "\n", encoding="utf-8")

    if json_output and not stream:
        print(format_json(result))
    elif not stream:
        format_rich(result, console)
        if output is not None:
            console.print(f"[dim]Report written to {escape(str(output))}[/dim]")

    if ci and result.exit_code != 0:
        raise typer.Exit(code=result.exit_code)


@app.command("rules")
def list_rules(
    rules: Annotated[
        Path | None,
        typer.Option("--rules", "-r", help="Custom rules JSON file"),
    ] = None,
) -> None:
    """List the active detection rules."""
    settings = _settings(rules_file=rules)
    ruleset = _ruleset(settings)

    table = Table(title=f"{len(ruleset)} rules")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Severity")
    for rule in ruleset:
        table.add_row(rule.id, rule.name, rule.severity.value)
    console.print(table)


@app.command()
def status(
    rules: Annotated[
        Path | None,
        typer.Option("--rules", "-r", help="Custom rules JSON file"),
    ] = None,
) -> None:
    """Print a health check with the number of loaded rules."""
    settings = _settings(rules_file=rules)
    print(json.dumps(health(_ruleset(settings))))


@app.command()
def version() -> None:
    """Show secretsweep version."""
    from secretsweep import __version__

    console.print(f"secretsweep [bold green]{__version__}[/bold green]")


if __name__ == "__main__":
    app()
