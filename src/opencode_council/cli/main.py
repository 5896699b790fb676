"""
CLI entry point for opencode-council.

Commands:
    council run <request>          - Run a council deliberation
    council doctor                 - Check the OpenCode server
    council config                 - Manage configuration
    council transcripts list|show  - Browse saved transcripts
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from opencode_council.logging import configure_logging

app = typer.Typer(
    name="council",
    help="Speaker-led multi-model council - deliberate, vote and synthesize",
    no_args_is_help=True,
)
transcripts_app = typer.Typer(help="Browse saved council transcripts.", no_args_is_help=True)
app.add_typer(transcripts_app, name="transcripts")
console = Console()


def _resolve_config(
    project_dir: Path | None,
    members: str | None,
    speaker: str | None,
    max_turns: int | None,
    server_url: str | None,
) -> Any:
    """Load the configuration file and apply command-line overrides.

    When both --members and --speaker are given no configuration file is needed.
    """
    from opencode_council.config.loader import (
        load_council_config,
        parse_council_config,
        parse_models_string,
    )
    from opencode_council.errors import ConfigurationError

    try:
        data: dict[str, Any] = load_council_config(project_dir).model_dump()
    except ConfigurationError:
        if not (members and speaker):
            raise
        data = {}

    if members:
        data["members"] = parse_models_string(members)
    if speaker:
        data["speaker"] = speaker.strip()
    if max_turns is not None:
        data["discussion"] = {"max_turns": max_turns}
    if server_url:
        data["server_url"] = server_url
    return parse_council_config(data, source="command line")


async def _print_progress(text: str) -> None:
    console.print(Panel(Markdown(text), title="Council progress", border_style="blue"))


async def _run_council(config: Any, request: str, show_progress: bool) -> tuple[str, str]:
    from opencode_council import Council

    council = Council(config=config)
    try:
        deliberation_id = council.spawn(
            request, progress=_print_progress if show_progress else None
        )
        output = await council.result(deliberation_id)
    finally:
        await council.aclose()
    return deliberation_id, output


@app.command()
def run(
    request: str = typer.Argument(..., help="The request to put to the council"),
    members: str | None = typer.Option(
        None,
        "--members",
        "-m",
        help=(
            "Comma-separated member model identifiers (3-10). "
            "Example: 'anthropic/claude-sonnet-4,openai/gpt-4o,google/gemini-2.5-pro'"
        ),
    ),
    speaker: str | None = typer.Option(
        None, "--speaker", "-s", help="Speaker model identifier (provider/model)"
    ),
    max_turns: int | None = typer.Option(
        None, "--max-turns", min=1, max=12, help="Maximum discussion turns (default 6)"
    ),
    server_url: str | None = typer.Option(
        None, "--server-url", help="OpenCode server URL (default: config, env or localhost:4096)"
    ),
    project_dir: Path | None = typer.Option(
        None, "--project-dir", help="Project whose .opencode/council.json is used"
    ),
    save: bool = typer.Option(False, "--save", help="Save the transcript to disk"),
    show_progress: bool = typer.Option(
        False, "--progress", help="Print progress after every step"
    ),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Run a council deliberation on REQUEST."""
    configure_logging(verbose)

    try:
        config = _resolve_config(project_dir, members, speaker, max_turns, server_url)

        if not output_json:
            console.print(
                f"[bold blue]Council[/bold blue] Deliberating with {len(config.members)} "
                f"members, speaker {config.speaker}..."
            )

        deliberation_id, output = asyncio.run(
            _run_council(config, request, show_progress and not output_json)
        )

        saved_path: Path | None = None
        if save:
            from opencode_council.storage import TranscriptStore

            saved_path = TranscriptStore(project_dir).save(deliberation_id, output).file_path

        if output_json:
            print(
                json.dumps(
                    {
                        "deliberation_id": deliberation_id,
                        "output": output,
                        "transcript_path": str(saved_path) if saved_path else None,
                    },
                    indent=2,
                )
            )
        else:
            console.print(
                Panel(
                    Markdown(output),
                    title="[green]Council Result[/green]",
                    border_style="green",
                )
            )
            if saved_path:
                console.print(f"Transcript saved to {saved_path}")

    except Exception as e:
        if output_json:
            print(json.dumps({"error": str(e)}))
        else:
            console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


@app.command()
def doctor(
    server_url: str | None = typer.Option(None, "--server-url", help="OpenCode server URL"),
) -> None:
    """Check that the OpenCode server is reachable."""
    from opencode_council.transports.opencode import OpenCodeTransport

    console.print("[bold blue]Council Doctor[/bold blue] Checking server...\n")

    async def _check() -> Any:
        transport = OpenCodeTransport(base_url=server_url)
        try:
            return transport.base_url, await transport.doctor()
        finally:
            await transport.aclose()

    base_url, result = asyncio.run(_check())

    table = Table(title="Server Status")
    table.add_column("Server", style="cyan")
    table.add_column("Status")
    table.add_column("Message")
    table.add_column("Latency")

    status = "[green]OK[/green]" if result.ok else "[red]FAIL[/red]"
    latency = f"{result.latency_ms:.0f}ms" if result.latency_ms else "-"
    table.add_row(base_url, status, result.message or "-", latency)
    console.print(table)


@app.command()
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    init: bool = typer.Option(False, "--init", help="Initialize default configuration"),
    project_dir: Path | None = typer.Option(
        None, "--project-dir", help="Use <project>/.opencode/council.json"
    ),
) -> None:
    """Manage council configuration."""
    from opencode_council.config.loader import (
        DEFAULT_CONFIG_TEMPLATE,
        find_config_file,
        home_config_path,
        project_config_path,
    )

    if show:
        config_file = find_config_file(project_dir)
        if config_file is not None:
            console.print(f"[dim]{config_file}[/dim]")
            console.print(config_file.read_text(), markup=False, highlight=False)
        else:
            console.print("[yellow]No configuration file found.[/yellow]")
            console.print("Run 'council config --init' to create one.")
        return

    if init:
        config_file = project_config_path(project_dir) if project_dir else home_config_path()
        if config_file.exists():
            console.print(f"[yellow]Configuration already exists at {config_file}[/yellow]")
            return
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text(DEFAULT_CONFIG_TEMPLATE)
        console.print(f"[green]Created configuration at {config_file}[/green]")
        return

    console.print("Usage: council config [--show | --init]")


@transcripts_app.command("list")
def list_transcripts(
    project_dir: Path | None = typer.Option(None, "--project-dir", help="Project directory"),
) -> None:
    """List saved transcripts, newest first."""
    from datetime import datetime

    from opencode_council.storage import TranscriptStore

    store = TranscriptStore(project_dir)
    files = store.list_transcripts()
    if not files:
        console.print(f"[yellow]No transcripts in {store.directory}[/yellow]")
        return

    table = Table(title="Council Transcripts")
    table.add_column("File", style="cyan")
    table.add_column("Updated")
    for item in files:
        updated = datetime.fromtimestamp(item.updated_at).strftime("%Y-%m-%d %H:%M:%S")
        table.add_row(item.filename, updated)
    console.print(table)


@transcripts_app.command("show")
def show_transcript(
    name: str = typer.Argument(..., help="Transcript file name"),
    project_dir: Path | None = typer.Option(None, "--project-dir", help="Project directory"),
) -> None:
    """Print a saved transcript."""
    from opencode_council.storage import TranscriptStore

    try:
        _, content = TranscriptStore(project_dir).read(name)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    console.print(content, markup=False, highlight=False)


@app.command()
def version() -> None:
    """Show version information."""
    from opencode_council import __version__

    console.print(f"opencode-council v{__version__}")


if __name__ == "__main__":
    app()
