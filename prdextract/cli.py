import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from prdextract.compaction.compactor import compact_transcript
from prdextract.compaction.parsers import detect_format
from prdextract.compaction.types import CompactionOptions
from prdextract.relay.client import ExtractionCallbacks, ExtractionClient
from prdextract.utils.config import Settings

console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Extract structured PRD sections from meeting transcripts and documents."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


@main.command()
@click.argument("file", type=click.File("r", encoding="utf-8"))
@click.option("--target-chars", type=int, default=None, help="Character budget (default from env)")
@click.option("--aggressive", is_flag=True, help="Drop backchannels and short utterances")
@click.option("--preserve-timestamps", is_flag=True, help="Keep cue start times in the output")
@click.option("--output", "-o", type=click.File("w", encoding="utf-8"), default="-")
def compact(file, target_chars, aggressive, preserve_timestamps, output) -> None:
    """Compact a transcript FILE (WebVTT or plain text) to fit a character budget."""
    settings = Settings.from_env(target_chars=target_chars)
    if settings.target_chars < 1:
        raise click.BadParameter("must be at least 1", param_hint="--target-chars")

    text = file.read()
    options = CompactionOptions(
        target_chars=settings.target_chars,
        aggressive=aggressive,
        preserve_timestamps=preserve_timestamps,
    )
    result = compact_transcript(text, options, detect_format(text, file.name))
    output.write(result.content)
    if not result.content.endswith("\n"):
        output.write("\n")

    table = Table(title="Compaction", show_header=False)
    table.add_row("Original", f"{result.original_chars:,} chars")
    table.add_row("Final", f"{result.final_chars:,} chars")
    table.add_row("Reduction", f"{result.reduction_percent}%")
    if result.was_processed:
        table.add_row("Min utterance length", str(result.min_utterance_length))
    console.print(table)

    if result.speaker_map:
        speakers = Table("Code", "Speaker", title="Speakers")
        for name, code in result.speaker_map.items():
            speakers.add_row(code, name)
        console.print(speakers)

    if result.final_chars > settings.target_chars:
        console.print(
            f"[yellow]Still over budget ({result.final_chars:,} > {settings.target_chars:,}). "
            "Try --aggressive.[/yellow]"
        )
        raise SystemExit(1)


@main.command()
@click.option("--host", default=None, help="Bind address (default from env)")
@click.option("--port", type=int, default=None, help="Bind port (default from env)")
def serve(host: str | None, port: int | None) -> None:
    """Run the extraction relay server."""
    from prdextract.relay.server import ExtractionServer

    settings = Settings.from_env(host=host, port=port)
    try:
        server = ExtractionServer(settings=settings)
    except (ValueError, ImportError) as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)

    console.print(
        Panel.fit(
            f"[bold blue]PRD extraction server[/bold blue]\n"
            f"  [cyan]http://{settings.host}:{settings.port}[/cyan]  "
            f"[dim]model {settings.model}[/dim]",
            border_style="blue",
        )
    )
    asyncio.run(server.run())


async def _analyze(client: ExtractionClient, text: str, context: str | None, filename: str) -> int:
    failed = False

    def on_preprocessed(event):
        console.print(
            f"[dim]Compacted {event.original_chars:,} -> {event.cleaned_chars:,} chars "
            f"({event.reduction_percent}% smaller)[/dim]"
        )

    def on_progress(event):
        console.print(f"[dim]{event.stage} {event.percent}%[/dim]")

    def on_section(event):
        click.echo(f"## {event.section_title}\n\n{event.content}\n")

    def on_complete(event):
        console.print(Panel.fit(event.analysis_notes or "Done", title=event.suggested_title))

    def on_error(message):
        nonlocal failed
        failed = True
        console.print(f"[red]{message}[/red]")

    callbacks = ExtractionCallbacks(
        on_progress=on_progress,
        on_section=on_section,
        on_complete=on_complete,
        on_error=on_error,
        on_preprocessed=on_preprocessed,
    )
    handle = client.analyze_transcript(text, callbacks, context=context, filename=filename)
    try:
        await handle.wait()
    except asyncio.CancelledError:
        handle.cancel()
        raise
    return 1 if failed else 0


@main.command()
@click.argument("file", type=click.File("r", encoding="utf-8"))
@click.option("--server", "server_url", default=None, help="Relay server URL")
@click.option("--identity", default="cli", show_default=True, help="Caller identity")
@click.option("--context", default=None, help="Optional project context")
def analyze(file, server_url, identity, context) -> None:
    """Stream a PRD analysis of transcript FILE from a running server."""
    if not server_url:
        settings = Settings.from_env()
        server_url = f"http://{settings.host}:{settings.port}"
    client = ExtractionClient(server_url, identity)
    try:
        code = asyncio.run(_analyze(client, file.read(), context, file.name))
    except KeyboardInterrupt:
        console.print("[yellow]Cancelled[/yellow]")
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
