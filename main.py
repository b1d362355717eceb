"""Main CLI entry point for StoryForge."""
import asyncio
import json
from pathlib import Path

import click
import httpx
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.table import Table

from utils.logger import setup_logger
from ingestion.loader import DocumentLoader, DocumentLoadError
from execution.llm_client import AnthropicChatClient
from extraction.models import Character
from extraction.pipeline import CharacterExtractionPipeline, InvalidDocumentError, ExtractionError
from extraction.worker import CharacterExtractor
from monitoring.progress_tracker import ProgressTracker
from narrative.models import StoryRequest, StreamState
from narrative.generator import StoryGenerator
from narrative.reformatter import StoryStreamReformatter, split_sections
from narrative.story_client import StoryClient
import config

logger = setup_logger(__name__)
console = Console()


def load_characters(path: Path) -> list:
    """Load a characters JSON file written by `extract --output`.

    Args:
        path: Path to JSON array of character objects

    Returns:
        List of Character records
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return [Character.model_validate(item) for item in data]


def character_table(characters: list) -> Table:
    table = Table(title=f"Characters ({len(characters)})")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Personality", style="magenta")
    for character in characters:
        table.add_row(character.name, character.description, character.personality)
    return table


def sections_path_for(output: str) -> Path:
    return Path(output).with_suffix(".sections.json")


def read_story_sections(story: str) -> list:
    """Load story sections for the media commands.

    Prefers the sections JSON written by `generate --output`, which holds
    the sections split from the raw story text. A plain Markdown file is
    split on blank lines as a fallback.
    """
    path = Path(story)
    if path.suffix != ".json" and sections_path_for(story).exists():
        path = sections_path_for(story)

    if path.suffix == ".json":
        with open(path, 'r', encoding='utf-8') as f:
            sections = [s for s in json.load(f) if isinstance(s, str) and s.strip()]
    else:
        sections = split_sections(path.read_text(encoding='utf-8'))

    if not sections:
        raise click.ClickException(f"{story} contains no story sections")
    return sections


@click.group()
def cli():
    """StoryForge - extract characters from a document and turn them into a story."""
    pass


@cli.command()
@click.option('--file', 'file_path', required=True, type=click.Path(exists=True), help='Document to analyse (.txt, .md or .pdf)')
@click.option('--chunk-size', default=config.DEFAULT_CHUNK_SIZE, show_default=True, help='Chunk size in characters')
@click.option('--chunk-overlap', default=config.DEFAULT_CHUNK_OVERLAP, show_default=True, help='Overlap between chunks in characters')
@click.option('--output', default=None, type=click.Path(), help='Write characters to this JSON file')
def extract(file_path, chunk_size, chunk_overlap, output):
    """Extract characters from a document."""
    console.print("\n[bold cyan]Character Extraction[/bold cyan]\n")

    if not config.ANTHROPIC_API_KEY:
        console.print("[red]Error: ANTHROPIC_API_KEY not set in environment[/red]")
        return

    try:
        doc = DocumentLoader().load(file_path)
    except DocumentLoadError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    llm_client = AnthropicChatClient()
    pipeline = CharacterExtractionPipeline(CharacterExtractor(llm_client))
    tracker = ProgressTracker(console)

    async def _run():
        try:
            with tracker.create_progress() as progress:
                task = progress.add_task("Extracting characters...", total=None)
                return await pipeline.run(
                    doc.text,
                    chunk_size=chunk_size,
                    chunk_overlap=chunk_overlap,
                    on_batch_complete=tracker.batch_callback(progress, task)
                )
        finally:
            await llm_client.aclose()

    try:
        characters = asyncio.run(_run())
    except (InvalidDocumentError, ExtractionError) as e:
        console.print(f"[red]Error during extraction: {e}[/red]")
        return

    console.print(character_table(characters))
    console.print(f"Tokens used: {llm_client.total_tokens_used:,}")

    if output:
        with open(output, 'w', encoding='utf-8') as f:
            json.dump([c.model_dump() for c in characters], f, indent=2, ensure_ascii=False)
        console.print(f"\n[green]✓ Saved {len(characters)} characters to {output}[/green]")


@cli.command()
@click.option('--characters', 'characters_path', required=True, type=click.Path(exists=True), help='Characters JSON file')
@click.option('--tone', required=True, help='Story tone, e.g. "whimsical"')
@click.option('--setting', required=True, help='Story setting, e.g. "a floating city"')
@click.option('--temperature', default=config.STORY_TEMPERATURE, show_default=True, type=float)
@click.option('--top-k', default=None, type=int)
@click.option('--top-p', default=None, type=float)
@click.option('--server', default=None, help="Base URL of a running StoryForge API (default: call the model directly)")
@click.option('--output', default=None, type=click.Path(), help="Save the formatted story as Markdown, plus its sections as <name>.sections.json")
def generate(characters_path, tone, setting, temperature, top_k, top_p, server, output):
    """Generate a story and render it live as it streams."""
    request = StoryRequest(
        tone=tone,
        setting=setting,
        characters=load_characters(Path(characters_path)),
        temperature=temperature,
        top_k=top_k,
        top_p=top_p
    )

    async def _run():
        with Live(Markdown(""), console=console, refresh_per_second=8) as live:
            def on_update(snapshot):
                live.update(Markdown(snapshot))

            if server:
                async with httpx.AsyncClient(base_url=server) as http_client:
                    return await StoryClient(http_client).generate(request, on_update=on_update)

            llm_client = AnthropicChatClient()
            try:
                return await StoryStreamReformatter().consume(
                    StoryGenerator(llm_client).stream(request),
                    on_update=on_update
                )
            finally:
                await llm_client.aclose()

    reformatter = asyncio.run(_run())

    if reformatter.state is StreamState.ERROR:
        console.print(f"[red]{reformatter.error}[/red]")
        return

    console.print(f"\n[green]✓ Story complete: {len(reformatter.sections)} sections[/green]")

    if output:
        Path(output).write_text(reformatter.formatted + "\n", encoding='utf-8')
        with open(sections_path_for(output), 'w', encoding='utf-8') as f:
            json.dump(reformatter.sections, f, indent=2, ensure_ascii=False)
        console.print(f"Saved to {output} and {sections_path_for(output)}")


@cli.command()
@click.option('--story', required=True, type=click.Path(exists=True), help="Story Markdown or sections JSON file")
@click.option('--widescreen', is_flag=True, help='Generate 1280x720 images one at a time')
def illustrate(story, widescreen):
    """Generate one image per story section."""
    from generation.image_client import LivepeerImageClient

    sections = read_story_sections(story)
    console.print(f"Generating images for {len(sections)} sections...")

    async def _run():
        client = LivepeerImageClient()
        try:
            if widescreen:
                return await client.generate_widescreen(sections)
            return await client.generate_for_sections(sections)
        finally:
            await client.aclose()

    try:
        urls = asyncio.run(_run())
    except Exception as e:
        console.print(f"[red]Error generating images: {e}[/red]")
        logger.exception("Image generation failed")
        return

    for index, url in enumerate(urls, start=1):
        console.print(f"{index}. [cyan]{url}[/cyan]")


@cli.command()
@click.option('--story', required=True, type=click.Path(exists=True), help="Story Markdown or sections JSON file")
@click.option('--upload/--no-upload', default=True, help='Upload slides to Livepeer Studio')
def slides(story, upload):
    """Render each story section as a video slide."""
    from assembly.slide_renderer import SlideRenderer
    from execution.asset_uploader import LivepeerAssetUploader

    sections = read_story_sections(story)
    renderer = SlideRenderer()

    async def _upload(paths):
        uploader = LivepeerAssetUploader()
        try:
            return [
                (await uploader.upload(path, Path(path).name)).playback_url
                for path in paths
            ]
        finally:
            await uploader.aclose()

    paths = []
    for index, text in enumerate(sections):
        result = renderer.render(text, index)
        if not result.success:
            console.print(f"[red]Section {index}: {result.error}[/red]")
            return
        paths.append(result.output_path)
        console.print(f"Rendered {result.output_path}")

    if not upload:
        return

    try:
        playback_urls = asyncio.run(_upload(paths))
    except Exception as e:
        console.print(f"[red]Upload failed: {e}[/red]")
        logger.exception("Slide upload failed")
        return

    for index, url in enumerate(playback_urls, start=1):
        console.print(f"{index}. [cyan]{url}[/cyan]")


@cli.command()
@click.option('--host', default=config.API_HOST, show_default=True)
@click.option('--port', default=config.API_PORT, show_default=True, type=int)
def serve(host, port):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("api.app:create_app", factory=True, host=host, port=port)


if __name__ == "__main__":
    cli()
