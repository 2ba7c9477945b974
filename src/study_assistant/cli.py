import asyncio
import logging
from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .config import get_settings
from .exceptions import InvalidUploadError, StudyAssistantError
from .file_helpers import raw_file_from_path
from .llm_service import GeminiLLMService
from .models import ROADMAP_FAILED_MESSAGE, FileStatus, Priority, TrackedFile
from .pdf_inspector import inspect_pdf
from .session import StudySession

# Configure logging
logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)

# Initialize Typer app
app = typer.Typer(
    name="study-assistant",
    help="Summarize PDF documents, build a topic index and a study roadmap using AI",
    add_completion=False,
)

# Initialize console for rich output
console = Console()

STATUS_STYLES = {
    FileStatus.IDLE: "dim",
    FileStatus.UPLOADING: "cyan",
    FileStatus.ANALYZING: "yellow",
    FileStatus.COMPLETED: "green",
    FileStatus.ERROR: "red",
}

PRIORITY_STYLES = {
    Priority.HIGH: "red",
    Priority.MEDIUM: "yellow",
    Priority.LOW: "green",
}


def build_session() -> StudySession:
    return StudySession.from_settings(get_settings())


@app.command()
def analyze(
    pdf_paths: List[Path] = typer.Argument(..., help="PDF files to analyze"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """Analyze one or more PDF files"""

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    settings = get_settings()
    payloads = []
    for path in pdf_paths:
        # Validate inputs
        if not path.exists():
            console.print(f"[red]Error: PDF file not found: {path}[/red]")
            raise typer.Exit(1)
        payload = raw_file_from_path(path)
        try:
            inspect_pdf(payload.data, path.name, max_bytes=settings.max_upload_bytes)
        except InvalidUploadError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
        payloads.append(payload)

    async def run() -> List[TrackedFile]:
        async with build_session() as session:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
            ) as progress:
                task = progress.add_task("Analyzing...", total=None)
                ids = set()

                def on_change(files: List[TrackedFile]):
                    done = sum(1 for f in files if f.id in ids and f.status.is_terminal)
                    progress.update(task, description=f"Analyzing... {done}/{len(payloads)} done")

                session.files.add_listener(on_change)
                created = session.files.add_files(payloads)
                ids.update(f.id for f in created)
                await session.files.join(ids)

            return [session.files.get(f.id) or f for f in created]

    results = asyncio.run(run())

    failed = 0
    for entry in results:
        if entry.status == FileStatus.COMPLETED:
            console.print(f"[green]✓ {entry.file_name}[/green]")
            display_analysis(entry)
        else:
            failed += 1
            console.print(f"[red]✗ {entry.file_name}: {entry.error_message}[/red]")

    if failed:
        raise typer.Exit(1)


@app.command("list")
def list_files():
    """List tracked files, most recent first"""

    async def run() -> List[TrackedFile]:
        async with build_session() as session:
            return session.files.files

    files = asyncio.run(run())
    if not files:
        console.print("[dim]No files yet[/dim]")
        return

    table = Table(title="Files")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Size (MB)", justify="right")
    table.add_column("Status")
    table.add_column("Error", style="red")

    for f in files:
        style = STATUS_STYLES[f.status]
        table.add_row(
            f.id,
            f.file_name,
            f"{f.file_size / 1024 / 1024:.2f}",
            f"[{style}]{f.status.value}[/{style}]",
            f.error_message or "",
        )

    console.print(table)


@app.command()
def topics():
    """Show the cross-document topic index"""

    async def run():
        async with build_session() as session:
            return session.topic_index()

    index = asyncio.run(run())
    if not index.all_topics:
        console.print("[dim]No completed analyses yet[/dim]")
        return

    if index.high_priority_topics:
        console.print(Panel("\n".join(f"• {t}" for t in index.high_priority_topics), title="High priority"))
    console.print(Panel(", ".join(index.all_topics), title=f"All topics ({len(index.all_topics)})"))


@app.command()
def roadmap(
    show_only: bool = typer.Option(False, "--show", help="Show the saved roadmap without regenerating"),
):
    """Generate a study roadmap from all completed analyses"""

    async def run():
        async with build_session() as session:
            if show_only:
                return session.roadmap.steps
            with console.status("Building roadmap..."):
                steps = await session.generate_roadmap()
            return steps

    try:
        steps = asyncio.run(run())
    except StudyAssistantError as e:
        logger.error(f"Error generating roadmap: {str(e)}")
        console.print(f"[red]{ROADMAP_FAILED_MESSAGE}[/red]")
        raise typer.Exit(1)

    if steps is None:
        console.print("[yellow]No completed analyses yet; analyze a PDF first[/yellow]")
        return
    if not steps:
        console.print("[dim]Roadmap is empty[/dim]")
        return

    for step in steps:
        body = f"{step.description}\n\n[dim]{', '.join(step.topics)}[/dim]"
        console.print(Panel(body, title=f"[bold]{step.step_name}[/bold] · {step.title}", title_align="left"))


@app.command()
def report(
    output_dir: Path = typer.Option(Path("."), "--output", "-o", help="Directory for the HTML report"),
):
    """Export the HTML study report"""

    async def run() -> Path:
        async with build_session() as session:
            return session.export_report(output_dir)

    try:
        path = asyncio.run(run())
    except OSError as e:
        console.print(f"[red]Error writing report: {str(e)}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Report saved to: {path}[/green]")


@app.command()
def remove(file_id: str = typer.Argument(..., help="ID shown by the list command")):
    """Remove one file"""

    async def run() -> bool:
        async with build_session() as session:
            return session.files.remove_file(file_id)

    if not asyncio.run(run()):
        console.print(f"[red]Error: file not found: {file_id}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Removed {file_id}[/green]")


@app.command()
def clear(yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation")):
    """Delete all saved analyses and the roadmap"""

    def confirm(prompt: str) -> bool:
        return yes or typer.confirm(prompt)

    async def run() -> bool:
        async with build_session() as session:
            return session.clear_all(confirm)

    if asyncio.run(run()):
        console.print("[green]✓ All data cleared[/green]")
    else:
        console.print("[dim]Cancelled[/dim]")


@app.command()
def check():
    """Check that the Gemini API key and model work"""
    service = GeminiLLMService.from_settings(get_settings())
    try:
        info = service.check_availability()
    except StudyAssistantError as e:
        console.print(f"[red]✗ {str(e)}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Gemini model available: {info.get('displayName') or service.model}[/green]")


def display_analysis(entry: TrackedFile):
    """Display summary, topics and study plan of one analysis"""
    result = entry.result
    console.print(Panel(result.summary, title="Summary", title_align="left"))
    console.print(f"[bold]Topics:[/bold] {', '.join(result.topics)}")

    table = Table(title="Study plan")
    table.add_column("Topic", style="cyan")
    table.add_column("Action")
    table.add_column("Priority")
    for item in result.study_plan:
        style = PRIORITY_STYLES[item.priority]
        table.add_row(item.topic, item.action, f"[{style}]{item.priority.value}[/{style}]")

    console.print(table)
    console.print()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Host to bind the server to"),
    port: int = typer.Option(8000, "--port", help="Port to bind the server to"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Start the FastAPI server"""

    console.print(f"[green]Starting server on {host}:{port}[/green]")

    import uvicorn
    uvicorn.run("study_assistant.api:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
