"""Tideway CLI - Main entry point."""
import typer
from rich.console import Console
from rich.table import Table

from tideway.cli import uploads

app = typer.Typer(
    name="tideway",
    help="Tideway - Music streaming backend",
    add_completion=True,
)

console = Console()

# Add subcommands
app.add_typer(uploads.app, name="uploads", help="Upload inspection and recovery")


@app.command()
def version():
    """Show version information."""
    from tideway import __version__
    console.print(f"Tideway v{__version__}")


@app.command()
def status():
    """Check system status."""
    from tideway.config import settings

    table = Table(title="Tideway Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")

    # Check database
    try:
        from sqlalchemy import text
        from tideway.database import engine
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        table.add_row("Database", "Connected")

        from tideway.database import SessionLocal
        from tideway.services.library import LibraryService
        db = SessionLocal()
        try:
            counts = LibraryService(db).status_counts()
        finally:
            db.close()
        table.add_row("Tracks", ", ".join(f"{count} {status}" for status, count in counts.items()))
    except Exception as e:
        table.add_row("Database", f"[red]Error: {e}[/red]")

    # Check paths
    from pathlib import Path
    for name, path in [
        ("Chunk Storage", settings.storage_chunks),
        ("Track Storage", settings.storage_tracks),
        ("Thumbnails", settings.storage_thumbnails),
    ]:
        p = Path(path)
        if p.exists():
            table.add_row(name, f"OK ({path})")
        else:
            table.add_row(name, f"[yellow]Missing ({path})[/yellow]")

    console.print(table)


if __name__ == "__main__":
    app()
