"""Tideway CLI - Upload commands."""
import typer
from rich.console import Console
from rich.table import Table

from tideway.database import SessionLocal
from tideway.exceptions import FinalizationError, TidewayError

app = typer.Typer()
console = Console()


@app.command()
def incomplete(
    owner_id: str = typer.Argument(..., help="Owner (user id) of the uploads"),
):
    """List a user's interrupted uploads."""
    db = SessionLocal()
    try:
        from tideway.services.resume import ResumeService

        descriptors = ResumeService(db).list_incomplete(owner_id)
        if not descriptors:
            console.print("[dim]No incomplete uploads[/dim]")
            return

        table = Table(title=f"Incomplete uploads for {owner_id}")
        table.add_column("Track ID", style="dim")
        table.add_column("Title", style="cyan")
        table.add_column("Received", justify="right")
        table.add_column("Next Chunk", justify="right")

        for d in descriptors:
            table.add_row(
                d.track_id,
                d.title or d.original_name or "",
                f"{d.received_chunks}/{d.total_chunks}",
                str(d.next_chunk),
            )

        console.print(table)
    finally:
        db.close()


@app.command()
def show(track_id: str = typer.Argument(..., help="Track ID")):
    """Show progress of one upload."""
    db = SessionLocal()
    try:
        from tideway.services.finalizer import describe_ranges
        from tideway.services.upload_tracker import UploadTracker

        tracker = UploadTracker(db)
        try:
            handle = tracker.get_session(track_id)
        except TidewayError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)

        received = set(tracker.received_indices(track_id))
        missing = [i for i in range(handle.total_chunks) if i not in received]

        console.print(f"[bold]Upload {track_id}[/bold]")
        console.print(f"  Owner:     {handle.owner_id}")
        console.print(f"  State:     {handle.state}")
        console.print(f"  Received:  {handle.received_chunks}/{handle.total_chunks}")
        console.print(f"  Watermark: {handle.watermark}")
        if missing:
            console.print(f"  Missing:   {describe_ranges(missing)}")
    finally:
        db.close()


@app.command()
def finalize(track_id: str = typer.Argument(..., help="Track ID")):
    """Finalize a fully received upload now."""
    db = SessionLocal()
    try:
        from tideway.services.finalizer import Finalizer

        try:
            track = Finalizer(db).finalize(track_id)
        except FinalizationError as e:
            console.print(f"[red]Failed: {e.reason}[/red]")
            raise typer.Exit(1)

        if track is None:
            console.print(f"[yellow]{track_id} is not ready or already claimed[/yellow]")
            raise typer.Exit(1)

        console.print(
            f"[green]Complete:[/green] {track.file_name} "
            f"({track.duration.total_seconds():.1f}s)"
        )
    finally:
        db.close()


@app.command()
def recover(
    older_than: int = typer.Option(
        None, "--older-than", "-o", help="Minutes a finalization may stall (default from settings)"
    ),
):
    """Re-run finalizations abandoned by a crashed process."""
    db = SessionLocal()
    try:
        from tideway.services.finalizer import Finalizer

        result = Finalizer(db).recover_stalled(older_than)

        table = Table(title="Recovery")
        table.add_column("Outcome", style="cyan")
        table.add_column("Tracks")
        for outcome in ("completed", "failed", "skipped"):
            table.add_row(outcome, ", ".join(result[outcome]) or "-")

        console.print(table)
    finally:
        db.close()
