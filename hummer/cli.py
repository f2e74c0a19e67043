"""Command-line interface for Hummer.

Provides commands for:
- analyze: Transcribe a recording into measures, key and chords
- info: Show audio file information
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core import AnalysisError, AnalysisResult, TimeSignature

app = typer.Typer(
    name="hummer",
    help="Melody, key and chord transcription for hummed or sung recordings",
    rich_markup_mode="markdown",
)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


@app.command()
def analyze(
    input_file: Path = typer.Argument(..., help="Input audio file (WAV, MP3, FLAC, ...)"),
    bpm: Optional[float] = typer.Option(
        None, "--bpm", "-b", help="Tempo in BPM (estimated from the audio if omitted)"
    ),
    time_signature: str = typer.Option(
        "4/4", "--time-signature", "-t", help="Time signature, e.g. 3/4 or 6/8"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Print the analysis as JSON"
    ),
    midi_output: Optional[Path] = typer.Option(
        None, "--midi", help="Write melody and chords to a MIDI file"
    ),
    musicxml_output: Optional[Path] = typer.Option(
        None, "--musicxml", help="Write a MusicXML lead sheet"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Transcribe a hummed melody and suggest chords for each measure."""
    from .output import MIDIExporter, MusicXMLExporter, to_dict
    from .pipeline import HummingAnalyzer

    _configure_logging(verbose)

    if not input_file.exists():
        console.print(f"[red]Error: File not found: {input_file}[/red]")
        raise typer.Exit(1)

    try:
        meter = TimeSignature.parse(time_signature)
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(1)

    if bpm is not None and bpm <= 0:
        console.print(f"[red]Error: Tempo must be positive, got {bpm}[/red]")
        raise typer.Exit(1)

    analyzer = HummingAnalyzer()
    try:
        result = analyzer.analyze_file(input_file, bpm=bpm, time_signature=meter)
    except AnalysisError as exc:
        console.print(f"[red]Analysis failed: {exc}[/red]")
        raise typer.Exit(1)
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(1)

    if midi_output is not None:
        MIDIExporter().export(result, midi_output)
        if not json_output:
            console.print(f"[green]MIDI saved:[/green] {midi_output}")

    if musicxml_output is not None:
        MusicXMLExporter(title=input_file.stem).export(result, musicxml_output)
        if not json_output:
            console.print(f"[green]MusicXML saved:[/green] {musicxml_output}")

    if json_output:
        console.print_json(data=to_dict(result))
        return

    _show_summary(result)
    _show_measures_table(result)


@app.command()
def info(
    input_file: Path = typer.Argument(..., help="Input audio file"),
):
    """Show information about an audio file."""
    from .analysis import TempoAnalyzer
    from .input import AudioLoader

    if not input_file.exists():
        console.print(f"[red]Error: File not found: {input_file}[/red]")
        raise typer.Exit(1)

    loader = AudioLoader()
    try:
        audio, sr = loader.load(input_file)
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]Audio Info:[/bold] {input_file.name}")
    console.print(f"  Duration: {loader.get_duration(audio, sr):.2f} seconds")
    console.print(f"  Sample rate: {sr} Hz")
    console.print(f"  Samples: {len(audio):,}")

    tempo = TempoAnalyzer().detect(audio, sr)
    console.print(f"  Estimated tempo: {tempo:.1f} BPM")


def _show_summary(result: AnalysisResult) -> None:
    console.print()
    if result.key is None:
        console.print("[yellow]No pitched content detected[/yellow]")
    else:
        console.print(
            f"[bold]Key:[/bold] {result.key.name} "
            f"(confidence: {result.key.confidence:.2f}, relative: {result.key.relative_key})"
        )
    console.print(f"[bold]Tempo:[/bold] {result.bpm:.1f} BPM in {result.time_signature}")


def _show_measures_table(result: AnalysisResult) -> None:
    """Display measures in a table."""
    table = Table(title="Measures")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Notes", style="cyan")
    table.add_column("Chord", style="green")
    table.add_column("Degree", style="yellow")
    table.add_column("Confidence", style="magenta")
    table.add_column("Suggestions", style="blue")

    for measure in result.measures:
        chord = measure.chord
        table.add_row(
            str(measure.index + 1),
            " ".join(n.name for n in measure.notes) or "-",
            chord.symbol if chord else "-",
            chord.degree if chord else "-",
            f"{chord.confidence:.2f}" if chord else "-",
            ", ".join(s.symbol for s in measure.chord_suggestions) or "-",
        )

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
