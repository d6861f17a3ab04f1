"""CLI application using Typer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="neurogait",
    help="Gait analysis and Parkinsonian risk scoring from skeleton recordings",
    no_args_is_help=True,
)
console = Console()

# Sub-applications
config_app = typer.Typer(help="Configuration management")

app.add_typer(config_app, name="config")


def _load_settings(config: Path | None):
    from neurogait.core.config import Settings, get_settings
    from neurogait.core.logging import configure_logging

    if config is not None and not config.exists():
        console.print(f"[red]Config not found: {config}[/red]")
        raise typer.Exit(1)

    try:
        settings = Settings.from_yaml(config) if config else get_settings()
    except OSError as e:
        console.print(f"[red]Could not read config: {e}[/red]")
        raise typer.Exit(1)
    configure_logging(settings.logging.level)
    return settings


def _load(recording_path: Path):
    from neurogait.pipeline.recording import load_recording

    if not recording_path.exists():
        console.print(f"[red]Recording not found: {recording_path}[/red]")
        raise typer.Exit(1)

    try:
        return load_recording(recording_path)
    except (ValueError, OSError) as e:
        console.print(f"[red]Could not read recording: {e}[/red]")
        raise typer.Exit(1)


# ============================================================================
# Config commands
# ============================================================================


@config_app.command("show")
def config_show():
    """Show current configuration."""
    from neurogait.core.config import get_settings

    settings = get_settings()
    data = settings.to_dict()

    console.print("[bold]Current Configuration[/bold]\n")

    for section, values in data.items():
        console.print(f"[cyan]{section}:[/cyan]")
        for key, value in values.items():
            console.print(f"  {key}: {value}")
        console.print()


@config_app.command("init")
def config_init(
    path: Annotated[Path, typer.Option("--path", "-p", help="Config file path")] = Path(
        "config/neurogait.yaml"
    ),
):
    """Initialize configuration file."""
    import yaml

    from neurogait.core.config import Settings

    path.parent.mkdir(parents=True, exist_ok=True)

    if path.exists():
        console.print(f"[yellow]Config already exists at {path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Abort()

    header = (
        "# NeuroGait Configuration\n"
        "# Thresholds are fixed clinical heuristics; change them only for experiments.\n\n"
    )
    path.write_text(header + yaml.safe_dump(Settings().to_dict(), sort_keys=False))
    console.print(f"[green]Created config at {path}[/green]")


# ============================================================================
# Analysis commands
# ============================================================================


@app.command("analyze")
def analyze(
    recording_path: Annotated[Path, typer.Argument(help="Recorded session (.json or .npz)")],
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Output JSON path")
    ] = None,
    config: Annotated[
        Optional[Path], typer.Option("--config", "-c", help="Settings YAML")
    ] = None,
    dense_freezing: Annotated[
        bool,
        typer.Option("--dense-freezing", help="Report every frozen scan window instead of merged episodes"),
    ] = False,
):
    """Replay a recorded session and print gait metrics and clinical scores."""
    from dataclasses import replace

    from neurogait.analysis.engine import GaitAnalyzer
    from neurogait.analysis.risk_analysis.clinical import ClinicalScorer
    from neurogait.pipeline.recording import replay

    settings = _load_settings(config)
    if dense_freezing:
        settings = replace(settings, detection=replace(settings.detection, merge_overlapping=False))

    recording = _load(recording_path)
    if not recording.frames:
        console.print("[yellow]Recording contains no frames[/yellow]")
        raise typer.Exit(1)

    with GaitAnalyzer(settings) as analyzer:
        with console.status("Analyzing session..."):
            results = replay(analyzer, recording)

    scorer = ClinicalScorer(
        fogq_cap=settings.scoring.fogq_cap,
        fogq_high=settings.scoring.fogq_high,
        fogq_moderate=settings.scoring.fogq_moderate,
        risk_confidence=settings.scoring.risk_confidence,
    )
    scores = scorer.score_results(results)

    console.print(
        f"[green]Analyzed {results.total_frames} frames ({results.duration:.1f}s)[/green]\n"
    )

    metrics_table = Table(title="Gait Metrics")
    metrics_table.add_column("Metric", style="cyan")
    metrics_table.add_column("Value", justify="right")
    for key, value in results.final_metrics.to_dict().items():
        metrics_table.add_row(key, f"{value:.3f}" if isinstance(value, float) else str(value))
    console.print(metrics_table)

    if results.freezing_episodes:
        fog_table = Table(title="Freezing Episodes")
        fog_table.add_column("Start (s)", justify="right")
        fog_table.add_column("Duration (s)", justify="right")
        fog_table.add_column("Severity")
        fog_table.add_column("Trigger")
        for ep in results.freezing_episodes:
            fog_table.add_row(
                f"{ep.start_time - recording.start_time:.2f}",
                f"{ep.duration:.2f}",
                ep.severity.name.lower(),
                ep.trigger.value,
            )
        console.print(fog_table)
    else:
        console.print("[dim]No freezing episodes detected[/dim]")

    console.print(f"Anomalies: {len(results.anomalies)}\n")

    updrs = scores.updrs_part_iii
    risk = scores.overall_risk
    scores_table = Table(title="Clinical Scores")
    scores_table.add_column("Scale", style="cyan")
    scores_table.add_column("Score", justify="right")
    scores_table.add_row("UPDRS-III gait", str(updrs.gait_score))
    scores_table.add_row("UPDRS-III postural stability", str(updrs.postural_stability_score))
    scores_table.add_row("UPDRS-III bradykinesia", str(updrs.bradykinesia_score))
    scores_table.add_row("UPDRS-III rigidity", str(updrs.rigidity_score))
    scores_table.add_row("UPDRS-III total", str(updrs.total_score))
    scores_table.add_row("FOG-Q", f"{scores.fog_q.total_score} ({scores.fog_q.risk_level.value})")
    scores_table.add_row("Hoehn & Yahr", f"{scores.hoehn_yahr.value:g}")
    scores_table.add_row("Parkinson's risk", f"{risk.risk_score:.2f}")
    console.print(scores_table)

    console.print(f"\n[bold]Recommendation:[/bold] {risk.recommendation.value}")
    for indicator in risk.key_indicators:
        console.print(f"  - {indicator}")

    if output:
        data = {
            "recording": str(recording_path),
            "results": results.to_dict(),
            "clinical_scores": scores.to_dict(),
        }
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(data, indent=2))
        console.print(f"\n[green]Saved to: {output}[/green]")


@app.command("spatial")
def spatial(
    recording_path: Annotated[Path, typer.Argument(help="Recorded session with environment data")],
):
    """Show freezing risk zones and navigation difficulty for a recording's environment."""
    from neurogait.spatial.mapper import SpatialMapper

    recording = _load(recording_path)
    if recording.environment is None:
        console.print("[yellow]Recording has no environment data[/yellow]")
        raise typer.Exit(1)

    spatial_map = SpatialMapper().map_environment(recording.environment)

    console.print(f"Navigation difficulty: {spatial_map.navigation_difficulty:.2f}")
    console.print(f"Clear path width: {spatial_map.clear_path_width:.2f} m")
    console.print(f"Turning points: {len(spatial_map.turning_points)}\n")

    table = Table(title="Freezing Risk Zones")
    table.add_column("Position")
    table.add_column("Risk")
    table.add_column("Trigger")
    table.add_column("Radius (m)", justify="right")
    for zone in spatial_map.freezing_risk_zones:
        table.add_row(
            ", ".join(f"{v:.2f}" for v in zone.position),
            zone.risk_level.value,
            zone.trigger.value,
            f"{zone.radius:.1f}",
        )
    console.print(table)


# ============================================================================
# Main entry point
# ============================================================================


@app.callback()
def main():
    """Gait analysis and Parkinsonian risk scoring from skeleton recordings."""
    pass


if __name__ == "__main__":
    app()
