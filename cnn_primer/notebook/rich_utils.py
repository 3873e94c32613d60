from typing import List, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from cnn_primer.schema import LayerTrace, LessonResult, TrainingHistory

console = Console()


def rich_log(
    extracted_data: dict,
    title: str = "Details",
    color: str = "cyan",
):
    """Logs key/value data in a rich-formatted panel."""
    panel_content = Text()
    for key, value in extracted_data.items():
        panel_content.append(f"{key.capitalize()}: ", style="bold")
        panel_content.append(str(value), style="none")
        panel_content.append("\n")

    console.print(
        Panel(
            panel_content,
            title=title,
            border_style=color,
            expand=False,
        )
    )


def _fmt_shape(shape: Sequence[int]) -> str:
    return " x ".join(str(d) for d in shape)


def display_lesson(result: LessonResult, show_narration: bool = True):
    """Display one lesson: shapes, hyperparameters, checks and prose."""
    if result.passed:
        border_color = "green"
        status_icon = "✅"
    else:
        border_color = "red"
        status_icon = "❌"

    table = Table(show_header=False, box=None, padding=0, expand=True)
    table.add_column("Field", style="bold", width=18)
    table.add_column("Value", style="white")

    table.add_row("📥 Input", _fmt_shape(result.input_shape))
    table.add_row("📤 Output", _fmt_shape(result.output_shape))
    expected_style = "green" if result.shape_matches else "bold red"
    table.add_row("📐 Expected", f"[{expected_style}]{_fmt_shape(result.expected_shape)}[/{expected_style}]")

    if result.parameters:
        params = ", ".join(f"{k}={v}" for k, v in result.parameters.items())
        table.add_row("⚙️ Parameters", params)

    for name, ok in result.checks.items():
        mark = "[green]✔[/green]" if ok else "[red]✘[/red]"
        table.add_row("🔎 Check", f"{mark} {name.replace('_', ' ')}")

    content = Table.grid(expand=True)
    content.add_row(table)
    if show_narration and result.narration:
        content.add_row(Text("\n" + result.narration.strip(), style="dim white"))

    panel = Panel(
        content,
        title=f"{status_icon} [bold white]{result.title.upper()}[/bold white]",
        border_style=border_color,
        expand=False,
        width=100,
    )
    console.print(panel)
    console.print()


def display_shape_trace(traces: List[LayerTrace], observed: Optional[List[Sequence[int]]] = None,
                        title: str = "Layer Stack"):
    """Displays predicted (and optionally observed) shapes of every layer."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Layer", style="cyan")
    table.add_column("Output Volume", style="white")
    if observed is not None:
        table.add_column("Observed", style="white")
    table.add_column("Params", justify="right", style="bright_cyan")

    for i, trace in enumerate(traces):
        row = [str(trace.index), trace.layer, _fmt_shape(trace.output_shape)]
        if observed is not None:
            seen = tuple(observed[i]) if i < len(observed) else ()
            style = "green" if seen == tuple(trace.output_shape) else "bold red"
            row.append(f"[{style}]{_fmt_shape(seen)}[/{style}]")
        row.append(f"{trace.parameters:,}")
        table.add_row(*row)

    total = sum(t.parameters for t in traces)
    console.print(table)
    console.print(f"[bold]Total trainable parameters:[/bold] {total:,}")
    console.print()


def display_training_summary(history: TrainingHistory):
    """Displays a per-epoch summary of a training run."""
    table = Table(
        title=f"Training {history.network} on {history.dataset} ({history.device})",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Epoch", justify="right")
    table.add_column("Loss", justify="right")
    table.add_column("Train Acc", justify="right")
    table.add_column("Test Acc", justify="right", style="bright_cyan")
    table.add_column("Time", justify="right", style="dim")

    for record in history.epochs:
        table.add_row(
            str(record.epoch),
            f"{record.train_loss:.4f}",
            f"{record.train_accuracy * 100:.1f}%",
            f"{record.test_accuracy * 100:.1f}%",
            f"{record.seconds:.1f}s",
        )

    panel = Panel(
        table,
        title="📊 [bold white]TRAINING SUMMARY[/bold white] 📊",
        border_style="cyan",
        expand=False,
    )
    console.print(panel)
