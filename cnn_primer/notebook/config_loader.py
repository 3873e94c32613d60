from pathlib import Path
from functools import lru_cache
from typing import Optional

import yaml
from rich.console import Console
from rich.table import Table

from cnn_primer.schema import PrimerConfig

c = Console()

# Only announce the first load of a session
_config_loaded = False

DEFAULT_CONFIG = "primer.yaml"


def config_path(name: str = DEFAULT_CONFIG) -> Path:
	"""Location of a packaged config file."""
	return Path(__file__).parent / "config" / name


@lru_cache(maxsize=4)
def load_primer_config(name: str = DEFAULT_CONFIG, quiet: bool = False, path: Optional[str] = None) -> dict:
	"""
	Load the notebook configuration file and render a summary table.
	Uses caching to avoid loading the same config multiple times.

	Args:
		name: The name of a packaged config file to load.
		quiet: If True, suppresses printing the config table.
		path: Explicit config file path; overrides name when given.
	"""
	global _config_loaded

	p = Path(path) if path else config_path(name)

	if not _config_loaded:
		c.rule(f"[bold cyan]Loading CNN Primer Config")
		c.print(f"[green]✔ Found:[/] [cyan]{p}[/cyan] — loading...")

	if not p.exists():
		c.print(f"[red]❌ Missing config file:[/] {p}")
		raise FileNotFoundError(f"Missing primer config: {p}")

	with p.open("r", encoding="utf-8") as f:
		cfg = yaml.safe_load(f)

	if not isinstance(cfg, dict):
		raise ValueError(f"Primer config {p} must contain a mapping, got {type(cfg).__name__}")

	if not _config_loaded:
		c.print(f"[green]✔ Successfully parsed:[/] [white]{p.name}[/white]")
		_config_loaded = True

		if not quiet:
			lessons = cfg.get("lessons", {}) or {}
			model = cfg.get("model", {}) or {}
			training = cfg.get("training", {}) or {}

			tbl = Table(show_header=True, header_style="bold magenta")
			tbl.add_column("Field", style="dim")
			tbl.add_column("Value")

			tbl.add_row("Image Size", str(lessons.get("image_size", "—")))
			tbl.add_row("Kernel Size", str(lessons.get("kernel_size", "—")))
			tbl.add_row("Padding", str(lessons.get("padding", "—")))
			tbl.add_row("Stride", str(lessons.get("stride", "—")))
			tbl.add_row("Pool Size", str(lessons.get("pool_size", "—")))
			tbl.add_row("Model", str(model.get("name", "—")))
			tbl.add_row("Input Shape", str(model.get("input_shape", "—")))
			tbl.add_row("Layers", str(len(model.get("layers", []) or [])))
			tbl.add_row("Dataset", str(training.get("dataset", "—")))
			tbl.add_row("Epochs", str(training.get("epochs", "—")))
			tbl.add_row("Batch Size", str(training.get("batch_size", "—")))
			tbl.add_row("Learning Rate", str(training.get("learning_rate", "—")))
			tbl.add_row("Device", str(training.get("device", "—")))

			c.print(tbl)

	return cfg


def get_primer_config(name: str = DEFAULT_CONFIG, quiet: bool = False, path: Optional[str] = None) -> PrimerConfig:
	"""
	Load and validate the notebook configuration.

	Raises:
		FileNotFoundError: If the file does not exist
		ValueError: If the document is not a mapping
		pydantic.ValidationError: If any section is invalid
	"""
	return PrimerConfig.model_validate(load_primer_config(name, quiet, path))
