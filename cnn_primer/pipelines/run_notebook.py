#!/usr/bin/env python3
"""
run_notebook.py

Runs the CNN primer from the command line: every lesson cell in order, the
shape trace of the configured layer stack, optional diagrams, and an
optional training run of that stack.

Stages:
1. Lessons: convolution, padding, stride, pooling, volumes, full stack
2. Shape trace: predicted vs observed volume after every layer
3. Diagrams (--plots): feature maps, a filter heatmap, training curves
4. Training (--train): hand the stack to the training driver and save the run

Exit status is 0 when every lesson check passes, 1 when a lesson check or
the training run fails, and 2 when the configuration cannot be loaded.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

import matplotlib.pyplot as plt
import yaml

from cnn_primer.lessons import LESSONS, feature_volume, run_lessons
from cnn_primer.lessons.lesson_viz import (
    plot_feature_maps,
    plot_kernel_heatmap,
    plot_training_history
)
from cnn_primer.model import build_model, describe_model, uses_log_probabilities
from cnn_primer.notebook import get_primer_config, setup_notebook_logging, get_notebook_logger
from cnn_primer.notebook.rich_utils import (
    display_lesson,
    display_shape_trace,
    display_training_summary
)
from cnn_primer.schema import PrimerConfig
from cnn_primer.training import (
    build_loaders,
    num_classes_for,
    save_run,
    train,
    validate_output_width
)

# Module-level logger that gets configured in main()
logger = None


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="CNN Primer - convolution, padding, stride and pooling, cell by cell"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to configuration YAML file (default: packaged primer.yaml)"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default="runs/notebook",
        help="Output directory for the log, diagrams and training artifacts"
    )

    parser.add_argument(
        "--lesson", "-l",
        action="append",
        choices=list(LESSONS),
        default=None,
        help="Lesson to run; repeat to run several (default: all, in notebook order)"
    )

    parser.add_argument(
        "--train",
        action="store_true",
        help="Train the configured layer stack after the lessons"
    )

    parser.add_argument(
        "--epochs",
        type=_positive_int,
        default=None,
        help="Number of training epochs (overrides config)"
    )

    parser.add_argument(
        "--plots",
        action="store_true",
        help="Save feature map, filter and training diagrams to the output directory"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Hide narration and the config table"
    )

    return parser.parse_args(argv)


def save_lesson_plots(config: PrimerConfig, plot_dir: Path) -> List[Path]:
    """Render the feature-volume diagrams of the volume lesson."""
    plot_dir.mkdir(parents=True, exist_ok=True)
    conv, _, volume = feature_volume(config.lessons)

    maps_path = plot_dir / "feature_maps.png"
    kernel_path = plot_dir / "filter_0.png"
    plt.close(plot_feature_maps(volume, title="Feature volume", save_path=maps_path))
    plt.close(plot_kernel_heatmap(conv.weight[0], title="Filter 0 (summed over channels)",
                                  save_path=kernel_path))
    return [maps_path, kernel_path]


def run_training(config: PrimerConfig, model, output_path: Path, plots: bool):
    """Hand the layer stack to the training driver and save the run."""
    channels, height, width = config.model.input_shape
    if channels != 1 or height != width:
        raise ValueError(
            f"the {config.training.dataset} dataset produces square single-channel images, "
            f"model input is {config.model.input_shape}"
        )
    validate_output_width(model.trace[-1].output_shape, num_classes_for(config.training.dataset))

    train_loader, test_loader = build_loaders(config.training, image_size=height)
    history = train(
        model,
        train_loader,
        test_loader,
        config.training,
        log_probabilities=uses_log_probabilities(config.model),
        network=config.model.name,
    )
    display_training_summary(history)
    save_run(model, history, output_path)

    if plots:
        plt.close(plot_training_history(history, save_path=output_path / "plots" / "training.png"))
    return history


def main(argv: Optional[List[str]] = None) -> int:
    """Run the notebook and return the process exit status."""
    args = parse_args(argv)

    output_path = Path(args.output)
    output_path.mkdir(parents=True, exist_ok=True)

    setup_notebook_logging(output_path, 'cnn_primer')
    global logger
    logger = get_notebook_logger('cnn_primer')

    logger.info("COMMAND LINE ARGUMENTS:")
    logger.info(f"  Config file: {args.config or 'packaged primer.yaml'}")
    logger.info(f"  Output directory: {args.output}")
    logger.info(f"  Lessons: {', '.join(args.lesson) if args.lesson else 'all'}")
    logger.info(f"  Train: {args.train}")
    logger.info(f"  Plots: {args.plots}")
    logger.info("-" * 80)

    try:
        config = get_primer_config(quiet=args.quiet, path=args.config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        logger.error(f"[red]Could not load configuration:[/red] {e}")
        return 2

    if args.epochs is not None:
        config.training.epochs = args.epochs
        logger.info(f"Epochs overridden by CLI: {args.epochs}")

    logger.info("=" * 50)
    logger.info("STAGE 1: LESSONS")
    logger.info("=" * 50)
    try:
        results = run_lessons(config, args.lesson)
    except ValueError as e:
        logger.error(f"[red]Lesson configuration is invalid:[/red] {e}")
        return 1
    for result in results:
        display_lesson(result, show_narration=not args.quiet)

    logger.info("=" * 50)
    logger.info("STAGE 2: SHAPE TRACE")
    logger.info("=" * 50)
    try:
        model = build_model(config.model)
    except ValueError as e:
        logger.error(f"[red]Layer stack cannot be built:[/red] {e}")
        return 1
    observed = describe_model(model, config.model.input_shape)
    display_shape_trace(model.trace, observed, title=f"{config.model.name}: volume after each layer")

    if args.plots:
        logger.info("=" * 50)
        logger.info("STAGE 3: DIAGRAMS")
        logger.info("=" * 50)
        for path in save_lesson_plots(config, output_path / "plots"):
            logger.info(f"  Saved: {path}")

    if args.train:
        logger.info("=" * 50)
        logger.info("STAGE 4: TRAINING")
        logger.info("=" * 50)
        try:
            run_training(config, model, output_path, args.plots)
        except (ValueError, RuntimeError) as e:
            logger.error(f"[red]Training failed:[/red] {e}")
            return 1

    failed = [r.name for r in results if not r.passed]
    if failed:
        logger.error(f"[red]Lesson checks failed:[/red] {', '.join(failed)}")
        return 1

    logger.info(f"[green]All {len(results)} lesson(s) passed[/green]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
