"""
Training Module with Rich Terminal UI

This module drives the language model end to end (load, split, train, tune,
check, evaluate, sample) with progress bars, tables and log output rendered
by the Rich library.
"""

import logging
import random
from typing import Dict, List, Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import (
    BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn
)
from rich.table import Table

from .corpus import load_brown_corpus, split_corpus
from .model import NGramModel
from .smoothing import SmoothingMethod


console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def create_stats_table(stats: Dict) -> Table:
    """Create a Rich table displaying training statistics."""
    table = Table(box=box.ROUNDED, show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="green")
    table.add_column("Value", style="yellow", justify="right")

    for key, value in stats.items():
        display_key = key.replace('_', ' ').title()

        if isinstance(value, float):
            display_value = f"{value:,.4f}"
        elif isinstance(value, int):
            display_value = f"{value:,}"
        elif isinstance(value, list):
            display_value = ", ".join(f"{v:.2f}" if isinstance(v, float) else str(v)
                                      for v in value)
        else:
            display_value = str(value)

        table.add_row(display_key, display_value)

    return table


def train_model_cli(
    n: int = 3,
    smoothing: str = "fixed_interpolation",
    smoothing_params: Optional[Dict] = None,
    categories: Optional[List[str]] = None,
    validation_fraction: float = 0.1,
    test_fraction: float = 0.1,
    tuning: str = "grid",
    seed: Optional[int] = None,
) -> Dict:
    """
    Train an n-gram model on the Brown corpus with terminal output.

    Args:
        n: Order of the n-gram model
        smoothing: Smoothing method name
        smoothing_params: Extra smoother parameters (discount, cutoff, weights)
        categories: Brown corpus categories to use
        validation_fraction: Share of sentences used to tune weights
        test_fraction: Share of sentences used for evaluation
        tuning: Weight search method for validated interpolation
        seed: Seed for the corpus split

    Returns:
        Dictionary with the trained model and its train/validation/test data
    """
    smoothing_method = SmoothingMethod(smoothing.lower())

    console.print()
    console.print(Panel.fit(
        "[bold blue]N-gram Language Model Training[/bold blue]",
        border_style="blue"
    ))
    console.print()

    config_table = Table(box=box.SIMPLE, show_header=False)
    config_table.add_column("Setting", style="cyan")
    config_table.add_column("Value", style="white")
    config_table.add_row("Model Order (n)", str(n))
    config_table.add_row("Smoothing Method", smoothing_method.value)
    for key, value in (smoothing_params or {}).items():
        config_table.add_row(key.replace('_', ' ').title(), str(value))
    config_table.add_row("Categories", ", ".join(categories) if categories else "All")
    config_table.add_row("Validation / Test", f"{validation_fraction:.0%} / {test_fraction:.0%}")

    console.print(Panel(config_table, title="[bold]Configuration[/bold]", border_style="green"))
    console.print()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console
    ) as progress:

        task = progress.add_task("[cyan]Loading Brown corpus...", total=None)
        sentences, corpus_stats = load_brown_corpus(categories=categories)
        train, validation, test = split_corpus(
            sentences, validation_fraction, test_fraction, seed=seed)
        progress.update(task, completed=100, total=100)
        progress.remove_task(task)

        console.print(f"[green]✓[/green] Loaded {corpus_stats['num_sentences']:,} sentences "
                      f"({corpus_stats['total_tokens']:,} tokens): "
                      f"{len(train):,} train / {len(validation):,} validation / {len(test):,} test")
        console.print()

        model = NGramModel(n=n, smoothing=smoothing_method, smoothing_params=smoothing_params)

        train_task = progress.add_task("[cyan]Counting n-grams...", total=len(train))

        def update_progress(current, total):
            progress.update(train_task, completed=current)

        stats = model.train(train, progress_callback=update_progress)
        progress.remove_task(train_task)

    if model.smoother.tunable and validation:
        with console.status("[cyan]Tuning interpolation weights..."):
            model.tune_weights(validation, method=tuning)
        stats = model.training_stats

    console.print("[green]✓[/green] Training complete!")
    console.print()
    console.print(Panel(
        create_stats_table(stats),
        title="[bold]Training Statistics[/bold]",
        border_style="yellow"
    ))

    return {'model': model, 'train': train, 'validation': validation, 'test': test}


def evaluate_model_cli(model: NGramModel, test_sentences: List[List[str]],
                       rng: Optional[random.Random] = None) -> Dict:
    """
    Evaluate a model with terminal output.

    Args:
        model: Trained NGramModel
        test_sentences: Test sentences
        rng: Randomness for the mass-sum check

    Returns:
        Dictionary of evaluation metrics
    """
    console.print()
    console.print(Panel.fit("[bold blue]Model Evaluation[/bold blue]", border_style="blue"))
    console.print()

    with console.status("[cyan]Computing perplexity..."):
        perplexity = model.perplexity(test_sentences)
    with console.status("[cyan]Checking that distributions sum to one..."):
        mass_sum = model.check_mass_sum(rng=rng)

    results = {
        'perplexity': perplexity,
        'test_sentences': len(test_sentences),
        'worst_mass_sum': mass_sum,
    }

    console.print(Panel(
        create_stats_table(results),
        title="[bold]Evaluation Results[/bold]",
        border_style="green"
    ))

    return results


def show_generated_sentences(model: NGramModel, count: int = 5,
                             rng: Optional[random.Random] = None,
                             max_length: int = 50) -> List[List[str]]:
    """Print sentences sampled from the model."""
    console.print()
    console.print(Panel.fit("[bold]Generated Sentences[/bold]", border_style="magenta"))

    generated = []
    for i in range(count):
        sentence = model.generate_sentence(rng=rng, max_length=max_length)
        generated.append(sentence)
        console.print(f"  {i + 1:2}. {' '.join(sentence)}")
    console.print()

    return generated
