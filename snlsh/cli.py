"""Command-line interface for the signature index."""

import sys
from dataclasses import replace
from pathlib import Path
from typing import List, NoReturn, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import ConfigManager, LSHConfig
from .core.errors import SNLSHError
from .core.types import Neighbor, Sentence
from .semantic.lsh_index import SignatureLSH
from .semantic.simhash import band_slices, format_fingerprint, simhash64
from .utils.logging_setup import get_logger, log_operation, setup_logging

console = Console()
logger = get_logger("snlsh")


def _load_config(config_path: Optional[str], bands: Optional[int]) -> LSHConfig:
    config = ConfigManager(config_path).config
    if bands is not None:
        config = replace(config, bands=bands)
    return config


def _sentence(line: str, config: LSHConfig) -> Sentence:
    return Sentence.from_line(line, config.make_tokenizer())


def _build_index(corpus: Path, config: LSHConfig) -> "SignatureLSH[int]":
    """Index every non-blank line of ``corpus`` with its 1-based line number."""
    index: SignatureLSH[int] = SignatureLSH.from_config(config)
    with open(corpus, "r", encoding="utf-8") as f:
        items = [
            (_sentence(line.rstrip("\n"), config), lineno)
            for lineno, line in enumerate(f, start=1)
            if line.strip()
        ]
    index.put_all(items)
    logger.debug(f"Indexed {len(index)} lines from {corpus}")
    return index


def _fail(message: str) -> NoReturn:
    console.print(f"[red]✗ {escape(message)}[/red]")
    sys.exit(1)


def _neighbor_table(title: str, neighbors: List[Neighbor]) -> Table:
    table = Table(title=title)
    table.add_column("Line", justify="right", style="cyan")
    table.add_column("Distance", justify="right", style="magenta")
    table.add_column("Text")
    for n in neighbors:
        table.add_row(str(n.value), str(int(n.distance)), escape(n.key.line) if n.key else "")
    return table


@click.group()
@click.version_option(__version__, prog_name="snlsh")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """Approximate nearest-neighbour search over sentences with SimHash LSH."""
    if verbose:
        setup_logging("snlsh", level="DEBUG")


@cli.command()
@click.argument("corpus", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("text")
@click.option("--k", "k", type=int, default=None, help="Number of neighbours (default from config); not with --radius")
@click.option("--radius", "-r", type=float, default=None, help="Return all neighbours within this distance; not with --k")
@click.option("--bands", "-b", type=int, default=None, help="Number of LSH bands")
@click.option("--config", "config_path", type=click.Path(), default=None, help="Path to config file")
@click.option("--include-identical", is_flag=True, help="Do not skip corpus lines equal to TEXT")
def query(corpus, text, k, radius, bands, config_path, include_identical):
    """Find lines in CORPUS closest to TEXT."""
    if k is not None and radius is not None:
        raise click.UsageError("--k and --radius cannot be combined")
    log_operation(logger, "query", corpus=str(corpus))
    try:
        config = _load_config(config_path, bands)
        if include_identical:
            config = replace(config, identical_excluded=False)
        index = _build_index(corpus, config)
        q = _sentence(text, config)

        if radius is not None:
            neighbors = sorted(index.range(q, radius))
            title = f"Lines within distance {radius:g}"
        else:
            neighbors = index.knn(q, k if k is not None else config.default_k)
            title = f"{len(neighbors)} nearest lines"
    except SNLSHError as e:
        _fail(e.message)
    except UnicodeDecodeError as e:
        _fail(f"Cannot decode {corpus} as UTF-8: {e.reason} at byte {e.start}")

    if not neighbors:
        console.print("[yellow]No neighbours found[/yellow]")
        return
    console.print(_neighbor_table(title, neighbors))


@cli.command()
@click.argument("corpus", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--bands", "-b", type=int, default=None, help="Number of LSH bands")
@click.option("--config", "config_path", type=click.Path(), default=None, help="Path to config file")
def stats(corpus, bands, config_path):
    """Show bucket statistics for an index built over CORPUS."""
    try:
        config = _load_config(config_path, bands)
        index = _build_index(corpus, config)
    except SNLSHError as e:
        _fail(e.message)
    except UnicodeDecodeError as e:
        _fail(f"Cannot decode {corpus} as UTF-8: {e.reason} at byte {e.start}")

    table = Table(title=f"Index stats: {corpus.name}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for name, value in index.stats().as_dict().items():
        table.add_row(name, f"{value:g}")
    console.print(table)


@cli.command()
@click.argument("text")
@click.option("--bands", "-b", type=int, default=4, show_default=True, help="Bands to split into")
def fingerprint(text, bands):
    """Print the 64-bit fingerprint of TEXT and its band slices."""
    try:
        config = LSHConfig(bands=bands)
    except SNLSHError as e:
        _fail(e.message)

    sentence = _sentence(text, config)
    fp = simhash64(sentence.tokens)
    console.print(f"tokens: {list(sentence.tokens)}", markup=False)
    console.print(f"hex:    {format_fingerprint(fp)}")
    console.print(f"bin:    {fp:064b}")
    width = 64 // bands
    slices = ", ".join(f"{s:0{width}b}" for s in band_slices(fp, bands))
    console.print(f"bands:  [{slices}]", markup=False)


@cli.group(name="config")
def config_group():
    """Manage index configuration."""
    pass


@config_group.command(name="init")
@click.option("--path", type=click.Path(), default=".snlsh.yml", help="Path for config file")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(path, force):
    """Write a default configuration file."""
    config_path = Path(path)
    if config_path.exists() and not force:
        if not click.confirm(f"Config file {path} already exists. Overwrite?"):
            console.print("[yellow]Aborted[/yellow]")
            return

    ConfigManager(config_path).save_config(LSHConfig(), config_path)
    console.print(f"[green]✓ Created config file at {path}[/green]")


@config_group.command(name="show")
@click.option("--path", type=click.Path(exists=True), help="Path to config file")
def config_show(path):
    """Display the configuration in effect."""
    try:
        config = ConfigManager(path).config
    except SNLSHError as e:
        _fail(e.message)

    table = Table(title="snlsh configuration")
    table.add_column("Parameter", style="cyan")
    table.add_column("Value")
    for name, value in config.to_dict().items():
        table.add_row(name, str(value))
    console.print(table)


def main():
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
