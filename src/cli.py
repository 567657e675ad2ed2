"""CLI interface for docreader."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from docreader.config import DocReaderConfig, load_config, merge_cli_overrides
from docreader.llm import ClaudeOracle
from docreader.pipeline import (
    ArticleProcessor,
    ProcessingQueue,
    ProcessingResult,
    summarize_result,
)
from docreader.vault import FileSystemVault, normalize_path

app = typer.Typer(
    name="docreader",
    help="Enrich web-clipped articles in a markdown vault: authors, tags, filing, related links.",
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from docreader import __version__

        console.print(f"docreader {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
) -> None:
    """DocReader - enrich clipped articles."""
    _setup_logging(verbose)


VaultOption = Annotated[
    Optional[Path],
    typer.Option("--vault", help="Vault root directory (overrides config)."),
]
ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to a TOML config file."),
]
ModelOption = Annotated[
    Optional[str],
    typer.Option("--model", "-m", help="Claude model (e.g. sonnet, haiku, or a full model ID)."),
]
UseCliOption = Annotated[
    Optional[bool],
    typer.Option("--use-cli/--no-use-cli", help="Call the `claude` CLI instead of the API."),
]


def _resolve_config(
    config_path: Optional[Path],
    vault: Optional[Path],
    model: Optional[str],
    use_cli: Optional[bool],
) -> DocReaderConfig:
    config = load_config(config_path)
    return merge_cli_overrides(
        config,
        vault=str(vault) if vault is not None else None,
        model=model,
        use_cli=use_cli,
    )


def _build_queue(config: DocReaderConfig) -> ProcessingQueue:
    store = FileSystemVault(Path(config.vault.path))
    processor = ArticleProcessor(store, ClaudeOracle(config.claude), config)
    return ProcessingQueue(processor, store)


def _vault_relative(path: Path, vault_root: Path) -> str:
    """Accept either a vault-relative path or a filesystem path inside the vault."""
    resolved = path if path.is_absolute() else Path.cwd() / path
    try:
        return resolved.resolve().relative_to(vault_root.resolve()).as_posix()
    except ValueError:
        return normalize_path(str(path))


def _print_result(result: ProcessingResult) -> None:
    style = "green" if result.success and not result.errors else "yellow"
    if not result.success:
        style = "red"
    console.print(f"[{style}]{escape(summarize_result(result))}[/{style}]")
    for error in result.errors:
        console.print(f"  [dim]- {escape(error)}[/dim]")


@app.command()
def process(
    path: Annotated[Path, typer.Argument(help="Article to process (vault-relative or filesystem path).")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Process even if not a new web clip."),
    ] = False,
    vault: VaultOption = None,
    config_path: ConfigOption = None,
    model: ModelOption = None,
    use_cli: UseCliOption = None,
) -> None:
    """Enrich a single article."""
    config = _resolve_config(config_path, vault, model, use_cli)
    queue = _build_queue(config)
    rel_path = _vault_relative(path, Path(config.vault.path))

    result = queue.submit(rel_path, force=force)
    if result is None:
        console.print(
            f"[yellow]Skipped {rel_path}: not an unprocessed web clip "
            "(use --force to process anyway).[/yellow]"
        )
        return

    _print_result(result)
    if not result.success:
        raise typer.Exit(1)


@app.command()
def scan(
    vault: VaultOption = None,
    config_path: ConfigOption = None,
    model: ModelOption = None,
    use_cli: UseCliOption = None,
) -> None:
    """Process every unprocessed web clip under the articles folder."""
    config = _resolve_config(config_path, vault, model, use_cli)
    queue = _build_queue(config)

    results = queue.scan()
    if not results:
        console.print("[dim]No unprocessed articles found.[/dim]")
        return

    failures = 0
    for result in results:
        _print_result(result)
        if not result.success:
            failures += 1
    console.print(f"Processed {len(results)} article(s).")

    if failures:
        console.print(f"[red]{failures} article(s) failed.[/red]")
        raise typer.Exit(1)


@app.command(name="config")
def config_cmd(
    vault: VaultOption = None,
    config_path: ConfigOption = None,
    model: ModelOption = None,
    use_cli: UseCliOption = None,
) -> None:
    """Show the effective configuration."""
    config = _resolve_config(config_path, vault, model, use_cli)
    data = config.model_dump()
    if data["claude"]["api_key"]:
        data["claude"]["api_key"] = "********"

    table = Table(title="docreader configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for section, values in data.items():
        for key, value in values.items():
            table.add_row(f"{section}.{key}", str(value))
    console.print(table)


if __name__ == "__main__":
    app()
