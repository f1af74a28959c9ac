"""Click CLI entry point for the jose command.

Handles argument parsing, config loading, and result display. All business
logic is delegated to ``extract``, ``pipeline``, ``categorizer`` and
``config``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from jose_import import __version__


def _configure_logging(verbose: bool, debug: bool) -> None:
    """Set up logging based on verbosity flags."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        force=True,
    )


def _load_config_or_exit(root: Path):
    from jose_import.config import load_config

    try:
        return load_config(root)
    except FileNotFoundError as exc:
        click.echo(
            f"Error: {exc}. Run 'jose init' to create the project structure.",
            err=True,
        )
        sys.exit(1)
    except Exception as exc:
        click.echo(f"Error loading configuration: {exc}", err=True)
        sys.exit(1)


def _resolve_user(user: str | None, default_user: str) -> str:
    resolved = user or default_user
    if not resolved:
        click.echo(
            "Error: no user given. Pass --user or set default_user in config.toml.",
            err=True,
        )
        sys.exit(1)
    return resolved


def _run_import(text: str, user: str | None, no_ai: bool, verbose: bool) -> None:
    """Shared body of the ``import`` and ``text`` commands."""
    root = Path.cwd()
    config = _load_config_or_exit(root)
    user_id = _resolve_user(user, config.default_user)

    from jose_import.llm import NullAdapter, make_adapter
    from jose_import.pipeline import process_statement_text
    from jose_import.storage import JsonFileStorage

    if no_ai or config.llm_provider == "none":
        llm_adapter = NullAdapter()
        if verbose:
            click.echo("AI fallback disabled.")
    else:
        try:
            llm_adapter = make_adapter(
                config.llm_provider,
                config.llm_model,
                config.llm_api_key_env,
                config.llm_timeout,
            )
        except KeyError:
            click.echo(f"Error: unknown AI provider {config.llm_provider!r}", err=True)
            sys.exit(1)
        if verbose:
            click.echo(f"Using AI: {config.llm_provider} ({config.llm_model})")

    storage = JsonFileStorage(config.data_path(root))
    result = process_statement_text(text, user_id, storage, llm_adapter)
    _print_result(result, verbose)
    if not result.success:
        sys.exit(1)


def _print_result(result, verbose: bool) -> None:
    click.echo()
    if result.success:
        click.echo(result.message)
    else:
        click.echo(f"Error: {result.error}", err=True)

    if result.stats is not None:
        click.echo()
        click.echo("== Import Summary ==")
        click.echo(f"  Parsed locally:   {result.stats.local_parsed}")
        click.echo(f"  Parsed by AI:     {result.stats.ai_parsed}")
        click.echo(f"  Total extracted:  {result.stats.total}")
    if result.duplicates:
        click.echo(f"  Duplicates:       {len(result.duplicates)}")

    if verbose and result.transactions:
        click.echo()
        for txn in result.transactions:
            category = f"{txn.category}:{txn.subcategory}" if txn.subcategory else txn.category
            click.echo(f"  {txn.date.isoformat()}  {txn.amount:>12}  {txn.description}  [{category}]")

    if result.warnings:
        click.echo()
        click.echo(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            click.echo(f"  - {warning}")


@click.group()
@click.version_option(version=__version__, prog_name="jose")
def cli() -> None:
    """Import bank statements into the José personal finance store."""


@cli.command("import")
@click.argument("file", type=click.Path(dir_okay=False))
@click.option("--user", default=None, help="User id the transactions belong to.")
@click.option("--no-ai", is_flag=True, default=False, help="Skip the AI fallback parser.")
@click.option("--verbose", is_flag=True, default=False, help="Detailed progress output.")
@click.option("--debug", is_flag=True, default=False, help="Developer-level diagnostics.")
def import_statement(file: str, user: str | None, no_ai: bool, verbose: bool, debug: bool) -> None:
    """Import a statement file (.ofx, .csv, .pdf or .txt)."""
    _configure_logging(verbose, debug)

    from jose_import.exceptions import ExtractionError
    from jose_import.extract import extract_text

    try:
        text = extract_text(Path(file))
    except ExtractionError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    _run_import(text, user, no_ai, verbose)


@cli.command("text")
@click.option("--user", default=None, help="User id the transactions belong to.")
@click.option("--no-ai", is_flag=True, default=False, help="Skip the AI fallback parser.")
@click.option("--verbose", is_flag=True, default=False, help="Detailed progress output.")
@click.option("--debug", is_flag=True, default=False, help="Developer-level diagnostics.")
def import_text(user: str | None, no_ai: bool, verbose: bool, debug: bool) -> None:
    """Import statement text read from standard input."""
    _configure_logging(verbose, debug)
    text = click.get_text_stream("stdin").read()
    _run_import(text, user, no_ai, verbose)


@cli.command()
@click.option("--user", default=None, help="User id whose transactions are corrected.")
@click.option("--description", required=True, help="Transaction description to correct.")
@click.option("--category", required=True, help="Correct category.")
@click.option("--subcategory", default=None, help="Correct subcategory.")
@click.option(
    "--update-similar",
    is_flag=True,
    default=False,
    help="Also rewrite the user's transactions with this exact description.",
)
def learn(
    user: str | None,
    description: str,
    category: str,
    subcategory: str | None,
    update_similar: bool,
) -> None:
    """Record a category correction for a transaction description."""
    _configure_logging(verbose=False, debug=False)
    root = Path.cwd()
    config = _load_config_or_exit(root)
    user_id = _resolve_user(user, config.default_user)

    from jose_import.categorizer import learn_correction
    from jose_import.exceptions import StorageError
    from jose_import.storage import JsonFileStorage

    storage = JsonFileStorage(config.data_path(root))
    try:
        result = learn_correction(
            storage,
            user_id,
            description,
            category,
            subcategory=subcategory,
            update_similar=update_similar,
        )
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except StorageError as exc:
        click.echo(f"Error during learning: {exc}", err=True)
        sys.exit(1)

    click.echo()
    click.echo("== Learn Summary ==")
    click.echo(f"  Hint:                  {result.description_slug} -> {category}")
    click.echo(f"  Votes:                 {result.votes}")
    click.echo(f"  Type:                  {result.type}")
    click.echo(f"  Transactions updated:  {result.updated}")
    click.echo()


@cli.command()
@click.option(
    "--dir", "target_dir", default=".", type=click.Path(), help="Directory to initialize."
)
@click.option("--user", default="", help="Default user id for imports.")
def init(target_dir: str, user: str) -> None:
    """Initialize a new project directory with a default config.toml."""
    from jose_import.config import initialize

    target = Path(target_dir).resolve()

    try:
        initialize(target, default_user=user)
    except Exception as exc:
        click.echo(f"Error initializing project: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Initialized José import project in {target}")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Interface to bind.")
@click.option("--port", default=8000, type=int, help="Port to listen on.")
@click.option("--verbose", is_flag=True, default=False, help="Detailed progress output.")
def serve(host: str, port: int, verbose: bool) -> None:
    """Run the webhook server."""
    _configure_logging(verbose, debug=False)
    root = Path.cwd()
    config = _load_config_or_exit(root)

    import uvicorn

    from jose_import.webhook import create_app

    app = create_app(config=config, root=root)
    uvicorn.run(app, host=host, port=port)
