"""Database initialization and maintenance utilities."""

import logging

import click

from ios_scale.config import setup_logging
from ios_scale.db import SessionRepository, get_engine, init_db
from ios_scale.errors import StorageError

logger = logging.getLogger(__name__)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool):
    """Database management commands."""
    setup_logging(verbose=verbose)


@cli.command()
@click.option("--echo", is_flag=True, help="Echo SQL statements")
def init(echo: bool):
    """Initialize database schema.

    Creates all tables if they don't exist.
    Safe to run multiple times (won't drop existing data).

    Example:
        ios-scale-db init
        ios-scale-db init --echo  # Show SQL statements
    """
    try:
        engine = get_engine(echo=echo)
        init_db(engine)
        click.echo("✓ Database schema initialized successfully")
        click.echo(f"  Connected to: {engine.url}")
    except Exception as e:
        click.echo(f"✗ Database initialization failed: {e}", err=True)
        raise


@cli.command()
@click.option("--echo", is_flag=True, help="Echo SQL statements")
def check(echo: bool):
    """Check database connection.

    Example:
        ios-scale-db check
    """
    try:
        engine = get_engine(echo=echo)
        with engine.connect():
            click.echo("✓ Database connection successful")
            click.echo(f"  Connected to: {engine.url}")
    except Exception as e:
        click.echo(f"✗ Database connection failed: {e}", err=True)
        raise


@cli.command("empty-trash")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
def empty_trash(yes: bool):
    """Permanently delete every session in the trash.

    Example:
        ios-scale-db empty-trash --yes
    """
    engine = get_engine()
    init_db(engine)
    repository = SessionRepository(engine)
    if not yes:
        click.confirm("This permanently deletes all trashed sessions. Continue?", abort=True)
    try:
        count = repository.empty_trash()
    except StorageError as e:
        click.echo(f"✗ {e}", err=True)
        raise click.Abort() from e
    click.echo(f"✓ Deleted {count} session(s) from the trash")


def main():
    cli()


if __name__ == "__main__":
    main()
