"""Management commands for the groombook backend."""

from __future__ import annotations

import json
import logging

import click

from groombook.core.security import create_user_token
from groombook.db.seed import seed_demo_data
from groombook.db.session import create_tables
from groombook.domain.entities import UserRole
from groombook.main import create_app

logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

# Create the Flask application once so commands can share configuration.
app = create_app()


@click.group()
def cli() -> None:
    """Entry point for management commands."""


@cli.command("create-tables")
def create_tables_command() -> None:
    """Create all database tables (idempotent)."""
    with app.app_context():
        create_tables()
    click.echo("Tables created.")


@cli.command("seed")
def seed_command() -> None:
    """Seed a demo business with hours, services, duration rules and pets."""
    with app.app_context():
        create_tables()
        ids = seed_demo_data()
    click.echo(json.dumps(ids, indent=2))


@cli.command("issue-token")
@click.option("--user-id", type=int, required=True, help="Subject user ID.")
@click.option(
    "--role",
    type=click.Choice([role.value for role in UserRole]),
    required=True,
    help="Role claim of the token.",
)
@click.option("--email", default=None, help="Optional email claim.")
def issue_token(user_id: int, role: str, email: str | None) -> None:
    """Print a bearer token for local testing."""
    click.echo(create_user_token(user_id, role, email=email))


if __name__ == "__main__":
    cli()
