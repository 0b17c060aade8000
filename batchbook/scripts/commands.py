"""Operational CLI commands.

Usage:
    flask outbox-dispatch                 # publish ready outbox messages
    flask outbox-dispatch --limit 200 --retry-minutes 1
    flask create-admin --email admin@example.com --password secret123
"""

from __future__ import annotations

from datetime import timedelta

import click
from flask.cli import with_appcontext
from sqlalchemy import func


@click.command("outbox-dispatch")
@click.option("--limit", "-l", type=int, default=50, show_default=True, help="Max messages per batch")
@click.option("--retry-minutes", type=int, default=5, show_default=True, help="Delay before a failed message is retried")
@click.option("--user", "-u", type=int, help="Only dispatch messages for this user ID")
@with_appcontext
def outbox_dispatch_command(limit: int, retry_minutes: int, user: int | None):
    """Publish pending outbox messages to the in-process event bus."""
    from batchbook.platform.outbox import dispatch_ready

    sent = dispatch_ready(limit=limit, retry_in=timedelta(minutes=retry_minutes), user_id=user)
    click.echo(f"Dispatched {len(sent)} outbox message(s).")


@click.command("create-admin")
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", default="Admin", show_default=True)
@with_appcontext
def create_admin_command(email: str, password: str, name: str):
    """Create an admin user, or promote an existing account."""
    from batchbook.core.auth.password import hash_password
    from batchbook.core.users.models import ROLE_ADMIN, User
    from batchbook.extensions import db

    normalized = email.strip().lower()
    user = User.query.filter(func.lower(User.email) == normalized).first()
    if user:
        user.role = ROLE_ADMIN
        click.echo(f"Promoted {normalized} to admin.")
    else:
        user = User(name=name, email=normalized, role=ROLE_ADMIN, password_hash=hash_password(password))
        db.session.add(user)
        click.echo(f"Created admin {normalized}.")
    db.session.commit()


def register_commands(app):
    """Register CLI commands with the app."""
    app.cli.add_command(outbox_dispatch_command)
    app.cli.add_command(create_admin_command)
