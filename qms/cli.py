"""
Flask CLI commands.

    flask seed-business-areas [NAMES...]
    flask create-user --username jane --email jane@example.com \
        --business-area "Quality Management" --grant Finance
"""

import logging

import click
from flask.cli import with_appcontext

from qms.models import db
from qms.services import access_service

logger = logging.getLogger(__name__)


@click.command("seed-business-areas")
@click.argument("names", nargs=-1)
@with_appcontext
def seed_business_areas_cmd(names):
    """Insert the default business areas (or NAMES) if missing."""
    count = access_service.seed_business_areas(names or access_service.DEFAULT_BUSINESS_AREAS)
    db.session.commit()
    click.echo(f"Seeded {count} new business area(s).")


@click.command("create-user")
@click.option("--username", required=True)
@click.option("--email", required=True)
@click.password_option()
@click.option("--business-area", default=None, help="Primary business area")
@click.option("--grant", "grants", multiple=True, help="Additional business area (repeatable)")
@with_appcontext
def create_user_cmd(username, email, password, business_area, grants):
    """Create a user with a primary business area and optional grants."""
    user = access_service.create_user(username, email, password, business_area, grants)
    db.session.commit()
    logger.info("Created user %s", user.id, extra={"user_id": user.id})
    click.echo(f"Created user {user.id} <{user.email}>")


def register_cli(app):
    app.cli.add_command(seed_business_areas_cmd)
    app.cli.add_command(create_user_cmd)
