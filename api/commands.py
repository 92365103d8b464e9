"""
Flask CLI commands:
    flask --app api seed-admin --email admin@example.com --password 12341234
"""
import click
from flask import current_app

from models.user import UserRole


def register_commands(app):
    @app.cli.command("seed-admin")
    @click.option("--email", required=True, help="Admin email address")
    @click.option("--password", required=True, help="Initial password (min 8 characters)")
    @click.option("--name", default=None, help="Display name")
    def seed_admin(email, password, name):
        """Create an active, verified ADMIN unless the email is taken."""
        users = current_app.extensions["auth"].users
        email = email.strip().lower()
        if users.find_by_email(email):
            click.echo(f"User {email} already exists, nothing to do")
            return
        if len(password) < 8:
            raise click.BadParameter("Password must be at least 8 characters long", param_hint="--password")
        user = users.create(
            {
                "email": email,
                "password": password,
                "name": name,
                "role": UserRole.ADMIN.value,
                "is_active": True,
                "is_verified": True,
            }
        )
        click.echo(f"Created admin {user.email} ({user.id})")
