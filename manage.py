import click
from flask import current_app

from classes.attempt_manager import AttemptManager
from models import db
from models.users import User


def register_commands(app):
    """Flask CLI commands: `flask --app app:create_app <command>`."""

    @app.cli.command("create-admin")
    @click.option("--username", required=True)
    @click.option("--email", required=True)
    @click.option("--full-name", default="Administrator")
    @click.password_option()
    def create_admin(username, email, full_name, password):
        if User.query.filter((User.username == username) | (User.email == email)).first():
            click.echo("User already exists!")
            return
        admin = User(username=username, email=email, full_name=full_name, role="admin")
        admin.set_password(password)
        db.session.add(admin)
        db.session.commit()
        click.echo(f"Admin {username} created.")

    @app.cli.command("abandon-stale-attempts")
    @click.option("--older-than", "older_than", type=int, default=None,
                  help="Minutes past the deadline before an open attempt is abandoned.")
    def abandon_stale_attempts(older_than):
        if older_than is None:
            older_than = current_app.config["QUIZ_STALE_ATTEMPT_MINUTES"]
        count = AttemptManager.abandon_stale(older_than)
        click.echo(f"{count} attempts marked as abandoned.")
