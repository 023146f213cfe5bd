# Overview: Flask CLI command groups for bootstrap and admin account maintenance.

# Usage (from backend/, with FLASK_APP=wsgi.py):
#   flask system init [--username admin --password admin123]
#       create tables; add a default admin when the admin table is empty
#   flask system reset-db --yes
#       drop and recreate every table (local development only)
#   flask admins list
#   flask admins create --username alice --email alice@example.com --password "..."
#   flask admins deactivate alice    (deactivated admins cannot log in)
#   flask admins activate alice

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Admin
from .services.auth_service import create_admin, set_admin_active


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--username', default='admin', help='Default admin username')
@click.option('--password', default='admin123', help='Default admin password')
@with_appcontext
def init_system(username, password):
    """
    Create all tables and a default admin account.

    The admin is only created when the admin table is empty.

    The default password is only meant for a first local login.
    """
    click.echo("START Initializing catalog admin...")

    db.create_all()
    click.echo("PASS Tables created")

    if db.session.query(Admin).count() > 0:
        click.echo("WARN  Admin accounts already exist, skipping default admin...")
        return

    admin = create_admin(username=username, password=password)
    click.echo(f"PASS Created admin: {admin.username} (ID: {admin.id})")
    click.echo("WARN  Change this password before exposing the console.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@with_appcontext
def reset_db(yes):
    """Drop and recreate every table. All products and admins are lost."""
    if not yes:
        click.confirm("WARN Every product, image record and admin will be deleted. Continue?", abort=True)

    db.drop_all()
    db.create_all()
    click.echo("PASS Schema recreated. Run 'flask system init' to add an admin.")


@click.group('admins')
def admins_group():
    """Admin account commands."""


@admins_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', default='', help='Email address (optional)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_admin_cli(username, email, password):
    """Create a new admin account."""
    try:
        admin = create_admin(username=username, password=password, email=email or None)
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created admin: {admin.username} (ID: {admin.id})")


@admins_group.command('list')
@with_appcontext
def list_admins():
    """List all admins."""
    admins = db.session.query(Admin).order_by(Admin.id.asc()).all()

    if not admins:
        click.echo("No admins found. Run 'python -m flask system init' first.")
        return

    click.echo(f"{'ID':<6} {'Username':<24} {'Email':<32} {'Active':<6}")
    click.echo("-" * 70)
    for admin in admins:
        active = "yes" if admin.is_active else "no"
        click.echo(f"{admin.id:<6} {admin.username:<24} {admin.email or '-':<32} {active:<6}")


@admins_group.command('deactivate')
@click.argument('username')
@with_appcontext
def deactivate_admin(username):
    """Deactivate an admin account."""
    admin = set_admin_active(username, False)
    if admin is None:
        raise click.ClickException(f"Admin '{username}' not found")
    click.echo(f"PASS Deactivated admin: {admin.username}")


@admins_group.command('activate')
@click.argument('username')
@with_appcontext
def activate_admin(username):
    """Reactivate an admin account."""
    admin = set_admin_active(username, True)
    if admin is None:
        raise click.ClickException(f"Admin '{username}' not found")
    click.echo(f"PASS Activated admin: {admin.username}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(admins_group)
