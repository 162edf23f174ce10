# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/sabor/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to sabor (PowerShell: $env:FLASK_APP="sabor").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Operators:
# - python -m flask operators list
#   List operators with active status and last login.
# - python -m flask operators create --name "Operador Master" --login operador.master --password "Password123!"
#   Create an operator (prompts if options are omitted).
# - python -m flask operators deactivate operador.master
#   Disable an operator; their session tokens stop working immediately.
#
# Catalog:
# - python -m flask catalog seed
#   Register the default menu (skips barcodes that already exist).
# - python -m flask catalog list
#   Print the catalog with prices and on-hand quantities.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Operator, Product
from .services.auth_service import create_operator, deactivate_operator, PasswordValidationError
from .services.products_service import seed_catalog, list_products
from .validation import ConflictError, NotFoundError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create the database schema.

    Safe to run repeatedly: existing tables are left alone. For managed
    schema changes use `flask db upgrade` instead.
    """
    click.echo("START Initializing Sabor POS database...")
    db.create_all()
    operator_count = db.session.query(Operator).count()
    product_count = db.session.query(Product).count()
    click.echo(f"PASS Schema ready ({operator_count} operators, {product_count} products)")
    if operator_count == 0:
        click.echo("\nNext: python -m flask operators create --name ... --login ... --password ...")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask operators create' to add an operator.")


@click.group('operators')
def operators_group():
    """Operator account management."""


@operators_group.command('list')
@with_appcontext
def list_operators():
    """List all operators."""
    operators = db.session.query(Operator).order_by(Operator.id.asc()).all()

    if not operators:
        click.echo("No operators found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<30} {'Login':<25} {'Active':<8} {'Last login'}")
    click.echo("="*80)

    for operator in operators:
        active_str = "Yes" if operator.is_active else "No"
        last_login = operator.to_dict()["last_login_at"] or "-"
        click.echo(f"{operator.id:<5} {operator.name:<30} {operator.login:<25} {active_str:<8} {last_login}")

    click.echo("="*80 + "\n")


@operators_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--login', prompt=True, help='Login (case-insensitive, unique)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_operator_cli(name, login, password):
    """Create an operator account."""
    try:
        operator = create_operator(name=name, login=login, password=password)
    except PasswordValidationError as e:
        raise click.ClickException(f"Password validation failed: {e}")
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created operator: {operator.login} (ID: {operator.id})")


@operators_group.command('deactivate')
@click.argument('login')
@with_appcontext
def deactivate_operator_cli(login):
    """Disable an operator account."""
    try:
        operator = deactivate_operator(login)
    except NotFoundError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Deactivated operator: {operator.login} (ID: {operator.id})")


@click.group('catalog')
def catalog_group():
    """Product catalog bootstrap and inspection."""


@catalog_group.command('seed')
@with_appcontext
def seed_catalog_cli():
    """Register the default menu with its starting stock."""
    created, skipped = seed_catalog()

    for product in created:
        click.echo(f"PASS Created {product.name} ({product.barcode}) qty {product.quantity_on_hand}")
    for barcode in skipped:
        click.echo(f"WARN  Barcode {barcode} already registered, skipping...")

    click.echo(f"\nDONE {len(created)} created, {len(skipped)} skipped")


@catalog_group.command('list')
@with_appcontext
def list_catalog_cli():
    """Print the catalog."""
    products = list_products()["items"]

    if not products:
        click.echo("No products found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Barcode':<16} {'Name':<32} {'Price':>10} {'On hand':>10}")
    click.echo("="*80)

    for product in products:
        click.echo(
            f"{product['id']:<5} {product['barcode']:<16} {product['name']:<32} "
            f"{product['price']:>10} {product['quantity_on_hand']:>10}"
        )

    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(operators_group)
    app.cli.add_command(catalog_group)
