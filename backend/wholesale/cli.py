# Overview: Flask CLI command groups for bootstrap, schema inspection, and tenant setup.

# backend/wholesale/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Use: python -m flask --app wholesale <group> <command> [options]
# - Against an empty database set SCHEMA_CHECK_ON_STARTUP=false so the app
#   can boot before the tables exist.
#
# Database:
# - python -m flask --app wholesale db-tools init
#   Create all tables (dev/test; production uses `flask db upgrade`) and verify the schema.
# - python -m flask --app wholesale db-tools verify-schema
#   Compare the live schema with the contract; exits non-zero when required columns are missing.
# - python -m flask --app wholesale db-tools reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Tenants and buyers:
# - python -m flask --app wholesale catalog add-distributor --name "Acme Wholesale" --code ACME
# - python -m flask --app wholesale catalog add-vendor --name "Corner Shop" --email shop@example.com
# - python -m flask --app wholesale catalog link-vendor --distributor-id 1 --vendor-id 1
#   Create the distributor/vendor relationship required before the vendor can order.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Distributor, Vendor
from .services.schema_service import SchemaContractError, inspect_schema, reset_schema_contract, verify_schema
from .services.tenant_service import TenantAccessError, link_vendor


@click.group('db-tools')
def db_tools_group():
    """Schema bootstrap and inspection commands."""


@db_tools_group.command('init')
@with_appcontext
def init_db():
    """Create all tables and verify them against the schema contract."""
    click.echo("BUILD  Creating all tables...")
    db.create_all()
    reset_schema_contract()
    try:
        contract = verify_schema()
    except SchemaContractError as exc:
        raise click.ClickException(f"{exc}: {exc.details.get('missing_required')}")
    click.echo(f"PASS Schema {contract.version} ready.")


@db_tools_group.command('verify-schema')
@with_appcontext
def verify_schema_cli():
    """Report missing required/optional columns."""
    contract = inspect_schema()
    click.echo(f"Schema contract: {contract.version}")

    for table, columns in sorted(contract.missing_optional.items()):
        click.echo(f"WARN {table}: optional columns missing: {', '.join(columns)}")
    for table, columns in sorted(contract.missing_required.items()):
        click.echo(f"FAIL {table}: required columns missing: {', '.join(columns)}")

    if not contract.ok:
        raise click.ClickException("Database schema is behind the application; run migrations")
    click.echo("PASS Required columns present.")


@db_tools_group.command('reset-db')
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
    reset_schema_contract()

    click.echo("PASS Database reset complete.")


@click.group('catalog')
def catalog_group():
    """Distributor (tenant) and vendor (buyer) setup commands."""


@catalog_group.command('add-distributor')
@click.option('--name', required=True, help='Distributor name')
@click.option('--code', required=True, help='Share code (unique)')
@with_appcontext
def add_distributor(name, code):
    """Create a new distributor (tenant)."""
    existing = db.session.query(Distributor).filter_by(code=code).first()
    if existing:
        click.echo(f"FAIL Distributor with code '{code}' already exists")
        return

    distributor = Distributor(name=name, code=code, is_active=True)
    db.session.add(distributor)
    db.session.commit()

    click.echo(f"PASS Created distributor: {distributor.name} (ID: {distributor.id}, Code: {distributor.code})")


@catalog_group.command('add-vendor')
@click.option('--name', required=True, help='Vendor name')
@click.option('--email', help='Contact email')
@with_appcontext
def add_vendor(name, email):
    """Create a new vendor account."""
    vendor = Vendor(name=name, email=email)
    db.session.add(vendor)
    db.session.commit()

    click.echo(f"PASS Created vendor: {vendor.name} (ID: {vendor.id})")


@catalog_group.command('link-vendor')
@click.option('--distributor-id', type=int, required=True, help='Distributor ID')
@click.option('--vendor-id', type=int, required=True, help='Vendor ID')
@with_appcontext
def link_vendor_cli(distributor_id, vendor_id):
    """Link a vendor to a distributor (idempotent)."""
    try:
        link = link_vendor(distributor_id, vendor_id)
    except TenantAccessError as exc:
        raise click.ClickException(str(exc))

    click.echo(f"PASS Vendor {link.vendor_id} linked to distributor {link.distributor_id}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(db_tools_group)
    app.cli.add_command(catalog_group)
