"""
Flask CLI commands for database management.

Commands:
- flask init-db: Create the tables and default settings
- flask snapshot-save: Force a snapshot write (snapshot backend)
- flask seed-demo: Insert a few demo products
"""

import click

from kasir.database import get_storage
from kasir.exceptions import KasirError
from kasir.services import product_service
from kasir.services.schema_service import init_schema, list_tables

DEMO_PRODUCTS = [
    ('Mie Instan', 3500, 100),
    ('Sabun Mandi', 4500, 50),
    ('Shampo Sachet', 1500, 200),
    ('Air Mineral 600ml', 4000, 48),
]


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create the tables and seed the default settings (idempotent)."""
        try:
            storage = get_storage()
            init_schema(storage, store_name=app.config.get('STORE_NAME'))
        except KasirError as e:
            click.echo(click.style(f'Database initialization failed: {e.message}', fg='red'))
            raise SystemExit(1)
        click.echo(click.style(f'Database ready ({storage.backend})', fg='green'))
        click.echo(f"   Tables: {', '.join(list_tables(storage))}")

    @app.cli.command('snapshot-save')
    def snapshot_save():
        """Write the in-memory database to the snapshot store now."""
        storage = get_storage()
        if storage.backend != 'snapshot':
            click.echo(click.style('The native backend does not use snapshots.', fg='yellow'))
            return
        if storage.persist():
            click.echo(click.style(f'Snapshot saved under {storage.snapshot_key}', fg='green'))
        else:
            click.echo(click.style('Snapshot could not be saved, see the log.', fg='red'))
            raise SystemExit(1)

    @app.cli.command('seed-demo')
    @click.option('--force', is_flag=True, help='Seed even if products already exist')
    def seed_demo(force):
        """Insert a few demo products."""
        storage = get_storage()
        if product_service.list_products(storage) and not force:
            click.echo(click.style('Products already exist, use --force to seed anyway.', fg='yellow'))
            return
        for name, price, stock in DEMO_PRODUCTS:
            product_id = product_service.create_product(storage, name, price, stock)
            click.echo(f'   {name}: {product_id}')
        click.echo(click.style(f'{len(DEMO_PRODUCTS)} demo products created', fg='green'))
