"""
Flask CLI commands for store maintenance.

Commands:
- flask seed-demo: Fill an empty catalog with demo products
- flask export-backup PATH: Write a backup file
- flask import-backup PATH: Replace the store with a backup file
"""

import click
from decimal import Decimal

from minimart.models import Product

DEMO_PRODUCTS = [
    Product(id='8850987123456', barcode='8850987123456', name='Instant noodles, pork (60g)',
            price=Decimal('6.00'), cost=Decimal('4.50'), stock=48, group='Noodles',
            wholesale_qty=30, wholesale_price=Decimal('165.00'), pack_barcode='8850987123999'),
    Product(id='8851987123456', barcode='8851987123456', name='Instant noodles, minced pork (60g)',
            price=Decimal('7.00'), cost=Decimal('5.00'), stock=12, group='Noodles'),
    Product(id='8852987123456', barcode='8852987123456', name='Cola can (325ml)',
            price=Decimal('15.00'), cost=Decimal('11.00'), stock=24),
    Product(id='8852987123457', barcode='8852987123457', name='Cola 6-pack (325ml)',
            price=Decimal('85.00'), parent_id='8852987123456', pack_size=6),
    Product(id='8853987123456', barcode='8853987123456', name='Drinking water (600ml)',
            price=Decimal('7.00'), cost=Decimal('4.00'), stock=3),
    Product(id='123456', barcode='123456', name='Sandwich bread (loaf)',
            price=Decimal('42.00'), cost=Decimal('35.00'), stock=5),
]


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('seed-demo')
    @click.option('--force', is_flag=True, help='Add demo products even if the catalog is not empty')
    def seed_demo(force):
        """Fill an empty catalog with demo products."""
        catalog = app.extensions['minimart'].catalog

        if catalog.get_all() and not force:
            click.echo(click.style('Catalog is not empty; use --force to add the demo products anyway.', fg='yellow'))
            return

        for product in DEMO_PRODUCTS:
            catalog.upsert(Product.from_dict(product.to_dict()))

        click.echo(click.style(f'Added {len(DEMO_PRODUCTS)} demo products.', fg='green'))

    @app.cli.command('export-backup')
    @click.argument('path', type=click.Path(dir_okay=False, writable=True))
    def export_backup(path):
        """Write every collection to a backup file."""
        from minimart.services.backup_service import export_data

        register = app.extensions['minimart']
        with open(path, 'w', encoding='utf-8') as fh:
            fh.write(export_data(register.store, register.clock))

        click.echo(click.style(f'Backup written to {path}', fg='green'))

    @app.cli.command('import-backup')
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    @click.confirmation_option(prompt='This replaces every product, sale and parked bill. Continue?')
    def import_backup(path):
        """Replace the store with a backup file."""
        from minimart.services.backup_service import import_data

        register = app.extensions['minimart']
        with open(path, 'r', encoding='utf-8-sig') as fh:
            result = import_data(register.store, fh.read(), register.clock)

        if not result.success:
            click.echo(click.style(f'Import failed ({result.reason.value}): {result.message}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style('Backup restored.', fg='green'))
