# novayra/database.py
from datetime import datetime, timezone
from decimal import Decimal

import click
from flask import current_app
from flask.cli import with_appcontext

from .models import db, User, Product, AdminSession
from .services.settings_service import SettingsService

STARTER_PRODUCTS = [
    {'name': 'Novayra Noir', 'description': 'A deep evening fragrance with smoky woods.',
     'price': Decimal('2499.00'), 'stock_quantity': 50, 'fragrance_notes': 'Oud, Amber, Black Pepper', 'bottle_size': '50ml'},
    {'name': 'Novayra Bloom', 'description': 'A bright floral for everyday wear.',
     'price': Decimal('1899.00'), 'stock_quantity': 50, 'fragrance_notes': 'Jasmine, Rose, Bergamot', 'bottle_size': '50ml'},
    {'name': 'Novayra Azure', 'description': 'A fresh aquatic scent.',
     'price': Decimal('2199.00'), 'stock_quantity': 50, 'fragrance_notes': 'Sea Salt, Citrus, Vetiver', 'bottle_size': '100ml'},
]


def populate_initial_data():
    """Creates the initial admin, the default site settings and a starter catalog."""
    # --- Admin User ---
    admin_email = current_app.config.get('INITIAL_ADMIN_EMAIL')
    admin_password = current_app.config.get('INITIAL_ADMIN_PASSWORD')

    if admin_email and admin_password:
        admin_email = admin_email.strip().lower()
        if not User.query.filter_by(email=admin_email).first():
            admin = User(email=admin_email, first_name="Admin", last_name="Novayra", is_admin=True)
            admin.set_password(admin_password)
            db.session.add(admin)
            current_app.logger.info(f"Admin user '{admin_email}' created.")
        else:
            current_app.logger.info(f"User '{admin_email}' already exists.")
    else:
        current_app.logger.warning(
            "INITIAL_ADMIN_EMAIL or INITIAL_ADMIN_PASSWORD not set in config. "
            "Initial admin user will not be created automatically."
        )

    # --- Site settings ---
    created = SettingsService.seed_defaults()
    current_app.logger.info(f"{created} default site settings added.")

    # --- Products ---
    if Product.query.count() == 0:
        for product_data in STARTER_PRODUCTS:
            db.session.add(Product(**product_data))
        current_app.logger.info(f"{len(STARTER_PRODUCTS)} starter products added.")
    else:
        current_app.logger.info("Products table already has data. Skipping starter catalog.")

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error committing initial data: {e}", exc_info=True)
        raise


def purge_expired_admin_sessions():
    deleted = (AdminSession.query
               .filter(AdminSession.expires_at <= datetime.now(timezone.utc))
               .delete(synchronize_session=False))
    db.session.commit()
    return deleted


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Creates all database tables."""
    db.create_all()
    click.echo('Database tables created.')


@click.command('seed-db')
@with_appcontext
def seed_db_command():
    """Seeds the admin user, default settings and starter products."""
    populate_initial_data()
    click.echo('Database seeded with initial data.')


@click.command('purge-admin-sessions')
@with_appcontext
def purge_admin_sessions_command():
    """Deletes expired admin sessions."""
    deleted = purge_expired_admin_sessions()
    click.echo(f'{deleted} expired admin sessions deleted.')


def register_db_commands(app):
    """Registers database-related CLI commands."""
    app.cli.add_command(init_db_command)
    app.cli.add_command(seed_db_command)
    app.cli.add_command(purge_admin_sessions_command)
