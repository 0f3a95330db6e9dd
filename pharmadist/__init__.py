"""
pharmadist/__init__.py

Flask application factory for the Pharmaceutical Distribution Back Office.

- Server-rendered pages: dashboard, inventory, customers, suppliers, orders, invoices.
- Any SQLAlchemy database URL works; development defaults to a SQLite file (see config.py).
- Viewers are read-only. That is enforced by a before_request hook, not by hiding buttons.

Sidebar sections:
  1) Operations (dashboard, orders, invoices)
  2) Master Data (inventory, customers, suppliers)
Sections are only shown to signed-in users.
"""

from __future__ import annotations

import logging

import click
from flask import Flask, redirect, render_template, url_for
from flask_login import current_user

from .extensions import csrf, db, login_manager, migrate
from .models import USER_ROLES, User
from .security import can_edit, viewer_readonly_guard
from .utils import format_money


# -------------------------------------------------------------------
# SIDEBAR (visibility only)
# -------------------------------------------------------------------

NAV_SECTIONS = [
    {
        "key": "operations",
        "label": "Operations",
        "auth_required": True,
        "items": [
            {"label": "Dashboard", "endpoint": "dashboard.index"},
            {"label": "Orders", "endpoint": "orders.list_orders"},
            {"label": "Invoices", "endpoint": "invoices.list_invoices"},
        ],
    },
    {
        "key": "master_data",
        "label": "Master Data",
        "auth_required": True,
        "items": [
            {"label": "Inventory", "endpoint": "inventory.list_products"},
            {"label": "Customers", "endpoint": "customers.list_customers"},
            {"label": "Suppliers", "endpoint": "suppliers.list_suppliers"},
        ],
    },
]


def create_app(config_object: str = "config.Config") -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    login_manager.init_app(app)
    login_manager.login_view = "auth.login"
    login_manager.login_message_category = "info"

    @login_manager.user_loader
    def load_user(user_id: str) -> User | None:
        """Load user for Flask-Login."""
        try:
            return db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None

    # ----------------------------------------------------------------------
    # GLOBAL SECURITY NET: Viewer read-only guard (server-side).
    # ----------------------------------------------------------------------
    @app.before_request
    def _viewer_guard_hook():
        """Viewer read-only enforcement (POST/PUT/PATCH/DELETE blocked)."""
        return viewer_readonly_guard()

    # ----------------------------------------------------------------------
    # Blueprints
    # ----------------------------------------------------------------------
    from .blueprints.auth import auth_bp
    from .blueprints.customers import customers_bp
    from .blueprints.dashboard import dashboard_bp
    from .blueprints.inventory import inventory_bp
    from .blueprints.invoices import invoices_bp
    from .blueprints.orders import orders_bp
    from .blueprints.suppliers import suppliers_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(suppliers_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(invoices_bp)

    # ----------------------------------------------------------------------
    # Errors
    # ----------------------------------------------------------------------
    @app.errorhandler(403)
    def forbidden(_error):
        return render_template("errors/403.html"), 403

    @app.errorhandler(404)
    def not_found(_error):
        return render_template("errors/404.html"), 404

    # ----------------------------------------------------------------------
    # Template globals
    # ----------------------------------------------------------------------
    app.add_template_filter(format_money, "money")

    @app.context_processor
    def inject_globals():
        """Sidebar sections, the config and can_edit for every template."""
        visible_sections = []
        for section in NAV_SECTIONS:
            if section.get("auth_required", False) and not current_user.is_authenticated:
                continue
            visible_sections.append(section)

        return {"config": app.config, "nav_sections": visible_sections, "can_edit": can_edit()}

    # ----------------------------------------------------------------------
    # CLI
    # ----------------------------------------------------------------------
    @app.cli.command("init-db")
    def init_db_command():
        """Create all tables on an empty database."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("seed-demo")
    def seed_demo_command():
        """Seed demo products, customers, suppliers and orders."""
        from .seed import seed_demo_data

        created = seed_demo_data()
        click.echo(
            "Demo data seeded: "
            + ", ".join(f"{count} {entity}" for entity, count in created.items())
        )

    @app.cli.command("create-user")
    @click.argument("email")
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option("--role", type=click.Choice(USER_ROLES), default="operator", show_default=True)
    @click.option("--name", "display_name", default=None, help="Display name")
    def create_user_command(email, password, role, display_name):
        """Create a back-office user."""
        email = email.strip().lower()
        if User.query.filter_by(email=email).first():
            raise click.ClickException(f"User {email} already exists.")

        user = User(email=email, display_name=display_name, role=role, is_active=True)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        click.echo(f"User {email} created with role {role}.")

    # ----------------------------------------------------------------------
    # Home
    # ----------------------------------------------------------------------
    @app.route("/")
    def index():
        """Home: redirect to dashboard or login."""
        if current_user.is_authenticated:
            return redirect(url_for("dashboard.index"))
        return redirect(url_for("auth.login"))

    return app
