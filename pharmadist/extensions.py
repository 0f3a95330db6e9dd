"""
Flask extension instances shared by the back office.

Kept in their own module so models, the gateway and blueprints can import them without importing the app factory.
They are bound to an application in create_app() (pharmadist/__init__.py).
"""

from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from flask_wtf import CSRFProtect

# Unbound until create_app() calls init_app() on each of them.
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()
