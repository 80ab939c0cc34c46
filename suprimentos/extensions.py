"""
Flask extension singletons.

Kept outside the app factory so models, the table store and blueprints can import them
without importing create_app. Each one is bound to the application in create_app().
"""

from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from flask_wtf import CSRFProtect

db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()

login_manager = LoginManager()
login_manager.session_protection = "strong"
