"""
Flask extension singletons for the supplier ledger.

Routes, services and models import these objects; the app factory binds them
(db, migrations, login sessions, CSRF) in create_app().
"""

from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from flask_wtf import CSRFProtect

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()
