"""
Test Hub: SQLAlchemy models package.

The shared ``db`` instance is bound to the Flask app in ``create_app``.
Model modules import it from here; nothing else lives in this module.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
