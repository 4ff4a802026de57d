"""
WSGI / Flask-Migrate entry point.

Usage:
    flask --app wsgi db upgrade
    flask --app wsgi seed-case-dictionaries
    gunicorn wsgi:app
"""

from testhub import create_app

app = create_app()
