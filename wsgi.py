"""
WSGI entry point and Flask-Migrate / Alembic target.

Usage:
    flask --app wsgi db migrate -m "description"
    flask --app wsgi db upgrade
    flask --app wsgi seed-business-areas
"""

from qms import create_app

app = create_app()
