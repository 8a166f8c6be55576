"""
QMS Record Keeping Platform
Database handle shared by every model module.

Usage:
    from qms.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
