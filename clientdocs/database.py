"""
Database initialization module.

This module creates and exports the SQLAlchemy database instance
that is used across all models.
"""

from flask_sqlalchemy import SQLAlchemy

# Initialized with the Flask app via db.init_app(app) in create_app()
db = SQLAlchemy()
