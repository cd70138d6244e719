"""
Core utilities shared across the mailroom app.

Configuration, logging setup, CSRF, password hashing and the date helpers used
by both services and templates live here. Nothing in this package imports
from routers or repositories.
"""
