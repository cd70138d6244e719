"""
Persistence adapters.

Services talk to `SQLRepository` instead of opening SQLAlchemy sessions
themselves.
"""
