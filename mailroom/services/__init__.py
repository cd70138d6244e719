"""
Use cases for the mailroom app.

Each service module orchestrates the repository (and photo storage) to
implement one area: staff auth, customers, mails, the public lookup, the
dashboard and settings. Routers call these services instead of touching the
database session directly.
"""
