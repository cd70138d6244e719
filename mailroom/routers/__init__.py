"""
FastAPI routers grouped by area (auth, lookup, dashboard, customers, mails,
settings).

Each module exposes an APIRouter that app.py includes.
"""
