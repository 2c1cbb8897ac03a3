"""Database package"""

from app.db.session import AsyncSessionLocal, engine, get_db
from app.models import Base

__all__ = ["Base", "AsyncSessionLocal", "engine", "get_db"]
