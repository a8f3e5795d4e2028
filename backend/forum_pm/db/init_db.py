# backend/forum_pm/db/init_db.py
from typing import Optional

from sqlalchemy.engine import Engine

from forum_pm.db.base import Base
from forum_pm.db.session import engine as default_engine

# import models so the tables are registered on Base.metadata
from forum_pm import models  # noqa: F401


def init_db(engine: Optional[Engine] = None) -> None:
    Base.metadata.create_all(bind=engine or default_engine)
