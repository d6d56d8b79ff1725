from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from tourops.config import get_settings
from tourops.models import Base

DATABASE_URL = get_settings().database_url

engine = create_engine(DATABASE_URL, echo=False, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db():
    """Create all tables."""
    Base.metadata.create_all(bind=engine)


def get_db():
    """FastAPI dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
