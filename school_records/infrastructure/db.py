from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from ..config import settings

engine_kwargs = {"pool_pre_ping": True, "echo": False}
if settings.DATABASE_URL.startswith("sqlite"):
    # сессии обслуживаются в пуле потоков FastAPI
    engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    engine_kwargs.update(pool_size=10, max_overflow=20, pool_recycle=3600)
    if settings.DATABASE_URL.startswith("postgresql"):
        engine_kwargs["connect_args"] = {"client_encoding": "utf8"}

engine = create_engine(settings.DATABASE_URL, **engine_kwargs)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """Commit on success, roll back on any failure so nothing is half-applied."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
