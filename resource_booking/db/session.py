from collections.abc import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from ..config import get_settings

settings = get_settings()

DATABASE_URL = settings.sqlalchemy_url

if DATABASE_URL.startswith("sqlite"):
    # request handlers and the sweep run on different threads
    engine = create_engine(
        DATABASE_URL, future=True, connect_args={"check_same_thread": False}
    )
else:
    engine = create_engine(DATABASE_URL, future=True, pool_pre_ping=True)

SessionLocal = sessionmaker(
    bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
)
Base = declarative_base()


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
