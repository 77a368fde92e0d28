from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from campus_attendance.core.config import settings

# SQLite connections are handed between FastAPI's worker threads, so the
# same-thread check has to go. The timeout lets concurrent scans queue on the
# write lock instead of failing with "database is locked".
connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False, "timeout": 30}

engine = create_engine(
    settings.DATABASE_URL, pool_pre_ping=True, connect_args=connect_args
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        # Always close, even if the endpoint raised.
        db.close()
