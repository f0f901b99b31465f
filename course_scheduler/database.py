from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from course_scheduler.config import settings


def make_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # sessions are handed across FastAPI's threadpool
        connect_args["check_same_thread"] = False
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


engine = make_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
