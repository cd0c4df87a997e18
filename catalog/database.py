from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from sqlalchemy import create_engine
from catalog.config import settings


def engine_options(url: str) -> dict:
    """
    Pool options for the given database URL.
    Only server databases get a sized pool; SQLite keeps SQLAlchemy's defaults.
    """
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}


def clean_database_url(url: str) -> str:
    """
    Pin PostgreSQL URLs to the psycopg2 driver.
    Heroku-style postgres:// and bare postgresql:// URLs are rewritten to postgresql+psycopg2://.
    """
    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            return url.replace(scheme, "postgresql+psycopg2://", 1)
    return url


DATABASE_URL = clean_database_url(settings.database_url)

engine = create_engine(
    DATABASE_URL,
    echo=False,
    **engine_options(DATABASE_URL),
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# Base class for models
Base = declarative_base()


# Dependency for FastAPI to get a database session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
