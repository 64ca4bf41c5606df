from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import NullPool

from flexstore.config import get_settings

# ---------------------------------------------------------
# Configure the database URL (loads from environment variable)
# ---------------------------------------------------------
DATABASE_URL = get_settings().database_url

# ---------------------------------------------------------
# SQLAlchemy Base class
# ---------------------------------------------------------
class Base(DeclarativeBase):
    pass

# ---------------------------------------------------------
# Create engine
# ---------------------------------------------------------
# NullPool prevents connection reuse issues during local dev / hot reload.
engine_kwargs = {"poolclass": NullPool, "echo": False}
if DATABASE_URL.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}

engine = create_engine(DATABASE_URL, **engine_kwargs)

# ---------------------------------------------------------
# SessionLocal factory
# ---------------------------------------------------------
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# ---------------------------------------------------------
# FastAPI dependency
# ---------------------------------------------------------
def get_db():
    """Yields a database session for each request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create all tables known to the metadata (local/dev convenience)."""
    import flexstore.models  # noqa: F401  registers tables on Base.metadata

    Base.metadata.create_all(bind=engine)
