from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from .config import settings

database_url = settings.get_database_url

# SQLite needs the same-thread check disabled for the threadpool FastAPI runs sync routes in
connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}

engine = create_engine(
    database_url,
    connect_args=connect_args,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Database initialization
def init_db():
    """Initialize database tables."""
    # Register the snapshot tables on Base.metadata
    from ..models import engine_state, slot, consultation  # noqa: F401
    Base.metadata.create_all(bind=engine)
