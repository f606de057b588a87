"""
Database connection and session management.
"""
from sqlalchemy import create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
import os
from dotenv import load_dotenv

load_dotenv()

# Get settings from environment
database_url = os.getenv("DATABASE_URL", "sqlite:///./fleet_ops.db")
database_echo = os.getenv("DATABASE_ECHO", "false").lower() in ("1", "true", "yes")
fleet_config_path = os.getenv("FLEET_CONFIG_PATH")

class Settings:
    database_url = database_url
    database_echo = database_echo
    fleet_config_path = fleet_config_path

settings = Settings()

# SQLite connections are handed between FastAPI worker threads
connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, echo=settings.database_echo, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
