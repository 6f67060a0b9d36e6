from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
import os
from dotenv import load_dotenv

load_dotenv()


def _build_database_url() -> str:
    """URL MySQL dalle variabili DATABASE_MAIN_*, altrimenti DATABASE_URL (default SQLite locale)."""
    if os.environ.get("DATABASE_MAIN_ADDRESS"):
        return (
            f'mysql+pymysql://{os.environ.get("DATABASE_MAIN_USER")}:{os.environ.get("DATABASE_MAIN_PASSWORD")}'
            f'@{os.environ.get("DATABASE_MAIN_ADDRESS")}:{os.environ.get("DATABASE_MAIN_PORT")}'
            f'/{os.environ.get("DATABASE_MAIN_NAME")}'
        )
    return os.environ.get("DATABASE_URL", "sqlite:///./shipping_labels.db")


SQLALCHEMY_DATABASE_URL = _build_database_url()

_connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=_connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base per controllare il nostro DB
Base = declarative_base()


def get_db():
    """
        Generatore di sessione database.

        Crea una sessione database e la chiude automaticamente una volta completate le operazioni.
        È ideale per essere utilizzato con FastAPI come dipendenza per gestire la sessione al database.

        Yields:
            SessionLocal: Una sessione di SQLAlchemy aperta.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
