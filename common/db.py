from __future__ import annotations

from typing import Iterator, Optional
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import Settings, get_settings


logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def build_engine(database_url: str) -> Engine:
    """Crea el engine para la URL dada.

    SQLite en memoria necesita una única conexión compartida entre hilos
    (StaticPool); si no, cada conexión vería una base vacía.
    """
    if database_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, future=True, **kwargs)

    return create_engine(database_url, pool_pre_ping=True, pool_recycle=300, future=True)


def get_engine(settings: Settings | None = None) -> Engine:
    global _engine
    if _engine is not None:
        return _engine

    settings = settings or get_settings()
    # No loguear la URL completa: puede traer credenciales.
    logger.info("[DB] Crear engine dialect=%s", settings.database_url.split(":", 1)[0])
    _engine = build_engine(settings.database_url)

    # Test de conexión: ayuda a ver en logs si el servicio realmente llega a la BD
    try:
        with _engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("[DB] Test de conexión OK")
    except Exception:
        logger.exception("[DB] Test de conexión FALLÓ")

    return _engine


def get_session_factory() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(), autocommit=False, autoflush=False, future=True
        )
    return _session_factory


def configure(engine: Engine) -> sessionmaker:
    """Fija el engine del proceso (tests y jobs)."""
    global _engine, _session_factory
    _engine = engine
    _session_factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
    return _session_factory


def reset() -> None:
    """Olvida engine y sesiones (útil para testing)."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


def get_db() -> Iterator[Session]:
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
