"""Persistencia del pipeline de temperaturas (SQLAlchemy Core).

- tables: esquema y ``ensure_schema``
- readings_repository / alert_repository / gateway_event_repository:
  funciones de acceso que reciben la ``Session`` activa
"""

from .tables import ensure_schema, metadata

__all__ = [
    "ensure_schema",
    "metadata",
]
