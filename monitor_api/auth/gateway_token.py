"""Autenticación por token compartido para el relay de gateway.

El gateway LoRa no siempre permite headers personalizados, así que el
token se acepta en el header ``X-Gateway-Token``, en el query param
``token`` o como campo ``token`` del body.

Si GATEWAY_TOKEN no está configurado la verificación está deshabilitada.
"""

from __future__ import annotations

import hmac
import logging
from typing import Any, Optional

from fastapi import HTTPException

from common.config import Settings

logger = logging.getLogger(__name__)


def extract_body_token(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        value = payload.get("token")
        if value is not None:
            return str(value)
    return None


def check_gateway_token(
    settings: Settings,
    *,
    header_token: Optional[str] = None,
    query_token: Optional[str] = None,
    body_token: Optional[str] = None,
) -> None:
    """Lanza HTTPException 401 si el token no coincide."""
    if not settings.gateway_auth_enabled:
        return

    provided = header_token or query_token or body_token
    if not provided:
        logger.warning("[GATEWAY] Request sin token rechazado")
        raise HTTPException(status_code=401, detail="Gateway token required")

    if not hmac.compare_digest(provided.strip().encode(), settings.gateway_token.encode()):
        logger.warning("[GATEWAY] Token de gateway inválido")
        raise HTTPException(status_code=401, detail="Invalid gateway token")
