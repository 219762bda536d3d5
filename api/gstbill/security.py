# api/gstbill/security.py
import logging
from typing import Dict, Optional, Tuple

from fastapi import Header, HTTPException, status

from .config import settings

logger = logging.getLogger(__name__)


def _extract_key(authorization: Optional[str], x_api_key: Optional[str]) -> str:
    # x-api-key wins over Authorization when both are sent
    if x_api_key and x_api_key.strip():
        return x_api_key.strip()
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(None, 1)[1].strip()
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Missing API key. Please provide either 'x-api-key' header or 'Authorization: Bearer <token>' header"
    )


def verify_api_key(
    authorization: Optional[str],
    x_api_key: Optional[str],
    key_map: Optional[Dict[str, str]] = None,
) -> Tuple[str, str]:
    """Resolve the caller's API key to ``(key, tenant_id)`` or raise 401."""
    key = _extract_key(authorization, x_api_key)
    tenants = key_map if key_map is not None else settings.api_keys
    tenant_id = tenants.get(key)
    if not tenant_id:
        key_preview = key[:4] + "..." if len(key) > 8 else "***"
        logger.warning("Rejected API key %s", key_preview)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
    return key, tenant_id


def tenant_from_headers(
    authorization: Optional[str] = Header(None),
    x_api_key: Optional[str] = Header(None, alias="x-api-key"),
) -> str:
    """FastAPI dependency: the tenant id every store call is scoped to."""
    _, tenant_id = verify_api_key(authorization, x_api_key)
    return tenant_id
