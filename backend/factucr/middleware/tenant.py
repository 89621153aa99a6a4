"""Tenant middleware: resolves tenant context from the JWT on every request.

Flow:
  1. Extract Bearer token from Authorization header
  2. Decode JWT → get `tenant_schema` claim
  3. Validate the schema name
  4. Set ContextVar so get_tenant_db() can pin the search_path
  5. After the response, clear the ContextVar

Routes that don't require tenant scope (health, docs) simply won't call
get_tenant_db(), so having no tenant context is fine for them.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from factucr.auth.jwt import decode_token
from factucr.middleware.exceptions import create_error_response
from factucr.tenancy import (
    clear_tenant_context,
    set_current_tenant_schema,
    validate_schema_name,
)

logger = logging.getLogger(__name__)

_PUBLIC_PREFIXES = ("/docs", "/redoc", "/openapi.json", "/health")


class TenantMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        auth_header = request.headers.get("authorization", "")
        path = request.url.path

        clear_tenant_context()
        if auth_header.startswith("Bearer "):
            payload = decode_token(auth_header[7:])

            if not payload:
                # Expired/malformed token: answer 401 here instead of a
                # confusing "no tenant context" further down.
                if not path.startswith(_PUBLIC_PREFIXES):
                    return create_error_response(
                        status_code=401,
                        message="Token expired or invalid",
                        error_code="HTTP_401",
                        headers={"WWW-Authenticate": "Bearer"},
                    )
            else:
                tenant_schema = payload.get("tenant_schema")
                if tenant_schema:
                    try:
                        set_current_tenant_schema(validate_schema_name(tenant_schema))
                    except ValueError:
                        logger.warning(
                            "Rejected tenant schema claim %r", tenant_schema,
                            extra={"path": path},
                        )

        try:
            response = await call_next(request)
        finally:
            clear_tenant_context()

        return response
