"""Middleware for protecting API documentation routes to admin users only."""

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBearer

from src.features.auth.exceptions import InvalidTokenException
from src.features.auth.jwt_utils import decode_access_token
from src.features.auth.permissions import IS_ADMIN, is_allowed

PROTECTED_PATHS = {"/docs", "/redoc", "/openapi.json"}


async def admin_docs_middleware(request: Request, call_next):
    """Middleware to protect API documentation routes to admin users only.

    Protects:
    - /docs (Swagger UI)
    - /redoc (ReDoc)
    - /openapi.json (OpenAPI schema)

    Requests without a valid bearer token get 401, non-admin bearers get 403. The
    check uses the token's role claims only, no database lookup.

    Args:
        request: FastAPI request object
        call_next: Next middleware/route handler

    Returns:
        Response object - either 401/403 for unauthorized, or the next handler's response

    """
    if request.url.path in PROTECTED_PATHS:
        security = HTTPBearer(auto_error=False)
        credentials = await security(request)

        if credentials is None:
            return JSONResponse(status_code=401, content={"detail": "Not authenticated"})

        try:
            claims = decode_access_token(credentials.credentials)
        except InvalidTokenException as exc:
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

        if not is_allowed(claims, IS_ADMIN):
            return JSONResponse(status_code=403, content={"detail": "Insufficient permissions"})

    return await call_next(request)
