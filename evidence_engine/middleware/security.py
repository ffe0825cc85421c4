"""
Security Middleware
====================

Security headers and optional HTTPS enforcement for the report API.
"""

import os
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, RedirectResponse

# Security configuration
ENFORCE_HTTPS = os.environ.get("ENFORCE_HTTPS", "false").lower() in ("true", "1", "yes")
HSTS_MAX_AGE = int(os.environ.get("HSTS_MAX_AGE", "31536000"))  # 1 year default

# Responses carrying signed links or report bytes
NO_STORE_PREFIXES = ("/api/pdf/", "/files/")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    Headers added:
    - Strict-Transport-Security (HSTS, HTTPS only)
    - X-Content-Type-Options
    - X-Frame-Options
    - Referrer-Policy
    - Content-Security-Policy (API only, nothing to render)
    - Cache-Control: no-store on report and download responses
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if ENFORCE_HTTPS and request.url.scheme != "https":
            forwarded_proto = request.headers.get("x-forwarded-proto", "")
            if forwarded_proto != "https":
                url = str(request.url).replace("http://", "https://", 1)
                return RedirectResponse(url, status_code=301)

        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        # Signed URLs must not leak through the Referer header
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        is_https = request.url.scheme == "https" or request.headers.get("x-forwarded-proto") == "https"
        if is_https:
            response.headers["Strict-Transport-Security"] = f"max-age={HSTS_MAX_AGE}; includeSubDomains"

        if request.url.path.startswith(NO_STORE_PREFIXES):
            response.headers["Cache-Control"] = "no-store"

        return response
