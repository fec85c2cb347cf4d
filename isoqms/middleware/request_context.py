"""
Request Context Middleware

Runs on every request before routing:
- assigns a request id (X-Request-ID from the client, or a new uuid4)
- picks the tenant slug out of /api/v1/tenants/{slug}/... paths
- publishes both through context variables so every log line carries them
- echoes X-Request-ID and adds X-Process-Time to the response

Tenant resolution and membership checks are NOT done here; they need the
authenticated user and happen in api.deps.get_request_context.
"""
import re
import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from isoqms.utils.logging import get_logger, request_id_var, tenant_slug_var

logger = get_logger(__name__)

TENANT_PATH = re.compile(r"^/api/v1/tenants/([^/]+)(?:/|$)")

# Client-supplied ids are echoed back, so keep them short and printable
_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def extract_tenant_slug(path: str) -> Optional[str]:
    match = TENANT_PATH.match(path)
    return match.group(1) if match else None


class RequestContextMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        incoming = request.headers.get("X-Request-ID")
        request_id = incoming if incoming and _REQUEST_ID.match(incoming) else str(uuid.uuid4())
        tenant_slug = extract_tenant_slug(request.url.path)

        request.state.request_id = request_id
        request.state.tenant_slug = tenant_slug
        request_id_token = request_id_var.set(request_id)
        tenant_token = tenant_slug_var.set(tenant_slug)

        start_time = time.time()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(request_id_token)
            tenant_slug_var.reset(tenant_token)

        process_time = time.time() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        logger.debug(
            f"{request.method} {request.url.path} -> {response.status_code} ({process_time:.4f}s)",
            extra={"request_id": request_id, "tenant_slug": tenant_slug}
        )
        return response
