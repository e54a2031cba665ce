"""Generic operation dispatch shared by the server and function variants."""

import traceback
from datetime import datetime, timezone
from typing import Any, Mapping

from .client import TrendyolClient
from .errors import MethodNotAllowed, NotFound, ProxyError, UpstreamError
from .log import get_logger
from .operations import SERVER, Operation, batch_id, operations_for, validate_required

logger = get_logger(__name__)


def health() -> dict:
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    }


def error_envelope(message: str, details: Any = None) -> dict:
    envelope = {"success": False, "error": message or "Internal server error"}
    if details is not None:
        envelope["details"] = details
    return envelope


def resolve_operation(name: str, method: str, variant: str) -> Operation:
    """Look up an operation, checking the HTTP method.

    The server variant routes on method and path together, so a wrong
    method is reported as not found there; the function variant answers 405.
    """
    operation = operations_for(variant).get(name)
    if operation is None:
        raise NotFound("Endpoint not found")
    if operation.method != method.upper():
        if variant == SERVER:
            raise NotFound("Endpoint not found")
        raise MethodNotAllowed("Method not allowed")
    return operation


def run_operation(operation: Operation, params: Mapping[str, Any], client: TrendyolClient, variant: str) -> dict:
    """Validate params, forward the call and wrap the result in an envelope."""
    if operation.is_local:
        return health()

    validate_required(operation, params)

    payload = client.request(
        operation.path(params),
        method=operation.method,
        api_key=params.get("apiKey"),
        api_secret=params.get("apiSecret"),
        seller_id=params.get("sellerId"),
        params=operation.query(params) if operation.query else None,
        body=operation.body(params) if operation.body else None,
    )

    if operation.extract:
        payload = operation.extract(payload)
    result_field = operation.result_field_for(variant)
    if result_field == "batchId":
        payload = batch_id(payload)
    return {"success": True, result_field: payload}


def dispatch(
    name: str,
    method: str,
    query: Mapping[str, Any] | None,
    body: Any,
    *,
    client: TrendyolClient,
    variant: str = SERVER,
    debug: bool = False,
) -> tuple[int, dict]:
    """Handle one inbound request, returning (status_code, envelope).

    GET operations read the query string, POST/PUT read the JSON body.
    Every failure is converted into an error envelope here.
    """
    try:
        operation = resolve_operation(name, method, variant)
        source = query if operation.method == "GET" else body
        if not isinstance(source, Mapping):
            source = {}
        return 200, run_operation(operation, source, client, variant)
    except UpstreamError as e:
        logger.error("%s %s failed at %s (upstream %s): %s", method, name, e.endpoint, e.upstream_status, e.message)
        return e.status_code, error_envelope(e.message)
    except ProxyError as e:
        if e.status_code >= 500:
            logger.error("%s %s failed: %s", method, name, e.message)
        else:
            logger.warning("%s %s rejected: %s", method, name, e.message)
        return e.status_code, error_envelope(e.message, e.details)
    except Exception as e:
        logger.exception("API Error in %s %s", method, name)
        details = traceback.format_exc() if debug else None
        return 500, error_envelope(str(e), details)
