"""Operation table mapping simplified proxy calls onto Trendyol endpoints."""

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping
from urllib.parse import quote

from .config import DEFAULT_PAGE, DEFAULT_PAGE_SIZE
from .errors import ValidationError

SERVER = "server"
FUNCTION = "function"
VARIANTS = (SERVER, FUNCTION)

FIELD_LABELS = {
    "apiKey": "API Key",
    "apiSecret": "API Secret",
    "sellerId": "Seller ID",
    "shipmentData": "kargo bilgileri",
}

Params = Mapping[str, Any]


@dataclass(frozen=True)
class Operation:
    """One proxied operation.

    ``endpoint`` is a format template filled from the request parameters;
    ``query`` and ``body`` build the outbound query string and JSON body;
    ``extract`` post-processes the marketplace payload before it is placed
    under the result field.
    """

    name: str
    method: str
    required: tuple[str, ...]
    endpoint: str | None
    result_field: str | None
    query: Callable[[Params], dict] | None = None
    body: Callable[[Params], Any] | None = None
    extract: Callable[[Any], Any] | None = None
    variant_result_fields: Mapping[str, str] = field(default_factory=dict)
    variants: tuple[str, ...] = VARIANTS

    @property
    def is_local(self) -> bool:
        return self.endpoint is None

    def result_field_for(self, variant: str) -> str | None:
        return self.variant_result_fields.get(variant, self.result_field)

    def path(self, params: Params) -> str:
        fields = {k: quote(str(v), safe="") for k, v in params.items() if v is not None}
        return self.endpoint.format(**fields)


def is_missing(value: Any) -> bool:
    """Presence test: None, empty string, False and zero count as absent."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)):
        return value == 0
    return False


def missing_fields_message(fields: list[str]) -> str:
    """Turkish message listing the given field names, e.g. 'A, B ve C gerekli'."""
    labels = [FIELD_LABELS.get(f, f) for f in fields]
    if len(labels) == 1:
        return f"{labels[0]} gerekli"
    return f"{', '.join(labels[:-1])} ve {labels[-1]} gerekli"


def validate_required(operation: Operation, params: Params) -> None:
    missing = [f for f in operation.required if is_missing(params.get(f))]
    if missing:
        raise ValidationError(missing_fields_message(missing), details={"missing": missing})


def first_seller(info: Any) -> Any:
    """First supplier of a list response, the payload itself otherwise."""
    return info[0] if isinstance(info, list) and info else info


def batch_id(payload: Any) -> Any:
    return payload.get("batchId") if isinstance(payload, dict) else None


def _paging(params: Params) -> dict:
    return {
        "page": params.get("page", DEFAULT_PAGE),
        "size": params.get("size", DEFAULT_PAGE_SIZE),
    }


def _order_query(params: Params) -> dict:
    query = _paging(params)
    if params.get("status"):
        query["status"] = params["status"]
    return query


CREDENTIALS = ("apiKey", "apiSecret")
SELLER = CREDENTIALS + ("sellerId",)

OPERATIONS = {op.name: op for op in (
    Operation("health", "GET", (), None, None),
    Operation(
        "test-connection", "POST", CREDENTIALS, "/suppliers", "sellerInfo",
        extract=first_seller,
    ),
    Operation(
        "seller-info", "GET", CREDENTIALS, "/suppliers", "sellerInfo",
        extract=first_seller,
    ),
    Operation(
        "products", "GET", SELLER, "/suppliers/{sellerId}/products", "products",
        query=_paging,
    ),
    Operation(
        "orders", "GET", SELLER, "/suppliers/{sellerId}/orders", "orders",
        query=_order_query,
    ),
    Operation(
        "update-stock", "POST", SELLER + ("items",),
        "/suppliers/{sellerId}/products/stock-updates", "result",
        body=lambda p: {"items": p["items"]},
        variant_result_fields={FUNCTION: "batchId"},
    ),
    Operation(
        "update-price", "POST", SELLER + ("items",),
        "/suppliers/{sellerId}/products/price-updates", "result",
        body=lambda p: {"items": p["items"]},
        variant_result_fields={FUNCTION: "batchId"},
    ),
    Operation("categories", "GET", CREDENTIALS, "/product-categories", "categories"),
    Operation(
        "shipment-providers", "GET", SELLER,
        "/suppliers/{sellerId}/shipment-providers", "providers",
    ),
    Operation(
        "update-order-status", "PUT", SELLER + ("orderId", "status"),
        "/suppliers/{sellerId}/orders/{orderId}/status", "result",
        body=lambda p: {"status": p["status"]},
    ),
    Operation(
        "create-shipment", "POST", SELLER + ("orderId", "shipmentData"),
        "/suppliers/{sellerId}/orders/{orderId}/shipment", "result",
        body=lambda p: p["shipmentData"],
    ),
    Operation(
        "create-product", "POST", SELLER + ("products",),
        "/suppliers/{sellerId}/v2/products", "batchId",
        body=lambda p: {"products": p["products"]},
    ),
    Operation(
        "check-batch-status", "GET", SELLER + ("batchId",),
        "/suppliers/{sellerId}/check-status", "result",
        query=lambda p: {"batchId": p["batchId"]},
    ),
    Operation(
        "get-categories", "GET", SELLER,
        "/suppliers/{sellerId}/product-categories", "categories",
        variants=(FUNCTION,),
    ),
    Operation(
        "get-origins", "GET", SELLER, "/suppliers/{sellerId}/origins", "origins",
        variants=(FUNCTION,),
    ),
)}


def operations_for(variant: str) -> dict[str, Operation]:
    return {name: op for name, op in OPERATIONS.items() if variant in op.variants}
