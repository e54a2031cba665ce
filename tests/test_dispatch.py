"""Tests for the operation table and generic dispatch."""

import json
import logging
from datetime import datetime
from unittest.mock import patch
from urllib.parse import parse_qsl

import pytest

from trendyol_proxy.dispatch import dispatch
from trendyol_proxy.operations import (
    FUNCTION,
    OPERATIONS,
    SERVER,
    first_seller,
    is_missing,
    missing_fields_message,
    operations_for,
)

CREDS = {"apiKey": "k", "apiSecret": "s"}
SELLER = {**CREDS, "sellerId": "123"}


def call(client, name, method="GET", query=None, body=None, variant=SERVER):
    return dispatch(name, method, query or {}, body or {}, client=client, variant=variant)


class TestValidation:
    def test_missing_fields_message(self):
        assert missing_fields_message(["apiKey", "apiSecret"]) == "API Key ve API Secret gerekli"
        assert missing_fields_message(["apiKey", "apiSecret", "sellerId"]) == "API Key, API Secret ve Seller ID gerekli"
        assert missing_fields_message(["shipmentData"]) == "kargo bilgileri gerekli"

    def test_is_missing(self):
        for value in (None, "", False, 0):
            assert is_missing(value)
        for value in ("x", [], {}, 5, True):
            assert not is_missing(value)

    @pytest.mark.parametrize("name", [n for n, op in OPERATIONS.items() if "apiKey" in op.required])
    @pytest.mark.parametrize("drop", ["apiKey", "apiSecret"])
    def test_missing_credentials_is_400_without_upstream_call(self, client, upstream, name, drop):
        op = OPERATIONS[name]
        params = {f: "x" for f in op.required}
        del params[drop]
        variant = op.variants[-1]
        if op.method == "GET":
            status, envelope = call(client, name, "GET", query=params, variant=variant)
        else:
            status, envelope = call(client, name, op.method, body=params, variant=variant)

        assert status == 400
        assert envelope["success"] is False
        assert "gerekli" in envelope["error"]
        assert envelope["details"] == {"missing": [drop]}
        assert upstream.calls == 0

    def test_missing_seller_id(self, client, upstream):
        status, envelope = call(client, "products", query=CREDS)
        assert status == 400
        assert envelope["error"] == "Seller ID gerekli"
        assert upstream.calls == 0

    def test_non_string_credentials_from_body(self, client, upstream):
        status, envelope = call(client, "test-connection", "POST", body={"apiKey": 1, "apiSecret": "s"})
        assert status == 400
        assert "string" in envelope["error"]
        assert upstream.calls == 0


class TestReadOperations:
    @pytest.mark.parametrize("name,query,field", [
        ("products", SELLER, "products"),
        ("orders", SELLER, "orders"),
        ("categories", CREDS, "categories"),
        ("shipment-providers", SELLER, "providers"),
        ("check-batch-status", {**SELLER, "batchId": "b-1"}, "result"),
    ])
    def test_result_field(self, client, name, query, field):
        status, envelope = call(client, name, query=query)
        assert status == 200
        assert envelope == {"success": True, field: {"ok": True}}

    @pytest.mark.parametrize("name,path,field", [
        ("get-categories", "/suppliers/123/product-categories", "categories"),
        ("get-origins", "/suppliers/123/origins", "origins"),
    ])
    def test_function_only_result_field(self, client, upstream, name, path, field):
        status, envelope = call(client, name, query=SELLER, variant=FUNCTION)
        assert status == 200
        assert envelope == {"success": True, field: {"ok": True}}
        assert upstream.last.url.path == path

    def test_seller_info_takes_first_element(self, client, upstream):
        upstream.reply(200, [{"id": 1}, {"id": 2}])
        status, envelope = call(client, "seller-info", query=CREDS)
        assert envelope == {"success": True, "sellerInfo": {"id": 1}}

    def test_seller_info_dict_passthrough(self, client):
        assert call(client, "seller-info", query=CREDS)[1]["sellerInfo"] == {"ok": True}

    def test_test_connection_reads_body(self, client, upstream):
        upstream.reply(200, [{"id": 7}])
        status, envelope = call(client, "test-connection", "POST", body=CREDS)
        assert status == 200
        assert envelope["sellerInfo"] == {"id": 7}
        assert upstream.last.url.path == "/suppliers"

    @pytest.mark.parametrize("name", ["products", "orders"])
    def test_paging_defaults(self, client, upstream, name):
        call(client, name, query=SELLER)
        assert upstream.last.url.path == f"/suppliers/123/{name}"
        assert parse_qsl(upstream.last.url.query.decode()) == [("page", "0"), ("size", "50")]

    def test_orders_paging_and_status(self, client, upstream):
        call(client, "orders", query={**SELLER, "page": "2", "size": "10", "status": "Created"})
        assert parse_qsl(upstream.last.url.query.decode()) == [
            ("page", "2"), ("size", "10"), ("status", "Created"),
        ]

    def test_check_batch_status_query(self, client, upstream):
        call(client, "check-batch-status", query={**SELLER, "batchId": "abc"})
        assert upstream.last.url.path == "/suppliers/123/check-status"
        assert upstream.last.url.query == b"batchId=abc"
        assert upstream.last.headers["User-Agent"] == "123 - SelfIntegration"

    def test_seller_id_is_quoted_in_path(self, client, upstream):
        call(client, "products", query={**CREDS, "sellerId": "1/2"})
        assert upstream.last.url.raw_path.startswith(b"/suppliers/1%2F2/products")

    def test_non_json_success(self, client, upstream):
        upstream.reply(200, content=b"plain text")
        status, envelope = call(client, "categories", query=CREDS)
        assert status == 200
        assert envelope == {"success": True, "categories": {"rawResponse": "plain text"}}


class TestWriteOperations:
    def test_update_stock_server_variant(self, client, upstream):
        items = [{"barcode": "b1", "quantity": 3}]
        status, envelope = call(client, "update-stock", "POST", body={**SELLER, "items": items})
        assert status == 200
        assert envelope == {"success": True, "result": {"ok": True}}
        assert upstream.last.method == "POST"
        assert upstream.last.url.path == "/suppliers/123/products/stock-updates"
        assert json.loads(upstream.last.content) == {"items": items}

    def test_update_price_server_variant(self, client, upstream):
        upstream.reply(200, {"batchRequestId": "x", "batchId": "b-8"})
        items = [{"barcode": "b1", "salePrice": 10, "listPrice": 12}]
        status, envelope = call(client, "update-price", "POST", body={**SELLER, "items": items})
        assert status == 200
        assert envelope == {"success": True, "result": {"batchRequestId": "x", "batchId": "b-8"}}
        assert upstream.last.url.path == "/suppliers/123/products/price-updates"
        assert json.loads(upstream.last.content) == {"items": items}

    def test_update_price_function_variant_returns_batch_id(self, client, upstream):
        upstream.reply(200, {"batchRequestId": "x", "batchId": "b-9"})
        items = [{"barcode": "b1", "salePrice": 10}]
        status, envelope = call(client, "update-price", "POST", body={**SELLER, "items": items}, variant=FUNCTION)
        assert envelope == {"success": True, "batchId": "b-9"}
        assert upstream.last.url.path == "/suppliers/123/products/price-updates"

    def test_update_order_status(self, client, upstream):
        body = {**SELLER, "orderId": "555", "status": "Picking"}
        status, envelope = call(client, "update-order-status", "PUT", body=body)
        assert status == 200
        assert envelope["result"] == {"ok": True}
        assert upstream.last.method == "PUT"
        assert upstream.last.url.path == "/suppliers/123/orders/555/status"
        assert json.loads(upstream.last.content) == {"status": "Picking"}

    def test_create_shipment_forwards_shipment_data(self, client, upstream):
        shipment = {"trackingNumber": "TN1", "cargoProvider": "YK"}
        call(client, "create-shipment", "POST", body={**SELLER, "orderId": "9", "shipmentData": shipment})
        assert upstream.last.url.path == "/suppliers/123/orders/9/shipment"
        assert json.loads(upstream.last.content) == shipment

    def test_create_shipment_missing_shipment_data(self, client, upstream):
        status, envelope = call(client, "create-shipment", "POST", body={**SELLER, "orderId": "9"})
        assert status == 400
        assert envelope["error"] == "kargo bilgileri gerekli"

    def test_create_product(self, client, upstream):
        upstream.reply(200, {"batchRequestId": "r", "batchId": "b-1"})
        products = [{"barcode": "b1", "title": "Kupa"}]
        status, envelope = call(client, "create-product", "POST", body={**SELLER, "products": products})
        assert envelope == {"success": True, "batchId": "b-1"}
        assert upstream.last.url.path == "/suppliers/123/v2/products"
        assert json.loads(upstream.last.content) == {"products": products}


class TestErrors:
    def test_upstream_404(self, client, upstream):
        upstream.reply(404, {"message": "not found"})
        status, envelope = call(client, "products", query=SELLER)
        assert status == 500
        assert envelope["success"] is False
        assert "404" in envelope["error"]
        assert "not found" in envelope["error"]

    def test_upstream_error_logs_endpoint(self, client, upstream, caplog):
        upstream.reply(403, {"message": "forbidden"})
        with caplog.at_level(logging.ERROR, logger="trendyol_proxy.dispatch"):
            status, envelope = call(client, "shipment-providers", query=SELLER)

        assert status == 500
        assert "details" not in envelope
        record = next(r for r in caplog.records if r.name == "trendyol_proxy.dispatch")
        assert "/suppliers/123/shipment-providers" in record.getMessage()
        assert "upstream 403" in record.getMessage()

    def test_unknown_operation(self, client):
        assert call(client, "nope") == (404, {"success": False, "error": "Endpoint not found"})

    def test_wrong_method_server(self, client, upstream):
        status, _ = call(client, "products", "POST", body=SELLER)
        assert status == 404
        assert upstream.calls == 0

    def test_wrong_method_function(self, client, upstream):
        status, envelope = call(client, "products", "POST", body=SELLER, variant=FUNCTION)
        assert status == 405
        assert envelope == {"success": False, "error": "Method not allowed"}

    def test_function_only_operations(self, client, upstream):
        assert "get-origins" not in operations_for(SERVER)
        assert call(client, "get-origins", query=SELLER)[0] == 404

        status, envelope = call(client, "get-origins", query=SELLER, variant=FUNCTION)
        assert envelope == {"success": True, "origins": {"ok": True}}
        assert upstream.last.url.path == "/suppliers/123/origins"

    def test_unexpected_error_details_only_in_debug(self, client):
        with patch.object(client, "request", side_effect=RuntimeError("boom")):
            status, envelope = dispatch("categories", "GET", CREDS, None, client=client)
            assert (status, envelope) == (500, {"success": False, "error": "boom"})

            status, envelope = dispatch("categories", "GET", CREDS, None, client=client, debug=True)
            assert status == 500
            assert "RuntimeError" in envelope["details"]


class TestHealth:
    def test_health_without_credentials(self, client, upstream):
        status, envelope = call(client, "health")
        assert status == 200
        assert envelope["status"] == "OK"
        datetime.fromisoformat(envelope["timestamp"].replace("Z", "+00:00"))
        assert upstream.calls == 0


def test_first_seller():
    assert first_seller([{"id": 1}]) == {"id": 1}
    assert first_seller([]) == []
    assert first_seller({"id": 2}) == {"id": 2}
