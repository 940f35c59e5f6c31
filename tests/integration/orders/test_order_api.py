"""API tests for /api/v1/orders/.

Authentication is forced on the DRF client; roles come from the
``seller`` / ``admin_user`` / ``plain_user`` fixtures.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.dtos import CreateOrderLineDTO

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"


def order_url(order, suffix=""):
    return f"{ORDERS_URL}{order.id}/{suffix}"


def first_error(response):
    return response.json()["errors"][0]


@pytest.fixture()
def seller_client(api_client, seller):
    api_client.force_authenticate(user=seller)
    return api_client


class TestAuthAndRoles:
    def test_anonymous_request_rejected(self, api_client):
        response = api_client.get(ORDERS_URL)

        assert response.status_code == 401
        body = response.json()
        assert body["type"] == "client_error"
        assert body["errors"][0]["code"] == "not_authenticated"

    def test_user_without_role_can_read(self, api_client, plain_user, order):
        api_client.force_authenticate(user=plain_user)

        response = api_client.get(order_url(order))

        assert response.status_code == 200
        assert response.json()["order_number"] == order.order_number

    def test_user_without_role_cannot_write(self, api_client, plain_user, customer):
        api_client.force_authenticate(user=plain_user)

        response = api_client.post(
            ORDERS_URL, {"customer_id": str(customer.id)}, format="json"
        )

        assert response.status_code == 403
        assert first_error(response)["code"] == "permission_denied"

    def test_only_admin_can_delete(self, seller_client, order):
        response = seller_client.delete(order_url(order))
        assert response.status_code == 403


class TestCreateAndRead:
    def test_create_defaults_seller_to_current_user(self, seller_client, seller, customer):
        response = seller_client.post(
            ORDERS_URL,
            {"customer_id": str(customer.id), "notes": "Call before delivery"},
            format="json",
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "PENDING"
        assert body["seller_id"] == seller.pk
        assert body["customer_id"] == str(customer.id)
        assert body["notes"] == "Call before delivery"
        assert (body["subtotal"], body["discount"], body["tax"], body["total"]) == (
            "0.00",
            "0.00",
            "0.00",
            "0.00",
        )

    def test_create_unknown_customer(self, seller_client):
        response = seller_client.post(
            ORDERS_URL, {"customer_id": str(uuid4())}, format="json"
        )

        assert response.status_code == 404
        assert first_error(response)["code"] == "customer_not_found"

    def test_create_with_non_seller(self, seller_client, customer, plain_user):
        response = seller_client.post(
            ORDERS_URL,
            {"customer_id": str(customer.id), "seller_id": plain_user.pk},
            format="json",
        )

        assert response.status_code == 404
        assert first_error(response)["code"] == "seller_not_found"

    def test_create_missing_customer(self, seller_client):
        response = seller_client.post(ORDERS_URL, {}, format="json")

        assert response.status_code == 400
        body = response.json()
        assert body["type"] == "validation_error"
        assert body["errors"][0]["attr"] == "customer_id"

    def test_list_is_paginated_and_filterable(self, seller_client, order, order_service):
        order_service.mark_as_paid(str(order.id))

        response = seller_client.get(ORDERS_URL, {"status": "PAID"})
        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["results"][0]["id"] == str(order.id)

        response = seller_client.get(ORDERS_URL, {"status": "PENDING"})
        assert response.json()["count"] == 0

    def test_retrieve_unknown(self, seller_client):
        response = seller_client.get(f"{ORDERS_URL}{uuid4()}/")

        assert response.status_code == 404
        assert first_error(response)["code"] == "order_not_found"

    def test_with_lines(self, seller_client, order, line_service, product_a):
        line_service.create_line(
            str(order.id), CreateOrderLineDTO(product_id=product_a.id, quantity=2)
        )

        response = seller_client.get(order_url(order, "with-lines/"))

        assert response.status_code == 200
        lines = response.json()["lines"]
        assert len(lines) == 1
        assert lines[0]["product_name"] == "Laptop Pro"
        assert lines[0]["subtotal"] == "200000.00"

    def test_by_customer_and_seller(self, seller_client, order, customer, seller):
        by_customer = seller_client.get(f"{ORDERS_URL}by-customer/{customer.id}/")
        by_seller = seller_client.get(f"{ORDERS_URL}by-seller/{seller.pk}/")

        assert [o["id"] for o in by_customer.json()] == [str(order.id)]
        assert [o["id"] for o in by_seller.json()] == [str(order.id)]

    def test_by_unknown_seller(self, seller_client):
        response = seller_client.get(f"{ORDERS_URL}by-seller/999999/")
        assert response.status_code == 404

    def test_by_status_accepts_lowercase(self, seller_client, order):
        response = seller_client.get(f"{ORDERS_URL}by-status/pending/")

        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [str(order.id)]

    def test_by_status_rejects_unknown(self, seller_client):
        response = seller_client.get(f"{ORDERS_URL}by-status/shipped/")

        assert response.status_code == 400
        assert first_error(response)["attr"] == "status"

    def test_available_for_payment(self, seller_client, order, order_service):
        order_service.mark_as_available_for_payment(str(order.id))

        response = seller_client.get(f"{ORDERS_URL}available-for-payment/")

        assert [o["id"] for o in response.json()] == [str(order.id)]


class TestUpdate:
    def test_patch_notes(self, seller_client, order):
        response = seller_client.patch(order_url(order), {"notes": "Fragile"}, format="json")

        assert response.status_code == 200
        assert response.json()["notes"] == "Fragile"

    def test_patch_negative_discount(self, seller_client, order):
        response = seller_client.patch(order_url(order), {"discount": "-1.00"}, format="json")

        assert response.status_code == 400
        assert first_error(response)["attr"] == "discount"

    def test_patch_closed_order(self, seller_client, order, order_service):
        for step in ("mark_as_paid", "mark_as_delivered", "mark_as_closed"):
            getattr(order_service, step)(str(order.id))

        response = seller_client.patch(order_url(order), {"notes": "late"}, format="json")

        assert response.status_code == 400
        assert first_error(response)["code"] == "order_closed"


class TestStatus:
    def test_change_status(self, seller_client, order):
        response = seller_client.patch(
            order_url(order, "status/"), {"status": "PAID"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["status"] == "PAID"

    def test_backward_transition_rejected(self, seller_client, order, order_service):
        order_service.mark_as_paid(str(order.id))

        response = seller_client.patch(
            order_url(order, "status/"), {"status": "PENDING"}, format="json"
        )

        assert response.status_code == 400
        error = first_error(response)
        assert error["code"] == "invalid_status_transition"
        assert "from PAID to PENDING" in error["detail"]

    def test_paid_order_can_return_to_adding_products(self, seller_client, order, order_service):
        order_service.mark_as_paid(str(order.id))

        response = seller_client.patch(
            order_url(order, "status/"), {"status": "ADDING_PRODUCTS"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["status"] == "ADDING_PRODUCTS"

    def test_unknown_status_value(self, seller_client, order):
        response = seller_client.patch(
            order_url(order, "status/"), {"status": "SHIPPED"}, format="json"
        )

        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("mark-adding-products/", "ADDING_PRODUCTS"),
            ("mark-available-for-payment/", "AVAILABLE_FOR_PAYMENT"),
            ("mark-paid/", "PAID"),
        ],
    )
    def test_mark_endpoints(self, seller_client, order, path, expected):
        response = seller_client.post(order_url(order, path))

        assert response.status_code == 200
        assert response.json()["status"] == expected

    def test_mark_delivered_requires_payment(self, seller_client, order):
        response = seller_client.post(order_url(order, "mark-delivered/"))

        assert response.status_code == 400
        assert "PAID" in first_error(response)["detail"]


class TestDiscount:
    def test_apply_and_remove(self, seller_client, order, line_service, product_a, product_b):
        oid = str(order.id)
        line_service.create_line(oid, CreateOrderLineDTO(product_id=product_a.id, quantity=2))
        line_service.create_line(oid, CreateOrderLineDTO(product_id=product_b.id, quantity=1))

        applied = seller_client.post(
            order_url(order, "discount/"), {"percentage": "10"}, format="json"
        )
        assert applied.status_code == 200
        body = applied.json()
        assert (body["subtotal"], body["discount"], body["tax"], body["total"]) == (
            "250000.00",
            "25000.00",
            "4500.00",
            "229500.00",
        )

        summary = seller_client.get(order_url(order, "discount-summary/")).json()
        assert summary["discount_percentage"] == "10.00"

        removed = seller_client.delete(order_url(order, "discount/"))
        assert removed.status_code == 200
        assert removed.json()["total"] == "255000.00"

    def test_out_of_range(self, seller_client, order):
        response = seller_client.post(
            order_url(order, "discount/"), {"percentage": "120"}, format="json"
        )

        assert response.status_code == 400
        assert first_error(response)["code"] == "invalid_discount"

    def test_not_pending(self, seller_client, order, order_service):
        order_service.mark_as_adding_products(str(order.id))

        response = seller_client.post(
            order_url(order, "discount/"), {"percentage": "5"}, format="json"
        )

        assert response.status_code == 400
        assert first_error(response)["code"] == "order_not_editable"


class TestDelete:
    def test_admin_deletes_pending_order(self, api_client, admin_user, order):
        api_client.force_authenticate(user=admin_user)

        response = api_client.delete(order_url(order))
        assert response.status_code == 204

        assert api_client.get(order_url(order)).status_code == 404

    def test_non_pending_order(self, api_client, admin_user, order, order_service):
        order_service.mark_as_paid(str(order.id))
        api_client.force_authenticate(user=admin_user)

        response = api_client.delete(order_url(order))

        assert response.status_code == 400
        assert first_error(response)["code"] == "order_not_deletable"


class TestErrorFormat:
    def test_malformed_json(self, seller_client):
        response = seller_client.post(
            ORDERS_URL, data="{not json", content_type="application/json"
        )

        assert response.status_code == 400
        body = response.json()
        assert body["type"] == "validation_error"
        assert body["errors"][0]["code"] == "parse_error"
