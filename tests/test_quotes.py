"""Tests for the quote lifecycle: request, respond, decline, accept and expiry."""

import pytest
import uuid
from datetime import datetime, timedelta, timezone
from sqlalchemy import select, func
from models import Order
from routers.quotes.helpers import quote_helpers
from routers.quotes.schemas import QuoteStatus
from utils.errors import NotFoundError, ValidationError, ConflictError, InvalidStateError
from conftest import auth_headers, principal_for


async def order_count(db) -> int:
    result = await db.execute(select(func.count(Order.id)))
    return result.scalar()


async def test_request_quote_starts_pending(db, buyer, vendor, product):
    before = datetime.now(timezone.utc)
    quote = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 100, "Need by March")

    assert quote.status == "pending"
    assert quote.vendor_id == vendor.id
    assert quote.vendor_price is None
    assert quote.total_price is None
    expires_at = quote.expires_at.replace(tzinfo=quote.expires_at.tzinfo or timezone.utc)
    assert before + timedelta(days=7) - timedelta(minutes=1) <= expires_at
    assert expires_at <= datetime.now(timezone.utc) + timedelta(days=7)


async def test_request_quote_for_missing_product(db, buyer):
    with pytest.raises(NotFoundError):
        await quote_helpers.request_quote(db, principal_for(buyer), uuid.uuid4(), 5)


async def test_respond_sets_total_from_price(db, buyer, vendor, product):
    quote = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 100)

    quote = await quote_helpers.respond_to_quote(
        db, principal_for(vendor), quote.id, vendor_price=9.50, vendor_response="Ships in 10 days"
    )
    assert quote.status == "quoted"
    assert quote.total_price == pytest.approx(950.00)
    assert quote.vendor_response == "Ships in 10 days"


async def test_respond_twice_with_same_price_stores_same_total(db, buyer, vendor, product):
    quote = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 40)

    first = await quote_helpers.respond_to_quote(db, principal_for(vendor), quote.id, vendor_price=2.25)
    first_total = first.total_price
    second = await quote_helpers.respond_to_quote(db, principal_for(vendor), quote.id, vendor_price=2.25)

    assert second.status == "quoted"
    assert second.total_price == first_total == pytest.approx(90.0)


async def test_respond_quoted_without_price(db, buyer, vendor, product):
    quote = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 10)
    with pytest.raises(ValidationError):
        await quote_helpers.respond_to_quote(db, principal_for(vendor), quote.id, vendor_response="Maybe")


async def test_respond_cannot_target_negotiating(db, buyer, vendor, product):
    quote = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 10)
    with pytest.raises(ValidationError):
        await quote_helpers.respond_to_quote(
            db, principal_for(vendor), quote.id, vendor_price=1.0, status=QuoteStatus.NEGOTIATING
        )


async def test_respond_with_declined_status(db, buyer, vendor, product):
    quote = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 10)
    quote = await quote_helpers.respond_to_quote(
        db, principal_for(vendor), quote.id, vendor_response="Out of season", status=QuoteStatus.DECLINED
    )
    assert quote.status == "declined"
    assert quote.vendor_price is None


async def test_non_owning_vendor_cannot_see_quote(db, buyer, product, other_vendor):
    quote = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 10)

    with pytest.raises(NotFoundError):
        await quote_helpers.respond_to_quote(db, principal_for(other_vendor), quote.id, vendor_price=1.0)
    with pytest.raises(NotFoundError):
        await quote_helpers.decline_quote(db, principal_for(other_vendor), quote.id)

    unchanged = await quote_helpers.get_quote(db, quote.id)
    assert unchanged.status == "pending"
    assert unchanged.vendor_price is None


async def test_accept_creates_matching_confirmed_order(db, buyer, vendor, product):
    quote = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 100)
    await quote_helpers.respond_to_quote(db, principal_for(vendor), quote.id, vendor_price=9.50)

    accepted, order = await quote_helpers.accept_quote(db, principal_for(buyer), quote.id)

    assert accepted.status == "accepted"
    assert order.status == "confirmed"
    assert order.quote_id == quote.id
    assert order.quantity == 100
    assert order.unit_price == pytest.approx(9.50)
    assert order.total_price == pytest.approx(950.00)
    assert order.buyer_id == buyer.id
    assert order.vendor_id == vendor.id
    assert await order_count(db) == 1


@pytest.mark.parametrize("status", ["pending", "negotiating", "accepted", "declined", "expired"])
async def test_accept_only_from_quoted(db, buyer, vendor, product, status):
    quote = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 20)
    quote.status = status
    quote.vendor_price = 3.0
    quote.total_price = 60.0
    await db.commit()

    with pytest.raises(ConflictError) as exc_info:
        await quote_helpers.accept_quote(db, principal_for(buyer), quote.id)

    assert isinstance(exc_info.value, InvalidStateError)
    assert exc_info.value.status_code == 409
    reloaded = await quote_helpers.get_quote(db, quote.id)
    assert reloaded.status == status
    assert reloaded.total_price == pytest.approx(60.0)
    assert await order_count(db) == 0


async def test_second_accept_fails_without_second_order(db, buyer, vendor, product):
    quote = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 10)
    await quote_helpers.respond_to_quote(db, principal_for(vendor), quote.id, vendor_price=5.0)
    await quote_helpers.accept_quote(db, principal_for(buyer), quote.id)

    with pytest.raises(InvalidStateError):
        await quote_helpers.accept_quote(db, principal_for(buyer), quote.id)
    assert await order_count(db) == 1


async def test_other_buyer_cannot_accept(db, buyer, other_buyer, vendor, product):
    quote = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 10)
    await quote_helpers.respond_to_quote(db, principal_for(vendor), quote.id, vendor_price=5.0)

    with pytest.raises(NotFoundError):
        await quote_helpers.accept_quote(db, principal_for(other_buyer), quote.id)
    assert (await quote_helpers.get_quote(db, quote.id)).status == "quoted"


async def test_decline_then_accept_conflicts(db, buyer, vendor, product):
    quote = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 10)

    declined = await quote_helpers.decline_quote(db, principal_for(vendor), quote.id)
    assert declined.status == "declined"

    with pytest.raises(ConflictError):
        await quote_helpers.accept_quote(db, principal_for(buyer), quote.id)
    with pytest.raises(ConflictError):
        await quote_helpers.decline_quote(db, principal_for(vendor), quote.id)
    with pytest.raises(ConflictError):
        await quote_helpers.respond_to_quote(db, principal_for(vendor), quote.id, vendor_price=1.0)


async def test_expire_stale_quotes(db, buyer, vendor, product):
    stale_pending = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 10)
    stale_quoted = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 20)
    fresh = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 30)
    await quote_helpers.respond_to_quote(db, principal_for(vendor), stale_quoted.id, vendor_price=1.0)

    sweep_time = datetime.now(timezone.utc) + timedelta(days=8)
    fresh.expires_at = sweep_time + timedelta(days=1)
    await db.commit()

    count = await quote_helpers.expire_stale_quotes(db, now=sweep_time)

    assert count == 2
    assert (await quote_helpers.get_quote(db, stale_pending.id)).status == "expired"
    assert (await quote_helpers.get_quote(db, stale_quoted.id)).status == "expired"
    assert (await quote_helpers.get_quote(db, fresh.id)).status == "pending"


async def test_expire_leaves_terminal_quotes(db, buyer, vendor, product):
    quote = await quote_helpers.request_quote(db, principal_for(buyer), product.id, 10)
    await quote_helpers.decline_quote(db, principal_for(vendor), quote.id)

    count = await quote_helpers.expire_stale_quotes(db, now=datetime.now(timezone.utc) + timedelta(days=30))
    assert count == 0
    assert (await quote_helpers.get_quote(db, quote.id)).status == "declined"


# =================
# HTTP
# =================

async def test_quote_to_order_over_http(client, buyer, vendor, product):
    response = await client.post(
        "/quotes/request",
        json={"product_id": str(product.id), "quantity": 100, "message": "Monthly supply"},
        headers=auth_headers(buyer)
    )
    assert response.status_code == 201
    quote = response.json()
    assert quote["status"] == "pending"
    assert quote["product"]["name"] == "Steel Pipe"

    response = await client.get("/quotes/vendor", headers=auth_headers(vendor))
    assert response.status_code == 200
    assert [q["id"] for q in response.json()["quotes"]] == [quote["id"]]

    response = await client.patch(
        f"/quotes/{quote['id']}/respond",
        json={"vendor_price": 9.50, "vendor_response": "Can do"},
        headers=auth_headers(vendor)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "quoted"
    assert response.json()["total_price"] == pytest.approx(950.00)

    response = await client.post(f"/quotes/{quote['id']}/accept", headers=auth_headers(buyer))
    assert response.status_code == 200
    data = response.json()
    assert data["quote"]["status"] == "accepted"
    order = data["order"]
    assert order["quantity"] == 100
    assert order["unit_price"] == pytest.approx(9.50)
    assert order["total_price"] == pytest.approx(950.00)
    assert order["status"] == "confirmed"
    assert order["quote_id"] == quote["id"]

    response = await client.get("/orders/buyer", headers=auth_headers(buyer))
    assert [o["id"] for o in response.json()["orders"]] == [order["id"]]


async def test_decline_then_accept_over_http(client, buyer, vendor, product):
    response = await client.post(
        "/quotes/request",
        json={"product_id": str(product.id), "quantity": 5},
        headers=auth_headers(buyer)
    )
    quote_id = response.json()["id"]

    response = await client.post(f"/quotes/{quote_id}/decline", headers=auth_headers(vendor))
    assert response.status_code == 200
    assert response.json()["status"] == "declined"

    response = await client.post(f"/quotes/{quote_id}/accept", headers=auth_headers(buyer))
    assert response.status_code == 409

    response = await client.get("/quotes/buyer", headers=auth_headers(buyer))
    assert response.json()["quotes"][0]["status"] == "declined"


async def test_quote_routes_are_role_gated(client, buyer, vendor, admin, product):
    response = await client.post(
        "/quotes/request",
        json={"product_id": str(product.id), "quantity": 5},
        headers=auth_headers(vendor)
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied. Required role: buyer or admin"

    response = await client.get("/quotes/vendor", headers=auth_headers(buyer))
    assert response.status_code == 403

    response = await client.get("/quotes/vendor", headers=auth_headers(admin))
    assert response.status_code == 200

    response = await client.get("/quotes/buyer")
    assert response.status_code == 401


async def test_foreign_quote_over_http_is_not_found(client, buyer, other_vendor, product):
    response = await client.post(
        "/quotes/request",
        json={"product_id": str(product.id), "quantity": 5},
        headers=auth_headers(buyer)
    )
    quote_id = response.json()["id"]

    response = await client.patch(
        f"/quotes/{quote_id}/respond", json={"vendor_price": 1.0}, headers=auth_headers(other_vendor)
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Quote not found"


async def test_request_quote_for_missing_product_over_http(client, buyer):
    response = await client.post(
        "/quotes/request",
        json={"product_id": "00000000-0000-0000-0000-000000000000", "quantity": 5},
        headers=auth_headers(buyer)
    )
    assert response.status_code == 404
