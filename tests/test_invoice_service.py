from __future__ import annotations

import asyncio
from datetime import date
from unittest.mock import AsyncMock

from fastapi.responses import RedirectResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from factories import make_customer, make_invoice
from invoice_dashboard.core.cache import ViewCache
from invoice_dashboard.models.invoice import InvoiceStatus
from invoice_dashboard.schemas.invoice import AMOUNT_NOT_POSITIVE, FormState
from invoice_dashboard.services.invoice import InvoiceService

INVOICES_PATH = "/dashboard/invoices"
TODAY = date(2024, 6, 1)


def _primed_cache() -> ViewCache:
    cache = ViewCache()

    async def render() -> list:
        return ["stale"]

    asyncio.run(cache.get_or_render(INVOICES_PATH, render))
    return cache


def _run(session_maker, cache: ViewCache, action):
    async def _go():
        async with session_maker() as db:
            return await action(InvoiceService(db, cache=cache, today=lambda: TODAY))

    return asyncio.run(_go())


def _failing_session() -> AsyncMock:
    db = AsyncMock(spec=AsyncSession)
    db.execute.side_effect = OperationalError("UPDATE invoices", {}, Exception("connection reset"))
    return db


def test_create_inserts_cents_and_today_then_redirects(session_maker, seed, fetch_invoices) -> None:
    seed(make_customer("abc"))
    cache = _primed_cache()

    result = _run(
        session_maker,
        cache,
        lambda service: service.create_invoice({"customerId": "abc", "amount": "10", "status": "pending"}),
    )

    assert isinstance(result, RedirectResponse)
    assert result.status_code == 303
    assert result.headers["location"] == INVOICES_PATH
    assert INVOICES_PATH not in cache

    [invoice] = fetch_invoices()
    assert invoice.customer_id == "abc"
    assert invoice.amount == 1000
    assert invoice.status is InvoiceStatus.PENDING
    assert invoice.date == TODAY
    assert invoice.id


def test_create_with_invalid_fields_never_touches_database() -> None:
    db = AsyncMock(spec=AsyncSession)
    cache = _primed_cache()
    service = InvoiceService(db, cache=cache)

    result = asyncio.run(service.create_invoice({"customerId": "abc", "amount": "-1", "status": "paid"}))

    assert isinstance(result, FormState)
    assert result.message == "Missing fields - failed to create invoice"
    assert result.errors.amount == [AMOUNT_NOT_POSITIVE]
    db.execute.assert_not_awaited()
    db.commit.assert_not_awaited()
    assert INVOICES_PATH in cache


def test_create_database_failure_returns_message() -> None:
    db = _failing_session()
    cache = _primed_cache()

    result = asyncio.run(
        InvoiceService(db, cache=cache).create_invoice({"customerId": "abc", "amount": "10", "status": "paid"})
    )

    assert result == FormState(message="Database Error. Failed to create invoice.")
    db.rollback.assert_awaited_once()
    assert INVOICES_PATH in cache


def test_update_changes_row_but_keeps_date(session_maker, seed, fetch_invoices) -> None:
    seed(make_customer("abc"), make_customer("def"), make_invoice("inv-1", on=date(2023, 12, 6)))
    cache = _primed_cache()

    result = _run(
        session_maker,
        cache,
        lambda service: service.update_invoice("inv-1", {"customerId": "def", "amount": "12.34", "status": "paid"}),
    )

    assert isinstance(result, RedirectResponse)
    assert result.headers["location"] == INVOICES_PATH
    assert INVOICES_PATH not in cache

    [invoice] = fetch_invoices()
    assert invoice.customer_id == "def"
    assert invoice.amount == 1234
    assert invoice.status is InvoiceStatus.PAID
    assert invoice.date == date(2023, 12, 6)


def test_update_with_missing_fields_reports_edit_message() -> None:
    db = AsyncMock(spec=AsyncSession)

    result = asyncio.run(InvoiceService(db, cache=ViewCache()).update_invoice("inv-1", {"amount": "3"}))

    assert result.message == "Missing fields - failed to edit invoice"
    assert result.errors.customer_id
    assert result.errors.status
    db.execute.assert_not_awaited()


def test_update_database_failure_does_not_redirect() -> None:
    db = _failing_session()
    cache = _primed_cache()

    result = asyncio.run(
        InvoiceService(db, cache=cache).update_invoice(
            "inv-1", {"customerId": "abc", "amount": "10", "status": "pending"}
        )
    )

    assert not isinstance(result, RedirectResponse)
    assert result.to_response_body() == {"message": "Database Error. Failed to update invoice."}
    db.rollback.assert_awaited_once()
    assert INVOICES_PATH in cache


def test_delete_removes_row_and_revalidates(session_maker, seed, fetch_invoices) -> None:
    seed(make_customer("abc"), make_invoice("inv-1"), make_invoice("inv-2"))
    cache = _primed_cache()

    result = _run(session_maker, cache, lambda service: service.delete_invoice("inv-1"))

    assert result is None
    assert [invoice.id for invoice in fetch_invoices()] == ["inv-2"]
    assert INVOICES_PATH not in cache


def test_delete_unknown_id_completes_and_revalidates(session_maker, fetch_invoices) -> None:
    cache = _primed_cache()

    result = _run(session_maker, cache, lambda service: service.delete_invoice("does-not-exist"))

    assert result is None
    assert fetch_invoices() == []
    assert INVOICES_PATH not in cache


def test_delete_database_failure_returns_message() -> None:
    db = _failing_session()
    cache = _primed_cache()

    result = asyncio.run(InvoiceService(db, cache=cache).delete_invoice("inv-1"))

    assert result == FormState(message="Database Error. Failed to delete invoice.")
    assert INVOICES_PATH in cache


def test_listing_joins_customers_newest_first(session_maker, seed) -> None:
    seed(
        make_customer("abc", name="Evil Rabbit"),
        make_customer("def", name="Delba de Oliveira"),
        make_invoice("inv-old", customer_id="abc", amount=500, on=date(2023, 1, 1)),
        make_invoice("inv-new", customer_id="def", amount=700, status=InvoiceStatus.PAID, on=date(2024, 2, 2)),
    )

    listing = _run(session_maker, ViewCache(), lambda service: service.fetch_invoice_listing())

    assert [item.id for item in listing] == ["inv-new", "inv-old"]
    assert listing[0].name == "Delba de Oliveira"
    assert listing[0].email == "def@example.com"
    assert listing[0].amount == 700
    assert listing[0].status is InvoiceStatus.PAID
