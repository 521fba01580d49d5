# services/invoice.py - Invoice Mutations
# ============================================================================

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Union
from fastapi.responses import RedirectResponse
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from invoice_dashboard.core.cache import ViewCache, view_cache
from invoice_dashboard.core.config import settings
from invoice_dashboard.core.navigation import redirect
from invoice_dashboard.models.customer import Customer
from invoice_dashboard.models.invoice import Invoice
from invoice_dashboard.schemas.invoice import FormState, InvoiceForm, InvoiceListItem

logger = logging.getLogger(__name__)

CREATE_FIELDS_MESSAGE = "Missing fields - failed to create invoice"
UPDATE_FIELDS_MESSAGE = "Missing fields - failed to edit invoice"
CREATE_DB_MESSAGE = "Database Error. Failed to create invoice."
UPDATE_DB_MESSAGE = "Database Error. Failed to update invoice."
DELETE_DB_MESSAGE = "Database Error. Failed to delete invoice."


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class InvoiceService:
    def __init__(
        self,
        db: AsyncSession,
        cache: ViewCache = view_cache,
        today: Callable[[], date] = utc_today,
    ):
        self.db = db
        self.cache = cache
        self.today = today

    async def create_invoice(self, form_data: Mapping[str, Any]) -> Union[FormState, RedirectResponse]:
        """Validate a submitted invoice form and insert it.

        Returns the form state to render when validation or the insert
        fails; otherwise the listing is revalidated and a redirect to it
        is returned.
        """
        parsed = InvoiceForm.safe_parse(form_data)
        if not parsed.success:
            return FormState(errors=parsed.errors, message=CREATE_FIELDS_MESSAGE)

        form = parsed.data
        try:
            await self.db.execute(
                insert(Invoice).values(
                    customer_id=form.customer_id,
                    amount=form.amount_in_cents,
                    status=form.status,
                    date=self.today(),
                )
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to create invoice")
            return FormState(message=CREATE_DB_MESSAGE)

        logger.info(f"Created invoice for customer {form.customer_id}")
        self.cache.revalidate_path(settings.INVOICES_PATH)
        return redirect(settings.INVOICES_PATH)

    async def update_invoice(
        self, invoice_id: str, form_data: Mapping[str, Any]
    ) -> Union[FormState, RedirectResponse]:
        parsed = InvoiceForm.safe_parse(form_data)
        if not parsed.success:
            return FormState(errors=parsed.errors, message=UPDATE_FIELDS_MESSAGE)

        form = parsed.data
        try:
            await self.db.execute(
                update(Invoice)
                .where(Invoice.id == invoice_id)
                .values(
                    customer_id=form.customer_id,
                    amount=form.amount_in_cents,
                    status=form.status,
                )
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Failed to update invoice {invoice_id}")
            return FormState(message=UPDATE_DB_MESSAGE)

        logger.info(f"Updated invoice {invoice_id}")
        self.cache.revalidate_path(settings.INVOICES_PATH)
        return redirect(settings.INVOICES_PATH)

    async def delete_invoice(self, invoice_id: str) -> Optional[FormState]:
        """Delete an invoice; an unknown id is not an error."""
        try:
            await self.db.execute(delete(Invoice).where(Invoice.id == invoice_id))
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(f"Failed to delete invoice {invoice_id}")
            return FormState(message=DELETE_DB_MESSAGE)

        logger.info(f"Deleted invoice {invoice_id}")
        self.cache.revalidate_path(settings.INVOICES_PATH)
        return None

    async def fetch_invoice_listing(self) -> List[InvoiceListItem]:
        result = await self.db.execute(
            select(
                Invoice.id,
                Invoice.amount,
                Invoice.date,
                Invoice.status,
                Customer.name,
                Customer.email,
                Customer.image_url,
            )
            .join(Customer, Invoice.customer_id == Customer.id)
            .order_by(Invoice.date.desc(), Invoice.id)
        )
        return [InvoiceListItem.model_validate(dict(row)) for row in result.mappings()]
