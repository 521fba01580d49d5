from invoice_dashboard.models.customer import Customer
from invoice_dashboard.models.invoice import Invoice, InvoiceStatus
from invoice_dashboard.models.user import User

__all__ = ["Customer", "Invoice", "InvoiceStatus", "User"]
