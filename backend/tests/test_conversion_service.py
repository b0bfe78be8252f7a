"""
Tests for app/services/crm/conversion_service.py - lead, quote and order conversion.
"""
from datetime import date

import pytest

from app.core.errors import AppError
from conftest import make_result


class TestPaymentDueDate:

    @pytest.mark.parametrize(
        "terms, expected",
        [
            ("Net 15", date(2024, 3, 16)),
            ("Net 30", date(2024, 3, 31)),
            ("COD", date(2024, 3, 1)),
            ("Prepaid", date(2024, 3, 1)),
            ("Whenever", date(2024, 3, 31)),
            (None, date(2024, 3, 31)),
        ],
    )
    def test_terms(self, terms, expected):
        from app.services.crm.conversion_service import payment_due_date

        assert payment_due_date(terms, date(2024, 3, 1)) == expected


class TestLeadConversion:

    @pytest.fixture
    def lead(self):
        from app.models.lead import Lead

        return Lead(
            id=3,
            company_id=1,
            name="Jo Buyer",
            email="jo@resort.com",
            phone="8765551234",
            company="Seaside Resort",
            status="new",
            notes="Wants cups",
            assigned_to=7,
        )

    def test_build_opportunity_defaults(self, lead):
        from app.schemas.crm import LeadConvert
        from app.services.crm.conversion_service import build_opportunity_from_lead

        opportunity = build_opportunity_from_lead(lead, LeadConvert(), today=date(2024, 3, 1))

        assert opportunity.title == "Seaside Resort - Jo Buyer"
        assert opportunity.probability == 25
        assert opportunity.stage == "prospecting"
        assert opportunity.expected_close_date == date(2024, 3, 31)
        assert opportunity.assigned_to == 7
        assert opportunity.notes == "Wants cups"
        assert opportunity.lead_id == 3

    def test_build_opportunity_overrides(self, lead):
        from app.schemas.crm import LeadConvert
        from app.services.crm.conversion_service import build_opportunity_from_lead

        payload = LeadConvert(title="Big deal", value=5000, expected_close_date=date(2024, 6, 1))

        opportunity = build_opportunity_from_lead(lead, payload)

        assert opportunity.title == "Big deal"
        assert opportunity.value == 5000
        assert opportunity.expected_close_date == date(2024, 6, 1)

    @pytest.mark.asyncio
    async def test_convert_marks_lead_qualified(self, lead, mock_db_session):
        from app.schemas.crm import LeadConvert
        from app.services.crm.conversion_service import convert_lead

        opportunity = await convert_lead(mock_db_session, lead, LeadConvert())

        assert lead.status == "qualified"
        mock_db_session.add.assert_called_once_with(opportunity)
        mock_db_session.commit.assert_awaited_once()


def _quote(**overrides):
    from app.models.quote import Quote

    fields = dict(
        id=4,
        company_id=1,
        quote_number="QT-2024-0004",
        customer_name="Seaside Resort",
        items=[{"description": "Cups", "quantity": 10, "unit_price": 2.0, "total": 20.0}],
        subtotal=20.0,
        tax=2.0,
        tax_rate=10.0,
        discount=0.0,
        total=22.0,
        status="sent",
    )
    fields.update(overrides)
    return Quote(**fields)


class TestQuoteToOrder:

    @pytest.mark.asyncio
    async def test_creates_pending_order(self, mock_db_session):
        from app.services.crm.conversion_service import convert_quote_to_order

        mock_db_session.execute.return_value = make_result(scalar=2)
        quote = _quote()

        order = await convert_quote_to_order(mock_db_session, quote, created_by=1)

        assert order.status == "Pending"
        assert order.order_number.startswith("SO-")
        assert order.order_number.endswith("-0003")
        assert order.total == 22.0
        assert order.quote_id == 4
        assert quote.status == "accepted"
        assert quote.accepted_at is not None

    @pytest.mark.asyncio
    async def test_accepted_quote_conflicts(self, mock_db_session):
        from app.services.crm.conversion_service import convert_quote_to_order

        with pytest.raises(AppError) as exc_info:
            await convert_quote_to_order(mock_db_session, _quote(status="accepted"), created_by=1)

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["rejected", "expired"])
    async def test_closed_quote_is_invalid(self, mock_db_session, status):
        from app.services.crm.conversion_service import convert_quote_to_order

        with pytest.raises(AppError) as exc_info:
            await convert_quote_to_order(mock_db_session, _quote(status=status), created_by=1)

        assert exc_info.value.status_code == 400
        mock_db_session.add.assert_not_called()


def _order(**overrides):
    from app.models.sales_order import SalesOrder

    fields = dict(
        id=9,
        company_id=1,
        order_number="SO-2024-0009",
        quote_id=4,
        customer_name="Seaside Resort",
        items=[],
        subtotal=20.0,
        tax=2.0,
        tax_rate=10.0,
        discount=0.0,
        total=22.0,
        payment_terms="Net 15",
        status="Pending",
        invoice_id=None,
    )
    fields.update(overrides)
    return SalesOrder(**fields)


class TestOrderToInvoice:

    @pytest.mark.asyncio
    async def test_creates_sent_invoice(self, mock_db_session):
        from app.schemas.crm import SalesOrderConvert
        from app.services.crm.conversion_service import convert_order_to_invoice

        order = _order()

        invoice = await convert_order_to_invoice(mock_db_session, order, SalesOrderConvert(), created_by=1)

        assert invoice.status == "sent"
        assert invoice.invoice_number.startswith("INV-")
        assert invoice.paid_amount == 0
        assert invoice.terms == "Net 15"
        assert (invoice.due_date - invoice.sent_at.date()).days == 15
        assert order.status == "Processing"
        assert order.processed_at is not None
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_explicit_due_date(self, mock_db_session):
        from app.schemas.crm import SalesOrderConvert
        from app.services.crm.conversion_service import convert_order_to_invoice

        payload = SalesOrderConvert(due_date=date(2030, 1, 1), terms="COD")

        invoice = await convert_order_to_invoice(mock_db_session, _order(), payload, created_by=1)

        assert invoice.due_date == date(2030, 1, 1)
        assert invoice.terms == "COD"

    @pytest.mark.asyncio
    async def test_already_invoiced(self, mock_db_session):
        from app.schemas.crm import SalesOrderConvert
        from app.services.crm.conversion_service import convert_order_to_invoice

        with pytest.raises(AppError) as exc_info:
            await convert_order_to_invoice(mock_db_session, _order(invoice_id=1), SalesOrderConvert(), None)

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_cancelled_order(self, mock_db_session):
        from app.schemas.crm import SalesOrderConvert
        from app.services.crm.conversion_service import convert_order_to_invoice

        with pytest.raises(AppError) as exc_info:
            await convert_order_to_invoice(mock_db_session, _order(status="Cancelled"), SalesOrderConvert(), None)

        assert exc_info.value.status_code == 400
