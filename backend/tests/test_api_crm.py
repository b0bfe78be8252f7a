"""
Tests for the CRM and auth routers, calling the route functions directly.
"""
import pytest
from fastapi.testclient import TestClient

from app.core.errors import AppError
from conftest import make_result


class TestLeadsAPI:

    @pytest.mark.asyncio
    async def test_convert_lead(self, mock_db_session, sales_principal):
        from app.api.v1.leads import convert_lead_to_opportunity
        from app.models.lead import Lead

        lead = Lead(id=3, company_id=1, name="Jo", email="jo@x.com", company="Acme", status="new")
        mock_db_session.execute.return_value = make_result(scalar=lead)

        response = await convert_lead_to_opportunity(3, None, mock_db_session, sales_principal)

        assert response["success"] is True
        assert response["data"]["lead"]["status"] == "qualified"
        assert response["data"]["opportunity"]["title"] == "Acme - Jo"
        assert response["data"]["opportunity"]["probability"] == 25

    @pytest.mark.asyncio
    async def test_convert_missing_lead(self, mock_db_session, sales_principal):
        from app.api.v1.leads import convert_lead_to_opportunity

        with pytest.raises(AppError) as exc_info:
            await convert_lead_to_opportunity(99, None, mock_db_session, sales_principal)

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Lead not found"


class TestProductsAPI:

    @pytest.mark.asyncio
    async def test_duplicate_sku(self, mock_db_session, admin_principal):
        from app.api.v1.products import create_product
        from app.schemas.crm import ProductCreate

        mock_db_session.execute.return_value = make_result(scalar=5)
        payload = ProductCreate(name="Cup", sku="CUP-1", category="Cups", price=2)

        with pytest.raises(AppError) as exc_info:
            await create_product(payload, mock_db_session, admin_principal)

        assert exc_info.value.status_code == 409
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_computes_margin(self, mock_db_session, admin_principal):
        from app.api.v1.products import create_product
        from app.schemas.crm import ProductCreate

        payload = ProductCreate(name="Cup", sku="CUP-1", category="Cups", price=2, cost=1.5)

        response = await create_product(payload, mock_db_session, admin_principal)

        assert response["data"]["margin"] == 25.0
        assert response["data"]["company_id"] == 1


class TestCreditLimitsAPI:

    @pytest.mark.asyncio
    async def test_hold_and_release(self, mock_db_session, admin_principal):
        from app.api.v1.credit_limits import update_credit_limit
        from app.models.credit_limit import CreditLimit
        from app.schemas.crm import CreditLimitUpdate

        credit = CreditLimit(id=1, company_id=1, customer_id=2, credit_limit=1000, credit_used=250,
                             credit_hold=False)
        mock_db_session.execute.return_value = make_result(scalar=credit)

        held = await update_credit_limit(
            1, CreditLimitUpdate(credit_hold=True, credit_hold_reason="Late payments"),
            mock_db_session, admin_principal,
        )

        assert held["data"]["credit_hold"] is True
        assert held["data"]["credit_hold_date"] is not None
        assert held["data"]["credit_available"] == 750

        released = await update_credit_limit(1, CreditLimitUpdate(credit_hold=False), mock_db_session, admin_principal)

        assert released["data"]["credit_hold_date"] is None
        assert released["data"]["credit_hold_reason"] is None

    @pytest.mark.asyncio
    async def test_limit_change_recomputes_available(self, mock_db_session, admin_principal):
        from app.api.v1.credit_limits import update_credit_limit
        from app.models.credit_limit import CreditLimit
        from app.schemas.crm import CreditLimitUpdate

        credit = CreditLimit(id=1, company_id=1, customer_id=2, credit_limit=1000, credit_used=250)
        mock_db_session.execute.return_value = make_result(scalar=credit)

        response = await update_credit_limit(1, CreditLimitUpdate(credit_limit=500), mock_db_session, admin_principal)

        assert response["data"]["credit_available"] == 250


class TestApprovalsAPI:

    @pytest.mark.asyncio
    async def test_decision_message(self, mock_db_session, admin_principal):
        from app.api.v1.approvals import decide_approval
        from app.models.approval import Approval
        from app.schemas.crm import ApprovalDecision

        approval = Approval(
            id=1, company_id=1, status="Pending", current_level=1, total_levels=1,
            approvers=[{"user_id": 5, "level": 1, "status": "Pending", "approved_date": None, "comments": None}],
        )
        mock_db_session.execute.return_value = make_result(scalar=approval)

        response = await decide_approval(1, ApprovalDecision(decision="approve"), mock_db_session, admin_principal)

        assert response["message"] == "Approval approved"
        assert response["data"]["status"] == "Approved"
        assert response["data"]["approved_by"] == 1


class TestRegister:

    def test_weak_password(self, mock_db_session):
        from app.api.deps import get_db
        from app.main import app

        async def override_get_db():
            yield mock_db_session

        app.dependency_overrides[get_db] = override_get_db
        try:
            response = TestClient(app).post(
                "/api/v1/auth/register",
                json={"companyName": "Acme", "name": "Ada", "email": "ada@acme.com", "password": "short"},
            )
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "WEAK_PASSWORD"
        mock_db_session.add.assert_not_called()


class TestActivitiesAPI:

    @pytest.mark.asyncio
    async def test_linked_lead_must_exist(self, mock_db_session, sales_principal):
        from app.api.v1.activities import create_activity
        from app.schemas.crm import ActivityCreate

        payload = ActivityCreate(lead_id=99, type="Call", subject="Intro", description="First call")

        with pytest.raises(AppError) as exc_info:
            await create_activity(payload, mock_db_session, sales_principal)

        assert exc_info.value.message == "Lead not found"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_completed_call_moves_new_lead_to_contacted(self, mock_db_session, sales_principal):
        from app.api.v1.activities import create_activity
        from app.models.lead import Lead
        from app.schemas.crm import ActivityCreate

        lead = Lead(id=3, company_id=1, name="Jo", email="jo@x.com", status="new")
        mock_db_session.execute.return_value = make_result(scalar=lead)
        payload = ActivityCreate(lead_id=3, type="Call", subject="Intro", description="First call",
                                 status="Completed", outcome="Positive")

        response = await create_activity(payload, mock_db_session, sales_principal)

        assert lead.status == "contacted"
        assert response["data"]["assigned_to"] == 7
        assert response["data"]["completed_date"] is not None

    @pytest.mark.asyncio
    async def test_completing_later_leaves_qualified_lead_alone(self, mock_db_session, sales_principal):
        from unittest.mock import AsyncMock

        from app.api.v1.activities import update_activity
        from app.models.activity import Activity
        from app.models.lead import Lead
        from app.schemas.crm import ActivityUpdate

        activity = Activity(id=4, company_id=1, lead_id=3, type="Visit", subject="Demo", description="Demo",
                            assigned_to=7, status="Scheduled")
        lead = Lead(id=3, company_id=1, name="Jo", email="jo@x.com", status="qualified")
        mock_db_session.execute = AsyncMock(side_effect=[
            make_result(scalar=activity),
            make_result(scalar=lead),
        ])

        response = await update_activity(4, ActivityUpdate(status="Completed"), mock_db_session, sales_principal)

        assert response["data"]["status"] == "Completed"
        assert response["data"]["completed_date"] is not None
        assert lead.status == "qualified"


class TestInvoicesAPI:

    @pytest.mark.asyncio
    async def test_pricing_is_locked_after_a_payment(self, mock_db_session, admin_principal):
        from app.api.v1.invoices import update_invoice
        from app.models.invoice import Invoice
        from app.schemas.crm import InvoiceUpdate

        invoice = Invoice(id=1, company_id=1, invoice_number="INV-2024-0001", total=110, paid_amount=50,
                          tax_rate=10, discount=0, items=[], status="partial")
        mock_db_session.execute.return_value = make_result(scalar=invoice)

        with pytest.raises(AppError) as exc_info:
            await update_invoice(1, InvoiceUpdate(discount=5), mock_db_session, admin_principal)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Cannot change line items on an invoice with recorded payments"
        assert invoice.discount == 0
        mock_db_session.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_paid_invoice_still_takes_notes(self, mock_db_session, admin_principal):
        from app.api.v1.invoices import update_invoice
        from app.models.invoice import Invoice
        from app.schemas.crm import InvoiceUpdate

        invoice = Invoice(id=1, company_id=1, invoice_number="INV-2024-0001", total=110, paid_amount=50,
                          tax_rate=10, discount=0, items=[], status="partial")
        mock_db_session.execute.return_value = make_result(scalar=invoice)

        response = await update_invoice(1, InvoiceUpdate(notes="Second instalment due"), mock_db_session,
                                        admin_principal)

        assert response["data"]["notes"] == "Second instalment due"
        assert response["data"]["balance"] == 60


class TestConvertRoutes:

    @pytest.fixture
    def quote(self):
        from app.models.quote import Quote

        return Quote(
            id=2, company_id=1, quote_number="QT-2024-0001", customer_id=5, customer_name="Acme",
            customer_email="buy@acme.com", items=[{"product_id": 1, "quantity": 2, "unit_price": 50}],
            subtotal=100, tax=10, tax_rate=10, discount=0, total=110, status="sent",
        )

    @pytest.mark.asyncio
    async def test_quote_becomes_pending_order(self, mock_db_session, sales_principal, quote):
        from datetime import datetime
        from unittest.mock import AsyncMock

        from app.api.v1.quotes import convert_quote

        mock_db_session.execute = AsyncMock(side_effect=[
            make_result(scalar=quote),
            make_result(scalar=3),
        ])

        response = await convert_quote(2, mock_db_session, sales_principal)

        order = response["data"]["sales_order"]
        assert order["order_number"] == f"SO-{datetime.utcnow().year}-0004"
        assert order["status"] == "Pending"
        assert order["total"] == 110
        assert order["quote_id"] == 2
        assert response["data"]["quote"]["status"] == "accepted"
        assert response["message"] == "Quote converted to sales order successfully"

    @pytest.mark.asyncio
    async def test_accepted_quote_cannot_convert_twice(self, mock_db_session, sales_principal, quote):
        from app.api.v1.quotes import convert_quote

        quote.status = "accepted"
        mock_db_session.execute.return_value = make_result(scalar=quote)

        with pytest.raises(AppError) as exc_info:
            await convert_quote(2, mock_db_session, sales_principal)

        assert exc_info.value.status_code == 409
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_order_becomes_invoice(self, mock_db_session, admin_principal):
        from datetime import date, datetime
        from unittest.mock import AsyncMock

        from app.api.v1.sales_orders import convert_sales_order
        from app.models.sales_order import SalesOrder
        from app.schemas.crm import SalesOrderConvert

        order = SalesOrder(
            id=4, company_id=1, order_number="SO-2024-0004", quote_id=2, customer_name="Acme",
            customer_email="buy@acme.com", items=[], subtotal=100, tax=10, tax_rate=10, discount=0,
            total=110, payment_terms="Net 30", status="Pending",
        )

        async def assign_id():
            mock_db_session.add.call_args.args[0].id = 9

        mock_db_session.flush = AsyncMock(side_effect=assign_id)
        mock_db_session.execute = AsyncMock(side_effect=[
            make_result(scalar=order),
            make_result(scalar=0),
        ])

        response = await convert_sales_order(
            4, SalesOrderConvert(due_date=date(2030, 1, 31)), mock_db_session, admin_principal
        )

        invoice = response["data"]["invoice"]
        assert invoice["invoice_number"] == f"INV-{datetime.utcnow().year}-0001"
        assert invoice["due_date"] == "2030-01-31"
        assert invoice["status"] == "sent"
        assert invoice["balance"] == 110
        assert invoice["sales_order_id"] == 4
        assert response["data"]["sales_order"]["status"] == "Processing"
        assert response["data"]["sales_order"]["invoice_id"] == 9

    @pytest.mark.asyncio
    async def test_invoiced_order_conflicts(self, mock_db_session, admin_principal):
        from app.api.v1.sales_orders import convert_sales_order
        from app.models.sales_order import SalesOrder

        order = SalesOrder(id=4, company_id=1, order_number="SO-2024-0004", status="Processing", invoice_id=9)
        mock_db_session.execute.return_value = make_result(scalar=order)

        with pytest.raises(AppError) as exc_info:
            await convert_sales_order(4, None, mock_db_session, admin_principal)

        assert exc_info.value.message == "Sales order has already been invoiced"
