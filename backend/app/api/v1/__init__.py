from fastapi import APIRouter

from app.api.v1 import (
    activities,
    approvals,
    attendance,
    auth,
    credit_limits,
    crm_reports,
    customers,
    delivery_receipts,
    documents,
    employees,
    hr_reports,
    integrations,
    invoices,
    leads,
    leave_requests,
    notifications,
    opportunities,
    payments,
    payroll,
    performance,
    products,
    promotions,
    quotes,
    sales_orders,
    tasks,
    users,
)

hr_router = APIRouter()
hr_router.include_router(employees.router, prefix="/employees", tags=["hr-employees"])
hr_router.include_router(payroll.router, prefix="/payroll", tags=["hr-payroll"])
hr_router.include_router(leave_requests.router, prefix="/leave-requests", tags=["hr-leave"])
hr_router.include_router(performance.router, prefix="/performance", tags=["hr-performance"])
hr_router.include_router(hr_reports.router, prefix="/reports", tags=["hr-reports"])

crm_router = APIRouter()
crm_router.include_router(leads.router, prefix="/leads", tags=["crm-leads"])
crm_router.include_router(opportunities.router, prefix="/opportunities", tags=["crm-opportunities"])
crm_router.include_router(tasks.router, prefix="/tasks", tags=["crm-tasks"])
crm_router.include_router(activities.router, prefix="/activities", tags=["crm-activities"])
crm_router.include_router(customers.router, prefix="/customers", tags=["crm-customers"])
crm_router.include_router(quotes.router, prefix="/quotes", tags=["crm-quotes"])
crm_router.include_router(sales_orders.router, prefix="/sales-orders", tags=["crm-sales-orders"])
crm_router.include_router(invoices.router, prefix="/invoices", tags=["crm-invoices"])
crm_router.include_router(payments.router, prefix="/payments", tags=["crm-payments"])
crm_router.include_router(delivery_receipts.router, prefix="/delivery-receipts", tags=["crm-deliveries"])
crm_router.include_router(documents.router, prefix="/documents", tags=["crm-documents"])
crm_router.include_router(promotions.router, prefix="/promotions", tags=["crm-promotions"])
crm_router.include_router(credit_limits.router, prefix="/credit-limits", tags=["crm-credit-limits"])
crm_router.include_router(approvals.router, prefix="/approvals", tags=["crm-approvals"])
crm_router.include_router(products.router, prefix="/products", tags=["crm-products"])
crm_router.include_router(crm_reports.router, prefix="/reports", tags=["crm-reports"])

api_router = APIRouter()
# Public: login/register and the inbound-mail webhook
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(integrations.router, prefix="/integrations", tags=["integrations"])
api_router.include_router(attendance.router, prefix="/attendance", tags=["attendance"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(hr_router, prefix="/hr")
api_router.include_router(crm_router, prefix="/crm")
