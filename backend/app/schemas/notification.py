from typing import Optional, List

from pydantic import Field

from app.schemas.common import APIModel

_TYPE_PATTERN = (
    "^(task_reminder|task_created|task_overdue|customer_reengagement|customer_contact|"
    "customer_high_risk|overdue_invoices|new_lead|quote_converted|order_delivered|"
    "daily_digest|weekly_digest|general)$"
)


class NotificationCreate(APIModel):
    user_id: Optional[int] = None
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    type: str = Field(..., pattern=_TYPE_PATTERN)
    priority: str = Field("Medium", pattern="^(Low|Medium|High|Urgent)$")
    data: dict = {}
    related_lead_id: Optional[int] = None
    related_opportunity_id: Optional[int] = None
    related_customer_id: Optional[int] = None
    related_order_id: Optional[int] = None
    related_invoice_id: Optional[int] = None
    related_quote_id: Optional[int] = None
    related_task_id: Optional[int] = None


class NotificationBulkAction(APIModel):
    notification_ids: List[int] = Field(..., min_length=1)
    # markAsRead | markAsUnread | delete; anything else is rejected by the route
    action: str


class MaintenanceRequest(APIModel):
    task: str = Field(..., pattern="^(overdue-invoices|overdue-tasks|notification-cleanup)$")
