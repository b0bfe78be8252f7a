from datetime import date, datetime
from typing import Optional, List

from pydantic import EmailStr, Field

from app.schemas.common import APIModel, LineItem


class LeadCreate(APIModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = ""
    company: str
    source: str
    status: str = Field("new", pattern="^(new|contacted|qualified|unqualified)$")
    notes: str = ""
    assigned_to: Optional[int] = None
    tags: List[str] = []
    category: Optional[str] = Field(None, pattern="^(Hotel|Supermarket|Restaurant|Contractor|Other)$")
    product_interest: List[str] = []
    monthly_volume: Optional[float] = Field(None, ge=0)
    territory: Optional[str] = None
    lead_score: int = Field(0, ge=0, le=100)
    customer_type: Optional[str] = None


class LeadUpdate(APIModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    source: Optional[str] = None
    status: Optional[str] = Field(None, pattern="^(new|contacted|qualified|unqualified)$")
    notes: Optional[str] = None
    assigned_to: Optional[int] = None
    tags: Optional[List[str]] = None
    category: Optional[str] = Field(None, pattern="^(Hotel|Supermarket|Restaurant|Contractor|Other)$")
    product_interest: Optional[List[str]] = None
    monthly_volume: Optional[float] = Field(None, ge=0)
    territory: Optional[str] = None
    lead_score: Optional[int] = Field(None, ge=0, le=100)
    customer_type: Optional[str] = None


class LeadConvert(APIModel):
    title: Optional[str] = None
    value: float = Field(0, ge=0)
    expected_close_date: Optional[date] = None
    notes: Optional[str] = None


_STAGE_PATTERN = "^(prospecting|qualification|proposal|negotiation|closed-won|closed-lost)$"


class OpportunityCreate(APIModel):
    lead_id: Optional[int] = None
    title: str = Field(..., min_length=1)
    customer_name: str
    customer_email: EmailStr
    customer_phone: Optional[str] = None
    value: float = Field(..., ge=0)
    stage: str = Field("prospecting", pattern=_STAGE_PATTERN)
    probability: int = Field(25, ge=0, le=100)
    expected_close_date: date
    assigned_to: Optional[int] = None
    notes: str = ""
    tags: List[str] = []


class OpportunityUpdate(APIModel):
    title: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    value: Optional[float] = Field(None, ge=0)
    stage: Optional[str] = Field(None, pattern=_STAGE_PATTERN)
    probability: Optional[int] = Field(None, ge=0, le=100)
    expected_close_date: Optional[date] = None
    assigned_to: Optional[int] = None
    notes: Optional[str] = None
    lost_reason: Optional[str] = None
    tags: Optional[List[str]] = None


class CustomerCreate(APIModel):
    company_name: str
    contact_person: str
    email: EmailStr
    phone: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: str = "Jamaica"
    category: str = Field(..., pattern="^(Hotel|Supermarket|Restaurant|Contractor|Other)$")
    customer_type: str = Field(..., pattern="^(Volume Buyer|Commercial|Retail|Wholesale|Other)$")
    territory: Optional[str] = None
    assigned_to: Optional[int] = None
    payment_terms: str = Field("Net 30", pattern="^(COD|Net 15|Net 30|Net 60|Prepaid|Credit)$")
    credit_limit: Optional[float] = Field(None, ge=0)
    status: str = Field("Prospect", pattern="^(Active|Inactive|Suspended|Prospect)$")
    rating: Optional[int] = Field(None, ge=1, le=5)
    tags: List[str] = []
    notes: Optional[str] = None


class CustomerUpdate(APIModel):
    company_name: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    category: Optional[str] = Field(None, pattern="^(Hotel|Supermarket|Restaurant|Contractor|Other)$")
    customer_type: Optional[str] = Field(None, pattern="^(Volume Buyer|Commercial|Retail|Wholesale|Other)$")
    territory: Optional[str] = None
    assigned_to: Optional[int] = None
    payment_terms: Optional[str] = Field(None, pattern="^(COD|Net 15|Net 30|Net 60|Prepaid|Credit)$")
    credit_limit: Optional[float] = Field(None, ge=0)
    status: Optional[str] = Field(None, pattern="^(Active|Inactive|Suspended|Prospect)$")
    rating: Optional[int] = Field(None, ge=1, le=5)
    tags: Optional[List[str]] = None
    notes: Optional[str] = None


class SalesDocumentBase(APIModel):
    customer_id: Optional[int] = None
    customer_name: str
    customer_email: EmailStr
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    items: List[LineItem] = Field(..., min_length=1)
    tax_rate: Optional[float] = Field(None, ge=0)
    discount: float = Field(0, ge=0)
    notes: str = ""


class QuoteCreate(SalesDocumentBase):
    opportunity_id: Optional[int] = None
    valid_until: Optional[date] = None
    terms: Optional[str] = None
    status: str = Field("draft", pattern="^(draft|sent|accepted|rejected|expired)$")


class QuoteUpdate(APIModel):
    customer_name: Optional[str] = None
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    items: Optional[List[LineItem]] = None
    tax_rate: Optional[float] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0)
    valid_until: Optional[date] = None
    status: Optional[str] = Field(None, pattern="^(draft|sent|accepted|rejected|expired)$")
    notes: Optional[str] = None
    terms: Optional[str] = None


_ORDER_STATUS_PATTERN = "^(Pending|Processing|Dispatched|Delivered|Cancelled)$"


class SalesOrderCreate(SalesDocumentBase):
    quote_id: Optional[int] = None
    order_date: Optional[date] = None
    delivery_date: Optional[date] = None
    delivery_address: Optional[str] = None
    payment_terms: Optional[str] = Field(None, pattern="^(COD|Net 15|Net 30|Net 60|Prepaid|Credit)$")
    assigned_to: Optional[int] = None


class SalesOrderUpdate(APIModel):
    status: Optional[str] = Field(None, pattern=_ORDER_STATUS_PATTERN)
    delivery_date: Optional[date] = None
    delivery_address: Optional[str] = None
    assigned_to: Optional[int] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    tracking_number: Optional[str] = None
    delivery_notes: Optional[str] = None
    notes: Optional[str] = None


class SalesOrderConvert(APIModel):
    due_date: Optional[date] = None
    terms: Optional[str] = None


class InvoiceCreate(SalesDocumentBase):
    quote_id: Optional[int] = None
    sales_order_id: Optional[int] = None
    due_date: date
    terms: Optional[str] = None
    status: str = Field("draft", pattern="^(draft|sent)$")


class InvoiceUpdate(APIModel):
    customer_name: Optional[str] = None
    customer_email: Optional[EmailStr] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    items: Optional[List[LineItem]] = None
    tax_rate: Optional[float] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0)
    due_date: Optional[date] = None
    status: Optional[str] = Field(None, pattern="^(draft|sent|overdue|cancelled)$")
    notes: Optional[str] = None
    terms: Optional[str] = None


class PaymentCreate(APIModel):
    invoice_id: Optional[int] = None
    amount: Optional[float] = Field(None, gt=0)
    method: str = Field("bank-transfer", pattern="^(cash|card|bank-transfer|check|other)$")
    reference: str = ""
    notes: str = ""
    receipt_url: Optional[str] = None


class DocumentCreate(APIModel):
    file_name: str
    original_name: str
    file_path: str
    file_size: int = Field(..., ge=0)
    mime_type: str
    category: str = Field("Other", pattern="^(Quote|Invoice|Delivery|Payment|Contract|Other)$")
    related_to: str = Field(
        "General", pattern="^(Lead|Opportunity|Customer|Quote|Order|Invoice|Activity|General)$"
    )
    related_id: Optional[int] = None
    description: Optional[str] = None
    tags: List[str] = []
    is_public: bool = False
    access_level: str = Field("Internal", pattern="^(Private|Internal|Customer|Public)$")


_PROMOTION_TYPE_PATTERN = "^(Percentage|Fixed Amount|Buy X Get Y|Volume Discount|Free Shipping)$"
_PROMOTION_STATUS_PATTERN = "^(Draft|Pending Approval|Active|Expired|Cancelled)$"


class PromotionCreate(APIModel):
    name: str
    description: str = ""
    type: str = Field(..., pattern=_PROMOTION_TYPE_PATTERN)
    value: float = Field(..., ge=0)
    min_order_value: Optional[float] = Field(None, ge=0)
    max_discount: Optional[float] = Field(None, ge=0)
    applicable_to: str = "All Products"
    product_ids: List[int] = []
    customer_ids: List[int] = []
    start_date: date
    end_date: date
    usage_limit: Optional[int] = Field(None, ge=0)
    status: str = Field("Draft", pattern=_PROMOTION_STATUS_PATTERN)
    conditions: dict = {}
    notes: Optional[str] = None


class PromotionUpdate(APIModel):
    name: Optional[str] = None
    description: Optional[str] = None
    value: Optional[float] = Field(None, ge=0)
    min_order_value: Optional[float] = Field(None, ge=0)
    max_discount: Optional[float] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None
    usage_limit: Optional[int] = Field(None, ge=0)
    status: Optional[str] = Field(None, pattern=_PROMOTION_STATUS_PATTERN)
    conditions: Optional[dict] = None
    notes: Optional[str] = None


class CreditLimitCreate(APIModel):
    customer_id: int
    credit_limit: float = Field(..., ge=0)
    credit_used: float = Field(0, ge=0)
    payment_terms: str = Field("Net 30", pattern="^(COD|Net 15|Net 30|Net 60|Prepaid|Credit)$")
    credit_score: Optional[int] = Field(None, ge=0, le=1000)
    risk_level: str = Field("Low", pattern="^(Low|Medium|High|Critical)$")
    notes: Optional[str] = None


class CreditLimitUpdate(APIModel):
    credit_limit: Optional[float] = Field(None, ge=0)
    credit_used: Optional[float] = Field(None, ge=0)
    payment_terms: Optional[str] = Field(None, pattern="^(COD|Net 15|Net 30|Net 60|Prepaid|Credit)$")
    credit_hold: Optional[bool] = None
    credit_hold_reason: Optional[str] = None
    credit_score: Optional[int] = Field(None, ge=0, le=1000)
    risk_level: Optional[str] = Field(None, pattern="^(Low|Medium|High|Critical)$")
    notes: Optional[str] = None


class ApproverEntry(APIModel):
    user_id: int
    level: int = Field(..., ge=1)


class ApprovalCreate(APIModel):
    type: str = Field(..., pattern="^(Quote|Discount|Credit|Return|Refund|Price|Order)$")
    related_id: int
    related_type: str = Field(..., pattern="^(Quote|Invoice|Order|Customer|Product)$")
    title: str
    description: str = ""
    amount: Optional[float] = None
    currency: str = "USD"
    priority: str = Field("Medium", pattern="^(Low|Medium|High|Urgent)$")
    approvers: List[ApproverEntry] = Field(..., min_length=1)
    due_date: Optional[date] = None
    comments: Optional[str] = None


class ApprovalDecision(APIModel):
    decision: str = Field(..., pattern="^(approve|reject)$")
    comments: Optional[str] = None


class ProductCreate(APIModel):
    name: str
    description: str = ""
    sku: str
    category: str
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    unit: str = "each"
    price: float = Field(..., ge=0)
    cost: float = Field(0, ge=0)
    images: List[str] = []
    specifications: dict = {}
    pricing: dict = {}
    status: str = Field("Active", pattern="^(Active|Inactive|Discontinued)$")
    tags: List[str] = []
    tax_category: str = "standard"
    supplier: Optional[dict] = None


class ProductUpdate(APIModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    unit: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    cost: Optional[float] = Field(None, ge=0)
    images: Optional[List[str]] = None
    specifications: Optional[dict] = None
    pricing: Optional[dict] = None
    status: Optional[str] = Field(None, pattern="^(Active|Inactive|Discontinued)$")
    tags: Optional[List[str]] = None
    supplier: Optional[dict] = None


_TASK_TYPE_PATTERN = "^(Follow-up|Call|Visit|Email|WhatsApp|Meeting|Review|Other)$"
_TASK_RELATED_PATTERN = "^(Lead|Opportunity|Customer|Quote|Order|Invoice|General)$"
_TASK_STATUS_PATTERN = "^(Pending|In Progress|Completed|Cancelled|Overdue)$"
_PRIORITY_PATTERN = "^(Low|Medium|High|Urgent)$"
_RECURRING_PATTERN = "^(Daily|Weekly|Monthly|Quarterly)$"


class TaskCreate(APIModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    type: str = Field(..., pattern=_TASK_TYPE_PATTERN)
    related_to: str = Field("General", pattern=_TASK_RELATED_PATTERN)
    related_id: Optional[int] = None
    assigned_to: Optional[int] = None
    due_date: datetime
    priority: str = Field("Medium", pattern=_PRIORITY_PATTERN)
    notes: Optional[str] = None
    is_recurring: bool = False
    recurring_pattern: Optional[str] = Field(None, pattern=_RECURRING_PATTERN)
    recurring_interval: Optional[int] = Field(None, ge=1)
    reminder_date: Optional[datetime] = None
    depends_on: List[int] = []
    blocks: List[int] = []


class TaskUpdate(APIModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    type: Optional[str] = Field(None, pattern=_TASK_TYPE_PATTERN)
    assigned_to: Optional[int] = None
    due_date: Optional[datetime] = None
    priority: Optional[str] = Field(None, pattern=_PRIORITY_PATTERN)
    status: Optional[str] = Field(None, pattern=_TASK_STATUS_PATTERN)
    notes: Optional[str] = None
    is_recurring: Optional[bool] = None
    recurring_pattern: Optional[str] = Field(None, pattern=_RECURRING_PATTERN)
    recurring_interval: Optional[int] = Field(None, ge=1)
    reminder_date: Optional[datetime] = None
    depends_on: Optional[List[int]] = None
    blocks: Optional[List[int]] = None


_ACTIVITY_TYPE_PATTERN = "^(Call|Visit|Meeting|Email|WhatsApp|Task|Note)$"
_ACTIVITY_OUTCOME_PATTERN = "^(Positive|Neutral|Negative|No Response|Follow-up Required)$"
_ACTIVITY_STATUS_PATTERN = "^(Scheduled|In Progress|Completed|Cancelled)$"


class ActivityCreate(APIModel):
    lead_id: Optional[int] = None
    opportunity_id: Optional[int] = None
    customer_id: Optional[int] = None
    type: str = Field(..., pattern=_ACTIVITY_TYPE_PATTERN)
    subject: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    duration: Optional[int] = Field(None, ge=0)
    outcome: Optional[str] = Field(None, pattern=_ACTIVITY_OUTCOME_PATTERN)
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    assigned_to: Optional[int] = None
    status: str = Field("Scheduled", pattern=_ACTIVITY_STATUS_PATTERN)
    priority: str = Field("Medium", pattern=_PRIORITY_PATTERN)
    location: Optional[str] = None
    attachments: List[str] = []
    related_quote_id: Optional[int] = None
    related_order_id: Optional[int] = None
    related_invoice_id: Optional[int] = None
    next_follow_up_date: Optional[datetime] = None


class ActivityUpdate(APIModel):
    type: Optional[str] = Field(None, pattern=_ACTIVITY_TYPE_PATTERN)
    subject: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)
    outcome: Optional[str] = Field(None, pattern=_ACTIVITY_OUTCOME_PATTERN)
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    assigned_to: Optional[int] = None
    status: Optional[str] = Field(None, pattern=_ACTIVITY_STATUS_PATTERN)
    priority: Optional[str] = Field(None, pattern=_PRIORITY_PATTERN)
    location: Optional[str] = None
    attachments: Optional[List[str]] = None
    next_follow_up_date: Optional[datetime] = None
