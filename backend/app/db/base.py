# Import all the models, so that Base has them before being
# imported by Alembic
from app.db.base_class import Base  # noqa

from app.models.company import Company  # noqa
from app.models.user import User  # noqa
from app.models.refresh_token import RefreshToken  # noqa

# HR
from app.models.employee import Employee  # noqa
from app.models.attendance import Attendance  # noqa
from app.models.payroll import Payroll  # noqa
from app.models.leave_request import LeaveRequest  # noqa
from app.models.performance_review import PerformanceReview  # noqa

# CRM and sales documents
from app.models.lead import Lead  # noqa
from app.models.opportunity import Opportunity  # noqa
from app.models.customer import Customer  # noqa
from app.models.quote import Quote  # noqa
from app.models.sales_order import SalesOrder  # noqa
from app.models.invoice import Invoice  # noqa
from app.models.payment import Payment  # noqa
from app.models.promotion import Promotion  # noqa
from app.models.credit_limit import CreditLimit  # noqa
from app.models.approval import Approval  # noqa
from app.models.product import Product  # noqa
from app.models.task import Task  # noqa
from app.models.activity import Activity  # noqa

# Cross-cutting
from app.models.notification import Notification  # noqa
from app.models.document import Document  # noqa
