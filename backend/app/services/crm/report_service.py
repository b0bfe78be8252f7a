"""
Sales and financial report builders.

Sales funnel, pipeline value and per-rep performance come from aggregate
queries; the financial report pulls the period's invoices and orders and
shapes them in Python.
"""

from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import validation_error
from app.models.customer import Customer
from app.models.invoice import Invoice
from app.models.lead import Lead
from app.models.opportunity import Opportunity, CLOSED_STAGES
from app.models.quote import Quote
from app.models.sales_order import SalesOrder, REVENUE_ORDER_STATUSES
from app.models.user import User

TIME_RANGES = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}
TREND_MONTHS = {"7d": 1, "30d": 3, "90d": 6, "1y": 12}
PENDING_STATUSES = ("sent", "partial")


def percentage(part: float, whole: float) -> float:
    return round((part / whole) * 100, 2) if whole else 0.0


def range_start(time_range: str, now: Optional[datetime] = None) -> datetime:
    if time_range not in TIME_RANGES:
        raise validation_error("Invalid time range", details={"allowed": list(TIME_RANGES)})
    return (now or datetime.now(timezone.utc)) - timedelta(days=TIME_RANGES[time_range])


def month_windows(months: int, now: Optional[datetime] = None) -> list[tuple[datetime, datetime]]:
    """[start, end) windows for the last ``months`` calendar months, oldest first."""
    now = now or datetime.utcnow()
    windows = []
    year, month = now.year, now.month
    for _ in range(months):
        start = datetime(year, month, 1)
        end = datetime(year + (month == 12), month % 12 + 1, 1)
        windows.append((start, end))
        year, month = (year - 1, 12) if month == 1 else (year, month - 1)
    return list(reversed(windows))


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.replace(tzinfo=None) - (value.utcoffset() or timedelta(0))


def build_funnel(counts: dict) -> dict:
    """Shape lead/opportunity/quote/invoice counts into funnel stages and conversion rates."""
    leads = counts["leads"]
    stages = [
        ("Leads", leads),
        ("Qualified Leads", counts["qualified_leads"]),
        ("Opportunities", counts["opportunities"]),
        ("Quotes", counts["quotes"]),
        ("Invoices", counts["invoices"]),
        ("Paid", counts["paid_invoices"]),
    ]
    return {
        "funnel": [
            {"stage": name, "count": count, "percentage": 100.0 if name == "Leads" else percentage(count, leads)}
            for name, count in stages
        ],
        "conversion_rates": {
            "lead_to_qualified": percentage(counts["qualified_leads"], leads),
            "lead_to_opportunity": percentage(counts["opportunities"], leads),
            "opportunity_to_won": percentage(counts["won_opportunities"], counts["opportunities"]),
            "quote_to_accepted": percentage(counts["accepted_quotes"], counts["quotes"]),
            "invoice_to_paid": percentage(counts["paid_invoices"], counts["invoices"]),
        },
    }


def summarize_payments(invoices: Iterable[Invoice]) -> dict:
    pending = overdue = collected = 0.0
    days_to_pay = []
    for invoice in invoices:
        total = float(invoice.total or 0)
        if invoice.status in PENDING_STATUSES:
            pending += total
        elif invoice.status == "overdue":
            overdue += total
        elif invoice.status == "paid":
            collected += total
            if invoice.paid_date and invoice.created_at:
                days_to_pay.append((_naive(invoice.paid_date) - _naive(invoice.created_at)).days)
    return {
        "total_pending": round(pending, 2),
        "total_overdue": round(overdue, 2),
        "total_collected": round(collected, 2),
        "collection_rate": percentage(collected, pending + overdue + collected),
        "average_days_to_pay": round(sum(days_to_pay) / len(days_to_pay), 1) if days_to_pay else 0,
    }


def overdue_accounts(invoices: Iterable[Invoice], today) -> list[dict]:
    accounts = [
        {
            "customer_id": invoice.customer_id,
            "customer_name": invoice.customer_name or "Unknown",
            "invoice_id": invoice.id,
            "invoice_number": invoice.invoice_number,
            "amount": invoice.total,
            "balance": invoice.balance,
            "due_date": invoice.due_date.isoformat() if invoice.due_date else None,
            "days_overdue": (today - invoice.due_date).days if invoice.due_date else 0,
        }
        for invoice in invoices
    ]
    return sorted(accounts, key=lambda a: a["days_overdue"], reverse=True)


def revenue_by_category(rows: Iterable[tuple[Optional[str], float]]) -> list[dict]:
    """rows are (customer category, order total) pairs."""
    totals: dict[str, float] = defaultdict(float)
    for category, revenue in rows:
        totals[category or "Other"] += float(revenue or 0)
    grand_total = sum(totals.values())
    result = [
        {"category": category, "revenue": round(revenue, 2), "percentage": percentage(revenue, grand_total)}
        for category, revenue in totals.items()
    ]
    return sorted(result, key=lambda r: r["revenue"], reverse=True)


class SalesReportService:
    """CRM dashboard reports for one company."""

    def __init__(self, db: AsyncSession, company_id: int):
        self.db = db
        self.company_id = company_id

    async def _count(self, model, *conditions) -> int:
        result = await self.db.execute(
            select(func.count(model.id)).where(model.company_id == self.company_id, *conditions)
        )
        return result.scalar() or 0

    async def sales_funnel(self) -> dict:
        counts = {
            "leads": await self._count(Lead),
            "qualified_leads": await self._count(Lead, Lead.status == "qualified"),
            "opportunities": await self._count(Opportunity),
            "won_opportunities": await self._count(Opportunity, Opportunity.stage == "closed-won"),
            "quotes": await self._count(Quote),
            "accepted_quotes": await self._count(Quote, Quote.status == "accepted"),
            "invoices": await self._count(Invoice),
            "paid_invoices": await self._count(Invoice, Invoice.status == "paid"),
        }
        return build_funnel(counts)

    async def pipeline_value(self) -> dict:
        weighted = func.sum(Opportunity.value * Opportunity.probability / 100.0)
        stage_rows = (
            await self.db.execute(
                select(
                    Opportunity.stage,
                    func.coalesce(func.sum(Opportunity.value), 0).label("total_value"),
                    func.count(Opportunity.id).label("count"),
                    func.coalesce(weighted, 0).label("weighted_value"),
                )
                .where(
                    Opportunity.company_id == self.company_id,
                    Opportunity.stage.notin_(CLOSED_STAGES),
                )
                .group_by(Opportunity.stage)
                .order_by(func.sum(Opportunity.value).desc())
            )
        ).all()

        won = (
            await self.db.execute(
                select(
                    func.coalesce(func.sum(Opportunity.value), 0).label("total_value"),
                    func.count(Opportunity.id).label("count"),
                ).where(
                    Opportunity.company_id == self.company_id,
                    Opportunity.stage == "closed-won",
                )
            )
        ).one()

        by_stage = [
            {
                "stage": row.stage,
                "value": round(float(row.total_value or 0), 2),
                "count": row.count,
                "weighted_value": round(float(row.weighted_value or 0), 2),
            }
            for row in stage_rows
        ]
        return {
            "total_pipeline": round(sum(s["value"] for s in by_stage), 2),
            "total_weighted_pipeline": round(sum(s["weighted_value"] for s in by_stage), 2),
            "pipeline_by_stage": by_stage,
            "won_deals": {"value": round(float(won.total_value or 0), 2), "count": won.count or 0},
        }

    async def sales_performance(self, time_range: str = "30d") -> dict:
        """Per-rep opportunity outcomes over the period."""
        start = range_start(time_range)
        rows = (
            await self.db.execute(
                select(
                    User.id,
                    User.name,
                    func.count(Opportunity.id).label("opportunities"),
                    func.sum(case((Opportunity.stage == "closed-won", 1), else_=0)).label("won"),
                    func.sum(case((Opportunity.stage == "closed-lost", 1), else_=0)).label("lost"),
                    func.coalesce(
                        func.sum(case((Opportunity.stage == "closed-won", Opportunity.value), else_=0)), 0
                    ).label("won_value"),
                )
                .join(Opportunity, Opportunity.assigned_to == User.id)
                .where(
                    Opportunity.company_id == self.company_id,
                    Opportunity.created_at >= start,
                )
                .group_by(User.id, User.name)
                .order_by(func.sum(case((Opportunity.stage == "closed-won", Opportunity.value), else_=0)).desc())
            )
        ).all()

        reps = []
        for row in rows:
            won = int(row.won or 0)
            closed = won + int(row.lost or 0)
            reps.append({
                "user_id": row.id,
                "name": row.name,
                "opportunities": row.opportunities,
                "won": won,
                "lost": int(row.lost or 0),
                "won_value": round(float(row.won_value or 0), 2),
                "win_rate": percentage(won, closed),
            })
        return {
            "time_range": time_range,
            "reps": reps,
            "totals": {
                "opportunities": sum(r["opportunities"] for r in reps),
                "won": sum(r["won"] for r in reps),
                "won_value": round(sum(r["won_value"] for r in reps), 2),
            },
        }

    async def financial(self, time_range: str = "30d") -> dict:
        now = datetime.now(timezone.utc)
        start = range_start(time_range, now)

        period_invoices = (
            await self.db.execute(
                select(Invoice).where(
                    Invoice.company_id == self.company_id,
                    Invoice.created_at >= start,
                )
            )
        ).scalars().all()

        overdue = (
            await self.db.execute(
                select(Invoice).where(
                    Invoice.company_id == self.company_id,
                    Invoice.status == "overdue",
                )
            )
        ).scalars().all()

        category_rows = (
            await self.db.execute(
                select(Customer.category, SalesOrder.total)
                .select_from(SalesOrder)
                .outerjoin(Customer, Customer.id == SalesOrder.customer_id)
                .where(
                    SalesOrder.company_id == self.company_id,
                    SalesOrder.created_at >= start,
                    SalesOrder.status.in_(REVENUE_ORDER_STATUSES),
                )
            )
        ).all()

        windows = month_windows(TREND_MONTHS[time_range], now)
        trend_invoices = (
            await self.db.execute(
                select(Invoice).where(
                    Invoice.company_id == self.company_id,
                    Invoice.created_at >= windows[0][0].replace(tzinfo=timezone.utc),
                )
            )
        ).scalars().all()

        trends = []
        for window_start, window_end in windows:
            in_window = [
                inv for inv in trend_invoices
                if inv.created_at and window_start <= _naive(inv.created_at) < window_end
            ]
            summary = summarize_payments(in_window)
            trends.append({
                "month": window_start.strftime("%b %Y"),
                "collected": summary["total_collected"],
                "pending": summary["total_pending"],
                "overdue": summary["total_overdue"],
            })

        return {
            "payment_summary": summarize_payments(period_invoices),
            "overdue_accounts": overdue_accounts(overdue, now.date()),
            "revenue_by_category": revenue_by_category((row[0], row[1]) for row in category_rows),
            "payment_trends": trends,
        }
