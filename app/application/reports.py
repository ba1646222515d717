"""
Generated reports: JSON snapshots of monthly / budget / trend computations.

A report is computed once and stored as COMPLETED with its data; downloads
serve the stored snapshot, not a recomputation.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Session

from app.application.budget import get_budget_analysis
from app.application.errors import NotFoundError
from app.application.monthly import get_monthly_details
from app.application.salary import get_salary
from app.config import get_settings
from app.domain.budget import savings_rate
from app.domain.period import month_range, month_start, month_last_day, month_name
from app.infrastructure.db.models import ReportModel
from app.utils.money import format_money

logger = logging.getLogger(__name__)

REPORT_MONTHLY_SUMMARY = "MONTHLY_SUMMARY"
REPORT_BUDGET_ANALYSIS = "BUDGET_ANALYSIS"
REPORT_SPENDING_TRENDS = "SPENDING_TRENDS"

REPORTS_LIST_LIMIT = 20


class ReportValidationError(ValueError):
    pass


def _validate_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise ReportValidationError("Месяц должен быть от 1 до 12")


def _save_report(
    db: Session,
    user_id: int,
    report_type: str,
    title: str,
    description: str,
    period: Tuple[int, int, int, int],
    categories: list,
    data: Dict[str, Any],
) -> ReportModel:
    y_from, m_from, y_to, m_to = period
    report = ReportModel(
        user_id=user_id,
        report_type=report_type,
        title=title,
        description=description,
        start_date=month_start(y_from, m_from),
        end_date=month_last_day(y_to, m_to),
        categories=categories,
        data=data,
        status="COMPLETED",
        generated_at=datetime.now(timezone.utc),
    )
    db.add(report)
    db.commit()
    logger.info("Report %s generated for user %s (id=%s)", report_type, user_id, report.id)
    return report


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------


def monthly_insights(details: Dict[str, Any], budget: Dict[str, Any], salary: float) -> List[Dict[str, str]]:
    insights = []

    if salary and details["total_actual"] > 0:
        spending_rate = details["total_actual"] / salary * 100
        if spending_rate > 90:
            insights.append({
                "type": "warning",
                "title": "High Spending Rate",
                "message": f"You spent {spending_rate:.1f}% of your income this month. "
                           f"Consider reviewing your expenses.",
            })
        elif spending_rate < 70:
            insights.append({
                "type": "positive",
                "title": "Great Savings Rate",
                "message": f"You saved {100 - spending_rate:.1f}% of your income this month. "
                           f"Excellent financial discipline!",
            })

    over_budget = [c for c in budget["categories"] if c["is_over_budget"]]
    if over_budget:
        first = over_budget[0]
        insights.append({
            "type": "warning",
            "title": "Budget Exceeded",
            "message": f"{len(over_budget)} categories exceeded their budget. Focus on {first['name']} "
                       f"which was {abs(first['remaining']):.0f} over budget.",
        })

    unpaid = sum(1 for i in details["items"] if not i["is_paid"] and not i["is_skipped"])
    if unpaid:
        insights.append({
            "type": "info",
            "title": "Pending Payments",
            "message": f"You have {unpaid} expenses still pending payment for this month.",
        })

    return insights


def budget_recommendations(budget: Dict[str, Any]) -> List[Dict[str, str]]:
    settings = get_settings()
    currency = settings.CURRENCY
    recommendations = []

    if budget["has_unassigned_income"] and budget["unassigned_amount"] > settings.UNASSIGNED_NOTIFY_MIN:
        recommendations.append({
            "type": "allocation",
            "priority": "medium",
            "title": "Allocate Unassigned Budget",
            "description": f"You have {format_money(budget['unassigned_amount'], currency, 0)} unassigned. "
                           f"Consider allocating it to emergency fund or investment categories.",
        })

    over_budget = [c for c in budget["categories"] if c["is_over_budget"]]
    if over_budget:
        worst = max(over_budget, key=lambda c: abs(c["remaining"]))
        recommendations.append({
            "type": "reduction",
            "priority": "high",
            "title": f"Reduce {worst['name']} Spending",
            "description": f"This category is {format_money(abs(worst['remaining']), currency, 0)} over budget. "
                           f"Consider reviewing expenses in this area.",
        })

    under_used = [c for c in budget["categories"] if c["usage_percentage"] < 50 and c["budget_percentage"] > 0]
    if under_used:
        recommendations.append({
            "type": "reallocation",
            "priority": "low",
            "title": "Consider Budget Reallocation",
            "description": f"Categories like {under_used[0]['name']} are under-utilized. "
                           f"You might reallocate some budget to other areas.",
        })

    return recommendations


def category_trends(months: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """category name -> per-month series (only months where the category had items)"""
    trends: Dict[str, List[Dict[str, Any]]] = {}
    for data in months:
        for cat in data["category_data"]:
            trends.setdefault(cat["category"], []).append({
                "period": data["month_name"],
                "estimated": cat["estimated"],
                "actual": cat["actual"],
                "count": cat["count"],
                "year": data["year"],
                "month": data["month"],
            })
    return trends


def trend_insights(months: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Compare the last two months; silent under a 10% change or without a base"""
    if len(months) < 2:
        return []
    latest, previous = months[-1], months[-2]
    if not previous["total_actual"]:
        return []

    change = (latest["total_actual"] - previous["total_actual"]) / previous["total_actual"] * 100
    if abs(change) <= 10:
        return []
    word = "increased" if change > 0 else "decreased"
    return [{
        "type": "warning" if change > 0 else "positive",
        "title": f"Spending {word.capitalize()}",
        "message": f"Your spending {word} by {abs(change):.1f}% compared to last month.",
    }]


# ---------------------------------------------------------------------------
# Generators
# ---------------------------------------------------------------------------


class GenerateMonthlySummaryReportUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, year: int, month: int) -> ReportModel:
        _validate_month(month)
        details = get_monthly_details(self.db, user_id, year, month)
        budget = get_budget_analysis(self.db, user_id, year, month)
        salary = get_salary(self.db, user_id, year, month) or 0.0

        data = {
            "period": {"year": year, "month": month, "month_name": details["month_name"]},
            "summary": {
                "total_estimated": details["total_estimated"],
                "total_actual": details["total_actual"],
                "total_paid": details["total_paid"],
                "total_pending": details["total_pending"],
                "monthly_income": salary,
                "savings_amount": salary - details["total_actual"] if salary else 0.0,
                "savings_rate": savings_rate(salary, details["total_actual"]),
            },
            "category_breakdown": details["category_data"],
            "budget_analysis": budget["categories"],
            "expenses": [
                {
                    "name": i["name"],
                    "category": i["category_name"],
                    "subcategory": i["subcategory_name"],
                    "estimated": i["estimated_amount"],
                    "actual": i["actual_amount"],
                    "is_paid": i["is_paid"],
                    "is_skipped": i["is_skipped"],
                    "frequency": i["frequency"],
                }
                for i in details["items"]
            ],
            "insights": monthly_insights(details, budget, salary),
        }

        return _save_report(
            self.db, user_id, REPORT_MONTHLY_SUMMARY,
            title=f"Monthly Summary - {details['month_name']}",
            description=f"Complete financial summary for {details['month_name']}",
            period=(year, month, year, month),
            categories=[c["category"] for c in details["category_data"]],
            data=data,
        )


class GenerateBudgetAnalysisReportUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, year: int, month: int) -> ReportModel:
        _validate_month(month)
        budget = get_budget_analysis(self.db, user_id, year, month)
        categories = budget["categories"]

        data = {
            "period": {"year": year, "month": month},
            "budget_summary": {
                "monthly_income": budget["monthly_income"],
                "total_budget_percentage": budget["total_budget_percentage"],
                "has_unassigned_income": budget["has_unassigned_income"],
                "unassigned_amount": budget["unassigned_amount"],
            },
            "categories": categories,
            "performance": {
                "categories_over_budget": sum(1 for c in categories if c["is_over_budget"]),
                "categories_on_track": sum(
                    1 for c in categories if not c["is_over_budget"] and c["usage_percentage"] > 0
                ),
                "average_usage": (
                    sum(c["usage_percentage"] for c in categories) / len(categories) if categories else 0.0
                ),
            },
            "recommendations": budget_recommendations(budget),
        }

        return _save_report(
            self.db, user_id, REPORT_BUDGET_ANALYSIS,
            title=f"Budget Analysis - {month_name(year, month)}",
            description="Detailed budget performance analysis",
            period=(year, month, year, month),
            categories=[c["id"] for c in categories],
            data=data,
        )


class GenerateSpendingTrendsReportUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, year_from: int, month_from: int, year_to: int, month_to: int) -> ReportModel:
        _validate_month(month_from)
        _validate_month(month_to)
        periods = month_range(year_from, month_from, year_to, month_to)
        if not periods:
            raise ReportValidationError("Начало периода позже конца")

        months = [get_monthly_details(self.db, user_id, y, m) for y, m in periods]
        data = {
            "total_spending": [
                {
                    "period": d["month_name"],
                    "estimated": d["total_estimated"],
                    "actual": d["total_actual"],
                    "year": d["year"],
                    "month": d["month"],
                }
                for d in months
            ],
            "category_trends": category_trends(months),
            "insights": trend_insights(months),
        }

        return _save_report(
            self.db, user_id, REPORT_SPENDING_TRENDS,
            title=f"Spending Trends - {len(months)} months",
            description=f"Spending analysis from {months[0]['month_name']} to {months[-1]['month_name']}",
            period=(year_from, month_from, year_to, month_to),
            categories=[],
            data=data,
        )


# ---------------------------------------------------------------------------
# Access
# ---------------------------------------------------------------------------


def list_reports(db: Session, user_id: int) -> List[ReportModel]:
    return (
        db.query(ReportModel)
        .filter(ReportModel.user_id == user_id)
        .order_by(ReportModel.created_at.desc(), ReportModel.id.desc())
        .limit(REPORTS_LIST_LIMIT)
        .all()
    )


def _get_owned(db: Session, user_id: int, report_id: int) -> ReportModel:
    report = db.query(ReportModel).filter(
        ReportModel.id == report_id,
        ReportModel.user_id == user_id,
    ).first()
    if not report:
        raise NotFoundError(f"Отчёт #{report_id} не найден")
    return report


def get_report(db: Session, user_id: int, report_id: int) -> ReportModel:
    """Fetch an owned report and count the access as a download"""
    report = _get_owned(db, user_id, report_id)
    report.download_count = (report.download_count or 0) + 1
    report.last_download_at = datetime.now(timezone.utc)
    db.commit()
    return report


class DeleteReportUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, report_id: int) -> None:
        report = _get_owned(self.db, user_id, report_id)
        self.db.delete(report)
        self.db.commit()


def report_filename(report: ReportModel) -> str:
    start = report.start_date.strftime("%Y-%m")
    if report.report_type == REPORT_MONTHLY_SUMMARY:
        return f"monthly-summary-{start}.json"
    if report.report_type == REPORT_BUDGET_ANALYSIS:
        return f"budget-analysis-{start}.json"
    if report.report_type == REPORT_SPENDING_TRENDS:
        return f"spending-trends-{start}-to-{report.end_date.strftime('%Y-%m')}.json"
    return f"report-{report.id}.json"


def build_report_download(report: ReportModel) -> Tuple[str, str]:
    """
    (filename, JSON text) for a stored report.

    Raises:
        ReportValidationError: report has no data
    """
    if not report.data:
        raise ReportValidationError("Данные отчёта недоступны")

    content = {
        "title": report.title,
        "type": report.report_type,
        "description": report.description,
        "period": {
            "start_date": report.start_date.isoformat(),
            "end_date": report.end_date.isoformat(),
        },
        "data": report.data,
        "generated_at": report.generated_at.isoformat() if report.generated_at else None,
        "downloaded_at": datetime.now(timezone.utc).isoformat(),
    }
    return report_filename(report), json.dumps(content, indent=2, ensure_ascii=False, default=str)
