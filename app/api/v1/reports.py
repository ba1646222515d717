"""
Report endpoints: generate, list, fetch, delete, download
"""
from datetime import date, datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.infrastructure.db.models import User, ReportModel
from app.application.reports import (
    GenerateMonthlySummaryReportUseCase, GenerateBudgetAnalysisReportUseCase,
    GenerateSpendingTrendsReportUseCase, DeleteReportUseCase, ReportValidationError,
    list_reports, get_report, build_report_download,
)


router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


class MonthReportRequest(BaseModel):
    year: int
    month: int


class TrendsReportRequest(BaseModel):
    year_from: int
    month_from: int
    year_to: int
    month_to: int


class ReportSummaryResponse(BaseModel):
    id: int
    report_type: str
    title: str
    description: str | None
    start_date: date
    end_date: date
    status: str
    generated_at: datetime | None
    download_count: int
    created_at: datetime


class ReportResponse(ReportSummaryResponse):
    categories: list[Any] | None
    data: dict[str, Any] | None
    last_download_at: datetime | None


def _summary(r: ReportModel) -> ReportSummaryResponse:
    return ReportSummaryResponse(
        id=r.id,
        report_type=r.report_type,
        title=r.title,
        description=r.description,
        start_date=r.start_date,
        end_date=r.end_date,
        status=r.status,
        generated_at=r.generated_at,
        download_count=r.download_count,
        created_at=r.created_at,
    )


def _full(r: ReportModel) -> ReportResponse:
    return ReportResponse(
        **_summary(r).model_dump(),
        categories=r.categories,
        data=r.data,
        last_download_at=r.last_download_at,
    )


@router.post("/monthly-summary", response_model=ReportResponse, status_code=201)
def generate_monthly_summary(
    req: MonthReportRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _full(GenerateMonthlySummaryReportUseCase(db).execute(user.id, req.year, req.month))


@router.post("/budget-analysis", response_model=ReportResponse, status_code=201)
def generate_budget_analysis(
    req: MonthReportRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _full(GenerateBudgetAnalysisReportUseCase(db).execute(user.id, req.year, req.month))


@router.post("/spending-trends", response_model=ReportResponse, status_code=201)
def generate_spending_trends(
    req: TrendsReportRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    report = GenerateSpendingTrendsReportUseCase(db).execute(
        user.id, req.year_from, req.month_from, req.year_to, req.month_to,
    )
    return _full(report)


@router.get("/", response_model=list[ReportSummaryResponse])
def get_reports(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """20 последних отчётов"""
    return [_summary(r) for r in list_reports(db, user.id)]


@router.get("/{report_id}", response_model=ReportResponse)
def read_report(
    report_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _full(get_report(db, user.id, report_id))


@router.get("/{report_id}/download")
def download_report(
    report_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """JSON-файл отчёта как attachment"""
    report = get_report(db, user.id, report_id)
    try:
        filename, content = build_report_download(report)
    except ReportValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return Response(
        content=content,
        media_type="application/json",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Pragma": "no-cache",
            "Expires": "0",
        },
    )


@router.delete("/{report_id}")
def delete_report(
    report_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    DeleteReportUseCase(db).execute(user.id, report_id)
    return {"status": "deleted"}
