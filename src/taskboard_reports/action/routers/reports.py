"""Director and senior-manager report routes."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from taskboard_reports.db.connection import get_session
from taskboard_reports.db.snapshot import load_department_snapshot, load_organization_snapshot
from taskboard_reports.reporting.report_assembler import (
    SCOPE_DEPARTMENT,
    SCOPE_ORGANIZATION,
    Report,
    ReportScope,
    ReportScopeError,
    assemble,
    parse_scope,
)
from taskboard_reports.reporting.report_document import format_report_summary, serialize_report

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reports"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _department_scope(department_id: str | None) -> ReportScope:
    """Validate the departmentId query parameter, mapping failures to 400."""
    try:
        return parse_scope(SCOPE_DEPARTMENT, department_id)
    except ReportScopeError as exc:
        logger.info("Rejected department report request: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc))


async def _department_report(session: AsyncSession, scope: ReportScope) -> Report:
    snapshot = await load_department_snapshot(session, scope.scope_id)
    return assemble(
        scope,
        snapshot.projects,
        snapshot.tasks,
        snapshot.users,
        snapshot.departments,
        now=_now(),
        organization_name=settings.organization_name,
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/director/report")
async def director_report(
    department_id: str | None = Query(default=None, alias="departmentId"),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Department-level report: scope, overdue breakdown, milestones and team."""
    scope = _department_scope(department_id)
    report = await _department_report(session, scope)
    return serialize_report(report)


@router.get("/director/report/summary", response_class=PlainTextResponse)
async def director_report_summary(
    department_id: str | None = Query(default=None, alias="departmentId"),
    session: AsyncSession = Depends(get_session),
) -> str:
    """Plain-text rendering of the department report."""
    scope = _department_scope(department_id)
    report = await _department_report(session, scope)
    return format_report_summary(report)


@router.get("/senior-manager/report")
async def senior_manager_report(session: AsyncSession = Depends(get_session)) -> dict:
    """Company-wide report with per-department and per-project breakdowns."""
    scope = parse_scope(SCOPE_ORGANIZATION)
    snapshot = await load_organization_snapshot(session)
    now = _now()
    report = assemble(
        scope,
        snapshot.projects,
        snapshot.tasks,
        snapshot.users,
        snapshot.departments,
        now=now,
        organization_name=settings.organization_name,
    )
    document = serialize_report(report)
    document["scopeInfo"]["totalDepartments"] = len(snapshot.departments)
    document["scopeInfo"]["reportGeneratedAt"] = now.isoformat()
    return document
