"""Reports router -- user-submitted reports."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from chatguard.engine import Engine
from web.backend.app.middleware.auth import get_engine
from web.backend.app.models.api import ReportRequest, SubmitReportResponse
from web.backend.app.serializers import report_response

router = APIRouter(prefix="/api", tags=["reports"])


@router.post(
    "/report",
    response_model=SubmitReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report a user",
)
async def submit_report(body: ReportRequest, engine: Engine = Depends(get_engine)):
    result = engine.reports.submit(
        body.reportedBy,
        body.reportedUserId,
        body.reason,
        details=body.details,
        screenshot=body.screenshot,
    )
    return SubmitReportResponse(
        success=True,
        report=report_response(result.report),
        autoQuarantined=result.auto_quarantined,
        quarantineLevel=result.quarantine_level,
    )
