"""Ingest API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from api.dependencies import get_ingest_service, get_journal
from database import get_db
from schemas import IngestReportResponse
from services.ingest_service import IngestReport, IngestService
from services.run_journal import RunJournal, utc_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ingest", tags=["ingest"])


def run_ingest(
    db: Session,
    service: IngestService,
    journal: RunJournal,
    lookback_days: Optional[int],
    action: str,
) -> IngestReport:
    """Run one ingest and journal the outcome; shared by the public and manual routes.

    Per-item failures come back inside the report. Anything raised here
    is a fatal fault (storage unreachable, etc.) and becomes a 500.
    """
    try:
        report = service.ingest(db, lookback_days)
    except Exception as e:
        # Never expose str(e) to the client
        logger.error("Unexpected error during ingest", exc_info=True)
        journal.record({
            "status": "error",
            "action": action,
            "error": str(e),
            "timestamp": utc_timestamp(),
        })
        raise HTTPException(
            status_code=500,
            detail="An unexpected error occurred during ingest.",
        )

    journal.record({
        "status": f"{action}-complete",
        "timestamp": utc_timestamp(),
        **report.to_dict(),
    })
    return report


@router.post("", response_model=IngestReportResponse)
def trigger_ingest(
    lookback_days: Optional[int] = Query(default=None, ge=1, le=730),
    db: Session = Depends(get_db),
    service: IngestService = Depends(get_ingest_service),
    journal: RunJournal = Depends(get_journal),
):
    """Fetch, classify and store transactions for every linked item.

    Always returns 200 with the run report when the run completes; items
    that failed are listed in ``errors``.
    """
    report = run_ingest(db, service, journal, lookback_days, action="ingest")
    return IngestReportResponse(**report.to_dict())
