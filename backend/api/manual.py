"""API-key protected endpoints for scripted access."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.dependencies import get_ingest_service, get_journal, require_api_key
from api.ingest import run_ingest
from database import get_db
from models import Account, Transaction
from schemas import AccountListResponse, ManualIngestResponse, TransactionListResponse
from services.ingest_service import IngestService
from services.run_journal import RunJournal, utc_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/manual",
    tags=["manual"],
    dependencies=[Depends(require_api_key)],
)


def _internal_error(journal: RunJournal, action: str, error: Exception) -> HTTPException:
    logger.error("Manual %s failed", action, exc_info=True)
    journal.record({
        "status": "error",
        "action": action,
        "error": str(error),
        "timestamp": utc_timestamp(),
    })
    return HTTPException(status_code=500, detail="Internal server error")


@router.get("/accounts", response_model=AccountListResponse)
def list_accounts(
    db: Session = Depends(get_db),
    journal: RunJournal = Depends(get_journal),
):
    """List all accounts."""
    try:
        accounts = db.query(Account).order_by(Account.name).all()
    except SQLAlchemyError as e:
        raise _internal_error(journal, "manual-accounts", e)

    journal.record({
        "status": "manual-accounts-fetched",
        "timestamp": utc_timestamp(),
        "count": len(accounts),
    })
    return {"accounts": accounts, "total": len(accounts)}


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    journal: RunJournal = Depends(get_journal),
):
    """List transactions, newest first."""
    try:
        transactions = (
            db.query(Transaction)
            .order_by(Transaction.posted_at.desc(), Transaction.created_at.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        total = db.query(Transaction).count()
    except SQLAlchemyError as e:
        raise _internal_error(journal, "manual-transactions", e)

    journal.record({
        "status": "manual-transactions-fetched",
        "timestamp": utc_timestamp(),
        "returned": len(transactions),
        "total": total,
    })
    return {"transactions": transactions, "total": total, "limit": limit, "offset": offset}


@router.post("/ingest", response_model=ManualIngestResponse)
def manual_ingest(
    db: Session = Depends(get_db),
    service: IngestService = Depends(get_ingest_service),
    journal: RunJournal = Depends(get_journal),
):
    """Trigger an ingest run with the configured lookback window."""
    report = run_ingest(db, service, journal, None, action="manual-ingest")
    return ManualIngestResponse(status="success", **report.to_dict())
