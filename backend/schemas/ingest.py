"""Pydantic schemas for ingest runs."""

from datetime import date

from pydantic import BaseModel, ConfigDict


class ItemErrorResponse(BaseModel):
    item_id: str
    message: str
    retriable: bool = False

    model_config = ConfigDict(from_attributes=True)


class IngestReportResponse(BaseModel):
    """Result of one ingest run.

    A non-empty ``errors`` list means some items failed while the others
    were ingested; it is not a failure of the run as a whole.
    """

    lookback_days: int
    start_date: date
    end_date: date
    total_items: int
    total_fetched: int
    total_inserted: int
    total_categorized: int
    errors: list[ItemErrorResponse]

    model_config = ConfigDict(from_attributes=True)


class ManualIngestResponse(IngestReportResponse):
    status: str = "success"
