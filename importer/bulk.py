# importer/bulk.py
"""
Bulk import submission.

Rows are parsed locally, then handed to a single server-side procedure that
resolves tickers, skips duplicates and inserts. Every outcome, including a
failed call, comes back as a report; nothing here raises on backend errors.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable

from core.errors import BackendError
from importer.issue_parser import NO_VALID_ROWS_REASON, parse_issue_rows
from importer.report import ImportReport, StockImportReport
from importer.stock_parser import NO_VALID_STOCK_ROWS_REASON, parse_stock_rows
from supabase_client.config import get_admin_supabase_client
from supabase_client.helpers import call_rpc

logger = logging.getLogger(__name__)


def submit_issue_import(rows: Iterable[Dict[str, Any]], admin_code: str, client: Any = None) -> ImportReport:
    parsed = parse_issue_rows(rows)
    if not parsed:
        return ImportReport.failure(NO_VALID_ROWS_REASON)

    sb = client if client is not None else get_admin_supabase_client(admin_code)
    try:
        result = call_rpc(
            sb,
            "bulk_insert_issues",
            {"admin_code": admin_code, "data": [row.to_payload() for row in parsed]},
        )
    except BackendError as e:
        return ImportReport.failure(str(e.cause or e))

    report = ImportReport.from_result(result)
    logger.info(
        "[Import] issues: %d inserted, %d skipped tickers, %d duplicates, %d errors",
        report.inserted, len(report.skipped), report.duplicate_count, len(report.errors),
    )
    return report


def submit_stock_import(rows: Iterable[Dict[str, Any]], admin_code: str, client: Any = None) -> StockImportReport:
    parsed = parse_stock_rows(rows)
    if not parsed:
        return StockImportReport(error=NO_VALID_STOCK_ROWS_REASON)

    sb = client if client is not None else get_admin_supabase_client(admin_code)
    try:
        result = call_rpc(
            sb,
            "bulk_update_stock_metrics",
            {"admin_code": admin_code, "data": [row.to_payload() for row in parsed]},
        )
    except BackendError as e:
        return StockImportReport(error=str(e.cause or e))

    report = StockImportReport.from_result(result)
    logger.info("[Import] stocks: %d updated, %d inserted", report.updated, report.inserted)
    return report
