"""
Admin endpoints
---------------
Everything here requires the `x-admin-code` header (see backend.deps).

- POST /admin/issues/import          : spreadsheet -> bulk_insert_issues
- POST /admin/stocks/import          : spreadsheet -> bulk_update_stock_metrics
- POST /admin/stocks/{id}/summary    : Gemini summary of the issue timeline
- GET  /admin/analytics              : view analytics + numpy insights
- POST /admin/portfolios/{id}/activate | deactivate
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from analytics.ai_summary import generate_ai_summary
from analytics.view_insights import compute_view_insights
from backend.deps import get_admin_client, require_admin_code
from importer.bulk import submit_issue_import, submit_stock_import
from importer.excel import read_issue_rows, read_stock_rows
from supabase_client import mutations, queries

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/issues/import")
async def import_issues(
    file: UploadFile = File(...),
    admin_code: str = Depends(require_admin_code),
    sb: Any = Depends(get_admin_client),
) -> Dict[str, Any]:
    rows = read_issue_rows(await file.read(), file.filename)
    return submit_issue_import(rows, admin_code, client=sb).to_dict()


@router.post("/stocks/import")
async def import_stocks(
    file: UploadFile = File(...),
    admin_code: str = Depends(require_admin_code),
    sb: Any = Depends(get_admin_client),
) -> Dict[str, Any]:
    rows = read_stock_rows(await file.read(), file.filename)
    return submit_stock_import(rows, admin_code, client=sb).to_dict()


@router.post("/stocks/{stock_id}/summary")
def summarize_stock(
    stock_id: str,
    admin_code: str = Depends(require_admin_code),
    sb: Any = Depends(get_admin_client),
) -> Dict[str, Any]:
    stocks = queries.fetch_stocks_with_relations([stock_id], client=sb)
    if not stocks:
        raise HTTPException(status_code=404, detail=f"Stock {stock_id} not found")
    stock = stocks[0]

    result = generate_ai_summary(stock.name_kr or stock.name, stock.issues)
    mutations.update_stock_ai_summary(admin_code, stock_id, result["summary"], result["keywords"], client=sb)
    return {"stock_id": stock_id, **result}


@router.get("/analytics")
def analytics(
    period: str = Query("daily", pattern="^(daily|weekly|monthly)$"),
    portfolio_id: Optional[str] = None,
    sb: Any = Depends(get_admin_client),
) -> Dict[str, Any]:
    data = queries.fetch_portfolio_analytics(period, portfolio_id, client=sb)
    return {"analytics": data.model_dump(), "insights": compute_view_insights(data)}


@router.post("/portfolios/{portfolio_id}/activate")
def activate(
    portfolio_id: str,
    admin_code: str = Depends(require_admin_code),
    sb: Any = Depends(get_admin_client),
) -> Dict[str, Any]:
    mutations.activate_portfolio(admin_code, portfolio_id, client=sb)
    return {"portfolio_id": portfolio_id, "is_active": True}


@router.post("/portfolios/{portfolio_id}/deactivate")
def deactivate(
    portfolio_id: str,
    admin_code: str = Depends(require_admin_code),
    sb: Any = Depends(get_admin_client),
) -> Dict[str, Any]:
    mutations.deactivate_portfolio(admin_code, portfolio_id, client=sb)
    return {"portfolio_id": portfolio_id, "is_active": False}
