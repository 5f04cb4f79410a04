# supabase_client/mutations.py
"""
Write side of the Data Access Layer (admin back office).

All calls go through the admin client, which attaches the `x-admin-code`
header. Privileged RPCs additionally receive `admin_code` as a parameter,
matching the server-side procedure signatures. Server-side authorization is
owned by the database; this module only attaches the secret consistently.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from core.config import IMAGE_BUCKET, RESOURCE_BUCKET
from core.errors import AuthenticationError, BackendError, ValidationError
from core.formatting import parse_market_cap_to_value
from core.schemas import AccessType
from importer.stock_parser import get_id_from_ticker
from supabase_client.config import get_admin_supabase_client, get_supabase_client
from supabase_client.helpers import call_rpc, execute

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME = re.compile(r"[^a-zA-Z0-9.-]")


def _admin(admin_code: str, client: Any) -> Any:
    return client if client is not None else get_admin_supabase_client(admin_code)


# --------------------------------------------------------------------------- #
# Stocks
# --------------------------------------------------------------------------- #

def update_stock(admin_code: str, stock_id: str, fields: Dict[str, Any], client: Any = None) -> Dict[str, Any]:
    """
    Update a stock row. `fields` uses column names; when `tickers` is given the
    primary `ticker` becomes its first element, and a new `market_cap` text
    refreshes the numeric `market_cap_value` used for sorting.
    """
    payload = dict(fields)
    tickers = payload.get("tickers")
    if tickers:
        payload["ticker"] = tickers[0]
    if "market_cap" in payload:
        payload["market_cap_value"] = parse_market_cap_to_value(payload["market_cap"])
    payload["last_update"] = datetime.now(timezone.utc).isoformat()

    # update() returns the representation of the touched rows by default
    res = execute(
        _admin(admin_code, client).table("stocks").update(payload).eq("id", stock_id),
        "update stock",
    )
    rows = res.data or []
    if not rows:
        # RLS filtered the update out: the admin code was not accepted
        raise AuthenticationError("권한이 없습니다.")
    return rows[0]


def update_stock_ai_summary(
    admin_code: str,
    stock_id: str,
    summary: str,
    keywords: List[str],
    client: Any = None,
) -> Dict[str, Any]:
    return update_stock(
        admin_code,
        stock_id,
        {"ai_summary": summary, "ai_summary_keywords": keywords},
        client=client,
    )


def delete_stock(admin_code: str, stock_id: str, client: Any = None) -> None:
    """Delete a stock after its points, segments and issues."""
    sb = _admin(admin_code, client)
    for table in ("investment_points", "business_segments", "issues"):
        execute(sb.table(table).delete().eq("stock_id", stock_id), f"delete {table} of stock")
    execute(sb.table("stocks").delete().eq("id", stock_id), "delete stock")


def add_stock(
    admin_code: str,
    ticker: str,
    name_kr: str,
    name: str = "",
    sector: str = "",
    description: str = "",
    market_cap: str = "",
    return_rate: float = 0,
    existing: Iterable[Any] = (),
    client: Any = None,
) -> str:
    """
    Create a stock by hand and return its id.

    The id is the ticker without its exchange suffix. `existing` holds the
    stocks already loaded by the caller; a clash on id or ticker is rejected
    before anything is written.
    """
    ticker = ticker.strip()
    if not ticker or not name_kr.strip():
        raise ValidationError("티커와 한글명은 필수 입력입니다.")
    stock_id = get_id_from_ticker(ticker)
    if not stock_id:
        raise ValidationError("유효한 티커 형식이 아닙니다. (예: 002050.SZ)")
    for s in existing:
        if s.id == stock_id:
            raise ValidationError(f"이미 존재하는 종목입니다: {s.name_kr} ({s.ticker})")
        if s.ticker.lower() == ticker.lower():
            raise ValidationError(f"이미 존재하는 티커입니다: {s.name_kr} ({s.ticker})")

    execute(
        _admin(admin_code, client).table("stocks").insert(
            {
                "id": stock_id,
                "ticker": ticker,
                "tickers": [ticker],
                "name": name.strip(),
                "name_kr": name_kr.strip(),
                "sector": sector.strip(),
                "description": description,
                "market_cap": market_cap.strip(),
                "market_cap_value": parse_market_cap_to_value(market_cap),
                "return_rate": return_rate or 0,
                "keywords": [],
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
        ),
        "add stock",
    )
    return stock_id


# --------------------------------------------------------------------------- #
# Investment points & business segments
# --------------------------------------------------------------------------- #

def add_investment_point(
    admin_code: str,
    stock_id: str,
    title: str,
    description: str = "",
    sort_order: int = 0,
    client: Any = None,
) -> None:
    if not title.strip():
        raise ValidationError("제목을 입력하세요.")
    execute(
        _admin(admin_code, client).table("investment_points").insert(
            {
                "stock_id": stock_id,
                "title": title.strip(),
                "description": description.strip(),
                "sort_order": sort_order,
            }
        ),
        "add investment point",
    )


def update_investment_point(
    admin_code: str,
    point_id: str,
    title: str,
    description: str = "",
    client: Any = None,
) -> None:
    if not title.strip():
        raise ValidationError("제목을 입력하세요.")
    execute(
        _admin(admin_code, client)
        .table("investment_points")
        .update({"title": title.strip(), "description": description.strip()})
        .eq("id", point_id),
        "update investment point",
    )


def delete_investment_point(admin_code: str, point_id: str, client: Any = None) -> None:
    execute(
        _admin(admin_code, client).table("investment_points").delete().eq("id", point_id),
        "delete investment point",
    )


def _segment_payload(name: str, name_kr: str, value: float) -> Dict[str, Any]:
    if not name.strip() and not name_kr.strip():
        raise ValidationError("사업부 이름을 입력하세요.")
    if not 0 <= (value or 0) <= 100:
        raise ValidationError("비중은 0에서 100 사이여야 합니다.")
    return {"name": name.strip(), "name_kr": name_kr.strip(), "value": value or 0}


def add_business_segment(
    admin_code: str,
    stock_id: str,
    name: str,
    name_kr: str = "",
    value: float = 0,
    sort_order: int = 0,
    client: Any = None,
) -> None:
    payload = _segment_payload(name, name_kr, value)
    payload.update({"stock_id": stock_id, "sort_order": sort_order})
    execute(_admin(admin_code, client).table("business_segments").insert(payload), "add business segment")


def update_business_segment(
    admin_code: str,
    segment_id: str,
    name: str,
    name_kr: str = "",
    value: float = 0,
    client: Any = None,
) -> None:
    execute(
        _admin(admin_code, client)
        .table("business_segments")
        .update(_segment_payload(name, name_kr, value))
        .eq("id", segment_id),
        "update business segment",
    )


def delete_business_segment(admin_code: str, segment_id: str, client: Any = None) -> None:
    execute(
        _admin(admin_code, client).table("business_segments").delete().eq("id", segment_id),
        "delete business segment",
    )


# --------------------------------------------------------------------------- #
# Issues (+ images)
# --------------------------------------------------------------------------- #

@dataclass
class ImageUpload:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class UploadResult:
    urls: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def upload_issue_images(
    ticker: str,
    issue_id: str,
    uploads: Iterable[ImageUpload],
    client: Any = None,
) -> UploadResult:
    """
    Upload images one at a time into the public bucket.

    A failed upload is logged and skipped; remaining uploads continue.
    """
    storage = (client if client is not None else get_supabase_client()).storage
    result = UploadResult()
    for img in uploads:
        path = f"issues/{ticker}/{issue_id}/{int(time.time() * 1000)}-{_UNSAFE_FILENAME.sub('_', img.filename)}"
        try:
            bucket = storage.from_(IMAGE_BUCKET)
            bucket.upload(path, img.content, {"content-type": img.content_type})
            result.urls.append(bucket.get_public_url(path))
        except Exception as e:  # noqa: BLE001 - best-effort per file
            logger.warning("[Storage] upload of %s failed: %s", img.filename, e)
            result.failed.append(img.filename)
    return result


def add_issue(
    admin_code: str,
    stock_id: str,
    content: str,
    date: str,
    title: Optional[str] = None,
    keywords: Optional[List[str]] = None,
    is_cms: bool = False,
    client: Any = None,
) -> str:
    """Create an issue via the `add_issue` RPC and return its id."""
    if not stock_id or not content or not date:
        raise ValidationError("종목, 날짜, 내용은 필수입니다.")
    issue_id = call_rpc(
        _admin(admin_code, client),
        "add_issue",
        {
            "admin_code": admin_code,
            "p_stock_id": stock_id,
            "p_title": title,
            "p_content": content,
            "p_keywords": keywords or [],
            "p_date": date,
            "p_is_cms": is_cms,
        },
    )
    return str(issue_id) if issue_id is not None else ""


def add_issue_with_images(
    admin_code: str,
    stock_id: str,
    ticker: str,
    content: str,
    date: str,
    uploads: List[ImageUpload],
    title: Optional[str] = None,
    keywords: Optional[List[str]] = None,
    is_cms: bool = False,
    client: Any = None,
    storage_client: Any = None,
) -> Tuple[str, UploadResult]:
    """
    Issue row first, then sequential uploads, then one `update_issue_images`
    call with whatever URLs succeeded.
    """
    sb = _admin(admin_code, client)
    issue_id = add_issue(admin_code, stock_id, content, date, title, keywords, is_cms, client=sb)

    uploaded = UploadResult()
    if uploads and issue_id:
        uploaded = upload_issue_images(ticker or stock_id, issue_id, uploads, client=storage_client or sb)
        if uploaded.urls:
            call_rpc(
                sb,
                "update_issue_images",
                {"admin_code": admin_code, "p_issue_id": issue_id, "p_images": uploaded.urls},
            )
    return issue_id, uploaded


def update_issue(
    admin_code: str,
    issue_id: str,
    stock_id: str,
    ticker: str,
    content: str,
    date: str,
    title: Optional[str] = None,
    keywords: Optional[List[str]] = None,
    is_cms: bool = False,
    existing_images: Optional[List[str]] = None,
    uploads: Optional[List[ImageUpload]] = None,
    client: Any = None,
    storage_client: Any = None,
) -> UploadResult:
    """Upload new images, then persist the issue with existing + new URLs."""
    sb = _admin(admin_code, client)
    uploaded = UploadResult()
    if uploads:
        uploaded = upload_issue_images(ticker or stock_id, issue_id, uploads, client=storage_client or sb)

    call_rpc(
        sb,
        "update_issue",
        {
            "admin_code": admin_code,
            "p_issue_id": issue_id,
            "p_title": title,
            "p_content": content,
            "p_keywords": keywords or [],
            "p_date": date,
            "p_is_cms": is_cms,
            "p_images": list(existing_images or []) + uploaded.urls,
        },
    )
    return uploaded


def delete_issue(admin_code: str, issue_id: str, client: Any = None) -> None:
    call_rpc(_admin(admin_code, client), "delete_issue", {"admin_code": admin_code, "p_issue_id": issue_id})


# --------------------------------------------------------------------------- #
# Glossary
# --------------------------------------------------------------------------- #

def add_glossary_term(admin_code: str, term: str, definition: str, client: Any = None) -> None:
    if not term.strip() or not definition.strip():
        raise ValidationError("용어와 설명을 입력하세요.")
    call_rpc(
        _admin(admin_code, client),
        "add_glossary_term",
        {"admin_code": admin_code, "p_term": term.strip(), "p_definition": definition.strip()},
    )


def update_glossary_term(admin_code: str, term: str, definition: str, client: Any = None) -> None:
    call_rpc(
        _admin(admin_code, client),
        "update_glossary_term",
        {"admin_code": admin_code, "p_term": term, "p_definition": definition.strip()},
    )


def delete_glossary_term(admin_code: str, term: str, client: Any = None) -> None:
    call_rpc(_admin(admin_code, client), "delete_glossary_term", {"admin_code": admin_code, "p_term": term})


# --------------------------------------------------------------------------- #
# Resources
# --------------------------------------------------------------------------- #

def file_size_label(size: int) -> str:
    """1536 -> '1.5 KB'; a megabyte and above is shown in MB."""
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def add_resource(
    admin_code: str,
    title: str,
    upload: ImageUpload,
    description: str = "",
    file_type: str = "PDF",
    category: str = "",
    client_id: Optional[str] = None,
    client: Any = None,
) -> str:
    """
    Upload a downloadable file and create its `resources` row.

    The row is only written once the file is in the bucket; a failed upload
    surfaces as BackendError and leaves no row behind. Returns the new id.
    """
    if not title.strip() or upload is None or not upload.content:
        raise ValidationError("제목과 파일은 필수입니다.")
    sb = _admin(admin_code, client)
    now = datetime.now(timezone.utc)
    path = f"{int(now.timestamp() * 1000)}-{_UNSAFE_FILENAME.sub('_', upload.filename)}"
    try:
        bucket = sb.storage.from_(RESOURCE_BUCKET)
        bucket.upload(path, upload.content, {"content-type": upload.content_type})
        url = bucket.get_public_url(path)
    except Exception as e:
        raise BackendError("upload resource", e) from e

    resource_id = f"res-{int(now.timestamp() * 1000)}"
    execute(
        sb.table("resources").insert(
            {
                "id": resource_id,
                "title": title.strip(),
                "description": description.strip(),
                "file_type": file_type,
                "category": category.strip() or "기타",
                "date": now.strftime("%Y.%m.%d"),
                "file_size": file_size_label(len(upload.content)),
                "file_url": url,
                "client_id": client_id or None,
            }
        ),
        "add resource",
    )
    return resource_id


def delete_resource(admin_code: str, resource_id: str, file_url: Optional[str] = None, client: Any = None) -> None:
    """Remove the stored file (best effort), then the row via `delete_resource`."""
    sb = _admin(admin_code, client)
    if file_url:
        name = file_url.rsplit("/", 1)[-1]
        try:
            sb.storage.from_(RESOURCE_BUCKET).remove([name])
        except Exception as e:  # noqa: BLE001 - the row is still removed
            logger.warning("[Storage] could not remove %s: %s", name, e)
    call_rpc(sb, "delete_resource", {"admin_code": admin_code, "p_id": resource_id})


# --------------------------------------------------------------------------- #
# Clients, shared passwords, admin codes
# --------------------------------------------------------------------------- #

def client_code_from_name(name: str) -> str:
    """'Alpha Bank ' -> 'alpha_bank'"""
    return re.sub(r"\s+", "_", name.strip().lower())


def add_client(admin_code: str, name: str, password: str, brand_color: str, client: Any = None) -> None:
    if not name.strip() or not password.strip():
        raise ValidationError("소속명과 비밀번호를 입력하세요.")
    execute(
        _admin(admin_code, client).table("clients").insert(
            {
                "name": name.strip(),
                "code": client_code_from_name(name),
                "password": password.strip(),
                "brand_color": brand_color,
                "is_active": True,
            }
        ),
        "add client",
    )


def update_client(
    admin_code: str,
    client_id: str,
    name: str,
    password: str,
    brand_color: str,
    is_active: bool = True,
    client: Any = None,
) -> None:
    if not name.strip() or not password.strip():
        raise ValidationError("소속명과 비밀번호를 입력하세요.")
    execute(
        _admin(admin_code, client)
        .table("clients")
        .update(
            {
                "name": name.strip(),
                "password": password.strip(),
                "brand_color": brand_color,
                "is_active": is_active,
            }
        )
        .eq("id", client_id),
        "update client",
    )


def delete_client(admin_code: str, client_id: str, client: Any = None) -> None:
    """Delete a client. Portfolios keep existing; the database detaches them."""
    execute(_admin(admin_code, client).table("clients").delete().eq("id", client_id), "delete client")


def _shared_password_payload(
    name: str,
    password: str,
    is_master: bool,
    client_ids: List[str],
    brand_color: Optional[str],
) -> Dict[str, Any]:
    if not name.strip() or not password.strip():
        raise ValidationError("이름과 비밀번호를 입력하세요.")
    if not is_master and not client_ids:
        raise ValidationError("접근 가능한 소속을 하나 이상 선택하세요.")
    return {
        "name": name.strip(),
        "password": password.strip(),
        "is_master": is_master,
        "client_ids": [] if is_master else list(client_ids),
        "brand_color": brand_color or None,
    }


def add_shared_password(
    admin_code: str,
    name: str,
    password: str,
    is_master: bool,
    client_ids: List[str],
    brand_color: Optional[str] = None,
    client: Any = None,
) -> None:
    payload = _shared_password_payload(name, password, is_master, client_ids, brand_color)
    payload["is_active"] = True
    execute(_admin(admin_code, client).table("shared_passwords").insert(payload), "add shared password")


def update_shared_password(
    admin_code: str,
    password_id: str,
    name: str,
    password: str,
    is_master: bool,
    client_ids: List[str],
    brand_color: Optional[str] = None,
    is_active: bool = True,
    client: Any = None,
) -> None:
    payload = _shared_password_payload(name, password, is_master, client_ids, brand_color)
    payload["is_active"] = is_active
    execute(
        _admin(admin_code, client).table("shared_passwords").update(payload).eq("id", password_id),
        "update shared password",
    )


def delete_shared_password(admin_code: str, password_id: str, client: Any = None) -> None:
    execute(
        _admin(admin_code, client).table("shared_passwords").delete().eq("id", password_id),
        "delete shared password",
    )


def add_access_code(admin_code: str, code: str, is_admin: bool = True, client: Any = None) -> None:
    if not code.strip():
        raise ValidationError("코드를 입력하세요.")
    call_rpc(_admin(admin_code, client), "add_access_code", {"input_code": code.strip(), "input_is_admin": is_admin})


def delete_access_code(admin_code: str, code_id: str, client: Any = None) -> None:
    call_rpc(_admin(admin_code, client), "delete_access_code", {"input_id": code_id})


def toggle_access_code(admin_code: str, code_id: str, client: Any = None) -> None:
    call_rpc(_admin(admin_code, client), "toggle_access_code", {"input_id": code_id})


# --------------------------------------------------------------------------- #
# Portfolios
# --------------------------------------------------------------------------- #

def create_portfolio(
    admin_code: str,
    name: str,
    description: str = "",
    client_id: Optional[str] = None,
    return_rate: float = 0,
    client: Any = None,
) -> Optional[str]:
    """Create an inactive portfolio and return its id."""
    if not name.strip():
        raise ValidationError("포트폴리오 이름을 입력하세요.")
    res = execute(
        _admin(admin_code, client).table("portfolios").insert(
            {
                "name": name.strip(),
                "description": description.strip(),
                "is_active": False,
                "client_id": client_id or None,
                "return_rate": return_rate or 0,
            }
        ),
        "create portfolio",
    )
    rows = res.data or []
    return str(rows[0]["id"]) if rows else None


def update_portfolio(
    admin_code: str,
    portfolio_id: str,
    name: str,
    description: str = "",
    client_id: Optional[str] = None,
    return_rate: float = 0,
    client: Any = None,
) -> None:
    if not name.strip():
        raise ValidationError("포트폴리오 이름을 입력하세요.")
    execute(
        _admin(admin_code, client)
        .table("portfolios")
        .update(
            {
                "name": name.strip(),
                "description": description.strip(),
                "client_id": client_id or None,
                "return_rate": return_rate or 0,
            }
        )
        .eq("id", portfolio_id),
        "update portfolio",
    )


def delete_portfolio(admin_code: str, portfolio_id: str, client: Any = None) -> None:
    call_rpc(_admin(admin_code, client), "delete_portfolio", {"admin_code": admin_code, "p_portfolio_id": portfolio_id})


def activate_portfolio(admin_code: str, portfolio_id: str, client: Any = None) -> None:
    """`set_active_portfolio` deactivates the other portfolios of the same client scope server-side."""
    call_rpc(
        _admin(admin_code, client),
        "set_active_portfolio",
        {"admin_code": admin_code, "p_portfolio_id": portfolio_id},
    )


def deactivate_portfolio(admin_code: str, portfolio_id: str, client: Any = None) -> None:
    call_rpc(
        _admin(admin_code, client),
        "deactivate_portfolio",
        {"admin_code": admin_code, "p_portfolio_id": portfolio_id},
    )


def set_portfolio_stock(
    admin_code: str,
    portfolio_id: str,
    stock_id: str,
    included: bool,
    client: Any = None,
) -> None:
    """Add (`included=True`) or remove a stock from a portfolio."""
    fn = "add_stock_to_portfolio" if included else "remove_stock_from_portfolio"
    call_rpc(
        _admin(admin_code, client),
        fn,
        {"admin_code": admin_code, "p_portfolio_id": portfolio_id, "p_stock_id": stock_id},
    )


# --------------------------------------------------------------------------- #
# Analytics (client side)
# --------------------------------------------------------------------------- #

def record_portfolio_view(
    portfolio_id: str,
    access_type: Optional[AccessType],
    client_id: Optional[str] = None,
    client: Any = None,
) -> bool:
    """
    Record a portfolio view. Only single-client sessions are attributed to a
    client. Failures are logged and ignored.
    """
    attributed = client_id if access_type == AccessType.SINGLE else None
    sb = client if client is not None else get_supabase_client()
    try:
        call_rpc(sb, "record_portfolio_view", {"p_portfolio_id": portfolio_id, "p_client_id": attributed})
    except (BackendError, RuntimeError) as e:
        logger.info("[Analytics] view not recorded for %s: %s", portfolio_id, e)
        return False
    return True
