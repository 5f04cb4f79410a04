# ui/views/issues.py
"""Issue feed: add (with images), bulk import, edit, delete."""

from __future__ import annotations

from datetime import date
from typing import List

import streamlit as st

from access.context import SessionContext
from analytics.portfolio_view import build_feed_items
from core.errors import BackendError, CMSError, ValidationError
from core.schemas import FeedItem, Stock
from core.ui_helpers import flash, notify_error, post_backend, run_action
from importer.excel import UPLOAD_TYPES
from importer.issue_parser import convert_excel_date
from importer.report import ImportReport, RowError
from supabase_client import mutations, queries
from supabase_client.mutations import ImageUpload
from ui.views.common import admin_client, refresh


def render_import_report(report: ImportReport) -> None:
    metrics = report.metrics()
    for col, (label, value) in zip(st.columns(len(metrics)), metrics):
        col.metric(label, value)
    if report.skipped:
        st.warning("종목 테이블에 없는 티커: " + ", ".join(report.skipped))
    if report.duplicates:
        st.caption("중복: " + ", ".join(report.duplicates[:5]) + (f" 외 {len(report.duplicates) - 5}건" if len(report.duplicates) > 5 else ""))
    for err in report.errors:
        st.error(f"[{err.ticker}] {err.row}행: {err.reason}")


def render_import(ctx: SessionContext) -> None:
    with st.expander("📥 엑셀로 이슈 일괄 등록"):
        st.caption("헤더: ticker, date, title, content, source, is_cms, keywords. is_cms는 TRUE 또는 1만 인식합니다 (소문자 true는 무시).")
        upload = st.file_uploader("파일 선택", type=list(UPLOAD_TYPES), key="issue_import_file")
        if upload is not None and st.button("업로드", key="issue_import_submit"):
            try:
                body = post_backend(
                    "/admin/issues/import",
                    files={"file": (upload.name, upload.getvalue())},
                    admin_code=ctx.admin.get_admin_code(),
                )
            except CMSError as e:
                notify_error(e, "이슈 업로드")
                return
            body["errors"] = [RowError(**err) for err in body.get("errors", [])]
            st.session_state.issue_import_report = ImportReport(**body)
            st.cache_data.clear()

        report = st.session_state.get("issue_import_report")
        if report is not None:
            render_import_report(report)


def render_add_form(ctx: SessionContext, stocks: List[Stock]) -> None:
    labels = {s.id: f"{s.name_kr} ({s.ticker})" for s in stocks}
    with st.expander("➕ 이슈 추가"):
        with st.form("add_issue", clear_on_submit=True):
            stock_id = st.selectbox("종목", list(labels), format_func=labels.get)
            issue_date = st.date_input("날짜", value=date.today())
            title = st.text_input("제목")
            content = st.text_area("내용")
            keywords = st.text_input("키워드 (쉼표 구분)")
            is_cms = st.checkbox("CMS 코멘트")
            files = st.file_uploader("이미지", type=["png", "jpg", "jpeg", "webp"], accept_multiple_files=True)
            if not st.form_submit_button("등록"):
                return

    stock = next((s for s in stocks if s.id == stock_id), None)
    uploads = [ImageUpload(f.name, f.getvalue(), f.type or "application/octet-stream") for f in files or []]
    try:
        _, uploaded = mutations.add_issue_with_images(
            ctx.admin.get_admin_code(),
            stock_id,
            stock.ticker if stock else "",
            content.strip(),
            convert_excel_date(issue_date),
            uploads,
            title=title.strip() or None,
            keywords=[k.strip() for k in keywords.split(",") if k.strip()],
            is_cms=is_cms,
            client=admin_client(ctx),
        )
    except (ValidationError, BackendError) as e:
        notify_error(e, "이슈 등록")
        return
    message = "이슈가 등록되었습니다."
    if uploaded.failed:
        message += f" (이미지 {len(uploaded.failed)}개 업로드 실패: {', '.join(uploaded.failed)})"
    flash(message)
    refresh()


def render_feed_item(ctx: SessionContext, item: FeedItem) -> None:
    code = ctx.admin.get_admin_code()
    sb = admin_client(ctx)
    badge = " `CMS`" if item.is_cms else ""
    with st.expander(f"{item.date} · {item.stock_name} · {item.title or item.content[:30]}{badge}"):
        with st.form(f"edit_issue_{item.id}"):
            title = st.text_input("제목", item.title)
            content = st.text_area("내용", item.content)
            issue_date = st.text_input("날짜 (YY/MM/DD)", item.date)
            keywords = st.text_input("키워드", ", ".join(item.keywords))
            is_cms = st.checkbox("CMS 코멘트", value=item.is_cms)
            keep = st.multiselect("유지할 이미지", [img.url for img in item.images], default=[img.url for img in item.images])
            if st.form_submit_button("저장") and run_action(
                "이슈 수정",
                lambda: mutations.update_issue(
                    code, item.id, item.stock_id, item.stock_ticker, content.strip(), issue_date.strip(),
                    title=title.strip() or None,
                    keywords=[k.strip() for k in keywords.split(",") if k.strip()],
                    is_cms=is_cms,
                    existing_images=keep,
                    client=sb,
                ),
                success="저장되었습니다.",
            ):
                refresh()
        if st.button("삭제", key=f"delete_issue_{item.id}") and run_action(
            "이슈 삭제", lambda: mutations.delete_issue(code, item.id, client=sb), success="삭제되었습니다."
        ):
            refresh()


def render(ctx: SessionContext) -> None:
    st.header("이슈")
    sb = admin_client(ctx)
    try:
        all_stocks = queries.fetch_all_stocks(client=sb)
        stocks = queries.fetch_stocks_with_relations([s.id for s in all_stocks], client=sb)
    except BackendError as e:
        notify_error(e, "이슈 불러오기")
        return

    render_import(ctx)
    render_add_form(ctx, all_stocks)

    query = st.text_input("검색", placeholder="종목명, 제목, 내용").strip().lower()
    items = build_feed_items(stocks)
    if query:
        items = [i for i in items if query in f"{i.stock_name} {i.stock_ticker} {i.title} {i.content}".lower()]
    st.caption(f"{len(items)}건")
    for item in items:
        render_feed_item(ctx, item)
