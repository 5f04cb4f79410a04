# ui/views/stocks.py
"""Stock list: add, metrics import, AI summary, points and segments, edit, delete."""

from __future__ import annotations

from typing import List

import pandas as pd
import streamlit as st

from access.context import SessionContext
from analytics.portfolio_view import filter_by_sector
from core.errors import BackendError, CMSError
from core.formatting import format_market_cap_short
from core.schemas import Stock
from core.sector import all_simplified_sectors, simplify_sector
from core.ui_helpers import flash, notify_error, post_backend, run_action
from importer.excel import UPLOAD_TYPES
from importer.report import StockImportReport
from supabase_client import mutations, queries
from ui.views.common import admin_client, refresh


def _stock_table(stocks: List[Stock]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "종목": s.name_kr,
                "티커": s.ticker,
                "섹터": simplify_sector(s.sector, short=True),
                "시가총액": format_market_cap_short(s.market_cap),
                "수익률(%)": s.return_rate,
                "PER": s.per,
                "PBR": s.pbr,
                "PSR": s.psr,
                "업데이트": s.last_update,
            }
            for s in stocks
        ]
    )


def render_add_form(ctx: SessionContext, stocks: List[Stock]) -> None:
    code = ctx.admin.get_admin_code()
    with st.expander("➕ 종목 추가"):
        with st.form("add_stock", clear_on_submit=True):
            c1, c2 = st.columns(2)
            ticker = c1.text_input("티커 (예: 002050.SZ)")
            name_kr = c2.text_input("한글명")
            name = c1.text_input("영문명")
            sector = c2.text_input("섹터")
            market_cap = c1.text_input("시가총액 (예: 33조 1,287억원)")
            return_rate = c2.number_input("수익률(%)", value=0.0, step=0.1)
            description = st.text_area("설명")
            if not st.form_submit_button("추가"):
                return
    if run_action(
        "종목 추가",
        lambda: mutations.add_stock(
            code, ticker, name_kr,
            name=name, sector=sector, description=description,
            market_cap=market_cap, return_rate=return_rate,
            existing=stocks, client=admin_client(ctx),
        ),
        success="종목이 추가되었습니다.",
    ):
        refresh()


def render_import(ctx: SessionContext) -> None:
    with st.expander("📥 엑셀로 지표 일괄 업데이트"):
        st.caption("1행은 날짜, 2행은 헤더(ticker, name, name_kr, sector, marketCap, totalReturn, PER, PBR, PSR, description, keywords)입니다.")
        upload = st.file_uploader("파일 선택", type=list(UPLOAD_TYPES), key="stock_import_file")
        if upload is None or not st.button("업로드", key="stock_import_submit"):
            return
        try:
            body = post_backend(
                "/admin/stocks/import",
                files={"file": (upload.name, upload.getvalue())},
                admin_code=ctx.admin.get_admin_code(),
            )
        except CMSError as e:
            notify_error(e, "지표 업로드")
            return
        report = StockImportReport(**body)
        if report.error:
            st.error(report.error)
        else:
            flash(f"업데이트 {report.updated}건, 신규 {report.inserted}건")
            refresh()


def render_points(ctx: SessionContext, stock: Stock) -> None:
    code = ctx.admin.get_admin_code()
    sb = admin_client(ctx)
    st.subheader("투자 포인트")
    for i, point in enumerate(stock.investment_points):
        with st.form(f"point_{stock.id}_{point.id or i}"):
            title = st.text_input("제목", point.title)
            description = st.text_area("내용", point.description)
            c1, c2 = st.columns(2)
            save = c1.form_submit_button("저장")
            delete = c2.form_submit_button("삭제")
        if save and run_action(
            "투자 포인트 수정",
            lambda: mutations.update_investment_point(code, point.id, title, description, client=sb),
            success="저장되었습니다.",
        ):
            refresh()
        if delete and run_action(
            "투자 포인트 삭제",
            lambda: mutations.delete_investment_point(code, point.id, client=sb),
            success="삭제되었습니다.",
        ):
            refresh()

    with st.form(f"add_point_{stock.id}", clear_on_submit=True):
        title = st.text_input("새 포인트 제목")
        description = st.text_area("새 포인트 내용")
        if st.form_submit_button("포인트 추가") and run_action(
            "투자 포인트 추가",
            lambda: mutations.add_investment_point(
                code, stock.id, title, description, sort_order=len(stock.investment_points) + 1, client=sb
            ),
            success="추가되었습니다.",
        ):
            refresh()


def render_segments(ctx: SessionContext, stock: Stock) -> None:
    code = ctx.admin.get_admin_code()
    sb = admin_client(ctx)
    st.subheader("사업 부문")
    for i, seg in enumerate(stock.business_segments):
        with st.form(f"segment_{stock.id}_{seg.id or i}"):
            c1, c2, c3 = st.columns([3, 3, 2])
            name = c1.text_input("영문명", seg.name)
            name_kr = c2.text_input("한글명", seg.name_kr)
            value = c3.number_input("비중(%)", min_value=0.0, max_value=100.0, value=float(seg.value))
            s1, s2 = st.columns(2)
            save = s1.form_submit_button("저장")
            delete = s2.form_submit_button("삭제")
        if save and run_action(
            "사업 부문 수정",
            lambda: mutations.update_business_segment(code, seg.id, name, name_kr, value, client=sb),
            success="저장되었습니다.",
        ):
            refresh()
        if delete and run_action(
            "사업 부문 삭제",
            lambda: mutations.delete_business_segment(code, seg.id, client=sb),
            success="삭제되었습니다.",
        ):
            refresh()

    with st.form(f"add_segment_{stock.id}", clear_on_submit=True):
        c1, c2, c3 = st.columns([3, 3, 2])
        name = c1.text_input("새 부문 영문명")
        name_kr = c2.text_input("새 부문 한글명")
        value = c3.number_input("비중(%)", min_value=0.0, max_value=100.0, value=0.0)
        if st.form_submit_button("부문 추가") and run_action(
            "사업 부문 추가",
            lambda: mutations.add_business_segment(
                code, stock.id, name, name_kr, value, sort_order=len(stock.business_segments) + 1, client=sb
            ),
            success="추가되었습니다.",
        ):
            refresh()


def render_stock_editor(ctx: SessionContext, stock: Stock) -> None:
    code = ctx.admin.get_admin_code()
    sb = admin_client(ctx)

    with st.form(f"stock_{stock.id}"):
        name_kr = st.text_input("한글명", stock.name_kr)
        name = st.text_input("영문명", stock.name)
        tickers = st.text_input("티커 (쉼표 구분, 첫 번째가 대표)", ", ".join(stock.tickers))
        sector = st.text_input("섹터", stock.sector)
        market_cap = st.text_input("시가총액", stock.market_cap)
        keywords = st.text_input("키워드", ", ".join(stock.keywords))
        description = st.text_area("설명", stock.description)
        if st.form_submit_button("저장"):
            fields = {
                "name_kr": name_kr.strip(),
                "name": name.strip(),
                "tickers": [t.strip() for t in tickers.split(",") if t.strip()],
                "sector": sector.strip(),
                "market_cap": market_cap.strip(),
                "keywords": [k.strip() for k in keywords.split(",") if k.strip()],
                "description": description,
            }
            if run_action("종목 수정", lambda: mutations.update_stock(code, stock.id, fields, client=sb), success="저장되었습니다."):
                refresh()

    c1, c2 = st.columns(2)
    if c1.button("🤖 AI 요약 생성", key=f"summary_{stock.id}"):
        try:
            with st.spinner("요약 생성 중..."):
                post_backend(f"/admin/stocks/{stock.id}/summary", admin_code=code)
        except CMSError as e:
            notify_error(e, "AI 요약")
        else:
            flash("AI 요약이 저장되었습니다.")
            refresh()
    if c2.button("삭제", key=f"delete_stock_{stock.id}") and run_action(
        "종목 삭제", lambda: mutations.delete_stock(code, stock.id, client=sb), success="삭제되었습니다."
    ):
        refresh()

    # points and segments carry row ids only in the relation load
    try:
        [detailed] = queries.fetch_stocks_with_relations([stock.id], client=sb) or [stock]
    except BackendError as e:
        notify_error(e, "종목 상세 불러오기")
        return
    render_points(ctx, detailed)
    render_segments(ctx, detailed)


def render(ctx: SessionContext) -> None:
    st.header("종목")
    try:
        stocks = queries.fetch_all_stocks(client=admin_client(ctx))
    except BackendError as e:
        notify_error(e, "종목 불러오기")
        return

    render_add_form(ctx, stocks)
    render_import(ctx)

    sector = st.selectbox("섹터", ["전체"] + all_simplified_sectors())
    visible = filter_by_sector(stocks, None if sector == "전체" else sector)
    st.dataframe(_stock_table(visible), hide_index=True, use_container_width=True)

    labels = {s.id: f"{s.name_kr} ({s.ticker})" for s in visible}
    selected = st.selectbox("편집할 종목", ["-"] + list(labels), format_func=lambda sid: labels.get(sid, "-"))
    if selected != "-":
        render_stock_editor(ctx, next(s for s in visible if s.id == selected))
