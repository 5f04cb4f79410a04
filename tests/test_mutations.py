import pytest

from core.errors import AuthenticationError, BackendError, ValidationError
from core.schemas import AccessType, Stock
from supabase_client import mutations
from supabase_client.mutations import ImageUpload

CODE = "ADMIN-1"


def test_update_stock_sets_primary_ticker(make_sb, stock_rows):
    sb = make_sb({"stocks": stock_rows})

    row = mutations.update_stock(CODE, "s1", {"tickers": ["002050.SZ", "02050.HK"], "name": "Sanhua Intl"}, client=sb)

    assert row["ticker"] == "002050.SZ"
    assert row["name"] == "Sanhua Intl"
    assert row["last_update"]


def test_update_stock_without_rows_is_unauthorized(fake_sb):
    with pytest.raises(AuthenticationError):
        mutations.update_stock(CODE, "missing", {"name": "x"}, client=fake_sb)


def test_delete_stock_removes_children_first(make_sb, stock_rows):
    sb = make_sb({"stocks": stock_rows, "issues": [{"id": "i1", "stock_id": "s1"}, {"id": "i2", "stock_id": "s2"}]})

    mutations.delete_stock(CODE, "s1", client=sb)

    assert [t for t, op, _ in sb.calls] == ["investment_points", "business_segments", "issues", "stocks"]
    assert [r["id"] for r in sb.tables["issues"]] == ["i2"]
    assert "s1" not in [r["id"] for r in sb.tables["stocks"]]


def test_add_issue_requires_content(fake_sb):
    with pytest.raises(ValidationError):
        mutations.add_issue(CODE, "s1", "", "24/01/01", client=fake_sb)
    assert fake_sb.rpc_calls == []


def test_add_issue_with_images_skips_failed_uploads(fake_sb):
    fake_sb.rpc_results["add_issue"] = "iss-1"
    fake_sb.storage.failing_files.append("bad.png")
    uploads = [
        ImageUpload("chart 1.png", b"a", "image/png"),
        ImageUpload("bad.png", b"b", "image/png"),
        ImageUpload("table.jpg", b"c", "image/jpeg"),
    ]

    issue_id, result = mutations.add_issue_with_images(
        CODE, "s1", "002050.SZ", "내용", "24/01/01", uploads, title="제목", keywords=["로봇"], client=fake_sb
    )

    assert issue_id == "iss-1"
    assert result.failed == ["bad.png"]
    assert len(result.urls) == 2
    assert result.urls[0].startswith("https://cdn.test/images/issues/002050.SZ/iss-1/")
    assert result.urls[0].endswith("-chart_1.png")
    [params] = fake_sb.rpc_params("update_issue_images")
    assert params == {"admin_code": CODE, "p_issue_id": "iss-1", "p_images": result.urls}
    [add_params] = fake_sb.rpc_params("add_issue")
    assert add_params["p_keywords"] == ["로봇"]
    assert add_params["admin_code"] == CODE


def test_add_issue_without_successful_uploads_skips_image_update(fake_sb):
    fake_sb.rpc_results["add_issue"] = "iss-2"
    fake_sb.storage.failing_files.append("bad.png")

    _, result = mutations.add_issue_with_images(
        CODE, "s1", "T", "c", "24/01/01", [ImageUpload("bad.png", b"x")], client=fake_sb
    )

    assert result.urls == []
    assert fake_sb.rpc_params("update_issue_images") == []


def test_update_issue_keeps_existing_images(fake_sb):
    mutations.update_issue(
        CODE, "iss-1", "s1", "T", "c", "24/01/01",
        existing_images=["https://old/1.png"], uploads=[ImageUpload("new.png", b"x")], client=fake_sb,
    )
    [params] = fake_sb.rpc_params("update_issue")
    assert params["p_images"][0] == "https://old/1.png"
    assert len(params["p_images"]) == 2


def test_shared_password_validation(fake_sb):
    with pytest.raises(ValidationError):
        mutations.add_shared_password(CODE, "Desk", "pw", is_master=False, client_ids=[], client=fake_sb)
    with pytest.raises(ValidationError):
        mutations.add_shared_password(CODE, " ", "pw", is_master=True, client_ids=[], client=fake_sb)

    mutations.add_shared_password(CODE, " HQ ", " pw ", is_master=True, client_ids=["c1"], client=fake_sb)

    [row] = fake_sb.tables["shared_passwords"]
    assert row["name"] == "HQ"
    assert row["password"] == "pw"
    assert row["client_ids"] == []
    assert row["is_active"] is True


def test_add_client_derives_code(fake_sb):
    mutations.add_client(CODE, "Alpha  Bank ", "secret", "#123456", client=fake_sb)
    [row] = fake_sb.tables["clients"]
    assert row["code"] == "alpha_bank"
    assert row["is_active"] is True


def test_create_portfolio_is_inactive(fake_sb):
    pid = mutations.create_portfolio(CODE, "Growth", client_id="", client=fake_sb)
    [row] = fake_sb.tables["portfolios"]
    assert pid == row["id"]
    assert row["is_active"] is False
    assert row["client_id"] is None


def test_portfolio_rpcs_carry_admin_code(fake_sb):
    mutations.activate_portfolio(CODE, "p1", client=fake_sb)
    mutations.set_portfolio_stock(CODE, "p1", "s1", included=True, client=fake_sb)
    mutations.set_portfolio_stock(CODE, "p1", "s2", included=False, client=fake_sb)

    assert [fn for fn, _ in fake_sb.rpc_calls] == [
        "set_active_portfolio",
        "add_stock_to_portfolio",
        "remove_stock_from_portfolio",
    ]
    assert all(p["admin_code"] == CODE for _, p in fake_sb.rpc_calls)


@pytest.mark.parametrize(
    "access, attributed",
    [(AccessType.SINGLE, "c1"), (AccessType.SHARED, None), (AccessType.MASTER, None)],
)
def test_record_portfolio_view_attribution(fake_sb, access, attributed):
    assert mutations.record_portfolio_view("p1", access, "c1", client=fake_sb) is True
    assert fake_sb.rpc_params("record_portfolio_view") == [{"p_portfolio_id": "p1", "p_client_id": attributed}]


def test_record_portfolio_view_failure_is_ignored(fake_sb):
    fake_sb.rpc_results["record_portfolio_view"] = RuntimeError("offline")
    assert mutations.record_portfolio_view("p1", AccessType.SINGLE, "c1", client=fake_sb) is False


def test_update_stock_refreshes_market_cap_value(make_sb, stock_rows):
    sb = make_sb({"stocks": stock_rows})

    row = mutations.update_stock(CODE, "s1", {"market_cap": "50조 2,000억원"}, client=sb)

    assert row["market_cap_value"] == 50 * 10**12 + 2000 * 10**8
    [(_, _, payload)] = sb.calls
    assert payload["market_cap_value"] == 50_200_000_000_000


def test_update_stock_without_market_cap_keeps_value(make_sb, stock_rows):
    sb = make_sb({"stocks": stock_rows})

    row = mutations.update_stock(CODE, "s2", {"name": "Alibaba Group"}, client=sb)

    assert row["market_cap_value"] == 300 * 10**12
    assert "market_cap_value" not in sb.calls[0][2]


def test_add_stock_derives_id_from_ticker(fake_sb):
    stock_id = mutations.add_stock(
        CODE, " 300750.SZ ", "CATL", name="Contemporary Amperex", market_cap="200조 1,500억원", client=fake_sb
    )

    assert stock_id == "300750"
    [row] = fake_sb.tables["stocks"]
    assert row["id"] == "300750"
    assert row["ticker"] == "300750.SZ"
    assert row["tickers"] == ["300750.SZ"]
    assert row["market_cap_value"] == 200 * 10**12 + 1500 * 10**8
    assert row["keywords"] == []


@pytest.mark.parametrize(
    "ticker, name_kr",
    [("", "CATL"), ("300750.SZ", "  "), ("002050.HK", "중복 아이디"), ("9988.hk", "중복 티커")],
)
def test_add_stock_rejects_invalid_or_duplicate(fake_sb, ticker, name_kr):
    existing = [
        Stock.from_row({"id": "002050", "ticker": "002050.SZ", "name_kr": "싼화"}),
        Stock.from_row({"id": "alibaba", "ticker": "9988.HK", "name_kr": "알리바바"}),
    ]

    with pytest.raises(ValidationError):
        mutations.add_stock(CODE, ticker, name_kr, existing=existing, client=fake_sb)
    assert fake_sb.calls == []


def test_investment_point_crud(make_sb):
    sb = make_sb({"investment_points": [{"id": "ip1", "stock_id": "s1", "title": "old", "description": ""}]})

    mutations.add_investment_point(CODE, "s1", " 수주 확대 ", "로봇 부품", sort_order=2, client=sb)
    mutations.update_investment_point(CODE, "ip1", "마진 개선", "원가 절감", client=sb)

    rows = {r["id"]: r for r in sb.tables["investment_points"]}
    assert rows["ip1"]["title"] == "마진 개선"
    added = next(r for r in rows.values() if r["id"] != "ip1")
    assert (added["stock_id"], added["title"], added["sort_order"]) == ("s1", "수주 확대", 2)

    mutations.delete_investment_point(CODE, "ip1", client=sb)
    assert [r["id"] for r in sb.tables["investment_points"]] == [added["id"]]

    with pytest.raises(ValidationError):
        mutations.add_investment_point(CODE, "s1", " ", client=sb)


def test_business_segment_crud(make_sb):
    sb = make_sb({"business_segments": [{"id": "bs1", "stock_id": "s1", "name": "Valves", "name_kr": "밸브", "value": 60}]})

    mutations.add_business_segment(CODE, "s1", "Pumps", "펌프", 40, sort_order=2, client=sb)
    mutations.update_business_segment(CODE, "bs1", "Valves", "밸브", 55, client=sb)

    rows = {r["id"]: r for r in sb.tables["business_segments"]}
    assert rows["bs1"]["value"] == 55
    assert any(r["name_kr"] == "펌프" and r["stock_id"] == "s1" for r in rows.values())

    mutations.delete_business_segment(CODE, "bs1", client=sb)
    assert "bs1" not in [r["id"] for r in sb.tables["business_segments"]]

    with pytest.raises(ValidationError):
        mutations.add_business_segment(CODE, "s1", "Too much", value=120, client=sb)
    with pytest.raises(ValidationError):
        mutations.update_business_segment(CODE, "bs2", "", "", 10, client=sb)


def test_file_size_label():
    assert mutations.file_size_label(1536) == "1.5 KB"
    assert mutations.file_size_label(3 * 1024 * 1024) == "3.0 MB"


def test_add_resource_uploads_then_inserts(fake_sb):
    resource_id = mutations.add_resource(
        CODE,
        "Q1 리포트",
        ImageUpload("Q1 report.pdf", b"x" * 1536, "application/pdf"),
        category="",
        client_id="c1",
        client=fake_sb,
    )

    [(bucket, path)] = fake_sb.storage.uploads
    assert bucket == "resources"
    assert path.endswith("-Q1_report.pdf")
    [row] = fake_sb.tables["resources"]
    assert row["id"] == resource_id
    assert resource_id.startswith("res-")
    assert row["file_url"] == f"https://cdn.test/resources/{path}"
    assert row["file_size"] == "1.5 KB"
    assert row["category"] == "기타"
    assert row["client_id"] == "c1"


def test_add_resource_failed_upload_writes_nothing(fake_sb):
    fake_sb.storage.failing_files.append("deck.pdf")

    with pytest.raises(BackendError):
        mutations.add_resource(CODE, "Deck", ImageUpload("deck.pdf", b"pdf"), client=fake_sb)
    assert fake_sb.calls == []


def test_add_resource_requires_title_and_file(fake_sb):
    with pytest.raises(ValidationError):
        mutations.add_resource(CODE, "Deck", None, client=fake_sb)
    with pytest.raises(ValidationError):
        mutations.add_resource(CODE, " ", ImageUpload("deck.pdf", b"pdf"), client=fake_sb)
    assert fake_sb.storage.uploads == []


def test_delete_resource_removes_file_then_row(fake_sb):
    mutations.delete_resource(CODE, "res-1", "https://cdn.test/resources/123-deck.pdf", client=fake_sb)

    assert fake_sb.storage.removed == [("resources", "123-deck.pdf")]
    assert fake_sb.rpc_params("delete_resource") == [{"admin_code": CODE, "p_id": "res-1"}]
