import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

import core.health
from backend import main
from backend.deps import get_admin_client, get_client, require_admin_code
from backend.routes import admin as admin_routes
from core.errors import INVALID_ADMIN_CODE_MESSAGE, INVALID_PASSWORD_MESSAGE
from core.metadata import __version__

CODE = "ADMIN-1"
HEADERS = {"x-admin-code": CODE}


@pytest.fixture
def sb(make_sb, stock_rows):
    fake = make_sb(
        {
            "clients": [{"id": "c1", "name": "Alpha", "password": "alpha", "is_active": True, "brand_color": "#111111"}],
            "shared_passwords": [],
            "stocks": stock_rows,
            "issues": [{"id": "i1", "stock_id": "s1", "content": "대형 수주", "title": "수주", "date": "24/03/01"}],
        }
    )
    fake.rpc_results["verify_admin_code"] = lambda params: params["input_code"] == CODE
    fake.rpc_results["get_active_code_version"] = 3
    return fake


@pytest.fixture
def client(sb):
    def admin_client(admin_code: str = Depends(require_admin_code)):
        return sb

    main.app.dependency_overrides[get_client] = lambda: sb
    main.app.dependency_overrides[get_admin_client] = admin_client
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


def test_root(client):
    body = client.get("/").json()
    assert body["status"] == "running"
    assert body["version"] == __version__
    assert "admin back office" in body["surfaces"]


def test_health_reports_supabase(client, monkeypatch):
    monkeypatch.setattr(core.health, "test_connection", lambda: "https://fake.supabase.test")
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["supabase_connected"] is True

    monkeypatch.setattr(core.health, "test_connection", lambda: None)
    assert client.get("/health").json()["status"] == "degraded"


# ---------------------------------------------------------------------------
# /auth
# ---------------------------------------------------------------------------

def test_login_single(client):
    resp = client.post("/auth/login", json={"password": "alpha"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["access_type"] == "single"
    assert body["client_info"]["id"] == "c1"
    assert body["code_version"] == "3"


def test_login_wrong_password_is_401(client):
    resp = client.post("/auth/login", json={"password": "nope"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == INVALID_PASSWORD_MESSAGE


def test_login_blank_password_is_400(client):
    assert client.post("/auth/login", json={"password": "  "}).status_code == 400


def test_code_version(client):
    assert client.get("/auth/code-version").json() == {"code_version": "3"}


def test_admin_verify(client):
    assert client.post("/auth/admin/verify", json={"code": CODE}).json() == {"ok": True}
    resp = client.post("/auth/admin/verify", json={"code": "WRONG"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == INVALID_ADMIN_CODE_MESSAGE


# ---------------------------------------------------------------------------
# /admin
# ---------------------------------------------------------------------------

def test_admin_routes_require_header(client):
    assert client.get("/admin/analytics").status_code == 422
    assert client.get("/admin/analytics", headers={"x-admin-code": "WRONG"}).status_code == 401


def test_issue_import_upload(client, sb):
    sb.rpc_results["bulk_insert_issues"] = {"inserted": 1, "skipped": [], "duplicates": [], "errors": []}
    csv = "ticker,date,title,content,is_cms\n002050.SZ,24/03/01,수주,대형 수주,TRUE\n,24/03/02,x,y,\n"

    resp = client.post(
        "/admin/issues/import",
        files={"file": ("issues.csv", csv.encode("utf-8"), "text/csv")},
        headers=HEADERS,
    )

    assert resp.status_code == 200
    assert resp.json()["inserted"] == 1
    [params] = sb.rpc_params("bulk_insert_issues")
    assert len(params["data"]) == 1
    assert params["data"][0]["is_cms"] is True


def test_stock_import_upload(client, sb):
    sb.rpc_results["bulk_update_stock_metrics"] = {"updated": 1, "inserted": 0}
    csv = "기준일,2025-03-01\nticker,PER\n9988.HK,12.5\n"

    resp = client.post(
        "/admin/stocks/import",
        files={"file": ("stocks.csv", csv.encode("utf-8"), "text/csv")},
        headers=HEADERS,
    )

    assert resp.json() == {"updated": 1, "inserted": 0, "error": None}
    [params] = sb.rpc_params("bulk_update_stock_metrics")
    assert params["data"][0]["per"] == 12.5


def test_summary_is_stored(client, sb, monkeypatch):
    monkeypatch.setattr(
        admin_routes,
        "generate_ai_summary",
        lambda name, issues: {"summary": f"{name} 요약 ({len(issues)})", "keywords": ["로봇"]},
    )

    resp = client.post("/admin/stocks/s1/summary", headers=HEADERS)

    assert resp.status_code == 200
    assert resp.json() == {"stock_id": "s1", "summary": "싼화 요약 (1)", "keywords": ["로봇"]}
    stored = next(r for r in sb.tables["stocks"] if r["id"] == "s1")
    assert stored["ai_summary"] == "싼화 요약 (1)"
    assert stored["ai_summary_keywords"] == ["로봇"]


def test_summary_for_unknown_stock_is_404(client):
    assert client.post("/admin/stocks/missing/summary", headers=HEADERS).status_code == 404


def test_summary_without_issues_is_400(client):
    assert client.post("/admin/stocks/s2/summary", headers=HEADERS).status_code == 400


def test_backend_failure_is_502(client, sb):
    sb.failing_tables.add("stocks")
    resp = client.post("/admin/stocks/s1/summary", headers=HEADERS)
    assert resp.status_code == 502
    assert resp.json()["detail"] == "fetch stocks failed"


def test_analytics(client, sb):
    sb.rpc_results["get_portfolio_analytics"] = {
        "total_views": 4,
        "chart_data": [{"label": "W1", "count": 1}, {"label": "W2", "count": 3}],
        "portfolio_stats": [{"id": "p1", "name": "Growth", "count": 4}],
        "recent_views": [{"id": "v1", "portfolio_id": "p1", "portfolio_name": "Growth", "viewed_at": "2025-03-01T00:00:00Z"}],
    }

    body = client.get("/admin/analytics", params={"period": "weekly", "portfolio_id": "p1"}, headers=HEADERS).json()

    assert body["analytics"]["total_views"] == 4
    assert body["insights"]["peak_bucket"] == "W2"
    assert body["insights"]["top_portfolio"] == "Growth"
    assert sb.rpc_params("get_portfolio_analytics") == [{"p_period": "weekly", "p_portfolio_id": "p1"}]


def test_analytics_rejects_unknown_period(client):
    assert client.get("/admin/analytics", params={"period": "yearly"}, headers=HEADERS).status_code == 422


def test_activate_and_deactivate(client, sb):
    assert client.post("/admin/portfolios/p1/activate", headers=HEADERS).json() == {"portfolio_id": "p1", "is_active": True}
    assert client.post("/admin/portfolios/p1/deactivate", headers=HEADERS).json()["is_active"] is False
    assert [fn for fn, _ in sb.rpc_calls if fn != "verify_admin_code"] == ["set_active_portfolio", "deactivate_portfolio"]
