import io

import pandas as pd
import pytest

from core.errors import ValidationError
from importer.bulk import submit_issue_import, submit_stock_import
from importer.excel import UPLOAD_TYPES, read_issue_rows, read_stock_rows
from importer.issue_parser import NO_VALID_ROWS_REASON
from importer.report import ImportReport
from importer.stock_parser import NO_VALID_STOCK_ROWS_REASON

CODE = "ADMIN-1"

ISSUE_ROWS = [
    {"ticker": "002050.SZ", "date": 45292, "title": "수주", "content": "대형 수주", "is_cms": True},
    {"ticker": "", "date": 45292, "title": "x", "content": "y"},
]


def test_issue_import_with_no_valid_rows_skips_backend(fake_sb):
    report = submit_issue_import([ISSUE_ROWS[1]], CODE, client=fake_sb)

    assert not report.ok
    assert report.errors[0].ticker == "-"
    assert report.errors[0].row == 0
    assert report.errors[0].reason == NO_VALID_ROWS_REASON
    assert fake_sb.rpc_calls == []


def test_issue_import_sends_parsed_rows(fake_sb):
    fake_sb.rpc_results["bulk_insert_issues"] = {
        "inserted": 1,
        "skipped": ["999999.SZ"],
        "duplicates": ["002050.SZ 24/01/01"],
        "errors": [{"ticker": "688981.SS", "row": 4, "reason": "bad date"}],
    }

    report = submit_issue_import(ISSUE_ROWS, CODE, client=fake_sb)

    [params] = fake_sb.rpc_params("bulk_insert_issues")
    assert params["admin_code"] == CODE
    assert params["data"] == [
        {"ticker": "002050.SZ", "date": "24/01/01", "title": "수주", "content": "대형 수주",
         "source": "", "is_cms": True, "keywords": []}
    ]
    assert report.inserted == 1
    assert report.skipped == ["999999.SZ"]
    assert report.duplicate_count == 1
    assert report.errors[0].row == 4
    assert report.to_dict()["errors"][0]["reason"] == "bad date"


def test_issue_import_backend_failure_becomes_report(fake_sb):
    fake_sb.rpc_results["bulk_insert_issues"] = RuntimeError("permission denied")

    report = submit_issue_import(ISSUE_ROWS, CODE, client=fake_sb)

    assert report.inserted == 0
    assert report.errors[0].reason == "permission denied"


def test_report_from_empty_result():
    report = ImportReport.from_result(None)
    assert report.ok
    assert report.inserted == 0


def test_stock_import(fake_sb):
    fake_sb.rpc_results["bulk_update_stock_metrics"] = {"updated": 2, "inserted": 1}

    report = submit_stock_import([{"ticker": "9988.HK", "PER": 12.0}, {"ticker": None}], CODE, client=fake_sb)

    assert (report.updated, report.inserted, report.error) == (2, 1, None)
    [params] = fake_sb.rpc_params("bulk_update_stock_metrics")
    assert [row["ticker"] for row in params["data"]] == ["9988.HK"]


def test_stock_import_without_tickers(fake_sb):
    report = submit_stock_import([{"name": "x"}], CODE, client=fake_sb)
    assert report.error == NO_VALID_STOCK_ROWS_REASON
    assert fake_sb.rpc_calls == []


def test_stock_import_backend_failure(fake_sb):
    fake_sb.rpc_results["bulk_update_stock_metrics"] = RuntimeError("timeout")
    assert submit_stock_import([{"ticker": "9988.HK"}], CODE, client=fake_sb).error == "timeout"


# ---------------------------------------------------------------------------
# Spreadsheet reading
# ---------------------------------------------------------------------------

def _xlsx(frame: pd.DataFrame, **kwargs) -> bytes:
    buf = io.BytesIO()
    frame.to_excel(buf, index=False, engine="openpyxl", **kwargs)
    return buf.getvalue()


def test_read_issue_rows_from_xlsx():
    frame = pd.DataFrame(
        [
            {" ticker ": "002050.SZ", "date": "24/01/01", "title": "t", "content": "c"},
            {" ticker ": None, "date": None, "title": None, "content": None},
        ]
    )

    rows = read_issue_rows(_xlsx(frame), "issues.xlsx")

    assert len(rows) == 1
    assert rows[0]["ticker"] == "002050.SZ"


def test_read_stock_rows_uses_second_row_headers(tmp_path):
    path = tmp_path / "stocks.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame([["2025-03-01 기준"]]).to_excel(writer, index=False, header=False)
        pd.DataFrame([{"ticker": "9988.HK", "PER": 12.5}]).to_excel(writer, index=False, startrow=1)

    rows = read_stock_rows(str(path))

    assert rows == [{"ticker": "9988.HK", "PER": 12.5}]


def test_read_csv_upload():
    rows = read_issue_rows(b"ticker,date,title,content\n9988.HK,24/01/01,t,c\n", "issues.csv")
    assert rows[0]["title"] == "t"


def test_unreadable_upload_is_validation_error():
    with pytest.raises(ValidationError):
        read_issue_rows(b"not a spreadsheet", "issues.xlsx")


def test_legacy_xls_upload_is_rejected():
    with pytest.raises(ValidationError, match="xls"):
        read_issue_rows(b"\xd0\xcf\x11\xe0", "issues.xls")
    assert "xls" not in UPLOAD_TYPES


def test_report_metrics_include_error_count():
    report = ImportReport.from_result(
        {"inserted": 3, "skipped": ["999999.SZ"], "errors": [{"ticker": "9988.HK", "row": 2, "reason": "bad date"}]}
    )

    assert report.metrics() == [("등록", 3), ("미등록 종목", 1), ("중복 스킵", 0), ("오류", 1)]
