import math

from importer.stock_parser import get_id_from_ticker, parse_stock_rows


def test_get_id_from_ticker():
    assert get_id_from_ticker("002050.SZ") == "002050"
    assert get_id_from_ticker("9988.HK") == "9988"
    assert get_id_from_ticker("AAPL") == "AAPL"
    assert get_id_from_ticker(".HK") == ".HK"
    assert get_id_from_ticker("") == ""
    assert get_id_from_ticker(None) == ""


def test_parse_stock_rows_maps_columns():
    rows = [
        {
            "ticker": "002050.SZ", "name": "Sanhua", "name_kr": "싼화", "sector": "기계",
            "marketCap": "12조 3,456억원", "totalReturn": 0, "PER": 25.1, "PBR": math.nan,
            "PSR": 3, "description": "", "keywords": "로봇 , 열관리",
        },
        {"ticker": math.nan, "name": "skipped"},
    ]

    parsed = parse_stock_rows(rows)

    assert len(parsed) == 1
    row = parsed[0]
    assert row.ticker == "002050.SZ"
    assert row.market_cap == "12조 3,456억원"
    assert row.return_rate == 0
    assert row.per == 25.1
    assert row.pbr is None
    assert row.description is None
    assert row.keywords == ["로봇", "열관리"]


def test_parse_stock_rows_without_keywords():
    parsed = parse_stock_rows([{"ticker": "9988.HK"}])
    assert parsed[0].keywords is None
    assert parsed[0].name is None
