# importer/excel.py
"""
Read uploaded spreadsheets into plain row dicts.

Issue sheets carry headers on the first row. Stock sheets start with a date
banner, so their headers sit on the second row.
"""

from __future__ import annotations

import io
import zipfile
import logging
from typing import IO, Any, Dict, List, Optional, Union

import pandas as pd

from core.errors import ValidationError

logger = logging.getLogger(__name__)

Source = Union[str, bytes, IO[bytes]]

# Legacy .xls needs xlrd; only openpyxl-readable workbooks and CSV are accepted
UPLOAD_TYPES = ("xlsx", "csv")


def _upload_name(source: Source, filename: Optional[str]) -> str:
    return str(filename or (source if isinstance(source, str) else "")).lower()


def read_rows(source: Source, filename: Optional[str] = None, header: int = 0) -> List[Dict[str, Any]]:
    """
    Parameters
    ----------
    source : path, raw bytes or binary file object
    filename : original upload name, used to detect CSV
    header : zero-based row index holding the column names

    Returns
    -------
    list of dict, one per data row, keyed by stripped header names.
    """
    name = _upload_name(source, filename)
    if name.endswith(".xls"):
        raise ValidationError(".xls 형식은 지원하지 않습니다. xlsx 또는 csv로 저장해 업로드하세요.")
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)

    try:
        if name.endswith(".csv"):
            df = pd.read_csv(source, header=header)
        else:
            df = pd.read_excel(source, sheet_name=0, header=header, engine="openpyxl")
    except (ValueError, OSError, zipfile.BadZipFile) as e:
        logger.warning("[Import] could not read %s: %s", filename or "upload", e)
        raise ValidationError(f"엑셀 파일을 읽을 수 없습니다: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    df = df.dropna(how="all")
    logger.info("[Import] read %d rows from %s", len(df), filename or "upload")
    return df.to_dict(orient="records")


def read_issue_rows(source: Source, filename: Optional[str] = None) -> List[Dict[str, Any]]:
    return read_rows(source, filename, header=0)


def read_stock_rows(source: Source, filename: Optional[str] = None) -> List[Dict[str, Any]]:
    return read_rows(source, filename, header=1)
