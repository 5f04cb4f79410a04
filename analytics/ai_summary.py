"""
analytics/ai_summary.py
-----------------------

Generates the short "current direction" summary shown on a stock's detail
page from its issue timeline, using the Gemini REST API.

The model is asked for JSON matching a fixed schema {summary, keywords}.
One attempt per call; the admin can simply press the button again.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

import requests

from core.config import GEMINI_ENDPOINT, GEMINI_MODEL, get_settings
from core.errors import BackendError, ValidationError
from core.schemas import Issue

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30

PERSONA = """당신은 20년 경력의 중국 시장 전문 애널리스트입니다.
PB(Private Banker) 고객을 대상으로 투자 인사이트를 제공합니다.
- 전문적이면서도 이해하기 쉬운 어투를 사용합니다.
- 투자 기회와 리스크를 균형있게 분석합니다.
- 핵심 성장 동력과 주요 이벤트를 강조합니다."""

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "summary": {"type": "STRING"},
        "keywords": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["summary", "keywords"],
}


def build_prompt(stock_name: str, issues: Iterable[Issue]) -> str:
    timeline = "\n---\n".join(f"[{i.date}] {i.title or ''}\n{i.content}\n" for i in issues)
    return (
        f"{PERSONA}\n\n---\n\n"
        f"기업({stock_name})의 최신 타임라인 정보를 분석하여 현재 방향성을 요약해주세요.\n"
        "한국어로 3~4문장으로 답변하되, 투자자 관점에서 의미있는 포인트를 강조하세요.\n\n"
        f"타임라인 정보:\n{timeline}"
    )


def _extract_text(body: Dict[str, Any]) -> str:
    candidates = body.get("candidates") or []
    if not candidates:
        return "{}"
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(p.get("text", "") for p in parts) or "{}"


def generate_ai_summary(
    stock_name: str,
    issues: List[Issue],
    api_key: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Parameters
    ----------
    stock_name : Korean display name of the stock
    issues : timeline entries to summarise (newest first, as stored)
    api_key : overrides GEMINI_API_KEY

    Returns
    -------
    dict : {"summary": str, "keywords": list[str]}
    """
    key = api_key or get_settings().gemini_api_key
    if not key:
        raise ValidationError("GEMINI_API_KEY 환경변수가 설정되지 않았습니다.")
    if not issues:
        raise ValidationError("분석할 이슈 데이터가 없습니다.")

    payload = {
        "contents": [{"parts": [{"text": build_prompt(stock_name, issues)}]}],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": RESPONSE_SCHEMA,
        },
    }
    url = f"{GEMINI_ENDPOINT}/{GEMINI_MODEL}:generateContent"

    try:
        resp = requests.post(url, params={"key": key}, json=payload, timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
        data = json.loads(_extract_text(resp.json()))
    except (requests.RequestException, ValueError) as e:
        logger.error("[Gemini] summary for %s failed: %s", stock_name, e)
        raise BackendError("generate ai summary", e) from e

    logger.info("[Gemini] summary generated for %s (%d issues)", stock_name, len(issues))
    return {
        "summary": data.get("summary") or "",
        "keywords": list(data.get("keywords") or []),
    }
