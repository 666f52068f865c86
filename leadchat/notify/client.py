"""
Isolated delivery client for the completion notice webhook.
Both variants return (success, status_code, error_msg) and never raise.
"""
from typing import Any, Dict, Optional, Tuple

import httpx

from leadchat.settings import settings

DeliveryResult = Tuple[bool, int, Optional[str]]


def _headers(record_id: str) -> Dict[str, str]:
    # One record -> one notice; lets the receiver drop a duplicate retry
    return {"Idempotency-Key": f"lead-notice:{record_id}", "Content-Type": "application/json"}


def _interpret(resp: httpx.Response) -> DeliveryResult:
    if 200 <= resp.status_code < 300:
        return True, resp.status_code, None
    return False, resp.status_code, f"HTTP {resp.status_code}: {(resp.text or '')[:200]}"


def send_notice_http(payload: Dict[str, Any], timeout: Optional[float] = None) -> DeliveryResult:
    if not settings.NOTIFY_WEBHOOK_URL:
        return False, 0, "NOTIFY_WEBHOOK_URL is not set"
    try:
        with httpx.Client(timeout=timeout or settings.NOTIFY_TIMEOUT_SEC) as client:
            resp = client.post(settings.NOTIFY_WEBHOOK_URL, json=payload, headers=_headers(payload.get("recordId", "")))
        return _interpret(resp)
    except httpx.HTTPError as e:
        return False, 0, f"{type(e).__name__}: {str(e)[:200]}"


async def send_notice_http_async(payload: Dict[str, Any], timeout: Optional[float] = None) -> DeliveryResult:
    if not settings.NOTIFY_WEBHOOK_URL:
        return False, 0, "NOTIFY_WEBHOOK_URL is not set"
    try:
        async with httpx.AsyncClient(timeout=timeout or settings.NOTIFY_TIMEOUT_SEC) as client:
            resp = await client.post(
                settings.NOTIFY_WEBHOOK_URL, json=payload, headers=_headers(payload.get("recordId", ""))
            )
        return _interpret(resp)
    except httpx.HTTPError as e:
        return False, 0, f"{type(e).__name__}: {str(e)[:200]}"
