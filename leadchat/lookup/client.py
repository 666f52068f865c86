"""
Company registry lookup (CNPJ)
------------------------------
One GET per verification against LOOKUP_BASE_URL/<14 digits>. The provider's
payload is kept as-is (open dict) and only a few fields are read for display.

Outcomes:
- 2xx with a JSON body          -> is_valid=True, enrichment=<body>
- anything else                 -> is_valid=False
- transport or protocol failure -> VerificationUnavailable (caller shows "try again")
No automatic retries; the user resubmits.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from leadchat.core.errors import VerificationUnavailable
from leadchat.core.formatting import TAX_ID_DIGITS, digits_only
from leadchat.observability.logging import log
import leadchat.observability.metrics as metrics
from leadchat.settings import settings

# Provider keys first (BrasilAPI), then neutral aliases
_LEGAL_NAME_KEYS = ("razao_social", "legalName")
_TRADE_NAME_KEYS = ("nome_fantasia", "tradeName")
_CITY_KEYS = ("municipio", "city")
_STATE_KEYS = ("uf", "state")

NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class VerificationResult:
    is_valid: bool
    enrichment: Optional[Dict[str, Any]] = None


def _lookup_url(digits: str) -> str:
    return f"{settings.LOOKUP_BASE_URL.rstrip('/')}/{digits}"


async def verify_tax_id(tax_id: str) -> VerificationResult:
    digits = digits_only(tax_id)
    if len(digits) != TAX_ID_DIGITS:
        return VerificationResult(is_valid=False)

    start = time.time()
    try:
        async with httpx.AsyncClient(timeout=settings.LOOKUP_TIMEOUT_SEC) as client:
            resp = await client.get(_lookup_url(digits))
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        log(
            event="lookup_transport_error",
            errorType=type(e).__name__,
            error=str(e)[:300],
            elapsedMs=int((time.time() - start) * 1000),
        )
        await metrics.increment(metrics.K_LOOKUP_UNAVAILABLE)
        raise VerificationUnavailable(str(e)) from e

    elapsed_ms = int((time.time() - start) * 1000)
    if not (200 <= resp.status_code < 300):
        log(event="lookup_rejected", statusCode=int(resp.status_code), elapsedMs=elapsed_ms)
        await metrics.increment(metrics.K_LOOKUP_REJECTED)
        return VerificationResult(is_valid=False)

    try:
        body = resp.json()
    except ValueError:
        log(event="lookup_unparseable_body", statusCode=int(resp.status_code), elapsedMs=elapsed_ms)
        await metrics.increment(metrics.K_LOOKUP_REJECTED)
        return VerificationResult(is_valid=False)

    log(event="lookup_accepted", statusCode=int(resp.status_code), elapsedMs=elapsed_ms)
    await metrics.increment(metrics.K_LOOKUP_ACCEPTED)
    # Non-object bodies still count as found, there is just nothing to show
    return VerificationResult(is_valid=True, enrichment=body if isinstance(body, dict) else None)


def _first(record: Dict[str, Any], keys) -> Optional[str]:
    for k in keys:
        v = record.get(k)
        if v:
            return str(v)
    return None


def display_name(record: Dict[str, Any]) -> str:
    return _first(record, _TRADE_NAME_KEYS) or _first(record, _LEGAL_NAME_KEYS) or "Empresa"


def summarize_enrichment(record: Dict[str, Any]) -> str:
    legal = _first(record, _LEGAL_NAME_KEYS) or NOT_AVAILABLE
    trade = _first(record, _TRADE_NAME_KEYS) or NOT_AVAILABLE
    city = _first(record, _CITY_KEYS) or NOT_AVAILABLE
    state = _first(record, _STATE_KEYS) or NOT_AVAILABLE
    return (
        "✅ CNPJ Validado!\n\n"
        f"Empresa: {legal}\n"
        f"Nome Fantasia: {trade}\n"
        f"Cidade: {city}/{state}"
    )
