import json
import re
import time
from leadchat.settings import settings

# Lead answers are personal data; keep them out of stdout when redaction is on
SENSITIVE_KEYS = {"text", "value", "name", "phone", "taxId", "contact", "email", "payload", "fields"}

# Phone numbers and CNPJs leaking through free-form fields such as error messages
_LONG_DIGITS = re.compile(r"\d[\d.\-/() ]{8,}\d")


def _redact_value(v):
    if isinstance(v, str) and len(v) > 0:
        return f"[REDACTED:{len(v)}chars]"
    if isinstance(v, dict):
        return {k: _redact_value(val) for k, val in v.items()}
    if isinstance(v, (list, tuple)):
        return [_redact_value(x) for x in v]
    return v


def _mask_digits(v):
    if isinstance(v, str):
        return _LONG_DIGITS.sub("[digits]", v)
    return v


def _clean(fields: dict) -> dict:
    out = {}
    for k, v in fields.items():
        if k in SENSITIVE_KEYS:
            out[k] = _redact_value(v)
        elif isinstance(v, dict):
            out[k] = _clean(v)
        else:
            out[k] = _mask_digits(v)
    return out


def log(event: str, **fields):
    payload = {"ts": int(time.time()), "event": event}
    payload.update(_clean(fields) if settings.ENABLE_PII_REDACTION else fields)
    print(json.dumps(payload, ensure_ascii=False, default=str))
