"""
Input formatting & validation
-----------------------------
Pure helpers applied to every keystroke (format_input) and to every submitted
answer (is_valid). Formatting is always derived from the digits of the input,
so re-formatting an already formatted value is a no-op.
"""
import re
from typing import Any

from leadchat.core import state_machine as sm

PHONE_MAX_DIGITS = 11
TAX_ID_DIGITS = 14

_NON_DIGIT = re.compile(r"\D")

_PLACEHOLDERS = {
    sm.NAME: "Digite seu nome completo...",
    sm.PHONE: "(11) 99999-9999",
    sm.TAX_ID: "00.000.000/0000-00",
    sm.CURRENT_PLAN_COST: "R$ 0,00",
}
_DEFAULT_PLACEHOLDER = "Digite sua resposta..."

YES_ANSWER = "sim"


def digits_only(text: str) -> str:
    return _NON_DIGIT.sub("", text or "")


def _format_phone(raw: str) -> str:
    digits = digits_only(raw)[:PHONE_MAX_DIGITS]
    if len(digits) <= 2:
        return digits
    area, local = digits[:2], digits[2:]
    # hyphen only once the 4- or 5-digit prefix is complete
    if len(local) >= 8:
        local = f"{local[:-4]}-{local[-4:]}"
    return f"({area}) {local}"


def _format_tax_id(raw: str) -> str:
    # NN.NNN.NNN/NNNN-NN, punctuation inserted as soon as the next digit exists
    out = digits_only(raw)[:TAX_ID_DIGITS]
    out = re.sub(r"(\d{2})(\d)", r"\1.\2", out, count=1)
    out = re.sub(r"(\d{3})(\d)", r"\1.\2", out, count=1)
    out = re.sub(r"(\d{3})(\d)", r"\1/\2", out, count=1)
    return re.sub(r"(\d{4})(\d)", r"\1-\2", out, count=1)


def _format_brl(cents: int) -> str:
    reais, rest = divmod(cents, 100)
    grouped = f"{reais:,}".replace(",", ".")
    return f"R$ {grouped},{rest:02d}"


def _format_cost(raw: str) -> str:
    digits = digits_only(raw)
    if not digits:
        return ""
    return _format_brl(int(digits))


def format_input(step: str, raw: str) -> str:
    """Display form of `raw` for the given step. Never raises."""
    raw = raw if isinstance(raw, str) else ""
    if step == sm.PHONE:
        return _format_phone(raw)
    if step == sm.TAX_ID:
        return _format_tax_id(raw)
    if step == sm.CURRENT_PLAN_COST:
        return _format_cost(raw)
    return raw


def is_valid(step: str, text: str) -> bool:
    text = text if isinstance(text, str) else ""
    if step == sm.PHONE:
        return len(digits_only(text)) in (10, 11)
    if step == sm.TAX_ID:
        return len(digits_only(text)) == TAX_ID_DIGITS
    if step == sm.CURRENT_PLAN_COST:
        return bool(digits_only(text))
    return len(text.strip()) >= 2


def cents_to_decimal(text: str) -> str:
    """'R$ 1.234,56' -> '1234.56'."""
    digits = digits_only(text)
    reais, rest = divmod(int(digits or "0"), 100)
    return f"{reais}.{rest:02d}"


def normalize_value(step: str, text: str) -> Any:
    """Value stored in CollectedData for an accepted answer."""
    if step in (sm.PHONE, sm.TAX_ID):
        return digits_only(text)
    if step == sm.CURRENT_PLAN_COST:
        return cents_to_decimal(text)
    if step == sm.HAS_EXISTING_PLAN:
        return text.strip().lower() == YES_ANSWER
    return text.strip()


def input_placeholder(step: str) -> str:
    return _PLACEHOLDERS.get(step, _DEFAULT_PLACEHOLDER)
