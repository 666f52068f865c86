from typing import Any, Dict

from leadchat.core.formatting import format_input
from leadchat.core import state_machine as sm
from leadchat.lookup.client import display_name
from leadchat.settings import settings

# (record field, label) in the order the sales team reads them
_LABELS = (
    ("name", "Nome"),
    ("phone", "WhatsApp"),
    ("email", "E-mail"),
    ("taxId", "CNPJ"),
    ("company", "Empresa"),
    ("hasExistingPlan", "Possui plano atual"),
    ("currentPlanName", "Plano atual"),
    ("currentPlanCost", "Valor mensal"),
    ("mainDifficulty", "Maior dificuldade"),
)


def _display(field: str, value: Any) -> str:
    if value is None or value == "":
        return "-"
    if field == "phone":
        return format_input(sm.PHONE, str(value))
    if field == "taxId":
        return format_input(sm.TAX_ID, str(value))
    if field == "currentPlanCost":
        # stored as "350.00"
        return format_input(sm.CURRENT_PLAN_COST, str(value))
    if isinstance(value, bool):
        return "Sim" if value else "Não"
    return str(value)


def build_notice_payload(record_id: str, record: Dict[str, Any]) -> Dict[str, Any]:
    rec = dict(record or {})
    enrichment = rec.get("enrichmentRecord")
    if isinstance(enrichment, dict):
        rec["company"] = display_name(enrichment)

    lines = [f"{label}: {_display(field, rec.get(field))}" for field, label in _LABELS]
    return {
        "recordId": record_id,
        "subject": f"Novo lead {settings.BRAND_NAME}: {rec.get('name') or 'sem nome'}",
        "replyTo": rec.get("email") or "",
        "text": "\n".join(lines),
        "lead": {field: rec.get(field) for field, _ in _LABELS},
        "status": rec.get("status") or "",
    }
