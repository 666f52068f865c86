# Step tags for the lead-intake conversation.
# Each step owns exactly one CollectedData field (same name), except DONE.

# Question: contact name
# Field: name (free text)
NAME = "name"

# Question: WhatsApp number
# Field: phone (digits only, 10-11)
PHONE = "phone"

# Question: company CNPJ
# Field: taxId (digits only, 14); verified against the company registry
TAX_ID = "taxId"

# Question: already has a health plan? (Sim/Não)
# Field: hasExistingPlan (bool); the only branching step
HAS_EXISTING_PLAN = "hasExistingPlan"

# Question: current carrier (only when hasExistingPlan)
# Field: currentPlanName
CURRENT_PLAN_NAME = "currentPlanName"

# Question: current monthly cost (only when hasExistingPlan)
# Field: currentPlanCost (decimal string, e.g. "350.00")
CURRENT_PLAN_COST = "currentPlanCost"

# Question: main difficulty with health plans
# Field: mainDifficulty
MAIN_DIFFICULTY = "mainDifficulty"

# Terminal: no further input accepted
DONE = "done"


STEP_ORDER = (
    NAME,
    PHONE,
    TAX_ID,
    HAS_EXISTING_PLAN,
    CURRENT_PLAN_NAME,
    CURRENT_PLAN_COST,
    MAIN_DIFFICULTY,
    DONE,
)

STEP_FIELD = {step: step for step in STEP_ORDER if step != DONE}


def is_step(value) -> bool:
    return value in STEP_ORDER


def progress(step: str) -> float:
    """Fraction of the display order reached; branching does not change the scale."""
    return STEP_ORDER.index(step) / (len(STEP_ORDER) - 1)


def progress_percent(step: str) -> int:
    return int(round(progress(step) * 100))
