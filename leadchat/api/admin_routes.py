from fastapi import APIRouter, Depends, HTTPException

from leadchat.api.auth import require_admin
from leadchat.api.schemas import RecordOut
from leadchat.api.routes import get_registry
from leadchat.core.errors import PersistenceError
import leadchat.observability.metrics as metrics
from leadchat.store.session_registry import SessionRegistry

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/records/{record_id}", response_model=RecordOut)
async def get_record(record_id: str, registry: SessionRegistry = Depends(get_registry), _=Depends(require_admin)):
    """Stored lead record, as the notice e-mail will read it."""
    try:
        record = await registry.store.get_record(record_id)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    if record is None:
        raise HTTPException(status_code=404, detail="Unknown record")
    return {"recordId": record_id, "record": record}


@router.get("/metrics")
async def get_metrics(registry: SessionRegistry = Depends(get_registry), _=Depends(require_admin)):
    try:
        counters = await metrics.snapshot()
    except Exception:
        counters = {}
    return {"liveSessions": len(registry), "counters": counters}
