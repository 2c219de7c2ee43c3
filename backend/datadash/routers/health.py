from fastapi import APIRouter
from datadash.db.session import database_configured
from datadash.schemas.common import ok, meta_now
from datadash.services.store import STORAGE_DATABASE, STORAGE_SAMPLE

router = APIRouter(prefix="/api/health", tags=["health"])

@router.get("")
def healthcheck():
    storage = STORAGE_DATABASE if database_configured() else STORAGE_SAMPLE
    return ok(
        data={"status": "ok", "storage": storage, "writable": storage == STORAGE_DATABASE},
        meta=meta_now(storage=storage),
    )
