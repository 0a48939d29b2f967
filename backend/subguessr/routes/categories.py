from __future__ import annotations
import json
from typing import Sequence
import structlog
from fastapi import APIRouter, Depends
from redis import Redis as SyncRedis
from redis.asyncio import Redis
from rq import Queue

from subguessr.config import settings
from subguessr.jobs.probe_categories import probe_categories
from subguessr.services.categories import configured_categories
from subguessr.store import CATEGORY_HEALTH_KEY, get_redis

router = APIRouter(prefix="/api/categories", tags=["categories"])
log = structlog.get_logger()

_queue: Queue | None = None

def get_queue() -> Queue:
    # RQ queue (lazy single instance)
    global _queue
    if _queue is None:
        _queue = Queue("default", connection=SyncRedis.from_url(settings.redis_url))
    return _queue


@router.get("")
async def list_categories(categories: Sequence[str] = Depends(configured_categories)):
    return {"categories": list(categories)}


@router.post("/probe", status_code=202)
async def enqueue_probe(q: Queue = Depends(get_queue)):
    job = q.enqueue(probe_categories)
    return {"status": "queued", "job_id": job.id}


@router.get("/health")
async def category_health(r: Redis = Depends(get_redis)):
    raw = await r.hgetall(CATEGORY_HEALTH_KEY)
    if not raw:
        return {"checked_at": None, "results": {}}
    try:
        results = json.loads(raw.get("results") or "{}")
        checked_at = int(raw["checked_at"]) if raw.get("checked_at") else None
    except ValueError as e:
        log.warning("malformed_record", key=CATEGORY_HEALTH_KEY, reason=str(e))
        return {"checked_at": None, "results": {}}
    return {"checked_at": checked_at, "results": results}
