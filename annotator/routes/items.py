"""
Record endpoints.

HTTP adapter over the ledger's record operations:
- GET  /api/item/{index}      read a record
- PUT  /api/item/{index}      submit its golden answer (plain-text body)
- GET  /api/randomindex       pick an unanswered record
- GET  /api/statistics        todo/done counts
- GET  /api/dump              all records
- POST /api/save              save to the ledger's file now

No logic lives here beyond mapping ledger errors to status codes.
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from annotator.ledger import (
    AlreadyAnsweredError,
    AnnotationLedger,
    InvalidAnswerError,
    LedgerError,
    NoUnansweredRecordsError,
    RecordOutOfRangeError,
)
from annotator.models import Record
from annotator.persistence import PersistenceError
from .deps import get_ledger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["items"])


def _record_payload(record: Record) -> dict:
    return record.model_dump(mode="json", by_alias=True)


def _decode_answer(body: bytes, content_type: str) -> str:
    """Accept the answer as raw text, or as a JSON string."""
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Answer must be UTF-8 text")

    if content_type.startswith("application/json"):
        try:
            value = json.loads(text)
        except json.JSONDecodeError as e:
            raise HTTPException(status_code=400, detail=f"Invalid JSON answer: {e.msg}")
        if not isinstance(value, str):
            raise HTTPException(status_code=400, detail="JSON answer must be a string")
        return value

    return text


@router.get("/item/{index}")
def get_item(index: int, ledger: AnnotationLedger = Depends(get_ledger)):
    try:
        return _record_payload(ledger.get_record(index))
    except RecordOutOfRangeError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/item/{index}")
async def put_answer(
    index: int,
    request: Request,
    ledger: AnnotationLedger = Depends(get_ledger),
):
    """
    Store the golden answer for a record.

    Responses:
        200 {"index": ..., "done": ...}
        400 empty or undecodable answer
        404 index out of range
        409 record already answered
    """
    if not 0 <= index < ledger.total:
        raise HTTPException(
            status_code=404,
            detail=str(RecordOutOfRangeError(index, ledger.total)),
        )

    answer = _decode_answer(
        await request.body(),
        request.headers.get("content-type", ""),
    )

    # The ledger lock may be contended by a save; keep it off the event loop
    try:
        done = await run_in_threadpool(ledger.submit_answer, index, answer)
    except InvalidAnswerError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AlreadyAnsweredError as e:
        logger.warning(f"[API] Rejected answer for record {index}: already answered")
        raise HTTPException(status_code=409, detail=str(e))

    return {"index": index, "done": done}


@router.get("/randomindex")
def random_index(ledger: AnnotationLedger = Depends(get_ledger)):
    try:
        return ledger.pick_unanswered()
    except NoUnansweredRecordsError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/statistics")
def statistics(ledger: AnnotationLedger = Depends(get_ledger)):
    stats = ledger.statistics()
    return {"todo": stats.todo, "done": stats.done, "total": stats.total}


@router.get("/dump")
def dump(ledger: AnnotationLedger = Depends(get_ledger)):
    return [_record_payload(record) for record in ledger.dump()]


@router.post("/save")
def save(ledger: AnnotationLedger = Depends(get_ledger)):
    """Save immediately. 500 with the failure reason if the write fails."""
    try:
        ledger.save()
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=f"Error saving to {ledger.path}: {e}")
    except LedgerError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"saved": str(ledger.path)}
