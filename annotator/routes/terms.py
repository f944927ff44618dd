"""
Term endpoints.

- GET /api/terms?from=&size=          frequency ranking page
- GET /api/terms/{term}?from=&size=   occurrences of one input string

`from` and `size` must be >= 0 (422 otherwise); `size` defaults to the
configured page size. Windows past the end are empty, not errors.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from annotator.ledger import AnnotationLedger, LedgerError
from annotator.settings import AnnotatorSettings
from annotator.terms import TermNotFoundError, TermPage
from .deps import get_ledger, get_settings

router = APIRouter(prefix="/api", tags=["terms"])


def _page_payload(page: TermPage) -> dict:
    return {
        "term": page.term,
        "from": page.from_,
        "size": page.size,
        "total": page.total,
        "restricted": page.restricted_count,
        "occurrences": [
            {
                "index": occ.record_index,
                "source": occ.source_id,
                "restricted": occ.restricted,
                "answered": occ.answered,
            }
            for occ in page.occurrences
        ],
    }


@router.get("/terms")
def list_terms(
    from_: int = Query(0, alias="from", ge=0),
    size: Optional[int] = Query(None, ge=0),
    ledger: AnnotationLedger = Depends(get_ledger),
    settings: AnnotatorSettings = Depends(get_settings),
):
    if size is None:
        size = settings.page_size
    try:
        terms = ledger.list_terms(from_, size)
    except LedgerError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return [{"key": t.term, "freq": t.freq} for t in terms]


@router.get("/terms/{term}")
def lookup_term(
    term: str,
    from_: int = Query(0, alias="from", ge=0),
    size: Optional[int] = Query(None, ge=0),
    ledger: AnnotationLedger = Depends(get_ledger),
    settings: AnnotatorSettings = Depends(get_settings),
):
    if size is None:
        size = settings.page_size
    try:
        page = ledger.lookup_term(term, from_, size)
    except (TermNotFoundError, LedgerError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _page_payload(page)
