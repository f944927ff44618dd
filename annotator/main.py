"""
Annotator HTTP service.

create_app() wires an already-loaded ledger into a FastAPI application.
The ledger is held on app.state; there is no module-level app or ledger.

Lifecycle:
- startup: start the periodic autosave (if enabled and the ledger has a path)
- shutdown: stop autosave, then save once more if anything is unsaved
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from annotator import __version__
from annotator.ledger import AnnotationLedger, PeriodicSaver
from annotator.persistence import PersistenceError
from annotator.routes import items, terms
from annotator.settings import AnnotatorSettings

logger = logging.getLogger(__name__)


def _final_save(ledger: AnnotationLedger) -> None:
    if ledger.path is None:
        return
    try:
        if ledger.save_if_dirty():
            logger.info(f"[Service] Final save to {ledger.path} complete")
    except PersistenceError as e:
        logger.error(f"[Service] Final save to {ledger.path} failed: {e}")


def create_app(
    ledger: AnnotationLedger,
    settings: Optional[AnnotatorSettings] = None,
) -> FastAPI:
    """
    Create the annotator API application.

    Args:
        ledger: Loaded ledger to serve
        settings: Service settings. Defaults if not provided.

    Returns:
        FastAPI application
    """
    settings = settings or AnnotatorSettings(data_path=ledger.path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        saver: Optional[PeriodicSaver] = None
        if settings.autosave_enabled and ledger.path is not None:
            saver = PeriodicSaver(ledger, interval=settings.autosave_seconds)
            saver.start()
        app.state.saver = saver
        try:
            yield
        finally:
            if saver is not None:
                saver.stop()
            _final_save(ledger)

    app = FastAPI(
        title="Annotator",
        description="Concurrent labeling of annotation records against candidate answers.",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.ledger = ledger
    app.state.settings = settings
    app.state.saver = None

    app.include_router(items.router)
    app.include_router(terms.router)

    @app.get("/")
    def root():
        stats = ledger.statistics()
        return {
            "service": "annotator",
            "status": "running",
            "records": stats.total,
            "todo": stats.todo,
        }

    return app
