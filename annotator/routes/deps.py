"""
Shared route dependencies.

The ledger and settings live on app.state, set once by create_app().
"""

from fastapi import Request

from annotator.ledger import AnnotationLedger
from annotator.settings import AnnotatorSettings


def get_ledger(request: Request) -> AnnotationLedger:
    return request.app.state.ledger


def get_settings(request: Request) -> AnnotatorSettings:
    return request.app.state.settings
