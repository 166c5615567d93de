"""
FastAPI Dependencies

Resolve the settings and the store adapters attached to app.state.
Tests replace these with app.dependency_overrides.
"""

from fastapi import Depends, Request

from visit_counter.core.exceptions import VisitCounterException
from visit_counter.core.setting import Settings, settings as default_settings
from visit_counter.services.counter_cache import CounterCache
from visit_counter.services.visit_ledger import VisitLedger
from visit_counter.services.visit_service import VisitService


def _require_state(request: Request, name: str):
    adapter = getattr(request.app.state, name, None)
    if adapter is None:
        raise VisitCounterException(f"{name} is not initialized")
    return adapter


def get_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or default_settings


def get_counter_cache(request: Request) -> CounterCache:
    return _require_state(request, "counter_cache")


def get_visit_ledger(request: Request) -> VisitLedger:
    return _require_state(request, "visit_ledger")


def get_visit_service(
    counter_cache: CounterCache = Depends(get_counter_cache),
    ledger: VisitLedger = Depends(get_visit_ledger),
) -> VisitService:
    return VisitService(counter_cache, ledger)
