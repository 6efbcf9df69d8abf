"""Null-safe extraction of timestamps and meeting links from Nylas events.

The ``when`` object comes back in several shapes depending on the event kind:

  * timespan: ``{"start_time": 1700000000, "end_time": 1700003600}``
  * some payloads use ``start`` / ``end`` instead
  * time: ``{"time": 1700000000}`` (a single moment, no end)
  * a list of spans: ``{"times": [{"start_time": ..., "end_time": ...}]}``
  * date / datespan: ``{"date": "2024-03-01"}`` or ``{"dates": [...]}``

Date-only shapes have no timestamps, so the getters return ``None`` for them.
Unknown keys are ignored. ``0`` is a present value; callers decide whether it
is usable.
"""
from __future__ import annotations
from typing import Any, Mapping, Optional


def _get(obj: Any, key: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key)
    return None


def _first_span(when: Any) -> Any:
    times = _get(when, "times")
    if isinstance(times, (list, tuple)) and times:
        return times[0]
    return None


def _coalesce(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def get_start_time(when: Optional[Mapping[str, Any]]) -> Optional[int]:
    return _coalesce(
        _get(when, "start_time"),
        _get(when, "start"),
        _get(when, "time"),
        _get(_first_span(when), "start_time"),
    )


def get_end_time(when: Optional[Mapping[str, Any]]) -> Optional[int]:
    return _coalesce(
        _get(when, "end_time"),
        _get(when, "end"),
        _get(_first_span(when), "end_time"),
    )


def get_meeting_url(conferencing: Optional[Mapping[str, Any]]) -> Optional[str]:
    return _coalesce(
        _get(_get(conferencing, "details"), "url"),
        _get(conferencing, "url"),
    )
