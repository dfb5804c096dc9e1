"""Consumption estimation from scan history.

The estimate is a plain moving average: the mean gap between consecutive scan-ins is
taken as the repurchase interval, and confidence grows linearly with the number of
scan-ins until it saturates.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import datetime
from statistics import fmean
from typing import Dict, Iterable, List, Optional

from larder.models.prediction import PredictionRecord
from larder.models.scan import ScanAction, ScanEvent
from larder.timeutils import days_between

from .policy import DEFAULT_POLICY, RestockPolicy

logger = logging.getLogger(__name__)

MIN_SCAN_INS = 2
MIN_SCAN_OUTS = 2


def _chronological(events: Iterable[ScanEvent]) -> List[ScanEvent]:
    return sorted(events, key=lambda event: (event.occurred_at, event.id))


def interval_gaps(scan_ins: List[ScanEvent]) -> List[float]:
    """Return the day gaps between consecutive (chronological) scan-ins."""

    return [
        days_between(previous.occurred_at, current.occurred_at)
        for previous, current in zip(scan_ins, scan_ins[1:])
    ]


def confidence_for(scan_in_count: int, policy: RestockPolicy = DEFAULT_POLICY) -> float:
    return min(1.0, scan_in_count / float(policy.confidence_saturation))


def estimate(
    events: Iterable[ScanEvent],
    identity: str,
    now: datetime,
    policy: RestockPolicy = DEFAULT_POLICY,
) -> Optional[PredictionRecord]:
    """Estimate the repurchase interval for ``identity``.

    Returns ``None`` when fewer than two scan-ins or two scan-outs exist; insufficient
    history is a normal outcome, not an error.
    """

    relevant = _chronological(event for event in events if event.item_identity == identity)
    scan_ins = [event for event in relevant if event.action == ScanAction.SCAN_IN]
    scan_outs = [event for event in relevant if event.action == ScanAction.SCAN_OUT]
    if len(scan_ins) < MIN_SCAN_INS or len(scan_outs) < MIN_SCAN_OUTS:
        return None

    gaps = interval_gaps(scan_ins)
    if not gaps:
        return None

    latest_named = next((event for event in reversed(relevant) if event.item_name), None)
    last_scan_out = scan_outs[-1]
    return PredictionRecord(
        item_identity=identity,
        item_name=latest_named.item_name if latest_named else None,
        category=latest_named.category if latest_named else None,
        average_interval_days=max(0.0, fmean(gaps)),
        confidence=confidence_for(len(scan_ins), policy),
        days_since_last_scan_out=days_between(last_scan_out.occurred_at, now),
        last_scan_out_at=last_scan_out.occurred_at,
        scan_in_count=len(scan_ins),
        scan_out_count=len(scan_outs),
    )


def estimate_all(
    events: Iterable[ScanEvent],
    now: datetime,
    policy: RestockPolicy = DEFAULT_POLICY,
) -> List[PredictionRecord]:
    """Estimate every identity present in ``events``, skipping those without enough history."""

    grouped: Dict[str, List[ScanEvent]] = OrderedDict()
    for event in _chronological(events):
        grouped.setdefault(event.item_identity, []).append(event)

    records: List[PredictionRecord] = []
    for identity, identity_events in grouped.items():
        record = estimate(identity_events, identity, now, policy)
        if record is None:
            logger.debug("Skipping %s: insufficient scan history", identity)
            continue
        records.append(record)
    return records


__all__ = ["estimate", "estimate_all", "interval_gaps", "confidence_for"]
