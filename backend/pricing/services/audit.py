"""
Persist the latest pricing decision per (case, service line).
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from django.db import DatabaseError, transaction

from ..dataclasses import PricedLine, ServiceLineRequest
from ..models import ServicePricingAudit
from .utils import THREEPLACES, TWOPLACES, d

logger = logging.getLogger(__name__)

UPDATE_FIELDS = [
    "service_key",
    "suggested_rate",
    "currency",
    "source",
    "confidence",
    "explanation",
    "quantity_used",
    "unit_used",
    "rule_id",
    "conversion_used",
    "correlation_id",
    "priced_by",
    "priced_at",
]


def _clip(value: Optional[str], length: int) -> str:
    return (value or "")[:length]


def _audit_row(case, request: ServiceLineRequest, line: PricedLine, correlation_id: str, priced_by) -> ServicePricingAudit:
    return ServicePricingAudit(
        case=case,
        service_line_id=_clip(line.id, 64),
        service_key=_clip(request.service_key, 64),
        suggested_rate=d(line.rate).quantize(TWOPLACES) if line.rate is not None else None,
        currency=_clip(line.currency, 16),
        source=_clip(line.source, 128),
        confidence=d(line.confidence).quantize(THREEPLACES),
        explanation=line.explanation or "",
        quantity_used=d(line.quantity_used).quantize(THREEPLACES) if line.quantity_used is not None else None,
        unit_used=_clip(line.unit_used, 16) or None,
        rule_id=line.rule_id,
        conversion_used=line.conversion_used,
        correlation_id=_clip(correlation_id, 64),
        priced_by=priced_by,
    )


def record_pricing_decisions(
    case,
    requests: Sequence[ServiceLineRequest],
    priced_lines: Sequence[PricedLine],
    *,
    correlation_id: str = "",
    priced_by=None,
) -> int:
    """Upsert one audit row per service line in a single statement.

    Re-pricing the same line overwrites the earlier row. A write failure is
    logged and swallowed: the caller's pricing result stands either way.
    Returns the number of rows written (0 on failure).
    """
    # Last occurrence wins when a batch repeats a line id.
    rows = {}
    for request, line in zip(requests, priced_lines):
        rows[line.id] = _audit_row(case, request, line, correlation_id, priced_by)
    if not rows:
        return 0

    try:
        with transaction.atomic():
            ServicePricingAudit.objects.bulk_create(
                list(rows.values()),
                update_conflicts=True,
                unique_fields=["case", "service_line_id"],
                update_fields=UPDATE_FIELDS,
            )
    except DatabaseError:
        logger.warning(
            "Failed to record pricing audit for case %s",
            case.pk,
            exc_info=True,
            extra={"case_id": case.pk, "correlation_id": correlation_id, "lines": len(rows)},
        )
        return 0
    return len(rows)
