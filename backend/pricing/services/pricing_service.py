from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from django.conf import settings

from ..dataclasses import (
    PricedLine,
    PricingContext,
    PricingResult,
    PricingSnapshot,
    QuantityResult,
    ServiceLineRequest,
)
from ..types import Currency, PricingSource, parse_service_key
from .audit import record_pricing_decisions
from .canonicalizer import normalize_currency, normalize_unit
from .catalog import load_snapshot
from .context import load_pricing_context
from .fallback import find_fallback, has_fallback
from .matcher import DEFAULT_MIN_MATCH_SCORE, find_best_rate_card
from .quantity import compute_quantity
from .utils import ZERO, d, d_or_none, fmt_qty

logger = logging.getLogger(__name__)

DEFAULT_MAX_LINE_QUANTITY = Decimal("10000")


@dataclass(frozen=True)
class PricingOptions:
    min_match_score: int = DEFAULT_MIN_MATCH_SCORE
    require_optional_match: bool = False
    max_line_quantity: Decimal = DEFAULT_MAX_LINE_QUANTITY

    @classmethod
    def from_settings(cls) -> "PricingOptions":
        conf = getattr(settings, "PRICING", {})
        return cls(
            min_match_score=int(conf.get("MIN_MATCH_SCORE", DEFAULT_MIN_MATCH_SCORE)),
            require_optional_match=bool(conf.get("REQUIRE_OPTIONAL_MATCH", False)),
            max_line_quantity=d(conf.get("MAX_LINE_QUANTITY", DEFAULT_MAX_LINE_QUANTITY)),
        )


def _unpriced(line: ServiceLineRequest, currency: str, source: PricingSource, explanation: str, qty: Optional[QuantityResult] = None) -> PricedLine:
    return PricedLine(
        id=line.id,
        rate=None,
        currency=currency,
        source=source.value,
        confidence=0.0,
        explanation=explanation,
        quantity_used=qty.quantity if qty else None,
        unit_used=qty.unit if qty else None,
        rule_id=qty.rule_id if qty else None,
        conversion_used=qty.conversion_used if qty else None,
    )


class PricingService:
    """
    Prices a batch of service lines against one context and catalog snapshot.

    Each line walks: service key -> currency -> quantity bounds -> quantity
    resolution -> rate card match -> fallback. A line that stops early is
    returned unpriced with a source tag saying why; nothing here raises for a
    single bad line.
    """

    def __init__(self, snapshot: PricingSnapshot, context: PricingContext, options: Optional[PricingOptions] = None):
        self.snapshot = snapshot
        self.context = context
        self.options = options or PricingOptions()

    def price_line(self, line: ServiceLineRequest) -> PricedLine:
        key = parse_service_key(line.service_key)
        if key is None:
            return _unpriced(
                line, Currency.XOF.value, PricingSource.UNKNOWN_SERVICE,
                f'Service key "{line.service_key}" not in whitelist',
            )
        service_key = key.value

        currency = normalize_currency(line.currency)
        if currency is None:
            return _unpriced(
                line, line.currency or "", PricingSource.INVALID_CURRENCY,
                f'Currency "{line.currency}" not recognized',
            )

        requested = d_or_none(line.quantity)
        if requested is None:
            shown = "missing" if line.quantity is None else repr(line.quantity)
            return _unpriced(
                line, currency, PricingSource.INVALID_QUANTITY,
                f"Quantity {shown} is not a number",
            )
        if requested < ZERO or requested > self.options.max_line_quantity:
            return _unpriced(
                line, currency, PricingSource.INVALID_QUANTITY,
                f"Quantity {fmt_qty(requested)} out of bounds [0, {fmt_qty(self.options.max_line_quantity)}]",
            )

        is_air = self.context.is_air_mode
        rule = self.snapshot.quantity_rules.get(service_key)
        qty = compute_quantity(service_key, rule, self.context, self.snapshot.evp_conversions, is_air_mode=is_air)
        if qty.quantity is None:
            return _unpriced(
                line, currency, PricingSource.MISSING_QUANTITY,
                f"Quantity for {service_key} could not be resolved: {qty.trace}", qty,
            )

        # The rate is billed on the resolved quantity, so it must be quoted in the same unit.
        unit = qty.unit
        requested_unit = normalize_unit(line.unit) if (line.unit or "").strip() else unit
        if requested_unit != unit:
            return _unpriced(
                line, currency, PricingSource.UNIT_MISMATCH,
                f"Unit {requested_unit} requested but {service_key} is billed per {unit}: {qty.trace}", qty,
            )

        match = find_best_rate_card(
            self.snapshot.rate_cards,
            service_key,
            self.context,
            unit,
            currency,
            is_air_mode=is_air,
            min_score=self.options.min_match_score,
            require_optional_match=self.options.require_optional_match,
        )
        if match is not None:
            card = match.card
            return PricedLine(
                id=line.id,
                rate=card.value,
                currency=normalize_currency(card.currency) or currency,
                source=card.source,
                confidence=match.confidence,
                explanation=f"{match.explanation}; qty: {qty.trace}",
                quantity_used=qty.quantity,
                unit_used=qty.unit,
                rule_id=qty.rule_id,
                conversion_used=qty.conversion_used,
            )

        quote = None
        if has_fallback(service_key):
            quote = find_fallback(service_key, self.context, self.snapshot, is_air_mode=is_air)
        if quote is not None:
            return PricedLine(
                id=line.id,
                rate=quote.rate,
                currency=quote.currency,
                source=quote.source,
                confidence=quote.confidence,
                explanation=f"{quote.explanation}; qty: {qty.trace}",
                quantity_used=qty.quantity,
                unit_used=qty.unit,
                rule_id=qty.rule_id,
                conversion_used=qty.conversion_used,
            )

        return _unpriced(
            line, currency, PricingSource.NO_MATCH,
            f"No rate card found for {service_key} (scope={self.context.scope}, unit={unit})", qty,
        )

    def price_lines(self, lines: Sequence[ServiceLineRequest]) -> PricingResult:
        result = PricingResult()
        for line in lines:
            try:
                priced = self.price_line(line)
            except Exception:
                logger.exception("Unexpected error pricing service line %s", line.id)
                priced = _unpriced(
                    line, normalize_currency(line.currency) or Currency.XOF.value,
                    PricingSource.PRICING_ERROR, "Internal error while pricing this line",
                )
            result.priced_lines.append(priced)
            if not priced.is_priced:
                result.missing.append(line.service_key)
        return result


def run_pricing(
    case,
    lines: Sequence[ServiceLineRequest],
    *,
    correlation_id: str = "",
    user=None,
    today: Optional[date] = None,
    options: Optional[PricingOptions] = None,
) -> PricingResult:
    """Price ``lines`` for ``case`` and record the decisions.

    Raises CatalogUnavailable when the case facts or rule tables cannot be
    read. The audit write never changes the returned result.
    """
    context = load_pricing_context(case)
    snapshot = load_snapshot(today)
    service = PricingService(snapshot, context, options or PricingOptions.from_settings())
    result = service.price_lines(lines)

    written = record_pricing_decisions(
        case, lines, result.priced_lines,
        correlation_id=correlation_id,
        priced_by=user if getattr(user, "is_authenticated", False) else None,
    )

    summary = result.summary
    logger.info(
        "Priced case %s: %d/%d lines priced, %d missing",
        case.pk, summary["priced"], summary["total"], summary["missing"],
        extra={
            "correlation_id": correlation_id,
            "case_id": case.pk,
            "priced": summary["priced"],
            "missing": summary["missing"],
            "audit_rows": written,
        },
    )
    return result


def price_service_lines(case, raw_lines: List[dict], **kwargs) -> PricingResult:
    """Convenience wrapper taking validated request dicts instead of dataclasses."""
    lines = [
        ServiceLineRequest(
            id=str(raw["id"]),
            service_key=raw.get("service_key") or raw.get("service") or "",
            unit=raw.get("unit") or "",
            quantity=raw.get("quantity"),
            currency=raw.get("currency") or "",
        )
        for raw in raw_lines
    ]
    return run_pricing(case, lines, **kwargs)
