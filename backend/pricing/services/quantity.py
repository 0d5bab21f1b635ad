"""
Billable quantity resolution.

Each service key has at most one QuantityRule telling how its quantity is
derived from the shipment (per EVP, per container, per tonne, per kg, flat).
The caller's own quantity is advisory and never used here.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Mapping, Optional

from ..dataclasses import PricingContext, QuantityResult, QuantityRuleRow
from ..types import QuantityBasis, ServiceKey, Unit, parse_quantity_basis
from .canonicalizer import normalize_unit
from .utils import ONE, ZERO, d, fmt_qty, round_up_to_next_whole

logger = logging.getLogger(__name__)

KG_PER_TONNE = Decimal("1000")
# Services billed per truck run only count containers of at least this size.
TRUCK_RUN_MIN_CONTAINER_FT = 40
TRUCK_RUN_SERVICE_KEYS = frozenset({ServiceKey.TRUCKING.value})
CONTAINER_BASES = frozenset({QuantityBasis.EVP, QuantityBasis.COUNT})

BASIS_DEFAULT_UNIT = {
    QuantityBasis.EVP: Unit.EVP.value,
    QuantityBasis.COUNT: Unit.VOYAGE.value,
    QuantityBasis.TONNE: Unit.TON.value,
    QuantityBasis.KG: Unit.KG.value,
    QuantityBasis.FLAT: Unit.FLAT.value,
}


def _rule_unit(rule: QuantityRuleRow, basis: Optional[QuantityBasis]) -> str:
    if rule.default_unit:
        return normalize_unit(rule.default_unit)
    return BASIS_DEFAULT_UNIT.get(basis, Unit.FLAT.value)


def evp_factor(container_type: str, evp_conversions: Mapping[str, Decimal]) -> Decimal:
    """EVP factor for a container code; unknown codes count as one EVP."""
    factor = evp_conversions.get((container_type or "").upper())
    return d(factor) if factor is not None else ONE


def compute_quantity(
    service_key: str,
    rule: Optional[QuantityRuleRow],
    context: PricingContext,
    evp_conversions: Mapping[str, Decimal],
    is_air_mode: bool = False,
) -> QuantityResult:
    """Derive the billable quantity and unit for one service line.

    ``quantity`` is None when it cannot be resolved without guessing
    (air shipment on a container basis, missing chargeable weight on a KG
    basis, missing required fact). Every branch leaves a trace for the
    line explanation.
    """
    if rule is None:
        return QuantityResult(ONE, Unit.FLAT.value, None, f"no rule for {service_key}: flat 1")

    basis = parse_quantity_basis(rule.quantity_basis)
    unit = _rule_unit(rule, basis)

    if is_air_mode and basis in CONTAINER_BASES:
        return QuantityResult(
            None, unit, rule.id,
            f"{basis.value} basis skipped: air shipment has no containers",
        )

    if rule.requires_fact_key and rule.requires_fact_key not in context.fact_keys:
        return QuantityResult(
            None, unit, rule.id,
            f"required fact {rule.requires_fact_key} missing",
        )

    if basis == QuantityBasis.EVP:
        if not context.containers:
            return QuantityResult(ONE, unit, rule.id, "EVP basis: missing containers, default 1")
        total = ZERO
        parts = []
        for container in context.containers:
            factor = evp_factor(container.type, evp_conversions)
            total += factor * container.quantity
            parts.append(f"{container.quantity}x{container.type}@{fmt_qty(factor)}")
        conversion = " + ".join(parts)
        return QuantityResult(
            total, unit, rule.id,
            f"EVP basis: {conversion} = {fmt_qty(total)}",
            conversion_used=conversion,
        )

    if basis == QuantityBasis.COUNT:
        if not context.containers:
            return QuantityResult(ONE, unit, rule.id, "COUNT basis: missing containers, default 1")
        if service_key in TRUCK_RUN_SERVICE_KEYS:
            large = sum(
                c.quantity for c in context.containers
                if (c.nominal_size_ft or 0) >= TRUCK_RUN_MIN_CONTAINER_FT
            )
            if large == 0:
                return QuantityResult(
                    ONE, unit, rule.id,
                    f"COUNT basis: no container >= {TRUCK_RUN_MIN_CONTAINER_FT}', minimum 1 truck run",
                )
            return QuantityResult(
                Decimal(large), unit, rule.id,
                f"COUNT basis: {large} container(s) >= {TRUCK_RUN_MIN_CONTAINER_FT}'",
            )
        count = context.container_count
        return QuantityResult(Decimal(count), unit, rule.id, f"COUNT basis: {count} container(s)")

    if basis == QuantityBasis.TONNE:
        weight = context.weight_kg
        if weight is None or weight <= ZERO:
            return QuantityResult(ONE, unit, rule.id, "TONNE basis: missing weight, default 1")
        tonnes = round_up_to_next_whole(d(weight) / KG_PER_TONNE)
        return QuantityResult(
            tonnes, unit, rule.id,
            f"TONNE basis: {fmt_qty(d(weight))} kg -> {fmt_qty(tonnes)} t (rounded up)",
        )

    if basis == QuantityBasis.KG:
        weight = context.weight_kg
        if weight is None or weight <= ZERO:
            return QuantityResult(None, unit, rule.id, "KG basis: chargeable weight missing")
        return QuantityResult(d(weight), unit, rule.id, f"KG basis: {fmt_qty(d(weight))} kg")

    if basis is None:
        logger.warning("Unknown quantity basis %r on rule for %s; treating as flat", rule.quantity_basis, service_key)
    return QuantityResult(ONE, unit, rule.id, f"{rule.quantity_basis} basis: flat 1")
