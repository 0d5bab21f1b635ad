"""
Build the PricingContext snapshot from a case's current facts.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional

from django.db import DatabaseError

from ..dataclasses import ContainerLine, PricingContext
from ..types import Scope
from .exceptions import CatalogUnavailable
from .utils import ZERO, d_or_none

logger = logging.getLogger(__name__)

FLOW_TYPE_FACT = "service.flow_type"
CONTAINERS_FACT = "cargo.containers"
WEIGHT_FACT = "cargo.weight_kg"
CHARGEABLE_WEIGHT_FACT = "cargo.chargeable_weight_kg"

# (substring in destination city, substring in destination country, corridor)
CORRIDOR_HINTS = (
    ("BAMAKO", "MALI", "DAKAR_BAMAKO"),
    ("BANJUL", "GAMBI", "DAKAR_BANJUL"),
)

BARE_CONTAINER_SIZES = {"20": "20DV", "40": "40HC"}


def normalize_container_type(raw) -> str:
    ct = re.sub(r"['\s]", "", str(raw or "")).upper()
    return BARE_CONTAINER_SIZES.get(ct, ct)


def _text(facts: Dict[str, object], key: str) -> Optional[str]:
    fact = facts.get(key)
    if fact is None:
        return None
    value = getattr(fact, "value_text", None)
    if value is None and getattr(fact, "value_number", None) is not None:
        value = str(fact.value_number)
    value = (value or "").strip()
    return value or None


def _number(facts: Dict[str, object], key: str):
    fact = facts.get(key)
    if fact is None:
        return None
    value = getattr(fact, "value_number", None)
    if value is None:
        value = d_or_none(getattr(fact, "value_text", None))
    return d_or_none(value)


def derive_scope(flow_type: Optional[str]) -> str:
    flow = (flow_type or "").upper()
    if "EXPORT" in flow:
        return Scope.EXPORT.value
    if "TRANSIT" in flow:
        return Scope.TRANSIT.value
    return Scope.IMPORT.value


def derive_corridor(destination_city: Optional[str], destination_country: Optional[str]) -> Optional[str]:
    city = (destination_city or "").upper()
    country = (destination_country or "").upper()
    for city_hint, country_hint, corridor in CORRIDOR_HINTS:
        if city_hint in city or country_hint in country:
            return corridor
    return None


def parse_containers(raw) -> List[ContainerLine]:
    if not isinstance(raw, list):
        return []
    containers = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("type"):
            continue
        qty = d_or_none(item.get("quantity"))
        quantity = int(qty) if qty is not None and qty > ZERO else 1
        containers.append(ContainerLine(type=normalize_container_type(item["type"]), quantity=quantity))
    return containers


def build_pricing_context(facts: Iterable) -> PricingContext:
    """Derive the pricing context from current fact rows.

    ``facts`` are QuoteFact-like objects (``fact_key``, ``value_text``,
    ``value_number``, ``value_json``); non-current rows are ignored.
    """
    by_key = {}
    for fact in facts:
        if getattr(fact, "is_current", True):
            by_key[fact.fact_key] = fact

    flow_type = _text(by_key, FLOW_TYPE_FACT)
    containers_fact = by_key.get(CONTAINERS_FACT)
    containers = parse_containers(getattr(containers_fact, "value_json", None))

    destination_city = _text(by_key, "routing.destination_city")
    destination_country = _text(by_key, "routing.destination_country")

    weight = _number(by_key, CHARGEABLE_WEIGHT_FACT)
    if weight is None or weight <= ZERO:
        weight = _number(by_key, WEIGHT_FACT)

    if "AIR" in (flow_type or "").upper():
        mode = "AIR"
    elif containers:
        mode = "SEA"
    else:
        mode = None

    return PricingContext(
        scope=derive_scope(flow_type),
        containers=tuple(containers),
        corridor=derive_corridor(destination_city, destination_country),
        origin_port=_text(by_key, "routing.origin_port"),
        destination_port=_text(by_key, "routing.destination_port"),
        origin_country=_text(by_key, "routing.origin_country"),
        destination_country=destination_country,
        destination_city=destination_city,
        weight_kg=weight,
        transport_mode=mode,
        fact_keys=frozenset(by_key),
    )


def load_pricing_context(case) -> PricingContext:
    try:
        facts = list(
            case.current_facts()
            .only("fact_key", "value_text", "value_number", "value_json", "is_current")
            .order_by("created_at", "id")
        )
    except DatabaseError as exc:
        logger.error("Failed to load facts for case %s", case.pk, exc_info=True)
        raise CatalogUnavailable("Failed to load case facts") from exc
    return build_pricing_context(facts)
