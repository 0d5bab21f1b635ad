"""
Secondary tariff lookups, used only when no rate card matched.

Only allow-listed service keys have a fallback: terminal handling reads the
port operator's published THC tariffs, trucking/on-carriage read the local
transport rate grid. Fallback quotes carry a lower confidence than a specific
rate card match.
"""
from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import Callable, Dict, Iterable, Optional, Sequence

from django.conf import settings

from ..dataclasses import (
    ContainerLine,
    FallbackQuote,
    LocalTransportRateRow,
    PortTariffRow,
    PricingContext,
    PricingSnapshot,
)
from ..types import Currency, Scope, ServiceKey
from .canonicalizer import normalize_currency

logger = logging.getLogger(__name__)

THC_CATEGORY = "THC"
PORT_TARIFF_SOURCE = "port_tariff"
LOCAL_TRANSPORT_SOURCE = "local_transport_rate"
DEFAULT_THC_PROVIDERS = ("DPW", "DP_WORLD")


def _pricing_setting(name: str, default):
    return getattr(settings, "PRICING", {}).get(name, default)


def _operation_type(scope: str) -> str:
    # Transit cargo is discharged like an import.
    return "EXPORT" if scope == Scope.EXPORT.value else "IMPORT"


def _size_family(container: ContainerLine) -> str:
    size = container.nominal_size_ft or 0
    return "40" if size >= 40 else "20"


def _tariff_for_container(candidates: Sequence[PortTariffRow], container: ContainerLine) -> Optional[PortTariffRow]:
    family = _size_family(container)
    cargo_type = f"CONTENEUR_{family}"
    for tariff in candidates:
        if (tariff.cargo_type or "").upper() == cargo_type:
            return tariff

    # a bare "20" inside "tarif 2024" is not a container size
    size_token = re.compile(rf"(?<!\d){family}\s*(?:'|FT\b|PIEDS\b)")
    container_type = container.type.upper()
    for tariff in candidates:
        classification = (tariff.classification or "").upper()
        if container_type in classification or size_token.search(classification):
            return tariff
    return None


def find_port_tariff(
    tariffs: Iterable[PortTariffRow],
    context: PricingContext,
    providers: Sequence[str] = DEFAULT_THC_PROVIDERS,
    confidence: float = 0.85,
) -> Optional[FallbackQuote]:
    """Most recent active THC tariff for the operation direction.

    Tariffs are expected already filtered to active rows in force today.
    An entry for the shipment's container size is preferred over the most
    recent one: first by cargo type (CONTENEUR_20/CONTENEUR_40), then by a
    classification naming the container type or its size ("20'", "40 pieds").
    """
    wanted_providers = {p.upper() for p in providers}
    operation = _operation_type(context.scope)
    candidates = [
        t for t in tariffs
        if t.provider.upper() in wanted_providers
        and t.category.upper() == THC_CATEGORY
        and t.operation_type.upper() == operation
    ]
    if not candidates:
        return None

    # most recent first, id breaks ties
    candidates.sort(key=lambda t: (t.effective_date.toordinal() if t.effective_date else 0, t.id), reverse=True)

    chosen = candidates[0]
    if context.containers:
        chosen = _tariff_for_container(candidates, context.containers[0]) or chosen

    currency = normalize_currency(chosen.currency) or Currency.XOF.value
    return FallbackQuote(
        rate=chosen.amount,
        currency=currency,
        source=f"{PORT_TARIFF_SOURCE}:{chosen.provider}",
        confidence=confidence,
        explanation=(
            f"fallback: port tariff {chosen.provider} {THC_CATEGORY} {operation} "
            f"'{chosen.classification}' effective={chosen.effective_date or 'n/a'}, tariff={chosen.id}"
        ),
    )


def _container_search_terms(container_type: str):
    ct = container_type.upper()
    if ct.startswith("20"):
        return ("20'", "20' DRY", "20'DRY")
    if ct.startswith("40"):
        return ("40'", "40' DRY", "40'DRY")
    if "LOW" in ct or "FLAT" in ct:
        return ("LOW BED", "LOWBED")
    return ()


def find_local_transport_rate(
    rates: Iterable[LocalTransportRateRow],
    context: PricingContext,
    is_air_mode: bool = False,
    confidence: float = 0.90,
) -> Optional[FallbackQuote]:
    """Inland trucking rate by destination city and container family."""
    if is_air_mode or not context.destination_city or not context.container_type:
        return None
    dest = context.destination_city.upper().strip()
    rates = list(rates)

    candidates = [r for r in rates if r.destination.upper().strip() == dest]
    if not candidates:
        partial = [
            r for r in rates
            if dest in r.destination.upper().strip() or r.destination.upper().strip() in dest
        ]
        # a partial match is only trusted when it points at a single destination
        if len({r.destination.upper().strip() for r in partial}) != 1:
            return None
        candidates = partial

    terms = _container_search_terms(context.container_type)
    best = next(
        (r for r in candidates if any(term in r.container_type.upper().strip() for term in terms)),
        None,
    )
    if best is None:
        return None

    return FallbackQuote(
        rate=best.rate_amount,
        currency=normalize_currency(best.rate_currency) or Currency.XOF.value,
        source=LOCAL_TRANSPORT_SOURCE,
        confidence=confidence,
        explanation=(
            f"fallback: local transport dest={best.destination}, container={best.container_type}, "
            f"provider={best.provider or 'unknown'}, rate={best.rate_amount}"
        ),
    )


def _thc_fallback(context: PricingContext, snapshot: PricingSnapshot, is_air_mode: bool) -> Optional[FallbackQuote]:
    return find_port_tariff(
        snapshot.port_tariffs,
        context,
        providers=_pricing_setting("FALLBACK_THC_PROVIDERS", DEFAULT_THC_PROVIDERS),
        confidence=float(Decimal(str(_pricing_setting("PORT_TARIFF_CONFIDENCE", "0.85")))),
    )


def _trucking_fallback(context: PricingContext, snapshot: PricingSnapshot, is_air_mode: bool) -> Optional[FallbackQuote]:
    return find_local_transport_rate(
        snapshot.local_transport_rates,
        context,
        is_air_mode=is_air_mode,
        confidence=float(Decimal(str(_pricing_setting("LOCAL_TRANSPORT_CONFIDENCE", "0.90")))),
    )


FALLBACKS: Dict[str, Callable[[PricingContext, PricingSnapshot, bool], Optional[FallbackQuote]]] = {
    ServiceKey.DTHC.value: _thc_fallback,
    ServiceKey.TRUCKING.value: _trucking_fallback,
    ServiceKey.ON_CARRIAGE.value: _trucking_fallback,
}


def has_fallback(service_key: str) -> bool:
    return service_key in FALLBACKS


def find_fallback(
    service_key: str,
    context: PricingContext,
    snapshot: PricingSnapshot,
    is_air_mode: bool = False,
) -> Optional[FallbackQuote]:
    resolver = FALLBACKS.get(service_key)
    if resolver is None:
        return None
    quote = resolver(context, snapshot, is_air_mode)
    if quote is None:
        logger.debug("No fallback tariff for %s (scope=%s)", service_key, context.scope)
    return quote
