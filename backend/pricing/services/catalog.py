"""
Load the rule tables and tariff catalogs for one pricing run.

Everything is read once into an immutable PricingSnapshot so the per-line
work never goes back to the database.
"""
from __future__ import annotations

import logging
from datetime import date
from types import MappingProxyType
from typing import Optional

from django.db import DatabaseError, transaction
from django.db.models import Q
from django.utils.timezone import localdate

from ..dataclasses import (
    LocalTransportRateRow,
    PortTariffRow,
    PricingSnapshot,
    QuantityRuleRow,
    RateCardRow,
)
from ..models import (
    LocalTransportRate,
    PortTariff,
    PricingRateCard,
    QuantityRule,
    UnitConversion,
)
from .exceptions import CatalogUnavailable
from .utils import d

logger = logging.getLogger(__name__)


def _in_force(start_field: str, end_field: str, today: date) -> Q:
    return (
        (Q(**{f"{start_field}__isnull": True}) | Q(**{f"{start_field}__lte": today}))
        & (Q(**{f"{end_field}__isnull": True}) | Q(**{f"{end_field}__gte": today}))
    )


def _quantity_rule_row(rule: QuantityRule) -> QuantityRuleRow:
    return QuantityRuleRow(
        id=rule.id,
        service_key=rule.service_key,
        quantity_basis=rule.quantity_basis,
        default_unit=rule.default_unit,
        requires_fact_key=rule.requires_fact_key or None,
    )


def _rate_card_row(card: PricingRateCard) -> RateCardRow:
    return RateCardRow(
        id=card.id,
        service_key=card.service_key,
        scope=card.scope,
        unit=card.unit,
        currency=card.currency,
        value=d(card.value),
        source=card.source,
        confidence=d(card.confidence if card.confidence is not None else 0),
        container_type=card.container_type or None,
        corridor=card.corridor or None,
        origin_port=card.origin_port or None,
        destination_port=card.destination_port or None,
        origin_country=card.origin_country or None,
        destination_country=card.destination_country or None,
        effective_from=card.effective_from,
        effective_to=card.effective_to,
        min_charge=card.min_charge,
    )


def _port_tariff_row(tariff: PortTariff) -> PortTariffRow:
    return PortTariffRow(
        id=tariff.id,
        provider=tariff.provider,
        category=tariff.category,
        operation_type=tariff.operation_type,
        classification=tariff.classification,
        amount=d(tariff.amount),
        currency=tariff.currency,
        effective_date=tariff.effective_date,
        cargo_type=tariff.cargo_type,
        source_document=tariff.source_document,
    )


def _local_transport_row(rate: LocalTransportRate) -> LocalTransportRateRow:
    return LocalTransportRateRow(
        id=rate.id,
        origin=rate.origin,
        destination=rate.destination,
        container_type=rate.container_type,
        rate_amount=d(rate.rate_amount),
        rate_currency=rate.rate_currency,
        provider=rate.provider,
    )


def load_snapshot(today: Optional[date] = None) -> PricingSnapshot:
    """Read every table the resolver needs, as of ``today``.

    Raises CatalogUnavailable when any read fails; a partial snapshot is
    never returned.
    """
    today = today or localdate()
    try:
        # Sequential: the request thread owns the DB connection.
        with transaction.atomic():
            rules = {
                rule.service_key: _quantity_rule_row(rule)
                for rule in QuantityRule.objects.order_by("id")
            }
            conversions = {
                conv.container_type.upper(): d(conv.evp_factor)
                for conv in UnitConversion.objects.order_by("id")
            }
            rate_cards = tuple(
                _rate_card_row(card)
                for card in PricingRateCard.objects.filter(
                    _in_force("effective_from", "effective_to", today)
                ).order_by("id")
            )
            port_tariffs = tuple(
                _port_tariff_row(tariff)
                for tariff in PortTariff.objects.filter(is_active=True)
                .filter(Q(effective_date__isnull=True) | Q(effective_date__lte=today))
                .order_by("id")
            )
            local_rates = tuple(
                _local_transport_row(rate)
                for rate in LocalTransportRate.objects.filter(is_active=True)
                .filter(_in_force("validity_start", "validity_end", today))
                .order_by("id")
            )
    except DatabaseError as exc:
        logger.error("Failed to load pricing catalog", exc_info=True)
        raise CatalogUnavailable("Failed to load pricing rule tables") from exc

    logger.debug(
        "Loaded pricing snapshot: %d rules, %d conversions, %d rate cards, %d port tariffs, %d local rates",
        len(rules), len(conversions), len(rate_cards), len(port_tariffs), len(local_rates),
    )
    return PricingSnapshot(
        quantity_rules=MappingProxyType(rules),
        evp_conversions=MappingProxyType(conversions),
        rate_cards=rate_cards,
        port_tariffs=port_tariffs,
        local_transport_rates=local_rates,
        as_of=today,
    )
