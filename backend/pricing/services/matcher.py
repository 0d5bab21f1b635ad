"""
Deterministic rate card matching.

Every candidate for the service key is scored by ``score_rate_card`` (a pure
function, no I/O). Unit and scope are hard filters; container type, corridor,
currency and the card's own confidence move the score.

Score table:
    base                         40
    scope match (required)      +20
    container type match        +20   (both set and different: -10)
    corridor match              +20   (both set and different:  -5)
    currency match               +5
    card confidence          +0..+5   (round(confidence * 5))
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP
from typing import Iterable, List, Optional

from ..dataclasses import PricingContext, RateCardMatch, RateCardRow
from .canonicalizer import normalize_currency, normalize_unit
from .utils import d

BASE_SCORE = 40
SCOPE_BONUS = 20
CONTAINER_BONUS = 20
CONTAINER_PENALTY = 10
CORRIDOR_BONUS = 20
CORRIDOR_PENALTY = 5
CURRENCY_BONUS = 5
CONFIDENCE_WEIGHT = 5
DEFAULT_MIN_MATCH_SCORE = 40


@dataclass(frozen=True)
class CardScore:
    score: int
    parts: tuple
    optional_hits: int


def score_rate_card(
    card: RateCardRow,
    service_key: str,
    context: PricingContext,
    unit: str,
    currency: str,
) -> Optional[CardScore]:
    """Score one candidate, or return None when a hard filter rejects it."""
    if card.service_key != service_key:
        return None
    if normalize_unit(card.unit) != unit:
        return None
    if (card.scope or "").lower() != context.scope:
        return None

    score = BASE_SCORE + SCOPE_BONUS
    parts = [service_key, context.scope]
    hits = 0

    ctx_container = context.container_type
    if ctx_container and card.container_type:
        if card.container_type.upper() == ctx_container:
            score += CONTAINER_BONUS
            parts.append(ctx_container)
            hits += 1
        else:
            score -= CONTAINER_PENALTY

    if context.corridor and card.corridor:
        if card.corridor.upper() == context.corridor:
            score += CORRIDOR_BONUS
            parts.append(context.corridor)
            hits += 1
        else:
            score -= CORRIDOR_PENALTY

    card_currency = normalize_currency(card.currency) or card.currency
    if card_currency == currency:
        score += CURRENCY_BONUS
        hits += 1

    confidence = d(card.confidence if card.confidence is not None else 0)
    score += int((confidence * CONFIDENCE_WEIGHT).quantize(d(1), rounding=ROUND_HALF_UP))

    return CardScore(score=score, parts=tuple(parts), optional_hits=hits)


def _sort_key(card: RateCardRow, scored: CardScore):
    # best first: score, stored confidence, then lowest id
    return (-scored.score, -d(card.confidence or 0), card.id)


def rank_rate_cards(
    candidates: Iterable[RateCardRow],
    service_key: str,
    context: PricingContext,
    unit: str,
    currency: str,
    is_air_mode: bool = False,
) -> List[RateCardMatch]:
    """All eligible candidates, best first, with a deterministic tie-break."""
    scored = []
    for card in candidates:
        if card.service_key != service_key:
            continue
        if is_air_mode and card.container_type:
            continue
        result = score_rate_card(card, service_key, context, unit, currency)
        if result is None:
            continue
        scored.append((card, result))

    scored.sort(key=lambda pair: _sort_key(*pair))
    return [
        RateCardMatch(
            card=card,
            score=result.score,
            explanation=f"match: {'+'.join(result.parts)}, score={result.score}, rate_card={card.id}",
            optional_hits=result.optional_hits,
        )
        for card, result in scored
    ]


def find_best_rate_card(
    candidates: Iterable[RateCardRow],
    service_key: str,
    context: PricingContext,
    unit: str,
    currency: str,
    is_air_mode: bool = False,
    *,
    min_score: int = DEFAULT_MIN_MATCH_SCORE,
    require_optional_match: bool = False,
) -> Optional[RateCardMatch]:
    ranked = rank_rate_cards(candidates, service_key, context, unit, currency, is_air_mode)
    if not ranked:
        return None
    best = ranked[0]
    if best.score < min_score:
        return None
    if require_optional_match and best.optional_hits == 0:
        return None
    return best
