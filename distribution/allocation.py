"""
Distribution — Allocation

Pure allocation logic, free of ORM access so it can be exercised with
plain snapshots:

- ``allocate_proportionally``: splits one record's scarce stock between
  competing requests by priority score.
- ``AllocationRecommender``: proposes a basket per approved request from
  its purpose category and beneficiary type, then settles any record the
  batch over-demands with ``allocate_proportionally``.

@file distribution/allocation.py
"""

import math
from dataclasses import asdict, dataclass, field
from decimal import Decimal

from inventory.ledger import ZERO, quantize_money

URGENCY_WEIGHTS = {'High': 40, 'Medium': 25, 'Low': 10}
DEFAULT_URGENCY_WEIGHT = 20

BENEFICIARY_TYPE_WEIGHTS = {'Family': 30, 'Community': 25, 'Institution': 20}
DEFAULT_BENEFICIARY_TYPE_WEIGHT = 15

WAIT_WEIGHT_PER_DAY = 0.5
MAX_WAIT_WEIGHT = 30


# ---------------------------------------------------------------------------
# Scarcity allocator
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AllocationCandidate:
    """One request competing for a single inventory record."""
    key: str
    requested: int
    urgency: str = ''
    beneficiary_type: str = ''
    days_since_request: float = 0


@dataclass(frozen=True)
class Allocation:
    key: str
    requested: int
    allocated: int
    priority_score: float
    allocation_rate: float


def priority_score(candidate: AllocationCandidate) -> float:
    score = URGENCY_WEIGHTS.get(candidate.urgency, DEFAULT_URGENCY_WEIGHT)
    score += BENEFICIARY_TYPE_WEIGHTS.get(candidate.beneficiary_type, DEFAULT_BENEFICIARY_TYPE_WEIGHT)
    score += min(max(candidate.days_since_request, 0) * WAIT_WEIGHT_PER_DAY, MAX_WAIT_WEIGHT)
    return score


def _rate(allocated: int, requested: int) -> float:
    if requested <= 0:
        return 0.0
    return round(allocated / requested * 100, 1)


def allocate_proportionally(
    candidates: list[AllocationCandidate],
    available: int,
) -> list[Allocation]:
    """
    Split ``available`` units between ``candidates``.

    Candidates are ranked by priority score (ties keep input order).
    Each but the last gets its score-weighted share of ``available``,
    capped at its request and at what is left; the last gets what is
    left, capped at its request. Anything still left after that goes to
    candidates with unmet demand in rank order, so the total allocated is
    always min(available, total requested). Results come back in rank
    order.
    """
    available = max(int(available), 0)
    scored = [(priority_score(c), c) for c in candidates]
    scored.sort(key=lambda pair: pair[0], reverse=True)
    if not scored:
        return []

    total_requested = sum(c.requested for _, c in scored)
    if total_requested <= available:
        return [
            Allocation(c.key, c.requested, c.requested, score, _rate(c.requested, c.requested))
            for score, c in scored
        ]

    total_score = sum(score for score, _ in scored)
    remaining = available
    allocated = []
    last = len(scored) - 1
    for index, (score, candidate) in enumerate(scored):
        if index == last:
            share = min(remaining, candidate.requested)
        else:
            proportional = math.floor(available * score / total_score) if total_score else 0
            share = min(proportional, candidate.requested, remaining)
        allocated.append(share)
        remaining -= share

    for index, (_, candidate) in enumerate(scored):
        if remaining <= 0:
            break
        top_up = min(remaining, candidate.requested - allocated[index])
        allocated[index] += top_up
        remaining -= top_up

    return [
        Allocation(c.key, c.requested, share, score, _rate(share, c.requested))
        for (score, c), share in zip(scored, allocated)
    ]


# ---------------------------------------------------------------------------
# Baskets
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BasketItem:
    item_name: str
    quantities: dict
    notes: str = ''

    def quantity_for(self, beneficiary_type: str) -> int:
        return self.quantities.get(beneficiary_type, self.quantities['Individual'])


def _per_type(individual, family, community, institution):
    return {
        'Individual': individual,
        'Family': family,
        'Community': community,
        'Institution': institution,
    }


def _flat(quantity):
    return _per_type(quantity, quantity, quantity, quantity)


BASKETS = {
    'Food': (
        BasketItem('Rice', _per_type(2, 5, 20, 2), 'Basic food staple'),
        BasketItem('Canned Goods', _per_type(5, 10, 50, 5), 'Protein source'),
        BasketItem('Cooking Oil', _per_type(1, 2, 10, 1), 'Cooking essential'),
    ),
    'Hygiene': (
        BasketItem('Soap', _per_type(2, 5, 25, 2), 'Personal hygiene'),
        BasketItem('Shampoo', _per_type(1, 2, 10, 1), 'Hair care'),
        BasketItem('Toothpaste', _per_type(1, 3, 15, 1), 'Oral hygiene'),
    ),
    'Clothing': (
        BasketItem('T-Shirts', _per_type(2, 4, 20, 2), 'Basic clothing'),
        BasketItem('Pants', _per_type(1, 2, 10, 1), 'Lower garment'),
    ),
    'Education': (
        BasketItem('Notebooks', _per_type(5, 20, 20, 20), 'Writing materials'),
        BasketItem('Pens', _per_type(5, 25, 25, 25), 'Writing instruments'),
        BasketItem('Pencils', _per_type(5, 25, 25, 25), 'Drawing/writing tools'),
    ),
    'Medical': (
        BasketItem('First Aid', _flat(1), 'Emergency medical supplies'),
        BasketItem('Face Masks', _per_type(5, 10, 50, 5), 'Health protection'),
        BasketItem('Alcohol', _per_type(1, 2, 10, 1), 'Disinfectant'),
    ),
}

DEFAULT_BASKET = (
    BasketItem('Rice', _flat(2), 'Basic necessity'),
    BasketItem('Canned Goods', _flat(3), 'Food supply'),
    BasketItem('Soap', _flat(2), 'Hygiene item'),
)


def basket_for(purpose_category: str) -> tuple[BasketItem, ...]:
    return BASKETS.get(purpose_category, DEFAULT_BASKET)


# ---------------------------------------------------------------------------
# Recommender
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StockSnapshot:
    """An Available inventory record as the recommender sees it."""
    inventory_id: str
    item_name: str
    category_name: str
    quantity_available: int
    unit_value: Decimal


@dataclass(frozen=True)
class RequestSnapshot:
    request_id: str
    beneficiary_name: str
    beneficiary_type: str
    purpose: str
    purpose_category: str
    urgency: str
    days_since_request: float = 0


@dataclass
class RecommendedItem:
    inventory_id: str
    item_name: str
    category_name: str
    quantity: int
    unit_value: Decimal
    allocated_value: Decimal
    available_quantity: int
    notes: str = ''


@dataclass
class Recommendation:
    request_id: str
    beneficiary_name: str
    beneficiary_type: str
    purpose: str
    urgency: str
    recommended_items: list = field(default_factory=list)
    estimated_value: Decimal = ZERO
    warnings: list = field(default_factory=list)

    def recompute_value(self) -> None:
        self.estimated_value = quantize_money(
            sum((item.allocated_value for item in self.recommended_items), ZERO)
        )

    def as_dict(self) -> dict:
        return asdict(self)


def find_stock(item_name: str, stock: list[StockSnapshot]) -> StockSnapshot | None:
    """First record whose name contains ``item_name`` or is contained by it."""
    wanted = item_name.lower()
    for row in stock:
        have = row.item_name.lower()
        if wanted in have or have in wanted:
            return row
    return None


class AllocationRecommender:
    """Advisory baskets for a batch of approved requests. Persists nothing."""

    def __init__(self, stock: list[StockSnapshot]):
        self.stock = [row for row in stock if row.quantity_available > 0]

    def recommend(self, request: RequestSnapshot) -> Recommendation:
        """Basket for one request against the full snapshot."""
        recommendation = Recommendation(
            request_id=request.request_id,
            beneficiary_name=request.beneficiary_name,
            beneficiary_type=request.beneficiary_type,
            purpose=request.purpose,
            urgency=request.urgency,
        )
        for target in basket_for(request.purpose_category):
            wanted = target.quantity_for(request.beneficiary_type)
            row = find_stock(target.item_name, self.stock)
            if row is None:
                recommendation.warnings.append(f'No available inventory for {target.item_name}')
                continue

            quantity, notes = wanted, target.notes
            if row.quantity_available < wanted:
                recommendation.warnings.append(
                    f'Limited stock for {target.item_name}. '
                    f'Available: {row.quantity_available}, Recommended: {wanted}'
                )
                quantity, notes = row.quantity_available, f'Partial allocation - {target.notes}'

            unit = quantize_money(row.unit_value)
            recommendation.recommended_items.append(RecommendedItem(
                inventory_id=row.inventory_id,
                item_name=row.item_name,
                category_name=row.category_name,
                quantity=quantity,
                unit_value=unit,
                allocated_value=quantize_money(unit * quantity),
                available_quantity=row.quantity_available,
                notes=notes,
            ))
        recommendation.recompute_value()
        return recommendation

    def recommend_batch(self, requests: list[RequestSnapshot]) -> dict:
        """
        Recommend for every request, then split any record the batch
        asks for more of than it holds.
        """
        recommendations = [self.recommend(request) for request in requests]
        self._settle_over_demand(requests, recommendations)
        return {
            'recommendations': recommendations,
            'summary': {
                'total_requests': len(requests),
                'recommendations_generated': len(recommendations),
                'total_estimated_value': quantize_money(
                    sum((r.estimated_value for r in recommendations), ZERO)
                ),
            },
        }

    def _settle_over_demand(self, requests, recommendations) -> None:
        by_record = {}
        for request, recommendation in zip(requests, recommendations):
            for item in recommendation.recommended_items:
                by_record.setdefault(item.inventory_id, []).append((request, recommendation, item))

        stock = {row.inventory_id: row for row in self.stock}
        for inventory_id, claims in by_record.items():
            available = stock[inventory_id].quantity_available
            demand = sum(item.quantity for _, _, item in claims)
            if demand <= available:
                continue

            candidates = [
                AllocationCandidate(
                    key=str(index),
                    requested=item.quantity,
                    urgency=request.urgency,
                    beneficiary_type=request.beneficiary_type,
                    days_since_request=request.days_since_request,
                )
                for index, (request, _, item) in enumerate(claims)
            ]
            shares = {a.key: a.allocated for a in allocate_proportionally(candidates, available)}

            for index, (_, recommendation, item) in enumerate(claims):
                share = shares[str(index)]
                recommendation.warnings.append(
                    f'{item.item_name} is requested by several beneficiaries '
                    f'(total {demand}, available {available}); '
                    f'allocated {share} of {item.quantity} by priority'
                )
                item.quantity = share
                item.allocated_value = quantize_money(item.unit_value * share)
                if share == 0:
                    recommendation.recommended_items.remove(item)
                recommendation.recompute_value()
