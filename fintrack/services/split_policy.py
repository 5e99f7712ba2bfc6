"""Split and distribution policies.

Two closed families of policies, each tag backed by exactly one strategy:

Bill split (how a bill's total is divided among participants):
- EQUAL: same share each, remainder cents to the first participants
- PERCENTAGE: ``total * pct / 100`` per named participant
- MANUAL: caller-supplied amount per named participant

Expense distribution (how much of one expense each linked bucket receives):
- NONE: no allocation
- MANUAL: caller-supplied amount per bucket, must add up to the expense amount
- EQUAL_SPLIT: every bucket receives the full expense amount
- HALF: every bucket receives half of the expense amount

When the bill creator is not among the named participants they are appended
last and absorb whatever the named shares leave of the total.

All amounts are integers of minor currency units. Functions are pure.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from fintrack.models import BillSplitType
from fintrack.services.errors import ValidationError
from fintrack.services.money import halve


class DistributionType(str, Enum):
    """How one expense amount is spread across the buckets it is linked to."""

    NONE = "none"
    MANUAL = "manual"
    EQUAL_SPLIT = "equal_split"
    HALF = "half"


@dataclass(frozen=True)
class BillSplitInputs:
    """Inputs for a bill split.

    Attributes:
        participant_count: Number of participants including an auto-added creator
        percentages: Percentage per named participant (PERCENTAGE)
        amounts: Amount per named participant in minor units (MANUAL)
        creator_auto_added: Creator was appended after the named participants
    """

    participant_count: int
    percentages: Sequence[Decimal] | None = None
    amounts: Sequence[int] | None = None
    creator_auto_added: bool = False

    @property
    def named_count(self) -> int:
        return self.participant_count - (1 if self.creator_auto_added else 0)


@dataclass(frozen=True)
class BucketSelection:
    """Buckets targeted by an expense and optional per-bucket amounts.

    Attributes:
        bucket_ids: Selected buckets, in request order
        amounts: Manual amount per bucket id in minor units (MANUAL)
        tolerance: Largest accepted manual total mismatch, exclusive (minor units)
    """

    bucket_ids: Sequence[int]
    amounts: Mapping[int, int] = field(default_factory=dict)
    tolerance: int = 1


def _percentage_share(total: int, percentage: Decimal) -> int:
    share = Decimal(total) * Decimal(str(percentage)) / 100
    return int(share.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def split_equal(total: int, inputs: BillSplitInputs) -> list[int]:
    """Equal shares that differ by at most one cent and sum exactly to ``total``.

    Example: 10000 among 3 -> [3334, 3333, 3333]
    """
    count = inputs.participant_count
    if count <= 0:
        raise ValidationError("A bill needs at least one participant")

    base, remainder = divmod(total, count)
    return [base + 1 if i < remainder else base for i in range(count)]


def split_percentage(total: int, inputs: BillSplitInputs) -> list[int]:
    """Shares from percentages of the named participants.

    An auto-added creator receives ``total - sum(named shares)`` clamped at 0,
    which is the ``100 - sum(percentages)`` remainder including any rounding
    drift. When everyone is named and the percentages add up to exactly 100,
    the rounding drift goes to the first participant.
    """
    percentages = [Decimal(str(p)) for p in (inputs.percentages or [])]
    if len(percentages) != inputs.named_count:
        raise ValidationError(
            f"Expected {inputs.named_count} percentages, got {len(percentages)}"
        )
    if any(p < 0 for p in percentages):
        raise ValidationError("Percentages must not be negative")

    shares = [_percentage_share(total, p) for p in percentages]

    if inputs.creator_auto_added:
        shares.append(max(0, total - sum(shares)))
    elif shares and sum(percentages) == 100:
        shares[0] += total - sum(shares)

    return shares


def split_manual(total: int, inputs: BillSplitInputs) -> list[int]:
    """Caller-supplied shares; an auto-added creator gets ``total - sum`` clamped at 0."""
    amounts = list(inputs.amounts or [])
    if len(amounts) != inputs.named_count:
        raise ValidationError(f"Expected {inputs.named_count} amounts, got {len(amounts)}")
    if any(a < 0 for a in amounts):
        raise ValidationError("Amounts must not be negative")

    if inputs.creator_auto_added:
        amounts.append(max(0, total - sum(amounts)))
    return amounts


def distribute_none(amount: int, selection: BucketSelection) -> dict[int, int]:
    return {}


def distribute_manual(amount: int, selection: BucketSelection) -> dict[int, int]:
    """Caller amounts per bucket; a bucket without an amount gets the full expense amount.

    The amounts are checked against the expense amount only when more than one
    bucket is selected.
    """
    shares = {
        bucket_id: selection.amounts.get(bucket_id, amount) for bucket_id in selection.bucket_ids
    }
    if any(share < 0 for share in shares.values()):
        raise ValidationError("Distribution amounts must not be negative")

    if len(shares) > 1 and abs(sum(shares.values()) - amount) >= selection.tolerance:
        raise ValidationError(
            f"Manual distribution total {sum(shares.values())} does not match "
            f"expense amount {amount}"
        )
    return shares


def distribute_equal_split(amount: int, selection: BucketSelection) -> dict[int, int]:
    """Every bucket claims the whole expense amount (not a fraction of it)."""
    return {bucket_id: amount for bucket_id in selection.bucket_ids}


def distribute_half(amount: int, selection: BucketSelection) -> dict[int, int]:
    share = halve(amount)
    return {bucket_id: share for bucket_id in selection.bucket_ids}


BILL_SPLIT_STRATEGIES: dict[BillSplitType, Callable[[int, BillSplitInputs], list[int]]] = {
    BillSplitType.EQUAL: split_equal,
    BillSplitType.PERCENTAGE: split_percentage,
    BillSplitType.MANUAL: split_manual,
}

DistributionStrategy = Callable[[int, BucketSelection], dict[int, int]]

DISTRIBUTION_STRATEGIES: dict[DistributionType, DistributionStrategy] = {
    DistributionType.NONE: distribute_none,
    DistributionType.MANUAL: distribute_manual,
    DistributionType.EQUAL_SPLIT: distribute_equal_split,
    DistributionType.HALF: distribute_half,
}


def distribute(policy: DistributionType, amount: int, selection: BucketSelection) -> dict[int, int]:
    """Compute each selected bucket's share of an expense.

    A single selected bucket always receives the full amount, whatever the
    policy, unless the policy is NONE.

    Returns:
        Dict mapping bucket id to amount in minor units (empty when nothing is allocated)
    """
    if len(set(selection.bucket_ids)) != len(selection.bucket_ids):
        raise ValidationError("A bucket can be selected only once per expense")
    if policy is DistributionType.NONE or not selection.bucket_ids:
        return {}
    if len(selection.bucket_ids) == 1:
        return {selection.bucket_ids[0]: amount}
    return DISTRIBUTION_STRATEGIES[policy](amount, selection)


def compute_shares(
    policy: BillSplitType | DistributionType,
    total: int,
    inputs: BillSplitInputs | BucketSelection,
) -> list[int] | dict[int, int]:
    """Single entry point for both policy families.

    Returns:
        For a bill split: amounts aligned with the participant order
        (named participants first, auto-added creator last).
        For a distribution: dict mapping bucket id to amount.
    """
    if isinstance(policy, BillSplitType) and isinstance(inputs, BillSplitInputs):
        return BILL_SPLIT_STRATEGIES[policy](total, inputs)
    if isinstance(policy, DistributionType) and isinstance(inputs, BucketSelection):
        return distribute(policy, total, inputs)
    raise ValidationError(f"Inputs {type(inputs).__name__} do not match policy {policy!r}")


__all__ = [
    "DistributionType",
    "BillSplitInputs",
    "BucketSelection",
    "split_equal",
    "split_percentage",
    "split_manual",
    "distribute",
    "compute_shares",
    "BILL_SPLIT_STRATEGIES",
    "DISTRIBUTION_STRATEGIES",
]
