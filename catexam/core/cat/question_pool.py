"""
Question pool construction for a new CAT test.

The pool is fixed when the test is created. Candidates are ranked in tiers
by the user's history with each question, then shuffled within each tier:

    1. Unseen (no status record for this user)
    2. Previously answered incorrectly
    3. Everything else (correct, marked, skipped, ...)

and the first ``limit`` ids are kept.
"""

import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

TIER_UNSEEN = 1
TIER_INCORRECT = 2
TIER_OTHER = 3

# A status record of "unseen" is treated the same as no record at all
_STATUS_TIERS: Dict[Optional[str], int] = {
    None: TIER_UNSEEN,
    "unseen": TIER_UNSEEN,
    "incorrect": TIER_INCORRECT,
}


@dataclass(frozen=True)
class PoolCandidate:
    """A question eligible for the pool and the user's status on it."""

    question_id: int
    user_status: Optional[str] = None


def pool_tier(user_status: Optional[str]) -> int:
    """Return the selection tier for a user's status on a question."""
    return _STATUS_TIERS.get(user_status, TIER_OTHER)


def build_question_pool(
    candidates: Sequence[PoolCandidate],
    limit: int,
    rng: Optional[random.Random] = None,
) -> List[int]:
    """
    Rank candidates by tier, shuffle within tiers and keep the first ``limit``.

    Args:
        candidates: Eligible questions with the user's status for each.
            Duplicate question ids are collapsed to their first occurrence.
        limit: Maximum pool size.
        rng: Optional Random instance for deterministic testing.

    Returns:
        Ordered list of question ids (pool order).

    Raises:
        ValueError: If limit is not positive.
    """
    if limit <= 0:
        raise ValueError(f"Pool limit must be positive, got {limit}")

    rng = rng or random.Random()

    tiers: Dict[int, List[int]] = {TIER_UNSEEN: [], TIER_INCORRECT: [], TIER_OTHER: []}
    seen_ids = set()
    for candidate in candidates:
        if candidate.question_id in seen_ids:
            continue
        seen_ids.add(candidate.question_id)
        tiers[pool_tier(candidate.user_status)].append(candidate.question_id)

    pool: List[int] = []
    for tier in (TIER_UNSEEN, TIER_INCORRECT, TIER_OTHER):
        ids = tiers[tier]
        rng.shuffle(ids)
        pool.extend(ids)
        if len(pool) >= limit:
            break

    return pool[:limit]
