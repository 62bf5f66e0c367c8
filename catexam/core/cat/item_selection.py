"""
Maximum Fisher Information (MFI) item selection for Computerized Adaptive Testing.

Selects the next item from the unanswered part of a test's question pool
that maximizes 3PL Fisher information at the current ability estimate:

    I_i(theta) = a_i^2 (P_i - c_i)^2 (1 - P_i) / ((1 - c_i)^2 P_i)

The selection pipeline:
1. Draw a random shortlist (at most ``shortlist_size``) of unanswered items,
   which bounds latency on very large pools
2. Compute Fisher information for each shortlisted item at current theta
3. Keep the item with strictly maximum information (first seen wins ties)
4. If nothing carries positive information, pick any unanswered item
   uniformly at random
"""

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from catexam.core.cat.irt import item_information

logger = logging.getLogger(__name__)

DEFAULT_SHORTLIST_SIZE = 50


@runtime_checkable
class CalibratedItem(Protocol):
    """Protocol for items with 3PL parameters (e.g. ItemParameters rows)."""

    @property
    def question_id(self) -> int:
        ...

    @property
    def discrimination(self) -> float:
        ...

    @property
    def difficulty(self) -> float:
        ...

    @property
    def guessing(self) -> float:
        ...


@dataclass(frozen=True)
class ItemSelection:
    """Outcome of one selection step."""

    question_id: int
    information: float
    # True when the random fallback was used instead of maximum information
    is_fallback: bool = False


def select_next_item(
    candidates: Sequence[CalibratedItem],
    theta_estimate: float,
    unanswered_ids: Optional[Sequence[int]] = None,
    shortlist_size: int = DEFAULT_SHORTLIST_SIZE,
    rng: Optional[random.Random] = None,
) -> Optional[ItemSelection]:
    """
    Select the next item using Maximum Fisher Information.

    Args:
        candidates: Unanswered pool items with their IRT parameters.
        theta_estimate: Current ability estimate.
        unanswered_ids: Every unanswered question id in the pool, used by the
            random fallback. Defaults to the candidates' ids.
        shortlist_size: Maximum number of candidates evaluated.
        rng: Optional Random instance for deterministic testing.

    Returns:
        The selected item, or None if no unanswered item remains.

    Raises:
        ValueError: If shortlist_size is not positive.
    """
    if shortlist_size <= 0:
        raise ValueError(f"shortlist_size must be positive, got {shortlist_size}")

    rng = rng or random.Random()

    shortlist = _draw_shortlist(candidates, shortlist_size, rng)

    best_id: Optional[int] = None
    max_information = 0.0
    for item in shortlist:
        info = item_information(
            theta_estimate, item.discrimination, item.difficulty, item.guessing
        )
        if info > max_information:
            max_information = info
            best_id = item.question_id

    if best_id is not None:
        logger.debug(
            f"Item selection: theta={theta_estimate:.3f}, "
            f"shortlist={len(shortlist)}/{len(candidates)}, "
            f"selected Q{best_id} (info={max_information:.4f})"
        )
        return ItemSelection(question_id=best_id, information=max_information)

    # Fallback: nothing informative in the shortlist (or it was empty)
    pool_ids = (
        list(unanswered_ids)
        if unanswered_ids is not None
        else [item.question_id for item in candidates]
    )
    if not pool_ids:
        logger.warning("No unanswered items remain in the question pool")
        return None

    fallback_id = rng.choice(pool_ids)
    logger.warning(
        f"No informative item in shortlist of {len(shortlist)} at "
        f"theta={theta_estimate:.3f}; selected Q{fallback_id} at random"
    )
    return ItemSelection(question_id=fallback_id, information=0.0, is_fallback=True)


def _draw_shortlist(
    candidates: Sequence[CalibratedItem],
    shortlist_size: int,
    rng: random.Random,
) -> List[CalibratedItem]:
    """Randomly order the candidates and keep at most shortlist_size of them."""
    if len(candidates) <= shortlist_size:
        shortlist = list(candidates)
        rng.shuffle(shortlist)
        return shortlist
    return rng.sample(list(candidates), shortlist_size)
