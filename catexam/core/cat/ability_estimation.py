"""
MLE (Maximum Likelihood Estimation) of ability for Computerized Adaptive Testing.

Finds the theta that maximizes the 3PL log-likelihood of the response
pattern with Newton-Raphson iteration:

    L'(theta)  = sum_correct a*(1-P)/P  -  sum_incorrect a*P/(1-P)
    L''(theta) = -sum a^2 * P * (1-P)
    theta_next = theta - L'/L''

P is clamped to [0.001, 0.999] inside the derivatives, and theta is clamped
to [-4, 4] after every step. All-correct or all-incorrect patterns have no
finite MLE; the clamp makes them converge to the scale boundary.

The estimate is recomputed from the full response history after every
answer. History length is bounded by the session's max_questions, so the
O(iterations * items) cost stays small.
"""

import logging
import math
from typing import Optional, Sequence, Tuple

from catexam.core.cat.irt import item_information, probability_correct

logger = logging.getLogger(__name__)

# Ability scale bounds (logits)
THETA_MIN = -4.0
THETA_MAX = 4.0

# Newton-Raphson configuration
MAX_ITERATIONS = 50
CONVERGENCE_TOLERANCE = 0.001
# Step used when the second derivative is exactly zero
FALLBACK_STEP = 0.1

# Probability clamp for the likelihood derivatives
PROBABILITY_FLOOR = 0.001
PROBABILITY_CEILING = 0.999

# (discrimination a, difficulty b, guessing c, was_correct)
AnsweredItem = Tuple[float, float, float, bool]


def _clamp_theta(theta: float) -> float:
    if theta < THETA_MIN:
        return THETA_MIN
    if theta > THETA_MAX:
        return THETA_MAX
    return theta


def _log_likelihood_derivatives(
    theta: float, responses: Sequence[AnsweredItem]
) -> Tuple[float, float]:
    """Return (first, second) derivatives of the log-likelihood at theta."""
    first = 0.0
    second = 0.0
    for a, b, c, is_correct in responses:
        p = probability_correct(theta, a, b, c)
        if p < PROBABILITY_FLOOR:
            p = PROBABILITY_FLOOR
        elif p > PROBABILITY_CEILING:
            p = PROBABILITY_CEILING

        if is_correct:
            first += a * (1.0 - p) / p
        else:
            first -= a * p / (1.0 - p)

        second -= a * a * p * (1.0 - p)

    return first, second


def estimate_ability_mle(
    responses: Sequence[AnsweredItem],
    initial_theta: float = 0.0,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = CONVERGENCE_TOLERANCE,
) -> float:
    """
    Estimate ability by Newton-Raphson maximization of the 3PL likelihood.

    Args:
        responses: (a, b, c, was_correct) for every answered item. Order does
            not affect the maximum, only the convergence path.
        initial_theta: Starting point, normally the session's current
            ability estimate (0.0 for a new session).
        max_iterations: Iteration cap.
        tolerance: Stop once |theta_next - theta| <= tolerance.

    Returns:
        The last computed theta, within [THETA_MIN, THETA_MAX]. Returns
        ``initial_theta`` unchanged when there are no responses.

    Raises:
        ValueError: If any discrimination parameter is not positive.
    """
    if not responses:
        return initial_theta

    for i, (a, _b, _c, _correct) in enumerate(responses):
        if a <= 0:
            raise ValueError(
                f"Discrimination parameter must be positive, got {a} for response {i}"
            )

    theta = initial_theta
    for iteration in range(1, max_iterations + 1):
        first, second = _log_likelihood_derivatives(theta, responses)

        if second != 0.0:
            theta_next = theta - first / second
        else:
            # Zero curvature: nudge in the direction of increasing likelihood
            step = math.copysign(FALLBACK_STEP, first) if first else 0.0
            theta_next = theta + step
            logger.debug(
                f"Zero second derivative at theta={theta:.4f}; nudging to {theta_next:.4f}"
            )

        theta_next = _clamp_theta(theta_next)
        converged = abs(theta_next - theta) <= tolerance
        theta = theta_next

        if converged:
            logger.debug(
                f"MLE converged after {iteration} iterations: theta={theta:.4f} "
                f"({len(responses)} responses)"
            )
            break
    else:
        logger.debug(
            f"MLE stopped at iteration cap ({max_iterations}): theta={theta:.4f}"
        )

    return theta


def ability_standard_error(
    theta: float, responses: Sequence[AnsweredItem]
) -> Optional[float]:
    """
    Standard error of an ability estimate from the test information.

        SE(theta) = 1 / sqrt(sum I_i(theta))

    Args:
        theta: Ability estimate.
        responses: Answered items; only their parameters are used.

    Returns:
        The standard error, or None when there is no information yet.
    """
    total_information = sum(
        item_information(theta, a, b, c) for a, b, c, _correct in responses
    )
    if total_information <= 0.0:
        return None
    return 1.0 / math.sqrt(total_information)

