"""
Three-parameter logistic (3PL) IRT model functions.

    P(theta) = c + (1 - c) / (1 + exp(-a * (theta - b)))

Where:
    a = discrimination (slope), must be > 0
    b = difficulty (location on the ability scale)
    c = guessing (lower asymptote), in [0, 1)

Both functions are stateless and use plain IEEE-754 double arithmetic, so
identical inputs always produce bit-identical outputs.
"""

import math

# The logit a*(theta-b) is clamped to this magnitude before exponentiating.
# exp(35) ~ 1.6e15 keeps the sigmoid finite without clamping P itself.
LOGIT_CLAMP = 35.0


def probability_correct(theta: float, a: float, b: float, c: float) -> float:
    """
    Probability of a correct response under the 3PL model.

    Args:
        theta: Ability level.
        a: Item discrimination.
        b: Item difficulty.
        c: Item guessing parameter.

    Returns:
        Probability in [c, 1].
    """
    logit = a * (theta - b)
    if logit > LOGIT_CLAMP:
        logit = LOGIT_CLAMP
    elif logit < -LOGIT_CLAMP:
        logit = -LOGIT_CLAMP

    return c + (1.0 - c) / (1.0 + math.exp(-logit))


def item_information(theta: float, a: float, b: float, c: float) -> float:
    """
    Fisher information of a 3PL item at a given ability level.

        I(theta) = a^2 * (P - c)^2 * (1 - P) / ((1 - c)^2 * P)

    Falls back to the 2PL form ``a^2 * P * (1 - P)`` when c is 0 or P is
    degenerate (P <= c or P >= 1). The two forms agree at c = 0.

    Args:
        theta: Ability level.
        a: Item discrimination.
        b: Item difficulty.
        c: Item guessing parameter.

    Returns:
        Fisher information value (non-negative).
    """
    p = probability_correct(theta, a, b, c)

    if 0.0 < c < 1.0 and c < p < 1.0:
        return (a * a * (p - c) * (p - c) * (1.0 - p)) / ((1.0 - c) * (1.0 - c) * p)

    return a * a * p * (1.0 - p)


def validate_item_parameters(a: float, b: float, c: float) -> None:
    """
    Validate a set of 3PL parameters.

    Raises:
        ValueError: If discrimination is not positive, difficulty is not
            finite, or guessing is outside [0, 1).
    """
    if not a > 0:
        raise ValueError(f"Discrimination parameter must be positive, got {a}")
    if not math.isfinite(b):
        raise ValueError(f"Difficulty parameter must be finite, got {b}")
    if not 0.0 <= c < 1.0:
        raise ValueError(f"Guessing parameter must be in [0, 1), got {c}")
