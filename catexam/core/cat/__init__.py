"""
CAT (Computerized Adaptive Testing) numeric core.

Pure functions for 3PL IRT, MLE ability estimation, item selection, stopping
and pool construction. The database-backed orchestrator lives in
``catexam.core.cat.engine`` and is imported from there directly.
"""

from .ability_estimation import ability_standard_error, estimate_ability_mle
from .irt import item_information, probability_correct
from .item_parameters import ItemParameterSet, default_item_parameters
from .item_selection import ItemSelection, select_next_item
from .question_pool import PoolCandidate, build_question_pool
from .stopping_rules import StoppingDecision, check_stopping_criteria

__all__ = [
    "probability_correct",
    "item_information",
    "estimate_ability_mle",
    "ability_standard_error",
    "ItemParameterSet",
    "default_item_parameters",
    "ItemSelection",
    "select_next_item",
    "PoolCandidate",
    "build_question_pool",
    "StoppingDecision",
    "check_stopping_criteria",
]
