"""
Bootstrap default 3PL parameters for uncalibrated questions.

Run after importing new questions so they are immediately eligible for CAT
selection (sessions would otherwise initialize them lazily):

    python -m catexam.scripts.initialize_item_parameters [--question-id ID ...] [--seed N]

Exit codes:
    0 - Success
    1 - Database error
"""
import argparse
import json
import logging
import random
import sys
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from catexam.core.datetime_utils import utc_now
from catexam.core.db_error_handling import DatabaseOperationError, unit_of_work
from catexam.models.base import SessionLocal
from catexam.services import SqlQuestionRepository

logger = logging.getLogger("initialize_item_parameters")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Create default IRT parameters for questions that have none"
    )
    parser.add_argument(
        "--question-id",
        dest="question_ids",
        type=int,
        action="append",
        help="Only initialize this question (repeatable; default: whole bank)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible parameter draws",
    )
    return parser


def main(
    argv: Optional[List[str]] = None,
    session_factory: Callable[[], Session] = SessionLocal,
) -> int:
    args = build_parser().parse_args(argv)
    rng = random.Random(args.seed) if args.seed is not None else None

    db = session_factory()
    try:
        with unit_of_work(db, "initialize item parameters"):
            created = SqlQuestionRepository(db).initialize_missing_parameters(
                args.question_ids, rng=rng
            )
    except DatabaseOperationError as exc:
        logger.error("Item parameter initialization failed: %s", exc)
        return 1
    finally:
        db.close()

    logger.info("Initialized default parameters for %d questions", created)
    summary = {
        "type": "ITEM_PARAMETERS_INITIALIZED",
        "initialized": created,
        "completed_at": utc_now().isoformat(),
    }
    print(json.dumps(summary), flush=True)
    return 0


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    sys.exit(main())
