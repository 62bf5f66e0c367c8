"""
Tests for SqlQuestionRepository.
"""
import random

import pytest

from catexam.core.cat.item_parameters import DISCRIMINATION_RANGE, GUESSING_RANGE
from catexam.core.exceptions import NotFoundError
from catexam.models import ItemParameters
from catexam.services import SqlQuestionRepository, SqlResponseStore
from tests.conftest import OTHER_USER_ID, USER_ID


@pytest.fixture
def repository(db_session):
    return SqlQuestionRepository(db_session)


class TestGetQuestion:
    def test_returns_question_with_ordered_options(self, repository, make_question):
        question = make_question()
        loaded = repository.get_question(question.id)
        assert loaded.id == question.id
        assert [option.option_number for option in loaded.options] == [1, 2, 3, 4]

    def test_missing_question_raises(self, repository):
        with pytest.raises(NotFoundError, match="ID: 404"):
            repository.get_question(404)


class TestGetPoolCandidates:
    def test_lists_every_question_with_user_status(self, db_session, repository, make_question):
        seen, unseen = make_question(), make_question()
        SqlResponseStore(db_session).upsert_question_status(USER_ID, seen.id, correct=False)
        db_session.commit()

        candidates = {c.question_id: c.user_status for c in repository.get_pool_candidates(USER_ID)}

        assert candidates == {seen.id: "incorrect", unseen.id: None}

    def test_other_users_history_is_ignored(self, db_session, repository, make_question):
        question = make_question()
        SqlResponseStore(db_session).upsert_question_status(
            OTHER_USER_ID, question.id, correct=True
        )
        db_session.commit()

        candidates = repository.get_pool_candidates(USER_ID, topics=["Cardiovascular"])

        assert [(c.question_id, c.user_status) for c in candidates] == [(question.id, None)]

    def test_correct_answers_kept_without_topics(self, db_session, repository, make_question):
        question = make_question()
        SqlResponseStore(db_session).upsert_question_status(USER_ID, question.id, correct=True)
        db_session.commit()

        candidates = repository.get_pool_candidates(USER_ID)

        assert [(c.question_id, c.user_status) for c in candidates] == [(question.id, "correct")]

    def test_topics_filter_and_exclude_correct(self, db_session, repository, make_question):
        correct = make_question(topic="Renal")
        incorrect = make_question(topic="Renal")
        fresh = make_question(topic="Renal")
        make_question(topic="Cardiovascular")
        store = SqlResponseStore(db_session)
        store.upsert_question_status(USER_ID, correct.id, correct=True)
        store.upsert_question_status(USER_ID, incorrect.id, correct=False)
        db_session.commit()

        ids = [c.question_id for c in repository.get_pool_candidates(USER_ID, topics=["Renal"])]

        assert ids == [incorrect.id, fresh.id]


class TestItemParameters:
    def test_initialize_all_missing(self, db_session, repository, medium_questions):
        created = repository.initialize_missing_parameters(rng=random.Random(1))
        db_session.commit()

        assert created == 5
        rows = db_session.query(ItemParameters).all()
        for row in rows:
            assert -0.25 <= row.difficulty < 0.25
            assert DISCRIMINATION_RANGE[0] <= row.discrimination < DISCRIMINATION_RANGE[1]
            assert GUESSING_RANGE[0] <= row.guessing < GUESSING_RANGE[1]

    def test_existing_parameters_are_kept(self, db_session, repository, make_question):
        question = make_question(difficulty="Hard")
        db_session.add(
            ItemParameters(
                question_id=question.id, discrimination=1.7, difficulty=2.1, guessing=0.1
            )
        )
        db_session.commit()

        assert repository.initialize_missing_parameters() == 0
        assert repository.get_parameters([question.id])[question.id].difficulty == 2.1

    def test_initialize_subset(self, repository, medium_questions):
        ids = [medium_questions[0].id, medium_questions[1].id]
        assert repository.initialize_missing_parameters(ids) == 2
        assert set(repository.get_parameters(q.id for q in medium_questions)) == set(ids)

    def test_empty_subset_is_a_no_op(self, repository, medium_questions):
        assert repository.initialize_missing_parameters([]) == 0

    def test_difficulty_label_sets_anchor(self, repository, make_question):
        easy = make_question(difficulty="Easy")
        hard = make_question(difficulty="hard")
        repository.initialize_missing_parameters(rng=random.Random(4))

        params = repository.get_parameters([easy.id, hard.id])

        assert -1.25 <= params[easy.id].difficulty < -0.75
        assert 0.75 <= params[hard.id].difficulty < 1.25

    def test_get_parameters_of_nothing(self, repository):
        assert repository.get_parameters([]) == {}
