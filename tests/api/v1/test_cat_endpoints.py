"""
Tests for the CAT API endpoints.
"""
import pytest

from catexam.core.config import settings
from catexam.models import ItemParameters
from tests.conftest import OTHER_USER_ID, correct_response, incorrect_response

PREFIX = f"{settings.API_V1_PREFIX}/cat"

def create_test(client, headers, **overrides):
    payload = {"min_questions": 2, "max_questions": 5, "passing_standard": 0.0}
    payload.update(overrides)
    return client.post(f"{PREFIX}/tests", json=payload, headers=headers)


class TestCreateCatTestEndpoint:
    """Tests for POST /v1/cat/tests."""

    def test_create_returns_201(self, client, user_headers, medium_questions):
        response = create_test(client, user_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["question_count"] == 5
        assert data["max_questions"] == 5
        assert data["test_id"] > 0
        assert data["session_id"] > 0

    def test_missing_identity_is_401(self, client, medium_questions):
        response = create_test(client, {})
        assert response.status_code == 401

    def test_blank_identity_is_401(self, client, medium_questions):
        response = create_test(client, {"X-User-Id": "   "})
        assert response.status_code == 401

    def test_empty_pool_is_404(self, client, user_headers):
        response = create_test(client, user_headers)
        assert response.status_code == 404
        assert "No questions available" in response.json()["detail"]

    def test_unknown_topic_is_404(self, client, user_headers, medium_questions):
        response = create_test(client, user_headers, topics=["Oncology"])
        assert response.status_code == 404

    def test_min_above_max_is_422(self, client, user_headers, medium_questions):
        response = create_test(client, user_headers, min_questions=6, max_questions=5)
        assert response.status_code == 422

    def test_zero_min_is_422(self, client, user_headers, medium_questions):
        response = create_test(client, user_headers, min_questions=0)
        assert response.status_code == 422

class TestSessionFlowEndpoints:
    """End-to-end session flow through the API."""

    def test_next_question_hides_correctness(self, client, user_headers, medium_questions):
        session_id = create_test(client, user_headers).json()["session_id"]

        response = client.get(f"{PREFIX}/sessions/{session_id}/next", headers=user_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "in_progress"
        assert data["serial_number"] == 1
        assert len(data["question"]["options"]) == 4
        for option in data["question"]["options"]:
            assert "is_correct" not in option

    def test_answer_until_decision(self, client, user_headers, medium_questions):
        by_id = {question.id: question for question in medium_questions}
        session_id = create_test(client, user_headers).json()["session_id"]

        statuses = []
        for _ in range(2):
            served = client.get(
                f"{PREFIX}/sessions/{session_id}/next", headers=user_headers
            ).json()
            question_id = served["question"]["id"]
            response = client.post(
                f"{PREFIX}/sessions/{session_id}/answers",
                json={
                    "question_id": question_id,
                    "response": correct_response(by_id[question_id]),
                    "time_spent_seconds": 12,
                },
                headers=user_headers,
            )
            assert response.status_code == 200
            statuses.append(response.json()["status"])

        assert statuses == ["in_progress", "passed"]

        final = client.get(f"{PREFIX}/sessions/{session_id}/next", headers=user_headers)
        assert final.status_code == 200
        assert final.json()["question"] is None
        assert final.json()["status"] == "passed"
        assert final.json()["stop_reason"] == "confident_separation"

    def test_double_submit_is_409(self, client, user_headers, medium_questions):
        by_id = {question.id: question for question in medium_questions}
        session_id = create_test(client, user_headers, min_questions=5).json()["session_id"]
        served = client.get(f"{PREFIX}/sessions/{session_id}/next", headers=user_headers).json()
        question_id = served["question"]["id"]
        payload = {"question_id": question_id, "response": incorrect_response(by_id[question_id])}

        first = client.post(
            f"{PREFIX}/sessions/{session_id}/answers", json=payload, headers=user_headers
        )
        second = client.post(
            f"{PREFIX}/sessions/{session_id}/answers", json=payload, headers=user_headers
        )

        assert first.status_code == 200
        assert second.status_code == 409

    def test_wrong_question_is_409_with_expected_id(
        self, client, user_headers, medium_questions
    ):
        session_id = create_test(client, user_headers).json()["session_id"]
        served = client.get(f"{PREFIX}/sessions/{session_id}/next", headers=user_headers).json()
        in_flight = served["question"]["id"]
        other = next(q for q in medium_questions if q.id != in_flight)

        response = client.post(
            f"{PREFIX}/sessions/{session_id}/answers",
            json={"question_id": other.id, "response": correct_response(other)},
            headers=user_headers,
        )

        assert response.status_code == 409
        assert response.json()["expected_question_id"] == in_flight

    def test_other_user_is_403(self, client, user_headers, medium_questions):
        session_id = create_test(client, user_headers).json()["session_id"]
        other_headers = {"X-User-Id": OTHER_USER_ID}

        assert client.get(
            f"{PREFIX}/sessions/{session_id}", headers=other_headers
        ).status_code == 403
        assert client.get(
            f"{PREFIX}/sessions/{session_id}/next", headers=other_headers
        ).status_code == 403

    def test_unknown_session_is_404(self, client, user_headers):
        response = client.get(f"{PREFIX}/sessions/12345", headers=user_headers)
        assert response.status_code == 404

    def test_get_session_includes_selection_log(self, client, user_headers, medium_questions):
        session_id = create_test(client, user_headers).json()["session_id"]
        client.get(f"{PREFIX}/sessions/{session_id}/next", headers=user_headers)

        response = client.get(f"{PREFIX}/sessions/{session_id}", headers=user_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "in_progress"
        assert data["questions_answered"] == 0
        assert len(data["selections"]) == 1
        assert data["selections"][0]["position"] == 1
        assert data["selections"][0]["was_correct"] is None
        assert data["selections"][0]["ability_estimate_after"] is None

    def test_abandon_then_submit_is_409(self, client, user_headers, medium_questions):
        by_id = {question.id: question for question in medium_questions}
        session_id = create_test(client, user_headers).json()["session_id"]
        served = client.get(f"{PREFIX}/sessions/{session_id}/next", headers=user_headers).json()

        abandoned = client.post(f"{PREFIX}/sessions/{session_id}/abandon", headers=user_headers)
        assert abandoned.status_code == 200
        assert abandoned.json()["status"] == "abandoned"
        assert abandoned.json()["stop_reason"] == "abandoned"

        question_id = served["question"]["id"]
        response = client.post(
            f"{PREFIX}/sessions/{session_id}/answers",
            json={"question_id": question_id, "response": correct_response(by_id[question_id])},
            headers=user_headers,
        )
        assert response.status_code == 409

        again = client.post(f"{PREFIX}/sessions/{session_id}/abandon", headers=user_headers)
        assert again.status_code == 409

    def test_invalid_answer_payload_is_422(self, client, user_headers, medium_questions):
        session_id = create_test(client, user_headers).json()["session_id"]
        response = client.post(
            f"{PREFIX}/sessions/{session_id}/answers",
            json={"question_id": 0, "response": []},
            headers=user_headers,
        )
        assert response.status_code == 422

class TestInitializeParametersEndpoint:
    """Tests for POST /v1/cat/admin/item-parameters/initialize."""

    URL = f"{PREFIX}/admin/item-parameters/initialize"

    def test_requires_configured_token(self, client, monkeypatch, medium_questions):
        monkeypatch.setattr(settings, "ADMIN_TOKEN", "")
        response = client.post(self.URL, json={}, headers={"X-Admin-Token": "anything"})
        assert response.status_code == 500

    def test_rejects_invalid_token(self, client, monkeypatch, medium_questions):
        monkeypatch.setattr(settings, "ADMIN_TOKEN", "s3cret")
        response = client.post(self.URL, json={}, headers={"X-Admin-Token": "wrong"})
        assert response.status_code == 401

    def test_missing_token_is_422(self, client, medium_questions):
        assert client.post(self.URL, json={}).status_code == 422

    def test_initializes_whole_bank(self, client, db_session, monkeypatch, medium_questions):
        monkeypatch.setattr(settings, "ADMIN_TOKEN", "s3cret")
        headers = {"X-Admin-Token": "s3cret"}

        first = client.post(self.URL, json={}, headers=headers)
        second = client.post(self.URL, json={}, headers=headers)

        assert first.status_code == 200
        assert first.json() == {"initialized": 5}
        assert second.json() == {"initialized": 0}
        assert db_session.query(ItemParameters).count() == 5

    @pytest.mark.parametrize("count", [1, 2])
    def test_initializes_selected_questions(
        self, client, db_session, monkeypatch, medium_questions, count
    ):
        monkeypatch.setattr(settings, "ADMIN_TOKEN", "s3cret")
        ids = [question.id for question in medium_questions[:count]]

        response = client.post(
            self.URL, json={"question_ids": ids}, headers={"X-Admin-Token": "s3cret"}
        )

        assert response.json() == {"initialized": count}
        assert {row.question_id for row in db_session.query(ItemParameters)} == set(ids)
