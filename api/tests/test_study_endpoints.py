"""
Tests for the flexibility and conceptual knowledge study endpoints.
"""

import json

from sqlmodel import Session, select

from algespace.core.config import settings
from algespace.models.study import CKStudyData, FlexibilityStudyData

AUTH_HEADERS = {"Authorization": "Bearer participant-token"}

FLEXIBILITY_ENTRY = {
    "userId": 1,
    "username": "participant01",
    "studyId": 1,
    "flexibilityId": 2,
    "exerciseId": 1,
    "exerciseType": 1,
    "agentCondition": 1,
    "agentType": 4,
}

CK_ENTRY = {
    "userId": 1,
    "username": "participant01",
    "studyId": 1,
    "exerciseType": 0,
    "exerciseId": 1,
}


def _identity(entry_id):
    return {"userId": 1, "username": "participant01", "studyId": 1, "id": entry_id}


def _create_flexibility_entry(client):
    response = client.put("/flexibility-study/createEntry", json=FLEXIBILITY_ENTRY, headers=AUTH_HEADERS)
    assert response.status_code == 200
    return response.json()


def _create_ck_entry(client):
    response = client.put("/ck-study/createEntry", json=CK_ENTRY, headers=AUTH_HEADERS)
    assert response.status_code == 200
    return response.json()


def _flexibility_row(engines, entry_id):
    with Session(engines[1]) as session:
        return session.get(FlexibilityStudyData, entry_id)


def _ck_row(engines, entry_id):
    with Session(engines[1]) as session:
        return session.get(CKStudyData, entry_id)


class TestFlexibilityStudySetup:
    """Seeding a study and reading its exercises."""

    def test_first_study_is_listed_in_order(self, client):
        assert client.put("/flexibility-study/setFirstStudy").status_code == 200

        response = client.get("/flexibility-study/getExercisesForStudy/1", headers=AUTH_HEADERS)

        assert response.status_code == 200
        exercises = response.json()
        assert len(exercises) == 7
        assert exercises[0] == {"id": 1, "exerciseType": 0, "exerciseId": 1}
        assert [exercise["id"] for exercise in exercises] == list(range(1, 8))

    def test_seeding_twice_keeps_one_exercise_list(self, client):
        client.put("/flexibility-study/setFirstStudy")
        client.put("/flexibility-study/setFirstStudy")

        response = client.get("/flexibility-study/getExercisesForStudy/1", headers=AUTH_HEADERS)
        assert len(response.json()) == 7

    def test_unknown_study_returns_404(self, client):
        response = client.get("/flexibility-study/getExercisesForStudy/42", headers=AUTH_HEADERS)
        assert response.status_code == 404

    def test_seeding_is_refused_outside_development(self, client, monkeypatch):
        monkeypatch.setattr(settings, "environment", "production")
        assert client.put("/flexibility-study/setFirstStudy").status_code == 403

    def test_bearer_token_is_required(self, client):
        response = client.get("/flexibility-study/getExercisesForStudy/1")
        assert response.status_code == 401

        response = client.get(
            "/flexibility-study/getExercisesForStudy/1", headers={"Authorization": "Basic abc"}
        )
        assert response.status_code == 401


class TestFlexibilityTracking:
    """Tracking calls against one flexibility entry."""

    def test_create_entry_stores_the_attempt(self, client, engines):
        entry_id = _create_flexibility_entry(client)

        row = _flexibility_row(engines, entry_id)
        assert row.user_id == 1
        assert row.flexibility_id == 2
        assert row.exercise_type == 1
        assert row.agent_condition == 1
        assert row.agent_type == 4
        assert row.selected_method is None

    def test_create_entry_keeps_earlier_entries(self, client, engines):
        first = _create_flexibility_entry(client)
        second = _create_flexibility_entry(client)

        assert first != second
        with Session(engines[1]) as session:
            assert len(session.exec(select(FlexibilityStudyData)).all()) == 2

    def test_create_entry_can_clear_earlier_entries(self, client, engines, monkeypatch):
        monkeypatch.setattr(settings, "clear_entries_on_create", True)
        _create_flexibility_entry(client)
        second = _create_flexibility_entry(client)

        with Session(engines[1]) as session:
            rows = session.exec(select(FlexibilityStudyData)).all()
        assert [row.id for row in rows] == [second]

    def test_actions_are_appended(self, client, engines):
        entry_id = _create_flexibility_entry(client)

        for action in ("Substitution", "Elimination"):
            response = client.post(
                "/flexibility-study/addActionToEntry",
                json={**_identity(entry_id), "phase": 0, "action": action},
                headers=AUTH_HEADERS,
            )
            assert response.status_code == 200

        assert _flexibility_row(engines, entry_id).selected_method == "Substitution,\nElimination"

    def test_choice_is_overwritten(self, client, engines):
        entry_id = _create_flexibility_entry(client)

        for choice in ("Yes to Substitution", "No to Substitution"):
            client.post(
                "/flexibility-study/trackChoice",
                json={**_identity(entry_id), "phase": 3, "choice": choice},
                headers=AUTH_HEADERS,
            )

        assert _flexibility_row(engines, entry_id).comparison_choice == "No to Substitution"

    def test_phase_completion_stores_time_and_errors(self, client, engines):
        entry_id = _create_flexibility_entry(client)

        response = client.post(
            "/flexibility-study/completePhaseTracking",
            json={**_identity(entry_id), "phase": 3, "time": 12.5, "errors": 2},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 200
        assert json.loads(_flexibility_row(engines, entry_id).transformation) == {"time": 12.5, "errors": 2}

    def test_comparison_phase_also_stores_choice(self, client, engines):
        entry_id = _create_flexibility_entry(client)

        client.post(
            "/flexibility-study/completePhaseTracking",
            json={**_identity(entry_id), "phase": 9, "time": 30.0, "errors": 0, "choice": "Equalization"},
            headers=AUTH_HEADERS,
        )

        assert json.loads(_flexibility_row(engines, entry_id).comparison) == {
            "time": 30.0, "errors": 0, "choice": "Equalization"
        }

    def test_missing_phase_is_rejected(self, client):
        entry_id = _create_flexibility_entry(client)

        response = client.post(
            "/flexibility-study/completePhaseTracking",
            json={**_identity(entry_id), "time": 1.0, "errors": 0},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Property Phase is null."

    def test_complete_tracking_stores_totals(self, client, engines):
        entry_id = _create_flexibility_entry(client)

        client.post(
            "/flexibility-study/completeTracking",
            json={**_identity(entry_id), "time": 95.25, "errors": 3},
            headers=AUTH_HEADERS,
        )

        row = _flexibility_row(engines, entry_id)
        assert row.total_time == 95.25
        assert row.total_errors == 3

    def test_entry_of_another_user_is_rejected(self, client):
        entry_id = _create_flexibility_entry(client)

        response = client.post(
            "/flexibility-study/addActionToEntry",
            json={**_identity(entry_id), "userId": 2, "phase": 0, "action": "Substitution"},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 400

    def test_unknown_phase_value_is_invalid(self, client):
        entry_id = _create_flexibility_entry(client)

        response = client.post(
            "/flexibility-study/addActionToEntry",
            json={**_identity(entry_id), "phase": 99, "action": "Substitution"},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 422


class TestCKTracking:
    """Tracking calls against one conceptual knowledge entry."""

    def test_create_entry_starts_without_hints(self, client, engines):
        entry_id = _create_ck_entry(client)

        row = _ck_row(engines, entry_id)
        assert row.exercise_type == 0
        assert row.total_hints == 0

    def test_actions_go_to_the_phase_column(self, client, engines):
        entry_id = _create_ck_entry(client)

        for action in ("DRAG kiwi from FruitsRight to ScaleLeft", "UNDO"):
            client.post(
                "/ck-study/addActionToEntry",
                json={**_identity(entry_id), "phase": 0, "action": action},
                headers=AUTH_HEADERS,
            )

        row = _ck_row(engines, entry_id)
        assert row.equalization_actions == "DRAG kiwi from FruitsRight to ScaleLeft,\nUNDO"
        assert row.simplification_actions is None

    def test_hint_is_logged_and_counted(self, client, engines):
        entry_id = _create_ck_entry(client)

        client.post("/ck-study/trackHint", json={**_identity(entry_id), "phase": 1}, headers=AUTH_HEADERS)
        client.post("/ck-study/trackHint", json={**_identity(entry_id), "phase": 1}, headers=AUTH_HEADERS)

        row = _ck_row(engines, entry_id)
        assert row.simplification_actions == "HINT,\nHINT"
        assert row.total_hints == 2

    def test_phase_completion_stores_hints(self, client, engines):
        entry_id = _create_ck_entry(client)

        client.post(
            "/ck-study/completePhaseTracking",
            json={**_identity(entry_id), "phase": 1, "time": 3.0, "errors": 1, "hints": 1},
            headers=AUTH_HEADERS,
        )

        assert json.loads(_ck_row(engines, entry_id).simplification) == {"time": 3.0, "errors": 1, "hints": 1}

    def test_missing_phase_is_rejected(self, client):
        entry_id = _create_ck_entry(client)

        response = client.post(
            "/ck-study/completePhaseTracking",
            json={**_identity(entry_id), "time": 3.0, "errors": 1},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Property Phase is null."

    def test_complete_tracking_stores_totals(self, client, engines):
        entry_id = _create_ck_entry(client)

        client.post(
            "/ck-study/completeTracking",
            json={**_identity(entry_id), "time": 40.0, "errors": 2},
            headers=AUTH_HEADERS,
        )

        row = _ck_row(engines, entry_id)
        assert row.total_time == 40.0
        assert row.total_errors == 2

    def test_all_routes_require_a_bearer_token(self, client):
        assert client.put("/ck-study/createEntry", json=CK_ENTRY).status_code == 401
