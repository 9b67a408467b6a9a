"""Quest API 엔드포인트 테스트

TestClient + in-memory SQLite (시드 카탈로그).
"""

import pytest


@pytest.fixture()
def user_id(client) -> str:
    resp = client.post("/auth/login", json={"stacks_address": "SP_QUEST_TESTER"})
    return resp.json()["data"]["user_id"]


def _start(client, user_id, quest_id="quest-1"):
    return client.post(f"/quests/{quest_id}/start", json={"user_id": user_id})


def _complete(client, user_id, step, quest_id="quest-1", data=None):
    body = {"user_id": user_id}
    if data is not None:
        body["data"] = data
    return client.post(f"/quests/{quest_id}/steps/{step}/complete", json=body)


class TestQuestCatalogAPI:
    def test_list_quests(self, client):
        resp = client.get("/quests")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert [q["quest_id"] for q in body["data"]] == ["quest-1", "quest-2", "quest-3"]
        assert body["data"][0]["user_progress"] is None

    def test_list_quests_with_progress(self, client, user_id):
        _start(client, user_id)
        resp = client.get("/quests", params={"user_id": user_id})
        quests = {q["quest_id"]: q for q in resp.json()["data"]}
        assert quests["quest-1"]["user_progress"]["status"] == "IN_PROGRESS"
        assert quests["quest-2"]["user_progress"] is None

    def test_get_quest(self, client):
        resp = client.get("/quests/quest-1")
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["title"] == "First Steps in Stacks"
        assert [s["step_number"] for s in data["steps"]] == [1, 2]
        assert data["rewards"][0]["badge_id"] == "first-quest-badge"

    def test_get_quest_not_found(self, client):
        resp = client.get("/quests/quest-404")
        assert resp.status_code == 404


class TestStartQuestAPI:
    def test_start(self, client, user_id):
        resp = _start(client, user_id)
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Quest started successfully"
        assert body["data"]["status"] == "IN_PROGRESS"
        assert body["data"]["current_step"] == 1
        assert body["data"]["quest"]["quest_id"] == "quest-1"

    def test_start_twice(self, client, user_id):
        _start(client, user_id)
        resp = _start(client, user_id)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Quest already started"

    def test_start_unknown_quest(self, client, user_id):
        resp = _start(client, user_id, "quest-404")
        assert resp.status_code == 404

    def test_prerequisites_not_met(self, client, user_id):
        resp = _start(client, user_id, "quest-2")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Prerequisites not met"

    def test_unknown_user(self, client):
        resp = _start(client, "ghost")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "User not found"

    def test_missing_user_id(self, client):
        resp = client.post("/quests/quest-1/start", json={})
        assert resp.status_code == 422


class TestCompleteStepAPI:
    def test_complete_quest(self, client, user_id):
        _start(client, user_id)

        r1 = _complete(client, user_id, 1, data={"wallet": "hiro"})
        assert r1.status_code == 200
        assert r1.json()["data"]["quest_completed"] is False
        assert r1.json()["data"]["rewards"] is None

        r2 = _complete(client, user_id, 2)
        body = r2.json()
        assert r2.status_code == 200
        assert body["message"] == "Quest completed!"
        assert body["data"]["quest_completed"] is True
        assert body["data"]["progress"]["status"] == "COMPLETED"
        assert body["data"]["rewards"]["badges_awarded"] == ["first-quest-badge"]
        assert body["data"]["rewards"]["experience_awarded"] == 100

        profile = client.get(f"/users/{user_id}/profile").json()["data"]["profile"]
        assert profile["total_quests_completed"] == 1
        assert profile["experience"] == 200

    def test_not_started(self, client, user_id):
        resp = _complete(client, user_id, 1)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Quest not started"

    def test_step_not_found(self, client, user_id):
        _start(client, user_id)
        resp = _complete(client, user_id, 9)
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Step not found"

    def test_previous_steps_required(self, client, user_id):
        _start(client, user_id)
        resp = _complete(client, user_id, 2)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Previous steps must be completed first"

    def test_step_already_completed(self, client, user_id):
        _start(client, user_id)
        _complete(client, user_id, 1)
        resp = _complete(client, user_id, 1)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Step already completed"

    def test_already_completed(self, client, user_id):
        _start(client, user_id)
        _complete(client, user_id, 1)
        _complete(client, user_id, 2)
        resp = _complete(client, user_id, 2)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Quest already completed"

    def test_step_number_must_be_positive(self, client, user_id):
        _start(client, user_id)
        resp = _complete(client, user_id, 0)
        assert resp.status_code == 422


class TestUserProgressAPI:
    def test_progress_list(self, client, user_id):
        _start(client, user_id)
        _complete(client, user_id, 1)

        resp = client.get(f"/quests/progress/{user_id}")

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert len(data) == 1
        assert data[0]["completed_steps"] == [1]
        assert data[0]["quest"]["title"] == "First Steps in Stacks"

    def test_progress_empty(self, client, user_id):
        resp = client.get(f"/quests/progress/{user_id}")
        assert resp.json()["data"] == []
