"""Integration tests for the HTTP surface, running the full app lifespan."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from planner.main import app


HTTP_OK = 200
HTTP_CREATED = 201
HTTP_NO_CONTENT = 204
HTTP_NOT_FOUND = 404
HTTP_UNPROCESSABLE = 422


def _create(client, title: str = "Study Chapter 3", **fields) -> dict:
    response = client.post("/tasks", json={"title": title, "category": "school", **fields})
    assert response.status_code == HTTP_CREATED, response.text
    return response.json()


@pytest.mark.integration
class TestTasksApi:
    """Task CRUD over HTTP."""

    def test_health(self, client):
        """Health check responds."""
        assert client.get("/health").json() == {"status": "healthy"}

    def test_create_and_list(self, client):
        """Created tasks are listed newest first."""
        first = _create(client, "Study Chapter 3")
        second = _create(client, "Finish homework", priority="high")

        listed = client.get("/tasks").json()

        assert [t["id"] for t in listed] == [second["id"], first["id"]]
        assert client.get("/tasks", params={"priority": "high"}).json()[0]["id"] == second["id"]

    def test_rejected_title_is_422_with_reason(self, client):
        """The quality gate's reason is surfaced."""
        response = client.post("/tasks", json={"title": "qwerty", "category": "school"})

        assert response.status_code == HTTP_UNPROCESSABLE
        detail = response.json()["detail"]
        assert detail["code"] == "ERR_VALIDATION_REJECTED"
        assert detail["message"] == "Please enter a meaningful task name (avoid keyboard patterns)"

    def test_unknown_task_is_404(self, client):
        """Stale ids are reported as not found."""
        assert client.get("/tasks/missing").status_code == HTTP_NOT_FOUND
        assert client.post("/tasks/missing/toggle").status_code == HTTP_NOT_FOUND
        response = client.patch("/tasks/missing", json={"priority": "low"})
        assert response.status_code == HTTP_NOT_FOUND
        assert response.json()["detail"]["code"] == "ERR_TASK_NOT_FOUND"

    def test_update_and_toggle(self, client):
        """Partial updates and toggles are applied."""
        task = _create(client)

        updated = client.patch(f"/tasks/{task['id']}", json={"progress": 140}).json()
        toggled = client.post(f"/tasks/{task['id']}/toggle").json()

        assert updated["progress"] == 100
        assert toggled["completed"] is True
        assert client.get("/tasks", params={"completed": "true"}).json()[0]["id"] == task["id"]

    def test_subtasks(self, client):
        """Subtask toggles derive progress."""
        task = _create(client)
        with_subtasks = client.put(
            f"/tasks/{task['id']}/subtasks", json={"texts": ["Read section one", "Summarize section two"]}
        ).json()
        subtask_id = with_subtasks["subtasks"][0]["id"]

        toggled = client.post(f"/tasks/{task['id']}/subtasks/{subtask_id}/toggle").json()

        assert toggled["progress"] == 50
        assert toggled["completed"] is False
        missing = client.post(f"/tasks/{task['id']}/subtasks/missing/toggle")
        assert missing.status_code == HTTP_NOT_FOUND
        assert missing.json()["detail"]["message"] == f"Subtask missing was not found on task {task['id']}."

    def test_delete_is_idempotent(self, client):
        """Deleting twice succeeds both times."""
        task = _create(client)

        assert client.delete(f"/tasks/{task['id']}").status_code == HTTP_NO_CONTENT
        assert client.delete(f"/tasks/{task['id']}").status_code == HTTP_NO_CONTENT
        assert client.get("/tasks").json() == []

    def test_tasks_persist_across_restarts(self, client):
        """Committed mutations are saved and reloaded at startup."""
        task = _create(client)

        with TestClient(app) as restarted:
            listed = restarted.get("/tasks").json()

        assert [t["id"] for t in listed] == [task["id"]]

    def test_validate_title(self, client):
        """Titles can be checked without creating anything."""
        assert client.post("/validate-title", json={"title": "Finish homework"}).json() == {
            "is_valid": True,
            "error": None,
        }
        assert client.post("/validate-title", json={"title": ""}).json()["error"] == "Task title cannot be empty"


@pytest.mark.integration
class TestAchievementsApi:
    """Achievements over HTTP."""

    def test_check_and_reset(self, client):
        """Unlocks are returned once and cleared by reset."""
        unlocked = client.post("/achievements/check", json={"total_tasks_completed": 1}).json()
        again = client.post("/achievements/check", json={"total_tasks_completed": 1}).json()

        assert [a["id"] for a in unlocked] == ["first-task"]
        assert again == []
        assert client.get("/achievements").json()["stats"]["achievements_unlocked"] == 1

        reset = client.post("/achievements/reset").json()

        assert reset["stats"]["total_tasks_completed"] == 0
        assert not any(a["is_unlocked"] for a in reset["achievements"])


@pytest.mark.integration
class TestAssistantApi:
    """Assistant endpoints fall back instead of failing."""

    def test_schedule_fallback(self, client):
        """An unavailable collaborator yields the fixed slot table."""
        tasks = [{"title": f"Task number {i}", "priority": "high"} for i in range(8)]
        with patch(
            "planner.services.schedule_service.run_collaborator",
            new_callable=AsyncMock,
            side_effect=ConnectionError("Connection refused"),
        ):
            body = client.post("/assistant/schedule", json={"tasks": tasks}).json()

        assert body["fallback"] is True
        assert len(body["schedule"]) == 6
        assert body["schedule"][0]["startTime"] == "9:00 AM"
        assert "start_time" not in body["schedule"][0]
        assert sum(item["duration"] for item in body["schedule"]) == 7.75

    def test_schedule_requires_tasks(self, client):
        """An empty task list is a request error."""
        assert client.post("/assistant/schedule", json={"tasks": []}).status_code == HTTP_UNPROCESSABLE

    def test_estimate_fallback(self, client):
        """The heuristic answers when the collaborator cannot."""
        with patch(
            "planner.services.estimate_service.run_collaborator",
            new_callable=AsyncMock,
            side_effect=ValueError("OpenRouter API key credential not configured."),
        ):
            body = client.post("/assistant/estimate", json={"task_title": "Read notes"}).json()

        assert body["fallback"] is True
        assert body["estimation"]["estimated_hours"] == 1.5

    def test_breakdown_applied_to_task(self, client):
        """Generated subtasks are attached to the task."""
        task = _create(client, "Prepare for physics exam")
        answer = '["Review lecture notes on entropy", "Practice ten numerical problems"]'
        with patch(
            "planner.services.breakdown_service.run_collaborator", new_callable=AsyncMock, return_value=answer
        ):
            body = client.post(f"/tasks/{task['id']}/breakdown").json()

        assert [s["text"] for s in body["subtasks"]] == [
            "Review lecture notes on entropy",
            "Practice ten numerical problems",
        ]
        assert body["progress"] == 0

    def test_suggestions_fallback(self, client):
        """Suggestions analyse stored tasks and fall back to fixed advice."""
        _create(client)
        with patch(
            "planner.services.suggestion_service.run_collaborator",
            new_callable=AsyncMock,
            side_effect=TimeoutError(),
        ):
            body = client.get("/assistant/suggestions").json()

        assert body["fallback"] is True
        assert body["analysis"]["pending_tasks"] == 1
        assert len(body["suggestions"]) == 3
