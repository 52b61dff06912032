from datetime import datetime, timedelta, timezone

import pytest
from fastapi import status


def _today():
    return datetime.now(timezone.utc).date()


@pytest.fixture
def timeline(repositories):
    today = _today()
    project = repositories.projects.create({"title": "Nebula Drift"})
    rows = [
        ("Overdue comp", today - timedelta(days=3), False, project.id),
        ("Done lighting", today - timedelta(days=5), True, project.id),
        ("Due today", today, False, 42),
        ("Future delivery", today + timedelta(days=10), False, project.id),
        ("Broken date", "sometime soon", False, project.id),
    ]
    for title, due, completed, project_id in rows:
        repositories.milestones.create(
            {"title": title, "dueDate": str(due), "completed": completed, "projectId": project_id}
        )
    return project


def _titles(response):
    return [m["title"] for m in response.json()]


def test_list_milestones_sorted_by_due_date(client, timeline):
    response = client.get("/milestones/")
    assert response.status_code == status.HTTP_200_OK
    assert _titles(response) == [
        "Done lighting",
        "Overdue comp",
        "Due today",
        "Future delivery",
        "Broken date",
    ]


def test_list_milestones_buckets(client, timeline):
    def bucket(name):
        return _titles(client.get("/milestones/", params={"bucket": name}))

    assert bucket("completed") == ["Done lighting"]
    assert bucket("pending") == ["Overdue comp", "Due today", "Future delivery", "Broken date"]
    assert bucket("overdue") == ["Overdue comp"]
    assert bucket("today") == ["Due today"]


def test_list_milestones_unknown_bucket(client, timeline):
    response = client.get("/milestones/", params={"bucket": "someday"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_list_milestones_by_project(client, timeline):
    response = client.get("/milestones/", params={"projectId": "42", "bucket": "pending"})
    milestones = response.json()
    assert [m["title"] for m in milestones] == ["Due today"]
    assert milestones[0]["projectTitle"] == "Unknown Project"


def test_milestone_summary(client, timeline):
    response = client.get("/milestones/summary")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"completed": 1, "pending": 4, "overdue": 1, "today": 1}


def test_milestone_crud(client, timeline):
    created = client.post(
        "/milestones/",
        json={"title": "Color grade", "dueDate": "2030-01-01", "projectId": timeline.id},
    ).json()
    assert created["id"] == 6
    assert created["completed"] is False

    updated = client.patch(f"/milestones/{created['id']}", json={"completed": True}).json()
    assert updated["completed"] is True
    assert updated["title"] == "Color grade"

    assert client.get(f"/milestones/{created['id']}").json()["completed"] is True
    assert client.delete(f"/milestones/{created['id']}").status_code == status.HTTP_200_OK
    assert client.get(f"/milestones/{created['id']}").status_code == status.HTTP_404_NOT_FOUND
