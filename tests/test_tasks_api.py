import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from mattodo_api.db import SQLiteTaskStore
from mattodo_api.main import app
from mattodo_api.repositories import get_task_store

MIN_TS = "0001-01-01T00:00:00Z"
MAX_TS = "9999-12-31T23:59:59.999999Z"


def parse_ts(value: str) -> datetime:
    # datetime.fromisoformat only learned to read a trailing 'Z' in 3.11
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def create_task_payload(
    title="Test Title",
    details="Test Details",
    author="M. Jordan",
    started=MIN_TS,
    completed=MAX_TS,
    **extra,
):
    payload = {
        "id": "",
        "title": title,
        "details": details,
        "author": author,
        "started": started,
        "completed": completed,
        "lastModified": MAX_TS,
    }
    payload.update(extra)
    return payload


def assert_task_shape(task: dict):
    for key in ["id", "title", "details", "author", "started", "completed", "lastModified"]:
        assert key in task
    assert isinstance(task["id"], str) and task["id"] != ""
    for key in ["started", "completed", "lastModified"]:
        parse_ts(task[key])


def create(client: TestClient, **kwargs) -> dict:
    res = client.post("/tasks", json=create_task_payload(**kwargs))
    assert res.status_code == 201, res.text
    return res.json()


class TestHealth:
    def test_health_check(self, client):
        res = client.get("/")
        assert res.status_code == 200
        assert res.json()["message"] == "Healthy"


class TestCreateTask:
    def test_create_returns_201_with_server_fields(self, client):
        before = datetime.now(timezone.utc)
        payload = create_task_payload()

        res = client.post("/tasks", json=payload)

        assert res.status_code == 201
        task = res.json()
        assert_task_shape(task)
        assert task["id"] != payload["id"]
        assert res.headers["location"] == f"/tasks/{task['id']}"
        assert task["title"] == "Test Title"
        assert task["details"] == "Test Details"
        assert task["author"] == "M. Jordan"
        assert parse_ts(task["started"]) == parse_ts(MIN_TS)
        assert parse_ts(task["completed"]) == parse_ts(MAX_TS)
        last_modified = parse_ts(task["lastModified"])
        assert last_modified != parse_ts(MAX_TS)
        assert before <= last_modified <= datetime.now(timezone.utc)

    def test_client_supplied_id_is_ignored(self, client):
        task = create(client, id="my-own-id")
        assert task["id"] != "my-own-id"
        assert client.get("/tasks/my-own-id").status_code == 404

    def test_same_body_twice_creates_two_tasks(self, client):
        payload = create_task_payload()
        first = client.post("/tasks", json=payload)
        second = client.post("/tasks", json=payload)
        assert first.status_code == 201
        assert second.status_code == 201
        assert first.json()["id"] != second.json()["id"]

    @pytest.mark.parametrize("field,name", [("title", "Title"), ("details", "Details"), ("author", "Author")])
    @pytest.mark.parametrize("value", ["", "   "])
    def test_empty_text_field_is_bad_request(self, client, field, name, value):
        res = client.post("/tasks", json=create_task_payload(**{field: value}))
        assert res.status_code == 400
        failures = res.json()
        assert isinstance(failures, list) and len(failures) == 1
        assert failures[0]["propertyName"] == name
        assert failures[0]["errorMessage"] == f"'{name}' must not be empty."
        assert client.get("/tasks").json() == []

    def test_missing_text_fields_are_all_reported(self, client):
        res = client.post("/tasks", json={"started": MIN_TS, "completed": MAX_TS})
        assert res.status_code == 400
        assert {f["propertyName"] for f in res.json()} == {"Title", "Details", "Author"}

    def test_schedule_order_is_not_checked_on_create(self, client):
        # Only updates enforce started < completed. One earlier variant of this
        # service applied the rule on create too and answered 400 here.
        res = client.post("/tasks", json=create_task_payload(started=MAX_TS, completed=MIN_TS))
        assert res.status_code == 201

    def test_duplicate_generated_id_is_bad_request(self, client, connection_factory):
        class FixedIdStore(SQLiteTaskStore):
            def _new_id(self) -> str:
                return "fixed-id"

        app.dependency_overrides[get_task_store] = lambda: FixedIdStore(connection_factory)

        first = client.post("/tasks", json=create_task_payload(title="First"))
        second = client.post("/tasks", json=create_task_payload(title="Second"))

        assert first.status_code == 201
        assert second.status_code == 400
        assert second.json() == [
            {
                "propertyName": "Id",
                "errorMessage": "A task with this id already exists",
                "attemptedValue": "fixed-id",
            }
        ]
        # The existing row was not overwritten
        assert client.get("/tasks/fixed-id").json()["title"] == "First"

    def test_malformed_timestamp_is_unprocessable(self, client):
        res = client.post("/tasks", json=create_task_payload(started="not-a-date"))
        assert res.status_code == 422
        body = res.json()
        assert body.get("error") == "ValidationError"
        assert body.get("message") == "Request validation failed"
        assert isinstance(body.get("detail"), list)

    def test_missing_timestamps_are_unprocessable(self, client):
        res = client.post("/tasks", json={"title": "t", "details": "d", "author": "a"})
        assert res.status_code == 422


class TestReadTasks:
    def test_get_returns_created_task(self, client):
        created = create(client, title="Read book", started="2025-01-31T09:00:00Z", completed="2025-02-01T17:30:00Z")

        res = client.get(f"/tasks/{created['id']}")

        assert res.status_code == 200
        fetched = res.json()
        assert fetched["id"] == created["id"]
        assert fetched["title"] == "Read book"
        assert fetched["details"] == created["details"]
        assert fetched["author"] == created["author"]
        for key in ["started", "completed", "lastModified"]:
            assert parse_ts(fetched[key]) == parse_ts(created[key])

    def test_get_unknown_id_is_not_found(self, client):
        res = client.get(f"/tasks/{uuid.uuid4()}")
        assert res.status_code == 404
        assert res.json()["detail"] == "Task not found"

    def test_list_empty(self, client):
        res = client.get("/tasks")
        assert res.status_code == 200
        assert res.json() == []

    def test_list_returns_every_task(self, client):
        ids = {create(client, title=f"Task {i}")["id"] for i in range(3)}

        res = client.get("/tasks")

        assert res.status_code == 200
        items = res.json()
        assert len(items) == 3
        assert {t["id"] for t in items} == ids
        for t in items:
            assert_task_shape(t)


class TestReplaceTask:
    def test_put_replaces_all_fields(self, client):
        created = create(client, title="Initial", details="A", author="B")
        started = datetime.now(timezone.utc).replace(microsecond=0)
        completed = started + timedelta(days=2)
        body = {
            "id": created["id"],
            "title": "Replaced",
            "details": "New details",
            "author": "Someone Else",
            "started": started.isoformat(),
            "completed": completed.isoformat(),
        }

        res = client.put(f"/tasks/{created['id']}", json=body)

        assert res.status_code == 200
        updated = res.json()
        assert updated["id"] == created["id"]
        assert updated["title"] == "Replaced"
        assert updated["details"] == "New details"
        assert updated["author"] == "Someone Else"
        assert parse_ts(updated["started"]) == started
        assert parse_ts(updated["completed"]) == completed
        assert parse_ts(updated["lastModified"]) >= parse_ts(created["lastModified"])

        fetched = client.get(f"/tasks/{created['id']}").json()
        assert fetched["title"] == "Replaced"
        assert parse_ts(fetched["lastModified"]) == parse_ts(updated["lastModified"])

    def test_put_leaves_other_tasks_alone(self, client):
        target = create(client, title="Target")
        bystander = create(client, title="Bystander")

        res = client.put(f"/tasks/{target['id']}", json=create_task_payload(title="Changed"))

        assert res.status_code == 200
        assert client.get(f"/tasks/{bystander['id']}").json()["title"] == "Bystander"

    def test_put_started_after_completed_is_bad_request(self, client):
        created = create(client)
        now = datetime.now(timezone.utc)
        body = create_task_payload(started=now.isoformat(), completed=(now - timedelta(days=5)).isoformat())

        res = client.put(f"/tasks/{created['id']}", json=body)

        assert res.status_code == 400
        failures = res.json()
        assert [f["propertyName"] for f in failures] == ["Started"]
        assert failures[0]["errorMessage"] == "'Started' must be less than 'Completed'."

    def test_put_equal_started_and_completed_is_bad_request(self, client):
        created = create(client)
        res = client.put(
            f"/tasks/{created['id']}",
            json=create_task_payload(started="2025-01-01T00:00:00Z", completed="2025-01-01T00:00:00Z"),
        )
        assert res.status_code == 400

    def test_put_empty_title_is_bad_request(self, client):
        created = create(client)
        res = client.put(f"/tasks/{created['id']}", json=create_task_payload(title=" "))
        assert res.status_code == 400
        assert res.json()[0]["propertyName"] == "Title"
        assert client.get(f"/tasks/{created['id']}").json()["title"] == "Test Title"

    def test_put_unknown_id_is_not_found(self, client):
        res = client.put(f"/tasks/{uuid.uuid4()}", json=create_task_payload())
        assert res.status_code == 404
        assert res.json()["detail"] == "Task not found"

    def test_put_unknown_id_is_not_found_even_when_invalid(self, client):
        res = client.put(f"/tasks/{uuid.uuid4()}", json=create_task_payload(title="", started=MAX_TS, completed=MIN_TS))
        assert res.status_code == 404

    def test_path_id_wins_over_body_id(self, client):
        # The path id is authoritative. One earlier variant of this service
        # answered 404 whenever the body id differed from the path id.
        created = create(client)

        res = client.put(f"/tasks/{created['id']}", json=create_task_payload(id="something-else", title="Renamed"))

        assert res.status_code == 200
        assert res.json()["id"] == created["id"]
        assert res.json()["title"] == "Renamed"
        assert client.get("/tasks/something-else").status_code == 404


class TestDeleteTask:
    def test_delete_task(self, client):
        created = create(client, title="ToDelete")

        res_del = client.delete(f"/tasks/{created['id']}")
        assert res_del.status_code == 204
        assert res_del.text == ""

        assert client.get(f"/tasks/{created['id']}").status_code == 404
        res_again = client.delete(f"/tasks/{created['id']}")
        assert res_again.status_code == 404
        assert res_again.json()["detail"] == "Task not found"

    def test_delete_unknown_id_is_not_found(self, client):
        create(client)
        res = client.delete(f"/tasks/{uuid.uuid4()}")
        assert res.status_code == 404
        assert len(client.get("/tasks").json()) == 1


class TestStartup:
    def test_lifespan_creates_table(self, tmp_path, monkeypatch):
        db_path = tmp_path / "nested" / "startup.db"
        monkeypatch.setenv("DATABASE_CONNECTION_STRING", f"Data Source={db_path}")

        with TestClient(app) as c:
            res = c.post("/tasks", json=create_task_payload())
            assert res.status_code == 201
            assert c.get(f"/tasks/{res.json()['id']}").status_code == 200

        assert db_path.exists()
