from __future__ import annotations

import json
import os
from datetime import date, datetime, timezone
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import pytest
import requests
from requests.adapters import BaseAdapter

from asana_sorter.asana_api.client import (
    TASK_FIELDS,
    AsanaAPIError,
    AsanaClient,
    AsanaTransportError,
    Deadline,
    DeadlineExceeded,
    ResponseParseError,
)
from asana_sorter.asana_api.data_models import TaskCategory
from asana_sorter.asana_api.snapshot import REPLAY, SnapshotAdapter, build_response, snapshot_mode
from asana_sorter.commands.sort_command import organize_tasks
from asana_sorter.utils.config import SectionConfig

SNAPSHOT_DIR = Path(__file__).parent / "snapshots"
API_PREFIX = "/api/1.0"


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.t = start

    def __call__(self) -> float:
        return self.t


class CannedAdapter(BaseAdapter):
    """Answers from a ``{(method, path): (status, body)}`` table and keeps every request."""

    def __init__(self, responses=None, exc=None):
        super().__init__()
        self.responses = responses or {}
        self.exc = exc
        self.requests = []
        self.timeouts = []

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.requests.append(request)
        self.timeouts.append(timeout)
        if self.exc is not None:
            raise self.exc
        path = urlsplit(request.url).path[len(API_PREFIX):]
        status, body = self.responses[(request.method, path)]
        return build_response(request, {"status_code": status, "body": body, "headers": {}})

    def close(self):
        pass


def _client(adapter, deadline=None, token="dummy_token") -> AsanaClient:
    session = requests.Session()
    session.mount("https://", adapter)
    return AsanaClient(token, session=session, deadline=deadline)


@pytest.fixture
def replay_client():
    mode = snapshot_mode()
    token = os.getenv("ASANA_ACCESS_TOKEN", "") if mode != REPLAY else "dummy_token"
    if not token:
        pytest.skip("ASANA_ACCESS_TOKEN is required to record snapshots")
    return _client(SnapshotAdapter(SNAPSHOT_DIR, mode), token=token)


class TestReplay:
    def test_current_user(self, replay_client):
        user = replay_client.get_current_user()
        assert (user.gid, user.name) == ("1201", "Dana Example")

    def test_workspaces(self, replay_client):
        names = [w.name for w in replay_client.get_workspaces()]
        assert names == ["Example Co", "Personal Projects"]

    def test_user_task_list(self, replay_client):
        utl = replay_client.get_user_task_list("1201", "1301")
        assert utl.gid == "1401"
        assert utl.owner.gid == "1201"
        assert utl.workspace.gid == "1301"

    def test_sections(self, replay_client):
        sections = replay_client.get_sections_for_project("1401")
        assert [(s.gid, s.name) for s in sections] == [
            ("1501", "Recently assigned"),
            ("1502", "Overdue"),
            ("1503", "Waiting For"),
        ]

    def test_tasks_are_parsed(self, replay_client):
        tasks = replay_client.get_tasks_from_user_task_list("1401")
        assert [t.gid for t in tasks] == ["1601", "1602", "1603"]

        expense, review, vendor = tasks
        assert expense.due_on == date(2024, 3, 13)
        assert expense.due_at is None
        assert expense.notes == "Receipts are in the shared drive"
        assert expense.assignee_section.name == "Overdue"
        assert review.due_at == datetime(2024, 3, 20, 17, 0, tzinfo=timezone.utc)
        assert vendor.due_on is None
        assert vendor.completed is False

    def test_tasks_in_section(self, replay_client):
        tasks = replay_client.get_tasks_in_section("1503")
        assert [t.name for t in tasks] == ["Vendor contract reply"]

    def test_create_section(self, replay_client):
        section = replay_client.create_section("1401", "Due today")
        assert (section.gid, section.name) == ("1504", "Due today")

    def test_move_task(self, replay_client):
        assert replay_client.move_task_to_section("1504", "1601") is None

    def test_unrecorded_request_is_a_transport_error(self, replay_client):
        if snapshot_mode() != REPLAY:
            pytest.skip("replay only")
        with pytest.raises(AsanaTransportError, match="no snapshot found"):
            replay_client.get_sections_for_project("9999")

    def test_organize_end_to_end(self, replay_client):
        if snapshot_mode() != REPLAY:
            pytest.skip("replay only")
        config = SectionConfig(
            due_this_week="Recently assigned",
            due_later="Recently assigned",
            no_date="Recently assigned",
            ignored_sections=["Waiting For"],
        )
        now = datetime(2024, 3, 13, 9, 0, tzinfo=timezone.utc)

        categorized = organize_tasks(replay_client, config, dry_run=False, now=now)

        assert [t.gid for t in categorized[TaskCategory.due_today]] == ["1601"]
        assert [t.gid for t in categorized[TaskCategory.due_this_week]] == ["1602"]
        assert [t.gid for t in categorized[TaskCategory.no_date]] == ["1603"]


class TestRequests:
    def test_headers_and_params(self):
        adapter = CannedAdapter({("GET", "/user_task_lists/1401/tasks"): (200, '{"data": []}')})
        client = _client(adapter, token="secret-token")

        assert client.get_tasks_from_user_task_list("1401") == []

        req = adapter.requests[0]
        assert req.headers["Authorization"] == "Bearer secret-token"
        assert req.headers["Accept"] == "application/json"
        query = parse_qs(urlsplit(req.url).query)
        assert query["completed_since"] == ["now"]
        assert query["opt_fields"] == [TASK_FIELDS]

    def test_user_task_list_sends_workspace(self):
        body = '{"data": {"gid": "1401", "name": "My Tasks"}}'
        adapter = CannedAdapter({("GET", "/users/1201/user_task_list"): (200, body)})
        _client(adapter).get_user_task_list("1201", "1301")
        assert parse_qs(urlsplit(adapter.requests[0].url).query) == {"workspace": ["1301"]}

    def test_create_section_body(self):
        adapter = CannedAdapter({("POST", "/projects/1401/sections"): (201, '{"data": {"gid": "9", "name": "Later"}}')})
        section = _client(adapter).create_section("1401", "Later")
        req = adapter.requests[0]
        assert json.loads(req.body) == {"data": {"name": "Later"}}
        assert req.headers["Content-Type"] == "application/json"
        assert section.gid == "9"

    def test_move_body(self):
        adapter = CannedAdapter({("POST", "/sections/77/addTask"): (200, '{"data": {}}')})
        _client(adapter).move_task_to_section("77", "1601")
        assert json.loads(adapter.requests[0].body) == {"data": {"task": "1601"}}

    def test_non_2xx_raises_api_error_with_context(self):
        body = '{"errors":[{"message":"project: Not a recognized ID: 42"}]}'
        adapter = CannedAdapter({("GET", "/projects/42/sections"): (404, body)})

        with pytest.raises(AsanaAPIError) as excinfo:
            _client(adapter).get_sections_for_project("42")

        err = excinfo.value
        assert err.status_code == 404
        assert err.body == body
        assert err.path == "/projects/42/sections"
        assert str(err) == f"failed to get sections for project: API request failed with status 404: {body}"

    def test_invalid_json_is_parse_error(self):
        adapter = CannedAdapter({("GET", "/users/me"): (200, "<html>oops</html>")})
        with pytest.raises(ResponseParseError, match="failed to get current user"):
            _client(adapter).get_current_user()

    def test_unexpected_shape_is_parse_error(self):
        adapter = CannedAdapter({("GET", "/workspaces"): (200, '{"data": {"gid": "1"}}')})
        with pytest.raises(ResponseParseError, match="failed to get workspaces"):
            _client(adapter).get_workspaces()

    def test_network_failure_is_transport_error(self):
        adapter = CannedAdapter(exc=requests.ConnectionError("connection refused"))
        with pytest.raises(AsanaTransportError, match="HTTP request failed"):
            _client(adapter).get_current_user()


class TestDeadline:
    def test_no_timeout_never_expires(self):
        deadline = Deadline()
        assert deadline.remaining() is None
        assert not deadline.expired
        assert deadline.clamp(10) == 10
        deadline.check()

    def test_expires_with_clock(self):
        clock = FakeClock()
        deadline = Deadline(5, clock=clock)
        assert deadline.remaining() == 5
        clock.t += 3
        assert deadline.clamp(10) == 2
        clock.t += 2
        assert deadline.expired
        with pytest.raises(DeadlineExceeded, match="deadline exceeded"):
            deadline.check()

    def test_cancel(self):
        deadline = Deadline(60)
        deadline.cancel()
        assert deadline.cancelled and deadline.expired
        with pytest.raises(DeadlineExceeded, match="cancelled"):
            deadline.check()

    def test_expired_deadline_sends_nothing(self):
        clock = FakeClock()
        adapter = CannedAdapter({("GET", "/users/me"): (200, '{"data": {"gid": "1"}}')})
        client = _client(adapter, deadline=Deadline(1, clock=clock))
        clock.t += 2

        with pytest.raises(DeadlineExceeded) as excinfo:
            client.get_current_user()

        assert adapter.requests == []
        assert str(excinfo.value).startswith("failed to get current user")

    def test_request_timeout_is_clamped(self):
        clock = FakeClock()
        adapter = CannedAdapter({("GET", "/users/me"): (200, '{"data": {"gid": "1"}}')})
        client = _client(adapter, deadline=Deadline(4, clock=clock))
        client.get_current_user()
        assert adapter.timeouts == [4]

    def test_timeout_after_expiry_is_deadline_exceeded(self):
        clock = FakeClock()
        deadline = Deadline(1, clock=clock)

        class SlowAdapter(CannedAdapter):
            def send(self, request, **kwargs):
                clock.t += 5
                raise requests.Timeout("read timed out")

        with pytest.raises(DeadlineExceeded):
            _client(SlowAdapter(), deadline=deadline).get_workspaces()

    def test_clamp_refuses_an_exhausted_deadline(self):
        clock = FakeClock()
        deadline = Deadline(1, clock=clock)
        clock.t += 1
        with pytest.raises(DeadlineExceeded):
            deadline.clamp(10)

    def test_expiry_between_check_and_send_is_deadline_exceeded(self):
        class SteppingClock(FakeClock):
            def __call__(self) -> float:
                now = self.t
                self.t += 0.6
                return now

        adapter = CannedAdapter({("GET", "/users/me"): (200, '{"data": {"gid": "1"}}')})
        client = _client(adapter, deadline=Deadline(1, clock=SteppingClock()))

        with pytest.raises(DeadlineExceeded) as excinfo:
            client.get_current_user()

        assert adapter.requests == []
        assert str(excinfo.value).startswith("failed to get current user")
