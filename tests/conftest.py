from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from asana_sorter.asana_api.data_models import AssigneeSection, Section, Task
from asana_sorter.utils.config import SectionConfig

from .fakes import FakeAsanaClient


@pytest.fixture
def now() -> datetime:
    """A fixed, timezone-aware "now" in the middle of the afternoon."""
    return datetime(2024, 3, 13, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def today(now) -> date:
    return now.date()


@pytest.fixture
def make_task():
    counter = {"n": 0}

    def _make(name: str = "", due_on=None, section: str = "", section_gid: str = "", due_at=None) -> Task:
        counter["n"] += 1
        gid = f"t{counter['n']}"
        return Task(
            gid=gid,
            name=name or f"Task {gid}",
            due_on=due_on,
            due_at=due_at,
            assignee_section=AssigneeSection(gid=section_gid, name=section),
        )

    return _make


@pytest.fixture
def config() -> SectionConfig:
    return SectionConfig()


@pytest.fixture
def default_sections(config) -> list:
    return [
        Section(gid="s-overdue", name=config.overdue),
        Section(gid="s-today", name=config.due_today),
        Section(gid="s-week", name=config.due_this_week),
        Section(gid="s-later", name=config.due_later),
        Section(gid="s-nodate", name=config.no_date),
    ]


@pytest.fixture
def fake_client(default_sections) -> FakeAsanaClient:
    return FakeAsanaClient(sections=default_sections)


