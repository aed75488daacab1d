"""Tests for the project SQL helpers with the DB calls stubbed out."""

import json

import pytest

from core import db
from projects import repository


class _Recorder:
    def __init__(self, result=None):
        self.result = result
        self.calls: list[tuple[str, tuple]] = []

    async def __call__(self, sql, *args):
        self.calls.append((sql, args))
        return self.result


@pytest.fixture
def fetch_one(monkeypatch):
    recorder = _Recorder()
    monkeypatch.setattr(db, "fetch_one", recorder)
    return recorder


async def test_get_project_is_owner_scoped_and_decodes_json(fetch_one):
    fetch_one.result = {
        "id": "p1",
        "owner_id": "u1",
        "name": "Resume",
        "template": "classic",
        "resume": json.dumps({"basics": {}}),
        "styles": json.dumps({"font": "Inter"}),
        "created_at": 1,
        "updated_at": 2,
    }

    row = await repository.get_project("p1", owner_id="u1")

    sql, args = fetch_one.calls[0]
    assert "owner_id = $2" in sql
    assert args == ("p1", "u1")
    assert row["resume"] == {"basics": {}}
    assert row["styles"] == {"font": "Inter"}


async def test_update_passes_json_and_returns_none_when_unmatched(fetch_one):
    row = await repository.update_project(
        "p1",
        owner_id="u2",
        name="n",
        template="t",
        resume={"a": 1},
        styles={"b": 2},
        updated_at=10,
    )

    sql, args = fetch_one.calls[0]
    assert row is None
    assert "GREATEST($7, updated_at + 1)" in sql
    assert args == ("p1", "u2", "n", "t", '{"a": 1}', '{"b": 2}', 10)


@pytest.mark.parametrize(
    "result, expected",
    [
        (None, None),
        ({"projects_metadata": None}, []),
        ({"projects_metadata": '[{"id": "p1"}]'}, [{"id": "p1"}]),
    ],
)
async def test_get_projects_metadata(fetch_one, result, expected):
    fetch_one.result = result

    assert await repository.get_projects_metadata("u1") == expected


async def test_set_projects_metadata_reports_missing_user(fetch_one):
    assert await repository.set_projects_metadata("ghost", []) is False

    _, args = fetch_one.calls[0]
    assert args == ("ghost", "[]")


async def test_delete_project(fetch_one):
    fetch_one.result = {"id": "p1"}

    assert await repository.delete_project("p1", owner_id="u1") is True
