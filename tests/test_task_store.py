"""Unit tests for tasks/store.py -- TaskStore.

Covers:
- create_task defaults status to pending and rejects unknown statuses/owners
- list_for_owner: owner scoping, title search, status filter, conjunction,
  newest-first ordering, LIKE wildcard escaping
- update_task only touches tasks with matching id AND owner
- delete_task owner scoping and admin override
- list_all_with_owners joins owner name/email, newest first
"""

import pytest

from core.errors import NotFound
from tasks.models import STATUS_COMPLETED, STATUS_IN_PROGRESS, STATUS_PENDING


@pytest.fixture
def alice(user_store):
    return user_store.create_user("Alice", "a@x.com", "secret1")


@pytest.fixture
def bob(user_store):
    return user_store.create_user("Bob", "b@x.com", "secret1")


class TestCreate:
    def test_defaults(self, task_store, alice) -> None:
        task = task_store.create_task(alice.id, "Write report")
        assert task.id is not None
        assert task.owner_id == alice.id
        assert task.status == STATUS_PENDING
        assert task.description is None
        assert task.created_at

    def test_none_status_means_pending(self, task_store, alice) -> None:
        assert task_store.create_task(alice.id, "T", status=None).status == STATUS_PENDING

    def test_round_trips_through_get(self, task_store, alice) -> None:
        task = task_store.create_task(alice.id, "T", description="details", status=STATUS_IN_PROGRESS)
        assert task_store.get_task(task.id) == task

    def test_unknown_status_rejected(self, task_store, alice) -> None:
        with pytest.raises(ValueError):
            task_store.create_task(alice.id, "T", status="done")

    def test_unknown_owner_raises_not_found(self, task_store) -> None:
        with pytest.raises(NotFound):
            task_store.create_task(999, "Orphan")


class TestListForOwner:
    def test_scoped_to_owner(self, task_store, alice, bob) -> None:
        task_store.create_task(alice.id, "Alice 1")
        task_store.create_task(bob.id, "Bob 1")
        titles = [t.title for t in task_store.list_for_owner(alice.id)]
        assert titles == ["Alice 1"]

    def test_newest_first(self, task_store, alice) -> None:
        ids = [task_store.create_task(alice.id, f"T{i}").id for i in range(5)]
        assert [t.id for t in task_store.list_for_owner(alice.id)] == list(reversed(ids))

    def test_status_filter_exact(self, task_store, alice) -> None:
        first = task_store.create_task(alice.id, "A", status=STATUS_COMPLETED)
        task_store.create_task(alice.id, "B", status=STATUS_PENDING)
        second = task_store.create_task(alice.id, "C", status=STATUS_COMPLETED)
        task_store.create_task(alice.id, "D", status=STATUS_IN_PROGRESS)

        result = task_store.list_for_owner(alice.id, status=STATUS_COMPLETED)
        assert [t.id for t in result] == [second.id, first.id]
        assert all(t.status == STATUS_COMPLETED for t in result)

    def test_title_search_substring(self, task_store, alice) -> None:
        task_store.create_task(alice.id, "Buy milk")
        task_store.create_task(alice.id, "Write report")
        assert [t.title for t in task_store.list_for_owner(alice.id, title_contains="milk")] == ["Buy milk"]

    def test_filters_are_a_conjunction(self, task_store, alice) -> None:
        task_store.create_task(alice.id, "Report draft", status=STATUS_PENDING)
        match = task_store.create_task(alice.id, "Report final", status=STATUS_COMPLETED)
        task_store.create_task(alice.id, "Groceries", status=STATUS_COMPLETED)

        result = task_store.list_for_owner(alice.id, title_contains="Report", status=STATUS_COMPLETED)
        assert [t.id for t in result] == [match.id]

    def test_search_wildcards_are_literal(self, task_store, alice) -> None:
        task_store.create_task(alice.id, "100% done")
        task_store.create_task(alice.id, "1000 lines")
        assert [t.title for t in task_store.list_for_owner(alice.id, title_contains="100%")] == ["100% done"]
        assert task_store.list_for_owner(alice.id, title_contains="_") == []

    def test_empty(self, task_store, alice) -> None:
        assert task_store.list_for_owner(alice.id) == []


class TestUpdate:
    def test_owner_can_update(self, task_store, alice) -> None:
        task = task_store.create_task(alice.id, "Old")
        assert task_store.update_task(task.id, alice.id, title="New", status=STATUS_COMPLETED) is True
        updated = task_store.get_task(task.id)
        assert updated.title == "New"
        assert updated.status == STATUS_COMPLETED
        assert updated.owner_id == alice.id

    def test_wrong_owner_rejected(self, task_store, alice, bob) -> None:
        task = task_store.create_task(alice.id, "Old")
        assert task_store.update_task(task.id, bob.id, title="Hijacked") is False
        assert task_store.get_task(task.id).title == "Old"

    def test_unknown_task(self, task_store, alice) -> None:
        assert task_store.update_task(999, alice.id, title="Nope") is False

    def test_unknown_field_rejected(self, task_store, alice) -> None:
        task = task_store.create_task(alice.id, "T")
        with pytest.raises(ValueError):
            task_store.update_task(task.id, alice.id, owner_id=2)

    def test_unknown_status_rejected(self, task_store, alice) -> None:
        task = task_store.create_task(alice.id, "T")
        with pytest.raises(ValueError):
            task_store.update_task(task.id, alice.id, status="archived")

    def test_no_fields_reports_existence(self, task_store, alice, bob) -> None:
        task = task_store.create_task(alice.id, "T")
        assert task_store.update_task(task.id, alice.id) is True
        assert task_store.update_task(task.id, bob.id) is False


class TestDelete:
    def test_owner_can_delete(self, task_store, alice) -> None:
        task = task_store.create_task(alice.id, "T")
        assert task_store.delete_task(task.id, owner_id=alice.id) is True
        assert task_store.get_task(task.id) is None

    def test_non_owner_cannot_delete(self, task_store, alice, bob) -> None:
        task = task_store.create_task(alice.id, "T")
        assert task_store.delete_task(task.id, owner_id=bob.id) is False
        assert task_store.get_task(task.id) is not None

    def test_admin_ignores_owner(self, task_store, alice, bob) -> None:
        task = task_store.create_task(alice.id, "T")
        assert task_store.delete_task(task.id, owner_id=bob.id, is_admin=True) is True
        assert task_store.get_task(task.id) is None

    def test_missing_owner_without_admin_matches_nothing(self, task_store, alice) -> None:
        task = task_store.create_task(alice.id, "T")
        assert task_store.delete_task(task.id) is False

    def test_unknown_task(self, task_store) -> None:
        assert task_store.delete_task(999, is_admin=True) is False


def test_list_all_with_owners(task_store, alice, bob) -> None:
    a = task_store.create_task(alice.id, "Alice's")
    b = task_store.create_task(bob.id, "Bob's")

    rows = task_store.list_all_with_owners()

    assert [r.task.id for r in rows] == [b.id, a.id]
    assert (rows[0].owner_name, rows[0].owner_email) == ("Bob", "b@x.com")
    assert (rows[1].owner_name, rows[1].owner_email) == ("Alice", "a@x.com")
