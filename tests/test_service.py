from itertools import count

import pytest

from tasklist_api.errors import NotFoundError, ValidationError
from tasklist_api.models import Category, Priority
from tasklist_api.service import SEED_TODOS, TodoCollectionService, build_service


class TestCreate:
    def test_defaults(self, service, clock):
        todo = service.create({"title": "Buy milk"})
        assert todo["id"] == "todo-1"
        assert todo["title"] == "Buy milk"
        assert todo["completed"] is False
        assert todo["category"] is Category.OTHER
        assert todo["priority"] is Priority.MEDIUM
        assert todo["created_at"].tzinfo is not None
        assert todo["updated_at"] is None

    def test_title_is_trimmed(self, service):
        todo = service.create({"title": "   Walk the dog  \n"})
        assert todo["title"] == "Walk the dog"

    def test_title_markup_is_escaped(self, service):
        todo = service.create({"title": "<script>alert('x')</script> & \"more\""})
        assert todo["title"] == (
            "&lt;script&gt;alert(&#x27;x&#x27;)&lt;&#x2F;script&gt; &amp; &quot;more&quot;"
        )

    def test_slash_backslash_and_backtick_are_escaped(self, service):
        todo = service.create({"title": "a/b \\ `c`"})
        assert todo["title"] == "a&#x2F;b &#x5C; &#96;c&#96;"

    def test_length_is_checked_before_escaping(self, service):
        todo = service.create({"title": "/" * 200})
        assert todo["title"] == "&#x2F;" * 200

    def test_explicit_fields(self, service):
        todo = service.create({"title": "Run", "completed": True, "category": "health", "priority": "urgent"})
        assert todo["completed"] is True
        assert todo["category"] is Category.HEALTH
        assert todo["priority"] is Priority.URGENT

    def test_title_of_exactly_200_chars_after_trim(self, service):
        title = "a" * 200
        todo = service.create({"title": f"  {title}  "})
        assert todo["title"] == title

    @pytest.mark.parametrize("title", ["", "   ", "a" * 201])
    def test_invalid_title_lengths(self, service, title):
        with pytest.raises(ValidationError) as excinfo:
            service.create({"title": title})
        [violation] = excinfo.value.violations
        assert violation.field == "title"
        assert violation.message == "Title must be between 1 and 200 characters"
        assert violation.value == title

    def test_missing_title(self, service):
        with pytest.raises(ValidationError) as excinfo:
            service.create({"category": "work"})
        [violation] = excinfo.value.violations
        assert violation.field == "title"
        assert violation.value is None

    def test_non_string_title(self, service):
        with pytest.raises(ValidationError) as excinfo:
            service.create({"title": 42})
        assert excinfo.value.violations[0].field == "title"
        assert excinfo.value.violations[0].value == 42

    def test_completed_must_be_boolean(self, service):
        with pytest.raises(ValidationError) as excinfo:
            service.create({"title": "x", "completed": "maybe"})
        [violation] = excinfo.value.violations
        assert violation.field == "completed"
        assert violation.message == "Completed must be a boolean value"

    @pytest.mark.parametrize("value", ["yes", "on", "t", "y", "True", 2, None, 1.5])
    def test_completed_rejects_loose_booleans(self, service, value):
        with pytest.raises(ValidationError) as excinfo:
            service.create({"title": "x", "completed": value})
        [violation] = excinfo.value.violations
        assert violation.field == "completed"
        assert violation.value == value

    @pytest.mark.parametrize(
        "value,expected",
        [(True, True), (False, False), ("true", True), ("false", False), ("1", True), ("0", False), (1, True), (0, False)],
    )
    def test_completed_accepts_boolean_forms(self, service, value, expected):
        assert service.create({"title": "x", "completed": value})["completed"] is expected

    def test_unknown_category_lists_valid_set(self, service):
        with pytest.raises(ValidationError) as excinfo:
            service.create({"title": "x", "category": "hobby"})
        [violation] = excinfo.value.violations
        assert violation.field == "category"
        assert violation.value == "hobby"
        assert violation.message == "Category must be one of: personal, work, learning, project, health, other"

    def test_unknown_priority(self, service):
        with pytest.raises(ValidationError) as excinfo:
            service.create({"title": "x", "priority": "critical"})
        assert excinfo.value.violations[0].message == "Priority must be one of: low, medium, high, urgent"

    def test_violations_reported_per_field_in_order(self, service):
        with pytest.raises(ValidationError) as excinfo:
            service.create({"title": "", "category": "nope", "priority": "nope"})
        assert [v.field for v in excinfo.value.violations] == ["title", "category", "priority"]
        assert len(service) == 0

    def test_non_object_payload(self, service):
        with pytest.raises(ValidationError) as excinfo:
            service.create(["title"])  # type: ignore[arg-type]
        assert excinfo.value.violations[0].field == "body"

    def test_ids_are_unique(self, service):
        ids = {service.create({"title": f"t{i}"})["id"] for i in range(20)}
        assert len(ids) == 20

    def test_colliding_id_is_regenerated(self, clock):
        ids = iter(["a", "a", "b"])
        svc = TodoCollectionService(clock=clock, id_factory=lambda: next(ids))
        assert svc.create({"title": "first"})["id"] == "a"
        assert svc.create({"title": "second"})["id"] == "b"


class TestQueries:
    def test_list_preserves_insertion_order(self, service):
        for title in ["c", "a", "b"]:
            service.create({"title": title})
        assert [t["title"] for t in service.list()] == ["c", "a", "b"]

    def test_returned_records_are_copies(self, service):
        todo = service.create({"title": "original"})
        todo["title"] = "mutated"
        service.list()[0]["completed"] = True
        stored = service.get(todo["id"])
        assert stored["title"] == "original"
        assert stored["completed"] is False

    def test_get_unknown_id(self, service):
        with pytest.raises(NotFoundError):
            service.get("missing")

    def test_list_by_category(self, service):
        service.create({"title": "a", "category": "work"})
        service.create({"title": "b"})
        service.create({"title": "c", "category": "work"})
        assert [t["title"] for t in service.list_by_category("work")] == ["a", "c"]
        assert service.list_by_category("health") == []

    def test_list_by_unknown_category(self, service):
        with pytest.raises(ValidationError) as excinfo:
            service.list_by_category("hobby")
        assert excinfo.value.violations[0].field == "category"

    def test_list_by_priority(self, service):
        service.create({"title": "a", "priority": "high"})
        service.create({"title": "b"})
        assert [t["title"] for t in service.list_by_priority("high")] == ["a"]
        assert [t["title"] for t in service.list_by_priority("medium")] == ["b"]

    def test_list_by_unknown_priority(self, service):
        with pytest.raises(ValidationError):
            service.list_by_priority("HIGH")


class TestStats:
    def test_empty_collection_is_zero_filled(self, service):
        stats = service.stats()
        assert stats["total"] == stats["completed"] == stats["pending"] == 0
        assert stats["by_category"] == {c: 0 for c in Category.values()}
        assert stats["by_priority"] == {p: 0 for p in Priority.values()}

    def test_counts_add_up(self, service):
        service.create({"title": "a", "category": "work", "priority": "high", "completed": True})
        service.create({"title": "b", "category": "work"})
        service.create({"title": "c", "priority": "low"})
        stats = service.stats()
        assert stats["total"] == 3
        assert stats["completed"] == 1
        assert stats["pending"] == 2
        assert stats["total"] == stats["completed"] + stats["pending"]
        assert sum(stats["by_category"].values()) == stats["total"]
        assert sum(stats["by_priority"].values()) == stats["total"]
        assert stats["by_category"]["work"] == 2
        assert stats["by_category"]["other"] == 1
        assert stats["by_priority"] == {"low": 1, "medium": 1, "high": 1, "urgent": 0}

    def test_stats_reflect_later_mutations(self, service):
        todo = service.create({"title": "a"})
        assert service.stats()["completed"] == 0
        service.update(todo["id"], {"completed": True})
        assert service.stats()["completed"] == 1
        service.delete(todo["id"])
        assert service.stats()["total"] == 0


class TestUpdate:
    def test_complete_sets_updated_at_after_created_at(self, service):
        todo = service.create({"title": "a"})
        service.update(todo["id"], {"completed": True})
        stored = service.get(todo["id"])
        assert stored["completed"] is True
        assert stored["updated_at"] is not None
        assert stored["updated_at"] > stored["created_at"]

    def test_title_is_trimmed_but_not_escaped(self, service):
        todo = service.create({"title": "a"})
        updated = service.update(todo["id"], {"title": "  <b>bold</b>  "})
        assert updated["title"] == "<b>bold</b>"

    def test_fields_absent_from_patch_are_unchanged(self, service):
        todo = service.create({"title": "a", "category": "work", "priority": "high"})
        updated = service.update(todo["id"], {"completed": True, "category": "health"})
        assert updated["title"] == "a"
        assert updated["category"] is Category.WORK
        assert updated["priority"] is Priority.HIGH
        assert updated["created_at"] == todo["created_at"]

    def test_empty_patch_still_stamps_updated_at(self, service):
        todo = service.create({"title": "a"})
        updated = service.update(todo["id"], {})
        assert updated["title"] == "a"
        assert updated["updated_at"] is not None

    @pytest.mark.parametrize("value,expected", [(1, True), ("yes", True), (0, False), ("", False), (None, False)])
    def test_completed_is_coerced(self, service, value, expected):
        todo = service.create({"title": "a", "completed": not expected})
        assert service.update(todo["id"], {"completed": value})["completed"] is expected

    @pytest.mark.parametrize("title", ["", "   ", None, 7])
    def test_empty_title_rejected(self, service, title):
        todo = service.create({"title": "keep me"})
        with pytest.raises(ValidationError) as excinfo:
            service.update(todo["id"], {"title": title})
        assert excinfo.value.message == "Title cannot be empty"
        stored = service.get(todo["id"])
        assert stored["title"] == "keep me"
        assert stored["updated_at"] is None

    def test_unknown_id(self, service):
        with pytest.raises(NotFoundError):
            service.update("missing", {"completed": True})

    def test_unknown_id_wins_over_invalid_patch(self, service):
        with pytest.raises(NotFoundError):
            service.update("missing", {"title": ""})


class TestDelete:
    def test_delete_returns_prior_state(self, service):
        todo = service.create({"title": "a"})
        removed = service.delete(todo["id"])
        assert removed == todo

    def test_deleted_id_is_gone(self, service):
        keep = service.create({"title": "keep"})
        todo = service.create({"title": "a"})
        service.delete(todo["id"])
        with pytest.raises(NotFoundError):
            service.get(todo["id"])
        assert [t["id"] for t in service.list()] == [keep["id"]]
        service.create({"title": "b"})
        assert todo["id"] not in [t["id"] for t in service.list()]

    def test_delete_unknown_id(self, service):
        with pytest.raises(NotFoundError):
            service.delete("missing")

    def test_delete_twice(self, service):
        todo = service.create({"title": "a"})
        service.delete(todo["id"])
        with pytest.raises(NotFoundError):
            service.delete(todo["id"])


class TestSeeding:
    def test_build_service_seeds_in_order(self):
        svc = build_service()
        todos = svc.list()
        assert [t["title"] for t in todos] == [r["title"] for r in SEED_TODOS]
        assert todos[0]["category"] is Category.LEARNING
        assert todos[0]["priority"] is Priority.HIGH
        assert todos[1]["category"] is Category.PROJECT
        assert all(t["completed"] is False for t in todos)

    def test_build_service_without_seed(self):
        assert len(build_service(seed=False)) == 0

    def test_reset(self, clock):
        ids = count()
        svc = build_service(clock=clock, id_factory=lambda: str(next(ids)))
        svc.reset()
        assert svc.list() == []
