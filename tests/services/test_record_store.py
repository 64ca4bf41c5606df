import uuid
from datetime import datetime, timezone

import pytest

from flexstore.errors import AuthenticationRequired, Forbidden, InvalidInput, NotFound
from flexstore.models.activity_log import ActivityAction, ActivityLog
from flexstore.services.audit_log import AuditLog
from flexstore.services.record_store import RecordStore
from flexstore.services.schema_registry import FieldSpec, SchemaRegistry


@pytest.fixture
def registry(db, settings):
    return SchemaRegistry(db, AuditLog(db, settings))


@pytest.fixture
def store(db, settings):
    return RecordStore(db, AuditLog(db, settings))


@pytest.fixture
def tasks(registry, admin):
    database = registry.create_database(admin, "Tasks")
    registry.add_field(admin, database.id, FieldSpec(name="Title", type="text"))
    registry.add_field(admin, database.id, FieldSpec(name="Points", type="number"))
    return registry.add_field(
        admin, database.id, FieldSpec(name="Tags", type="multi-select", options=["a", "b"])
    )


def test_create_record_keeps_only_defined_fields(store, tasks, editor):
    record = store.create_record(
        editor,
        tasks.id,
        {"Title": "Write tests", "Points": 3, "Owner": "nobody"},
    )

    assert record.values == {"Title": "Write tests", "Points": 3}
    assert record.tenant_id == editor.tenant_id
    assert record.database_id == tasks.id
    assert record.is_deleted is False


def test_create_record_copies_values_verbatim_without_type_checks(store, tasks, editor):
    record = store.create_record(
        editor, tasks.id, {"Points": "not a number", "Tags": ["a", "zzz"], "Title": None}
    )

    assert record.values == {"Title": None, "Points": "not a number", "Tags": ["a", "zzz"]}


def test_create_record_normalizes_timestamps(store, registry, admin, editor):
    database = registry.create_database(admin, "Events")
    registry.add_field(admin, database.id, FieldSpec(name="At", type="date"))

    when = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
    record = store.create_record(editor, database.id, {"At": when})

    assert record.values == {"At": "2024-05-01T12:30:00+00:00"}


def test_create_record_rejects_unsupported_value(store, tasks, editor):
    with pytest.raises(InvalidInput):
        store.create_record(editor, tasks.id, {"Title": {"nested": "object"}})


def test_create_record_in_unknown_foreign_or_deleted_database(store, registry, tasks, admin, other_admin):
    with pytest.raises(NotFound):
        store.create_record(admin, uuid.uuid4(), {"Title": "x"})
    with pytest.raises(NotFound):
        store.create_record(other_admin, tasks.id, {"Title": "x"})

    registry.delete_database(admin, tasks.id)
    with pytest.raises(NotFound):
        store.create_record(admin, tasks.id, {"Title": "x"})


def test_update_record_merges_and_accepts_undefined_keys(store, tasks, editor):
    record = store.create_record(editor, tasks.id, {"Title": "Draft", "Points": 1, "Owner": "x"})
    assert "Owner" not in record.values

    updated = store.update_record(editor, record.id, {"Points": 5, "Owner": "alice"})

    assert updated.values == {"Title": "Draft", "Points": 5, "Owner": "alice"}


def test_update_record_never_removes_keys(store, tasks, editor):
    record = store.create_record(editor, tasks.id, {"Title": "Draft", "Points": 1})

    updated = store.update_record(editor, record.id, {})

    assert updated.values == {"Title": "Draft", "Points": 1}


def test_update_record_refreshes_updated_at(store, tasks, editor):
    record = store.create_record(editor, tasks.id, {"Title": "Draft"})
    first = record.updated_at

    updated = store.update_record(editor, record.id, {"Title": "Final"})

    assert updated.updated_at >= first
    assert updated.created_at == record.created_at


@pytest.mark.parametrize("key", ["", "a.b", "$set", 'x"y', "back\\slash"])
def test_update_record_rejects_unsafe_keys(store, tasks, editor, key):
    record = store.create_record(editor, tasks.id, {"Title": "Draft"})

    with pytest.raises(InvalidInput):
        store.update_record(editor, record.id, {key: "value"})


def test_delete_record_soft_deletes(store, db, tasks, editor):
    record = store.create_record(editor, tasks.id, {"Title": "Draft"})

    store.delete_record(editor, record.id)

    db.refresh(record)
    assert record.is_deleted is True
    assert store.get_record(editor, record.id) is None

    with pytest.raises(NotFound):
        store.delete_record(editor, record.id)
    with pytest.raises(NotFound):
        store.update_record(editor, record.id, {"Title": "Back"})


def test_get_record_stays_visible_after_database_deletion(store, registry, tasks, admin, editor):
    record = store.create_record(editor, tasks.id, {"Title": "Draft"})

    registry.delete_database(admin, tasks.id)

    assert store.get_record(editor, record.id).id == record.id


def test_other_tenant_cannot_touch_record(store, tasks, editor, other_admin):
    record = store.create_record(editor, tasks.id, {"Title": "Private"})

    assert store.get_record(other_admin, record.id) is None
    with pytest.raises(NotFound):
        store.update_record(other_admin, record.id, {"Title": "Hacked"})
    with pytest.raises(NotFound):
        store.delete_record(other_admin, record.id)

    assert store.get_record(editor, record.id).values == {"Title": "Private"}


def test_viewer_cannot_mutate_records(store, db, tasks, editor, viewer):
    record = store.create_record(editor, tasks.id, {"Title": "Draft"})
    before = db.query(ActivityLog).count()

    with pytest.raises(Forbidden):
        store.create_record(viewer, tasks.id, {"Title": "x"})
    with pytest.raises(Forbidden):
        store.update_record(viewer, record.id, {"Title": "x"})
    with pytest.raises(Forbidden):
        store.delete_record(viewer, record.id)

    assert db.query(ActivityLog).count() == before
    assert store.get_record(viewer, record.id) is not None


def test_anonymous_record_access(store, tasks):
    with pytest.raises(AuthenticationRequired):
        store.get_record(None, uuid.uuid4())
    with pytest.raises(AuthenticationRequired):
        store.create_record(None, tasks.id, {"Title": "x"})


def test_each_record_mutation_logs_one_entry(store, db, tasks, editor):
    def count(action):
        return db.query(ActivityLog).filter(
            ActivityLog.action == action.value,
            ActivityLog.tenant_id == editor.tenant_id,
            ActivityLog.user_id == editor.user_id,
        ).count()

    record = store.create_record(editor, tasks.id, {"Title": "Draft"})
    assert count(ActivityAction.CREATE_RECORD) == 1

    store.update_record(editor, record.id, {"Title": "Final"})
    assert count(ActivityAction.UPDATE_RECORD) == 1

    store.delete_record(editor, record.id)
    assert count(ActivityAction.DELETE_RECORD) == 1
