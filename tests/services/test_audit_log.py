import uuid
from unittest.mock import MagicMock, patch

import pytest

from flexstore.errors import AuthenticationRequired, Conflict
from flexstore.models.activity_log import ActivityAction, ActivityLog
from flexstore.services.audit_log import AuditLog
from flexstore.services.schema_registry import SchemaRegistry


@pytest.fixture
def audit(db, settings):
    return AuditLog(db, settings)


def test_append_persists_entry(audit, admin):
    entry = audit.append(
        admin.tenant_id, admin.user_id, ActivityAction.CREATE_RECORD, {"record_id": "r-1"}
    )

    assert entry.id is not None
    assert entry.action == "CREATE_RECORD"
    assert entry.details == {"record_id": "r-1"}
    assert entry.created_at is not None


def test_append_failure_is_swallowed(admin):
    db = MagicMock()
    db.commit.side_effect = RuntimeError("disk full")

    with patch("flexstore.services.audit_log.audit_failures_total") as failures:
        result = AuditLog(db).append(admin.tenant_id, admin.user_id, ActivityAction.DELETE_RECORD)

    assert result is None
    db.rollback.assert_called_once()
    failures.inc.assert_called_once()


def test_log_action_stringifies_ids(audit, db, admin):
    database_id = uuid.uuid4()

    audit.log_action(admin, ActivityAction.UPDATE_DATABASE, database_id=database_id, database_name="X")

    entry = db.query(ActivityLog).one()
    assert entry.details == {"database_id": str(database_id), "database_name": "X"}
    assert entry.user_id == admin.user_id


def test_list_is_newest_first_and_tenant_scoped(audit, admin, editor, other_admin):
    audit.append(admin.tenant_id, admin.user_id, ActivityAction.CREATE_DATABASE)
    audit.append(editor.tenant_id, editor.user_id, ActivityAction.CREATE_RECORD)
    audit.append(other_admin.tenant_id, other_admin.user_id, ActivityAction.CREATE_DATABASE)

    entries = audit.list_for_tenant(editor)

    assert [e.action for e in entries] == ["CREATE_RECORD", "CREATE_DATABASE"]
    assert all(e.tenant_id == admin.tenant_id for e in entries)


def test_list_default_limit_and_paging(audit, admin, viewer):
    for _ in range(30):
        audit.append(admin.tenant_id, admin.user_id, ActivityAction.UPDATE_RECORD)

    first = audit.list_for_tenant(viewer)
    second = audit.list_for_tenant(viewer, page=2)

    assert len(first) == 25
    assert len(second) == 5
    assert not {e.id for e in first} & {e.id for e in second}


def test_list_requires_authentication(audit):
    with pytest.raises(AuthenticationRequired):
        audit.list_for_tenant(None)


def test_failed_mutation_writes_no_entry(audit, db, admin):
    registry = SchemaRegistry(db, audit)
    registry.create_database(admin, "Tasks")

    with pytest.raises(Conflict):
        registry.create_database(admin, "Tasks")

    assert len(audit.list_for_tenant(admin)) == 1
