import uuid

from flexstore.repositories.activity_log_repository import ActivityLogRepository


def test_create_and_list_newest_first(db, admin, other_admin):
    for action in ("CREATE_DATABASE", "CREATE_FIELD", "CREATE_RECORD"):
        ActivityLogRepository.create(db, tenant_id=admin.tenant_id, user_id=admin.user_id, action=action)
    ActivityLogRepository.create(
        db, tenant_id=other_admin.tenant_id, user_id=other_admin.user_id, action="CREATE_DATABASE"
    )

    entries = ActivityLogRepository.list_for_tenant(db, tenant_id=admin.tenant_id, offset=0, limit=10)

    assert [e.action for e in entries] == ["CREATE_RECORD", "CREATE_FIELD", "CREATE_DATABASE"]


def test_offset_and_limit(db, admin):
    for _ in range(5):
        ActivityLogRepository.create(db, tenant_id=admin.tenant_id, user_id=admin.user_id, action="UPDATE_RECORD")

    page = ActivityLogRepository.list_for_tenant(db, tenant_id=admin.tenant_id, offset=4, limit=10)

    assert len(page) == 1


def test_details_are_stored(db, admin):
    record_id = str(uuid.uuid4())
    entry = ActivityLogRepository.create(
        db,
        tenant_id=admin.tenant_id,
        user_id=admin.user_id,
        action="DELETE_RECORD",
        details={"record_id": record_id},
    )

    assert entry.details == {"record_id": record_id}
