import pytest

from flexstore.auth.permissions import (
    Permission,
    Role,
    get_role_permissions,
    has_permission,
)

READS = [Permission.READ_DATABASES, Permission.READ_RECORDS, Permission.READ_ACTIVITY]
RECORD_WRITES = [Permission.CREATE_RECORD, Permission.UPDATE_RECORD, Permission.DELETE_RECORD]
SCHEMA_WRITES = [
    Permission.CREATE_DATABASE,
    Permission.UPDATE_DATABASE,
    Permission.DELETE_DATABASE,
    Permission.MANAGE_FIELDS,
]


@pytest.mark.parametrize("permission", READS)
@pytest.mark.parametrize("role", ["Admin", "Editor", "Viewer"])
def test_every_role_can_read(role, permission):
    assert has_permission(role, permission)


@pytest.mark.parametrize("permission", RECORD_WRITES)
def test_record_writes_need_editor(permission):
    assert has_permission(Role.ADMIN, permission)
    assert has_permission(Role.EDITOR, permission)
    assert not has_permission(Role.VIEWER, permission)


@pytest.mark.parametrize("permission", SCHEMA_WRITES)
def test_schema_writes_are_admin_only(permission):
    assert has_permission("Admin", permission)
    assert not has_permission("Editor", permission)
    assert not has_permission("Viewer", permission)


@pytest.mark.parametrize("role", [None, "", "admin", "Owner"])
def test_unknown_role_has_nothing(role):
    assert get_role_permissions(role) == set()
    assert not has_permission(role, Permission.READ_RECORDS)


def test_admin_holds_every_permission():
    assert get_role_permissions(Role.ADMIN) == set(Permission)
