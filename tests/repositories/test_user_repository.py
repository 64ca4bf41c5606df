import pytest
from sqlalchemy.exc import IntegrityError

from flexstore.models.tenant import Tenant
from flexstore.models.user import User
from flexstore.repositories.user_repository import UserRepository


def _create(db, username="dana", email="dana@example.com", tenant_name="dana's Workspace"):
    return UserRepository.create_with_tenant(
        db,
        username=username,
        email=email,
        password_hash="hash",
        tenant_name=tenant_name,
    )


def test_create_with_tenant(db):
    user = _create(db)

    tenant = db.query(Tenant).filter(Tenant.id == user.tenant_id).one()
    assert tenant.name == "dana's Workspace"
    assert user.role == "Admin"
    assert UserRepository.get_by_id(db, user.id).email == "dana@example.com"
    assert UserRepository.get_by_email(db, "dana@example.com").id == user.id


def test_duplicate_tenant_name_leaves_nothing_behind(db):
    _create(db)

    with pytest.raises(IntegrityError):
        _create(db, email="other@example.com")

    assert db.query(Tenant).count() == 1
    assert db.query(User).count() == 1


def test_duplicate_email_across_tenants(db):
    _create(db)

    with pytest.raises(IntegrityError):
        _create(db, username="dana2", tenant_name="second")

    assert db.query(Tenant).count() == 1


def test_get_by_email_unknown(db):
    assert UserRepository.get_by_email(db, "ghost@example.com") is None
