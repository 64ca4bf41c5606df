import uuid
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select

from flexstore.models.record import Record
from flexstore.repositories.record_repository import RecordRepository


def test_create_and_get(db, admin):
    database_id = uuid.uuid4()
    record = RecordRepository.create(
        db, tenant_id=admin.tenant_id, database_id=database_id, values={"b": 1, "a": "x"}
    )

    fetched = RecordRepository.get_by_id(db, tenant_id=admin.tenant_id, record_id=record.id)

    assert fetched.values == {"b": 1, "a": "x"}
    assert list(fetched.values) == ["b", "a"]
    assert fetched.database_id == database_id


def test_get_by_id_hides_other_tenants_and_deleted(db, admin, other_admin):
    record = RecordRepository.create(db, tenant_id=admin.tenant_id, database_id=uuid.uuid4(), values={})

    assert RecordRepository.get_by_id(db, tenant_id=other_admin.tenant_id, record_id=record.id) is None

    RecordRepository.soft_delete(db, record=record)

    assert RecordRepository.get_by_id(db, tenant_id=admin.tenant_id, record_id=record.id) is None
    assert db.query(Record).filter(Record.id == record.id).one().is_deleted is True


def test_merge_values_overwrites_and_keeps(db, admin):
    record = RecordRepository.create(
        db, tenant_id=admin.tenant_id, database_id=uuid.uuid4(), values={"a": 1, "b": 2}
    )

    RecordRepository.merge_values(db, record=record, values={"b": 3, "c": None})

    db.expire_all()
    fetched = RecordRepository.get_by_id(db, tenant_id=admin.tenant_id, record_id=record.id)
    assert fetched.values == {"a": 1, "b": 3, "c": None}


def test_run_query(db, admin):
    database_id = uuid.uuid4()
    RecordRepository.create(db, tenant_id=admin.tenant_id, database_id=database_id, values={"n": 1})
    RecordRepository.create(db, tenant_id=admin.tenant_id, database_id=uuid.uuid4(), values={"n": 2})

    statement = select(Record).where(Record.database_id == database_id)
    results = RecordRepository.run_query(db, tenant_id=admin.tenant_id, statement=statement)

    assert [r.values for r in results] == [{"n": 1}]


def test_commit_failure_rolls_back_and_raises():
    db = MagicMock()
    db.commit.side_effect = RuntimeError("connection lost")

    with pytest.raises(RuntimeError):
        RecordRepository.create(db, tenant_id=uuid.uuid4(), database_id=uuid.uuid4(), values={})

    db.rollback.assert_called_once()
