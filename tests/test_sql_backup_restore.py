# tests/test_sql_backup_restore.py

import sqlite3
from datetime import date
from pathlib import Path

import pytest

from mamatrack.data import Database
from mamatrack.models import Child, User, Vaccination


def _fill(db):
    user = db.save_user(User('uid-1', 'mama@example.com', 'Neema'))
    child = db.save_child(Child(user.id, 'Imani', 'Mwangi', '2024-01-01', 'female'))
    db.save_vaccination(Vaccination(child.id, 'BCG', 1, '2024-01-01', '2024-01-01',
                                    status='administered'))
    return user, child


def test_export_import_roundtrip(tmp_path):
    db1 = Database(str(tmp_path / 'original.db'))
    user, child = _fill(db1)
    dump_file = tmp_path / 'dump.sql'
    db1.export_to_sql(str(dump_file))
    db1.close()
    assert dump_file.exists() and dump_file.stat().st_size > 0

    db2 = Database(str(tmp_path / 'restored.db'))
    db2.import_from_sql(str(dump_file))
    assert db2.get_user(user.id).first_name == 'Neema'
    vacs = db2.load_vaccinations(child.id)
    assert len(vacs) == 1
    assert vacs[0].status == 'administered'
    assert vacs[0].administered_date == date(2024, 1, 1)
    # ids keep counting after the restore
    assert db2.save_user(User('uid-2', 'b@example.com')).id == user.id + 1
    db2.close()


def test_import_replaces_existing_rows(tmp_path):
    db1 = Database(str(tmp_path / 'original.db'))
    _fill(db1)
    dump = tmp_path / 'dump.sql'
    db1.export_to_sql(str(dump))
    db1.close()

    db2 = Database(str(tmp_path / 'other.db'))
    db2.save_user(User('stale', 'stale@example.com'))
    db2.import_from_sql(str(dump))
    assert db2.get_user_by_auth_uid('stale') is None
    assert db2.get_user_by_auth_uid('uid-1') is not None
    db2.close()


def test_atomic_import_keeps_backup(tmp_path):
    db1 = Database(str(tmp_path / 'original.db'))
    _fill(db1)
    dump = tmp_path / 'dump.sql'
    db1.export_to_sql(str(dump))
    db1.close()

    target = tmp_path / 'target.db'
    db2 = Database(str(target))
    db2.save_user(User('before', 'before@example.com'))
    backup = db2.atomic_import_from_sql(str(dump))
    assert backup is not None and Path(backup).exists()
    assert db2.get_user_by_auth_uid('uid-1') is not None
    db2.close()

    old = Database(backup)
    assert old.get_user_by_auth_uid('before') is not None
    old.close()


def test_atomic_import_rejects_broken_dump(tmp_path):
    target = tmp_path / 'target.db'
    db = Database(str(target))
    db.save_user(User('keep', 'keep@example.com'))
    broken = tmp_path / 'broken.sql'
    broken.write_text("CREATE TABLE users (id INTEGER;\n", encoding='utf-8')
    with pytest.raises(sqlite3.Error):
        db.atomic_import_from_sql(str(broken))
    assert db.get_user_by_auth_uid('keep') is not None
    assert list(tmp_path.glob('*.bak_before_restore_*')) == []
    db.close()
