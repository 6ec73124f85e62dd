import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

from scroll.db.db import create_db_engine, create_session_factory, init_db
from scroll.db.models import Note, User


@pytest.fixture
def session_factory(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    yield create_session_factory(engine)
    engine.dispose()


def make_user(db, email="a@x.com"):
    user = User(email=email, password_hash="ab", salt="cd")
    db.add(user)
    db.commit()
    return user


def test_init_db_is_idempotent(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    init_db(engine)
    assert {"users", "notes"} <= set(inspect(engine).get_table_names())


def test_email_is_unique(session_factory):
    with session_factory() as db:
        make_user(db)
        db.add(User(email="a@x.com", password_hash="ef", salt="01"))
        with pytest.raises(IntegrityError):
            db.commit()


def test_timestamps_are_filled(session_factory):
    with session_factory() as db:
        user = make_user(db)
        assert user.created_at is not None
        assert user.updated_at is not None


def test_deleting_user_cascades_to_notes(session_factory):
    with session_factory() as db:
        user = make_user(db)
        db.add_all([Note(user_id=user.id, title="t", content="c") for _ in range(2)])
        db.commit()
        other = make_user(db, email="b@x.com")
        db.add(Note(user_id=other.id, title="t", content="c"))
        db.commit()

        db.delete(user)
        db.commit()

        assert db.query(Note).count() == 1
        assert db.query(Note).one().user_id == other.id


def test_note_requires_existing_user(session_factory):
    with session_factory() as db:
        db.add(Note(user_id=999, title="t", content="c"))
        with pytest.raises(IntegrityError):
            db.commit()
