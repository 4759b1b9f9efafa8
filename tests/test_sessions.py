from datetime import datetime, timedelta, timezone

from guardhub.auth import sessions
from guardhub.models.models import Session


def test_create_then_resolve(db, officer):
    token = sessions.create_session(db, officer, user_agent="pytest", ip_address="127.0.0.1")
    row = sessions.resolve_session(db, token)
    assert row is not None
    assert sessions.session_user_id(row) == str(officer.id)
    # only the digest is stored
    assert row.id != token
    assert row.id == sessions.hash_token(token)


def test_tokens_are_unique(db, officer):
    assert sessions.create_session(db, officer) != sessions.create_session(db, officer)


def test_destroy_is_idempotent(db, officer):
    token = sessions.create_session(db, officer)
    sessions.destroy_session(db, token)
    sessions.destroy_session(db, token)
    sessions.destroy_session(db, None)
    assert sessions.resolve_session(db, token) is None


def test_expired_session_is_absent_and_purged(db, officer):
    token = sessions.create_session(db, officer, ttl_seconds=60)
    row = db.get(Session, sessions.hash_token(token))
    row.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
    db.commit()
    assert sessions.resolve_session(db, token) is None
    assert db.get(Session, sessions.hash_token(token)) is None


def test_malformed_tokens_resolve_to_nothing(db):
    for token in (None, "", "short", "has spaces in it but is long enough to pass", "x" * 500):
        assert sessions.resolve_session(db, token) is None


def test_purge_expired_leaves_live_sessions(db, officer):
    live = sessions.create_session(db, officer)
    dead = sessions.create_session(db, officer, ttl_seconds=0)
    assert sessions.purge_expired_sessions(db) == 1
    assert sessions.resolve_session(db, live) is not None
    assert sessions.resolve_session(db, dead) is None


def test_destroy_user_sessions(db, officer, admin):
    a = sessions.create_session(db, officer)
    b = sessions.create_session(db, officer)
    other = sessions.create_session(db, admin)
    assert sessions.destroy_user_sessions(db, officer.id) == 2
    assert sessions.resolve_session(db, a) is None
    assert sessions.resolve_session(db, b) is None
    assert sessions.resolve_session(db, other) is not None
