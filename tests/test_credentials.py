import pytest

from guardhub.auth.security import get_password_hash, verify_credentials, verify_password
from guardhub.errors import InvalidCredentials
from guardhub.models.models import UserStatus

from conftest import PASSWORD


def test_hash_is_salted_and_verifies():
    h1 = get_password_hash("s3cret-pass")
    h2 = get_password_hash("s3cret-pass")
    assert h1 != h2
    assert verify_password("s3cret-pass", h1)
    assert not verify_password("wrong", h1)


def test_corrupt_hash_is_a_mismatch():
    assert verify_password("anything", "not-a-real-hash") is False


def test_valid_credentials_return_user(db, officer):
    user = verify_credentials(db, "officer", PASSWORD)
    assert user.id == officer.id


def test_username_is_case_insensitive(db, officer):
    assert verify_credentials(db, "  OFFICER ", PASSWORD).id == officer.id


@pytest.mark.parametrize("username,password", [
    ("officer", "wrong-password"),
    ("nobody", PASSWORD),
    ("", PASSWORD),
    ("officer", ""),
])
def test_bad_credentials_are_indistinguishable(db, officer, username, password):
    with pytest.raises(InvalidCredentials) as exc:
        verify_credentials(db, username, password)
    assert exc.value.message == "Invalid credentials"


def test_inactive_user_cannot_authenticate(db, officer):
    officer.status = UserStatus.inactive.value
    db.commit()
    with pytest.raises(InvalidCredentials):
        verify_credentials(db, "officer", PASSWORD)
