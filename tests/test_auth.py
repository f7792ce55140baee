import pytest

from fintrack.auth import AuthError, GuestAuthProvider, describe_auth_error


def test_describe_auth_error_strips_prefix():
    assert describe_auth_error("auth/wrong-password") == "Incorrect password"
    assert describe_auth_error("user-not-found") == "No account found with this email address"
    assert describe_auth_error("auth/something-new") == "An error occurred. Please try again"


def test_guest_sign_in_and_out_notifies_listeners():
    auth = GuestAuthProvider()
    seen = []
    stop = auth.on_auth_state_change(seen.append)

    user = auth.guest_sign_in()
    auth.log_out()
    stop()
    auth.guest_sign_in()

    assert user.is_anonymous
    assert user.uid.startswith("guest-")
    assert seen == [None, user, None]


def test_password_sign_in_not_supported():
    auth = GuestAuthProvider()
    with pytest.raises(AuthError) as exc:
        auth.sign_in("a@b.c", "secret")

    assert exc.value.code == "operation-not-allowed"
    assert exc.value.user_message == "An error occurred. Please try again"
    assert auth.current_user is None
