import contextvars

from gcptoolbox import iap


def _headers(user_id, email):
    return {
        iap.AUTHENTICATED_USER_ID_KEY: f"accounts.google.com:{user_id}",
        iap.AUTHENTICATED_USER_EMAIL_KEY: f"accounts.google.com:{email}",
    }


def test_current_user_with_context():
    ctx = contextvars.copy_context()
    user = ctx.run(
        lambda: iap.current_user_with_context(_headers("11111", "user@example.com"))
    )
    assert user == iap.IapUser(id="11111", email="user@example.com")


def test_current_user_with_context_not_login():
    ctx = contextvars.copy_context()
    assert ctx.run(lambda: iap.current_user_with_context({})) is None
    assert ctx.run(lambda: iap.current_user()) is None


def test_current_user():
    ctx = contextvars.copy_context()

    def scenario():
        iap.current_user_with_context(_headers("11111", "user@example.com"))
        return iap.current_user()

    got = ctx.run(scenario)
    assert got.id == "11111"


def test_headers_are_case_insensitive():
    ctx = contextvars.copy_context()
    headers = {
        "x-goog-authenticated-user-id": ["accounts.google.com:42"],
        "x-goog-authenticated-user-email": ["accounts.google.com:a@example.com"],
    }
    user = ctx.run(lambda: iap.current_user_with_context(headers))
    assert user.email == "a@example.com"
    assert user.id == "42"


def test_value_without_prefix_is_rejected():
    ctx = contextvars.copy_context()
    headers = {
        iap.AUTHENTICATED_USER_ID_KEY: "11111",
        iap.AUTHENTICATED_USER_EMAIL_KEY: "accounts.google.com:user@example.com",
    }
    assert ctx.run(lambda: iap.current_user_with_context(headers)) is None


def test_email_without_prefix_is_rejected():
    ctx = contextvars.copy_context()
    headers = {
        iap.AUTHENTICATED_USER_ID_KEY: "accounts.google.com:11111",
        iap.AUTHENTICATED_USER_EMAIL_KEY: "user@example.com",
    }
    assert ctx.run(lambda: iap.current_user_with_context(headers)) is None