"""Integration tests for web/routes.py -- HTML forms over the real local backend.

Uses the module-scoped web_client (follow_redirects=False) so redirect
locations can be asserted. The client keeps cookies between requests, so each
test starts by clearing them.

Covers:
- GET pages render their forms; protected pages redirect to /login?next=
- signup -> /profile-setup -> /dashboard happy path sets the session cookie
- client-side validation errors re-render the form without a backend call
- login lands on /dashboard or /profile-setup depending on the profile
- HTMX fragments for the email hint and password indicators
- logout clears the cookie
"""

import itertools

import pytest

from auth.tokens import COOKIE_NAME
from tests.fakes import STRONG_PASSWORD

_emails = (f"student{n}@uni.edu" for n in itertools.count())


@pytest.fixture(autouse=True)
def _fresh_cookies(web_client) -> None:
    web_client.cookies.clear()


def _signup(client, email: str):
    return client.post("/signup", data={"email": email, "password": STRONG_PASSWORD})


def _complete_profile(client):
    return client.post("/profile-setup", data={"full_name": "Ada Lovelace", "university": "Uni"})


class TestPages:
    def test_root_redirects_to_login(self, web_client) -> None:
        resp = web_client.get("/")
        assert resp.status_code == 302
        assert resp.headers["location"] == "/login"

    def test_login_page(self, web_client) -> None:
        resp = web_client.get("/login")
        assert resp.status_code == 200
        assert 'id="loginForm"' in resp.text

    def test_signup_page_hides_requirements(self, web_client) -> None:
        resp = web_client.get("/signup")
        assert resp.status_code == 200
        assert 'id="signupForm"' in resp.text
        assert 'class="requirements"' in resp.text

    @pytest.mark.parametrize("path", ["/dashboard", "/profile-setup"])
    def test_protected_pages_redirect(self, web_client, path: str) -> None:
        resp = web_client.get(path)
        assert resp.status_code == 302
        assert resp.headers["location"] == f"/login?next={path}"

    def test_garbage_cookie_is_ignored(self, web_client) -> None:
        resp = web_client.get("/dashboard", headers={"Cookie": f"{COOKIE_NAME}=not-a-jwt"})
        assert resp.status_code == 302


class TestSignupFlow:
    def test_signup_profile_dashboard(self, web_client) -> None:
        email = next(_emails)
        resp = _signup(web_client, email)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/profile-setup"
        assert COOKIE_NAME in resp.cookies
        assert resp.headers["cache-control"] == "no-store"

        # No profile yet: the dashboard sends the user back to setup.
        resp = web_client.get("/dashboard")
        assert resp.headers["location"] == "/profile-setup"

        assert web_client.get("/profile-setup").status_code == 200
        resp = _complete_profile(web_client)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/dashboard"

        resp = web_client.get("/dashboard")
        assert resp.status_code == 200
        assert "Ada Lovelace" in resp.text
        assert email in resp.text

    def test_non_student_email_rerenders(self, web_client) -> None:
        resp = web_client.post("/signup", data={"email": "me@gmail.com", "password": STRONG_PASSWORD})
        assert resp.status_code == 200
        assert "must contain .edu in the domain" in resp.text
        assert COOKIE_NAME not in resp.cookies

    def test_weak_password_shows_failing_rules(self, web_client) -> None:
        resp = web_client.post("/signup", data={"email": next(_emails), "password": "abcdef12"})
        assert resp.status_code == 200
        assert "Password does not meet the requirements." in resp.text
        assert 'class="requirements show"' in resp.text
        assert '<li id="reqLower" class="valid">' in resp.text
        assert '<li id="reqUpper">' in resp.text
        assert '<li id="reqSpecial">' in resp.text

    def test_duplicate_email(self, web_client) -> None:
        email = next(_emails)
        _signup(web_client, email)
        web_client.cookies.clear()
        resp = _signup(web_client, email)
        assert resp.status_code == 200
        assert "This email is already registered." in resp.text

    def test_password_over_72_bytes_explains_limit(self, web_client) -> None:
        resp = web_client.post("/signup", data={"email": next(_emails), "password": "Aa1!" + "x" * 76})
        assert resp.status_code == 200
        assert "Password is too long. Use at most 72 bytes." in resp.text
        assert "Registration failed." not in resp.text
        assert COOKIE_NAME not in resp.cookies

    def test_profile_requires_fields(self, web_client) -> None:
        _signup(web_client, next(_emails))
        resp = web_client.post("/profile-setup", data={"full_name": "Ada"})
        assert resp.status_code == 200
        assert "University is required." in resp.text


class TestLoginFlow:
    def test_invalid_email_message(self, web_client) -> None:
        resp = web_client.post("/login", data={"email": "me@gmail.com", "password": "x"})
        assert resp.status_code == 200
        assert "Please use a student email (.edu)." in resp.text

    def test_wrong_password(self, web_client) -> None:
        email = next(_emails)
        _signup(web_client, email)
        web_client.cookies.clear()
        resp = web_client.post("/login", data={"email": email, "password": "Wrong1!!"})
        assert resp.status_code == 200
        assert "Invalid email or password." in resp.text

    def test_login_without_profile_goes_to_setup(self, web_client) -> None:
        email = next(_emails)
        _signup(web_client, email)
        web_client.cookies.clear()
        resp = web_client.post("/login", data={"email": email, "password": STRONG_PASSWORD})
        assert resp.status_code == 302
        assert resp.headers["location"] == "/profile-setup"

    def test_login_with_profile_honours_safe_next(self, web_client) -> None:
        email = next(_emails)
        _signup(web_client, email)
        _complete_profile(web_client)
        web_client.cookies.clear()

        resp = web_client.post("/login", data={"email": email, "password": STRONG_PASSWORD})
        assert resp.headers["location"] == "/dashboard"

        web_client.cookies.clear()
        resp = web_client.post("/login?next=/profile-setup", data={"email": email, "password": STRONG_PASSWORD})
        assert resp.headers["location"] == "/profile-setup"

        web_client.cookies.clear()
        resp = web_client.post("/login?next=//evil.example", data={"email": email, "password": STRONG_PASSWORD})
        assert resp.headers["location"] == "/dashboard"

    def test_logged_in_user_skips_login_page(self, web_client) -> None:
        _signup(web_client, next(_emails))
        resp = web_client.get("/login")
        assert resp.status_code == 302
        assert resp.headers["location"] == "/"

    def test_logout_clears_session(self, web_client) -> None:
        _signup(web_client, next(_emails))
        resp = web_client.post("/logout")
        assert resp.status_code == 302
        assert resp.headers["location"] == "/login"
        web_client.cookies.clear()
        assert web_client.get("/profile-setup").status_code == 302


class TestFragments:
    def test_email_hint(self, web_client) -> None:
        resp = web_client.post("/validate/email", data={"email": "me@gmail.com"})
        assert resp.status_code == 200
        assert 'id="emailError"' in resp.text
        assert "Must end with .edu" in resp.text

    def test_email_hint_empty_for_student(self, web_client) -> None:
        resp = web_client.post("/validate/email", data={"email": "me@uni.edu"})
        assert "Must end with .edu" not in resp.text

    def test_password_indicators(self, web_client) -> None:
        resp = web_client.post("/validate/password", data={"password": "Abcdefgh"})
        assert resp.status_code == 200
        assert 'class="requirements show"' in resp.text
        assert '<li id="reqLength" class="valid">' in resp.text
        assert '<li id="reqNumber">' in resp.text

    def test_password_input_clears_password_error(self, web_client) -> None:
        resp = web_client.post("/validate/password", data={"password": "a"})
        assert '<div id="passwordError" class="error" hx-swap-oob="true"></div>' in resp.text
        assert "Password does not meet the requirements." not in resp.text
