"""Tests for the credential store: registration, authentication, profiles."""

import threading

import bcrypt
import pytest

from campusfeed.database.config.connection import build_session_factory
from campusfeed.database.core import accounts
from campusfeed.database.entities import User, UserSession
from campusfeed.errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from tests.conftest import DOMAIN, institutional_email


class TestRegister:
    def test_registers_with_default_user_role(self, db):
        account_id = accounts.register(db, f"ana@{DOMAIN}", "ana", "hunter22")

        user = accounts.get_profile(db, account_id)
        assert user.email == f"ana@{DOMAIN}"
        assert user.username == "ana"
        assert user.role == "user"

    def test_password_is_stored_as_salted_hash(self, db):
        id_a = accounts.register(db, f"a@{DOMAIN}", "a", "same-password")
        id_b = accounts.register(db, f"b@{DOMAIN}", "b", "same-password")

        hash_a = accounts.get_profile(db, id_a).password_hash
        hash_b = accounts.get_profile(db, id_b).password_hash
        assert "same-password" not in hash_a
        assert hash_a != hash_b
        assert bcrypt.checkpw(b"same-password", hash_a.encode())

    @pytest.mark.parametrize("email", [
        "ana@gmail.com",
        f"ana@evil-{DOMAIN}",
        f"ana@{DOMAIN}.attacker.com",
        f"@{DOMAIN}",
        "no-at-sign",
        "",
    ])
    def test_rejects_emails_outside_institutional_domain(self, db, email):
        with pytest.raises(ValidationError):
            accounts.register(db, email, "ana", "hunter22")

        assert db.query(User).count() == 0
        assert db.query(UserSession).count() == 0

    def test_email_is_case_insensitive(self, db):
        accounts.register(db, f"Ana@{DOMAIN.upper()}", "ana", "hunter22")

        with pytest.raises(ConflictError):
            accounts.register(db, f"ana@{DOMAIN}", "other", "hunter22")

    def test_duplicate_email_conflicts(self, db):
        accounts.register(db, f"ana@{DOMAIN}", "ana", "hunter22")

        with pytest.raises(ConflictError):
            accounts.register(db, f"ana@{DOMAIN}", "ana2", "other-pass")
        assert db.query(User).count() == 1

    def test_empty_username_or_password_rejected(self, db):
        with pytest.raises(ValidationError):
            accounts.register(db, institutional_email(), "   ", "hunter22")
        with pytest.raises(ValidationError):
            accounts.register(db, institutional_email(), "ana", "")

    def test_overlong_password_rejected(self, db):
        with pytest.raises(ValidationError):
            accounts.register(db, institutional_email(), "ana", "x" * 73)

    def test_concurrent_registration_same_email_creates_one_account(self, file_engine):
        factory = build_session_factory(file_engine)
        email = f"race@{DOMAIN}"
        barrier = threading.Barrier(2)
        outcomes = []

        def attempt(name):
            session = factory()
            try:
                barrier.wait()
                outcomes.append(("ok", accounts.register(session, email, name, "hunter22")))
            except ConflictError as exc:
                outcomes.append(("conflict", exc))
            finally:
                session.close()

        threads = [threading.Thread(target=attempt, args=(n,)) for n in ("one", "two")]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        kinds = sorted(kind for kind, _ in outcomes)
        assert kinds == ["conflict", "ok"]

        session = factory()
        try:
            assert session.query(User).filter(User.email == email).count() == 1
        finally:
            session.close()


class TestAuthenticate:
    def test_correct_password_returns_account_id(self, db):
        account_id = accounts.register(db, f"ana@{DOMAIN}", "ana", "correct horse")

        assert accounts.authenticate(db, f"ana@{DOMAIN}", "correct horse") == account_id

    @pytest.mark.parametrize("password", ["correct hors", "correct horse!", "correct horsf", "", "CORRECT HORSE"])
    def test_wrong_password_fails(self, db, password):
        accounts.register(db, f"ana@{DOMAIN}", "ana", "correct horse")

        with pytest.raises(InvalidCredentialsError):
            accounts.authenticate(db, f"ana@{DOMAIN}", password)

    def test_unknown_email_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            accounts.authenticate(db, f"ghost@{DOMAIN}", "whatever")


class TestProfile:
    def test_get_missing_profile(self, db):
        with pytest.raises(NotFoundError):
            accounts.get_profile(db, 999)

    def test_partial_update_leaves_other_fields(self, db, make_account):
        account_id = make_account(username="ana")
        accounts.update_profile(db, account_id, bio="hello", avatar="/media/avatars/a.png")

        accounts.update_profile(db, account_id, banner="/media/banners/b.png")

        user = accounts.get_profile(db, account_id)
        assert user.username == "ana"
        assert user.bio == "hello"
        assert user.avatar == "/media/avatars/a.png"
        assert user.banner == "/media/banners/b.png"

    def test_blank_username_rejected(self, db, make_account):
        account_id = make_account()
        with pytest.raises(ValidationError):
            accounts.update_profile(db, account_id, username="  ")

    def test_user_bio_is_stored_as_inert_text(self, db, make_account):
        account_id = make_account(role="user")

        accounts.update_profile(db, account_id, bio="<script>x</script>")

        bio = accounts.get_profile(db, account_id).bio
        assert "<script>" not in bio
        assert bio == "&lt;script&gt;x&lt;/script&gt;"

    @pytest.mark.parametrize("role", ["moderator", "admin"])
    def test_privileged_bio_is_stored_verbatim(self, db, make_account, role):
        account_id = make_account(role=role)

        accounts.update_profile(db, account_id, bio="<script>x</script>")

        assert accounts.get_profile(db, account_id).bio == "<script>x</script>"

    def test_role_cannot_change_through_profile_update(self, db, make_account):
        account_id = make_account()
        with pytest.raises(TypeError):
            accounts.update_profile(db, account_id, role="admin")
        assert accounts.get_profile(db, account_id).role == "user"


class TestPromote:
    def test_promote_to_moderator(self, db, make_account):
        account_id = make_account()

        accounts.promote(db, account_id, "moderator")

        assert accounts.get_profile(db, account_id).role == "moderator"

    def test_demotion_rejected(self, db, make_account):
        account_id = make_account(role="admin")

        with pytest.raises(ValidationError):
            accounts.promote(db, account_id, "user")
        assert accounts.get_profile(db, account_id).role == "admin"

    def test_unknown_role_rejected(self, db, make_account):
        with pytest.raises(ValidationError):
            accounts.promote(db, make_account(), "superuser")

    def test_unknown_account(self, db):
        with pytest.raises(NotFoundError):
            accounts.promote(db, 404, "moderator")

    def test_list_accounts_includes_emails(self, db, make_account):
        make_account(email=f"one@{DOMAIN}")
        make_account(email=f"two@{DOMAIN}")

        emails = [u.email for u in accounts.list_accounts(db)]
        assert emails == [f"one@{DOMAIN}", f"two@{DOMAIN}"]


class TestMalformedText:
    def test_lone_surrogate_password_is_a_validation_error(self, db):
        with pytest.raises(ValidationError):
            accounts.register(db, institutional_email(), "ana", "\ud800")
        assert db.query(User).count() == 0

    def test_lone_surrogate_username_is_a_validation_error(self, db):
        with pytest.raises(ValidationError):
            accounts.register(db, institutional_email(), "ana\udfff", "hunter22")

    def test_lone_surrogate_never_verifies(self, db):
        account_id = accounts.register(db, f"ana@{DOMAIN}", "ana", "hunter22")
        stored = accounts.get_profile(db, account_id).password_hash

        assert accounts.verify_password("\ud800", stored) is False
        with pytest.raises(InvalidCredentialsError):
            accounts.authenticate(db, f"ana@{DOMAIN}", "\ud800")
        with pytest.raises(NotFoundError):
            accounts.authenticate(db, f"ghost@{DOMAIN}", "\ud800")

    def test_lone_surrogate_bio_is_a_validation_error(self, db, make_account):
        account_id = make_account()

        with pytest.raises(ValidationError):
            accounts.update_profile(db, account_id, bio="hi \ud800")
        assert accounts.get_profile(db, account_id).bio is None


class TestExplicitSettings:
    def test_register_uses_given_domain(self, db, app_settings):
        app_settings.INSTITUTIONAL_EMAIL_DOMAIN = "example.edu"

        account_id = accounts.register(db, "ana@example.edu", "ana", "hunter22", app_settings=app_settings)

        assert accounts.get_profile(db, account_id).email == "ana@example.edu"
        with pytest.raises(ValidationError):
            accounts.register(db, f"ana@{DOMAIN}", "ana", "hunter22", app_settings=app_settings)
