"""Tests for identity, session and profile endpoints."""
from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from accounts import services
from accounts.choices import Role
from common.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ValidationError,
)
from core.policy import Principal

User = get_user_model()


class ProfileServiceTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(
            email="alice@test.com", password="pass", name="Alice", address="1 Main St"
        )
        self.other = User.objects.create_user(email="bob@test.com", password="pass", name="Bob")

    def test_update_only_provided_fields(self):
        services.update_profile(self.user.pk, address="2 High St")
        self.user.refresh_from_db()
        self.assertEqual(self.user.name, "Alice")
        self.assertEqual(self.user.address, "2 High St")

    def test_update_rejects_short_name(self):
        with self.assertRaises(ValidationError):
            services.update_profile(self.user.pk, name="A")

    def test_edit_other_users_profile_denied(self):
        actor = Principal.from_user(self.user)
        with self.assertRaises(AuthorizationError):
            services.edit_profile(actor, self.other.pk, name="Hacked")
        self.other.refresh_from_db()
        self.assertEqual(self.other.name, "Bob")

    def test_register_duplicate_email_conflict(self):
        with self.assertRaises(ConflictError):
            services.register_user("Alice Two", "ALICE@test.com", "Rat1ng#Store")

    def test_register_cannot_pick_admin(self):
        with self.assertRaises(ValidationError):
            services.register_user("Eve", "eve@test.com", "Rat1ng#Store", role=Role.ADMIN)

    def test_register_rejects_weak_password(self):
        with self.assertRaises(ValidationError) as ctx:
            services.register_user("Eve", "eve@test.com", "lowercase1")
        self.assertIn("password", ctx.exception.detail)

    def test_verify_credential(self):
        principal = services.verify_credential("alice@test.com", "pass")
        self.assertEqual(principal, Principal(id=self.user.pk, role=Role.USER))
        with self.assertRaises(AuthenticationError):
            services.verify_credential("alice@test.com", "wrong")

    def test_change_password_requires_current(self):
        actor = Principal.from_user(self.user)
        with self.assertRaises(ValidationError):
            services.change_password(actor, self.user.pk, "wrong", "Better#Pass1")
        services.change_password(actor, self.user.pk, "pass", "Better#Pass1")
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("Better#Pass1"))


class ProfileAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            email="alice@test.com", password="pass", name="Alice", address="1 Main St"
        )

    def test_get_profile_excludes_password(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get("/api/profile/")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["email"], "alice@test.com")
        self.assertEqual(data["role"], "user")
        self.assertNotIn("password", data)

    def test_profile_requires_authentication(self):
        response = self.client.get("/api/profile/")
        self.assertEqual(response.status_code, 401)

    def test_put_profile_ignores_email_and_role(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.put(
            "/api/profile/",
            {"name": "Alice Cooper", "email": "new@test.com", "role": "admin"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.user.refresh_from_db()
        self.assertEqual(self.user.name, "Alice Cooper")
        self.assertEqual(self.user.email, "alice@test.com")
        self.assertEqual(self.user.role, Role.USER)
        self.assertEqual(self.user.address, "1 Main St")

    def test_put_profile_validation_error(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.put("/api/profile/", {"address": "x" * 401}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("address", response.json())


class AuthAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_register_login_and_profile(self):
        r = self.client.post(
            "/api/auth/register/",
            {
                "name": "Store Owner",
                "email": "owner@test.com",
                "password": "Rat1ng#Store",
                "role": "store_owner",
            },
            format="json",
        )
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json()["user"]["role"], "store_owner")
        self.assertIn("access", r.json())

        r2 = self.client.post(
            "/api/auth/login/",
            {"email": "owner@test.com", "password": "Rat1ng#Store"},
            format="json",
        )
        self.assertEqual(r2.status_code, 200)
        access = r2.json()["access"]

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        r3 = self.client.get("/api/auth/profile/")
        self.assertEqual(r3.status_code, 200)
        self.assertEqual(r3.json()["email"], "owner@test.com")

    def test_register_duplicate_email_returns_409(self):
        User.objects.create_user(email="taken@test.com", password="pass", name="Taken")
        r = self.client.post(
            "/api/auth/register/",
            {"name": "Someone", "email": "taken@test.com", "password": "Rat1ng#Store"},
            format="json",
        )
        self.assertEqual(r.status_code, 409)

    def test_login_bad_credentials(self):
        User.objects.create_user(email="a@test.com", password="pass", name="Alice")
        r = self.client.post(
            "/api/auth/login/", {"email": "a@test.com", "password": "nope"}, format="json"
        )
        self.assertEqual(r.status_code, 401)

    def test_update_password(self):
        user = User.objects.create_user(email="a@test.com", password="pass", name="Alice")
        self.client.force_authenticate(user=user)
        r = self.client.put(
            "/api/auth/update-password/",
            {"current_password": "pass", "new_password": "Better#Pass1"},
            format="json",
        )
        self.assertEqual(r.status_code, 200)
        user.refresh_from_db()
        self.assertTrue(user.check_password("Better#Pass1"))

    def test_logout_blacklists_refresh_token(self):
        User.objects.create_user(email="a@test.com", password="Rat1ng#Store", name="Alice")
        tokens = self.client.post(
            "/api/auth/login/", {"email": "a@test.com", "password": "Rat1ng#Store"}, format="json"
        ).json()
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
        r = self.client.post("/api/auth/logout/", {"refresh": tokens["refresh"]}, format="json")
        self.assertEqual(r.status_code, 205)
        r2 = self.client.post(
            "/api/auth/token/refresh/", {"refresh": tokens["refresh"]}, format="json"
        )
        self.assertEqual(r2.status_code, 401)
