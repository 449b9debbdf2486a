"""Tests for store management."""
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase
from rest_framework.test import APIClient

from accounts.choices import Role
from common.exceptions import AuthorizationError, ConflictError, ValidationError
from core.policy import Principal
from ratings.models import Rating
from ratings.services import get_ratings_for_store, upsert_rating
from stores import services
from stores.models import Store

User = get_user_model()

STORE_NAME = "Test Store Name Over Twenty Chars"


class StoreServiceTests(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(
            email="owner@test.com", password="pass", name="Owner", role=Role.STORE_OWNER
        )
        self.other_owner = User.objects.create_user(
            email="other@test.com", password="pass", name="Other", role=Role.STORE_OWNER
        )
        self.admin = User.objects.create_user(
            email="admin@test.com", password="pass", name="Admin", role=Role.ADMIN
        )
        self.raters = [
            User.objects.create_user(email=f"r{i}@test.com", password="pass", name=f"Rater {i}")
            for i in range(3)
        ]

    def _create(self, email="t@example.com", owner=None):
        return services.create_store(
            Principal.from_user(owner or self.owner), STORE_NAME, email, "1 Market Rd"
        )

    def test_create_store_then_duplicate_email_conflicts(self):
        store = self._create()
        self.assertEqual(store.owner_id, self.owner.pk)
        self.assertIsNone(store.average_rating)
        self.assertEqual(store.total_ratings, 0)
        with self.assertRaises(ConflictError):
            self._create(email="T@example.com")
        self.assertEqual(Store.objects.count(), 1)

    def test_create_store_requires_store_owner(self):
        user = self.raters[0]
        with self.assertRaises(AuthorizationError):
            self._create(owner=user)

    def test_create_store_validates_email(self):
        with self.assertRaises(ValidationError):
            self._create(email="not-an-email")
        with self.assertRaises(ValidationError):
            services.create_store(Principal.from_user(self.owner), "", "x@example.com")

    def test_non_owner_cannot_update_or_delete(self):
        store = self._create()
        intruder = Principal.from_user(self.other_owner)
        with self.assertRaises(AuthorizationError):
            services.update_store(store.pk, intruder, name="Stolen Store Name Long Enough")
        with self.assertRaises(AuthorizationError):
            services.delete_store(store.pk, intruder)
        store.refresh_from_db()
        self.assertEqual(store.name, STORE_NAME)

    def test_admin_can_update(self):
        store = self._create()
        updated = services.update_store(
            store.pk, Principal.from_user(self.admin), address="2 Harbour Way"
        )
        self.assertEqual(updated.address, "2 Harbour Way")
        self.assertEqual(updated.name, STORE_NAME)

    def test_owner_is_immutable(self):
        store = self._create()
        with self.assertRaises(ValidationError):
            services.update_store(
                store.pk, Principal.from_user(self.owner), owner=self.other_owner.pk
            )

    def test_update_to_taken_email_conflicts(self):
        self._create(email="first@example.com")
        second = self._create(email="second@example.com")
        with self.assertRaises(ConflictError):
            services.update_store(
                second.pk, Principal.from_user(self.owner), email="first@example.com"
            )

    def test_admin_delete_cascades_ratings(self):
        store = self._create()
        for rater, stars in zip(self.raters, (5, 4, 3)):
            upsert_rating(rater.pk, store.pk, stars)
        self.assertEqual(Rating.objects.for_store(store).count(), 3)

        services.delete_store(store.pk, Principal.from_user(self.admin))

        self.assertFalse(Store.objects.filter(pk=store.pk).exists())
        self.assertEqual(list(get_ratings_for_store(store.pk)), [])
        self.assertEqual(Rating.objects.count(), 0)

    def test_delete_is_atomic(self):
        store = self._create()
        for rater in self.raters:
            upsert_rating(rater.pk, store.pk, 4)
        with mock.patch.object(Store, "delete", side_effect=DatabaseError("disk full")):
            with self.assertRaises(DatabaseError):
                services.delete_store(store.pk, Principal.from_user(self.owner))
        self.assertTrue(Store.objects.filter(pk=store.pk).exists())
        self.assertEqual(Rating.objects.for_store(store).count(), 3)

    def test_stores_for_owner_have_stats(self):
        store = self._create()
        self._create(email="mine2@example.com")
        self._create(email="theirs@example.com", owner=self.other_owner)
        upsert_rating(self.raters[0].pk, store.pk, 5)
        upsert_rating(self.raters[1].pk, store.pk, 2)

        stores = list(services.get_stores_for_owner(self.owner.pk))
        self.assertEqual(len(stores), 2)
        rated = next(s for s in stores if s.pk == store.pk)
        self.assertEqual(rated.total_ratings, 2)
        self.assertAlmostEqual(rated.average_rating, 3.5)

    def test_list_all_stores_filters(self):
        self._create(email="a@example.com")
        services.create_store(
            Principal.from_user(self.other_owner),
            "Another Store With A Long Name",
            "b@example.com",
            "9 Riverside",
        )
        self.assertEqual(services.list_all_stores().count(), 2)
        by_name = services.list_all_stores({"name": "another"})
        self.assertEqual([s.email for s in by_name], ["b@example.com"])
        by_address = services.list_all_stores({"address": "market"})
        self.assertEqual([s.email for s in by_address], ["a@example.com"])


class StoreAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(
            email="owner@test.com", password="pass", name="Owner", role=Role.STORE_OWNER
        )
        self.user = User.objects.create_user(email="user@test.com", password="pass", name="User")
        self.admin = User.objects.create_user(
            email="admin@test.com", password="pass", name="Admin", role=Role.ADMIN
        )
        self.store = Store.objects.create(
            owner=self.owner, name=STORE_NAME, email="t@example.com", address="1 Market Rd"
        )

    def test_list_stores_public(self):
        response = self.client.get("/api/stores/")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]["name"], STORE_NAME)
        self.assertIsNone(data[0]["average_rating"])
        self.assertEqual(data[0]["total_ratings"], 0)
        self.assertEqual(data[0]["rating_display"], "N/A")

    def test_retrieve_missing_store_404(self):
        response = self.client.get("/api/stores/999999/")
        self.assertEqual(response.status_code, 404)

    def test_owner_creates_store(self):
        self.client.force_authenticate(user=self.owner)
        r = self.client.post(
            "/api/stores/",
            {"name": "Second Store Name Long Enough", "email": "s2@example.com"},
            format="json",
        )
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json()["owner"]["id"], self.owner.pk)

    def test_create_duplicate_email_returns_409(self):
        self.client.force_authenticate(user=self.owner)
        r = self.client.post(
            "/api/stores/",
            {"name": "Second Store Name Long Enough", "email": "t@example.com"},
            format="json",
        )
        self.assertEqual(r.status_code, 409)

    def test_create_short_name_returns_400(self):
        self.client.force_authenticate(user=self.owner)
        r = self.client.post(
            "/api/stores/", {"name": "Too short", "email": "s3@example.com"}, format="json"
        )
        self.assertEqual(r.status_code, 400)
        self.assertIn("name", r.json())

    def test_regular_user_cannot_create(self):
        self.client.force_authenticate(user=self.user)
        r = self.client.post(
            "/api/stores/",
            {"name": "Second Store Name Long Enough", "email": "s2@example.com"},
            format="json",
        )
        self.assertEqual(r.status_code, 403)

    def test_anonymous_cannot_create(self):
        r = self.client.post(
            "/api/stores/",
            {"name": "Second Store Name Long Enough", "email": "s2@example.com"},
            format="json",
        )
        self.assertEqual(r.status_code, 401)

    def test_non_owner_update_forbidden_and_unchanged(self):
        self.client.force_authenticate(user=self.user)
        r = self.client.patch(
            f"/api/stores/{self.store.pk}/", {"address": "Elsewhere"}, format="json"
        )
        self.assertEqual(r.status_code, 403)
        self.store.refresh_from_db()
        self.assertEqual(self.store.address, "1 Market Rd")

    def test_owner_patch_store(self):
        self.client.force_authenticate(user=self.owner)
        r = self.client.patch(
            f"/api/stores/{self.store.pk}/", {"address": "5 New Rd"}, format="json"
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["address"], "5 New Rd")

    def test_owner_stores_endpoint(self):
        Store.objects.create(
            owner=self.admin, name="Admin Held Store Name Long", email="adm@example.com"
        )
        self.client.force_authenticate(user=self.owner)
        r = self.client.get("/api/stores/owner/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual([s["id"] for s in r.json()], [self.store.pk])

    def test_admin_delete_store(self):
        Rating.objects.create(user=self.user, store=self.store, rating=4)
        self.client.force_authenticate(user=self.admin)
        r = self.client.delete(f"/api/stores/{self.store.pk}/")
        self.assertEqual(r.status_code, 204)
        self.assertFalse(Rating.objects.exists())

    def test_non_owner_delete_forbidden(self):
        self.client.force_authenticate(user=self.user)
        r = self.client.delete(f"/api/stores/{self.store.pk}/")
        self.assertEqual(r.status_code, 403)
        self.assertTrue(Store.objects.filter(pk=self.store.pk).exists())

    def test_patch_owner_returns_400(self):
        self.client.force_authenticate(user=self.owner)
        r = self.client.patch(
            f"/api/stores/{self.store.pk}/",
            {"owner": self.admin.pk, "address": "5 New Rd"},
            format="json",
        )
        self.assertEqual(r.status_code, 400)
        self.assertIn("owner", r.json())
        self.store.refresh_from_db()
        self.assertEqual(self.store.owner_id, self.owner.pk)
        self.assertEqual(self.store.address, "1 Market Rd")
