"""Tests for admin statistics and user management."""
from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from accounts.choices import Role
from common.exceptions import AuthorizationError, NotFoundError, ValidationError
from core.policy import Principal
from dashboard import services
from ratings.models import Rating
from ratings.services import upsert_rating
from stores.models import Store

User = get_user_model()


class DashboardServiceTests(TestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            email="admin@test.com", password="pass", name="Admin", role=Role.ADMIN
        )
        self.owner = User.objects.create_user(
            email="owner@test.com", password="pass", name="Owner", role=Role.STORE_OWNER
        )
        self.alice = User.objects.create_user(email="a@test.com", password="pass", name="Alice")
        self.bob = User.objects.create_user(email="b@test.com", password="pass", name="Bob")
        self.store_a = Store.objects.create(
            owner=self.owner, name="First Store With A Long Name", email="a@example.com"
        )
        self.store_b = Store.objects.create(
            owner=self.owner, name="Second Store With A Long Name", email="b@example.com"
        )
        self.store_c = Store.objects.create(
            owner=self.owner, name="Third Store Nobody Has Rated", email="c@example.com"
        )

    def test_empty_average_is_none(self):
        stats = services.get_dashboard_stats()
        self.assertIsNone(stats["average_rating"])
        self.assertEqual(stats["total_ratings"], 0)

    def test_stats_average_of_store_averages(self):
        # store_a averages 5.0 over two ratings, store_b 2.0 over one; store_c unrated.
        upsert_rating(self.alice.pk, self.store_a.pk, 5)
        upsert_rating(self.bob.pk, self.store_a.pk, 5)
        upsert_rating(self.alice.pk, self.store_b.pk, 2)

        stats = services.get_dashboard_stats()
        self.assertEqual(stats["total_users"], 4)
        self.assertEqual(stats["store_owners"], 1)
        self.assertEqual(stats["total_stores"], 3)
        self.assertEqual(stats["total_ratings"], 3)
        self.assertAlmostEqual(stats["average_rating"], 3.5)

    def test_list_users_admin_only(self):
        with self.assertRaises(AuthorizationError):
            services.list_users(Principal.from_user(self.alice))
        users = services.list_users(Principal.from_user(self.admin), role="store_owner")
        self.assertEqual([u.pk for u in users], [self.owner.pk])
        self.assertEqual(users[0].store_count, 3)

    def test_delete_owner_cascades_stores_and_ratings(self):
        upsert_rating(self.alice.pk, self.store_a.pk, 4)
        upsert_rating(self.bob.pk, self.store_b.pk, 3)
        services.delete_user(Principal.from_user(self.admin), self.owner.pk)
        self.assertFalse(User.objects.filter(pk=self.owner.pk).exists())
        self.assertEqual(Store.objects.count(), 0)
        self.assertEqual(Rating.objects.count(), 0)

    def test_delete_rater_removes_their_ratings(self):
        upsert_rating(self.alice.pk, self.store_a.pk, 4)
        upsert_rating(self.bob.pk, self.store_a.pk, 2)
        services.delete_user(Principal.from_user(self.admin), self.alice.pk)
        self.assertEqual(list(Rating.objects.values_list("user_id", flat=True)), [self.bob.pk])

    def test_delete_user_guards(self):
        admin = Principal.from_user(self.admin)
        with self.assertRaises(ValidationError):
            services.delete_user(admin, self.admin.pk)
        with self.assertRaises(NotFoundError):
            services.delete_user(admin, 999999)
        with self.assertRaises(AuthorizationError):
            services.delete_user(Principal.from_user(self.alice), self.bob.pk)


class DashboardAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(
            email="admin@test.com", password="pass", name="Admin", role=Role.ADMIN
        )
        self.user = User.objects.create_user(email="u@test.com", password="pass", name="User")

    def test_stats_for_admin(self):
        self.client.force_authenticate(user=self.admin)
        r = self.client.get("/api/admin/stats/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["total_users"], 2)
        self.assertEqual(r.json()["rating_display"], "N/A")

    def test_stats_forbidden_for_user(self):
        self.client.force_authenticate(user=self.user)
        self.assertEqual(self.client.get("/api/admin/stats/").status_code, 403)

    def test_stats_requires_authentication(self):
        self.assertEqual(self.client.get("/api/admin/stats/").status_code, 401)

    def test_list_users(self):
        self.client.force_authenticate(user=self.admin)
        r = self.client.get("/api/admin/users/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual({u["email"] for u in r.json()}, {"admin@test.com", "u@test.com"})
        self.assertNotIn("password", r.json()[0])

    def test_non_admin_delete_same_response_for_missing_and_existing(self):
        self.client.force_authenticate(user=self.user)
        existing = self.client.delete(f"/api/admin/users/{self.admin.pk}/")
        missing = self.client.delete("/api/admin/users/999999/")
        self.assertEqual(existing.status_code, 403)
        self.assertEqual(missing.status_code, 403)

    def test_admin_delete_user(self):
        self.client.force_authenticate(user=self.admin)
        r = self.client.delete(f"/api/admin/users/{self.user.pk}/")
        self.assertEqual(r.status_code, 204)
        self.assertFalse(User.objects.filter(pk=self.user.pk).exists())
