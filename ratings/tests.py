"""Tests for the rating aggregate and rating endpoints."""
from datetime import timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db import DatabaseError, IntegrityError, transaction
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.choices import Role
from common.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from core.policy import Principal
from ratings import services
from ratings.models import Rating
from stores.models import Store

User = get_user_model()


class RatingAggregateTests(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(
            email="owner@test.com", password="pass", name="Owner", role=Role.STORE_OWNER
        )
        self.alice = User.objects.create_user(email="a@test.com", password="pass", name="Alice")
        self.bob = User.objects.create_user(email="b@test.com", password="pass", name="Bob")
        self.store = Store.objects.create(
            owner=self.owner, name="Test Store Name Over Twenty Chars", email="x@example.com"
        )

    def test_unrated_store(self):
        self.assertEqual(services.get_average_and_count(self.store.pk), (None, 0))

    def test_scenario_average_follows_upserts(self):
        services.upsert_rating(self.alice.pk, self.store.pk, 5)
        self.assertEqual(services.get_average_and_count(self.store.pk), (5.0, 1))

        services.upsert_rating(self.bob.pk, self.store.pk, 3)
        self.assertEqual(services.get_average_and_count(self.store.pk), (4.0, 2))

        services.upsert_rating(self.alice.pk, self.store.pk, 1)
        self.assertEqual(services.get_average_and_count(self.store.pk), (2.0, 2))

    def test_average_is_full_precision(self):
        services.upsert_rating(self.alice.pk, self.store.pk, 5)
        services.upsert_rating(self.bob.pk, self.store.pk, 4)
        carol = User.objects.create_user(email="c@test.com", password="pass", name="Carol")
        services.upsert_rating(carol.pk, self.store.pk, 4)
        average, count = services.get_average_and_count(self.store.pk)
        self.assertEqual(count, 3)
        self.assertAlmostEqual(average, 13 / 3)
        self.assertEqual(services.format_rating(average), "4.3")

    def test_upsert_keeps_one_row_and_created_at(self):
        t1 = timezone.now()
        t2 = t1 + timedelta(minutes=5)
        with mock.patch("django.utils.timezone.now", return_value=t1):
            first, created = services.upsert_rating(self.alice.pk, self.store.pk, 4, "Nice")
        self.assertTrue(created)
        with mock.patch("django.utils.timezone.now", return_value=t2):
            second, created = services.upsert_rating(self.alice.pk, self.store.pk, 2, "Meh")
        self.assertFalse(created)

        rows = Rating.objects.filter(user=self.alice, store=self.store)
        self.assertEqual(rows.count(), 1)
        row = rows.get()
        self.assertEqual(row.pk, first.pk)
        self.assertEqual(row.rating, 2)
        self.assertEqual(row.comment, "Meh")
        self.assertEqual(row.created_at, t1)
        self.assertEqual(row.updated_at, t2)

    def test_unique_constraint_blocks_duplicate_rows(self):
        Rating.objects.create(user=self.alice, store=self.store, rating=3)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Rating.objects.create(user=self.alice, store=self.store, rating=4)

    def test_upsert_retries_after_concurrent_insert(self):
        real = Rating.objects.update_or_create
        calls = []

        def flaky(*args, **kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                raise IntegrityError("duplicate key value violates unique constraint")
            return real(*args, **kwargs)

        with mock.patch.object(Rating.objects, "update_or_create", side_effect=flaky):
            rating, _ = services.upsert_rating(self.alice.pk, self.store.pk, 4, "Second try")

        self.assertEqual(len(calls), 2)
        rows = Rating.objects.filter(user=self.alice, store=self.store)
        self.assertEqual(rows.count(), 1)
        self.assertEqual(rows.get().pk, rating.pk)
        self.assertEqual(rows.get().rating, 4)

    def test_upsert_retry_updates_existing_row(self):
        existing = Rating.objects.create(user=self.alice, store=self.store, rating=2)
        real = Rating.objects.update_or_create
        calls = []

        def flaky(*args, **kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                raise IntegrityError("duplicate key value violates unique constraint")
            return real(*args, **kwargs)

        with mock.patch.object(Rating.objects, "update_or_create", side_effect=flaky):
            rating, created = services.upsert_rating(self.alice.pk, self.store.pk, 5)

        self.assertFalse(created)
        self.assertEqual(rating.pk, existing.pk)
        self.assertEqual(Rating.objects.count(), 1)
        self.assertEqual(Rating.objects.get().rating, 5)

    def test_upsert_conflict_when_retry_also_fails(self):
        with mock.patch.object(
            Rating.objects, "update_or_create", side_effect=IntegrityError("duplicate key")
        ) as update_or_create:
            with self.assertRaises(ConflictError):
                services.upsert_rating(self.alice.pk, self.store.pk, 3)
        self.assertEqual(update_or_create.call_count, 2)
        self.assertFalse(Rating.objects.exists())

    def test_upsert_validation(self):
        for bad in (0, 6, 2.5, "5", True):
            with self.assertRaises(ValidationError):
                services.upsert_rating(self.alice.pk, self.store.pk, bad)
        with self.assertRaises(ValidationError):
            services.upsert_rating(self.alice.pk, self.store.pk, 3, "x" * 501)
        services.upsert_rating(self.alice.pk, self.store.pk, 3, "x" * 500)
        self.assertEqual(Rating.objects.count(), 1)

    def test_upsert_unknown_store(self):
        with self.assertRaises(NotFoundError):
            services.upsert_rating(self.alice.pk, 999999, 3)

    def test_delete_rating_updates_aggregate(self):
        rating, _ = services.upsert_rating(self.alice.pk, self.store.pk, 5)
        services.upsert_rating(self.bob.pk, self.store.pk, 1)
        services.delete_rating(rating.pk)
        self.assertEqual(services.get_average_and_count(self.store.pk), (1.0, 1))
        with self.assertRaises(NotFoundError):
            services.delete_rating(rating.pk)

    def test_ratings_newest_first(self):
        base = timezone.now()
        with mock.patch("django.utils.timezone.now", return_value=base):
            older, _ = services.upsert_rating(self.alice.pk, self.store.pk, 4)
        with mock.patch("django.utils.timezone.now", return_value=base + timedelta(hours=1)):
            newer, _ = services.upsert_rating(self.bob.pk, self.store.pk, 2)
        ids = [r.pk for r in services.get_ratings_for_store(self.store.pk)]
        self.assertEqual(ids, [newer.pk, older.pk])

    def test_get_user_rating_for_store(self):
        self.assertIsNone(services.get_user_rating_for_store(self.alice.pk, self.store.pk))
        rating, _ = services.upsert_rating(self.alice.pk, self.store.pk, 4)
        self.assertEqual(
            services.get_user_rating_for_store(self.alice.pk, self.store.pk).pk, rating.pk
        )

    def test_remove_rating_policy(self):
        rating, _ = services.upsert_rating(self.alice.pk, self.store.pk, 4)
        with self.assertRaises(AuthorizationError):
            services.remove_rating(Principal.from_user(self.bob), rating.pk)
        admin = User.objects.create_user(
            email="admin@test.com", password="pass", name="Admin", role=Role.ADMIN
        )
        services.remove_rating(Principal.from_user(admin), rating.pk)
        self.assertFalse(Rating.objects.exists())

    def test_store_owner_may_rate(self):
        rating, created = services.submit_rating(
            Principal.from_user(self.owner), self.store.pk, 5
        )
        self.assertTrue(created)
        self.assertEqual(rating.user_id, self.owner.pk)


class RatingAPITestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.owner = User.objects.create_user(
            email="owner@test.com", password="pass", name="Owner", role=Role.STORE_OWNER
        )
        self.alice = User.objects.create_user(email="a@test.com", password="pass", name="Alice")
        self.bob = User.objects.create_user(email="b@test.com", password="pass", name="Bob")
        self.store = Store.objects.create(
            owner=self.owner, name="Test Store Name Over Twenty Chars", email="x@example.com"
        )

    def test_submit_then_update(self):
        self.client.force_authenticate(user=self.alice)
        r = self.client.post(
            "/api/ratings/",
            {"store_id": self.store.pk, "rating": 5, "comment": "Great"},
            format="json",
        )
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json()["user"]["id"], self.alice.pk)

        r2 = self.client.post(
            "/api/ratings/", {"store_id": self.store.pk, "rating": 3}, format="json"
        )
        self.assertEqual(r2.status_code, 200)
        self.assertEqual(r2.json()["id"], r.json()["id"])
        self.assertEqual(r2.json()["rating"], 3)
        self.assertEqual(Rating.objects.count(), 1)

        store = self.client.get(f"/api/stores/{self.store.pk}/").json()
        self.assertEqual(store["average_rating"], 3.0)
        self.assertEqual(store["total_ratings"], 1)

    def test_submit_requires_authentication(self):
        r = self.client.post(
            "/api/ratings/", {"store_id": self.store.pk, "rating": 5}, format="json"
        )
        self.assertEqual(r.status_code, 401)

    def test_submit_invalid_rating(self):
        self.client.force_authenticate(user=self.alice)
        r = self.client.post(
            "/api/ratings/", {"store_id": self.store.pk, "rating": 6}, format="json"
        )
        self.assertEqual(r.status_code, 400)
        self.assertIn("rating", r.json())

    def test_submit_unknown_store(self):
        self.client.force_authenticate(user=self.alice)
        r = self.client.post("/api/ratings/", {"store_id": 999999, "rating": 4}, format="json")
        self.assertEqual(r.status_code, 404)

    def test_store_ratings_listing(self):
        Rating.objects.create(user=self.alice, store=self.store, rating=4, comment="Good")
        r = self.client.get(f"/api/ratings/store/{self.store.pk}/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(len(r.json()), 1)
        self.assertEqual(r.json()[0]["user"]["name"], "Alice")
        self.assertNotIn("email", r.json()[0]["user"])

    def test_my_rating_for_store(self):
        self.client.force_authenticate(user=self.alice)
        r = self.client.get(f"/api/ratings/user/{self.store.pk}/")
        self.assertEqual(r.status_code, 404)
        Rating.objects.create(user=self.alice, store=self.store, rating=2)
        r2 = self.client.get(f"/api/ratings/user/{self.store.pk}/")
        self.assertEqual(r2.status_code, 200)
        self.assertEqual(r2.json()["rating"], 2)

    def test_delete_own_rating(self):
        rating = Rating.objects.create(user=self.alice, store=self.store, rating=2)
        self.client.force_authenticate(user=self.alice)
        r = self.client.delete(f"/api/ratings/{rating.pk}/")
        self.assertEqual(r.status_code, 204)
        self.assertFalse(Rating.objects.exists())

    def test_delete_others_rating_forbidden(self):
        rating = Rating.objects.create(user=self.alice, store=self.store, rating=2)
        self.client.force_authenticate(user=self.bob)
        r = self.client.delete(f"/api/ratings/{rating.pk}/")
        self.assertEqual(r.status_code, 403)
        self.assertTrue(Rating.objects.filter(pk=rating.pk).exists())

    def test_delete_missing_rating(self):
        self.client.force_authenticate(user=self.alice)
        r = self.client.delete("/api/ratings/999999/")
        self.assertEqual(r.status_code, 404)

    def test_submit_conflict_returns_409(self):
        self.client.force_authenticate(user=self.alice)
        with mock.patch.object(
            Rating.objects, "update_or_create", side_effect=IntegrityError("duplicate key")
        ):
            r = self.client.post(
                "/api/ratings/", {"store_id": self.store.pk, "rating": 4}, format="json"
            )
        self.assertEqual(r.status_code, 409)
        self.assertNotIn("duplicate key", r.content.decode())

    def test_raw_integrity_error_maps_to_409(self):
        rating = Rating.objects.create(user=self.alice, store=self.store, rating=2)
        self.client.force_authenticate(user=self.alice)
        with mock.patch(
            "ratings.services.delete_rating",
            side_effect=IntegrityError("FOREIGN KEY constraint failed on ratings_rating"),
        ):
            r = self.client.delete(f"/api/ratings/{rating.pk}/")
        self.assertEqual(r.status_code, 409)
        self.assertNotIn("ratings_rating", r.content.decode())

    def test_database_error_returns_safe_503(self):
        with mock.patch(
            "ratings.services.get_ratings_for_store",
            side_effect=DatabaseError("could not connect to server at 10.0.0.5:5432"),
        ):
            r = self.client.get(f"/api/ratings/store/{self.store.pk}/")
        self.assertEqual(r.status_code, 503)
        self.assertEqual(
            r.json(), {"detail": "Service temporarily unavailable, please try again later."}
        )
        self.assertNotIn("10.0.0.5", r.content.decode())
