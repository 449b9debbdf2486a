"""Tests for the authorization policy and the DRF permission adapters."""
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import RequestFactory, SimpleTestCase, TestCase

from accounts.choices import Role
from common.exceptions import AuthenticationError, AuthorizationError
from core.permissions import CanDeleteRating, CanManageStore, HasPolicyAction
from core.policy import Action, Principal, authorize, decide
from ratings.models import Rating
from stores.models import Store

User = get_user_model()


class FakeStore:
    def __init__(self, owner_id):
        self.owner_id = owner_id


class FakeRating:
    def __init__(self, user_id):
        self.user_id = user_id


class DecideTest(SimpleTestCase):
    def setUp(self):
        self.user = Principal(id=1, role=Role.USER)
        self.owner = Principal(id=2, role=Role.STORE_OWNER)
        self.other_owner = Principal(id=3, role=Role.STORE_OWNER)
        self.admin = Principal(id=4, role=Role.ADMIN)

    def test_no_principal_always_denied(self):
        for action in Action:
            self.assertFalse(decide(None, action, FakeStore(2)))

    def test_profile_self_only(self):
        for action in (Action.READ_PROFILE, Action.UPDATE_PROFILE, Action.CHANGE_PASSWORD):
            self.assertTrue(decide(self.user, action, 1))
            self.assertFalse(decide(self.user, action, 2))
            self.assertFalse(decide(self.admin, action, 1))

    def test_create_store_store_owner_only(self):
        self.assertTrue(decide(self.owner, Action.CREATE_STORE))
        self.assertFalse(decide(self.user, Action.CREATE_STORE))
        self.assertFalse(decide(self.admin, Action.CREATE_STORE))

    def test_manage_store(self):
        store = FakeStore(owner_id=2)
        for action in (Action.UPDATE_STORE, Action.DELETE_STORE):
            self.assertTrue(decide(self.owner, action, store))
            self.assertTrue(decide(self.admin, action, store))
            self.assertFalse(decide(self.other_owner, action, store))
            self.assertFalse(decide(self.user, action, store))

    def test_rate_store_any_role_for_self(self):
        for principal in (self.user, self.owner, self.admin):
            self.assertTrue(decide(principal, Action.RATE_STORE, principal.id))
            self.assertTrue(decide(principal, Action.RATE_STORE, FakeRating(principal.id)))
        self.assertFalse(decide(self.user, Action.RATE_STORE, 99))

    def test_delete_rating(self):
        rating = FakeRating(user_id=1)
        self.assertTrue(decide(self.user, Action.DELETE_RATING, rating))
        self.assertTrue(decide(self.admin, Action.DELETE_RATING, rating))
        self.assertFalse(decide(self.owner, Action.DELETE_RATING, rating))

    def test_admin_only_actions(self):
        for action in (Action.LIST_USERS, Action.DELETE_USER, Action.VIEW_STATS):
            self.assertTrue(decide(self.admin, action))
            self.assertFalse(decide(self.owner, action))
            self.assertFalse(decide(self.user, action))

    def test_authorize_raises(self):
        with self.assertRaises(AuthenticationError):
            authorize(None, Action.VIEW_STATS)
        with self.assertRaises(AuthorizationError):
            authorize(self.user, Action.VIEW_STATS)
        authorize(self.admin, Action.VIEW_STATS)


class PrincipalTest(TestCase):
    def test_from_user(self):
        user = User.objects.create_user(
            email='o@test.com', password='pass', name='Owner', role=Role.STORE_OWNER
        )
        self.assertEqual(Principal.from_user(user), Principal(id=user.pk, role=Role.STORE_OWNER))
        self.assertIsNone(Principal.from_user(AnonymousUser()))
        user.is_active = False
        self.assertIsNone(Principal.from_user(user))

    def test_role_rules_live_only_in_policy(self):
        for cls, name in (
            (Principal, 'is_admin'),
            (User, 'is_admin'),
            (User, 'is_store_owner'),
            (Store, 'is_owned_by'),
        ):
            self.assertFalse(hasattr(cls, name), f'{cls.__name__}.{name}')


class PermissionClassesTest(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.owner = User.objects.create_user(
            email='owner@test.com', password='pass', name='Owner', role=Role.STORE_OWNER
        )
        self.buyer = User.objects.create_user(email='buyer@test.com', password='pass', name='Buyer')
        self.store = Store.objects.create(
            owner=self.owner, name='Test Store Name Over Twenty Chars', email='s@example.com'
        )

    def test_has_policy_action_by_method(self):
        class View:
            policy_actions = {'POST': Action.CREATE_STORE}

        perm = HasPolicyAction()
        request = self.factory.post('/')
        request.user = self.owner
        self.assertTrue(perm.has_permission(request, View()))
        request.user = self.buyer
        self.assertFalse(perm.has_permission(request, View()))
        request = self.factory.get('/')
        request.user = AnonymousUser()
        self.assertTrue(perm.has_permission(request, View()))

    def test_can_manage_store(self):
        perm = CanManageStore()
        request = self.factory.get('/')
        request.user = AnonymousUser()
        self.assertTrue(perm.has_object_permission(request, None, self.store))
        request = self.factory.delete('/')
        request.user = self.buyer
        self.assertFalse(perm.has_object_permission(request, None, self.store))
        request.user = self.owner
        self.assertTrue(perm.has_object_permission(request, None, self.store))

    def test_can_delete_rating(self):
        rating = Rating.objects.create(user=self.buyer, store=self.store, rating=4)
        perm = CanDeleteRating()
        request = self.factory.delete('/')
        request.user = self.owner
        self.assertFalse(perm.has_object_permission(request, None, rating))
        request.user = self.buyer
        self.assertTrue(perm.has_object_permission(request, None, rating))
