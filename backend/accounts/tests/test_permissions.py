from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.test import TestCase

from accounts.permissions import CanPriceCase
from quotes.models import QuoteCase


class CanPriceCaseTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        User = get_user_model()
        cls.owner = User.objects.create_user(username="owner", password="x", role="sales")
        cls.ops = User.objects.create_user(username="ops", password="x", role="operations")
        cls.manager = User.objects.create_user(username="boss", password="x", role="manager")
        cls.staff = User.objects.create_user(username="admin", password="x", is_staff=True)
        cls.case = QuoteCase.objects.create(reference="Q-PERM-1", created_by=cls.owner)
        cls.orphan = QuoteCase.objects.create(reference="Q-PERM-2", created_by=None)

    def allowed(self, user, case):
        return CanPriceCase().has_object_permission(SimpleNamespace(user=user), None, case)

    def test_owner_allowed(self):
        assert self.allowed(self.owner, self.case)

    def test_other_sales_user_denied(self):
        assert not self.allowed(self.ops, self.case)

    def test_manager_and_staff_allowed(self):
        assert self.allowed(self.manager, self.case)
        assert self.allowed(self.staff, self.case)

    def test_case_without_owner(self):
        assert not self.allowed(self.owner, self.orphan)
        assert self.allowed(self.manager, self.orphan)

    def test_requires_authentication(self):
        anonymous = SimpleNamespace(user=SimpleNamespace(is_authenticated=False))
        assert not CanPriceCase().has_permission(anonymous, None)
        assert CanPriceCase().has_permission(SimpleNamespace(user=self.owner), None)
