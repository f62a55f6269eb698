import pytest
from django.contrib.auth.models import AnonymousUser

from apps.catalog.capabilities import AdminCapability, authorize, require_admin
from apps.catalog.exceptions import Unauthorized


@pytest.mark.django_db
class TestAuthorize:

    def test_staff_user_gets_capability(self, admin_user):
        capability = authorize(admin_user)

        assert capability == AdminCapability(user_id=admin_user.pk, username=admin_user.username)

    def test_non_staff_user_rejected(self, django_user_model):
        user = django_user_model.objects.create_user(username='shopper', password='pw')

        with pytest.raises(Unauthorized):
            authorize(user)

    def test_inactive_staff_rejected(self, django_user_model):
        user = django_user_model.objects.create_user(
            username='former', password='pw', is_staff=True, is_active=False
        )

        with pytest.raises(Unauthorized):
            authorize(user)


class TestRequireAdmin:

    @pytest.mark.parametrize('user', [None, AnonymousUser()])
    def test_anonymous_rejected(self, user):
        with pytest.raises(Unauthorized):
            authorize(user)

    @pytest.mark.parametrize('capability', [None, {'user_id': 1}, True])
    def test_only_capability_objects_pass(self, capability):
        with pytest.raises(Unauthorized):
            require_admin(capability)

    def test_capability_passes_through(self, capability):
        assert require_admin(capability) is capability
