"""
Tests for users and password handling
"""

import pytest

from flamex_pos.application.services.user_service import hash_password, verify_password
from flamex_pos.infrastructure.utilities.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)


@pytest.fixture
def user_service(container):
    return container.get_user_service()


@pytest.fixture
def admin(user_service):
    return user_service.create_user(
        {"username": "owner", "password": "s3cret!", "full_name": "Shop Owner", "role": "admin"}
    )


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret!")

        assert hashed != "s3cret!"
        assert hashed.startswith("$2")
        assert verify_password("s3cret!", hashed)
        assert not verify_password("wrong", hashed)

    def test_non_bcrypt_value_never_matches(self):
        assert verify_password("s3cret!", "plain-text") is False


class TestUserService:
    """Test UserService"""

    def test_create_defaults_to_active_manager(self, user_service):
        user = user_service.create_user(
            {"username": " cashier1 ", "password": "pw", "full_name": "Cashier One"}
        )

        assert user["username"] == "cashier1"
        assert user["role"] == "manager"
        assert user["status"] == "active"
        assert "password" not in user

    @pytest.mark.parametrize("missing", ["username", "password", "full_name"])
    def test_required_fields(self, user_service, missing):
        data = {"username": "u", "password": "p", "full_name": "F"}
        del data[missing]

        with pytest.raises(ValidationError, match=f"{missing} is required"):
            user_service.create_user(data)

    def test_invalid_role(self, user_service):
        with pytest.raises(ValidationError):
            user_service.create_user(
                {"username": "u", "password": "p", "full_name": "F", "role": "chef"}
            )

    def test_username_is_unique_case_insensitively(self, user_service, admin):
        with pytest.raises(ConflictError, match="Username already exists"):
            user_service.create_user({"username": "OWNER", "password": "p", "full_name": "F"})

    def test_reads_never_expose_password(self, user_service, admin):
        assert all("password" not in user for user in user_service.get_users())
        assert "password" not in user_service.get_user_by_id(admin["id"])

    def test_verify_credentials(self, user_service, admin):
        user = user_service.verify_credentials("owner", "s3cret!")

        assert user["id"] == admin["id"]
        assert "password" not in user
        assert user_service.verify_credentials("owner", "nope") is None
        assert user_service.verify_credentials("ghost", "s3cret!") is None

    def test_inactive_user_cannot_log_in(self, user_service, admin):
        user_service.deactivate_user(admin["id"])
        assert user_service.verify_credentials("owner", "s3cret!") is None

    def test_password_change_is_rehashed(self, user_service, admin):
        user_service.update_user(admin["id"], {"password": "n3w", "full_name": "Owner"})

        assert user_service.verify_credentials("owner", "n3w")["full_name"] == "Owner"
        assert user_service.verify_credentials("owner", "s3cret!") is None

    def test_last_admin_cannot_be_deleted(self, user_service, admin):
        with pytest.raises(ValidationError, match="Cannot delete the last admin user"):
            user_service.delete_user(admin["id"])

        second = user_service.create_user(
            {"username": "partner", "password": "p", "full_name": "Partner", "role": "admin"}
        )
        assert user_service.delete_user(admin["id"]) is True
        assert user_service.get_users()[0]["id"] == second["id"]

    def test_missing_user(self, user_service):
        with pytest.raises(NotFoundError, match="User not found"):
            user_service.update_user(9, {"full_name": "X"})
