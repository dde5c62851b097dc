import pytest

from agencydesk.core.exceptions import ConfigurationError, ValidationException
from agencydesk.core.permissions import (
    full_access_matrix,
    granted_keys,
    has_any_permission,
    has_permission,
    validate_against_catalog,
    validate_permission_matrix,
)


class TestHasPermission:
    """Default-deny lookup over grouped and flat matrices"""

    def test_grouped_key_granted(self):
        assert has_permission({"project": {"view_project": True}}, "view_project")

    def test_key_granted_under_any_group(self):
        # Group names are not tied to key names
        assert has_permission({"misc": {"view_project": True}}, "view_project")

    def test_flat_top_level_key_granted(self):
        assert has_permission({"view_project": True}, "view_project")

    def test_false_value_denies(self):
        assert not has_permission({"project": {"view_project": False}}, "view_project")

    def test_missing_key_denies(self):
        assert not has_permission({"project": {"view_project": True}}, "delete_project")

    @pytest.mark.parametrize("value", ["true", 1, "yes", [True]])
    def test_truthy_non_boolean_denies(self, value):
        assert not has_permission({"project": {"view_project": value}}, "view_project")
        assert not has_permission({"view_project": value}, "view_project")

    @pytest.mark.parametrize("matrix", [None, [], "view_project", 42])
    def test_malformed_matrix_denies_without_raising(self, matrix):
        assert not has_permission(matrix, "view_project")

    def test_any_permission(self):
        matrix = {"milestone": {"create_milestone": True}}
        assert has_any_permission(matrix, ["update_milestone", "create_milestone"])
        assert not has_any_permission(matrix, ["update_milestone", "delete_milestone"])

    def test_granted_keys_mixes_shapes(self):
        matrix = {"project": {"view_project": True, "delete_project": False}, "view_lead": True}
        assert granted_keys(matrix) == {"view_project", "view_lead"}


class TestMatrixValidation:
    def test_accepts_grouped_and_flat_booleans(self):
        validate_permission_matrix({"project": {"view_project": True}, "view_lead": False})

    def test_rejects_non_mapping(self):
        with pytest.raises(ValidationException):
            validate_permission_matrix(["view_project"])

    def test_rejects_non_boolean_grant(self):
        with pytest.raises(ValidationException, match="project.view_project"):
            validate_permission_matrix({"project": {"view_project": "true"}})

    def test_catalog_rejects_unknown_group(self):
        with pytest.raises(ConfigurationError, match="Unknown permission group 'billing'"):
            validate_against_catalog({"billing": {"view_billing": True}}, {"project": {"view_project"}})

    def test_catalog_rejects_unknown_key(self):
        with pytest.raises(ConfigurationError, match="archive_project"):
            validate_against_catalog(
                {"project": {"archive_project": True}}, {"project": {"view_project"}}
            )

    def test_full_access_matrix_grants_every_key(self):
        matrix = full_access_matrix({"project": {"view_project", "delete_project"}})
        assert matrix == {"project": {"delete_project": True, "view_project": True}}
