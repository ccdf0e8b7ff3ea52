"""
Unit tests for permission parsing and evaluation (route_acl/permissions.py).

These tests exercise the decision logic without any HTTP in the way:

1. Token parsing and its two malformed-declaration errors
2. Normalization of string / sequence / empty declarations
3. Lookup in the nested permission map
4. All-must-pass evaluation across several tokens
"""

import re

import pytest

from route_acl.errors import PermissionFormatError
from route_acl.permissions import (
    BAD_FORMAT,
    NOT_A_STRING,
    Outcome,
    PermissionToken,
    evaluate,
    is_granted,
    normalize_requirement,
    parse_requirement,
    parse_token,
    requirement_is_empty,
)


class TestParseToken:
    """Tests for parse_token()."""

    def test_valid_token_splits_resource_and_action(self):
        token = parse_token("cars:read")

        assert token == PermissionToken(resource="cars", action="read")
        assert str(token) == "cars:read"

    def test_missing_colon_raises_format_error(self):
        with pytest.raises(PermissionFormatError, match=re.escape(BAD_FORMAT)):
            parse_token("carsread")

    @pytest.mark.parametrize("value", [":read", "cars:", ":", "cars:read:all", ""])
    def test_wrong_shape_raises_format_error(self, value):
        """Anything but exactly two non-empty parts is malformed."""
        with pytest.raises(PermissionFormatError) as exc_info:
            parse_token(value)

        assert exc_info.value.message == BAD_FORMAT

    @pytest.mark.parametrize("value", [12345, None, ["cars:read"], {"cars": "read"}])
    def test_non_string_raises_type_error_message(self, value):
        with pytest.raises(PermissionFormatError) as exc_info:
            parse_token(value)

        assert exc_info.value.message == NOT_A_STRING
        assert str(exc_info.value) == "permission must be a string"


class TestNormalizeRequirement:
    """Tests for declaration normalization."""

    def test_none_is_unrestricted(self):
        assert normalize_requirement(None) == ()
        assert requirement_is_empty(None)

    def test_empty_sequence_is_unrestricted(self):
        assert requirement_is_empty([])
        assert requirement_is_empty(())

    def test_single_string_becomes_one_element_tuple(self):
        assert normalize_requirement("cars:read") == ("cars:read",)

    def test_sequence_keeps_declaration_order(self):
        assert normalize_requirement(["drivers:delete", "cars:read"]) == (
            "drivers:delete",
            "cars:read",
        )

    def test_non_sequence_is_kept_as_single_token(self):
        """A bare int is one malformed token, not an empty declaration."""
        assert normalize_requirement(12345) == (12345,)
        assert not requirement_is_empty(12345)


class TestParseRequirement:
    def test_string_and_single_element_list_parse_the_same(self):
        assert parse_requirement("cars:read") == parse_requirement(["cars:read"])

    def test_malformed_token_after_valid_one_still_raises(self):
        with pytest.raises(PermissionFormatError, match=re.escape(BAD_FORMAT)):
            parse_requirement(["cars:read", "carsread"])


class TestIsGranted:
    """Tests for looking a single token up in the permission map."""

    def test_true_action_is_granted(self, permission_map):
        assert is_granted(parse_token("cars:read"), permission_map)

    def test_false_action_is_not_granted(self, permission_map):
        assert not is_granted(parse_token("cars:create"), permission_map)

    def test_missing_action_is_not_granted(self, permission_map):
        assert not is_granted(parse_token("cars:archive"), permission_map)

    def test_missing_resource_is_not_granted(self, permission_map):
        """A typoed resource denies just like an explicit False."""
        assert not is_granted(parse_token("foobar:delete"), permission_map)

    def test_resource_that_is_not_a_mapping_is_not_granted(self):
        assert not is_granted(parse_token("cars:read"), {"cars": True})


class TestEvaluate:
    """Tests for the overall allow/deny decision."""

    def test_no_declaration_allows_regardless_of_map(self):
        assert evaluate(None, {}).allowed
        assert evaluate([], {}).allowed

    def test_single_granted_permission_allows(self, permission_map):
        decision = evaluate("cars:read", permission_map)

        assert decision.outcome is Outcome.ALLOW
        assert decision.denied == ()

    def test_all_granted_permissions_allow(self, permission_map):
        decision = evaluate(["cars:read", "drivers:read"], permission_map)

        assert decision.allowed
        assert [str(t) for t in decision.required] == ["cars:read", "drivers:read"]

    def test_one_denied_permission_denies(self, permission_map):
        decision = evaluate(["drivers:delete", "cars:read"], permission_map)

        assert decision.outcome is Outcome.DENY
        assert [str(t) for t in decision.denied] == ["drivers:delete"]

    def test_last_of_three_denied_denies(self, permission_map):
        decision = evaluate(["drivers:read", "cars:read", "abilities:read"], permission_map)

        assert not decision.allowed
        assert [str(t) for t in decision.denied] == ["abilities:read"]

    def test_missing_resource_denies(self, permission_map):
        assert not evaluate(["foobar:delete"], permission_map).allowed

    def test_malformed_token_faults_instead_of_denying(self, permission_map):
        """A denied token earlier in the list does not hide a malformed one."""
        with pytest.raises(PermissionFormatError, match=re.escape(BAD_FORMAT)):
            evaluate(["cars:create", "carsread"], permission_map)

    def test_evaluate_does_not_mutate_map(self, permission_map):
        snapshot = {resource: dict(actions) for resource, actions in permission_map.items()}

        evaluate(["cars:read", "foobar:delete"], permission_map)

        assert permission_map == snapshot
