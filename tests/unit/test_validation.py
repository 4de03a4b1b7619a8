"""
Tests for the validation guard.
"""

import pytest

from vibemate.router.errors import (
    InvalidPattern,
    LockedRuleViolation,
    NamespaceCollision,
    UnknownProvider,
)
from vibemate.router.models import (
    ApiGroup,
    CreateRuleInput,
    RoutingRule,
    RuleType,
    UpdateRuleInput,
)
from vibemate.router.validation import (
    becomes_protected,
    check_namespace,
    validate_create,
    validate_pattern,
    validate_update,
)

PROVIDERS = {"p1", "p2"}


def _locked_rule() -> RoutingRule:
    return RoutingRule(
        rule_type=RuleType.PATH,
        api_group=ApiGroup.OPENAI,
        provider_id="p1",
        match_pattern="/api/openai/*",
        priority=1,
    )


def _model_rule(**kwargs) -> RoutingRule:
    fields = {"provider_id": "p1", "match_pattern": "gpt-4*", "priority": 1}
    fields.update(kwargs)
    return RoutingRule(**fields)


class TestValidatePattern:
    """Tests for pattern presence."""

    @pytest.mark.parametrize("pattern", ["", " ", "\t\n"])
    def test_rejects_blank_patterns(self, pattern):
        with pytest.raises(InvalidPattern):
            validate_pattern(pattern)

    def test_accepts_wildcard(self):
        validate_pattern("*")


class TestCheckNamespace:
    """Tests for namespace protection."""

    def test_generic_path_rule_on_openai_prefix(self):
        """Generic path rules should not claim /api/openai."""
        with pytest.raises(NamespaceCollision) as exc_info:
            check_namespace(ApiGroup.GENERIC, RuleType.PATH, "/api/openai/internal")
        assert exc_info.value.prefix == "/api/openai"

    def test_generic_path_rule_on_anthropic_prefix(self):
        with pytest.raises(NamespaceCollision):
            check_namespace(ApiGroup.GENERIC, RuleType.PATH, "/api/anthropic/*")

    def test_other_groups_and_types_may_use_prefix(self):
        """Only generic path rules are restricted."""
        check_namespace(ApiGroup.OPENAI, RuleType.PATH, "/api/openai/internal")
        check_namespace(ApiGroup.GENERIC, RuleType.MODEL, "/api/openai/internal")

    def test_generic_catch_all_is_allowed(self):
        check_namespace(ApiGroup.GENERIC, RuleType.PATH, "/api/*")


class TestValidateCreate:
    """Tests for create intents."""

    def test_valid_intent(self):
        data = CreateRuleInput(provider_id="p1", match_pattern="claude-*")
        validate_create(data, PROVIDERS)

    def test_unknown_provider(self):
        data = CreateRuleInput(provider_id="ghost", match_pattern="claude-*")
        with pytest.raises(UnknownProvider) as exc_info:
            validate_create(data, PROVIDERS)
        assert exc_info.value.provider_id == "ghost"

    def test_namespace_collision(self):
        data = CreateRuleInput(
            rule_type=RuleType.PATH,
            api_group=ApiGroup.GENERIC,
            provider_id="p1",
            match_pattern="/api/openai/internal",
        )
        with pytest.raises(NamespaceCollision):
            validate_create(data, PROVIDERS)

    def test_pattern_checked_before_provider(self):
        """An empty pattern is reported even when the provider is unknown."""
        data = CreateRuleInput(provider_id="ghost", match_pattern="  ")
        with pytest.raises(InvalidPattern):
            validate_create(data, PROVIDERS)


class TestValidateUpdate:
    """Tests for update intents."""

    def test_locked_pattern_edit_rejected(self):
        """Changing the pattern of a locked rule should fail."""
        with pytest.raises(LockedRuleViolation):
            validate_update(_locked_rule(), UpdateRuleInput(match_pattern="/api/changed/*"), PROVIDERS)

    def test_locked_rule_cannot_change_type_or_group(self):
        rule = _locked_rule()
        with pytest.raises(LockedRuleViolation):
            validate_update(rule, UpdateRuleInput(rule_type=RuleType.MODEL), PROVIDERS)
        with pytest.raises(LockedRuleViolation):
            validate_update(rule, UpdateRuleInput(api_group=ApiGroup.ANTHROPIC), PROVIDERS)

    def test_locked_rule_same_pattern_is_allowed(self):
        """Resubmitting the unchanged pattern is not an edit."""
        merged = validate_update(
            _locked_rule(),
            UpdateRuleInput(match_pattern="/api/openai/*", provider_id="p2"),
            PROVIDERS,
        )
        assert merged.provider_id == "p2"
        assert merged.match_pattern == "/api/openai/*"

    def test_locked_rule_provider_and_enabled_editable(self):
        rule = _locked_rule()
        merged = validate_update(rule, UpdateRuleInput(provider_id="p2", enabled=False), PROVIDERS)
        assert merged.provider_id == "p2"
        assert merged.enabled is False
        # Stored rule untouched
        assert rule.provider_id == "p1"
        assert rule.enabled is True

    def test_merged_result_is_validated(self):
        """Moving a rule into the generic path partition re-checks its pattern."""
        rule = RoutingRule(
            rule_type=RuleType.PATH,
            api_group=ApiGroup.OPENAI,
            provider_id="p1",
            match_pattern="/api/openai/v1/*",
            priority=2,
        )
        with pytest.raises(NamespaceCollision):
            validate_update(rule, UpdateRuleInput(api_group=ApiGroup.GENERIC), PROVIDERS)

    def test_dangling_provider_fails_on_next_edit(self):
        """Provider existence is checked on every update."""
        rule = _model_rule(provider_id="deleted")
        with pytest.raises(UnknownProvider):
            validate_update(rule, UpdateRuleInput(enabled=False), PROVIDERS)

    def test_explicit_null_clears_rewrite(self):
        rule = _model_rule(model_rewrite="gpt-4o")
        patch = UpdateRuleInput.model_validate({"modelRewrite": None})
        merged = validate_update(rule, patch, PROVIDERS)
        assert merged.model_rewrite is None

    def test_omitted_fields_are_kept(self):
        rule = _model_rule(model_rewrite="gpt-4o", enabled=False)
        merged = validate_update(rule, UpdateRuleInput(provider_id="p2"), PROVIDERS)
        assert merged.model_rewrite == "gpt-4o"
        assert merged.enabled is False

    def test_bumps_updated_at(self):
        rule = _model_rule()
        merged = validate_update(rule, UpdateRuleInput(enabled=False), PROVIDERS)
        assert merged.updated_at >= rule.updated_at
        assert merged.created_at == rule.created_at
        assert merged.id == rule.id


class TestBecomesProtected:
    """Tests for detecting edits that create a protected rule."""

    def test_edit_into_catch_all(self):
        existing = RoutingRule(
            rule_type=RuleType.PATH,
            api_group=ApiGroup.OPENAI,
            provider_id="p1",
            match_pattern="/api/openai/v1/*",
            priority=2,
        )
        merged = validate_update(existing, UpdateRuleInput(match_pattern="/api/openai/*"), PROVIDERS)
        assert becomes_protected(existing, merged) is True

    def test_already_locked_rule(self):
        existing = _locked_rule()
        merged = validate_update(existing, UpdateRuleInput(provider_id="p2"), PROVIDERS)
        assert becomes_protected(existing, merged) is False
