"""Conditional-next resolver tests: list form, nested form, malformed input."""

from survey_runtime.routing import resolve_next


class TestListForm:
    RULES = [
        {"when": {"variable": "score", "gt": 8}, "goto": "promoter"},
        {"when": {"variable": "score", "gt": 5}, "goto": "passive"},
    ]

    def test_first_matching_rule_wins(self):
        """A score of 9 matches both rules; the first one is used."""
        assert resolve_next(self.RULES, {"score": 9}) == "promoter"
        assert resolve_next(self.RULES, {"score": 6}) == "passive"

    def test_bare_list_without_match_is_none(self):
        assert resolve_next(self.RULES, {"score": 2}) is None

    def test_rules_with_else(self):
        routing = {"rules": self.RULES, "else": "detractor"}
        assert resolve_next(routing, {"score": 2}) == "detractor"
        assert resolve_next(routing, {"score": 9}) == "promoter"

    def test_rules_without_else(self):
        assert resolve_next({"rules": self.RULES}, {"score": 1}) is None

    def test_block_variable_fallback(self):
        routing = {"rules": [{"when": {"equals": "yes"}, "goto": "b7"}], "else": "b8"}
        assert resolve_next(routing, {"consent": "yes"}, "consent") == "b7"
        assert resolve_next(routing, {"consent": "no"}, "consent") == "b8"

    def test_malformed_rules_are_skipped(self):
        rules = ["not-a-rule", {"goto": "b1"}, {"when": {"variable": "x", "equals": 1}, "goto": "b2"}]
        assert resolve_next(rules, {"x": 1}) == "b2"


class TestNestedForm:
    ROUTING = {
        "if": {"variable": "wants_email", "equals": True},
        "then": "b6",
        "else": {
            "if": {"variable": "wants_social", "equals": True},
            "then": "b7",
            "else": "b8",
        },
    }

    def test_then_branch(self):
        assert resolve_next(self.ROUTING, {"wants_email": True}) == "b6"

    def test_nested_else_branch(self):
        assert resolve_next(self.ROUTING, {"wants_email": False, "wants_social": True}) == "b7"

    def test_final_literal_else(self):
        assert resolve_next(self.ROUTING, {}) == "b8"

    def test_missing_else_is_none(self):
        assert resolve_next({"if": {"variable": "x", "equals": 1}, "then": "b2"}, {}) is None


class TestDegenerateInput:
    def test_absent_routing(self):
        assert resolve_next(None, {"x": 1}) is None
        assert resolve_next({}, {"x": 1}) is None
        assert resolve_next([], {"x": 1}) is None

    def test_unsupported_shape_is_none(self):
        assert resolve_next(42, {}) is None

    def test_non_string_target_is_none(self):
        routing = {"if": {"variable": "x", "equals": 1}, "then": ["b2"], "else": 3}
        assert resolve_next(routing, {"x": 1}) is None
        assert resolve_next(routing, {"x": 2}) is None

    def test_empty_string_target_is_none(self):
        assert resolve_next({"rules": [], "else": ""}, {}) is None
