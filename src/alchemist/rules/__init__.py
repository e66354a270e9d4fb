from alchemist.rules.builder import RuleBuilder, build_rule, parse_allowed_phases
from alchemist.rules.nl_parser import RuleParseResult, parse_rule_description

__all__ = [
    "RuleBuilder",
    "RuleParseResult",
    "build_rule",
    "parse_allowed_phases",
    "parse_rule_description",
]
