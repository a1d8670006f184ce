from themeshift.rules.catalog import RuleCatalog, build_default_catalog, builtin_rules, preset_fill
from themeshift.rules.declarative import RuleCondition, RuleDefinition, compile_rules
from themeshift.rules.model import AdaptationRule, overlay

__all__ = [
    "AdaptationRule",
    "RuleCatalog",
    "RuleCondition",
    "RuleDefinition",
    "build_default_catalog",
    "builtin_rules",
    "compile_rules",
    "overlay",
    "preset_fill",
]
