from .dsl import rule, rules, RuleBuilder, build
from .model import Rule, BuildRule, RuleSet
from .config import Config
from .errors import MakeError, NoRuleToMakeTarget, CircularDependency, RecipeFailure, BatchErrors, OutputRoutingError
from .maker import Maker
from .loader import load_rules

__all__ = [
    "rule", "rules", "RuleBuilder", "build",
    "Rule", "BuildRule", "RuleSet",
    "Config", "Maker", "load_rules",
    "MakeError", "NoRuleToMakeTarget", "CircularDependency", "RecipeFailure", "BatchErrors",
    "OutputRoutingError",
]
