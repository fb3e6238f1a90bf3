"""
Configuration Package.

Exposes the rule/scoring configuration used by the workflow core.
"""

from flowbuilder.config.base import ConfigField, FieldType
from flowbuilder.config.rules_config import (
    RulesConfig,
    get_rules_config,
    set_rules_config,
)

__all__ = [
    "ConfigField",
    "FieldType",
    "RulesConfig",
    "get_rules_config",
    "set_rules_config",
]
