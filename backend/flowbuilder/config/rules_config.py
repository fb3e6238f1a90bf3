"""
Workflow Rules Configuration.

Controls the product-policy constants of the connection rule engine
(fan-out limits, duplicate-edge semantics) and the validator
(score penalties, complexity threshold, cache sizing).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from flowbuilder.config.base import ConfigField, FieldType, read_env_defaults


@dataclass
class RulesConfig:
    """Connection limits and validation scoring settings."""

    # Fan-out limits (max outgoing edges per node category)
    trigger_max_outgoing: int = 3
    action_max_outgoing: int = 2
    logic_max_outgoing: int = 2
    ai_max_outgoing: int = 2

    # Duplicate edges: distinct named handles may share (source, target)
    handle_aware_duplicates: bool = True

    # Scoring
    error_penalty: int = 25
    warning_penalty: int = 10
    complex_workflow_threshold: int = 20

    # Validation cache
    cache_max_size: int = 100
    cache_ttl_seconds: float = 600.0

    _ENV_MAP = {
        "trigger_max_outgoing": "FLOWBUILDER_TRIGGER_MAX_OUTGOING",
        "action_max_outgoing": "FLOWBUILDER_ACTION_MAX_OUTGOING",
        "logic_max_outgoing": "FLOWBUILDER_LOGIC_MAX_OUTGOING",
        "ai_max_outgoing": "FLOWBUILDER_AI_MAX_OUTGOING",
        "handle_aware_duplicates": "FLOWBUILDER_HANDLE_AWARE_DUPLICATES",
        "error_penalty": "FLOWBUILDER_ERROR_PENALTY",
        "warning_penalty": "FLOWBUILDER_WARNING_PENALTY",
        "complex_workflow_threshold": "FLOWBUILDER_COMPLEX_WORKFLOW_THRESHOLD",
        "cache_max_size": "FLOWBUILDER_CACHE_MAX_SIZE",
        "cache_ttl_seconds": "FLOWBUILDER_CACHE_TTL_SECONDS",
    }

    def __post_init__(self) -> None:
        for fmeta in self.get_fields_metadata():
            fmeta.check(getattr(self, fmeta.name))

    @classmethod
    def get_default_instance(cls) -> "RulesConfig":
        defaults = read_env_defaults(cls._ENV_MAP, cls.__dataclass_fields__)
        return cls(**defaults)

    @classmethod
    def get_config_name(cls) -> str:
        return "workflow_rules"

    @classmethod
    def get_display_name(cls) -> str:
        return "Workflow Rules"

    @classmethod
    def get_description(cls) -> str:
        return "Connection limits and quality-score weights for the workflow editor."

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return [
            # Connection group
            ConfigField(
                name="trigger_max_outgoing",
                field_type=FieldType.NUMBER,
                label="Trigger Fan-out",
                description="Maximum outgoing connections from a trigger node",
                default=3,
                min_value=1,
                group="connections",
            ),
            ConfigField(
                name="action_max_outgoing",
                field_type=FieldType.NUMBER,
                label="Action Fan-out",
                description="Maximum outgoing connections from an action node",
                default=2,
                min_value=1,
                group="connections",
            ),
            ConfigField(
                name="logic_max_outgoing",
                field_type=FieldType.NUMBER,
                label="Logic Fan-out",
                description="Maximum outgoing connections from a logic node (true/false branches)",
                default=2,
                min_value=1,
                group="connections",
            ),
            ConfigField(
                name="ai_max_outgoing",
                field_type=FieldType.NUMBER,
                label="AI Fan-out",
                description="Maximum outgoing connections from an AI node",
                default=2,
                min_value=1,
                group="connections",
            ),
            ConfigField(
                name="handle_aware_duplicates",
                field_type=FieldType.BOOLEAN,
                label="Per-handle Connections",
                description="Allow distinct named handles to connect the same pair of nodes",
                default=True,
                group="connections",
            ),

            # Scoring group
            ConfigField(
                name="error_penalty",
                field_type=FieldType.NUMBER,
                label="Error Penalty",
                description="Points deducted per error check triggered",
                default=25,
                min_value=0,
                max_value=100,
                group="scoring",
            ),
            ConfigField(
                name="warning_penalty",
                field_type=FieldType.NUMBER,
                label="Warning Penalty",
                description="Points deducted per warning check triggered",
                default=10,
                min_value=0,
                max_value=100,
                group="scoring",
            ),
            ConfigField(
                name="complex_workflow_threshold",
                field_type=FieldType.NUMBER,
                label="Complexity Threshold",
                description="Node count above which a workflow is reported as complex",
                default=20,
                min_value=1,
                group="scoring",
            ),

            # Cache group
            ConfigField(
                name="cache_max_size",
                field_type=FieldType.NUMBER,
                label="Validation Cache Size",
                description="Maximum number of cached validation results",
                default=100,
                min_value=1,
                group="cache",
            ),
            ConfigField(
                name="cache_ttl_seconds",
                field_type=FieldType.NUMBER,
                label="Validation Cache TTL (seconds)",
                description="Time after which a cached validation result expires",
                default=600.0,
                min_value=0,
                group="cache",
            ),
        ]

    def max_outgoing_for(self, category: str) -> int:
        """Fan-out limit for a category name."""
        return getattr(self, f"{category}_max_outgoing")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ── Singleton ──

_config_instance: Optional[RulesConfig] = None


def get_rules_config() -> RulesConfig:
    """Return the global RulesConfig singleton (environment-backed)."""
    global _config_instance
    if _config_instance is None:
        _config_instance = RulesConfig.get_default_instance()
    return _config_instance


def set_rules_config(config: Optional[RulesConfig]) -> None:
    """Replace the global config. ``None`` re-reads the environment on next use."""
    global _config_instance
    _config_instance = config
