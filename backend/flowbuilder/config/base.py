"""
Config Field Metadata.

Describes configurable fields so that a settings panel can render
them and so that loaded values can be range-checked.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from logging import getLogger
from typing import Any, Dict, Optional

logger = getLogger(__name__)


class FieldType(str, Enum):
    """Input widget type for a config field."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass
class ConfigField:
    """Metadata for a single config field."""
    name: str
    field_type: FieldType
    label: str
    description: str = ""
    default: Any = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    group: str = "general"

    def check(self, value: Any) -> None:
        """Raise ``ValueError`` if a numeric value is out of range."""
        if self.field_type != FieldType.NUMBER:
            return
        if self.min_value is not None and value < self.min_value:
            raise ValueError(
                f"{self.name} must be >= {self.min_value} (got {value})"
            )
        if self.max_value is not None and value > self.max_value:
            raise ValueError(
                f"{self.name} must be <= {self.max_value} (got {value})"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the frontend."""
        return {
            "name": self.name,
            "type": self.field_type.value,
            "label": self.label,
            "description": self.description,
            "default": self.default,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "group": self.group,
        }


# ── Environment helpers ──

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _coerce(raw: str, target_type: Any) -> Any:
    if target_type in (bool, "bool"):
        return raw.strip().lower() in _TRUE_VALUES
    if target_type in (int, "int"):
        return int(raw)
    if target_type in (float, "float"):
        return float(raw)
    return raw


def read_env_defaults(
    env_map: Dict[str, str],
    dataclass_fields: Dict[str, Any],
) -> Dict[str, Any]:
    """Read dataclass field overrides from environment variables.

    ``env_map`` maps field names to environment variable names.
    Unset variables are skipped so the dataclass default applies.
    Values that cannot be coerced are logged and skipped.
    """
    values: Dict[str, Any] = {}
    for field_name, env_name in env_map.items():
        raw = os.environ.get(env_name)
        if raw is None or raw == "":
            continue
        fdef = dataclass_fields.get(field_name)
        target_type = fdef.type if fdef is not None else str
        try:
            values[field_name] = _coerce(raw, target_type)
        except ValueError:
            logger.warning(
                f"Ignoring invalid value for {env_name}: {raw!r}"
            )
    return values
