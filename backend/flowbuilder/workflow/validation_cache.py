"""
Validation Cache — memoize validator results by graph content.

The key is a content hash of the graph, so an edited graph misses the
cache on its own and stale entries age out through LRU eviction or the
TTL. Node positions are excluded from the hash: dragging a node around
the canvas does not change the diagnostics.

Not thread-safe. Each editor session owns its cache.
"""

from __future__ import annotations

import copy
import hashlib
import json
import time
from collections import OrderedDict
from dataclasses import dataclass
from logging import getLogger
from typing import Any, Callable, Dict, Iterable, List, Optional

from flowbuilder.config.rules_config import RulesConfig, get_rules_config
from flowbuilder.workflow.workflow_model import coerce_edges, coerce_nodes
from flowbuilder.workflow.workflow_validator import ValidationResult, validate_workflow

logger = getLogger(__name__)

Validator = Callable[..., ValidationResult]


def workflow_hash(nodes: Iterable[Any], edges: Iterable[Any]) -> str:
    """SHA-256 of a canonical rendering of the graph (positions excluded)."""
    canonical = {
        "nodes": sorted(
            (
                {
                    "id": n.id,
                    "category": n.category.value,
                    "nodeType": n.node_type,
                    "label": n.label,
                    "config": n.config,
                }
                for n in coerce_nodes(nodes)
            ),
            key=lambda d: d["id"],
        ),
        "edges": sorted(
            (
                {
                    "id": e.id,
                    "source": e.source,
                    "target": e.target,
                    "sourceHandle": e.source_handle,
                }
                for e in coerce_edges(edges)
            ),
            key=lambda d: d["id"],
        ),
    }
    payload = json.dumps(canonical, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass
class _Entry:
    result: ValidationResult
    stored_at: float


class ValidationCache:
    """LRU + TTL memoizer around a validator function.

    ``validator`` is called as ``validator(nodes, edges, config=config)``.

    Without an explicit ``config`` the global rules are read on every
    lookup and are part of the cache key. Callers always receive a deep copy, so mutating a returned result
    never corrupts the cache.
    """

    def __init__(
        self,
        max_size: Optional[int] = None,
        ttl_seconds: Optional[float] = None,
        validator: Validator = validate_workflow,
        clock: Callable[[], float] = time.monotonic,
        config: Optional[RulesConfig] = None,
    ) -> None:
        cfg = config or get_rules_config()
        self._max_size = max_size if max_size is not None else cfg.cache_max_size
        self._ttl = ttl_seconds if ttl_seconds is not None else cfg.cache_ttl_seconds
        if self._max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {self._max_size}")
        if self._ttl < 0:
            raise ValueError(f"ttl_seconds must be non-negative, got {self._ttl}")

        self._validator = validator
        self._clock = clock
        self._config = config
        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __len__(self) -> int:
        return len(self._entries)

    # ── Lookup ──

    def get(self, nodes: Iterable[Any], edges: Iterable[Any]) -> ValidationResult:
        """Return the validator result for this graph, computing it on a miss."""
        nodes, edges = list(nodes), list(edges)
        cfg = self._config or get_rules_config()
        key = self._key(nodes, edges, cfg)
        now = self._clock()

        entry = self._entries.get(key)
        if entry is not None and now - entry.stored_at < self._ttl:
            self._entries.move_to_end(key)
            self._hits += 1
            return copy.deepcopy(entry.result)

        if entry is not None:
            logger.debug(f"Validation cache entry expired: {key[:12]}")
            del self._entries[key]

        self._misses += 1
        result = self._validator(nodes, edges, config=cfg)
        self._entries[key] = _Entry(result=copy.deepcopy(result), stored_at=now)
        self._evict()
        return result

    def invalidate(self, nodes: Iterable[Any], edges: Iterable[Any]) -> bool:
        """Drop the entry for this graph. Returns True if one existed."""
        cfg = self._config or get_rules_config()
        key = self._key(list(nodes), list(edges), cfg)
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        lookups = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
            "size": len(self._entries),
            "max_size": self._max_size,
            "hit_rate": self._hits / lookups if lookups else 0.0,
        }

    # ── Internals ──

    @staticmethod
    def _key(nodes: List[Any], edges: List[Any], cfg: RulesConfig) -> str:
        # Same graph under different rules is a different entry.
        rules = json.dumps(cfg.to_dict(), sort_keys=True, default=str)
        digest = hashlib.sha256(rules.encode("utf-8")).hexdigest()[:16]
        return f"{workflow_hash(nodes, edges)}:{digest}"

    def _evict(self) -> None:
        while len(self._entries) > self._max_size:
            key, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug(f"Validation cache evicted: {key[:12]}")
