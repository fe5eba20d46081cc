# =============================================================================
# erp_core/offline/warmup.py
# Post-Login Bulk Cache Warm-Up
# =============================================================================

from __future__ import annotations
import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
import logging

from erp_core.offline.cache_manager import CacheEntryManager
from erp_core.offline.entities import ENTITY_SPECS, get_entity
from erp_core.offline.normalizers import items_of

logger = logging.getLogger(__name__)

SETTINGS_CATEGORIZED = "settings_categorized"


@dataclass
class WarmUpReport:
    """Outcome of one warm-up run."""
    item_counts: Dict[str, int] = field(default_factory=dict)
    failed: List[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    duration_seconds: float = 0.0
    completed: bool = False

    @property
    def total_items(self) -> int:
        return sum(self.item_counts.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_counts": dict(self.item_counts),
            "failed": list(self.failed),
            "started_at": self.started_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 3),
            "completed": self.completed,
            "total_items": self.total_items,
        }


def _count(name: str, value: Any) -> int:
    if name == SETTINGS_CATEGORIZED:
        return sum(len(v) for v in value.values()) if isinstance(value, dict) else 0
    return len(items_of(get_entity(name).shape, value))


async def warm_up_all(
    manager: CacheEntryManager,
    entities: Optional[Sequence[str]] = None,
) -> WarmUpReport:
    """
    Force-refresh every entity concurrently and wait for all of them.

    Raw settings are refreshed through the categorizer so they are fetched
    once per warm-up.

    Args:
        manager: Manager whose entries are refreshed
        entities: Restrict to these entity names (default: all)
    """
    names = list(entities) if entities is not None else [spec.name for spec in ENTITY_SPECS]
    include_categorized = "settings" in names
    names = [name for name in names if name != "settings"]

    tasks = [manager.get(name, force_api_refresh=True) for name in names]
    if include_categorized:
        names.append(SETTINGS_CATEGORIZED)
        tasks.append(manager.get_app_settings_categorized(force_api_refresh=True))

    report = WarmUpReport()
    with manager.log_operation(f"Warming up {len(tasks)} cache entries") as ctx:
        results = await asyncio.gather(*tasks, return_exceptions=True)

    for name, result in zip(names, results):
        if isinstance(result, BaseException):
            logger.error(f"Warm-up of '{name}' raised: {result}")
            report.failed.append(name)
            continue
        report.item_counts[name] = _count(name, result)

    report.duration_seconds = ctx.elapsed
    report.completed = True
    logger.info(
        f"Warm-up finished: {report.total_items} items across "
        f"{len(report.item_counts)} entries, {len(report.failed)} failed"
    )
    return report
