"""
Resource Registry
-----------------

Tracks every resource a scenario creates (state machines, simulators,
hook sessions, timelines) so teardown can release whatever the test left
behind and report what was still live.

Features:
- Register resources with metadata (category, description, origin)
- Track creation and release time
- Introspection API for leak reports
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from models.enums import ResourceCategory
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.TASK)


# ---------------------------------------------------------------------------
# RESOURCE METADATA
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResourceInfo:
    """Immutable metadata captured at registration time."""
    id: int
    category: ResourceCategory
    description: str
    created_at: str  # ISO UTC string
    created_timestamp: float
    origin_stack: str  # short stack trace of the registering call
    created_by: Optional[str] = None


@dataclass
class ResourceRecord:
    """Internal structure tracking resource state."""
    resource: Any
    info: ResourceInfo
    released: bool = False
    released_at: Optional[str] = None


# ---------------------------------------------------------------------------
# RESOURCE REGISTRY
# ---------------------------------------------------------------------------

class ResourceRegistry:
    """
    Per-scenario registry of created resources.

    Owned by a HarnessContext; there is no process-wide instance.
    """

    def __init__(self) -> None:
        self._records: Dict[int, ResourceRecord] = {}
        self._next_id: int = 1

    def register(
        self,
        resource: Any,
        category: ResourceCategory,
        description: str,
        created_by: Optional[str] = None
    ) -> int:
        """Register a resource with metadata; returns its registry id."""
        resource_id = self._next_id
        self._next_id += 1

        # Drop the last frame which is inside this module
        origin_stack = "".join(traceback.format_stack(limit=6)[:-1])
        now = datetime.now(timezone.utc)

        info = ResourceInfo(
            id=resource_id,
            category=category,
            description=description,
            created_at=now.isoformat(),
            created_timestamp=now.timestamp(),
            origin_stack=origin_stack,
            created_by=created_by,
        )
        self._records[resource_id] = ResourceRecord(resource=resource, info=info)

        log.debug(f"[Resource {resource_id}] Registered ({category.name}) - {description}")
        return resource_id

    def release(self, resource_id: int) -> bool:
        """Mark released; False if unknown or already released."""
        record = self._records.get(resource_id)
        if record is None or record.released:
            return False

        record.released = True
        record.released_at = datetime.now(timezone.utc).isoformat()
        log.debug(f"[Resource {resource_id}] Released")
        return True

    def release_resource(self, resource: Any) -> bool:
        """Release by identity (used from on_finalize / on_unmount callbacks)."""
        for record in self._records.values():
            if record.resource is resource and not record.released:
                return self.release(record.info.id)
        return False

    # -----------------------------
    # Public API
    # -----------------------------

    def list_all(self) -> List[ResourceRecord]:
        return list(self._records.values())

    def active(self, category: Optional[ResourceCategory] = None) -> List[ResourceRecord]:
        """Unreleased resources, optionally of one category, oldest first."""
        return [
            r for r in self._records.values()
            if not r.released and (category is None or r.info.category == category)
        ]

    def released(self) -> List[ResourceRecord]:
        return [r for r in self._records.values() if r.released]

    def summary(self) -> str:
        """Return human-readable summary for logs."""
        total = len(self._records)
        active = len(self.active())
        return f"Resources: total={total}, active={active}, released={total - active}"

    def clear(self) -> None:
        """Forget every record (scenario boundary)."""
        self._records.clear()
