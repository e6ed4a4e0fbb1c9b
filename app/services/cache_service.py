# =======================================================================================
# app/services/cache_service.py - Door / Machine Cache Snapshots
# =======================================================================================
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Set

from loguru import logger
from pydantic import TypeAdapter
from sqlalchemy.exc import SQLAlchemyError

from ..database import DatabaseManager
from ..models.schemas import DoorCacheEntry, MachineCacheEntry
from ..utils.exceptions import BuildError, CacheUnavailableError
from .member_repository import MemberRepository

_door_adapter = TypeAdapter(List[DoorCacheEntry])
_machine_adapter = TypeAdapter(List[MachineCacheEntry])


@dataclass(frozen=True)
class CacheSnapshot:
    """
    Immutable door + machine views built from one read of the store.

    The JSON payloads are rendered once at build time; they only depend on
    the store contents, so the same store state always renders the same bytes.
    """
    door: Mapping[int, int]
    machine: Mapping[int, FrozenSet[str]]
    door_payload: bytes
    machine_payload: bytes
    built_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 0


def render_door_payload(door: Mapping[int, int]) -> bytes:
    entries = [DoorCacheEntry(tag_id=tag, membership_level=level) for tag, level in sorted(door.items())]
    return _door_adapter.dump_json(entries)


def render_machine_payload(machine: Mapping[int, FrozenSet[str]]) -> bytes:
    entries = [
        MachineCacheEntry(tag_id=tag, trainings=sorted(names))
        for tag, names in sorted(machine.items())
    ]
    return _machine_adapter.dump_json(entries)


class CacheBuilder:
    """Derives the door and machine views from current store state."""

    def __init__(self, db: DatabaseManager, repository: Optional[MemberRepository] = None):
        self.db = db
        self.repository = repository or MemberRepository()

    def build(self) -> CacheSnapshot:
        try:
            with self.db.get_connection() as conn:
                if conn.dialect.name == "sqlite":
                    # pysqlite only opens a transaction before writes; both reads must share one
                    conn.exec_driver_sql("BEGIN")
                members = self.repository.list_members(conn)
                links = self.repository.list_links(conn)
        except SQLAlchemyError as e:
            raise BuildError(f"could not read store: {e}") from e

        door: Dict[int, int] = {}
        for member in members:
            tag_id = member["tag_id"]
            if tag_id == 0:
                continue
            level = member["membership_level"]
            if tag_id in door and door[tag_id] != level:
                logger.warning(
                    f"[cache] Tag {tag_id} is held by several contacts; using highest membership level"
                )
                level = max(level, door[tag_id])
            door[tag_id] = level

        trainings: Dict[int, Set[str]] = {tag_id: set() for tag_id in door}
        for link in links:
            tag_id = link["tag_id"]
            if tag_id not in trainings:
                raise BuildError(f"training link for tag {tag_id} has no member")
            trainings[tag_id].add(link["training_name"])

        machine = {tag_id: frozenset(names) for tag_id, names in trainings.items()}

        return CacheSnapshot(
            door=MappingProxyType(door),
            machine=MappingProxyType(machine),
            door_payload=render_door_payload(door),
            machine_payload=render_machine_payload(machine),
        )


class CacheStore:
    """
    Holds the currently published snapshot.

    Readers take the reference without locking; publish swaps it in one
    assignment. The lock only orders concurrent publishers and the version
    counter.
    """

    def __init__(self):
        self._snapshot: Optional[CacheSnapshot] = None
        self._publish_lock = threading.Lock()
        self._version = 0

    def current(self) -> Optional[CacheSnapshot]:
        return self._snapshot

    def require(self) -> CacheSnapshot:
        """Current snapshot, or CacheUnavailableError before the first successful cycle."""
        snapshot = self._snapshot
        if snapshot is None:
            raise CacheUnavailableError("Cache not yet available")
        return snapshot

    def publish(self, snapshot: CacheSnapshot) -> CacheSnapshot:
        with self._publish_lock:
            self._version += 1
            published = replace(snapshot, version=self._version)
            self._snapshot = published
        logger.info(
            f"[cache] Published snapshot v{published.version}: "
            f"{len(published.door)} door tags, {len(published.machine)} machine tags"
        )
        return published
