import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable

from vodcatalog.services.vod.kinds import EntityKind, REAP_ORDER

logger = logging.getLogger(__name__)


@dataclass
class ReapResult:
    stale_relations: Dict[EntityKind, int] = field(default_factory=dict)
    orphans: Dict[EntityKind, int] = field(default_factory=dict)

    @property
    def relations_removed(self) -> int:
        return sum(self.stale_relations.values())

    @property
    def orphans_removed(self) -> int:
        return sum(self.orphans.values())


class StaleRelationReaper:
    """Removes a provider's stale links, then entities nothing links to.

    Must run inside a single transaction. Every relation table is reaped
    before any entity table is touched, otherwise an entity could be
    removed while a not-yet-reaped relation still points at it.
    """

    def __init__(self, store):
        self.store = store

    def reap(self, provider_id: int, scan_started_at: datetime,
             kinds: Iterable[EntityKind] = REAP_ORDER) -> ReapResult:
        result = ReapResult()
        kinds = set(kinds)

        for kind in REAP_ORDER:
            if kind not in kinds:
                continue
            removed = self.store.delete_stale_relations(kind, provider_id, scan_started_at)
            result.stale_relations[kind] = removed
            if removed > 0:
                logger.info(f"Removed {removed} stale {kind.value} relations for provider {provider_id}")

        # Orphans are global: relations from every provider count.
        for kind in REAP_ORDER:
            removed = self.store.delete_orphan_entities(kind)
            result.orphans[kind] = removed
            if removed > 0:
                logger.info(f"Removed {removed} orphaned {kind.value} entries")

        return result
