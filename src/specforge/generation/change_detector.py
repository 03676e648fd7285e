"""Entity-level change detection between specification snapshots.

The detector keeps ``entity_id → fingerprint`` for its own lifetime. A
"modified" decision compares the current fingerprint against that index, and
falls back to fingerprinting the previous snapshot's entity for ids it has
never seen.

Record order: added/modified per category (styles, pages, contexts,
assets), then deleted per category in the same order. Callers should rely on
the set of records, not their sequence.

Example::

    detector = ChangeDetector()
    detector.detect_changes(spec_a)            # all "added", seeds the index
    changes = detector.detect_changes(spec_b, spec_a)
    {c.kind for c in changes}                  # {ChangeKind.MODIFIED, ...}
"""

from __future__ import annotations

from specforge.core.logging import get_logger
from specforge.generation.types import ChangeKind, ChangeRecord
from specforge.spec.fingerprint import fingerprint_entity
from specforge.spec.models import CHANGE_DETECTED_CATEGORIES, Specification

logger = get_logger(__name__)


class ChangeDetector:
    """Diffs specification snapshots entity by entity."""

    def __init__(self) -> None:
        self._fingerprints: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._fingerprints)

    def fingerprint_for(self, entity_id: str) -> str | None:
        """Last fingerprint recorded for an entity, if any."""
        return self._fingerprints.get(entity_id)

    def clear(self) -> None:
        self._fingerprints.clear()

    def detect_changes(
        self,
        current: Specification,
        previous: Specification | None = None,
    ) -> list[ChangeRecord]:
        if previous is None:
            return self._index_all(current)

        changes: list[ChangeRecord] = []

        for category in CHANGE_DETECTED_CATEGORIES:
            before = {e.id: e for e in previous.entities(category)}
            for entity in current.entities(category):
                current_fp = fingerprint_entity(entity)
                previous_entity = before.get(entity.id)

                if previous_entity is None:
                    changes.append(
                        ChangeRecord(
                            entity_id=entity.id,
                            kind=ChangeKind.ADDED,
                            category=category,
                            current_fingerprint=current_fp,
                        )
                    )
                else:
                    previous_fp = self._fingerprints.get(entity.id) or fingerprint_entity(
                        previous_entity
                    )
                    if current_fp != previous_fp:
                        changes.append(
                            ChangeRecord(
                                entity_id=entity.id,
                                kind=ChangeKind.MODIFIED,
                                category=category,
                                previous_fingerprint=previous_fp,
                                current_fingerprint=current_fp,
                            )
                        )

                self._fingerprints[entity.id] = current_fp

        for category in CHANGE_DETECTED_CATEGORIES:
            remaining = {e.id for e in current.entities(category)}
            for entity in previous.entities(category):
                if entity.id in remaining:
                    continue
                changes.append(
                    ChangeRecord(
                        entity_id=entity.id,
                        kind=ChangeKind.DELETED,
                        category=category,
                        previous_fingerprint=self._fingerprints.pop(entity.id, None)
                        or fingerprint_entity(entity),
                    )
                )

        logger.debug(
            "changes.detected",
            added=sum(1 for c in changes if c.kind is ChangeKind.ADDED),
            modified=sum(1 for c in changes if c.kind is ChangeKind.MODIFIED),
            deleted=sum(1 for c in changes if c.kind is ChangeKind.DELETED),
        )
        return changes

    def _index_all(self, spec: Specification) -> list[ChangeRecord]:
        changes = []
        for category in CHANGE_DETECTED_CATEGORIES:
            for entity in spec.entities(category):
                fingerprint = fingerprint_entity(entity)
                self._fingerprints[entity.id] = fingerprint
                changes.append(
                    ChangeRecord(
                        entity_id=entity.id,
                        kind=ChangeKind.ADDED,
                        category=category,
                        current_fingerprint=fingerprint,
                    )
                )
        logger.debug("changes.first_run", added=len(changes))
        return changes


__all__ = ["ChangeDetector"]
