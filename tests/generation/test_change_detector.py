"""
Tests for ChangeDetector.

Covers:
- first run reports every change-detected entity as added
- added / modified / deleted between snapshots
- the detector's fingerprint index across calls
"""

from specforge.generation.change_detector import ChangeDetector
from specforge.generation.types import ChangeKind
from specforge.spec.models import EntityCategory, Specification


def three_pages() -> Specification:
    return Specification.from_dict(
        {
            "pages": [
                {"id": "p1", "name": "Home", "mainPrompt": "Home"},
                {"id": "p2", "name": "About", "mainPrompt": "About"},
                {"id": "p3", "name": "Blog", "mainPrompt": "Blog"},
            ]
        }
    )


class TestFirstRun:
    def test_everything_added(self, sample_spec):
        changes = ChangeDetector().detect_changes(sample_spec)
        assert len(changes) == len(sample_spec.all_entities())
        assert {c.kind for c in changes} == {ChangeKind.ADDED}
        assert all(c.current_fingerprint for c in changes)

    def test_templates_are_not_reported(self, sample_spec):
        changes = ChangeDetector().detect_changes(sample_spec)
        assert "t1" not in {c.entity_id for c in changes}
        assert EntityCategory.TEMPLATES not in {c.category for c in changes}


class TestBetweenSnapshots:
    def test_added_modified_deleted(self):
        previous = three_pages()
        current = previous.copy_deep()
        current.find_page("p2").main_prompt = "About us, rewritten"
        current.pages = [p for p in current.pages if p.id != "p3"]
        current.pages.append(previous.find_page("p1").model_copy(update={"id": "p4", "name": "Shop"}))

        changes = ChangeDetector().detect_changes(current, previous)

        assert {(c.entity_id, c.kind) for c in changes} == {
            ("p2", ChangeKind.MODIFIED),
            ("p3", ChangeKind.DELETED),
            ("p4", ChangeKind.ADDED),
        }

    def test_modified_record_carries_both_fingerprints(self):
        previous = three_pages()
        current = previous.copy_deep()
        current.find_page("p1").name = "Start"

        (change,) = ChangeDetector().detect_changes(current, previous)
        assert change.kind is ChangeKind.MODIFIED
        assert change.previous_fingerprint != change.current_fingerprint
        assert change.to_dict()["entityId"] == "p1"

    def test_no_changes(self, sample_spec):
        assert ChangeDetector().detect_changes(sample_spec, sample_spec.copy_deep()) == []

    def test_history_only_edit_is_not_a_change(self, sample_spec):
        current = sample_spec.copy_deep()
        current.find_page("p1").previous_states = [{"id": "p1"}]
        assert ChangeDetector().detect_changes(current, sample_spec) == []

    def test_deleted_records_follow_additions(self):
        previous = three_pages()
        current = Specification.from_dict(
            {"pages": [{"id": "p1", "name": "Home", "mainPrompt": "Home"}, {"id": "p9"}]}
        )
        kinds = [c.kind for c in ChangeDetector().detect_changes(current, previous)]
        assert kinds == [ChangeKind.ADDED, ChangeKind.DELETED, ChangeKind.DELETED]


class TestIndex:
    def test_index_persists_across_calls(self, sample_spec):
        detector = ChangeDetector()
        detector.detect_changes(sample_spec)
        assert len(detector) == len(sample_spec.all_entities())
        fingerprint = detector.fingerprint_for("p1")

        current = sample_spec.copy_deep()
        current.find_page("p1").main_prompt = "New"
        detector.detect_changes(current, sample_spec)
        assert detector.fingerprint_for("p1") != fingerprint

    def test_deleted_entity_leaves_index(self, sample_spec):
        detector = ChangeDetector()
        detector.detect_changes(sample_spec)
        current = sample_spec.copy_deep()
        current.assets = []
        detector.detect_changes(current, sample_spec)
        assert detector.fingerprint_for("a1") is None

    def test_clear(self, sample_spec):
        detector = ChangeDetector()
        detector.detect_changes(sample_spec)
        detector.clear()
        assert len(detector) == 0
