"""
Tests for specforge.spec.fingerprint.

Fingerprints must be deterministic, ignore editor history, list and key
order, and change whenever an output-affecting field changes.
"""

import pytest

from specforge.core.errors import NotFoundError
from specforge.spec.fingerprint import (
    fingerprint_entity,
    fingerprint_page,
    fingerprint_spec,
    normalize_spec,
)
from specforge.spec.models import Specification


class TestDeterminism:
    def test_same_input_same_fingerprint(self, spec_dict):
        a = Specification.from_dict(spec_dict)
        b = Specification.from_dict(spec_dict)
        assert fingerprint_spec(a) == fingerprint_spec(b)
        assert len(fingerprint_spec(a)) == 64

    def test_entity_order_does_not_matter(self, spec_dict):
        reordered = dict(spec_dict, pages=list(reversed(spec_dict["pages"])))
        assert fingerprint_spec(Specification.from_dict(spec_dict)) == fingerprint_spec(
            Specification.from_dict(reordered)
        )

    def test_reference_order_does_not_matter(self, spec_dict):
        spec = Specification.from_dict(spec_dict)
        other = spec.copy_deep()
        other.find_page("p1").reference_ids = ["ctx1", "c2"]
        assert fingerprint_page(spec, "p1") == fingerprint_page(other, "p1")

    def test_history_and_timestamps_are_ignored(self, sample_spec):
        other = sample_spec.copy_deep()
        page = other.find_page("p1")
        page.previous_states = [{"id": "p1", "mainPrompt": "old"}]
        page.current_state_index = 0
        page.updated_at = "2030-01-01T00:00:00Z"
        assert fingerprint_spec(sample_spec) == fingerprint_spec(other)
        assert fingerprint_page(sample_spec, "p1") == fingerprint_page(other, "p1")

    def test_normalized_entities_sorted_by_id(self, sample_spec):
        normalized = normalize_spec(sample_spec)
        ids = [p["id"] for p in normalized["pages"]]
        assert ids == sorted(ids)
        assert set(normalized) == {"styles", "pages", "contexts", "assets", "templates"}


class TestSensitivity:
    def test_prompt_change(self, sample_spec):
        other = sample_spec.copy_deep()
        other.find_page("p1").main_prompt = "Different landing page"
        assert fingerprint_spec(sample_spec) != fingerprint_spec(other)
        assert fingerprint_page(sample_spec, "p1") != fingerprint_page(other, "p1")
        assert fingerprint_page(sample_spec, "p2") == fingerprint_page(other, "p2")

    def test_referenced_context_content_changes_page(self, sample_spec):
        other = sample_spec.copy_deep()
        other.contexts[0].content = "Formal tone."
        assert fingerprint_page(sample_spec, "p1") != fingerprint_page(other, "p1")

    def test_style_visuals_change_every_page(self, sample_spec):
        other = sample_spec.copy_deep()
        other.styles[0].colors = {**other.styles[0].colors, "primary": "#dc2626"}
        for page_id in ("c1", "p1", "p2"):
            assert fingerprint_page(sample_spec, page_id) != fingerprint_page(other, page_id)

    def test_unreferenced_asset_does_not_change_page(self, sample_spec):
        other = sample_spec.copy_deep()
        other.assets[0].link = "https://cdn.example.com/logo-v2.png"
        assert fingerprint_page(sample_spec, "p1") == fingerprint_page(other, "p1")
        assert fingerprint_page(sample_spec, "p2") != fingerprint_page(other, "p2")

    def test_template_changes_spec_fingerprint(self, sample_spec):
        other = sample_spec.copy_deep()
        other.templates[0].tags = ["blog"]
        assert fingerprint_spec(sample_spec) != fingerprint_spec(other)

    def test_entity_fingerprint(self, sample_spec):
        button = sample_spec.find_page("c1")
        renamed = button.model_copy(update={"name": "Primary Button"})
        assert fingerprint_entity(button) != fingerprint_entity(renamed)


class TestErrors:
    def test_unknown_page(self, sample_spec):
        with pytest.raises(NotFoundError) as exc_info:
            fingerprint_page(sample_spec, "nope")
        assert exc_info.value.context.entity_id == "nope"
