"""Specification model, fingerprints, and editor."""

from specforge.spec.editor import SpecificationEditor
from specforge.spec.fingerprint import (
    fingerprint_entity,
    fingerprint_page,
    fingerprint_spec,
    normalize_spec,
)
from specforge.spec.models import (
    Asset,
    Context,
    Entity,
    EntityCategory,
    Page,
    PageType,
    Specification,
    StyleGuide,
    Template,
)

__all__ = [
    "Asset",
    "Context",
    "Entity",
    "EntityCategory",
    "Page",
    "PageType",
    "Specification",
    "SpecificationEditor",
    "StyleGuide",
    "Template",
    "fingerprint_entity",
    "fingerprint_page",
    "fingerprint_spec",
    "normalize_spec",
]
