"""Completion inference for phase payloads.

Each phase is produced by an independent sub-feature with its own payload
shape, so completion is decided per `PayloadTag` from a closed rule table.
Rules are pure and never raise: a missing or malformed payload simply means
the user has not produced that phase's output yet.
"""

from datetime import datetime
from typing import Any, Callable, Iterable, Mapping

from draftflow.domain.models.phase import PayloadTag, PhaseDescriptor

Rule = Callable[[Mapping[str, Any]], bool]


def _is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) > 0
    return True


def _is_timestamp(value: Any) -> bool:
    if isinstance(value, datetime):
        return True
    if not isinstance(value, str) or not value.strip():
        return False
    text = value.strip()
    # fromisoformat() only accepts a trailing "Z" from Python 3.11 on.
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return False
    return True


def has_timestamp(field: str) -> Rule:
    """Field holds a datetime or an ISO-8601 string."""

    def rule(payload: Mapping[str, Any]) -> bool:
        return _is_timestamp(payload.get(field))

    return rule


def has_fields(*fields: str) -> Rule:
    """Every field is present and non-empty."""

    def rule(payload: Mapping[str, Any]) -> bool:
        return all(_is_filled(payload.get(f)) for f in fields)

    return rule


def has_items(field: str, minimum: int = 1) -> Rule:
    """Field is a list with at least `minimum` entries."""

    def rule(payload: Mapping[str, Any]) -> bool:
        value = payload.get(field)
        return isinstance(value, (list, tuple)) and len(value) >= minimum

    return rule


def has_mapping(field: str) -> Rule:
    """Field is a non-empty mapping."""

    def rule(payload: Mapping[str, Any]) -> bool:
        value = payload.get(field)
        return isinstance(value, Mapping) and len(value) > 0

    return rule


def is_true(field: str) -> Rule:
    """Field is literally True, not merely truthy."""

    def rule(payload: Mapping[str, Any]) -> bool:
        return payload.get(field) is True

    return rule


def all_of(*rules: Rule) -> Rule:
    """Every rule holds."""

    def rule(payload: Mapping[str, Any]) -> bool:
        return all(r(payload) for r in rules)

    return rule


def any_of(*rules: Rule) -> Rule:
    """At least one rule holds."""

    def rule(payload: Mapping[str, Any]) -> bool:
        return any(r(payload) for r in rules)

    return rule


# Single source of truth for what "done" means per payload shape.
COMPLETION_RULES: dict[PayloadTag, Rule] = {
    # Intake wizard
    PayloadTag.INTAKE_BASIC: has_fields("projectName", "initiativeType", "indication"),
    PayloadTag.INTAKE_ASSETS: has_items("selectedAssetTypes"),
    PayloadTag.INTAKE_CONTENT: has_fields("primaryObjective", "keyMessage"),
    PayloadTag.INTAKE_REGULATORY: has_fields("plannedLaunch"),
    # Theme generation
    PayloadTag.THEME_GENERATION: all_of(has_timestamp("generatedAt"), has_items("themes")),
    PayloadTag.THEME_SELECTION: all_of(has_timestamp("selectedAt"), has_mapping("selectedTheme")),
    # Single asset / campaign
    PayloadTag.ASSET_SETUP: has_fields("projectName", "assetType"),
    PayloadTag.CONTENT_DRAFT: has_timestamp("generatedAt"),
    PayloadTag.CAMPAIGN_SETUP: all_of(has_fields("projectName"), has_items("selectedAssetTypes")),
    PayloadTag.CAMPAIGN_ASSETS: has_items("assets"),
    PayloadTag.MLR_REVIEW: has_timestamp("reviewedAt"),
    # Localization / glocal adaptation
    PayloadTag.CONTEXT_CAPTURE: has_timestamp("capturedAt"),
    PayloadTag.TM_ANALYSIS: any_of(has_timestamp("analyzedAt"), is_true("completed")),
    PayloadTag.CULTURAL_REVIEW: has_timestamp("completedAt"),
    PayloadTag.REGULATORY_REVIEW: has_timestamp("reviewedAt"),
    PayloadTag.QUALITY_REVIEW: has_timestamp("completedAt"),
    PayloadTag.DAM_HANDOFF: has_timestamp("generatedAt"),
    PayloadTag.INTEGRATION: has_timestamp("finalizedAt"),
}


def is_complete(phase: PhaseDescriptor, payload: Any) -> bool:
    """Decide whether `payload` is valid output for `phase`.

    Args:
        phase: Descriptor whose payload_tag selects the rule
        payload: Last-known payload for the phase (any shape, may be None)

    Returns:
        True only for a mapping payload that satisfies the phase's rule
    """
    if not isinstance(payload, Mapping):
        return False
    rule = COMPLETION_RULES.get(phase.payload_tag)
    if rule is None:
        return False
    try:
        return bool(rule(payload))
    except Exception:
        # Payloads come from unrelated sub-features; odd shapes mean "not done".
        return False


def completed_phase_ids(
    phases: Iterable[PhaseDescriptor],
    payloads: Mapping[str, Any],
) -> list[str]:
    """Ids of phases whose payload currently satisfies their rule, in registry order."""
    return [p.id for p in phases if is_complete(p, payloads.get(p.id))]
