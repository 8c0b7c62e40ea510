"""Screen configuration validation and static analysis.

Two layers are provided:

- ``validate_screen_config`` checks the structural shape of a raw document
  before it is persisted. It never raises and accumulates every violation.
- ``lint_screen_config`` inspects a parsed ScreenConfig for authoring
  mistakes the structural check lets through (duplicate fields, dangling
  dependency references). Lint issues are warnings and never block a save.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any

from pydantic import BaseModel

from screen_builder.schema import (
    VALUE_CONDITIONS,
    ScreenConfig,
    dump_screen_config,
    iter_widgets,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Structural Validation
# =============================================================================


@dataclass
class ValidationResult:
    """Outcome of structural validation.

    Attributes:
        valid: True iff ``errors`` is empty.
        errors: Human-readable messages in discovery order.
    """

    valid: bool
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_screen_config(
    candidate: Any, require_label: bool = False
) -> ValidationResult:
    """Validate the structure of a screen configuration document.

    Checks, in order:
        1. The candidate is an object with an ``accordions`` array
           (otherwise one error is returned immediately).
        2. Every accordion has an id, a title and a ``sections`` array.
        3. Every section has an id, a title, numeric ``columns`` and a
           ``widgets`` array.
        4. Every widget has an id, a type and a field (and a label when
           ``require_label`` is set).

    Args:
        candidate: A decoded JSON value or a ScreenConfig model.
        require_label: Also require a non-empty widget label.

    Returns:
        ValidationResult with every violation found.

    Example:
        >>> result = validate_screen_config({"accordions": [{"title": "A"}]})
        >>> result.errors
        ['Accordion at index 0 is missing an id', 'Accordion at index 0 is missing sections array']
    """
    if isinstance(candidate, ScreenConfig):
        candidate = dump_screen_config(candidate)
    elif isinstance(candidate, BaseModel):
        candidate = candidate.model_dump(mode="json", by_alias=True)

    # Arrays fall through to the accordions check
    if not isinstance(candidate, (dict, list)):
        return ValidationResult(
            valid=False, errors=["Screen configuration must be an object"]
        )

    accordions = candidate.get("accordions") if isinstance(candidate, dict) else None
    if not isinstance(accordions, list):
        return ValidationResult(
            valid=False,
            errors=["Screen configuration must contain an accordions array"],
        )

    errors: list[str] = []
    for index, accordion in enumerate(accordions):
        errors.extend(_validate_accordion(index, accordion, require_label))

    if errors:
        logger.debug("Screen configuration has %d structural errors", len(errors))
    return ValidationResult(valid=not errors, errors=errors)


def _validate_accordion(index: int, accordion: Any, require_label: bool) -> list[str]:
    if not isinstance(accordion, dict):
        accordion = {}
    errors: list[str] = []
    prefix = f"Accordion at index {index}"

    if not accordion.get("id"):
        errors.append(f"{prefix} is missing an id")
    if not accordion.get("title"):
        errors.append(f"{prefix} is missing a title")

    sections = accordion.get("sections")
    if not isinstance(sections, list):
        errors.append(f"{prefix} is missing sections array")
        return errors

    name = accordion.get("title") or index
    for section_index, section in enumerate(sections):
        errors.extend(
            _validate_section(section_index, section, name, require_label)
        )
    return errors


def _validate_section(
    index: int, section: Any, accordion_name: Any, require_label: bool
) -> list[str]:
    if not isinstance(section, dict):
        section = {}
    errors: list[str] = []
    prefix = f"Section at index {index} in accordion {accordion_name}"

    if not section.get("id"):
        errors.append(f"{prefix} is missing an id")
    if not section.get("title"):
        errors.append(f"{prefix} is missing a title")
    if not _is_number(section.get("columns")):
        errors.append(f"{prefix} is missing columns property")

    widgets = section.get("widgets")
    if not isinstance(widgets, list):
        errors.append(f"{prefix} is missing widgets array")
        return errors

    name = section.get("title") or index
    for widget_index, widget in enumerate(widgets):
        if not isinstance(widget, dict):
            widget = {}
        widget_prefix = f"Widget at index {widget_index} in section {name}"
        if not widget.get("id"):
            errors.append(f"{widget_prefix} is missing an id")
        if not widget.get("type"):
            errors.append(f"{widget_prefix} is missing a type")
        if not widget.get("field"):
            errors.append(f"{widget_prefix} is missing a field")
        if require_label and not widget.get("label"):
            errors.append(f"{widget_prefix} is missing a label")
    return errors


def is_valid(candidate: Any, require_label: bool = False) -> bool:
    """Check if a screen configuration document is structurally valid."""
    return validate_screen_config(candidate, require_label=require_label).valid


# =============================================================================
# Static Analysis
# =============================================================================


@dataclass
class ValidationIssue:
    """A non-blocking authoring problem in a screen configuration.

    Attributes:
        widget_id: ID of the widget the issue concerns.
        message: Human-readable description.
        issue_type: Category of the issue.
    """

    widget_id: str
    message: str
    issue_type: str


def lint_screen_config(config: ScreenConfig) -> list[ValidationIssue]:
    """Find authoring mistakes in a parsed screen configuration.

    Performs the following checks:
        - Duplicate widget ids
        - Duplicate fields among value-holding widgets
        - Dependencies on a field no widget declares
        - Dependencies on the widget's own field
        - Comparison conditions without a target value
        - isEmpty/isNotEmpty conditions carrying a target value

    Args:
        config: Parsed screen configuration.

    Returns:
        list[ValidationIssue]: Issues found (empty if clean).
    """
    issues: list[ValidationIssue] = []
    widgets = list(iter_widgets(config))

    id_counts: dict[str, int] = {}
    field_owners: dict[str, list[str]] = {}
    for widget in widgets:
        id_counts[widget.id] = id_counts.get(widget.id, 0) + 1
        if widget.holds_value and widget.field:
            field_owners.setdefault(widget.field, []).append(widget.id)

    for widget_id, count in id_counts.items():
        if count > 1:
            issues.append(
                ValidationIssue(
                    widget_id=widget_id,
                    message=f"Duplicate widget ID '{widget_id}' appears {count} times",
                    issue_type="duplicate_id",
                )
            )

    for field_name, owners in field_owners.items():
        if len(owners) > 1:
            issues.append(
                ValidationIssue(
                    widget_id=owners[1],
                    message=(
                        f"Field '{field_name}' is shared by widgets "
                        f"{', '.join(owners)}"
                    ),
                    issue_type="duplicate_field",
                )
            )

    for widget in widgets:
        dependency = widget.dependency
        if dependency is None:
            continue
        parent = dependency.parent_field_id

        if widget.field and parent == widget.field:
            issues.append(
                ValidationIssue(
                    widget_id=widget.id,
                    message=f"Widget '{widget.id}' depends on its own field '{parent}'",
                    issue_type="self_reference",
                )
            )
        elif parent not in field_owners:
            issues.append(
                ValidationIssue(
                    widget_id=widget.id,
                    message=(
                        f"Widget '{widget.id}' depends on unknown field '{parent}'"
                    ),
                    issue_type="unknown_parent",
                )
            )

        has_value = dependency.value is not None
        if dependency.condition in VALUE_CONDITIONS and not has_value:
            issues.append(
                ValidationIssue(
                    widget_id=widget.id,
                    message=(
                        f"Condition '{dependency.condition}' on widget "
                        f"'{widget.id}' has no value to compare against"
                    ),
                    issue_type="missing_value",
                )
            )
        elif dependency.condition not in VALUE_CONDITIONS and has_value:
            issues.append(
                ValidationIssue(
                    widget_id=widget.id,
                    message=(
                        f"Condition '{dependency.condition}' on widget "
                        f"'{widget.id}' ignores its value"
                    ),
                    issue_type="unused_value",
                )
            )

    return issues


__all__ = [
    "ValidationResult",
    "ValidationIssue",
    "validate_screen_config",
    "is_valid",
    "lint_screen_config",
]
