"""Root pytest configuration and fixtures.

This module provides:
- Environment setup (loads .env)
- Sample screen configuration documents shared across packages
- Storage fixtures backed by a temporary SQLite database
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Generator

import pytest
from dotenv import load_dotenv

if TYPE_CHECKING:
    from screen_builder.schema import ScreenConfig
    from screen_builder.screens import ScreenManager

# Load environment variables from .env file
load_dotenv()


# =============================================================================
# Screen Configuration Fixtures
# =============================================================================


@pytest.fixture
def sample_screen_dict() -> dict[str, Any]:
    """A small but complete screen document in its persisted JSON form.

    Layout:
        Applicant (accordion)
        ├── Contact (section, 2 columns)
        │   ├── contactMethod [radio]
        │   ├── email [email]      show when contactMethod == "email"
        │   └── phone [text]       show when contactMethod == "phone"
        └── Notes (section, 1 column)
            ├── intro [heading]
            ├── tags [multiselect]
            ├── escalation [textarea]  enable when tags in ["urgent", "vip"]
            ├── qty [number]
            └── qtyReason [text]   require when qty is not empty
    """
    return {
        "accordions": [
            {
                "id": "acc-applicant",
                "title": "Applicant",
                "isOpen": True,
                "sections": [
                    {
                        "id": "sec-contact",
                        "title": "Contact",
                        "columns": 2,
                        "widgets": [
                            {
                                "id": "w-contact-method",
                                "type": "radio",
                                "label": "Preferred contact",
                                "field": "contactMethod",
                                "required": True,
                                "options": [
                                    {"value": "email", "label": "E-mail"},
                                    {"value": "phone", "label": "Phone"},
                                ],
                            },
                            {
                                "id": "w-email",
                                "type": "email",
                                "label": "E-mail address",
                                "field": "email",
                                "required": True,
                                "validations": [
                                    {
                                        "type": "pattern",
                                        "value": r"^[^@\s]+@[^@\s]+$",
                                        "message": "Enter a valid e-mail",
                                    }
                                ],
                                "dependency": {
                                    "parentFieldId": "contactMethod",
                                    "condition": "equals",
                                    "value": "email",
                                    "action": "show",
                                },
                            },
                            {
                                "id": "w-phone",
                                "type": "text",
                                "label": "Phone number",
                                "field": "phone",
                                "required": True,
                                "dependency": {
                                    "parentFieldId": "contactMethod",
                                    "condition": "equals",
                                    "value": "phone",
                                    "action": "show",
                                },
                            },
                        ],
                    },
                    {
                        "id": "sec-notes",
                        "title": "Notes",
                        "columns": 1,
                        "widgets": [
                            {
                                "id": "w-intro",
                                "type": "heading",
                                "label": "Additional details",
                                "field": "introHeading",
                            },
                            {
                                "id": "w-tags",
                                "type": "multiselect",
                                "label": "Tags",
                                "field": "tags",
                                "options": [
                                    {"value": "urgent", "label": "Urgent"},
                                    {"value": "vip", "label": "VIP"},
                                    {"value": "standard", "label": "Standard"},
                                ],
                            },
                            {
                                "id": "w-escalation",
                                "type": "textarea",
                                "label": "Escalation notes",
                                "field": "escalation",
                                "disabled": True,
                                "dependency": {
                                    "parentFieldId": "tags",
                                    "condition": "contains",
                                    "value": ["urgent", "vip"],
                                    "action": "enable",
                                },
                            },
                            {
                                "id": "w-qty",
                                "type": "number",
                                "label": "Quantity",
                                "field": "qty",
                                "defaultValue": "",
                                "validations": [
                                    {"type": "min", "value": 1, "message": "At least 1"}
                                ],
                            },
                            {
                                "id": "w-qty-reason",
                                "type": "text",
                                "label": "Reason for quantity",
                                "field": "qtyReason",
                                "dependency": {
                                    "parentFieldId": "qty",
                                    "condition": "isNotEmpty",
                                    "action": "require",
                                },
                            },
                        ],
                    },
                ],
            }
        ],
        "metadata": {"version": 1},
    }


@pytest.fixture
def sample_screen(sample_screen_dict: dict[str, Any]) -> ScreenConfig:
    """The sample document parsed into a ScreenConfig."""
    from screen_builder.schema import load_screen_config

    return load_screen_config(sample_screen_dict)


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def screen_manager(tmp_path: Path) -> Generator[ScreenManager, None, None]:
    """A ScreenManager over a throwaway SQLite database."""
    from screen_builder.screens import ScreenManager

    manager = ScreenManager(db_path=tmp_path / "screens.db", require_label=False)
    yield manager
    manager.close()
