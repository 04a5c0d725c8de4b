"""Filing status tokens and the UI/engine translation table.

The UI layer uses hyphenated tokens ("married-jointly"); the engine uses
camel-case tokens ("marriedFilingJointly"). Translation happens only here.
Unknown values resolve to single.
"""

import logging
from enum import Enum
from typing import Union

logger = logging.getLogger(__name__)


class FilingStatus(str, Enum):
    """Engine filing status tokens."""

    SINGLE = "single"
    MARRIED_FILING_JOINTLY = "marriedFilingJointly"
    MARRIED_FILING_SEPARATELY = "marriedFilingSeparately"
    HEAD_OF_HOUSEHOLD = "headOfHousehold"
    QUALIFYING_WIDOW = "qualifyingWidow"

    @property
    def rules_key(self) -> str:
        """Section name for this status in tax_rules/<year>.yaml."""
        return _RULES_KEYS[self]

    @property
    def ui_token(self) -> str:
        return ENGINE_TO_UI[self]


UI_TO_ENGINE = {
    "single": FilingStatus.SINGLE,
    "married-jointly": FilingStatus.MARRIED_FILING_JOINTLY,
    "married-separately": FilingStatus.MARRIED_FILING_SEPARATELY,
    "head-of-household": FilingStatus.HEAD_OF_HOUSEHOLD,
    "qualifying-widow": FilingStatus.QUALIFYING_WIDOW,
}

ENGINE_TO_UI = {status: token for token, status in UI_TO_ENGINE.items()}

_RULES_KEYS = {
    FilingStatus.SINGLE: "single",
    FilingStatus.MARRIED_FILING_JOINTLY: "married_filing_jointly",
    FilingStatus.MARRIED_FILING_SEPARATELY: "married_filing_separately",
    FilingStatus.HEAD_OF_HOUSEHOLD: "head_of_household",
    FilingStatus.QUALIFYING_WIDOW: "qualifying_widow",
}

# Every token either side of the boundary may send, for CLI choices
ALL_TOKENS = sorted(set(UI_TO_ENGINE) | {s.value for s in FilingStatus})


def from_ui(token: str) -> FilingStatus:
    """Translate a UI token to an engine status (unknown -> single)."""
    status = UI_TO_ENGINE.get(token)
    if status is None:
        logger.warning(f"Unknown filing status '{token}', using single")
        return FilingStatus.SINGLE
    return status


def to_ui(status: FilingStatus) -> str:
    """Translate an engine status to its UI token."""
    return ENGINE_TO_UI[FilingStatus(status)]


def normalize_filing_status(value: Union[str, FilingStatus, None]) -> FilingStatus:
    """Resolve a UI token, engine token, or enum member to a FilingStatus.

    None, empty and unrecognized values all resolve to single.
    """
    if isinstance(value, FilingStatus):
        return value
    if not value:
        return FilingStatus.SINGLE
    if value in UI_TO_ENGINE:
        return UI_TO_ENGINE[value]
    try:
        return FilingStatus(value)
    except ValueError:
        logger.warning(f"Unknown filing status '{value}', using single")
        return FilingStatus.SINGLE
