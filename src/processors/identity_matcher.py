"""Match patients to email addresses from a roster CSV"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .field_resolver import CanonicalField, resolve

logger = logging.getLogger(__name__)

# Roster columns used by the default strategies
WHOLE_NAME_KEYS = ("Patient", "patient", "Name", "name")
FIRST_NAME_KEYS = ("First Name",)
LAST_NAME_KEYS = ("Last Name",)


@dataclass(frozen=True)
class MatchStrategy:
    """A named way of reading an identity out of a roster row.

    `candidates` returns the names a row can be matched by (empty if the
    row lacks the columns this strategy needs).
    """

    name: str
    candidates: Callable[[dict[str, str]], list[str]]


def _whole_name_candidates(row: dict[str, str]) -> list[str]:
    return [row[key] for key in WHOLE_NAME_KEYS if row.get(key)]


def _first_last_candidates(row: dict[str, str]) -> list[str]:
    first = next((row[k] for k in FIRST_NAME_KEYS if row.get(k)), "")
    last = next((row[k] for k in LAST_NAME_KEYS if row.get(k)), "")
    if first and last:
        return [f"{first} {last}"]
    return []


DEFAULT_STRATEGIES: tuple[MatchStrategy, ...] = (
    MatchStrategy("whole_name", _whole_name_candidates),
    MatchStrategy("first_last", _first_last_candidates),
)


def normalize_name(name: str) -> str:
    return name.strip().lower()


class IdentityMatcher:
    """
    Find a patient's email in the roster.

    Rows are scanned in file order and the first row satisfying any strategy
    wins, so duplicate roster entries resolve to the earliest one.
    """

    def __init__(
        self,
        roster_rows: Sequence[dict[str, str]],
        strategies: Sequence[MatchStrategy] = DEFAULT_STRATEGIES,
    ):
        self.roster_rows = list(roster_rows)
        self.strategies = list(strategies)

    def find_row(self, full_name: str) -> tuple[dict[str, str], str] | None:
        """Return (roster row, strategy name) for the first match, or None."""
        target = normalize_name(full_name)
        if not target:
            return None

        for row in self.roster_rows:
            for strategy in self.strategies:
                for candidate in strategy.candidates(row):
                    if normalize_name(candidate) == target:
                        return row, strategy.name
        return None

    def match(self, full_name: str) -> str:
        """Return the roster email for `full_name`, or "" if none matches."""
        found = self.find_row(full_name)
        if found is None:
            logger.debug(f"No roster entry for {full_name}")
            return ""

        row, strategy_name = found
        email = resolve(row, CanonicalField.EMAIL).strip()
        if email:
            logger.debug(f"Matched {full_name} via {strategy_name}")
        else:
            logger.warning(f"Roster entry for {full_name} has no email address")
        return email
