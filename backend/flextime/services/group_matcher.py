"""
Group label matching for client directory imports.

Maps a free-text group label to a known client group: exact external id or
name first, then thefuzz.token_sort_ratio over group names. Labels that do
not reach the configured threshold stay unmatched and are reported.
"""

import logging
import re
from collections.abc import Sequence

from thefuzz import fuzz

from flextime.core.config import settings
from flextime.db.repository import GroupRef

logger = logging.getLogger(__name__)

_ws_re = re.compile(r"\s+")


def _clean_label(raw: str) -> str:
    """Strip and collapse whitespace."""
    return _ws_re.sub(" ", raw.strip())


class GroupMatcher:
    def __init__(self, groups: Sequence[GroupRef], threshold: int | None = None) -> None:
        self.groups = list(groups)
        self.threshold = settings.FUZZY_MATCH_THRESHOLD if threshold is None else threshold
        self._by_external = {g.external_id.lower(): g for g in self.groups}
        self._by_name = {g.name.lower(): g for g in self.groups}
        self._cache: dict[str, GroupRef | None] = {}

    def match(self, label: str) -> GroupRef | None:
        """
        Return the group for ``label`` or None.

        Results are cached per cleaned label for the lifetime of the matcher,
        so one import pays for each distinct label once.
        """
        cleaned = _clean_label(label)
        key = cleaned.lower()
        if key in self._cache:
            return self._cache[key]

        group = self._by_external.get(key) or self._by_name.get(key)
        if group is None:
            group = self._fuzzy(cleaned)

        self._cache[key] = group
        return group

    def _fuzzy(self, cleaned: str) -> GroupRef | None:
        best_score = 0
        best: GroupRef | None = None
        for group in self.groups:
            score = fuzz.token_sort_ratio(cleaned, group.name)
            if score > best_score:
                best_score = score
                best = group

        if best is not None and best_score >= self.threshold:
            logger.debug(
                "Group matched: '%s' -> %s (score=%d, threshold=%d)",
                cleaned, best.name, best_score, self.threshold,
            )
            return best

        logger.info(
            "Group not found: '%s' (best score=%d < threshold=%d)",
            cleaned, best_score, self.threshold,
        )
        return None
