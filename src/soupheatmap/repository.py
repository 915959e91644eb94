"""
Match Repository boundary.

The repository lists and loads matches; parsing and storage live outside this
package. MatchRepository is the protocol the session consumes and
InMemoryMatchRepository is a ready-made implementation over already built
MatchDetail objects (used for embedding and in tests).

Implementations raise RepositoryError for every load failure.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from soupheatmap.core.schemas import MatchDetail, MatchSummary

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """A match listing or load failed."""

    def __init__(self, message: str, match_id: str | None = None):
        super().__init__(message)
        self.match_id = match_id


@dataclass(frozen=True)
class ProgressReport:
    """
    Batch load progress.

    indeterminate reports carry no counts; they stand in for a repository that
    does not report progress itself.
    """

    processed: int = 0
    total: int = 0
    indeterminate: bool = False

    @property
    def percentage(self) -> float | None:
        if self.indeterminate or self.total <= 0:
            return None
        return self.processed / self.total * 100

    @property
    def is_complete(self) -> bool:
        return not self.indeterminate and self.total > 0 and self.processed >= self.total


ProgressCallback = Callable[[ProgressReport], None]


@runtime_checkable
class MatchRepository(Protocol):
    """Source of match data."""

    def list_matches(self, folder: str) -> list[MatchSummary]:
        """Summaries of every match in folder."""
        ...

    def get_match_detail(self, folder: str, match_id: str) -> MatchDetail:
        """Full detail of one match."""
        ...

    def get_match_details(
        self,
        folder: str,
        match_ids: Sequence[str],
        on_progress: ProgressCallback | None = None,
    ) -> list[MatchDetail]:
        """Details of several matches, in match_ids order."""
        ...


class InMemoryMatchRepository:
    """
    Repository over MatchDetail objects grouped by folder.

    Reports (processed, total) after every match of a batch load.
    """

    def __init__(self, folders: dict[str, Iterable[MatchDetail]] | None = None):
        self._folders: dict[str, dict[str, MatchDetail]] = {}
        for folder, matches in (folders or {}).items():
            self.add_matches(folder, matches)

    def add_matches(self, folder: str, matches: Iterable[MatchDetail]) -> None:
        bucket = self._folders.setdefault(folder, {})
        for match in matches:
            bucket[match.match_id] = match

    def _folder(self, folder: str) -> dict[str, MatchDetail]:
        try:
            return self._folders[folder]
        except KeyError:
            raise RepositoryError(f"Folder not found: {folder}") from None

    def list_matches(self, folder: str) -> list[MatchSummary]:
        return [match.summary() for match in self._folder(folder).values()]

    def get_match_detail(self, folder: str, match_id: str) -> MatchDetail:
        matches = self._folder(folder)
        if match_id not in matches:
            raise RepositoryError(f"Match not found: {match_id}", match_id=match_id)
        return matches[match_id]

    def get_match_details(
        self,
        folder: str,
        match_ids: Sequence[str],
        on_progress: ProgressCallback | None = None,
    ) -> list[MatchDetail]:
        details = []
        total = len(match_ids)
        for processed, match_id in enumerate(match_ids, start=1):
            details.append(self.get_match_detail(folder, match_id))
            if on_progress is not None:
                on_progress(ProgressReport(processed=processed, total=total))
        logger.debug(f"Loaded {total} matches from {folder}")
        return details
