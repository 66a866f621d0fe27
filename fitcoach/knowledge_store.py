"""
Knowledge Store for rule-based local answers.

This module implements the KnowledgeStore class that holds the built-in
knowledge entries and scores them against a classified message. Scoring
combines literal pattern hits with a permissive word-overlap ratio, weights
safety entries above everything else, and accepts the best entry only when
it clears a fixed threshold.

Usage counters (use_count, last_used_at) are updated on every accepted match
without locking. Concurrent matches may undercount; the counters are only
used for reporting and never feed back into scoring.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from .knowledge_base import build_default_entries
from .models import (
    Category, KnowledgeEntry, KnowledgeMatch, MessageAnalysis,
    create_knowledge_entry
)


logger = logging.getLogger(__name__)


ACCEPTANCE_THRESHOLD = 0.3
LITERAL_MATCH_WEIGHT = 2.0


class KnowledgeStore:
    """
    Scored lookup over a fixed-at-startup collection of knowledge entries.

    Entries may be added or removed at runtime through the administrative
    methods; they are never removed implicitly.
    """

    def __init__(self, entries: Optional[Iterable[KnowledgeEntry]] = None):
        """
        Initialize the store.

        Args:
            entries: Initial entries; defaults to the built-in knowledge table.
        """
        self._entries: List[KnowledgeEntry] = (
            list(entries) if entries is not None else build_default_entries()
        )
        self._lock = threading.RLock()  # Guards structural changes only

        logger.info(f"KnowledgeStore initialized with {len(self._entries)} entries")

    def score(
        self,
        analysis: MessageAnalysis,
        categories: Optional[Set[Category]] = None
    ) -> Optional[KnowledgeMatch]:
        """
        Find the best-scoring entry for a classified message.

        For each pattern of an entry:
        - literal substring hit adds 2 x base_confidence
        - word overlap adds (matched pattern words / pattern words) x
          base_confidence, where a pattern word matches when it contains or
          is contained in any message word

        Safety entries are multiplied by 1.5. The strictly highest score
        wins (ties keep the earlier entry) and is accepted only above 0.3.

        Args:
            analysis: Classified message.
            categories: Optional candidate restriction by category.

        Returns:
            KnowledgeMatch if an entry was accepted, None otherwise.
        """
        message = analysis.original_message.lower()
        message_words = message.split()

        with self._lock:
            candidates = [
                entry for entry in self._entries
                if categories is None or entry.category in categories
            ]

        best_entry: Optional[KnowledgeEntry] = None
        highest_score = 0.0

        for entry in candidates:
            entry_score = self._score_entry(entry, message, message_words)
            if entry_score > highest_score:
                highest_score = entry_score
                best_entry = entry

        if best_entry is None or highest_score <= ACCEPTANCE_THRESHOLD:
            logger.debug(f"No knowledge match (best score {highest_score:.3f})")
            return None

        best_entry.use_count += 1
        best_entry.last_used_at = datetime.now()

        logger.debug(
            f"Knowledge match: category={best_entry.category.value}, "
            f"score={highest_score:.3f}, pattern={best_entry.patterns[0]!r}"
        )
        return KnowledgeMatch(entry=best_entry, score=highest_score)

    def _score_entry(
        self,
        entry: KnowledgeEntry,
        message: str,
        message_words: List[str]
    ) -> float:
        """
        Raw score of one entry, including the category multiplier.

        Args:
            entry: Candidate entry.
            message: Lower-cased message text.
            message_words: Whitespace-split message tokens.

        Returns:
            float: Entry score (0.0 when nothing matches).
        """
        score = 0.0

        for pattern in entry.patterns:
            if pattern in message:
                score += LITERAL_MATCH_WEIGHT * entry.base_confidence

            pattern_words = pattern.split()
            if not pattern_words:
                continue

            match_count = sum(
                1 for pattern_word in pattern_words
                if any(
                    pattern_word in message_word or message_word in pattern_word
                    for message_word in message_words
                )
            )
            score += (match_count / len(pattern_words)) * entry.base_confidence

        return score * self._get_category_weight(entry.category)

    def _get_category_weight(self, category: Category) -> float:
        """
        Get the priority multiplier for a category.

        Args:
            category: Entry category

        Returns:
            float: 1.5 for safety, 1.0 otherwise
        """
        category_weights = {
            Category.SAFETY: 1.5,
        }
        return category_weights.get(category, 1.0)

    # Administrative operations

    def add_entry(
        self,
        patterns: List[str],
        response: str,
        category: Category,
        confidence: float
    ) -> KnowledgeEntry:
        """
        Add a knowledge entry at runtime.

        Args:
            patterns: Non-empty list of phrases.
            response: Text returned verbatim on match.
            category: Entry category (enum or its string value).
            confidence: Base confidence in (0, 1].

        Returns:
            KnowledgeEntry: The stored entry.

        Raises:
            ValueError: If the entry is invalid.
        """
        entry = create_knowledge_entry(patterns, response, category, confidence)
        self.add(entry)
        return entry

    def add(self, entry: KnowledgeEntry) -> None:
        """Append an already-built entry."""
        with self._lock:
            self._entries.append(entry)
        logger.info(f"Knowledge entry added: id={entry.id}, category={entry.category.value}")

    def remove_entry(self, entry_id: str) -> bool:
        """
        Remove a knowledge entry by id.

        Returns:
            True if the entry was removed, False if it didn't exist
        """
        with self._lock:
            for index, entry in enumerate(self._entries):
                if entry.id == entry_id:
                    del self._entries[index]
                    logger.info(f"Knowledge entry removed: id={entry_id}")
                    return True
        return False

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()

    def get(self, entry_id: str) -> Optional[KnowledgeEntry]:
        with self._lock:
            return next((e for e in self._entries if e.id == entry_id), None)

    def entries(self) -> List[KnowledgeEntry]:
        """Snapshot of the entries in iteration order."""
        with self._lock:
            return list(self._entries)

    def get_stats(self) -> Dict[str, object]:
        """
        Get usage statistics for reporting.

        Returns:
            Dictionary with entry counts per category and the most used entries
        """
        entries = self.entries()
        per_category: Dict[str, int] = {}
        for entry in entries:
            per_category[entry.category.value] = per_category.get(entry.category.value, 0) + 1

        most_used = sorted(entries, key=lambda e: e.use_count, reverse=True)[:5]
        return {
            'total_entries': len(entries),
            'entries_per_category': per_category,
            'total_matches': sum(e.use_count for e in entries),
            'most_used': [
                {'id': e.id, 'pattern': e.patterns[0], 'use_count': e.use_count}
                for e in most_used if e.use_count > 0
            ],
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"KnowledgeStore(entries={len(self._entries)})"
