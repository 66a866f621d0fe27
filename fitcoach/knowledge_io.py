"""
Knowledge export and import utilities.

Knowledge entries are compiled-in data; this module dumps them to a plain
JSON file and loads them back for tooling convenience. Writes are atomic
(temp file then rename) and imports validate every entry, skipping the
ones that do not pass.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Union

from .knowledge_store import KnowledgeStore
from .models import KnowledgeEntry, create_knowledge_entry


logger = logging.getLogger(__name__)


EXPORT_FORMAT_VERSION = 1


def entry_to_dict(entry: KnowledgeEntry) -> Dict[str, Any]:
    """Serialize one entry to JSON-compatible values."""
    return {
        "id": entry.id,
        "patterns": list(entry.patterns),
        "response": entry.response,
        "category": entry.category.value,
        "base_confidence": entry.base_confidence,
        "use_count": entry.use_count,
        "last_used_at": entry.last_used_at.isoformat() if entry.last_used_at else None,
    }


def entry_from_dict(data: Dict[str, Any]) -> KnowledgeEntry:
    """
    Build a validated entry from its serialized form.

    Raises:
        ValueError: If the entry is missing fields or fails validation.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Entry must be an object, got: {type(data).__name__}")

    patterns = data.get("patterns")
    if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
        raise ValueError("Entry patterns must be a list of strings")

    try:
        entry = create_knowledge_entry(
            patterns=data["patterns"],
            response=data["response"],
            category=data["category"],
            confidence=float(data["base_confidence"])
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed entry: {e}") from e

    if data.get("id"):
        entry.id = str(data["id"])
    entry.use_count = int(data.get("use_count") or 0)
    if data.get("last_used_at"):
        entry.last_used_at = datetime.fromisoformat(data["last_used_at"])
    return entry


def export_knowledge(store: KnowledgeStore, path: Union[str, Path]) -> int:
    """
    Write all entries of a store to a JSON file.

    Args:
        store: Source knowledge store.
        path: Destination file path.

    Returns:
        int: Number of entries written.
    """
    start_time = datetime.now()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    entries = store.entries()
    payload = {
        "version": EXPORT_FORMAT_VERSION,
        "exported_at": datetime.now().isoformat(),
        "entries": [entry_to_dict(entry) for entry in entries],
    }

    # Write to temp file first, then rename (atomic operation)
    temp_file = path.with_suffix(path.suffix + '.tmp')
    with open(temp_file, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    temp_file.replace(path)

    elapsed = (datetime.now() - start_time).total_seconds()
    logger.info(f"Exported {len(entries)} knowledge entries to {path} in {elapsed:.3f}s")
    return len(entries)


def import_knowledge(
    store: KnowledgeStore,
    path: Union[str, Path],
    replace: bool = False
) -> int:
    """
    Load entries from a JSON file into a store.

    Invalid entries, and entries whose id already exists in the store, are
    skipped with a warning. With ``replace=True`` the store is cleared
    before the valid entries are added.

    Args:
        store: Target knowledge store.
        path: Source file path.
        replace: Replace existing entries instead of appending.

    Returns:
        int: Number of entries imported.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a knowledge export.
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        try:
            payload = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path} is not valid JSON: {e}") from e

    if not isinstance(payload, dict) or not isinstance(payload.get("entries"), list):
        raise ValueError(f"{path} is not a knowledge export (missing 'entries' list)")

    version = payload.get("version")
    if version != EXPORT_FORMAT_VERSION:
        raise ValueError(f"Unsupported knowledge export version: {version}")

    entries: List[KnowledgeEntry] = []
    for index, raw in enumerate(payload["entries"]):
        try:
            entries.append(entry_from_dict(raw))
        except ValueError as e:
            logger.warning(f"Skipping invalid knowledge entry #{index}: {e}")

    if replace:
        store.clear()

    imported = 0
    for entry in entries:
        if store.get(entry.id) is not None:
            logger.warning(f"Skipping knowledge entry with duplicate id: {entry.id}")
            continue
        store.add(entry)
        imported += 1

    logger.info(f"Imported {imported} knowledge entries from {path}")
    return imported
