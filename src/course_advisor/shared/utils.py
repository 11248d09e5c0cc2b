"""
Utilities Module - Common helper functions.
==========================================

Provides utility functions for:
- Hashing (SHA256 fingerprints for cache keys)
- ID generation (stable, reproducible chunk IDs)
- File I/O (JSON)
- Directory management
- Vector math
"""

import hashlib
import json
import math
import re
from pathlib import Path
from typing import Any, Sequence

from course_advisor.shared.logging import get_logger

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Hashing Functions
# ─────────────────────────────────────────────────────────────────────────────


def compute_hash(text: str, algorithm: str = "sha256") -> str:
    """
    Compute hash of text content.

    Args:
        text: Text to hash
        algorithm: Hash algorithm (default: sha256)

    Returns:
        Hexadecimal hash string

    Example:
        >>> compute_hash("hello world")
        'b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9'
    """
    hasher = hashlib.new(algorithm)
    hasher.update(text.encode("utf-8"))
    return hasher.hexdigest()


# ─────────────────────────────────────────────────────────────────────────────
# ID Generation
# ─────────────────────────────────────────────────────────────────────────────


def normalize_tag(tag: str) -> str:
    """
    Normalize a source-document tag for use in IDs.

    Example:
        >>> normalize_tag("Course Catalog 2025")
        'course_catalog_2025'
    """
    normalized = re.sub(r"\s+", "_", tag.strip().lower())
    normalized = re.sub(r"[^a-z0-9_\-]", "", normalized)
    return normalized or "unknown"


def generate_chunk_id(source_tag: str, chunk_index: int, text_hash: str) -> str:
    """
    Generate stable chunk ID.

    Format: {source_tag}_{index}_{hash_prefix}

    Example:
        >>> generate_chunk_id("catalog", 0, "abc123def456")
        'catalog_0_abc123de'
    """
    return f"{normalize_tag(source_tag)}_{chunk_index}_{text_hash[:8]}"


# ─────────────────────────────────────────────────────────────────────────────
# Directory Management
# ─────────────────────────────────────────────────────────────────────────────


def ensure_directory(path: Path) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Returns:
        The path (for chaining)
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def ensure_parent_directory(file_path: Path) -> Path:
    """Ensure the parent directory of a file exists."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    return file_path


# ─────────────────────────────────────────────────────────────────────────────
# JSON File I/O
# ─────────────────────────────────────────────────────────────────────────────


def load_json(file_path: Path) -> Any:
    """
    Load data from a JSON file.

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file is not valid JSON
    """
    file_path = Path(file_path)

    with open(file_path, "r", encoding="utf-8") as f:
        return json.load(f)


def save_json(file_path: Path, data: Any, indent: int | None = 2) -> None:
    """
    Save data to a JSON file.

    The file is written to a temporary sibling first and then moved into
    place, so a crash mid-write never leaves a truncated file behind.

    Args:
        file_path: Path to JSON file
        data: Data to save (must be JSON serializable)
        indent: Indentation level (None for compact output)
    """
    file_path = Path(file_path)
    ensure_parent_directory(file_path)
    tmp_path = file_path.with_suffix(file_path.suffix + ".tmp")

    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, ensure_ascii=False, default=str)

    tmp_path.replace(file_path)
    logger.debug(f"Saved JSON to {file_path}")


# ─────────────────────────────────────────────────────────────────────────────
# Text Utilities
# ─────────────────────────────────────────────────────────────────────────────


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """Truncate text to a maximum length."""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(suffix)] + suffix


def strip_code_fences(text: str) -> str:
    """
    Remove Markdown code-fence markers wrapping a model response.

    Example:
        >>> strip_code_fences('```json\\n{"a": 1}\\n```')
        '{"a": 1}'
    """
    result = text.strip()
    if result.startswith("```json"):
        result = result[7:]
    elif result.startswith("```"):
        result = result[3:]
    if result.endswith("```"):
        result = result[:-3]
    return result.strip()


# ─────────────────────────────────────────────────────────────────────────────
# Vector Math
# ─────────────────────────────────────────────────────────────────────────────


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity ``dot(a, b) / (|a| * |b|)``.

    Returns 0.0 when either vector has zero magnitude or the lengths differ.
    """
    if len(a) != len(b):
        return 0.0

    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))

    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)
