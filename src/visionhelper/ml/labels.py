"""Label tables and classifier token resolution.

A label table is the ordered list of class names shipped next to a model,
one label per line, where the line number is the class index. Classifier
tokens come back either as a bare index (``"281"``), an ``"index: name"``
pair (``"281: tabby"``) or an already readable label.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from visionhelper.ml.model_manager import ModelManager

logger = logging.getLogger(__name__)

LabelTable = tuple[str, ...]

EMPTY_TABLE: LabelTable = ()


def read_label_file(path: Path) -> LabelTable:
    """Read a newline-delimited label file, dropping blank lines.

    Raises:
        OSError: If the file cannot be read.
    """
    with path.open(encoding="utf-8") as fh:
        return tuple(stripped for line in fh if (stripped := line.strip()))


def load_label_table(primary: Path, fallback: Path | None = None) -> LabelTable:
    """Load the primary label file, falling back to a shorter one.

    Returns an empty table when neither file can be read; token resolution
    then degrades to passthrough and ``Unknown (...)`` labels.
    """
    try:
        table = read_label_file(primary)
    except OSError as exc:
        logger.error("Error loading labels from %s: %s", primary, exc)
    else:
        logger.info("Loaded %d labels from %s", len(table), primary)
        logger.debug("Sample labels: %s", ", ".join(table[:5]))
        return table

    if fallback is None:
        return EMPTY_TABLE

    try:
        table = read_label_file(fallback)
    except OSError as exc:
        logger.error("Error loading fallback labels from %s: %s", fallback, exc)
        return EMPTY_TABLE

    logger.warning("Loaded %d labels from fallback file %s", len(table), fallback)
    return table


def labels_from_config(config: Mapping[str, object]) -> LabelTable:
    """Build a label table from a model config's ``id2label`` mapping.

    Only the first comma-separated synonym is kept (``"tench, Tinca tinca"``
    becomes ``"tench"``), matching the bundled label files.

    Raises:
        ValueError: If the mapping is missing or its indices have gaps.
    """
    id2label = config.get("id2label")
    if not isinstance(id2label, dict) or not id2label:
        raise ValueError("config has no id2label mapping")
    by_index = {int(key): str(value) for key, value in id2label.items()}
    if sorted(by_index) != list(range(len(by_index))):
        raise ValueError("id2label indices are not contiguous")
    return tuple(by_index[i].split(",")[0].strip() for i in range(len(by_index)))


def load_hub_label_table(model_manager: ModelManager, model_name: str) -> LabelTable:
    """Fetch the label table published with ``model_name`` on the hub.

    Returns an empty table when the config cannot be fetched or parsed.
    """
    try:
        path = model_manager.ensure_config_downloaded(model_name)
        with path.open(encoding="utf-8") as fh:
            table = labels_from_config(json.load(fh))
    except Exception as exc:  # noqa: BLE001 - hub, filesystem and parse errors share no base class
        logger.error("Error loading labels for %s from the hub: %s", model_name, exc)
        return EMPTY_TABLE
    logger.info("Loaded %d labels for %s from %s", len(table), model_name, path)
    return table


def _lookup(index: int, table: Sequence[str]) -> str | None:
    if 0 <= index < len(table):
        return table[index]
    return None


def resolve_label(raw_token: str, table: Sequence[str]) -> str:
    """Map a raw classifier token to a human-readable label.

    Best-effort and cosmetic: any token that cannot be parsed is returned
    unchanged, so this never raises.
    """
    try:
        if raw_token.strip() and all(ch.isdigit() or ch.isspace() for ch in raw_token):
            label = _lookup(int(raw_token.strip()), table)
            return label if label is not None else f"Unknown ({raw_token})"

        if ":" in raw_token:
            left, _, right = raw_token.partition(":")
            label = _lookup(int(left.strip()), table)
            if label is not None:
                return label
            return right.strip() or raw_token

        return raw_token
    except ValueError:
        logger.debug("Error parsing label token %r", raw_token)
        return raw_token
