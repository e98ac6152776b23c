"""JSON serialization of an inventory."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

from fileinventory.models import FileRecord


def write_json(records: Sequence[FileRecord], output_path: Path) -> Path:
    """Write all records as an indented JSON array (``[]`` when empty)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = [record.to_dict() for record in records]
    output_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return output_path
