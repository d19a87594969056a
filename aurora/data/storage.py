"""Storage module for saving collected records to JSON files."""
import json
from pathlib import Path
from typing import Dict

from aurora.core.logger import setup_logging
from aurora.data.records import to_dict

logger = setup_logging()


def save_results(results: Dict, output_path) -> Path:
    """
    Write a result set to ``output_path`` as UTF-8 JSON.

    Args:
        results: Mapping of RecordKind to typed record
        output_path: Target file; parent directories are created

    Returns:
        Path of the written file
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w', encoding='utf-8') as f:
        json.dump(to_dict(results), f, ensure_ascii=False, indent=2)

    logger.info(f"Saved {len(results)} record(s) to {path}")
    return path


def dumps_results(results: Dict) -> str:
    """Render a result set as pretty-printed JSON text."""
    return json.dumps(to_dict(results), ensure_ascii=False, indent=2)
