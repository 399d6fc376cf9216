"""JSON output for pipeline records and run summaries.

This module provides the JSON-lines sink used by the demo pipeline and the
formatter that serializes a run summary.
"""

import json
from pathlib import Path
from typing import Any, Dict, Sequence

from src.models.data_models import RunSummary


class JsonLinesSink:
    """
    Sink appending each record as one JSON object per line.

    Creates parent directories on first write. Throughput is counted by the
    orchestrator, which wraps whatever sink it is given.
    """

    def __init__(self, path: str = "out/records.jsonl"):
        self.path = Path(path)

    def write(self, records: Sequence[Any]) -> None:
        """
        Append a batch of records.

        Args:
            records: JSON-serializable records

        Raises:
            OSError: If the file cannot be written
            TypeError: If a record is not JSON-serializable
        """
        lines = [json.dumps(record, ensure_ascii=False) for record in records]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'a', encoding='utf-8') as f:
            for line in lines:
                f.write(line + "\n")


class SummaryFormatter:
    """Formats a run summary as JSON."""

    def format(self, summary: RunSummary) -> Dict[str, Any]:
        return {"summary": summary.to_dict()}

    def save(self, summary: RunSummary, path: str = "out/summary.json") -> None:
        """
        Save formatted summary to a JSON file.

        Creates parent directories if they don't exist. Uses 2-space
        indentation for readability.
        """
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(self.format(summary), f, indent=2, ensure_ascii=False)
