"""JSON file sink for exporting records and events."""

import json
import logging
from pathlib import Path
from typing import Any, TextIO

from lendflow.exceptions import SinkError
from lendflow.sinks.serialization import to_dict

logger = logging.getLogger(__name__)


class JsonFileSink:
    """Write batches to ``<entity>.json`` and events to ``<topic>.jsonl``."""

    def __init__(self, output_dir: str | Path, pretty: bool = False) -> None:
        """Initialize JSON file sink.

        Parameters
        ----------
        output_dir : str | Path
            Directory to write JSON files.
        pretty : bool
            Pretty-print batch files. Event lines are always compact.
        """
        self.output_dir = Path(output_dir)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise SinkError(f"Cannot create output directory {self.output_dir}: {exc}") from exc
        self.pretty = pretty
        self._counts: dict[str, int] = {}
        self._streams: dict[str, TextIO] = {}

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Write a batch of records to a JSON file."""
        file_path = self.output_dir / f"{entity_type}.json"
        data = [to_dict(record) for record in records]

        with open(file_path, "w", encoding="utf-8") as f:
            if self.pretty:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
            else:
                json.dump(data, f, ensure_ascii=False, default=str)

        self._counts[entity_type] = len(records)
        logger.debug("Wrote %d %s to %s", len(records), entity_type, file_path)

    def send(self, topic: str, record: Any, key: str | None = None) -> None:
        """Append one event to the topic's JSON Lines file."""
        stream = self._streams.get(topic)
        if stream is None:
            filename = topic.replace(".", "_") + ".jsonl"
            stream = open(self.output_dir / filename, "a", encoding="utf-8")
            self._streams[topic] = stream

        line = {"key": key, "value": to_dict(record)}
        stream.write(json.dumps(line, ensure_ascii=False, default=str) + "\n")
        self._counts[topic] = self._counts.get(topic, 0) + 1

    def flush(self) -> None:
        for stream in self._streams.values():
            stream.flush()

    def close(self) -> None:
        """Close event files and log a summary."""
        for stream in self._streams.values():
            stream.close()
        self._streams.clear()
        logger.info("JSON files written to: %s", self.output_dir)
        for entity_type, count in self._counts.items():
            logger.info("  %s: %d records", entity_type, count)
