"""Output sinks for exporting lending records and events."""

from lendflow.sinks.console import ConsoleSink
from lendflow.sinks.json_file import JsonFileSink
from lendflow.sinks.kafka import KafkaSink

__all__ = ["ConsoleSink", "JsonFileSink", "KafkaSink"]
