"""Offline queue exporters for JSON and YAML formats."""

from chat_sync.exporters.base import Exporter, get_exporter
from chat_sync.exporters.json_exporter import JsonExporter
from chat_sync.exporters.yaml_exporter import YamlExporter

__all__ = [
    "Exporter",
    "JsonExporter",
    "YamlExporter",
    "get_exporter",
]
