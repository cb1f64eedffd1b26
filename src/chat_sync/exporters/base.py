"""Base exporter interface for queued payloads."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable


class Exporter(ABC):
    """Base class for offline queue exporters."""

    @property
    @abstractmethod
    def extension(self) -> str:
        """File extension without dot (e.g., 'json', 'yaml')."""
        ...

    @abstractmethod
    def export(self, payloads: Iterable[dict], status: dict, output_path: Path) -> int:
        """Export queued payloads to file.

        Args:
            payloads: Queued payload dicts, oldest first.
            status: Sync status summary written alongside the payloads.
            output_path: Path to output file.

        Returns:
            Number of payloads exported.
        """
        ...

    @staticmethod
    def build_document(payloads: Iterable[dict], status: dict) -> dict:
        """Assemble the exported document.

        Args:
            payloads: Queued payload dicts, oldest first.
            status: Sync status summary.

        Returns:
            Dictionary with status, payloads and count.
        """
        data = list(payloads)
        return {
            "status": dict(status),
            "payloads": data,
            "count": len(data),
        }


def get_exporter(fmt: str) -> Exporter:
    """Return the exporter for a format name ('json' or 'yaml')."""
    from chat_sync.exporters.json_exporter import JsonExporter
    from chat_sync.exporters.yaml_exporter import YamlExporter

    exporters: dict[str, Exporter] = {
        "json": JsonExporter(),
        "yaml": YamlExporter(),
        "yml": YamlExporter(),
    }
    try:
        return exporters[fmt.lower()]
    except KeyError:
        raise ValueError(f"Unknown export format: {fmt}") from None
