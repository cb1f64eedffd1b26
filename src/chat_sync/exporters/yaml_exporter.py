"""YAML exporter for queued payloads."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import yaml

from chat_sync.exporters.base import Exporter


class YamlExporter(Exporter):
    """Export queued payloads to YAML format."""

    @property
    def extension(self) -> str:
        """Return yaml extension."""
        return "yaml"

    def export(self, payloads: Iterable[dict], status: dict, output_path: Path) -> int:
        """Export payloads to YAML file.

        Args:
            payloads: Queued payload dicts, oldest first.
            status: Sync status summary.
            output_path: Path to output YAML file.

        Returns:
            Number of payloads exported.
        """
        document = self.build_document(payloads, status)
        with open(output_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(document, f, allow_unicode=True, sort_keys=False)
        return document["count"]
