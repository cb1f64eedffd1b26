"""JSON exporter for queued payloads."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from chat_sync.exporters.base import Exporter


class JsonExporter(Exporter):
    """Export queued payloads to JSON format."""

    @property
    def extension(self) -> str:
        """Return json extension."""
        return "json"

    def export(self, payloads: Iterable[dict], status: dict, output_path: Path) -> int:
        document = self.build_document(payloads, status)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, ensure_ascii=False)
        return document["count"]
