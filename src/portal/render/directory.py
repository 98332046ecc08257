"""Temple directory renderers: fixed-width table, JSON, dedication histogram."""

import json
from collections import Counter
from typing import Sequence

from src.portal.models import Temple


class TableRenderer:
    """Columns: Name | Status | Dedicated | Org ID | Country"""

    headers = ["Name", "Status", "Dedicated", "Org ID", "Country"]

    def render(self, temples: Sequence[Temple]) -> str:
        if not temples:
            return "(no temples)"

        rows = []
        for t in temples:
            rows.append(
                [
                    t.name,
                    t.status.value.title(),
                    t.dedicated.isoformat() if t.dedicated else "-",
                    str(t.temple_org_id),
                    t.country or "-",
                ]
            )

        widths = [len(h) for h in self.headers]
        for row in rows:
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], len(cell))

        header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(self.headers))
        separator = "-+-".join("-" * w for w in widths)
        row_lines = [
            " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)) for row in rows
        ]
        return "\n".join([header_line, separator, *row_lines])


class JsonRenderer:
    def render(self, temples: Sequence[Temple]) -> str:
        records = [t.model_dump(mode="json", by_alias=True) for t in temples]
        return json.dumps(records, indent=2, ensure_ascii=False)


class HistogramRenderer:
    """Dedications per decade, one '#' per temple."""

    def render(self, temples: Sequence[Temple]) -> str:
        decades = Counter(t.dedicated.year // 10 * 10 for t in temples if t.dedicated)
        undated = sum(1 for t in temples if t.dedicated is None)
        if not decades and not undated:
            return "(no temples)"

        labels = {decade: f"{decade}s" for decade in decades}
        if undated:
            labels["undated"] = "undated"
        width = max(len(label) for label in labels.values())

        lines = [
            f"{labels[decade].rjust(width)} | {'#' * decades[decade]} {decades[decade]}"
            for decade in sorted(decades)
        ]
        if undated:
            lines.append(f"{'undated'.rjust(width)} | {'#' * undated} {undated}")
        return "\n".join(lines)
