"""Output renderers for fetched schedules and the temple directory.

Renderers only read the Day / Temple sequences they are given.
"""

from pathlib import Path
from typing import Protocol, Sequence

from src.portal.models import Day, Temple
from src.portal.render.directory import HistogramRenderer, JsonRenderer, TableRenderer
from src.portal.render.grid import HtmlGridRenderer, XlsxGridRenderer


class ScheduleRenderer(Protocol):
    suffix: str

    def render(self, days: Sequence[Day], temple: Temple, destination: Path) -> Path: ...


class TempleRenderer(Protocol):
    def render(self, temples: Sequence[Temple]) -> str: ...


SCHEDULE_RENDERERS: dict[str, ScheduleRenderer] = {
    "html": HtmlGridRenderer(),
    "xlsx": XlsxGridRenderer(),
}

TEMPLE_RENDERERS: dict[str, TempleRenderer] = {
    "table": TableRenderer(),
    "json": JsonRenderer(),
    "histogram": HistogramRenderer(),
}


def render_schedule(
    days: Sequence[Day], temple: Temple, fmt: str, destination: Path
) -> Path:
    """Write days as a seat grid in the given format ("html" or "xlsx").

    The format's extension is appended if destination has none.
    """
    renderer = SCHEDULE_RENDERERS.get(fmt)
    if renderer is None:
        raise ValueError(f"Unknown schedule format {fmt!r}. Valid: {list(SCHEDULE_RENDERERS)}")
    destination = Path(destination)
    if not destination.suffix:
        destination = destination.with_suffix(renderer.suffix)
    return renderer.render(days, temple, destination)


def render_temples(temples: Sequence[Temple], fmt: str) -> str:
    renderer = TEMPLE_RENDERERS.get(fmt)
    if renderer is None:
        raise ValueError(f"Unknown directory format {fmt!r}. Valid: {list(TEMPLE_RENDERERS)}")
    return renderer.render(temples)


def format_days(days: Sequence[Day]) -> str:
    """Plain-text listing of every day and its sessions."""
    return "\n\n".join(str(day) for day in days)


__all__ = [
    "ScheduleRenderer",
    "TempleRenderer",
    "HtmlGridRenderer",
    "XlsxGridRenderer",
    "TableRenderer",
    "JsonRenderer",
    "HistogramRenderer",
    "render_schedule",
    "render_temples",
    "format_days",
]
