"""CSV export: the backend formats the file, the client downloads it."""

from __future__ import annotations

import logging
from pathlib import Path

from salo.api.gateway import Gateway
from salo.config import get_settings

logger = logging.getLogger(__name__)

REPORT_TYPES = ("event-summary", "participant", "team")


def report_filename(report_type: str, fmt: str) -> str:
    return f"{report_type}-report.{fmt}"


def export_csv(gw: Gateway, report_type: str, out_dir: str | Path | None = None) -> Path:
    """GET /events/export?format=csv&type=<type> and save the blob.

    Returns the written path.
    """
    if report_type not in REPORT_TYPES:
        raise ValueError(f"Unknown report type: {report_type!r}")

    content, content_type = gw.get_bytes(
        "/events/export", params={"format": "csv", "type": report_type}
    )
    if "text/csv" not in content_type:
        logger.warning("Export returned %r instead of text/csv", content_type or "no content type")

    out = Path(out_dir or get_settings().report_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / report_filename(report_type, "csv")
    path.write_bytes(content)
    logger.info("Exported %s report (%d bytes) to %s", report_type, len(content), path)
    return path
