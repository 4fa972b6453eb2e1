"""CSV export — one (content, Length) column pair per ad group.

Ad groups sit side by side with a blank column between them, each column
reading top to bottom: Headlines, Descriptions, Sitelinks, Callouts. Label
and blank rows get an empty Length cell. Every cell is quoted.
"""

from __future__ import annotations

import csv
import logging
from datetime import date
from pathlib import Path

import pandas as pd

import config
from schemas.ad_copy import GeneratedAdGroup

logger = logging.getLogger(__name__)


def _ad_group_columns(ad_group: GeneratedAdGroup) -> tuple[list[str], list[str]]:
    content: list[str] = []
    lengths: list[str] = []

    def push(text: str, is_label: bool = False):
        content.append(text)
        lengths.append("" if is_label or text == "" else str(len(text)))

    multiple_variants = len(ad_group.variants) > 1

    push("Headlines", True)
    for v_idx, variant in enumerate(ad_group.variants, start=1):
        if multiple_variants:
            push(f"--- Ad Variant {v_idx} ---", True)
        for headline in variant.headlines:
            push(headline.text)

    push("")
    push("Descriptions", True)
    for v_idx, variant in enumerate(ad_group.variants, start=1):
        if multiple_variants:
            push(f"--- Ad Variant {v_idx} ---", True)
        for description in variant.descriptions:
            push(description.text)

    if ad_group.sitelinks:
        push("")
        push("Sitelinks", True)
        for s_idx, sitelink in enumerate(ad_group.sitelinks, start=1):
            if s_idx > 1:
                push("")
            push(f"Sitelink {s_idx} Title:", True)
            push(sitelink.title)
            push(f"Sitelink {s_idx} Desc 1:", True)
            push(sitelink.description1)
            push(f"Sitelink {s_idx} Desc 2:", True)
            push(sitelink.description2)

    if ad_group.callouts:
        push("")
        push("Callouts", True)
        for callout in ad_group.callouts:
            push(callout.text)

    return content, lengths


def build_grid(ad_groups: list[GeneratedAdGroup]) -> list[list[str]]:
    """Header row plus content rows, every row the same width."""
    columns: list[list[str]] = []
    header: list[str] = []
    for idx, ad_group in enumerate(ad_groups):
        content, lengths = _ad_group_columns(ad_group)
        columns.extend([content, lengths])
        header.extend([ad_group.ad_group_name or f"Ad Group #{idx + 1}", "Length"])
        if idx < len(ad_groups) - 1:
            columns.append([])
            header.append("")

    max_rows = max((len(col) for col in columns), default=0)
    padded = [col + [""] * (max_rows - len(col)) for col in columns]
    rows = [list(row) for row in zip(*padded)]
    return [header] + rows


def build_csv(ad_groups: list[GeneratedAdGroup]) -> str:
    if not ad_groups:
        return ""
    frame = pd.DataFrame(build_grid(ad_groups), dtype=str)
    return frame.to_csv(
        index=False,
        header=False,
        quoting=csv.QUOTE_ALL,
        lineterminator="\r\n",
    )


def default_export_path() -> Path:
    return config.OUTPUT_DIR / f"google_ads_copy_vertical_{date.today().isoformat()}.csv"


def export_csv(ad_groups: list[GeneratedAdGroup], path: Path | None = None) -> Path:
    """Write the CSV (UTF-8 with BOM so spreadsheet apps keep the accents)."""
    if not ad_groups:
        raise ValueError("Nothing to export — generate ads first.")
    path = Path(path) if path else default_export_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(build_csv(ad_groups), encoding="utf-8-sig", newline="")
    logger.info("CSV exported: %s (%d ad groups)", path, len(ad_groups))
    return path
