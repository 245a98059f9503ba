"""Writes a rendered ContentOutput to disk as .md, .html and .json files."""

from __future__ import annotations

import json
import logging
import os
import re
from datetime import date
from typing import NamedTuple, Optional

from content_pipeline.models import ContentOutput

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-z0-9]+")


class WrittenFiles(NamedTuple):
    markdown: str
    html: str
    json: str


def slugify(text: str, max_length: int = 80) -> str:
    slug = _UNSAFE_CHARS.sub("-", text.lower()).strip("-")
    return slug[:max_length].rstrip("-") or "content"


def write_output(
    output: ContentOutput,
    output_dir: str,
    name: str,
    today: Optional[date] = None,
) -> WrittenFiles:
    """Write all three formats as ``<slug> - <date>.<ext>`` under ``output_dir``."""
    os.makedirs(output_dir, exist_ok=True)
    stem = f"{slugify(name)} - {(today or date.today()).isoformat()}"
    paths = WrittenFiles(
        markdown=os.path.join(output_dir, f"{stem}.md"),
        html=os.path.join(output_dir, f"{stem}.html"),
        json=os.path.join(output_dir, f"{stem}.json"),
    )

    with open(paths.markdown, "w", encoding="utf-8") as f:
        f.write(output.markdown)
    with open(paths.html, "w", encoding="utf-8") as f:
        f.write(output.html)
    with open(paths.json, "w", encoding="utf-8") as f:
        json.dump(output.record.to_wire(), f, indent=2, ensure_ascii=False)

    logger.info("Files written to %s (%d words)", output_dir, output.word_count)
    return paths
