"""Output generator — stage 6.

Renders the edited content and its schema into markdown, a standalone HTML
document and a CMS-ready record. Plain string templating, no model call:
asking the model to echo a 2,000-word article back as JSON truncates too often.
"""

from __future__ import annotations

import logging
import re
from html import escape
from typing import Iterable

from content_pipeline.models import (
    ContentBody,
    ContentMeta,
    ContentOutput,
    ContentRecord,
    EditedContent,
    GeneratedSchema,
)

logger = logging.getLogger(__name__)

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def _paragraphs(text: str) -> list[str]:
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


def render_markdown(content: EditedContent) -> str:
    parts = [f"# {content.title}\n", content.introduction + "\n"]

    for section in content.sections:
        parts.append(f"## {section.heading}\n")
        parts.append(section.content + "\n")

    if content.conclusion:
        parts.append("## Conclusion\n")
        parts.append(content.conclusion + "\n")

    if content.faqs:
        parts.append("## Frequently Asked Questions\n")
        for faq in content.faqs:
            parts.append(f"### {faq.question}\n")
            parts.append(faq.answer + "\n")

    return "\n".join(parts)


def render_html(content: EditedContent, schema: GeneratedSchema) -> str:
    """Standalone HTML5 document with JSON-LD in the head and FAQ microdata."""
    # "</" inside the script body would close the tag early
    json_ld = schema.to_json_ld().replace("</", "<\\/")
    title = content.meta_title or content.title

    parts = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '  <meta charset="UTF-8">',
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0">',
        f"  <title>{escape(title)}</title>",
        f'  <meta name="description" content="{escape(content.meta_description)}">',
        '  <script type="application/ld+json">',
        f"    {json_ld}",
        "  </script>",
        "</head>",
        "<body>",
        "<article>",
        f"  <h1>{escape(content.title)}</h1>",
        '  <div class="introduction">',
    ]
    parts += [f"    <p>{escape(p)}</p>" for p in _paragraphs(content.introduction)]
    parts.append("  </div>")

    for section in content.sections:
        parts.append("  <section>")
        parts.append(f"    <h2>{escape(section.heading)}</h2>")
        parts += [f"    <p>{escape(p)}</p>" for p in _paragraphs(section.content)]
        parts.append("  </section>")

    if content.conclusion:
        parts.append('  <section class="conclusion">')
        parts.append("    <h2>Conclusion</h2>")
        parts += [f"    <p>{escape(p)}</p>" for p in _paragraphs(content.conclusion)]
        parts.append("  </section>")

    if content.faqs:
        parts.append('  <section class="faqs">')
        parts.append("    <h2>Frequently Asked Questions</h2>")
        for faq in content.faqs:
            parts += [
                '    <div class="faq-item" itemscope itemtype="https://schema.org/Question">',
                f'      <h3 itemprop="name">{escape(faq.question)}</h3>',
                '      <div itemscope itemprop="acceptedAnswer" itemtype="https://schema.org/Answer">',
                f'        <p itemprop="text">{escape(faq.answer)}</p>',
                "      </div>",
                "    </div>",
            ]
        parts.append("  </section>")

    parts += ["</article>", "</body>", "</html>"]
    return "\n".join(parts)


def render_record(
    content: EditedContent,
    schema: GeneratedSchema,
    keywords: Iterable[str] = (),
) -> ContentRecord:
    unique_keywords = list(dict.fromkeys(k.strip() for k in keywords if k and k.strip()))
    return ContentRecord(
        meta=ContentMeta(
            title=content.meta_title or content.title,
            description=content.meta_description,
            keywords=unique_keywords,
        ),
        content=ContentBody(
            title=content.title,
            introduction=content.introduction,
            sections=content.sections,
            conclusion=content.conclusion,
            faqs=content.faqs,
        ),
        structured_data=schema,
    )


def render_output(
    edited_content: EditedContent,
    schema: GeneratedSchema,
    keywords: Iterable[str] = (),
) -> ContentOutput:
    """Render all three publication formats. Same input, same bytes out."""
    logger.info("Generating outputs for %s", edited_content.title)

    result = ContentOutput(
        markdown=render_markdown(edited_content),
        html=render_html(edited_content, schema),
        record=render_record(edited_content, schema, keywords),
        word_count=edited_content.total_word_count,
    )

    logger.info("Outputs generated: %d words", result.word_count)
    return result
