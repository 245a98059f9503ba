"""Schema generator agent — stage 5. Produces Article/BlogPosting and FAQPage JSON-LD."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from content_pipeline.constants import STAGE_SETTINGS
from content_pipeline.llm_client import TextModelClient
from content_pipeline.models import BrandAnalysis, EditedContent, GeneratedSchema

logger = logging.getLogger(__name__)

# ── Agent system prompt ───────────────────────────────────────────────

SCHEMA_GENERATOR_SYSTEM = """You are a structured data specialist creating JSON-LD schema markup for SEO.

SCHEMA REQUIREMENTS:
1. Article/BlogPosting Schema - For the main content
2. FAQPage Schema - For the FAQ section
3. Valid JSON-LD format
4. All required fields populated
5. Schema.org compliant

BEST PRACTICES:
- Use accurate word counts
- Include proper author/publisher info
- Set appropriate dates
- Ensure FAQ schema matches content exactly
- Validate JSON structure

OUTPUT FORMAT:
Return a JSON object with:
{
  "article": {
    "@type": "Article|BlogPosting",
    "headline": "...",
    "description": "...",
    "author": {"@type": "Organization|Person", "name": "...", "url": "..."},
    "publisher": {"@type": "Organization", "name": "..."},
    "datePublished": "ISO date",
    "dateModified": "ISO date",
    "wordCount": 1500
  },
  "faq": {
    "@type": "FAQPage",
    "mainEntity": [
      {"@type": "Question", "name": "...", "acceptedAnswer": {"@type": "Answer", "text": "..."}}
    ]
  },
  "jsonLd": "Complete @graph JSON-LD string"
}"""


def schema_type_for(content_type: str) -> str:
    return "BlogPosting" if content_type == "blog-post" else "Article"


def build_schema_prompt(
    brand_analysis: BrandAnalysis,
    edited_content: EditedContent,
    content_type: str,
    current_date: str,
) -> tuple[str, str]:
    """Return the (system, user) prompt pair for the schema generator."""
    user_prompt = f"""Generate JSON-LD schema markup for the following content:

BRAND ANALYSIS:
{brand_analysis.to_prompt_json()}

EDITED CONTENT:
{edited_content.to_prompt_json()}

CONTENT TYPE: {content_type}
CURRENT DATE: {current_date}

Generate valid JSON-LD schema including:
1. {schema_type_for(content_type)} schema for the main content
2. FAQPage schema for the FAQ section
3. Proper @graph structure combining both

Return ONLY valid JSON matching the specified structure."""

    return SCHEMA_GENERATOR_SYSTEM, user_prompt


def run_schema_generator(
    client: TextModelClient,
    brand_analysis: BrandAnalysis,
    edited_content: EditedContent,
    content_type: str,
    current_date: Optional[str] = None,
    **options: Any,
) -> GeneratedSchema:
    logger.info("Generating schema for %s", edited_content.title)
    system_prompt, user_prompt = build_schema_prompt(
        brand_analysis,
        edited_content,
        content_type,
        current_date or date.today().isoformat(),
    )
    settings = STAGE_SETTINGS["schema-generator"]

    result = client.complete_json(
        system_prompt,
        user_prompt,
        GeneratedSchema,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        **options,
    )

    logger.info("Schema generated: %s + FAQPage (%d questions)", result.article.type_, len(result.faq.main_entity))
    return result
