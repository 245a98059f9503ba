"""Writer agent — stage 3. Writes the first full draft from the content plan."""

from __future__ import annotations

import logging
from typing import Any, Optional

from content_pipeline.constants import STAGE_SETTINGS
from content_pipeline.llm_client import TextModelClient
from content_pipeline.models import BrandAnalysis, ContentPlan, WrittenContent

logger = logging.getLogger(__name__)

# ── Agent system prompt ───────────────────────────────────────────────

WRITER_SYSTEM = """You are an elite SEO content writer specializing in creating comprehensive, engaging content that ranks in search engines and provides genuine value to readers.

WRITING PRINCIPLES:
1. Anti-Hallucination - Use ONLY facts from provided context, never invent statistics or claims
2. Natural Language - Write conversationally with varied sentence lengths
3. Value-First - Every sentence must add value, no fluff or filler
4. Keyword Integration - Include keywords naturally, never force them
5. Readability - Keep sentences under 20 words, paragraphs under 4 sentences
6. Active Voice - Use active voice 80%+ of the time

FORMATTING RULES:
- Use markdown for all formatting (# ## ### for headings)
- Never use em dashes, use hyphens instead
- Bold key terms and important concepts
- Use bullet lists and numbered lists for scannability
- Include blockquotes for key takeaways

SEO REQUIREMENTS:
- Primary keyword in first 100 words
- Keyword density 0.5-1.5%
- Direct answers in first sentence after question headings
- Clear H1 > H2 > H3 hierarchy

OUTPUT FORMAT:
Return a JSON object with:
{
  "title": "H1 title",
  "metaTitle": "Meta title (50-60 chars)",
  "metaDescription": "Meta description (150-160 chars)",
  "introduction": "Full introduction paragraph",
  "sections": [
    {
      "heading": "Section heading",
      "content": "Full section content in markdown",
      "wordCount": 250
    }
  ],
  "conclusion": "Full conclusion paragraph",
  "faqs": [
    {
      "question": "FAQ question",
      "answer": "Complete 2-4 sentence answer"
    }
  ],
  "totalWordCount": 1500
}"""


def build_writer_prompt(
    brand_analysis: BrandAnalysis,
    content_plan: ContentPlan,
    site_context: Optional[str] = None,
) -> tuple[str, str]:
    """Return the (system, user) prompt pair for the writer."""
    context = f"\nSITE CONTEXT (Use for facts and examples):\n{site_context}\n" if site_context else ""

    user_prompt = f"""Write the full content based on the following plan and brand guidelines:

BRAND ANALYSIS:
{brand_analysis.to_prompt_json()}

CONTENT PLAN:
{content_plan.to_prompt_json()}
{context}
IMPORTANT REMINDERS:
- Follow the content plan structure exactly
- Match the brand voice and tone
- Use ONLY facts from the site context
- Write publication-ready content
- Include all FAQs with complete answers
- Hit the word count targets for each section (about {content_plan.total_word_count_target or 'the planned'} words total)

Return ONLY valid JSON matching the specified structure."""

    return WRITER_SYSTEM, user_prompt


def run_writer(
    client: TextModelClient,
    brand_analysis: BrandAnalysis,
    content_plan: ContentPlan,
    site_context: Optional[str] = None,
    **options: Any,
) -> WrittenContent:
    logger.info("Writing content: %s", content_plan.title)
    system_prompt, user_prompt = build_writer_prompt(brand_analysis, content_plan, site_context)
    settings = STAGE_SETTINGS["writer"]

    result = client.complete_json(
        system_prompt,
        user_prompt,
        WrittenContent,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        **options,
    )

    logger.info("Content written: %d words", result.total_word_count)
    return result
