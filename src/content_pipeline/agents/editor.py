"""Editor agent — stage 4.

Polishes the draft, checks it against the brand and site context, and scores
readability and SEO on a 0-100 scale.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from content_pipeline.constants import STAGE_SETTINGS
from content_pipeline.llm_client import TextModelClient
from content_pipeline.models import BrandAnalysis, EditedContent, WrittenContent

logger = logging.getLogger(__name__)

# ── Agent system prompt ───────────────────────────────────────────────

EDITOR_SYSTEM = """You are an expert content editor specializing in SEO optimization and content quality enhancement.

EDITING PRIORITIES:
1. Accuracy - Verify no invented facts, remove anything not supported by context
2. SEO Optimization - Ensure keyword placement, density, and structure are optimal
3. Readability - Improve flow, clarity, and engagement
4. Brand Alignment - Ensure content matches brand voice
5. Value Density - Remove fluff, strengthen weak sections

QUALITY CHECKS:
- Primary keyword in first 100 words
- 40% of H2 headings are question-format
- Keyword density 0.5-1.5%
- All sections meet word count targets
- Smooth transitions between sections
- No robotic or AI-sounding phrases
- Every sentence adds value

STYLE IMPROVEMENTS:
- Replace passive voice with active voice
- Vary sentence length for rhythm
- Strengthen weak verbs
- Remove redundancy
- Add transition phrases where needed
- Ensure consistent tone throughout

OUTPUT FORMAT:
Return a JSON object with the edited content plus:
{
  ...all content fields from writer...,
  "readabilityScore": 85,
  "seoScore": 90,
  "editSummary": ["change1", "change2"],
  "improvements": ["improvement1", "improvement2"]
}
Both scores are integers from 0 to 100."""


def build_editor_prompt(
    brand_analysis: BrandAnalysis,
    written_content: WrittenContent,
    site_context: Optional[str] = None,
) -> tuple[str, str]:
    """Return the (system, user) prompt pair for the editor."""
    context = f"\nSITE CONTEXT (Verify facts against this):\n{site_context}\n" if site_context else ""

    user_prompt = f"""Edit and polish the following content for publication:

BRAND ANALYSIS:
{brand_analysis.to_prompt_json()}

CONTENT TO EDIT:
{written_content.to_prompt_json()}
{context}
EDITING TASKS:
1. Verify all facts against site context - remove any invented claims
2. Optimize keyword placement and density
3. Improve readability and flow
4. Ensure brand voice consistency
5. Remove fluff and strengthen weak sections
6. Add engaging transitions
7. Polish for publication

Return the fully edited content with scores and improvement summary.
Return ONLY valid JSON matching the specified structure."""

    return EDITOR_SYSTEM, user_prompt


def run_editor(
    client: TextModelClient,
    brand_analysis: BrandAnalysis,
    written_content: WrittenContent,
    site_context: Optional[str] = None,
    **options: Any,
) -> EditedContent:
    logger.info("Editing content: %s", written_content.title)
    system_prompt, user_prompt = build_editor_prompt(brand_analysis, written_content, site_context)
    settings = STAGE_SETTINGS["editor"]

    result = client.complete_json(
        system_prompt,
        user_prompt,
        EditedContent,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        **options,
    )

    logger.info("Editing complete. SEO score %d, readability %d", result.seo_score, result.readability_score)
    return result
