"""Content planner agent — stage 2.

Turns the brand analysis and the caller's keyword brief into a structured
outline: title, meta description, search intent, sections, FAQs.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from content_pipeline.constants import STAGE_SETTINGS
from content_pipeline.llm_client import TextModelClient
from content_pipeline.models import BrandAnalysis, ContentPlan

logger = logging.getLogger(__name__)

# ── Agent system prompt ───────────────────────────────────────────────

CONTENT_PLANNER_SYSTEM = """You are an SEO Content Strategist specializing in creating comprehensive content outlines optimized for both search engines and AI-powered search systems.

Your task is to create a detailed content plan based on the brand analysis and target keyword.

PLANNING PRINCIPLES:
1. User Intent First - Structure content to answer the user's search query completely
2. E-E-A-T Signals - Include sections that demonstrate Experience, Expertise, Authority, Trust
3. Featured Snippet Optimization - Create sections that can be featured in search results
4. AI Answer Optimization - Structure for AI systems like ChatGPT, Perplexity, Gemini
5. Logical Flow - Ensure content progresses naturally from introduction to conclusion

HEADING STRATEGY:
- 40% of H2 headings should be question-format (What, Why, How, When, Who)
- Each heading should promise specific value
- Use H3s to break down complex H2 sections

OUTPUT FORMAT:
Return a JSON object with:
{
  "title": "SEO-optimized title (50-60 chars) with keyword front-loaded",
  "metaDescription": "Compelling meta description (150-160 chars)",
  "targetKeyword": "primary keyword",
  "secondaryKeywords": ["keyword1", "keyword2"],
  "searchIntent": "informational|commercial|transactional|navigational",
  "introduction": {
    "hook": "Opening hook concept",
    "keyPoints": ["point1", "point2"],
    "wordCountTarget": 150
  },
  "sections": [
    {
      "heading": "H2 heading text",
      "type": "h2",
      "keyPoints": ["point1", "point2"],
      "wordCountTarget": 250,
      "keywords": ["keywords to include"]
    }
  ],
  "conclusion": {
    "keyTakeaways": ["takeaway1", "takeaway2"],
    "callToAction": "CTA description",
    "wordCountTarget": 150
  },
  "faqs": [
    {
      "question": "FAQ question",
      "answerGuidance": "What to cover in the answer"
    }
  ],
  "totalWordCountTarget": 1500
}"""


def build_planner_prompt(
    brand_analysis: BrandAnalysis,
    topic: str,
    target_keyword: str,
    secondary_keywords: list[str],
    target_word_count: int,
    content_type: str,
    additional_notes: Optional[str] = None,
) -> tuple[str, str]:
    """Return the (system, user) prompt pair for the content planner."""
    notes = f"\n- Additional Notes: {additional_notes}" if additional_notes else ""

    user_prompt = f"""Create a comprehensive content plan for the following:

BRAND ANALYSIS:
{brand_analysis.to_prompt_json()}

CONTENT PARAMETERS:
- Topic: {topic}
- Target Keyword: {target_keyword}
- Secondary Keywords: {', '.join(secondary_keywords) or 'None'}
- Target Word Count: {target_word_count} words
- Content Type: {content_type}{notes}

Create a detailed content outline that:
1. Targets the primary keyword while naturally incorporating secondaries
2. Matches the search intent for this keyword
3. Aligns with the brand voice and guidelines
4. Includes 5-7 FAQ questions users would actually search for
5. Structures content for featured snippets and AI answers

Return ONLY valid JSON matching the specified structure."""

    return CONTENT_PLANNER_SYSTEM, user_prompt


def run_content_planner(
    client: TextModelClient,
    brand_analysis: BrandAnalysis,
    topic: str,
    target_keyword: str,
    secondary_keywords: list[str],
    target_word_count: int,
    content_type: str,
    additional_notes: Optional[str] = None,
    **options: Any,
) -> ContentPlan:
    logger.info("Creating content plan for %r", topic)
    system_prompt, user_prompt = build_planner_prompt(
        brand_analysis,
        topic,
        target_keyword,
        secondary_keywords,
        target_word_count,
        content_type,
        additional_notes,
    )
    settings = STAGE_SETTINGS["content-planner"]

    result = client.complete_json(
        system_prompt,
        user_prompt,
        ContentPlan,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        **options,
    )

    logger.info("Plan created: %s (%d sections)", result.title, len(result.sections))
    return result
