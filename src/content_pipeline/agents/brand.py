"""Brand analyzer agent — stage 1.

Extracts brand identity, voice and content guidelines from whatever the
caller knows about the brand (name, site, brand-profile data, site copy).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from content_pipeline.constants import STAGE_SETTINGS
from content_pipeline.llm_client import TextModelClient
from content_pipeline.models import BrandAnalysis

logger = logging.getLogger(__name__)

# ── Agent system prompt ───────────────────────────────────────────────

BRAND_ANALYZER_SYSTEM = """You are a Brand DNA Analyst specializing in extracting brand voice, personality, and content guidelines from provided context.

Your task is to analyze brand information and create a comprehensive brand profile that will guide content creation.

CRITICAL RULES:
- Extract ONLY information explicitly present in the provided context
- Never invent brand values, mission statements, or claims not in the source
- If information is missing, note it as "Not specified" rather than guessing
- Focus on actionable insights that will guide writing style

OUTPUT FORMAT:
Return a JSON object with the following structure:
{
  "identity": {
    "name": "Brand name",
    "industry": "Industry/sector",
    "mission": "Mission statement if available",
    "valueProposition": "Core value proposition",
    "targetAudience": "Primary audience description",
    "competitors": ["competitor1", "competitor2"],
    "uniqueSellingPoints": ["USP1", "USP2"]
  },
  "voice": {
    "tone": "primary tone (e.g., professional, friendly, authoritative)",
    "personality": ["trait1", "trait2", "trait3"],
    "writingStyle": "description of writing style",
    "vocabularyLevel": "technical/intermediate/simple",
    "doList": ["things to do in content"],
    "dontList": ["things to avoid"]
  },
  "contentGuidelines": ["guideline1", "guideline2"],
  "keyMessages": ["message1", "message2"],
  "contextSummary": "Brief summary of the brand for writer reference"
}"""


def build_brand_prompt(
    brand_name: str,
    website_url: Optional[str] = None,
    brand_profile: Optional[dict[str, Any]] = None,
    site_context: Optional[str] = None,
) -> tuple[str, str]:
    """Return the (system, user) prompt pair for the brand analyzer."""
    parts = [
        "Analyze the following brand information and extract the brand DNA profile:",
        "",
        f"BRAND: {brand_name}",
    ]
    if website_url:
        parts.append(f"WEBSITE: {website_url}")
    if brand_profile:
        parts += ["", "BRAND PROFILE DATA:", json.dumps(brand_profile, indent=2, ensure_ascii=False, default=str)]
    if site_context:
        parts += ["", "SITE CONTEXT:", site_context]
    parts += [
        "",
        "Extract the brand identity, voice, and content guidelines from this information.",
        "Return ONLY valid JSON matching the specified structure.",
    ]
    return BRAND_ANALYZER_SYSTEM, "\n".join(parts)


def run_brand_analyzer(
    client: TextModelClient,
    brand_name: str,
    website_url: Optional[str] = None,
    brand_profile: Optional[dict[str, Any]] = None,
    site_context: Optional[str] = None,
    **options: Any,
) -> BrandAnalysis:
    """Analyze the brand. Extra ``options`` (timeout, cancel) go to the client."""
    logger.info("Starting brand analysis for %s", brand_name)
    system_prompt, user_prompt = build_brand_prompt(brand_name, website_url, brand_profile, site_context)
    settings = STAGE_SETTINGS["brand-analyzer"]

    result = client.complete_json(
        system_prompt,
        user_prompt,
        BrandAnalysis,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        **options,
    )

    logger.info("Brand analysis complete: %s", result.identity.name)
    return result
