"""Bulk ad-group prompt — full ad copy for one ad group in one request.

The landing page is the primary source (Gemini reads it through Google
Search grounding); keywords are a secondary guide. The model is told the
exact counts and the Google Ads character ceilings and must answer with raw
JSON in the shape the sanitizer expects.
"""

from schemas.ad_copy import (
    CALLOUT_MAX_CHARS,
    DESCRIPTION_MAX_CHARS,
    HEADLINE_MAX_CHARS,
    SITELINK_DESCRIPTION_MAX_CHARS,
    SITELINK_TITLE_MAX_CHARS,
    AdGroupInput,
    CampaignInput,
    GenerationConfig,
)

NOT_SPECIFIED = "Not specified"
DEFAULT_TONE = "Professional"

AD_GROUP_PROMPT = """You are an expert Google Ads copywriter. Your task is to generate compelling ad copy based on the provided information.
The ad copy must be written in **{language}**.

**Primary Information Source:** Your most important task is to analyze the provided Landing Page using Google Search to understand its content, products, services, features, benefits, and unique selling propositions. All generated ad copy should reflect the information found on the landing page. Keywords should be used as a secondary guide to focus the copy.

**Overall Campaign Topic:** {campaign_topic}
**Campaign-level Extension Suggestions:** {campaign_extensions}
**Campaign-level Callout Suggestions:** {campaign_callouts}

**Ad Group Details:**
- **Landing Page (Primary Source):** {landing_page}
- **Ad Group Topic:** {topic}
- **Related Keywords (Secondary Guide):** {keywords}
- **Keywords to Emphasize (must include if possible):** {emphasized_keywords}
- **Desired Tone & Mood:** {tone_and_mood}
- **Content to Emphasize (Promotions, USP, etc.):** {emphasized_content}
- **Content to AVOID:** {content_to_avoid}
- **Ad Group-specific Extension Suggestions (for inspiration):** {extensions}

**Generation Requirements:**
- Generate {variants} unique and diverse ad variants.
- Each variant must have exactly {headlines} headlines. **Headlines within an ad group should be distinct and not repetitive.**
- Each variant must have exactly {descriptions} descriptions. **Descriptions within an ad group should be distinct and not repetitive.**
- Generate {sitelinks} **enhanced Sitelink extensions** for the ad group. Each sitelink must have one title (Sitelink Text) and **two** separate description lines (Description Line 1, Description Line 2).
- Generate {callouts} Callout extensions for the ad group.
- **CRITICAL - Strict Character Limits:**
    - Headlines MUST be **{headline_max} characters or less**.
    - Descriptions MUST be **{description_max} characters or less**.
    - Sitelink Titles MUST be **{sitelink_title_max} characters or less**.
    - Sitelink Description Lines (both 1 and 2) MUST be **{sitelink_description_max} characters or less**.
    - Callouts MUST be **{callout_max} characters or less**.
    - Adherence to these character limits is mandatory. DO NOT exceed them.
- The adGroupName should be a concise, relevant name for the ad group based on its topic, written in the requested language.

Return the response ONLY as a raw JSON object, without any markdown formatting (like ```json).
The JSON structure MUST be:
{{
  "adGroupName": "string",
  "variants": [
    {{
      "headlines": [{{ "text": "string" }}],
      "descriptions": [{{ "text": "string" }}]
    }}
  ],
  "sitelinks": [{{ "title": "string", "description1": "string", "description2": "string" }}],
  "callouts": [{{ "text": "string" }}]
}}
"""


def or_not_specified(value: str | None, default: str = NOT_SPECIFIED) -> str:
    if value is None or not str(value).strip():
        return default
    return str(value).strip()


def build_ad_group_prompt(
    campaign: CampaignInput,
    ad_group: AdGroupInput,
    gen_config: GenerationConfig,
) -> str:
    return AD_GROUP_PROMPT.format(
        language=gen_config.language,
        campaign_topic=campaign.topic.strip(),
        campaign_extensions=or_not_specified(campaign.extensions),
        campaign_callouts=or_not_specified(campaign.callouts),
        landing_page=or_not_specified(ad_group.landing_page),
        topic=or_not_specified(ad_group.topic),
        keywords=or_not_specified(ad_group.keywords),
        emphasized_keywords=or_not_specified(ad_group.emphasized_keywords),
        tone_and_mood=or_not_specified(ad_group.tone_and_mood, DEFAULT_TONE),
        emphasized_content=or_not_specified(ad_group.emphasized_content),
        content_to_avoid=or_not_specified(ad_group.content_to_avoid),
        extensions=or_not_specified(ad_group.extensions),
        variants=gen_config.variants,
        headlines=gen_config.headlines,
        descriptions=gen_config.descriptions,
        sitelinks=gen_config.sitelinks,
        callouts=gen_config.callouts,
        headline_max=HEADLINE_MAX_CHARS,
        description_max=DESCRIPTION_MAX_CHARS,
        sitelink_title_max=SITELINK_TITLE_MAX_CHARS,
        sitelink_description_max=SITELINK_DESCRIPTION_MAX_CHARS,
        callout_max=CALLOUT_MAX_CHARS,
    )
