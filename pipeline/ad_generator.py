"""Bulk generator — one request per ad group, all in flight at once.

Each response goes through extract_json -> sanitize_ad_group. A failing ad
group does not sink the batch: its slot is filled with the "Generation
Failed" placeholder and the error message is reported next to it, so the
form stays populated and the caller can show a banner.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

import config
from pipeline.llm import call_llm
from pipeline.response_parser import extract_json
from pipeline.sanitizer import failed_ad_group, sanitize_ad_group
from prompts.ad_group_prompt import build_ad_group_prompt
from schemas.ad_copy import AdGroupInput, CampaignInput, GeneratedAdGroup, GenerationConfig

logger = logging.getLogger(__name__)


@dataclass
class AdGroupOutcome:
    ad_group: GeneratedAdGroup
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class CampaignResult:
    outcomes: list[AdGroupOutcome] = field(default_factory=list)

    @property
    def ad_groups(self) -> list[GeneratedAdGroup]:
        return [o.ad_group for o in self.outcomes]

    @property
    def errors(self) -> list[str]:
        return [o.error for o in self.outcomes if o.error]

    @property
    def first_error(self) -> str | None:
        errors = self.errors
        return errors[0] if errors else None


async def generate_ad_group(
    campaign: CampaignInput,
    ad_group_input: AdGroupInput,
    gen_config: GenerationConfig,
    *,
    api_key: str,
    provider: str | None = None,
    model: str | None = None,
) -> AdGroupOutcome:
    """Generate one ad group. Never raises for generation failures."""
    prompt = build_ad_group_prompt(campaign, ad_group_input, gen_config)
    use_search = config.GOOGLE_SEARCH_GROUNDING and (provider or config.DEFAULT_PROVIDER) == "google"

    try:
        raw = await call_llm(
            prompt,
            api_key=api_key,
            provider=provider,
            model=model,
            use_search=use_search,
        )
        parsed = extract_json(raw)
        return AdGroupOutcome(ad_group=sanitize_ad_group(parsed, gen_config))
    except Exception as exc:
        logger.error(
            "Ad group '%s' generation failed: %s",
            ad_group_input.topic or "(no topic)", exc,
        )
        return AdGroupOutcome(
            ad_group=failed_ad_group(ad_group_input, gen_config),
            error=str(exc) or exc.__class__.__name__,
        )


async def generate_campaign(
    campaign: CampaignInput,
    ad_group_inputs: list[AdGroupInput],
    gen_config: GenerationConfig,
    *,
    api_key: str,
    provider: str | None = None,
    model: str | None = None,
) -> CampaignResult:
    """Generate every ad group concurrently; results keep the input order."""
    logger.info(
        "=== Generating %d ad group(s) for '%s' [%s] ===",
        len(ad_group_inputs), campaign.topic, gen_config.language,
    )
    start = time.time()

    outcomes = await asyncio.gather(*(
        generate_ad_group(
            campaign,
            ad_group_input,
            gen_config,
            api_key=api_key,
            provider=provider,
            model=model,
        )
        for ad_group_input in ad_group_inputs
    ))

    result = CampaignResult(outcomes=list(outcomes))
    logger.info(
        "=== Generation finished in %.1fs: %d ok, %d failed ===",
        time.time() - start, len(outcomes) - len(result.errors), len(result.errors),
    )
    return result
