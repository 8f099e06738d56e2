"""PlannerAgent — converts a natural-language change request into a Plan.

Uses PydanticAI with ``output_type=Plan`` so the LLM output is validated
against the command schema before anything reaches the executor.  The
system prompt depends on the discovered site state, so an agent is built
per request.
"""

from __future__ import annotations

import logging

from pydantic_ai import Agent

from agents.provider import create_model
from config.prompts.planner import build_planner_prompt
from config.settings import get_settings
from errors.exceptions import PlanGenerationError
from models.plan import Plan
from models.site import DiscoverySnapshot

logger = logging.getLogger(__name__)


def build_planner_agent(discovery: DiscoverySnapshot, model=None) -> Agent[None, Plan]:
    settings = get_settings()
    return Agent(
        model=model or create_model(settings.default_model),
        output_type=Plan,
        system_prompt=build_planner_prompt(discovery, settings.front_page_id),
        retries=2,
        defer_model_check=True,
    )


async def generate_plan(
    user_prompt: str,
    discovery: DiscoverySnapshot,
    model: str | None = None,
) -> Plan:
    """Generate a validated Plan for *user_prompt*.

    Raises :class:`PlanGenerationError` when the provider fails or the
    output never validates against the Plan schema.
    """
    settings = get_settings()
    llm_config = settings.get_planner_llm_config()
    agent = build_planner_agent(discovery, create_model(model) if model else None)

    logger.info("Generating plan for prompt: %s", user_prompt[:80])
    try:
        result = await agent.run(
            f"User request: {user_prompt}",
            model_settings=llm_config.to_model_settings(),
        )
    except Exception as exc:
        logger.exception("Planner failed to produce a valid plan")
        raise PlanGenerationError("Failed to generate a valid orchestration plan.") from exc

    plan = result.output
    logger.info("Plan generated: %s (%d commands)", plan.explanation, len(plan.commands))
    return plan
