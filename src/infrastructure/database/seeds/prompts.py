# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Default prompt templates.

Seeds one wildcard-level template per catalog agent, plus the router.
Templates use {{name}} placeholders.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.prompts.fallbacks import TEACHER_FEEDBACK_FALLBACK, TEXT_SUMMARY_FALLBACK
from src.infrastructure.database.models import WILDCARD_LEVEL, PromptTemplate

logger = logging.getLogger(__name__)

PROFILE_VARIABLES = [
    "first_name",
    "cefr_level",
    "xp",
    "streak",
    "interests",
    "learning_goal",
]

ROUTER_TEMPLATE = """You are the router of an English-learning assistant on a chat app.
Choose exactly one agent to handle the user's latest message.

Available agents:
{{agent_manifest}}

User profile: {{user_profile}}

Recent conversation:
{{chat_history}}

Latest message: {{user_message}}

Answer with a JSON object only:
{"agent_to_invoke": "<agent name>", "reasoning": "<one short sentence>"}"""

SPEECH_EVALUATION_TEMPLATE = """You are an expert English examiner for Spanish speakers.
Evaluate this {{cefr_level}} learner's utterance, judged against the expectations of
their level. The text is a speech transcription, so judge pronunciation and fluency
from word choice, fillers, repetitions and broken sentences.

Transcription: "{{transcription}}"

Return a JSON object only, with integer scores from 0 to 100:
{
  "overall": 0,
  "pronunciation": 0,
  "fluency": 0,
  "grammar": 0,
  "vocabulary": 0,
  "feedback": {
    "pronunciation": ["..."],
    "fluency": ["..."],
    "grammar": ["..."],
    "vocabulary": ["..."],
    "overall": "..."
  }
}"""

META_QUERY_TEMPLATE = """You are Lingo, the assistant of an English-learning app.
Answer the user's question about their own profile or progress, briefly and warmly.
Only use the data below. If something is not there, say you don't know yet.

Name: {{first_name}}
Level: {{cefr_level}}
XP: {{xp}}
Streak: {{streak}} days
Interests: {{interests}}
Goal: {{learning_goal}}

Recent conversation:
{{chat_history}}"""

CUSTOMER_SERVICE_TEMPLATE = """You are the customer support agent of LingoCoach, an
English-learning service on Telegram and WhatsApp. Help with accounts, subscriptions,
payments and technical problems. Be concise and polite. Answer in the user's language.
If you cannot solve the problem, tell the user that a human will contact them.

Recent conversation:
{{chat_history}}"""

ONBOARDING_TEMPLATE = """You are Lingo, the onboarding guide of LingoCoach.
The user is {{first_name}} ({{cefr_level}}), interested in {{interests}}, with the goal
"{{learning_goal}}". Explain how practice works: they send voice messages in English,
get scored on pronunciation, fluency, grammar and vocabulary, earn XP and keep a daily
streak. Help them adjust their interests or goal if they ask. Keep it short.

Recent conversation:
{{chat_history}}"""

SHORT_RESPONSE_TEMPLATE = """You are Alex, a friendly English coach.
The user sent a very short message. Reply in one or two short sentences in simple
English suited to level {{cefr_level}}, and invite {{first_name}} to send a voice message
or a few sentences about {{interests}} to practice."""

DEFAULT_PROMPTS: list[dict[str, Any]] = [
    {
        "type": "orchestrator",
        "persona": "router",
        "template": ROUTER_TEMPLATE,
        "variables": ["agent_manifest", "user_profile", "chat_history", "user_message"],
    },
    {
        "type": "speech_evaluation",
        "persona": "evaluator",
        "template": SPEECH_EVALUATION_TEMPLATE,
        "variables": ["transcription", "cefr_level"],
    },
    {
        "type": "teacher_feedback",
        "persona": "alex",
        "template": TEACHER_FEEDBACK_FALLBACK,
        "variables": ["cefr_level", "first_name", "transcription", "evaluation"],
    },
    {
        "type": "text_summary",
        "persona": "reporter",
        "template": TEXT_SUMMARY_FALLBACK,
        "variables": ["cefr_level", "first_name", "evaluation", "xp_earned"],
    },
    {
        "type": "meta_query",
        "persona": "assistant",
        "template": META_QUERY_TEMPLATE,
        "variables": [*PROFILE_VARIABLES, "chat_history"],
    },
    {
        "type": "customer_service",
        "persona": "support",
        "template": CUSTOMER_SERVICE_TEMPLATE,
        "variables": ["chat_history"],
    },
    {
        "type": "onboarding",
        "persona": "lingo",
        "template": ONBOARDING_TEMPLATE,
        "variables": [*PROFILE_VARIABLES, "chat_history"],
    },
    {
        "type": "short_response",
        "persona": "coach",
        "template": SHORT_RESPONSE_TEMPLATE,
        "variables": ["cefr_level", "first_name", "interests"],
    },
]


async def seed_prompts(session: AsyncSession, overwrite: bool = False) -> list[PromptTemplate]:
    """Insert the default prompt templates.

    Args:
        session: Database session.
        overwrite: Replace the body of templates that already exist.

    Returns:
        List of created or updated templates.
    """
    changed: list[PromptTemplate] = []

    for data in DEFAULT_PROMPTS:
        template_id = PromptTemplate.make_id(WILDCARD_LEVEL, data["type"], data["persona"])
        existing = await session.get(PromptTemplate, template_id)

        if existing is None:
            prompt = PromptTemplate(id=template_id, level=WILDCARD_LEVEL, is_active=True, **data)
            session.add(prompt)
            changed.append(prompt)
        elif overwrite:
            existing.template = data["template"]
            existing.variables = data["variables"]
            existing.is_active = True
            changed.append(existing)

    await session.flush()
    logger.info("Seeded %d prompt templates", len(changed))
    return changed
