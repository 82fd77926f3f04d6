# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User-facing onboarding copy.

The test itself runs in English. Restart and recovery notices are in
Spanish, the learners' native language.
"""

from collections.abc import Sequence

INTEREST_MENU = """📚 Technology
🎬 Movies & Entertainment
⚽ Sports
🍳 Food & Cooking
✈️ Travel
💼 Business
🎵 Music
📖 Books & Literature"""

GOAL_MENU = """📈 Career advancement / Business
🌍 Travel and tourism
🎓 Academic studies
💬 General conversation skills
🏠 Daily life communication"""

_RECOVERY_MESSAGES = {
    "welcome": "Hubo un problema al iniciar. Por favor, envía /start para comenzar de nuevo.",
    "level_test": (
        "Tuvimos un problema durante tu evaluación. Vamos a reiniciar desde donde "
        "quedamos. Por favor, responde a la pregunta anterior."
    ),
    "interests": (
        "Hubo un problema al guardar tus intereses. Por favor, cuéntame nuevamente "
        "qué temas te interesan."
    ),
    "goal": (
        "Tuvimos un problema al guardar tu meta de aprendizaje. Por favor, cuéntame "
        "otra vez cuál es tu objetivo principal."
    ),
}

_GENERIC_RECOVERY = (
    "Tuvimos un problema técnico temporal. Por favor, intenta enviar tu mensaje "
    "nuevamente en unos segundos."
)


def welcome_message(first_name: str | None, first_question: str) -> str:
    return (
        f"¡Hola {first_name or 'there'}! 👋\n\n"
        "Welcome to your English learning journey! I'm Alex, your AI English teacher.\n\n"
        "To give you the best learning experience, I need to assess your current English "
        "level. I'll ask you a few questions - just answer naturally by speaking in English.\n\n"
        "Ready? Let's start with an easy one:\n\n"
        f"🎯 {first_question}"
    )


def next_question_message(question: str) -> str:
    return f"Great! Next question:\n\n🎯 {question}"


def level_result_message(level: str, description: str) -> str:
    return (
        "Great job! 🎉\n\n"
        f"Based on your responses, I've determined your English level is: {level} "
        f"({description})\n\n"
        "Now, let's personalize your learning experience. What topics interest you most? "
        "Please choose from these categories or tell me your own:\n\n"
        f"{INTEREST_MENU}\n\n"
        "Just tell me 2-3 topics you'd like to practice English with!"
    )


def goal_question_message(interests: Sequence[str]) -> str:
    return (
        f"Perfect! I see you're interested in: {', '.join(interests)} ✨\n\n"
        "One last question to customize your experience:\n\n"
        "🎯 What's your main goal for learning English?\n\n"
        f"{GOAL_MENU}\n\n"
        "Or tell me your specific goal!"
    )


def completion_message(level: str, interests: Sequence[str], goal: str) -> str:
    return (
        "Excellent! 🚀 Your setup is complete!\n\n"
        "📊 Your Learning Profile:\n"
        f"• Level: {level}\n"
        f"• Interests: {', '.join(interests) or 'General'}\n"
        f"• Goal: {goal}\n\n"
        "🎯 What's Next:\n"
        "Now you can start practicing! Just send me voice messages in English anytime, "
        "and I'll:\n"
        "• Evaluate your pronunciation, grammar, and fluency\n"
        "• Give you personalized feedback\n"
        "• Help you improve step by step\n"
        "• Track your progress and XP\n\n"
        "Ready to start your first practice session? Send me a voice message about any "
        "topic you like, or I can suggest one based on your interests!\n\n"
        "¡Let's begin your English journey! 💪"
    )


def restart_message(first_name: str | None) -> str:
    greeting = f"¡Hola {first_name}! 👋" if first_name else "¡Hola! 👋"
    return (
        f"{greeting}\n\n"
        "Parece que perdimos el hilo de nuestra conversación. No te preocupes, esto "
        "puede pasar.\n\n"
        "Vamos a reiniciar tu evaluación de nivel desde el principio. Solo tomará unos "
        "minutos y así podremos personalizar mejor tu experiencia de aprendizaje."
    )


def recovery_message(step: str) -> str:
    """Step-specific recovery notice sent when a step fails."""
    return _RECOVERY_MESSAGES.get(step, _GENERIC_RECOVERY)
