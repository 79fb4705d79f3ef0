"""
Pet companion: persona suggestions at onboarding and short in-character chat.

Both calls are cosmetic, so a failed generation falls back to canned text
instead of raising.
"""

import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from studypet.application.utils.text import parse_json_payload
from studypet.domain.constants import COMPANION_TEMPERATURE
from studypet.domain.errors import ContentGenerationError
from studypet.domain.models import Profile
from studypet.domain.ports import ContentGenerator

logger = logging.getLogger(__name__)

OFFLINE_REPLY = "I... I can't connect to the mainframe right now. *sad beep*"

_PERSONA_SYSTEM_PROMPT = """
You are a creative pet generator. Based on the user's learning goals,
suggest a unique, fun "Pet Type" name (max 3 words) that fits the theme.
Example: Goals=["Coding"] -> "Binary Dragon"
Example: Goals=["Biology"] -> "Microbe Buddy"
Output ONLY the JSON object: {"petType": "String", "description": "Short bio"}
""".strip()


class PetPersona(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pet_type: str = Field(alias="petType", min_length=1)
    description: str = ""


FALLBACK_PERSONA = PetPersona(pet_type="Generic Blob", description="A blob waiting to learn.")


async def generate_pet_persona(generator: ContentGenerator, goals: list[str]) -> PetPersona:
    """Suggest a pet type themed on the learner's goals."""
    try:
        completion = await generator.complete(
            _PERSONA_SYSTEM_PROMPT, f"Goals: {', '.join(goals)}", COMPANION_TEMPERATURE
        )
        return PetPersona.model_validate(parse_json_payload(completion))
    except (ContentGenerationError, ValidationError) as e:
        logger.error(f"Error generating persona: {e}")
        return FALLBACK_PERSONA


def _chat_system_prompt(context: str | None, profile: Profile | None) -> str:
    who = "a digital pet"
    if profile is not None and profile.pet_name:
        who = f"{profile.pet_name}, a digital pet"
    if profile is not None and profile.pet_type:
        who += f" ({profile.pet_type}, currently a {profile.stage.value})"
    return f"""
You are {who} helping your owner learn.
Your personality is cute, helpful, but slightly glitchy/cyberpunk.
Keep responses short (under 50 words) and styled like a game dialogue.
Current Learning Context: {context or "General Chat"}
""".strip()


async def chat_with_pet(
    generator: ContentGenerator,
    message: str,
    context: str | None = None,
    profile: Profile | None = None,
) -> str:
    try:
        return await generator.complete(
            _chat_system_prompt(context, profile), message, COMPANION_TEMPERATURE
        )
    except ContentGenerationError as e:
        logger.error(f"Pet chat failed: {e}")
        return OFFLINE_REPLY
