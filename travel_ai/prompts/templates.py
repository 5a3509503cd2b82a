from travel_ai.models import Intent

_NO_ECHO = "Do not mention these values in response. Don't confirm you understand me."

INITIAL_PROMPT = (
    "Tell me interesting things about this location: {location} "
    f"{_NO_ECHO} Behave like a tourist guide. "
    "Tell me about history, tourist spots, restaurants, etc."
)

HISTORY_PROMPT = (
    "Tell me about history of this location: {location} "
    f"{_NO_ECHO} Behave like a tourist guide."
)

RESTAURANTS_PROMPT = (
    "Tell me about restaurants and interesting food spots in a walking distance "
    "from this location: {location} "
    f"{_NO_ECHO} Mention restaurants' names!"
)

TOURIST_SPOTS_PROMPT = (
    "Tell me about 5-6 most famous and important tourist spots/ attractions "
    "around this location that are worth to visit: {location} "
    f"{_NO_ECHO} Behave like a tourist guide."
)

SAFETY_PROMPT = (
    "Tell me about risks I should be careful on, and behaviours I should avoid "
    "as a tourist to stay safe in this location. Be specific. You can tell me "
    "also what behaviours should I avoid not to offend locals. Refer to this "
    "place specifically: {location} "
    f"{_NO_ECHO} Behave like a tourist guide."
)

CUSTOM_PROMPT = (
    "{prompt}. Please answer in relation to the place: {location} "
    f"{_NO_ECHO}"
)

PHOTO_PROMPT = (
    "{prompt}. Please tell me what is in the picture. "
    "Please answer in relation to the place: {location} "
    f"{_NO_ECHO}"
)

PROMPT_TEMPLATES = {
    Intent.INITIAL: INITIAL_PROMPT,
    Intent.HISTORY: HISTORY_PROMPT,
    Intent.RESTAURANTS: RESTAURANTS_PROMPT,
    Intent.TOURIST_SPOTS: TOURIST_SPOTS_PROMPT,
    Intent.SAFETY: SAFETY_PROMPT,
    Intent.CUSTOM: CUSTOM_PROMPT,
    Intent.PHOTO: PHOTO_PROMPT,
}


def build_prompt(intent: Intent, location: str, prompt: str = "") -> str:
    """Fill the intent's template with the location string and the user's free text."""
    return (
        PROMPT_TEMPLATES[intent]
        .replace("{location}", location)
        .replace("{prompt}", prompt or "")
    )
