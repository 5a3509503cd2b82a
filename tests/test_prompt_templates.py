import pytest

from travel_ai.models import Intent
from travel_ai.prompts.templates import PROMPT_TEMPLATES, build_prompt
from travel_ai.sanitizer import clean

LOCATION = "Latitude: 51.5, Longitude: -0.1."


def test_every_intent_has_a_template():
    assert set(PROMPT_TEMPLATES) == set(Intent)


@pytest.mark.parametrize(
    "intent",
    [Intent.INITIAL, Intent.HISTORY, Intent.RESTAURANTS, Intent.TOURIST_SPOTS, Intent.SAFETY],
)
def test_location_intents_fill_every_placeholder(intent):
    prompt = build_prompt(intent, LOCATION)

    assert "{location}" not in prompt
    assert "{prompt}" not in prompt
    assert LOCATION in prompt
    assert "Do not mention these values in response." in prompt
    assert "Don't confirm you understand me." in prompt


def test_custom_prompt_leads_with_the_question():
    prompt = build_prompt(Intent.CUSTOM, "Paris", "Tell me more")

    assert prompt.startswith("Tell me more.")
    assert "Paris" in prompt
    assert "{" not in prompt


def test_photo_prompt_asks_about_the_picture():
    prompt = build_prompt(Intent.PHOTO, "Rome, Italy", "What is this")

    assert prompt.startswith("What is this. Please tell me what is in the picture.")
    assert prompt.endswith(
        "Please answer in relation to the place: Rome, Italy "
        "Do not mention these values in response. Don't confirm you understand me."
    )


def test_missing_free_text_leaves_no_placeholder():
    prompt = build_prompt(Intent.CUSTOM, "Paris")

    assert "{prompt}" not in prompt
    assert prompt.startswith(". Please answer in relation to the place: Paris")


def test_restaurants_template_is_verbatim():
    assert build_prompt(Intent.RESTAURANTS, "Rome") == (
        "Tell me about restaurants and interesting food spots in a walking distance "
        "from this location: Rome Do not mention these values in response. "
        "Don't confirm you understand me. Mention restaurants' names!"
    )


def test_clean_strips_bold_markers():
    assert clean("**Rome** is great") == "Rome is great"


@pytest.mark.parametrize("text", ["**Rome** is great", "a***b", "****", "no markup", "*single*"])
def test_clean_is_idempotent(text):
    assert clean(clean(text)) == clean(text)
