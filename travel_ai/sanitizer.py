def clean(text: str) -> str:
    """Strip markdown bold markers from model output."""
    return text.replace("**", "")
