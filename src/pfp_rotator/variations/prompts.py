"""Prompt table for remote variations. Item ``i`` uses ``PROMPTS[i % len(PROMPTS)]``."""

PROMPTS = [
    "Professional headshot with a modern office background",
    "Business portrait with a clean white background",
    "Professional photo with a subtle gradient background",
    "Corporate headshot with a minimalist background",
    "Professional portrait with a soft blue background",
    "Business photo with a neutral gray background",
    "Professional headshot with a contemporary office setting",
    "Corporate portrait with a clean, modern background",
    "Business photo with a subtle pattern background",
    "Professional headshot with a warm, neutral background",
    "Corporate photo with a sleek, modern background",
    "Professional portrait with a soft, professional lighting",
    "Business headshot with a contemporary studio background",
    "Professional photo with a clean, minimalist setting",
    "Corporate portrait with a modern, professional environment",
    "Business photo with a subtle, professional background",
    "Professional headshot with a contemporary office backdrop",
    "Corporate photo with a clean, modern aesthetic",
    "Professional portrait with a sophisticated background",
    "Business headshot with a professional, contemporary look",
]


def prompt_for(index: int) -> str:
    """Return the prompt for item ``index`` (cyclic)."""
    return PROMPTS[index % len(PROMPTS)]
