"""
Portrait styles and delivery options offered at checkout, plus helpers that
turn loosely shaped form values into clean selections.
"""
import json
from dataclasses import dataclass
from typing import Any, Iterable, Optional


@dataclass(frozen=True)
class StyleOption:
    key: str
    label: str
    prompt: str


@dataclass(frozen=True)
class DeliveryOption:
    key: str
    label: str
    unit_amount: int  # minor currency units


STYLES: dict[str, StyleOption] = {
    "realistic-painted": StyleOption(
        key="realistic-painted",
        label="Realistic Painted",
        prompt=(
            "Transform this pet photo into a lifelike hand-painted portrait with soft natural light, "
            "visible oil brush strokes, and a warm neutral studio background."
        ),
    ),
    "royal-costume": StyleOption(
        key="royal-costume",
        label="Royal Costume",
        prompt=(
            "Transform this pet photo into a majestic royal portrait set in a grand palace. "
            "Dress the pet in ornate royal attire with rich fabrics, gold accents, and a regal pose."
        ),
    ),
    "cartoon-pop": StyleOption(
        key="cartoon-pop",
        label="Cartoon Pop",
        prompt=(
            "Transform this pet photo into a bold cartoon pop-art illustration with clean outlines, "
            "bright saturated colors, and a playful halftone background."
        ),
    ),
    "watercolor-dream": StyleOption(
        key="watercolor-dream",
        label="Watercolor Dream",
        prompt=(
            "Transform this pet photo into a delicate watercolor painting with soft washes of color, "
            "gentle paper texture, and loose blooming edges."
        ),
    ),
    "renaissance-master": StyleOption(
        key="renaissance-master",
        label="Renaissance Master",
        prompt=(
            "Transform this pet photo into a Renaissance-era masterpiece with dramatic chiaroscuro lighting, "
            "a dark varnished background, and period clothing painted in the manner of the old masters."
        ),
    ),
}

DELIVERY_OPTIONS: dict[str, DeliveryOption] = {
    "digital": DeliveryOption(key="digital", label="Digital download", unit_amount=499),
    "framed": DeliveryOption(key="framed", label="Framed print", unit_amount=2499),
}


def _tokens(value: Any) -> list[str]:
    """Flatten one form value into raw string tokens."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        tokens: list[str] = []
        for item in value:
            if isinstance(item, (list, tuple)):
                for v in item:
                    if isinstance(v, str):
                        tokens.extend(_tokens(v))
            elif isinstance(item, str):
                tokens.extend(_tokens(item))
        return tokens
    if not isinstance(value, str):
        return []
    text = value.strip()
    if not text:
        return []
    if text[0] in "[\"":
        try:
            decoded = json.loads(text)
        except ValueError:
            decoded = None
        if isinstance(decoded, list):
            return [v for v in decoded if isinstance(v, str)]
        if isinstance(decoded, str):
            return _tokens(decoded)
        if text[0] == "[":
            return []
    return text.split(",")


def normalize_selection(value: Any, allowed: Iterable[str]) -> list[str]:
    """
    Return the known keys found in value, in first-seen order, without duplicates.

    value may be a list, a JSON-encoded string, a comma-separated string or a
    single token. Unknown or unparsable input contributes nothing.
    """
    allowed_set = set(allowed)
    result: list[str] = []
    for token in _tokens(value):
        key = token.strip()
        if key in allowed_set and key not in result:
            result.append(key)
    return result


def normalize_styles(value: Any) -> list[str]:
    return normalize_selection(value, STYLES)


def normalize_delivery(value: Any) -> list[str]:
    return normalize_selection(value, DELIVERY_OPTIONS)


def get_style(key: str) -> Optional[StyleOption]:
    return STYLES.get(key)


def get_delivery(key: str) -> Optional[DeliveryOption]:
    return DELIVERY_OPTIONS.get(key)


def style_labels(keys: Iterable[str]) -> list[str]:
    return [STYLES[k].label for k in keys if k in STYLES]
