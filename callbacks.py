import random
from typing import Optional, Sequence

from backend import Room, utc_timestamp
from constants import CALLBACK_TEMPLATES
from schemas.events import CallbackMessage


def generate_callback(
    room: Room,
    speaker: str,
    rng: Optional[random.Random] = None,
    templates: Sequence[str] = CALLBACK_TEMPLATES,
) -> Optional[CallbackMessage]:
    """Build a callback line that brings back one of the room's key topics.

    Returns None when the room has no key topics yet; callers must not
    broadcast anything in that case.
    """
    if not room.key_topics:
        return None
    rng = rng or random
    _, replacement = rng.choice(list(room.key_topics.items()))
    template = rng.choice(list(templates))
    return CallbackMessage(
        text=template.format(topic=replacement),
        reference=replacement,
        speaker=speaker,
        timestamp=utc_timestamp(),
    )
