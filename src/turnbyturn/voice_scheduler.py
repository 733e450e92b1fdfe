# voice_scheduler.py
# Decides when an instruction is spoken and what is said.

from typing import Optional

from .formatting import describe_distance
from .maneuver_tracker import ManeuverUpdate
from .models import TrackingState
from .nav_config import NavConfig


ARRIVAL_PHRASE = "You have arrived at your destination."
RECALCULATING_PHRASE = "Recalculating."


def _lower_first(text: str) -> str:
    if len(text) > 1 and text[1].islower():
        return text[0].lower() + text[1:]
    return text


class VoiceScheduler:
    """
    Announces each instruction at most twice: once when its step becomes
    active (or its text changes), and once more inside voice_close_range_m if
    the first announcement happened farther away.
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()

    def next_utterance(self, state: TrackingState, update: ManeuverUpdate) -> Optional[str]:
        """
        Pick the utterance for this fix, if any, and record it as spoken.

        The utterance counts as spoken even if the voice output later fails.

        Args:
            state:  Session state (mutated when something is spoken).
            update: Maneuver state for this fix.

        Returns:
            Text to speak, or None.
        """
        if state.is_recalculating or state.has_arrived:
            return None

        text = update.step.text
        if not text:
            return None
        close = update.distance_to_maneuver <= self.config.voice_close_range_m

        if update.step_index != state.last_spoken_step_index or text != state.last_spoken_text:
            state.spoken_close = close
        elif close and not state.spoken_close:
            state.spoken_close = True
        else:
            return None

        state.last_spoken_step_index = update.step_index
        state.last_spoken_text = text

        if close:
            return text
        distance = describe_distance(update.distance_to_maneuver, self.config.units)
        return f"In {distance}, {_lower_first(text)}"
