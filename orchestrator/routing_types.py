from dataclasses import dataclass
from enum import Enum


class NextAction(str, Enum):
    USE_FALLBACK = "use_fallback"
    STOP = "stop"


@dataclass(frozen=True)
class FallbackDecision:
    action: NextAction
    next_source: str | None
    reason: str
