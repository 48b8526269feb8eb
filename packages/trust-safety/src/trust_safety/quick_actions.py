from __future__ import annotations

from dataclasses import asdict, dataclass
from urllib.parse import urlencode

DIRECTIONS_BASE_URL = "https://www.google.com/maps/dir/"
SHARE_BASE_URL = "https://maps.google.com/"


@dataclass(frozen=True)
class QuickAction:
    label: str
    type: str
    target: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def build_call_action(number: str, label: str = "Call Emergency") -> QuickAction:
    return QuickAction(label=label, type="call", target=f"tel:{number}")


def build_navigate_action(lat: float, lon: float, label: str = "Navigate") -> QuickAction:
    query = urlencode({"api": 1, "destination": f"{lat},{lon}"}, safe=",")
    return QuickAction(label=label, type="navigate", target=f"{DIRECTIONS_BASE_URL}?{query}")


def build_share_action(lat: float, lon: float, label: str = "Share Location") -> QuickAction:
    query = urlencode({"q": f"{lat},{lon}"}, safe=",")
    return QuickAction(label=label, type="share", target=f"{SHARE_BASE_URL}?{query}")
