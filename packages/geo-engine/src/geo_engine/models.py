from dataclasses import dataclass


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lon: float


@dataclass(frozen=True)
class BoundingBox:
    left: float
    top: float
    right: float
    bottom: float

    def as_viewbox(self) -> str:
        return ",".join(str(value) for value in (self.left, self.top, self.right, self.bottom))
