from typing import NamedTuple, Tuple


class Vector2(NamedTuple):
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x - other.x, self.y - other.y)


def dist_squared(a: Vector2, b: Vector2) -> float:
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def step_toward(origin: Vector2, destination: Vector2, max_distance: float) -> Vector2:
    """
    Move from origin toward destination by at most max_distance.

    The direction is normalised by the dominant axis (max(|dx|, |dy|)) rather than
    the Euclidean length, so a diagonal step covers slightly more ground than a
    straight one. Ducks have always walked this way. The snap uses the same
    measure, so a step never lands past the destination.
    """
    if max_distance <= 0:
        return origin

    dx = destination.x - origin.x
    dy = destination.y - origin.y
    dominant = max(abs(dx), abs(dy))
    if dominant <= max_distance:
        return destination
    return Vector2(
        origin.x + dx / dominant * max_distance,
        origin.y + dy / dominant * max_distance,
    )


def clamp_to_bounds(point: Vector2, half_extents: Tuple[float, float], bounds: Tuple[float, float]) -> Vector2:
    """
    Keep a footprint of the given half extents inside a (width, height) area.
    When the area is smaller than the footprint the lower bound wins.
    """
    half_w, half_h = half_extents
    width, height = bounds
    x = max(half_w, min(point.x, width - half_w))
    y = max(half_h, min(point.y, height - half_h))
    return Vector2(x, y)
