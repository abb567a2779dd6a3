import enum
import logging
import random
from typing import Callable, Dict, Generic, Hashable, List, Sequence, Tuple, TypeVar, Union

T = TypeVar("T", bound=Hashable)


class Outcome(enum.Enum):
    NO_TRANSITION = "no-transition"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}.{self.name}"


# Stay in the current state. An explicit member so it is never confused with a state name.
NO_TRANSITION = Outcome.NO_TRANSITION


class RandomPool(Generic[T]):
    """
    Weighted discrete sampler over an ordered list of (value, weight) pairs.

    pull() draws r in [0, total) and returns the first value whose running
    cumulative weight exceeds r, so ties resolve in list order. The pool keeps no
    memory between draws.

    A pool whose weights sum to zero cannot be sampled. That is treated as a
    configuration error: it is logged once and pull() returns ``fallback``
    (NO_TRANSITION unless told otherwise) instead of raising inside the update
    loop.
    """

    def __init__(
        self,
        entries: Sequence[Tuple[Union[T, Outcome], float]],
        rng: Callable[[], float] = random.random,
        fallback: Union[T, Outcome] = NO_TRANSITION,
    ) -> None:
        if not entries:
            raise ValueError("RandomPool needs at least one entry")

        self._entries: List[Tuple[Union[T, Outcome], float]] = []
        for value, weight in entries:
            weight = float(weight)
            if weight < 0:
                raise ValueError(f"negative weight {weight} for {value!r}")
            self._entries.append((value, weight))

        self.total_weight = sum(weight for _, weight in self._entries)
        self.fallback = fallback
        self._rng = rng

        if self.total_weight <= 0:
            logging.error(
                "RandomPool %s has zero total weight; every pull returns %r.",
                [value for value, _ in self._entries],
                fallback,
            )

    @property
    def values(self) -> List[Union[T, Outcome]]:
        return [value for value, _ in self._entries]

    @property
    def sampleable(self) -> bool:
        return self.total_weight > 0

    def pull(self) -> Union[T, Outcome]:
        if not self.sampleable:
            return self.fallback

        draw = self._rng() * self.total_weight
        cumulative = 0.0
        last_positive = self.fallback
        for value, weight in self._entries:
            if weight <= 0:
                continue
            cumulative += weight
            last_positive = value
            if draw < cumulative:
                return value
        # Rounding can leave the draw on the final boundary.
        return last_positive

    def probabilities(self) -> Dict[Union[T, Outcome], float]:
        if not self.sampleable:
            return {self.fallback: 1.0}
        result: Dict[Union[T, Outcome], float] = {}
        for value, weight in self._entries:
            result[value] = result.get(value, 0.0) + weight / self.total_weight
        return result

    def __repr__(self) -> str:
        return f"RandomPool({self._entries!r})"
