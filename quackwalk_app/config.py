import dataclasses
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from .core import parse_bool, safe_float, safe_int

DEFAULT_CLICK_DELAY_MS = 5000


@dataclass(frozen=True)
class DuckOptions:
    """
    Everything a duck and the bootstrap can be configured with.

    Host-facing names are camelCase (``mouseProximity``); OPTION_KEYS maps them
    onto these attributes. ``container`` names a screen; None means the primary one.
    ``click`` is the lifetime in milliseconds of ducks spawned by a click, or None
    when click-spawning is off.
    """

    width: int = 32
    height: int = 32
    speed: float = 250.0
    mouse_proximity: float = 48.0
    jitter: float = 32.0
    updates_per_second: float = 60.0
    sprite: str = "duck.png"
    sprite_cols: int = 4
    sprite_scale: float = 1.0
    container: Optional[str] = None
    debug: bool = False
    spawn: bool = True
    click: Optional[int] = None

    @property
    def update_interval(self) -> float:
        return 1.0 / self.updates_per_second

    def merged(self, **overrides) -> "DuckOptions":
        return dataclasses.replace(self, **overrides)

    def to_mapping(self) -> Dict[str, object]:
        return {key: getattr(self, attr) for key, attr in OPTION_KEYS.items()}

    @classmethod
    def from_mapping(cls, raw: Mapping[str, object], base: Optional["DuckOptions"] = None) -> "DuckOptions":
        base = base or cls()
        values = {}
        for key, value in raw.items():
            attr = OPTION_KEYS.get(key) or (key if key in _ATTRIBUTES else None)
            if attr is None:
                logging.warning("Unknown option '%s' ignored.", key)
                continue
            values[attr] = _coerce(attr, value, getattr(base, attr))
        return dataclasses.replace(base, **values)


OPTION_KEYS: Dict[str, str] = {
    "width": "width",
    "height": "height",
    "speed": "speed",
    "mouseProximity": "mouse_proximity",
    "jitter": "jitter",
    "updatesPerSecond": "updates_per_second",
    "sprite": "sprite",
    "spriteCols": "sprite_cols",
    "spriteScale": "sprite_scale",
    "container": "container",
    "debug": "debug",
    "spawn": "spawn",
    "click": "click",
}
_ATTRIBUTES = set(OPTION_KEYS.values())

_POSITIVE_INTS = {"width", "height", "sprite_cols"}
_POSITIVE_FLOATS = {"updates_per_second", "sprite_scale"}
_NON_NEGATIVE_FLOATS = {"speed", "mouse_proximity", "jitter"}


def _coerce(attr: str, value, fallback):
    if attr in _POSITIVE_INTS:
        result = safe_int(value, default=-1)
        if result <= 0:
            logging.warning("Invalid value %r for '%s', using %r.", value, attr, fallback)
            return fallback
        return result
    if attr in _POSITIVE_FLOATS or attr in _NON_NEGATIVE_FLOATS:
        result = safe_float(value, default=-1.0)
        if result < 0 or (result == 0 and attr in _POSITIVE_FLOATS):
            logging.warning("Invalid value %r for '%s', using %r.", value, attr, fallback)
            return fallback
        return result
    if attr in ("debug", "spawn"):
        return parse_bool(value, default=fallback)
    if attr == "click":
        if value is None:
            return None
        if value == "":
            return DEFAULT_CLICK_DELAY_MS
        return safe_int(value, default=DEFAULT_CLICK_DELAY_MS)
    if attr == "container":
        return str(value) if value not in (None, "") else None
    return str(value)


def parse_cli_args(argv: Sequence[str]) -> Dict[str, str]:
    """
    Collect ``--key=value`` pairs; a bare ``--key`` counts as an empty (present) value.
    """
    raw: Dict[str, str] = {}
    for arg in argv:
        if not arg.startswith("--"):
            continue
        key, sep, value = arg[2:].partition("=")
        if key:
            raw[key] = value if sep else ""
    return raw


def load_options(settings_manager=None, argv: Optional[List[str]] = None) -> DuckOptions:
    """
    Defaults, then persisted settings, then command-line overrides.
    """
    options = DuckOptions()
    if settings_manager is not None:
        stored = settings_manager.read_options(OPTION_KEYS)
        if stored:
            logging.info("Loaded stored options: %s", ", ".join(sorted(stored)))
            options = DuckOptions.from_mapping(stored, base=options)
    if argv:
        overrides = parse_cli_args(argv)
        if overrides:
            options = DuckOptions.from_mapping(overrides, base=options)
    return options
