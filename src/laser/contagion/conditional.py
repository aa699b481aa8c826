"""
Probabilities and durations that may depend on agent attributes.

Both kinds of value are capability objects resolved once, when the model is built,
from configuration values such as ``0.46``, ``"age{0-29: 0.02, 30-49: 0.1}"`` or
``"Triangular(2.5, 3.4, 3.8)"``. Nothing here looks at the configuration strings
again while the simulation runs.
"""

import re

import numpy as np

__all__ = [
    "DISTRIBUTIONS",
    "AgeBandedDuration",
    "AgeBandedProbability",
    "ConstantDuration",
    "ConstantProbability",
    "ExponentialDuration",
    "TriangularDuration",
    "UniformDuration",
    "parse_duration",
    "parse_probability",
]

HOURS_PER_DAY = 24.0

_AGE_MAP = re.compile(r"^\s*age\s*\{(?P<body>.*)\}\s*$", re.IGNORECASE | re.DOTALL)
_AGE_BAND = re.compile(r"\s*(?P<lo>\d+)\s*-\s*(?P<hi>\d+)\s*:\s*(?P<value>[A-Za-z]+\s*\([^)]*\)|[-+0-9.eE]+)\s*(?:,|$)")
_DISTRIBUTION = re.compile(r"^\s*(?P<name>[A-Za-z]+)\s*\((?P<args>[^)]*)\)\s*$")


class ConstantProbability:
    def __init__(self, probability: float):
        _check_probability(probability)
        self.probability = float(probability)

        return

    def __call__(self, age: int) -> float:
        return self.probability

    def __repr__(self):
        return f"ConstantProbability({self.probability})"


class AgeBandedProbability:
    """
    Probability looked up from inclusive integer age bands.

    Args:
        bands (list): ``(lo, hi, probability)`` tuples, inclusive on both ends, not overlapping.
        default (float): probability for ages not covered by any band.
    """

    def __init__(self, bands, default: float = 0.0):
        _check_probability(default)
        self.bands = _check_bands(bands)
        for _lo, _hi, probability in self.bands:
            _check_probability(probability)
        self.default = float(default)

        self._lut = np.full(self.bands[-1][1] + 1, self.default, dtype=np.float64)
        for lo, hi, probability in self.bands:
            self._lut[lo : hi + 1] = probability

        return

    def __call__(self, age: int) -> float:
        if 0 <= age < len(self._lut):
            return float(self._lut[age])

        return self.default

    def __repr__(self):
        return f"AgeBandedProbability({self.bands}, default={self.default})"


class ConstantDuration:
    def __init__(self, value: float):
        if value < 0.0:
            raise ValueError(f"Duration must be non-negative ({value=})")
        self.value = float(value)

        return

    def sample(self, prng: np.random.Generator, age: int = 0) -> float:
        return self.value

    def scaled(self, factor: float) -> "ConstantDuration":
        return ConstantDuration(self.value * factor)


class TriangularDuration:
    def __init__(self, left: float, mode: float, right: float):
        if not (0.0 <= left <= mode <= right) or left == right:
            raise ValueError(f"Triangular distribution requires 0 <= min <= mode <= max and min < max ({left=}, {mode=}, {right=})")
        self.left = float(left)
        self.mode = float(mode)
        self.right = float(right)

        return

    def sample(self, prng: np.random.Generator, age: int = 0) -> float:
        return float(prng.triangular(self.left, self.mode, self.right))

    def scaled(self, factor: float) -> "TriangularDuration":
        return TriangularDuration(self.left * factor, self.mode * factor, self.right * factor)


class UniformDuration:
    def __init__(self, low: float, high: float):
        if not (0.0 <= low <= high):
            raise ValueError(f"Uniform distribution requires 0 <= min <= max ({low=}, {high=})")
        self.low = float(low)
        self.high = float(high)

        return

    def sample(self, prng: np.random.Generator, age: int = 0) -> float:
        return float(prng.uniform(self.low, self.high))

    def scaled(self, factor: float) -> "UniformDuration":
        return UniformDuration(self.low * factor, self.high * factor)


class ExponentialDuration:
    def __init__(self, mean: float):
        if mean <= 0.0:
            raise ValueError(f"Exponential distribution requires mean > 0 ({mean=})")
        self.mean = float(mean)

        return

    def sample(self, prng: np.random.Generator, age: int = 0) -> float:
        return float(prng.exponential(self.mean))

    def scaled(self, factor: float) -> "ExponentialDuration":
        return ExponentialDuration(self.mean * factor)


class AgeBandedDuration:
    """Duration drawn from the distribution registered for the agent's age band."""

    def __init__(self, bands, default=None):
        self.bands = _check_bands(bands)
        self.default = default

        return

    def _select(self, age: int):
        for lo, hi, distribution in self.bands:
            if lo <= age <= hi:
                return distribution
        if self.default is None:
            raise ValueError(f"No duration distribution configured for age {age}")

        return self.default

    def sample(self, prng: np.random.Generator, age: int = 0) -> float:
        return self._select(age).sample(prng, age)

    def scaled(self, factor: float) -> "AgeBandedDuration":
        default = self.default.scaled(factor) if self.default is not None else None
        return AgeBandedDuration([(lo, hi, dist.scaled(factor)) for lo, hi, dist in self.bands], default)


# Known distribution names (case-insensitive) and the number of arguments each takes.
DISTRIBUTIONS = {
    "constant": (ConstantDuration, 1),
    "triangular": (TriangularDuration, 3),
    "uniform": (UniformDuration, 2),
    "exponential": (ExponentialDuration, 1),
}


def parse_probability(value):
    """
    Build a probability capability from a configuration value.

    Accepts a number, a numeric string, ``"age{lo-hi: p, ...}"``, or an object that is
    already callable on age (returned unchanged).
    """
    if callable(value):
        return value
    if isinstance(value, (int, float, np.floating, np.integer)):
        return ConstantProbability(float(value))
    if not isinstance(value, str):
        raise TypeError(f"Cannot interpret {value!r} as a probability")

    if (match := _AGE_MAP.match(value)) is not None:
        bands = [(lo, hi, float(text)) for lo, hi, text in _split_age_bands(match["body"], value)]
        return AgeBandedProbability(bands)

    try:
        return ConstantProbability(float(value))
    except ValueError:
        raise ValueError(f"Cannot interpret {value!r} as a probability") from None


def parse_duration(value, scale: float = HOURS_PER_DAY):
    """
    Build a duration distribution from a configuration value.

    Configured durations are in days; ``scale`` converts them to simulation time units
    (hours by default). Objects with a ``sample()`` method are returned unchanged.

    Examples::

        parse_duration("Triangular(2.5, 3.4, 3.8)")
        parse_duration("age{0-59: Uniform(5, 10), 60-120: Triangular(7, 10, 14)}")
        parse_duration(3)
    """
    if hasattr(value, "sample"):
        return value
    if isinstance(value, (int, float, np.floating, np.integer)):
        return ConstantDuration(float(value) * scale)
    if not isinstance(value, str):
        raise TypeError(f"Cannot interpret {value!r} as a duration distribution")

    if (match := _AGE_MAP.match(value)) is not None:
        bands = [(lo, hi, _parse_distribution(text, scale)) for lo, hi, text in _split_age_bands(match["body"], value)]
        return AgeBandedDuration(bands)

    return _parse_distribution(value, scale)


def _parse_distribution(text: str, scale: float):
    match = _DISTRIBUTION.match(text)
    if match is None:
        try:
            return ConstantDuration(float(text) * scale)
        except ValueError:
            raise ValueError(f"Cannot interpret {text!r} as a duration distribution") from None

    name = match["name"].lower()
    if name not in DISTRIBUTIONS:
        raise ValueError(f"Unknown distribution {match['name']!r} in {text!r} (known: {sorted(DISTRIBUTIONS)})")
    factory, nargs = DISTRIBUTIONS[name]
    try:
        args = [float(arg) for arg in match["args"].split(",") if arg.strip()]
    except ValueError:
        raise ValueError(f"Non-numeric argument in {text!r}") from None
    if len(args) != nargs:
        raise ValueError(f"{match['name']} takes {nargs} argument(s), got {len(args)} in {text!r}")

    return factory(*(arg * scale for arg in args))


def _split_age_bands(body: str, original: str):
    bands = []
    position = 0
    body = body.strip()
    while position < len(body):
        match = _AGE_BAND.match(body, position)
        if match is None:
            raise ValueError(f"Cannot parse age map {original!r} near {body[position:]!r}")
        bands.append((int(match["lo"]), int(match["hi"]), match["value"].strip()))
        position = match.end()
    if not bands:
        raise ValueError(f"Age map {original!r} has no bands")

    return bands


def _check_probability(probability) -> None:
    if not (0.0 <= probability <= 1.0):
        raise ValueError(f"Probability must be in [0, 1] ({probability=})")

    return


def _check_bands(bands):
    bands = sorted(bands, key=lambda band: band[0])
    if not bands:
        raise ValueError("At least one age band is required")
    previous = -1
    for lo, hi, _ in bands:
        if lo > hi:
            raise ValueError(f"Age band {lo}-{hi} is reversed")
        if lo <= previous:
            raise ValueError(f"Age band {lo}-{hi} overlaps the previous band (ending at {previous})")
        previous = hi

    return [(int(lo), int(hi), value) for lo, hi, value in bands]
