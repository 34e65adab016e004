# src/formfuzz/engine/parameters.py
"""Random parameter primitives used by the value generator.

All randomness goes through one ``random.Random`` instance so that a seeded
generator reproduces the same sequence of values.
"""

import random as random_module
import string
from collections.abc import Sequence
from datetime import UTC, datetime

_ALPHANUMERIC = string.ascii_letters + string.digits
_LOWER_ALPHANUMERIC = string.ascii_lowercase + string.digits


class ParameterGenerator:
    """Bounded random strings, numbers, instants and formatted identifiers."""

    def __init__(self, *, rng: random_module.Random | None = None) -> None:
        self._rng = rng if rng is not None else random_module.Random()

    def generate_string(self, min_length: int, max_length: int, alphabet: str = _ALPHANUMERIC) -> str:
        """String whose length is uniform in [min_length, max_length]."""
        length = self._rng.randint(min_length, max_length)
        return "".join(self._rng.choice(alphabet) for _ in range(length))

    def generate_int(self, minimum: int, maximum: int) -> int:
        """Integer uniform in [minimum, maximum]."""
        return self._rng.randint(minimum, maximum)

    def generate_float(self, minimum: float, maximum: float, digits: int = 2) -> float:
        """Float uniform in [minimum, maximum], rounded to ``digits`` decimals."""
        value = round(self._rng.uniform(minimum, maximum), digits)
        # Rounding can step over a non-integral bound
        return min(max(value, minimum), maximum)

    def generate_digits(self, count: int) -> str:
        """Numeric string of exactly ``count`` digits without a leading zero."""
        return str(self._rng.randint(10 ** (count - 1), 10**count - 1))

    def generate_datetime(self, start: float, end: float) -> datetime:
        """UTC instant uniform between two POSIX timestamps (seconds)."""
        timestamp = self._rng.uniform(start, end)
        return datetime.fromtimestamp(int(timestamp), tz=UTC)

    def generate_email(self, min_length: int, max_length: int, domains: Sequence[str]) -> str:
        """Address ``local@domain`` with a local part in the given length range."""
        local = self.generate_string(min_length, max_length, _LOWER_ALPHANUMERIC)
        return f"{local}@{self._rng.choice(domains)}"

    def generate_url(self, min_length: int, max_length: int, schemes: Sequence[str], tlds: Sequence[str]) -> str:
        """URL ``scheme://host.tld/path`` with host and path in the given length range."""
        host = self.generate_string(min_length, max_length, _LOWER_ALPHANUMERIC)
        path = self.generate_string(min_length, max_length, _LOWER_ALPHANUMERIC)
        return f"{self._rng.choice(schemes)}://{host}.{self._rng.choice(tlds)}/{path}"

    def choice[T](self, options: Sequence[T]) -> T:
        return self._rng.choice(options)

    def sample[T](self, population: Sequence[T], count: int) -> list[T]:
        return self._rng.sample(population, count)
