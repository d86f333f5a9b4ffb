"""
Persistent outcome cache: Outcome -> set of compact keys.

The cache only ever grows. Keys are added by the retrograde solver and never
removed or moved between outcomes, so a key is filed under at most one
outcome.

Binary file format (all integers little-endian unsigned 32-bit):

    for outcome in [PLAYER_WINS, OPPONENT_WINS, DRAW]:
        N                 number of keys in this bucket
        key_1 .. key_N    compact keys, ascending

Loading is all-or-nothing: a length that is not a whole number of words, a
truncated bucket, trailing data or a key present in two buckets rejects the
whole file. Keys are written sorted, so saving the same content always
produces the same bytes.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from pan_solver.engine.encoding import KEY_BITS
from pan_solver.engine.rules import Outcome

logger = logging.getLogger(__name__)

DEFAULT_CACHE_PATH: str = "pan_cache.bin"

CACHE_BUCKET_ORDER: tuple[Outcome, ...] = (
    Outcome.PLAYER_WINS,
    Outcome.OPPONENT_WINS,
    Outcome.DRAW,
)

WORD_DTYPE = np.dtype('<u4')


class CacheFormatError(ValueError):
    """Raised when persisted cache bytes are malformed."""


class OutcomeCache:
    """Classified compact keys, bucketed by outcome."""

    def __init__(self) -> None:
        self._buckets: dict[Outcome, set[int]] = {o: set() for o in CACHE_BUCKET_ORDER}

    def classify(self, key: int) -> Outcome | None:
        """Return the outcome filed for ``key``, or None if it is not yet known."""
        for outcome, keys in self._buckets.items():
            if key in keys:
                return outcome
        return None

    def add(self, key: int, outcome: Outcome) -> None:
        """File ``key`` under ``outcome``.

        Re-adding a key under the same outcome is a no-op.

        Raises:
            ValueError: If the key is out of range or already filed under a
                        different outcome.
        """
        if not 0 <= key < (1 << KEY_BITS):
            raise ValueError(f"Key {key} does not fit in {KEY_BITS} bits.")
        existing = self.classify(key)
        if existing is not None and existing is not outcome:
            raise ValueError(
                f"Key {key:#x} already classified as {existing.name}, cannot file as {outcome.name}."
            )
        self._buckets[outcome].add(key)

    def keys(self, outcome: Outcome) -> frozenset[int]:
        return frozenset(self._buckets[outcome])

    def counts(self) -> dict[Outcome, int]:
        return {outcome: len(keys) for outcome, keys in self._buckets.items()}

    def __len__(self) -> int:
        return sum(len(keys) for keys in self._buckets.values())

    def __contains__(self, key: int) -> bool:
        return self.classify(key) is not None

    # ─── Serialisation ────────────────────────────────────────────────────────

    def to_bytes(self) -> bytes:
        parts = []
        for outcome in CACHE_BUCKET_ORDER:
            keys = np.array(sorted(self._buckets[outcome]), dtype=WORD_DTYPE)
            parts.append(np.array([len(keys)], dtype=WORD_DTYPE).tobytes())
            parts.append(keys.tobytes())
        return b''.join(parts)

    @classmethod
    def from_bytes(cls, data: bytes) -> OutcomeCache:
        """Parse the binary cache format.

        Raises:
            CacheFormatError: On any structural problem; nothing is loaded.
        """
        if len(data) % WORD_DTYPE.itemsize != 0:
            raise CacheFormatError(
                f"Malformed cache: {len(data)} bytes is not a sequence of 32-bit words."
            )
        words = np.frombuffer(data, dtype=WORD_DTYPE)

        cache = cls()
        seen: set[int] = set()
        pos = 0
        for outcome in CACHE_BUCKET_ORDER:
            if pos >= len(words):
                raise CacheFormatError(f"Truncated cache: missing count for {outcome.name}.")
            count = int(words[pos])
            pos += 1
            if pos + count > len(words):
                raise CacheFormatError(
                    f"Truncated cache: {outcome.name} declares {count} keys, "
                    f"{len(words) - pos} words remain."
                )
            bucket = set(words[pos:pos + count].tolist())
            pos += count
            if len(bucket) != count:
                raise CacheFormatError(f"Malformed cache: duplicate keys in {outcome.name}.")
            if not seen.isdisjoint(bucket):
                raise CacheFormatError(
                    f"Malformed cache: keys in {outcome.name} also filed under another outcome."
                )
            seen |= bucket
            cache._buckets[outcome] = bucket

        if pos != len(words):
            raise CacheFormatError(f"Malformed cache: {len(words) - pos} trailing words.")
        return cache

    def save(self, path: str | Path) -> None:
        """Write the cache to ``path``, replacing any existing file.

        Raises:
            OSError: If the file cannot be written.
        """
        data = self.to_bytes()
        Path(path).write_bytes(data)
        logger.info("Saved %d classified positions to %s (%d bytes)", len(self), path, len(data))

    @classmethod
    def load(cls, path: str | Path) -> OutcomeCache:
        """Read a cache file.

        Raises:
            OSError:          If the file cannot be read.
            CacheFormatError: If the contents are malformed.
        """
        cache = cls.from_bytes(Path(path).read_bytes())
        logger.info("Loaded %d classified positions from %s", len(cache), path)
        return cache


def load_or_empty(path: str | Path) -> OutcomeCache:
    """Load a cache, falling back to an empty one if it is absent or unusable.

    An empty cache is always a valid starting point: the solver simply
    classifies everything again.
    """
    try:
        return OutcomeCache.load(path)
    except FileNotFoundError:
        logger.info("No cache at %s, starting empty", path)
    except (OSError, CacheFormatError) as exc:
        logger.warning("Could not load cache from %s (%s), starting empty", path, exc)
    return OutcomeCache()
