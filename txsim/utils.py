from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar
import numpy as np

logger = logging.getLogger(__name__)

S = TypeVar("S")
T = TypeVar("T")


@dataclass
class EngineParams:
    samples_per_symbol: int = 10   # waveform points per bit (digital -> analog)
    carrier_freq: float = 2.0      # carrier cycles per symbol window
    analog_samples: int = 20       # waveform points per sample (analog -> analog)
    pcm_levels: int = 256          # PCM quantizer levels
    ask_threshold: float = 0.6     # mean |x| decision level for ASK
    qam_threshold: float = 0.8     # mean |x| decision level for QAM

    def __post_init__(self) -> None:
        if int(self.samples_per_symbol) <= 0:
            raise ValueError("samples_per_symbol must be positive.")
        if int(self.analog_samples) <= 0:
            raise ValueError("analog_samples must be positive.")
        if float(self.carrier_freq) <= 0:
            raise ValueError("carrier_freq must be > 0")
        if int(self.pcm_levels) < 2:
            raise ValueError("pcm_levels must be >= 2.")


@dataclass
class Metrics:
    bit_rate: str
    signal_levels: str
    bandwidth: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "bitRate": self.bit_rate,
            "signalLevels": self.signal_levels,
            "bandwidth": self.bandwidth,
        }


@dataclass
class TransmissionResult:
    mode: str
    algorithm: str
    encoded: np.ndarray
    metrics: Metrics
    original: Optional[str] = None                   # digital input bits
    decoded: Optional[str] = None                    # recovered bits
    original_analog: Optional[np.ndarray] = None     # parsed samples
    decoded_analog: Optional[np.ndarray] = None      # reconstructed samples
    demodulated_signal: Optional[np.ndarray] = None  # analog -> analog trace
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_digital(self) -> bool:
        return self.original is not None

    def to_dict(self) -> Dict[str, Any]:
        """Camel-cased record consumed by chart/table renderers."""
        out: Dict[str, Any] = {"encoded": _as_list(self.encoded)}
        if self.original is not None:
            out["original"] = self.original
        if self.decoded is not None:
            out["decoded"] = self.decoded
        if self.original_analog is not None:
            out["originalAnalog"] = _as_list(self.original_analog)
        if self.decoded_analog is not None:
            out["decodedAnalog"] = _as_list(self.decoded_analog)
        if self.demodulated_signal is not None:
            out["demodulatedSignal"] = _as_list(self.demodulated_signal)
        out["metrics"] = self.metrics.to_dict()
        return out


def _as_list(x: np.ndarray) -> List[float]:
    return [float(v) for v in np.asarray(x, dtype=float).tolist()]


# ---------- Algorithm tags ----------

# Alternative spellings accepted for algorithm tags
ALGORITHM_ALIASES: Dict[str, str] = {
    "nrzl": "nrz-l",
    "nrzi": "nrz-i",
    "differential-manchester": "diff-manchester",
    "diffmanchester": "diff-manchester",
    "bipolar-ami": "ami",
    "dm": "delta",
    "adm": "adaptive-delta",
}


class AlgorithmTag(str, Enum):
    """
    Closed set of algorithm tags for one mode family.

    Subclasses must define an UNKNOWN member: any tag that does not name a
    member (after case folding and alias lookup) resolves to it, and every
    family maps UNKNOWN to its pass-through behaviour.
    """

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            key = value.strip().lower().replace("_", "-")
            key = ALGORITHM_ALIASES.get(key, key)
            for member in cls:
                if member.value == key:
                    return member
        return cls.UNKNOWN  # type: ignore[attr-defined]

    @classmethod
    def resolve(cls, tag: object):
        member = cls(tag)
        if member.value == "unknown" and tag != member.value:
            logger.info("%s: unrecognized tag %r, using pass-through", cls.__name__, tag)
        return member


# ---------- Input parsing ----------

# Quotation marks stripped before numeric scanning (ASCII and typographic)
_QUOTE_CHARS = "\"“”„‟‹›«»'`"
_QUOTE_RE = re.compile("[" + re.escape(_QUOTE_CHARS) + "]")
_NUMBER_RE = re.compile(r"-?\d*\.?\d+(?:e[-+]?\d+)?", re.IGNORECASE)


def parse_bits(text: str) -> List[int]:
    """
    Bits from text. Characters other than 0/1 are dropped (with a warning)
    rather than rejected, so any text yields a usable, possibly empty, list.
    """
    s = (text or "").strip()
    bits = [1 if c == "1" else 0 for c in s if c in "01"]
    dropped = len(s) - len(bits)
    if dropped:
        logger.warning("parse_bits: dropped %d non-binary character(s)", dropped)
    return bits


def parse_samples(text: str) -> np.ndarray:
    cleaned = _QUOTE_RE.sub("", text or "").strip()
    values: List[float] = []
    for token in _NUMBER_RE.findall(cleaned):
        try:
            v = float(token)
        except ValueError:
            continue
        if math.isfinite(v):
            values.append(v)
    return np.array(values, dtype=float)


def bits_to_string(bits: Iterable[int]) -> str:
    return "".join("1" if b else "0" for b in bits)


def gen_random_bits(n: int, seed: Optional[int] = None) -> List[int]:
    rng = np.random.default_rng(seed)
    return [int(x) for x in rng.integers(0, 2, size=n)]


# ---------- Sequence helpers ----------

def scan(step: Callable[[S, T], Tuple[S, List[float]]], state: S, items: Iterable[T]) -> Tuple[List[float], S]:
    # Threads state through items; step(state, item) -> (new_state, emitted symbols)
    out: List[float] = []
    for item in items:
        state, emitted = step(state, item)
        out.extend(emitted)
    return out, state


def segments(x: np.ndarray, n: int) -> List[np.ndarray]:
    # Non-overlapping windows of length n (a short tail window is kept)
    x = np.asarray(x, dtype=float)
    return [x[i:i + n] for i in range(0, len(x), n)]


def count_zero_crossings(seg: np.ndarray) -> int:
    # Sign changes between neighbours; 0.0 counts as non-negative
    seg = np.asarray(seg, dtype=float)
    if seg.size < 2:
        return 0
    nonneg = seg >= 0
    return int(np.count_nonzero(nonneg[1:] != nonneg[:-1]))
