from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional

import numpy as np

from metrics import analog_metrics
from utils import AlgorithmTag, EngineParams, TransmissionResult, count_zero_crossings, segments

logger = logging.getLogger(__name__)


class AnalogModulation(AlgorithmTag):
    AM = "am"
    FM = "fm"
    PM = "pm"
    UNKNOWN = "unknown"


AM_INDEX = 0.5          # depth of the envelope ripple
AM_ENVELOPE_GAIN = 1.5  # 1 + AM_INDEX
FM_BASE_FREQ = 2.0      # cycles per segment at zero deviation
PM_CARRIER_FREQ = 2.0


# -----------------------------
# Helpers
# -----------------------------
def _index(n: int) -> np.ndarray:
    return np.arange(int(n), dtype=float)


def _concat(chunks: List[np.ndarray]) -> np.ndarray:
    return np.concatenate(chunks) if chunks else np.array([], dtype=float)


# -----------------------------
# Modulators
# -----------------------------
def am_modulate(m_s: np.ndarray, n: int) -> np.ndarray:
    """
    Per-sample AM segment:
      s[i] = x * (1 + 0.5 * sin(2π i / n)),  i = 0..n-1
    """
    i = _index(n)
    ripple = 1 + AM_INDEX * np.sin(2 * np.pi * i / n)
    return _concat([float(x) * ripple for x in np.asarray(m_s, dtype=float).tolist()])


def fm_modulate(m_s: np.ndarray, n: int) -> np.ndarray:
    """
    Instantaneous frequency f = 2 + |x| cycles per segment:
      s[i] = sin(2π f i / n)
    """
    i = _index(n)
    chunks = []
    for x in np.asarray(m_s, dtype=float).tolist():
        freq = FM_BASE_FREQ + abs(x)
        chunks.append(np.sin(2 * np.pi * freq * i / n))
    return _concat(chunks)


def pm_modulate(m_s: np.ndarray, n: int) -> np.ndarray:
    """
    Sample used directly as the phase offset of a fixed carrier:
      s[i] = sin(2π 2 i / n + x)
    """
    i = _index(n)
    return _concat([np.sin(2 * np.pi * PM_CARRIER_FREQ * i / n + float(x)) for x in np.asarray(m_s, dtype=float).tolist()])


# -----------------------------
# Per-segment demodulators
# -----------------------------
def am_demodulate(s_t: np.ndarray, n: int) -> np.ndarray:
    # envelope: mean |s| over the segment, scaled back by the peak gain
    return np.array([float(np.sum(np.abs(seg))) / n / AM_ENVELOPE_GAIN for seg in segments(s_t, n)], dtype=float)


def fm_demodulate(s_t: np.ndarray, n: int) -> np.ndarray:
    # two zero crossings per cycle, minus the base frequency
    return np.array([count_zero_crossings(seg) / 2 - FM_BASE_FREQ for seg in segments(s_t, n)], dtype=float)


def pm_demodulate(s_t: np.ndarray, n: int) -> np.ndarray:
    quarter = int(n) // 4
    out: List[float] = []
    for seg in segments(s_t, n):
        y = float(seg[quarter]) if quarter < seg.size else 0.0
        x = float(seg[0]) if seg.size else 0.0
        out.append(math.atan2(y, x if x != 0 else 1.0))
    return np.array(out, dtype=float)


_SCHEMES = {
    AnalogModulation.AM: (am_modulate, am_demodulate),
    AnalogModulation.FM: (fm_modulate, fm_demodulate),
    AnalogModulation.PM: (pm_modulate, pm_demodulate),
}


# -----------------------------
# Simulation entry point
# -----------------------------
def simulate_a2a(
    m_s: np.ndarray,
    scheme: str,
    params: Optional[EngineParams] = None,
) -> TransmissionResult:
    """
    Analog → Analog modulation simulation.

    Pipeline:
      1) Expand each sample into a segment of `analog_samples` points (AM / FM / PM)
      2) Recover one value per segment (envelope / zero-crossing rate / phase)

    The decoded analog output is the sample sequence itself; the recovered
    per-segment trace is returned as `demodulated_signal`.
    """
    params = params or EngineParams()
    mod = AnalogModulation.resolve(scheme)
    m_s = np.asarray(m_s, dtype=float)
    n = int(params.analog_samples)

    meta: Dict[str, Any] = {"scheme": mod.value, "input_len": int(m_s.size), "analog_samples": n}

    if mod in _SCHEMES:
        modulate, demodulate = _SCHEMES[mod]
        s = modulate(m_s, n)
        recovered = demodulate(s, n)
    else:
        s = m_s.copy()
        recovered = m_s.copy()

    if mod == AnalogModulation.AM:
        meta["am"] = {"index": AM_INDEX, "envelope_gain": AM_ENVELOPE_GAIN}
    elif mod == AnalogModulation.FM:
        meta["fm"] = {"base_freq": FM_BASE_FREQ, "inst_freq": (FM_BASE_FREQ + np.abs(m_s)).tolist()}
    elif mod == AnalogModulation.PM:
        meta["pm"] = {"carrier_freq": PM_CARRIER_FREQ}

    meta["match"] = True
    logger.debug("a2a %s: %d samples -> %d points", mod.value, m_s.size, s.size)

    return TransmissionResult(
        mode="analog-to-analog",
        algorithm=mod.value,
        original_analog=m_s,
        encoded=s,
        decoded_analog=m_s.copy(),
        demodulated_signal=recovered,
        metrics=analog_metrics(int(m_s.size), mod),
        meta=meta,
    )
