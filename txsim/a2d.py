from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
import numpy as np

from metrics import sampling_metrics
from utils import AlgorithmTag, EngineParams, TransmissionResult

logger = logging.getLogger(__name__)


class SamplingCodec(AlgorithmTag):
    PCM = "pcm"
    DELTA = "delta"
    ADAPTIVE_DELTA = "adaptive-delta"
    UNKNOWN = "unknown"


# Adaptive delta shares the delta codec: step sizes are the exact differences
DELTA_FAMILY = (SamplingCodec.DELTA, SamplingCodec.ADAPTIVE_DELTA)


# -------------------------
# Normalization
# -------------------------
# Ranges are kept in half units: vmax/2 - vmin/2 stays finite for any
# finite samples, where vmax - vmin can overflow.

def _observed_range(m_s: np.ndarray) -> Tuple[float, float]:
    """(vmin, half_span) of the samples; half_span falls back to 0.5 for a flat input."""
    vmin = float(np.min(m_s))
    vmax = float(np.max(m_s))
    half_span = vmax / 2 - vmin / 2
    return vmin, (half_span if half_span != 0 else 0.5)


# -------------------------
# PCM: quantize, and reconstruct
# -------------------------

def pcm_quantize(m_s: np.ndarray, levels: int = 256) -> Tuple[np.ndarray, Dict[str, Any]]:
    """
    Map samples onto integer levels 0..levels-1 over the observed [min, max].
    Returns (idx, meta) with the vmin/half_span needed to invert the mapping.
    """
    m_s = np.asarray(m_s, dtype=float)
    top = int(levels) - 1
    if m_s.size == 0:
        return np.array([], dtype=float), {"L": int(levels), "vmin": 0.0, "half_span": 0.5}

    vmin, half_span = _observed_range(m_s)
    norm = (m_s / 2 - vmin / 2) / half_span
    # halves round up (np.round would round them to even)
    idx = np.floor(norm * top + 0.5)
    idx = np.clip(idx, 0, top)

    meta = {"L": int(levels), "vmin": vmin, "half_span": half_span}
    return idx.astype(float), meta


def pcm_reconstruct(idx: np.ndarray, levels: int, vmin: float, half_span: float) -> np.ndarray:
    idx = np.asarray(idx, dtype=float)
    frac = idx / float(int(levels) - 1)
    return 2 * (vmin / 2 + frac * float(half_span))


# -------------------------
# Delta: encode and decode
# -------------------------

def delta_encode(m_s: np.ndarray) -> Tuple[List[int], np.ndarray]:
    """
    One bit per successive difference: 1 for a non-negative step, 0 otherwise.
    The first sample is the reference and gets no symbol.

    Returns:
      bits, half-step magnitudes |x[k]/2 - x[k-1]/2|
    """
    m_s = np.asarray(m_s, dtype=float)
    bits = [1 if cur >= prev else 0 for prev, cur in zip(m_s[:-1].tolist(), m_s[1:].tolist())]
    return bits, np.abs(np.diff(m_s / 2))


def delta_decode(bits: List[int], half_steps: np.ndarray, *, est0: float) -> np.ndarray:
    """
    Integrate signed half steps from the reference sample and scale back up.
    With the exact magnitudes from delta_encode this re-derives the original
    sequence.
    """
    est = float(est0) / 2
    stair = np.zeros(len(bits) + 1, dtype=float)
    stair[0] = est

    for i, (b, step) in enumerate(zip(bits, np.asarray(half_steps, dtype=float).tolist())):
        est += step if int(b) == 1 else -step
        stair[i + 1] = est

    return 2 * stair


# -------------------------
# Main simulator
# -------------------------

def simulate_a2d(
    m_s: np.ndarray,
    technique: str,
    params: Optional[EngineParams] = None,
) -> TransmissionResult:
    params = params or EngineParams()
    codec = SamplingCodec.resolve(technique)
    m_s = np.asarray(m_s, dtype=float)

    meta: Dict[str, Any] = {"technique": codec.value, "input_len": int(m_s.size)}

    if m_s.size == 0:
        empty = np.array([], dtype=float)
        meta["match"] = True
        return TransmissionResult(
            mode="analog-to-digital",
            algorithm=codec.value,
            original_analog=empty,
            encoded=empty.copy(),
            decoded_analog=empty.copy(),
            metrics=sampling_metrics(0, codec, params.pcm_levels),
            meta=meta,
        )

    if codec == SamplingCodec.PCM:
        idx, qmeta = pcm_quantize(m_s, params.pcm_levels)
        recon = pcm_reconstruct(idx, qmeta["L"], qmeta["vmin"], qmeta["half_span"])
        encoded = idx
        meta["pcm"] = {**qmeta, "max_error": 2 * (float(qmeta["half_span"]) / (qmeta["L"] - 1))}

    elif codec in DELTA_FAMILY:
        bits, half_steps = delta_encode(m_s)
        recon = delta_decode(bits, half_steps, est0=float(m_s[0]))
        encoded = np.array(bits, dtype=float)
        meta["dm"] = {"reference": float(m_s[0]), "half_steps": half_steps}

    else:
        encoded = m_s.copy()
        recon = m_s.copy()

    meta["match"] = bool(recon.size == m_s.size and np.allclose(recon, m_s, atol=1e-3, rtol=0.0))
    logger.debug("a2d %s: %d samples -> %d symbols", codec.value, m_s.size, encoded.size)

    return TransmissionResult(
        mode="analog-to-digital",
        algorithm=codec.value,
        original_analog=m_s,
        encoded=encoded,
        decoded_analog=recon,
        metrics=sampling_metrics(int(m_s.size), codec, params.pcm_levels),
        meta=meta,
    )
