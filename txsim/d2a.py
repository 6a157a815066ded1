from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
import numpy as np

from metrics import keying_metrics
from utils import (
    AlgorithmTag,
    EngineParams,
    TransmissionResult,
    bits_to_string,
    count_zero_crossings,
    segments,
)

logger = logging.getLogger(__name__)


class Keying(AlgorithmTag):
    ASK = "ask"
    FSK = "fsk"
    PSK = "psk"
    QAM = "qam"
    UNKNOWN = "unknown"


# ASK amplitudes (flat segments)
ASK_HIGH = 1.0
ASK_LOW = 0.3

# FSK tones in cycles per symbol
FSK_F1 = 4.0
FSK_F0 = 2.0
FSK_MIN_CROSSINGS = 6

# Simplified QAM: amplitude-only scaling of the carrier
QAM_HIGH = 1.5
QAM_LOW = 0.5

# Mean |x| decision level for unrecognized schemes
FALLBACK_THRESHOLD = 0.5


# ----------------------------
# Small utilities
# ----------------------------

def _tone(freq: float, Ns: int, phase: float = 0.0) -> np.ndarray:
    """One symbol window of sin(2π f i / Ns + phase), i = 0..Ns-1."""
    i = np.arange(Ns, dtype=float)
    return np.sin(2 * np.pi * freq * i / Ns + phase)


def _mean_abs(seg: np.ndarray) -> float:
    return float(np.mean(np.abs(seg))) if seg.size else 0.0


# ----------------------------
# Modulation / Demodulation
# ----------------------------

def modulate(bits: List[int], scheme: str, params: Optional[EngineParams] = None) -> Tuple[np.ndarray, Dict[str, Any]]:
    params = params or EngineParams()
    key = Keying.resolve(scheme)
    Ns = int(params.samples_per_symbol)
    fc = float(params.carrier_freq)

    meta: Dict[str, Any] = {"scheme": key.value, "samples_per_symbol": Ns}
    chunks: List[np.ndarray] = []

    if key == Keying.ASK:
        for b in bits:
            chunks.append(np.full(Ns, ASK_HIGH if b == 1 else ASK_LOW))
        meta.update({"A1": ASK_HIGH, "A0": ASK_LOW})

    elif key == Keying.FSK:
        tones = {1: _tone(FSK_F1, Ns), 0: _tone(FSK_F0, Ns)}
        for b in bits:
            chunks.append(tones[1 if b == 1 else 0])
        meta.update({"f1": FSK_F1, "f0": FSK_F0})

    elif key == Keying.PSK:
        # 0 => phase 0, 1 => phase π
        for b in bits:
            chunks.append(_tone(fc, Ns, np.pi if b == 1 else 0.0))
        meta.update({"fc": fc, "phase1": float(np.pi), "phase0": 0.0})

    elif key == Keying.QAM:
        carrier = _tone(fc, Ns)
        for b in bits:
            chunks.append(carrier * (QAM_HIGH if b == 1 else QAM_LOW))
        meta.update({"fc": fc, "A1": QAM_HIGH, "A0": QAM_LOW})

    else:
        for b in bits:
            chunks.append(np.full(Ns, float(b)))

    s = np.concatenate(chunks) if chunks else np.array([], dtype=float)
    return s, meta


def demodulate(s_t: np.ndarray, scheme: str, params: Optional[EngineParams] = None) -> Tuple[List[int], Dict[str, Any]]:
    params = params or EngineParams()
    key = Keying.resolve(scheme)
    Ns = int(params.samples_per_symbol)
    fc = float(params.carrier_freq)

    meta: Dict[str, Any] = {"scheme": key.value}
    bits_out: List[int] = []
    decision: List[float] = []
    reference = _tone(fc, Ns)

    for seg in segments(s_t, Ns):
        if key == Keying.ASK:
            stat = _mean_abs(seg)
            bits_out.append(1 if stat > params.ask_threshold else 0)
        elif key == Keying.FSK:
            stat = float(count_zero_crossings(seg))
            bits_out.append(1 if stat >= FSK_MIN_CROSSINGS else 0)
        elif key == Keying.PSK:
            # phase-reversed symbol correlates negatively with the carrier
            stat = float(np.dot(seg, reference[:len(seg)]))
            bits_out.append(1 if stat < 0 else 0)
        elif key == Keying.QAM:
            stat = _mean_abs(seg)
            bits_out.append(1 if stat > params.qam_threshold else 0)
        else:
            stat = _mean_abs(seg)
            bits_out.append(1 if stat > FALLBACK_THRESHOLD else 0)
        decision.append(stat)

    meta.update({"symbols": len(bits_out), "decision": decision})
    return bits_out, meta


# ----------------------------
# End-to-end simulation wrapper
# ----------------------------

def simulate_d2a(bits: List[int], scheme: str, params: Optional[EngineParams] = None) -> TransmissionResult:
    params = params or EngineParams()
    key = Keying.resolve(scheme)

    tx, meta_tx = modulate(bits, key, params)
    rx_bits, meta_rx = demodulate(tx, key, params)

    original = bits_to_string(bits)
    decoded = bits_to_string(rx_bits)

    meta: Dict[str, Any] = {
        "scheme": key.value,
        "modulate": meta_tx,
        "demodulate": meta_rx,
        "input_len": len(bits),
        "decoded_len": len(rx_bits),
        "match": (decoded == original),
    }
    logger.debug("d2a %s: %d bits -> %d samples", key.value, len(bits), len(tx))
    return TransmissionResult(
        mode="digital-to-analog",
        algorithm=key.value,
        original=original,
        encoded=tx,
        decoded=decoded,
        metrics=keying_metrics(len(bits), key),
        meta=meta,
    )
