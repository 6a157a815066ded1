from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple
import numpy as np

from metrics import line_code_metrics
from utils import AlgorithmTag, TransmissionResult, bits_to_string, scan

logger = logging.getLogger(__name__)


class LineCode(AlgorithmTag):
    NRZ_L = "nrz-l"
    NRZ_I = "nrz-i"
    MANCHESTER = "manchester"
    DIFF_MANCHESTER = "diff-manchester"
    AMI = "ami"
    UNKNOWN = "unknown"


# Symbols emitted per input bit
SYMBOLS_PER_BIT: Dict[LineCode, int] = {
    LineCode.NRZ_L: 1,
    LineCode.NRZ_I: 1,
    LineCode.MANCHESTER: 2,
    LineCode.DIFF_MANCHESTER: 2,
    LineCode.AMI: 1,
    LineCode.UNKNOWN: 1,
}

# Assumed line level before the first bit (NRZ-I, Differential Manchester)
REFERENCE_LEVEL = 0


# ---------- Encoding steps: (state, bit) -> (state, symbols) ----------

def _nrzi_step(level: int, bit: int) -> Tuple[int, List[float]]:
    if bit == 1:
        level = 1 - level  # transition on 1
    return level, [level]


def _diff_manchester_step(level: int, bit: int) -> Tuple[int, List[float]]:
    # Convention: 0 => transition at start; 1 => no transition at start.
    if bit == 0:
        level = 1 - level
    start = level
    level = 1 - level  # always mid-bit transition
    return level, [start, level]


def _ami_step(polarity: int, bit: int) -> Tuple[int, List[float]]:
    if bit == 0:
        return polarity, [0]
    return -polarity, [polarity]


def _manchester_symbols(bits: List[int]) -> List[float]:
    # IEEE-style: 1 = low->high, 0 = high->low
    out: List[float] = []
    for b in bits:
        out.extend([0, 1] if b == 1 else [1, 0])
    return out


# ---------- Decoding helpers ----------

def _decode_nrzi(levels: List[float], start_level: float = REFERENCE_LEVEL) -> List[int]:
    bits: List[int] = []
    prev = start_level
    for v in levels:
        bits.append(1 if v != prev else 0)
        prev = v
    return bits


def _decode_manchester(levels: List[float]) -> List[int]:
    bits: List[int] = []
    for i in range(0, len(levels), 2):
        pair = tuple(levels[i:i + 2])
        bits.append(1 if pair == (0, 1) else 0)
    return bits


def _decode_diff_manchester(levels: List[float], start_level: float = REFERENCE_LEVEL) -> List[int]:
    bits: List[int] = []
    prev_last = start_level
    for i in range(0, len(levels), 2):
        first = levels[i]
        # Convention: 0 => start transition; 1 => no start transition
        bits.append(1 if first == prev_last else 0)
        if i + 1 < len(levels):
            prev_last = levels[i + 1]
    return bits


# ---------- Public API ----------

def line_encode(bits: List[int], scheme: str) -> Tuple[np.ndarray, Dict[str, Any]]:
    code = LineCode.resolve(scheme)
    meta: Dict[str, Any] = {"scheme": code.value, "symbols_per_bit": SYMBOLS_PER_BIT[code]}

    if code == LineCode.NRZ_L:
        levels: List[float] = list(bits)
    elif code == LineCode.NRZ_I:
        levels, final = scan(_nrzi_step, REFERENCE_LEVEL, bits)
        meta["final_level"] = final
    elif code == LineCode.MANCHESTER:
        levels = _manchester_symbols(bits)
    elif code == LineCode.DIFF_MANCHESTER:
        levels, final = scan(_diff_manchester_step, REFERENCE_LEVEL, bits)
        meta["final_level"] = final
    elif code == LineCode.AMI:
        levels, next_polarity = scan(_ami_step, +1, bits)
        meta["next_polarity"] = next_polarity
    else:
        levels = list(bits)

    return np.array(levels, dtype=float), meta


def line_decode(levels: np.ndarray, scheme: str) -> Tuple[List[int], Dict[str, Any]]:
    code = LineCode.resolve(scheme)
    meta: Dict[str, Any] = {"scheme": code.value}
    seq = [float(v) for v in np.asarray(levels, dtype=float).tolist()]

    if code == LineCode.NRZ_L:
        bits = [int(round(v)) for v in seq]
    elif code == LineCode.NRZ_I:
        bits = _decode_nrzi(seq)
    elif code == LineCode.MANCHESTER:
        bits = _decode_manchester(seq)
    elif code == LineCode.DIFF_MANCHESTER:
        bits = _decode_diff_manchester(seq)
    elif code == LineCode.AMI:
        bits = [1 if v != 0 else 0 for v in seq]
    else:
        bits = [int(v) for v in seq]

    return bits, meta


def simulate_d2d(bits: List[int], scheme: str) -> TransmissionResult:
    code = LineCode.resolve(scheme)
    tx, meta_tx = line_encode(bits, code)
    decoded, meta_rx = line_decode(tx, code)

    original = bits_to_string(bits)
    # Pass-through echoes the input unchanged
    decoded_str = original if code == LineCode.UNKNOWN else bits_to_string(decoded)

    meta = {
        "scheme": code.value,
        "encode": meta_tx,
        "decode": meta_rx,
        "match": (decoded_str == original),
        "input_len": len(bits),
    }
    logger.debug("d2d %s: %d bits -> %d symbols", code.value, len(bits), len(tx))
    return TransmissionResult(
        mode="digital-to-digital",
        algorithm=code.value,
        original=original,
        encoded=tx,
        decoded=decoded_str,
        metrics=line_code_metrics(len(bits), code),
        meta=meta,
    )
