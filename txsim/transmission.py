from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from a2a import simulate_a2a
from a2d import simulate_a2d
from d2a import simulate_d2a
from d2d import simulate_d2d
from utils import EngineParams, TransmissionResult, parse_bits, parse_samples

logger = logging.getLogger(__name__)


class TransmissionMode(str, Enum):
    DIGITAL_TO_DIGITAL = "digital-to-digital"
    DIGITAL_TO_ANALOG = "digital-to-analog"
    ANALOG_TO_DIGITAL = "analog-to-digital"
    ANALOG_TO_ANALOG = "analog-to-analog"


# Selectable algorithms per mode: (tag, label)
ALGORITHMS: Dict[TransmissionMode, List[Tuple[str, str]]] = {
    TransmissionMode.DIGITAL_TO_DIGITAL: [
        ("nrz-l", "NRZ-L (Non-Return to Zero Level)"),
        ("nrz-i", "NRZ-I (Non-Return to Zero Inverted)"),
        ("manchester", "Manchester Encoding"),
        ("diff-manchester", "Differential Manchester"),
        ("ami", "AMI (Alternate Mark Inversion)"),
    ],
    TransmissionMode.DIGITAL_TO_ANALOG: [
        ("ask", "ASK (Amplitude Shift Keying)"),
        ("fsk", "FSK (Frequency Shift Keying)"),
        ("psk", "PSK (Phase Shift Keying)"),
        ("qam", "QAM (Quadrature Amplitude Modulation)"),
    ],
    TransmissionMode.ANALOG_TO_DIGITAL: [
        ("pcm", "PCM (Pulse Code Modulation)"),
        ("delta", "Delta Modulation"),
        ("adaptive-delta", "Adaptive Delta Modulation"),
    ],
    TransmissionMode.ANALOG_TO_ANALOG: [
        ("am", "AM (Amplitude Modulation)"),
        ("fm", "FM (Frequency Modulation)"),
        ("pm", "PM (Phase Modulation)"),
    ],
}


def _resolve_mode(mode: object) -> Optional[TransmissionMode]:
    try:
        return TransmissionMode(mode)
    except ValueError:
        return None


def list_algorithms(mode: object) -> List[Tuple[str, str]]:
    m = _resolve_mode(mode)
    return list(ALGORITHMS[m]) if m is not None else []


def process_transmission(
    mode: object,
    algorithm: str,
    input_data: str,
    params: Optional[EngineParams] = None,
) -> Optional[TransmissionResult]:
    """
    Run one encode/decode round for (mode, algorithm, raw text).

    Returns None only when `mode` is not one of the four transmission modes;
    an unrecognized algorithm falls back to the family's pass-through.
    Digital modes read bits from `input_data`, analog modes read numeric
    samples (see utils.parse_bits / utils.parse_samples).
    """
    m = _resolve_mode(mode)
    if m is None:
        logger.warning("process_transmission: unknown mode %r", mode)
        return None

    params = params or EngineParams()
    logger.debug("process_transmission: mode=%s algorithm=%r", m.value, algorithm)

    if m == TransmissionMode.DIGITAL_TO_DIGITAL:
        result = simulate_d2d(parse_bits(input_data), algorithm)
    elif m == TransmissionMode.DIGITAL_TO_ANALOG:
        result = simulate_d2a(parse_bits(input_data), algorithm, params)
    elif m == TransmissionMode.ANALOG_TO_DIGITAL:
        result = simulate_a2d(parse_samples(input_data), algorithm, params)
    else:
        result = simulate_a2a(parse_samples(input_data), algorithm, params)

    result.meta["requested_algorithm"] = algorithm
    return result


def is_successful(result: Optional[TransmissionResult], tol: float = 1e-3) -> bool:
    """
    Whether the receiver recovered the input: bit strings must be equal,
    sample sequences equal in length and element-wise within `tol`.
    """
    if result is None:
        return False

    if result.original is not None:
        return result.decoded is not None and result.decoded == result.original

    original = result.original_analog
    decoded = result.decoded_analog
    if original is None or decoded is None:
        return False
    original = np.asarray(original, dtype=float)
    decoded = np.asarray(decoded, dtype=float)
    if original.shape != decoded.shape:
        return False
    return bool(np.all(np.abs(original - decoded) <= tol))
