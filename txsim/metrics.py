from __future__ import annotations

from typing import Dict

from utils import Metrics

# Per-family multipliers applied to the input length (bits or samples)
BIT_RATE_PER_SYMBOL: Dict[str, int] = {
    "digital-to-digital": 1000,
    "digital-to-analog": 1000,
    "analog-to-digital": 8000,
}

BANDWIDTH_PER_SYMBOL: Dict[str, int] = {
    "digital-to-digital": 500,
    "digital-to-analog": 2000,
    "analog-to-digital": 4000,
    "analog-to-analog": 1000,
}

ANALOG_BIT_RATE = "N/A (Analog)"
ANALOG_LEVELS = "Continuous"


def _bps(n: int, family: str) -> str:
    return f"{n * BIT_RATE_PER_SYMBOL[family]} bps"


def _hz(n: int, family: str) -> str:
    return f"{n * BANDWIDTH_PER_SYMBOL[family]} Hz"


def line_code_metrics(n_bits: int, scheme: str) -> Metrics:
    family = "digital-to-digital"
    levels = "3" if scheme == "ami" else "2"
    return Metrics(bit_rate=_bps(n_bits, family), signal_levels=levels, bandwidth=_hz(n_bits, family))


def keying_metrics(n_bits: int, scheme: str) -> Metrics:
    family = "digital-to-analog"
    if scheme == "qam":
        levels = "16"
    elif scheme == "psk":
        levels = "4"
    else:
        levels = "2"
    return Metrics(bit_rate=_bps(n_bits, family), signal_levels=levels, bandwidth=_hz(n_bits, family))


def sampling_metrics(n_samples: int, technique: str, pcm_levels: int = 256) -> Metrics:
    family = "analog-to-digital"
    # The empty-input record always reports the PCM level count
    levels = str(int(pcm_levels)) if (technique == "pcm" or n_samples == 0) else "2"
    return Metrics(bit_rate=_bps(n_samples, family), signal_levels=levels, bandwidth=_hz(n_samples, family))


def analog_metrics(n_samples: int, scheme: str) -> Metrics:
    return Metrics(
        bit_rate=ANALOG_BIT_RATE,
        signal_levels=ANALOG_LEVELS,
        bandwidth=_hz(n_samples, "analog-to-analog"),
    )
