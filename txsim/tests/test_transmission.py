# test_transmission.py
#
# End-to-end tests for `process_transmission(mode, algorithm, input_data)`.
#
# What this test suite verifies
# -----------------------------
# 1) Dispatch: every mode reaches its codec; an unknown mode returns None
#    (and is logged); unknown algorithms degrade to pass-through.
# 2) Reference cases: empty PCM input, delta exact reconstruction, AMI
#    alternation, digital modulation segment length.
# 3) Metrics strings per family.
# 4) The renderer record (`to_dict`) and the round-trip success check.
# 5) The engine never raises for arbitrary text / tags, and concurrent
#    calls give the same results as serial ones.
#
# How to run
# ----------
#   pytest -q txsim/tests/test_transmission.py

from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from transmission import ALGORITHMS, TransmissionMode, is_successful, list_algorithms, process_transmission
from utils import EngineParams, Metrics, TransmissionResult

MODES = [m.value for m in TransmissionMode]

DIGITAL_INPUT = "1011001110"
ANALOG_INPUT = "0.5, 0.8, 0.3, -0.2, 1.1"


def input_for(mode: str) -> str:
    return DIGITAL_INPUT if mode.startswith("digital") else ANALOG_INPUT


def all_cases():
    for mode, algos in ALGORITHMS.items():
        for tag, _label in algos:
            yield mode.value, tag


# ============================
# 1) Dispatch
# ============================

@pytest.mark.parametrize("mode,algorithm", list(all_cases()))
def test_every_listed_algorithm_dispatches(mode, algorithm):
    res = process_transmission(mode, algorithm, input_for(mode))
    assert res is not None
    assert res.mode == mode
    assert res.algorithm == algorithm
    assert res.meta["requested_algorithm"] == algorithm


def test_unknown_mode_returns_none(caplog):
    with caplog.at_level(logging.WARNING, logger="transmission"):
        assert process_transmission("bogus", "nrz-l", "1010") is None
    assert "unknown mode" in caplog.text


@pytest.mark.parametrize("mode", [None, "", "Digital-To-Digital", 3, "analog"])
def test_other_invalid_modes_return_none(mode):
    assert process_transmission(mode, "nrz-l", "1010") is None


def test_enum_mode_is_accepted():
    res = process_transmission(TransmissionMode.DIGITAL_TO_DIGITAL, "nrz-l", "1010")
    assert res is not None and res.decoded == "1010"


@pytest.mark.parametrize("mode", MODES)
def test_unknown_algorithm_never_returns_none(mode):
    res = process_transmission(mode, "no-such-algorithm", input_for(mode))
    assert res is not None
    assert res.algorithm == "unknown"
    assert is_successful(res)


def test_unknown_digital_algorithm_is_identity():
    res = process_transmission("digital-to-digital", "4b5b", "0110")
    assert res.encoded.tolist() == [0, 1, 1, 0]
    assert res.decoded == "0110"


def test_digital_input_is_filtered():
    res = process_transmission("digital-to-digital", "nrz-l", "10a1 ")
    assert res.original == "101"
    assert res.decoded == "101"
    assert res.metrics.bit_rate == "3000 bps"


# ============================
# 2) Reference cases
# ============================

def test_empty_analog_input_pcm():
    res = process_transmission("analog-to-digital", "pcm", "")
    assert res.original_analog.size == 0
    assert res.encoded.size == 0
    assert res.decoded_analog.size == 0
    assert res.metrics.signal_levels == "256"
    assert res.metrics.bit_rate == "0 bps"
    assert res.metrics.bandwidth == "0 Hz"


def test_unparseable_analog_input_is_empty():
    res = process_transmission("analog-to-analog", "am", "no numbers here")
    assert res.encoded.size == 0
    assert res.demodulated_signal.size == 0


def test_delta_exact_reconstruction():
    res = process_transmission("analog-to-digital", "delta", "1.0, 1.5, 1.2")
    assert res.encoded.tolist() == [1, 0]
    assert res.decoded_analog.tolist() == [1.0, 1.5, 1.2]


@pytest.mark.parametrize("algorithm", ["pcm", "delta"])
def test_samples_near_float_limits_stay_finite(algorithm):
    res = process_transmission("analog-to-digital", algorithm, "1e308, -1e308, 0")
    assert np.all(np.isfinite(res.encoded))
    assert np.all(np.isfinite(res.decoded_analog))
    assert res.decoded_analog[:2].tolist() == [1e308, -1e308]


def test_ami_alternation():
    assert process_transmission("digital-to-digital", "ami", "111").encoded.tolist() == [1, -1, 1]
    assert process_transmission("digital-to-digital", "ami", "101").encoded.tolist() == [1, 0, 1]


@pytest.mark.parametrize("algorithm", ["ask", "fsk", "psk", "qam"])
@pytest.mark.parametrize("bitstr", ["", "1", "0", "1100101", "1" * 33])
def test_digital_modulation_segment_length(algorithm, bitstr):
    res = process_transmission("digital-to-analog", algorithm, bitstr)
    assert len(res.encoded) == len(bitstr) * 10
    assert res.decoded == bitstr


@pytest.mark.parametrize("algorithm", ["nrz-l", "manchester", "ami", "nrz-i", "diff-manchester"])
def test_line_code_roundtrip_random(algorithm):
    rng = random.Random(1234)
    for _ in range(25):
        bitstr = "".join(rng.choice("01") for _ in range(rng.randint(0, 40)))
        res = process_transmission("digital-to-digital", algorithm, bitstr)
        assert res.decoded == bitstr


def test_params_flow_through_dispatcher():
    params = EngineParams(samples_per_symbol=16, analog_samples=8)
    assert len(process_transmission("digital-to-analog", "psk", "101", params).encoded) == 48
    assert len(process_transmission("analog-to-analog", "pm", "1 2", params).encoded) == 16


# ============================
# 3) Metrics
# ============================

@pytest.mark.parametrize("mode,algorithm,data,expected", [
    ("digital-to-digital", "nrz-l", "1010", ("4000 bps", "2", "2000 Hz")),
    ("digital-to-digital", "ami", "1010", ("4000 bps", "3", "2000 Hz")),
    ("digital-to-analog", "ask", "1010", ("4000 bps", "2", "8000 Hz")),
    ("digital-to-analog", "psk", "1010", ("4000 bps", "4", "8000 Hz")),
    ("digital-to-analog", "qam", "1010", ("4000 bps", "16", "8000 Hz")),
    ("analog-to-digital", "pcm", "0.5, 0.8, 0.3", ("24000 bps", "256", "12000 Hz")),
    ("analog-to-digital", "delta", "0.5, 0.8, 0.3", ("24000 bps", "2", "12000 Hz")),
    ("analog-to-analog", "am", "0.5, 0.8, 0.3", ("N/A (Analog)", "Continuous", "3000 Hz")),
    ("analog-to-analog", "pm", "", ("N/A (Analog)", "Continuous", "0 Hz")),
])
def test_metrics_strings(mode, algorithm, data, expected):
    m = process_transmission(mode, algorithm, data).metrics
    assert (m.bit_rate, m.signal_levels, m.bandwidth) == expected


# ============================
# 4) Renderer record and success check
# ============================

def test_to_dict_shapes():
    d = process_transmission("digital-to-digital", "manchester", "10").to_dict()
    assert d["original"] == "10" and d["decoded"] == "10"
    assert d["encoded"] == [0.0, 1.0, 1.0, 0.0]
    assert set(d["metrics"]) == {"bitRate", "signalLevels", "bandwidth"}

    d = process_transmission("analog-to-digital", "delta", "1 2").to_dict()
    assert d["originalAnalog"] == [1.0, 2.0]
    assert d["decodedAnalog"] == [1.0, 2.0]
    assert "demodulatedSignal" not in d

    d = process_transmission("analog-to-analog", "fm", "1 2").to_dict()
    assert len(d["demodulatedSignal"]) == 2
    assert len(d["encoded"]) == 40


@pytest.mark.parametrize("mode,algorithm", [c for c in all_cases() if c[1] != "pcm"])
def test_listed_algorithms_roundtrip_successfully(mode, algorithm):
    res = process_transmission(mode, algorithm, input_for(mode))
    assert is_successful(res)


def test_pcm_success_depends_on_quantization_step():
    # range 1.3 over 255 steps: worst-case error exceeds the default 1e-3
    res = process_transmission("analog-to-digital", "pcm", ANALOG_INPUT)
    assert not is_successful(res)
    assert is_successful(res, tol=1.3 / 255)
    assert not res.meta["match"]


def test_is_successful_rejects_mismatch():
    assert not is_successful(None)
    bad = TransmissionResult(
        mode="analog-to-digital",
        algorithm="pcm",
        encoded=np.array([0.0, 255.0]),
        metrics=Metrics("16000 bps", "256", "8000 Hz"),
        original_analog=np.array([0.0, 1.0]),
        decoded_analog=np.array([0.0, 1.01]),
    )
    assert not is_successful(bad)
    assert is_successful(bad, tol=0.02)

    short = TransmissionResult(
        mode="analog-to-digital",
        algorithm="pcm",
        encoded=np.array([0.0]),
        metrics=Metrics("8000 bps", "256", "4000 Hz"),
        original_analog=np.array([0.0, 1.0]),
        decoded_analog=np.array([0.0]),
    )
    assert not is_successful(short)


def test_list_algorithms():
    tags = [tag for tag, _ in list_algorithms("digital-to-digital")]
    assert tags == ["nrz-l", "nrz-i", "manchester", "diff-manchester", "ami"]
    assert list_algorithms("bogus") == []


# ============================
# 5) Robustness and isolation
# ============================

def test_never_raises_for_arbitrary_input():
    rng = random.Random(99)
    alphabet = "01 .-e+,;\"'“”«»abcXYZ9\n\t"
    tags = [tag for algos in ALGORITHMS.values() for tag, _ in algos] + ["", "??", "PCM", "nrz_i"]
    for _ in range(300):
        text = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 30)))
        mode = rng.choice(MODES)
        res = process_transmission(mode, rng.choice(tags), text)
        assert res is not None
        assert np.all(np.isfinite(res.encoded))


def test_concurrent_calls_match_serial():
    rng = random.Random(7)
    jobs = []
    for _ in range(200):
        mode, algorithm = rng.choice(list(all_cases()))
        if mode.startswith("digital"):
            data = "".join(rng.choice("01") for _ in range(rng.randint(1, 24)))
        else:
            data = ", ".join(f"{rng.uniform(-3, 3):.3f}" for _ in range(rng.randint(1, 12)))
        jobs.append((mode, algorithm, data))

    serial = [process_transmission(*job).to_dict() for job in jobs]
    with ThreadPoolExecutor(max_workers=8) as pool:
        parallel = [r.to_dict() for r in pool.map(lambda job: process_transmission(*job), jobs)]

    assert parallel == serial
