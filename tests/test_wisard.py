#!/usr/bin/env python3
"""
Unit tests for the WiSARD ensemble, its configuration and logging.

Tests:
- Configuration validation
- Tuple-mode and thermometer-mode training/classification
- Bleached decisions and their failure mode
- Error propagation for unknown labels and malformed samples
- Logger integration

Run with:
    python tests/test_wisard.py
"""

import os
import sys
import tempfile
from dataclasses import FrozenInstanceError
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from torch import float64

import wisard
from wisard import Logger, create_logger
from wisard.ram.core import (
    AlgorithmFault,
    AttributeScale,
    ConfigurationError,
    InputError,
    MappingMode,
    WiSARDConfig,
    WiSARDError,
)
from wisard.ram.core.models import WiSARD


def expect_error(error_type, fn, *args, **kwargs):
    try:
        fn(*args, **kwargs)
    except error_type as e:
        return e
    raise AssertionError(f"{fn.__name__}{args} should raise {error_type.__name__}")


# =============================================================================
# Configuration
# =============================================================================

def test_config_defaults():
    config = WiSARDConfig()
    assert config.bits_per_neuron == 8
    assert config.resolution == 256
    assert config.mapping == MappingMode.RANDOM
    assert config.seed == -1
    assert config.bleaching is False
    assert config.bleach_step == 1.0
    assert config.bleach_confidence == 0.01


def test_config_rejects_invalid_values():
    invalid = [
        dict(bits_per_neuron=0),
        dict(bits_per_neuron=33),
        dict(bits_per_neuron=2.5),
        dict(resolution=0),
        dict(resolution=8193),
        dict(resolution=2.5),
        dict(seed=1.5),
        dict(bleach_step=-1.0),
        dict(mapping="diagonal"),
        dict(seed=-2),
        dict(bleach_step=0.0),
        dict(bleach_confidence=0.0),
        dict(bleach_confidence=1.0),
    ]
    for kwargs in invalid:
        error = expect_error(ConfigurationError, WiSARDConfig, **kwargs)
        assert isinstance(error, ValueError)
        assert isinstance(error, WiSARDError)


def test_config_is_frozen():
    config = WiSARDConfig(bits_per_neuron=4.0, resolution=16)
    assert config.bits_per_neuron == 4 and isinstance(config.bits_per_neuron, int)
    assert config.resolution == 16
    expect_error(FrozenInstanceError, setattr, config, "resolution", 8)
    expect_error(FrozenInstanceError, setattr, config, "bleaching", True)
    assert config.resolution == 16


def test_config_resolves_mapping_names():
    assert WiSARDConfig(mapping="linear").mapping == MappingMode.LINEAR
    assert WiSARDConfig(mapping=1).mapping == MappingMode.RANDOM


def test_attribute_scale():
    scale = AttributeScale.from_pairs([(0.0, 4.0), (1.0, 2.0)])
    assert scale.attr_count == 2
    assert scale.offsets.tolist() == [0.0, 1.0]
    assert scale.ranges.tolist() == [4.0, 2.0]
    assert scale.ranges.dtype == float64
    expect_error(ConfigurationError, AttributeScale, [0.0, 1.0], [4.0])


# =============================================================================
# Construction
# =============================================================================

def test_construction_errors():
    expect_error(ConfigurationError, WiSARD, [], 8)
    expect_error(ConfigurationError, WiSARD, ["a", "a"], 8)
    expect_error(ConfigurationError, WiSARD, ["a", "b"])
    scale = AttributeScale([0.0, 0.0], [1.0, 1.0])
    config = WiSARDConfig(resolution=4)
    expect_error(ConfigurationError, WiSARD, ["a", "b"], 9, config, scale)
    assert WiSARD(["a", "b"], 8, config, scale).input_size == 8


def test_discriminators_share_structure():
    model = WiSARD(["x", "y", "z"], 20, WiSARDConfig(bits_per_neuron=3, seed=9))
    assert model.labels == ["x", "y", "z"]
    assert len(model) == 3
    assert model.n_neurons == 7
    for label in model:
        d = model[label]
        assert d.label == label
        assert d.n_neurons == 7
        assert d.responses.shape == (7,)
        assert d.mapping.forward.tolist() == model["x"].mapping.forward.tolist()


# =============================================================================
# Tuple mode
# =============================================================================

def test_tuple_mode_scores():
    model = WiSARD(["a", "b"], 8, WiSARDConfig(bits_per_neuron=2, seed=42))
    model.train("a", [0, 1, 1, 0])
    model.train("b", [3, 2, 1, 0])

    scores = model.classify([0, 1, 1, 0])
    assert scores.dtype == float64
    assert scores.tolist() == [1.0, 0.5]
    assert model.predict([0, 1, 1, 0]) == "a"
    assert model.distribution([3, 2, 1, 0]) == {"a": 0.5, "b": 1.0}
    assert model["a"].train_count == 1
    assert model["b"].train_count == 1


def test_predict_defaults_to_first_label_when_nothing_matches():
    model = WiSARD(["a", "b"], 4, WiSARDConfig(bits_per_neuron=2, mapping="linear"))
    model.train("b", [1, 1])
    assert model.predict([2, 2]) == "a"
    assert model.predict([1, 1]) == "b"


def test_unknown_label_and_bad_tuple_raise_input_error():
    model = WiSARD(["a", "b"], 8, WiSARDConfig(bits_per_neuron=2, seed=1))
    expect_error(InputError, model.train, "c", [0, 0, 0, 0])
    expect_error(InputError, model.train, "a", [0, 0, 0])
    expect_error(InputError, model.train, "a", [0, 0, 0, 4])
    expect_error(InputError, model.classify, [0, 0])
    expect_error(InputError, model.discriminator, ["unhashable"])
    assert model["a"].train_count == 0
    assert all(len(n) == 0 for n in model["a"].neurons)


def test_responses_are_stacked_raw_counters():
    model = WiSARD(["a", "b"], 8, WiSARDConfig(bits_per_neuron=2, mapping="linear"))
    model.train("a", [0, 1, 1, 0])
    model.train("a", [0, 1, 1, 0])
    model.train("b", [0, 1, 2, 3])

    responses = model.responses([0, 1, 1, 0])
    assert responses.shape == (2, 4)
    assert responses.tolist() == [[2.0, 2.0, 2.0, 2.0], [1.0, 1.0, 0.0, 0.0]]
    assert model["b"].responses.tolist() == [1.0, 1.0, 0.0, 0.0]


def test_train_batch():
    messages = []
    model = WiSARD(["a", "b"], 8, WiSARDConfig(bits_per_neuron=2, seed=4), logger=messages.append)
    samples = [[0, 1, 1, 0], [3, 3, 3, 3], [0, 1, 1, 0]]
    labels = ["a", "b", "a"]
    assert model.train_batch(samples, labels, log_every=1) == 3
    assert model["a"].train_count == 2
    assert model["b"].train_count == 1
    assert any("Trained 2/3" in m for m in messages)
    assert any("Training complete" in m for m in messages)
    expect_error(InputError, model.train_batch, samples, labels[:2])


# =============================================================================
# Thermometer mode
# =============================================================================

def make_thermometer_model(**config):
    config = WiSARDConfig(bits_per_neuron=4, resolution=8, mapping=MappingMode.LINEAR, **config)
    scale = AttributeScale(offsets=[0.0, 0.0], ranges=[10.0, 10.0])
    model = WiSARD.for_attributes(["low", "high"], scale, config)
    model.train_batch(
        [[1.0, 2.0], [2.0, 1.0], [9.0, 8.0], [8.0, 9.0]],
        ["low", "low", "high", "high"],
    )
    return model


def test_thermometer_mode_separates_classes():
    model = make_thermometer_model()
    assert model.input_size == 16
    assert model.n_neurons == 4
    assert model.classify([1.0, 2.0]).tolist() == [1.0, 0.0]
    assert model.classify([8.0, 8.0]).tolist() == [0.0, 1.0]
    assert model.predict([8.0, 8.0]) == "high"
    expect_error(InputError, model.classify, [1.0, 2.0, 3.0])


def test_thermometer_identical_sample_scores_one_with_random_retina():
    config = WiSARDConfig(bits_per_neuron=4, resolution=3, seed=-1)
    scale = AttributeScale([0, 0, 0], [4, 4, 4])
    model = WiSARD.for_attributes(["hello", "other"], scale, config)
    model.train("hello", [2, 1, 3])
    assert model.classify([2, 1, 3])[0].item() == 1.0


def test_thermometer_bleaching():
    model = make_thermometer_model(bleaching=True)
    model.train("low", [1.0, 2.0])
    result = model.bleach([1.0, 2.0])
    assert result.distribution.tolist() == [1.0, 0.0]
    assert model.classify([1.0, 2.0]).tolist() == [1.0, 0.0]


# =============================================================================
# Bleaching through the ensemble
# =============================================================================

def test_bleaching_breaks_tie_on_counts():
    config = WiSARDConfig(bits_per_neuron=2, mapping="linear", bleaching=True)
    model = WiSARD(["a", "b"], 8, config)
    model.train("a", [0, 1, 1, 0])
    model.train("a", [0, 1, 1, 0])
    model.train("b", [0, 1, 1, 0])

    # plain scores tie, bleaching prefers the class that saw it more often
    assert model.scores([0, 1, 1, 0]).tolist() == [1.0, 1.0]
    assert model.classify([0, 1, 1, 0]).tolist() == [1.0, 0.0]
    assert model.predict([0, 1, 1, 0]) == "a"


def test_bleaching_exact_tie_falls_back_to_even_split():
    config = WiSARDConfig(bits_per_neuron=2, mapping="linear", bleaching=True)
    model = WiSARD(["a", "b"], 8, config)
    model.train("a", [0, 1, 1, 0])
    model.train("b", [0, 1, 1, 0])
    assert model.classify([0, 1, 1, 0]).tolist() == [0.5, 0.5]
    assert model.predict([0, 1, 1, 0]) == "a"


def test_single_class_bleaching_raises_algorithm_fault():
    config = WiSARDConfig(bits_per_neuron=2, mapping="linear", bleaching=True)
    model = WiSARD(["only"], 4, config)
    model.train("only", [1, 2])
    model.train("only", [1, 2])
    error = expect_error(AlgorithmFault, model.classify, [1, 2])
    assert isinstance(error, RuntimeError)

    plain = WiSARD(["only"], 4, WiSARDConfig(bits_per_neuron=2, mapping="linear"))
    plain.train("only", [1, 2])
    assert plain.classify([1, 2]).tolist() == [1.0]


# =============================================================================
# Diagnostics and logging
# =============================================================================

def test_mental_images_and_max_keys():
    model = WiSARD(["a", "b"], 4, WiSARDConfig(bits_per_neuron=2, mapping="linear"))
    model.train("a", [3, 0])
    images = model.mental_images()
    assert set(images) == {"a", "b"}
    assert images["a"].tolist() == [1.0, 1.0, 0.0, 0.0]
    assert images["b"].tolist() == [0.0, 0.0, 0.0, 0.0]
    assert model.max_keys()["a"] == [(3, 1.0), (0, 1.0)]
    assert model.max_keys()["b"] == [(0, -1.0), (0, -1.0)]


def test_construction_is_logged():
    messages = []
    model = WiSARD(["a", "b"], 8, WiSARDConfig(bits_per_neuron=2, seed=0), logger=messages.append)
    assert any("WiSARD: 2 classes" in m for m in messages)
    assert "WiSARD(classes=2" in repr(model)
    assert "Neurons per class: 4" in str(model)


def test_logger_writes_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        logger = Logger("unit", log_dir=tmpdir, console=False)
        model = WiSARD(["a", "b"], 8, WiSARDConfig(bits_per_neuron=2, seed=0), logger=logger)
        model.train("a", [0, 0, 0, 0])
        logger.header("Results")
        logger.close()

        assert os.path.exists(logger.log_file)
        with open(logger.log_file) as f:
            content = f.read()
        assert "WiSARD: 2 classes" in content
        assert "Results" in content


def test_logger_same_name_keeps_one_handler_per_output():
    with tempfile.TemporaryDirectory() as tmpdir:
        first = create_logger("same", log_dir=tmpdir, console=False)
        first("first run")
        second = create_logger("same", log_dir=tmpdir, console=False)
        second("second run")

        assert len(second._logger.handlers) == 1
        with open(second.log_file) as f:
            assert "second run" in f.read()
        with open(first.log_file) as f:
            assert "first run" in f.read()
        first.close()
        second.close()
        assert second._logger.handlers == []


def test_package_exports():
    for name in wisard.__all__:
        assert hasattr(wisard, name), name
    assert wisard.WiSARD is WiSARD
    assert wisard.WiSARDConfig is WiSARDConfig
    assert wisard.ConfigurationError is ConfigurationError

    model = wisard.WiSARD(["a", "b"], 4, wisard.WiSARDConfig(bits_per_neuron=2, seed=0))
    model.train("a", [1, 2])
    assert model.predict([1, 2]) == "a"


def run_all_tests():
    tests = [
        test_config_defaults,
        test_config_rejects_invalid_values,
        test_config_is_frozen,
        test_config_resolves_mapping_names,
        test_attribute_scale,
        test_construction_errors,
        test_discriminators_share_structure,
        test_tuple_mode_scores,
        test_predict_defaults_to_first_label_when_nothing_matches,
        test_unknown_label_and_bad_tuple_raise_input_error,
        test_responses_are_stacked_raw_counters,
        test_train_batch,
        test_thermometer_mode_separates_classes,
        test_thermometer_identical_sample_scores_one_with_random_retina,
        test_thermometer_bleaching,
        test_bleaching_breaks_tie_on_counts,
        test_bleaching_exact_tie_falls_back_to_even_split,
        test_single_class_bleaching_raises_algorithm_fault,
        test_mental_images_and_max_keys,
        test_construction_is_logged,
        test_logger_writes_file,
        test_logger_same_name_keeps_one_handler_per_output,
        test_package_exports,
    ]

    passed = 0
    failed = 0
    for test in tests:
        try:
            test()
            print(f"  [PASS] {test.__name__}")
            passed += 1
        except Exception as e:
            print(f"  [FAIL] {test.__name__}: {e}")
            import traceback
            traceback.print_exc()
            failed += 1

    print(f"\n  Results: {passed} passed, {failed} failed")
    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
