"""
WiSARD Configuration Dataclasses

Typed configuration for the discriminator ensemble. Everything is checked
in __post_init__ so a bad value fails at construction, never mid-training.
Configs are frozen: an ensemble's structure is fixed once it is built.
"""

from dataclasses import dataclass, field
from typing import Sequence, Union

from torch import as_tensor
from torch import float64
from torch import Tensor

from wisard.ram.core import MappingMode
from wisard.ram.core.errors import ConfigurationError
from wisard.ram.core.RetinaMapping import resolve_mapping_mode


MAX_BITS_PER_NEURON = 32
MAX_RESOLUTION = 8192


def check_integer(name: str, value) -> int:
	"""Coerce an integral value to int; ConfigurationError for 2.5, "3", None, ..."""
	try:
		integral = int(value) == value
	except (TypeError, ValueError, OverflowError):
		integral = False
	if isinstance(value, bool) or not integral:
		raise ConfigurationError(f"{name} must be an integer, got {value!r}")
	return int(value)


def check_bits_per_neuron(bits_per_neuron: int) -> int:
	bits_per_neuron = check_integer("bits_per_neuron", bits_per_neuron)
	if not 1 <= bits_per_neuron <= MAX_BITS_PER_NEURON:
		raise ConfigurationError(
			f"Bit resolution ranges in [1..{MAX_BITS_PER_NEURON}], got {bits_per_neuron}"
		)
	return bits_per_neuron


def check_bleaching(step: float, confidence: float) -> tuple[float, float]:
	"""Validate bleaching step (> 0) and stopping confidence (in (0, 1))."""
	if not step > 0:
		raise ConfigurationError(f"Bleaching step must be positive, got {step}")
	if not 0 < confidence < 1:
		raise ConfigurationError(f"Bleaching confidence must be in (0, 1), got {confidence}")
	return float(step), float(confidence)


@dataclass(frozen=True)
class WiSARDConfig:
	"""
	Configuration for a WiSARD ensemble.

	Attributes:
		bits_per_neuron: Address bits per neuron, in [1, 32]
		resolution: Thermometer levels per attribute (z), in [1, 8192]
		mapping: Retina mode (LINEAR or RANDOM)
		seed: Retina seed, -1 for a non-deterministic shuffle
		bleaching: Resolve near-ties by bleaching the raw responses
		bleach_step: Threshold increment per bleaching round (> 0)
		bleach_confidence: Confidence that stops bleaching, in (0, 1)
	"""
	bits_per_neuron: int = 8
	resolution: int = 256
	mapping: Union[MappingMode, int, str] = MappingMode.RANDOM
	seed: int = -1
	bleaching: bool = False
	bleach_step: float = 1.0
	bleach_confidence: float = 0.01

	def __post_init__(self):
		resolution = check_integer("resolution", self.resolution)
		if not 1 <= resolution <= MAX_RESOLUTION:
			raise ConfigurationError(
				f"Scaling range must be in [1..{MAX_RESOLUTION}], got {resolution}"
			)
		seed = check_integer("seed", self.seed)
		if seed < -1:
			raise ConfigurationError(
				f"Mapping seed can be -1 (no seed) or a nonnegative seed, got {seed}"
			)
		step, confidence = check_bleaching(self.bleach_step, self.bleach_confidence)

		object.__setattr__(self, "bits_per_neuron", check_bits_per_neuron(self.bits_per_neuron))
		object.__setattr__(self, "resolution", resolution)
		object.__setattr__(self, "mapping", resolve_mapping_mode(self.mapping))
		object.__setattr__(self, "seed", seed)
		object.__setattr__(self, "bleaching", bool(self.bleaching))
		object.__setattr__(self, "bleach_step", step)
		object.__setattr__(self, "bleach_confidence", confidence)


@dataclass(frozen=True)
class AttributeScale:
	"""
	Per-attribute (offset, range) pairs used by thermometer encoding.

	Computed by the caller over its training corpus; a value equal to
	offset encodes to all zeros, offset + range to all ones.
	"""
	offsets: Tensor = field(repr=False)
	ranges: Tensor = field(repr=False)

	def __post_init__(self):
		offsets = as_tensor(self.offsets, dtype=float64).flatten()
		ranges = as_tensor(self.ranges, dtype=float64).flatten()
		if offsets.shape != ranges.shape:
			raise ConfigurationError(
				f"Got {offsets.shape[0]} offsets but {ranges.shape[0]} ranges"
			)
		object.__setattr__(self, "offsets", offsets)
		object.__setattr__(self, "ranges", ranges)

	def __repr__(self):
		return f"AttributeScale(attr_count={self.attr_count})"

	@property
	def attr_count(self) -> int:
		return int(self.offsets.shape[0])

	@classmethod
	def from_pairs(cls, pairs: Sequence[tuple[float, float]]) -> "AttributeScale":
		"""Build from a sequence of (offset, range) tuples."""
		pairs = list(pairs)
		return cls([p[0] for p in pairs], [p[1] for p in pairs])
