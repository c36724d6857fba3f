"""
WiSARD - RAM-discriminator ensemble classifier.

One Discriminator per class label. Training writes a sample into the
discriminator of its label only; classification asks every discriminator
how familiar the sample looks and returns one score per class.

Architecture:
	INPUT: address tuple [n_neurons]  or  feature vector [attr_count]
	         ↓  (thermometer encoding through each class's retina)
	[Discriminator per label] - n_neurons sparse RAM neurons each
	         ↓
	OUTPUT: [n_classes] scores (plain) or distribution (bleached)

Two input modes, fixed at construction:
	- With an AttributeScale: samples are real feature vectors, encoded
	  with resolution z into z * attr_count virtual input bits.
	- Without: samples are pre-quantized address tuples of length n_neurons.

Usage:
	from wisard.ram.core import AttributeScale, WiSARDConfig
	from wisard.ram.core.models import WiSARD

	config = WiSARDConfig(bits_per_neuron=4, resolution=16, seed=7, bleaching=True)
	scale = AttributeScale(offsets=[0.0, 0.0], ranges=[10.0, 5.0])
	model = WiSARD.for_attributes(["cat", "dog"], scale, config)

	model.train("cat", [2.5, 1.0])
	model.classify([2.4, 1.1])    # [n_classes] tensor
	model.predict([2.4, 1.1])     # "cat"
"""

from typing import Callable, Hashable, Iterator, Optional, Sequence, Union

from torch import float64
from torch import stack
from torch import Tensor
from torch import tensor

from wisard.ram.core.config import AttributeScale, WiSARDConfig
from wisard.ram.core.Discriminator import Discriminator
from wisard.ram.core.errors import ConfigurationError, InputError
from wisard.ram.strategies.bleaching import BleachResult, bleach


Sample = Union[Sequence[float], Sequence[int], Tensor]


class WiSARD:
	"""
	Ensemble of per-class Discriminators with optional bleaching.

	The set of labels, the retina of each discriminator and all sizes are
	fixed at construction; only neuron counters change afterwards.

	Attributes:
		config: WiSARDConfig shared by all discriminators
		scale: AttributeScale for thermometer mode, None for tuple mode
		input_size: Binary input length seen by each discriminator
		discriminators: label -> Discriminator (insertion ordered)
	"""

	def __init__(
		self,
		labels: Sequence[Hashable],
		input_size: Optional[int] = None,
		config: Optional[WiSARDConfig] = None,
		scale: Optional[AttributeScale] = None,
		logger: Optional[Callable[[str], None]] = None,
	):
		"""
		Args:
			labels: Closed set of class labels
			input_size: Binary input length (derived from scale when omitted)
			config: Ensemble configuration (defaults to WiSARDConfig())
			scale: Per-attribute offsets/ranges; enables thermometer mode
			logger: Optional logging callable

		Raises:
			ConfigurationError: no/duplicate labels, or input_size missing or
				inconsistent with resolution * attr_count
		"""
		self.config = config or WiSARDConfig()
		self.scale = scale
		self.log = logger or (lambda x: None)

		labels = list(labels)
		if not labels:
			raise ConfigurationError("At least one class label is required")
		if len(set(labels)) != len(labels):
			raise ConfigurationError(f"Duplicate class labels in {labels}")

		if scale is not None:
			expected = self.config.resolution * scale.attr_count
			if input_size is None:
				input_size = expected
			elif input_size != expected:
				raise ConfigurationError(
					f"input_size {input_size} != resolution * attr_count = {expected}"
				)
		if input_size is None:
			raise ConfigurationError("input_size is required without an AttributeScale")
		self.input_size = int(input_size)

		self.discriminators: dict[Hashable, Discriminator] = {
			label: Discriminator(
				bits_per_neuron=self.config.bits_per_neuron,
				input_size=self.input_size,
				mapping=self.config.mapping,
				seed=self.config.seed,
				label=label,
			)
			for label in labels
		}

		self.log(
			f"  WiSARD: {len(labels)} classes, input_size={self.input_size}, "
			f"bits={self.config.bits_per_neuron}, neurons={self.n_neurons}, "
			f"mapping={self.config.mapping.name}, "
			f"mode={'thermometer' if self.scale is not None else 'tuple'}"
		)

	@classmethod
	def for_attributes(
		cls,
		labels: Sequence[Hashable],
		scale: AttributeScale,
		config: Optional[WiSARDConfig] = None,
		logger: Optional[Callable[[str], None]] = None,
	) -> "WiSARD":
		"""Ensemble over real feature vectors with the given per-attribute scale."""
		return cls(labels, config=config, scale=scale, logger=logger)

	def __repr__(self) -> str:
		return (
			f"WiSARD("
			f"classes={len(self)}, "
			f"input_size={self.input_size}, "
			f"bits_per_neuron={self.config.bits_per_neuron}, "
			f"neurons={self.n_neurons}, "
			f"bleaching={self.config.bleaching})"
		)

	def __str__(self) -> str:
		mode = f"thermometer (z={self.config.resolution})" if self.scale is not None else "tuple"
		bleaching = (
			f"step={self.config.bleach_step:g}, confidence={self.config.bleach_confidence:g}"
			if self.config.bleaching else "off"
		)
		lines = [
			"=== WiSARD (RAM-discriminator ensemble) ===",
			f"  Classes: {len(self)}",
			f"  Input size: {self.input_size} bits",
			f"  Bits per neuron: {self.config.bits_per_neuron}",
			f"  Neurons per class: {self.n_neurons}",
			f"  Mapping: {self.config.mapping.name} (seed={self.config.seed})",
			f"  Mode: {mode}",
			f"  Bleaching: {bleaching}",
		]
		for label, d in self.discriminators.items():
			lines.append(f"  [{label}] trained={d.train_count}")
		return "\n".join(lines)

	def __len__(self) -> int:
		return len(self.discriminators)

	def __iter__(self) -> Iterator[Hashable]:
		return iter(self.discriminators)

	def __getitem__(self, label: Hashable) -> Discriminator:
		return self.discriminator(label)

	@property
	def labels(self) -> list[Hashable]:
		return list(self.discriminators)

	@property
	def n_neurons(self) -> int:
		return next(iter(self.discriminators.values())).n_neurons

	def discriminator(self, label: Hashable) -> Discriminator:
		"""The Discriminator of label; InputError for an unknown label."""
		try:
			return self.discriminators[label]
		except (KeyError, TypeError):
			raise InputError(f"Unknown class label: {label!r}") from None

	# =========================================================================
	# Training
	# =========================================================================

	def train(self, label: Hashable, sample: Sample) -> None:
		"""
		Write one sample into the discriminator of its label.

		Args:
			label: Class of the sample
			sample: Feature vector (thermometer mode) or address tuple

		Raises:
			InputError: unknown label or malformed sample (nothing is written)
		"""
		d = self.discriminator(label)
		if self.scale is not None:
			d.train_histo(sample, self.scale.ranges, self.scale.offsets, self.config.resolution)
		else:
			d.train(sample)

	def train_batch(
		self,
		samples: Sequence[Sample],
		labels: Sequence[Hashable],
		log_every: int = 0,
	) -> int:
		"""
		Train on (sample, label) pairs in order.

		Args:
			samples: Samples to train
			labels: Label of each sample
			log_every: Log progress every N samples (0 = only the summary)

		Returns:
			Number of samples trained
		"""
		if len(samples) != len(labels):
			raise InputError(f"Got {len(samples)} samples but {len(labels)} labels")

		total = len(samples)
		for i, (sample, label) in enumerate(zip(samples, labels), start=1):
			self.train(label, sample)
			if log_every and i % log_every == 0:
				self.log(f"  Trained {i:,}/{total:,} samples")

		per_class = ", ".join(f"{label}={d.train_count}" for label, d in self.discriminators.items())
		self.log(f"  Training complete: {total:,} samples ({per_class})")
		return total

	# =========================================================================
	# Classification
	# =========================================================================

	def scores(self, sample: Sample) -> Tensor:
		"""
		Plain per-class scores: fraction of neurons that recognise the sample.

		Returns:
			[n_classes] float64 tensor, each in [0, 1], not normalized
		"""
		if self.scale is not None:
			values = [
				d.classify_histo(sample, self.scale.ranges, self.scale.offsets, self.config.resolution)
				for d in self.discriminators.values()
			]
		else:
			values = [d.classify(sample) for d in self.discriminators.values()]
		return tensor(values, dtype=float64)

	def responses(self, sample: Sample) -> Tensor:
		"""
		Store and stack the raw per-neuron responses of every class.

		Returns:
			[n_classes, n_neurons] float64 tensor
		"""
		if self.scale is not None:
			rows = [
				d.response_histo(sample, self.scale.ranges, self.scale.offsets, self.config.resolution)
				for d in self.discriminators.values()
			]
		else:
			rows = [d.response(sample) for d in self.discriminators.values()]
		return stack(rows)

	def bleach(self, sample: Sample) -> BleachResult:
		"""
		Bleached decision for one sample.

		Raises:
			AlgorithmFault: the tie-break ran without a runner-up class
		"""
		return bleach(
			self.responses(sample),
			step=self.config.bleach_step,
			confidence_threshold=self.config.bleach_confidence,
			logger=self.log,
		)

	def classify(self, sample: Sample) -> Tensor:
		"""
		Per-class score vector, bleached when the config enables it.

		Returns:
			[n_classes] float64 tensor in label order
		"""
		if self.config.bleaching:
			return self.bleach(sample).distribution
		return self.scores(sample)

	def distribution(self, sample: Sample) -> dict[Hashable, float]:
		"""classify() keyed by label."""
		return dict(zip(self.discriminators, self.classify(sample).tolist()))

	def predict(self, sample: Sample) -> Hashable:
		"""
		Label with the highest score; the first label when every score is 0.
		"""
		scores = self.classify(sample)
		best = int(scores.argmax())
		if scores[best] > 0:
			return self.labels[best]
		return self.labels[0]

	# =========================================================================
	# Diagnostics
	# =========================================================================

	def mental_images(self) -> dict[Hashable, Tensor]:
		"""label -> [input_size] mental image of each discriminator."""
		return {label: d.mental_image() for label, d in self.discriminators.items()}

	def max_keys(self) -> dict[Hashable, list[tuple[int, float]]]:
		"""label -> per-neuron (most written address, its counter)."""
		return {
			label: [(c.address, c.counter) for c in d.max_keys]
			for label, d in self.discriminators.items()
		}
