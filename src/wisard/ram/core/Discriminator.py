"""
Discriminator - one class's array of RAM neurons.

A discriminator splits its (virtual) binary input into n_neurons slices of
bits_per_neuron bits each, routed through a RetinaMapping. Each slice is
read as an integer address into that neuron's SparseMemory.

Two ways to address the neurons:

1. Direct tuple mode: the caller hands over one pre-quantized address per
   neuron. Addresses are used as-is, no remapping.

2. Thermometer mode (the *_histo methods): the caller hands over a real
   feature vector plus per-attribute offsets/ranges and a resolution z.
   Attribute a is quantized to level v = floor((a - offset) * z / range)
   and stands for z bits, bit p set iff p < v. The z * attr_count bit
   vector is never built: each neuron bit looks up its pixel through the
   retina and compares the pixel's thermometer position with the level of
   the attribute it belongs to.

	pix   = forward[(k * bits_per_neuron + i) mod (z * attr_count)]
	attr  = pix // z
	bit   = (pix mod z) < v[attr]
	address bit (bits_per_neuron - 1 - i) = bit      (MSB first)

Usage:
	d = Discriminator(bits_per_neuron=2, input_size=8, mapping=MappingMode.RANDOM, seed=42)
	d.train([0, 1, 1, 0])
	d.classify([0, 1, 1, 0])   # -> 1.0

	dd = Discriminator(bits_per_neuron=4, input_size=3 * 3)
	dd.train_histo([2, 1, 3], ranges=[4, 4, 4], offsets=[0, 0, 0], resolution=3)
	dd.classify_histo([2, 1, 3], ranges=[4, 4, 4], offsets=[0, 0, 0], resolution=3)   # -> 1.0
"""

from typing import Hashable, Optional, Sequence, Union

from torch import arange
from torch import as_tensor
from torch import float64
from torch import int64
from torch import long
from torch import Tensor
from torch import zeros

from wisard.ram.core import MappingMode
from wisard.ram.core.config import check_bits_per_neuron
from wisard.ram.core.errors import InputError
from wisard.ram.core.RetinaMapping import RetinaMapping
from wisard.ram.core.SparseMemory import Cell, SparseMemory


AddressTuple = Union[Sequence[int], Tensor]
FeatureVector = Union[Sequence[float], Tensor]


class Discriminator:
	"""
	Array of sparse RAM neurons for one class label.

	Attributes:
		bits_per_neuron: Address bits per neuron
		address_space: Locations per neuron (2 ** bits_per_neuron)
		input_size: Length of the (virtual) binary input
		n_neurons: ceil(input_size / bits_per_neuron)
		neurons: One SparseMemory per neuron
		mapping: RetinaMapping over [0, input_size)
		max_keys: Per-neuron most written (address, counter), counter -1 until trained
		responses: [n_neurons] float64 raw reads from the last response call
		train_count: Number of samples trained
		label: Class label this discriminator stands for
	"""

	def __init__(
		self,
		bits_per_neuron: int,
		input_size: int,
		mapping: Union[MappingMode, int, str] = MappingMode.RANDOM,
		seed: int = -1,
		label: Optional[Hashable] = None,
	):
		"""
		Args:
			bits_per_neuron: Address bits per neuron, in [1, 32]
			input_size: Binary input length (z * attr_count in thermometer mode)
			mapping: Retina mode, LINEAR or RANDOM
			seed: Retina seed (-1 = non-deterministic)
			label: Class label, informative only

		Raises:
			ConfigurationError: bits_per_neuron out of range or unknown mapping mode
		"""
		self.bits_per_neuron = check_bits_per_neuron(bits_per_neuron)
		self.address_space = 1 << self.bits_per_neuron
		self.input_size = int(input_size)
		self.n_neurons = -(-self.input_size // self.bits_per_neuron)
		self.label = label
		self.train_count = 0

		self.neurons = [SparseMemory() for _ in range(self.n_neurons)]
		self.max_keys = [Cell(0, -1.0) for _ in range(self.n_neurons)]
		self.responses = zeros(self.n_neurons, dtype=float64)

		self.mapping = RetinaMapping.build(self.input_size, mapping, seed)

		# [n_neurons, bits_per_neuron] input position feeding each address bit
		slots = arange(self.n_neurons * self.bits_per_neuron, dtype=long)
		if self.input_size > 0:
			self._pixels = self.mapping.forward[slots % self.input_size].view(
				self.n_neurons, self.bits_per_neuron
			)
		else:
			self._pixels = slots.view(self.n_neurons, self.bits_per_neuron)

		# Shift for local bit i: MSB first
		self._shifts = arange(self.bits_per_neuron - 1, -1, -1, dtype=int64)

		self.mental_image_max = 0.0

	def __repr__(self):
		return (
			f"Discriminator("
			f"label={self.label!r}, "
			f"bits={self.bits_per_neuron}, "
			f"neurons={self.n_neurons}, "
			f"input_size={self.input_size}, "
			f"trained={self.train_count})"
		)

	def __str__(self):
		lines = [
			f"class: {self.label} bits: {self.bits_per_neuron}, "
			f"nram: {self.n_neurons}, loc: {self.address_space}",
			str(self.mapping),
		]
		for neuron in self.neurons:
			lines.append(str(neuron))
		return "\n".join(lines)

	# =========================================================================
	# Addressing
	# =========================================================================

	def check_tuple(self, addresses: AddressTuple) -> bool:
		"""True if addresses has one in-range entry per neuron."""
		try:
			values = as_tensor(addresses).flatten()
		except (TypeError, ValueError, RuntimeError):
			return False
		if values.shape[0] != self.n_neurons:
			return False
		if self.n_neurons == 0:
			return True
		if values.is_floating_point() or values.is_complex():
			return False
		return bool(values.min() >= 0) and bool(values.max() < self.address_space)

	def _tuple_addresses(self, addresses: AddressTuple) -> list[int]:
		if not self.check_tuple(addresses):
			raise InputError(
				f"Wrong tuple size or value: expected {self.n_neurons} addresses "
				f"in [0, {self.address_space})"
			)
		return as_tensor(addresses).flatten().tolist()

	def encode(
		self,
		data: FeatureVector,
		ranges: FeatureVector,
		offsets: FeatureVector,
		resolution: int,
	) -> Tensor:
		"""
		Per-neuron addresses of a real feature vector under thermometer encoding.

		Args:
			data: [attr_count] feature values
			ranges: [attr_count] value intervals
			offsets: [attr_count] minimum values
			resolution: Thermometer levels per attribute (z)

		Returns:
			[n_neurons] int64 addresses in [0, address_space)

		Raises:
			InputError: lengths disagree or z * attr_count != input_size
		"""
		data = as_tensor(data, dtype=float64).flatten()
		ranges = as_tensor(ranges, dtype=float64).flatten()
		offsets = as_tensor(offsets, dtype=float64).flatten()
		resolution = int(resolution)

		attr_count = data.shape[0]
		if ranges.shape[0] != attr_count or offsets.shape[0] != attr_count:
			raise InputError(
				f"Got {attr_count} values, {ranges.shape[0]} ranges and {offsets.shape[0]} offsets"
			)
		if resolution < 1 or resolution * attr_count != self.input_size:
			raise InputError(
				f"resolution * attr_count = {resolution} * {attr_count} "
				f"does not match input size {self.input_size}"
			)

		levels = ((data - offsets) * resolution / ranges).floor()
		pixels = self._pixels
		bits = (pixels % resolution).to(float64) < levels[pixels // resolution]
		return (bits.to(int64) << self._shifts).sum(dim=-1)

	# =========================================================================
	# Training
	# =========================================================================

	def _write(self, addresses: list[int]) -> None:
		self.train_count += 1
		for neuron, address in enumerate(addresses):
			count = self.neurons[neuron].write(address)
			best = self.max_keys[neuron]
			if count > best.counter:
				best.address = address
				best.counter = count

	def train(self, addresses: AddressTuple) -> None:
		"""
		Train on one tuple of per-neuron addresses.

		Raises:
			InputError: wrong length or an address outside [0, address_space)
		"""
		self._write(self._tuple_addresses(addresses))

	def train_histo(
		self,
		data: FeatureVector,
		ranges: FeatureVector,
		offsets: FeatureVector,
		resolution: int,
	) -> None:
		"""Train on one real feature vector (thermometer encoded)."""
		self._write(self.encode(data, ranges, offsets, resolution).tolist())

	# =========================================================================
	# Classification
	# =========================================================================

	def _read(self, addresses: list[int]) -> list[float]:
		return [neuron.read(address) for neuron, address in zip(self.neurons, addresses)]

	def _score(self, addresses: list[int]) -> float:
		if self.n_neurons == 0:
			return 0.0
		hits = sum(1 for value in self._read(addresses) if value > 0)
		return hits / self.n_neurons

	def classify(self, addresses: AddressTuple) -> float:
		"""Fraction of neurons that have seen their address, in [0, 1]."""
		return self._score(self._tuple_addresses(addresses))

	def classify_histo(
		self,
		data: FeatureVector,
		ranges: FeatureVector,
		offsets: FeatureVector,
		resolution: int,
	) -> float:
		return self._score(self.encode(data, ranges, offsets, resolution).tolist())

	# =========================================================================
	# Raw responses (bleaching input)
	# =========================================================================

	def _store_responses(self, addresses: list[int]) -> Tensor:
		self.responses = as_tensor(self._read(addresses), dtype=float64).reshape(self.n_neurons)
		return self.responses

	def response(self, addresses: AddressTuple) -> Tensor:
		"""Store and return the raw counters read by each neuron."""
		return self._store_responses(self._tuple_addresses(addresses))

	def response_histo(
		self,
		data: FeatureVector,
		ranges: FeatureVector,
		offsets: FeatureVector,
		resolution: int,
	) -> Tensor:
		return self._store_responses(self.encode(data, ranges, offsets, resolution).tolist())

	# =========================================================================
	# Mental image
	# =========================================================================

	def mental_image(self) -> Tensor:
		"""
		Rebuild the importance map over the original input positions.

		Every stored cell adds its counter to the input position behind each
		set bit of its address; mental_image_max records the largest entry.

		Returns:
			[input_size] float64 tensor
		"""
		image = zeros(self.input_size, dtype=float64)
		for neuron, memory in enumerate(self.neurons):
			if len(memory) == 0:
				continue
			cells = list(memory)
			addresses = as_tensor([c.address for c in cells], dtype=int64)
			counters = as_tensor([c.counter for c in cells], dtype=float64)
			# [cells, bits] set bits of every stored address
			bits = (addresses.unsqueeze(1) >> self._shifts) & 1
			contributions = (bits.to(float64) * counters.unsqueeze(1)).sum(dim=0)
			image.index_add_(0, self._pixels[neuron], contributions)

		self.mental_image_max = float(image.max()) if self.input_size > 0 else 0.0
		return image
