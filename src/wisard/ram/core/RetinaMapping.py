"""
Retina Mapping

Permutation of input positions assigning each position to a neuron
address-bit slot. Slot s of the flattened [n_neurons, bits_per_neuron]
layout reads input position forward[s]; inverse undoes it so that
inverse[forward[i]] == i.

LINEAR keeps the identity so neighbouring input bits land on the same
neuron. RANDOM spreads them with a Fisher-Yates shuffle driven by a
torch.Generator that is local to the mapping: the same non-negative seed
always yields the same retina, a negative seed draws fresh entropy.

Usage:
	mapping = RetinaMapping.build(size=8, mode=MappingMode.RANDOM, seed=42)
	mapping.forward   # LongTensor [8]
	mapping.inverse   # LongTensor [8]
"""

from typing import Union

from torch import arange
from torch import empty_like
from torch import float64
from torch import Generator
from torch import long
from torch import rand
from torch import Tensor
from torch import tensor

from wisard.ram.core import MappingMode
from wisard.ram.core.errors import ConfigurationError


def resolve_mapping_mode(mode: Union[MappingMode, int, str]) -> MappingMode:
	"""Accept the enum, its integer value or its (case-insensitive) name."""
	if isinstance(mode, MappingMode):
		return mode
	try:
		if isinstance(mode, str):
			return MappingMode[mode.upper()]
		return MappingMode(mode)
	except (KeyError, ValueError):
		raise ConfigurationError(f"Unknown mapping mode: {mode!r}") from None


class RetinaMapping:
	"""
	Immutable input permutation and its inverse.

	Attributes:
		forward: [size] LongTensor, slot -> input position
		inverse: [size] LongTensor, input position -> slot
		mode: MappingMode used to build it
		seed: Seed used for RANDOM mode (-1 = non-deterministic)
	"""

	def __init__(self, forward: Tensor, inverse: Tensor, mode: MappingMode, seed: int = -1):
		self.forward = forward
		self.inverse = inverse
		self.mode = mode
		self.seed = seed

	def __repr__(self):
		return f"RetinaMapping(size={len(self)}, mode={self.mode.name}, seed={self.seed})"

	def __str__(self):
		return (
			f"map: {self.forward.tolist()}\n"
			f"rmap: {self.inverse.tolist()}"
		)

	def __len__(self) -> int:
		return int(self.forward.shape[0])

	@classmethod
	def build(
		cls,
		size: int,
		mode: Union[MappingMode, int, str] = MappingMode.RANDOM,
		seed: int = -1,
	) -> "RetinaMapping":
		"""
		Build the retina for an input of `size` positions.

		Args:
			size: Number of input positions
			mode: LINEAR (identity) or RANDOM (shuffled)
			seed: >= 0 for a reproducible shuffle, < 0 for a random one

		Raises:
			ConfigurationError: mode is neither LINEAR nor RANDOM
		"""
		mode = resolve_mapping_mode(mode)
		size = int(size)

		if mode == MappingMode.LINEAR:
			forward = arange(size, dtype=long)
		else:
			forward = cls.shuffle(size, seed)

		return cls(forward, cls.invert(forward), mode, seed)

	@staticmethod
	def shuffle(size: int, seed: int = -1) -> Tensor:
		"""
		In-place Fisher-Yates shuffle of the identity permutation.

		For i from size-1 down to 1, j is drawn uniformly from [0, i] and
		positions i and j are swapped.
		"""
		generator = Generator()
		if seed >= 0:
			generator.manual_seed(seed)
		else:
			generator.seed()

		order = list(range(size))
		draws = rand(size, generator=generator, dtype=float64).tolist()
		for i in range(size - 1, 0, -1):
			j = min(int(draws[i] * (i + 1)), i)
			order[i], order[j] = order[j], order[i]
		return tensor(order, dtype=long)

	@staticmethod
	def invert(forward: Tensor) -> Tensor:
		inverse = empty_like(forward)
		inverse[forward] = arange(forward.shape[0], dtype=long)
		return inverse
