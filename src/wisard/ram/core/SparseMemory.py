"""
Sparse Memory for RAM Neurons

One neuron's address -> counter store. A neuron addressed by n bits has
2^n locations, but training touches only a handful of them, so cells are
allocated on first write and kept in a dictionary keyed by address.

Key properties:
- Storage: dict[address] -> Cell  (only written cells)
- Memory: O(written_cells) instead of O(2^bits_per_neuron)
- Reads never allocate
- Counters only grow; nothing is ever evicted

Usage:
	memory = SparseMemory()
	memory.write(5)      # -> 1.0 (cell allocated)
	memory.write(5)      # -> 2.0
	memory.read(5)       # -> 2.0
	memory.read(6)       # -> 0.0 (no cell)
"""

from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass
class Cell:
	"""A single RAM location: its address and how often it was written."""
	address: int
	counter: float = 0.0

	def increment(self, by: float = 1.0) -> float:
		self.counter += by
		return self.counter

	def value(self) -> float:
		return self.counter


class SparseMemory:
	"""
	Lazily allocated neuron memory.

	Addresses are trusted to be in range; the owning Discriminator
	guarantees that before calling in.
	"""

	def __init__(self) -> None:
		self._cells: dict[int, Cell] = {}

	def __repr__(self):
		return f"SparseMemory(stored={len(self._cells)}, total={self.total():g})"

	def __str__(self):
		cells = " ".join(f"{c.address}:{c.counter:g}" for c in self._cells.values())
		return "{" + cells + "}"

	def __len__(self) -> int:
		return len(self._cells)

	def __iter__(self) -> Iterator[Cell]:
		return iter(self._cells.values())

	def __contains__(self, address: int) -> bool:
		return address in self._cells

	# =========================================================================
	# Core read/write operations
	# =========================================================================

	def write(self, address: int) -> float:
		"""
		Increment the cell at address, allocating it on first write.

		Returns:
			The counter after the update (1.0 for a fresh cell)
		"""
		cell = self._cells.get(address)
		if cell is None:
			self._cells[address] = Cell(address, 1.0)
			return 1.0
		return cell.increment(1.0)

	def read(self, address: int) -> float:
		"""Counter of the cell stored at address, 0.0 if never written."""
		cell = self._cells.get(address)
		if cell is None:
			return 0.0
		return cell.value()

	def lookup(self, address: int) -> Optional[Cell]:
		"""The stored cell at address, or None."""
		return self._cells.get(address)

	# =========================================================================
	# Statistics
	# =========================================================================

	def addresses(self) -> list[int]:
		return list(self._cells)

	def total(self) -> float:
		"""Sum of all counters (number of writes when only write() is used)."""
		return sum(c.counter for c in self._cells.values())
