"""
RAM Core Components

Fundamental building blocks for RAM-discriminator networks.
"""

from enum import IntEnum


# =============================================================================
# Core Enums (self-contained)
# =============================================================================

class MappingMode(IntEnum):
	"""
	How input positions are assigned to neuron address bits.

	- LINEAR: identity retina, neuron k sees positions k*n .. k*n+n-1
	- RANDOM: seeded Fisher-Yates shuffle of the input positions
	"""
	LINEAR = 0
	RANDOM = 1


class BleachState(IntEnum):
	"""
	States of the bleaching tie-break.

	SCANNING is transient; CONVERGED and FALLBACK are terminal.
	"""
	SCANNING = 0   # raising the threshold
	CONVERGED = 1  # confidence reached the configured level
	FALLBACK = 2   # every count collapsed, recounted at threshold 1.0


# =============================================================================
# Component exports
# =============================================================================

from wisard.ram.core.errors import WiSARDError, ConfigurationError, InputError, AlgorithmFault
from wisard.ram.core.SparseMemory import Cell, SparseMemory
from wisard.ram.core.RetinaMapping import RetinaMapping
from wisard.ram.core.config import WiSARDConfig, AttributeScale
from wisard.ram.core.Discriminator import Discriminator

__all__ = [
	'MappingMode', 'BleachState',
	'WiSARDError', 'ConfigurationError', 'InputError', 'AlgorithmFault',
	'Cell', 'SparseMemory',
	'RetinaMapping',
	'WiSARDConfig', 'AttributeScale',
	'Discriminator',
]
