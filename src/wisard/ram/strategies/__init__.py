"""
Decision strategies for RAM-discriminator ensembles.
"""

from wisard.ram.strategies.bleaching import (
	BleachResult,
	bleach,
	compute_confidence,
	count_above,
)

__all__ = [
	'BleachResult',
	'bleach',
	'compute_confidence',
	'count_above',
]
