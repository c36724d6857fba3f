"""
RAM-discriminator models

Class ensembles built from Discriminators.
"""

from wisard.ram.core.models.wisard import WiSARD

__all__ = [
	'WiSARD',
]
