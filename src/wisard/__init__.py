"""WiSARD - Weightless RAM-discriminator classifiers."""

from wisard.logger import Logger, create_logger
from wisard.ram.core import (
	AlgorithmFault,
	AttributeScale,
	BleachState,
	ConfigurationError,
	InputError,
	MappingMode,
	WiSARDConfig,
	WiSARDError,
)
from wisard.ram.core.models import WiSARD
from wisard.ram.strategies import BleachResult, bleach

__all__ = [
	'Logger', 'create_logger',
	'WiSARD', 'WiSARDConfig', 'AttributeScale',
	'MappingMode', 'BleachState',
	'BleachResult', 'bleach',
	'WiSARDError', 'ConfigurationError', 'InputError', 'AlgorithmFault',
]
