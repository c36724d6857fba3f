"""
Exceptions raised by the RAM-discriminator core.

All errors derive from WiSARDError so callers can catch them together,
and from the builtin they specialise (ValueError / RuntimeError) so code
written against plain builtins keeps working.
"""


class WiSARDError(Exception):
	"""Base class for all WiSARD errors."""


class ConfigurationError(WiSARDError, ValueError):
	"""Invalid construction parameters (bit resolution, mapping mode, ...)."""


class InputError(WiSARDError, ValueError):
	"""A sample rejected before any state was touched."""


class AlgorithmFault(WiSARDError, RuntimeError):
	"""An internal invariant was violated while computing a decision."""
