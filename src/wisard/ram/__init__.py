# --------------------------------------------------------------------
# Weightless RAM-discriminator primitives
#
# Structure:
#   wisard.ram.core/            - Core components + enums (SparseMemory, RetinaMapping, Discriminator)
#   wisard.ram.core.models/     - Class ensembles (WiSARD)
#   wisard.ram.strategies/      - Decision strategies (bleaching)
#
# Import pattern:
#   from wisard.ram.core import MappingMode, Discriminator
#   from wisard.ram.core.models import WiSARD
#   from wisard.ram.strategies.bleaching import bleach
# --------------------------------------------------------------------
