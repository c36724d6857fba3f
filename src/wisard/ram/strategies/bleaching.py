"""
Bleaching: tie resolution for RAM-discriminator ensembles.

Plain WiSARD scoring counts, per class, the neurons that have ever seen
their address. After heavy training most neurons of most classes answer
something, so several classes end up with (nearly) the same count.
Bleaching works on the raw counters instead and raises a threshold b:
only neurons whose counter exceeds b still vote. Classes that merely
share rare patterns drop out first, and the loop stops as soon as the
winner is separated from the runner-up by the requested confidence.

	SCANNING(b) --confidence >= threshold--> CONVERGED
	            --all counts are zero------> FALLBACK (recount at >= 1.0)
	            --otherwise----------------> SCANNING(b + step)

Confidence of a count vector:
	first  = largest count, second = largest count strictly below first
	0      if first == 0 or two classes share first
	-1     if no second value exists (single class), an algorithm fault
	1 - second / first otherwise

Usage:
	from wisard.ram.strategies.bleaching import bleach

	result = bleach(responses, step=1.0, confidence_threshold=0.01)
	result.distribution   # [n_classes] float64
	result.state          # BleachState.CONVERGED or BleachState.FALLBACK
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Union

from torch import as_tensor
from torch import float64
from torch import Tensor
from torch import zeros

from wisard.ram.core import BleachState
from wisard.ram.core.config import check_bleaching
from wisard.ram.core.errors import AlgorithmFault


FALLBACK_THRESHOLD = 1.0


@dataclass
class BleachResult:
	"""Outcome of one bleaching run.

	Attributes:
		distribution: [n_classes] class scores (sum to 1 when counts survive)
		counts: [n_classes] neurons above the final threshold per class
		threshold: Threshold b of the last scanning round
		confidence: Confidence of the last scanning round
		state: CONVERGED or FALLBACK
		rounds: Number of scanning rounds evaluated
	"""
	distribution: Tensor
	counts: list[int] = field(default_factory=list)
	threshold: float = 0.0
	confidence: float = 0.0
	state: BleachState = BleachState.SCANNING
	rounds: int = 0


def compute_confidence(counts: Sequence[int]) -> float:
	"""
	Separation between the best and the second best class count.

	Args:
		counts: Per-class number of neurons above the threshold

	Returns:
		1 - second / first, 0.0 for an empty or tied maximum, -1.0 when no
		runner-up value exists
	"""
	values = list(counts)
	if not values:
		return 0.0

	first = max(values)
	if first == 0:
		return 0.0
	if values.count(first) > 1:
		return 0.0

	below = [v for v in values if v != first]
	if not below:
		return -1.0
	second = max(below)
	return 1.0 - second / first


def count_above(responses: Tensor, threshold: float, inclusive: bool = False) -> list[int]:
	"""Per-class number of neurons whose raw response exceeds threshold."""
	mask = responses >= threshold if inclusive else responses > threshold
	return mask.sum(dim=-1).tolist()


def bleach(
	responses: Union[Tensor, Sequence[Sequence[float]]],
	step: float = 1.0,
	confidence_threshold: float = 0.01,
	logger: Optional[Callable[[str], None]] = None,
) -> BleachResult:
	"""
	Run the bleaching loop over stored raw responses.

	Args:
		responses: [n_classes, n_neurons] raw counters read by each neuron
		step: Initial threshold and increment per round (> 0)
		confidence_threshold: Stop once confidence reaches this value
		logger: Optional logging callable

	Returns:
		BleachResult with the class distribution and terminal state

	Raises:
		ConfigurationError: step <= 0 or confidence_threshold outside (0, 1)
		AlgorithmFault: confidence came out as -1 (no runner-up class)
	"""
	step, confidence_threshold = check_bleaching(step, confidence_threshold)
	log = logger or (lambda x: None)
	responses = as_tensor(responses, dtype=float64)
	if responses.ndim == 1:
		responses = responses.unsqueeze(0)
	n_classes, n_neurons = responses.shape

	b = float(step)
	rounds = 0
	while True:
		rounds += 1
		counts = count_above(responses, b)
		p_sum = sum(counts)
		confidence = compute_confidence(counts)
		if confidence < 0:
			raise AlgorithmFault(
				f"Bleaching has no runner-up class (counts={counts}, threshold={b:g})"
			)

		if confidence >= confidence_threshold:
			state = BleachState.CONVERGED
			break

		if p_sum == 0:
			counts = count_above(responses, FALLBACK_THRESHOLD, inclusive=True)
			p_sum = sum(counts)
			state = BleachState.FALLBACK
			break

		b += step

	if p_sum > 0:
		distribution = as_tensor(counts, dtype=float64) / p_sum
	elif n_neurons > 0:
		distribution = responses.sum(dim=-1) / n_neurons
	else:
		distribution = zeros(n_classes, dtype=float64)

	log(f"  [bleach] {state.name} after {rounds} round(s) at b={b:g}, confidence={confidence:.4f}")
	return BleachResult(
		distribution=distribution,
		counts=counts,
		threshold=b,
		confidence=confidence,
		state=state,
		rounds=rounds,
	)
