from __future__ import annotations
import math
from typing import Iterable


def round_half_up(value: float) -> int:
	# Python's round() is banker's rounding; scores use the schoolbook rule
	return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
	return min(100, max(0, round_half_up(value)))


def mean_score(scores: Iterable[float]) -> int:
	values = list(scores)
	if not values:
		return 0
	return round_half_up(sum(values) / len(values))
