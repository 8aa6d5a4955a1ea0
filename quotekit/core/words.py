from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Tuple, Union

from quotekit.core.currency import parse_decimal

ONES = [
	"", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
	"Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
	"Seventeen", "Eighteen", "Nineteen",
]
TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]

# Indian grouping, largest first
SCALES = (
	(10_000_000, "Crore"),
	(100_000, "Lakh"),
	(1_000, "Thousand"),
)

WORDS_MODES = ("exact", "round_rupee", "drop_paise")

Number = Union[int, float, Decimal, str]


def group_to_words(n: int) -> str:
	"""Words for 0..999; 0 gives an empty string."""
	if not 0 <= n <= 999:
		raise ValueError(f"group out of range: {n}")
	parts = []
	hundreds, rest = divmod(n, 100)
	if hundreds:
		parts.append(f"{ONES[hundreds]} Hundred")
	if rest >= 20:
		tens, ones = divmod(rest, 10)
		parts.append(TENS[tens])
		if ones:
			parts.append(ONES[ones])
	elif rest:
		parts.append(ONES[rest])
	return " ".join(parts)


def int_to_words(n: int) -> str:
	"""Words for a nonnegative integer using Crore/Lakh/Thousand grouping.

	Counts of crore above 999 are spelled recursively ("One Thousand Crore").
	"""
	if n < 0:
		raise ValueError("negative amounts are not supported")
	if n == 0:
		return "Zero"
	parts = []
	crore, n = divmod(n, SCALES[0][0])
	if crore:
		parts.append(f"{int_to_words(crore)} {SCALES[0][1]}")
	for size, name in SCALES[1:]:
		count, n = divmod(n, size)
		if count:
			parts.append(f"{group_to_words(count)} {name}")
	if n:
		parts.append(group_to_words(n))
	return " ".join(parts)


@dataclass(frozen=True)
class WordsPolicy:
	"""How an amount is reduced to rupees and paise before it is spelled out.

	- exact: rupees and paise, paise rounded half-up
	- round_rupee: round half-up to the nearest rupee, no paise clause
	- drop_paise: truncate paise
	"""

	mode: str = "exact"

	def __post_init__(self) -> None:
		if self.mode not in WORDS_MODES:
			raise ValueError(f"Unknown words policy {self.mode!r}; expected one of {', '.join(WORDS_MODES)}")

	def split(self, amount: Decimal) -> Tuple[int, int]:
		if self.mode == "round_rupee":
			return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)), 0
		rupees = int(amount.to_integral_value(rounding=ROUND_DOWN))
		if self.mode == "drop_paise":
			return rupees, 0
		paise = int(((amount - rupees) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
		if paise == 100:
			rupees, paise = rupees + 1, 0
		return rupees, paise


DEFAULT_POLICY = WordsPolicy()


def amount_to_words(amount: Number, policy: WordsPolicy | None = None) -> str:
	"""
	Spell out a currency amount in English words using the Indian numbering system.

	>>> amount_to_words(100000)
	'One Lakh Rupees Only'
	>>> amount_to_words("1234567.89")
	'Twelve Lakh Thirty Four Thousand Five Hundred Sixty Seven Rupees and Eighty Nine Paise Only'

	Zero reads "Zero Rupees Only". Negative or non-numeric input raises ValueError.
	"""
	value = parse_decimal(amount)
	if value < 0:
		raise ValueError("negative amounts are not supported")
	rupees, paise = (policy or DEFAULT_POLICY).split(value)
	words = f"{int_to_words(rupees)} Rupees"
	if paise:
		words += f" and {group_to_words(paise)} Paise"
	return words + " Only"
