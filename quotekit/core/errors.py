from __future__ import annotations

from typing import Iterable, List


class QuoteKitError(Exception):
	"""Base class for errors raised by quotekit."""


class DocumentValidationError(QuoteKitError, ValueError):
	"""A document model is not complete enough to be laid out.

	All problems found are collected in `problems` so the caller can show them at once.
	"""

	def __init__(self, problems: Iterable[str]):
		self.problems: List[str] = list(problems)
		super().__init__("; ".join(self.problems) or "invalid document")


class AssetError(QuoteKitError):
	"""An image asset could not be read or decoded."""


class PaginationError(QuoteKitError):
	"""The paginator was driven outside its state machine (e.g. reused after completion)."""


class ExportCancelled(QuoteKitError):
	"""The caller abandoned an export before the artifact was produced."""
