from __future__ import annotations

from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import json
import logging

from quotekit.core.paths import settings_path
from quotekit.core.words import WordsPolicy
from quotekit.data.document import CompanyProfile, DocumentKind

logger = logging.getLogger(__name__)

# Path to the settings.json (QUOTEKIT_HOME aware)
SETTINGS_PATH = settings_path()


def _default_quotation_terms() -> List[str]:
	return ["Completion: 90 Days", "GST: As indicated", "Transport: NA"]


def _default_invoice_terms() -> List[str]:
	return [
		"1. Subject to local jurisdiction.",
		"2. Our responsibility ceases as soon as the goods leave our premises.",
		"3. Goods once sold will not be taken back.",
		"4. Delivery ex-premises.",
	]


@dataclass
class Settings:
	business_name: str = "Your Company"
	tagline: str = ""
	address: str = ""
	phone: str = ""
	email: str = ""
	website: str = ""
	gstin: str = ""
	# Bank details printed on invoices
	bank_name: str = ""
	bank_branch: str = ""
	bank_account: str = ""
	bank_ifsc: str = ""
	# Optional image paths (absolute, relative to the project root, or data: URIs)
	header_image_path: Optional[str] = None
	footer_image_path: Optional[str] = None
	signature_image_path: Optional[str] = None
	quotation_prefix: str = "QT-"
	invoice_prefix: str = "INV-"
	default_tax_rate: float = 18.0
	quotation_intro: str = (
		"We would like to submit our lowest budgetary quote for the supply and "
		"installation of the following items:"
	)
	quotation_terms: List[str] = field(default_factory=_default_quotation_terms)
	invoice_terms: List[str] = field(default_factory=_default_invoice_terms)
	signatory_title: str = "Authorised Signatory"
	# One of quotekit.core.words.WORDS_MODES
	words_policy: str = "exact"
	# "A4" or "LETTER"
	page_size: str = "A4"
	# Template supports {kind}, {number}, {date}, {customer}
	file_name_template: str = "{kind}-{number}"
	# Optional root directory for exports; if None, defaults to Documents/Quotations
	archive_root: Optional[str] = None
	# When True, create a subfolder per year under the archive root
	archive_by_year: bool = True
	# Optional SQLite path; if None, quotekit.db under the user-writable dir
	db_path: Optional[str] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Settings":
		# Merge provided values over defaults, ignore unknown keys
		defaults = asdict(cls())
		merged: Dict[str, Any] = {**defaults, **{k: v for k, v in data.items() if k in defaults}}
		return cls(**merged)

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)

	def company_profile(self) -> CompanyProfile:
		bank = []
		if self.bank_name:
			bank.append(f"Bank Name: {self.bank_name}")
		if self.bank_branch:
			bank.append(f"Branch Name: {self.bank_branch}")
		if self.bank_account:
			bank.append(f"Bank Account Number: {self.bank_account}")
		if self.bank_ifsc:
			bank.append(f"Bank Branch IFSC: {self.bank_ifsc}")
		return CompanyProfile(
			name=self.business_name,
			tagline=self.tagline,
			address=self.address,
			phone=self.phone,
			email=self.email,
			website=self.website,
			gstin=self.gstin,
			bank_details=tuple(bank),
		)

	def prefix_for(self, kind: DocumentKind) -> str:
		return self.invoice_prefix if kind is DocumentKind.INVOICE else self.quotation_prefix

	def terms_for(self, kind: DocumentKind) -> List[str]:
		return list(self.invoice_terms if kind is DocumentKind.INVOICE else self.quotation_terms)

	def policy(self) -> WordsPolicy:
		return WordsPolicy(self.words_policy)


def _coerce_path(path: Optional[Union[str, Path]]) -> Path:
	return Path(path) if path is not None else SETTINGS_PATH


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
	"""
	Load settings from JSON (UTF-8). If the file is missing, write defaults and return them.
	"""
	p = _coerce_path(path)
	if not p.exists():
		settings = Settings()
		save_settings(settings, p)
		return settings

	try:
		with p.open("r", encoding="utf-8") as f:
			raw: Dict[str, Any] = json.load(f)
	except (json.JSONDecodeError, OSError):
		# If unreadable/corrupt, fall back to defaults (do not overwrite automatically)
		logger.warning("Could not read settings from %s; using defaults", p)
		return Settings()

	return Settings.from_dict(raw if isinstance(raw, dict) else {})


def save_settings(settings: Settings, path: Optional[Union[str, Path]] = None) -> None:
	"""Save settings to JSON (UTF-8), creating parent dirs if needed."""
	p = _coerce_path(path)
	p.parent.mkdir(parents=True, exist_ok=True)
	# Pretty JSON, keep Unicode
	tmp = p.with_suffix(p.suffix + ".tmp")
	with tmp.open("w", encoding="utf-8", newline="\n") as f:
		json.dump(settings.to_dict(), f, indent=2, ensure_ascii=False)
		f.write("\n")
	tmp.replace(p)
