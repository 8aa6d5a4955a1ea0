from __future__ import annotations

import base64
import binascii
import io
import logging
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from quotekit.core.errors import AssetError
from quotekit.core.paths import resource_path
from quotekit.data.document import BandImages

logger = logging.getLogger(__name__)


def _decode_data_uri(ref: str) -> bytes:
	# data:image/png;base64,....
	header, _, payload = ref.partition(",")
	if ";base64" not in header:
		raise AssetError("only base64 data URIs are supported")
	try:
		return base64.b64decode(payload, validate=True)
	except (binascii.Error, ValueError) as e:
		raise AssetError(f"invalid base64 image data: {e}") from e


def _resolve(ref: str) -> Path:
	p = Path(ref).expanduser()
	if not p.exists():
		rp = resource_path(ref)
		if rp.exists():
			return rp
	return p


def read_image_bytes(ref: str) -> bytes:
	"""Return raw bytes for a path (absolute or relative to the project root) or a data: URI."""
	if ref.startswith("data:"):
		return _decode_data_uri(ref)
	p = _resolve(ref)
	try:
		return p.read_bytes()
	except OSError as e:
		raise AssetError(f"cannot read image {p}: {e}") from e


def probe_image(data: bytes) -> Tuple[int, int]:
	"""Decode image bytes fully and return (width, height) in pixels."""
	try:
		with Image.open(io.BytesIO(data)) as im:
			im.load()
			return im.size
	except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
		raise AssetError(f"cannot decode image: {e}") from e


def _load_optional(ref: Optional[str], band: str) -> Optional[bytes]:
	if not ref:
		return None
	try:
		return read_image_bytes(ref)
	except AssetError:
		logger.warning("Could not load %s image from %s; the default band will be used", band, ref[:80], exc_info=True)
		return None


def load_band_images(settings) -> BandImages:
	"""Fetch the configured header/footer/signature images before layout begins."""
	return BandImages(
		header=_load_optional(settings.header_image_path, "header"),
		footer=_load_optional(settings.footer_image_path, "footer"),
		signature=_load_optional(settings.signature_image_path, "signature"),
	)
