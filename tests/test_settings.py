from __future__ import annotations

import base64
import json
import logging
from pathlib import Path

from quotekit.core.assets import load_band_images, read_image_bytes
from quotekit.core.settings import Settings, load_settings, save_settings
from quotekit.core.words import WordsPolicy
from quotekit.data.document import DocumentKind

from conftest import png_bytes


def test_missing_file_writes_defaults(tmp_path: Path) -> None:
    p = tmp_path / "settings.json"
    settings = load_settings(p)
    assert settings == Settings()
    assert json.loads(p.read_text(encoding="utf-8"))["quotation_prefix"] == "QT-"


def test_save_and_load_keeps_values_and_ignores_unknown_keys(tmp_path: Path) -> None:
    p = tmp_path / "settings.json"
    save_settings(Settings(business_name="Acme Fabricators", words_policy="round_rupee"), p)
    data = json.loads(p.read_text(encoding="utf-8"))
    data["obsolete_key"] = 1
    p.write_text(json.dumps(data), encoding="utf-8")

    loaded = load_settings(p)
    assert loaded.business_name == "Acme Fabricators"
    assert loaded.policy() == WordsPolicy("round_rupee")
    assert not (tmp_path / "settings.json.tmp").exists()


def test_corrupt_file_falls_back_to_defaults(tmp_path: Path, caplog) -> None:
    p = tmp_path / "settings.json"
    p.write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING):
        assert load_settings(p) == Settings()
    assert "using defaults" in caplog.text
    # the broken file is left for the user to fix
    assert p.read_text(encoding="utf-8") == "{not json"


def test_company_profile_and_per_kind_values() -> None:
    settings = Settings(business_name="Acme", bank_name="Example Bank", bank_ifsc="EXMP0000001")
    profile = settings.company_profile()
    assert profile.name == "Acme"
    assert profile.bank_details == ("Bank Name: Example Bank", "Bank Branch IFSC: EXMP0000001")
    assert settings.prefix_for(DocumentKind.INVOICE) == "INV-"
    assert settings.prefix_for(DocumentKind.QUOTATION) == "QT-"
    assert settings.terms_for(DocumentKind.QUOTATION)[0] == "Completion: 90 Days"


def test_band_images_from_paths_and_data_uris(tmp_path: Path, caplog) -> None:
    header = tmp_path / "header.png"
    header.write_bytes(png_bytes())
    uri = "data:image/png;base64," + base64.b64encode(png_bytes((40, 20))).decode("ascii")
    settings = Settings(
        header_image_path=str(header),
        footer_image_path=uri,
        signature_image_path=str(tmp_path / "missing.png"),
    )
    with caplog.at_level(logging.WARNING):
        images = load_band_images(settings)
    assert images.header == header.read_bytes()
    assert images.footer == read_image_bytes(uri)
    assert images.signature is None
    assert "signature" in caplog.text
