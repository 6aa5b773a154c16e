"""
Unit tests for the paper size catalog and the fold rule.
"""

import json

import pytest

from core.exceptions import ConfigurationError, UnknownPaperSizeError, ValidationError
from core.paper_sizes import DEFAULT_PAPER_SIZES, PaperSize, PaperSizeCatalog


class TestFoldRule:

    @pytest.mark.parametrize(
        "size_name, copies, expected",
        [
            ("4x6", 3, 3),
            ("2x6", 4, 2),
            ("2x6", 1, 1),
            ("2x6", 3, 2),
            ("2x3", 5, 3),
            ("3x4", 2, 1),
            ("6x9", 7, 7),
        ],
    )
    def test_physical_job_count(self, catalog, size_name, copies, expected):
        assert catalog.resolve(size_name).physical_job_count(copies) == expected

    def test_prints_produced_is_capped_at_request(self, catalog):
        strip = catalog.resolve("2x6")
        # 3 copies need 2 sheets, but the second sheet's spare half is not counted
        assert strip.prints_produced(2, 3) == 3
        assert strip.prints_produced(1, 3) == 2
        assert strip.prints_produced(0, 3) == 0

    def test_folding_sizes_enable_cutting(self):
        for size in DEFAULT_PAPER_SIZES:
            assert size.cut_enabled == (size.fold_factor > 1)

    def test_sheet_size_places_strips_side_by_side(self, catalog):
        assert catalog.resolve("2x6").sheet_size == (4, 6)
        assert catalog.resolve("4x6").sheet_size == (4, 6)


class TestCatalogLookup:

    def test_resolve_known_size(self, catalog):
        size = catalog.resolve("2x6")
        assert size.media == "(6x4) x 2"
        assert size.fold_factor == 2

    def test_resolve_strips_whitespace(self, catalog):
        assert catalog.resolve(" 4x6 ").name == "4x6"

    def test_unknown_size_is_a_validation_error(self, catalog):
        with pytest.raises(UnknownPaperSizeError) as exc_info:
            catalog.resolve("bogus")

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.http_status == 400
        assert "4x6" in exc_info.value.details["available"]

    def test_empty_name_does_not_fall_back_to_a_default(self, catalog):
        with pytest.raises(UnknownPaperSizeError):
            catalog.resolve("")
        with pytest.raises(UnknownPaperSizeError):
            catalog.resolve(None)

    def test_to_list_uses_api_keys(self, catalog):
        entry = next(e for e in catalog.to_list() if e["name"] == "2x6")
        assert entry["dnpSize"] == "(6x4) x 2"
        assert entry["foldFactor"] == 2
        assert entry["cutEnabled"] is True

    def test_contains_and_len(self, catalog):
        assert "5x7" in catalog
        assert "7x5" not in catalog
        assert len(catalog) == len(DEFAULT_PAPER_SIZES)

    def test_membership_agrees_with_resolve(self, catalog):
        assert " 2x6 " in catalog
        assert catalog.resolve(" 2x6 ").name == "2x6"
        assert None not in catalog


class TestCatalogConstruction:

    def test_duplicate_sizes_rejected(self):
        size = PaperSize("4x6", 4, 6, "PR (4x6)")
        with pytest.raises(ConfigurationError):
            PaperSizeCatalog([size, size])

    def test_empty_catalog_rejected(self):
        with pytest.raises(ConfigurationError):
            PaperSizeCatalog([])

    def test_from_json_file(self, tmp_path):
        table = tmp_path / "sizes.json"
        table.write_text(json.dumps([
            {"name": "4x6", "width": 4, "height": 6, "media": "PR (4x6)"},
            {"name": "2x6", "width": 2, "height": 6, "media": "(6x4) x 2", "fold_factor": 2},
            {"name": "wallet", "width": 2.5, "height": 3.5, "dnpSize": "W", "foldFactor": 4,
             "cutEnabled": False, "subdirectory": "wallets"},
        ]), encoding="utf-8")

        catalog = PaperSizeCatalog.from_json_file(table)

        assert catalog.names() == ["4x6", "2x6", "wallet"]
        assert catalog.resolve("2x6").cut_enabled is True
        wallet = catalog.resolve("wallet")
        assert wallet.physical_job_count(9) == 3
        assert wallet.cut_enabled is False
        assert wallet.folder_name == "wallets"

    def test_from_json_file_rejects_bad_fold_factor(self, tmp_path):
        table = tmp_path / "sizes.json"
        table.write_text(json.dumps([
            {"name": "4x6", "width": 4, "height": 6, "media": "PR (4x6)", "fold_factor": 0},
        ]), encoding="utf-8")

        with pytest.raises(ConfigurationError):
            PaperSizeCatalog.from_json_file(table)

    def test_from_json_file_rejects_missing_fields(self, tmp_path):
        table = tmp_path / "sizes.json"
        table.write_text(json.dumps([{"name": "4x6"}]), encoding="utf-8")

        with pytest.raises(ConfigurationError):
            PaperSizeCatalog.from_json_file(table)

    def test_from_json_file_rejects_unreadable_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            PaperSizeCatalog.from_json_file(tmp_path / "missing.json")

        not_a_list = tmp_path / "object.json"
        not_a_list.write_text('{"name": "4x6"}', encoding="utf-8")
        with pytest.raises(ConfigurationError):
            PaperSizeCatalog.from_json_file(not_a_list)
