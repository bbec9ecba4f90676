# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Tests for loading a caller-supplied Global Vendor List."""

import json
import logging

import pytest
from pydantic import ValidationError

from tcfkit.gvl import load_gvl, parse_gvl
from tcfkit.tcf import GVLError


class TestParseGVL:

    def test_header_fields(self, gvl):
        assert gvl.gvl_specification_version == 3
        assert gvl.vendor_list_version == 84
        assert gvl.tcf_policy_version == 4

    def test_maps_keyed_by_int(self, gvl):
        assert set(gvl.vendors) == {2, 6, 8}
        assert gvl.purposes[7].name == "Measure advertising performance"
        assert gvl.special_features[1].description == "Geo."

    def test_vendor_fields(self, gvl):
        vendor = gvl.vendor(2)
        assert vendor.name == "Captify Technologies Limited"
        assert vendor.leg_int_purposes == [7]
        assert vendor.flexible_purposes == [2, 7]
        assert vendor.special_features == [1, 2]
        assert vendor.is_deleted is False

    def test_unknown_vendor(self, gvl):
        assert gvl.vendor(999) is None

    def test_privacy_url_sources(self, gvl):
        assert gvl.vendor(2).privacy_url == "https://example.com/captify/privacy"
        assert gvl.vendor(6).privacy_url == "https://example.com/adspirit/privacy"
        assert gvl.vendor(8).privacy_url is None

    def test_deleted_vendor(self, gvl):
        assert gvl.vendor(8).is_deleted is True

    def test_purpose_name_fallback(self, gvl):
        assert gvl.purpose_name(1) == "Store and/or access information on a device"
        assert gvl.purpose_name(10) == "Develop and improve services"
        assert gvl.purpose_name(20) == "Purpose 20"

    def test_frozen(self, gvl):
        with pytest.raises(ValidationError):
            gvl.vendor_list_version = 1

    def test_unknown_keys_ignored(self, gvl_data):
        gvl_data["stacks"] = {"1": {"id": 1}}
        assert parse_gvl(gvl_data).vendor_list_version == 84

    def test_invalid_shape(self, gvl_data):
        gvl_data["vendors"] = "not a map"
        with pytest.raises(GVLError) as exc_info:
            parse_gvl(gvl_data)
        assert exc_info.value.code == "GVL_INVALID"

    def test_not_an_object(self):
        with pytest.raises(GVLError) as exc_info:
            parse_gvl([1, 2, 3])
        assert exc_info.value.code == "GVL_INVALID"

    def test_unexpected_spec_version_warns(self, gvl_data, caplog):
        gvl_data["gvlSpecificationVersion"] = 2
        with caplog.at_level(logging.WARNING, logger="tcfkit.gvl"):
            gvl = parse_gvl(gvl_data)
        assert gvl.gvl_specification_version == 2
        assert "specification version 2" in caplog.text


class TestLoadGVL:

    def test_load_from_file(self, tmp_path, gvl_data):
        path = tmp_path / "vendor-list.json"
        path.write_text(json.dumps(gvl_data), encoding="utf-8")

        gvl = load_gvl(path)
        assert gvl.vendor_list_version == 84
        assert len(gvl.vendors) == 3

    def test_accepts_str_path(self, tmp_path, gvl_data):
        path = tmp_path / "vendor-list.json"
        path.write_text(json.dumps(gvl_data), encoding="utf-8")
        assert load_gvl(str(path)).vendor_list_version == 84

    def test_missing_file(self, tmp_path):
        with pytest.raises(GVLError) as exc_info:
            load_gvl(tmp_path / "missing.json")
        assert exc_info.value.code == "GVL_NOT_FOUND"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "vendor-list.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(GVLError) as exc_info:
            load_gvl(path)
        assert exc_info.value.code == "GVL_INVALID"
