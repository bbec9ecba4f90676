"""
Integration tests for the HTTP API.

These tests ensure the endpoints delegate to the decoder and resolver
and return the same values as calling them directly, and that decode
failures are mapped to JSON error bodies.
"""

import pytest
from fastapi.testclient import TestClient

from tcfkit.config import MAX_STRING_LENGTH
from tcfkit.main import app
from tcfkit.tcf import decode, resolve


client = TestClient(app)


@pytest.fixture
def loaded_gvl(gvl):
    """Install the test GVL on the running application."""
    app.state.gvl = gvl
    yield gvl
    app.state.gvl = None


# =============================================================================
# /healthz
# =============================================================================

class TestHealthz:

    def test_without_gvl(self):
        response = client.get("/healthz")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "gvl": {"loaded": False}}

    def test_with_gvl(self, loaded_gvl):
        data = client.get("/healthz").json()
        assert data["gvl"] == {"loaded": True, "vendorListVersion": 84, "vendors": 3}


# =============================================================================
# /decode
# =============================================================================

class TestDecodeEndpoint:

    def test_returns_same_values_as_decoder(self, v22_string):
        model = decode(v22_string)

        response = client.post("/decode", json={"tc_string": v22_string, "vendor_ids": [2, 99]})

        assert response.status_code == 200
        data = response.json()
        assert data["version"] == "2.2"
        assert data["core"] == model.to_dict()
        assert [v["id"] for v in data["vendorResults"]] == [2, 99]
        assert data["vendorResults"][0]["info"] == resolve(model, 2).to_dict()

    def test_restrictions_reported(self, make_tc_string):
        tc = make_tc_string(restrictions=[(2, 1, [2])])
        data = client.post("/decode", json={"tc_string": tc, "vendor_ids": [2]}).json()
        assert data["vendorResults"][0]["restrictions"] == [
            {"purposeId": 2, "restrictionType": "REQUIRE_CONSENT", "label": "Consent required"}
        ]

    def test_publisher_restrictions_as_ranges(self, make_tc_string):
        tc = make_tc_string(restrictions=[(3, 0, [(1, 65535)])])
        core = client.post("/decode", json={"tc_string": tc, "vendor_ids": [2]}).json()["core"]
        assert core["publisherRestrictions"] == [
            {
                "purposeId": 3,
                "restrictionType": "NOT_ALLOWED",
                "label": "Not allowed",
                "vendorRanges": [[1, 65535]],
            }
        ]

    def test_invalid_base64(self):
        response = client.post("/decode", json={"tc_string": "CP*Z"})
        assert response.status_code == 400
        assert response.json()["code"] == "TCF_INVALID_BASE64"

    def test_unsupported_version(self, make_tc_string):
        response = client.post("/decode", json={"tc_string": make_tc_string(version=1)})
        assert response.status_code == 400
        assert response.json() == {
            "code": "TCF_UNSUPPORTED_VERSION",
            "message": "Unsupported TCF version: 1",
        }

    def test_sample_strict_and_lenient(self, sample_tc_string):
        strict = client.post("/decode", json={"tc_string": sample_tc_string, "lenient": False})
        assert strict.status_code == 400
        assert strict.json()["code"] == "TCF_TRUNCATED"

        lenient = client.post("/decode", json={"tc_string": sample_tc_string, "lenient": True})
        assert lenient.status_code == 200
        assert lenient.json()["core"]["cmpId"] == 10

    def test_too_long(self):
        response = client.post("/decode", json={"tc_string": "A" * (MAX_STRING_LENGTH + 1)})
        assert response.status_code == 413
        assert response.json()["code"] == "TCF_STRING_TOO_LONG"

    def test_missing_field(self):
        response = client.post("/decode", json={})
        assert response.status_code == 422


# =============================================================================
# /vendors/{vendor_id}
# =============================================================================

class TestVendorEndpoint:

    def test_resolved_vendor(self, make_tc_string):
        tc = make_tc_string(restrictions=[(1, 0, [2])])
        response = client.post("/vendors/2", json={"tc_string": tc})

        assert response.status_code == 200
        data = response.json()
        assert data["vendorId"] == 2
        assert data["hasConsent"] is True
        assert data["purposeConsents"] == [2, 3, 4]
        assert data["restrictions"] == [
            {"purposeId": 1, "restrictionType": "NOT_ALLOWED", "label": "Not allowed"}
        ]

    def test_unknown_vendor(self, v20_string):
        data = client.post("/vendors/99", json={"tc_string": v20_string}).json()
        assert data["hasConsent"] is False
        assert data["purposeConsents"] == []

    def test_decode_error(self):
        response = client.post("/vendors/2", json={"tc_string": ""})
        assert response.status_code == 400
        assert response.json()["code"] == "TCF_TRUNCATED"


# =============================================================================
# /analyze
# =============================================================================

class TestAnalyzeEndpoint:

    def test_requires_gvl(self, v20_string):
        response = client.post("/analyze", json={"tc_string": v20_string})
        assert response.status_code == 503
        assert response.json()["code"] == "GVL_NOT_LOADED"

    def test_analysis(self, loaded_gvl, v20_string):
        response = client.post("/analyze", json={"tc_string": v20_string, "vendor_ids": []})

        assert response.status_code == 200
        data = response.json()
        assert data["version"] == "2.0"
        assert data["vendorListVersion"] == 84
        assert data["gvlVendorListVersion"] == 84
        assert [v["id"] for v in data["vendors"]] == [2, 6, 8]
        assert data["summary"]["totalVendors"] == 3

    def test_decode_error_with_gvl(self, loaded_gvl):
        response = client.post("/analyze", json={"tc_string": "CP*Z"})
        assert response.status_code == 400
