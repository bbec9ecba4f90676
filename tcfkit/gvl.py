# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""Global Vendor List lookup table.

The GVL is supplied by the caller as an already-fetched JSON document
(a local file or a parsed mapping).  This module only validates it into
read-only pydantic models; it never fetches, refreshes or caches the
list.  Vendor and declaration maps are keyed by integer id.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tcfkit.config import GVL_EXPECTED_SPEC_VERSION
from tcfkit.tcf.constants import purpose_name as builtin_purpose_name
from tcfkit.tcf.exceptions import GVLError

logger = logging.getLogger(__name__)

__all__ = [
    "GVLDeclaration",
    "GVLVendor",
    "GlobalVendorList",
    "load_gvl",
    "parse_gvl",
]


class GVLDeclaration(BaseModel):
    """A purpose, special purpose, feature or special feature entry."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    name: str
    description: str = ""


class GVLVendorUrl(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    lang_id: str = Field("en", alias="langId")
    privacy: Optional[str] = None
    leg_int_claim: Optional[str] = Field(None, alias="legIntClaim")


class GVLVendor(BaseModel):
    """One GVL vendor record."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: int
    name: str
    purposes: List[int] = Field(default_factory=list)
    leg_int_purposes: List[int] = Field(default_factory=list, alias="legIntPurposes")
    flexible_purposes: List[int] = Field(default_factory=list, alias="flexiblePurposes")
    special_purposes: List[int] = Field(default_factory=list, alias="specialPurposes")
    features: List[int] = Field(default_factory=list)
    special_features: List[int] = Field(default_factory=list, alias="specialFeatures")
    policy_url: Optional[str] = Field(None, alias="policyUrl")
    urls: List[GVLVendorUrl] = Field(default_factory=list)
    deleted_date: Optional[str] = Field(None, alias="deletedDate")

    @property
    def privacy_url(self) -> Optional[str]:
        """Policy URL (v2 ``policyUrl``, else the first v3 ``urls`` entry)."""
        if self.policy_url:
            return self.policy_url
        for url in self.urls:
            if url.privacy:
                return url.privacy
        return None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_date is not None


class GlobalVendorList(BaseModel):
    """Validated GVL document."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    gvl_specification_version: int = Field(2, alias="gvlSpecificationVersion")
    vendor_list_version: int = Field(0, alias="vendorListVersion")
    tcf_policy_version: int = Field(0, alias="tcfPolicyVersion")
    last_updated: Optional[str] = Field(None, alias="lastUpdated")
    vendors: Dict[int, GVLVendor] = Field(default_factory=dict)
    purposes: Dict[int, GVLDeclaration] = Field(default_factory=dict)
    special_purposes: Dict[int, GVLDeclaration] = Field(default_factory=dict, alias="specialPurposes")
    features: Dict[int, GVLDeclaration] = Field(default_factory=dict)
    special_features: Dict[int, GVLDeclaration] = Field(default_factory=dict, alias="specialFeatures")

    def vendor(self, vendor_id: int) -> Optional[GVLVendor]:
        return self.vendors.get(vendor_id)

    def purpose_name(self, purpose_id: int) -> str:
        """GVL purpose name, falling back to the built-in table."""
        declaration = self.purposes.get(purpose_id)
        if declaration is not None:
            return declaration.name
        return builtin_purpose_name(purpose_id)


def parse_gvl(data: Mapping[str, Any]) -> GlobalVendorList:
    """Validate a parsed GVL JSON document.

    Raises:
        GVLError: If the document does not match the GVL shape.
    """
    if not isinstance(data, Mapping):
        raise GVLError.invalid(f"expected JSON object, got {type(data).__name__}")
    try:
        gvl = GlobalVendorList.model_validate(dict(data))
    except ValidationError as exc:
        raise GVLError.invalid(str(exc)) from exc

    if gvl.gvl_specification_version != GVL_EXPECTED_SPEC_VERSION:
        logger.warning(
            "GVL has specification version %d, expected %d",
            gvl.gvl_specification_version, GVL_EXPECTED_SPEC_VERSION,
        )
    return gvl


def load_gvl(path: Union[str, Path]) -> GlobalVendorList:
    """Load and validate a GVL JSON file from local disk.

    Raises:
        GVLError: If the file is missing, is not JSON, or is not a GVL.
    """
    gvl_path = Path(path)
    logger.info("Loading GVL from %s", gvl_path)
    try:
        raw = gvl_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise GVLError.not_found(str(gvl_path)) from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise GVLError.invalid(f"JSON decoding failed: {exc}") from exc

    gvl = parse_gvl(data)
    logger.info(
        "Loaded GVL version %d with %d vendors",
        gvl.vendor_list_version, len(gvl.vendors),
    )
    return gvl
