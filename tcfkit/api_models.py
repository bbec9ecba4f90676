# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""tcfkit HTTP API models."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from tcfkit.config import LENIENT_DECODE


# =============================================================================
# Requests
# =============================================================================

class DecodeRequest(BaseModel):
    tc_string: str
    vendor_ids: Optional[List[int]] = None
    lenient: bool = LENIENT_DECODE


class VendorRequest(BaseModel):
    tc_string: str
    lenient: bool = LENIENT_DECODE


# =============================================================================
# Responses
# =============================================================================

class ErrorDetail(BaseModel):
    code: str
    message: str


class RestrictionOut(BaseModel):
    purposeId: int
    restrictionType: str
    label: str


class VendorInfoOut(BaseModel):
    vendorId: int
    hasConsent: bool
    hasLegitimateInterest: bool
    purposeConsents: List[int] = Field(default_factory=list)
    legitimateInterests: List[int] = Field(default_factory=list)


class VendorResultOut(BaseModel):
    id: int
    info: VendorInfoOut
    restrictions: List[RestrictionOut] = Field(default_factory=list)


class DecodeResponse(BaseModel):
    version: str
    core: Dict[str, Any]
    vendorResults: List[VendorResultOut] = Field(default_factory=list)


class AnalyzeResponse(BaseModel):
    version: str
    vendorListVersion: int
    gvlVendorListVersion: int
    vendors: List[Dict[str, Any]] = Field(default_factory=list)
    summary: Dict[str, Any] = Field(default_factory=dict)
