"""
Issue Model
===========
Pydantic model for one problem reported by the reviewer.
This is the contract between the reviewer output and the convergence controller.

Fields:
    description: reviewer's description of the problem
    severity   : P0 (critical/blocking), P1 (high), P2 (medium), P3 (cosmetic/low)
    location   : file path, optionally with a ":line" suffix
    line_number: optional line number (never part of the key)
    dimension  : quality dimension the issue counts against
    suggestion : optional remediation hint for the fixer
    key        : stable identity across iterations; derived when omitted,
                 position segments stripped when supplied
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, model_validator

from fix_iterate.utils.issue_key import generate_issue_key, normalize_issue_key


class Severity(str, Enum):
    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


class Issue(BaseModel):
    description: str
    severity: Severity
    location: str = ""
    line_number: Optional[int] = None
    dimension: str = ""
    suggestion: str = ""
    key: str = ""

    @model_validator(mode="after")
    def _derive_key(self) -> "Issue":
        # A supplied key loses its line/column positions like a derived one
        self.key = normalize_issue_key(self.key) or generate_issue_key(self.location, self.description)
        return self
