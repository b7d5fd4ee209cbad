"""
schemas.py: Tax profile Pydantic v2 data contracts.

Field names on the wire are camelCase (employmentType, yearlyIncome, ...) to
match the profile form; attributes and ORM columns are snake_case.

Every field has a default so a save with missing keys resets them instead of
keeping the stored value: saves are full replacements, never merges.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EmploymentType(str, Enum):
    employed = "employed"
    zzp = "zzp"
    both = "both"


class CompanyType(str, Enum):
    eenmanszaak = "eenmanszaak"
    vof = "vof"
    bv = "bv"


class TaxProfile(BaseModel):
    """Self-reported tax situation of a signed-in user."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    employment_type: Optional[EmploymentType] = Field(default=None, alias="employmentType")
    yearly_income: Optional[int] = Field(
        default=None, alias="yearlyIncome",
        description="Estimated yearly income in whole euros; negative for a loss.",
    )
    has_partner: bool = Field(default=False, alias="hasPartner")
    has_mortgage: bool = Field(default=False, alias="hasMortgage")
    has_company: bool = Field(default=False, alias="hasCompany")
    company_type: Optional[CompanyType] = Field(default=None, alias="companyType")


__all__ = ["EmploymentType", "CompanyType", "TaxProfile"]
