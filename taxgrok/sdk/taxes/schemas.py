"""Pydantic schemas for tax rules validation.

These schemas validate the tax_rules/*.yaml files and provide typed access
to tax parameters like the SS wage base, SE tax rates, standard deductions,
and per-filing-status brackets and thresholds.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..filing_status import FilingStatus


class TaxBracket(BaseModel):
    """Single tax bracket entry: income over ``over`` is taxed at ``rate``."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    over: float = Field(..., ge=0, description="Lower bound of the bracket")
    rate: float = Field(..., ge=0, le=1, description="Tax rate as decimal")


class FilingStatusRules(BaseModel):
    """Tax rules for a filing status (single, MFJ, etc.)."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    standard_deduction: float = Field(..., ge=0)
    additional_medicare_threshold: float = Field(..., ge=0)
    niit_threshold: float = Field(..., ge=0, description="MAGI threshold for NIIT")
    tax_brackets: list[TaxBracket] = Field(..., min_length=1)

    @field_validator("tax_brackets")
    @classmethod
    def check_brackets(cls, brackets: list[TaxBracket]) -> list[TaxBracket]:
        if brackets[0].over != 0:
            raise ValueError("first bracket must start at 0")
        for lower, upper in zip(brackets, brackets[1:]):
            if upper.over <= lower.over:
                raise ValueError(
                    f"brackets must ascend: {upper.over} follows {lower.over}"
                )
            if upper.rate < lower.rate:
                raise ValueError(
                    f"bracket rates must not decrease: {upper.rate} follows {lower.rate}"
                )
        return brackets


class SocialSecurityRules(BaseModel):
    """Social Security tax rules."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    wage_cap: float = Field(..., gt=0, description="SS wage base (max taxable)")


class SelfEmploymentRules(BaseModel):
    """Schedule SE rates."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    net_earnings_factor: float = Field(..., gt=0, le=1, description="Share of SE income subject to SE tax")
    social_security_rate: float = Field(..., ge=0, le=1, description="Combined employer+employee SS rate")
    medicare_rate: float = Field(..., ge=0, le=1, description="Combined employer+employee Medicare rate")


class TaxRules(BaseModel):
    """Complete federal tax rules for a year."""
    model_config = ConfigDict(extra="ignore", frozen=True)  # Allow unknown fields for forward compat

    tax_year: int
    social_security: SocialSecurityRules
    self_employment: SelfEmploymentRules
    additional_medicare_tax_rate: float = Field(..., ge=0, le=1)
    niit_rate: float = Field(..., ge=0, le=1)

    single: FilingStatusRules
    married_filing_jointly: FilingStatusRules
    married_filing_separately: FilingStatusRules
    head_of_household: FilingStatusRules
    qualifying_widow: FilingStatusRules

    def for_status(self, status: FilingStatus) -> FilingStatusRules:
        """Get the rules block for an engine filing status."""
        return getattr(self, status.rules_key)
