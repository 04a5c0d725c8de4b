"""taxgrok MCP Server - FastMCP implementation for tax calculation tools."""

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from taxgrok.sdk import extraction as sdk_extraction
from taxgrok.sdk import (
    TaxEngine,
    get_available_years,
    get_min_field_confidence,
    get_setting,
    load_tax_rules,
    normalize_filing_status,
    result_to_1040,
)

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("taxgrok")

DOCUMENTS_DESCRIPTION = (
    "Processed documents: list of {id, fileName, documentType (W2, FORM_1099_INT, "
    "FORM_1099_DIV, FORM_1099_NEC, FORM_1099_MISC, OTHER), confidence, "
    "extractedData: [{fieldName, fieldValue, confidence}]}"
)


def _calculate(documents, filing_status, itemized_deduction_amount, estimated_tax_payments, tax_year):
    """Extract and run the engine. Returns (tax_data, result)."""
    tax_data = sdk_extraction.extract_tax_data(documents, min_confidence=get_min_field_confidence())
    engine = TaxEngine(tax_year=tax_year)
    result = engine.calculate(
        tax_data,
        filing_status=normalize_filing_status(filing_status or get_setting("filing_status")),
        use_itemized_deductions=itemized_deduction_amount is not None,
        itemized_deduction_amount=itemized_deduction_amount or 0,
        estimated_tax_payments=estimated_tax_payments,
    )
    return tax_data, result


# --- Tools ---

@mcp.tool()
async def extract_tax_data(
    documents: list[dict[str, Any]] = Field(description=DOCUMENTS_DESCRIPTION),
) -> dict[str, Any]:
    """Extract income and withholding totals from processed W-2/1099 documents, with per-bucket sources and warnings."""
    try:
        tax_data = sdk_extraction.extract_tax_data(documents, min_confidence=get_min_field_confidence())
        return tax_data.model_dump(mode="json", by_alias=True)

    except Exception as e:
        logger.error(f"Error extracting tax data: {e}")
        return {"error": str(e)}


@mcp.tool()
async def calculate_tax(
    documents: list[dict[str, Any]] = Field(description=DOCUMENTS_DESCRIPTION),
    filing_status: str | None = Field(default=None, description="Filing status ('single', 'married-jointly', 'married-separately', 'head-of-household', 'qualifying-widow')"),
    itemized_deduction_amount: float | None = Field(default=None, description="Itemized deductions; used only if above the standard deduction"),
    estimated_tax_payments: float = Field(default=0, description="Estimated tax payments made for the year"),
    tax_year: int | None = Field(default=None, description="Tax year (default: settings or latest supported)"),
) -> dict[str, Any]:
    """Run the full 11-phase federal tax calculation. Returns every phase, a summary (AGI, taxable income, total tax, rates) and the refund or balance due."""
    try:
        _, result = _calculate(documents, filing_status, itemized_deduction_amount, estimated_tax_payments, tax_year)
        return result.to_dict()

    except Exception as e:
        logger.error(f"Error calculating tax: {e}")
        return {"error": str(e)}


@mcp.tool()
async def map_form_1040(
    documents: list[dict[str, Any]] = Field(description=DOCUMENTS_DESCRIPTION),
    filing_status: str | None = Field(default=None, description="Filing status ('single', 'married-jointly', ...)"),
    itemized_deduction_amount: float | None = Field(default=None, description="Itemized deductions; used only if above the standard deduction"),
    estimated_tax_payments: float = Field(default=0, description="Estimated tax payments made for the year"),
    tax_year: int | None = Field(default=None, description="Tax year (default: settings or latest supported)"),
) -> dict[str, Any]:
    """Calculate tax and map it onto Form 1040 lines, listing the source document field behind each line."""
    try:
        tax_data, result = _calculate(documents, filing_status, itemized_deduction_amount, estimated_tax_payments, tax_year)
        return result_to_1040(result, tax_data)

    except Exception as e:
        logger.error(f"Error mapping Form 1040: {e}")
        return {"error": str(e)}


@mcp.tool()
async def get_tax_rules(
    tax_year: int = Field(description="Tax year (e.g., 2025)"),
) -> dict[str, Any]:
    """Get federal tax rules for a year: brackets, standard deductions, SE/NIIT rates and thresholds per filing status."""
    try:
        return load_tax_rules(tax_year).model_dump(mode="json")

    except Exception as e:
        logger.error(f"Error loading tax rules for {tax_year}: {e}")
        return {"error": str(e), "available_years": get_available_years()}


def run_server():
    """Run the MCP server in stdio mode."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    run_server()
