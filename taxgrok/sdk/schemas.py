"""Pydantic schemas for taxgrok documents and extracted tax data.

Python attributes are snake_case; serialized names are camelCase
(``model_dump(by_alias=True)``) so the document-processing and
presentation collaborators can exchange data verbatim.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ValueModel(BaseModel):
    """Immutable value object with camelCase serialization."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# Input: processed documents from the document-processing collaborator
# =============================================================================


class DocumentType(str, Enum):
    """Document type tags assigned by the document-processing provider."""

    W2 = "W2"
    FORM_1099_INT = "FORM_1099_INT"
    FORM_1099_DIV = "FORM_1099_DIV"
    FORM_1099_NEC = "FORM_1099_NEC"
    FORM_1099_MISC = "FORM_1099_MISC"
    OTHER = "OTHER"

    @property
    def label(self) -> str:
        """Form label for display ("FORM_1099_INT" -> "1099-INT")."""
        if self is DocumentType.W2:
            return "W-2"
        return self.value.replace("FORM_", "").replace("_", "-")


class RawExtractedField(BaseModel):
    """A field as delivered by the provider, before any parsing."""

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    field_name: str = Field(..., min_length=1)
    field_value: Any = None
    confidence: Optional[float] = Field(default=None, ge=0, le=1)


class ProcessedDocument(BaseModel):
    """A processed document with its raw extracted fields.

    ``extracted_data`` is kept raw so one malformed field cannot invalidate
    the whole document; fields are validated individually during extraction.
    """

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    id: str
    file_name: str = "unknown"
    document_type: DocumentType = DocumentType.OTHER
    confidence: float = Field(default=0, ge=0, le=1)
    extracted_data: list[Any] = Field(default_factory=list)

    @field_validator("document_type", mode="before")
    @classmethod
    def unknown_type_is_other(cls, value: Any) -> Any:
        if isinstance(value, DocumentType):
            return value
        try:
            return DocumentType(value)
        except ValueError:
            return DocumentType.OTHER

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


# =============================================================================
# Output: canonical tax document data
# =============================================================================


class ExtractedField(ValueModel):
    """Provenance for one extracted field. Never mutated after extraction."""

    field_name: str
    raw_value: Any = None
    confidence: float
    document_id: str
    box_reference: str
    bucket: str
    amount: Optional[float] = Field(default=None, description="Resolved amount, None if unusable")
    included: bool = Field(default=True, description="False when excluded by the confidence filter")


class DocumentSource(ValueModel):
    """One document's contribution to a bucket."""

    document_id: str
    file_name: str
    document_type: DocumentType
    confidence: float
    fields: tuple[ExtractedField, ...] = ()


class BucketBreakdown(ValueModel):
    """Which documents/fields make up an aggregate bucket."""

    total: float = 0
    sources: tuple[DocumentSource, ...] = ()


class IncomeData(ValueModel):
    wages: float = 0
    interest: float = 0
    dividends: float = 0
    qualified_dividends: float = 0
    capital_gains: float = 0
    tax_exempt_interest: float = 0
    non_employee_compensation: float = 0
    miscellaneous_income: float = 0
    rental_royalties: float = 0
    other: float = 0


class WithholdingsData(ValueModel):
    federal_tax: float = 0
    state_tax: float = 0
    social_security_tax: float = 0
    medicare_tax: float = 0


class PersonalInfo(ValueModel):
    """Identity fields as extracted. Not validated."""

    name: str = ""
    ssn: str = ""
    address: str = ""


class ExtractionWarning(ValueModel):
    document_id: Optional[str] = None
    field_name: Optional[str] = None
    message: str


class TaxDocumentData(ValueModel):
    """Canonical income/withholding record built from processed documents."""

    income: IncomeData = Field(default_factory=IncomeData)
    withholdings: WithholdingsData = Field(default_factory=WithholdingsData)
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    breakdown: dict[str, BucketBreakdown] = Field(default_factory=dict)
    warnings: tuple[ExtractionWarning, ...] = ()
    document_count: int = 0
