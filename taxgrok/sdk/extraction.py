"""Tax data extraction from processed documents.

Turns the raw fields a document-intelligence provider extracted from W-2 and
1099 forms into a TaxDocumentData record: income and withholding totals per
bucket, personal info, and a per-bucket breakdown recording which
documents/fields contributed at what confidence.

Raw field values arrive in several shapes: bare numbers and strings,
JSON-encoded strings, and provider objects such as
``{"value": {"valueNumber": 123}}``. Each value is parsed into a tagged
FieldValue (number, string, nested, unknown) and nested values are unwrapped
in a fixed priority order (UNWRAP_PRIORITY):

    1. top-level  valueNumber
    2. top-level  valueString
    3. nested     value.valueNumber
    4. nested     value.valueString
    5. raw passthrough

A value that still isn't a finite number after unwrapping is skipped with a
warning. Fields below the confidence threshold are excluded from the totals
but kept in the breakdown. Negative amounts are clamped to 0.

Malformed fields and documents are skipped with a warning; they never abort
the batch.
"""

import json
import logging
import math
import re
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError

from .config import DEFAULT_MIN_FIELD_CONFIDENCE
from .schemas import (
    BucketBreakdown,
    DocumentSource,
    DocumentType,
    ExtractedField,
    ExtractionWarning,
    IncomeData,
    PersonalInfo,
    ProcessedDocument,
    RawExtractedField,
    TaxDocumentData,
    WithholdingsData,
)
from .taxes.money import round_cents, sum_cents

logger = logging.getLogger(__name__)


INCOME_BUCKETS = tuple(IncomeData.model_fields)
WITHHOLDING_BUCKETS = tuple(WithholdingsData.model_fields)


# =============================================================================
# Field values
# =============================================================================


class ValueKind(str, Enum):
    NUMBER = "number"
    STRING = "string"
    NESTED = "nested"
    UNKNOWN = "unknown"  # null, bool, list: never usable


@dataclass(frozen=True)
class FieldValue:
    """A raw field value tagged with its shape."""

    kind: ValueKind
    value: Any


UNWRAP_PRIORITY = (
    ("valueNumber",),
    ("valueString",),
    ("value", "valueNumber"),
    ("value", "valueString"),
)


def parse_field_value(raw: Any) -> FieldValue:
    """Tag a raw field value, decoding JSON-encoded strings first.

    A string that isn't valid JSON (or nests too deeply to decode) is a
    plain string.
    """
    if isinstance(raw, str):
        try:
            raw_decoded = json.loads(raw)
        except (ValueError, RecursionError):
            return FieldValue(ValueKind.STRING, raw)
        if isinstance(raw_decoded, str):
            return FieldValue(ValueKind.STRING, raw_decoded)
        raw = raw_decoded

    if isinstance(raw, bool) or raw is None:
        return FieldValue(ValueKind.UNKNOWN, raw)
    if isinstance(raw, (int, float)):
        return FieldValue(ValueKind.NUMBER, raw)
    if isinstance(raw, dict):
        return FieldValue(ValueKind.NESTED, raw)
    return FieldValue(ValueKind.UNKNOWN, raw)


def _lookup(obj: dict, path: tuple[str, ...]) -> Any:
    for key in path:
        if not isinstance(obj, dict) or key not in obj:
            return None
        obj = obj[key]
    return obj


def unwrap_field_value(parsed: FieldValue) -> Any:
    """Resolve a tagged value to a scalar using UNWRAP_PRIORITY.

    Scalars pass through; nested objects with none of the known keys pass
    through unchanged (and are then unusable as amounts).
    """
    if parsed.kind is not ValueKind.NESTED:
        return parsed.value

    for path in UNWRAP_PRIORITY:
        found = _lookup(parsed.value, path)
        if found is not None:
            return found
    return parsed.value


_AMOUNT_STRIP = re.compile(r"[\s$,]")

# Amounts beyond this can't be quantized to cents
MAX_AMOUNT = 1e15


def to_amount(value: Any) -> Optional[float]:
    """Convert an unwrapped value to a finite float, or None if unusable.

    Strings may carry "$", thousands separators, and accounting-style
    parentheses for negatives: "(1,200.00)" -> -1200.0. Amounts whose
    magnitude exceeds MAX_AMOUNT are unusable.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            amount = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        text = _AMOUNT_STRIP.sub("", value)
        negative = text.startswith("(") and text.endswith(")")
        if negative:
            text = text[1:-1]
        try:
            amount = float(text)
        except ValueError:
            return None
        if negative:
            amount = -amount
    else:
        return None

    if not math.isfinite(amount) or abs(amount) > MAX_AMOUNT:
        return None
    return amount


def to_text(value: Any) -> str:
    """Convert an unwrapped value to display text ("" if not a scalar)."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


# =============================================================================
# Field classification
# =============================================================================


@dataclass(frozen=True)
class FieldRule:
    """Maps provider field names on one document type to a bucket."""

    bucket: str
    box: str
    aliases: tuple[str, ...]


def normalize_field_name(name: str) -> str:
    """Lower-case and drop punctuation/whitespace ("Box 1a" -> "box1a")."""
    return re.sub(r"[^a-z0-9]", "", name.lower())


_FEDERAL_WITHHELD = ("federalincometaxwithheld", "federaltaxwithheld")
_STATE_WITHHELD = ("statetaxwithheld", "stateincometax", "stateincometaxwithheld")

FIELD_RULES: dict[DocumentType, tuple[FieldRule, ...]] = {
    DocumentType.W2: (
        FieldRule("wages", "Box 1", ("wagestipsandothercompensation", "wagestipsothercompensation", "wages", "box1")),
        FieldRule("federal_tax", "Box 2", _FEDERAL_WITHHELD + ("box2",)),
        FieldRule("social_security_tax", "Box 4", ("socialsecuritytaxwithheld", "socialsecuritytax", "box4")),
        FieldRule("medicare_tax", "Box 6", ("medicaretaxwithheld", "medicaretax", "box6")),
        FieldRule("state_tax", "Box 17", _STATE_WITHHELD + ("box17",)),
    ),
    DocumentType.FORM_1099_INT: (
        FieldRule("interest", "Box 1", ("interestincome", "interest", "box1")),
        FieldRule("tax_exempt_interest", "Box 8", ("taxexemptinterest", "box8")),
        FieldRule("federal_tax", "Box 4", _FEDERAL_WITHHELD + ("box4",)),
        FieldRule("state_tax", "Box 17", _STATE_WITHHELD + ("box17",)),
    ),
    DocumentType.FORM_1099_DIV: (
        FieldRule("dividends", "Box 1a", ("totalordinarydividends", "ordinarydividends", "dividends", "box1a")),
        FieldRule("qualified_dividends", "Box 1b", ("qualifieddividends", "box1b")),
        FieldRule("capital_gains", "Box 2a", (
            "totalcapitalgaindistributions", "totalcapitalgaindistr", "capitalgaindistributions",
            "capitalgains", "box2a",
        )),
        FieldRule("federal_tax", "Box 4", _FEDERAL_WITHHELD + ("box4",)),
        FieldRule("state_tax", "Box 16", _STATE_WITHHELD + ("box16",)),
    ),
    DocumentType.FORM_1099_NEC: (
        FieldRule("non_employee_compensation", "Box 1", ("nonemployeecompensation", "box1")),
        FieldRule("federal_tax", "Box 4", _FEDERAL_WITHHELD + ("box4",)),
        FieldRule("state_tax", "Box 5", _STATE_WITHHELD + ("box5",)),
    ),
    DocumentType.FORM_1099_MISC: (
        FieldRule("miscellaneous_income", "Box 1", ("rents", "box1")),
        FieldRule("miscellaneous_income", "Box 2", ("royalties", "box2")),
        FieldRule("miscellaneous_income", "Box 3", ("otherincome", "miscellaneousincome", "box3")),
        FieldRule("federal_tax", "Box 4", _FEDERAL_WITHHELD + ("box4",)),
        FieldRule("state_tax", "Box 16", _STATE_WITHHELD + ("box16",)),
    ),
    DocumentType.OTHER: (
        FieldRule("rental_royalties", "Other", ("rentalincome", "rentalroyalties", "rents", "royalties")),
        FieldRule("other", "Other", ("otherincome",)),
        FieldRule("federal_tax", "Other", _FEDERAL_WITHHELD),
    ),
}

# Personal info fields, accepted on any document type. First non-empty wins.
PERSONAL_INFO_ALIASES = {
    "name": ("employeename", "recipientname", "taxpayername", "name"),
    "ssn": ("employeessn", "employeesocialsecuritynumber", "recipienttin", "recipientssn", "ssn"),
    "address": ("employeeaddress", "recipientaddress", "taxpayeraddress", "address"),
}


def _build_lookup() -> dict[tuple[DocumentType, str], FieldRule]:
    lookup = {}
    for document_type, rules in FIELD_RULES.items():
        for rule in rules:
            for alias in rule.aliases:
                lookup[(document_type, alias)] = rule
    return lookup


_RULE_LOOKUP = _build_lookup()
_PERSONAL_LOOKUP = {alias: key for key, aliases in PERSONAL_INFO_ALIASES.items() for alias in aliases}


def classify_field(document_type: DocumentType, field_name: str) -> Optional[FieldRule]:
    """Find the bucket rule for a (document type, field name) pair."""
    return _RULE_LOOKUP.get((document_type, normalize_field_name(field_name)))


# =============================================================================
# Extraction
# =============================================================================


class _Collector:
    """Accumulates per-bucket contributions and warnings for one extraction."""

    def __init__(self, log: logging.Logger):
        self.log = log
        self.contributions = defaultdict(list)  # bucket -> [(document, ExtractedField)]
        self.personal_info = {}
        self.warnings = []

    def warn(self, message: str, document_id: Optional[str] = None, field_name: Optional[str] = None) -> None:
        prefix = document_id or "?"
        if field_name:
            prefix = f"{prefix}/{field_name}"
        self.log.warning(f"{prefix}: {message}")
        self.warnings.append(ExtractionWarning(document_id=document_id, field_name=field_name, message=message))


def _process_field(
    collector: _Collector,
    document: ProcessedDocument,
    raw_field: Any,
    min_confidence: float,
) -> None:
    try:
        field = RawExtractedField.model_validate(raw_field)
    except ValidationError as e:
        collector.warn(f"malformed field skipped ({e.error_count()} validation errors)", document.id)
        return

    value = unwrap_field_value(parse_field_value(field.field_value))
    confidence = field.confidence if field.confidence is not None else document.confidence

    rule = classify_field(document.document_type, field.field_name)
    if rule is None:
        personal_key = _PERSONAL_LOOKUP.get(normalize_field_name(field.field_name))
        if personal_key:
            text = to_text(value)
            if text and not collector.personal_info.get(personal_key):
                collector.personal_info[personal_key] = text
        else:
            collector.log.debug(f"{document.id}: unmapped field '{field.field_name}' ignored")
        return

    amount = to_amount(value)
    if amount is None:
        shown = repr(field.field_value)
        if len(shown) > 60:
            shown = shown[:57] + "..."
        collector.warn(f"unusable value {shown}, skipped", document.id, field.field_name)
        return
    if amount < 0:
        collector.warn(f"negative amount {amount} clamped to 0", document.id, field.field_name)
        amount = 0.0

    included = confidence >= min_confidence
    if not included:
        collector.log.info(
            f"{document.id}/{field.field_name}: confidence {confidence:.2f} below {min_confidence:.2f}, excluded"
        )

    collector.contributions[rule.bucket].append((document, ExtractedField(
        field_name=field.field_name,
        raw_value=field.field_value,
        confidence=confidence,
        document_id=document.id,
        box_reference=f"{document.document_type.label} {rule.box}",
        bucket=rule.bucket,
        amount=round_cents(amount),
        included=included,
    )))


def _bucket_breakdown(contributions: list) -> BucketBreakdown:
    sources = {}
    fields = defaultdict(list)
    for document, field in contributions:
        sources.setdefault(document.id, document)
        fields[document.id].append(field)

    return BucketBreakdown(
        total=sum_cents(*(f.amount for _, f in contributions if f.included)),
        sources=tuple(
            DocumentSource(
                document_id=document.id,
                file_name=document.file_name,
                document_type=document.document_type,
                confidence=document.confidence,
                fields=tuple(fields[document_id]),
            )
            for document_id, document in sources.items()
        ),
    )


def extract_tax_data(
    documents: Iterable[Union[dict, ProcessedDocument]],
    min_confidence: float = DEFAULT_MIN_FIELD_CONFIDENCE,
    log: Optional[logging.Logger] = None,
) -> TaxDocumentData:
    """Build TaxDocumentData from processed documents.

    Args:
        documents: Processed documents (dicts in provider shape or models)
        min_confidence: Fields below this confidence are excluded from totals
        log: Logger for warnings/trace (defaults to this module's logger)

    Returns:
        TaxDocumentData; all zero when there are no usable documents
    """
    collector = _Collector(log or logger)
    document_count = 0

    for index, raw_document in enumerate(documents):
        try:
            document = ProcessedDocument.model_validate(raw_document)
        except ValidationError as e:
            document_id = raw_document.get("id") if isinstance(raw_document, dict) else None
            collector.warn(
                f"malformed document #{index} skipped ({e.error_count()} validation errors)",
                str(document_id) if document_id is not None else None,
            )
            continue

        document_count += 1
        if not document.extracted_data:
            collector.log.info(f"{document.id}: no extracted fields")
        for raw_field in document.extracted_data:
            _process_field(collector, document, raw_field, min_confidence)

    breakdown = {
        bucket: _bucket_breakdown(collector.contributions.get(bucket, []))
        for bucket in INCOME_BUCKETS + WITHHOLDING_BUCKETS
    }

    data = TaxDocumentData(
        income=IncomeData(**{b: breakdown[b].total for b in INCOME_BUCKETS}),
        withholdings=WithholdingsData(**{b: breakdown[b].total for b in WITHHOLDING_BUCKETS}),
        personal_info=PersonalInfo(**collector.personal_info),
        breakdown=breakdown,
        warnings=tuple(collector.warnings),
        document_count=document_count,
    )
    collector.log.debug(
        f"extracted {document_count} documents: wages={data.income.wages:,.2f} "
        f"interest={data.income.interest:,.2f} dividends={data.income.dividends:,.2f} "
        f"nec={data.income.non_employee_compensation:,.2f} "
        f"federal_withheld={data.withholdings.federal_tax:,.2f} warnings={len(collector.warnings)}"
    )
    return data


def parse_documents_payload(payload: Any) -> list:
    """Accept a JSON list of documents or an object with a "documents" list.

    Raises:
        ValueError: If the payload is neither shape
    """
    if isinstance(payload, dict) and isinstance(payload.get("documents"), list):
        return payload["documents"]
    if isinstance(payload, list):
        return payload
    raise ValueError("Expected a JSON list of documents or an object with a 'documents' list")
