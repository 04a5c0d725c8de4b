"""taxgrok SDK - Core functionality for federal tax calculation."""

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    unset_setting,
    get_min_field_confidence,
    get_default_tax_year,
    SettingsError,
    SETTING_TYPES,
    DEFAULT_MIN_FIELD_CONFIDENCE,
)

from .filing_status import (
    FilingStatus,
    normalize_filing_status,
    from_ui,
    to_ui,
)

from .schemas import (
    DocumentType,
    ProcessedDocument,
    ExtractedField,
    TaxDocumentData,
    IncomeData,
    WithholdingsData,
    PersonalInfo,
)

from .extraction import (
    extract_tax_data,
    parse_documents_payload,
    parse_field_value,
    unwrap_field_value,
)

from .engine import (
    TaxEngine,
    TaxCalculationError,
    ComprehensiveTaxResult,
    calculate_comprehensive_tax,
)

from .form1040 import result_to_1040

from .report import result_to_csv_string, write_result_csv

from .taxes import (
    DEFAULT_TAX_YEAR,
    TaxRules,
    TaxRulesError,
    get_available_years,
    load_tax_rules,
    calculate_bracket_tax,
)

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "unset_setting",
    "get_min_field_confidence",
    "get_default_tax_year",
    "SettingsError",
    "SETTING_TYPES",
    "DEFAULT_MIN_FIELD_CONFIDENCE",
    # Filing status
    "FilingStatus",
    "normalize_filing_status",
    "from_ui",
    "to_ui",
    # Documents
    "DocumentType",
    "ProcessedDocument",
    "ExtractedField",
    "TaxDocumentData",
    "IncomeData",
    "WithholdingsData",
    "PersonalInfo",
    # Extraction
    "extract_tax_data",
    "parse_documents_payload",
    "parse_field_value",
    "unwrap_field_value",
    # Engine
    "TaxEngine",
    "TaxCalculationError",
    "ComprehensiveTaxResult",
    "calculate_comprehensive_tax",
    "result_to_1040",
    "result_to_csv_string",
    "write_result_csv",
    # Rules
    "DEFAULT_TAX_YEAR",
    "TaxRules",
    "TaxRulesError",
    "get_available_years",
    "load_tax_rules",
    "calculate_bracket_tax",
]
