from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, NewType, Tuple

AccountKey = NewType("AccountKey", str)
CenterKey = NewType("CenterKey", str)

ACCOUNTS = "accounts"
CENTERS = "centers"
FUNCTIONS = "functions"
SERVICES = "services"
PROSPECTS = "prospects"
ENTITIES: Tuple[str, ...] = (ACCOUNTS, CENTERS, FUNCTIONS, SERVICES, PROSPECTS)

ACCOUNT_KEY = "account_global_legal_name"
CENTER_KEY = "cn_unique_key"
REVENUE = "account_hq_revenue"

REVENUE_FIELD = "account_revenue_range"
ACCOUNT_NAME_FIELD = "account_name_keywords"
TITLE_FIELD = "prospect_title_keywords"
SEARCH_FIELD = "search_term"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    entity: str
    column: str
    kind: str = "value"
    label: str = ""

    @property
    def is_facet(self) -> bool:
        return self.kind == "value"


FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec("account_countries", ACCOUNTS, "account_hq_country", label="Countries"),
    FieldSpec("account_regions", ACCOUNTS, "account_hq_region", label="Regions"),
    FieldSpec("account_industries", ACCOUNTS, "account_hq_industry", label="Industries"),
    FieldSpec("account_sub_industries", ACCOUNTS, "account_hq_sub_industry", label="Sub Industries"),
    FieldSpec("account_primary_categories", ACCOUNTS, "account_primary_category", label="Primary Categories"),
    FieldSpec("account_primary_natures", ACCOUNTS, "account_primary_nature", label="Primary Nature"),
    FieldSpec("account_nasscom_statuses", ACCOUNTS, "account_nasscom_status", label="NASSCOM Status"),
    FieldSpec("account_employees_ranges", ACCOUNTS, "account_hq_employee_range", label="Employees Range"),
    FieldSpec("account_center_employees", ACCOUNTS, "account_center_employees_range", label="Center Employees"),
    FieldSpec(REVENUE_FIELD, ACCOUNTS, REVENUE, kind="revenue", label="Revenue"),
    FieldSpec(ACCOUNT_NAME_FIELD, ACCOUNTS, ACCOUNT_KEY, kind="keyword", label="Account Name"),
    FieldSpec("center_types", CENTERS, "center_type", label="Center Types"),
    FieldSpec("center_focus", CENTERS, "center_focus", label="Center Focus"),
    FieldSpec("center_cities", CENTERS, "center_city", label="Cities"),
    FieldSpec("center_states", CENTERS, "center_state", label="States"),
    FieldSpec("center_countries", CENTERS, "center_country", label="Countries"),
    FieldSpec("center_employees", CENTERS, "center_employees_range", label="Center Employees"),
    FieldSpec("center_statuses", CENTERS, "center_status", label="Center Status"),
    FieldSpec("function_types", FUNCTIONS, "function_name", label="Functions"),
    FieldSpec("prospect_departments", PROSPECTS, "prospect_department", label="Departments"),
    FieldSpec("prospect_levels", PROSPECTS, "prospect_level", label="Levels"),
    FieldSpec("prospect_cities", PROSPECTS, "prospect_city", label="Cities"),
    FieldSpec(TITLE_FIELD, PROSPECTS, "prospect_title", kind="keyword", label="Title Keywords"),
    FieldSpec(SEARCH_FIELD, PROSPECTS, "", kind="search", label="Search"),
)

FIELDS_BY_NAME: Dict[str, FieldSpec] = {f.name: f for f in FIELDS}
FACET_FIELDS: Tuple[FieldSpec, ...] = tuple(f for f in FIELDS if f.is_facet)
LIST_FIELDS: Tuple[str, ...] = tuple(f.name for f in FIELDS if f.kind in {"value", "keyword"})

# Free-text search runs over these prospect columns.
SEARCH_COLUMNS: Tuple[str, ...] = (
    "prospect_full_name",
    "prospect_first_name",
    "prospect_last_name",
    "prospect_title",
    "prospect_email",
    ACCOUNT_KEY,
    "center_name",
)

REQUIRED_COLUMNS: Dict[str, List[str]] = {
    ACCOUNTS: [ACCOUNT_KEY, REVENUE] + [f.column for f in FACET_FIELDS if f.entity == ACCOUNTS],
    CENTERS: [CENTER_KEY, ACCOUNT_KEY, "center_name"] + [f.column for f in FACET_FIELDS if f.entity == CENTERS],
    FUNCTIONS: [CENTER_KEY, "function_name"],
    SERVICES: [
        CENTER_KEY,
        "center_name",
        "primary_service",
        "focus_region",
        "service_it",
        "service_erd",
        "service_fna",
        "service_hr",
        "service_procurement",
        "service_sales_marketing",
        "service_customer_support",
        "service_others",
        "software_vendor",
        "software_in_use",
    ],
    PROSPECTS: [ACCOUNT_KEY, "center_name"]
    + [c for c in SEARCH_COLUMNS if c not in {ACCOUNT_KEY, "center_name"}]
    + [f.column for f in FACET_FIELDS if f.entity == PROSPECTS]
    + ["prospect_state", "prospect_country", "prospect_linkedin_url"],
}
