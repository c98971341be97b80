from __future__ import annotations

from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field


class FilterValueModel(BaseModel):
    value: str
    mode: Literal["include", "exclude"] = "include"


class FiltersModel(BaseModel):
    account_countries: List[FilterValueModel] = Field(default_factory=list)
    account_regions: List[FilterValueModel] = Field(default_factory=list)
    account_industries: List[FilterValueModel] = Field(default_factory=list)
    account_sub_industries: List[FilterValueModel] = Field(default_factory=list)
    account_primary_categories: List[FilterValueModel] = Field(default_factory=list)
    account_primary_natures: List[FilterValueModel] = Field(default_factory=list)
    account_nasscom_statuses: List[FilterValueModel] = Field(default_factory=list)
    account_employees_ranges: List[FilterValueModel] = Field(default_factory=list)
    account_center_employees: List[FilterValueModel] = Field(default_factory=list)
    account_revenue_range: Optional[Tuple[float, float]] = None
    include_null_revenue: bool = False
    account_name_keywords: List[FilterValueModel] = Field(default_factory=list)
    center_types: List[FilterValueModel] = Field(default_factory=list)
    center_focus: List[FilterValueModel] = Field(default_factory=list)
    center_cities: List[FilterValueModel] = Field(default_factory=list)
    center_states: List[FilterValueModel] = Field(default_factory=list)
    center_countries: List[FilterValueModel] = Field(default_factory=list)
    center_employees: List[FilterValueModel] = Field(default_factory=list)
    center_statuses: List[FilterValueModel] = Field(default_factory=list)
    function_types: List[FilterValueModel] = Field(default_factory=list)
    prospect_departments: List[FilterValueModel] = Field(default_factory=list)
    prospect_levels: List[FilterValueModel] = Field(default_factory=list)
    prospect_cities: List[FilterValueModel] = Field(default_factory=list)
    prospect_title_keywords: List[FilterValueModel] = Field(default_factory=list)
    search_term: str = ""
    include_blanks: Dict[str, bool] = Field(default_factory=dict)


class RevenueRangeStateModel(BaseModel):
    selected: Tuple[float, float] = (0.0, 0.0)
    mode: Literal["auto", "manual"] = "auto"


class DashboardRequest(BaseModel):
    filters: FiltersModel = Field(default_factory=FiltersModel)
    revenue_state: Optional[RevenueRangeStateModel] = None
    include_records: bool = True


class RevenueRangeRequest(BaseModel):
    filters: FiltersModel = Field(default_factory=FiltersModel)
    state: RevenueRangeStateModel = Field(default_factory=RevenueRangeStateModel)
    action: Literal["sync", "edit_min", "edit_max", "edit_range", "reset", "load_saved"] = "sync"
    value: Optional[str] = None
    values: Optional[Tuple[float, float]] = None
