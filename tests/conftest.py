import pandas as pd
import pytest

from bi_core.data import build_snapshot


@pytest.fixture
def accounts_df():
    return pd.DataFrame({
        "account_global_legal_name": ["Acme Corp", "Globex Inc", "Initech LLC"],
        "account_hq_country": ["India", "USA", "India"],
        "account_hq_region": ["APAC", "Americas", "APAC"],
        "account_hq_industry": ["Technology", "Finance", "Finance"],
        "account_hq_sub_industry": ["Software", "Banking", None],
        "account_primary_category": ["Enterprise", "Enterprise", "Mid-Market"],
        "account_primary_nature": ["MNC", "MNC", "Domestic"],
        "account_nasscom_status": ["Member", None, "Member"],
        "account_hq_employee_range": ["10k+", "1k-10k", "1k-10k"],
        "account_center_employees_range": ["1000+", "500-1000", "<500"],
        "account_hq_revenue": ["$10", "50", None],
    })


@pytest.fixture
def centers_df():
    return pd.DataFrame({
        "cn_unique_key": ["C1", "C2", "C3", "C4"],
        "account_global_legal_name": ["Acme Corp", "Globex Inc", "Initech LLC", "Acme Corp"],
        "center_name": ["Acme Bangalore", "Globex Chennai", "Initech Pune", "Acme Hyderabad"],
        "center_type": ["GCC", "GCC", "Vendor", "Vendor"],
        "center_focus": ["IT", "Finance", "IT", "Operations"],
        "center_city": ["Bangalore", "Chennai", "Pune", "Hyderabad"],
        "center_state": ["Karnataka", "Tamil Nadu", "Maharashtra", "Telangana"],
        "center_country": ["India", "India", "India", "India"],
        "center_employees_range": ["1000+", "500-1000", "<500", "<500"],
        "center_status": ["Active", "Active", "Inactive", "Active"],
    })


@pytest.fixture
def functions_df():
    return pd.DataFrame({
        "cn_unique_key": ["C1", "C1", "C2", "C3", "C4"],
        "function_name": ["IT", "HR", "IT", "Finance", "IT"],
    })


@pytest.fixture
def services_df():
    return pd.DataFrame({
        "cn_unique_key": ["C1", "C2", "C3", "C4"],
        "primary_service": ["Engineering", "Analytics", "Support", "Engineering"],
    })


@pytest.fixture
def prospects_df():
    return pd.DataFrame({
        "account_global_legal_name": ["Acme Corp", "Globex Inc", "Initech LLC", "Acme Corp"],
        "prospect_first_name": ["Asha", "Ben", "Chen", "Dev"],
        "prospect_last_name": ["Rao", "Stone", "Li", "Patel"],
        "prospect_title": ["Manager", "Senior Manager", "Director", "VP Engineering"],
        "prospect_department": ["IT", "Finance", "IT", "IT"],
        "prospect_level": ["Manager", "Senior", "Director", "VP"],
        "prospect_city": ["Bangalore", "Chennai", "Pune", None],
        "prospect_email": ["asha@acme.com", "ben@globex.com", "chen@initech.com", "dev@acme.com"],
    })


@pytest.fixture
def snapshot(accounts_df, centers_df, functions_df, services_df, prospects_df):
    """Three accounts, four centers, five functions, four services and four prospects."""
    return build_snapshot(accounts_df, centers_df, functions_df, services_df, prospects_df)
