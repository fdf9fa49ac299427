"""
Pydantic models for scraped business records and checkpoints.

Field names are snake_case in Python and serialize to the camelCase keys
used in the checkpoint JSON (model_dump(by_alias=True)).
"""

from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )


class ContactPerson(_CamelModel):
    """One entry of the management roster."""
    position: Optional[str] = Field(None, description="Role / title, trailing colon removed")
    name: Optional[str] = None
    personal_id: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class GenderDistribution(_CamelModel):
    """Male/female split as reported by the portal (percent points)."""
    male: int = Field(0, ge=0)
    female: int = Field(0, ge=0)


class BusinessRecord(_CamelModel):
    """
    Normalized record for one company detail page.

    Every attribute is always present; fields the page did not provide are
    None (scalars) or [] (lists).
    """
    id: Optional[str] = None
    name: Optional[str] = None
    name_georgian: Optional[str] = None
    tax_payer_id: Optional[str] = None
    legal_form: Optional[str] = None
    registration_number: Optional[str] = None
    registration_date: Optional[str] = None
    registration_authority: Optional[str] = None
    status: Optional[str] = None
    work_hours: Optional[str] = None
    trademarks: List[str] = Field(default_factory=list)
    brands: List[str] = Field(default_factory=list)

    category: Optional[str] = None
    subcategories: List[str] = Field(default_factory=list)
    service_categories: List[str] = Field(default_factory=list)
    nace2004: List[str] = Field(default_factory=list)
    nace2016: List[str] = Field(default_factory=list)
    branches_raw: Optional[str] = None
    service_centers_raw: Optional[str] = None
    tenders: Optional[str] = None
    tenders_history: Optional[str] = None

    phone_numbers: List[str] = Field(default_factory=list)
    emails: List[str] = Field(default_factory=list)
    website: Optional[str] = None

    address: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None

    description: Optional[str] = None

    contact_persons: List[ContactPerson] = Field(default_factory=list)

    employee_count: Optional[int] = None
    temporary_employees: Optional[int] = None
    branches: Optional[int] = None
    service_centers: Optional[int] = None
    company_size: Optional[str] = None

    authorized_capital: Optional[int] = None
    is_vat_payer: Optional[bool] = Field(None, alias="isVATPayer")
    management_avg_salary: Optional[str] = None
    employee_avg_salary: Optional[int] = None
    middle_avg_salary: Optional[str] = None
    lower_avg_salary: Optional[str] = None
    turnover_range: Optional[str] = None

    corporate_vehicles: Optional[int] = None
    computers: Optional[int] = None

    avg_employee_age: Optional[int] = None
    gender_distribution: Optional[GenderDistribution] = None
    parent_companies: Optional[str] = None
    subsidiary_companies: Optional[str] = None
    founders: List[str] = Field(default_factory=list)

    certifications: List[str] = Field(default_factory=list)

    social_links: List[str] = Field(default_factory=list)
    social_responsibility: Optional[str] = None
    mobile_service: Optional[str] = None
    internet_service: Optional[str] = None
    oil_companies: Optional[str] = None
    banks: Optional[str] = None
    insurance: Optional[str] = None
    export_info: Optional[str] = None
    import_info: Optional[str] = None
    local_shipments: Optional[str] = None
    international_shipments: Optional[str] = None
    local_partners: Optional[str] = None
    foreign_partners: Optional[str] = None
    local_suppliers: Optional[str] = None
    foreign_suppliers: Optional[str] = None
    local_distributors: Optional[str] = None
    local_dealers: Optional[str] = None
    audit_service: Optional[str] = None
    legal_service: Optional[str] = None
    accounting_service: Optional[str] = None
    consulting_service: Optional[str] = None
    advertising_service: Optional[str] = None
    courier_service: Optional[str] = None
    property_valuation_service: Optional[str] = None

    rating: Optional[float] = None
    reviews_count: Optional[int] = None
    profile_url: str = Field(..., min_length=1)
    last_updated: Optional[str] = None

    raw_page_content: Optional[str] = None
    raw_tab_panel_content: Optional[str] = None

    extra_fields: Dict[str, Any] = Field(default_factory=dict)

    @field_validator(
        "trademarks", "brands", "subcategories", "service_categories",
        "nace2004", "nace2016", "phone_numbers", "emails", "founders",
        "certifications", "social_links",
    )
    @classmethod
    def clean_string_list(cls, v: List[str]) -> List[str]:
        """Keep list fields trimmed, non-empty and first-seen deduplicated."""
        seen = set()
        out: List[str] = []
        for item in v:
            if item is None:
                continue
            s = str(item).strip()
            if s and s not in seen:
                seen.add(s)
                out.append(s)
        return out

    def to_json_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys used on disk."""
        return self.model_dump(by_alias=True, mode="json")


class CheckpointSnapshot(BaseModel):
    """Full progress snapshot, rewritten on every flush."""
    generated_at: str = Field(..., alias="generatedAt")
    count: int = Field(..., ge=0)
    failed_count: int = Field(..., ge=0, alias="failedCount")
    businesses: List[BusinessRecord] = Field(default_factory=list)
    failed_urls: List[str] = Field(default_factory=list, alias="failedUrls")

    model_config = ConfigDict(populate_by_name=True)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
