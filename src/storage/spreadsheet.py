"""
Spreadsheet output for scraped companies.

Two forms are written:
- incremental: SpreadsheetSink.append_record() adds one row per record and
  saves right away, so a crash loses at most the record being written
- compact: export_businesses() rewrites the whole sheet at the end of a run
  and keeps an optional service column only when some record has a real
  value for it

Both forms carry two header rows: machine keys, then Georgian labels.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from src.core.logging import get_logger
from src.parsing.fields import has_useful_text
from src.storage.models import BusinessRecord, ContactPerson

logger = get_logger(__name__)

SHEET_TITLE = "Companies"
DIRECTOR_KEYWORD = "დირექტორი"
MANAGER_KEYWORD = "მენეჯერი"

HEADER_FONT = Font(bold=True, color="FFFFFFFF")
HEADER_FILL = PatternFill(fill_type="solid", fgColor="FF4F81BD")
CENTER = Alignment(vertical="center", horizontal="center")
WRAP_TOP = Alignment(wrap_text=True, vertical="top")


@dataclass(frozen=True)
class Column:
    header: str
    georgian: str
    width: int
    value: Callable[[BusinessRecord], Any]


def _joined(attr: str) -> Callable[[BusinessRecord], str]:
    return lambda r: ", ".join(getattr(r, attr))


def _plain(attr: str) -> Callable[[BusinessRecord], Any]:
    return lambda r: getattr(r, attr)


def _yes_no(value: Optional[bool]) -> Optional[str]:
    if value is None:
        return None
    return "Yes" if value else "No"


def format_person(person: ContactPerson) -> str:
    """
    One-line summary of a roster entry.

    Example:
        >>> format_person(ContactPerson(name="გიორგი", personal_id="0100", phone="+995 555"))
        'გიორგი | ID: 0100 | Tel: +995 555'
    """
    parts = []
    if person.name:
        parts.append(person.name)
    if person.personal_id:
        parts.append(f"ID: {person.personal_id}")
    if person.phone:
        parts.append(f"Tel: {person.phone}")
    if person.email:
        parts.append(f"Email: {person.email}")
    return " | ".join(parts)


def person_by_role(record: BusinessRecord, keyword: str) -> Optional[str]:
    """Formatted first roster entry whose position contains keyword."""
    for person in record.contact_persons:
        if keyword.lower() in (person.position or "").lower():
            return format_person(person)
    return None


BASE_COLUMNS: List[Column] = [
    Column("Company_ID", "კომპანიის ID", 16, _plain("id")),
    Column("Name", "დასახელება", 32, _plain("name")),
    Column("Tax_ID", "საიდენტიფიკაციო კოდი", 20, _plain("tax_payer_id")),
    Column("Legal_Form", "სამართლებრივი ფორმა", 24, _plain("legal_form")),
    Column("Registration_Number", "რეგისტრაციის ნომერი", 16, _plain("registration_number")),
    Column("Registration_Date", "რეგისტრაციის თარიღი", 14, _plain("registration_date")),
    Column("Registration_Authority", "მარეგისტრ. ორგანო", 26, _plain("registration_authority")),
    Column("Status", "სტატუსი", 16, _plain("status")),
    Column("Work_Hours", "სამუშაო საათები", 24, _plain("work_hours")),
    Column("Category", "საქმიანობის კატეგორიები", 26, _plain("category")),
    Column("Subcategories", "ქვე-კატეგორიები", 30, _joined("subcategories")),
    Column("Service_Categories", "საქმიანობის სფერო", 30, _joined("service_categories")),
    Column("NACE_2004", "ეროვნული კლასიფიკატორები (NACE 2004)", 28, _joined("nace2004")),
    Column("NACE_2016", "ეროვნული კლასიფიკატორები (NACE 2016)", 28, _joined("nace2016")),
    Column("Trademarks", "სავაჭრო მარკები", 28, _joined("trademarks")),
    Column("Brands", "ბრენდები", 24, _joined("brands")),
    Column("Phones", "ტელეფონი", 24, _joined("phone_numbers")),
    Column("Emails", "იმეილი", 28, _joined("emails")),
    Column("Website", "ვებ-საიტი", 30, _plain("website")),
    Column("Address", "მისამართი", 40, _plain("address")),
    Column("City", "ქალაქი", 16, _plain("city")),
    Column("Region", "რაიონი", 22, _plain("region")),
    Column("Employee_Count", "თანამშრომელთა რ-ბა", 16, _plain("employee_count")),
    Column("Temporary_Employees", "დროებითი თანამშრომლები", 20, _plain("temporary_employees")),
    Column("Branches_Count", "ფილიალების რ-ბა", 16, _plain("branches")),
    Column("Service_Centers_Count", "სერვის-ცენტრების რ-ბა", 22, _plain("service_centers")),
    Column("Company_Size", "კომპანიის ზომა", 16, _plain("company_size")),
    Column("VAT_Payer", "დღგ-ს გადამხდელი", 12, lambda r: _yes_no(r.is_vat_payer)),
    Column("Avg_Employee_Age", "თანამშრომლების საშუალო ასაკი", 14, _plain("avg_employee_age")),
    Column(
        "Gender_Male_Pct", "გენდერული განაწილება (კაცი)", 14,
        lambda r: r.gender_distribution.male if r.gender_distribution else None,
    ),
    Column(
        "Gender_Female_Pct", "გენდერული განაწილება (ქალი)", 14,
        lambda r: r.gender_distribution.female if r.gender_distribution else None,
    ),
    Column("Parent_Companies", "მშობელი კომპანიები", 32, _plain("parent_companies")),
    Column("Subsidiary_Companies", "შვილობილი კომპანიები", 32, _plain("subsidiary_companies")),
    Column("Director", "დირექტორი", 40, lambda r: person_by_role(r, DIRECTOR_KEYWORD)),
    Column("Manager", "მენეჯერი", 40, lambda r: person_by_role(r, MANAGER_KEYWORD)),
    Column("Branches_Raw", "ფილიალები", 40, _plain("branches_raw")),
    Column("Service_Centers_Raw", "სერვის-ცენტრები", 32, _plain("service_centers_raw")),
    Column("Tenders", "ტენდერები", 26, _plain("tenders")),
    Column("Tenders_History", "ტენდერების ისტორია", 26, _plain("tenders_history")),
    Column("Authorized_Capital", "საწესდებო კაპიტალი", 18, _plain("authorized_capital")),
    Column("Computers_Count", "კომპიუტერების რ-ბა", 16, _plain("computers")),
    Column("Turnover_Range", "ბრუნვის დიაპაზონი", 20, _plain("turnover_range")),
    Column("Management_Avg_Salary", "მენეჯმენტის საშუალო ხელფასი", 18, _plain("management_avg_salary")),
    Column("Middle_Avg_Salary", "შუა რგოლის თანამშ. საშ. ხელფასი", 18, _plain("middle_avg_salary")),
    Column("Lower_Avg_Salary", "ქვედა რგოლის თანამშ. საშ. ხელფასი", 18, _plain("lower_avg_salary")),
    Column("Corporate_Vehicles", "კორპორატიული ავტომობილები", 18, _plain("corporate_vehicles")),
    Column("Founders", "დამფუძნებლები", 32, _joined("founders")),
    Column("Certifications", "სერტიფიკატები", 28, _joined("certifications")),
    Column("Last_Updated", "ბოლო განახლების თარიღი", 14, _plain("last_updated")),
    Column("Description", "აღწერილობა", 60, _plain("description")),
    Column("Social_Links", "სოციალური ბმულები", 32, _joined("social_links")),
]

# Kept in the compact export only when some record has a non-boilerplate value
OPTIONAL_COLUMNS: List[Column] = [
    Column("Social_Responsibility", "სოციალური პასუხისმგებლობა", 28, _plain("social_responsibility")),
    Column("Mobile_Service", "მობილური კავშირის მომსახურება", 24, _plain("mobile_service")),
    Column("Internet_Service", "ინტერნეტ კავშირის მომსახურება", 28, _plain("internet_service")),
    Column("Oil_Companies", "მომსახურე ნავთობკომპანიები", 32, _plain("oil_companies")),
    Column("Banks", "ბანკები", 40, _plain("banks")),
    Column("Insurance", "დაზღვევა", 40, _plain("insurance")),
    Column("Export_Info", "ექსპორტი", 32, _plain("export_info")),
    Column("Import_Info", "იმპორტი", 36, _plain("import_info")),
    Column("Local_Shipments", "ადგილობრივი გადაზიდვები", 32, _plain("local_shipments")),
    Column("International_Shipments", "საერთაშორისო გადაზიდვები", 36, _plain("international_shipments")),
    Column("Local_Partners", "ადგილობრივი პარტნიორები", 32, _plain("local_partners")),
    Column("Foreign_Partners", "უცხოელი პარტნიორები", 36, _plain("foreign_partners")),
    Column("Local_Suppliers", "ადგილობრივი მომწოდებლები", 32, _plain("local_suppliers")),
    Column("Foreign_Suppliers", "უცხოელი მომწოდებლები", 36, _plain("foreign_suppliers")),
    Column("Local_Distributors", "ადგილობრივი დისტრიბუტორები", 32, _plain("local_distributors")),
    Column("Local_Dealers", "ადგილობრივი დილერები", 32, _plain("local_dealers")),
    Column("Audit_Service", "აუდიტორული მომსახურება", 28, _plain("audit_service")),
    Column("Legal_Service", "იურიდიული მომსახურება", 28, _plain("legal_service")),
    Column("Accounting_Service", "საბუღალტრო მომსახურება", 28, _plain("accounting_service")),
    Column("Consulting_Service", "საკონსულტაციო მომსახურება", 28, _plain("consulting_service")),
    Column("Advertising_Service", "სარეკლამო კომპანიების მომსახურება", 28, _plain("advertising_service")),
    Column("Courier_Service", "საკურიერო მომსახურება", 28, _plain("courier_service")),
    Column("Property_Valuation_Service", "ქონების საშემფასებლო მომსახურება", 32, _plain("property_valuation_service")),
]

PROFILE_COLUMN = Column("Profile_URL", "პროფილის ბმული", 40, _plain("profile_url"))

FULL_COLUMNS: List[Column] = BASE_COLUMNS + OPTIONAL_COLUMNS + [PROFILE_COLUMN]


def useful_optional_columns(records: List[BusinessRecord]) -> List[Column]:
    """Optional columns for which at least one record has a useful value."""
    return [
        col for col in OPTIONAL_COLUMNS
        if any(has_useful_text(col.value(r)) for r in records)
    ]


def record_row(record: BusinessRecord, columns: List[Column]) -> List[Any]:
    return [col.value(record) for col in columns]


def _new_sheet(columns: List[Column]):
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    ws.append([c.header for c in columns])
    ws.append([c.georgian for c in columns])

    for idx, col in enumerate(columns, 1):
        ws.column_dimensions[get_column_letter(idx)].width = col.width
        top = ws.cell(row=1, column=idx)
        top.font = HEADER_FONT
        top.fill = HEADER_FILL
        top.alignment = CENTER
        geo = ws.cell(row=2, column=idx)
        geo.font = Font(bold=True)
        geo.alignment = CENTER

    ws.freeze_panes = "A3"
    ws.auto_filter.ref = f"A1:{get_column_letter(len(columns))}1"
    return wb, ws


def _append(ws, values: List[Any]) -> None:
    ws.append(values)
    for cell in ws[ws.max_row]:
        cell.alignment = WRAP_TOP


def _save(wb: Workbook, path: Path) -> Path:
    """Save, falling back to a timestamped name if the file is locked."""
    try:
        wb.save(path)
        return path
    except PermissionError:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        fallback = path.with_name(f"{path.stem}_{stamp}{path.suffix}")
        wb.save(fallback)
        logger.warning(f"{path} is locked, wrote {fallback} instead")
        return fallback


class SpreadsheetSink:
    """
    Incremental spreadsheet writer.

    Usage:
        >>> sink = SpreadsheetSink()
        >>> sink.initialize(Path("output/bia_companies.xlsx"))
        >>> sink.append_record(record)
    """

    def __init__(self, columns: Optional[List[Column]] = None):
        self.columns = columns or FULL_COLUMNS
        self.path: Optional[Path] = None
        self._wb: Optional[Workbook] = None
        self._ws = None

    @property
    def row_count(self) -> int:
        """Data rows currently in the sheet (header rows excluded)."""
        if self._ws is None:
            return 0
        return max(self._ws.max_row - 2, 0)

    def initialize(self, path: Path, resume: bool = False) -> Path:
        """
        Create the workbook, or reopen it when resuming.

        Args:
            path: Spreadsheet file
            resume: Keep an existing file and append after its rows

        Returns:
            The path that was written
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        if resume and path.exists():
            self._wb = load_workbook(path)
            self._ws = self._wb.active
            self.path = path
            logger.info(f"Resuming spreadsheet {path} ({self.row_count} existing rows)")
            return path

        self._wb, self._ws = _new_sheet(self.columns)
        self.path = _save(self._wb, path)
        logger.info(f"Spreadsheet initialized at {self.path}")
        return self.path

    def append_record(self, record: BusinessRecord) -> None:
        """Write one row and save the file."""
        if self._wb is None or self.path is None:
            raise RuntimeError("SpreadsheetSink.initialize() must be called first")
        _append(self._ws, record_row(record, self.columns))
        self.path = _save(self._wb, self.path)
        logger.debug(f"Row {self.row_count} written for {record.profile_url}")


def export_businesses(records: Iterable[BusinessRecord], path: Path) -> Optional[Path]:
    """
    Write every record to a fresh workbook in compact form.

    Returns:
        The written path, or None when there is nothing to export
    """
    records = list(records)
    if not records:
        logger.warning("No businesses to export, skipping spreadsheet generation")
        return None

    columns = BASE_COLUMNS + useful_optional_columns(records) + [PROFILE_COLUMN]
    wb, ws = _new_sheet(columns)
    for record in records:
        _append(ws, record_row(record, columns))

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    written = _save(wb, path)
    logger.info(f"Spreadsheet written to {written} ({len(records)} rows, {len(columns)} columns)")
    return written
