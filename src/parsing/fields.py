"""
Field extraction helpers for company detail pages.

Pure functions that turn raw strings and label maps into typed values.
Nothing here touches the browser and nothing here raises on bad input:
unusable values come back as None (scalars) or [] (lists).
"""

import re
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

from src.storage.models import GenderDistribution

T = TypeVar("T")


# ---------------- Label vocabulary ----------------
# Keys are matched exactly, trailing colon included.

class LABELS:
    TAX_ID = "საიდენტიფიკაციო კოდი:"
    LEGAL_FORM = "სამართლებრივი ფორმა:"
    REGISTRATION_NUMBER = "რეგისტრაციის ნომერი:"
    REGISTRATION_DATE = "რეგისტრაციის თარიღი:"
    REGISTRATION_AUTHORITY = "მარეგისტრ. ორგანო:"
    STATUS = "სტატუსი:"
    WORK_HOURS = "სამუშაო საათები:"
    LEGAL_ADDRESS = "იურიდიული მისამართი:"
    LEGAL_ADDRESS_TYPO = "იურდიული მისამართი:"
    VAT_PAYER = "დღგ-ს გადამხდელი:"
    LAST_UPDATED = "ბოლო განახლების თარიღი:"

    CATEGORIES = "საქმიანობის კატეგორიები:"
    SERVICE_CATEGORIES = "საქმიანობის სფერო:"
    TRADEMARKS = "სავაჭრო მარკები:"
    BRANDS = "ბრენდები:"
    NACE_2004 = "ეროვნული კლასიფიკატორები (NACE 2004):"
    NACE_2016 = "ეროვნული კლასიფიკატორები (NACE 2016):"
    BRANCHES_RAW = "ფილიალები:"
    SERVICE_CENTERS_RAW = "სერვის-ცენტრები:"
    TENDERS = "ტენდერები:"
    TENDERS_HISTORY = "ტენდერების ისტორია:"

    EMPLOYEE_COUNT = "თანამშრომელთა რ-ბა:"
    TEMPORARY_EMPLOYEES = "დროებითი თანამშრომლები:"
    BRANCHES_COUNT = "ფილიალების რ-ბა:"
    SERVICE_CENTERS_COUNT = "სერვის-ცენტრების რ-ბა:"
    COMPUTERS = "კომპიუტერების რ-ბა:"
    COMPANY_SIZE = "კომპანიის ზომა:"
    AVG_AGE = "თანამშრომლების საშუალო ასაკი:"
    GENDER_MALE = "გენდერული განაწილება (კაცი):"
    GENDER_FEMALE = "გენდერული განაწილება (ქალი):"
    MANAGEMENT_AVG_SALARY = "მენეჯმენტის საშუალო ხელფასი:"
    MIDDLE_AVG_SALARY = "შუა რგოლის თანამშ. საშ. ხელფასი:"
    LOWER_AVG_SALARY = "ქვედა რგოლის თანამშ. საშ. ხელფასი:"
    AUTHORIZED_CAPITAL = "საწესდებო კაპიტალი:"
    TURNOVER_RANGE = "ბრუნვის დიაპაზონი:"
    CORPORATE_VEHICLES = "კორპორატიული ავტომობილები:"

    PARENT_COMPANIES = "მშობელი კომპანიები:"
    SUBSIDIARY_COMPANIES = "შვილობილი კომპანიები:"
    FOUNDERS = "დამფუძნებლები:"
    CERTIFICATIONS = "სერტიფიკატები:"

    SOCIAL_RESPONSIBILITY = "სოციალური პასუხისმგებლობა:"
    MOBILE_SERVICE = "მობილური კავშირის მომსახურება:"
    INTERNET_SERVICE = "ინტერნეტ კავშირის მომსახურება:"
    OIL_COMPANIES = "მომსახურე ნავთობკომპანიები:"
    BANKS = "ბანკები:"
    INSURANCE = "დაზღვევა:"
    EXPORT = "ექსპორტი:"
    IMPORT = "იმპორტი:"
    LOCAL_SHIPMENTS = "ადგილობრივი გადაზიდვები:"
    INTERNATIONAL_SHIPMENTS = "საერთაშორისო გადაზიდვები:"
    LOCAL_PARTNERS = "ადგილობრივი პარტნიორები:"
    FOREIGN_PARTNERS = "უცხოელი პარტნიორები:"
    LOCAL_SUPPLIERS = "ადგილობრივი მომწოდებლები:"
    FOREIGN_SUPPLIERS = "უცხოელი მომწოდებლები:"
    LOCAL_DISTRIBUTORS = "ადგილობრივი დისტრიბუტორები:"
    LOCAL_DEALERS = "ადგილობრივი დილერები:"
    AUDIT_SERVICE = "აუდიტორული მომსახურება:"
    LEGAL_SERVICE = "იურიდიული მომსახურება:"
    ACCOUNTING_SERVICE = "საბუღალტრო მომსახურება:"
    CONSULTING_SERVICE = "საკონსულტაციო მომსახურება:"
    ADVERTISING_SERVICE = "სარეკლამო კომპანიების მომსახურება:"
    COURIER_SERVICE = "საკურიერო მომსახურება:"
    PROPERTY_VALUATION_SERVICE = "ქონების საშემფასებლო მომსახურება:"


# Record attribute -> label for free-text "service availability" fields.
SERVICE_TEXT_FIELDS = {
    "social_responsibility": LABELS.SOCIAL_RESPONSIBILITY,
    "mobile_service": LABELS.MOBILE_SERVICE,
    "internet_service": LABELS.INTERNET_SERVICE,
    "oil_companies": LABELS.OIL_COMPANIES,
    "banks": LABELS.BANKS,
    "insurance": LABELS.INSURANCE,
    "export_info": LABELS.EXPORT,
    "import_info": LABELS.IMPORT,
    "local_shipments": LABELS.LOCAL_SHIPMENTS,
    "international_shipments": LABELS.INTERNATIONAL_SHIPMENTS,
    "local_partners": LABELS.LOCAL_PARTNERS,
    "foreign_partners": LABELS.FOREIGN_PARTNERS,
    "local_suppliers": LABELS.LOCAL_SUPPLIERS,
    "foreign_suppliers": LABELS.FOREIGN_SUPPLIERS,
    "local_distributors": LABELS.LOCAL_DISTRIBUTORS,
    "local_dealers": LABELS.LOCAL_DEALERS,
    "audit_service": LABELS.AUDIT_SERVICE,
    "legal_service": LABELS.LEGAL_SERVICE,
    "accounting_service": LABELS.ACCOUNTING_SERVICE,
    "consulting_service": LABELS.CONSULTING_SERVICE,
    "advertising_service": LABELS.ADVERTISING_SERVICE,
    "courier_service": LABELS.COURIER_SERVICE,
    "property_valuation_service": LABELS.PROPERTY_VALUATION_SERVICE,
}

# Phrases meaning "nothing to report" for the service fields.
NEGATIVE_BOILERPLATE = frozenset({
    "არ ჰყავს",
    "არ სარგებლობს",
    "არ აქვს",
    "არ ახორციელებს",
    "არ აცხადებს ტენდერებს",
})

NO_LOGO_PLACEHOLDER = "არ არის ლოგო"
REGION_MARKER = "რაიონი"
VAT_YES = "არის"
VAT_NO = "არ არის"

LIST_SEPARATOR = "|"
GROUP_SEPARATOR = "||"


# ---------------- Regexes ----------------

GEORGIAN_RE = re.compile(r"[\u10A0-\u10FF]")
LATIN_RE = re.compile(r"[A-Za-z]")
PHONE_ONLY_LINE_RE = re.compile(r"^\+\s*\d+$")
EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_BLOCK_RE = re.compile(r"\+995[0-9\s,]+")
PERSON_PHONE_RE = re.compile(r"\+995[0-9\s]+")
COMPANY_ID_RE = re.compile(r"/Company/(\d+)", re.IGNORECASE)

TAX_ID_TEXT_RE = re.compile(r"საიდენტიფიკაციო კოდი:\s*([0-9]+)")
REGISTRATION_NUMBER_TEXT_RE = re.compile(r"რეგისტრაციის ნომერი:\s*([0-9A-Za-z/-]+)")
VAT_TEXT_RE = re.compile(r"დღგ-ს გადამხდელი:\s*(არ არის|არის)")
LAST_UPDATED_TEXT_RE = re.compile(r"ბოლო განახლების თარიღი:\s*([0-9]{2}/[0-9]{2}/[0-9]{4})")
AVG_AGE_TEXT_RE = re.compile(r"თანამშრომლების საშუალო ასაკი:\s*([0-9]+)")
GENDER_MALE_TEXT_RE = re.compile(r"გენდერული განაწილება \(კაცი\):\s*([0-9]+)\s*%")
GENDER_FEMALE_TEXT_RE = re.compile(r"გენდერული განაწილება \(ქალი\):\s*([0-9]+)\s*%")


# ---------------- Scalars ----------------

def parse_integer(raw: object) -> Optional[int]:
    """
    Parse an integer by keeping only its digits.

    Args:
        raw: Any value; non-strings are converted with str()

    Returns:
        The integer, or None if no digits remain

    Example:
        >>> parse_integer("1 250 ლარი")
        1250
        >>> parse_integer("არ აქვს") is None
        True
    """
    if raw is None:
        return None
    digits = re.sub(r"[^0-9]", "", str(raw))
    if not digits:
        return None
    return int(digits)


def parse_gender_distribution(
    male_raw: Optional[str],
    female_raw: Optional[str]
) -> Optional[GenderDistribution]:
    """
    Build a male/female split from two raw values.

    Returns None only when both sides are absent; a missing or digitless
    side counts as 0.

    Example:
        >>> parse_gender_distribution("60%", None)
        GenderDistribution(male=60, female=0)
    """
    if not male_raw and not female_raw:
        return None
    return GenderDistribution(
        male=parse_integer(male_raw) or 0,
        female=parse_integer(female_raw) or 0,
    )


def parse_vat_status(raw: Optional[str]) -> Optional[bool]:
    """VAT flag from the label text: "არის" is True, "არ არის" is False."""
    if not raw:
        return None
    if VAT_NO in raw:
        return False
    if VAT_YES in raw:
        return True
    return None


def extract_company_id(url: Optional[str]) -> Optional[str]:
    """
    Numeric company id from a detail URL.

    Example:
        >>> extract_company_id("https://www.bia.ge/Company/12345")
        '12345'
    """
    if not url:
        return None
    m = COMPANY_ID_RE.search(url)
    return m.group(1) if m else None


# ---------------- Lists ----------------

def dedupe_non_empty(values: Iterable[Optional[str]]) -> List[str]:
    """
    Trim, drop empties and deduplicate, keeping first-seen order.

    Idempotent: dedupe_non_empty(dedupe_non_empty(x)) == dedupe_non_empty(x).
    """
    seen = set()
    out: List[str] = []
    for v in values:
        if not isinstance(v, str):
            continue
        s = v.strip()
        if s and s not in seen:
            seen.add(s)
            out.append(s)
    return out


def split_list(raw: Optional[str]) -> List[str]:
    """Split a single-pipe list ("a | b | c")."""
    if not raw:
        return []
    return dedupe_non_empty(raw.split(LIST_SEPARATOR))


def split_nested_list(raw: Optional[str]) -> List[str]:
    """Split repeated entries on "||", then each entry's sub-items on "|", and flatten."""
    if not raw:
        return []
    items: List[str] = []
    for chunk in raw.split(GROUP_SEPARATOR):
        items.extend(chunk.split(LIST_SEPARATOR))
    return dedupe_non_empty(items)


def extract_phone_numbers(text: Optional[str]) -> List[str]:
    """All +995 numbers in free text; comma-separated runs are split."""
    if not text:
        return []
    found: List[str] = []
    for block in PHONE_BLOCK_RE.findall(text):
        found.extend(block.split(","))
    return dedupe_non_empty(found)


def extract_emails(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return dedupe_non_empty(EMAIL_RE.findall(text))


# ---------------- Two-source resolution ----------------

def resolve(
    structured: Optional[T],
    fallback: Callable[[str], Optional[T]],
    text: Optional[str]
) -> Optional[T]:
    """
    Structured value if present, else fallback(text).

    The fallback only runs when the structured value is None and text is
    non-empty.
    """
    if structured is not None:
        return structured
    if not text:
        return None
    return fallback(text)


def regex_group(pattern: "re.Pattern[str]") -> Callable[[str], Optional[str]]:
    """Fallback that returns the first capture group of pattern, or None."""
    def _fallback(text: str) -> Optional[str]:
        m = pattern.search(text)
        return m.group(1) if m else None
    return _fallback


def gender_from_text(text: str) -> Optional[GenderDistribution]:
    """
    Gender split from "(კაცი):NN%" / "(ქალი):NN%" text.

    Returns None when neither side is found or both sides are zero.
    """
    male = GENDER_MALE_TEXT_RE.search(text)
    female = GENDER_FEMALE_TEXT_RE.search(text)
    if not male and not female:
        return None
    m = int(male.group(1)) if male else 0
    f = int(female.group(1)) if female else 0
    if m == 0 and f == 0:
        return None
    return GenderDistribution(male=m, female=f)


# ---------------- Address ----------------

def derive_city_region(address: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    City and region from a comma-separated address.

    Needs at least three parts: the second part is the city and the first
    part containing "რაიონი" is the region.

    Example:
        >>> derive_city_region("საქართველო, თბილისი, ვაკის რაიონი, ჭავჭავაძის 1")
        ('თბილისი', 'ვაკის რაიონი')
    """
    if not address:
        return None, None
    parts = [p.strip() for p in address.split(",")]
    if len(parts) < 3:
        return None, None
    city = parts[1] or None
    region = next((p for p in parts if REGION_MARKER in p), None)
    return city, region


# ---------------- Names ----------------

def _is_name_candidate(line: str) -> bool:
    return line != NO_LOGO_PLACEHOLDER and not PHONE_ONLY_LINE_RE.match(line)


def resolve_names(main_text: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Find the (Georgian, Latin) company names in the main content block.

    Skips the no-logo placeholder and bare phone lines. The first line with
    Georgian script is the Georgian name, the first with Latin letters is
    the Latin name; without a Latin line the first usable line stands in.
    """
    if not main_text:
        return None, None

    lines = [l.strip() for l in main_text.split("\n")]
    lines = [l for l in lines if l and _is_name_candidate(l)]

    georgian = next((l for l in lines if GEORGIAN_RE.search(l)), None)
    latin = next((l for l in lines if LATIN_RE.search(l)), None)
    if latin is None and lines:
        latin = lines[0]
    return georgian, latin


# ---------------- Boilerplate ----------------

def normalize_whitespace(value: Optional[str]) -> str:
    return re.sub(r"\s+", " ", value or "").strip()


def is_negative_boilerplate(value: Optional[str]) -> bool:
    """True for the fixed "does not have / does not use" phrases."""
    return normalize_whitespace(value) in NEGATIVE_BOILERPLATE


def has_useful_text(value: Optional[str]) -> bool:
    """Non-empty and not one of the negative boilerplate phrases."""
    norm = normalize_whitespace(value)
    return bool(norm) and norm not in NEGATIVE_BOILERPLATE
