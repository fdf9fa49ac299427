"""
Company detail page parser.

Turns the HTML snapshot of one bia.ge company page into a BusinessRecord.

Three raw sources are read from the DOM, each on its own so a missing
section never hides the others:
- the main content text (#PageContent) and the tab panel text (#TabPanelBox)
- the label map: every "#TabPanelBox .data-title" paired with the next
  sibling carrying the "data-list" class
- the management roster and the contacts table

Structured values (label map, contacts table) always win; the combined
free text is only searched when the structured value is missing.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from src.core.error_logger import get_error_logger
from src.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from src.core.logging import get_logger
from src.parsing.fields import (
    LABELS,
    SERVICE_TEXT_FIELDS,
    AVG_AGE_TEXT_RE,
    EMAIL_RE,
    LAST_UPDATED_TEXT_RE,
    PERSON_PHONE_RE,
    REGISTRATION_NUMBER_TEXT_RE,
    TAX_ID_TEXT_RE,
    VAT_TEXT_RE,
    dedupe_non_empty,
    derive_city_region,
    extract_company_id,
    extract_emails,
    extract_phone_numbers,
    gender_from_text,
    normalize_whitespace,
    parse_gender_distribution,
    parse_integer,
    parse_vat_status,
    regex_group,
    resolve,
    resolve_names,
    split_list,
    split_nested_list,
)
from src.storage.models import BusinessRecord, ContactPerson

logger = get_logger(__name__)

# Contact row kinds, keyed by the icon's data-title
CONTACT_ADDRESS = "მისამართი"
CONTACT_PHONE = "ტელეფონი"
CONTACT_EMAIL = "იმეილი"
CONTACT_WEBSITE = "ვებ-საიტი"

PERSONAL_ID_PREFIX = "პირადი ნომერი:"
NO_VEHICLES = "არ აქვს"

BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "dd", "div", "dl", "dt",
    "fieldset", "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6",
    "header", "hr", "li", "main", "nav", "ol", "p", "pre", "section", "table",
    "tbody", "thead", "tfoot", "tr", "ul",
})
CELL_TAGS = frozenset({"td", "th"})
HIDDEN_TAGS = frozenset({"script", "style", "noscript", "template", "head", "title"})

LABEL_SELECTOR = "#TabPanelBox .data-title"
ROSTER_SELECTOR = "#tpManagement .employees-box ul.data-list.with-bullets > li"
CONTACT_ROW_SELECTOR = "#ContactsBox table.body tbody tr"


@dataclass
class ContactBlock:
    """Values read from the #ContactsBox table."""
    address: Optional[str] = None
    phones: List[str] = field(default_factory=list)
    emails: List[str] = field(default_factory=list)
    website: Optional[str] = None


def _classes(tag: Tag) -> List[str]:
    return tag.get("class") or []


def _walk_text(node: Tag, parts: List[str]) -> None:
    for child in node.children:
        if isinstance(child, NavigableString):
            if not isinstance(child, PreformattedString):
                parts.append(str(child))
            continue
        if not isinstance(child, Tag) or child.name in HIDDEN_TAGS:
            continue
        if child.name == "br":
            parts.append("\n")
        elif child.name in BLOCK_TAGS:
            parts.append("\n")
            _walk_text(child, parts)
            parts.append("\n")
        elif child.name in CELL_TAGS:
            parts.append(" ")
            _walk_text(child, parts)
            parts.append(" ")
        else:
            _walk_text(child, parts)


def _inner_text(tag: Optional[Tag]) -> Optional[str]:
    """
    Approximate innerText.

    Inline markup joins into its line; block elements and <br> break lines.
    Whitespace inside a line is collapsed and blank lines are dropped.
    """
    if tag is None:
        return None
    parts: List[str] = []
    _walk_text(tag, parts)
    lines = (normalize_whitespace(line) for line in "".join(parts).split("\n"))
    text = "\n".join(line for line in lines if line)
    return text or None


def _flat_text(tag: Tag) -> str:
    """Single-line text of an element, inline markup joined without separators."""
    return normalize_whitespace(tag.get_text(""))


def _section_text(soup: BeautifulSoup, selector: str) -> Optional[str]:
    try:
        return _inner_text(soup.select_one(selector))
    except Exception as e:
        logger.debug(f"Section {selector} unreadable: {e}")
        return None


# ---------------- Label map ----------------

def _collect_value(title: Tag) -> str:
    for sibling in title.find_next_siblings():
        classes = _classes(sibling)
        if "data-list" in classes:
            if sibling.name == "ul":
                items = [_flat_text(li) for li in sibling.find_all("li")]
                return " | ".join(items)
            return _flat_text(sibling)
        if "data-title" in classes:
            break
    return ""


def build_label_map(soup: BeautifulSoup) -> Dict[str, str]:
    """
    Map each tab-panel label to its value.

    A label that occurs more than once keeps every value, joined by " || ".
    Labels without a value are left out.

    Args:
        soup: Parsed detail page

    Returns:
        Dict of label (trailing colon included) -> whitespace-normalized value
    """
    labels: Dict[str, str] = {}
    for node in soup.select(LABEL_SELECTOR):
        label = _flat_text(node)
        if not label:
            continue
        value = normalize_whitespace(_collect_value(node))
        if not value:
            continue
        if label in labels:
            labels[label] = f"{labels[label]} || {value}"
        else:
            labels[label] = value
    return labels


# ---------------- Management roster ----------------

def _roster_entry(li: Tag) -> ContactPerson:
    title = li.select_one(".sub-data-title .title")
    role = None
    if title is not None:
        role = _flat_text(title).rstrip(":").strip() or None

    texts = [_flat_text(t) for t in li.select(".sub-data-title .text")]
    name = (texts[0] or None) if texts else None

    personal_id = None
    for text in texts:
        if text.startswith(PERSONAL_ID_PREFIX):
            personal_id = text.split(":", 1)[1].strip() or None

    email = phone = None
    sub_list = li.select_one(".sub-data-list")
    if sub_list is not None:
        sub_text = _flat_text(sub_list)
        m = EMAIL_RE.search(sub_text)
        if m:
            email = m.group(0)
        m = PERSON_PHONE_RE.search(sub_text)
        if m:
            phone = m.group(0).strip()

    return ContactPerson(
        position=role,
        name=name,
        personal_id=personal_id,
        phone=phone,
        email=email,
    )


def extract_employees(soup: BeautifulSoup) -> List[ContactPerson]:
    """One ContactPerson per management roster entry, in page order."""
    return [_roster_entry(li) for li in soup.select(ROSTER_SELECTOR)]


# ---------------- Contacts table ----------------

def extract_contacts(soup: BeautifulSoup, base_url: str) -> ContactBlock:
    """
    Read the contacts table.

    Rows are classified by the icon's data-title; rows without a value cell
    or with an empty one are skipped.
    """
    block = ContactBlock()
    for row in soup.select(CONTACT_ROW_SELECTOR):
        icon = row.select_one("td.data-icon img")
        kind = (icon.get("data-title") or "") if icon is not None else ""
        cell = row.select_one("td.data-list")
        if cell is None:
            continue
        text = _flat_text(cell)
        if not text:
            continue

        if kind == CONTACT_ADDRESS:
            block.address = text
        elif kind == CONTACT_PHONE:
            links = cell.select("a[href^='tel:']")
            if links:
                block.phones.extend(_flat_text(a) for a in links)
            else:
                block.phones.append(text)
        elif kind == CONTACT_EMAIL:
            links = cell.select("a[href^='mailto:']")
            if links:
                block.emails.extend(_flat_text(a) for a in links)
            else:
                block.emails.append(text)
        elif kind == CONTACT_WEBSITE:
            link = cell.select_one("a[href]")
            if link is not None:
                block.website = urljoin(base_url, link["href"])
            else:
                block.website = "".join(text.split()).rstrip('"')

    block.phones = dedupe_non_empty(block.phones)
    block.emails = dedupe_non_empty(block.emails)
    return block


def _safe(label: str, url: str, fn, default):
    try:
        return fn()
    except Exception as e:
        logger.debug(f"{label} extraction failed: {e}")
        get_error_logger().log_exception(
            e,
            component=ErrorComponent.DETAIL,
            stage=ErrorStage.PARSE_DETAIL,
            url=url,
            severity=ErrorSeverity.WARNING,
            error_type=ErrorType.PARSE_ERROR,
            metadata={"section": label},
        )
        return default


# ---------------- Record assembly ----------------

def parse_business_detail(html: Optional[str], url: str) -> BusinessRecord:
    """
    Parse a detail page snapshot into a BusinessRecord.

    Never raises for malformed or empty HTML: every section that cannot be
    read contributes nothing and the affected fields stay None / [].

    Args:
        html: page.content() of the loaded detail page
        url: Resolved page URL (page.url), stored as profile_url

    Returns:
        BusinessRecord with every field present
    """
    soup = BeautifulSoup(html or "", "html.parser")

    page_text = _section_text(soup, "#PageContent")
    tab_text = _section_text(soup, "#TabPanelBox")
    labels = _safe("Label map", url, lambda: build_label_map(soup), {})
    employees = _safe("Management roster", url, lambda: extract_employees(soup), [])
    contacts = _safe("Contacts", url, lambda: extract_contacts(soup, url), ContactBlock())

    combined = "\n\n".join(t for t in (page_text, tab_text) if t)
    label = labels.get

    name_georgian, name_latin = resolve_names(page_text)

    tax_payer_id = resolve(label(LABELS.TAX_ID), regex_group(TAX_ID_TEXT_RE), combined)
    registration_number = resolve(
        label(LABELS.REGISTRATION_NUMBER),
        regex_group(REGISTRATION_NUMBER_TEXT_RE),
        combined,
    ) or tax_payer_id

    legal_address = label(LABELS.LEGAL_ADDRESS_TYPO) or label(LABELS.LEGAL_ADDRESS)
    address = contacts.address or legal_address
    city, region = derive_city_region(address)

    is_vat_payer = resolve(
        parse_vat_status(label(LABELS.VAT_PAYER)),
        lambda t: parse_vat_status(regex_group(VAT_TEXT_RE)(t)),
        combined,
    )
    last_updated = resolve(
        label(LABELS.LAST_UPDATED), regex_group(LAST_UPDATED_TEXT_RE), combined
    )
    avg_employee_age = resolve(
        parse_integer(label(LABELS.AVG_AGE)),
        lambda t: parse_integer(regex_group(AVG_AGE_TEXT_RE)(t)),
        combined,
    )
    gender = resolve(
        parse_gender_distribution(label(LABELS.GENDER_MALE), label(LABELS.GENDER_FEMALE)),
        gender_from_text,
        combined,
    )

    vehicles_raw = label(LABELS.CORPORATE_VEHICLES)
    corporate_vehicles = 0 if vehicles_raw and NO_VEHICLES in vehicles_raw else None

    category = label(LABELS.CATEGORIES)

    service_texts = {attr: label(key) for attr, key in SERVICE_TEXT_FIELDS.items()}

    record = BusinessRecord(
        id=extract_company_id(url),
        name=name_georgian or name_latin,
        name_georgian=name_georgian,
        tax_payer_id=tax_payer_id,
        legal_form=label(LABELS.LEGAL_FORM),
        registration_number=registration_number,
        registration_date=label(LABELS.REGISTRATION_DATE),
        registration_authority=label(LABELS.REGISTRATION_AUTHORITY),
        status=label(LABELS.STATUS),
        work_hours=label(LABELS.WORK_HOURS),
        trademarks=split_nested_list(label(LABELS.TRADEMARKS)),
        brands=split_nested_list(label(LABELS.BRANDS)),
        category=category,
        subcategories=split_list(category),
        service_categories=split_list(label(LABELS.SERVICE_CATEGORIES)),
        nace2004=split_list(label(LABELS.NACE_2004)),
        nace2016=split_list(label(LABELS.NACE_2016)),
        branches_raw=label(LABELS.BRANCHES_RAW),
        service_centers_raw=label(LABELS.SERVICE_CENTERS_RAW),
        tenders=label(LABELS.TENDERS),
        tenders_history=label(LABELS.TENDERS_HISTORY),
        phone_numbers=dedupe_non_empty(contacts.phones + extract_phone_numbers(combined)),
        emails=dedupe_non_empty(contacts.emails + extract_emails(combined)),
        website=contacts.website,
        address=address,
        city=city,
        region=region,
        contact_persons=employees,
        employee_count=parse_integer(label(LABELS.EMPLOYEE_COUNT)),
        temporary_employees=parse_integer(label(LABELS.TEMPORARY_EMPLOYEES)),
        branches=parse_integer(label(LABELS.BRANCHES_COUNT)),
        service_centers=parse_integer(label(LABELS.SERVICE_CENTERS_COUNT)),
        company_size=label(LABELS.COMPANY_SIZE),
        authorized_capital=parse_integer(label(LABELS.AUTHORIZED_CAPITAL)),
        is_vat_payer=is_vat_payer,
        management_avg_salary=label(LABELS.MANAGEMENT_AVG_SALARY),
        middle_avg_salary=label(LABELS.MIDDLE_AVG_SALARY),
        lower_avg_salary=label(LABELS.LOWER_AVG_SALARY),
        turnover_range=label(LABELS.TURNOVER_RANGE),
        corporate_vehicles=corporate_vehicles,
        computers=parse_integer(label(LABELS.COMPUTERS)),
        avg_employee_age=avg_employee_age,
        gender_distribution=gender,
        parent_companies=label(LABELS.PARENT_COMPANIES),
        subsidiary_companies=label(LABELS.SUBSIDIARY_COMPANIES),
        founders=split_nested_list(label(LABELS.FOUNDERS)),
        certifications=split_list(label(LABELS.CERTIFICATIONS)),
        profile_url=url,
        last_updated=last_updated,
        raw_page_content=page_text,
        raw_tab_panel_content=tab_text,
        extra_fields={"labelMap": labels},
        **service_texts,
    )

    logger.debug(
        f"Parsed {url}: {len(labels)} labels, {len(employees)} roster entries, "
        f"{len(record.phone_numbers)} phones"
    )
    return record
