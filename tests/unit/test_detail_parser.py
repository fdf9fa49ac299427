"""
Unit tests for the company detail page parser.

Uses the saved page in tests/fixtures/company_detail.html plus small
hand-written snippets for individual fallbacks.
"""

import pytest
from bs4 import BeautifulSoup

from src.parsing.detail_parser import (
    build_label_map,
    extract_contacts,
    extract_employees,
    parse_business_detail,
)
from src.storage.models import BusinessRecord, GenderDistribution

URL = "https://www.bia.ge/Company/12345"


def _tab_panel(*pairs):
    rows = "".join(
        f'<div><span class="data-title">{label}</span><span class="data-list">{value}</span></div>'
        for label, value in pairs
    )
    return f'<div id="TabPanelBox">{rows}</div>'


@pytest.fixture
def record(detail_html) -> BusinessRecord:
    return parse_business_detail(detail_html, URL)


class TestFullPage:
    """Parsing the saved restaurant page."""

    def test_identity(self, record):
        assert record.id == "12345"
        assert record.profile_url == URL
        assert record.name == "შპს ტესტ რესტორანი"
        assert record.name_georgian == "შპს ტესტ რესტორანი"

    def test_registration(self, record):
        assert record.tax_payer_id == "404123456"
        assert record.registration_number == "404123456"
        assert record.registration_date == "12/03/2015"
        assert record.status == "აქტიური"
        assert record.legal_form == "შეზღუდული პასუხისმგებლობის საზოგადოება"
        assert record.last_updated == "05/06/2024"
        assert record.is_vat_payer is True

    def test_contacts_table_wins_for_address(self, record):
        assert record.address == "საქართველო, თბილისი, ვაკის რაიონი, ჭავჭავაძის გამზ. 1"
        assert record.city == "თბილისი"
        assert record.region == "ვაკის რაიონი"

    def test_contact_channels(self, record):
        assert record.phone_numbers[:2] == ["+995 322 123456", "+995 599 000111"]
        assert record.emails[0] == "info@test-restaurant.ge"
        assert "giorgi@test-restaurant.ge" in record.emails
        assert record.website == "http://www.test-restaurant.ge"

    def test_lists(self, record):
        assert record.category == "რესტორნები, ბარები | კაფეები"
        assert record.subcategories == ["რესტორნები, ბარები", "კაფეები"]
        assert record.trademarks == ["Test Grill", "Test Cafe", "Test Bar"]
        assert record.certifications == []

    def test_numbers(self, record):
        assert record.employee_count == 45
        assert record.avg_employee_age == 32
        assert record.authorized_capital == 10000
        assert record.corporate_vehicles == 0
        assert record.gender_distribution == GenderDistribution(male=40, female=60)
        assert record.management_avg_salary == "2000-3000 ლარი"
        assert record.employee_avg_salary is None

    def test_service_texts(self, record):
        assert record.banks == "თიბისი ბანკი"
        assert record.insurance == "არ სარგებლობს"
        assert record.courier_service is None

    def test_roster(self, record):
        director, manager = record.contact_persons
        assert director.position == "დირექტორი"
        assert director.name == "გიორგი ბერიძე"
        assert director.personal_id == "01001012345"
        assert director.phone == "+995 555 123456"
        assert director.email == "giorgi@test-restaurant.ge"
        assert manager.position == "მენეჯერი"
        assert manager.name == "ნინო კაპანაძე"
        assert manager.phone is None

    def test_raw_sections_kept(self, record):
        assert "შპს ტესტ რესტორანი" in record.raw_page_content
        assert "404123456" in record.raw_tab_panel_content
        assert record.extra_fields["labelMap"]["სტატუსი:"] == "აქტიური"


class TestLabelMap:
    """Tests for build_label_map."""

    def test_repeated_labels_are_joined(self, detail_html):
        labels = build_label_map(BeautifulSoup(detail_html, "html.parser"))
        assert labels["სავაჭრო მარკები:"] == "Test Grill || Test Cafe | Test Bar"

    def test_list_values_are_piped(self, detail_html):
        labels = build_label_map(BeautifulSoup(detail_html, "html.parser"))
        assert labels["საქმიანობის კატეგორიები:"] == "რესტორნები, ბარები | კაფეები"

    def test_empty_values_left_out(self, detail_html):
        labels = build_label_map(BeautifulSoup(detail_html, "html.parser"))
        assert "სერტიფიკატები:" not in labels

    def test_title_without_value(self):
        html = (
            '<div id="TabPanelBox"><div>'
            '<span class="data-title">სტატუსი:</span>'
            '<span class="data-title">ბანკები:</span><span class="data-list">ბანკი</span>'
            '</div></div>'
        )
        labels = build_label_map(BeautifulSoup(html, "html.parser"))
        assert labels == {"ბანკები:": "ბანკი"}

    def test_inline_markup_in_title_and_value(self):
        html = (
            '<div id="TabPanelBox"><div>'
            '<div class="data-title"><span>საიდენტიფიკაციო კოდი</span>:</div>'
            '<div class="data-list"><b>404</b>123456</div>'
            '</div></div>'
        )
        labels = build_label_map(BeautifulSoup(html, "html.parser"))
        assert labels == {"საიდენტიფიკაციო კოდი:": "404123456"}
        assert parse_business_detail(html, URL).tax_payer_id == "404123456"


class TestSectionText:
    """Main content and tab panel text follow innerText line breaks."""

    def test_inline_markup_stays_on_one_line(self):
        html = (
            '<div id="PageContent">'
            '<h1>შპს <b>ტესტ</b> რესტორანი</h1>'
            '<h2><span>Test</span> Restaurant LLC</h2>'
            '</div>'
        )
        record = parse_business_detail(html, URL)
        assert record.name_georgian == "შპს ტესტ რესტორანი"
        assert record.raw_page_content == "შპს ტესტ რესტორანი\nTest Restaurant LLC"

    def test_br_and_blocks_break_lines(self):
        html = (
            '<div id="PageContent"><p>პირველი<br>მეორე</p>'
            '<div>მესამე <i>ხაზი</i></div><script>var x = 1;</script></div>'
        )
        record = parse_business_detail(html, URL)
        assert record.raw_page_content == "პირველი\nმეორე\nმესამე ხაზი"


class TestTaxIdResolution:
    """Label map first, free-text regex second."""

    def test_from_label(self):
        html = _tab_panel(("საიდენტიფიკაციო კოდი:", "123456789"))
        record = parse_business_detail(html, URL)
        assert record.tax_payer_id == "123456789"
        assert record.registration_number == "123456789"

    def test_from_text(self):
        html = '<div id="PageContent">საიდენტიფიკაციო კოდი: 987654321</div>'
        assert parse_business_detail(html, URL).tax_payer_id == "987654321"

    def test_label_beats_text(self):
        html = (
            '<div id="PageContent">საიდენტიფიკაციო კოდი: 111</div>'
            + _tab_panel(("საიდენტიფიკაციო კოდი:", "222"))
        )
        assert parse_business_detail(html, URL).tax_payer_id == "222"

    def test_registration_number_label(self):
        html = _tab_panel(
            ("საიდენტიფიკაციო კოდი:", "123456789"),
            ("რეგისტრაციის ნომერი:", "RN-42"),
        )
        assert parse_business_detail(html, URL).registration_number == "RN-42"


class TestFallbacks:
    """Values recovered from free text or alternate labels."""

    def test_legal_address_when_no_contacts(self):
        html = _tab_panel(("იურიდიული მისამართი:", "საქართველო, ქუთაისი, ავტოქარხნის რაიონი, 3"))
        record = parse_business_detail(html, URL)
        assert record.address == "საქართველო, ქუთაისი, ავტოქარხნის რაიონი, 3"
        assert record.city == "ქუთაისი"
        assert record.region == "ავტოქარხნის რაიონი"

    def test_gender_from_text(self):
        html = '<div id="PageContent">გენდერული განაწილება (კაცი): 70 %</div>'
        record = parse_business_detail(html, URL)
        assert record.gender_distribution == GenderDistribution(male=70, female=0)

    def test_no_gender_anywhere(self):
        html = _tab_panel(("სტატუსი:", "აქტიური"))
        assert parse_business_detail(html, URL).gender_distribution is None

    def test_vat_not_payer(self):
        html = _tab_panel(("დღგ-ს გადამხდელი:", "არ არის"))
        assert parse_business_detail(html, URL).is_vat_payer is False

    def test_vat_from_text(self):
        html = '<div id="TabPanelBox">დღგ-ს გადამხდელი: არ არის</div>'
        assert parse_business_detail(html, URL).is_vat_payer is False

    def test_vehicles_with_count_left_unset(self):
        html = _tab_panel(("კორპორატიული ავტომობილები:", "3"))
        assert parse_business_detail(html, URL).corporate_vehicles is None


class TestTotality:
    """The parser returns a full record for any input."""

    @pytest.mark.parametrize("html", [
        None,
        "",
        "<html></html>",
        "<div id='TabPanelBox'><span class='data-title'>",
        "not html at all <<<>>>",
        "<div id='ContactsBox'><table class='body'><tbody><tr><td>x</td></tr></tbody></table></div>",
    ])
    def test_never_raises(self, html):
        record = parse_business_detail(html, URL)
        assert isinstance(record, BusinessRecord)
        assert record.profile_url == URL
        assert record.tax_payer_id is None
        assert record.phone_numbers == []
        assert record.contact_persons == []
        assert record.gender_distribution is None

    def test_failing_section_is_logged(self, detail_html, monkeypatch):
        from src.core.error_logger import get_error_logger
        from src.parsing import detail_parser

        def broken(soup):
            raise ValueError("roster markup changed")

        monkeypatch.setattr(detail_parser, "extract_employees", broken)
        record = parse_business_detail(detail_html, URL)

        assert record.contact_persons == []
        assert record.tax_payer_id == "404123456"
        logged = get_error_logger().read_today()[-1]
        assert logged["stage"] == "parse_detail"
        assert logged["error_type"] == "parse_error"
        assert logged["metadata"] == {"section": "Management roster"}

    def test_all_keys_present(self):
        empty = parse_business_detail("", URL).to_json_dict()
        reference = BusinessRecord(profile_url=URL).to_json_dict()
        assert set(empty) == set(reference)
        assert empty["taxPayerId"] is None
        assert empty["isVATPayer"] is None
        assert empty["trademarks"] == []


class TestSections:
    """Roster and contacts readers on their own."""

    def test_roster_empty_without_section(self):
        assert extract_employees(BeautifulSoup("<div></div>", "html.parser")) == []

    def test_contacts_skip_empty_rows(self, detail_html):
        block = extract_contacts(BeautifulSoup(detail_html, "html.parser"), URL)
        assert block.address.startswith("საქართველო, თბილისი")
        assert block.phones == ["+995 322 123456", "+995 599 000111"]
        assert block.emails == ["info@test-restaurant.ge"]

    def test_relative_website_is_resolved(self):
        html = (
            '<div id="ContactsBox"><table class="body"><tbody><tr>'
            '<td class="data-icon"><img data-title="ვებ-საიტი"></td>'
            '<td class="data-list"><a href="/Redirect?to=site">site</a></td>'
            '</tr></tbody></table></div>'
        )
        block = extract_contacts(BeautifulSoup(html, "html.parser"), URL)
        assert block.website == "https://www.bia.ge/Redirect?to=site"
