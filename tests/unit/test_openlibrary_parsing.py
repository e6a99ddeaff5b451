# ABOUTME: Unit tests for Open Library response parsing.
# ABOUTME: Validates edition, search-doc, description and cover URL handling.

from folio.metadata.openlibrary_parser import (
    author_keys,
    build_cover_url,
    normalize_isbn,
    parse_author_name,
    parse_description,
    parse_edition,
    parse_search_doc,
    parse_search_results,
    works_key,
)
from folio.metadata.types import CoverSize
from tests.fixtures.openlibrary_responses import (
    AUTHOR_RESPONSE,
    ISBN_RESPONSE,
    ISBN_RESPONSE_NO_COVER,
    SEARCH_RESPONSE,
    SEARCH_RESPONSE_EMPTY,
    SEARCH_RESPONSE_MINIMAL,
    WORKS_RESPONSE_DICT_DESCRIPTION,
    WORKS_RESPONSE_NO_DESCRIPTION,
    WORKS_RESPONSE_STR_DESCRIPTION,
)


class TestNormalizeIsbn:
    """Tests for ISBN cleanup."""

    def test_strips_hyphens_and_spaces(self) -> None:
        assert normalize_isbn(" 978-0-15-600131-1 ") == "9780156001311"

    def test_strips_urn_prefix(self) -> None:
        assert normalize_isbn("urn:isbn:9780156001311") == "9780156001311"

    def test_uppercases_check_digit(self) -> None:
        assert normalize_isbn("015603297x") == "015603297X"


class TestCoverUrls:
    """Tests for cover URL construction."""

    def test_default_size_is_medium(self) -> None:
        url = build_cover_url("9780156001311")
        assert url == "https://covers.openlibrary.org/b/isbn/9780156001311-M.jpg"

    def test_size_codes(self) -> None:
        assert build_cover_url("978-0156001311", CoverSize.SMALL).endswith("9780156001311-S.jpg")
        assert build_cover_url("9780156001311", CoverSize.LARGE).endswith("-L.jpg")

    def test_empty_isbn_gives_empty_url(self) -> None:
        assert build_cover_url("  ") == ""


class TestParseDescription:
    """Tests for the string-or-dict description quirk."""

    def test_string(self) -> None:
        text = parse_description(WORKS_RESPONSE_STR_DESCRIPTION["description"])
        assert text == "A mystery set in a medieval Italian monastery."

    def test_dict(self) -> None:
        text = parse_description(WORKS_RESPONSE_DICT_DESCRIPTION["description"])
        assert text == "A mystery set in a medieval Italian monastery."

    def test_missing(self) -> None:
        assert parse_description(WORKS_RESPONSE_NO_DESCRIPTION.get("description")) is None
        assert parse_description("") is None
        assert parse_description({"type": "/type/text"}) is None


class TestParseEdition:
    """Tests for ISBN endpoint parsing."""

    def test_fields(self) -> None:
        meta = parse_edition(ISBN_RESPONSE, "9780156001311")
        assert meta.title == "The Name of the Rose"
        assert meta.publisher == "Harcourt"
        assert meta.publish_date == "1983"
        assert meta.isbn_13 == "9780156001311"
        assert meta.isbn_10 == "0156001314"
        assert meta.page_count == 512
        assert meta.language == "eng"
        assert meta.source == "openlibrary"
        assert meta.source_id == "/books/OL24274306M"

    def test_confidence_is_exact(self) -> None:
        """An edition fetched by ISBN is an exact hit."""
        assert parse_edition(ISBN_RESPONSE, "9780156001311").confidence == 1.0

    def test_cover_prefers_cover_id(self) -> None:
        meta = parse_edition(ISBN_RESPONSE, "9780156001311")
        assert meta.cover_url == "https://covers.openlibrary.org/b/id/240727-M.jpg"

    def test_cover_falls_back_to_isbn(self) -> None:
        meta = parse_edition(ISBN_RESPONSE_NO_COVER, "015603297X")
        assert meta.cover_url == "https://covers.openlibrary.org/b/isbn/015603297X-M.jpg"

    def test_source_id_falls_back_to_isbn(self) -> None:
        meta = parse_edition(ISBN_RESPONSE_NO_COVER, "015603297X")
        assert meta.source_id == "isbn:015603297X"

    def test_authors_are_references(self) -> None:
        """Edition authors are resolved separately from their keys."""
        assert parse_edition(ISBN_RESPONSE).authors == ()
        assert author_keys(ISBN_RESPONSE) == ["/authors/OL123A"]

    def test_works_key(self) -> None:
        assert works_key(ISBN_RESPONSE) == "/works/OL456W"
        assert works_key(ISBN_RESPONSE_NO_COVER) is None

    def test_author_name(self) -> None:
        assert parse_author_name(AUTHOR_RESPONSE) == "Umberto Eco"
        assert parse_author_name({"personal_name": "U. Eco"}) == "U. Eco"
        assert parse_author_name({}) == ""


class TestParseSearch:
    """Tests for search.json parsing."""

    def test_first_isbns_kept(self) -> None:
        """The first ISBN-13 and first ISBN-10 are kept, later ones dropped."""
        meta = parse_search_doc(SEARCH_RESPONSE["docs"][0])
        assert meta.isbn_13 == "9780156001311"
        assert meta.isbn_10 == "0156001314"

    def test_subjects_capped(self) -> None:
        meta = parse_search_doc(SEARCH_RESPONSE["docs"][0])
        assert meta.subjects == ("Fiction", "Mystery", "Monasteries", "Italy", "Middle Ages")

    def test_publish_year_and_cover(self) -> None:
        meta = parse_search_doc(SEARCH_RESPONSE["docs"][0])
        assert meta.publish_date == "1980"
        assert meta.cover_url == "https://covers.openlibrary.org/b/id/240727-M.jpg"
        assert meta.authors == ("Umberto Eco",)
        assert meta.source_id == "/works/OL456W"

    def test_cover_from_isbn_when_no_cover_id(self) -> None:
        meta = parse_search_doc(SEARCH_RESPONSE["docs"][1])
        assert meta.cover_url == "https://covers.openlibrary.org/b/isbn/9780151446476-M.jpg"

    def test_results_are_unscored(self) -> None:
        results = parse_search_results(SEARCH_RESPONSE)
        assert len(results) == 2
        assert all(r.confidence == 0.0 for r in results)

    def test_minimal_doc(self) -> None:
        meta = parse_search_results(SEARCH_RESPONSE_MINIMAL)[0]
        assert meta.title == "Minimal Book"
        assert meta.authors == ()
        assert meta.isbn is None
        assert meta.cover_url is None
        assert meta.publish_date is None

    def test_empty(self) -> None:
        assert parse_search_results(SEARCH_RESPONSE_EMPTY) == []
