# ABOUTME: Unit tests for the comic filename heuristic parser.
# ABOUTME: Real-world scene filenames with expected series, issue, volume, year and title.

import pytest

from folio.formats.filename import ISSUE_PATTERNS, FilenameInfo, parse_comic_filename

FILENAME_CASES = [
    # (filename, series, issue, volume, year)
    ("Batman 001.cbz", "Batman", "001", 0, 0),
    ("Batman #1.cbz", "Batman", "1", 0, 0),
    ("Amazing Spider-Man #500.cbz", "Amazing Spider-Man", "500", 0, 0),
    ("Batman 001 (2020).cbz", "Batman", "001", 0, 2020),
    ("Batman #1 (Jan 2020).cbz", "Batman", "1", 0, 2020),
    ("Batman Vol. 2 #1.cbz", "Batman", "1", 2, 0),
    ("Batman v3 001.cbz", "Batman", "001", 3, 0),
    ("Batman 001 (2020) (Digital) (Zone-Empire).cbz", "Batman", "001", 0, 2020),
    ("The Walking Dead 100 (2012) (Digital-Empire).cbz", "The Walking Dead", "100", 0, 2012),
    (
        "Amazing Spider-Man v5 001 (2018) (Digital) (Zone-Empire).cbz",
        "Amazing Spider-Man",
        "001",
        5,
        2018,
    ),
    ("X-Men - Red #1 (2022).cbr", "X-Men - Red", "1", 0, 2022),
    ("Saga 054 (2018) (Digital) (Mephisto-Empire).cbz", "Saga", "054", 0, 2018),
    ("Y - The Last Man 001 (2002).cbz", "Y - The Last Man", "001", 0, 2002),
    ("100 Bullets 001.cbz", "100 Bullets", "001", 0, 0),
    ("Hellboy No. 5 (1995).cbz", "Hellboy", "5", 0, 1995),
    ("Saga 7 (2013).cbz", "Saga", "7", 0, 2013),
]


class TestParseComicFilename:
    """Tests for parse_comic_filename() against scene-style names."""

    @pytest.mark.parametrize(
        ("filename", "series", "issue", "volume", "year"), FILENAME_CASES
    )
    def test_fields(
        self, filename: str, series: str, issue: str, volume: int, year: int
    ) -> None:
        """Series, issue, volume and year are recovered."""
        info = parse_comic_filename(filename)
        assert info.series == series
        assert info.issue_number == issue
        assert info.volume == volume
        assert info.year == year

    @pytest.mark.parametrize(
        ("filename", "title"),
        [
            ("Batman 001 (2020) (Digital).cbz", "Batman #001 (2020)"),
            (
                "Amazing Spider-Man Vol. 2 #15 (2019) (Digital-Empire).cbz",
                "Amazing Spider-Man Vol. 2 #15 (2019)",
            ),
            ("Watchmen.cbz", "Watchmen"),
        ],
    )
    def test_display_title(self, filename: str, title: str) -> None:
        """The display title is composed from the recovered parts."""
        assert parse_comic_filename(filename).title == title

    def test_raw_filename_preserved(self) -> None:
        """The original filename is kept verbatim."""
        name = "Batman 001 (2020) (Digital).cbz"
        assert parse_comic_filename(name).raw_filename == name

    def test_fractional_issue(self) -> None:
        """Decimal issues keep their text and parse to a float."""
        info = parse_comic_filename("Invincible #12.5 (2004).cbz")
        assert info.issue_number == "12.5"
        assert info.issue_float == 12.5

    def test_padded_issue_float(self) -> None:
        """Zero-padded issues keep their padding in text only."""
        info = parse_comic_filename("Batman 001 (2020).cbz")
        assert info.issue_float == 1.0

    def test_out_of_range_year_ignored(self) -> None:
        """A parenthesized number outside 1900..2100 is not a year."""
        assert parse_comic_filename("Batman #1 (1850).cbz").year == 0

    def test_bracketed_year(self) -> None:
        """Square-bracketed years are recognised."""
        assert parse_comic_filename("Batman #1 [1989].cbz").year == 1989

    def test_no_structure_yields_empty_fields(self) -> None:
        """A bare name gives a series and nothing else."""
        info = parse_comic_filename("Watchmen.cbz")
        assert info == FilenameInfo(
            series="Watchmen",
            title="Watchmen",
            issue_number="",
            issue_float=0.0,
            volume=0,
            year=0,
            raw_filename="Watchmen.cbz",
        )

    @pytest.mark.parametrize("filename", ["", ".cbz", "(2020).cbz", "###", "   "])
    def test_never_raises(self, filename: str) -> None:
        """Degenerate input returns a FilenameInfo instead of raising."""
        assert isinstance(parse_comic_filename(filename), FilenameInfo)

    def test_extension_is_case_insensitive(self) -> None:
        """Upper-case extensions are stripped too."""
        assert parse_comic_filename("Saga 054.CBZ").series == "Saga"


class TestIssuePatterns:
    """Tests for the ordered issue pattern table."""

    def test_hash_pattern_wins_over_padded(self) -> None:
        """The first matching pattern in table order decides the issue."""
        labels = [label for label, _pattern in ISSUE_PATTERNS]
        assert labels.index("hash") < labels.index("padded")
        assert parse_comic_filename("Batman 100 #7.cbz").issue_number == "7"
