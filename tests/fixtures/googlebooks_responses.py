# ABOUTME: Canned Google Books API response fixtures for testing.
# ABOUTME: Shaped like /books/v1/volumes results for ISBN and title/author queries.

VOLUME_ITEM = {
    "kind": "books#volume",
    "id": "gbROSE01",
    "volumeInfo": {
        "title": "The Name of the Rose",
        "subtitle": "A Novel",
        "authors": ["Umberto Eco"],
        "publisher": "Houghton Mifflin Harcourt",
        "publishedDate": "2014-04-01",
        "description": "<p>The <b>bestselling</b> mystery.</p>",
        "industryIdentifiers": [
            {"type": "ISBN_10", "identifier": "0544176561"},
            {"type": "ISBN_13", "identifier": "978-0544176560"},
        ],
        "pageCount": 592,
        "categories": ["Fiction / Mystery & Detective / Historical", "Fiction / Literary"],
        "imageLinks": {
            "smallThumbnail": "http://books.google.com/books/content?id=gbROSE01&zoom=5",
            "thumbnail": "http://books.google.com/books/content?id=gbROSE01&zoom=1",
        },
        "language": "en",
    },
}

VOLUME_ITEM_SPARSE = {
    "id": "gbSPARSE",
    "volumeInfo": {
        "title": "Baudolino",
        "description": "   ",
    },
}

ISBN_RESPONSE = {
    "kind": "books#volumes",
    "totalItems": 1,
    "items": [VOLUME_ITEM],
}

SEARCH_RESPONSE = {
    "kind": "books#volumes",
    "totalItems": 2,
    "items": [
        VOLUME_ITEM_SPARSE,
        VOLUME_ITEM,
    ],
}

EMPTY_RESPONSE = {
    "kind": "books#volumes",
    "totalItems": 0,
}
