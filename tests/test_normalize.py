import pytest

from peoplegraph.normalize import first_or_none, normalize_photo, normalize_text


@pytest.mark.parametrize("raw,expected", [
    ("  Ada ", "Ada"),
    ("", None),
    ("None", None),
    ("nan", None),
    (None, None),
    (["Engineer", "Poet"], "Engineer"),
    ([], None),
    (1815, "1815"),
])
def test_normalize_text(raw, expected):
    assert normalize_text(raw) == expected


@pytest.mark.parametrize("raw,expected", [
    ("https://example.com/a.jpg", "https://example.com/a.jpg"),
    ([{"url": "https://example.com/a.jpg", "thumbnails": {}}], "https://example.com/a.jpg"),
    ({"url": "https://example.com/b.jpg"}, "https://example.com/b.jpg"),
    ([], None),
    ([{"filename": "no-url.jpg"}], None),
    (None, None),
])
def test_normalize_photo(raw, expected):
    assert normalize_photo(raw) == expected


@pytest.mark.parametrize("raw,expected", [
    (["recA", "recB"], "recA"),
    ("recA", "recA"),
    ([], None),
    (None, None),
    ("", None),
])
def test_first_or_none(raw, expected):
    assert first_or_none(raw) == expected
