import pytest

from conftest import typesense_response
from typesense_service.core.result_processor import ResultProcessor
from typesense_service.models import SearchDocument


@pytest.fixture
def processor():
    return ResultProcessor()


@pytest.mark.parametrize("found, hits_per_page, expected", [
    (101, 20, 6),
    (100, 20, 5),
    (1, 20, 1),
    (0, 20, 1),
    (None, 20, 1),
    ("42", 10, 5),
    (10**9, 1, 9999),
    (5, 0, 5),
])
def test_compute_nb_pages(processor, found, hits_per_page, expected):
    assert processor.compute_nb_pages(found, hits_per_page) == expected


def test_extract_origin_id(processor):
    assert processor.extract_origin_id("products_abc123", "products") == "abc123"
    assert processor.extract_origin_id("abc123", "products") == "abc123"
    assert processor.extract_origin_id("shop_products_x", "products") == "shop_products_x"


def test_parse_document_keeps_raw_fields_and_aliases_object_id(processor):
    document = processor.parse_document({
        "id": 42,
        "productName": "Linen shirt",
        "price": 19.5,
        "customField": "kept",
    })

    assert document.id == "42"
    assert document.object_id == "42"
    assert document.product_name == "Linen shirt"
    assert document.price == 19.5
    assert document.model_extra["customField"] == "kept"
    assert document.model_dump(by_alias=True, exclude_none=True)["objectID"] == "42"


def test_parse_document_overrides_foreign_object_id(processor):
    document = processor.parse_document({"id": "p1", "objectID": "other"})
    assert document.object_id == "p1"


def test_parse_document_drops_invalid_fields(processor):
    document = processor.parse_document({
        "id": "p1",
        "productName": "Sneakers",
        "price": "not-a-number",
        "imageUrls": "https://cdn.test/a.jpg",
    })

    assert document is not None
    assert document.product_name == "Sneakers"
    assert document.price is None
    assert document.image_urls is None


def test_parse_document_without_id(processor):
    assert processor.parse_document({"productName": "orphan"}) is None
    assert processor.parse_document({"id": ""}) is None


def test_parse_hits_preserves_order_and_skips_broken_hits(processor):
    data = {
        "hits": [
            {"document": {"id": "b"}},
            {"document": {}},
            {},
            {"document": {"id": "a"}},
        ]
    }
    assert [doc.id for doc in processor.parse_hits(data)] == ["b", "a"]
    assert processor.parse_hits(None) == []
    assert processor.parse_hits({"hits": None}) == []


def test_build_page(processor):
    data = typesense_response(
        [{"id": "products_p1"}, {"id": "p2"}],
        found=5,
    )

    page = processor.build_page(data, "products", page=1, hits_per_page=2)

    assert page.ids == ["p1", "p2"]
    assert [doc.id for doc in page.hits] == ["products_p1", "p2"]
    assert page.page == 1
    assert page.nb_pages == 3


def test_empty_page_advertises_current_page(processor):
    page = processor.empty_page(3)
    assert page.ids == [] and page.hits == []
    assert page.nb_pages == 4


def test_parse_facet_counts_filters_empty_values(processor):
    data = typesense_response(facet_counts=[
        {"field_name": "clothingSizes", "counts": [
            {"value": "M", "count": 12},
            {"value": "", "count": 3},
            {"value": "XS", "count": 0},
        ]},
        {"field_name": "jewelryType", "counts": [{"value": "", "count": 1}]},
        {"field_name": "productType", "counts": []},
    ])

    facets = processor.parse_facet_counts(data)

    assert list(facets) == ["clothingSizes"]
    assert [(f.value, f.count) for f in facets["clothingSizes"]] == [("M", 12)]


def test_category_suggestions_most_specific_first_and_deduplicated(processor):
    hits = [
        SearchDocument(
            id="1",
            category="Clothing",
            subcategory="Tops",
            subsubcategory="Shirts",
            category_tr="Giyim",
            subcategory_tr="Üstler",
        ),
        SearchDocument(id="2", category="Clothing", subcategory="Tops", subsubcategory="Shirts"),
        SearchDocument(id="3", category="Clothing", subcategory="Tops"),
        SearchDocument(id="4", subcategory="Orphan"),
    ]

    suggestions = processor.build_category_suggestions(hits, "tr", limit=10)

    assert [(s.level, s.display_name) for s in suggestions] == [
        (2, "Giyim > Üstler > Shirts"),
        (1, "Giyim > Üstler"),
        (0, "Giyim"),
    ]
    assert suggestions[0].category_key == "Clothing"
    assert suggestions[0].subsubcategory_key == "Shirts"
    assert all(s.language == "tr" for s in suggestions)


def test_category_suggestions_respect_limit(processor):
    hits = [SearchDocument(id=str(i), category=f"Cat{i}", subcategory="Sub") for i in range(5)]
    assert len(processor.build_category_suggestions(hits, "en", limit=3)) == 3


@pytest.mark.parametrize("value, expected", [
    (3, 3.0), ("7", 7.0), (None, 0.0), ("abc", 0.0), (float("nan"), 0.0), (True, 1.0),
])
def test_to_number(value, expected):
    assert ResultProcessor.to_number(value) == expected
