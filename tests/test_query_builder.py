import pytest

from typesense_service.core.query_builder import (
    DEFAULT_QUERY_BY,
    DEFAULT_SORT_EXPRESSION,
    QueryBuilder,
)


@pytest.fixture
def builder():
    return QueryBuilder()


@pytest.mark.parametrize("text", [None, "", "   ", "\t\n"])
def test_blank_query_becomes_match_all(builder, text):
    assert builder.normalize_query(text) == "*"


def test_query_is_trimmed(builder):
    assert builder.normalize_query("  red shoes ") == "red shoes"


@pytest.mark.parametrize("option, expected", [
    ("date", "createdAt:desc"),
    ("alphabetical", "productName:asc"),
    ("price_asc", "price:asc"),
    ("price_desc", "price:desc"),
    ("timestamp", "timestampForSorting:desc"),
    ("unknown", DEFAULT_SORT_EXPRESSION),
    (None, DEFAULT_SORT_EXPRESSION),
])
def test_sort_by(builder, option, expected):
    assert builder.sort_by(option) == expected


def test_equality_filter_strips_quotes(builder):
    assert builder.equality_clause('category:"Clothing"') == "category:=Clothing"
    assert builder.equality_clause("gender: Women ") == "gender:=Women"
    assert builder.equality_clause("no-separator") is None


def test_build_filter_by_joins_with_and(builder):
    assert builder.build_filter_by(['category:"Shoes"', 'gender:"Men"']) == (
        "category:=Shoes && gender:=Men"
    )
    assert builder.build_filter_by([]) is None
    assert builder.build_filter_by(None) is None


def test_facet_group_with_several_values_is_parenthesized(builder):
    clauses = builder.build_facet_filters([["color:red", "color:blue"]])
    assert clauses == ["(color:=red || color:=blue)"]


def test_single_value_facet_group_stays_bare(builder):
    assert builder.build_facet_filters([["brand:Nike"], []]) == ["brand:=Nike"]


def test_field_in(builder):
    assert builder.field_in("cuisineTypes", ["Pizza", "Kebab"]) == (
        "(cuisineTypes:=Pizza || cuisineTypes:=Kebab)"
    )
    assert builder.field_in("cuisineTypes", ["Pizza"]) == "cuisineTypes:=Pizza"
    assert builder.field_in("cuisineTypes", []) is None


def test_numeric_filters_are_converted(builder):
    assert builder.convert_numeric_filters(["price >= 10", "price<200", "quantity = 0"]) == [
        "price:>=10",
        "price:<200",
        "quantity:=0",
    ]


def test_combine_filters_order_and_conjunction(builder):
    combined = builder.combine_filters(
        additional_filter_by=" shopId:=s1 ",
        filters=['gender:"Women"'],
        facet_filters=[["color:red", "color:blue"], ["size:M"]],
        numeric_filters=["price >= 10"],
    )
    assert combined == (
        "shopId:=s1 && gender:=Women && (color:=red || color:=blue) && size:=M && price:>=10"
    )


def test_combine_filters_empty(builder):
    assert builder.combine_filters() is None
    assert builder.combine_filters(additional_filter_by="  ", facet_filters=[[]]) is None


def test_build_search_params_pagination_is_one_based(builder):
    params = builder.build_search_params(
        "",
        sort_by="createdAt:desc",
        page=0,
        hits_per_page=20,
        filter_by="category:=Shoes",
    )
    assert params == {
        "q": "*",
        "query_by": DEFAULT_QUERY_BY,
        "sort_by": "createdAt:desc",
        "per_page": "20",
        "page": "1",
        "filter_by": "category:=Shoes",
    }


def test_build_search_params_omits_unset_values(builder):
    params = builder.build_search_params("shoes", query_by="name", hits_per_page=0, max_facet_values=50)
    assert params == {"q": "shoes", "query_by": "name", "per_page": "0", "max_facet_values": "50"}


def test_default_query_by_covers_localized_categories():
    fields = DEFAULT_QUERY_BY.split(",")
    assert fields[:3] == ["productName", "brandModel", "sellerName"]
    for lang in ("en", "tr", "ru"):
        assert f"subsubcategory_{lang}" in fields
