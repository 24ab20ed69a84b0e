import pytest

from core.encodings import (
    PERFORMANCE_GROUPS,
    TABLEAU10,
    count_domain,
    country_color_scale,
    medal_color_scale,
    nice_upper,
    ordinal_colors,
    performance_group,
    rank_domain,
    rank_scale,
)


@pytest.mark.parametrize("maximum, expected", [(1, 1), (4, 4), (7, 7), (23, 24), (97, 100), (131, 140), (0, 0)])
def test_nice_upper(maximum, expected):
    assert nice_upper(maximum) == expected


def test_count_domain():
    assert count_domain([3, 23, None, 7]) == (0, 24)
    assert count_domain([]) == (0, 1)
    assert count_domain([0, 0]) == (0, 1)


def test_rank_domain_defaults_to_one():
    assert rank_domain([None, 4, 2, None]) == (1, 4)
    assert rank_domain([]) == (1, 1)
    assert rank_domain([None]) == (1, 1)


@pytest.mark.parametrize(
    "rank, expected",
    [(1, "Top"), (3, "Top"), (4, "Middle"), (8, "Middle"), (9, "Low"), (40, "Low"), (None, "Low")],
)
def test_performance_group_boundaries(rank, expected):
    assert performance_group(rank) == expected


def test_performance_group_is_a_partition():
    for rank in [None] + list(range(1, 60)):
        group = performance_group(rank)
        assert [g for g in PERFORMANCE_GROUPS if g == group] == [group]


def test_rank_scale_is_reversed():
    scale = rank_scale([5, 2, None])
    assert scale.domain == (1, 5)
    assert scale.reverse is True
    alt_scale = scale.to_altair().to_dict()
    assert alt_scale["reverse"] is True
    assert alt_scale["domain"] == [1, 5]


def test_country_colors_cycle_through_palette():
    countries = [f"C{i}" for i in range(12)]
    colors = ordinal_colors(countries, TABLEAU10)
    assert colors["C0"] == TABLEAU10[0]
    assert colors["C10"] == TABLEAU10[0]
    assert colors["C11"] == TABLEAU10[1]

    scale = country_color_scale(["Australia", "Canada", "Australia"])
    assert scale.domain == ("Australia", "Canada")
    assert scale.range == (TABLEAU10[0], TABLEAU10[1])


def test_medal_palette_is_fixed():
    scale = medal_color_scale()
    assert scale.as_dict()["domain"] == ["gold", "silver", "bronze"]
    assert scale.as_dict()["range"] == ["#FFD700", "#C0C0C0", "#CD7F32"]
