import pytest

from numbermatch.constants import (
    DIFFICULTY_CONFIGS,
    FALLBACK_COLOR,
    NUMBER_VALUES,
    VALUE_CATALOG,
    Difficulty,
    format_number,
    get_difficulty_config,
    is_legal_value,
    parse_difficulty,
    tile_color,
)


def test_catalog_covers_powers_of_two_up_to_a_million():
    assert NUMBER_VALUES[0] == 2
    assert NUMBER_VALUES[-1] == 1048576
    assert len(NUMBER_VALUES) == 20
    assert set(VALUE_CATALOG) == set(NUMBER_VALUES)


@pytest.mark.parametrize("value,label", [
    (2, "2"),
    (1024, "1024"),
    (2048, "2K"),
    (65536, "64K"),
    (131072, "131K"),
    (1048576, "1M"),
])
def test_labels_abbreviate_large_values(value, label):
    assert format_number(value) == label


def test_unknown_value_formats_as_plain_number_and_fallback_color():
    assert format_number(3) == "3"
    assert format_number(2097152) == "2097152"
    assert tile_color(3) == FALLBACK_COLOR
    assert tile_color(2) == (74, 144, 164)


def test_legal_value_check():
    assert is_legal_value(64)
    assert not is_legal_value(0)
    assert not is_legal_value(96)


def test_milestone_flags_on_catalog_entries():
    assert VALUE_CATALOG[128].grants_power_up
    assert not VALUE_CATALOG[256].grants_power_up
    assert VALUE_CATALOG[131072].eliminates == 2
    assert VALUE_CATALOG[1048576].eliminates == 16
    assert VALUE_CATALOG[2048].eliminates is None


def test_catalog_is_read_only():
    with pytest.raises(TypeError):
        VALUE_CATALOG[3] = VALUE_CATALOG[2]


def test_difficulty_table_and_fallback():
    kids = get_difficulty_config(Difficulty.KIDS)
    assert (kids.rows, kids.cols) == (5, 4)
    assert kids.power_up_multiplier == 1.2
    hard = get_difficulty_config("hard")
    assert (hard.rows, hard.cols) == (7, 5)
    assert hard.power_up_multiplier == 0.7
    assert parse_difficulty("impossible") is Difficulty.NORMAL
    assert get_difficulty_config(None) is DIFFICULTY_CONFIGS[Difficulty.NORMAL]
