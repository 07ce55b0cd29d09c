import random
from collections import Counter

import pytest

from case_api import DENOMINATIONS, ContainerPool, GameRules, InvalidSelection


def build_pool(seed: int, item_count=None, rules=None) -> ContainerPool:
    pool = ContainerPool(rules or GameRules(), random.Random(seed))
    pool.build(item_count)
    return pool


@pytest.mark.parametrize("seed", range(25))
def test_build_assigns_every_denomination_once(seed: int) -> None:
    pool = build_pool(seed)

    assert len(pool.containers) == len(DENOMINATIONS)
    assert [container.index for container in pool.containers] == list(range(26))

    numeric = [c.value for c in pool.containers if c.value is not None]
    replaced = [c.replaced_value for c in pool.containers if c.replaced_value is not None]
    assert len(numeric) == len(set(numeric))
    assert Counter(numeric + replaced) == Counter(DENOMINATIONS)


@pytest.mark.parametrize("seed", range(40))
def test_items_are_bounded_and_never_replace_extremes(seed: int) -> None:
    pool = build_pool(seed)

    items = [c for c in pool.containers if c.is_item]
    assert 0 <= len(items) <= 3
    for container in items:
        assert container.item_label
        assert container.replaced_value not in (min(DENOMINATIONS), max(DENOMINATIONS))
    for container in pool.containers:
        if not container.is_item:
            assert container.item_label == ""
            assert container.replaced_value is None


def test_item_count_can_be_forced() -> None:
    pool = build_pool(7, item_count=3)
    assert sum(1 for c in pool.containers if c.is_item) == 3

    pool.build(0)
    assert not any(c.is_item for c in pool.containers)


def test_item_count_outside_range_is_rejected() -> None:
    pool = ContainerPool(GameRules(), random.Random(1))
    with pytest.raises(ValueError):
        pool.build(4)


def test_opening_item_cases_marks_replaced_denominations() -> None:
    pool = build_pool(11, item_count=3)
    pool.select(next(c.index for c in pool.containers if not c.is_item))

    item_cases = [c for c in pool.containers if c.is_item]
    for container in item_cases:
        content = pool.open(container.index)
        assert content.is_item
        assert content.label == f"Item: {container.item_label}"

    expected = {c.replaced_value for c in item_cases}
    assert pool.opened_denominations == expected
    assert len(expected) == 3
    assert min(DENOMINATIONS) not in expected
    assert max(DENOMINATIONS) not in expected
    assert all(entry.opened == entry.item_price for entry in pool.sidebar())


def test_open_rejects_player_case_and_reopening() -> None:
    pool = build_pool(3, item_count=0)
    pool.select(5)

    with pytest.raises(InvalidSelection) as excinfo:
        pool.open(5)
    assert excinfo.value.reason == "player_case"

    pool.open(6)
    with pytest.raises(InvalidSelection) as excinfo:
        pool.open(6)
    assert excinfo.value.reason == "already_opened"
    assert pool.containers[6].opened

    with pytest.raises(InvalidSelection) as excinfo:
        pool.open(26)
    assert excinfo.value.reason == "out_of_range"


def test_select_only_once() -> None:
    pool = build_pool(3)
    pool.select(0)
    with pytest.raises(InvalidSelection) as excinfo:
        pool.select(1)
    assert excinfo.value.reason == "already_picked"
    assert pool.player_index == 0


def test_remaining_values_include_player_and_skip_items() -> None:
    pool = build_pool(5, item_count=2)
    pool.select(0)
    opened = [index for index in range(1, 26) if not pool.containers[index].is_item][:4]
    for index in opened:
        pool.open(index)

    expected = [
        c.value
        for c in pool.containers
        if not c.opened and c.value is not None
    ]
    assert pool.remaining_values() == expected
    assert pool.unopened_count() == 25 - len(opened)
    assert pool.unopened_count(exclude_player=False) == 26 - len(opened)
    if pool.containers[0].value is not None:
        assert pool.containers[0].value in pool.remaining_values()
        assert pool.containers[0].value not in pool.remaining_values(include_player=False)


def test_swap_exchanges_contents() -> None:
    pool = build_pool(9, item_count=1)
    item = next(c for c in pool.containers if c.is_item)
    other = next(c for c in pool.containers if not c.is_item)
    item_state = (item.value, item.item_label, item.replaced_value)
    other_state = (other.value, other.item_label, other.replaced_value)

    pool.swap(item.index, other.index)

    assert (other.value, other.item_label, other.replaced_value) == item_state
    assert (item.value, item.item_label, item.replaced_value) == other_state


def test_swap_rejects_opened_or_same_target() -> None:
    pool = build_pool(2, item_count=0)
    pool.select(0)
    pool.open(1)
    before = [c.value for c in pool.containers]

    with pytest.raises(InvalidSelection) as excinfo:
        pool.swap(0, 1)
    assert excinfo.value.reason == "already_opened"
    with pytest.raises(InvalidSelection) as excinfo:
        pool.swap(0, 0)
    assert excinfo.value.reason == "same_case"
    assert [c.value for c in pool.containers] == before


def test_grid_marks_player_and_opened_cases() -> None:
    pool = build_pool(4)
    pool.select(2)
    pool.open(3)

    cells = pool.grid()
    assert cells[2].is_player and not cells[2].enabled
    assert cells[3].opened and not cells[3].enabled
    assert cells[4].enabled


def test_rules_validation() -> None:
    with pytest.raises(ValueError):
        GameRules(denominations=(1, 1, 5))
    with pytest.raises(ValueError):
        GameRules(denominations=(1, 5, 10), max_items=2)
    with pytest.raises(ValueError):
        GameRules(swap_probability=1.5)
    with pytest.raises(ValueError):
        GameRules(offer_factor_range=(0.9, 0.6))
