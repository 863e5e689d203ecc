import itertools

import numpy as np
import pytest

from keyboard_geometry import KeyboardGeometry, Role, ConfigurationError
from swipe_layout import (
    Layout, LayoutValidationError, LETTERS, SYMBOLS, EMPTY_SLOT,
    resolve_alphabet, visualize_layout
)


def test_resolve_alphabet():
    assert resolve_alphabet('letters') == LETTERS
    assert resolve_alphabet('letters+symbols') == LETTERS + SYMBOLS
    assert resolve_alphabet('xyz') == 'xyz'
    with pytest.raises(ConfigurationError):
        resolve_alphabet('')
    with pytest.raises(ConfigurationError):
        resolve_alphabet('a b')
    with pytest.raises(ConfigurationError):
        resolve_alphabet('ab' + EMPTY_SLOT)


def test_reference_layout_puts_common_letters_on_taps(geometry):
    layout = Layout.reference(geometry, LETTERS)
    taps = ''.join(layout.slot_chars[geometry.slot_index[(key, Role.TAP)]] for key in range(9))
    assert taps == 'etaoinsrh'
    groups = layout.to_string().split()
    assert groups[0] == 'ely__'
    assert groups[8] == 'hw___'
    assert layout.role_of('l') == Role.SWIPE_UP
    assert layout.key_of('z') == 7


def test_reference_layout_orders_unknown_characters_last(geometry):
    layout = Layout.reference(geometry, 'z1q')
    assert layout.slot_of('q') == (0, Role.TAP)
    assert layout.slot_of('z') == (1, Role.TAP)
    assert layout.slot_of('1') == (2, Role.TAP)


def test_layout_string_round_trip(geometry):
    layout = Layout.reference(geometry, LETTERS + SYMBOLS)
    assert Layout.from_string(geometry, LETTERS + SYMBOLS, layout.to_string()) == layout


def test_layout_string_without_center_swipes():
    geometry = KeyboardGeometry(center_key_swipes=False)
    layout = Layout.reference(geometry, LETTERS)
    groups = layout.to_string().split()
    assert groups[4] == 'i'
    assert Layout.from_string(geometry, LETTERS, layout.to_string()) == layout


def test_from_mapping_and_accessors(geometry):
    layout = Layout.from_mapping(geometry, 'ab', {'a': (0, Role.TAP), 'b': (8, Role.SWIPE_LEFT)})
    assert layout.slot_of('b') == (8, Role.SWIPE_LEFT)
    assert layout.key_of('a') == 0
    assert layout.role_of('a') == Role.TAP
    assert sum(c is not None for c in layout.slot_chars) == 2


def test_invalid_layouts_raise(geometry):
    with pytest.raises(LayoutValidationError):
        Layout.from_string(geometry, 'ab', 'a____ b____')
    with pytest.raises(LayoutValidationError):
        Layout.from_string(geometry, 'ab', 'aa___ _____ _____ _____ _____ _____ _____ _____ _____')
    with pytest.raises(LayoutValidationError):
        Layout.from_string(geometry, 'abc', 'ab___ _____ _____ _____ _____ _____ _____ _____ _____')
    with pytest.raises(LayoutValidationError):
        Layout.from_string(geometry, 'ab', 'ab__ _____ _____ _____ _____ _____ _____ _____ _____')
    with pytest.raises(LayoutValidationError):
        Layout.from_mapping(geometry, 'ab', {'a': (0, Role.TAP), 'b': (0, Role.TAP)})
    with pytest.raises(LayoutValidationError):
        Layout.from_mapping(KeyboardGeometry(center_key_swipes=False), 'a',
                            {'a': (4, Role.SWIPE_UP)})
    with pytest.raises(LayoutValidationError):
        Layout.from_mapping(geometry, 'ab', {'a': (0, Role.TAP), 'c': (1, Role.TAP)})


def test_swap_slots_keeps_bijection(geometry):
    layout = Layout.reference(geometry, LETTERS)
    e_slot = layout.char_slots['e']
    t_slot = layout.char_slots['t']
    layout.swap_slots(e_slot, t_slot)
    assert layout.char_slots['e'] == t_slot
    assert layout.char_slots['t'] == e_slot
    layout.validate()

    empty_slot = layout.slot_chars.index(None)
    layout.swap_slots(layout.char_slots['e'], empty_slot)
    assert layout.char_slots['e'] == empty_slot
    assert layout.slot_chars[t_slot] is None
    layout.validate()


@pytest.mark.parametrize("center_key_swipes", [True, False])
def test_every_slot_pair_swap_keeps_bijection(center_key_swipes):
    geometry = KeyboardGeometry(center_key_swipes=center_key_swipes)
    layout = Layout.reference(geometry, LETTERS)
    for i, j in itertools.combinations(range(geometry.capacity), 2):
        before_i, before_j = layout.slot_chars[i], layout.slot_chars[j]
        layout.swap_slots(i, j)
        layout.validate()
        assert layout.slot_chars[i] == before_j
        assert layout.slot_chars[j] == before_i
        assert sorted(c for c in layout.slot_chars if c is not None) == sorted(LETTERS)
        assert all(layout.slot_chars[slot] == char for char, slot in layout.char_slots.items())


def test_copy_is_independent(geometry):
    layout = Layout.reference(geometry, LETTERS)
    duplicate = layout.copy()
    duplicate.swap_slots(0, 5)
    assert duplicate != layout
    layout.validate()
    duplicate.validate()


def test_random_layout_is_reproducible(geometry):
    first = Layout.random(geometry, LETTERS, np.random.default_rng(3))
    second = Layout.random(geometry, LETTERS, np.random.default_rng(3))
    assert first == second
    first.validate()
    assert sorted(first.char_slots) == sorted(LETTERS)


def test_capacity_overflow_raises():
    geometry = KeyboardGeometry(center_key_swipes=False)
    with pytest.raises(ConfigurationError):
        Layout.reference(geometry, LETTERS + SYMBOLS + 'abcdefghij'.upper())


def test_visualize_layout(geometry):
    layout = Layout.reference(geometry, LETTERS)
    grid = visualize_layout(layout, title="Reference")
    lines = grid.splitlines()
    assert "Reference" in lines[1]
    assert len({len(line) for line in lines}) == 1
    assert " E " in grid
    assert "l" in grid
