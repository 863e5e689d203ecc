import string

import numpy as np
import pytest

from keyboard_geometry import (
    KeyboardGeometry, Role, ConfigurationError, N_KEYS, CENTER_KEY,
    chebyshev_distance, same_key_adjacency, make_neighbor_adjacency, get_adjacency_function
)


def test_capacity_with_and_without_center_swipes():
    assert KeyboardGeometry().capacity == 45
    geometry = KeyboardGeometry(center_key_swipes=False)
    assert geometry.capacity == 41
    assert geometry.has_slot(CENTER_KEY, Role.TAP)
    assert not geometry.has_slot(CENTER_KEY, Role.SWIPE_UP)
    assert geometry.has_slot(0, Role.SWIPE_UP)


def test_slots_are_key_major_and_indexed():
    geometry = KeyboardGeometry()
    assert geometry.slots[0] == (0, Role.TAP)
    assert geometry.slots[1] == (0, Role.SWIPE_UP)
    assert geometry.slots[5] == (1, Role.TAP)
    for i, slot in enumerate(geometry.slots):
        assert geometry.slot_index[slot] == i


def test_centers_follow_grid_and_spacing():
    geometry = KeyboardGeometry(key_spacing=2.0)
    assert tuple(geometry.centers[0]) == (0.0, 0.0)
    assert tuple(geometry.centers[5]) == (4.0, 2.0)
    assert tuple(geometry.centers[8]) == (4.0, 4.0)
    assert geometry.grid_center == (2.0, 2.0)


def test_swipe_endpoints_use_screen_coordinates():
    geometry = KeyboardGeometry()
    np.testing.assert_allclose(geometry.endpoint(4, Role.TAP, 0.5), (1.0, 1.0))
    np.testing.assert_allclose(geometry.endpoint(4, Role.SWIPE_UP, 0.5), (1.0, 0.5))
    np.testing.assert_allclose(geometry.endpoint(4, Role.SWIPE_DOWN, 0.5), (1.0, 1.5))
    np.testing.assert_allclose(geometry.endpoint(4, Role.SWIPE_LEFT, 0.5), (0.5, 1.0))
    np.testing.assert_allclose(geometry.endpoint(4, Role.SWIPE_RIGHT, 0.5), (1.5, 1.0))


def test_chebyshev_distance():
    assert chebyshev_distance(0, 0) == 0
    assert chebyshev_distance(0, 4) == 1
    assert chebyshev_distance(1, 3) == 1
    assert chebyshev_distance(0, 8) == 2
    assert chebyshev_distance(3, 5) == 2


def test_adjacency_functions():
    neighbors = make_neighbor_adjacency(0.5)
    assert neighbors(2, 2) == 1.0
    assert neighbors(0, 4) == 0.5
    assert neighbors(0, 2) == 0.0
    assert same_key_adjacency(3, 3) == 1.0
    assert same_key_adjacency(3, 4) == 0.0
    assert get_adjacency_function('same_key') is same_key_adjacency
    assert get_adjacency_function('neighbors', 0.25)(0, 1) == 0.25
    with pytest.raises(ConfigurationError):
        get_adjacency_function('diagonal')


def test_adjacency_matrix():
    geometry = KeyboardGeometry()
    matrix = geometry.adjacency_matrix(make_neighbor_adjacency())
    assert matrix.shape == (N_KEYS, N_KEYS)
    assert np.all(np.diag(matrix) == 1.0)
    assert np.allclose(matrix, matrix.T)
    with pytest.raises(ConfigurationError):
        geometry.adjacency_matrix(lambda a, b: -1.0)


def test_invalid_geometry_raises():
    with pytest.raises(ConfigurationError):
        KeyboardGeometry(key_spacing=0)
    with pytest.raises(ConfigurationError):
        KeyboardGeometry(key_widths=[1.0] * 8)
    with pytest.raises(ConfigurationError):
        KeyboardGeometry(key_width=0.0)


def test_check_capacity():
    geometry = KeyboardGeometry()
    geometry.check_capacity(string.ascii_lowercase)
    with pytest.raises(ConfigurationError):
        geometry.check_capacity("abca")
    with pytest.raises(ConfigurationError):
        geometry.check_capacity(string.ascii_letters[:46])
    with pytest.raises(ConfigurationError):
        KeyboardGeometry(center_key_swipes=False).check_capacity(string.ascii_letters[:42])
