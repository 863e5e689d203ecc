"""
Physical model of a 9-key swipe keyboard.

Keys are arranged in a 3x3 grid, indexed 0-8 left-to-right, top-to-bottom:

╭─────┬─────┬─────╮
│  0  │  1  │  2  │
├─────┼─────┼─────┤
│  3  │  4  │  5  │
├─────┼─────┼─────┤
│  6  │  7  │  8  │
╰─────┴─────┴─────╯

Each key holds one tap character and up to four swipe characters
(up, down, left, right). Screen coordinates are used, so y grows downward.
"""
import enum
from typing import Callable, List, Sequence, Tuple

import numpy as np

N_KEYS = 9
N_COLS = 3
CENTER_KEY = 4


class ConfigurationError(ValueError):
    """Raised when a configuration cannot describe a valid search."""


class Role(enum.IntEnum):
    TAP = 0
    SWIPE_UP = 1
    SWIPE_DOWN = 2
    SWIPE_LEFT = 3
    SWIPE_RIGHT = 4

    @property
    def is_swipe(self) -> bool:
        return self != Role.TAP


N_ROLES = len(Role)

SWIPE_VECTORS = {
    Role.TAP: (0.0, 0.0),
    Role.SWIPE_UP: (0.0, -1.0),
    Role.SWIPE_DOWN: (0.0, 1.0),
    Role.SWIPE_LEFT: (-1.0, 0.0),
    Role.SWIPE_RIGHT: (1.0, 0.0),
}

# (key, role)
Slot = Tuple[int, Role]


def key_row_col(key: int) -> Tuple[int, int]:
    return key // N_COLS, key % N_COLS


def chebyshev_distance(key_a: int, key_b: int) -> int:
    """Grid distance where diagonal neighbors count as distance 1."""
    row_a, col_a = key_row_col(key_a)
    row_b, col_b = key_row_col(key_b)
    return max(abs(row_a - row_b), abs(col_a - col_b))


#-----------------------------------------------------------------------------
# Adjacency weighting functions
#-----------------------------------------------------------------------------
def same_key_adjacency(key_a: int, key_b: int) -> float:
    return 1.0 if key_a == key_b else 0.0


def make_neighbor_adjacency(neighbor_weight: float = 0.5) -> Callable[[int, int], float]:
    """
    Weight 1.0 for swipes on the same key, `neighbor_weight` for keys sharing
    a side or corner, and 0.0 otherwise.
    """
    def neighbor_adjacency(key_a: int, key_b: int) -> float:
        distance = chebyshev_distance(key_a, key_b)
        if distance == 0:
            return 1.0
        if distance == 1:
            return float(neighbor_weight)
        return 0.0
    return neighbor_adjacency


def get_adjacency_function(mode: str, neighbor_weight: float = 0.5) -> Callable[[int, int], float]:
    if mode == 'same_key':
        return same_key_adjacency
    if mode == 'neighbors':
        return make_neighbor_adjacency(neighbor_weight)
    raise ConfigurationError(f"Unknown adjacency mode: {mode!r} (expected 'same_key' or 'neighbors')")


#-----------------------------------------------------------------------------
# Keyboard geometry
#-----------------------------------------------------------------------------
class KeyboardGeometry:
    """
    Key centers, widths and the slots available for characters.

    Args:
        key_spacing: distance between neighboring key centers
        key_width: target width used by the movement-time law
        key_widths: optional per-key widths overriding key_width
        center_key_swipes: whether the center key takes swipe characters
    """

    def __init__(
        self,
        key_spacing: float = 1.0,
        key_width: float = 1.0,
        key_widths: Sequence[float] = None,
        center_key_swipes: bool = True
    ) -> None:
        if key_spacing <= 0:
            raise ConfigurationError(f"key_spacing must be positive, got {key_spacing}")
        if key_widths is None:
            key_widths = [key_width] * N_KEYS
        if len(key_widths) != N_KEYS:
            raise ConfigurationError(f"key_widths must list {N_KEYS} widths, got {len(key_widths)}")
        if any(w <= 0 for w in key_widths):
            raise ConfigurationError(f"Key widths must be positive: {list(key_widths)}")

        self.key_spacing = float(key_spacing)
        self.center_key_swipes = bool(center_key_swipes)
        self.widths = np.array(key_widths, dtype=np.float64)

        # Column/row centers on a regular grid
        self.centers = np.zeros((N_KEYS, 2), dtype=np.float64)
        for key in range(N_KEYS):
            row, col = key_row_col(key)
            self.centers[key] = (col * self.key_spacing, row * self.key_spacing)

        self.slots = [
            (key, role) for key in range(N_KEYS) for role in Role
            if self.has_slot(key, role)
        ]  # type: List[Slot]
        self.slot_index = {slot: i for i, slot in enumerate(self.slots)}

    @property
    def capacity(self) -> int:
        return len(self.slots)

    @property
    def grid_center(self) -> Tuple[float, float]:
        return tuple(self.centers[CENTER_KEY])

    def has_slot(self, key: int, role: Role) -> bool:
        if not 0 <= key < N_KEYS:
            return False
        if key == CENTER_KEY and role != Role.TAP:
            return self.center_key_swipes
        return True

    def endpoint(self, key: int, role: Role, swipe_distance: float) -> np.ndarray:
        """Where a keystroke ends: the key center for a tap, displaced for a swipe."""
        dx, dy = SWIPE_VECTORS[Role(role)]
        return self.centers[key] + swipe_distance * np.array((dx, dy))

    def adjacency_matrix(self, adjacency: Callable[[int, int], float]) -> np.ndarray:
        """Evaluate an adjacency weighting function over all key pairs."""
        matrix = np.zeros((N_KEYS, N_KEYS), dtype=np.float64)
        for key_a in range(N_KEYS):
            for key_b in range(N_KEYS):
                matrix[key_a, key_b] = adjacency(key_a, key_b)
        if np.any(matrix < 0) or not np.all(np.isfinite(matrix)):
            raise ConfigurationError("Adjacency weights must be finite and non-negative")
        return matrix

    def check_capacity(self, alphabet: str) -> None:
        if len(set(alphabet)) != len(alphabet):
            raise ConfigurationError(f"Duplicate characters in alphabet: {alphabet!r}")
        if len(alphabet) > self.capacity:
            raise ConfigurationError(
                f"Alphabet has {len(alphabet)} characters but the keyboard only has "
                f"{self.capacity} (key, role) slots"
            )
