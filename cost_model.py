"""
Expected typing cost of a swipe keyboard layout.

The cost of a layout has two buckets:

Base cost: movement time to type the corpus, built from one primitive,
    fitts_time(distance, width) = a + b * log2(distance / width + 1)
  - a tap is one movement to the key center
  - a swipe is the same movement, then a second movement of swipe_distance
    in the swipe direction, plus a fixed swipe_constant
  Each bigram (c1, c2) starts from c1's endpoint (key center for a tap,
  the displaced swipe end for a swipe). Characters that start a run after a
  space or other non-alphabet character are typed from the rest point.
  Cost is attributed to the character being typed.

Swipe penalty: a static cost on the layout, for every unordered pair of
  swipe characters:
    penalty_weight * adjacency(key_a, key_b) * combine(P(a), P(b))
  where adjacency is a tunable weighting over key pairs and combine is the
  product (default) or sum of the unigram probabilities.

total is one correctly rounded fsum over every base and penalty attribution,
so fsum of the attributions equals the total exactly.
"""
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Sequence, Tuple

import numpy as np
from numba import jit

from keyboard_geometry import KeyboardGeometry, Role, SWIPE_VECTORS, ConfigurationError, make_neighbor_adjacency
from corpus_stats import CorpusStats
from swipe_layout import Layout

FREQUENCY_COMBINATIONS = {'product': 0, 'sum': 1}


@dataclass
class CostBreakdown:
    total: float
    base_total: float
    penalty_total: float
    base_by_char: Dict[str, float] = field(default_factory=dict)
    penalty_by_pair: Dict[Tuple[str, str], float] = field(default_factory=dict)

    @property
    def penalty_by_char(self) -> Dict[str, float]:
        """Each pair's penalty split evenly between its two characters (reporting only)."""
        by_char = {char: 0.0 for char in self.base_by_char}
        for (a, b), penalty in self.penalty_by_pair.items():
            by_char[a] = by_char.get(a, 0.0) + penalty / 2
            by_char[b] = by_char.get(b, 0.0) + penalty / 2
        return by_char


#-----------------------------------------------------------------------------
# Scoring kernels
#-----------------------------------------------------------------------------
@jit(nopython=True, fastmath=True)
def fitts_time(distance: float, width: float, a: float, b: float) -> float:
    """Movement time to a target of the given width; never below a."""
    return a + b * np.log2(abs(distance) / width + 1.0)


@jit(nopython=True, fastmath=True)
def _arrival_cost(source_x, source_y, target_x, target_y, width, extension, a, b):
    distance = np.sqrt((target_x - source_x) ** 2 + (target_y - source_y) ** 2)
    return fitts_time(distance, width, a, b) + extension


@jit(nopython=True, fastmath=True)
def calculate_base_costs(
    endpoints: np.ndarray,
    centers: np.ndarray,
    widths: np.ndarray,
    extensions: np.ndarray,
    bigrams: np.ndarray,
    starts: np.ndarray,
    rest_point: np.ndarray,
    a: float,
    b: float
) -> np.ndarray:
    """Frequency-weighted cost of arriving at each character, from every predecessor and from rest."""
    n = len(widths)
    costs = np.zeros(n)
    for j in range(n):
        total = 0.0
        if starts[j] > 0:
            total += starts[j] * _arrival_cost(
                rest_point[0], rest_point[1], centers[j, 0], centers[j, 1],
                widths[j], extensions[j], a, b)
        for i in range(n):
            frequency = bigrams[i, j]
            if frequency > 0:
                total += frequency * _arrival_cost(
                    endpoints[i, 0], endpoints[i, 1], centers[j, 0], centers[j, 1],
                    widths[j], extensions[j], a, b)
        costs[j] = total
    return costs


@jit(nopython=True, fastmath=True)
def calculate_swipe_penalties(
    keys: np.ndarray,
    is_swipe: np.ndarray,
    unigrams: np.ndarray,
    adjacency: np.ndarray,
    penalty_weight: float,
    combination: int
) -> np.ndarray:
    """Upper-triangular matrix of penalties between swipe characters i < j."""
    n = len(keys)
    penalties = np.zeros((n, n))
    for i in range(n):
        if not is_swipe[i]:
            continue
        for j in range(i + 1, n):
            if not is_swipe[j]:
                continue
            weight = adjacency[keys[i], keys[j]]
            if weight == 0:
                continue
            if combination == 0:
                frequency = unigrams[i] * unigrams[j]
            else:
                frequency = unigrams[i] + unigrams[j]
            penalties[i, j] = penalty_weight * weight * frequency
    return penalties


@jit(nopython=True, fastmath=True)
def calculate_partial_cost(
    affected: np.ndarray,
    endpoints: np.ndarray,
    centers: np.ndarray,
    widths: np.ndarray,
    extensions: np.ndarray,
    bigrams: np.ndarray,
    starts: np.ndarray,
    rest_point: np.ndarray,
    keys: np.ndarray,
    is_swipe: np.ndarray,
    unigrams: np.ndarray,
    adjacency: np.ndarray,
    penalty_weight: float,
    combination: int,
    a: float,
    b: float
) -> float:
    """Sum of every cost term that involves at least one affected character."""
    n = len(widths)
    total = 0.0
    for j in range(n):
        if affected[j] and starts[j] > 0:
            total += starts[j] * _arrival_cost(
                rest_point[0], rest_point[1], centers[j, 0], centers[j, 1],
                widths[j], extensions[j], a, b)
        for i in range(n):
            if not (affected[i] or affected[j]):
                continue
            frequency = bigrams[i, j]
            if frequency > 0:
                total += frequency * _arrival_cost(
                    endpoints[i, 0], endpoints[i, 1], centers[j, 0], centers[j, 1],
                    widths[j], extensions[j], a, b)
    for i in range(n):
        if not is_swipe[i]:
            continue
        for j in range(i + 1, n):
            if not is_swipe[j] or not (affected[i] or affected[j]):
                continue
            weight = adjacency[keys[i], keys[j]]
            if weight == 0:
                continue
            if combination == 0:
                frequency = unigrams[i] * unigrams[j]
            else:
                frequency = unigrams[i] + unigrams[j]
            total += penalty_weight * weight * frequency
    return total


#-----------------------------------------------------------------------------
# Cost model
#-----------------------------------------------------------------------------
class SwipeCostModel:
    """
    Scores layouts over one alphabet against one corpus.

    Args:
        geometry: key positions and widths
        corpus: frequency tables (read only)
        alphabet: characters every scored layout must place
        fitts_a, fitts_b: movement-time law constants
        swipe_distance: length of the swipe's second movement
        swipe_width: target width of the swipe's second movement (defaults to mean key width)
        swipe_constant: extra time for performing a swipe rather than a tap
        rest_point: where run-initial keystrokes start (defaults to the grid center)
        penalty_weight: scale of the swipe-adjacency penalty
        adjacency: callable (key_a, key_b) -> weight; defaults to same key 1.0, neighbors 0.5
        frequency_combination: 'product' or 'sum' of the two unigram probabilities
    """

    def __init__(
        self,
        geometry: KeyboardGeometry,
        corpus: CorpusStats,
        alphabet: str,
        fitts_a: float = 0.083,
        fitts_b: float = 0.127,
        swipe_distance: float = 0.5,
        swipe_width: float = None,
        swipe_constant: float = 0.05,
        rest_point: Sequence[float] = None,
        penalty_weight: float = 10.0,
        adjacency: Callable[[int, int], float] = None,
        frequency_combination: str = 'product'
    ) -> None:
        if swipe_width is None:
            swipe_width = float(np.mean(geometry.widths))
        for name, value in (('fitts_a', fitts_a), ('fitts_b', fitts_b),
                            ('swipe_distance', swipe_distance),
                            ('swipe_constant', swipe_constant),
                            ('penalty_weight', penalty_weight)):
            if not np.isfinite(value) or value < 0:
                raise ConfigurationError(f"{name} must be finite and non-negative, got {value}")
        if swipe_width <= 0:
            raise ConfigurationError(f"swipe_width must be positive, got {swipe_width}")
        if frequency_combination not in FREQUENCY_COMBINATIONS:
            raise ConfigurationError(
                f"frequency_combination must be one of {list(FREQUENCY_COMBINATIONS)}, "
                f"got {frequency_combination!r}")
        geometry.check_capacity(alphabet)

        self.geometry = geometry
        self.corpus = corpus
        self.alphabet = alphabet
        self.fitts_a = float(fitts_a)
        self.fitts_b = float(fitts_b)
        self.swipe_distance = float(swipe_distance)
        self.swipe_width = float(swipe_width)
        self.swipe_constant = float(swipe_constant)
        self.penalty_weight = float(penalty_weight)
        self.frequency_combination = frequency_combination
        self._combination = FREQUENCY_COMBINATIONS[frequency_combination]
        if rest_point is None:
            rest_point = geometry.grid_center
        self.rest_point = np.array(rest_point, dtype=np.float64)
        if adjacency is None:
            adjacency = make_neighbor_adjacency()
        self.adjacency = geometry.adjacency_matrix(adjacency)

        self.unigrams, self.bigrams, self.starts = corpus.arrays(alphabet)
        self.swipe_extension = (
            fitts_time(self.swipe_distance, self.swipe_width, self.fitts_a, self.fitts_b)
            + self.swipe_constant)

    #-------------------------------------------------------------------------
    # Per-keystroke costs
    #-------------------------------------------------------------------------
    def keystroke_time(self, key: int, role: Role, source: Sequence[float] = None) -> float:
        """
        Isolated cost of one keystroke starting at source (defaults to the rest point):
        one movement to the key for a tap, plus the swipe extension for a swipe.
        """
        if source is None:
            source = self.rest_point
        center = self.geometry.centers[key]
        distance = float(np.hypot(center[0] - source[0], center[1] - source[1]))
        cost = fitts_time(distance, float(self.geometry.widths[key]), self.fitts_a, self.fitts_b)
        if Role(role).is_swipe:
            cost += self.swipe_extension
        return float(cost)

    def _state_arrays(self, keys: np.ndarray, roles: np.ndarray):
        """Positions and per-character constants for characters on the given keys and roles."""
        centers = self.geometry.centers[keys]
        widths = self.geometry.widths[keys]
        vectors = np.array([SWIPE_VECTORS[Role(r)] for r in roles], dtype=np.float64).reshape(-1, 2)
        endpoints = centers + self.swipe_distance * vectors
        is_swipe = roles != Role.TAP
        extensions = np.where(is_swipe, self.swipe_extension, 0.0)
        return endpoints, centers, widths, extensions, is_swipe

    def _layout_keys_roles(self, layout: Layout) -> Tuple[np.ndarray, np.ndarray]:
        if layout.alphabet != self.alphabet:
            raise ValueError(
                f"Layout alphabet {layout.alphabet!r} does not match cost model alphabet {self.alphabet!r}")
        keys = np.zeros(len(self.alphabet), dtype=np.int64)
        roles = np.zeros(len(self.alphabet), dtype=np.int64)
        for i, char in enumerate(self.alphabet):
            key, role = layout.geometry.slots[layout.char_slots[char]]
            keys[i] = key
            roles[i] = int(role)
        return keys, roles

    #-------------------------------------------------------------------------
    # Layout costs
    #-------------------------------------------------------------------------
    def evaluate(self, layout: Layout) -> CostBreakdown:
        keys, roles = self._layout_keys_roles(layout)
        endpoints, centers, widths, extensions, is_swipe = self._state_arrays(keys, roles)

        base_costs = calculate_base_costs(
            endpoints, centers, widths, extensions, self.bigrams, self.starts,
            self.rest_point, self.fitts_a, self.fitts_b)
        penalties = calculate_swipe_penalties(
            keys, is_swipe, self.unigrams, self.adjacency,
            self.penalty_weight, self._combination)

        base_by_char = {char: float(base_costs[i]) for i, char in enumerate(self.alphabet)}
        penalty_by_pair = {}
        for i, j in zip(*np.nonzero(penalties)):
            penalty_by_pair[(self.alphabet[i], self.alphabet[j])] = float(penalties[i, j])

        base_total = math.fsum(base_by_char.values())
        penalty_total = math.fsum(penalty_by_pair.values())
        total = math.fsum(list(base_by_char.values()) + list(penalty_by_pair.values()))
        return CostBreakdown(
            total=total,
            base_total=base_total,
            penalty_total=penalty_total,
            base_by_char=base_by_char,
            penalty_by_pair=penalty_by_pair
        )

    def total_cost(self, layout: Layout) -> float:
        return self.evaluate(layout).total

    def _partial_cost(self, affected: np.ndarray, keys: np.ndarray, roles: np.ndarray) -> float:
        endpoints, centers, widths, extensions, is_swipe = self._state_arrays(keys, roles)
        return calculate_partial_cost(
            affected, endpoints, centers, widths, extensions, self.bigrams, self.starts,
            self.rest_point, keys, is_swipe, self.unigrams, self.adjacency,
            self.penalty_weight, self._combination, self.fitts_a, self.fitts_b)

    def swap_delta(self, layout: Layout, slot_a: int, slot_b: int) -> float:
        """
        Change in total cost if the contents of two slots were exchanged.
        Only terms touching the moved characters are recomputed; the layout
        itself is not modified.
        """
        moved = [c for c in (layout.slot_chars[slot_a], layout.slot_chars[slot_b]) if c is not None]
        if not moved:
            return 0.0
        keys, roles = self._layout_keys_roles(layout)
        affected = np.zeros(len(self.alphabet), dtype=np.bool_)
        for char in moved:
            affected[self.alphabet.index(char)] = True
        before = self._partial_cost(affected, keys, roles)

        new_keys, new_roles = keys.copy(), roles.copy()
        slots = layout.geometry.slots
        for char, new_slot in ((layout.slot_chars[slot_a], slot_b), (layout.slot_chars[slot_b], slot_a)):
            if char is None:
                continue
            i = self.alphabet.index(char)
            new_keys[i], new_roles[i] = slots[new_slot][0], int(slots[new_slot][1])
        after = self._partial_cost(affected, new_keys, new_roles)
        return float(after - before)
