"""
Swipe keyboard layouts: a bijection from the active alphabet to (key, role) slots.

A layout is held as two synchronized structures:
  - slot_chars: list indexed by slot number, the character in that slot or None
  - char_slots: dict mapping each character to its slot number
Both are only ever changed together, by swap_slots().

Layout strings list 9 space-separated key groups in key order, each group
giving the tap, up, down, left and right characters, with '_' for an empty slot.
When the center key takes no swipes, its group is a single character.
"""
import string
from typing import Dict, List, Optional

import numpy as np

from keyboard_geometry import (
    KeyboardGeometry, Role, Slot, N_KEYS, ConfigurationError
)

EMPTY_SLOT = '_'
LETTERS = string.ascii_lowercase
SYMBOLS = ".,'?!-"
ALPHABETS = {
    'letters': LETTERS,
    'letters+symbols': LETTERS + SYMBOLS,
}

# Most to least common in English text
ENGLISH_FREQUENCY_ORDER = "etaoinsrhldcumfpgwybvkxjqz.,'?!-"


class LayoutValidationError(ValueError):
    """Raised when a layout is not a bijection over the active alphabet."""


def resolve_alphabet(alphabet: str) -> str:
    """Accept a named alphabet ('letters', 'letters+symbols') or an explicit string."""
    alphabet = ALPHABETS.get(alphabet, alphabet)
    if not alphabet:
        raise ConfigurationError("Alphabet is empty")
    if EMPTY_SLOT in alphabet or any(c.isspace() for c in alphabet):
        raise ConfigurationError(f"Alphabet may not contain whitespace or {EMPTY_SLOT!r}: {alphabet!r}")
    return alphabet


class Layout:

    def __init__(self, geometry: KeyboardGeometry, alphabet: str,
                 slot_chars: List[Optional[str]]) -> None:
        self.geometry = geometry
        self.alphabet = alphabet
        self.slot_chars = list(slot_chars)
        self.char_slots = {}  # type: Dict[str, int]
        for i, char in enumerate(self.slot_chars):
            if char is None:
                continue
            if char not in alphabet:
                raise LayoutValidationError(f"Character {char!r} is not in the alphabet {alphabet!r}")
            if char in self.char_slots:
                raise LayoutValidationError(f"Character {char!r} is assigned to more than one slot")
            self.char_slots[char] = i
        self.validate()

    #-------------------------------------------------------------------------
    # Constructors
    #-------------------------------------------------------------------------
    @classmethod
    def from_mapping(cls, geometry: KeyboardGeometry, alphabet: str,
                     mapping: Dict[str, Slot]) -> "Layout":
        slot_chars = [None] * geometry.capacity
        for char, (key, role) in mapping.items():
            slot = (key, Role(role))
            if slot not in geometry.slot_index:
                raise LayoutValidationError(f"Key {key} has no {Role(role).name} slot")
            i = geometry.slot_index[slot]
            if slot_chars[i] is not None:
                raise LayoutValidationError(
                    f"Slot {slot} holds both {slot_chars[i]!r} and {char!r}")
            slot_chars[i] = char
        return cls(geometry, alphabet, slot_chars)

    @classmethod
    def from_string(cls, geometry: KeyboardGeometry, alphabet: str, layout_string: str) -> "Layout":
        groups = layout_string.split()
        if len(groups) != N_KEYS:
            raise LayoutValidationError(f"Layout string needs {N_KEYS} key groups, got {len(groups)}")
        mapping = {}
        for key, group in enumerate(groups):
            roles = [role for role in Role if geometry.has_slot(key, role)]
            if len(group) != len(roles):
                raise LayoutValidationError(
                    f"Key {key} group {group!r} should have {len(roles)} characters")
            for role, char in zip(roles, group):
                if char == EMPTY_SLOT:
                    continue
                if char in mapping:
                    raise LayoutValidationError(f"Character {char!r} is assigned to more than one slot")
                mapping[char] = (key, role)
        return cls.from_mapping(geometry, alphabet, mapping)

    @classmethod
    def reference(cls, geometry: KeyboardGeometry, alphabet: str) -> "Layout":
        """
        Frequency-ordered starting layout: the most common characters take the
        tap slots, the rest fill swipe slots one direction at a time across keys.
        """
        geometry.check_capacity(alphabet)
        rank = {c: i for i, c in enumerate(ENGLISH_FREQUENCY_ORDER)}
        ordered = sorted(alphabet, key=lambda c: (rank.get(c, len(rank)), alphabet.index(c)))
        fill_order = [
            (key, role) for role in Role for key in range(N_KEYS)
            if geometry.has_slot(key, role)
        ]
        return cls.from_mapping(geometry, alphabet, dict(zip(ordered, fill_order)))

    @classmethod
    def random(cls, geometry: KeyboardGeometry, alphabet: str,
               rng: np.random.Generator) -> "Layout":
        geometry.check_capacity(alphabet)
        order = rng.permutation(geometry.capacity)
        slot_chars = [None] * geometry.capacity
        for char, i in zip(alphabet, order):
            slot_chars[int(i)] = char
        return cls(geometry, alphabet, slot_chars)

    #-------------------------------------------------------------------------
    # Access and mutation
    #-------------------------------------------------------------------------
    def slot_of(self, char: str) -> Slot:
        return self.geometry.slots[self.char_slots[char]]

    def key_of(self, char: str) -> int:
        return self.slot_of(char)[0]

    def role_of(self, char: str) -> Role:
        return self.slot_of(char)[1]

    def swap_slots(self, i: int, j: int) -> None:
        """Exchange the contents of two slots; either may be empty."""
        char_i, char_j = self.slot_chars[i], self.slot_chars[j]
        self.slot_chars[i], self.slot_chars[j] = char_j, char_i
        if char_i is not None:
            self.char_slots[char_i] = j
        if char_j is not None:
            self.char_slots[char_j] = i

    def copy(self) -> "Layout":
        duplicate = Layout.__new__(Layout)
        duplicate.geometry = self.geometry
        duplicate.alphabet = self.alphabet
        duplicate.slot_chars = list(self.slot_chars)
        duplicate.char_slots = dict(self.char_slots)
        return duplicate

    def validate(self) -> None:
        """Check the bijection invariant."""
        if len(self.slot_chars) != self.geometry.capacity:
            raise LayoutValidationError(
                f"Layout has {len(self.slot_chars)} slots, geometry has {self.geometry.capacity}")
        missing = [c for c in self.alphabet if c not in self.char_slots]
        if missing:
            raise LayoutValidationError(f"Characters without a slot: {''.join(missing)}")
        for char, i in self.char_slots.items():
            if self.slot_chars[i] != char:
                raise LayoutValidationError(f"Slot index out of sync for {char!r}")
        occupied = sum(1 for c in self.slot_chars if c is not None)
        if occupied != len(self.alphabet):
            raise LayoutValidationError(
                f"{occupied} occupied slots for {len(self.alphabet)} characters")

    def to_string(self) -> str:
        groups = []
        for key in range(N_KEYS):
            group = ""
            for role in Role:
                if self.geometry.has_slot(key, role):
                    char = self.slot_chars[self.geometry.slot_index[(key, role)]]
                    group += char if char is not None else EMPTY_SLOT
            groups.append(group)
        return " ".join(groups)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Layout):
            return NotImplemented
        return (self.alphabet == other.alphabet and
                self.slot_chars == other.slot_chars)

    def __repr__(self) -> str:
        return f"Layout({self.to_string()!r})"


#-----------------------------------------------------------------------------
# Visualizing functions
#-----------------------------------------------------------------------------
def visualize_layout(layout: Layout, title: str = "Layout") -> str:
    """
    Box-drawn 3x3 grid; each key shows its up swipe on top, left/tap/right
    in the middle and its down swipe below. Tap characters are uppercase.
    """
    def char(key: int, role: Role) -> str:
        if not layout.geometry.has_slot(key, role):
            return ' '
        c = layout.slot_chars[layout.geometry.slot_index[(key, role)]]
        if c is None:
            return ' '
        return c.upper() if role == Role.TAP else c

    lines = [
        "╭─────────────────────────────╮",
        f"│ {title[:27]:<27} │",
        "├─────────┬─────────┬─────────┤",
    ]
    for row in range(3):
        keys = [row * 3 + col for col in range(3)]
        lines.append("│" + "│".join(f"    {char(k, Role.SWIPE_UP)}    " for k in keys) + "│")
        lines.append("│" + "│".join(
            f"  {char(k, Role.SWIPE_LEFT)} {char(k, Role.TAP)} {char(k, Role.SWIPE_RIGHT)}  "
            for k in keys) + "│")
        lines.append("│" + "│".join(f"    {char(k, Role.SWIPE_DOWN)}    " for k in keys) + "│")
        if row < 2:
            lines.append("├─────────┼─────────┼─────────┤")
    lines.append("╰─────────┴─────────┴─────────╯")
    return "\n".join(lines)
