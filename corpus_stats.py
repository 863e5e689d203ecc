"""
Character and bigram frequencies for scoring layouts.

Counts are held as given and normalized on access:
  - unigram probabilities are counts / total unigram count
  - bigram and start probabilities share one denominator, the number of
    keystroke transitions (bigrams plus run starts), so a corpus without
    start counts has bigram probabilities summing to 1

Characters missing from any table have zero frequency.
"""
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

import numpy as np
import pandas as pd


class CorpusStats:

    def __init__(
        self,
        unigram_counts: Mapping[str, float],
        bigram_counts: Mapping[Tuple[str, str], float],
        start_counts: Mapping[str, float] = None
    ) -> None:
        start_counts = start_counts or {}
        for name, table in (('unigram', unigram_counts), ('bigram', bigram_counts),
                            ('start', start_counts)):
            for key, count in table.items():
                if not np.isfinite(count) or count < 0:
                    raise ValueError(f"Negative or non-finite {name} count for {key!r}: {count}")

        self._unigrams = dict(unigram_counts)
        self._bigrams = {tuple(k): v for k, v in bigram_counts.items()}
        self._starts = dict(start_counts)
        self._unigram_total = float(sum(self._unigrams.values()))
        self._transition_total = float(sum(self._bigrams.values()) + sum(self._starts.values()))

    #-------------------------------------------------------------------------
    # Constructors
    #-------------------------------------------------------------------------
    @classmethod
    def from_text(cls, text: str, alphabet: str) -> "CorpusStats":
        """
        Count characters of the alphabet in lowercased text. Any character
        outside the alphabet (spaces included) breaks the bigram chain, and the
        next alphabet character is counted as a start from the resting point.
        """
        unigrams = {}  # type: Dict[str, int]
        bigrams = {}  # type: Dict[Tuple[str, str], int]
        starts = {}  # type: Dict[str, int]
        previous = None
        for char in text.lower():
            if char not in alphabet:
                previous = None
                continue
            unigrams[char] = unigrams.get(char, 0) + 1
            if previous is None:
                starts[char] = starts.get(char, 0) + 1
            else:
                bigrams[(previous, char)] = bigrams.get((previous, char), 0) + 1
            previous = char
        return cls(unigrams, bigrams, starts)

    @classmethod
    def from_csv(cls, unigram_csv: str, bigram_csv: str) -> "CorpusStats":
        """
        Load frequency tables with columns item,score and item_pair,score.
        Pairs that are not two characters long are skipped with a warning.
        """
        item_df = pd.read_csv(unigram_csv, keep_default_na=False)
        item_pair_df = pd.read_csv(bigram_csv, keep_default_na=False)

        unigrams = {}
        for _, row in item_df.iterrows():
            unigrams[str(row['item']).lower()] = float(row['score'])

        bigrams = {}
        for idx, row in item_pair_df.iterrows():
            item_pair = str(row['item_pair']).lower()
            if len(item_pair) != 2:
                print(f"Warning: skipping item_pair at index {idx}: {item_pair!r}")
                continue
            bigrams[(item_pair[0], item_pair[1])] = float(row['score'])
        return cls(unigrams, bigrams)

    #-------------------------------------------------------------------------
    # Frequencies
    #-------------------------------------------------------------------------
    @property
    def unigram_counts(self) -> Mapping[str, float]:
        return MappingProxyType(self._unigrams)

    @property
    def bigram_counts(self) -> Mapping[Tuple[str, str], float]:
        return MappingProxyType(self._bigrams)

    @property
    def start_counts(self) -> Mapping[str, float]:
        return MappingProxyType(self._starts)

    def unigram_probability(self, char: str) -> float:
        if not self._unigram_total:
            return 0.0
        return self._unigrams.get(char, 0.0) / self._unigram_total

    def bigram_probability(self, first: str, second: str) -> float:
        if not self._transition_total:
            return 0.0
        return self._bigrams.get((first, second), 0.0) / self._transition_total

    def start_probability(self, char: str) -> float:
        if not self._transition_total:
            return 0.0
        return self._starts.get(char, 0.0) / self._transition_total

    def arrays(self, alphabet: str) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Unigram vector, bigram matrix [first, second] and start vector indexed by alphabet position."""
        n = len(alphabet)
        unigrams = np.array([self.unigram_probability(c) for c in alphabet], dtype=np.float64)
        starts = np.array([self.start_probability(c) for c in alphabet], dtype=np.float64)
        bigrams = np.zeros((n, n), dtype=np.float64)
        index = {c: i for i, c in enumerate(alphabet)}
        for (first, second) in self._bigrams:
            if first in index and second in index:
                bigrams[index[first], index[second]] = self.bigram_probability(first, second)
        return unigrams, bigrams, starts


def load_corpus_text(path: str, alphabet: str) -> CorpusStats:
    with open(path, 'r', encoding='utf-8') as f:
        text = f.read()
    return CorpusStats.from_text(text, alphabet)
