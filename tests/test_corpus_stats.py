import pickle

import numpy as np
import pytest

from corpus_stats import CorpusStats, load_corpus_text


def test_from_text_counts_bigrams_and_starts():
    corpus = CorpusStats.from_text("ab ab", "ab")
    assert dict(corpus.unigram_counts) == {'a': 2, 'b': 2}
    assert dict(corpus.bigram_counts) == {('a', 'b'): 2}
    assert dict(corpus.start_counts) == {'a': 2}
    assert corpus.unigram_probability('a') == pytest.approx(0.5)
    assert corpus.bigram_probability('a', 'b') == pytest.approx(0.5)
    assert corpus.start_probability('a') == pytest.approx(0.5)
    assert corpus.bigram_probability('b', 'a') == 0.0


def test_from_text_lowercases_and_breaks_on_other_characters():
    corpus = CorpusStats.from_text("ABxb", "ab")
    assert dict(corpus.unigram_counts) == {'a': 1, 'b': 2}
    assert dict(corpus.bigram_counts) == {('a', 'b'): 1}
    assert dict(corpus.start_counts) == {'a': 1, 'b': 1}


def test_empty_corpus_has_zero_frequencies():
    corpus = CorpusStats({}, {})
    assert corpus.unigram_probability('a') == 0.0
    assert corpus.bigram_probability('a', 'b') == 0.0
    assert corpus.start_probability('a') == 0.0


def test_invalid_counts_raise():
    with pytest.raises(ValueError):
        CorpusStats({'a': -1}, {})
    with pytest.raises(ValueError):
        CorpusStats({}, {('a', 'b'): float('nan')})
    with pytest.raises(ValueError):
        CorpusStats({}, {}, {'a': float('inf')})


def test_counts_are_read_only():
    corpus = CorpusStats({'a': 1}, {})
    with pytest.raises(TypeError):
        corpus.unigram_counts['a'] = 5


def test_arrays_follow_alphabet_order():
    corpus = CorpusStats({'a': 3, 'b': 1, 'z': 4}, {('a', 'b'): 1, ('b', 'a'): 3, ('a', 'z'): 4})
    unigrams, bigrams, starts = corpus.arrays("ba")
    np.testing.assert_allclose(unigrams, [0.125, 0.375])
    assert bigrams.shape == (2, 2)
    assert bigrams[0, 1] == pytest.approx(3 / 8)
    assert bigrams[1, 0] == pytest.approx(1 / 8)
    assert not starts.any()


def test_from_csv(tmp_path):
    unigram_csv = tmp_path / 'unigrams.csv'
    bigram_csv = tmp_path / 'bigrams.csv'
    unigram_csv.write_text("item,score\nA,10\nb,5\nn,1\n")
    bigram_csv.write_text("item_pair,score\nab,3\nBA,1\nna,2\nabc,7\n")

    corpus = CorpusStats.from_csv(str(unigram_csv), str(bigram_csv))
    assert dict(corpus.unigram_counts) == {'a': 10.0, 'b': 5.0, 'n': 1.0}
    assert dict(corpus.bigram_counts) == {('a', 'b'): 3.0, ('b', 'a'): 1.0, ('n', 'a'): 2.0}
    assert corpus.bigram_probability('a', 'b') == pytest.approx(0.5)


def test_load_corpus_text_and_pickle(tmp_path):
    path = tmp_path / 'corpus.txt'
    path.write_text("the then", encoding='utf-8')
    corpus = load_corpus_text(str(path), "ehnt")
    assert corpus.unigram_counts['t'] == 2
    assert corpus.bigram_counts[('t', 'h')] == 2

    restored = pickle.loads(pickle.dumps(corpus))
    assert dict(restored.bigram_counts) == dict(corpus.bigram_counts)
    assert restored.unigram_probability('e') == corpus.unigram_probability('e')
