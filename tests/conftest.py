import pytest

from keyboard_geometry import KeyboardGeometry
from corpus_stats import CorpusStats
from cost_model import SwipeCostModel
from swipe_layout import LETTERS
from optimize_swipe_layout import normalize_config

SAMPLE_TEXT = """
The quick brown fox jumps over the lazy dog. When you write a message on a phone,
you rarely think about where each letter is. Your hands learn the layout after a
while, and the time it takes to move from one key to the next becomes the main
cost of typing: the, and, that, have, with, this, from, they, would, there.
"""


@pytest.fixture
def geometry():
    return KeyboardGeometry()


@pytest.fixture
def letters_corpus():
    return CorpusStats.from_text(SAMPLE_TEXT, LETTERS)


@pytest.fixture
def letters_model(geometry, letters_corpus):
    return SwipeCostModel(geometry, letters_corpus, LETTERS)


@pytest.fixture
def base_config(tmp_path):
    """A normalized config writing into tmp_path."""
    corpus_file = tmp_path / 'corpus.txt'
    corpus_file.write_text(SAMPLE_TEXT)
    config = {
        'paths': {
            'input': {
                'corpus_file': str(corpus_file),
                'unigram_scores_file': '',
                'bigram_scores_file': '',
            },
            'output': {
                'layout_results_folder': str(tmp_path / 'layouts'),
                'plots_folder': str(tmp_path / 'plots'),
            },
        },
        'keyboard': {'alphabet': 'letters'},
        'cost': {},
        'annealing': {'iterations': 300, 'seed': 7, 'initial_temperature': 0.05},
        'visualization': {'print_keyboard': False, 'plot_history': False},
    }
    (tmp_path / 'layouts').mkdir()
    return normalize_config(config)
