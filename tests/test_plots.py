import matplotlib
matplotlib.use('Agg')

import numpy as np

from annealer import Annealer, AnnealingSchedule
from swipe_layout import Layout, LETTERS
from plots import plot_cost_history, plot_character_costs, plot_character_frequencies


def test_plot_cost_history(tmp_path, letters_model):
    schedule = AnnealingSchedule(initial_temperature=0.05, iterations=100)
    result = Annealer(letters_model, schedule, np.random.default_rng(0)).run()
    output_path = plot_cost_history([result], tmp_path / 'plots' / 'history.png')
    assert output_path.exists()
    assert output_path.stat().st_size > 0


def test_plot_character_costs(tmp_path, geometry, letters_model):
    breakdown = letters_model.evaluate(Layout.reference(geometry, LETTERS))
    output_path = plot_character_costs(breakdown, tmp_path / 'costs.png')
    assert output_path.exists()


def test_plot_character_frequencies(tmp_path, letters_corpus):
    output_path = plot_character_frequencies(letters_corpus, LETTERS, tmp_path / 'frequencies.png')
    assert output_path.exists()
