import argparse
from pathlib import Path
from typing import List

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from corpus_stats import CorpusStats
from cost_model import CostBreakdown


def plot_cost_history(results: List, output_path) -> Path:
    """Current and best-so-far cost per iteration for each annealing chain."""
    print("Generating cost history plot...")
    plt.figure(figsize=(15, 8))
    sns.set_style("whitegrid")
    palette = sns.color_palette(n_colors=max(len(results), 1))

    for color, result in zip(palette, results):
        if not result.history:
            continue
        iterations, _, current, best = zip(*result.history)
        plt.plot(iterations, current, color=color, alpha=0.25)
        plt.plot(iterations, best, color=color, linewidth=2, label=f"Chain {result.chain} best")

    plt.title('Annealing Cost History', fontsize=14, pad=20)
    plt.xlabel('Iteration', fontsize=12)
    plt.ylabel('Cost', fontsize=12)
    if results:
        plt.legend()

    plt.tight_layout()
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, dpi=300, bbox_inches='tight')
    print(f"Saved cost history plot to: {output_path.absolute()}")
    plt.close()
    return output_path

def plot_character_costs(breakdown: CostBreakdown, output_path) -> Path:
    """Stacked bars of movement cost and attributed swipe penalty per character."""
    print("Generating character cost plot...")
    plt.figure(figsize=(15, 8))
    sns.set_style("whitegrid")

    penalty_by_char = breakdown.penalty_by_char
    chars = sorted(breakdown.base_by_char,
                   key=lambda c: breakdown.base_by_char[c] + penalty_by_char.get(c, 0.0),
                   reverse=True)
    base = np.array([breakdown.base_by_char[c] for c in chars])
    penalty = np.array([penalty_by_char.get(c, 0.0) for c in chars])

    positions = np.arange(len(chars))
    plt.bar(positions, base, label='Movement')
    plt.bar(positions, penalty, bottom=base, label='Swipe penalty')
    plt.xticks(positions, [c.upper() for c in chars])

    plt.title(f'Cost per Character (total {breakdown.total:.4f})', fontsize=14, pad=20)
    plt.xlabel('Character', fontsize=12)
    plt.ylabel('Cost', fontsize=12)
    plt.legend()

    plt.tight_layout()
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, dpi=300, bbox_inches='tight')
    print(f"Saved character cost plot to: {output_path.absolute()}")
    plt.close()
    return output_path

def plot_character_frequencies(corpus: CorpusStats, alphabet: str, output_path) -> Path:
    print("Generating character frequencies plot...")
    plt.figure(figsize=(15, 8))
    sns.set_style("whitegrid")

    chars = sorted(alphabet, key=corpus.unigram_probability, reverse=True)
    frequencies = np.array([corpus.unigram_probability(c) for c in chars])

    # Create scatter plot
    plt.scatter(range(len(chars)), frequencies * 100, s=100, alpha=0.6)
    plt.plot(range(len(chars)), frequencies * 100, 'b-', alpha=0.3)

    # Add labels for each point
    for i, (char, freq) in enumerate(zip(chars, frequencies)):
        plt.annotate(f'{char.upper()}\n{freq*100:.1f}%',
                    (i, freq*100),
                    textcoords="offset points",
                    xytext=(0,10),
                    ha='center')

    plt.title('Character Frequencies in Corpus', fontsize=14, pad=20)
    plt.xlabel('Rank', fontsize=12)
    plt.ylabel('Frequency (%)', fontsize=12)
    plt.xticks([])

    plt.tight_layout()
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, dpi=300, bbox_inches='tight')
    print(f"Saved character frequencies plot to: {output_path.absolute()}")
    plt.close()
    return output_path

if __name__ == "__main__":
    from optimize_swipe_layout import load_config, load_corpus

    parser = argparse.ArgumentParser(description='Plot corpus character frequencies.')
    parser.add_argument('--config', type=str, default='config.yaml')
    args = parser.parse_args()

    plt.rcParams.update({'font.size': 12})
    config = load_config(args.config)
    corpus = load_corpus(config)
    plots_folder = Path(config['paths']['output']['plots_folder'])
    plot_character_frequencies(corpus, config['keyboard']['alphabet'],
                               plots_folder / 'character_frequencies.png')

    print("\nPlot generation complete!")
