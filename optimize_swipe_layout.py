# optimize_swipe_layout.py
"""
Letter-to-key optimization for 9-key swipe keyboards using simulated annealing.

Each of the 9 keys holds a tap character and up to four swipe characters.
Layouts are scored by expected movement time over a corpus (Fitts's law,
with swipes modelled as two chained movements plus a constant) plus a
penalty for packing frequent swipe characters onto the same or neighboring
keys. Annealing chains search for the lowest-cost layout.

Usage: python optimize_swipe_layout.py [--config config.yaml] [--reference-only]
"""
import argparse
import csv
import os
import time
from datetime import datetime, timedelta
from typing import List, Tuple

import yaml

from keyboard_geometry import KeyboardGeometry, ConfigurationError, get_adjacency_function
from swipe_layout import Layout, resolve_alphabet, visualize_layout
from corpus_stats import CorpusStats, load_corpus_text
from cost_model import SwipeCostModel, CostBreakdown
from annealer import AnnealingSchedule, AnnealingResult, run_chains

#-----------------------------------------------------------------------------
# Loading, validating, and saving functions
#-----------------------------------------------------------------------------
def load_config(config_path: str = "config.yaml") -> dict:
    """Load configuration from yaml file and normalize numeric types."""
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)

    # Create necessary output directories
    output_dirs = [config['paths']['output']['layout_results_folder']]
    if config.get('visualization', {}).get('plot_history'):
        output_dirs.append(config['paths']['output']['plots_folder'])
    for directory in output_dirs:
        os.makedirs(directory, exist_ok=True)

    normalize_config(config)
    validate_config(config)

    keyboard = config['keyboard']
    cost = config['cost']
    annealing = config['annealing']
    alphabet = keyboard['alphabet']

    print("\nConfiguration:")
    print(f"{len(alphabet)} characters to assign: {alphabet}")
    print(f"Center key swipes: {keyboard['center_key_swipes']}")
    print(f"Fitts's law: a={cost['fitts_a']}, b={cost['fitts_b']}")
    print(f"Swipe distance: {cost['swipe_distance']}, swipe constant: {cost['swipe_constant']}")
    print(f"Swipe penalty: weight={cost['penalty_weight']}, adjacency={cost['adjacency']}, "
          f"combination={cost['frequency_combination']}")
    print(f"Annealing: T0={annealing['initial_temperature']}, cooling={annealing['cooling_rate']}, "
          f"iterations={annealing['iterations']:,}, chains={annealing['chains']}, seed={annealing['seed']}")

    return config

def normalize_config(config: dict) -> dict:
    """Fill defaults and cast numbers, in place."""
    keyboard = config.setdefault('keyboard', {})
    cost = config.setdefault('cost', {})
    annealing = config.setdefault('annealing', {})
    config.setdefault('visualization', {})

    keyboard['alphabet'] = resolve_alphabet(str(keyboard.get('alphabet') or 'letters').lower())
    keyboard['key_spacing'] = float(keyboard.get('key_spacing', 1.0))
    keyboard['key_width'] = float(keyboard.get('key_width', 1.0))
    if keyboard.get('key_widths') is not None:
        keyboard['key_widths'] = [float(w) for w in keyboard['key_widths']]
    keyboard['center_key_swipes'] = bool(keyboard.get('center_key_swipes', True))

    for name, default in (('fitts_a', 0.083), ('fitts_b', 0.127), ('swipe_distance', 0.5),
                          ('swipe_constant', 0.05), ('penalty_weight', 10.0),
                          ('neighbor_weight', 0.5)):
        cost[name] = float(cost.get(name, default))
    if cost.get('swipe_width') is not None:
        cost['swipe_width'] = float(cost['swipe_width'])
    if cost.get('rest_point') is not None:
        cost['rest_point'] = [float(v) for v in cost['rest_point']]
    cost['adjacency'] = cost.get('adjacency', 'neighbors')
    cost['frequency_combination'] = cost.get('frequency_combination', 'product')

    for name, default in (('initial_temperature', 0.05), ('cooling_rate', 0.9995),
                          ('min_temperature', 1e-6), ('same_key_probability', 0.0)):
        annealing[name] = float(annealing.get(name, default))
    for name, default in (('steps_per_temperature', 1), ('iterations', 20000),
                          ('chains', 1), ('nlayouts', 5)):
        annealing[name] = int(annealing.get(name, default))
    if annealing.get('seed') is not None:
        annealing['seed'] = int(annealing['seed'])
    else:
        annealing['seed'] = None
    annealing['incremental'] = bool(annealing.get('incremental', False))
    annealing['start_layout'] = annealing.get('start_layout') or 'reference'
    return config

def validate_config(config):
    """
    Validate optimization inputs from config before any search begins.
    Raises ConfigurationError.
    """
    keyboard = config['keyboard']
    cost = config['cost']
    annealing = config['annealing']

    # Geometry and capacity checks
    geometry = build_geometry(config)
    geometry.check_capacity(keyboard['alphabet'])

    if keyboard['key_width'] <= 0:
        raise ConfigurationError(f"key_width must be positive, got {keyboard['key_width']}")
    if cost.get('rest_point') is not None and len(cost['rest_point']) != 2:
        raise ConfigurationError(f"rest_point must be [x, y], got {cost['rest_point']}")
    get_adjacency_function(cost['adjacency'], cost['neighbor_weight'])
    if cost['neighbor_weight'] < 0:
        raise ConfigurationError(f"neighbor_weight must be non-negative, got {cost['neighbor_weight']}")

    build_schedule(config).validate()
    if annealing['chains'] < 1:
        raise ConfigurationError(f"chains must be at least 1, got {annealing['chains']}")
    if not 0 <= annealing['same_key_probability'] <= 1:
        raise ConfigurationError(
            f"same_key_probability must be in [0, 1], got {annealing['same_key_probability']}")
    if annealing['nlayouts'] < 1:
        raise ConfigurationError(f"nlayouts must be at least 1, got {annealing['nlayouts']}")

def build_geometry(config: dict) -> KeyboardGeometry:
    keyboard = config['keyboard']
    return KeyboardGeometry(
        key_spacing=keyboard['key_spacing'],
        key_width=keyboard['key_width'],
        key_widths=keyboard.get('key_widths'),
        center_key_swipes=keyboard['center_key_swipes']
    )

def build_schedule(config: dict) -> AnnealingSchedule:
    annealing = config['annealing']
    return AnnealingSchedule(
        initial_temperature=annealing['initial_temperature'],
        cooling_rate=annealing['cooling_rate'],
        steps_per_temperature=annealing['steps_per_temperature'],
        min_temperature=annealing['min_temperature'],
        iterations=annealing['iterations']
    )

def build_cost_model(config: dict, corpus: CorpusStats, geometry: KeyboardGeometry) -> SwipeCostModel:
    cost = config['cost']
    return SwipeCostModel(
        geometry=geometry,
        corpus=corpus,
        alphabet=config['keyboard']['alphabet'],
        fitts_a=cost['fitts_a'],
        fitts_b=cost['fitts_b'],
        swipe_distance=cost['swipe_distance'],
        swipe_width=cost.get('swipe_width'),
        swipe_constant=cost['swipe_constant'],
        rest_point=cost.get('rest_point'),
        penalty_weight=cost['penalty_weight'],
        adjacency=get_adjacency_function(cost['adjacency'], cost['neighbor_weight']),
        frequency_combination=cost['frequency_combination']
    )

def build_start_layout(config: dict, geometry: KeyboardGeometry) -> Layout:
    """Reference layout, a layout string, or None for a random start in each chain."""
    alphabet = config['keyboard']['alphabet']
    start = config['annealing']['start_layout']
    if start == 'reference':
        return Layout.reference(geometry, alphabet)
    if start == 'random':
        return None
    return Layout.from_string(geometry, alphabet, start)

def load_corpus(config: dict) -> CorpusStats:
    inputs = config['paths']['input']
    alphabet = config['keyboard']['alphabet']
    if inputs.get('unigram_scores_file') and inputs.get('bigram_scores_file'):
        print(f"Loading frequency tables: {inputs['unigram_scores_file']}, {inputs['bigram_scores_file']}")
        return CorpusStats.from_csv(inputs['unigram_scores_file'], inputs['bigram_scores_file'])
    print(f"Loading corpus: {inputs['corpus_file']}")
    return load_corpus_text(inputs['corpus_file'], alphabet)

def rank_layouts(results: List[AnnealingResult], n: int) -> List[Tuple[Layout, CostBreakdown, int]]:
    """
    Merge the top layouts of every chain into one list of distinct
    (layout, cost breakdown, chain) entries, lowest cost first.
    """
    ranked = {}
    for result in results:
        for layout, breakdown in result.top_layouts or [(result.best_layout, result.best_cost)]:
            key = layout.to_string()
            if key not in ranked or breakdown.total < ranked[key][1].total:
                ranked[key] = (layout, breakdown, result.chain)
    ordered = sorted(ranked.values(), key=lambda item: (item[1].total, item[0].to_string()))
    return ordered[:n]

def save_results_to_csv(ranked: List[Tuple[Layout, CostBreakdown, int]],
                        config: dict,
                        output_path: str = None) -> str:
    """
    Save ranked layouts to a CSV file, best first.
    """
    if output_path is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = os.path.join(config['paths']['output']['layout_results_folder'],
                                   f"layout_results_{timestamp}.csv")

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f, quoting=csv.QUOTE_ALL)

        # Write header with configuration info
        cost = config['cost']
        annealing = config['annealing']
        writer.writerow(['Alphabet', config['keyboard']['alphabet']])
        writer.writerow(['Seed', annealing['seed']])
        writer.writerow(['Iterations', annealing['iterations']])
        writer.writerow(['Initial temperature', annealing['initial_temperature']])
        writer.writerow(['Cooling rate', annealing['cooling_rate']])
        writer.writerow(['Penalty weight', cost['penalty_weight']])
        writer.writerow(['Adjacency', cost['adjacency']])
        writer.writerow([])  # Empty row for separation

        writer.writerow([
            'Rank',
            'Chain',
            'Layout',
            'Total cost',
            'Base cost',
            'Swipe penalty'
        ])
        for rank, (layout, breakdown, chain) in enumerate(ranked, 1):
            writer.writerow([
                rank,
                chain,
                layout.to_string(),
                f"{breakdown.total:.6f}",
                f"{breakdown.base_total:.6f}",
                f"{breakdown.penalty_total:.6f}"
            ])

    print(f"\nResults saved to: {output_path}")
    return output_path

#-----------------------------------------------------------------------------
# Reporting functions
#-----------------------------------------------------------------------------
def print_cost_summary(breakdown: CostBreakdown, n_chars: int = 5) -> None:
    print(f"Total cost: {breakdown.total:.6f}")
    print(f"  - base (movement) cost: {breakdown.base_total:.6f}")
    print(f"  - swipe penalty: {breakdown.penalty_total:.6f}")
    costly_chars = sorted(breakdown.base_by_char.items(), key=lambda x: x[1], reverse=True)
    print("  - costliest characters: " + ", ".join(
        f"{char}={value:.4f}" for char, value in costly_chars[:n_chars]))
    if breakdown.penalty_by_pair:
        costly_pairs = sorted(breakdown.penalty_by_pair.items(), key=lambda x: x[1], reverse=True)
        print("  - costliest swipe pairs: " + ", ".join(
            f"{a}{b}={value:.4f}" for (a, b), value in costly_pairs[:n_chars]))

def print_top_results(ranked: List[Tuple[Layout, CostBreakdown, int]],
                      print_keyboard: bool = True) -> None:
    """
    Print ranked layouts with their costs.
    """
    print(f"\nTop {len(ranked)} layouts:")
    for i, (layout, breakdown, chain) in enumerate(ranked, 1):
        print(f"\n#{i} (chain {chain}): {layout.to_string()}")
        print_cost_summary(breakdown)
        if print_keyboard:
            print(visualize_layout(layout, title=f"Layout #{i}"))

#-----------------------------------------------------------------------------
# Optimizing functions
#-----------------------------------------------------------------------------
def optimize_swipe_layout(config: dict, reference_only: bool = False,
                          corpus: CorpusStats = None) -> List[AnnealingResult]:
    """
    Main optimization function. Returns chain results sorted best first.
    """
    start_time = time.time()
    validate_config(config)
    print_keyboard = config['visualization'].get('print_keyboard', True)
    annealing = config['annealing']

    geometry = build_geometry(config)
    if corpus is None:
        corpus = load_corpus(config)
    cost_model = build_cost_model(config, corpus, geometry)
    start_layout = build_start_layout(config, geometry)

    reference = Layout.reference(geometry, cost_model.alphabet)
    print("\nReference layout:")
    print_cost_summary(cost_model.evaluate(reference))
    if print_keyboard:
        print(visualize_layout(reference, title="Reference"))
    if reference_only:
        return []

    print(f"\nAnnealing {annealing['chains']} chain(s) of {annealing['iterations']:,} iterations")
    results = run_chains(
        cost_model,
        build_schedule(config),
        seed=annealing['seed'],
        n_chains=annealing['chains'],
        start_layout=start_layout,
        same_key_probability=annealing['same_key_probability'],
        incremental=annealing['incremental'],
        progress=True,
        n_top=annealing['nlayouts']
    )
    for result in results:
        print(f"Chain {result.chain}: {result.initial_cost:.6f} -> {result.best_cost.total:.6f} "
              f"({result.accepted_moves:,} of {result.iterations:,} moves accepted)")

    ranked = rank_layouts(results, annealing['nlayouts'])
    print_top_results(ranked, print_keyboard=print_keyboard)
    save_results_to_csv(ranked, config)

    if config['visualization'].get('plot_history'):
        from plots import plot_cost_history, plot_character_costs
        plots_folder = config['paths']['output']['plots_folder']
        plot_cost_history(results, os.path.join(plots_folder, 'cost_history.png'))
        plot_character_costs(ranked[0][1], os.path.join(plots_folder, 'character_costs.png'))

    elapsed_time = time.time() - start_time
    print(f"Optimization finished in {timedelta(seconds=int(elapsed_time))}")
    return results

#--------------------------------------------------------------------
# Pipeline
#--------------------------------------------------------------------
if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Optimize a 9-key swipe keyboard layout.')
    parser.add_argument('--config', type=str, default='config.yaml',
                        help='Path to the YAML configuration file (default: config.yaml)')
    parser.add_argument('--reference-only', action='store_true',
                        help='Score the reference layout without annealing')
    args = parser.parse_args()

    try:
        start_time = time.time()

        # Load configuration
        config = load_config(args.config)

        # Optimize the layout
        optimize_swipe_layout(config, reference_only=args.reference_only)

        elapsed = time.time() - start_time
        print(f"Total runtime: {timedelta(seconds=int(elapsed))}")

    except Exception as e:
        print(f"Error: {e}")

        import traceback
        traceback.print_exc()
