#!/usr/bin/env python3
"""
--------------------------------------------------------------------------------
Generate configuration files to run swipe layout optimizations in parallel,
one file per combination of random seed, swipe penalty weight and adjacency
mode. Each config writes its results to its own folder,
output/layouts/config_<n>, which analyze_results.py then summarizes.

# Ten seeds with the base config's penalty settings
python generate_configs.py --seeds 10

# Penalty sweep
python generate_configs.py --seeds 3 --penalty-weights 0 5 10 20 --adjacency same_key neighbors

Each config can then be run with:
python optimize_swipe_layout.py --config configs/config_<n>.yaml
--------------------------------------------------------------------------------
"""
import os
import yaml
import argparse
import itertools
import sys

# Configuration
OUTPUT_DIR = 'configs'
RESULTS_ROOT = 'output/layouts'

def generate_sweep(seeds, penalty_weights, adjacency_modes):
    """
    Every combination of the given settings.

    Returns:
        List of dictionaries with seed, penalty_weight, adjacency and strategy
    """
    sweep = []
    for seed, penalty_weight, adjacency in itertools.product(seeds, penalty_weights, adjacency_modes):
        sweep.append({
            'seed': int(seed),
            'penalty_weight': float(penalty_weight),
            'adjacency': adjacency,
            'strategy': f"{adjacency}_w{float(penalty_weight):g}"
        })
    return sweep

def create_config_files(base_config, sweep, output_dir=OUTPUT_DIR, results_root=RESULTS_ROOT):
    """Create an individual config file (and metadata file) for each sweep entry."""
    os.makedirs(output_dir, exist_ok=True)

    print(f"Creating {len(sweep)} configuration files in {output_dir}...")

    config_files = []
    for i, params in enumerate(sweep, 1):
        # Create a copy of the base config
        config = yaml.safe_load(yaml.dump(base_config))  # Deep copy

        config['annealing']['seed'] = params['seed']
        config['cost']['penalty_weight'] = params['penalty_weight']
        config['cost']['adjacency'] = params['adjacency']
        config['paths']['output']['layout_results_folder'] = os.path.join(results_root, f"config_{i}")

        config_filename = os.path.join(output_dir, f"config_{i}.yaml")
        with open(config_filename, 'w') as f:
            yaml.dump(config, f, default_flow_style=False)

        meta_filename = os.path.join(output_dir, f"config_{i}_meta.txt")
        with open(meta_filename, 'w') as f:
            f.write(f"Strategy: {params['strategy']}\n")
            f.write(f"Seed: {params['seed']}\n")
            f.write(f"Penalty weight: {params['penalty_weight']}\n")
            f.write(f"Adjacency: {params['adjacency']}\n")

        config_files.append(config_filename)

        # Print progress for every 10 files or at the end
        if i % 10 == 0 or i == len(sweep):
            print(f"  Created {i}/{len(sweep)} configuration files")

    return config_files

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Generate seed and penalty sweep configurations.')
    parser.add_argument('--base-config', type=str, default='config.yaml',
                        help='Configuration to copy (default: config.yaml)')
    parser.add_argument('--output-dir', type=str, default=OUTPUT_DIR,
                        help='Directory for the generated configs (default: configs)')
    parser.add_argument('--seeds', type=int, default=10,
                        help='Number of seeds, counting up from the base seed (default: 10)')
    parser.add_argument('--penalty-weights', type=float, nargs='+',
                        help='Swipe penalty weights (default: the base config value)')
    parser.add_argument('--adjacency', type=str, nargs='+', choices=['same_key', 'neighbors'],
                        help='Adjacency modes (default: the base config value)')
    args = parser.parse_args()

    with open(args.base_config, 'r') as f:
        base_config = yaml.safe_load(f)

    if args.seeds < 1:
        print("Error: --seeds must be at least 1")
        sys.exit(1)

    base_seed = base_config['annealing'].get('seed') or 0
    seeds = range(base_seed, base_seed + args.seeds)
    penalty_weights = args.penalty_weights or [base_config['cost']['penalty_weight']]
    adjacency_modes = args.adjacency or [base_config['cost']['adjacency']]

    sweep = generate_sweep(seeds, penalty_weights, adjacency_modes)
    create_config_files(base_config, sweep, args.output_dir)

    print(f"\nAll configuration files have been generated in the '{args.output_dir}' directory.")
    print("\nTo run these configurations in parallel, for example with a SLURM array:")
    print(f"  #SBATCH --array=1-{len(sweep)}%100")
    print(f"  python optimize_swipe_layout.py --config {args.output_dir}/config_${{SLURM_ARRAY_TASK_ID}}.yaml")
