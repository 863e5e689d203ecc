#!/usr/bin/env python3
"""
Analyze the results of swipe layout optimization runs.

Each run directory (one per generated config) holds layout_results_*.csv
files written by optimize_swipe_layout.py. The latest file in each
directory contributes its best layout to the summary.
"""
import os
import glob
import argparse
import pandas as pd
import matplotlib.pyplot as plt

# Directory containing all layout results
RESULTS_DIR = 'output/layouts'
CONFIGS_DIR = 'configs'

# Columns of the ranked layout table below the configuration block
RESULT_COLUMNS = ['Rank', 'Chain', 'Layout', 'Total cost', 'Base cost', 'Swipe penalty']

def parse_result_csv(filepath):
    """Parse a layout results CSV file and extract the configuration and best layout."""
    try:
        df = pd.read_csv(filepath, header=None, names=range(len(RESULT_COLUMNS)),
                         skip_blank_lines=False, dtype=str)

        # Configuration info rows until the blank separator
        separators = df.index[df.isna().all(axis=1)]
        if len(separators) == 0 or len(df) < separators[0] + 3:
            print(f"Warning: no layout rows in {filepath}")
            return None
        blank = separators[0]
        config_info = {df.iloc[i, 0]: df.iloc[i, 1] for i in range(blank)}

        # Header row, then the best layout (rank 1)
        header = list(df.iloc[blank + 1])
        row = dict(zip(header, df.iloc[blank + 2]))
        result = {
            'layout': row['Layout'],
            'chain': int(row['Chain']),
            'total_cost': float(row['Total cost']),
            'base_cost': float(row['Base cost']),
            'swipe_penalty': float(row['Swipe penalty'])
        }
        return {**config_info, **result}
    except (OSError, KeyError, ValueError) as e:
        print(f"Error parsing {filepath}: {e}")
        return None

def read_strategy(config_id, configs_dir=CONFIGS_DIR):
    """Strategy line of a generated config's metadata file, if any."""
    meta_file = os.path.join(configs_dir, f"{config_id}_meta.txt")
    if os.path.exists(meta_file):
        with open(meta_file, 'r') as f:
            for line in f:
                if line.startswith("Strategy:"):
                    return line.strip().split(": ", 1)[1]
    return "unknown"

def load_all_results(results_dir=RESULTS_DIR, configs_dir=CONFIGS_DIR):
    """Load the latest result file of each run directory into a dataframe."""
    all_results = []

    result_files = glob.glob(os.path.join(results_dir, '**', 'layout_results_*.csv'), recursive=True)
    by_directory = {}
    for filepath in result_files:
        by_directory.setdefault(os.path.dirname(filepath), []).append(filepath)

    for directory, csv_files in sorted(by_directory.items()):
        # Sort by modification time to get the latest
        latest_csv = max(csv_files, key=os.path.getmtime)

        config_id = os.path.basename(directory)
        result = parse_result_csv(latest_csv)
        if result:
            result['config_id'] = config_id
            result['strategy'] = read_strategy(config_id, configs_dir)
            result['source_file'] = latest_csv
            all_results.append(result)

    return pd.DataFrame(all_results)

def analyze_results(df, output_dir=None):
    """Print summary statistics and return the best (lowest cost) run."""
    if df.empty:
        print("No results to analyze!")
        return None

    print(f"Analyzed {len(df)} optimization results")

    # Overall statistics
    print("\nOverall Statistics:")
    print(f"Mean total cost: {df['total_cost'].mean():.6f}")
    print(f"Best total cost: {df['total_cost'].min():.6f}")
    print(f"Worst total cost: {df['total_cost'].max():.6f}")

    # Analysis by strategy
    print("\nPerformance by Strategy:")
    strategy_stats = df.groupby('strategy').agg({
        'total_cost': ['count', 'mean', 'min', 'max'],
        'swipe_penalty': ['mean']
    })
    print(strategy_stats)

    # Find the best layout
    best_layout = df.loc[df['total_cost'].idxmin()]

    print("\nBest Layout:")
    print(f"Config ID: {best_layout['config_id']}")
    print(f"Strategy: {best_layout['strategy']}")
    print(f"Total cost: {best_layout['total_cost']:.6f}")
    print(f"Base cost: {best_layout['base_cost']:.6f}")
    print(f"Swipe penalty: {best_layout['swipe_penalty']:.6f}")
    print(f"Layout: {best_layout['layout']}")
    print(f"Seed: {best_layout.get('Seed', 'N/A')}")
    print(f"Penalty weight: {best_layout.get('Penalty weight', 'N/A')}")

    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
        summary_path = os.path.join(output_dir, "optimization_results_summary.csv")
        df.sort_values('total_cost').to_csv(summary_path, index=False)
        print(f"\nResults summary saved to {summary_path}")

        # Cost distribution
        plt.figure(figsize=(10, 6))
        plt.hist(df['total_cost'], bins=20, alpha=0.7)
        plt.title('Distribution of Layout Costs')
        plt.xlabel('Total Cost')
        plt.ylabel('Frequency')
        plt.savefig(os.path.join(output_dir, 'cost_distribution.png'))
        plt.close()

        # Performance by strategy
        plt.figure(figsize=(12, 6))
        strategy_means = df.groupby('strategy')['total_cost'].mean().sort_values()
        strategy_means.plot(kind='bar')
        plt.title('Average Cost by Strategy')
        plt.xlabel('Strategy')
        plt.ylabel('Mean Cost')
        plt.tight_layout()
        plt.savefig(os.path.join(output_dir, 'strategy_performance.png'))
        plt.close()

        print(f"Visualization charts saved to {output_dir}")

    return best_layout

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Summarize swipe layout optimization results.')
    parser.add_argument('--results-dir', type=str, default=RESULTS_DIR)
    parser.add_argument('--configs-dir', type=str, default=CONFIGS_DIR)
    parser.add_argument('--output-dir', type=str, default='output/analysis')
    args = parser.parse_args()

    print("Loading and analyzing swipe layout optimization results...")
    results_df = load_all_results(args.results_dir, args.configs_dir)
    analyze_results(results_df, args.output_dir)
