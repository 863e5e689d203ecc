"""
Simulated annealing over swipe keyboard layouts.

Each iteration proposes one transposition of two slots (at least one of them
occupied), scores the candidate and applies the Metropolis criterion:
  - accept if delta <= 0
  - otherwise accept with probability exp(-delta / T)
The temperature decays geometrically, T <- T * cooling_rate, every
steps_per_temperature iterations. A run stops when the iteration budget is
spent or T falls below min_temperature, and reports the best layout seen.

All randomness comes from an injected numpy Generator, so a run is
reproducible from its seed.
"""
import math
import multiprocessing
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import psutil
from tqdm import tqdm

from keyboard_geometry import ConfigurationError
from cost_model import CostBreakdown, SwipeCostModel
from swipe_layout import Layout, LayoutValidationError


@dataclass
class AnnealingSchedule:
    initial_temperature: float = 1.0
    cooling_rate: float = 0.9995
    steps_per_temperature: int = 1
    min_temperature: float = 1e-6
    iterations: int = 20000

    def validate(self) -> None:
        if not self.initial_temperature > 0:
            raise ConfigurationError(f"initial_temperature must be positive, got {self.initial_temperature}")
        if not 0 < self.cooling_rate <= 1:
            raise ConfigurationError(f"cooling_rate must be in (0, 1], got {self.cooling_rate}")
        if self.steps_per_temperature < 1:
            raise ConfigurationError(f"steps_per_temperature must be at least 1, got {self.steps_per_temperature}")
        if self.min_temperature < 0:
            raise ConfigurationError(f"min_temperature must be non-negative, got {self.min_temperature}")
        if self.iterations < 0:
            raise ConfigurationError(f"iterations must be non-negative, got {self.iterations}")

    def temperature_at(self, iteration: int) -> float:
        return self.initial_temperature * self.cooling_rate ** (iteration // self.steps_per_temperature)


@dataclass
class AnnealingResult:
    best_layout: Layout
    best_cost: CostBreakdown
    initial_cost: float
    iterations: int
    accepted_moves: int
    chain: int = 0
    # (iteration, temperature, current cost, best cost so far) per iteration
    history: List[Tuple[int, float, float, float]] = field(default_factory=list)
    # Lowest-cost distinct layouts visited, best first
    top_layouts: List[Tuple[Layout, CostBreakdown]] = field(default_factory=list)

    @property
    def best_cost_history(self) -> List[float]:
        return [best for _, _, _, best in self.history]


def update_progress_bar(pbar, iteration: int, start_time: float, best_cost: float,
                        temperature: float, accepted_moves: int) -> None:
    """Update progress bar with search statistics."""
    elapsed = time.time() - start_time
    if elapsed > 0 and iteration > 0:
        pbar.set_postfix({
            'Iters/sec': f"{iteration / elapsed:,.0f}",
            'Best': f"{best_cost:.5f}",
            'T': f"{temperature:.2e}",
            'Accepted': f"{100 * accepted_moves / iteration:.1f}%",
            'Memory': f"{psutil.Process().memory_info().rss/1e9:.1f}GB"
        })


class Annealer:
    """
    Owns the search state of one annealing chain.

    Args:
        cost_model: scores candidate layouts
        schedule: temperature schedule and iteration budget
        rng: the only source of randomness for the chain
        same_key_probability: chance of proposing a swap between two roles
            of one key instead of two arbitrary slots
        incremental: score candidates with the cost model's swap delta
            instead of a full recomputation
        n_top: number of distinct lowest-cost layouts to keep
    """

    def __init__(
        self,
        cost_model: SwipeCostModel,
        schedule: AnnealingSchedule,
        rng: np.random.Generator,
        same_key_probability: float = 0.0,
        incremental: bool = False,
        n_top: int = 1
    ) -> None:
        schedule.validate()
        if not 0 <= same_key_probability <= 1:
            raise ConfigurationError(f"same_key_probability must be in [0, 1], got {same_key_probability}")
        if n_top < 1:
            raise ConfigurationError(f"n_top must be at least 1, got {n_top}")
        self.cost_model = cost_model
        self.schedule = schedule
        self.rng = rng
        self.same_key_probability = same_key_probability
        self.incremental = incremental
        self.n_top = n_top

        geometry = cost_model.geometry
        self._slots_by_key = {}
        for i, (key, _) in enumerate(geometry.slots):
            self._slots_by_key.setdefault(key, []).append(i)

    #-------------------------------------------------------------------------
    # Moves
    #-------------------------------------------------------------------------
    def propose_swap(self, layout: Layout) -> Tuple[int, int]:
        """Two distinct slots, at least one holding a character."""
        if self.same_key_probability and self.rng.random() < self.same_key_probability:
            swap = self._propose_same_key_swap(layout)
            if swap is not None:
                return swap
        capacity = len(layout.slot_chars)
        while True:
            i, j = self.rng.choice(capacity, size=2, replace=False)
            i, j = int(i), int(j)
            if layout.slot_chars[i] is not None or layout.slot_chars[j] is not None:
                return i, j

    def _propose_same_key_swap(self, layout: Layout) -> Optional[Tuple[int, int]]:
        occupied = [i for i, c in enumerate(layout.slot_chars) if c is not None]
        i = occupied[int(self.rng.integers(len(occupied)))]
        key = layout.geometry.slots[i][0]
        others = [j for j in self._slots_by_key[key] if j != i]
        if not others:
            return None
        return i, others[int(self.rng.integers(len(others)))]

    def _record_top(self, top: dict, cost: float, layout: Layout) -> None:
        """Keep the n_top lowest-cost distinct layouts, keyed by layout string."""
        key = layout.to_string()
        if key in top:
            return
        if len(top) >= self.n_top and cost >= max(c for c, _ in top.values()):
            return
        top[key] = (cost, layout.copy())
        if len(top) > self.n_top:
            worst = max(top, key=lambda k: (top[k][0], k))
            del top[worst]

    def accept(self, delta: float, temperature: float) -> bool:
        """Metropolis acceptance rule."""
        if delta <= 0:
            return True
        if temperature <= 0:
            return False
        return bool(self.rng.random() < math.exp(-delta / temperature))

    #-------------------------------------------------------------------------
    # Search
    #-------------------------------------------------------------------------
    def run(self, start_layout: Layout = None, progress: bool = False,
            chain: int = 0) -> AnnealingResult:
        """
        Anneal from start_layout (random when not given) and return the
        best layout seen with its full cost breakdown.
        """
        model = self.cost_model
        if start_layout is None:
            current = Layout.random(model.geometry, model.alphabet, self.rng)
        else:
            if start_layout.alphabet != model.alphabet or start_layout.geometry.slots != model.geometry.slots:
                raise LayoutValidationError("Start layout does not match the cost model's alphabet and keyboard")
            start_layout.validate()
            current = start_layout.copy()

        current_cost = model.total_cost(current)
        initial_cost = current_cost
        best_layout = current.copy()
        best_cost = current_cost
        accepted_moves = 0
        history = []
        top = {}
        self._record_top(top, current_cost, current)

        start_time = time.time()
        with tqdm(total=self.schedule.iterations, desc=f"Chain {chain}", unit='iters',
                  disable=not progress) as pbar:
            for iteration in range(self.schedule.iterations):
                temperature = self.schedule.temperature_at(iteration)
                if temperature < self.schedule.min_temperature:
                    break

                i, j = self.propose_swap(current)
                if self.incremental:
                    delta = model.swap_delta(current, i, j)
                    if self.accept(delta, temperature):
                        current.swap_slots(i, j)
                        current_cost += delta
                        accepted_moves += 1
                        self._record_top(top, current_cost, current)
                else:
                    current.swap_slots(i, j)
                    candidate_cost = model.total_cost(current)
                    if self.accept(candidate_cost - current_cost, temperature):
                        current_cost = candidate_cost
                        accepted_moves += 1
                        self._record_top(top, current_cost, current)
                    else:
                        current.swap_slots(i, j)

                if current_cost < best_cost:
                    best_cost = current_cost
                    best_layout = current.copy()
                history.append((iteration, temperature, current_cost, best_cost))

                pbar.update(1)
                if progress and iteration % 500 == 0:
                    update_progress_bar(pbar, iteration, start_time, best_cost,
                                        temperature, accepted_moves)

        best_layout.validate()
        top_layouts = sorted(((layout, model.evaluate(layout)) for _, layout in top.values()),
                             key=lambda item: (item[1].total, item[0].to_string()))
        return AnnealingResult(
            best_layout=best_layout,
            best_cost=model.evaluate(best_layout),
            initial_cost=initial_cost,
            iterations=len(history),
            accepted_moves=accepted_moves,
            chain=chain,
            history=history,
            top_layouts=top_layouts
        )


#-----------------------------------------------------------------------------
# Independent chains
#-----------------------------------------------------------------------------
def chain_generators(seed: Optional[int], n_chains: int) -> List[np.random.Generator]:
    """One independent generator per chain, all derived from one seed."""
    if n_chains == 1:
        return [np.random.default_rng(seed)]
    return [np.random.default_rng(child) for child in np.random.SeedSequence(seed).spawn(n_chains)]


def _run_chain(args) -> AnnealingResult:
    cost_model, schedule, rng, start_layout, same_key_probability, incremental, n_top, chain = args
    annealer = Annealer(cost_model, schedule, rng, same_key_probability, incremental, n_top)
    return annealer.run(start_layout, progress=False, chain=chain)


def run_chains(
    cost_model: SwipeCostModel,
    schedule: AnnealingSchedule,
    seed: Optional[int] = None,
    n_chains: int = 1,
    start_layout: Layout = None,
    same_key_probability: float = 0.0,
    incremental: bool = False,
    processes: int = None,
    progress: bool = False,
    n_top: int = 1
) -> List[AnnealingResult]:
    """
    Run independent chains and return their results sorted best first.
    A single chain runs in-process; several run in a process pool.
    """
    if n_chains < 1:
        raise ConfigurationError(f"chains must be at least 1, got {n_chains}")
    schedule.validate()
    rngs = chain_generators(seed, n_chains)

    if n_chains == 1:
        annealer = Annealer(cost_model, schedule, rngs[0], same_key_probability, incremental, n_top)
        results = [annealer.run(start_layout, progress=progress, chain=0)]
    else:
        args = [
            (cost_model, schedule, rng, start_layout, same_key_probability, incremental, n_top, chain)
            for chain, rng in enumerate(rngs)
        ]
        with multiprocessing.Pool(processes or min(n_chains, multiprocessing.cpu_count())) as pool:
            results = pool.map(_run_chain, args)

    return sorted(results, key=lambda result: (result.best_cost.total, result.chain))
