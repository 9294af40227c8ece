# ============================================================
# GREEDY SEARCH (batched random candidates, parallel scoring)
# - Each round: generate a batch, score every candidate on a
#   private copy of the canvas, commit the best one if it
#   beats the current score
# - The shared canvas is only written by the commit step
# ============================================================

import time
from dataclasses import dataclass
from typing import Optional

from joblib import Parallel, delayed

from .candidates import CandidateGenerator, PlacementSpec
from .config import SearchConfig
from .history import PlacementHistory
from .imaging import blank_canvas, overlay
from .scoring import scorer_for


@dataclass
class RoundResult:
    accepted: bool
    score: float                       # score after the round
    spec: Optional[PlacementSpec] = None
    improving: int = 0                 # candidates that beat the previous score


def evaluate_candidate(canvas, stamp, left, top, scorer):
    scratch = canvas.copy()
    overlay(scratch, stamp, left, top)
    return scorer(scratch)


def select_best(scores, current_score):
    """
    Index of the best score strictly above `current_score`, or None.
    Equal best scores resolve to the lowest batch index.
    """
    best = None
    for i, s in enumerate(scores):
        if s > current_score and (best is None or s > scores[best]):
            best = i
    return best


class GreedySearch:
    def __init__(self, target, library, config=None, generator=None, scorer=None):
        self.config = (config or SearchConfig()).validate()
        self.target = target
        self.generator = generator or CandidateGenerator(library, target, seed=self.config.seed)
        self.scorer = scorer or scorer_for(target)

        self.canvas = blank_canvas(target)
        self.score = self.scorer(self.canvas)
        self.initial_score = self.score
        self.history = PlacementHistory()
        self.successes = 0
        self.failures = 0
        self.consecutive_failures = 0
        self.rounds = 0
        self.snapshots = []
        self._stop_requested = False

    # ---------------------- termination ----------------------
    def should_continue(self):
        cfg = self.config
        goals_unmet = self.score < (cfg.target_score or 0.0) or self.successes < cfg.target_shapes
        cap = cfg.failure_cap
        return goals_unmet and (cap == 0 or self.consecutive_failures < cap)

    def request_stop(self):
        self._stop_requested = True

    # ------------------------- rounds -------------------------
    def evaluate(self, candidates, parallel=None):
        if parallel is None:
            return [evaluate_candidate(self.canvas, c.stamp, c.left, c.top, self.scorer) for c in candidates]
        # only the stamp travels to the workers, never the fragment image
        return parallel(delayed(evaluate_candidate)(self.canvas, c.stamp, c.left, c.top, self.scorer)
                        for c in candidates)

    def commit(self, candidate, score):
        overlay(self.canvas, candidate.stamp, candidate.left, candidate.top)
        self.history.append(candidate.spec, score)
        self.score = score
        self.successes += 1
        self.consecutive_failures = 0
        every = self.config.snapshot_every
        if every and self.successes % every == 0:
            self.snapshots.append(self.canvas.copy())

    def step(self, parallel=None):
        candidates = self.generator.batch(self.config.batch_size)
        scores = self.evaluate(candidates, parallel)
        self.rounds += 1

        best = select_best(scores, self.score)
        if best is None:
            self.failures += 1
            self.consecutive_failures += 1
            return RoundResult(accepted=False, score=self.score)

        improving = sum(1 for s in scores if s > self.score)
        self.commit(candidates[best], scores[best])
        return RoundResult(accepted=True, score=self.score, spec=candidates[best].spec, improving=improving)

    def report(self, previous, result):
        if not self.config.verbose or self.rounds % max(1, self.config.report_every):
            return
        if result.accepted:
            print(f"[{self.rounds:05d}] placed ({previous*100:.4f}% -> {result.score*100:.4f}%) "
                  f"| {self.successes}/{self.failures} placed/failed")
        else:
            print(f"[{self.rounds:05d}] {self.config.batch_size} candidates failed "
                  f"| {self.successes}/{self.failures} placed/failed")

    def run(self):
        t0 = time.time()
        if self.config.verbose:
            print(f"== GREEDY SEARCH start == init score={self.score*100:.4f}% | jobs={self.config.n_jobs}")
        with Parallel(n_jobs=self.config.n_jobs, backend=self.config.backend) as parallel:
            while self.should_continue() and not self._stop_requested:
                previous = self.score
                result = self.step(parallel)
                self.report(previous, result)
        if self.config.verbose:
            print(f"== GREEDY SEARCH done == score={self.score*100:.4f}% | "
                  f"{self.successes} placed, {self.failures} failed rounds in {time.time()-t0:.1f}s")
        return self.history
