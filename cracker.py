# cracker.py
"""Ciphertext-only recovery of a machine configuration.

The search runs in stages so the plugboard, by far the largest dimension,
never has to be enumerated:

1. coarse  – every rotor order, reflector and starting window with an empty
             plugboard, ranked by a frequency scorer; the best ``top_k`` are kept;
2. rings   – optional: middle/right ring settings for each survivor, with the
             window moved along so the wiring alignment is unchanged;
3. refine  – one plugboard hill-climb per survivor, ranked by an n-gram scorer.

Work inside a stage is spread over a thread pool. Each task owns its rotors and
machine; the scorers and n-gram tables are read-only and shared. The only
shared mutable objects are the ``TopK`` collector and the ``Budget``.
"""
from __future__ import annotations

import heapq
import itertools
import math
import os
import threading
import time
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

import progressbar

from configuration import Configuration, ReflectorSpec, RotorSpec
from debug import Debug
from errors import InvalidConfiguration, InvalidPermutation, InvalidSearchSpace
from keyboard_and_plugboard import Keyboard, Plugboard
from machine import Machine
from permutation import ALPHABET, SIZE, to_index
from rotor_and_reflector import RotorBank
from scoring import IndexOfCoincidenceScorer, NgramScorer, Scorer
from settings_generator import build_rng
from utilities import sorted_names

debug = Debug()
debug.disable("search")

SLOTS = 3
_KB = Keyboard()

# every unordered letter pair names exactly one plugboard move
PAIR_MOVES: tuple[tuple[int, int], ...] = tuple(itertools.combinations(range(SIZE), 2))


# ────────────────────────────────────────────────────────────────────────
#  0. Search space, settings and budget
# ────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class SearchSpace:
    """What the coarse stage may try.

    *orders* restricts the rotor orders (left to right); by default every
    arrangement of three rotors from the pool is tried. *offsets* restricts
    the starting offsets per slot; by default all 26 in every slot.
    """

    rotors: Mapping[str, RotorSpec]
    reflectors: Mapping[str, ReflectorSpec]
    orders: Sequence[Sequence[str]] | None = None
    offsets: Sequence[Iterable[int | str]] | None = None
    allow_duplicates: bool = False

    def __post_init__(self) -> None:
        if not self.rotors:
            raise InvalidSearchSpace("No rotors supplied")
        if not self.reflectors:
            raise InvalidSearchSpace("No reflectors supplied")
        self.rotors = dict(self.rotors)
        self.reflectors = dict(self.reflectors)

        if self.orders is None:
            if not self.allow_duplicates and len(self.rotors) < SLOTS:
                raise InvalidSearchSpace(
                    f"Need at least {SLOTS} distinct rotors, got {len(self.rotors)}"
                )
        else:
            orders = [tuple(o) for o in self.orders]
            if not orders:
                raise InvalidSearchSpace("Empty list of rotor orders")
            for order in orders:
                if len(order) != SLOTS:
                    raise InvalidSearchSpace(f"Rotor order {order} must name {SLOTS} rotors")
                unknown = [n for n in order if n not in self.rotors]
                if unknown:
                    raise InvalidSearchSpace(f"Rotor order {order} names unknown rotors {unknown}")
                if not self.allow_duplicates and len(set(order)) != SLOTS:
                    raise InvalidSearchSpace(f"Rotor order {order} repeats a rotor")
            self.orders = orders

        if self.offsets is None:
            self.offsets = [tuple(range(SIZE))] * SLOTS
        else:
            slots = [list(s) for s in self.offsets]
            if len(slots) != SLOTS:
                raise InvalidSearchSpace(f"Offsets must be given for {SLOTS} slots")
            try:
                self.offsets = [tuple(dict.fromkeys(to_index(o) for o in s)) for s in slots]
            except InvalidPermutation as err:
                raise InvalidSearchSpace(f"Bad offset constraint: {err}") from err
            if not all(self.offsets):
                raise InvalidSearchSpace("Every slot needs at least one offset")

    @classmethod
    def named(
        cls,
        rotor_names: Iterable[str] = ("I", "II", "III", "IV", "V"),
        reflector_names: Iterable[str] = ("B",),
        **kw,
    ) -> "SearchSpace":
        """Build a space from wheel-database names."""
        return _wheel_space(tuple(rotor_names), tuple(reflector_names), **kw)

    def rotor_orders(self) -> list[tuple[str, ...]]:
        if self.orders is not None:
            return list(self.orders)
        names = sorted_names(self.rotors)
        if self.allow_duplicates:
            return list(itertools.product(names, repeat=SLOTS))
        return list(itertools.permutations(names, SLOTS))

    def offset_grid(self) -> Iterable[tuple[int, ...]]:
        return itertools.product(*self.offsets)

    @property
    def grid_size(self) -> int:
        return math.prod(len(s) for s in self.offsets)

    @property
    def size(self) -> int:
        return len(self.rotor_orders()) * len(self.reflectors) * self.grid_size


@dataclass(slots=True)
class SearchConfig:
    """Runtime switches for the search."""

    top_k: int = 10                 # survivors of the coarse stage
    workers: int | None = None      # thread pool size; None → min(8, cpu count)
    max_pairs: int = 10             # most plugboard cables the climb may place
    annealing: bool = False         # accept some worse moves (Metropolis)
    temperature: float = 2.0        # starting temperature when annealing
    cooling: float = 0.92           # temperature factor per cooling interval
    cooling_interval: int = 200     # proposals between two cooling steps
    patience: int = 650             # consecutive non-improving proposals before stopping
    max_moves: int = 20_000         # proposals per climb
    epsilon: float = 1e-9           # smallest change counted as an improvement
    sample_length: int | None = None  # coarse stage reads only this many letters
    refine_rings: bool = False      # run the ring stage between coarse and refine
    seed: int | None = None         # deterministic climbs when set
    progress: bool = False          # progress bars on stderr

    def __post_init__(self) -> None:
        if self.top_k < 1:
            raise InvalidSearchSpace(f"top_k must be at least 1, got {self.top_k}")
        if self.workers is not None and self.workers < 1:
            raise InvalidSearchSpace(f"workers must be at least 1, got {self.workers}")
        if not 0 <= self.max_pairs <= SIZE // 2:
            raise InvalidSearchSpace(f"max_pairs must be 0–{SIZE // 2}, got {self.max_pairs}")

    def pool_size(self) -> int:
        return max(1, self.workers or min(8, os.cpu_count() or 2))


class Budget:
    """Evaluation count and wall-clock allowance shared by every worker.

    Running out is not an error: ``consume`` simply starts returning False,
    workers finish the candidate in hand and the best-so-far is reported.
    """

    def __init__(self, max_evaluations: int | None = None, time_limit: float | None = None) -> None:
        self.max_evaluations = max_evaluations
        self.time_limit = time_limit
        self.evaluations = 0
        self.started = time.monotonic()
        self._deadline = None if time_limit is None else self.started + time_limit
        self._lock = threading.Lock()
        self._stop = threading.Event()

    def consume(self, n: int = 1) -> bool:
        if self._stop.is_set():
            return False
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._stop.set()
            return False
        with self._lock:
            if self.max_evaluations is not None and self.evaluations + n > self.max_evaluations:
                self._stop.set()
                return False
            self.evaluations += n
        return True

    def cancel(self) -> None:
        self._stop.set()

    @property
    def exhausted(self) -> bool:
        return self._stop.is_set()

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started


# ────────────────────────────────────────────────────────────────────────
#  1. Candidates and the top-K collector
# ────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class Candidate:
    score: float
    configuration: Configuration
    seq: int = 0                    # enumeration index, breaks ties deterministically
    plaintext: str = ""
    trace: list[float] = field(default_factory=list)

    def describe(self) -> str:
        return f"{self.score:.4f} {self.configuration.describe()}"


class TopK:
    """The ``k`` best candidates, guarded by one lock.

    A min-heap keyed on (score, -seq): the root is the weakest survivor, and of
    two equal scores the one enumerated later is dropped first.
    """

    def __init__(self, k: int) -> None:
        if k < 1:
            raise ValueError("top-k size must be at least 1")
        self.k = k
        self._heap: list[tuple[float, int, int, Candidate]] = []
        self._lock = threading.Lock()
        self._tiebreak = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def would_accept(self, score: float, seq: int = 0) -> bool:
        heap = self._heap
        return len(heap) < self.k or (score, -seq) > heap[0][:2]

    def offer(self, cand: Candidate) -> bool:
        with self._lock:
            return self._offer(cand)

    def merge(self, cands: Iterable[Candidate]) -> int:
        """Insert a batch under a single lock acquisition."""
        with self._lock:
            return sum(self._offer(c) for c in cands)

    def _offer(self, cand: Candidate) -> bool:
        item = (cand.score, -cand.seq, next(self._tiebreak), cand)
        if len(self._heap) < self.k:
            heapq.heappush(self._heap, item)
            return True
        if item[:2] > self._heap[0][:2]:
            heapq.heapreplace(self._heap, item)
            return True
        return False

    def ranked(self) -> list[Candidate]:
        """Best first."""
        with self._lock:
            items = sorted(self._heap, key=lambda it: (it[0], it[1]), reverse=True)
        return [it[3] for it in items]


class _Progress:
    """progressbar2 bar that tolerates updates from several threads."""

    def __init__(self, enabled: bool, total: int, label: str) -> None:
        self._bar = None
        self._done = 0
        self._lock = threading.Lock()
        if enabled and total > 0:
            self._bar = progressbar.ProgressBar(
                max_value=total,
                widgets=[f"{label} ", progressbar.Percentage(), " ",
                         progressbar.Bar(), " ", progressbar.ETA()],
            )

    def tick(self, n: int = 1) -> None:
        if self._bar is None:
            return
        with self._lock:
            self._done += n
            self._bar.update(min(self._done, self._bar.max_value))

    def finish(self) -> None:
        if self._bar is not None:
            self._bar.finish()


# ────────────────────────────────────────────────────────────────────────
#  2. Plugboard moves
# ────────────────────────────────────────────────────────────────────────


def pair_count(table: Sequence[int]) -> int:
    return sum(1 for i, img in enumerate(table) if img > i)


def neighbour(table: Sequence[int], a: int, b: int, max_pairs: int) -> list[int] | None:
    """The plugboard one move away, for the letter pair (a, b).

    * a–b plugged together: unplug them;
    * both free: plug a–b (None when the board is full);
    * one of them plugged elsewhere: move that cable's end to the other;
    * both plugged elsewhere (a–c, b–d): re-pair as a–b and c–d.
    """
    pa, pb = table[a], table[b]
    new = list(table)
    if pa == b:
        new[a], new[b] = a, b
    elif pa == a and pb == b:
        if pair_count(table) >= max_pairs:
            return None
        new[a], new[b] = b, a
    elif pb == b:
        new[pa] = pa
        new[a], new[b] = b, a
    elif pa == a:
        new[pb] = pb
        new[a], new[b] = b, a
    else:
        new[a], new[b] = b, a
        new[pa], new[pb] = pb, pa
    return new


def table_pairs(table: Sequence[int]) -> list[str]:
    return [ALPHABET[i] + ALPHABET[img] for i, img in enumerate(table) if img > i]


# ────────────────────────────────────────────────────────────────────────
#  3. Results and the controller
# ────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class SearchResult:
    best: Candidate | None
    candidates: list[Candidate]
    coarse: list[Candidate]
    evaluations: int
    elapsed: float
    exhausted: bool

    @property
    def configuration(self) -> Configuration | None:
        return self.best.configuration if self.best is not None else None

    @property
    def score(self) -> float:
        return self.best.score if self.best is not None else float("-inf")

    @property
    def plaintext(self) -> str:
        return self.best.plaintext if self.best is not None else ""


class SearchController:
    def __init__(
        self,
        space: SearchSpace,
        coarse_scorer: Scorer | None = None,
        fine_scorer: Scorer | None = None,
        config: SearchConfig | None = None,
        budget: Budget | None = None,
    ) -> None:
        self.space = space
        self.coarse_scorer = coarse_scorer or IndexOfCoincidenceScorer()
        self.fine_scorer = fine_scorer or NgramScorer()
        self.config = config or SearchConfig()
        self.budget = budget or Budget()

    # ── helpers ──────────────────────────────────────────────────
    @staticmethod
    def prepare(ciphertext: str | Sequence[int]) -> list[int]:
        if isinstance(ciphertext, str):
            return _KB.to_indices(ciphertext)
        return list(ciphertext)

    def _map(self, fn, items: list) -> list:
        """Run *fn* over *items* on the pool, results in input order."""
        workers = min(self.config.pool_size(), max(1, len(items)))
        if workers == 1:
            return [fn(*args) for args in items]
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(fn, *args) for args in items]
            return [f.result() for f in futures]

    # ── stage 1: coarse ──────────────────────────────────────────
    def coarse_search(self, ciphertext: str | Sequence[int]) -> list[Candidate]:
        ct = self.prepare(ciphertext)
        if self.config.sample_length:
            ct = ct[: self.config.sample_length]

        orders = self.space.rotor_orders()
        refl_names = sorted_names(self.space.reflectors)
        units = [(i * len(refl_names) + j, order, refl)
                 for i, order in enumerate(orders) for j, refl in enumerate(refl_names)]

        top = TopK(self.config.top_k)
        bar = _Progress(self.config.progress, len(units), "coarse")
        debug.log("search", f"coarse: {len(units)} units x {self.space.grid_size} windows, "
                            f"{len(ct)} letters, scorer={self.coarse_scorer.name}")

        def run(unit: int, order: tuple[str, ...], refl_name: str) -> None:
            found = self._coarse_unit(ct, unit, order, refl_name)
            top.merge(found)
            bar.tick()

        with debug.timed("search", "coarse stage"):
            self._map(run, units)
        bar.finish()
        ranked = top.ranked()
        for cand in ranked[:3]:
            debug.log("search", f"coarse best {cand.describe()}")
        return ranked

    def _coarse_unit(self, ct: list[int], unit: int, order: tuple[str, ...],
                     refl_name: str) -> list[Candidate]:
        """Every window for one rotor order and reflector, with a private machine."""
        specs = [self.space.rotors[name] for name in order]
        refl_spec = self.space.reflectors[refl_name]
        bank = RotorBank([spec.build() for spec in specs])
        machine = Machine(Plugboard(), bank, refl_spec.build())
        score = self.coarse_scorer.score
        budget = self.budget
        local = TopK(self.config.top_k)
        base = unit * self.space.grid_size

        for idx, offsets in enumerate(self.space.offset_grid()):
            if not budget.consume():
                break
            bank.set_positions(offsets)
            s = score(machine.encode_indices(ct))
            seq = base + idx
            if local.would_accept(s, seq):
                cfg = Configuration(
                    tuple(spec.at(offset=o) for spec, o in zip(specs, offsets)), refl_spec
                )
                local.offer(Candidate(s, cfg, seq))
        return local.ranked()

    # ── stage 2: ring settings ───────────────────────────────────
    def refine_rings(self, ciphertext: str | Sequence[int], cand: Candidate) -> Candidate:
        """Try every middle/right ring setting, moving the window along with it.

        Ring r with window o + r presents the same wiring as ring 0 with
        window o; only the turnover points move.
        """
        ct = self.prepare(ciphertext)
        if self.config.sample_length:
            ct = ct[: self.config.sample_length]
        cfg = cand.configuration
        left, middle, right = cfg.offsets
        best = cand
        for r_mid, r_right in itertools.product(range(SIZE), repeat=2):
            if (r_mid, r_right) == (0, 0):
                continue
            if not self.budget.consume():
                break
            trial = cfg.with_rings((0, r_mid, r_right)).with_offsets(
                (left, (middle + r_mid) % SIZE, (right + r_right) % SIZE)
            )
            s = self.coarse_scorer.score(trial.build_machine().encode_indices(ct))
            if s > best.score + self.config.epsilon:
                best = Candidate(s, trial, cand.seq)
        if best is not cand:
            debug.log("search", f"rings: {cand.describe()} -> {best.describe()}")
        return best

    # ── stage 3: plugboard hill-climb ────────────────────────────
    def refine(self, ciphertext: str | Sequence[int], cand: Candidate,
               seed: int | None = None) -> Candidate:
        """Hill-climb (or anneal) the plugboard of *cand* under the fine scorer.

        Pure hill-climbing stops once a full sweep of the 325 pair moves finds
        no improvement. Either mode stops after ``patience`` proposals without a
        new best, after ``max_moves`` proposals, or when the budget runs out.
        The best score recorded in ``trace`` never decreases.
        """
        cfg_s = self.config
        ct = self.prepare(ciphertext)
        rng = build_rng(seed)
        score = self.fine_scorer.score
        budget = self.budget

        core = cand.configuration.with_plugboard(()).build_machine().core_tables(len(ct))
        letters = list(zip(core, ct))

        def evaluate(tab: Sequence[int]) -> float:
            return score([tab[c[tab[x]]] for c, x in letters])

        table = list(Plugboard(cand.configuration.plugboard_pairs).table)
        current = best = evaluate(table)
        best_table = table[:]
        trace = [best]
        temperature = cfg_s.temperature
        moves = list(PAIR_MOVES)
        proposals = stale = 0
        done = False

        while not done:
            rng.shuffle(moves)
            improved = False
            for a, b in moves:
                if proposals >= cfg_s.max_moves or stale >= cfg_s.patience:
                    done = True
                    break
                trial = neighbour(table, a, b, cfg_s.max_pairs)
                if trial is None:
                    stale += 1
                    continue
                if not budget.consume():
                    done = True
                    break
                proposals += 1
                s = evaluate(trial)
                delta = s - current
                accept = delta > cfg_s.epsilon
                if not accept and cfg_s.annealing and math.isfinite(delta) and temperature > 0:
                    accept = rng.random() < math.exp(delta / temperature)
                if accept:
                    table, current = trial, s
                if current > best + cfg_s.epsilon:
                    best, best_table = current, table[:]
                    trace.append(best)
                    improved = True
                    stale = 0
                else:
                    stale += 1
                if cfg_s.annealing and proposals % cfg_s.cooling_interval == 0:
                    temperature *= cfg_s.cooling
            if not cfg_s.annealing and not improved:
                done = True

        result_cfg = cand.configuration.with_plugboard(table_pairs(best_table))
        plaintext = _KB.to_text(best_table[c[best_table[x]]] for c, x in letters)
        debug.log("search", f"refined after {proposals} proposals: {best:.3f} {result_cfg.describe()}")
        return Candidate(best, result_cfg, cand.seq, plaintext, trace)

    # ── whole pipeline ───────────────────────────────────────────
    def crack(self, ciphertext: str | Sequence[int]) -> SearchResult:
        ct = self.prepare(ciphertext)
        coarse = self.coarse_search(ct)

        if self.config.refine_rings and coarse:
            coarse = self._map(self.refine_rings, [(ct, c) for c in coarse])

        seed = self.config.seed
        jobs = [(ct, c, None if seed is None else seed + i) for i, c in enumerate(coarse)]
        bar = _Progress(self.config.progress, len(jobs), "refine")

        def run(text: list[int], cand: Candidate, s: int | None) -> Candidate:
            out = self.refine(text, cand, s)
            bar.tick()
            return out

        with debug.timed("search", "plugboard stage"):
            refined = self._map(run, jobs)
        bar.finish()
        refined.sort(key=lambda c: (c.score, -c.seq), reverse=True)
        best = refined[0] if refined else None
        if best is not None:
            debug.log("search", f"best {best.describe()}")
        return SearchResult(
            best=best,
            candidates=refined,
            coarse=coarse,
            evaluations=self.budget.evaluations,
            elapsed=self.budget.elapsed,
            exhausted=self.budget.exhausted,
        )


def _wheel_space(
    rotors: Iterable[str] | Mapping[str, RotorSpec],
    reflectors: Iterable[str] | Mapping[str, ReflectorSpec],
    **kw,
) -> SearchSpace:
    """Accept wheel-database names or ready-made specs for either pool."""
    try:
        rotor_map = dict(rotors) if isinstance(rotors, Mapping) else {
            n.upper(): RotorSpec.named(n) for n in rotors}
        refl_map = dict(reflectors) if isinstance(reflectors, Mapping) else {
            n.upper(): ReflectorSpec.named(n) for n in reflectors}
    except InvalidConfiguration as err:
        raise InvalidSearchSpace(str(err)) from err
    return SearchSpace(rotor_map, refl_map, **kw)


def crack(
    ciphertext: str,
    rotors: Iterable[str] | Mapping[str, RotorSpec] = ("I", "II", "III", "IV", "V"),
    reflectors: Iterable[str] | Mapping[str, ReflectorSpec] = ("B",),
    *,
    max_evaluations: int | None = None,
    time_limit: float | None = None,
    coarse_scorer: Scorer | None = None,
    fine_scorer: Scorer | None = None,
    orders: Sequence[Sequence[str]] | None = None,
    offsets: Sequence[Iterable[int | str]] | None = None,
    **settings,
) -> SearchResult:
    """One-call attack: wheel names (or specs) in, best configuration out.

    Extra keyword arguments are ``SearchConfig`` fields.
    """
    space = _wheel_space(rotors, reflectors, orders=orders, offsets=offsets)
    controller = SearchController(
        space,
        coarse_scorer=coarse_scorer,
        fine_scorer=fine_scorer,
        config=SearchConfig(**settings),
        budget=Budget(max_evaluations, time_limit),
    )
    return controller.crack(ciphertext)
