# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Small-world phenomenon search: a population of candidates, each of which
is mutated at every generation either locally (small steps) or distantly
(larger or heavy-tailed steps), and replaced by its mutants when they improve
the objective function.
"""

import logging
import warnings
from concurrent import futures
import numpy as np
import smallworld.common.typing as tp
from smallworld.common import errors
from smallworld.functions import corefuncs
from . import mutations
from . import boundaries


logger = logging.getLogger(__name__)

LOWER = -5.12
UPPER = 5.12
VARIANTS = ("three_way", "probabilistic")
Update = tp.Optional[tp.Tuple[np.ndarray, float]]


def _leftmost_argmin(values: tp.Sequence[float]) -> int:
    """Index of the minimum, the first one in case of ties"""
    best = 0
    for k, value in enumerate(values):
        if value < values[best]:
            best = k
    return best


def find_best_solution(
    solutions: tp.Sequence[tp.ArrayLike], objective: tp.Objective = corefuncs.rastrigin
) -> tp.ArrayLike:
    """Returns the solution with minimal fitness. In case of ties, the first one wins.

    Parameters
    ----------
    solutions: sequence of array-like
        the candidates, as a non-empty sequence
    objective: callable
        the function to minimize

    Raises
    ------
    InvalidInputError
        if the sequence is empty
    """
    if not len(solutions):  # pylint: disable=len-as-condition
        raise errors.InvalidInputError("Cannot find the best solution of an empty set of candidates")
    values = [objective(np.asarray(s, dtype=float)) for s in solutions]
    return solutions[_leftmost_argmin(values)]


def as_random_state(random_state: tp.RandomLike = None) -> tp.RandomSource:
    """Returns a random source from a seed, an existing random source, or a fresh
    unseeded numpy RandomState if None
    """
    if random_state is None:
        seed = np.random.randint(2 ** 32, dtype=np.uint32)
        return np.random.RandomState(seed)
    if isinstance(random_state, (int, np.integer)):
        return np.random.RandomState(random_state)
    return random_state


def _build_law(
    law: tp.Union[str, mutations.MutationLaw, None],
    strength: tp.Optional[float],
    default_name: str,
    default_strength: float,
) -> mutations.MutationLaw:
    if law is None:
        law = default_name
    if strength is None and not isinstance(law, mutations.MutationLaw):
        strength = default_strength
    return mutations.as_law(law, strength)


# pylint: disable=too-many-instance-attributes
class SearchConfig:
    """Configuration of one small-world search run.
    It is validated at instantiation, so that no error can happen once the search started.

    Parameters
    ----------
    dimension: int
        dimension D of the search space
    population_size: int
        number N of candidates
    iterations: int
        number K of generations
    local: MutationLaw or str
        law for local (exploitative) mutations, defaults to Gaussian(1.0)
    distant: MutationLaw or str
        law for distant (explorative) mutations, defaults to Cauchy(0.05)
    boundary: BoundaryPolicy or str
        policy bringing mutants back within [lower, upper] ("clamp", "reflect" or "reject")
    variant: str
        "three_way": each candidate is replaced by the best of itself, a local and a distant mutant,
        "probabilistic": each candidate tries a local mutant with probability local_search_probability,
        and a distant mutant otherwise, and is replaced on strict improvement only.
    local_search_probability: float
        probability of trying a local mutant in the probabilistic variant
    lower: float
        lower bound of each coordinate
    upper: float
        upper bound of each coordinate
    objective: str
        name of the registered objective function
    local_strength: float or None
        strength of the local law when provided as a name (not allowed with a law instance)
    distant_strength: float or None
        strength of the distant law when provided as a name (not allowed with a law instance)
    num_workers: int
        number of threads updating candidates concurrently within a generation

    Raises
    ------
    InvalidConfigurationError
        for non-positive sizes, probability outside [0, 1], unordered bounds or unknown names
    PotentialNonTerminationError
        if rejection resampling is used with a law which may never land within the bounds
    """

    # pylint: disable=too-many-arguments,too-many-locals
    def __init__(
        self,
        dimension: int,
        population_size: int = 10,
        iterations: int = 1000,
        local: tp.Union[str, mutations.MutationLaw, None] = None,
        distant: tp.Union[str, mutations.MutationLaw, None] = None,
        boundary: tp.Union[str, boundaries.BoundaryPolicy] = "clamp",
        variant: str = "probabilistic",
        local_search_probability: float = 0.5,
        lower: float = LOWER,
        upper: float = UPPER,
        objective: str = "rastrigin",
        local_strength: tp.Optional[float] = None,
        distant_strength: tp.Optional[float] = None,
        num_workers: int = 1,
    ) -> None:
        for name, value in [
            ("dimension", dimension),
            ("population_size", population_size),
            ("iterations", iterations),
            ("num_workers", num_workers),
        ]:
            if not isinstance(value, (int, np.integer)) or value < 1:
                raise errors.InvalidConfigurationError(f"{name} should be a positive integer (got {value!r})")
        if not 0 <= local_search_probability <= 1:
            raise errors.InvalidConfigurationError(
                f"local_search_probability should be within [0, 1] (got {local_search_probability})"
            )
        if not lower < upper:
            raise errors.InvalidConfigurationError(
                f"Lower bound {lower} should be strictly smaller than upper bound {upper}"
            )
        if variant not in VARIANTS:
            raise errors.InvalidConfigurationError(f'Unknown variant "{variant}", choose among {VARIANTS}')
        self.dimension = int(dimension)
        self.population_size = int(population_size)
        self.iterations = int(iterations)
        self.num_workers = int(num_workers)
        self.variant = variant
        self.local_search_probability = float(local_search_probability)
        self.lower = float(lower)
        self.upper = float(upper)
        self.objective = objective
        self.function = corefuncs.registry.resolve(objective)
        self.local = _build_law(local, local_strength, "gaussian", 1.0)
        self.distant = _build_law(distant, distant_strength, "cauchy", 0.05)
        self.boundary = boundaries.as_policy(boundary)
        for law in (self.local, self.distant):
            self.boundary.check(law, self.lower, self.upper)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(dimension={self.dimension}, population_size={self.population_size}, "
            f"iterations={self.iterations}, local={self.local}, distant={self.distant}, boundary={self.boundary}, "
            f"variant={self.variant!r}, local_search_probability={self.local_search_probability}, "
            f"bounds=[{self.lower}, {self.upper}], objective={self.objective!r}, num_workers={self.num_workers})"
        )


class SmallWorldSearch:
    """Runs the small-world search described by a configuration.

    Parameters
    ----------
    config: SearchConfig
        the run configuration
    random_state: int, RandomState-like or None
        seed or source of uniform and standard normal draws (a fresh numpy RandomState if None)

    Note
    ----
    - with num_workers > 1, each candidate draws from its own RandomState, seeded from random_state
      when the population is drawn, and each generation is a barrier: all candidates are updated
      before any of them is committed. Threaded runs are reproducible given a seed, but differ
      from sequential runs with the same seed.
    - violations holds the boundary diagnostic counts of this run only.
    """

    def __init__(self, config: SearchConfig, random_state: tp.RandomLike = None) -> None:
        self.config = config
        self.random_state = as_random_state(random_state)
        self.population: tp.Optional[np.ndarray] = None
        self.fitnesses: tp.Optional[np.ndarray] = None
        self.violations = boundaries.ViolationCounter()
        self.num_generations = 0
        self._candidate_states: tp.List[tp.RandomSource] = []

    def draw_initial_population(self) -> np.ndarray:
        """Draws each coordinate of each candidate uniformly within the bounds"""
        config = self.config
        shape = (config.population_size, config.dimension)
        population = np.asarray(self.random_state.uniform(config.lower, config.upper, size=shape), dtype=float)
        self.population = population.reshape(shape)
        self.fitnesses = np.array([config.function(x) for x in self.population])
        self.num_generations = 0
        if config.num_workers > 1:
            seeds = np.asarray(self.random_state.uniform(0, 2 ** 32, size=config.population_size))
            self._candidate_states = [np.random.RandomState(int(s) % 2 ** 32) for s in seeds]
        return self.population

    def _mutate(
        self,
        law: mutations.MutationLaw,
        parent: np.ndarray,
        random_state: tp.RandomSource,
        counter: boundaries.ViolationCounter,
    ) -> tp.Tuple[np.ndarray, float]:
        config = self.config
        mutant = config.boundary.mutate(law, parent, random_state, config.lower, config.upper, counter)
        return mutant, config.function(mutant)

    def _three_way_update(
        self, index: int, random_state: tp.RandomSource, counter: boundaries.ViolationCounter
    ) -> Update:
        assert self.population is not None and self.fitnesses is not None
        current = (self.population[index], float(self.fitnesses[index]))
        local = self._mutate(self.config.local, current[0], random_state, counter)
        distant = self._mutate(self.config.distant, current[0], random_state, counter)
        options = [current, local, distant]
        best = _leftmost_argmin([fitness for _, fitness in options])
        return options[best] if best else None

    def _probabilistic_update(
        self, index: int, random_state: tp.RandomSource, counter: boundaries.ViolationCounter
    ) -> Update:
        assert self.population is not None and self.fitnesses is not None
        config = self.config
        use_local = float(random_state.uniform()) <= config.local_search_probability
        law = config.local if use_local else config.distant
        mutant, fitness = self._mutate(law, self.population[index], random_state, counter)
        return (mutant, fitness) if fitness < self.fitnesses[index] else None

    def _update_candidate(
        self, index: int, random_state: tp.RandomSource
    ) -> tp.Tuple[Update, boundaries.ViolationCounter]:
        counter = boundaries.ViolationCounter()
        if self.config.variant == "three_way":
            update = self._three_way_update(index, random_state, counter)
        else:
            update = self._probabilistic_update(index, random_state, counter)
        return update, counter

    def step(self, executor: tp.Optional[futures.Executor] = None) -> None:
        """Runs one generation: all candidates are updated, then all updates are committed.
        The initial population is drawn first if need be.
        """
        if self.population is None:
            self.draw_initial_population()
        assert self.population is not None and self.fitnesses is not None
        indices = range(self.config.population_size)
        if self.config.num_workers == 1:
            results = [self._update_candidate(i, self.random_state) for i in indices]
        elif executor is None:
            with futures.ThreadPoolExecutor(max_workers=self.config.num_workers) as pool:
                results = self._update_concurrently(pool)
        else:
            results = self._update_concurrently(executor)
        # barrier: nothing is committed before all candidates were processed
        for index, (update, counter) in enumerate(results):
            self.violations.update(counter)
            if update is not None:
                self.population[index], self.fitnesses[index] = update
        self.num_generations += 1

    def _update_concurrently(
        self, executor: futures.Executor
    ) -> tp.List[tp.Tuple[Update, boundaries.ViolationCounter]]:
        jobs = [
            executor.submit(self._update_candidate, i, state) for i, state in enumerate(self._candidate_states)
        ]
        return [job.result() for job in jobs]

    def recommend(self) -> tp.Solution:
        """Returns the best candidate of the current population, and its fitness"""
        if self.population is None:
            raise errors.InvalidInputError("No population was drawn yet")
        best = np.array(find_best_solution(list(self.population), self.config.function), dtype=float)
        return best, self.config.function(best)

    def minimize(self) -> tp.Solution:
        """Draws a new population, runs all the generations and returns
        the best point with its fitness
        """
        config = self.config
        logger.debug("Starting %s", config)
        self.violations = boundaries.ViolationCounter()
        self.draw_initial_population()
        if config.num_workers == 1:
            for _ in range(config.iterations):
                self.step()
        else:
            with futures.ThreadPoolExecutor(max_workers=config.num_workers) as executor:
                for _ in range(config.iterations):
                    self.step(executor)
        point, fitness = self.recommend()
        if self.violations.unresolved:
            warnings.warn(
                f"{self.violations.unresolved} coordinate(s) remained out of [{config.lower}, {config.upper}] "
                f"after reflection",
                errors.BoundaryOvershootWarning,
            )
        logger.debug(
            "Finished after %s generations with fitness %s and %s", self.num_generations, fitness, self.violations
        )
        return point, fitness


def optimize(config: SearchConfig, random_state: tp.RandomLike = None) -> tp.Solution:
    """Runs a small-world search and returns the best point found and its fitness

    Parameters
    ----------
    config: SearchConfig
        the run configuration
    random_state: int, RandomState-like or None
        seed or source of uniform and standard normal draws, for reproducibility
    """
    return SmallWorldSearch(config, random_state=random_state).minimize()
