# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import time
import logging
import itertools
from pathlib import Path
import numpy as np
import pandas as pd
import smallworld.common.typing as tp
from smallworld.common import errors
from smallworld.optimization import mutations
from smallworld.optimization import search


logger = logging.getLogger(__name__)

COLUMNS = [
    "algorithm",
    "local_strength",
    "distant_strength",
    "local_search_probability",
    "average_result",
    "average_time_ms",
]


class MutationPackage(tp.NamedTuple):
    """Named pair of local and distant mutation laws"""

    name: str
    local: mutations.MutationLaw
    distant: mutations.MutationLaw


def make_packages(local_strength: float, distant_strength: float) -> tp.List[MutationPackage]:
    """Returns the benchmarked combinations of local and distant laws"""
    return [
        MutationPackage(
            "Normal+Cauchy", mutations.Gaussian(local_strength), mutations.Cauchy(distant_strength)
        ),
        MutationPackage(
            "Normal+Normal", mutations.Gaussian(local_strength), mutations.Gaussian(distant_strength)
        ),
        MutationPackage(
            "Uniform+Cauchy", mutations.Uniform(local_strength), mutations.Cauchy(distant_strength)
        ),
    ]


def frange(start: float, stop: float, step: float) -> tp.List[float]:
    """Inclusive range of floats, robust to rounding errors on the last value"""
    if step <= 0:
        raise errors.InvalidConfigurationError(f"step should be positive (got {step})")
    num = int(np.floor((stop - start) / step + 1e-9)) + 1
    return [round(start + k * step, 10) for k in range(max(0, num))]


def create_seed_generator(seed: tp.Optional[int]) -> tp.Iterator[tp.Optional[int]]:
    """Create a stream of seeds, independent from the standard random stream.
    This is designed to be used in experiment plans generators, for reproducibility.

    Parameter
    ---------
    seed: int or None
        the initial seed

    Yields
    ------
    int or None
        potential new seeds, or None if the initial seed was None
    """
    generator = None if seed is None else np.random.RandomState(seed=seed)
    while True:
        yield None if generator is None else generator.randint(2 ** 32, dtype=np.uint32)


def run_package(
    package: MutationPackage,
    num_tests: int,
    seeds: tp.Iterator[tp.Optional[int]],
    local_search_probability: float = 0.5,
    **config_kwargs: tp.Any,
) -> tp.Tuple[float, float]:
    """Runs num_tests independent searches and returns the average best fitness
    and the average wall time in milliseconds
    """
    config = search.SearchConfig(
        local=package.local,
        distant=package.distant,
        local_search_probability=local_search_probability,
        **config_kwargs,
    )
    results = []
    durations = []
    for _ in range(num_tests):
        start = time.perf_counter()
        _, fitness = search.optimize(config, random_state=next(seeds))
        durations.append(time.perf_counter() - start)
        results.append(fitness)
    return float(np.mean(results)), 1000 * float(np.mean(durations))


# pylint: disable=too-many-arguments,too-many-locals
def sweep(
    local_strengths: tp.Sequence[float] = (1.0,),
    distant_strengths: tp.Sequence[float] = (0.05,),
    local_search_probabilities: tp.Sequence[float] = (0.5,),
    num_tests: int = 100,
    seed: tp.Optional[int] = None,
    packages: tp.Optional[tp.Sequence[str]] = None,
    **config_kwargs: tp.Any,
) -> pd.DataFrame:
    """Benchmarks every mutation package for every combination of parameters

    Parameters
    ----------
    local_strengths: sequence of float
        strengths of the local laws
    distant_strengths: sequence of float
        strengths of the distant laws
    local_search_probabilities: sequence of float
        probabilities of trying local mutations (probabilistic variant)
    num_tests: int
        number of independent searches per setting
    seed: int or None
        seed of the whole sweep, for reproducibility
    packages: sequence of str or None
        names of the packages to benchmark (all by default)
    **config_kwargs:
        other SearchConfig parameters (dimension, population_size, iterations, variant, boundary...)

    Returns
    -------
    pd.DataFrame
        one row per setting, with columns algorithm, local_strength, distant_strength,
        local_search_probability, average_result, average_time_ms. Packages refused by the
        boundary policy (PotentialNonTerminationError) are logged and left out.
    """
    seeds = create_seed_generator(seed)
    rows = []
    for probability, local_strength, distant_strength in itertools.product(
        local_search_probabilities, local_strengths, distant_strengths
    ):
        for package in make_packages(local_strength, distant_strength):
            if packages is not None and package.name not in packages:
                continue
            try:
                result, duration = run_package(package, num_tests, seeds, probability, **config_kwargs)
            except errors.PotentialNonTerminationError as e:
                logger.warning(
                    "Skipping %s (local %s, distant %s): %s", package.name, local_strength, distant_strength, e
                )
                continue
            logger.info(
                "%s (local %s, distant %s, p=%s): average result %.4f in %.1fms",
                package.name,
                local_strength,
                distant_strength,
                probability,
                result,
                duration,
            )
            rows.append((package.name, local_strength, distant_strength, probability, result, duration))
    return pd.DataFrame(rows, columns=COLUMNS)


def best_parameters(df: pd.DataFrame) -> pd.DataFrame:
    """Returns, for each algorithm, the setting with the lowest average result"""
    if df.empty:
        return df
    indices = df.groupby("algorithm", sort=True)["average_result"].idxmin()
    return df.loc[indices.values].reset_index(drop=True)


def to_markdown(df: pd.DataFrame) -> str:
    """Formats the benchmark results as a markdown table"""
    lines = [
        "| Algorithm | Local strength | Distant strength | Local Search Probability | Average Result | Average Time (ms) |",
        "|-|-|-|-|-|-|",
    ]
    for row in df.itertuples(index=False):
        lines.append(
            f"| {row.algorithm} | {row.local_strength:.2f} | {row.distant_strength:.2f} | "
            f"{row.local_search_probability:.2f} | {row.average_result:.4f} | {row.average_time_ms:.0f} |"
        )
    return "\n".join(lines)


def save_or_append_to_csv(df: pd.DataFrame, path: Path) -> None:
    """Saves a dataframe to a file in append mode"""
    if path.exists():
        logger.info("Appending to existing file %s", path)
        predf = pd.read_csv(str(path))
        df = pd.concat([predf, df], sort=False)
    df.to_csv(path, index=False)
