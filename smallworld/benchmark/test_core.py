# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import logging
import tempfile
import itertools
from pathlib import Path
import pytest
import numpy as np
import pandas as pd
from smallworld.common import errors
from smallworld.common import testing
from smallworld.optimization import mutations
from . import core
from .__main__ import get_parser, launch


@testing.parametrized(
    single=(1.0, 1.0, 0.01, [1.0]),
    probabilities=(0.0, 0.2, 0.05, [0.0, 0.05, 0.1, 0.15, 0.2]),
    rounding=(0.1, 0.3, 0.1, [0.1, 0.2, 0.3]),
    empty=(1.0, 0.5, 0.1, []),
)
def test_frange(start: float, stop: float, step: float, expected: tp.List[float]) -> None:
    np.testing.assert_almost_equal(core.frange(start, stop, step), expected)


def test_frange_error() -> None:
    with pytest.raises(errors.InvalidConfigurationError, match="step should be positive"):
        core.frange(0, 1, 0)
    with pytest.raises(ValueError):
        core.frange(0, 1, -0.1)


def test_make_packages() -> None:
    packages = core.make_packages(1.0, 0.05)
    np.testing.assert_equal([p.name for p in packages], ["Normal+Cauchy", "Normal+Normal", "Uniform+Cauchy"])
    assert packages[0].local == mutations.Gaussian(1.0)
    assert packages[0].distant == mutations.Cauchy(0.05)
    assert packages[2].local == mutations.Uniform(1.0)


def test_seed_generator() -> None:
    output = [list(itertools.islice(core.create_seed_generator(12), 3)) for _ in range(2)]
    np.testing.assert_equal(output[0], output[1])
    assert len(set(output[0])) == 3
    assert next(core.create_seed_generator(None)) is None


def test_sweep() -> None:
    kwargs: tp.Dict[str, tp.Any] = dict(
        local_strengths=[0.5, 1.0],
        local_search_probabilities=[0.5],
        num_tests=2,
        seed=12,
        dimension=2,
        population_size=4,
        iterations=10,
    )
    df = core.sweep(**kwargs)
    np.testing.assert_equal(list(df.columns), core.COLUMNS)
    np.testing.assert_equal(len(df), 6)
    np.testing.assert_array_equal(df.algorithm.unique(), ["Normal+Cauchy", "Normal+Normal", "Uniform+Cauchy"])
    assert (df.average_result >= 0).all()
    assert (df.average_time_ms >= 0).all()
    other = core.sweep(**kwargs)
    np.testing.assert_array_equal(df.average_result, other.average_result)
    best = core.best_parameters(df)
    np.testing.assert_equal(len(best), 3)
    for row in best.itertuples(index=False):
        assert row.average_result == df[df.algorithm == row.algorithm].average_result.min()


def test_sweep_selected_packages() -> None:
    df = core.sweep(num_tests=1, seed=0, packages=["Normal+Normal"], dimension=2, population_size=3, iterations=5)
    np.testing.assert_array_equal(df.algorithm, ["Normal+Normal"])


def test_sweep_skips_packages_refused_by_policy(caplog: tp.Any) -> None:
    with caplog.at_level(logging.WARNING, logger=core.__name__):
        df = core.sweep(num_tests=1, seed=0, dimension=2, population_size=3, iterations=5, boundary="reject")
    np.testing.assert_array_equal(df.algorithm, ["Normal+Cauchy", "Normal+Normal"])
    assert "Skipping Uniform+Cauchy" in caplog.text
    np.testing.assert_equal(len(core.best_parameters(df)), 2)
    df = core.sweep(
        num_tests=1, seed=0, packages=["Uniform+Cauchy"], dimension=2, iterations=5, boundary="reject"
    )
    assert df.empty
    assert core.best_parameters(df).empty


def test_to_markdown() -> None:
    df = pd.DataFrame([("Normal+Cauchy", 1.0, 0.05, 0.5, 0.123456, 3.2)], columns=core.COLUMNS)
    lines = core.to_markdown(df).splitlines()
    np.testing.assert_equal(len(lines), 3)
    np.testing.assert_equal(lines[2], "| Normal+Cauchy | 1.00 | 0.05 | 0.50 | 0.1235 | 3 |")
    assert core.best_parameters(df.iloc[:0]).empty


def test_commandline_launch() -> None:
    with tempfile.TemporaryDirectory() as folder:
        output = Path(folder) / "sweep.csv"
        argv = ["--num_tests", "1", "--iterations", "5", "--seed", "12", "--output", str(output)]
        argv += ["--distant_start", "0.05", "--distant_end", "0.1"]
        for _ in range(2):
            report = launch(get_parser().parse_args(argv))
            assert "Best Parameters Found for Each Mutation Package:" in report
            assert "- Uniform+Cauchy:" in report
        df = pd.read_csv(output)
        np.testing.assert_equal(len(df), 12)  # appended twice, 3 packages and 2 distant strengths


def test_commandline_launch_reject_boundary() -> None:
    argv = ["--num_tests", "1", "--iterations", "2", "--seed", "0", "--boundary", "reject"]
    report = launch(get_parser().parse_args(argv))
    assert "Best Parameters Found for Each Mutation Package:" in report
    assert "- Normal+Cauchy:" in report
    assert "- Normal+Normal:" in report
    assert "- Uniform+Cauchy:" not in report


def test_commandline_choices() -> None:
    with pytest.raises(SystemExit):
        get_parser().parse_args(["--boundary", "bounce"])
    args = get_parser().parse_args(["--boundary", "reject", "--variant", "three_way"])
    np.testing.assert_equal((args.boundary, args.variant), ("reject", "three_way"))
