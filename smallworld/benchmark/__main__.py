# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import argparse
import logging
from pathlib import Path
import smallworld.common.typing as tp
from smallworld.optimization import boundaries
from smallworld.optimization import search
from . import core


def launch(args: argparse.Namespace) -> str:
    """Runs the sweep described by the command line arguments,
    and returns the printed report
    """
    df = core.sweep(
        local_strengths=core.frange(args.local_start, args.local_end, args.local_step),
        distant_strengths=core.frange(args.distant_start, args.distant_end, args.distant_step),
        local_search_probabilities=core.frange(
            args.probability_start, args.probability_end, args.probability_step
        ),
        num_tests=args.num_tests,
        seed=args.seed,
        packages=args.packages,
        dimension=args.dimension,
        population_size=args.population_size,
        iterations=args.iterations,
        variant=args.variant,
        boundary=args.boundary,
        num_workers=args.num_workers,
    )
    lines = [
        "Simulation Parameters:",
        f"- Number of dimensions: {args.dimension}",
        f"- Max iterations per test: {args.iterations}",
        f"- Number of candidate solutions: {args.population_size}",
        f"- Number of tests per algorithm: {args.num_tests}",
        "",
        core.to_markdown(df),
        "",
        "Best Parameters Found for Each Mutation Package:",
    ]
    for row in core.best_parameters(df).itertuples(index=False):
        lines.extend(
            [
                f"- {row.algorithm}:",
                f"\t- Local Search Probability: {row.local_search_probability:.2f}",
                f"\t- Local Strength: {row.local_strength:.2f}",
                f"\t- Distant Strength: {row.distant_strength:.2f}",
                f"\t- Average Result: {row.average_result:.4f}",
            ]
        )
    if args.output is not None:
        core.save_or_append_to_csv(df, Path(args.output))
        lines.append(f"\nSaved data to {args.output}")
    return "\n".join(lines)


def _add_range(parser: argparse.ArgumentParser, name: str, default: float, step: float, text: str) -> None:
    parser.add_argument(f"--{name}_start", type=float, default=default, help=f"First {text}")
    parser.add_argument(f"--{name}_end", type=float, default=default, help=f"Last {text} (included)")
    parser.add_argument(f"--{name}_step", type=float, default=step, help=f"Increment of the {text}")


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Benchmark the small-world search with several mutation packages on the rastrigin function."
    )
    parser.add_argument("--dimension", type=int, default=3, help="Dimension of the search space")
    parser.add_argument("--iterations", type=int, default=1000, help="Number of generations per search")
    parser.add_argument("--population_size", type=int, default=10, help="Number of candidate solutions")
    parser.add_argument("--num_tests", type=int, default=100, help="Number of searches per setting")
    _add_range(parser, "local", 1.0, 0.01, "local law strength")
    _add_range(parser, "distant", 0.05, 0.05, "distant law strength")
    _add_range(parser, "probability", 0.5, 0.05, "local search probability")
    parser.add_argument(
        "--variant", type=str, default="probabilistic", choices=search.VARIANTS, help="Selection variant"
    )
    parser.add_argument(
        "--boundary", type=str, default="clamp", choices=sorted(boundaries.registry), help="Boundary policy"
    )
    parser.add_argument(
        "--packages",
        nargs="+",
        default=None,
        choices=[p.name for p in core.make_packages(1.0, 1.0)],
        help="Mutation packages to benchmark (all by default)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Use a seed for reproducibility",
    )
    parser.add_argument(
        "--num_workers",
        type=int,
        default=1,
        help="Number of threads updating the candidates of a generation",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output path for a CSV file of the results. Existing files are appended",
    )
    parser.add_argument("--verbose", action="store_true", help="Log progress for each setting")
    return parser


def main(argv: tp.Optional[tp.Sequence[str]] = None) -> None:
    args = get_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    print(launch(args))


if __name__ == "__main__":
    main()
