import argparse
import logging
import random
import sys
from pathlib import Path
from typing import List, Optional

from tspga.config import RunConfig
from tspga.data import generate_seed_tours, load_distances, load_seed_tours, write_seed_tours
from tspga.errors import TSPGAError
from tspga.evaluation import EVALUATORS, make_evaluator
from tspga.evolutionary import EvolutionResult, GenerationStats, evolve, log_report
from tspga.population import Population
from tspga.selection import SELECTORS


logger = logging.getLogger("tspga")


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(asctime)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _plotter(mode: Optional[str], target: Optional[float]):
    if mode is None:
        return None

    def plot(stats: GenerationStats, population: Population) -> None:
        if mode == "iter":
            print(f"{stats.iteration_time:.4f}", flush=True)
        else:
            target_txt = "-" if target is None else f"{target:.0f}"
            print(f"{stats.best_length:.0f} {stats.avg_length:.1f} {target_txt}", flush=True)

    return plot


def build_run_config(args) -> RunConfig:
    cfg = RunConfig.from_file(args.config) if args.config else RunConfig()
    cfg.update(
        {
            "population_size": args.population_size,
            "elitism": args.elitism,
            "mutation_rate": args.mutation_rate,
            "offspring_size": args.offspring_size,
            "selection": args.selection,
            "tournament_size": args.tournament_size,
            "random_seed": args.seed,
            "max_iterations": args.max_iterations,
            "max_stale": args.max_stale,
            "target_length": args.target,
            "epsilon": args.epsilon,
            "evaluator": args.evaluator,
            "workers": args.workers,
            "device": args.device,
            "greedy_seeds": args.greedy_seeds,
            "log_every": args.log_every,
        }
    )
    return cfg


def report(result: EvolutionResult) -> None:
    target = result.target_length
    if target is not None:
        if result.reached_target:
            logger.info("Best path (%.1f) found!", target)
        else:
            logger.info("Best path NOT found! (best %.1f, target %.1f)", result.best.raw_fitness, target)
    logger.info("stopped after %d generations: %s", result.generations, result.reason)
    logger.info("GA Time: %.1f (seconds)", result.total_time)
    logger.info("Avg Iteration Time: %.4f (seconds)", result.mean_iteration_time)


def run(args) -> EvolutionResult:
    cfg = build_run_config(args).validate()
    table = load_distances(Path(args.distances))
    if cfg.termination.target_length is None and table.optimum is not None:
        cfg.termination.target_length = table.optimum
    logger.info("loaded %d cities from %s", table.size, args.distances)

    rng = random.Random(cfg.population.random_seed)
    if args.seeds:
        tours = load_seed_tours(Path(args.seeds))
        logger.info("read %d seed tours from %s", len(tours), args.seeds)
    else:
        tours = generate_seed_tours(table, cfg.population.population_size, rng, greedy=cfg.greedy_seeds)
        logger.info("generated %d seed tours (%d greedy)", len(tours), min(cfg.greedy_seeds, len(tours)))

    with make_evaluator(cfg.evaluator, workers=cfg.workers, device=cfg.device) as evaluator:
        population = Population(table, cfg.population, rng=rng, evaluator=evaluator)
        result = evolve(
            population,
            tours,
            cfg.termination,
            on_generation=_plotter(args.plot, cfg.termination.target_length),
            log_every=cfg.log_every,
        )
    report(result)
    log_report(result.generations, population)
    return result


def seed(args) -> List[List[int]]:
    table = load_distances(Path(args.distances))
    rng = random.Random(args.seed)
    tours = generate_seed_tours(table, args.count, rng, greedy=args.greedy_seeds)
    write_seed_tours(tours, Path(args.out))
    logger.info("wrote %d seed tours over %d cities to %s", len(tours), table.size, args.out)
    return tours


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TSP genetic algorithm")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Evolve tours until a termination condition is met")
    run_parser.add_argument("--distances", required=True, help="Distance matrix file or TSPLIB .tsp file")
    run_parser.add_argument("--seeds", help="Seed tours, one per line (generated when omitted)")
    run_parser.add_argument("--config", help="JSON file with run settings; flags override it")
    run_parser.add_argument("--population-size", type=int)
    run_parser.add_argument("--elitism", type=float, help="Fraction of the next generation kept from the best")
    run_parser.add_argument("--mutation-rate", type=float)
    run_parser.add_argument("--offspring-size", type=int)
    run_parser.add_argument("--selection", choices=sorted(SELECTORS))
    run_parser.add_argument("--tournament-size", type=int)
    run_parser.add_argument("--seed", type=int, help="Random seed")
    run_parser.add_argument("--greedy-seeds", type=int, help="Nearest-neighbour tours among generated seeds")
    run_parser.add_argument("--max-iterations", type=int)
    run_parser.add_argument("--max-stale", type=int, help="Generations allowed without improvement")
    run_parser.add_argument("--target", type=float, help="Known best tour length")
    run_parser.add_argument("--epsilon", type=float, help="Accepted distance from the target, as a fraction")
    run_parser.add_argument("--evaluator", choices=sorted(EVALUATORS))
    run_parser.add_argument("--workers", type=int, help="Threads for the threads evaluator")
    run_parser.add_argument("--device", help="Torch device for the torch evaluator")
    run_parser.add_argument("--log-every", type=int, help="Report interval in generations (0 disables)")
    run_parser.add_argument("--plot", choices=["iter", "fitness"], help="Print per-generation plot data to stdout")
    run_parser.set_defaults(func=run)

    seed_parser = subparsers.add_parser("seed", help="Write generated seed tours to a file")
    seed_parser.add_argument("--distances", required=True)
    seed_parser.add_argument("--count", type=int, default=200)
    seed_parser.add_argument("--out", required=True)
    seed_parser.add_argument("--seed", type=int)
    seed_parser.add_argument("--greedy-seeds", type=int, default=0)
    seed_parser.set_defaults(func=seed)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    try:
        args.func(args)
    except TSPGAError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
