"""NEAT training harness for the boat simulator.

The trainer uses a config-driven ``neat-python`` setup. Every generation each
genome pilots its own boat over several freshly generated tracks; all genomes
share one environment per track since boats do not interact. The fitness of a
genome is its environment fitness averaged over those tracks. Per-generation
metrics are logged to CSV and JSON and the champion is pickled at the end.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import pickle
import random
import shutil
import statistics
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import neat

from sim.actions import apply_outputs
from sim.boat import Boat
from sim.env import SailingEnv, basic_env
from sim.map_io import TrackConfig, build_env, load_track
from sim.observation import OBSERVATION_FIELDS, OBSERVATION_VERSION
from sim.track import TrackSpec

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Path(__file__).resolve().parent / "configs" / "neat_config.txt"
OUTPUT_ACTIVATION = "tanh"


@dataclass
class TrainingConfig:
    """Run parameters that sit on top of the neat-python config file.

    Attributes:
        pop_size: Target population size.
        max_generations: Number of generations to train for.
        sims_per_gen: Tracks each genome races on per generation.
        sim_steps: Steps per episode, 60 steps is one simulated second.
        dt: Time step in seconds.
        target_species: Species count the compatibility threshold is steered
            toward.
        activations: Activation functions mutation may pick from.
        track_spec: Parameters for generated tracks.
        track: Optional fixed track used instead of generated ones.
        seed: Seed for track generation; ``None`` draws fresh tracks.
    """

    pop_size: int = 250
    max_generations: int = 100
    sims_per_gen: int = 10
    sim_steps: int = 60 * 20
    dt: float = 1 / 60
    target_species: int = 15
    activations: Sequence[str] = ("tanh", "sigmoid")
    track_spec: TrackSpec = field(default_factory=TrackSpec)
    track: Optional[TrackConfig] = None
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.pop_size < 2:
            raise ValueError("pop_size must be at least 2")
        if self.sims_per_gen < 1:
            raise ValueError("sims_per_gen must be at least 1")
        if self.sim_steps < 1:
            raise ValueError("sim_steps must be at least 1")
        if not self.activations:
            raise ValueError("At least one activation is required")


class PilotGenome(neat.DefaultGenome):
    """Genome whose outputs stay ``tanh`` so sail and rudder span ``[-1, 1]``.

    Hidden nodes draw their activation from ``activation_options`` when they
    are created instead of starting from ``activation_default``.
    """

    @staticmethod
    def create_node(config, node_id: int):
        node = neat.DefaultGenome.create_node(config, node_id)
        if node_id in config.output_keys:
            node.activation = OUTPUT_ACTIVATION
        else:
            node.activation = random.choice(list(config.activation_options))
        return node

    def mutate(self, config) -> None:
        super().mutate(config)
        for key in config.output_keys:
            if key in self.nodes:
                self.nodes[key].activation = OUTPUT_ACTIVATION


def load_neat_config(path: Path) -> neat.Config:
    return neat.Config(
        PilotGenome,
        neat.DefaultReproduction,
        neat.DefaultSpeciesSet,
        neat.DefaultStagnation,
        str(path),
    )


def build_neat_config(path: Path, training: TrainingConfig) -> neat.Config:
    """Load a neat-python config and apply the run's overrides."""

    config = load_neat_config(path)
    genome_config = config.genome_config
    if genome_config.num_inputs != len(OBSERVATION_FIELDS):
        raise ValueError(
            f"NEAT config must have {len(OBSERVATION_FIELDS)} inputs, got {genome_config.num_inputs}"
        )
    if genome_config.num_outputs != 2:
        raise ValueError(f"NEAT config must have 2 outputs, got {genome_config.num_outputs}")

    for name in training.activations:
        if not genome_config.activation_defs.is_valid(name):
            raise ValueError(f"invalid activation: {name}")
    genome_config.activation_options = list(training.activations)
    config.pop_size = training.pop_size
    return config


def _make_env(
    training: TrainingConfig,
    rng: random.Random,
    boats: Sequence[Boat],
    trace_path: Path | None = None,
    boat_names: Sequence[str] | None = None,
) -> SailingEnv:
    options = {"trace_path": str(trace_path) if trace_path else None, "boat_names": boat_names}
    if training.track is not None:
        return build_env(training.track, boats, **options)
    return basic_env(training.track_spec.generate(rng), boats, **options)


def run_episode(
    networks: Sequence[neat.nn.FeedForwardNetwork],
    env: SailingEnv,
    steps: int,
    dt: float,
) -> Dict[int, float]:
    """Let ``networks[i]`` pilot ``env.boats[i]`` for ``steps`` steps."""

    for _ in range(steps):
        inputs = env.get_inputs()
        apply_outputs(env, {index: network.activate(inputs[index]) for index, network in enumerate(networks)})
        env.step(dt)
    return env.get_fitnesses()


class TrackEvaluator:
    def __init__(self, training: TrainingConfig, rng: random.Random | None = None) -> None:
        self.training = training
        self.rng = rng or random.Random(training.seed)

    def evaluate_genomes(
        self,
        genomes: Iterable[tuple[int, neat.DefaultGenome]],
        config: neat.Config,
    ) -> None:
        genome_list = [genome for _, genome in genomes]
        networks = [neat.nn.FeedForwardNetwork.create(genome, config) for genome in genome_list]
        totals = [0.0] * len(genome_list)

        for _ in range(self.training.sims_per_gen):
            env = _make_env(self.training, self.rng, [Boat.default() for _ in genome_list])
            fitnesses = run_episode(networks, env, self.training.sim_steps, self.training.dt)
            for index, value in fitnesses.items():
                totals[index] += value

        for genome, total in zip(genome_list, totals):
            genome.fitness = total / self.training.sims_per_gen


class SpeciesTargetReporter(neat.reporting.BaseReporter):
    """Nudge the compatibility threshold toward a target species count."""

    def __init__(self, config: neat.Config, target_species: int, factor: float = 1.1) -> None:
        if target_species < 1:
            raise ValueError("target_species must be at least 1")
        self.config = config
        self.target_species = target_species
        self.factor = factor

    @property
    def threshold(self) -> float:
        return self.config.species_set_config.compatibility_threshold

    def post_evaluate(self, config: neat.Config, population, species, best_genome) -> None:
        count = len(species.species)
        if count < self.target_species:
            self.config.species_set_config.compatibility_threshold = self.threshold / self.factor
        elif count > self.target_species:
            self.config.species_set_config.compatibility_threshold = self.threshold * self.factor
        logger.debug("Species %d, compatibility threshold now %.3f", count, self.threshold)


class MetricsLogger(neat.reporting.BaseReporter):
    def __init__(self, csv_path: Path, json_path: Path) -> None:
        self.csv_path = csv_path
        self.json_path = json_path
        self.current_generation = -1

        os.makedirs(self.csv_path.parent, exist_ok=True)
        with open(self.csv_path, "w", encoding="utf-8") as csv_file:
            csv_file.write("generation,species,best,mean,stdev,min\n")

        os.makedirs(self.json_path.parent, exist_ok=True)
        with open(self.json_path, "w", encoding="utf-8") as json_file:
            json.dump([], json_file)

    def start_generation(self, generation: int) -> None:
        self.current_generation = generation

    def post_evaluate(self, config: neat.Config, population: Dict[int, neat.DefaultGenome], species, best_genome: neat.DefaultGenome) -> None:
        fitness_values = [g.fitness for g in population.values() if g.fitness is not None]
        if not fitness_values:
            return

        entry = {
            "generation": self.current_generation,
            "species": len(species.species),
            "best": max(fitness_values),
            "mean": statistics.fmean(fitness_values),
            "stdev": statistics.pstdev(fitness_values),
            "min": min(fitness_values),
        }

        with open(self.csv_path, "a", encoding="utf-8") as csv_file:
            csv_file.write(
                f"{entry['generation']},{entry['species']},{entry['best']},{entry['mean']},{entry['stdev']},{entry['min']}\n"
            )

        with open(self.json_path, "r+", encoding="utf-8") as json_file:
            data = json.load(json_file)
            data.append(entry)
            json_file.seek(0)
            json.dump(data, json_file, indent=2)
            json_file.truncate()


class SnapshotReporter(neat.reporting.BaseReporter):
    """Every ``interval`` generations, pickle the best genome and record a trace."""

    def __init__(self, output_dir: Path, interval: int, training: TrainingConfig, trace_seed: int = 0) -> None:
        if interval < 1:
            raise ValueError("snapshot interval must be at least 1")
        self.output_dir = output_dir
        self.interval = interval
        self.training = training
        self.trace_seed = trace_seed
        self.current_generation = -1

    def start_generation(self, generation: int) -> None:
        self.current_generation = generation

    def post_evaluate(
        self,
        config: neat.Config,
        population: Dict[int, neat.DefaultGenome],
        species,
        best_genome: neat.DefaultGenome,
    ) -> None:
        if self.current_generation < 0 or self.current_generation % self.interval != 0:
            return

        snapshot_dir = self.output_dir / f"gen_{self.current_generation:04d}"
        save_genome(best_genome, snapshot_dir / "champion.pkl")
        fitness = record_trace(best_genome, config, self.training, snapshot_dir / "trace.jsonl", self.trace_seed)

        meta = {
            "generation": self.current_generation,
            "best_fitness": best_genome.fitness,
            "trace_fitness": fitness,
            "trace_seed": self.trace_seed,
            "observation_version": OBSERVATION_VERSION,
        }
        with open(snapshot_dir / "meta.json", "w", encoding="utf-8") as meta_file:
            json.dump(meta, meta_file, indent=2)


def _genome_meta_path(path: Path) -> Path:
    return path.with_suffix(".json")


def save_genome(genome: neat.DefaultGenome, path: Path) -> None:
    """Pickle ``genome`` and record the observation layout it was trained on."""

    os.makedirs(path.parent, exist_ok=True)
    with open(path, "wb") as fp:
        pickle.dump(genome, fp)

    meta = {
        "observation_version": OBSERVATION_VERSION,
        "inputs": list(OBSERVATION_FIELDS),
        "fitness": genome.fitness,
    }
    with open(_genome_meta_path(path), "w", encoding="utf-8") as meta_file:
        json.dump(meta, meta_file, indent=2)


def load_genome(path: Path) -> neat.DefaultGenome:
    """Load a pickled genome, rejecting one trained on other observations."""

    meta_path = _genome_meta_path(path)
    if not meta_path.exists():
        raise ValueError(f"Genome {path} has no metadata file {meta_path.name}")
    with open(meta_path, "r", encoding="utf-8") as meta_file:
        meta = json.load(meta_file)
    version = meta.get("observation_version")
    if version != OBSERVATION_VERSION:
        raise ValueError(
            f"Genome {path} was trained on observation version {version}, expected {OBSERVATION_VERSION}"
        )

    with open(path, "rb") as fp:
        return pickle.load(fp)


def record_trace(
    genome: neat.DefaultGenome,
    config: neat.Config,
    training: TrainingConfig,
    trace_path: Path,
    seed: int,
) -> float:
    """Race ``genome`` alone on a seeded track, write its trace, return its fitness."""

    network = neat.nn.FeedForwardNetwork.create(genome, config)
    env = _make_env(training, random.Random(seed), [Boat.default()], trace_path=trace_path, boat_names=["champion"])
    return run_episode([network], env, training.sim_steps, training.dt)[0]


def train(
    training: TrainingConfig,
    config: neat.Config,
    output: Path,
    snapshot_interval: int = 0,
) -> neat.DefaultGenome:
    output.mkdir(parents=True, exist_ok=True)
    evaluator = TrackEvaluator(training)

    population = neat.Population(config)
    population.add_reporter(neat.StatisticsReporter())
    population.add_reporter(neat.StdOutReporter(True))
    population.add_reporter(SpeciesTargetReporter(config, training.target_species))
    population.add_reporter(MetricsLogger(output / "fitness_log.csv", output / "fitness_log.json"))
    if snapshot_interval > 0:
        snapshot_dir = output / "snapshots"
        if snapshot_dir.exists():
            shutil.rmtree(snapshot_dir)
        population.add_reporter(SnapshotReporter(snapshot_dir, snapshot_interval, training))

    logger.info(
        "Training %d genomes for %d generations on %d tracks per generation",
        training.pop_size,
        training.max_generations,
        training.sims_per_gen,
    )
    winner = population.run(evaluator.evaluate_genomes, n=training.max_generations)

    genome_path = output / "champion.pkl"
    save_genome(winner, genome_path)
    record_trace(winner, config, training, output / "champion_trace.jsonl", seed=0)
    logger.info("Saved champion genome to %s", genome_path)
    return winner


def _parse_activations(value: str) -> List[str]:
    activations = [part.strip() for part in value.split(":") if part.strip()]
    if not activations:
        raise argparse.ArgumentTypeError("expected a colon separated list of activations")
    return activations


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG, help="path to NEAT config file")
    parser.add_argument("--output", type=Path, default=Path("data/neat_runs/latest"), help="output directory for logs and artifacts")
    parser.add_argument("--pop-size", type=int, default=250, help="target population size")
    parser.add_argument("--max-generations", type=int, default=100, help="number of generations to train for")
    parser.add_argument("--sims-per-gen", type=int, default=10, help="number of tracks for each genome to race on per generation")
    parser.add_argument("--sim-steps", type=int, default=60 * 20, help="steps per training sim, 60 steps is 1 second")
    parser.add_argument("--target-species", type=int, default=15, help="target number of species during training")
    parser.add_argument(
        "--activations",
        type=_parse_activations,
        default=["tanh", "sigmoid"],
        help="colon separated list of neat-python activations mutation may use, e.g. tanh:sigmoid:relu",
    )
    parser.add_argument("--track-distance", type=float, default=12.0, help="radius of generated tracks")
    parser.add_argument("--track-count", type=int, default=10, help="waypoints per generated track")
    parser.add_argument("--track-file", type=Path, default=None, help="train on a fixed JSON track instead of generated ones")
    parser.add_argument("--seed", type=int, default=None, help="seed for generated tracks")
    parser.add_argument("--snapshot-interval", type=int, default=0, help="save a champion snapshot every N generations")
    parser.add_argument("--log-level", default="INFO", help="logging level")
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    training = TrainingConfig(
        pop_size=args.pop_size,
        max_generations=args.max_generations,
        sims_per_gen=args.sims_per_gen,
        sim_steps=args.sim_steps,
        target_species=args.target_species,
        activations=args.activations,
        track_spec=TrackSpec(distance=args.track_distance, count=args.track_count),
        track=load_track(args.track_file) if args.track_file else None,
        seed=args.seed,
    )
    config = build_neat_config(args.config, training)
    train(training, config, args.output, snapshot_interval=args.snapshot_interval)

    print(f"Saved champion genome to {args.output / 'champion.pkl'}")
    print(f"Saved trace to {args.output / 'champion_trace.jsonl'}")


if __name__ == "__main__":
    main()
