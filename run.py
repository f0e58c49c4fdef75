from datetime import datetime, timezone
import time

import hydra
from hydra.utils import instantiate
from loguru import logger
from omegaconf import DictConfig

from blockevo.evolution.config import EvolutionConfig
from blockevo.evolution.manager import EvolutionManager
from blockevo.evolution.tournament import Tournament
from blockevo.exceptions import TournamentError
from blockevo.persistence.serializer import load_state, save_state
from blockevo.simulation.kinematic import KinematicSimulator
from blockevo.utils.logger_setup import setup_logger


def run_tournament(
    manager: EvolutionManager, simulator: KinematicSimulator, size: int
) -> None:
    tournament = Tournament(manager)
    try:
        entries = tournament.select(size)
    except TournamentError as e:
        logger.info(f"Skipping tournament: {e}")
        return
    results = simulator.evaluate([entry.creature for entry in entries])
    outcome = tournament.complete(entries, results)
    for place, standing in enumerate(outcome.standings, start=1):
        logger.info(
            f"  {place:2d}. {standing.name} (gen {standing.generation}) {standing.fitness:.2f}"
        )


def run_evolution(cfg: DictConfig) -> None:
    start_time = time.time()

    logger.info("=" * 80)
    logger.info("blockevo creature evolution")
    logger.info("=" * 80)
    logger.info(f"Start time: {datetime.now(timezone.utc).isoformat()}")

    config: EvolutionConfig = instantiate(cfg.evolution)
    simulator: KinematicSimulator = instantiate(cfg.simulator)
    manager = EvolutionManager(config)

    if cfg.state_file:
        logger.info(f"Resuming from {cfg.state_file}")
        load_state(manager, cfg.state_file)
        manager.continue_evolution()
        if not manager.has_existing_population():
            logger.warning("Saved state has no population to evaluate, nothing to do")
            return
    else:
        manager.start_evolution()

    logger.info(f"Fitness mode: {manager.fitness_mode_description()}")
    max_gens: int = cfg.max_generations
    try:
        for _ in range(max_gens):
            population = manager.get_population()
            outcome = manager.on_generation_evaluated(simulator.evaluate(population))
            logger.info(
                f"Gen {outcome.generation} [{outcome.kind.value}] "
                f"best={outcome.best_fitness:.2f} target={outcome.effective_target:.2f} "
                f"next={outcome.next_generation}"
            )
            if not outcome.population_ready:
                logger.warning("No population left to evaluate, stopping")
                break
            every = cfg.tournament_every
            if every and manager.metrics.generations_evaluated % every == 0:
                run_tournament(manager, simulator, cfg.tournament_size)
    except KeyboardInterrupt:
        logger.info("Evolution interrupted by user")
    finally:
        if cfg.save_to:
            save_state(manager, cfg.save_to)
        champion = manager.all_time_champion
        if champion is not None:
            logger.info(
                f"All-time champion: {champion.name} | blocks={champion.block_count}, "
                f"fitness={champion.fitness:.2f}"
            )
            logger.info(f"DNA: {champion.dna}")
            for line in champion.movement_summary():
                logger.info(f"  {line}")
        stats = manager.get_backtrack_stats()
        logger.info(
            f"Dead ends: {stats['dead_end_count']}, backtracks: {stats['backtrack_count']}, "
            f"completed lines: {stats['completed_line_count']}"
        )
        duration = time.time() - start_time
        logger.info(f"Total duration: {duration:.2f} seconds")
        logger.info("=" * 80)


@hydra.main(version_base=None, config_path="config", config_name="config")
def main(cfg: DictConfig) -> None:
    """Main entrypoint with Hydra configuration management."""
    log_file_path = setup_logger(
        log_dir=cfg.logging.log_dir,
        level=cfg.logging.level,
        rotation=cfg.logging.rotation,
        retention=cfg.logging.retention,
        enable_colors=cfg.logging.enable_colors,
    )
    logger.info(
        "Experiment working directory: {}.",
        hydra.core.hydra_config.HydraConfig.get().runtime.output_dir,
    )
    logger.info(f"Log file: {log_file_path}")
    run_evolution(cfg)


if __name__ == "__main__":
    main()
