# main.py
"""
Main entry point for the Spinning Top Battle Arena.

This script orchestrates the entire application lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Sets up the arena, the telemetry exporter and the visualizer.
4. Runs the frame loop: step, export, draw.
5. Handles clean shutdown.
"""
import logging
import sys
from utils import setup_logging, load_config
import cProfile
import pstats
import io


def main(config_path: str = 'config.json'):
    """
    The main function to run the arena.
    """
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config(config_path)
    except Exception as e:
        print(f"FATAL: Could not load {config_path}. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Spinning Top Arena Starting ---")

    sim_params = config['simulation_parameters']
    run_params = config['run_control']
    vis_params = config['visualization']
    telemetry_params = config['telemetry']

    from arena import Arena
    from telemetry import TelemetryExporter, NullSink, create_sink
    from visualization import Visualizer

    # --- Component Initialization ---
    arena = Arena(sim_params)
    if telemetry_params.get('enabled', True):
        sink = create_sink(telemetry_params.get('sink', 'log'))
    else:
        sink = NullSink()
    exporter = TelemetryExporter(sink, telemetry_params)
    visualizer = Visualizer(arena, vis_params)

    profiler = cProfile.Profile() if run_params.get('profile', False) else None

    log_throttle = max(1, run_params.get('log_throttle_steps', 300))
    max_steps = run_params.get('max_steps', 0)
    fps = vis_params.get('fps', 60)

    running = True
    step_num = 0

    if profiler:
        profiler.enable()
    while running:
        result = arena.step()
        exporter.export_step(arena, result)
        step_num += 1

        # The visualizer returns False when the user quits
        if not visualizer.draw(arena, exporter):
            running = False
        visualizer.tick(fps)

        # Hot loops must throttle logs
        if step_num % log_throttle == 0:
            logging.info(f"Frame {step_num}: {len(arena)} live tops, flash {arena.flash_intensity:.2f}.")
            if len(arena):
                avg_speed = sum(top.speed for top in arena) / len(arena)
                logging.debug(f"Frame {step_num} | Average Speed: {avg_speed:.4f}")

        if max_steps and step_num >= max_steps:
            logging.info(f"Reached max_steps ({max_steps}). Stopping simulation.")
            running = False
    if profiler:
        profiler.disable()

    visualizer.close()
    exporter.close()
    logging.info("Frame loop finished.")

    if profiler:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Spinning Top Arena Shutting Down ---")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else 'config.json')
