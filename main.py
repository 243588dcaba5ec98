# main.py
"""
Main entry point for the Particle Image viewer.

This script orchestrates the entire viewer lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Opens the host window and mounts the particle image component.
4. Runs the main loop: events, scheduled frames, compositing.
5. Tears the component down and handles clean shutdown.
"""
import logging
from utils import setup_logging, load_config
import numpy as np
import cProfile
import pstats
import io

def main():
    """
    The main function to run the viewer.
    """
    # Load configuration from the JSON file first.
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config('config.json')
    except Exception as e:
        print(f"FATAL: Could not load config.json. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Particle Image Viewer Starting ---")

    image_params = config.get('particle_image', {})
    run_params = config.get('run_control', {})
    vis_params = config.get('visualization', {})

    from constants import DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT, FPS
    from particle_image import ParticleImage
    from scheduler import EventSource, FrameScheduler
    from visualization import Visualizer

    alt = image_params.get('alt', "Particle image")
    fps = vis_params.get('fps', FPS)

    # --- Component Initialization ---
    # 1. The visualizer owns the window, which is the component's container.
    visualizer = Visualizer(
        width=vis_params.get('window_width', DEFAULT_WINDOW_WIDTH),
        height=vis_params.get('window_height', DEFAULT_WINDOW_HEIGHT),
        caption=alt,
    )

    # 2. The component reads the container size whenever it (re)samples.
    component = ParticleImage(
        source=image_params.get('source', 'assets/portrait.png'),
        alt=alt,
        container_size=lambda: visualizer.size,
        params=image_params,
        fps=fps,
    )

    scheduler = FrameScheduler()
    events = EventSource()
    component.mount(scheduler, events)

    profiler = cProfile.Profile()

    log_throttle = run_params.get('log_throttle_frames', 300)
    max_frames = run_params.get('max_frames', 0) # 0 runs until the window is closed

    running = True
    frame_num = 0

    profiler.enable()
    try:
        while running:
            if not visualizer.pump_events(events):
                break

            scheduler.tick()
            visualizer.draw(component)
            visualizer.clock.tick(fps)
            frame_num += 1

            # Hot loops must throttle logs
            if frame_num % log_throttle == 0:
                logging.info(
                    f"Frame {frame_num} | state: {component.state.value} | "
                    f"particles: {component.particle_count} | "
                    f"slow frames: {component.slow_frames} | "
                    f"fps: {visualizer.clock.get_fps():.1f}"
                )
                if component.particles is not None and component.particle_count:
                    avg_speed = np.mean(component.particles.speeds())
                    logging.debug(f"Frame {frame_num} | Average Speed: {avg_speed:.4f}")

            if max_frames and frame_num >= max_frames:
                logging.info(f"Reached max_frames ({max_frames}). Stopping viewer.")
                running = False
    finally:
        profiler.disable()
        component.destroy()
        visualizer.close()

    logging.info("Viewer loop finished.")

    # --- Performance Profile Output ---
    logging.info("--- Performance Profile ---")
    s = io.StringIO()
    # Sort by cumulative time spent in the function
    stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
    stats.print_stats(20) # Print top 20 slowest functions
    logging.info(f"\n{s.getvalue()}")

    logging.info("--- Particle Image Viewer Shutting Down ---")


if __name__ == "__main__":
    main()
