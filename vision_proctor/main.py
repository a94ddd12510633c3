# vision_proctor/main.py
import argparse
import asyncio
import cv2
import logging
import os
import time
import numpy as np
from collections import deque

from proctor_engine.camera.camera_manager import CameraManager
from proctor_engine.common.config import ProctorConfig, configure_logging, load_config
from proctor_engine.common.enums import SessionState
from proctor_engine.common.errors import ConfigError
from proctor_engine.interview.skill_audit import audit_resume_file
from proctor_engine.processing.mediapipe_adapters import FaceAdapter, PoseAdapter
from proctor_engine.session.session import ProctorSession
from proctor_engine.visualization.visualizer import Visualizer

logger = logging.getLogger(__name__)

async def run(config: ProctorConfig):
    """
    The proctoring preview loop.
    Starts a session, renders its state over the live feed and stops it on exit.
    """
    camera = CameraManager(config.camera)
    session = ProctorSession.from_config(
        config,
        camera,
        pose_adapter_factory=lambda: PoseAdapter(config.pose),
        face_adapter_factory=lambda: FaceAdapter(config.face),
    )
    visualizer = Visualizer(config.visualization)
    fps_history = deque(maxlen=100)

    if not await session.start():
        for alert in session.alerts:
            logger.error("Proctoring did not start: %s", alert.message)
        return

    try:
        while session.status is SessionState.ACTIVE:
            frame_start_time = time.perf_counter()

            frame = camera.get_frame()
            if frame is None:
                await asyncio.sleep(camera.frame_interval)
                continue

            avg_fps = np.mean(fps_history) if fps_history else 0.0
            output_frame = visualizer.render(frame.image, session.snapshot(), avg_fps)
            cv2.imshow(config.visualization.window_name, output_frame)

            if cv2.waitKey(1) & 0xFF == ord('q'):
                logger.info("Shutdown signal received.")
                break

            # Yield so inference results can land before the next render.
            await asyncio.sleep(camera.frame_interval)

            latency = time.perf_counter() - frame_start_time
            fps_history.append(1.0 / latency if latency > 0 else 0)
    finally:
        await session.stop()
        cv2.destroyAllWindows()

def main():
    script_dir = os.path.dirname(os.path.abspath(__file__))
    parser = argparse.ArgumentParser(description="Real-time posture and eye-contact proctoring.")
    parser.add_argument('--config', default=os.path.join(script_dir, 'config.yaml'),
                        help="Path to the YAML configuration file.")
    parser.add_argument('--audit', metavar='RESUME_TXT',
                        help="Score a plain-text resume against the configured skills and exit.")
    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"ERROR: {e}")
        return 1

    configure_logging(config.logging)

    if args.audit:
        try:
            report = audit_resume_file(args.audit, config.interview)
        except IOError as e:
            print(f"ERROR: Failed to read resume '{args.audit}'. {e}")
            return 1
        print(f"Score: {report.score}% ({report.word_count} words)")
        print(f"Found: {', '.join(report.found_skills) or '-'}")
        print(f"Missing: {', '.join(report.missing_skills) or '-'}")
        return 0

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    logger.info("Application terminated.")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
