"""
main.py — Single entry point.

Runs the scanner as a terminal "popup" in one asyncio event loop:
  asyncio event loop
    ├── command prompt (input() in a worker thread)
    └── analysis task  (OCR → Gemini), at most one at a time

Commands: c capture · r retake · a analyze · 1/2/3 tabs · q close
"""
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import style
from camera.base import DeviceError
from config import ConfigError, ScannerConfig
from scanner import ScannerSession

# Log file lives in DATA_DIR so a single volume mount captures it.
_data_dir = Path(os.getenv("DATA_DIR", "data"))
_data_dir.mkdir(parents=True, exist_ok=True)

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=logging.INFO,
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(str(_data_dir / "scanner.log"), encoding="utf-8"),
    ],
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("aiohttp").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def _show_results(session: ScannerSession) -> None:
    text = style.detected_text(session.state.detected_text)
    if text:
        print(text)
    panel = style.results_panel(session.state.analysis, session.state.active_tab)
    if panel:
        print(panel)


async def _read_command() -> str:
    return await asyncio.to_thread(input, "> ")


async def run(session: Optional[ScannerSession] = None) -> None:
    if session is None:
        config = ScannerConfig.from_env()
        if config.validate_keys:
            config.validate()
        session = ScannerSession(config)

    print(style.welcome())
    if not session.open():
        err = session.capture_controller.device_error
        print(style.camera_unavailable(str(err) if err else None))

    analysis_task: Optional[asyncio.Task] = None

    def _on_analysis_done(task: asyncio.Task) -> None:
        if task.cancelled() or task.result() is None:
            return
        print()
        _show_results(session)

    try:
        while True:
            cmd = (await _read_command()).strip().lower()

            if cmd == "q":
                break
            elif cmd == "c":
                if session.state.image is not None:
                    print(style.captured())
                    continue
                if not session.can_capture:
                    print(style.camera_unavailable(None))
                    continue
                try:
                    session.capture()
                except DeviceError as exc:
                    print(style.camera_unavailable(str(exc)))
                    continue
                print(style.captured())
            elif cmd == "r":
                if not session.retake():
                    err = session.capture_controller.device_error
                    print(style.camera_unavailable(str(err) if err else None))
            elif cmd == "a":
                if not session.can_analyze:
                    print(f"{style.analyze_button(session.state.loading)} (unavailable)")
                    continue
                print(style.analyze_button(True))
                analysis_task = asyncio.create_task(session.analyze())
                analysis_task.add_done_callback(_on_analysis_done)
            elif cmd in style.TAB_KEYS:
                session.select_tab(style.TAB_KEYS[cmd])
                _show_results(session)
            elif cmd:
                print("Unknown command. Use c, r, a, 1, 2, 3 or q.")
    finally:
        session.close()
        if analysis_task is not None and not analysis_task.done():
            await asyncio.gather(analysis_task, return_exceptions=True)
        logger.info("Scanner closed.")


def main() -> None:
    try:
        asyncio.run(run())
    except ConfigError as exc:
        logger.critical("FATAL: %s", exc)
        sys.exit(1)
    except (KeyboardInterrupt, EOFError):
        pass


if __name__ == "__main__":
    main()
