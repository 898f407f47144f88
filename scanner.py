"""
Scanner session — capture → recognize → interpret for one scanner window.

Phases (derived from SessionState):
  idle        : camera live, no image
  captured    : still held, no analysis yet
  loading     : analysis in flight
  displaying  : analysis result available for the held image

Only one analysis runs at a time: analyze() returns None immediately if one
is already in flight. retake() and close() cancel an in-flight analysis and
its result is discarded, so a result always belongs to the current image.

Every failure inside the pipeline is caught in _run_pipeline() and turned
into AnalysisResult.failed(); nothing propagates to the caller.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from analysis import ANALYSIS_ERROR_TEXT, AnalysisResult, RecognitionResult, Tab
from camera.base import Camera, CapturedImage
from capture import CaptureController
from config import ScannerConfig
from providers.base import OCRProvider, TextProvider, with_retry

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE       = "idle"
    CAPTURED   = "captured"
    LOADING    = "loading"
    DISPLAYING = "displaying"


@dataclass
class SessionState:
    image: Optional[CapturedImage] = None
    recognition: Optional[RecognitionResult] = None
    analysis: Optional[AnalysisResult] = None
    detected_text: str = ""
    loading: bool = False
    active_tab: Tab = Tab.PROS

    @property
    def phase(self) -> Phase:
        if self.image is None:
            return Phase.IDLE
        if self.loading:
            return Phase.LOADING
        if self.analysis is not None:
            return Phase.DISPLAYING
        return Phase.CAPTURED

    def clear_results(self) -> None:
        self.recognition = None
        self.analysis = None
        self.detected_text = ""
        self.active_tab = Tab.PROS


class ScannerSession:

    def __init__(
        self,
        config: ScannerConfig,
        camera: Optional[Camera] = None,
        ocr: Optional[OCRProvider] = None,
        text_provider: Optional[TextProvider] = None,
    ) -> None:
        self.config = config
        if camera is None:
            from camera.opencv_camera import OpenCVCamera
            camera = OpenCVCamera(config.camera_index, config.camera_width)
        self.capture_controller = CaptureController(camera)
        self._ocr = ocr
        self._text_provider = text_provider
        self.state = SessionState()
        self._inflight: Optional[asyncio.Task] = None

    # ── Providers (built on first use so a missing key only fails that call) ──

    @property
    def ocr(self) -> OCRProvider:
        if self._ocr is None:
            from providers.vision_ocr import GoogleVisionOCR
            self._ocr = GoogleVisionOCR(
                self.config.require("google_vision_api_key"),
                timeout=self.config.request_timeout,
                endpoint=self.config.vision_endpoint,
            )
        return self._ocr

    @property
    def text_provider(self) -> TextProvider:
        if self._text_provider is None:
            from providers.gemini_provider import GeminiProvider
            self._text_provider = GeminiProvider(
                self.config.require("gemini_api_key"),
                model=self.config.gemini_model,
                timeout=self.config.request_timeout,
            )
        return self._text_provider

    # ── Transitions ───────────────────────────────────────────────────────────

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def can_capture(self) -> bool:
        return self.capture_controller.available

    @property
    def can_analyze(self) -> bool:
        return self.state.image is not None and not self.state.loading

    def open(self) -> bool:
        """Acquire the camera. False means capture is unavailable (see device_error)."""
        return self.capture_controller.start()

    def capture(self) -> CapturedImage:
        """Idle → Captured. Raises DeviceError when the camera is unavailable."""
        if self.state.image is not None:
            logger.debug("capture() ignored, an image is already held")
            return self.state.image
        image = self.capture_controller.capture()
        self.state.clear_results()
        self.state.image = image
        return image

    def retake(self) -> bool:
        """Captured/Displaying → Idle. Abandons any in-flight analysis."""
        self._abandon_inflight()
        self.state = SessionState()
        return self.capture_controller.retake()

    def select_tab(self, tab: Tab | str) -> None:
        self.state.active_tab = Tab(tab)

    def close(self) -> None:
        """Abandon in-flight work, release the camera, forget everything."""
        self._abandon_inflight()
        self.capture_controller.stop()
        self.state = SessionState()

    def _abandon_inflight(self) -> None:
        task, self._inflight = self._inflight, None
        if task is not None and not task.done():
            task.cancel()
            logger.info("In-flight analysis abandoned")

    # ── Analysis ──────────────────────────────────────────────────────────────

    async def analyze(self) -> Optional[AnalysisResult]:
        """
        Run OCR then interpretation on the held image.

        Returns the AnalysisResult (a fallback one on failure), or None when
        there is no image, an analysis is already running, or the run was
        abandoned by retake()/close().
        """
        if self.state.loading:
            logger.info("analyze() ignored, an analysis is already in flight")
            return None
        image = self.state.image
        if image is None:
            return None

        self.state.loading = True
        task = asyncio.ensure_future(self._run_pipeline(image))
        self._inflight = task
        try:
            recognition, detected_text, analysis = await task
        except asyncio.CancelledError:
            if self._inflight is task:
                # Cancelled from outside, not abandoned by us
                raise
            return None
        finally:
            if self._inflight is task:
                self._inflight = None
                self.state.loading = False

        self.state.recognition = recognition
        self.state.detected_text = detected_text
        self.state.analysis = analysis
        if recognition is not None:
            self.state.active_tab = Tab.PROS
        return analysis

    async def _run_pipeline(
        self, image: CapturedImage,
    ) -> tuple[Optional[RecognitionResult], str, AnalysisResult]:
        retries = self.config.max_retries
        backoff = self.config.retry_backoff
        try:
            ocr = self.ocr
            recognition = await with_retry(
                lambda: ocr.recognize(image),
                retries=retries, backoff=backoff, label=ocr.name,
            )
            logger.info("Recognized product name: %r", recognition.guessed_name)

            provider = self.text_provider
            analysis = await with_retry(
                lambda: provider.interpret(recognition.raw_text, recognition.guessed_name),
                retries=retries, backoff=backoff, label=provider.full_name,
            )
        except Exception as exc:
            logger.error("Product analysis failed: %s", exc, exc_info=True)
            return None, ANALYSIS_ERROR_TEXT, AnalysisResult.failed()

        logger.info(
            "Analysis done: %d pros, %d cons", len(analysis.pros), len(analysis.cons),
        )
        return recognition, recognition.raw_text, analysis
