import asyncio
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from config.settings import get_settings
from ..composition.formatter import GuidanceFormatter, get_formatter
from ..composition.guidance import MatchLevel, assess_match, diff
from ..composition.snapshot import CompositionAnalyzer, CompositionSnapshot
from ..vision.detector import PoseDetector, run_detector
from ..utils.exceptions import AnalysisError, InvalidInput, SessionError
from ..utils.logger import bind_session_context, get_logger, log_performance
from ..utils.threading_utils import LatestValueCell, ThreadPoolManager, get_thread_manager

logger = get_logger(__name__)


class SessionState(Enum):
    """Guidance session lifecycle"""
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True)
class GuidanceResult:
    """What the presentation layer shows for one analyzed frame"""
    snapshot: Optional[CompositionSnapshot]
    suggestions: Tuple[str, ...]
    match_level: MatchLevel
    error_code: Optional[str] = None
    sequence: int = 0

    @property
    def subject_detected(self) -> bool:
        return self.snapshot is not None


@dataclass(eq=False)
class Subscription:
    """Handle returned by GuidanceSession.subscribe()"""
    callback: Callable[[GuidanceResult], Any]
    _session: Optional['GuidanceSession'] = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return self._session is not None

    def cancel(self) -> None:
        """Stop receiving results. Safe to call twice."""
        if self._session is not None:
            self._session._unsubscribe(self)
            self._session = None


class GuidanceSession:
    """
    Runs the live guidance loop against one reference composition.

    A timer fires every ``tick_interval`` seconds and analyzes the most recent
    frame handed over by ``submit_frame()`` in the worker pool. While one
    analysis is in flight, further ticks are dropped. ``stop()`` stops the
    timer and discards any in-flight result.
    """

    def __init__(
            self,
            detector: PoseDetector,
            analyzer: Optional[CompositionAnalyzer] = None,
            formatter: Optional[GuidanceFormatter] = None,
            tick_interval: Optional[float] = None,
            thread_manager: Optional[ThreadPoolManager] = None,
    ):
        settings = get_settings()

        self.detector = detector
        self.analyzer = analyzer or CompositionAnalyzer()
        self.formatter = formatter or get_formatter(settings.session.locale)
        self.tick_interval = settings.session.tick_interval if tick_interval is None else tick_interval
        self.overlap_policy = settings.session.overlap_policy
        self.thread_manager = thread_manager or get_thread_manager()

        if self.tick_interval <= 0:
            raise SessionError("tick_interval must be positive", details={'tick_interval': self.tick_interval})

        self.session_id = uuid.uuid4().hex[:8]
        self.state = SessionState.IDLE

        # written from the capture callback / loop, read from the presentation side
        self._reference: LatestValueCell[CompositionSnapshot] = LatestValueCell()
        self._latest: LatestValueCell[GuidanceResult] = LatestValueCell()
        self._frame: LatestValueCell[Any] = LatestValueCell()

        self._subscribers: List[Subscription] = []
        self._generation = 0
        self._sequence = 0
        self._tick_task: Optional[asyncio.Task] = None
        self._cycle_task: Optional[asyncio.Task] = None

        #counters
        self.ticks = 0
        self.dropped_ticks = 0
        self.failed_ticks = 0
        self.skipped_ticks = 0
        self.discarded_results = 0

        logger.info(
            "guidance_session_initialized",
            session_id=self.session_id,
            tick_interval=self.tick_interval,
            overlap_policy=self.overlap_policy,
            locale=self.formatter.locale,
        )

    # =========================================================================
    # Public surface
    # =========================================================================

    @property
    def reference(self) -> Optional[CompositionSnapshot]:
        return self._reference.get()

    @property
    def latest(self) -> Optional[GuidanceResult]:
        return self._latest.get()

    @property
    def is_running(self) -> bool:
        return self.state == SessionState.RUNNING

    @property
    def analysis_in_flight(self) -> bool:
        return self._cycle_task is not None and not self._cycle_task.done()

    @log_performance("reference_analysis")
    async def analyze_reference(self, image: Any) -> CompositionSnapshot:
        """
        Analyze a user-picked reference photo.

        Unlike live ticks, failures propagate: the caller has to pick another
        photo.

        Raises:
            NoSubjectDetected: nobody in the photo
            InvalidInput: unusable image
        """
        snapshot = await self.thread_manager.run_analysis_task(self._analyze_frame, image)
        logger.info("reference_analyzed", **snapshot.to_dict())
        return snapshot

    async def start(self, reference: Optional[CompositionSnapshot] = None) -> None:
        """Start ticking. Without a reference the guidance is informational only."""
        if self.state == SessionState.RUNNING:
            logger.warning("guidance_session_already_running")
            return

        self._reference.set(reference)
        self._latest.set(None)
        self._generation += 1
        self.state = SessionState.RUNNING
        self._tick_task = asyncio.create_task(self._tick_loop(self._generation))

        logger.info("guidance_session_started", has_reference=reference is not None)

    async def stop(self) -> None:
        """Stop ticking and drop whatever is still being analyzed"""
        if self.state != SessionState.RUNNING:
            return

        logger.info("stopping_guidance_session")

        self.state = SessionState.STOPPED
        self._generation += 1

        if self.analysis_in_flight:
            self.discarded_results += 1
            logger.debug("in_flight_result_discarded")

        tasks = [task for task in (self._tick_task, self._cycle_task) if task and not task.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self._tick_task = None
        self._cycle_task = None

        logger.info("guidance_session_stopped", **self.get_stats())

    def submit_frame(self, image: Any) -> None:
        """Hand over the newest camera frame; older unanalyzed frames are overwritten"""
        self._frame.set(image)

    def subscribe(self, callback: Callable[[GuidanceResult], Any]) -> Subscription:
        """Receive every published result until cancelled"""
        subscription = Subscription(callback=callback, _session=self)
        self._subscribers.append(subscription)
        return subscription

    async def on_tick(self, image: Any) -> Optional[GuidanceResult]:
        """
        Analyze one frame right away and publish the result.

        Follows the same drop policy as the timer: returns None and counts a
        dropped tick when another analysis is still in flight.

        Raises:
            SessionError: session not running, or stopped during analysis
        """
        if self.state != SessionState.RUNNING:
            raise SessionError("Guidance session is not running", details={'state': self.state.value})

        self.ticks += 1
        if self.analysis_in_flight:
            self.dropped_ticks += 1
            logger.debug("tick_dropped", tick=self.ticks)
            return None

        task = asyncio.create_task(self._run_cycle(image, self._generation))
        self._cycle_task = task

        # wait() leaves a cancelled task unraised, stop() is reported below
        await asyncio.wait({task})
        result = None if task.cancelled() else task.result()
        if result is None:
            raise SessionError("Guidance session stopped during analysis")
        return result

    def get_stats(self) -> dict:
        """Tick counters"""
        return {
            'ticks': self.ticks,
            'dropped_ticks': self.dropped_ticks,
            'failed_ticks': self.failed_ticks,
            'skipped_ticks': self.skipped_ticks,
            'discarded_results': self.discarded_results,
        }

    # =========================================================================
    # Internals
    # =========================================================================

    def _unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)

    def _analyze_frame(self, image: Any) -> CompositionSnapshot:
        """Detector plus analyzer, runs in the worker pool"""
        detection = run_detector(self.detector, image)
        return self.analyzer.analyze_detection(detection)

    async def _tick_loop(self, generation: int) -> None:
        """Fixed-interval timer, drops ticks while an analysis is in flight"""
        bind_session_context(session_id=self.session_id)

        while generation == self._generation:
            await asyncio.sleep(self.tick_interval)
            if generation != self._generation:
                break

            self.ticks += 1

            if self.analysis_in_flight:
                self.dropped_ticks += 1
                logger.debug("tick_dropped", tick=self.ticks)
                continue

            frame = self._frame.get()
            if frame is None:
                continue

            self._cycle_task = asyncio.create_task(self._run_cycle(frame, generation))

    async def _run_cycle(self, image: Any, generation: int) -> Optional[GuidanceResult]:
        """One analysis cycle. Returns None when the result was discarded."""
        error_code = None
        snapshot = None

        try:
            snapshot = await self.thread_manager.run_analysis_task(self._analyze_frame, image)
        except InvalidInput as e:
            error_code = e.error_code
            self.skipped_ticks += 1
            logger.warning("tick_skipped_invalid_input", error=e.message)
        except AnalysisError as e:
            error_code = e.error_code
            self.failed_ticks += 1
            logger.debug("no_subject_in_frame", reason=e.message)
        except Exception as e:
            error_code = type(e).__name__
            self.failed_ticks += 1
            logger.error("frame_analysis_failed", error=str(e), exc_info=True)

        if generation != self._generation:
            self.discarded_results += 1
            logger.debug("stale_result_discarded")
            return None

        reference = self._reference.get()
        self._sequence += 1
        result = GuidanceResult(
            snapshot=snapshot,
            suggestions=tuple(diff(snapshot, reference, self.formatter)),
            match_level=assess_match(snapshot, reference),
            error_code=error_code,
            sequence=self._sequence,
        )

        if error_code == InvalidInput.__name__:
            # keep showing the previous guidance
            return result

        self._latest.set(result)
        self._publish(result)

        logger.debug(
            "frame_analyzed",
            sequence=result.sequence,
            subject_detected=result.subject_detected,
            match_level=result.match_level.value,
            suggestion_count=len(result.suggestions),
        )
        return result

    def _publish(self, result: GuidanceResult) -> None:
        for subscription in list(self._subscribers):
            try:
                subscription.callback(result)
            except Exception as e:
                logger.error("subscriber_callback_failed", error=str(e))
