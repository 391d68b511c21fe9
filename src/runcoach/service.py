"""Refit orchestration: outcomes in, a consistent advisor out.

The service owns the live outcome history of the current run, refits every
segment when new outcomes arrive, and publishes a fresh ``PracticeAdvisor``
by replacing a single reference. Readers use ``service.advisor`` without
locking and always see a fully built advisor.

Two execution modes:

- synchronous: the refit runs on the thread that recorded the outcome
- deferred: the refit runs on a single background worker. Each dispatch
  takes a new generation number; a worker whose generation is no longer the
  latest abandons its work (checked before fitting and between segments)
  and never publishes.

Example:
    >>> service = CoachService(AttemptStore(base), DurationStore(base))
    >>> service.on_run_changed("celeste/1a")
    >>> service.record_attempt("celeste/1a", "room-3", success=True)
    >>> service.advisor.get_recommendation()
"""

import copy
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from types import TracebackType

from runcoach.advisor import PracticeAdvisor
from runcoach.foundation.config import get_config
from runcoach.foundation.errors import ErrorCode, RuncoachError
from runcoach.foundation.types.config import RuncoachConfig
from runcoach.modeling import Confidence, FitKind, ModelSet, SegmentModel, fit_segment
from runcoach.store.durations import SegmentDurations
from runcoach.store.protocol import DurationSource, OutcomeHistorySource

logger = logging.getLogger(__name__)


class CoachService:
    """Owns per-run inputs and publishes refitted advisors.

    Thread Safety:
        ``advisor`` is a plain attribute read. Publication happens under
        ``_generation_lock`` and only if the refit's generation is still the
        latest, so a slow stale refit can never overwrite a newer one.
    """

    def __init__(
        self,
        attempts: OutcomeHistorySource,
        durations: DurationSource,
        *,
        config: RuncoachConfig | None = None,
        deferred: bool | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            attempts: Outcome history store.
            durations: Segment duration store.
            config: Configuration (default: the global config).
            deferred: Override ``config.service.deferred``.
        """
        self._config = config or get_config()
        self._attempts = attempts
        self._durations = durations
        self._deferred = self._config.service.deferred if deferred is None else deferred

        self._advisor = self._empty_advisor()
        self._current_run: str | None = None
        self._run_durations: SegmentDurations | None = None
        self._history: dict[str, list[bool]] = {}
        self._since_refit: dict[str, int] = {}

        self._generation = 0
        self._generation_lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None
        self._pending: Future[bool] | None = None
        self._closed = False

    # =========================================================================
    # Read side
    # =========================================================================

    @property
    def advisor(self) -> PracticeAdvisor:
        """The most recently published advisor."""
        return self._advisor

    @property
    def current_run(self) -> str | None:
        """Identifier of the active run, if any."""
        return self._current_run

    @property
    def has_durations_for_current_run(self) -> bool:
        """Whether the active run has a duration table to fit against."""
        return self._run_durations is not None

    @property
    def deferred(self) -> bool:
        """Whether refits run on the background worker."""
        return self._deferred

    @property
    def generation(self) -> int:
        """Number of refits dispatched so far."""
        with self._generation_lock:
            return self._generation

    def time_expended(self) -> float | None:
        """Seconds spent on recorded attempts of the active run.

        Successes count a segment's full duration, failures half of it.
        Segments without a known duration are skipped. None when there is
        no active run or no duration table.
        """
        if self._current_run is None or self._run_durations is None:
            return None
        table = self._run_durations.durations
        total = 0.0
        for segment, outcomes in self._history.items():
            duration = table.get(segment)
            if duration is None:
                continue
            total += sum(duration if success else duration / 2.0 for success in outcomes)
        return total

    # =========================================================================
    # Write side
    # =========================================================================

    def on_run_changed(self, run_id: str) -> None:
        """Switch to ``run_id``: reload its inputs and refit.

        Without a duration table an empty advisor is published.
        """
        self._check_open()
        logger.info("Run changed to %s", run_id)

        self._current_run = run_id
        self._run_durations = self._durations.get_segment_durations(run_id)
        self._history = self._attempts.get_run_history(run_id)
        self._since_refit = {}

        self.rebuild_all_models()

    def record_attempt(self, run_id: str, segment_id: str, success: bool) -> None:
        """Store an outcome and refit when the segment's refit interval is reached.

        Outcomes for a run other than the active one are stored but do not
        trigger a refit. Nothing happens when tracking is disabled.
        """
        self._check_open()
        if not self._config.tracking.enabled:
            return

        self._attempts.record(run_id, segment_id, success)
        if run_id != self._current_run:
            return

        self._history.setdefault(segment_id, []).append(bool(success))
        count = self._since_refit.get(segment_id, 0) + 1
        if count >= self._config.service.refit_interval:
            self._since_refit[segment_id] = 0
            self.rebuild_all_models()
        else:
            self._since_refit[segment_id] = count

    def rebuild_all_models(self) -> None:
        """Refit every segment of the active run and publish a new advisor."""
        self._check_open()
        generation = self._next_generation()

        if self._current_run is None or self._run_durations is None:
            self._publish(generation, self._empty_advisor())
            return

        # Snapshot inputs so later recordings cannot race with the worker
        history = copy.deepcopy(self._history)
        durations = self._run_durations

        if not self._deferred:
            self._refit(generation, durations, history)
            return

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="runcoach-refit")
        future = self._executor.submit(self._refit, generation, durations, history)
        future.add_done_callback(self._report_worker_failure)
        self._pending = future

    def clear_current_run(self) -> None:
        """Delete the active run's outcomes and refit from nothing."""
        self._check_open()
        if self._current_run is None:
            return
        logger.info("Clearing outcomes of %s", self._current_run)
        self._attempts.clear_run(self._current_run)
        self._history = {}
        self._since_refit = {}
        self.rebuild_all_models()

    def clear_all_data(self) -> None:
        """Delete every stored outcome and refit the active run from nothing."""
        self._check_open()
        logger.info("Clearing all stored outcomes")
        self._attempts.clear_all()
        self._history = {}
        self._since_refit = {}
        self.rebuild_all_models()

    def wait_for_refit(self, timeout: float | None = None) -> bool:
        """Block until the latest dispatched refit has finished.

        Returns:
            True if no refit is pending any more, False on timeout.
        """
        pending = self._pending
        if pending is None:
            return True
        try:
            pending.exception(timeout=timeout)
        except TimeoutError:
            return False
        return True

    def close(self) -> None:
        """Supersede any in-flight refit and stop the worker."""
        if self._closed:
            return
        self._closed = True
        self._next_generation()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "CoachService":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # =========================================================================
    # Internals
    # =========================================================================

    def _check_open(self) -> None:
        if self._closed:
            raise RuncoachError(ErrorCode.SERVICE_CLOSED)

    def _empty_advisor(self) -> PracticeAdvisor:
        return PracticeAdvisor(simulation=self._config.simulation)

    def _next_generation(self) -> int:
        with self._generation_lock:
            self._generation += 1
            return self._generation

    def _is_superseded(self, generation: int) -> bool:
        with self._generation_lock:
            return generation != self._generation

    def _refit(
        self,
        generation: int,
        durations: SegmentDurations,
        history: dict[str, list[bool]],
    ) -> bool:
        """Fit every segment and publish. Returns False if superseded."""
        if self._is_superseded(generation):
            logger.debug("Refit %d superseded before start", generation)
            return False

        min_samples = self._config.fitting.min_samples
        models: dict[str, SegmentModel] = {}
        for segment in durations.order:
            if self._is_superseded(generation):
                logger.debug("Refit %d superseded after %d segments", generation, len(models))
                return False

            outcomes = history.get(segment, [])
            result = fit_segment(outcomes, durations.durations[segment], min_samples)
            if result.kind is FitKind.FAILED_INSUFFICIENT_DATA and outcomes:
                logger.warning("Fit for %s fell back to constant model: %s", segment, result.detail)
            elif result.model.confidence is Confidence.NEGATIVE_LEARNING_RATE:
                logger.info("Segment %s: %s", segment, result.detail)
            models[segment] = result.model

        advisor = PracticeAdvisor(
            ModelSet(order=durations.order, models=models),
            simulation=self._config.simulation,
        )
        if self._config.service.precompute_recommendation:
            advisor.precompute()

        return self._publish(generation, advisor)

    def _publish(self, generation: int, advisor: PracticeAdvisor) -> bool:
        with self._generation_lock:
            if generation != self._generation:
                logger.debug("Refit %d superseded before publish", generation)
                return False
            self._advisor = advisor
        logger.debug("Published refit %d (%d segments)", generation, len(advisor.order))
        return True

    @staticmethod
    def _report_worker_failure(future: Future[bool]) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error("Background refit failed", exc_info=error)
