# Playback controller for the agrisim weekly simulation
# Layer 4: Session driver
#
# Drives the weekly stepper from a cancellable repeating timer on an asyncio
# event loop. Single-threaded: each tick (including rescoring) completes
# before the next one is scheduled, so ticks never overlap. Pausing,
# resetting or disposing cancels the pending timer handle.

import asyncio
import logging

from agrisim.settings.loader import get_default_settings
from agrisim.simulation.metrics import grade
from agrisim.simulation.simulation import pause, reset_simulation, resume, tick
from agrisim.simulation.state import STATUS_COMPLETED

logger = logging.getLogger(__name__)


class RepeatingTask:
    """Repeating callback scheduled with loop.call_later.

    The next firing is scheduled only after the callback returns. stop()
    cancels the pending handle; dispose() additionally makes start() fail.

    Args:
        callback: Zero-argument callable
        interval_s: Seconds between firings
        loop: Event loop (the running loop at start() if None)
    """

    def __init__(self, callback, interval_s, loop=None):
        if interval_s <= 0:
            raise ValueError(f"interval_s must be > 0, got {interval_s}")
        self._callback = callback
        self._interval_s = interval_s
        self._loop = loop
        self._handle = None
        self._running = False
        self._disposed = False

    @property
    def running(self):
        return self._running

    @property
    def disposed(self):
        return self._disposed

    @property
    def interval_s(self):
        return self._interval_s

    def start(self):
        if self._disposed:
            raise RuntimeError("Cannot start a disposed task")
        if self._running:
            return
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._running = True
        self._schedule()

    def stop(self):
        self._running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def dispose(self):
        self.stop()
        self._disposed = True
        self._callback = None

    def set_interval(self, interval_s):
        """Change the interval; a pending firing is rescheduled."""
        if interval_s <= 0:
            raise ValueError(f"interval_s must be > 0, got {interval_s}")
        self._interval_s = interval_s
        if self._running:
            if self._handle is not None:
                self._handle.cancel()
            self._schedule()

    def _schedule(self):
        self._handle = self._loop.call_later(self._interval_s, self._fire)

    def _fire(self):
        self._handle = None
        if not self._running or self._callback is None:
            return
        self._callback()
        if self._running and self._handle is None:
            self._schedule()


class PlaybackController:
    """Play/pause/seek/speed controls over a simulation session.

    At speed 1 one simulated week passes every week_duration_s seconds
    (1 s by default); at 8x every 125 ms. Exceptions raised inside a tick
    are caught here: playback pauses, the error is kept in self.error and
    on_error is called.

    Args:
        state: SimulationState owned by this controller
        rng: Random source passed to tick()
        settings: SimulationSettings (packaged defaults if None)
        week_duration_s: Seconds per week at 1x (settings value if None)
        on_tick: Called with the state after each successful tick
        on_complete: Called with the final score when the run completes
        on_error: Called with the exception when a tick fails
        loop: Event loop for the timer
    """

    def __init__(self, state, rng=None, settings=None, week_duration_s=None,
                 on_tick=None, on_complete=None, on_error=None, loop=None):
        self.settings = settings or get_default_settings()
        self.state = state
        self.rng = rng
        self.week_duration_s = (
            week_duration_s if week_duration_s is not None
            else self.settings.playback.week_duration_s
        )
        self.on_tick = on_tick
        self.on_complete = on_complete
        self.on_error = on_error
        self.error = None
        self.ticks_run = 0
        self._disposed = False
        self._stopped = asyncio.Event()
        self._stopped.set()
        self._task = RepeatingTask(self._on_timer, self._interval_s(), loop=loop)

    @property
    def is_playing(self):
        return self._task.running

    @property
    def interval_s(self):
        return self._task.interval_s

    def _interval_s(self):
        return self.week_duration_s / self.state.playback_speed

    def play(self):
        """Start advancing one week per interval. False if completed or disposed."""
        if self._disposed or self.state.status == STATUS_COMPLETED:
            return False
        if self._task.running:
            return True
        self.error = None
        resume(self.state)
        self._stopped.clear()
        self._task.start()
        return True

    def pause(self):
        """Stop playback and cancel the pending tick."""
        self._task.stop()
        pause(self.state)
        self._stopped.set()

    def toggle(self):
        if self._task.running:
            self.pause()
            return False
        return self.play()

    def seek(self, week):
        """Jump to a week while paused. Rejected (False) while playing or
        once the run is completed.

        The week is clamped to [1, duration_weeks]; no ticks are run. Only
        the playhead moves: weekly history and outcome are not rewound, so
        playing after a backward seek appends weeks already in the history.
        """
        if self._task.running or self.state.is_playing:
            return False
        if self.state.status == STATUS_COMPLETED:
            return False
        self.state.current_week = max(1, min(self.state.duration_weeks, int(week)))
        return True

    def set_speed(self, speed):
        """Set the playback multiplier (one of settings.playback.speeds)."""
        if float(speed) not in self.settings.playback.speeds:
            valid = ", ".join(f"{s:g}" for s in self.settings.playback.speeds)
            raise ValueError(f"Unsupported playback speed {speed}. Valid: {valid}")
        self.state.playback_speed = float(speed)
        self._task.set_interval(self._interval_s())

    def step(self):
        """Run one tick now, through the same error boundary as the timer."""
        if self._disposed or self.state.status == STATUS_COMPLETED:
            return False
        return self._run_tick()

    def reset(self):
        """Stop playback and reinitialize the session for the same scenario."""
        self.pause()
        self.state = reset_simulation(self.state, self.settings)
        self._task.set_interval(self._interval_s())
        self.error = None
        self.ticks_run = 0

    def dispose(self):
        """Stop playback for good; late timer callbacks become no-ops."""
        self._task.dispose()
        pause(self.state)
        self._disposed = True
        self.on_tick = self.on_complete = self.on_error = None
        self._stopped.set()

    async def wait_stopped(self):
        """Wait until playback is paused, completed, failed or disposed."""
        await self._stopped.wait()

    def _on_timer(self):
        if self._disposed:
            return
        self._run_tick()

    def _run_tick(self):
        try:
            tick(self.state, self.rng, self.settings)
            self.ticks_run += 1
            if self.on_tick is not None:
                self.on_tick(self.state)
        except Exception as e:
            logger.exception("Simulation tick failed at week %d", self.state.current_week)
            self.error = e
            self.pause()
            if self.on_error is not None:
                self.on_error(e)
            return False

        if self.state.status == STATUS_COMPLETED:
            self.pause()
            score = self.state.outcome.total_score
            logger.info("Simulation Complete! Final score: %.0f%% (%s)", score, grade(score))
            if self.on_complete is not None:
                self.on_complete(score)
        return True
