from themeshift.scheduler.adaptation import (
    DEFAULT_TICK_INTERVAL_MS,
    AdaptationScheduler,
    SchedulerBusyError,
)
from themeshift.scheduler.timer import HeartbeatTimer

__all__ = [
    "AdaptationScheduler",
    "DEFAULT_TICK_INTERVAL_MS",
    "HeartbeatTimer",
    "SchedulerBusyError",
]
