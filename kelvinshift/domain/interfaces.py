from __future__ import annotations
from typing import Callable, Protocol, runtime_checkable
from .models import ScheduleConfig


@runtime_checkable
class OutputSink(Protocol):
    sink_id: str

    def apply(self, temperature: int, brightness: float) -> bool:
        ...

    def reset(self) -> None:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class SettingsSource(Protocol):
    def snapshot(self) -> ScheduleConfig:
        ...

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        ...


@runtime_checkable
class PeriodicTask(Protocol):
    def cancel(self) -> None:
        ...


@runtime_checkable
class Scheduler(Protocol):
    def every(self, interval: float, callback: Callable[[], None], name: str = "") -> PeriodicTask:
        ...
