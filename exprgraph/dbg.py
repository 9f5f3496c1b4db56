import time
from abc import ABC
from typing import Dict

IS_DEBUGGING = False

def get_debug_state() -> bool:
    return IS_DEBUGGING

def set_debug_state(state: bool) -> None:
    global IS_DEBUGGING
    IS_DEBUGGING = state

class Debug(ABC):
    """Timing counters for parse and evaluation calls, active only while debugging."""

    def __init__(self):
        self.parse_time = 0.0
        self.parse_count = 0
        self.eval_time = 0.0
        self.eval_count = 0
        self._started = 0.0

    def _start_timer(self):
        self._started = time.perf_counter()

    def _stop_timer(self, kind: str) -> float:
        elapsed = time.perf_counter() - self._started
        if kind == "parse":
            self.parse_time += elapsed
            self.parse_count += 1
        else:
            self.eval_time += elapsed
            self.eval_count += 1
        return elapsed

    def get_stats(self) -> Dict[str, float]:
        return {
            "parse_time": self.parse_time,
            "parse_count": self.parse_count,
            "avg_parse_time": self.parse_time / max(1, self.parse_count),
            "eval_time": self.eval_time,
            "eval_count": self.eval_count,
            "avg_eval_time": self.eval_time / max(1, self.eval_count),
        }

    def reset_stats(self):
        self.parse_time = 0.0
        self.parse_count = 0
        self.eval_time = 0.0
        self.eval_count = 0
        self._started = 0.0


class DebuggingContext:
    def __init__(self, enable: bool):
        self.enable = enable
        self.previous_state = None

    def __enter__(self):
        global IS_DEBUGGING
        self.previous_state = IS_DEBUGGING
        IS_DEBUGGING = self.enable
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        global IS_DEBUGGING
        IS_DEBUGGING = self.previous_state
