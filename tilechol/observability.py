"""
Observability utilities for tilechol.

This module provides:
- Logging configuration for the `tilechol` logger hierarchy
- A stage profiler used by the driver to time generate/split/assemble/verify
"""

import functools
import json
import logging
import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# ============================================================================
# Logging Configuration
# ============================================================================

def configure_logging(level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure logging for every `tilechol.*` module logger.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path that receives DEBUG-level detail
    """
    log_level = getattr(logging, level.upper())

    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    package_logger = logging.getLogger('tilechol')
    package_logger.setLevel(logging.DEBUG if log_file else log_level)

    # Calling this twice must not duplicate output
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(console_formatter)
    package_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)
        package_logger.addHandler(file_handler)

    package_logger.propagate = False

    return package_logger


# ============================================================================
# Stage Profiling
# ============================================================================

@dataclass
class StageTiming:
    """Wall-clock timing of one pipeline stage run."""
    name: str
    start_time: float
    duration: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'duration': self.duration,
            'start_time': self.start_time,
            'metadata': self.metadata
        }


class StageProfiler:
    """
    Records how long each pipeline stage takes.

    Example:
        profiler = StageProfiler()
        with profiler.stage("split", num_tiles=4):
            grid = split_into_tiles(matrix, 4)
        print(profiler.format_summary())
    """

    def __init__(self):
        self.timings: List[StageTiming] = []
        self.durations: Dict[str, List[float]] = defaultdict(list)

    @contextmanager
    def stage(self, name: str, **metadata):
        timing = StageTiming(name=name, start_time=time.perf_counter(), metadata=metadata)
        try:
            yield timing
        finally:
            timing.duration = time.perf_counter() - timing.start_time
            self.timings.append(timing)
            self.durations[name].append(timing.duration)

    def timed(self, name: Optional[str] = None):
        """Decorator form of `stage`."""
        def decorator(func):
            stage_name = name or func.__name__

            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                with self.stage(stage_name):
                    return func(*args, **kwargs)
            return wrapper
        return decorator

    def summary(self) -> Dict[str, Dict[str, float]]:
        """Per-stage count, total, mean, min and max duration in seconds."""
        result = {}
        for name, durations in self.durations.items():
            result[name] = {
                'count': len(durations),
                'total': sum(durations),
                'mean': sum(durations) / len(durations),
                'min': min(durations),
                'max': max(durations)
            }
        return result

    def format_summary(self) -> str:
        lines = [
            f"{'Stage':<24} {'Count':>6} {'Total (s)':>12} {'Mean (s)':>12}",
            "-" * 57,
        ]
        # Stages in the order they first ran
        for name, stats in self.summary().items():
            lines.append(f"{name:<24} {stats['count']:>6} {stats['total']:>12.6f} {stats['mean']:>12.6f}")
        return "\n".join(lines)

    def save_json(self, filepath: str):
        data = {
            'summary': self.summary(),
            'timings': [timing.to_dict() for timing in self.timings]
        }
        with open(filepath, 'w') as f:
            json.dump(data, f, indent=2)

    def reset(self):
        self.timings.clear()
        self.durations.clear()
