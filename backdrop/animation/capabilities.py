# backdrop/animation/capabilities.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from backdrop.types import Size

CONSTRAINED_VIEWPORT_WIDTH = 768
CONSTRAINED_CPU_COUNT = 2
# Hosts that cannot allocate at least this texture size reclaim GPU memory
# poorly; keep at most what is strictly needed alive there.
MIN_COMFORTABLE_TEXTURE_SIZE = 4096


@dataclass(frozen=True, slots=True)
class HostCapabilities:
    """What the startup probe learned about the host."""

    constrained: bool = False
    aggressive_eviction: bool = False


def probe_capabilities(
    viewport: Size,
    cpu_count: Optional[int] = None,
    max_texture_size: Optional[int] = None,
) -> HostCapabilities:
    """
    Classify the host from measurable limits.

    A small viewport or very few cores marks the device as constrained.
    Constrained devices and hosts with small GPU limits also get aggressive
    eviction.
    """
    cores = cpu_count if cpu_count is not None else os.cpu_count()

    constrained = viewport.width < CONSTRAINED_VIEWPORT_WIDTH or (
        cores is not None and cores <= CONSTRAINED_CPU_COUNT
    )
    limited_gpu = (
        max_texture_size is not None
        and max_texture_size < MIN_COMFORTABLE_TEXTURE_SIZE
    )

    return HostCapabilities(
        constrained=constrained,
        aggressive_eviction=constrained or limited_gpu,
    )
