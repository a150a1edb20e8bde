"""The single branch point of the pipeline: build native code or not."""

from __future__ import annotations

import enum
from typing import Iterable, Sequence

from pluginpack.dependencies import DependencyModule


class BuildDecision(str, enum.Enum):
    """Whether the native compilation stage must run."""

    NO_NATIVE_WORK = "no_native_work"
    NATIVE_BUILD_REQUIRED = "native_build_required"


def decide(
    references: Sequence[str],
    modules: Iterable[DependencyModule],
) -> BuildDecision:
    """Compute the build decision from a complete scan.

    Args:
        references: Packages registered by the application's own sources.
        modules: Classified dependency modules.

    Returns:
        ``NATIVE_BUILD_REQUIRED`` if the application registers at least one
        package or at least one dependency is native-bearing, otherwise
        ``NO_NATIVE_WORK``.
    """
    if references or any(m.native_bearing for m in modules):
        return BuildDecision.NATIVE_BUILD_REQUIRED
    return BuildDecision.NO_NATIVE_WORK
