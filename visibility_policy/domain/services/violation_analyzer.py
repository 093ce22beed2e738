"""
Violation Analyzer

Determines which direct reverse dependencies of a set of target packages
are not permitted by the visibility policy.

For every target package P (sorted):
    1. Resolve P's group G. Packages without a group, or whose group is
       outside the ``only_groups`` scope, are ignored (not violations).
    2. Ask the caller-supplied resolver for P's direct reverse dependencies.
    3. For every reverse dependency R (sorted):
         - skip R when it equals, contains or is contained in P
         - skip R when an ignore filter covers it
         - resolve R's group H; the edge is a violation when H is missing
           or G is not visible to H
    4. Record violations as P -> H -> {//R}.

The analyzer only reads the immutable GroupGraph and PackageIndex, so
packages may be analysed on a thread pool when the resolver is thread-safe.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set, Union

from visibility_policy.domain.models.errors import AnalysisCancelledError
from visibility_policy.domain.models.labels import (
    PackageExpression,
    is_nested,
    normalize_package_path,
    to_label,
)
from visibility_policy.domain.models.results import AnalysisResult, PackageOutcome
from visibility_policy.domain.services.group_graph import GroupGraph
from visibility_policy.domain.services.package_index import PackageIndex

ReverseDepsResolver = Callable[[str], Iterable[str]]


class ViolationAnalyzer:
    """
    Maps reverse-dependency edges to violation decisions.

    Args:
        graph: validated group graph
        index: package -> group index
        ignore_filters: package expressions whose packages are never
            reported as violating reverse dependencies
        only_groups: restrict analysis to target packages of these groups
            (empty means all groups)

    Example:
        >>> analyzer = ViolationAnalyzer(graph, index)
        >>> result = analyzer.analyze({"pkg/a"}, lambda p: rdeps[p])
        >>> result.violations
        {'pkg/a': {None: {'//pkg/c'}}}
    """

    def __init__(
        self,
        graph: GroupGraph,
        index: PackageIndex,
        ignore_filters: Iterable[Union[str, PackageExpression]] = (),
        only_groups: Iterable[str] = (),
    ) -> None:
        self.logger = logging.getLogger(__name__)
        self.graph = graph
        self.index = index
        self.ignore_filters: List[PackageExpression] = [
            f if isinstance(f, PackageExpression) else PackageExpression.parse(f)
            for f in ignore_filters
        ]
        self.only_groups = frozenset(only_groups)
        for name in sorted(self.only_groups):
            graph.get_group(name)

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def should_ignore_group(self, group_name: str) -> bool:
        return bool(self.only_groups) and group_name not in self.only_groups

    def should_ignore_rdep(self, package_path: str) -> bool:
        return any(f.covers(package_path) for f in self.ignore_filters)

    # ------------------------------------------------------------------
    # Single package
    # ------------------------------------------------------------------

    def analyze_package(self, package_path: str, reverse_deps_of: ReverseDepsResolver) -> PackageOutcome:
        """Analyse one target package against its direct reverse dependencies."""
        package = normalize_package_path(package_path)
        group_name = self.index.group_of(package)

        if group_name is None:
            self.logger.debug(f"Ignoring package '//{package}' (no group)")
            return PackageOutcome(package, None, ignored_reason="no group")
        if self.should_ignore_group(group_name):
            self.logger.debug(f"Ignoring package '//{package}' ({group_name})")
            return PackageOutcome(package, group_name, ignored_reason=f"group '{group_name}' not selected")

        group = self.graph.get_group(group_name)
        violations: Dict[Optional[str], Set[str]] = {}

        for rdep in self._direct_reverse_dependencies(package, reverse_deps_of):
            if is_nested(rdep, package) or self.should_ignore_rdep(rdep):
                self.logger.debug(f"Ignoring rdep '//{rdep}'")
                continue

            rdep_group = self.index.group_of(rdep)
            if group.is_visible_to(rdep_group):
                self.logger.debug(f"//{rdep} is ok")
                continue

            violations.setdefault(rdep_group, set()).add(to_label(rdep))
            self.logger.info(
                f"Violation: {package} ({group_name}) <<(rdep)<< //{rdep} "
                f"({rdep_group if rdep_group is not None else 'no group'})"
            )

        return PackageOutcome(package, group_name, violations=violations)

    def _direct_reverse_dependencies(self, package: str, reverse_deps_of: ReverseDepsResolver) -> List[str]:
        rdeps: Set[str] = set()
        for raw in reverse_deps_of(package) or ():
            try:
                rdeps.add(normalize_package_path(raw))
            except ValueError:
                self.logger.debug(f"Ignoring rdep '{raw}' (not a workspace package)")
        return sorted(rdeps)

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def iter_package_results(
        self,
        target_packages: Iterable[str],
        reverse_deps_of: ReverseDepsResolver,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[PackageOutcome]:
        """
        Lazily analyse packages in sorted order.

        The caller may stop iterating between packages; ``cancel_event`` is
        checked before each package starts.
        """
        for package in self._sorted_targets(target_packages):
            self._check_cancelled(cancel_event, package)
            yield self.analyze_package(package, reverse_deps_of)

    def analyze(
        self,
        target_packages: Iterable[str],
        reverse_deps_of: ReverseDepsResolver,
        max_workers: int = 1,
        cancel_event: Optional[threading.Event] = None,
    ) -> AnalysisResult:
        """
        Analyse all target packages.

        Any exception raised by ``reverse_deps_of`` propagates and discards
        the partial result. With ``max_workers`` greater than one, packages
        are analysed concurrently and ``reverse_deps_of`` must be thread-safe;
        the result is identical to a sequential run.
        """
        targets = self._sorted_targets(target_packages)
        self.logger.info(
            "Analyzing 1 package..." if len(targets) == 1 else f"Analyzing {len(targets)} packages..."
        )

        if max_workers <= 1 or len(targets) <= 1:
            outcomes = list(self.iter_package_results(targets, reverse_deps_of, cancel_event))
            return AnalysisResult.from_outcomes(outcomes)

        def _task(package: str) -> PackageOutcome:
            self._check_cancelled(cancel_event, package)
            return self.analyze_package(package, reverse_deps_of)

        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [pool.submit(_task, p) for p in targets]
            try:
                outcomes = [f.result() for f in futures]
            except BaseException:
                for f in futures:
                    f.cancel()
                raise

        return AnalysisResult.from_outcomes(outcomes)

    @staticmethod
    def _sorted_targets(target_packages: Iterable[str]) -> List[str]:
        return sorted({normalize_package_path(p) for p in target_packages})

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event], package: str) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise AnalysisCancelledError(f"Analysis cancelled before package '//{package}'")
