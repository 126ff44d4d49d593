# planner.py - HOLFY27 HostConfig Endpoint Rollout Planner
# Version 1.0 - October 2026
# Author - HOL Core Team
#
# Pre-flight reachability filtering and per-host rollout of server endpoints.

"""
Endpoint Rollout Planner

Given a list of candidate server addresses (NTP, DNS, syslog) and a scope
(one host or a whole cluster), the planner:

1. Validates that exactly one candidate is the Primary
2. Resolves the scope to an ordered list of hosts
3. Probes every candidate once and drops the ones that do not answer
4. Applies the surviving list (Primary first) to every host, continuing
   past individual host failures
5. Returns one HostApplyOutcome per host, in resolution order

Only InvalidInputError and ScopeResolutionError escape; both are raised
before any probe or configuration call is made.
"""

import datetime
import logging
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Sequence

from .base import (
    ApplyError,
    EndpointCandidate,
    HostApplyOutcome,
    InvalidInputError,
    ReachabilityResult,
    RolloutReport,
    ScopeResolutionError,
    dedupe_hosts,
    sort_primary_first,
)

logger = logging.getLogger(__name__)


#==============================================================================
# HELPERS
#==============================================================================

def validate_candidates(candidates: Sequence[EndpointCandidate]) -> List[EndpointCandidate]:
    """
    Check the candidate list has exactly one Primary.

    Raises:
        InvalidInputError: zero or more than one Primary
    """
    candidates = list(candidates)
    for candidate in candidates:
        if not isinstance(candidate, EndpointCandidate):
            raise InvalidInputError(f'Not an endpoint candidate: {candidate!r}')
        if not candidate.address or not candidate.address.strip():
            raise InvalidInputError('Endpoint candidate with empty address')

    primaries = [c for c in candidates if c.is_primary()]
    if len(primaries) != 1:
        raise InvalidInputError(
            f'Expected exactly one Primary endpoint, got {len(primaries)}'
        )
    return candidates


def _call_timed(func: Callable, item, index: int, started: dict):
    started[index] = time.monotonic()
    return func(item)


def run_ordered(func: Callable, items: Sequence, workers: int = 1,
                timeout: Optional[float] = None) -> List:
    """
    Call func(item) for every item and return results in input order.

    With workers == 1 and no timeout the calls run inline, one after
    another. Otherwise at most `workers` calls run at once on a thread
    pool and results are collected by index. An item whose call raises
    or times out yields the exception object in its slot instead of a
    result.

    Each call gets its own deadline, counted from the moment it starts
    running. A call that times out is abandoned and its slot is handed
    to the next item, so one slow call never fails the items after it.

    Args:
        func: Callable taking one item
        items: Items to process
        workers: Maximum concurrent calls
        timeout: Per-call timeout in seconds, None for no limit

    Returns:
        List of results (or exceptions), one per item
    """
    items = list(items)
    workers = max(1, workers)

    if workers == 1 and timeout is None:
        results = []
        for item in items:
            try:
                results.append(func(item))
            except Exception as e:
                results.append(e)
        return results

    results = [None] * len(items)
    started = {}
    running = {}
    next_index = 0

    # abandoned calls keep their thread, so the pool may need one per item
    executor = ThreadPoolExecutor(max_workers=max(1, len(items)))
    try:
        while next_index < len(items) or running:
            while next_index < len(items) and len(running) < workers:
                future = executor.submit(_call_timed, func, items[next_index], next_index, started)
                running[future] = next_index
                next_index += 1

            wait_for = None
            if timeout is not None:
                now = time.monotonic()
                deadlines = [started.get(index, now) + timeout for index in running.values()]
                wait_for = max(0.0, min(deadlines) - now)

            done, _ = wait(running, timeout=wait_for, return_when=FIRST_COMPLETED)
            for future in done:
                index = running.pop(future)
                try:
                    results[index] = future.result()
                except Exception as e:
                    results[index] = e

            if timeout is None:
                continue
            now = time.monotonic()
            for future, index in list(running.items()):
                if future.done() or index not in started:
                    continue
                if now - started[index] >= timeout:
                    del running[future]
                    results[index] = TimeoutError(f'timed out after {timeout}s')
    finally:
        executor.shutdown(wait=False)
    return results


def normalize_apply_result(result):
    """Accept (success, reason) tuples or a bare boolean from a config client"""
    if isinstance(result, tuple):
        success = bool(result[0])
        reason = result[1] if len(result) > 1 else None
        return success, reason
    return bool(result), None


#==============================================================================
# PLANNER
#==============================================================================

class EndpointRolloutPlanner:
    """
    Filter candidate endpoints by reachability and apply the survivors.

    Args:
        probe: Object with probe(address) -> bool
        resolver: Object with resolve(scope) -> list of host names
        client: Object with apply(host, endpoints) -> (success, reason)
        workers: Concurrent probe/apply calls (1 = sequential)
        probe_timeout: Per-probe timeout in seconds (timeout = unreachable)
        apply_timeout: Per-host apply timeout in seconds (timeout = failed host)
        setting: Label for reports, e.g. 'ntp'
    """

    def __init__(self, probe, resolver, client, workers: int = 1,
                 probe_timeout: Optional[float] = None,
                 apply_timeout: Optional[float] = None,
                 setting: str = 'endpoints'):
        self.probe = probe
        self.resolver = resolver
        self.client = client
        self.workers = max(1, int(workers))
        self.probe_timeout = probe_timeout
        self.apply_timeout = apply_timeout
        self.setting = setting

    def plan_and_apply(self, candidates: Sequence[EndpointCandidate], scope) -> List[HostApplyOutcome]:
        """
        Probe candidates and apply the reachable ones to every host in scope.

        Returns:
            One HostApplyOutcome per resolved host, in resolution order

        Raises:
            InvalidInputError: candidate list does not have exactly one Primary
            ScopeResolutionError: scope does not resolve to any host
        """
        return self.rollout(candidates, scope).outcomes

    def rollout(self, candidates: Sequence[EndpointCandidate], scope) -> RolloutReport:
        """Same as plan_and_apply but returns the full RolloutReport"""
        candidates = validate_candidates(candidates)
        hosts = dedupe_hosts(self.resolver.resolve(scope))
        if not hosts:
            # a resolver may return an empty list instead of raising
            raise ScopeResolutionError(f'{scope.describe()} resolved to no hosts')

        report = RolloutReport(setting=self.setting, scope=scope.describe(), hosts=hosts)
        logger.info(f'{self.setting}: rolling out to {len(hosts)} host(s) in {scope.describe()}')

        report.probes = self._probe_all(candidates)
        endpoints = [p.candidate for p in sort_primary_first(report.probes) if p.reachable]
        if not endpoints:
            logger.warning(f'{self.setting}: no candidate endpoint is reachable, '
                           f'applying an empty list')

        report.outcomes = self._apply_all(hosts, endpoints)
        report.finished = datetime.datetime.now().isoformat()

        summary = report.get_summary()
        logger.info(f'{self.setting}: {summary["succeeded"]} succeeded, '
                    f'{summary["failed"]} failed')
        return report

    def _probe_one(self, candidate: EndpointCandidate) -> bool:
        return bool(self.probe.probe(candidate.address))

    def _probe_all(self, candidates: List[EndpointCandidate]) -> List[ReachabilityResult]:
        raw = run_ordered(self._probe_one, candidates, self.workers, self.probe_timeout)

        probes = []
        for candidate, result in zip(candidates, raw):
            if isinstance(result, Exception):
                logger.warning(f'{candidate.address}: probe failed - {result}')
                probes.append(ReachabilityResult(candidate, False, error=str(result)))
                continue
            if result:
                logger.info(f'{candidate.address}: reachable')
            else:
                logger.warning(f'{candidate.address}: not reachable, skipping')
            probes.append(ReachabilityResult(candidate, result))
        return probes

    def _apply_one(self, host: str, endpoints: List[EndpointCandidate]):
        return normalize_apply_result(self.client.apply(host, list(endpoints)))

    def _apply_all(self, hosts: List[str], endpoints: List[EndpointCandidate]) -> List[HostApplyOutcome]:
        addresses = [e.address for e in endpoints]
        raw = run_ordered(
            lambda host: self._apply_one(host, endpoints),
            hosts,
            self.workers,
            self.apply_timeout
        )

        outcomes = []
        for host, result in zip(hosts, raw):
            if isinstance(result, ApplyError):
                outcome = HostApplyOutcome(host, list(addresses), False, result.reason)
            elif isinstance(result, Exception):
                outcome = HostApplyOutcome(host, list(addresses), False,
                                           f'{type(result).__name__}: {result}')
            else:
                success, reason = result
                outcome = HostApplyOutcome(host, list(addresses), success, reason)

            if outcome.success:
                logger.info(f'{host}: {self.setting} set to {addresses or "(none)"}')
            else:
                logger.error(f'{host}: {self.setting} failed - {outcome.reason}')
            outcomes.append(outcome)
        return outcomes
