"""Request telemetry collected during a run."""

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass
class EndpointUsage:
    """Call count and cumulative latency for one endpoint label."""

    count: int = 0
    seconds: float = 0.0


@dataclass
class ApiStats:
    """
    Accumulates request counts and pipeline optimization counters.

    One instance is created per run, handed to the client and the pipeline
    stages, and read once at the end for the usage summary. Nothing here
    affects control flow.
    """

    by_endpoint: Dict[str, EndpointUsage] = field(default_factory=dict)
    total_requests: int = 0
    total_seconds: float = 0.0
    rate_limit_pauses: int = 0
    rate_limit_wait: float = 0.0
    retries_429: int = 0
    cache_hits: int = 0
    skipped_price: int = 0
    skipped_early_exit: int = 0
    skipped_prefilter: int = 0
    skipped_search: int = 0
    requeued: int = 0
    requeue_ok: int = 0
    requeue_fail: int = 0

    def record(self, label: str, elapsed: float):
        """Record one completed HTTP exchange."""
        self.total_requests += 1
        self.total_seconds += elapsed
        usage = self.by_endpoint.setdefault(label, EndpointUsage())
        usage.count += 1
        usage.seconds += elapsed

    def record_rate_pause(self, waited: float):
        self.rate_limit_pauses += 1
        self.rate_limit_wait += waited

    def record_429(self):
        self.retries_429 += 1

    def summary_lines(self, dedup_saved: int = 0) -> List[str]:
        """Render the post-run API usage summary."""
        lines = [
            "-- API usage summary " + "-" * 30,
            f"  Total requests:  {self.total_requests}  "
            f"({self.total_seconds:.1f}s network time)",
            "  By endpoint:",
        ]
        for label in sorted(self.by_endpoint):
            usage = self.by_endpoint[label]
            lines.append(
                f"    {label:30} {usage.count:>4} reqs  {usage.seconds:>6.1f}s"
            )

        optimizations = [
            (dedup_saved, "Dedup saved:", "duplicate releases"),
            (self.cache_hits, "Cache hits:", "avoided re-fetch"),
            (self.skipped_price, "Price-skip:", "over limit"),
            (self.skipped_search, "Search pre-filter:", "masters excluded via bulk search"),
            (self.skipped_prefilter, "Inline pre-filter:", "rejected by format string, no API call"),
            (self.skipped_early_exit, "Early-exit:", "excluded format found, stopped paging"),
        ]
        optimization_lines = [
            f"    {name:20} {count} ({note})"
            for count, name, note in optimizations
            if count > 0
        ]
        if optimization_lines:
            lines.append("  Optimizations:")
            lines.extend(optimization_lines)

        if self.requeued > 0:
            lines.append(
                f"  Requeued:          {self.requeued} "
                f"({self.requeue_ok} recovered, {self.requeue_fail} failed)"
            )
        if self.rate_limit_pauses > 0 or self.retries_429 > 0:
            lines.append(
                f"  Rate-limit pauses: {self.rate_limit_pauses} "
                f"({self.rate_limit_wait:.1f}s waiting)"
            )
            lines.append(f"  429 retries:       {self.retries_429}")
        lines.append("-" * 51)
        return lines
