"""Prometheus metrics for the memory engine.

Standard counters and histograms for the write path (turns, stored and
suppressed memories), the read path (latency, prompt size) and the
degradations that keep a turn alive when an enrichment step fails.
"""

from prometheus_client import Counter, Histogram

# Write path
TURNS_RECORDED = Counter(
    "memoria_turns_recorded_total",
    "Total number of turns appended to the transcript",
)

MEMORIES_STORED = Counter(
    "memoria_memories_stored_total",
    "Memory items persisted to the vector store",
    labelnames=["kind", "source"],
)

MEMORIES_SUPPRESSED = Counter(
    "memoria_memories_suppressed_total",
    "Candidate memories suppressed as duplicates",
)

MEMORIES_REJECTED = Counter(
    "memoria_memories_rejected_total",
    "Candidate memories dropped by validation",
    labelnames=["reason"],
)

SUMMARIES_REGENERATED = Counter(
    "memoria_summaries_regenerated_total",
    "Rolling session summaries regenerated",
    labelnames=["mode"],
)

# Degradations
DEGRADATIONS = Counter(
    "memoria_degradations_total",
    "Optional enrichment steps that failed and were absorbed",
    labelnames=["step"],
)

# Read path
PREPARE_CONTEXT_LATENCY = Histogram(
    "memoria_prepare_context_latency_seconds",
    "Latency of prepare_context",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

RECORD_TURN_LATENCY = Histogram(
    "memoria_record_turn_latency_seconds",
    "Latency of record_turn",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

PROMPT_CHARS = Histogram(
    "memoria_prompt_chars",
    "Size of the assembled prompt block in characters",
    buckets=(100, 250, 500, 1000, 2000, 3600, 5000, 10000),
)

MEMORIES_RETRIEVED = Histogram(
    "memoria_memories_retrieved",
    "Ranked memories included per prepared context",
    buckets=(0, 1, 2, 3, 5, 10, 20),
)

# Maintenance
EXPIRED_SWEPT = Counter(
    "memoria_expired_swept_total",
    "Expired memory items deleted by the TTL sweep",
    labelnames=["kind"],
)
