"""
Prometheus metrics definitions for FastAPI and Celery workers.
All metrics are registered here and can be imported by other modules.
"""
from prometheus_client import Counter, Histogram, Gauge

# HTTP request metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'path', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'path'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Error metrics
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['error_type']
)

# Pipeline metrics
messages_ingested_total = Counter(
    'messages_ingested_total',
    'Messages driven through ingestion, by outcome',
    ['status']
)

records_upserted_total = Counter(
    'records_upserted_total',
    'Embedding records written to a vector index',
    ['index']
)

upsert_failures_total = Counter(
    'upsert_failures_total',
    'Vector index write failures',
    ['index']
)

retrieval_queries_total = Counter(
    'retrieval_queries_total',
    'Retrieval queries executed, by scope type',
    ['scope']
)

retrieval_results_dropped_total = Counter(
    'retrieval_results_dropped_total',
    'Matches returned by the index that failed the client-side scope check',
    ['scope']
)

embedding_retries_total = Counter(
    'embedding_retries_total',
    'Embedding attempts retried after a transient failure'
)

# Background job metrics
jobs_processing = Gauge(
    'jobs_processing',
    'Number of background jobs currently processing',
    ['job_type']
)

jobs_completed_total = Counter(
    'jobs_completed_total',
    'Total background jobs completed',
    ['job_type', 'status']
)

jobs_failed_total = Counter(
    'jobs_failed_total',
    'Total background jobs failed',
    ['job_type']
)

migration_duration_seconds = Histogram(
    'migration_duration_seconds',
    'Bulk migration duration in seconds',
    ['target', 'status'],
    buckets=[1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0, 900.0, 1800.0, 3600.0]
)

# AI provider metrics
ai_provider_requests_total = Counter(
    'ai_provider_requests_total',
    'Total AI provider requests',
    ['provider', 'operation']
)

ai_provider_failures_total = Counter(
    'ai_provider_failures_total',
    'Total AI provider failures',
    ['provider', 'operation']
)

ai_provider_latency_seconds = Histogram(
    'ai_provider_latency_seconds',
    'AI provider request latency in seconds',
    ['provider', 'operation'],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0]
)
