from prometheus_client import Counter

records_mutations_total = Counter(
    "flexstore_record_mutations_total",
    "Number of record mutations",
    ["action"],
)

schema_mutations_total = Counter(
    "flexstore_schema_mutations_total",
    "Number of database and field definition mutations",
    ["action"],
)

record_queries_total = Counter(
    "flexstore_record_queries_total",
    "Number of record list queries executed"
)

audit_failures_total = Counter(
    "flexstore_audit_failures_total",
    "Number of activity log entries that could not be written"
)

rate_limited_total = Counter(
    "flexstore_rate_limited_total",
    "Number of requests rejected by the rate limiter",
    ["operation"],
)

auth_failures_total = Counter(
    "flexstore_auth_failures_total",
    "Number of failed logins and rejected credentials",
    ["reason"],
)
