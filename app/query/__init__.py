# List-query pipeline.
#
#   compiler  — raw request params -> QuerySpec
#   fetcher   — QuerySpec + record store -> items, total
#   envelope  — QuerySpec + items + total -> ResultEnvelope
#
# All three are stateless and safe to call concurrently.
from app.query.compiler import QueryCompiler, QuerySpec, SortDirection, compile_query
from app.query.envelope import ResultEnvelope, build_envelope
from app.query.fetcher import FetchResult, Predicate, RecordStore, build_predicate, fetch

__all__ = [
    "FetchResult",
    "Predicate",
    "QueryCompiler",
    "QuerySpec",
    "RecordStore",
    "ResultEnvelope",
    "SortDirection",
    "build_envelope",
    "build_predicate",
    "compile_query",
    "fetch",
]
