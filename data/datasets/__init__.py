from .loader import (
    load_benchmark_results,
    load_manifest,
    load_render_results,
    resolve_case_path,
)

__all__ = [
    "load_benchmark_results",
    "load_manifest",
    "load_render_results",
    "resolve_case_path",
]
