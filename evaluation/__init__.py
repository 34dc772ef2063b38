from .benchmark import score_benchmark, score_case, score_render_benchmark
from .export import report_to_dataframe, write_report
from .trials import command_generator, run_benchmark_trials, run_case_trials, run_trial
from .validation import validate_cases

__all__ = [
    "score_benchmark",
    "score_case",
    "score_render_benchmark",
    "report_to_dataframe",
    "write_report",
    "command_generator",
    "run_benchmark_trials",
    "run_case_trials",
    "run_trial",
    "validate_cases",
]
