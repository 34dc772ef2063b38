"""
Trial boundary for the external free-text generator.

Each trial is one bounded call. Whatever happens inside the call (timeout, rate limit,
unparseable output, crash) comes back as a TrialRecord with an error tag, never as an
exception, so the case keeps its scored (failed) trial. Trials of a case run sequentially.
"""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Sequence

from schemas.benchmark import BenchmarkResults, CaseResults, Manifest, RunConfigInfo, TestCase, TrialRecord
from schemas.config import BenchmarkConfig
from tools.errors import GeneratorError, GeneratorTimeout, RateLimited
from tools.response_parser import GeneratorResponse, parse_generator_output

logger = logging.getLogger(__name__)

# generate(case, timeout_seconds) -> validated response
Generator = Callable[[TestCase, float], GeneratorResponse]


def _is_rate_limit_message(text: str) -> bool:
    text = text.lower()
    return "429" in text or "rate limit" in text


def _looks_rate_limited(exc: BaseException) -> bool:
    if getattr(exc, "status_code", None) == 429:
        return True
    return _is_rate_limit_message(str(exc))


def classify_failure(exc: BaseException, timeout_s: float) -> GeneratorError:
    """Map any exception raised by a generator to the tagged error recorded on the trial."""
    if isinstance(exc, GeneratorError):
        return exc
    if isinstance(exc, (TimeoutError, subprocess.TimeoutExpired)):
        return GeneratorTimeout(timeout_s * 1000)
    if _looks_rate_limited(exc):
        return RateLimited(str(exc))
    return GeneratorError(f"Exec error: {exc}")


def _call_generator(generate: Generator, case: TestCase, run_index: int, timeout_s: float) -> GeneratorResponse:
    """
    Run one generator call on a daemon thread and wait at most timeout_s.
    An overrunning call raises GeneratorTimeout; the daemon thread never holds up interpreter exit.
    Generators that spawn a process should also enforce timeout_s themselves (see command_generator).
    """
    outcome: Dict[str, Any] = {}

    def target() -> None:
        try:
            outcome["response"] = generate(case, timeout_s)
        except Exception as e:
            outcome["error"] = e

    worker = threading.Thread(target=target, name=f"trial-{case.id}-{run_index}", daemon=True)
    worker.start()
    worker.join(timeout_s)
    if worker.is_alive():
        raise GeneratorTimeout(timeout_s * 1000)
    if "error" in outcome:
        raise outcome["error"]
    return outcome["response"]


def run_trial(
    generate: Generator,
    case: TestCase,
    run_index: int,
    timeout_s: float,
) -> TrialRecord:
    """Invoke the generator once with a timeout and return the trial record."""
    start = time.perf_counter()
    try:
        response = _call_generator(generate, case, run_index, timeout_s)
        duration_ms = round((time.perf_counter() - start) * 1000)
        logger.debug("Case %s trial %d: %d defect(s) in %dms", case.id, run_index, len(response.defects), duration_ms)
        return TrialRecord(
            run_index=run_index,
            duration_ms=duration_ms,
            defects=list(response.defects),
            tokens=response.tokens,
        )
    except Exception as e:
        failure = classify_failure(e, timeout_s)
        duration_ms = round((time.perf_counter() - start) * 1000)
        logger.warning("Case %s trial %d failed after %dms: %s", case.id, run_index, duration_ms, failure.tag)
        return TrialRecord(
            run_index=run_index,
            duration_ms=duration_ms,
            tokens=failure.tokens,
            error=failure.tag,
        )


def run_case_trials(
    generate: Generator,
    case: TestCase,
    runs: int,
    timeout_s: float,
) -> List[TrialRecord]:
    """Run `runs` trials for one case, each finishing (or timing out) before the next starts."""
    return [run_trial(generate, case, i, timeout_s) for i in range(runs)]


def run_benchmark_trials(generate: Generator, manifest: Manifest, config: BenchmarkConfig) -> BenchmarkResults:
    """
    Run config.runs generator trials for every manifest case, with config.timeout_seconds per trial.
    Returns results in the recorded layout, ready for score_benchmark.
    """
    cases: Dict[str, CaseResults] = {}
    for case in manifest.cases:
        logger.info("Case %s: %d trial(s) with %s", case.id, config.runs, config.model)
        cases[case.id] = CaseResults(
            description=case.description,
            mode=case.mode,
            difficulty=case.difficulty,
            expected_violations=list(case.expected_violations),
            generator_runs=run_case_trials(generate, case, config.runs, config.timeout_seconds),
        )
    info = RunConfigInfo(
        runs=config.runs,
        model=config.model,
        timeout=config.timeout_seconds * 1000,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    return BenchmarkResults(config=info, cases=cases)


def command_generator(
    build_argv: Callable[[TestCase], Sequence[str]],
    parse: Callable[[str], GeneratorResponse] = parse_generator_output,
) -> Generator:
    """
    Generator backed by an external command. The child process is killed when it overruns the
    trial timeout. A non-zero exit with output on stdout is still parsed.
    """

    def generate(case: TestCase, timeout_s: float) -> GeneratorResponse:
        argv = list(build_argv(case))
        completed = subprocess.run(argv, capture_output=True, text=True, timeout=timeout_s, check=False)
        if completed.returncode != 0 and not completed.stdout.strip():
            stderr = completed.stderr.strip()
            if _is_rate_limit_message(stderr):
                raise RateLimited(stderr[:200])
            raise GeneratorError(f"Exec error: exit status {completed.returncode}", stderr[:200])
        return parse(completed.stdout)

    return generate
