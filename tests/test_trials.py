from __future__ import annotations

import json
import sys
import threading
import time

from evaluation.trials import classify_failure, command_generator, run_benchmark_trials, run_case_trials, run_trial
from schemas.benchmark import Manifest, TestCase
from schemas.config import BenchmarkConfig
from schemas.defects import FreeTextDefect, TokenUsage
from tools.errors import GeneratorError, GeneratorTimeout, RateLimited, ResponseParseError
from tools.response_parser import GeneratorResponse

CASE = TestCase(id="img-no-alt", file="cases/img-no-alt.html")
DEFECT = FreeTextDefect(element="img.hero", issue="Image missing alt", criterion="1.1.1", impact="critical")


def test_successful_trial_carries_defects_and_tokens() -> None:
    """A clean generator call yields a trial with its defects and usage."""
    tokens = TokenUsage(input_tokens=100, output_tokens=20)

    record = run_trial(lambda case, timeout: GeneratorResponse([DEFECT], tokens), CASE, 0, timeout_s=5)

    assert not record.failed
    assert record.defects == [DEFECT]
    assert record.tokens == tokens
    assert record.duration_ms >= 0


def test_timeout_yields_failed_trial() -> None:
    """A generator that overruns its timeout is recorded, not waited on."""
    release = threading.Event()

    def slow(case, timeout):
        release.wait(5)
        return GeneratorResponse([DEFECT])

    try:
        record = run_trial(slow, CASE, 1, timeout_s=0.05)
    finally:
        release.set()

    assert record.failed
    assert record.error == "Timeout after 50ms"
    assert record.defects == []


def test_parse_error_keeps_tokens() -> None:
    """Usage reported before a parse failure still reaches the record."""
    tokens = TokenUsage(input_tokens=7)

    def unparseable(case, timeout):
        raise ResponseParseError("no JSON", tokens=tokens)

    record = run_trial(unparseable, CASE, 0, timeout_s=5)

    assert record.error == "Parse error: no JSON"
    assert record.tokens == tokens


def test_failure_classification() -> None:
    """Exceptions map onto the recorded error tags."""
    assert classify_failure(TimeoutError(), 30).tag == "Timeout after 30000ms"
    assert isinstance(classify_failure(RuntimeError("HTTP 429 Too Many Requests"), 30), RateLimited)
    assert classify_failure(RuntimeError("rate limit exceeded"), 30).tag == "Rate limited"
    assert classify_failure(OSError("claude: not found"), 30).tag == "Exec error: claude: not found"
    original = GeneratorTimeout(1000)
    assert classify_failure(original, 30) is original


def test_case_trials_run_in_order_and_survive_failures() -> None:
    """Every requested trial is recorded, in order, even when some fail."""
    calls = []

    def flaky(case, timeout):
        calls.append(len(calls))
        if len(calls) == 2:
            raise GeneratorError("Generator error: error_during_execution")
        return GeneratorResponse([DEFECT])

    records = run_case_trials(flaky, CASE, runs=3, timeout_s=5)

    assert [r.run_index for r in records] == [0, 1, 2]
    assert [r.failed for r in records] == [False, True, False]
    assert records[1].error == "Generator error: error_during_execution"
    assert calls == [0, 1, 2]


def test_timed_out_trial_does_not_hold_the_worker() -> None:
    """The generator thread of a timed-out trial is a daemon, so it cannot block interpreter exit."""
    release = threading.Event()
    seen = {}

    def stuck(case, timeout):
        seen["daemon"] = threading.current_thread().daemon
        release.wait(5)
        return GeneratorResponse([DEFECT])

    try:
        record = run_trial(stuck, CASE, 0, timeout_s=0.05)
    finally:
        release.set()

    assert record.error == "Timeout after 50ms"
    assert seen["daemon"] is True


def test_command_generator_kills_overrunning_process(tmp_path) -> None:
    """A command that overruns the trial timeout is killed and never finishes its work."""
    marker = tmp_path / "finished"
    script = f"import time, pathlib; time.sleep(1.5); pathlib.Path({str(marker)!r}).write_text('done')"
    generate = command_generator(lambda case: [sys.executable, "-c", script])

    start = time.perf_counter()
    record = run_trial(generate, CASE, 0, timeout_s=0.3)
    elapsed = time.perf_counter() - start

    assert record.error == "Timeout after 300ms"
    assert elapsed < 1.5
    time.sleep(2.0)
    assert not marker.exists()


def test_command_generator_parses_stdout() -> None:
    """The command's stdout envelope becomes the trial's defects."""
    envelope = {
        "type": "result",
        "structured_output": {
            "violations": [
                {"element": "img.hero", "issue": "Image missing alt", "wcagCriterion": "1.1.1", "impact": "critical"}
            ]
        },
    }
    script = f"import sys; sys.stdout.write({json.dumps(envelope)!r})"
    generate = command_generator(lambda case: [sys.executable, "-c", script])

    record = run_trial(generate, CASE, 0, timeout_s=30)

    assert not record.failed
    assert [d.criterion for d in record.defects] == ["1.1.1"]


def test_command_generator_failed_exit() -> None:
    """A non-zero exit without output is an exec error; a 429 on stderr is a rate limit."""
    failing = command_generator(lambda case: [sys.executable, "-c", "import sys; sys.exit(3)"])
    limited = command_generator(
        lambda case: [sys.executable, "-c", "import sys; sys.stderr.write('HTTP 429'); sys.exit(1)"]
    )

    assert run_trial(failing, CASE, 0, timeout_s=30).error == "Exec error: exit status 3"
    assert run_trial(limited, CASE, 0, timeout_s=30).error == "Rate limited"


def test_benchmark_trials_follow_config() -> None:
    """Every manifest case gets config.runs trials; run settings are recorded on the results."""
    manifest = Manifest(
        cases=[
            CASE,
            TestCase(id="clean", file="cases/clean.html", difficulty="easy"),
        ]
    )
    config = BenchmarkConfig(runs=2, timeout_seconds=5, model="haiku")
    calls = []

    def generate(case, timeout):
        calls.append((case.id, timeout))
        return GeneratorResponse([DEFECT] if case.id == CASE.id else [])

    results = run_benchmark_trials(generate, manifest, config)

    assert calls == [("img-no-alt", 5), ("img-no-alt", 5), ("clean", 5), ("clean", 5)]
    assert list(results.cases) == ["img-no-alt", "clean"]
    assert [len(c.generator_runs) for c in results.cases.values()] == [2, 2]
    assert results.cases["clean"].difficulty == "easy"
    assert results.config.runs == 2
    assert results.config.model == "haiku"
    assert results.config.timeout == 5000
