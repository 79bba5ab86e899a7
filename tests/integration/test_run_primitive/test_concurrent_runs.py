"""
Integration tests for concurrent invocations of the run primitive.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from oneliner import CancellationSource, CommandSpec, Outcome, run


@pytest.mark.integration
@pytest.mark.slow
class TestConcurrentRuns:
    """Independent invocations running side by side."""

    def test_outputs_do_not_mix(self, python_argv, fast_config):
        """Test that every invocation gets exactly its own output."""
        code = (
            "import sys\n"
            "token = sys.argv[1]\n"
            "for i in range(2000):\n"
            "    print(token, i)\n"
            "    print(token, i, file=sys.stderr)\n"
        )

        def job(n):
            return run(CommandSpec(command=python_argv(code) + [f"job{n}"], timeout=60), config=fast_config)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(job, range(8)))

        for n, result in enumerate(results):
            assert result.success
            stdout_lines = result.stdout.splitlines()
            assert len(stdout_lines) == 2000
            assert all(line.startswith(f"job{n} ") for line in stdout_lines)
            assert all(line.startswith(f"job{n} ") for line in result.stderr.splitlines())

    def test_mixed_outcomes(self, sleeper_argv, python_argv, fast_config):
        """Test that timeouts and cancels only affect their own invocation."""
        source = CancellationSource()
        specs = {
            "success": CommandSpec(command=sleeper_argv(1), timeout=30),
            "failed": CommandSpec(command=python_argv("raise SystemExit(7)")),
            "timed_out": CommandSpec(command=sleeper_argv(30), timeout=1),
            "canceled": CommandSpec(command=sleeper_argv(30), cancel_token=source.token),
        }

        with ThreadPoolExecutor(max_workers=len(specs)) as pool:
            futures = {name: pool.submit(run, spec, fast_config) for name, spec in specs.items()}
            source.cancel_after(1.0)
            results = {name: future.result(timeout=60) for name, future in futures.items()}

        assert results["success"].outcome is Outcome.SUCCESS
        assert results["success"].stdout == "Finished sleeping 1 seconds.\n"
        assert results["failed"].outcome is Outcome.FAILED
        assert results["failed"].exit_code == 7
        assert results["timed_out"].outcome is Outcome.TIMED_OUT
        assert results["canceled"].outcome is Outcome.CANCELED
