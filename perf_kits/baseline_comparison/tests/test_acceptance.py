from perf_kits.baseline_comparison.tests import run


def test_acceptance_runner_passes(capsys):
    assert run.main() == 0
    assert 'ALL CHECKS PASSED' in capsys.readouterr().out
