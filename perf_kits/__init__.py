# Performance kits: deterministic analysis of load- and perf-test results.
