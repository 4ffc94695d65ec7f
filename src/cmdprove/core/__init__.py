"""cmdprove core components.

This package provides the building blocks shared by the driver and the
child process that runs a test script.

The core consists of:
- Suite: Explicit registry of a script's test functions
- Accounting: Stack of nested pass/fail counters that prints the report
- ScriptRunner: Runs a script's tests, one accounting level each
- Settings: Environment-provided configuration
- domain: Enumerations, exit codes and the exception hierarchy

Typical usage:
    from cmdprove import Suite

    suite = Suite()

    @suite.test
    def test_true(t):
        t.assert_cmd("true succeeds", "--", "true")
"""
