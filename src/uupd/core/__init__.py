"""Run infrastructure: subprocesses, sessions, locking, orchestration."""
