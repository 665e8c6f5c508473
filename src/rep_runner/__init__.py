"""
rep-runner: guided street-workout sessions.

Runs a session plan set by set (countdown, timed rests, rounds), keeps a
local history of completed sessions and gives per-exercise technique cues.
"""

__version__ = "0.1.0"
