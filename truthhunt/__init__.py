"""
TruthHunt - Claim-Evaluation Quiz Session Engine

A deterministic, round-based engine for classroom fact-checking games.
Teams judge claims as TRUE, FALSE or MIXED with a confidence level, and
the engine provides:
- A strict setup -> playing -> debrief state machine
- Exact scoring with hint costs and a calibration bonus
- Per-game and lifetime achievement rules
- Crash-recovery snapshots of in-progress games
- A durable, retrying outbox for results bound to a remote service
"""

__version__ = "0.1.0"
