"""
Agent worker package — 24/7 background scheduling of tracking cycles.
"""

from payment_tracker.agent_worker.runner import PeriodicTracker, RunnerState

__all__ = ["PeriodicTracker", "RunnerState"]
