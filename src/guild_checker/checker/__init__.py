"""Bounded-concurrency lookup components.

- Admission control through a counting permit pool
- One supervised task per identifier, drained in completion order
- Aggregation of successes and a failure count
"""
