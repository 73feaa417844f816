"""
barsim package initializer.

This package contains the bar night simulation: patrons queueing at the
counter, the flow coordinator that spawns and routes them, drink scoring,
the mixing vessel, simulated staff, and metric collection.
"""
__all__ = [
    "entities", "errors", "queues", "scoring", "vessel", "patron",
    "arrivals", "policies", "clock", "coordinator", "stations",
    "metrics", "simulation",
]
