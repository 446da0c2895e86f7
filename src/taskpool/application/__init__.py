"""Event notification and workload helpers."""
