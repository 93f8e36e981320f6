"""Allocation benchmarking subsystem for allocbench.

Provides tools for running named workloads under memory instrumentation
and ranking the results by how much they allocate.
"""
