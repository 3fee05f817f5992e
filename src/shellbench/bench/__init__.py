"""Benchmarking engine for shellbench.

Provides shell-overhead calibration, the adaptive timed-run loop,
outlier rejection, and the relative speed comparison across commands.
"""
