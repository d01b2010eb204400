"""
Test suite for Stream Cluster Tuner.

- test_search/: parameters, configurations, window, evaluator, surrogate, optimizer
- test_algorithms/: reference clusterers, factory and quality metrics
- test_config.py, test_runner.py, test_streams.py, test_logging_config.py
"""
