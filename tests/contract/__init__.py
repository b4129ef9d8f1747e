"""Contract tests.

Behavior any `AbstractDedupeStore` backend must show, written against the
parametrized ``store`` fixture so a new backend only needs a fixture branch.
"""
