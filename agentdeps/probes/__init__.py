"""Probes — diagnostic routines that consume the dependency layer.

Every probe has the same shape::

    probe(target: str, executer: Dependencies, log: logging.Logger) -> ExecutionResult
"""
