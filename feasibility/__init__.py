"""School feasibility projection engine — pure Python, no I/O."""


def run_projection(*args, **kwargs):
    from feasibility.orchestrator import run_projection as _run_projection
    return _run_projection(*args, **kwargs)


def build_report(*args, **kwargs):
    from feasibility.report import build_report as _build_report
    return _build_report(*args, **kwargs)


def normalize(*args, **kwargs):
    from feasibility.schema import normalize as _normalize
    return _normalize(*args, **kwargs)


__all__ = ["build_report", "normalize", "run_projection"]
