from .periodic_job import PeriodicJob

__all__ = ["PeriodicJob"]
