"""Computation units: statistics behind the Frequencies, Chi-Square and Runs procedures."""

from statflow.compute.descriptive import DescriptiveCalculator, Distribution, percentile
from statflow.compute.frequency import FrequencyCalculator
from statflow.compute.chi_square import ChiSquareCalculator
from statflow.compute.runs import RunsCalculator
from statflow.compute.workers import chi_square_worker, frequencies_worker, runs_worker

__all__ = [
    "DescriptiveCalculator",
    "Distribution",
    "percentile",
    "FrequencyCalculator",
    "ChiSquareCalculator",
    "RunsCalculator",
    "frequencies_worker",
    "chi_square_worker",
    "runs_worker",
]
