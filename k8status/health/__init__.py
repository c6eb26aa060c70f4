"""Health subsystem: probes, checkers, and the runner that aggregates them."""

from .composite import CompositeChecker, NoopChecker
from .probe import FinalProbe, Probe, ProbeSeverity, ProbeStatus, SingleFinalProbe
from .reporter import Checker, Probes, Reporter
from .runner import Runner, new_runner_with_settings
