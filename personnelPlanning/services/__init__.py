from .engine import run_distribution, seed_advisory_assignments
from .distributor import can_assign, distribute
from .rule_evaluator import apply_rules, resolve_column
from .exceptions import AdvisoryError, DistributionConfigError

__all__ = [
    'run_distribution',
    'seed_advisory_assignments',
    'can_assign',
    'distribute',
    'apply_rules',
    'resolve_column',
    'AdvisoryError',
    'DistributionConfigError',
]
