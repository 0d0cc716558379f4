from .orchestrator import CycleOrchestrator, CycleReport, TargetReport, build_mailer
from .sweeper import RetentionSweeper

__all__ = [
    'CycleOrchestrator',
    'CycleReport',
    'TargetReport',
    'build_mailer',
    'RetentionSweeper',
]
