from .term_matcher import TermMatcher, find_conflicts, validate_terms
from .scanner import IncrementalScanner, ScanResult, effective_offset, file_size

__all__ = [
    'TermMatcher',
    'find_conflicts',
    'validate_terms',
    'IncrementalScanner',
    'ScanResult',
    'effective_offset',
    'file_size',
]
