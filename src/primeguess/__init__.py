"""
Primeguess: express a number as a product of prime powers by guessing.

Candidate primes up to sqrt(N) are generated (optionally cached), then a
parallel search tries exponent assignments until one multiplies out to N.
"""

__version__ = "0.1.0"

from .engine import SearchEngine, SearchResult, EngineState
from .guess import GuessState, compute_product, distance
from .primes import PrimeCandidateGenerator, generate_primes_up_to, bound_from_target
from .utils import setup_logging, read_target, get_config

__all__ = ['SearchEngine', 'SearchResult', 'EngineState', 'GuessState', 'compute_product',
           'distance', 'PrimeCandidateGenerator', 'generate_primes_up_to', 'bound_from_target',
           'setup_logging', 'read_target', 'get_config']
