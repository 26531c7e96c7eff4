"""snlsh - approximate nearest-neighbour search over short token sequences.

SimHash fingerprints combined with banded Locality-Sensitive Hashing.
"""

__version__ = "0.1.0"
__author__ = "Rohan Vinaik"
__email__ = "rohanpvinaik@gmail.com"

from .core.errors import InvalidArgumentError, InvalidConfigurationError, SNLSHError
from .core.types import Neighbor, Record, Sentence
from .semantic.lsh_index import SignatureLSH
from .semantic.simhash import hamming_distance, simhash64

__all__ = [
    "Sentence",
    "Neighbor",
    "Record",
    "SignatureLSH",
    "simhash64",
    "hamming_distance",
    "SNLSHError",
    "InvalidConfigurationError",
    "InvalidArgumentError",
    "__version__",
]
