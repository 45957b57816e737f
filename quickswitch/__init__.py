"""Search-and-ranking core for an interactive note quick switcher.

Given a corpus of note-like items and a space-delimited query, classify how
each item matches, drop non-matches and return a deterministically ranked,
truncated suggestion list on every keystroke.

Main components:
- QuickSwitcher: per-keystroke entry point with mode switching
- Tokenizer and accent normalization
- Field matcher and match classifier
- Path-prefix prefilter
- Ranking engine with configurable sort priorities
- QueryScheduler: debounce with supersession
"""

from .config import Settings, default_search_modes, load_settings
from .corpus import (
    CorpusIndexer,
    CorpusSnapshot,
    Host,
    LinkRecord,
    NoteRecord,
    VaultSnapshot,
    build_backlinks_map,
)
from .display import InputStatus, render_input, render_suggestion
from .exceptions import (
    ConfigFileError,
    ConfigurationError,
    InvalidPatternError,
    QuickSwitchError,
    UnknownSearchModeError,
    UnknownSortCriterionError,
)
from .matcher import classify, match_field
from .models import (
    Item,
    MatchField,
    MatchResult,
    MatchType,
    RankedItem,
    SearchBy,
    SearchMode,
)
from .prefilter import prefilter
from .ranking import SortCriterion, filter_no_query_priorities, rank
from .scheduler import QueryScheduler
from .switcher import QuickSwitcher
from .tokenizer import tokenize

__all__ = [
    # Main classes
    "QuickSwitcher",
    "QueryScheduler",
    "Settings",
    "default_search_modes",
    "load_settings",
    # Models
    "Item",
    "MatchField",
    "MatchResult",
    "MatchType",
    "RankedItem",
    "SearchBy",
    "SearchMode",
    # Core operations
    "tokenize",
    "match_field",
    "classify",
    "prefilter",
    "rank",
    "filter_no_query_priorities",
    "SortCriterion",
    "render_input",
    "render_suggestion",
    "InputStatus",
    # Host boundary
    "Host",
    "NoteRecord",
    "LinkRecord",
    "VaultSnapshot",
    "CorpusIndexer",
    "CorpusSnapshot",
    "build_backlinks_map",
    # Errors
    "QuickSwitchError",
    "ConfigurationError",
    "UnknownSortCriterionError",
    "InvalidPatternError",
    "UnknownSearchModeError",
    "ConfigFileError",
]

__version__ = "1.0.0"
