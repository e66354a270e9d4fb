from alchemist.suggestions.heuristics import (
    AppliedCorrections,
    CorrectionSuggestion,
    apply_suggestions,
    suggest_corrections,
)

__all__ = [
    "AppliedCorrections",
    "CorrectionSuggestion",
    "apply_suggestions",
    "suggest_corrections",
]
