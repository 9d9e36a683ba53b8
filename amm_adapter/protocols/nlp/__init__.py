"""
Natural-language command support: completion service client and intent resolver
"""

from .api import CompletionAPI
from .resolver import IntentResolver, ParsedIntent, ParsedToken, SYSTEM_PROMPT

__all__ = [
    "CompletionAPI",
    "IntentResolver",
    "ParsedIntent",
    "ParsedToken",
    "SYSTEM_PROMPT",
]
