from .context import get_memory_context, render_memory
from .extractor import extract_and_update_memory, extract_memory_updates, record_advice_outcome
from .models import AdviceRecord, ConversationMemory, EmotionalState, LifeEvent

__all__ = [
    "AdviceRecord",
    "ConversationMemory",
    "EmotionalState",
    "LifeEvent",
    "extract_and_update_memory",
    "extract_memory_updates",
    "get_memory_context",
    "record_advice_outcome",
    "render_memory",
]
