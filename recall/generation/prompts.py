"""
Prompt templates for question generation.
"""
from __future__ import annotations

from collections.abc import Sequence

from recall.generation.models import MemorySnapshot

# =============================================================================
# Single-memory prompt
# =============================================================================

SINGLE_MEMORY_PROMPT = """Based on this specific memory, create 1 simple question that can be answered directly from the memory text:

Memory: "{title}" - {description}

Rules:
- Ask ONLY about information that is clearly stated in the memory text
- Use simple question words: What, Where, How many, Which, Who, When
- The question must be answerable from the exact text provided
- Do not ask about details not mentioned in the memory
- Do not add extra context or assumptions

Generate exactly 1 question in this format:
Question: [Your question here]?

Example for "I bought three koi fish for my outdoor pond":
Question: How many koi fish did you buy?

Now create a question for the provided memory:"""

# =============================================================================
# Batch prompt (used when the per-memory pass comes up short)
# =============================================================================

BATCH_PROMPT = """Based on these exact memories, create {count} simple questions that can be answered directly from the memory text:

{memory_context}

Rules:
- Ask ONLY about information that is clearly stated in the memory text
- Use simple question words: What, Where, How many, Which
- Each question must be answerable from the exact text provided
- Do not ask about details not mentioned in the memories
- Do not add extra context or assumptions

Generate exactly {count} questions in this format:
1. Question text here?
2. Question text here?
3. Question text here?

Example for "I bought three koi fish for my outdoor pond":
- How many koi fish did you buy?
- What did you buy the koi fish for?

Now create questions for the provided memories:"""


def build_single_memory_prompt(memory: MemorySnapshot) -> str:
    return SINGLE_MEMORY_PROMPT.format(title=memory.title, description=memory.description)


def build_batch_prompt(memories: Sequence[MemorySnapshot], count: int) -> str:
    memory_context = "\n\n".join(
        f'Memory {i}: "{m.title}" - {m.description}' for i, m in enumerate(memories, start=1)
    )
    return BATCH_PROMPT.format(count=count, memory_context=memory_context)
