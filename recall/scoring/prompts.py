"""
Prompt template for strict answer scoring.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from recall.scoring.answer_scorer import ScoringPair

STRICT_SCORING_PROMPT = """You are a STRICT memory scoring system. You must score based on EXACT FACTUAL MATCHING ONLY.

CRITICAL RULES - NO EXCEPTIONS:
- CORRECT: User answer contains the EXACT same information as stated in the memory
- PARTIAL: User answer contains SOME correct information from the memory but is incomplete
- INCORRECT: User answer is wrong, missing, empty, or contradicts the memory

DO NOT MAKE CREATIVE CONNECTIONS:
- "dad" is NOT the same as "uncle" - they are different people
- "brother" is NOT the same as "friend" - they are different relationships
- "carlos" is NOT the same as "brother" - one is a name, one is a relationship
- Only accept EXACT matches or clear partial matches from the memory text

EXAMPLES OF CORRECT SCORING:
- Memory: "uncle Tom" + User: "uncle" -> CORRECT (exact match)
- Memory: "went to Florida" + User: "florida" -> CORRECT (exact location match)
- Memory: "corgi dog" + User: "corgi" -> CORRECT (exact breed match)
- Memory: "uncle Tom" + User: "dad" -> INCORRECT (completely different person)
- Memory: "friend Carlos" + User: "brother" -> INCORRECT (different relationship)

Score each question-answer pair based ONLY on the memory context provided:
{pairs}
Respond with valid JSON only - no extra text:
{{
  "results": [
    {{"questionIndex": 0, "score": "CORRECT/PARTIAL/INCORRECT", "reasoning": "exact factual explanation"}},
    {{"questionIndex": 1, "score": "CORRECT/PARTIAL/INCORRECT", "reasoning": "exact factual explanation"}}
  ]
}}"""

PAIR_TEMPLATE = """
Question {number}: {question}
User Answer: "{answer}"
Memory Context: "{context}"
"""


def build_scoring_prompt(pairs: Sequence[ScoringPair]) -> str:
    rendered = "".join(
        PAIR_TEMPLATE.format(
            number=i,
            question=pair.question,
            answer=pair.user_answer,
            context=pair.context,
        )
        for i, pair in enumerate(pairs, start=1)
    )
    return STRICT_SCORING_PROMPT.format(pairs=rendered)
