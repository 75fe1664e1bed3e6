"""Prompt construction, dispatch, and response parsing.

Turns project facts into prompts, sends them to a text-generation backend with
bounded retry, and parses what comes back.
"""

from chainforge.prompting.dispatcher import (
    ContentGenerator,
    ConversationWindow,
    DispatchRequest,
    DispatchResult,
    PromptDispatcher,
    RetriesExhaustedError,
)
from chainforge.prompting.enhancer import BlockchainEnhancer, enhance_requirements
from chainforge.prompting.parsing import (
    ParseError,
    extract_code,
    extract_code_blocks,
    extract_json_block,
    parse_project_structure,
)

__all__ = [
    "BlockchainEnhancer",
    "ContentGenerator",
    "ConversationWindow",
    "DispatchRequest",
    "DispatchResult",
    "ParseError",
    "PromptDispatcher",
    "RetriesExhaustedError",
    "enhance_requirements",
    "extract_code",
    "extract_code_blocks",
    "extract_json_block",
    "parse_project_structure",
]
