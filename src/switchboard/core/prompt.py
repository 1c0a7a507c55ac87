"""System directives used by the engine components."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from ..skills.operation import Operation
from ..skills.registry import SkillIndexEntry
from ..state import Message

ASSISTANT_PREAMBLE = """You are a helpful research assistant.
You have access to several specialized skills to help you with tasks.

Available Skills:
{skills}

IMPORTANT RULES:
1. Before using a skill you are unsure about, call `read_skill` with its name to learn its rules.
2. If you are unsure what to do, call `list_skills` to see all your capabilities.
3. Do NOT hallucinate operation names. Only use the ones listed in the available operations."""

ROUTER_DIRECTIVE = """You are an intelligent routing agent. Your job is to decide if the user's request requires using external tools.

Available tools:
{operations}

## SKILL INSTRUCTIONS:
{instructions}

DECISION LOGIC:
1. greeting / casual chat -> needsTools: false
2. specific question requiring knowledge (weather, prices, news, facts, calculation, time) -> needsTools: true
3. explicit request to "search", "calculate", "check" -> needsTools: true

TOOL SELECTION:
- Pick the most specific tool for the request. When two tools look alike (for example an authentication tool and a read tool for the same service), use the authentication tool ONLY when the user asks to connect or log in.
- Use the EXACT values the user gave (addresses, names, numbers). Do NOT use placeholders.
- Do not try to answer from your internal knowledge if a tool is appropriate.

CHAINING TOOLS:
- If the request needs several steps and only the first ones are done (see tool results below, if any), select the NEXT tool.
- When every step is done, return needsTools: false with an empty tools list.

OUTPUT FORMAT:
Return valid JSON matching the schema.
For 'args', provide a valid JSON STRING representation of the arguments.
Example: args: "{{\\"expression\\": \\"2+2\\"}}\""""

GENERATOR_DIRECTIVE = """You are a helpful assistant. You help users find information, make calculations, and answer questions.

When you have tool results, synthesize them into a clear, helpful response. Always:
1. Be concise but complete
2. Cite sources when available
3. If multiple tools were used, combine the information coherently
4. Use natural, conversational language
5. Respond in the same language as the user's query

If no tools were used, this is a casual conversation - respond naturally and helpfully."""

RESULTS_HEADER = "Tool Results:"
RESULTS_FOOTER = "Use these results to answer the user's question."
ROUTER_RESULTS_FOOTER = "These tools already ran in this turn. Do not repeat them unless their result was an error."

SUMMARY_DIRECTIVE = """Distill the following conversation history into a concise summary.
Include any specialized context, user preferences, or important details found in previous summaries.
The summary will be used as context for future interactions.

Existing History:
{history}"""

MEMORY_DIRECTIVE = """You are a background Memory Agent. Your goal is to silently learn about the user from their interactions.

Analyze the following interaction:
User: "{user}"
AI: "{assistant}"

Did the user explicitly provide any personal information, preferences, or facts about themselves that should be remembered?

CRITERIA:
- Ignore request-specific details (e.g., "Summarize this file").
- Ignore transient questions (e.g., "What is the weather?").
- RECORD: Names, locations, job titles, technical preferences (e.g., "I use VS Code"), hobbies, etc.

Return a JSON decision."""


def render_skills(index: Iterable[SkillIndexEntry]) -> str:
    return "\n".join(f"{entry['icon']} {entry['name']}: {entry['description']}" for entry in index)


def render_operations(operations: Iterable[Operation]) -> str:
    return "\n".join(f"- {operation.name}: {operation.description}" for operation in operations)


def render_results(results: Mapping[str, str]) -> str:
    return "\n\n".join(f"[{key}]: {value}" for key, value in results.items())


def render_router_directive(operations: Sequence[Operation], instructions: str) -> str:
    return ROUTER_DIRECTIVE.format(
        operations=render_operations(operations) or "(none)",
        instructions=instructions or "(none)",
    )


def render_history(messages: Iterable[Message]) -> str:
    return "\n".join(f"{message.role.upper()}: {message.content}" for message in messages)


def results_message(results: Mapping[str, str], *, footer: str = RESULTS_FOOTER) -> Message:
    return Message(role="system", content=f"{RESULTS_HEADER}\n{render_results(results)}\n\n{footer}")
