# =============================================================================
# main.py  -  Demo: ask the Portland property assistant about an address
# =============================================================================
#
# HOW TO RUN:
#   python main.py                                   interactive session
#   python main.py "What is the zoning at 1120 SW 5th Ave?"   one question
#
# WHAT YOU SEE:
#   Every tool the agent calls is printed as it happens.  When the agent
#   calls resolve_address, each returned candidate is listed with its score
#   and source tag, so you can tell geocoded coordinates (geocoder_match)
#   from city-center placeholders (fallback_default) before reading the
#   agent's answer.
#
# To use the tools without an LLM, run the server alone and connect any MCP
# client to it:  python -m tools.mcp_server
# =============================================================================

import asyncio
import json
import sys

from dotenv import load_dotenv

# LiteLlm reads OPENROUTER_API_KEY when the agent is created.
load_dotenv()

from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types

from agent.portland_agent import create_agent

APP_NAME = "portland_property_assistant"
USER_ID = "demo_user"
QUIT_WORDS = ("quit", "exit", "q")


# -----------------------------------------------------------------------------
# resolve_address output
# -----------------------------------------------------------------------------
def extract_candidates(response) -> list[dict]:
    """Find the candidate list inside a resolve_address function response.

    Depending on the ADK and FastMCP versions the result dict arrives as
    structuredContent, as JSON in the first text content block, or wrapped
    under "result".
    """
    if not isinstance(response, dict):
        return []
    if isinstance(response.get("candidates"), list):
        return response["candidates"]

    for key in ("structuredContent", "result"):
        found = extract_candidates(response.get(key))
        if found:
            return found

    for block in response.get("content") or []:
        text = block.get("text") if isinstance(block, dict) else None
        if not text:
            continue
        try:
            return extract_candidates(json.loads(text))
        except json.JSONDecodeError:
            continue
    return []


def format_candidates(candidates: list[dict]) -> str:
    if not candidates:
        return "     (no candidates)"
    lines = []
    for c in candidates:
        lines.append(
            f"     {c.get('score', '?'):>3}  {c.get('source', '?'):<16} "
            f"{c.get('normalized_address', '')}  "
            f"({c.get('longitude')}, {c.get('latitude')})"
        )
    return "\n".join(lines)


# -----------------------------------------------------------------------------
# One question, one answer
# -----------------------------------------------------------------------------
async def ask(runner: Runner, session_id: str, question: str) -> str:
    """Send one question to the agent and return its final text reply."""
    message = types.Content(role="user", parts=[types.Part(text=question)])
    answer = ""

    async for event in runner.run_async(
        user_id=USER_ID, session_id=session_id, new_message=message
    ):
        if not (event.content and event.content.parts):
            continue
        for part in event.content.parts:
            if getattr(part, "function_call", None):
                args = json.dumps(part.function_call.args or {})
                print(f"  🔧 {part.function_call.name} {args}")

            reply = getattr(part, "function_response", None)
            if reply and reply.name == "resolve_address":
                print(format_candidates(extract_candidates(reply.response)))

            if getattr(part, "text", None):
                answer = part.text

    return answer


def show_answer(answer: str) -> None:
    print("-" * 70)
    if answer:
        print(f"\n🤖 Agent:\n\n{answer}")
    else:
        print("\n⚠️  No response generated. The agent may have encountered an error.")


async def run_agent(question: str | None = None):
    """Answer a single question, or chat until the user quits."""
    session_service = InMemorySessionService()
    runner = Runner(
        agent=create_agent(), app_name=APP_NAME, session_service=session_service
    )
    session = await session_service.create_session(
        app_name=APP_NAME, user_id=USER_ID
    )

    if question:
        show_answer(await ask(runner, session.id, question))
        return

    print("PORTLAND PROPERTY ASSISTANT (unofficial) - https://www.portlandmaps.com")
    print(f"Ask about a Portland address. Type {' / '.join(QUIT_WORDS)} to exit.")

    while True:
        try:
            line = input("\n🧑 You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if line.lower() in QUIT_WORDS:
            break
        if line:
            show_answer(await ask(runner, session.id, line))


if __name__ == "__main__":
    asyncio.run(run_agent(" ".join(sys.argv[1:]) or None))
