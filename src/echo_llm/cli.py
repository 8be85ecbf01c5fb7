"""
Command line entry points.

``ec`` runs one completion and prints the answer; ``ecs`` streams the
answer to stdout as it arrives. Both read ``ECHO_MODEL`` / ``ECHO_KEY``
when ``--model`` / ``--key`` are not given.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from .client import EchoClient, parse_model_string
from .config import Configuration
from .exceptions import LLMError
from .logging_utils import setup_logging

STREAM_MAX_TOKENS = 20000


def _common_parser(prog: str, description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description=description)
    parser.add_argument("--model", default=None, help="Model in format provider/model-name")
    parser.add_argument("--key", default=None, help="API key for the provider")
    return parser


def _build_client(model: str | None, key: str | None) -> EchoClient:
    """Create a client; an explicit key is bound to the model's provider."""
    config = Configuration()
    setup_logging(config.get_logging_config().get("level", "WARNING"))
    if not key:
        return EchoClient(model, config=config)

    full_name = model or config.default_model()
    if not full_name:
        raise LLMError("no model specified: pass --model or set ECHO_MODEL")
    full_name = config.get_aliases().get(full_name, full_name)
    provider, _, _ = parse_model_string(full_name)
    return EchoClient(model, api_keys={provider: key}, config=config)


async def run_complete(model: str | None, key: str | None, prompt: str) -> int:
    async with _build_client(model, key) as client:
        response = await client.complete(prompt)
    print(response.text, end="")
    return 0


async def run_stream(
    model: str | None, key: str | None, system: str | None, message: str
) -> int:
    async with _build_client(model, key) as client:
        stream = await client.stream_complete(
            message, max_tokens=STREAM_MAX_TOKENS, system_message=system
        )
        async with stream:
            async for chunk in stream:
                if chunk.error is not None:
                    print(f"\nStream error: {chunk.error}", file=sys.stderr)
                    return 1
                if chunk.text:
                    print(chunk.text, end="", flush=True)
    return 0


def ec_main(argv: list[str] | None = None) -> int:
    parser = _common_parser("ec", "Send one prompt to an LLM and print the answer.")
    parser.add_argument("prompt", help="Prompt to send")
    args = parser.parse_args(argv)

    try:
        return asyncio.run(run_complete(args.model, args.key, args.prompt))
    except LLMError as e:
        print(f"Error calling LLM: {e}", file=sys.stderr)
        return 1


def ecs_main(argv: list[str] | None = None) -> int:
    parser = _common_parser("ecs", "Stream an LLM answer to stdout.")
    parser.add_argument("--prompt", default=None, help="System message for the model")
    parser.add_argument("message", nargs="+", help="Message words, joined by spaces")
    args = parser.parse_args(argv)

    try:
        return asyncio.run(
            run_stream(args.model, args.key, args.prompt, " ".join(args.message))
        )
    except LLMError as e:
        print(f"Error calling LLM: {e}", file=sys.stderr)
        return 1


def ec() -> None:
    sys.exit(ec_main())


def ecs() -> None:
    sys.exit(ecs_main())


if __name__ == "__main__":
    ec()
