"""Ask a model about the weather in Paris and let it call a tool to find out.

With ``--server`` the tools are discovered from a running MCP server
(``GET /tools``) and executed there. Without it the built-in local tools
(weather via Open-Meteo, calculator) are used; a server URL is still
required by the bridge, so a placeholder is passed and never contacted.

Example::

    $ OPENAI_API_KEY=sk-... python examples/weather_roundtrip.py --provider openai
    $ python examples/weather_roundtrip.py --provider anthropic --server localhost:3000
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from mcp_bridge import (
    BridgeSettings,
    Orchestrator,
    Provider,
    ProviderConfig,
    build_catalog,
    builtin_tools,
)

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

QUESTION = "What's the weather like in Paris right now?"


async def main(provider: Provider, model: str | None, server: str | None) -> None:
    settings = BridgeSettings.from_env()
    orchestrator = Orchestrator(settings)
    config = ProviderConfig(kind=provider, model=model)
    messages = [{"role": "user", "content": QUESTION}]

    if server:
        result = await orchestrator.run_remote(messages, server, config)
    else:
        catalog = build_catalog([builtin_tools()])
        result = await orchestrator.run(messages, "localhost", config, catalog)

    for tool_result in result.tool_results:
        logger.info("Tool %s -> %s", tool_result.tool_name, tool_result.content)
    logger.info("%s says (%d rounds): %s", provider.value.capitalize(), result.rounds, result.content)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--provider",
        choices=[p.value for p in Provider],
        default=Provider.OPENAI.value,
    )
    parser.add_argument("--model", default=None, help="defaults to MCP_BRIDGE_DEFAULT_*_MODEL")
    parser.add_argument("--server", default=None, help="MCP server URL, e.g. localhost:3000")
    args = parser.parse_args()

    asyncio.run(main(Provider(args.provider), args.model, args.server))
