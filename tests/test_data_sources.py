from unittest.mock import AsyncMock

import pytest

from tbb_ultimate.core.errors import NetworkError
from tbb_ultimate.data.dexscreener import DexscreenerClient
from tbb_ultimate.data.orca import OrcaClient
from tbb_ultimate.data.raydium import RaydiumClient
from tbb_ultimate.data.sentiment import SentimentClient
from tbb_ultimate.execution.constants import SOL_MINT, USDC_MINT

from conftest import TOKEN_MINT

PAIRS = {
    "pairs": [
        {"chainId": "solana", "dexId": "raydium", "pairAddress": "p1", "priceUsd": "0.0012",
         "liquidity": {"usd": 5000}, "volume": {"h24": 100}},
        {"chainId": "solana", "dexId": "orca", "pairAddress": "p2", "priceUsd": "0.0013",
         "liquidity": {"usd": 90000}, "volume": {"h24": 2500}},
        {"chainId": "ethereum", "dexId": "uniswap", "pairAddress": "p3", "priceUsd": "9.9",
         "liquidity": {"usd": 10 ** 9}},
    ]
}

async def test_dexscreener_picks_most_liquid_solana_pair(logger):
    client = DexscreenerClient(logger=logger)
    client.get_token_info = AsyncMock(return_value=PAIRS)

    data = await client.get_token_data(TOKEN_MINT)

    assert data["priceUsd"] == 0.0013
    assert data["pairAddress"] == "p2"
    assert data["volume24h"] == 2500
    assert await client.get_price_usd(TOKEN_MINT) == 0.0013

@pytest.mark.parametrize("response", [{"pairs": []}, {"pairs": None}, {"pairs": [{"priceUsd": "n/a"}]}])
async def test_dexscreener_reports_errors_instead_of_raising(response, logger):
    client = DexscreenerClient(logger=logger)
    client.get_token_info = AsyncMock(return_value=response)

    data = await client.get_token_data(TOKEN_MINT)

    assert "error" in data
    assert await client.get_price_usd(TOKEN_MINT) is None

async def test_dexscreener_network_failure_is_an_error_dict(logger):
    client = DexscreenerClient(logger=logger)
    client.get_token_info = AsyncMock(side_effect=NetworkError("Dexscreener request failed with status 429"))

    data = await client.get_token_data(TOKEN_MINT)

    assert data["error"].startswith("Failed to fetch Dexscreener data")

@pytest.mark.parametrize("client_cls", [OrcaClient, RaydiumClient])
async def test_quote_sources_never_raise(client_cls, logger):
    client = client_cls(logger=logger)
    client._get_json = AsyncMock(side_effect=NetworkError("down"))

    assert await client.get_price(SOL_MINT, USDC_MINT, 1000) is None

async def test_sentiment_defaults_on_failure(logger):
    client = SentimentClient(logger=logger)
    client._get_json = AsyncMock(side_effect=NetworkError("down"))

    score = await client.analyze("MDOG")

    assert score.to_dict() == {"bullish": 50.0, "bearish": 25.0, "neutral": 25.0}

async def test_dexscreener_pair_and_search_urls(logger):
    client = DexscreenerClient(logger=logger)
    client._get_json = AsyncMock(return_value={"pairs": []})

    await client.get_pair_info("p2")
    await client.search_token("MDOG")

    assert client._get_json.await_args_list[0].args == ("https://api.dexscreener.com/latest/dex/pairs/solana/p2",)
    assert client._get_json.await_args_list[1].kwargs == {"params": {"q": "MDOG"}}

@pytest.mark.parametrize("pairs", [
    [None],
    ["p1", 3],
    [{"chainId": "solana", "priceUsd": "nan", "liquidity": {"usd": 100}}],
])
async def test_dexscreener_malformed_pairs_are_an_error_dict(pairs, logger):
    client = DexscreenerClient(logger=logger)
    client.get_token_info = AsyncMock(return_value={"pairs": pairs})

    data = await client.get_token_data(TOKEN_MINT)

    assert "error" in data
    assert await client.get_price_usd(TOKEN_MINT) is None

async def test_dexscreener_unparseable_liquidity_ranks_as_zero(logger):
    client = DexscreenerClient(logger=logger)
    client.get_token_info = AsyncMock(return_value={"pairs": [
        None,
        {"chainId": "solana", "pairAddress": "bad", "priceUsd": "1.5", "liquidity": {"usd": "n/a"}},
        {"chainId": "solana", "pairAddress": "good", "priceUsd": "1.4", "liquidity": {"usd": "250"}},
    ]})

    data = await client.get_token_data(TOKEN_MINT)

    assert data["pairAddress"] == "good"
    assert data["liquidityUsd"] == 250.0
    assert await client.get_price_usd(TOKEN_MINT) == 1.4

async def test_dexscreener_single_pair_with_bad_liquidity_still_prices(logger):
    client = DexscreenerClient(logger=logger)
    client.get_token_info = AsyncMock(return_value={"pairs": [
        {"chainId": "solana", "priceUsd": "1.5", "liquidity": {"usd": "n/a"}},
    ]})

    assert await client.get_price_usd(TOKEN_MINT) == 1.5
