"""
Tests for DexScreener response parsing.
"""

import pytest

from volumebot.core.token_info import TokenInfoClient, network_from_chain, parse_token_response
from volumebot.models.network import Network

ADDRESS = "0x" + "ab" * 20


def pair(chain_id="bsc", price="0.5", volume=1234.5, **extra):
    data = {
        "chainId": chain_id,
        "baseToken": {"address": ADDRESS, "name": "Sample", "symbol": "SMP"},
        "priceUsd": price,
        "volume": {"h24": volume},
    }
    data.update(extra)
    return data


@pytest.mark.parametrize("chain, network", [
    ("bsc", Network.BSC),
    ("ethereum", Network.ETHEREUM),
    ("ETH", Network.ETHEREUM),
    ("solana", Network.SOLANA),
    ("base", None),
    ("", None),
])
def test_network_from_chain(chain, network):
    assert network_from_chain(chain) is network


def test_parses_first_pair():
    data = {"pairs": [pair(), pair(chain_id="solana")]}

    token = parse_token_response(ADDRESS, data)

    assert token.network is Network.BSC
    assert token.chain_id == "bsc"
    assert token.name == "Sample"
    assert token.symbol == "SMP"
    assert token.price_usd == "0.5"
    assert token.volume_24h == 1234.5
    assert token.has_market_data


def test_chain_name_fallback():
    entry = pair()
    del entry["chainId"]
    entry["chainName"] = "Ethereum"

    token = parse_token_response(ADDRESS, {"pairs": [entry]})

    assert token.network is Network.ETHEREUM


def test_market_data_requires_price_and_volume():
    token = parse_token_response(ADDRESS, {"pairs": [pair(volume=None)]})
    assert token.price_usd is None
    assert token.volume_24h is None
    assert not token.has_market_data


@pytest.mark.parametrize("data", [
    {},
    {"pairs": None},
    {"pairs": []},
    {"pairs": [pair(chain_id="arbitrum")]},
])
def test_unknown_tokens(data):
    assert parse_token_response(ADDRESS, data) is None


def test_client_base_url_is_normalized():
    client = TokenInfoClient(base_url="https://dex.example/latest/dex/")
    assert client.base_url == "https://dex.example/latest/dex"
