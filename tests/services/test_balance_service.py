"""
End-to-end balance service tests

The whole service graph is built from ``Settings`` with every upstream
served by one MockTransport, dispatched on host.
"""

import json

import httpx
import pytest

from tokenscope.config import Settings
from tokenscope.errors import (
    AddressValidationError,
    BatchLimitExceeded,
    InvalidRequestError,
    UnsupportedChainError,
)
from tokenscope.services.balances import build_balance_service, sort_verified_first
from tokenscope.services.models import Token

ICON = "data:image/svg+xml;base64,PHN2Zz4="

NEAR_CONTRACTS = {
    "usdt.tether-token.near": ({"symbol": "USDt", "decimals": 6}, "1500000"),
    "spam.near": ({"symbol": "FREEAIRDROP", "decimals": 18}, "1000000000000000000"),
    "plain.near": ({"symbol": "PLAIN", "decimals": 2}, "100"),
    "community.near": ({"symbol": "COMM", "decimals": 2, "icon": ICON}, "12345"),
    "bare.near": ({"symbol": "BARE", "decimals": 0}, "3"),
}

BTC_ADDRESS = "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa"

SOL_OWNER = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
WSOL = "So11111111111111111111111111111111111111112"
USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
NFT_MINT = "NftMint111111111111111111111111111111111111"
SCAM_MINT = "FreeMint1111111111111111111111111111111111"


def _token_account(mint, amount, decimals):
    info = {"mint": mint, "tokenAmount": {"amount": amount, "decimals": decimals}}
    return {"account": {"data": {"parsed": {"info": info}}}}


SOL_TOKEN_ACCOUNTS = [
    _token_account(USDC, "1234567", 6),
    _token_account(NFT_MINT, "1", 0),
    _token_account(SCAM_MINT, "1000", 2),
    _token_account(WSOL, "2500000000", 9),
]


class Upstreams:
    def __init__(self):
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host == "rpc.near.test":
            return self._near(json.loads(request.content))
        if host == "indexer.near.test":
            return httpx.Response(200, json=["spam.near", "usdt.tether-token.near", "community.near", "bare.near"])
        if host == "rpc.solana.test":
            return self._solana(json.loads(request.content))
        if host == "btc.test":
            stats = {"funded_txo_sum": 100000000, "spent_txo_sum": 0, "tx_count": 2}
            return httpx.Response(200, json={"chain_stats": stats, "mempool_stats": {"funded_txo_sum": 0, "spent_txo_sum": 0, "tx_count": 0}})
        return httpx.Response(404)

    @staticmethod
    def _solana(body):
        if body["method"] == "getBalance":
            result = {"context": {"slot": 1}, "value": 1500000000}
        else:
            result = {"context": {"slot": 1}, "value": SOL_TOKEN_ACCOUNTS}
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    @staticmethod
    def _near(body):
        params = body["params"]
        if params["request_type"] == "view_account":
            result = {"amount": "1000000000000000000000000", "storage_usage": 500}
        else:
            metadata, balance = NEAR_CONTRACTS[params["account_id"]]
            value = metadata if params["method_name"] == "ft_metadata" else balance
            result = {"result": list(json.dumps(value).encode()), "logs": []}
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


def make_service(upstreams=None, **overrides):
    settings = Settings(
        near_rpc_url="https://rpc.near.test",
        near_indexer_url="https://indexer.near.test/account",
        near_verified_tokens="usdt.tether-token.near,plain.near",
        solana_rpc_url="https://rpc.solana.test",
        bitcoin_api_base="https://btc.test/api/",
        **overrides,
    )
    return build_balance_service(settings, transport=httpx.MockTransport(upstreams or Upstreams()))


class TestSingleLookup:
    @pytest.mark.asyncio
    async def test_near_balance_with_allow_listed_tokens(self):
        data = await make_service().get_balance("near", "alice.near")

        assert data["network"] == "near"
        assert data["native"]["formatted_balance"] == "1.00000"
        assert data["native"]["storage_usage"] == 500
        assert [t["id"] for t in data["tokens"]] == ["plain.near", "usdt.tether-token.near"]
        usdt = data["tokens"][1]
        assert usdt["formatted_balance"] == "1.5000"
        assert usdt["raw_balance"] == "1500000"
        assert usdt["verified"] is True

    @pytest.mark.asyncio
    async def test_coin_only_chain_returns_native_shape(self):
        data = await make_service().get_balance("btc", BTC_ADDRESS)

        assert data["symbol"] == "BTC"
        assert data["formatted_balance"] == "1.00000000"
        assert "tokens" not in data

    @pytest.mark.asyncio
    async def test_unsupported_chain(self):
        with pytest.raises(UnsupportedChainError, match="Unsupported network: cardano"):
            await make_service().get_balance("cardano", "addr1")

    @pytest.mark.asyncio
    async def test_invalid_address_never_reaches_upstream(self):
        upstreams = Upstreams()
        with pytest.raises(AddressValidationError):
            await make_service(upstreams).get_balance("near", "NOT VALID")
        assert upstreams.requests == []


class TestVerifiedTokens:
    @pytest.mark.asyncio
    async def test_discovered_tokens_filtered_and_sorted(self):
        data = await make_service().get_verified_tokens("alice.near")

        ids = [t["id"] for t in data["tokens"]]
        # spam.near matches a promo keyword; bare.near has neither icon nor reference
        assert ids == ["usdt.tether-token.near", "community.near"]
        assert data["tokens"][1]["verified"] is False
        assert data["native"]["symbol"] == "NEAR"
        assert data["updated_at"]

    @pytest.mark.asyncio
    async def test_policy_switch_keeps_undescribed_tokens(self):
        data = await make_service(require_descriptive_metadata=False).get_verified_tokens("alice.near")

        assert [t["id"] for t in data["tokens"]] == ["usdt.tether-token.near", "community.near", "bare.near"]

    @pytest.mark.asyncio
    async def test_coin_only_chain_rejected(self):
        with pytest.raises(InvalidRequestError):
            await make_service().get_verified_tokens(BTC_ADDRESS, chain="bitcoin")


class TestSolana:
    @pytest.mark.asyncio
    async def test_holdings_filtered_with_native_in_lamports(self):
        upstreams = Upstreams()
        data = await make_service(upstreams).get_balance("sol", SOL_OWNER)

        assert data["network"] == "solana"
        assert data["native"]["formatted_balance"] == "1.500000000"
        assert data["native"]["verified"] is True
        # NFT-shaped and scam-pattern mints never reach the output
        assert [t["id"] for t in data["tokens"]] == [USDC, WSOL]
        assert data["tokens"][0]["formatted_balance"] == "1.2346"
        assert data["tokens"][1]["verified"] is True

        listings = [r for r in upstreams.requests if json.loads(r.content)["method"] == "getParsedTokenAccountsByOwner"]
        assert len(listings) == 1

    @pytest.mark.asyncio
    async def test_verified_tokens_sorted_verified_first(self):
        data = await make_service().get_verified_tokens(SOL_OWNER, chain="solana")

        assert [t["id"] for t in data["tokens"]] == [WSOL, USDC]
        assert [t["verified"] for t in data["tokens"]] == [True, False]
        assert data["native"]["symbol"] == "SOL"


class TestBatch:
    @pytest.mark.asyncio
    async def test_items_fail_independently_and_keep_order(self):
        addresses = [BTC_ADDRESS, "not-an-address", "1BvBMSEYstWetqTFn5Au4m4GFg7xJaNVN2", 42]

        results = await make_service().get_balances("bitcoin", addresses)

        assert [r["address"] for r in results] == addresses
        assert [r["status"] for r in results] == ["success", "failed", "success", "failed"]
        assert results[0]["formatted_balance"] == "1.00000000"
        assert "Invalid Bitcoin address" in results[1]["error"]

    @pytest.mark.asyncio
    async def test_over_limit_rejected_before_any_fetch(self):
        upstreams = Upstreams()
        with pytest.raises(BatchLimitExceeded, match="max 20"):
            await make_service(upstreams).get_balances("bitcoin", [BTC_ADDRESS] * 21)
        assert upstreams.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("addresses", [None, [], "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa"])
    async def test_non_list_or_empty_rejected(self, addresses):
        with pytest.raises(InvalidRequestError, match="array of addresses"):
            await make_service().get_balances("bitcoin", addresses)

    @pytest.mark.asyncio
    async def test_limit_is_configurable(self):
        with pytest.raises(BatchLimitExceeded):
            await make_service(max_batch_addresses=2).get_balances("bitcoin", [BTC_ADDRESS] * 3)


def test_sort_verified_first_is_stable():
    def token(token_id, verified):
        return Token(id=token_id, decimals=0, raw_balance="1", formatted_balance="1", verified=verified)

    tokens = [token("a", False), token("b", True), token("c", False), token("d", True)]
    assert [t.id for t in sort_verified_first(tokens)] == ["b", "d", "a", "c"]


def test_networks_described():
    service = make_service()
    names = [network["name"] for network in service.describe_networks()]
    assert names == ["bitcoin", "dogecoin", "litecoin", "near", "solana"]
    assert service.chains == names
