"""Contract interaction functions: read-only Uniswap V2 pair access."""

from typing import TYPE_CHECKING

from liquid_vault.constants import (
    UNISWAP_V2_FACTORY_MIN_ABI,
    UNISWAP_V2_PAIR_MIN_ABI,
    UQ112_SHIFT,
    ZERO_ADDRESS,
)
from liquid_vault.fixed_point import FixedPoint
from liquid_vault.models import CumulativePrice, PoolReserves

if TYPE_CHECKING:
    from web3 import Web3  # pragma: no cover


def resolve_pair(w3: "Web3", factory_address: str, token_address: str, paired_address: str) -> str:
    """Look up the Uniswap V2 pair of token/paired via the factory. Raises ValueError if none exists."""
    factory = w3.eth.contract(
        address=w3.to_checksum_address(factory_address),
        abi=UNISWAP_V2_FACTORY_MIN_ABI,
    )
    pair = factory.functions.getPair(
        w3.to_checksum_address(token_address),
        w3.to_checksum_address(paired_address),
    ).call()
    if not pair or int(pair, 16) == int(ZERO_ADDRESS, 16):
        raise ValueError(f"no Uniswap V2 pair for {token_address} / {paired_address}")
    return pair


def uq112_to_fixed_raw(value: int) -> int:
    """Convert a UQ112x112 quantity to a raw FixedPoint (10**18 scale) quantity."""
    return (value * FixedPoint.SCALE) >> UQ112_SHIFT


def average_price(earlier: CumulativePrice, later: CumulativePrice) -> FixedPoint | None:
    """TWAP between two cumulative-price readings, or None when no time passed between them."""
    elapsed = later.timestamp - earlier.timestamp
    if elapsed <= 0:
        return None
    return FixedPoint((later.cumulative - earlier.cumulative) // elapsed)


class UniswapPairReader:
    """
    Reserves and cumulative prices of a live Uniswap V2 pair, oriented as (token, paired).

    Read-only: it satisfies the reading half of the pool interface, which is enough to
    evaluate curves and drive a PriceOracle against a real market.
    """

    def __init__(
        self,
        w3: "Web3",
        pair_address: str,
        token_address: str,
        *,
        block_identifier: int | str = "latest",
    ):
        self.w3 = w3
        self.address = w3.to_checksum_address(pair_address)
        self.block_identifier = block_identifier
        self._pair = w3.eth.contract(address=self.address, abi=UNISWAP_V2_PAIR_MIN_ABI)
        token0 = self._pair.functions.token0().call(block_identifier=block_identifier)
        self.token_is_token0 = str(token0).lower() == str(token_address).lower()

    def reserves(self) -> PoolReserves:
        reserve0, reserve1, ts = self._pair.functions.getReserves().call(block_identifier=self.block_identifier)
        if self.token_is_token0:
            return PoolReserves(token=int(reserve0), paired=int(reserve1), last_update=int(ts))
        return PoolReserves(token=int(reserve1), paired=int(reserve0), last_update=int(ts))

    def cumulative_price(self) -> CumulativePrice:
        """Cumulative (paired per token) price as of the pair's last reserve update."""
        fn = (
            self._pair.functions.price0CumulativeLast
            if self.token_is_token0
            else self._pair.functions.price1CumulativeLast
        )
        cumulative = fn().call(block_identifier=self.block_identifier)
        _, _, ts = self._pair.functions.getReserves().call(block_identifier=self.block_identifier)
        return CumulativePrice(cumulative=uq112_to_fixed_raw(int(cumulative)), timestamp=int(ts))

    def balance_of(self, account: str) -> int:
        return int(
            self._pair.functions.balanceOf(self.w3.to_checksum_address(account)).call(
                block_identifier=self.block_identifier
            )
        )
