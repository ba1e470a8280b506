"""RouteSelector - Picks the single source network to bridge from."""

from __future__ import annotations

from collections.abc import Sequence

from bridgepay.core.logging import get_logger
from bridgepay.core.types import BridgeProtocol, BridgeRoute, Network, TokenBalance
from bridgepay.utils.units import format_units, rescale


class RouteSelector:
    """
    Chooses the funded network with the largest balance.

    Only one source is ever used; a payment is not assembled from several
    partial balances. Balances are compared in destination units. When a
    source token has different decimals the bridged amount is converted to
    source units, rounding up so the destination still receives at least
    the required amount.
    """

    def __init__(self, bridge_protocol: BridgeProtocol = BridgeProtocol.LAYERZERO) -> None:
        self._protocol = bridge_protocol
        self._logger = get_logger("route")

    def candidates(
        self,
        balances: Sequence[TokenBalance],
        destination: Network,
        required_amount: int,
        destination_decimals: int,
    ) -> list[TokenBalance]:
        """
        Balances that can cover the payment, largest first.

        Ties keep their input order.
        """
        eligible: list[tuple[int, TokenBalance]] = []
        for balance in balances:
            if balance.network == destination:
                continue
            comparable = rescale(balance.amount, balance.decimals, destination_decimals)
            if comparable >= required_amount:
                eligible.append((comparable, balance))

        # sorted() is stable with reverse=True
        eligible = sorted(eligible, key=lambda pair: pair[0], reverse=True)
        return [balance for _, balance in eligible]

    def select(
        self,
        balances: Sequence[TokenBalance],
        destination: Network,
        required_amount: int,
        destination_decimals: int,
    ) -> BridgeRoute | None:
        """
        Build a route from the best candidate.

        Args:
            balances: Positive balances from a scan
            destination: Network the payment is made on
            required_amount: Amount needed, in destination smallest units
            destination_decimals: Token decimals on the destination

        Returns:
            The route, or None when no other network holds enough
        """
        ranked = self.candidates(balances, destination, required_amount, destination_decimals)
        if not ranked:
            self._logger.warning(
                f"No network holds {format_units(required_amount, destination_decimals)} "
                f"outside {destination.value}"
            )
            return None

        source = ranked[0]
        if source.decimals != destination_decimals:
            self._logger.warning(
                f"Token decimals differ: {source.network.value}={source.decimals}, "
                f"{destination.value}={destination_decimals}"
            )
        amount = rescale(required_amount, destination_decimals, source.decimals, round_up=True)

        self._logger.info(
            f"Selected route {source.network.value} -> {destination.value} "
            f"({format_units(amount, source.decimals)}, balance {source.formatted})"
        )
        return BridgeRoute(
            source_network=source.network,
            destination_network=destination,
            amount=amount,
            bridge_protocol=self._protocol,
        )
